from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel, to_snake

from core.errors import ValidationFailed, describe_validation_errors


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire; both spellings accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def normalize_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Top-level keys to snake_case so camelCase and snake_case bodies compare equal."""
    return {to_snake(key): value for key, value in payload.items()}


def validate_update(schema, updates: Dict[str, Any], label: str):
    try:
        return schema.model_validate(updates)
    except ValidationError as e:
        errors: List[str] = describe_validation_errors(e.errors())
        raise ValidationFailed(f"Invalid {label}: " + "; ".join(errors))


def apply_updates(obj, update, column_names: Dict[str, str] = None) -> Dict[str, Any]:
    """Copy the fields explicitly set on ``update`` onto the ORM object."""
    column_names = column_names or {}
    changes = update.model_dump(exclude_unset=True)
    # nested values land in JSON columns and must be JSON-safe
    json_changes = update.model_dump(exclude_unset=True, mode="json")
    for field, value in changes.items():
        if isinstance(value, (dict, list)):
            value = json_changes[field]
        setattr(obj, column_names.get(field, field), value)
    return changes
