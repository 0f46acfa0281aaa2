"""
Field-level write permissions.

``FIELD_PERMISSIONS[entity][role]`` is the set of payload keys (snake_case) a
role may write through that entity's update endpoint. Anything else in the
payload is dropped without error. Ownership ("is this your record?") is
checked by the controllers before filtering.
"""
import logging
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping

logger = logging.getLogger(__name__)


def _table(**roles) -> Mapping[str, FrozenSet[str]]:
    return MappingProxyType({role: frozenset(fields) for role, fields in roles.items()})


_USER_FIELDS = (
    "first_name", "last_name", "phone_number", "date_of_birth", "gender",
    "address", "profile_image", "is_active",
)

_PATIENT_FIELDS = (
    "emergency_contact", "medical_history", "insurance", "preferred_language",
    "blood_type", "height", "weight", "smoking_status", "alcohol_consumption",
)

_DOCTOR_FIELDS = (
    "specialization", "experience", "education", "certifications", "languages",
    "availability", "consultation_fee", "is_accepting_new_patients",
    "hospital_affiliation", "bio",
)

_APPOINTMENT_CLINICAL = (
    "status", "diagnosis", "prescription", "follow_up_required", "follow_up_date", "meeting_link",
)
_APPOINTMENT_PATIENT = ("reason", "symptoms")
_APPOINTMENT_BILLING = ("payment_status", "payment_amount", "location")

_REPORT_FIELDS = ("title", "description", "metadata", "ai_analysis", "status", "is_confidential", "tags")

_IMAGE_FIELDS = ("caption", "alt_text", "category", "is_primary", "order", "status")


FIELD_PERMISSIONS: Mapping[str, Mapping[str, FrozenSet[str]]] = MappingProxyType({
    "user": _table(
        patient=_USER_FIELDS,
        doctor=_USER_FIELDS,
        admin=_USER_FIELDS + ("role",),
    ),
    "patient": _table(
        patient=_PATIENT_FIELDS,
        doctor=_PATIENT_FIELDS,
        admin=_PATIENT_FIELDS,
    ),
    "doctor": _table(
        patient=(),
        doctor=_DOCTOR_FIELDS,
        admin=_DOCTOR_FIELDS + ("license_number",),
    ),
    "appointment": _table(
        patient=("notes",) + _APPOINTMENT_PATIENT,
        doctor=("notes",) + _APPOINTMENT_CLINICAL,
        admin=("notes",) + _APPOINTMENT_CLINICAL + _APPOINTMENT_PATIENT + _APPOINTMENT_BILLING,
    ),
    "report": _table(
        patient=(),
        doctor=_REPORT_FIELDS,
        admin=_REPORT_FIELDS,
    ),
    "image": _table(
        patient=(),
        doctor=_IMAGE_FIELDS,
        admin=_IMAGE_FIELDS,
    ),
})


def allowed_fields(entity: str, role: str) -> FrozenSet[str]:
    try:
        by_role = FIELD_PERMISSIONS[entity]
    except KeyError:
        raise ValueError(f"Unknown entity: {entity}")
    return by_role.get(role, frozenset())


def filter_fields(entity: str, role: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    allowed = allowed_fields(entity, role)
    kept = {key: value for key, value in payload.items() if key in allowed}
    dropped = sorted(set(payload) - set(kept))
    if dropped:
        logger.debug("Dropped %s fields not writable by %s: %s", entity, role, dropped)
    return kept
