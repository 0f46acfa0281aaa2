from typing import List, Optional

from pydantic import Field

from model.schema_base import CamelModel


class SymptomsRequest(CamelModel):
    symptoms: List[str] = Field(min_length=1)
    patient_id: Optional[str] = None
    description: Optional[str] = None
