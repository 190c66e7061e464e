# healthtrack/schemas/records.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from healthtrack.models.lab_record import ReportType


class LabRecordCandidate(BaseModel):
    """A validated record that has not been stored yet (no id)."""

    report_type: ReportType
    fields: Dict[str, Any]
    date: str
    commented: bool = False
    doctor_comment: Optional[str] = None


class ManualEntryIn(BaseModel):
    """Manual-entry body: identifiers plus the report's own fields.

    Measurement fields are left untyped here so that missing or malformed
    values go through the same normalizer as extracted ones.
    """

    patient_id: Optional[str] = Field(default=None, alias="patientId")
    doctor_id: Optional[str] = Field(default=None, alias="doctorId")

    class Config:
        extra = "allow"
        populate_by_name = True

    def raw_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class CommentIn(BaseModel):
    comment: Optional[str] = None


class LabRecordOut(BaseModel):
    id: str
    patient_id: str = Field(serialization_alias="patientId")
    doctor_id: Optional[str] = Field(default=None, serialization_alias="doctorId")
    report_type: ReportType = Field(serialization_alias="reportType")
    fields: Dict[str, Any]
    date: str
    doctor_comment: Optional[str] = Field(default=None, serialization_alias="doctorComment")
    commented: bool
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")

    class Config:
        from_attributes = True
