# healthtrack/models/lab_record.py
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, String, false, text
from sqlalchemy.orm import Mapped, mapped_column

from healthtrack.db.session import Base, utcnow
from healthtrack.utils.encryption import EncryptedJSON, EncryptedText


class ReportType(str, Enum):
    BLOOD_PRESSURE = "BloodPressure"
    BLOOD_SUGAR = "BloodSugar"
    LIPID_PROFILE = "LipidProfile"
    FBC = "FBC"

    @property
    def slug(self) -> str:
        return self.value.lower()

    @classmethod
    def from_slug(cls, slug: str) -> Optional["ReportType"]:
        lowered = (slug or "").strip().lower()
        for member in cls:
            if member.slug == lowered:
                return member
        return None


class LabRecord(Base):
    __tablename__ = "lab_records"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Plain strings: patients and doctors live outside this service
    patient_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    doctor_id: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)

    report_type: Mapped[ReportType] = mapped_column(
        SAEnum(ReportType, name="reporttype", values_callable=lambda e: [m.value for m in e]),
        index=True,
        nullable=False,
    )
    fields: Mapped[dict] = mapped_column(EncryptedJSON, nullable=False)
    date: Mapped[str] = mapped_column(String(40), nullable=False)

    doctor_comment: Mapped[Optional[str]] = mapped_column(EncryptedText, nullable=True)
    commented: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utcnow,
    )
