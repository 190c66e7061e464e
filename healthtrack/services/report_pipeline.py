"""End-to-end lab report ingestion: PDF or manual form to a stored record."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from healthtrack.models.lab_record import LabRecord, ReportType
from healthtrack.services.normalizer import normalize
from healthtrack.services.pdf_text import extract_pdf_text
from healthtrack.services.record_store import create_record
from healthtrack.services.report_parsers import FieldMap, parse_report
from healthtrack.utils.exceptions import IncompleteExtraction, MissingInput

logger = logging.getLogger("healthtrack")


# Matches the String(64) id columns on lab_records
MAX_ID_LENGTH = 64


def _check_length(name: str, value: str) -> str:
    if len(value) > MAX_ID_LENGTH:
        raise MissingInput(f"{name} must be at most {MAX_ID_LENGTH} characters")
    return value


def _require_patient(patient_id: Optional[str]) -> str:
    cleaned = (patient_id or "").strip()
    if not cleaned:
        raise MissingInput("patientId is required")
    return _check_length("patientId", cleaned)


def _clean_doctor(doctor_id: Optional[str]) -> Optional[str]:
    cleaned = (doctor_id or "").strip()
    return _check_length("doctorId", cleaned) if cleaned else None


def extract_fields(report_type: ReportType, data: bytes) -> FieldMap:
    text = extract_pdf_text(data)
    return parse_report(report_type, text)


def ingest_pdf(
    db: Session,
    report_type: ReportType,
    data: bytes,
    patient_id: Optional[str],
    doctor_id: Optional[str] = None,
) -> LabRecord:
    patient = _require_patient(patient_id)
    doctor = _clean_doctor(doctor_id)
    raw = extract_fields(report_type, data)
    try:
        candidate = normalize(report_type, raw)
    except IncompleteExtraction as exc:
        logger.info({
            "function": "ingest_pdf",
            "status": "incomplete",
            "report_type": report_type.value,
            "missing": exc.missing,
            "invalid": exc.invalid,
        })
        raise
    return create_record(db, candidate, patient, doctor)


def ingest_manual(
    db: Session,
    report_type: ReportType,
    raw_fields: Mapping[str, Any],
    patient_id: Optional[str],
    doctor_id: Optional[str] = None,
) -> LabRecord:
    patient = _require_patient(patient_id)
    doctor = _clean_doctor(doctor_id)
    candidate = normalize(report_type, raw_fields)
    return create_record(db, candidate, patient, doctor)


__all__ = ["extract_fields", "ingest_manual", "ingest_pdf"]
