from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from healthtrack.db.session import store_guard
from healthtrack.models.lab_record import LabRecord, ReportType
from healthtrack.schemas.records import LabRecordCandidate
from healthtrack.utils.exceptions import RecordNotFound

logger = logging.getLogger("healthtrack")


def create_record(
    db: Session,
    candidate: LabRecordCandidate,
    patient_id: str,
    doctor_id: Optional[str] = None,
) -> LabRecord:
    """Insert a validated record and return it with its generated id.

    No de-duplication: submitting the same reading twice stores two rows.
    """
    with store_guard(db, "create_record"):
        record = LabRecord(
            patient_id=patient_id,
            doctor_id=doctor_id,
            report_type=candidate.report_type,
            fields=candidate.fields,
            date=candidate.date,
            doctor_comment=candidate.doctor_comment,
            commented=candidate.commented,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
    logger.info({
        "function": "create_record",
        "report_type": candidate.report_type.value,
        "record_id": record.id,
    })
    return record


def get_record(db: Session, report_type: ReportType, record_id: str) -> LabRecord:
    with store_guard(db, "get_record"):
        record = (
            db.query(LabRecord)
            .filter(LabRecord.id == record_id, LabRecord.report_type == report_type)
            .first()
        )
    if record is None:
        raise RecordNotFound("Record not found")
    return record


def list_records(
    db: Session,
    report_type: ReportType,
    patient_id: Optional[str] = None,
    doctor_id: Optional[str] = None,
) -> List[LabRecord]:
    query = db.query(LabRecord).filter(LabRecord.report_type == report_type)
    if patient_id is not None:
        query = query.filter(LabRecord.patient_id == patient_id)
    if doctor_id is not None:
        query = query.filter(LabRecord.doctor_id == doctor_id)
    with store_guard(db, "list_records"):
        return query.order_by(desc(LabRecord.created_at), desc(LabRecord.id)).all()


def attach_comment(
    db: Session, report_type: ReportType, record_id: str, comment: str
) -> LabRecord:
    """Set the doctor's comment and flip ``commented`` on.

    A later comment overwrites an earlier one; ``commented`` only ever moves
    from False to True.
    """
    record = get_record(db, report_type, record_id)
    first_comment = not record.commented
    with store_guard(db, "attach_comment"):
        record.doctor_comment = comment
        record.commented = True
        db.commit()
        db.refresh(record)
    logger.info({
        "function": "attach_comment",
        "report_type": report_type.value,
        "record_id": record.id,
        "first_comment": first_comment,
    })
    return record


__all__ = ["attach_comment", "create_record", "get_record", "list_records"]
