# healthtrack/routes/records_routes.py
import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from healthtrack.db.session import get_db
from healthtrack.middleware.rate_limit import UPLOAD_RATE_LIMIT, limiter
from healthtrack.models.lab_record import ReportType
from healthtrack.schemas.records import CommentIn, LabRecordOut, ManualEntryIn
from healthtrack.services.record_store import attach_comment, get_record, list_records
from healthtrack.services.report_pipeline import ingest_manual, ingest_pdf
from healthtrack.utils.exceptions import MissingInput, RecordNotFound

router = APIRouter(prefix="/api/records", tags=["records"])
logger = logging.getLogger("healthtrack")

MAX_FILE_MB = int(os.getenv("MAX_FILE_MB", "10"))


def resolve_report_type(slug: str) -> ReportType:
    report_type = ReportType.from_slug(slug)
    if report_type is None:
        raise HTTPException(status_code=404, detail=f"Unknown report type: {slug}")
    return report_type


@router.post("/{slug}/upload", response_model=LabRecordOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_report(
    request: Request,
    slug: str,
    file: Optional[UploadFile] = File(None),
    patient_id: Optional[str] = Form(None, alias="patientId"),
    doctor_id: Optional[str] = Form(None, alias="doctorId"),
    db: Session = Depends(get_db),
):
    """Extract a lab report PDF into a record; 400 tells the client to fall back to manual entry."""
    report_type = resolve_report_type(slug)
    if file is None:
        raise MissingInput("No file uploaded")

    data = await file.read()
    if len(data) > MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds the {MAX_FILE_MB}MB limit",
        )
    logger.info({
        "function": "upload_report",
        "report_type": report_type.value,
        "filename": file.filename or "upload",
        "size_bytes": len(data),
    })
    return await run_in_threadpool(ingest_pdf, db, report_type, data, patient_id, doctor_id)


@router.post("/{slug}", response_model=LabRecordOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(UPLOAD_RATE_LIMIT)
def create_manual_record(
    request: Request,
    slug: str,
    payload: ManualEntryIn = Body(...),
    db: Session = Depends(get_db),
):
    report_type = resolve_report_type(slug)
    return ingest_manual(db, report_type, payload.raw_fields(), payload.patient_id, payload.doctor_id)


@router.get("/{slug}", response_model=List[LabRecordOut])
def list_reports(
    slug: str,
    patient_id: Optional[str] = Query(None, alias="patientId"),
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    db: Session = Depends(get_db),
):
    report_type = resolve_report_type(slug)
    if (patient_id is None) == (doctor_id is None):
        raise MissingInput("Provide exactly one of patientId or doctorId")
    records = list_records(db, report_type, patient_id=patient_id, doctor_id=doctor_id)
    if not records:
        owner = "patient" if patient_id is not None else "doctor"
        raise RecordNotFound(f"No records found for this {owner}")
    return records


@router.get("/{slug}/{record_id}", response_model=LabRecordOut)
def read_report(slug: str, record_id: str, db: Session = Depends(get_db)):
    return get_record(db, resolve_report_type(slug), record_id)


@router.put("/{slug}/{record_id}/comment", response_model=LabRecordOut)
def comment_on_report(
    slug: str,
    record_id: str,
    payload: CommentIn,
    db: Session = Depends(get_db),
):
    report_type = resolve_report_type(slug)
    comment = (payload.comment or "").strip()
    if not comment:
        raise MissingInput("comment is required")
    return attach_comment(db, report_type, record_id, comment)
