"""Validate and type raw lab fields before anything is stored.

The same path serves PDF extraction and manual entry: a record is either
complete and fully typed, or rejected with IncompleteExtraction and nothing
is written.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from healthtrack.models.lab_record import ReportType
from healthtrack.schemas.records import LabRecordCandidate
from healthtrack.utils.exceptions import IncompleteExtraction

_NUMERIC = re.compile(r"\d+(?:\.\d+)?")


def _to_number(raw: Any) -> float | int:
    if isinstance(raw, bool):
        raise ValueError("boolean is not a measurement")
    if isinstance(raw, (int, float)):
        value = raw
    elif isinstance(raw, str) and _NUMERIC.fullmatch(raw.strip()):
        text = raw.strip()
        value = float(text) if "." in text else int(text)
    else:
        raise ValueError(f"not a number: {raw!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("not finite")
    if value < 0:
        raise ValueError("negative")
    return value


def _to_int(raw: Any) -> int:
    value = _to_number(raw)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not a whole number: {raw!r}")
        return int(value)
    return value


def _to_percentage(raw: Any) -> float:
    value = float(_to_number(raw))
    if value > 100:
        raise ValueError("percentage above 100")
    return value


def normalize_sugar_type(raw: Any) -> str:
    if not isinstance(raw, str):
        raise ValueError(f"not a blood sugar type: {raw!r}")
    key = re.sub(r"[^a-z0-9]", "", raw.lower())
    if "hba1c" in key or key == "a1c":
        return "HbA1c"
    if key.startswith("fasting") or key == "fbs":
        return "fasting"
    if "postprandial" in key or key in ("pp", "ppbs"):
        return "postprandial"
    if key.startswith("random") or key == "rbs":
        return "random"
    raise ValueError(f"unknown blood sugar type: {raw!r}")


Coercer = Callable[[Any], Any]

REQUIRED_FIELDS: Dict[ReportType, Tuple[Tuple[str, Coercer], ...]] = {
    ReportType.BLOOD_PRESSURE: (
        ("systolic", _to_int),
        ("diastolic", _to_int),
        ("pulse", _to_int),
    ),
    ReportType.BLOOD_SUGAR: (
        ("type", normalize_sugar_type),
        ("value", _to_number),
    ),
    ReportType.LIPID_PROFILE: (
        ("cholesterol", _to_number),
        ("hdl", _to_number),
        ("ldl", _to_number),
        ("triglycerides", _to_number),
    ),
    ReportType.FBC: (
        ("rbc", _to_number),
        ("wbc", _to_number),
        ("haemoglobin", _to_number),
        ("platelet", _to_number),
    ),
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


# Calendar dates as the parsers find them (2024-05-01, 2024.05.01, 2024/05/01)
_CALENDAR_DATE = re.compile(r"(\d{4})\D(\d{2})\D(\d{2})")
MAX_DATE_LENGTH = 40


def _to_date(raw: Any) -> str:
    """Accept a calendar date or an ISO-8601 datetime, returned as given."""
    if not isinstance(raw, str):
        raise ValueError(f"not a date: {raw!r}")
    text = raw.strip()
    if len(text) > MAX_DATE_LENGTH:
        raise ValueError("date too long")
    match = _CALENDAR_DATE.fullmatch(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        date(year, month, day)
        return text
    datetime.fromisoformat(text)
    return text


def normalize(
    report_type: ReportType,
    raw: Mapping[str, Any],
    now: Optional[Callable[[], str]] = None,
) -> LabRecordCandidate:
    """Check every required field for ``report_type`` and coerce it.

    ``date`` is taken from the mapping when present, otherwise the current
    UTC time is used.
    """
    missing: List[str] = []
    invalid: List[str] = []
    fields: Dict[str, Any] = {}

    for name, coerce in REQUIRED_FIELDS[report_type]:
        value = raw.get(name)
        if _is_blank(value):
            missing.append(name)
            continue
        try:
            fields[name] = coerce(value)
        except ValueError:
            invalid.append(name)

    if report_type is ReportType.BLOOD_SUGAR and fields.get("type") == "HbA1c" and "value" in fields:
        try:
            fields["value"] = _to_percentage(fields["value"])
        except ValueError:
            invalid.append("value")
            del fields["value"]

    when = raw.get("date")
    if not _is_blank(when):
        try:
            when = _to_date(when)
        except ValueError:
            invalid.append("date")

    if missing or invalid:
        problems = ", ".join(missing + invalid)
        raise IncompleteExtraction(
            f"Could not extract {report_type.value} data: {problems}",
            missing=missing,
            invalid=invalid,
            partial=dict(raw),
        )

    if _is_blank(when):
        when = (now or _now_iso)()
    return LabRecordCandidate(report_type=report_type, fields=fields, date=when)


__all__ = ["REQUIRED_FIELDS", "normalize", "normalize_sugar_type"]
