"""Per-report-type field extraction from lab report text.

Every field has its own pattern and is searched independently, first match
wins. Reports from different devices and labs lay fields out differently, so
a loose per-field search survives reordered or partial reports; the price is
that an unrelated number sequence in free text can be picked up. A field
whose pattern does not match is simply left out of the result; deciding
whether the record is complete is the normalizer's job.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Optional, Pattern, Tuple

from healthtrack.models.lab_record import ReportType

FieldMap = Dict[str, Any]

_DIGITS = re.compile(r"\d+")
_DECIMAL = re.compile(r"\d+(?:\.\d+)?")

_LABEL_GAP = r"[ \t]*[:\-]?[ \t]*"

# Value token: stops before a unit or separator. Letters inside the token are
# kept (e.g. an OCR "12O") so coercion can reject it instead of truncating.
_BP_VALUE = r"(\d[\dA-Za-z.]*?)(?=\s*(?:mm\s*hg|bpm|/\s*min)|[\s,;)]|\.(?!\d)|$)"


def _first(pattern: Pattern[str], text: str, group: int = 1) -> Optional[str]:
    match = pattern.search(text)
    return match.group(group).strip() if match else None


def _int_or_raw(token: str) -> Any:
    return int(token) if _DIGITS.fullmatch(token) else token


def _float_or_raw(token: str) -> Any:
    return float(token) if _DECIMAL.fullmatch(token) else token


class ReportParser:
    """Common capability: text in, partial field mapping out. Never raises."""

    report_type: ReportType

    def parse(self, text: str) -> FieldMap:
        raise NotImplementedError


class BloodPressureParser(ReportParser):
    report_type = ReportType.BLOOD_PRESSURE

    # Label and value must share a line; a header row such as "SYS DIA PUL"
    # above "128 82 70" is left to the triplet fallback
    LABELS: Tuple[Tuple[str, Pattern[str]], ...] = (
        ("systolic", re.compile(r"\bsys(?:tolic)?(?:[ \t]+pressure)?" + _LABEL_GAP + _BP_VALUE, re.I)),
        ("diastolic", re.compile(r"\bdia(?:stolic)?(?:[ \t]+pressure)?" + _LABEL_GAP + _BP_VALUE, re.I)),
        ("pulse", re.compile(r"\b(?:pul(?:se)?|heart[ \t]+rate)(?:[ \t]+rate)?" + _LABEL_GAP + _BP_VALUE, re.I)),
    )
    # Device printouts without labels: "128 82 70" is systolic diastolic pulse
    TRIPLET = re.compile(r"(?<!\d)(\d{2,3})\s+(\d{2,3})\s+(\d{2,3})(?!\d)")
    DATE = re.compile(r"(\d{4}-\d{2}-\d{2})")

    def parse(self, text: str) -> FieldMap:
        data: FieldMap = {}
        for name, pattern in self.LABELS:
            token = _first(pattern, text)
            if token is not None:
                data[name] = _int_or_raw(token)

        if len(data) < len(self.LABELS):
            triplet = self.TRIPLET.search(text)
            if triplet:
                for index, (name, _) in enumerate(self.LABELS, start=1):
                    data.setdefault(name, int(triplet.group(index)))

        date = _first(self.DATE, text)
        if date:
            data["date"] = date
        return data


class BloodSugarParser(ReportParser):
    report_type = ReportType.BLOOD_SUGAR

    DATE = re.compile(r"Date:\s*(\d{4}[.\-]\d{2}[.\-]\d{2})", re.I)
    TYPE = re.compile(r"Blood\s+Sugar\s+Type:\s*(.+?)(?=Value:|$)", re.I | re.S)
    HBA1C = re.compile(r"hba1c|\ba1c\b", re.I)
    PERCENT_VALUE = re.compile(r"Value:\s*([\d.]+)\s*%", re.I)
    MGDL_VALUE = re.compile(r"Value:\s*(\d+)\s*mg\s*/\s*dL", re.I)

    def parse(self, text: str) -> FieldMap:
        data: FieldMap = {}
        date = _first(self.DATE, text)
        if date:
            data["date"] = date

        sugar_type = _first(self.TYPE, text)
        if sugar_type:
            data["type"] = " ".join(sugar_type.split())

        if sugar_type and self.HBA1C.search(sugar_type):
            value = _first(self.PERCENT_VALUE, text)
            if value is not None:
                data["value"] = _float_or_raw(value)
        else:
            value = _first(self.MGDL_VALUE, text)
            if value is not None:
                data["value"] = int(value)
        return data


class LipidProfileParser(ReportParser):
    report_type = ReportType.LIPID_PROFILE

    FIELDS: Tuple[Tuple[str, Pattern[str]], ...] = (
        ("cholesterol", re.compile(r"Cholesterol,?\s*Total\s*:?\s*(\d+)\s*mg\s*/\s*dL", re.I)),
        ("hdl", re.compile(r"\bHDL\s*:?\s*(\d+)\s*mg\s*/\s*dL", re.I)),
        ("ldl", re.compile(r"\bLDL\s*:?\s*(\d+)\s*mg\s*/\s*dL", re.I)),
        ("triglycerides", re.compile(r"\bTriglycerides\s*:?\s*(\d+)\s*mg\s*/\s*dL", re.I)),
    )
    DATE = re.compile(r"(\d{4}-\d{2}-\d{2})")

    def parse(self, text: str) -> FieldMap:
        # Values stay as matched digit strings; the normalizer coerces them
        data: FieldMap = {}
        for name, pattern in self.FIELDS:
            value = _first(pattern, text)
            if value is not None:
                data[name] = value
        date = _first(self.DATE, text)
        if date:
            data["date"] = date
        return data


class FBCParser(ReportParser):
    report_type = ReportType.FBC

    FIELDS: Tuple[Tuple[str, Pattern[str]], ...] = (
        ("rbc", re.compile(r"\bRBC:\s*(\d+(?:\.\d+)?)\s*million\s*/\s*[uµμ]L", re.I)),
        ("wbc", re.compile(r"\bWBC:\s*(\d+(?:\.\d+)?)\s*thousand\s*/\s*[uµμ]L", re.I)),
        ("haemoglobin", re.compile(r"\bHa?emoglobin:\s*(\d+(?:\.\d+)?)\s*g\s*/\s*dL", re.I)),
        ("platelet", re.compile(r"\bPlatelets?:\s*(\d+(?:\.\d+)?)\s*thousand\s*/\s*[uµμ]L", re.I)),
    )
    # FBC printouts use assorted separators (2024-05-01, 2024.05.01, 2024/05/01)
    DATE = re.compile(r"(\d{4}.\d{2}.\d{2})")

    def parse(self, text: str) -> FieldMap:
        data: FieldMap = {}
        for name, pattern in self.FIELDS:
            value = _first(pattern, text)
            if value is not None:
                data[name] = value
        date = _first(self.DATE, text)
        if date:
            data["date"] = date
        return data


PARSERS: Dict[ReportType, ReportParser] = {
    parser.report_type: parser
    for parser in (BloodPressureParser(), BloodSugarParser(), LipidProfileParser(), FBCParser())
}


def parse_report(report_type: ReportType, text: str) -> FieldMap:
    return PARSERS[report_type].parse(text or "")


__all__ = ["FieldMap", "PARSERS", "ReportParser", "parse_report"]
