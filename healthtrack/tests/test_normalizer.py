import math

import pytest

from healthtrack.models.lab_record import ReportType
from healthtrack.services.normalizer import REQUIRED_FIELDS, normalize, normalize_sugar_type
from healthtrack.utils.exceptions import IncompleteExtraction


COMPLETE = {
    ReportType.BLOOD_PRESSURE: {"systolic": 128, "diastolic": 82, "pulse": 70, "date": "2024-05-01"},
    ReportType.BLOOD_SUGAR: {"type": "Fasting", "value": 95, "date": "2024.05.01"},
    ReportType.LIPID_PROFILE: {
        "cholesterol": "190",
        "hdl": "45",
        "ldl": "120",
        "triglycerides": "150",
        "date": "2024-03-15",
    },
    ReportType.FBC: {
        "rbc": "4.52",
        "wbc": "7.1",
        "haemoglobin": "13.5",
        "platelet": "250",
        "date": "2024/02/10",
    },
}


def test_blood_pressure_complete():
    candidate = normalize(ReportType.BLOOD_PRESSURE, COMPLETE[ReportType.BLOOD_PRESSURE])
    assert candidate.report_type is ReportType.BLOOD_PRESSURE
    assert candidate.fields == {"systolic": 128, "diastolic": 82, "pulse": 70}
    assert candidate.date == "2024-05-01"
    assert candidate.commented is False
    assert candidate.doctor_comment is None


def test_lipid_strings_are_coerced_to_numbers():
    candidate = normalize(ReportType.LIPID_PROFILE, COMPLETE[ReportType.LIPID_PROFILE])
    assert candidate.fields == {"cholesterol": 190, "hdl": 45, "ldl": 120, "triglycerides": 150}


def test_fbc_decimals_become_floats():
    candidate = normalize(ReportType.FBC, COMPLETE[ReportType.FBC])
    assert candidate.fields == {"rbc": 4.52, "wbc": 7.1, "haemoglobin": 13.5, "platelet": 250}
    assert candidate.date == "2024/02/10"


def test_blood_sugar_type_is_canonicalised():
    candidate = normalize(ReportType.BLOOD_SUGAR, COMPLETE[ReportType.BLOOD_SUGAR])
    assert candidate.fields == {"type": "fasting", "value": 95}


@pytest.mark.parametrize("report_type", list(ReportType))
def test_each_missing_required_field_is_rejected(report_type):
    for name, _ in REQUIRED_FIELDS[report_type]:
        raw = dict(COMPLETE[report_type])
        del raw[name]
        with pytest.raises(IncompleteExtraction) as excinfo:
            normalize(report_type, raw)
        assert excinfo.value.missing == [name]
        assert excinfo.value.partial == raw


def test_blank_string_counts_as_missing():
    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], pulse="   ")
    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.BLOOD_PRESSURE, raw)
    assert excinfo.value.missing == ["pulse"]


def test_only_systolic_reports_the_rest_missing():
    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.BLOOD_PRESSURE, {"systolic": 128})
    err = excinfo.value
    assert err.missing == ["diastolic", "pulse"]
    assert err.invalid == []
    assert err.details == {"missing": ["diastolic", "pulse"], "invalid": [], "partial": {"systolic": 128}}


def test_ocr_artifact_is_invalid_not_truncated():
    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], systolic="12O")
    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.BLOOD_PRESSURE, raw)
    assert excinfo.value.invalid == ["systolic"]
    assert excinfo.value.missing == []


@pytest.mark.parametrize("bad", [True, -5, math.nan, math.inf, "abc", "1e3", "-7", [120]])
def test_non_measurements_are_invalid(bad):
    raw = dict(COMPLETE[ReportType.LIPID_PROFILE], hdl=bad)
    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.LIPID_PROFILE, raw)
    assert excinfo.value.invalid == ["hdl"]


def test_blood_pressure_needs_whole_numbers():
    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], pulse=70.5)
    with pytest.raises(IncompleteExtraction):
        normalize(ReportType.BLOOD_PRESSURE, raw)

    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], pulse=70.0)
    assert normalize(ReportType.BLOOD_PRESSURE, raw).fields["pulse"] == 70


def test_hba1c_value_is_a_percentage():
    candidate = normalize(ReportType.BLOOD_SUGAR, {"type": "HbA1c", "value": 6.1})
    assert candidate.fields == {"type": "HbA1c", "value": 6.1}

    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.BLOOD_SUGAR, {"type": "HbA1c", "value": 110})
    assert excinfo.value.invalid == ["value"]


def test_unknown_sugar_type_is_invalid():
    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.BLOOD_SUGAR, {"type": "after lunch", "value": 140})
    assert excinfo.value.invalid == ["type"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Fasting", "fasting"),
        ("FBS", "fasting"),
        ("Post-prandial", "postprandial"),
        ("PPBS", "postprandial"),
        ("Random", "random"),
        ("RBS", "random"),
        ("HbA1c", "HbA1c"),
        ("hba1c (glycated)", "HbA1c"),
        ("A1C", "HbA1c"),
    ],
)
def test_normalize_sugar_type(raw, expected):
    assert normalize_sugar_type(raw) == expected


def test_missing_date_uses_clock():
    raw = {k: v for k, v in COMPLETE[ReportType.FBC].items() if k != "date"}
    candidate = normalize(ReportType.FBC, raw, now=lambda: "2024-07-01T09:00:00+00:00")
    assert candidate.date == "2024-07-01T09:00:00+00:00"


def test_missing_date_defaults_to_utc_timestamp():
    raw = {k: v for k, v in COMPLETE[ReportType.BLOOD_PRESSURE].items() if k != "date"}
    candidate = normalize(ReportType.BLOOD_PRESSURE, raw)
    assert candidate.date.endswith("+00:00")


def test_extra_keys_are_dropped():
    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], note="after exercise")
    assert "note" not in normalize(ReportType.BLOOD_PRESSURE, raw).fields


@pytest.mark.parametrize(
    "when",
    ["2024-05-01", "2024.05.01", "2024/05/01", "2024-05-01T08:30:00", "2024-05-01T08:30:00+05:30"],
)
def test_accepted_date_forms_are_kept(when):
    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], date=when)
    assert normalize(ReportType.BLOOD_PRESSURE, raw).date == when


@pytest.mark.parametrize(
    "when",
    [{"not": "a date"}, 20240501, "yesterday", "2024-13-01", "2024-02-30", "2024-05-01" + "x" * 40],
)
def test_bad_dates_are_invalid(when):
    raw = dict(COMPLETE[ReportType.BLOOD_PRESSURE], date=when)
    with pytest.raises(IncompleteExtraction) as excinfo:
        normalize(ReportType.BLOOD_PRESSURE, raw)
    assert excinfo.value.invalid == ["date"]
    assert excinfo.value.missing == []
