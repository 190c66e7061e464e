from fastapi.testclient import TestClient

from healthtrack.app import app
from healthtrack.middleware.rate_limit import UPLOAD_RATE_LIMIT


def test_domain_error_envelope_carries_trace_id(client):
    r = client.put("/api/records/bloodpressure/zzz/comment", json={"comment": "x"})
    assert r.status_code == 404
    j = r.json()
    assert j["code"] == "NOT_FOUND"
    assert j["message"] == "Record not found"
    assert j["trace_id"] == r.headers["x-trace-id"]


def test_inbound_trace_id_is_reused(client):
    r = client.get("/api/health", headers={"x-trace-id": "proxy-abc-123"})
    assert r.status_code == 200
    assert r.headers["x-trace-id"] == "proxy-abc-123"


def test_trace_id_is_minted_when_absent(client):
    first = client.get("/api/health").headers["x-trace-id"]
    second = client.get("/api/health").headers["x-trace-id"]
    assert first and second and first != second


def test_http_exception_envelope(client):
    r = client.get("/api/records/urinalysis/abc")
    assert r.status_code == 404
    j = r.json()
    assert j["code"] == "NOT_FOUND"
    assert j["details"] == "Unknown report type: urinalysis"
    assert "trace_id" in j


def test_unhandled_exception_envelope(monkeypatch):
    def boom(*_a, **_k):
        raise ValueError("boom")

    monkeypatch.setattr("healthtrack.routes.records_routes.get_record", boom)
    r = TestClient(app, raise_server_exceptions=False).get("/api/records/fbc/abc")
    assert r.status_code == 500
    j = r.json()
    assert j["code"] == "INTERNAL_SERVER_ERROR"
    assert j["details"] == "boom"
    assert "trace_id" in j


def test_upload_rate_limit_envelope(client):
    body = {"patientId": "PT1", "systolic": 120, "diastolic": 80, "pulse": 70}
    allowed = int(UPLOAD_RATE_LIMIT.split("/")[0])
    for _ in range(allowed):
        assert client.post("/api/records/bloodpressure", json=body).status_code == 201
    r = client.post("/api/records/bloodpressure", json=body)
    assert r.status_code == 429
    j = r.json()
    assert j["code"] == "TOO_MANY_REQUESTS"
    assert "trace_id" in j
    # per-minute limit: wait until the window resets, not a fixed second
    retry_after = int(r.headers["Retry-After"])
    assert 1 < retry_after <= 61

    # reads are not limited
    assert client.get("/api/records/bloodpressure", params={"patientId": "PT1"}).status_code == 200
