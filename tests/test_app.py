import json
import pytest
from fastapi.testclient import TestClient

from vconinsight.core import config
from server.app import app
from conftest import make_doc

client = TestClient(app)

def _upload(content: bytes, filename="calls.json", content_type="application/json"):
    return client.post("/api/upload", files={"file": (filename, content, content_type)})

@pytest.fixture()
def uploaded(db, sample_path):
    resp = _upload(sample_path.read_bytes())
    assert resp.status_code == 200
    return resp.json()["file_id"]

def test_upload_success(uploaded):
    resp = client.get("/api/files")
    assert resp.status_code == 200
    files = resp.json()
    assert files[0]["id"] == uploaded
    assert files[0]["processed"] is True

def test_analytics_endpoints(uploaded):
    latest = client.get("/api/analytics/latest").json()
    assert latest["file_id"] == uploaded
    assert latest["total_calls"] == 5
    assert latest["avg_quality_score"] == 7.9
    assert client.get(f"/api/analytics/{uploaded}").json() == latest
    assert client.get("/api/analytics").json() == [latest]

def test_call_quality_endpoints(uploaded):
    records = client.get(f"/api/call-quality/{uploaded}").json()
    assert [r["call_index"] for r in records] == [0, 1, 2, 3, 4]
    assert records[1]["was_transferred"] is True
    assert client.get("/api/call-quality/latest").json() == records
    assert client.get("/api/call-quality/999").json() == []

def test_not_found(db):
    resp = client.get("/api/analytics/latest")
    assert resp.status_code == 404
    assert resp.json()["message"] == "No analytics data found"
    resp = client.get("/api/analytics/42")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Analytics not found for this file"
    resp = client.get("/api/call-quality/latest")
    assert resp.status_code == 404
    assert resp.json()["message"] == "No call quality data found"

@pytest.mark.parametrize("content, filename, content_type, status, message", [
    (b"{not json", "bad.json", "application/json", 400, "Invalid JSON file"),
    (json.dumps({"dialog": []}).encode(), "novcon.json", "application/json", 400, "Invalid vCon file structure"),
    (b"hello", "notes.txt", "text/plain", 400, "Only JSON files are allowed"),
])
def test_upload_rejections(db, content, filename, content_type, status, message):
    resp = _upload(content, filename, content_type)
    assert resp.status_code == status
    assert resp.json()["message"] == message
    assert client.get("/api/files").json() == []

def test_upload_too_large(db, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)
    resp = _upload(json.dumps(make_doc()).encode())
    assert resp.status_code == 413

def test_upload_without_file(db):
    resp = client.post("/api/upload", files={"other": ("x.json", b"{}", "application/json")})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No file uploaded"

def test_storage_failure_is_generic(db, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("disk full")
    monkeypatch.setattr("server.app.ingest_document", boom)
    resp = _upload(json.dumps(make_doc()).encode())
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to upload file"

def test_huge_duration_is_stored_as_zero(db):
    resp = _upload(b'{"vcon": "0.0.1", "dialog": [{"duration": 1e400, "transcript": "hello"}]}')
    assert resp.status_code == 200
    file_id = resp.json()["file_id"]
    assert client.get(f"/api/call-quality/{file_id}").json()[0]["duration_seconds"] == 0.0
    resp = client.get("/api/analytics")
    assert resp.status_code == 200
    assert resp.json()[0]["avg_wait_time_seconds"] == 0.0

def test_infinity_literal_is_invalid_json(db):
    resp = _upload(b'{"vcon": "0.0.1", "dialog": [{"duration": Infinity}]}')
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid JSON file"
    assert client.get("/api/files").json() == []

def test_upload_limit_boundary(db, monkeypatch):
    content = json.dumps(make_doc()).encode()
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", len(content))
    assert _upload(content).status_code == 200
    resp = _upload(content + b" ")
    assert resp.status_code == 413
    assert resp.json()["message"] == "File exceeds the upload size limit"
