"""HTTP and WebSocket surface tests with the upload service replaced."""

import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.services.progress import ProgressReporter
from terabox.routes import get_progress_reporter, get_upload_service, router
from terabox.upload_service import UploadResult


class FakeUploadService:
    def __init__(self, reporter, success=True):
        self.reporter = reporter
        self.success = success
        self.calls = []
        self.statuses = {}

    async def perform(self, file_name, data, request_id=None):
        request_id = request_id or "generated-1"
        self.calls.append((file_name, data, request_id))
        sink = self.reporter.sink(request_id)
        await sink.emit(50, "Uploading")

        if not self.success:
            return UploadResult(success=False, request_id=request_id, attempts=3,
                                error="Upload failed after 3 attempts: stalled")

        await sink.emit(100, "Upload complete", link="https://terabox.com/s/1abc")
        return UploadResult(success=True, request_id=request_id, attempts=1, link="https://terabox.com/s/1abc")

    def get_upload_status(self, request_id):
        return self.statuses.get(request_id)


@pytest.fixture
def reporter():
    return ProgressReporter()


@pytest.fixture
def service(reporter):
    return FakeUploadService(reporter)


@pytest.fixture
def client(service, reporter):
    app = FastAPI()
    app.include_router(router, prefix="/api")
    app.dependency_overrides[get_upload_service] = lambda: service
    app.dependency_overrides[get_progress_reporter] = lambda: reporter
    with TestClient(app) as test_client:
        yield test_client


def wait_for_listener(reporter, request_id, timeout=2.0):
    deadline = time.monotonic() + timeout
    while reporter.get_listener(request_id) is None:
        assert time.monotonic() < deadline, f"no listener attached for {request_id}"
        time.sleep(0.01)


# ------------------------------ UPLOAD ------------------------------

def test_upload_without_file_is_rejected(client, service):
    response = client.post("/api/upload")

    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded."
    assert service.calls == []


def test_upload_returns_link(client, service):
    response = client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["link"] == "https://terabox.com/s/1abc"
    assert "error" not in body
    assert service.calls == [("notes.txt", b"hello", "generated-1")]


def test_upload_passes_client_request_id(client, service):
    response = client.post(
        "/api/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"request_id": "req-42"},
    )

    assert response.json()["request_id"] == "req-42"
    assert service.calls[0][2] == "req-42"


def test_failed_upload_returns_500_with_error(client, service):
    service.success = False

    response = client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Upload failed after 3 attempts: stalled"
    assert "link" not in body


# ------------------------------ STATUS ------------------------------

def test_unknown_upload_status_is_404(client):
    response = client.get("/api/upload/missing/status")

    assert response.status_code == 404


def test_known_upload_status(client, service):
    service.statuses["req-1"] = {"request_id": "req-1", "status": "completed"}

    response = client.get("/api/upload/req-1/status")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"request_id": "req-1", "status": "completed"}}


# ------------------------------ PROGRESS ------------------------------

def test_progress_websocket_streams_events(client, reporter):
    with client.websocket_connect("/api/upload/req-7/progress") as websocket:
        wait_for_listener(reporter, "req-7")

        response = client.post(
            "/api/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            data={"request_id": "req-7"},
        )

        assert response.status_code == 200
        assert websocket.receive_json() == {"percent": 50, "status": "Uploading"}
        assert websocket.receive_json() == {
            "percent": 100,
            "status": "Upload complete",
            "link": "https://terabox.com/s/1abc",
        }


def test_progress_listener_detached_on_disconnect(client, reporter):
    with client.websocket_connect("/api/upload/req-8/progress"):
        wait_for_listener(reporter, "req-8")

    deadline = time.monotonic() + 2.0
    while reporter.get_listener("req-8") is not None and time.monotonic() < deadline:
        time.sleep(0.01)
    assert reporter.get_listener("req-8") is None


def test_upload_without_listener_still_succeeds(client):
    response = client.post(
        "/api/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"request_id": "nobody-listens"},
    )

    assert response.status_code == 200
