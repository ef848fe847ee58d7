"""
Tests for API endpoints.
"""

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile

from app.api.routes import get_report_analyzer
from app.core.pdf_extractor import PDFExtractor
from app.main import app
from app.models.schemas import DISCLAIMER
from app.services.report_analyzer import ReportAnalyzer
from app.utils.file_validators import FileValidator


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_handler(make_engine):
    """Route /analyze through an analyzer backed by a mock API handler."""
    def _install(handler, api_key="test-key", max_file_size=None, max_files=None):
        analyzer = ReportAnalyzer(
            engine=make_engine(handler, api_key=api_key),
            pdf_extractor=PDFExtractor(),
            file_validator=FileValidator(max_file_size=max_file_size, max_files=max_files)
        )
        app.dependency_overrides[get_report_analyzer] = lambda: analyzer
    return _install


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_response_structure(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data
        assert "llm_configured" in data


class TestSanitizeEndpoint:
    """Test the shared sanitizer endpoint."""

    def test_sanitize_text_and_html(self, client):
        response = client.post(
            "/sanitize",
            json={"text": "<think>x</think># Summary\n- **All clear**"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "text": "<strong>Summary</strong>\n\nAll clear",
            "html": "<strong>Summary</strong><br/><br/>All clear",
        }

    def test_sanitize_null_text(self, client):
        response = client.post("/sanitize", json={"text": None})
        assert response.json() == {"text": "", "html": ""}


class TestAnalyzeEndpoint:
    """Test the analysis endpoint."""

    def test_question_only(self, client, use_handler, chat_response):
        use_handler(lambda request: chat_response(
            "<think>hmm</think>Risk Level:\n*Low*"
        ))

        response = client.post("/analyze", data={"question": "Chest pain?"})

        assert response.status_code == 200
        assert response.json() == {
            "answer": "<strong>Risk Level</strong>\n\nLow",
            "disclaimer": DISCLAIMER,
        }

    def test_image_upload(self, client, use_handler, chat_response):
        seen = []

        def handler(request):
            seen.append(request)
            return chat_response("Findings noted")

        use_handler(handler)

        response = client.post(
            "/analyze",
            data={"compare": "on"},
            files=[
                ("reports", ("a.png", b"\x89PNG\r\n\x1a\n", "image/png")),
                ("reports", ("b.png", b"\x89PNG\r\n\x1a\n", "image/png")),
            ]
        )

        assert response.status_code == 200
        assert response.json()["answer"] == "Findings noted"
        assert b"Image A" in seen[0].content

    def test_unreadable_pdf_still_analyzed(self, client, use_handler, chat_response):
        seen = []

        def handler(request):
            seen.append(request)
            return chat_response("ok")

        use_handler(handler)

        response = client.post(
            "/analyze",
            files=[("reports", ("labs.pdf", b"%PDF-broken", "application/pdf"))]
        )

        assert response.status_code == 200
        assert b"[Failed to extract text from PDF]" in seen[0].content

    def test_missing_api_key(self, client, use_handler, chat_response):
        use_handler(lambda request: chat_response("x"), api_key="")

        response = client.post("/analyze", data={"question": "hi"})

        assert response.status_code == 500
        assert response.json()["error"] == "Missing OPENROUTER_API_KEY in environment"

    def test_empty_request_rejected(self, client, use_handler, chat_response):
        use_handler(lambda request: chat_response("x"))

        response = client.post("/analyze", data={"question": "  "})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Please provide a question")

    def test_unsupported_files_only_rejected(self, client, use_handler, chat_response):
        use_handler(lambda request: chat_response("x"))

        response = client.post(
            "/analyze",
            files=[("reports", ("notes.txt", b"hello", "text/plain"))]
        )

        assert response.status_code == 400

    def test_file_too_large(self, client, use_handler, chat_response):
        use_handler(lambda request: chat_response("x"), max_file_size=8)

        response = client.post(
            "/analyze",
            files=[("reports", ("scan.png", b"\x89PNG\r\n\x1a\n" + b"0" * 8, "image/png"))]
        )

        assert response.status_code == 413
        assert response.json()["error_code"] == "FILE_TOO_LARGE"

    def test_too_many_files_rejected_before_read(self, client, use_handler, chat_response, monkeypatch):
        use_handler(lambda request: chat_response("x"), max_files=1)
        reads = []

        async def fake_read(self, size=-1):
            reads.append(self.filename)
            return b""

        monkeypatch.setattr(UploadFile, "read", fake_read)

        response = client.post(
            "/analyze",
            files=[
                ("reports", ("a.png", b"\x89PNG\r\n\x1a\n", "image/png")),
                ("reports", ("b.png", b"\x89PNG\r\n\x1a\n", "image/png")),
            ]
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "TOO_MANY_FILES"
        assert reads == []

    def test_oversized_upload_rejected_before_read(self, client, use_handler, chat_response, monkeypatch):
        use_handler(lambda request: chat_response("x"), max_file_size=8)
        reads = []

        async def fake_read(self, size=-1):
            reads.append(self.filename)
            return b""

        monkeypatch.setattr(UploadFile, "read", fake_read)

        response = client.post(
            "/analyze",
            files=[("reports", ("scan.png", b"\x89PNG\r\n\x1a\n" + b"0" * 8, "image/png"))]
        )

        assert response.status_code == 413
        assert reads == []

    def test_upstream_error(self, client, use_handler):
        use_handler(lambda request: httpx.Response(401, json={"error": "bad key"}))

        response = client.post("/analyze", data={"question": "hi"})

        assert response.status_code == 502
        assert response.json() == {"error": "API error 401", "details": {"error": "bad key"}}

    def test_upstream_unreachable(self, client, use_handler):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        use_handler(handler)

        response = client.post("/analyze", data={"question": "hi"})

        assert response.status_code == 502
        assert response.json()["error"] == "Server error"
