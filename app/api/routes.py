"""
API routes for the Medical Analysis Assistant.

Defines all REST API endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.api.middleware import limiter
from app.config import settings, get_settings
from app.core.llm_engine import LLMEngine
from app.core.pdf_extractor import pdf_extractor
from app.core.sanitizer import sanitize, to_html
from app.models.schemas import (
    AnalysisResult,
    ErrorResponse,
    HealthResponse,
    SanitizeRequest,
    SanitizeResponse,
)
from app.services.report_analyzer import (
    AnalysisRequest,
    ReportAnalyzer,
    parse_compare_flag,
)
from app.utils.file_validators import UploadedFile, file_validator
from app.utils.logger import get_logger

logger = get_logger("routes")

# Create router
router = APIRouter()


def get_report_analyzer() -> ReportAnalyzer:
    """Build the analyzer with the configured API credentials."""
    return ReportAnalyzer(
        engine=LLMEngine.from_settings(get_settings()),
        pdf_extractor=pdf_extractor,
        file_validator=file_validator
    )


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check():
    """Check if the service is healthy and running."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        llm_configured=bool(get_settings().openrouter_api_key)
    )


# =============================================================================
# Analysis
# =============================================================================

@router.post(
    "/analyze",
    response_model=AnalysisResult,
    tags=["Analysis"],
    summary="Analyze medical reports and/or a question",
    responses={
        400: {"model": ErrorResponse, "description": "Nothing to analyze or invalid upload"},
        413: {"model": ErrorResponse, "description": "File too large"},
        500: {"model": ErrorResponse, "description": "API key not configured"},
        502: {"model": ErrorResponse, "description": "Model API failure"}
    }
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def analyze(
    request: Request,
    reports: Optional[List[UploadFile]] = File(
        default=None,
        description="Report images (ECG, X-ray) or PDFs"
    ),
    question: str = Form(default=""),
    location: str = Form(default=""),
    compare: str = Form(default=""),
    analyzer: ReportAnalyzer = Depends(get_report_analyzer)
):
    """
    Send reports and a question to the model and return its sanitized answer.

    **Important**: This is NOT a diagnostic tool. Every answer carries
    a disclaimer; always consult a clinician.
    """
    uploads = reports or []

    # Reject over-limit batches before buffering any file body
    analyzer.file_validator.validate_file_count(len(uploads))
    for upload in uploads:
        if upload.size is not None:
            analyzer.file_validator.validate_declared_size(
                upload.filename or "upload", upload.size
            )

    files = []
    for upload in uploads:
        files.append(UploadedFile(
            filename=upload.filename or "upload",
            content=await upload.read(),
            mime_type=upload.content_type or ""
        ))

    return await analyzer.analyze(AnalysisRequest(
        question=question,
        location=location,
        compare=parse_compare_flag(compare),
        files=files
    ))


@router.post(
    "/sanitize",
    response_model=SanitizeResponse,
    tags=["Analysis"],
    summary="Sanitize raw model text for display"
)
async def sanitize_text(body: SanitizeRequest):
    """
    Run raw model text through the output sanitizer.

    Lets browser clients reuse the server-side rules instead of keeping
    their own copy.
    """
    text = sanitize(body.text)
    return SanitizeResponse(text=text, html=to_html(text))
