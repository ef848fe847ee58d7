"""
Pydantic schemas for the Medical Analysis Assistant API.

Defines request/response models for all API endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


DISCLAIMER = (
    "Important: This analysis is for informational purposes only and is not a medical "
    "diagnosis. Consult a licensed healthcare professional for clinical evaluation and "
    "urgent care if you experience red-flag symptoms."
)


# =============================================================================
# Enums
# =============================================================================

class FileType(str, Enum):
    """Upload kinds forwarded to the model."""
    PDF = "pdf"
    IMAGE = "image"
    UNSUPPORTED = "unsupported"


# =============================================================================
# Analysis
# =============================================================================

class AnalysisResult(BaseModel):
    """Sanitized answer shown to the user."""

    answer: str = Field(description="Sanitized model answer")
    disclaimer: str = Field(
        default=DISCLAIMER,
        description="Safety disclaimer shown with every answer"
    )


class SanitizeRequest(BaseModel):
    """Raw text to run through the sanitizer."""

    text: Optional[str] = Field(
        default=None,
        description="Raw model output"
    )


class SanitizeResponse(BaseModel):
    """Sanitized text plus its HTML rendering."""

    text: str = Field(description="Sanitized display text")
    html: str = Field(description="Display text with <br/> line breaks")


# =============================================================================
# Health & Status
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    llm_configured: bool = Field(
        default=False,
        description="Whether an API key is configured"
    )
    timestamp: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# Error Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(description="Human-readable error message")
    details: Optional[Any] = Field(
        default=None,
        description="Upstream error payload, when there is one"
    )
    error_code: Optional[str] = Field(
        default=None,
        description="Machine-readable error code"
    )
