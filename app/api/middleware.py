"""
API middleware for the Medical Analysis Assistant.

Provides:
- Rate limiting
- Request logging
- Error responses for domain exceptions
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.core.llm_engine import LLMEngineError
from app.models.schemas import ErrorResponse
from app.services.report_analyzer import EmptyAnalysisRequestError
from app.utils.file_validators import FileValidationError
from app.utils.logger import get_logger

logger = get_logger("middleware")


# Rate limiter using client IP
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled
)


def error_response(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json", exclude_none=True)
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Logs:
    - Request method, path and client
    - Response status code
    - Processing time
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        start_time = time.time()

        method = request.method
        path = request.url.path
        client_ip = get_remote_address(request)

        logger.info(
            "Request received",
            method=method,
            path=path,
            client_ip=client_ip
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                method=method,
                path=path,
                error=str(e),
                process_time_ms=int((time.time() - start_time) * 1000)
            )
            raise

        process_time = time.time() - start_time

        logger.info(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            process_time_ms=int(process_time * 1000)
        )

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches unhandled exceptions and returns safe error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)

        except HTTPException:
            raise

        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            return error_response(
                500,
                ErrorResponse(
                    error="An unexpected error occurred. Please try again.",
                    error_code="INTERNAL_ERROR"
                )
            )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions to JSON error responses."""

    @app.exception_handler(LLMEngineError)
    async def llm_error_handler(request: Request, exc: LLMEngineError):
        logger.warning("Analysis upstream error", error=exc.message, status_code=exc.status_code)
        return error_response(
            exc.status_code,
            ErrorResponse(error=exc.message, details=exc.details)
        )

    @app.exception_handler(EmptyAnalysisRequestError)
    async def empty_request_handler(request: Request, exc: EmptyAnalysisRequestError):
        return error_response(
            exc.status_code,
            ErrorResponse(error=exc.message, error_code="EMPTY_REQUEST")
        )

    @app.exception_handler(FileValidationError)
    async def file_validation_handler(request: Request, exc: FileValidationError):
        logger.warning("File validation failed", error=exc.message, error_code=exc.error_code)
        return error_response(
            exc.status_code,
            ErrorResponse(error=exc.message, error_code=exc.error_code)
        )


def setup_rate_limiting(app: FastAPI) -> None:
    """Setup rate limiting on the application."""
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return error_response(
            429,
            ErrorResponse(
                error="Too many requests. Please wait before trying again.",
                error_code="RATE_LIMIT_EXCEEDED"
            )
        )
