"""
Medical Analysis Assistant - FastAPI Application

Forwards uploaded medical reports (ECG and X-ray images, PDFs) and
questions to a multimodal model and returns a sanitized answer with a
safety disclaimer.

IMPORTANT: This is NOT a diagnostic tool.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.api.routes import router
from app.api.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    register_exception_handlers,
    setup_rate_limiting
)
from app.utils.logger import get_logger, configure_logging

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    configure_logging(settings)

    logger.info(
        "Starting Medical Analysis Assistant",
        version=settings.app_version,
        debug=settings.debug,
        model=settings.openrouter_model,
        llm_configured=bool(settings.openrouter_api_key)
    )

    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; /analyze will return 500")

    yield

    logger.info("Shutting down Medical Analysis Assistant")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Medical Analysis Assistant

Upload ECGs, X-rays, radiology reports or lab PDFs with an optional question
and receive a structured, sanitized interpretation from a multimodal model.

### ⚠️ Important Disclaimer

**This is NOT a diagnostic tool.** Every answer is informational only and
comes with a disclaimer. Always consult a licensed healthcare professional.

### API Endpoints

| Endpoint | Method | Description |
|----------|--------|-------------|
| `/analyze` | POST | Analyze reports and/or a question |
| `/sanitize` | POST | Sanitize raw model text for display |
| `/health` | GET | Health check |
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.debug else None,
    )

    # First added is innermost
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    setup_rate_limiting(app)

    app.include_router(router, tags=["API"])

    # Built browser UI, when present
    if settings.frontend_path.exists():
        app.mount(
            "/",
            StaticFiles(directory=str(settings.frontend_path), html=True),
            name="frontend"
        )

    return app


# Create app instance
app = create_app()


# Run with: uvicorn app.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
