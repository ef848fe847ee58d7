"""
Report analyzer service.

Orchestrates one analysis request: split uploads, extract PDF text,
call the model, sanitize its answer and attach the disclaimer.
"""

import time
from dataclasses import dataclass, field
from typing import List

from app.core.llm_engine import (
    LLMEngine,
    MissingCredentialsError,
    build_content_parts,
    build_system_prompt,
    to_data_url,
)
from app.core.pdf_extractor import PDFExtractor
from app.core.sanitizer import sanitize
from app.models.schemas import AnalysisResult, DISCLAIMER, FileType
from app.utils.file_validators import FileValidator, UploadedFile
from app.utils.logger import get_logger

logger = get_logger("report_analyzer")


class EmptyAnalysisRequestError(ValueError):
    """Raised when there is nothing to analyze."""

    status_code = 400

    def __init__(self):
        self.message = "Please provide a question and/or at least one report image or PDF."
        super().__init__(self.message)


@dataclass
class AnalysisRequest:
    """Form fields and files from one /analyze call."""

    question: str = ""
    location: str = ""
    compare: bool = False
    files: List[UploadedFile] = field(default_factory=list)


def parse_compare_flag(value: str) -> bool:
    """HTML checkboxes send "on"; API clients send "true"."""
    return (value or "").strip().lower() in ("on", "true")


class ReportAnalyzer:
    """
    Runs the analysis pipeline for a single request.

    Stateless between calls; the engine carries the API configuration.
    """

    def __init__(
        self,
        engine: LLMEngine,
        pdf_extractor: PDFExtractor,
        file_validator: FileValidator
    ):
        self.engine = engine
        self.pdf_extractor = pdf_extractor
        self.file_validator = file_validator

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Analyze uploaded reports and/or a question.

        Raises:
            MissingCredentialsError: No API key configured
            EmptyAnalysisRequestError: No question, image or PDF
            FileValidationError: Upload limits exceeded
            LLMEngineError: The model API failed
        """
        if not self.engine.is_configured:
            raise MissingCredentialsError()

        start_time = time.time()
        question = request.question.strip()
        location = request.location.strip()

        files = self.file_validator.validate(request.files)
        images = [f for f in files if self.file_validator.get_file_type(f) == FileType.IMAGE]
        pdfs = [f for f in files if self.file_validator.get_file_type(f) == FileType.PDF]

        if not question and not images and not pdfs:
            raise EmptyAnalysisRequestError()

        logger.info(
            "Starting analysis",
            images=len(images),
            pdfs=len(pdfs),
            ignored_files=len(files) - len(images) - len(pdfs),
            has_question=bool(question),
            compare=request.compare
        )

        pdf_texts = self.pdf_extractor.extract_many([f.content for f in pdfs])
        image_urls = [to_data_url(f.content, f.mime_type) for f in images]

        response = await self.engine.complete(
            build_system_prompt(location, request.compare),
            build_content_parts(question, location, pdf_texts, image_urls, request.compare)
        )

        answer = sanitize(response.content)

        logger.info(
            "Analysis complete",
            raw_length=len(response.content),
            answer_length=len(answer),
            processing_time_ms=int((time.time() - start_time) * 1000)
        )

        return AnalysisResult(answer=answer, disclaimer=DISCLAIMER)
