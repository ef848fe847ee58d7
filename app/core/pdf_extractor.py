"""
PDF text extraction for uploaded reports.

Extracts the native text layer with pdfplumber. Extraction never raises:
an unreadable file yields a fixed placeholder that is passed to the model.
"""

import io
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pdfplumber

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger("pdf_extractor")


FAILED_EXTRACTION_TEXT = "[Failed to extract text from PDF]"
TRUNCATION_MARKER = "\n...[truncated]..."


@dataclass
class PDFExtractionResult:
    """Result of PDF text extraction."""

    text: str
    page_count: int
    success: bool
    truncated: bool = False


class PDFExtractor:
    """
    Extracts text from PDF medical reports.

    Long documents are cut to a character limit to bound the
    size of the prompt sent to the model.
    """

    def __init__(self, text_limit: Optional[int] = None):
        self.text_limit = text_limit or settings.pdf_text_limit

    def extract_text(
        self,
        file_content: bytes,
        filename: str = "document.pdf"
    ) -> PDFExtractionResult:
        """
        Extract text from a PDF file.

        Args:
            file_content: Raw PDF bytes
            filename: Original filename for logging

        Returns:
            PDFExtractionResult; on failure the text is the placeholder
        """
        try:
            text, page_count = self._extract_native(file_content)
        except Exception as e:
            logger.warning(
                "PDF extraction failed",
                filename=filename,
                error=str(e)
            )
            return PDFExtractionResult(
                text=FAILED_EXTRACTION_TEXT,
                page_count=0,
                success=False
            )

        text, truncated = self._truncate(text.strip())

        logger.info(
            "PDF extraction complete",
            filename=filename,
            text_length=len(text),
            page_count=page_count,
            truncated=truncated
        )

        return PDFExtractionResult(
            text=text,
            page_count=page_count,
            success=True,
            truncated=truncated
        )

    def extract_many(self, contents: List[bytes]) -> List[str]:
        """Extract text from several PDFs, keeping input order."""
        return [
            self.extract_text(content, filename=f"report-{i + 1}.pdf").text
            for i, content in enumerate(contents)
        ]

    def _extract_native(self, file_content: bytes) -> Tuple[str, int]:
        """
        Extract text using pdfplumber (native PDF text).

        Returns:
            Tuple of (extracted_text, page_count)
        """
        pages = []

        with pdfplumber.open(io.BytesIO(file_content)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                page_text = page.extract_text() or ""
                if page_text.strip():
                    pages.append(page_text.strip())

        return "\n\n".join(pages), page_count

    def _truncate(self, text: str) -> Tuple[str, bool]:
        if len(text) <= self.text_limit:
            return text, False
        return text[:self.text_limit] + TRUNCATION_MARKER, True


# Singleton instance
pdf_extractor = PDFExtractor()
