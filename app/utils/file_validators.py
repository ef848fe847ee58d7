"""
File validation utilities for uploaded reports.

Handles:
- File count and size limits
- Classifying uploads as image, PDF or unsupported
"""

from dataclasses import dataclass
from typing import List, Optional

from app.config import settings
from app.models.schemas import FileType


class FileValidationError(Exception):
    """Raised when file validation fails."""

    def __init__(
        self,
        message: str,
        error_code: str = "VALIDATION_ERROR",
        status_code: int = 400
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(self.message)


@dataclass
class UploadedFile:
    """An uploaded file held in memory."""

    filename: str
    content: bytes
    mime_type: str


class FileValidator:
    """
    Validates a batch of uploaded files.

    The declared MIME type decides the file kind; when it is missing
    the leading bytes are checked instead.
    """

    PDF_MIME_TYPE = "application/pdf"
    IMAGE_MIME_PREFIX = "image/"
    GENERIC_MIME_TYPES = {"", "application/octet-stream"}

    def __init__(
        self,
        max_file_size: Optional[int] = None,
        max_files: Optional[int] = None
    ):
        self.max_file_size = max_file_size or settings.max_file_size_bytes
        self.max_files = max_files or settings.max_files

    def validate_file_count(self, count: int) -> None:
        if count > self.max_files:
            raise FileValidationError(
                f"Too many files: at most {self.max_files} reports per request",
                error_code="TOO_MANY_FILES"
            )

    def validate_file_size(self, file: UploadedFile) -> None:
        """
        Check if file is within size limits.

        Raises:
            FileValidationError: If file exceeds size limit
        """
        self.validate_declared_size(file.filename, len(file.content))

    def validate_declared_size(self, filename: str, size: int) -> None:
        if size > self.max_file_size:
            raise FileValidationError(
                f"File '{filename}' exceeds maximum size of "
                f"{self.max_file_size // (1024 * 1024)}MB",
                error_code="FILE_TOO_LARGE",
                status_code=413
            )

    def detect_mime_type(self, file_content: bytes) -> str:
        """Detect the MIME type of file content using file signatures."""
        if file_content[:4] == b'%PDF':
            return 'application/pdf'
        if file_content[:8] == b'\x89PNG\r\n\x1a\n':
            return 'image/png'
        if file_content[:2] == b'\xff\xd8':
            return 'image/jpeg'
        return 'application/octet-stream'

    def resolve_mime_type(self, file: UploadedFile) -> str:
        mime = (file.mime_type or "").lower()
        if mime in self.GENERIC_MIME_TYPES:
            return self.detect_mime_type(file.content)
        return mime

    def get_file_type(self, file: UploadedFile) -> FileType:
        mime = self.resolve_mime_type(file)
        if mime == self.PDF_MIME_TYPE:
            return FileType.PDF
        if mime.startswith(self.IMAGE_MIME_PREFIX):
            return FileType.IMAGE
        return FileType.UNSUPPORTED

    def validate(self, files: List[UploadedFile]) -> List[UploadedFile]:
        """
        Validate a batch and fill in resolved MIME types.

        Returns:
            The same files, with mime_type resolved
        """
        self.validate_file_count(len(files))

        for file in files:
            self.validate_file_size(file)
            file.mime_type = self.resolve_mime_type(file)

        return files


# Singleton instance for easy access
file_validator = FileValidator()
