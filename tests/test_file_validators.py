"""
Tests for upload validation.
"""

import pytest

from app.models.schemas import FileType
from app.utils.file_validators import FileValidationError, FileValidator, UploadedFile


@pytest.fixture
def validator():
    return FileValidator(max_file_size=16, max_files=2)


class TestFileValidator:
    """Upload limits and file kinds."""

    def test_too_many_files(self, validator):
        files = [UploadedFile(f"{i}.png", b"x", "image/png") for i in range(3)]
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(files)
        assert exc_info.value.error_code == "TOO_MANY_FILES"
        assert exc_info.value.status_code == 400

    def test_file_too_large(self, validator):
        files = [UploadedFile("big.pdf", b"x" * 17, "application/pdf")]
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(files)
        assert exc_info.value.error_code == "FILE_TOO_LARGE"
        assert exc_info.value.status_code == 413

    def test_declared_size_checked_without_content(self, validator):
        validator.validate_declared_size("ok.png", 16)
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate_declared_size("big.png", 17)
        assert exc_info.value.error_code == "FILE_TOO_LARGE"

    def test_defaults_from_settings(self):
        validator = FileValidator()
        assert validator.max_files == 6
        assert validator.max_file_size == 10 * 1024 * 1024

    @pytest.mark.parametrize("mime, content, expected", [
        ("application/pdf", b"", FileType.PDF),
        ("image/png", b"", FileType.IMAGE),
        ("image/jpeg", b"", FileType.IMAGE),
        ("text/plain", b"%PDF-1.7", FileType.UNSUPPORTED),
        ("", b"%PDF-1.7", FileType.PDF),
        ("application/octet-stream", b"\x89PNG\r\n\x1a\n", FileType.IMAGE),
        ("", b"\xff\xd8\xff\xe0", FileType.IMAGE),
        ("", b"hello", FileType.UNSUPPORTED),
    ])
    def test_file_type(self, validator, mime, content, expected):
        assert validator.get_file_type(UploadedFile("f", content, mime)) == expected

    def test_validate_resolves_mime(self, validator):
        files = validator.validate([UploadedFile("scan", b"\xff\xd8\xff", "")])
        assert files[0].mime_type == "image/jpeg"
