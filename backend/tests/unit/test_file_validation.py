"""Tests for file validation utilities.

libmagic is patched so the tests decide what the bytes "are".
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from profile_builder.core.errors import ValidationError
from profile_builder.core.file_validation import (
    CHUNK_SIZE_BYTES,
    FileCategory,
    max_size_bytes,
    read_file_with_size_limit,
    sanitize_filename,
    validate_file_content,
)

_PATCH_MAGIC = "profile_builder.core.file_validation.magic.from_buffer"


def _upload(content: bytes) -> MagicMock:
    """UploadFile stand-in whose read() returns content in chunks."""
    chunks = [
        content[i : i + CHUNK_SIZE_BYTES] for i in range(0, len(content), CHUNK_SIZE_BYTES)
    ]
    upload = MagicMock()
    upload.read = AsyncMock(side_effect=[*chunks, b""])
    return upload


class TestReadFileWithSizeLimit:
    """Tests for chunked reading with a size cap."""

    @pytest.mark.asyncio
    async def test_reads_whole_file(self):
        content = b"x" * (CHUNK_SIZE_BYTES + 10)
        assert await read_file_with_size_limit(_upload(content), max_size_bytes(1)) == content

    @pytest.mark.asyncio
    async def test_rejects_oversized_file(self):
        with pytest.raises(ValidationError) as exc_info:
            await read_file_with_size_limit(_upload(b"x" * 2048), 1024)
        assert exc_info.value.details[0]["error"] == "FILE_TOO_LARGE"

    @pytest.mark.asyncio
    async def test_rejects_empty_file(self):
        with pytest.raises(ValidationError) as exc_info:
            await read_file_with_size_limit(_upload(b""), 1024)
        assert exc_info.value.details[0]["error"] == "EMPTY_FILE"


class TestValidateFileContent:
    """Tests for magic-byte content validation."""

    @pytest.mark.parametrize(
        "category,mime,extension",
        [
            (FileCategory.CERTIFICATE, "application/pdf", "pdf"),
            (FileCategory.CERTIFICATE, "image/jpeg", "jpg"),
            (FileCategory.IMAGE, "image/webp", "webp"),
            (
                FileCategory.CV,
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "docx",
            ),
        ],
    )
    def test_allowed_types(self, category, mime, extension):
        with patch(_PATCH_MAGIC, return_value=mime):
            assert validate_file_content(b"data", "file", category) == (mime, extension)

    @pytest.mark.parametrize(
        "category,mime",
        [
            (FileCategory.CERTIFICATE, "image/gif"),
            (FileCategory.IMAGE, "application/pdf"),
            (FileCategory.CV, "image/png"),
            (FileCategory.CV, "text/html"),
        ],
    )
    def test_rejected_types(self, category, mime):
        with patch(_PATCH_MAGIC, return_value=mime):
            with pytest.raises(ValidationError) as exc_info:
                validate_file_content(b"data", "file", category)
        assert exc_info.value.details[0]["error"] == "INVALID_FILE_CONTENT"
        # The detected type is logged, never returned to the client
        assert mime not in exc_info.value.message


class TestSanitizeFilename:
    """Tests for filename sanitization."""

    def test_strips_path_and_header_characters(self):
        assert sanitize_filename('../../etc/"pass;wd"\r\n.pdf') == "....etcpasswd.pdf"

    def test_strips_control_characters(self):
        assert sanitize_filename("cv\x00\x1f.pdf") == "cv.pdf"

    def test_truncates_keeping_extension(self):
        result = sanitize_filename("a" * 300 + ".pdf", max_length=20)
        assert len(result) == 20
        assert result.endswith(".pdf")

    def test_empty_result_gets_placeholder(self):
        assert sanitize_filename("///") == "upload"
