"""CV extraction service: turn an uploaded CV into a partial candidate record.

Pipeline:
1. Check size and type (PDF, DOC, DOCX)
2. PDFs: extract text with pdfplumber (max 50 pages), sanitize, truncate
   and send as prompt text. A PDF with no text layer (a scan) is attached
   to the message instead.
3. Word documents are attached to the message as-is
4. Parse the JSON response into CvExtractionResult (best-effort: bad
   items are dropped, missing fields stay None)

Failures raise ValueError with a user-facing message; the wizard offers
manual entry instead.
"""

from io import BytesIO

import pdfplumber
import structlog
from pydantic import ValidationError as PydanticValidationError

from profile_builder.core.config import settings
from profile_builder.core.file_validation import ALLOWED_MIMES, FileCategory, max_size_bytes
from profile_builder.core.llm_sanitization import sanitize_document_text
from profile_builder.prompts.documents import (
    CV_EXTRACTION_SYSTEM_PROMPT,
    build_cv_extraction_prompt,
)
from profile_builder.providers.errors import ProviderError
from profile_builder.providers.llm.base import (
    DocumentAttachment,
    LLMMessage,
    LLMProvider,
    TaskType,
)
from profile_builder.schemas.cv_extraction import CvExtractionResult
from profile_builder.services.llm_output import parse_json_object

logger = structlog.get_logger()

_SKIP_STEP_HINT = "You can skip this step and enter your details manually."
_UNSUPPORTED_TYPE_MSG = "Invalid file type. Please upload a PDF, DOC, or DOCX file."
_EXTRACT_FAILURE_MSG = f"Could not read this document. {_SKIP_STEP_HINT}"
_PARSE_FAILURE_MSG = f"Could not extract details from this CV. {_SKIP_STEP_HINT}"

SAFE_ERROR_MESSAGES = frozenset(
    {_UNSUPPORTED_TYPE_MSG, _EXTRACT_FAILURE_MSG, _PARSE_FAILURE_MSG}
)
"""Messages that may be shown to the client as-is.

Any other ValueError is replaced with the parse failure message by the API.
"""

_PDF_MIME = "application/pdf"

_MAX_EXTRACTED_TEXT_LENGTH = 50_000
"""Safety cap on extracted text length before the LLM prompt (chars)."""

_MAX_PDF_PAGES = 50
"""Safety cap on PDF page count to prevent DoS via crafted PDFs."""

_LOG_EXCERPT_LENGTH = 200
"""Max characters of exception messages logged (truncate attacker-controlled content)."""


class CvExtractionService:
    """Extracts a partial candidate record from a CV document.

    Args:
        provider: LLM provider used for structured extraction.
        max_size_mb: Upload limit; defaults to the configured CV limit.
    """

    def __init__(self, provider: LLMProvider, max_size_mb: int | None = None) -> None:
        self.provider = provider
        self.max_size_mb = max_size_mb or settings.cv_max_size_mb

    async def extract(self, content: bytes, mime_type: str) -> CvExtractionResult:
        """Extract candidate details from a CV.

        Args:
            content: Raw document bytes.
            mime_type: MIME type detected from magic bytes.

        Returns:
            CvExtractionResult; any subset of fields may be missing.

        Raises:
            ValueError: Unsupported type, file too large, unreadable
                document, or unparseable model output.
        """
        if mime_type not in ALLOWED_MIMES[FileCategory.CV]:
            raise ValueError(_UNSUPPORTED_TYPE_MSG)
        if len(content) > max_size_bytes(self.max_size_mb):
            raise ValueError(f"File exceeds {self.max_size_mb} MB limit.")

        cv_text = self._extract_text(content) if mime_type == _PDF_MIME else None
        if cv_text:
            messages = [
                LLMMessage(role="system", content=CV_EXTRACTION_SYSTEM_PROMPT),
                LLMMessage(role="user", content=build_cv_extraction_prompt(cv_text)),
            ]
        else:
            messages = [
                LLMMessage(role="system", content=CV_EXTRACTION_SYSTEM_PROMPT),
                LLMMessage(
                    role="user",
                    content=build_cv_extraction_prompt(None),
                    attachment=DocumentAttachment(data=content, mime_type=mime_type),
                ),
            ]

        try:
            response = await self.provider.complete(
                messages=messages,
                task=TaskType.CV_EXTRACTION,
                json_mode=True,
            )
        except ProviderError as exc:
            logger.warning(
                "cv_extraction_llm_failed",
                error=str(exc)[:_LOG_EXCERPT_LENGTH],
            )
            raise ValueError(_PARSE_FAILURE_MSG) from exc

        return self._parse_response(response.content)

    def _extract_text(self, pdf_content: bytes) -> str | None:
        """Extract text from a PDF using pdfplumber.

        Returns:
            Sanitized text, truncated to the safety cap, or None when the
            PDF has no text layer.

        Raises:
            ValueError: If the PDF cannot be read or has too many pages.
        """
        try:
            with pdfplumber.open(BytesIO(pdf_content)) as pdf:
                if len(pdf.pages) > _MAX_PDF_PAGES:
                    raise ValueError(
                        f"PDF has too many pages ({len(pdf.pages)}). "
                        f"Maximum: {_MAX_PDF_PAGES} pages."
                    )
                pages = []
                for page in pdf.pages:
                    text = page.extract_text()
                    if text:
                        pages.append(text)
        except ValueError:
            raise
        except (MemoryError, RecursionError):
            raise
        except Exception as exc:
            logger.warning(
                "cv_text_extraction_failed",
                error=str(exc)[:_LOG_EXCERPT_LENGTH],
            )
            raise ValueError(_EXTRACT_FAILURE_MSG) from exc

        text = "\n".join(pages).strip()
        if not text:
            logger.info("cv_text_layer_missing")
            return None
        return sanitize_document_text(text[:_MAX_EXTRACTED_TEXT_LENGTH])

    @staticmethod
    def _parse_response(content: str | None) -> CvExtractionResult:
        try:
            data = parse_json_object(content)
            result = CvExtractionResult.model_validate(data)
        except (ValueError, PydanticValidationError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning(
                "cv_extraction_parse_failed",
                error=str(exc)[:_LOG_EXCERPT_LENGTH],
            )
            raise ValueError(_PARSE_FAILURE_MSG) from exc

        logger.info(
            "cv_extraction_complete",
            work_experiences=len(result.work_experiences),
            educations=len(result.educations),
            certificates=len(result.certificates),
            projects=len(result.projects),
        )
        return result
