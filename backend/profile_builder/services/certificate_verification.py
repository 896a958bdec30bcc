"""Business registration certificate verification.

The certificate is sent to the LLM provider as an inline document and the
model reads the company name and registration number off it. The values
are compared with the declared ones here, after normalisation (trim,
lowercase, collapse whitespace):

    both match   -> verified, confidence "high"
    one matches  -> not verified, confidence "medium"
    none match   -> not verified, confidence "low"

verify() never raises. Every failure becomes an unverified verdict with a
user-facing message, and nothing is retried: the user re-runs
verification (typically with a clearer scan).
"""

import re

import structlog
from pydantic import ValidationError as PydanticValidationError

from profile_builder.core.file_validation import ALLOWED_MIMES, FileCategory
from profile_builder.prompts.documents import (
    CERTIFICATE_SYSTEM_PROMPT,
    CERTIFICATE_USER_PROMPT,
)
from profile_builder.providers.errors import ProviderError
from profile_builder.providers.llm.base import (
    DocumentAttachment,
    LLMMessage,
    LLMProvider,
    TaskType,
)
from profile_builder.schemas.verification import (
    CertificateExtraction,
    Confidence,
    VerificationVerdict,
)
from profile_builder.services.llm_output import parse_json_object

logger = structlog.get_logger()

VERIFIED_MESSAGE = (
    "Certificate verified successfully! Company details match the provided information."
)
UNSUPPORTED_TYPE_MESSAGE = "Invalid file format. Please upload a PDF or image file."
ANALYSIS_FAILED_MESSAGE = (
    "Failed to analyze certificate. "
    "The document may be unclear or in an unsupported format."
)
SERVICE_FAILED_MESSAGE = "Failed to verify certificate. Please try again or contact support."

_NOT_FOUND = "Not found"

_LOG_EXCERPT_LENGTH = 200

_WHITESPACE = re.compile(r"\s+")


def normalize_for_comparison(value: str | None) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value.strip().lower())


def _matches(extracted: str | None, declared: str) -> bool:
    normalized = normalize_for_comparison(extracted)
    return bool(normalized) and normalized == normalize_for_comparison(declared)


def _mismatch_message(
    company_name: str, registration_number: str, extraction: CertificateExtraction
) -> str:
    return (
        "Certificate verification failed. The extracted information does not match:\n"
        f'- Provided: "{company_name}" / "{registration_number}"\n'
        f'- Found: "{extraction.company_name or _NOT_FOUND}" / '
        f'"{extraction.registration_number or _NOT_FOUND}"\n'
        "Please verify your inputs or upload a clearer certificate."
    )


class CertificateVerificationService:
    """Checks a certificate against the company details the user declared.

    Args:
        provider: LLM provider able to read inline documents.
    """

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    async def verify(
        self,
        content: bytes,
        mime_type: str,
        company_name: str,
        registration_number: str,
    ) -> VerificationVerdict:
        """Verify a business registration certificate.

        Args:
            content: Certificate bytes (PDF, JPEG or PNG).
            mime_type: MIME type detected from magic bytes.
            company_name: Company name entered by the user.
            registration_number: Registration number entered by the user.

        Returns:
            VerificationVerdict; verified only when both values match.
        """
        if mime_type not in ALLOWED_MIMES[FileCategory.CERTIFICATE]:
            return VerificationVerdict(verified=False, message=UNSUPPORTED_TYPE_MESSAGE)

        try:
            response = await self.provider.complete(
                messages=[
                    LLMMessage(role="system", content=CERTIFICATE_SYSTEM_PROMPT),
                    LLMMessage(
                        role="user",
                        content=CERTIFICATE_USER_PROMPT,
                        attachment=DocumentAttachment(data=content, mime_type=mime_type),
                    ),
                ],
                task=TaskType.CERTIFICATE_VERIFICATION,
                json_mode=True,
            )
        except ProviderError as exc:
            logger.warning(
                "certificate_verification_llm_failed",
                error=str(exc)[:_LOG_EXCERPT_LENGTH],
                error_type=type(exc).__name__,
            )
            return VerificationVerdict(verified=False, message=SERVICE_FAILED_MESSAGE)

        try:
            extraction = CertificateExtraction.model_validate(
                parse_json_object(response.content)
            )
        except (ValueError, PydanticValidationError) as exc:
            logger.warning(
                "certificate_verification_parse_failed",
                error=str(exc)[:_LOG_EXCERPT_LENGTH],
            )
            return VerificationVerdict(verified=False, message=ANALYSIS_FAILED_MESSAGE)

        return self._compare(extraction, company_name, registration_number)

    @staticmethod
    def _compare(
        extraction: CertificateExtraction, company_name: str, registration_number: str
    ) -> VerificationVerdict:
        name_match = _matches(extraction.company_name, company_name)
        number_match = _matches(extraction.registration_number, registration_number)

        confidence: Confidence
        if name_match and number_match:
            confidence = "high"
        elif name_match or number_match:
            confidence = "medium"
        else:
            confidence = "low"
        verified = name_match and number_match

        logger.info(
            "certificate_verification_complete",
            verified=verified,
            confidence=confidence,
            name_match=name_match,
            number_match=number_match,
        )
        return VerificationVerdict(
            verified=verified,
            message=(
                VERIFIED_MESSAGE
                if verified
                else _mismatch_message(company_name, registration_number, extraction)
            ),
            confidence=confidence,
            extracted_company_name=extraction.company_name,
            extracted_registration_number=extraction.registration_number,
        )
