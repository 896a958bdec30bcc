"""Certificate verification schemas."""

from typing import Literal

from profile_builder.schemas.common import CamelModel

Confidence = Literal["high", "medium", "low"]


class CertificateExtraction(CamelModel):
    """Fields read off a business registration certificate by the AI model."""

    company_name: str | None = None
    registration_number: str | None = None
    extracted_text: str | None = None


class VerificationVerdict(CamelModel):
    """Outcome of comparing a certificate against declared company data.

    Stored in wizard form state under ``verifications.<step_id>`` and
    checked (never recomputed) by the submission precondition gate.
    """

    verified: bool
    message: str
    confidence: Confidence = "low"
    extracted_company_name: str | None = None
    extracted_registration_number: str | None = None
