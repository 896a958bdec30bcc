"""Pydantic record and API schemas for the profile wizards."""

from profile_builder.schemas.candidate_profile import (
    BANKING_FINANCE_INDUSTRIES,
    IT_INDUSTRIES,
    BasicInfo,
    CompleteProfile,
)
from profile_builder.schemas.common import CamelModel, field_errors_from_validation
from profile_builder.schemas.cv_extraction import CvExtractionResult
from profile_builder.schemas.employer import EmployerRegistration, ProfileCompletion
from profile_builder.schemas.verification import (
    CertificateExtraction,
    VerificationVerdict,
)
from profile_builder.schemas.wizard_session import (
    CreateSessionRequest,
    SectionUpdate,
    SubmissionResponse,
    VerificationResponse,
    WizardSessionView,
)

__all__ = [
    # Shared
    "CamelModel",
    "field_errors_from_validation",
    # Candidate
    "BANKING_FINANCE_INDUSTRIES",
    "IT_INDUSTRIES",
    "BasicInfo",
    "CompleteProfile",
    "CvExtractionResult",
    # Employer
    "EmployerRegistration",
    "ProfileCompletion",
    # Verification
    "CertificateExtraction",
    "VerificationVerdict",
    # Wizard sessions
    "CreateSessionRequest",
    "SectionUpdate",
    "SubmissionResponse",
    "VerificationResponse",
    "WizardSessionView",
]
