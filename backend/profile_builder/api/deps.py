"""Shared dependencies for API endpoints.

Every collaborator the wizard endpoints talk to (session store, object
storage, LLM services, persistence endpoints) comes in through here, so
tests swap them with app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends

from profile_builder.core.database import async_session_factory
from profile_builder.providers.factory import get_llm_provider
from profile_builder.providers.llm.base import LLMProvider
from profile_builder.services.artifact_store import ArtifactStore, SupabaseStorageClient
from profile_builder.services.certificate_verification import (
    CertificateVerificationService,
)
from profile_builder.services.cv_extraction_service import CvExtractionService
from profile_builder.services.profile_persistence import (
    CandidateProfileEndpoint,
    EmployerProfileEndpoint,
    EmployerRegistrationEndpoint,
    PersistenceEndpoint,
)
from profile_builder.services.wizard_session_store import (
    WizardSessionStore,
    get_session_store,
)
from profile_builder.wizards.candidate_profile import KIND as CANDIDATE_PROFILE
from profile_builder.wizards.employer_profile import KIND as EMPLOYER_PROFILE
from profile_builder.wizards.employer_signup import KIND as EMPLOYER_SIGNUP


def get_artifact_store() -> ArtifactStore:
    """Object storage client built from settings."""
    return SupabaseStorageClient.from_settings()


def get_persistence_endpoints() -> dict[str, PersistenceEndpoint]:
    """Persistence endpoint per wizard kind."""
    return {
        EMPLOYER_SIGNUP: EmployerRegistrationEndpoint(async_session_factory),
        EMPLOYER_PROFILE: EmployerProfileEndpoint(async_session_factory),
        CANDIDATE_PROFILE: CandidateProfileEndpoint(async_session_factory),
    }


def get_provider() -> LLMProvider:
    """Process-wide LLM provider."""
    return get_llm_provider()


def get_verification_service(
    provider: Annotated[LLMProvider, Depends(get_provider)],
) -> CertificateVerificationService:
    return CertificateVerificationService(provider)


def get_cv_extraction_service(
    provider: Annotated[LLMProvider, Depends(get_provider)],
) -> CvExtractionService:
    return CvExtractionService(provider)


SessionStore = Annotated[WizardSessionStore, Depends(get_session_store)]
Storage = Annotated[ArtifactStore, Depends(get_artifact_store)]
PersistenceEndpoints = Annotated[
    dict[str, PersistenceEndpoint], Depends(get_persistence_endpoints)
]
VerificationService = Annotated[
    CertificateVerificationService, Depends(get_verification_service)
]
ExtractionService = Annotated[CvExtractionService, Depends(get_cv_extraction_service)]
