"""Persistence endpoints: one atomic write per wizard submission.

Each endpoint receives the record assembled by the submission saga (file
handles already replaced by uploaded URLs), validates it with its pydantic
schema, and writes it in a single transaction.

Outcomes:
- PersistResult.ok(record_id): committed.
- PersistResult.rejected(field_errors): nothing written; the messages are
  keyed by camelCase field path so the wizard can route them to a step.
- Exception: nothing written (rolled back); the saga treats it as fatal.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any

import bcrypt
import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from profile_builder.repositories.candidate_repository import CandidateRepository
from profile_builder.repositories.company_repository import CompanyRepository
from profile_builder.schemas.candidate_profile import CompleteProfile
from profile_builder.schemas.common import field_errors_from_validation
from profile_builder.schemas.employer import EmployerRegistration, ProfileCompletion
from profile_builder.services.submission_saga import PersistResult

logger = structlog.get_logger()

_BCRYPT_ROUNDS = 12

DUPLICATE_REGISTRATION_MESSAGE = "This business registration number is already registered"
DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists"


class RecordNotFoundError(Exception):
    """The record an update refers to does not exist."""


class PersistenceEndpoint(ABC):
    """Accepts an assembled record and writes it atomically."""

    @abstractmethod
    async def submit(self, record: dict[str, Any]) -> PersistResult:
        """Write the record.

        Returns:
            PersistResult with the record id, or field errors on rejection.

        Raises:
            Exception: Any unexpected failure; nothing was written.
        """
        ...

    async def load(self, owner_id: str) -> dict[str, Any] | None:
        """Existing record for an edit flow, in the shape submit() accepts.

        Returns:
            The record, or None when there is nothing to edit.
        """
        return None


class _SessionEndpoint(PersistenceEndpoint):
    """Shared plumbing: schema validation and one transaction per submit."""

    schema: type[BaseModel]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def submit(self, record: dict[str, Any]) -> PersistResult:
        try:
            payload = self.schema.model_validate(record)
        except PydanticValidationError as exc:
            return PersistResult.rejected(field_errors_from_validation(exc))

        async with self._session_factory() as db:
            try:
                result = await self._write(db, payload)
                if result.success:
                    await db.commit()
                else:
                    await db.rollback()
            except Exception:
                await db.rollback()
                raise
        return result

    @abstractmethod
    async def _write(self, db: AsyncSession, payload: Any) -> PersistResult: ...


# =============================================================================
# Employer signup
# =============================================================================


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (cost factor 12)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode()


class EmployerRegistrationEndpoint(_SessionEndpoint):
    """Creates a company and its first employer admin."""

    schema = EmployerRegistration

    async def _write(self, db: AsyncSession, payload: EmployerRegistration) -> PersistResult:
        duplicates = await self._find_duplicates(db, payload)
        if duplicates:
            logger.info("employer_registration_duplicate", fields=sorted(duplicates))
            return PersistResult.rejected(duplicates)

        company_data = payload.company
        employer_data = payload.employer
        try:
            company, employer = await CompanyRepository.create_with_admin(
                db,
                company_fields={
                    "company_name": company_data.company_name,
                    "business_registration_no": company_data.business_registration_no,
                    "industry": company_data.industry,
                    "business_registered_address": company_data.business_registered_address,
                    "br_certificate_url": company_data.br_certificate_url,
                },
                employer_fields={
                    "first_name": employer_data.first_name,
                    "last_name": employer_data.last_name,
                    "email": employer_data.email.lower(),
                    "phone": employer_data.phone,
                    "password_hash": hash_password(employer_data.password),
                    "job_title": employer_data.job_title,
                },
            )
        except IntegrityError:
            # Lost a race with a concurrent signup; report it like the pre-check
            await db.rollback()
            duplicates = await self._find_duplicates(db, payload)
            if not duplicates:
                raise
            return PersistResult.rejected(duplicates)

        logger.info(
            "employer_registration_complete",
            company_id=str(company.id),
            employer_id=str(employer.id),
        )
        return PersistResult.ok(str(company.id))

    @staticmethod
    async def _find_duplicates(
        db: AsyncSession, payload: EmployerRegistration
    ) -> dict[str, str]:
        errors: dict[str, str] = {}
        if await CompanyRepository.registration_no_exists(
            db, payload.company.business_registration_no
        ):
            errors["businessRegistrationNo"] = DUPLICATE_REGISTRATION_MESSAGE
        if await CompanyRepository.employer_email_exists(db, payload.employer.email):
            errors["email"] = DUPLICATE_EMAIL_MESSAGE
        return errors


# =============================================================================
# Employer profile completion
# =============================================================================


class EmployerProfileEndpoint(_SessionEndpoint):
    """Fills in company details and the employer's own details."""

    schema = ProfileCompletion

    async def _write(self, db: AsyncSession, payload: ProfileCompletion) -> PersistResult:
        company = await CompanyRepository.get_by_id(db, payload.company_id)
        if company is None:
            raise RecordNotFoundError(f"Company {payload.company_id} not found")
        employer = await CompanyRepository.get_employer(db, payload.employer_id)
        if employer is None or employer.company_id != company.id:
            raise RecordNotFoundError(f"Employer {payload.employer_id} not found")

        await CompanyRepository.update_profile(
            db,
            company,
            employer,
            company_fields=payload.company.model_dump(),
            employer_fields=payload.employer.model_dump(),
        )
        logger.info("employer_profile_complete", company_id=str(company.id))
        return PersistResult.ok(str(company.id))

    async def load(self, owner_id: str) -> dict[str, Any] | None:
        """Stored company and employer details, keyed by employer id."""
        async with self._session_factory() as db:
            employer = await CompanyRepository.get_employer(db, uuid.UUID(owner_id))
            if employer is None:
                return None
            company = await CompanyRepository.get_by_id(db, employer.company_id)
            if company is None:
                return None
            return {
                "companyId": str(company.id),
                "employerId": str(employer.id),
                "company": {
                    "description": company.description or "",
                    "companySize": company.company_size or "",
                    "website": company.website or "",
                    "headofficeLocation": company.headoffice_location or "",
                    "logoUrl": company.logo_url,
                },
                "employer": {
                    "department": employer.department or "",
                    "address": employer.address or "",
                    "phone": employer.phone or "",
                    "profileImageUrl": employer.profile_image_url,
                },
            }


# =============================================================================
# Candidate profile
# =============================================================================

_SUB_RECORD_LISTS = (
    "work_experiences",
    "educations",
    "awards",
    "projects",
    "certificates",
    "financial_licenses",
    "banking_skills",
    "compliance_trainings",
)


def _with_ids(items: list[BaseModel] | None) -> list[dict] | None:
    """Serialize sub-records, giving each a durable id if it has none."""
    if items is None:
        return None
    serialized = []
    for item in items:
        data = item.model_dump(mode="json", by_alias=True)
        data["id"] = data.get("id") or str(uuid.uuid4())
        serialized.append(data)
    return serialized


class CandidateProfileEndpoint(_SessionEndpoint):
    """Creates or replaces the candidate's profile."""

    schema = CompleteProfile

    async def _write(self, db: AsyncSession, payload: CompleteProfile) -> PersistResult:
        fields: dict[str, Any] = {
            "industry": payload.industry,
            "basic_info": payload.basic_info.model_dump(mode="json", by_alias=True),
            "professional_summary": payload.professional_summary,
        }
        for name in _SUB_RECORD_LISTS:
            fields[name] = _with_ids(getattr(payload, name))

        profile = await CandidateRepository.upsert(db, payload.user_id, fields)
        logger.info(
            "candidate_profile_saved",
            profile_id=str(profile.id),
            industry=payload.industry,
        )
        return PersistResult.ok(str(profile.id))

    async def load(self, owner_id: str) -> dict[str, Any] | None:
        """Stored profile of a user, in wizard record shape."""
        user_id = uuid.UUID(owner_id)
        async with self._session_factory() as db:
            profile = await CandidateRepository.get_by_user_id(db, user_id)
        if profile is None:
            return None
        return {
            "userId": str(profile.user_id),
            "industry": profile.industry,
            "basicInfo": dict(profile.basic_info),
            "professionalSummary": profile.professional_summary,
            "workExperiences": list(profile.work_experiences or []),
            "educations": list(profile.educations or []),
            "awards": list(profile.awards or []),
            "projects": profile.projects,
            "certificates": profile.certificates,
            "financialLicenses": profile.financial_licenses,
            "bankingSkills": profile.banking_skills,
            "complianceTrainings": profile.compliance_trainings,
        }
