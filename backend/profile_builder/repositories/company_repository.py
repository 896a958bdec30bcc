"""Repository for Company and Employer operations.

Used by the employer persistence endpoints.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from profile_builder.models.company import Company, Employer

# Fields the completion wizard may write. Registration fields and the
# certificate URL are fixed at signup.
_COMPANY_PROFILE_FIELDS: frozenset[str] = frozenset(
    {"description", "company_size", "website", "headoffice_location", "logo_url"}
)
_EMPLOYER_PROFILE_FIELDS: frozenset[str] = frozenset(
    {"department", "address", "phone", "profile_image_url"}
)


class CompanyRepository:
    """Stateless repository for Company and Employer table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, company_id: uuid.UUID) -> Company | None:
        """Fetch a company by primary key."""
        return await db.get(Company, company_id)

    @staticmethod
    async def get_employer(
        db: AsyncSession, employer_id: uuid.UUID
    ) -> Employer | None:
        """Fetch an employer by primary key."""
        return await db.get(Employer, employer_id)

    @staticmethod
    async def registration_no_exists(db: AsyncSession, registration_no: str) -> bool:
        """Check whether a business registration number is already taken.

        Comparison is case-insensitive.
        """
        result = await db.execute(
            select(Company.id).where(
                func.lower(Company.business_registration_no)
                == registration_no.lower()
            )
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def employer_email_exists(db: AsyncSession, email: str) -> bool:
        """Check whether an employer already uses this email (case-insensitive)."""
        result = await db.execute(
            select(Employer.id).where(func.lower(Employer.email) == email.lower())
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create_with_admin(
        db: AsyncSession,
        *,
        company_fields: dict,
        employer_fields: dict,
    ) -> tuple[Company, Employer]:
        """Create a company and its first employer admin.

        Args:
            db: Async database session.
            company_fields: Column values for the company row.
            employer_fields: Column values for the employer row
                (password already hashed).

        Returns:
            Tuple of (company, employer) after flush.

        Raises:
            sqlalchemy.exc.IntegrityError: On a unique constraint race.
        """
        company = Company(**company_fields)
        db.add(company)
        await db.flush()

        employer = Employer(company_id=company.id, role="admin", **employer_fields)
        db.add(employer)
        await db.flush()
        return company, employer

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        company: Company,
        employer: Employer,
        *,
        company_fields: dict,
        employer_fields: dict,
    ) -> None:
        """Apply completion wizard fields and mark the profile complete.

        Unknown keys are ignored.
        """
        for key, value in company_fields.items():
            if key in _COMPANY_PROFILE_FIELDS:
                setattr(company, key, value)
        for key, value in employer_fields.items():
            if key in _EMPLOYER_PROFILE_FIELDS:
                setattr(employer, key, value)
        company.profile_completed = True
        await db.flush()
