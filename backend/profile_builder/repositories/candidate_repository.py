"""Repository for CandidateProfile operations."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from profile_builder.models.candidate import CandidateProfile

_PROFILE_FIELDS: frozenset[str] = frozenset(
    {
        "industry",
        "basic_info",
        "professional_summary",
        "work_experiences",
        "educations",
        "awards",
        "projects",
        "certificates",
        "financial_licenses",
        "banking_skills",
        "compliance_trainings",
    }
)


class CandidateRepository:
    """Stateless repository for CandidateProfile table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_user_id(
        db: AsyncSession, user_id: uuid.UUID
    ) -> CandidateProfile | None:
        """Fetch the profile owned by a user, if any."""
        result = await db.execute(
            select(CandidateProfile).where(CandidateProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert(
        db: AsyncSession, user_id: uuid.UUID, fields: dict
    ) -> CandidateProfile:
        """Create the user's profile or replace every field of the existing one.

        Args:
            db: Async database session.
            user_id: Owner of the profile.
            fields: Column values. Unknown keys are ignored.

        Returns:
            The created or updated profile after flush.
        """
        values = {k: v for k, v in fields.items() if k in _PROFILE_FIELDS}
        profile = await CandidateRepository.get_by_user_id(db, user_id)
        if profile is None:
            profile = CandidateProfile(user_id=user_id, **values)
            db.add(profile)
        else:
            for key, value in values.items():
                setattr(profile, key, value)
        await db.flush()
        return profile
