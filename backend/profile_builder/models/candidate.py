"""Candidate profile model.

Sub-record lists are stored as JSONB arrays of camelCase objects; each
item carries the durable ``id`` assigned when the profile is persisted.
"""

import uuid

from sqlalchemy import String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from profile_builder.models.base import Base, TimestampMixin

_DEFAULT_EMPTY_JSONB = text("'[]'::jsonb")


class CandidateProfile(Base, TimestampMixin):
    """Candidate profile produced by the candidate wizard.

    One profile per user. Industry-specific lists are NULL when the
    industry does not show their steps.
    """

    __tablename__ = "candidate_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        unique=True,
        nullable=False,
    )

    industry: Mapped[str] = mapped_column(String(50), nullable=False)
    basic_info: Mapped[dict] = mapped_column(JSONB, nullable=False)
    professional_summary: Mapped[str] = mapped_column(Text, nullable=False)

    work_experiences: Mapped[list] = mapped_column(
        JSONB,
        server_default=_DEFAULT_EMPTY_JSONB,
        default=list,
        nullable=False,
    )
    educations: Mapped[list] = mapped_column(
        JSONB,
        server_default=_DEFAULT_EMPTY_JSONB,
        default=list,
        nullable=False,
    )
    awards: Mapped[list] = mapped_column(
        JSONB,
        server_default=_DEFAULT_EMPTY_JSONB,
        default=list,
        nullable=False,
    )

    # IT industry
    projects: Mapped[list | None] = mapped_column(JSONB)
    certificates: Mapped[list | None] = mapped_column(JSONB)

    # Banking / finance industry
    financial_licenses: Mapped[list | None] = mapped_column(JSONB)
    banking_skills: Mapped[list | None] = mapped_column(JSONB)
    compliance_trainings: Mapped[list | None] = mapped_column(JSONB)
