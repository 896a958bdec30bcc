"""Company and Employer models.

A company is created together with its first employer admin by the signup
wizard and filled in later by the profile completion wizard.
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from profile_builder.models.base import Base, TimestampMixin


class Company(Base, TimestampMixin):
    """Registered employer organisation."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Registration (signup wizard)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    business_registration_no: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    industry: Mapped[str] = mapped_column(String(100), nullable=False)
    business_registered_address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    br_certificate_url: Mapped[str | None] = mapped_column(String(1000))

    # Profile completion wizard
    description: Mapped[str | None] = mapped_column(Text)
    company_size: Mapped[str | None] = mapped_column(String(20))
    website: Mapped[str | None] = mapped_column(String(500))
    headoffice_location: Mapped[str | None] = mapped_column(String(200))
    logo_url: Mapped[str | None] = mapped_column(String(1000))
    profile_completed: Mapped[bool] = mapped_column(
        Boolean,
        server_default=false(),
        default=False,
        nullable=False,
    )

    employers: Mapped[list["Employer"]] = relationship(
        back_populates="company",
        cascade="all, delete-orphan",
    )


class Employer(Base, TimestampMixin):
    """Employer user attached to a company."""

    __tablename__ = "employers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    job_title: Mapped[str | None] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(20), default="admin", nullable=False)

    # Profile completion wizard
    department: Mapped[str | None] = mapped_column(String(100))
    address: Mapped[str | None] = mapped_column(Text)
    profile_image_url: Mapped[str | None] = mapped_column(String(1000))

    company: Mapped[Company] = relationship(back_populates="employers")
