"""Employer record schemas.

Covers both employer wizards:
- EmployerRegistration: company + first employer admin (signup wizard)
- ProfileCompletion: company details + employer details (completion wizard)
"""

import re
import uuid
from typing import Literal

from pydantic import EmailStr, Field, ValidationInfo, field_validator

from profile_builder.schemas.common import CamelModel

_REGISTRATION_NO_PATTERN = re.compile(r"^[a-zA-Z0-9\-/]+$")
_PERSON_NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
_PHONE_PATTERN = re.compile(r"^[+]?[\d\s-]+$")
_OPTIONAL_PHONE_PATTERN = re.compile(r"^$|^[\d\s\-+()]+$")
_WEBSITE_PATTERN = re.compile(r"^https?://.+")

CompanySize = Literal["1-10", "11-50", "51-200", "201-500", "501-1000", "1000+"]


# =============================================================================
# Signup
# =============================================================================


class CompanyRegistration(CamelModel):
    """Company information collected on the first signup step."""

    company_name: str = Field(min_length=2, max_length=200)
    business_registration_no: str = Field(min_length=3, max_length=50)
    industry: str = Field(min_length=1)
    business_registered_address: str = Field(min_length=2, max_length=255)
    br_certificate_url: str | None = None

    @field_validator("company_name", "business_registered_address", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("business_registration_no")
    @classmethod
    def _check_registration_no(cls, value: str) -> str:
        if not _REGISTRATION_NO_PATTERN.match(value):
            msg = (
                "Business registration number can only contain letters, "
                "numbers, hyphens, and slashes"
            )
            raise ValueError(msg)
        return value


class EmployerAccount(CamelModel):
    """Details of the employer admin who creates the company account."""

    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    phone: str = Field(min_length=9, max_length=20)
    email: EmailStr
    password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)
    job_title: str = Field(min_length=2, max_length=200)

    @field_validator("first_name", "last_name")
    @classmethod
    def _check_person_name(cls, value: str) -> str:
        if not _PERSON_NAME_PATTERN.match(value):
            msg = "Name can only contain letters, spaces, hyphens, and apostrophes"
            raise ValueError(msg)
        return value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        if not _PHONE_PATTERN.match(value):
            msg = "Please enter a valid phone number"
            raise ValueError(msg)
        return value

    @field_validator("password")
    @classmethod
    def _check_password_strength(cls, value: str) -> str:
        if not re.search(r"[a-z]", value):
            msg = "Password must contain at least one lowercase letter"
            raise ValueError(msg)
        if not re.search(r"[A-Z]", value):
            msg = "Password must contain at least one uppercase letter"
            raise ValueError(msg)
        if not re.search(r"[0-9]", value):
            msg = "Password must contain at least one number"
            raise ValueError(msg)
        return value

    @field_validator("confirm_password")
    @classmethod
    def _check_passwords_match(cls, value: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and value != password:
            msg = "Passwords do not match"
            raise ValueError(msg)
        return value


class EmployerRegistration(CamelModel):
    """Full signup record handed to the registration endpoint."""

    company: CompanyRegistration
    employer: EmployerAccount


# =============================================================================
# Profile completion
# =============================================================================


class CompanyProfileCompletion(CamelModel):
    """Company details collected by the completion wizard."""

    description: str = Field(min_length=50, max_length=2000)
    company_size: CompanySize
    website: str | None = None
    headoffice_location: str = Field(min_length=5, max_length=200)
    logo_url: str | None = None

    @field_validator("description", "headoffice_location", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("website")
    @classmethod
    def _check_website(cls, value: str | None) -> str | None:
        if value and not _WEBSITE_PATTERN.match(value):
            msg = "Please enter a valid website URL (include http:// or https://)"
            raise ValueError(msg)
        return value or None


class EmployerProfileCompletion(CamelModel):
    """Employer details collected by the completion wizard."""

    department: str | None = None
    address: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    profile_image_url: str | None = None

    @field_validator("department")
    @classmethod
    def _check_department(cls, value: str | None) -> str | None:
        value = value.strip() if value else value
        if value and not 2 <= len(value) <= 100:
            msg = "Department must be between 2 and 100 characters"
            raise ValueError(msg)
        return value or None

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str | None) -> str | None:
        if value and len(value) < 10:
            msg = "Address must be at least 10 characters"
            raise ValueError(msg)
        return value or None

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        if value and not _OPTIONAL_PHONE_PATTERN.match(value):
            msg = "Please enter a valid phone number"
            raise ValueError(msg)
        return value or None


class ProfileCompletion(CamelModel):
    """Full completion record handed to the employer profile endpoint."""

    company_id: uuid.UUID
    employer_id: uuid.UUID
    company: CompanyProfileCompletion
    employer: EmployerProfileCompletion
