"""Candidate profile record schemas.

One schema per repeated section plus the complete profile submitted by the
candidate wizard. Sub-records carry an optional ``id``: it is empty while
the wizard runs (list position is the only identity) and is assigned by the
persistence endpoint.
"""

import re
import uuid
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from profile_builder.schemas.common import CamelModel

# =============================================================================
# Industries
# =============================================================================

IT_INDUSTRIES: frozenset[str] = frozenset({"it_software", "fintech"})
"""Industries that show the projects and certificates steps."""

BANKING_FINANCE_INDUSTRIES: frozenset[str] = frozenset(
    {"banking", "finance_investment", "insurance", "accounting"}
)
"""Industries that show the licenses, banking skills and compliance steps."""

Industry = Literal[
    "it_software",
    "banking",
    "finance_investment",
    "insurance",
    "fintech",
    "accounting",
    "other",
]

ExperienceLevel = Literal["entry", "junior", "mid", "senior", "lead", "principal"]
EmploymentType = Literal[
    "full_time", "part_time", "contract", "internship", "freelance", "volunteer"
]
LocationType = Literal["remote", "hybrid", "onsite"]
EducationType = Literal["academic", "professional"]
EducationStatus = Literal[
    "incomplete", "first_class", "second_class_upper", "second_class_lower", "general"
]
AvailabilityStatus = Literal["available", "open_to_opportunities", "not_looking"]

EDUCATION_STATUSES: frozenset[str] = frozenset(
    {"incomplete", "first_class", "second_class_upper", "second_class_lower", "general"}
)

LicenseType = Literal[
    "cfa",
    "cpa",
    "acca",
    "cima",
    "frm",
    "cfp",
    "caia",
    "cma",
    "cia",
    "aml_certification",
    "securities_license",
    "banking_license",
    "insurance_license",
    "other",
]
LicenseStatus = Literal["active", "expired", "pending_renewal"]
SkillCategory = Literal[
    "retail_banking",
    "corporate_banking",
    "investment_banking",
    "private_banking",
    "credit_analysis",
    "financial_modeling",
    "risk_assessment",
    "portfolio_management",
    "aml_kyc",
    "regulatory_compliance",
    "forex_trading",
    "securities_trading",
    "derivatives",
    "core_banking_systems",
    "wealth_management",
    "trade_finance",
    "treasury_operations",
    "other",
]
ProficiencyLevel = Literal["beginner", "intermediate", "advanced", "expert"]
TrainingType = Literal[
    "aml_cft",
    "kyc",
    "data_privacy",
    "fraud_prevention",
    "sanctions_screening",
    "code_of_conduct",
    "information_security",
    "regulatory_updates",
    "market_abuse",
    "insider_trading",
    "risk_management",
    "credit_risk",
    "operational_risk",
    "other",
]

_URL_PATTERN = re.compile(r"^https?://\S+$")


def _check_optional_url(value: str | None) -> str | None:
    if value and not _URL_PATTERN.match(value):
        msg = "Please enter a valid URL"
        raise ValueError(msg)
    return value or None


# =============================================================================
# Repeated sections
# =============================================================================


class WorkExperience(CamelModel):
    id: uuid.UUID | None = None
    job_title: str = Field(min_length=1, max_length=200)
    company: str = Field(min_length=1, max_length=200)
    employment_type: EmploymentType = "full_time"
    location: str | None = Field(default=None, max_length=200)
    location_type: LocationType = "onsite"
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None
    is_current: bool = False


class Education(CamelModel):
    id: uuid.UUID | None = None
    education_type: EducationType = "academic"
    degree_diploma: str = Field(min_length=1, max_length=200)
    institution: str = Field(min_length=1, max_length=200)
    status: EducationStatus = "incomplete"


class Award(CamelModel):
    id: uuid.UUID | None = None
    nature_of_award: str = Field(min_length=1, max_length=300)
    offered_by: str | None = Field(default=None, max_length=200)
    description: str | None = None


class Project(CamelModel):
    id: uuid.UUID | None = None
    project_name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    demo_url: str | None = Field(default=None, max_length=500)
    is_current: bool = False

    @field_validator("demo_url")
    @classmethod
    def _check_demo_url(cls, value: str | None) -> str | None:
        return _check_optional_url(value)


class Certificate(CamelModel):
    id: uuid.UUID | None = None
    certificate_name: str = Field(min_length=1, max_length=200)
    issuing_authority: str | None = Field(default=None, max_length=200)
    issue_date: str | None = None
    expiry_date: str | None = None
    credential_id: str | None = Field(default=None, max_length=100)
    credential_url: str | None = Field(default=None, max_length=500)
    description: str | None = None

    @field_validator("credential_url")
    @classmethod
    def _check_credential_url(cls, value: str | None) -> str | None:
        return _check_optional_url(value)


class FinancialLicense(CamelModel):
    id: uuid.UUID | None = None
    license_type: LicenseType = "cfa"
    license_name: str = Field(min_length=1, max_length=200)
    issuing_authority: str = Field(min_length=1, max_length=200)
    license_number: str | None = Field(default=None, max_length=100)
    issue_date: str | None = None
    expiry_date: str | None = None
    status: LicenseStatus = "active"


class BankingSkill(CamelModel):
    id: uuid.UUID | None = None
    skill_category: SkillCategory = "retail_banking"
    skill_name: str = Field(min_length=1, max_length=200)
    proficiency_level: ProficiencyLevel = "intermediate"
    years_experience: int = Field(default=0, ge=0, le=50)


class ComplianceTraining(CamelModel):
    id: uuid.UUID | None = None
    training_name: str = Field(min_length=1, max_length=300)
    training_type: TrainingType = "aml_cft"
    provider: str | None = Field(default=None, max_length=200)
    completion_date: str | None = None
    validity_period: str | None = Field(default=None, max_length=50)
    expiry_date: str | None = None
    certificate_url: str | None = Field(default=None, max_length=500)


# =============================================================================
# Basic info + complete profile
# =============================================================================


class BasicInfo(CamelModel):
    """Identity and availability fields from the basic info step."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=20)
    alternative_phone: str | None = Field(default=None, max_length=20)
    address: str = Field(min_length=1)
    country: str | None = Field(default=None, max_length=100)
    current_position: str = Field(min_length=1, max_length=200)
    years_of_experience: float = Field(default=0, ge=0, le=50)
    experience_level: ExperienceLevel = "entry"
    expected_monthly_salary: float | None = Field(default=None, ge=0)
    availability_status: AvailabilityStatus = "available"
    notice_period: str | None = Field(default=None, max_length=50)
    employment_type: EmploymentType = "full_time"
    profile_image_url: str | None = None


class CompleteProfile(CamelModel):
    """Candidate profile record handed to the candidate profile endpoint.

    Industry-specific lists are None when their steps were not visible for
    the chosen industry.
    """

    user_id: uuid.UUID
    industry: Industry
    basic_info: BasicInfo
    professional_summary: str = Field(min_length=50, max_length=1000)
    work_experiences: list[WorkExperience] = Field(default_factory=list)
    educations: list[Education] = Field(default_factory=list)
    awards: list[Award] = Field(default_factory=list)
    # IT industry
    projects: list[Project] | None = None
    certificates: list[Certificate] | None = None
    # Banking / finance industry
    financial_licenses: list[FinancialLicense] | None = None
    banking_skills: list[BankingSkill] | None = None
    compliance_trainings: list[ComplianceTraining] | None = None
