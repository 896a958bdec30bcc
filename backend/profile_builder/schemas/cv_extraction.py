"""CV extraction result schema.

Everything is optional: the extraction is a best-effort partial record.
Malformed list items are dropped individually and malformed scalars are
treated as missing, so one bad value never discards the whole extraction.
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from profile_builder.schemas.common import CamelModel, blank_to_none

_MAX_LIST_ITEMS = 50
"""Cap on items kept per extracted list section."""

_MAX_SKILLS = 100
"""Cap on extracted skill strings."""

_MAX_TEXT_LENGTH = 5000
"""Longer extracted strings are truncated."""

_MAX_YEARS = 50
"""Years of experience above this are treated as a misread."""


def _clean_text(value: object) -> str | None:
    """Coerce an extracted scalar to a trimmed string, or None."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value[:_MAX_TEXT_LENGTH] or None


class _ExtractedItem(CamelModel):
    """Base for extracted list items: strings cleaned, junk discarded."""

    @field_validator("*", mode="before")
    @classmethod
    def _clean_values(cls, value: object, info: ValidationInfo) -> object:
        if info.field_name == "is_current":
            return value if isinstance(value, bool) else None
        return _clean_text(value)


class ExtractedWorkExperience(_ExtractedItem):
    job_title: str | None = None
    company: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None
    is_current: bool | None = None


class ExtractedEducation(_ExtractedItem):
    degree_diploma: str | None = None
    institution: str | None = None
    status: str | None = None


class ExtractedCertificate(_ExtractedItem):
    certificate_name: str | None = None
    issuing_authority: str | None = None
    issue_date: str | None = None


class ExtractedProject(_ExtractedItem):
    project_name: str | None = None
    description: str | None = None
    demo_url: str | None = None


_ITEM_MODELS: dict[str, type[BaseModel]] = {
    "work_experiences": ExtractedWorkExperience,
    "educations": ExtractedEducation,
    "certificates": ExtractedCertificate,
    "projects": ExtractedProject,
}


class CvExtractionResult(CamelModel):
    """Partial candidate record extracted from a CV.

    A list section that is None or empty means "nothing extracted" and
    leaves the wizard's existing list untouched when merged.
    """

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    current_position: str | None = None
    years_of_experience: float | None = None
    professional_summary: str | None = None
    work_experiences: list[ExtractedWorkExperience] = Field(default_factory=list)
    educations: list[ExtractedEducation] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certificates: list[ExtractedCertificate] = Field(default_factory=list)
    projects: list[ExtractedProject] = Field(default_factory=list)

    @field_validator(
        "first_name",
        "last_name",
        "email",
        "phone",
        "address",
        "current_position",
        "professional_summary",
        mode="before",
    )
    @classmethod
    def _clean_scalar(cls, value: object) -> str | None:
        return _clean_text(value)

    @field_validator("years_of_experience", mode="before")
    @classmethod
    def _clean_years(cls, value: object) -> float | None:
        value = blank_to_none(value)
        if value is None or isinstance(value, bool):
            return None
        try:
            years = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        return years if 0 <= years <= _MAX_YEARS else None

    @field_validator("skills", mode="before")
    @classmethod
    def _clean_skills(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        skills = [s for s in (_clean_text(v) for v in value) if s]
        return skills[:_MAX_SKILLS]

    @field_validator(
        "work_experiences", "educations", "certificates", "projects", mode="before"
    )
    @classmethod
    def _drop_invalid_items(cls, value: object, info: ValidationInfo) -> list[Any]:
        if not isinstance(value, list):
            return []
        item_model = _ITEM_MODELS[info.field_name]
        kept: list[Any] = []
        for raw in value:
            if len(kept) >= _MAX_LIST_ITEMS:
                break
            if not isinstance(raw, dict):
                continue
            try:
                item = item_model.model_validate(raw)
            except PydanticValidationError:
                continue
            # An item with every field missing carries no information
            if any(v is not None for v in item.model_dump().values()):
                kept.append(item)
        return kept
