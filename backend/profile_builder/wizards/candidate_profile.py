"""Candidate profile wizard.

Eleven steps, five of which depend on the chosen industry:

    industry -> basic -> experience -> education -> awards
      -> projects* -> certificates*                      (* IT industries)
      -> licenses† -> bankingSkills† -> compliance†      († banking/finance)
      -> summary

The first step also accepts a CV; a successful extraction pre-fills the
later steps and jumps to "basic". Sections of hidden steps stay in form
state (switching industry back restores them) but are left out of the
submitted record.
"""

from collections.abc import Mapping
from typing import Any, get_args

from profile_builder.core.config import settings
from profile_builder.schemas.candidate_profile import (
    BANKING_FINANCE_INDUSTRIES,
    IT_INDUSTRIES,
    Award,
    BankingSkill,
    BasicInfo,
    Certificate,
    ComplianceTraining,
    Education,
    FinancialLicense,
    Industry,
    Project,
    WorkExperience,
)
from profile_builder.services.step_sequencer import (
    FormState,
    StepSpec,
    WizardDefinition,
)
from profile_builder.services.submission_saga import UploadPlan, UploadStep
from profile_builder.wizards.common import (
    selected_file,
    validate_items,
    validate_section,
    without_files,
)

KIND = "candidate_profile"

PROFILE_IMAGE_SECTION = "profileImageFile"

INDUSTRIES: tuple[str, ...] = get_args(Industry)

_SUMMARY_MIN_LENGTH = 50
_SUMMARY_MAX_LENGTH = 1000

_LIST_SECTIONS = ("workExperiences", "educations", "awards")
_IT_SECTIONS = ("projects", "certificates")
_BANKING_SECTIONS = ("financialLicenses", "bankingSkills", "complianceTrainings")


def _initial_form_state() -> FormState:
    return {
        "industry": "",
        "basicInfo": {
            "firstName": "",
            "lastName": "",
            "email": "",
            "phone": "",
            "alternativePhone": "",
            "address": "",
            "country": "",
            "currentPosition": "",
            "yearsOfExperience": 0,
            "experienceLevel": "entry",
            "expectedMonthlySalary": None,
            "availabilityStatus": "available",
            "noticePeriod": "immediate",
            "employmentType": "full_time",
            "profileImageUrl": None,
        },
        PROFILE_IMAGE_SECTION: None,
        "workExperiences": [],
        "educations": [],
        "awards": [],
        "projects": [],
        "certificates": [],
        "financialLicenses": [],
        "bankingSkills": [],
        "complianceTrainings": [],
        "professionalSummary": "",
    }


# =============================================================================
# Visibility
# =============================================================================


def is_it_industry(form_state: Mapping[str, Any]) -> bool:
    return form_state.get("industry") in IT_INDUSTRIES


def is_banking_finance_industry(form_state: Mapping[str, Any]) -> bool:
    return form_state.get("industry") in BANKING_FINANCE_INDUSTRIES


# =============================================================================
# Validation
# =============================================================================


def _validate_industry(form_state: Mapping[str, Any]) -> dict[str, str]:
    if form_state.get("industry") not in INDUSTRIES:
        return {"industry": "Please select your industry"}
    return {}


def _validate_basic(form_state: Mapping[str, Any]) -> dict[str, str]:
    return validate_section(form_state, "basicInfo", BasicInfo)


def _items_validator(section: str, model: type):
    def validate(form_state: Mapping[str, Any]) -> dict[str, str]:
        return validate_items(form_state, section, model)

    return validate


def _validate_summary(form_state: Mapping[str, Any]) -> dict[str, str]:
    summary = (form_state.get("professionalSummary") or "").strip()
    if len(summary) < _SUMMARY_MIN_LENGTH:
        return {
            "professionalSummary": (
                f"Professional summary must be at least {_SUMMARY_MIN_LENGTH} characters"
            )
        }
    if len(summary) > _SUMMARY_MAX_LENGTH:
        return {
            "professionalSummary": (
                f"Professional summary must be less than {_SUMMARY_MAX_LENGTH} characters"
            )
        }
    return {}


# =============================================================================
# Submission hooks
# =============================================================================


def _build_upload_plan(form_state: Mapping[str, Any], owner_id: str | None) -> UploadPlan:
    image = selected_file(form_state, PROFILE_IMAGE_SECTION)
    if image is None:
        return UploadPlan()
    return UploadPlan(
        steps=(
            UploadStep(
                section=PROFILE_IMAGE_SECTION,
                artifact=image,
                bucket=settings.profile_image_bucket,
                folder=owner_id,
            ),
        )
    )


def _assemble_record(
    form_state: Mapping[str, Any],
    urls_by_section: Mapping[str, str],
    owner_id: str | None,
) -> dict:
    basic_info = without_files(form_state.get("basicInfo"))
    basic_info["profileImageUrl"] = urls_by_section.get(
        PROFILE_IMAGE_SECTION, basic_info.get("profileImageUrl")
    )
    record: dict[str, Any] = {
        "userId": owner_id,
        "industry": form_state.get("industry"),
        "basicInfo": basic_info,
        "professionalSummary": (form_state.get("professionalSummary") or "").strip(),
    }
    sections = list(_LIST_SECTIONS)
    if is_it_industry(form_state):
        sections.extend(_IT_SECTIONS)
    if is_banking_finance_industry(form_state):
        sections.extend(_BANKING_SECTIONS)
    for section in sections:
        record[section] = [dict(item) for item in form_state.get(section) or []]
    return record


def _record_to_form_state(record: Mapping[str, Any]) -> FormState:
    form_state: FormState = {
        "industry": record.get("industry") or "",
        "basicInfo": dict(record.get("basicInfo") or {}),
        "professionalSummary": record.get("professionalSummary") or "",
    }
    for section in (*_LIST_SECTIONS, *_IT_SECTIONS, *_BANKING_SECTIONS):
        form_state[section] = [dict(item) for item in record.get(section) or []]
    return form_state


CANDIDATE_PROFILE = WizardDefinition(
    kind=KIND,
    steps=(
        StepSpec(
            id="industry",
            title="Industry & CV",
            fields=("industry",),
            validate=_validate_industry,
        ),
        StepSpec(
            id="basic",
            title="Basic Info",
            fields=(
                "basicInfo",
                "firstName",
                "lastName",
                "email",
                "phone",
                "alternativePhone",
                "address",
                "country",
                "currentPosition",
                "yearsOfExperience",
                "experienceLevel",
                "expectedMonthlySalary",
                "availabilityStatus",
                "noticePeriod",
                "profileImageUrl",
                PROFILE_IMAGE_SECTION,
            ),
            validate=_validate_basic,
        ),
        StepSpec(
            id="experience",
            title="Experience",
            fields=("workExperiences",),
            validate=_items_validator("workExperiences", WorkExperience),
        ),
        StepSpec(
            id="education",
            title="Education",
            fields=("educations",),
            validate=_items_validator("educations", Education),
        ),
        StepSpec(
            id="awards",
            title="Awards",
            fields=("awards",),
            validate=_items_validator("awards", Award),
        ),
        StepSpec(
            id="projects",
            title="Projects",
            fields=("projects",),
            visible=is_it_industry,
            validate=_items_validator("projects", Project),
        ),
        StepSpec(
            id="certificates",
            title="Certificates",
            fields=("certificates",),
            visible=is_it_industry,
            validate=_items_validator("certificates", Certificate),
        ),
        StepSpec(
            id="licenses",
            title="Licenses",
            fields=("financialLicenses",),
            visible=is_banking_finance_industry,
            validate=_items_validator("financialLicenses", FinancialLicense),
        ),
        StepSpec(
            id="bankingSkills",
            title="Skills",
            fields=("bankingSkills",),
            visible=is_banking_finance_industry,
            validate=_items_validator("bankingSkills", BankingSkill),
        ),
        StepSpec(
            id="compliance",
            title="Compliance",
            fields=("complianceTrainings",),
            visible=is_banking_finance_industry,
            validate=_items_validator("complianceTrainings", ComplianceTraining),
        ),
        StepSpec(
            id="summary",
            title="Summary",
            fields=("professionalSummary",),
            validate=_validate_summary,
        ),
    ),
    initial_form_state=_initial_form_state,
    build_upload_plan=_build_upload_plan,
    assemble_record=_assemble_record,
    record_to_form_state=_record_to_form_state,
    editable_sections=frozenset(
        {
            "industry",
            "basicInfo",
            "professionalSummary",
            *_LIST_SECTIONS,
            *_IT_SECTIONS,
            *_BANKING_SECTIONS,
        }
    ),
    file_sections={PROFILE_IMAGE_SECTION: "image"},
    first_data_step="basic",
)
