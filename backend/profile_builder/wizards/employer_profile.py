"""Employer profile completion wizard.

Two steps: company details (with an optional logo) and the employer's
own details (with an optional profile image). Seeded from the stored
company and employer; a file left unselected keeps the stored URL.
"""

from collections.abc import Mapping
from typing import Any

from profile_builder.core.config import settings
from profile_builder.schemas.employer import (
    CompanyProfileCompletion,
    EmployerProfileCompletion,
)
from profile_builder.services.step_sequencer import (
    FormState,
    StepSpec,
    WizardDefinition,
)
from profile_builder.services.submission_saga import UploadPlan, UploadStep
from profile_builder.wizards.common import selected_file, validate_section, without_files

KIND = "employer_profile"

LOGO_SECTION = "companyLogoFile"
PROFILE_IMAGE_SECTION = "profileImageFile"


def _initial_form_state() -> FormState:
    return {
        "companyId": None,
        "employerId": None,
        "company": {
            "description": "",
            "companySize": "",
            "website": "",
            "headofficeLocation": "",
            "logoUrl": None,
        },
        LOGO_SECTION: None,
        "employer": {
            "department": "",
            "address": "",
            "phone": "",
            "profileImageUrl": None,
        },
        PROFILE_IMAGE_SECTION: None,
    }


def _validate_company(form_state: Mapping[str, Any]) -> dict[str, str]:
    return validate_section(form_state, "company", CompanyProfileCompletion)


def _validate_employer(form_state: Mapping[str, Any]) -> dict[str, str]:
    return validate_section(form_state, "employer", EmployerProfileCompletion)


def _build_upload_plan(form_state: Mapping[str, Any], owner_id: str | None) -> UploadPlan:
    # Only selected files are planned, so stage numbers count real uploads
    steps = []
    logo = selected_file(form_state, LOGO_SECTION)
    if logo is not None:
        steps.append(
            UploadStep(section=LOGO_SECTION, artifact=logo, bucket=settings.company_logo_bucket)
        )
    image = selected_file(form_state, PROFILE_IMAGE_SECTION)
    if image is not None:
        employer_id = owner_id or form_state.get("employerId")
        steps.append(
            UploadStep(
                section=PROFILE_IMAGE_SECTION,
                artifact=image,
                bucket=settings.profile_image_bucket,
                folder=str(employer_id) if employer_id else None,
            )
        )
    return UploadPlan(steps=tuple(steps))


def _assemble_record(
    form_state: Mapping[str, Any],
    urls_by_section: Mapping[str, str],
    _owner_id: str | None,
) -> dict:
    company = without_files(form_state.get("company"))
    company["logoUrl"] = urls_by_section.get(LOGO_SECTION, company.get("logoUrl"))
    employer = without_files(form_state.get("employer"))
    employer["profileImageUrl"] = urls_by_section.get(
        PROFILE_IMAGE_SECTION, employer.get("profileImageUrl")
    )
    return {
        "companyId": form_state.get("companyId"),
        "employerId": form_state.get("employerId"),
        "company": company,
        "employer": employer,
    }


def _record_to_form_state(record: Mapping[str, Any]) -> FormState:
    return {
        "companyId": record.get("companyId"),
        "employerId": record.get("employerId"),
        "company": dict(record.get("company") or {}),
        "employer": dict(record.get("employer") or {}),
    }


EMPLOYER_PROFILE = WizardDefinition(
    kind=KIND,
    steps=(
        StepSpec(
            id="company",
            title="Company Details",
            fields=(
                "company",
                "companyId",
                "description",
                "companySize",
                "website",
                "headofficeLocation",
                "logoUrl",
                LOGO_SECTION,
            ),
            validate=_validate_company,
        ),
        StepSpec(
            id="employer",
            title="Your Details",
            fields=(
                "employer",
                "employerId",
                "department",
                "address",
                "phone",
                "profileImageUrl",
                PROFILE_IMAGE_SECTION,
            ),
            validate=_validate_employer,
        ),
    ),
    initial_form_state=_initial_form_state,
    build_upload_plan=_build_upload_plan,
    assemble_record=_assemble_record,
    record_to_form_state=_record_to_form_state,
    editable_sections=frozenset({"company", "employer"}),
    file_sections={LOGO_SECTION: "image", PROFILE_IMAGE_SECTION: "image"},
)
