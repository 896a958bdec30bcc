"""Employer signup wizard.

Two steps: company information (with the business registration
certificate, which must pass verification) and the admin's own account.
Submitting uploads the certificate and creates the company with its
first employer admin.
"""

from collections.abc import Mapping
from typing import Any

from profile_builder.core.config import settings
from profile_builder.schemas.employer import CompanyRegistration, EmployerAccount
from profile_builder.services.step_sequencer import (
    FormState,
    StepSpec,
    WizardDefinition,
)
from profile_builder.services.submission_saga import UploadPlan, UploadStep
from profile_builder.wizards.common import selected_file, validate_section, without_files

KIND = "employer_signup"

CERTIFICATE_SECTION = "brCertificateFile"

_MISSING_CERTIFICATE = "Please upload your business registration certificate"


def _initial_form_state() -> FormState:
    return {
        "company": {
            "companyName": "",
            "businessRegistrationNo": "",
            "industry": "",
            "businessRegisteredAddress": "",
        },
        CERTIFICATE_SECTION: None,
        "employer": {
            "firstName": "",
            "lastName": "",
            "phone": "",
            "email": "",
            "password": "",
            "confirmPassword": "",
            "jobTitle": "",
        },
    }


def _validate_company(form_state: Mapping[str, Any]) -> dict[str, str]:
    errors = validate_section(form_state, "company", CompanyRegistration)
    if selected_file(form_state, CERTIFICATE_SECTION) is None:
        errors[CERTIFICATE_SECTION] = _MISSING_CERTIFICATE
    return errors


def _validate_employer(form_state: Mapping[str, Any]) -> dict[str, str]:
    return validate_section(form_state, "employer", EmployerAccount)


def _build_upload_plan(form_state: Mapping[str, Any], _owner_id: str | None) -> UploadPlan:
    return UploadPlan(
        steps=(
            UploadStep(
                section=CERTIFICATE_SECTION,
                artifact=selected_file(form_state, CERTIFICATE_SECTION),
                bucket=settings.br_certificate_bucket,
                required=True,
            ),
        )
    )


def _assemble_record(
    form_state: Mapping[str, Any],
    urls_by_section: Mapping[str, str],
    _owner_id: str | None,
) -> dict:
    return {
        "company": {
            **without_files(form_state.get("company")),
            "brCertificateUrl": urls_by_section[CERTIFICATE_SECTION],
        },
        "employer": without_files(form_state.get("employer")),
    }


def _record_to_form_state(record: Mapping[str, Any]) -> FormState:
    company = dict(record.get("company") or {})
    company.pop("brCertificateUrl", None)
    return {"company": company, "employer": dict(record.get("employer") or {})}


EMPLOYER_SIGNUP = WizardDefinition(
    kind=KIND,
    steps=(
        StepSpec(
            id="company",
            title="Company Information",
            fields=(
                "company",
                "companyName",
                "businessRegistrationNo",
                "industry",
                "businessRegisteredAddress",
                "brCertificateUrl",
                CERTIFICATE_SECTION,
            ),
            validate=_validate_company,
            requires_verification=True,
            verification_file=CERTIFICATE_SECTION,
        ),
        StepSpec(
            id="profile",
            title="Your Information",
            fields=(
                "employer",
                "firstName",
                "lastName",
                "phone",
                "email",
                "password",
                "confirmPassword",
                "jobTitle",
            ),
            validate=_validate_employer,
        ),
    ),
    initial_form_state=_initial_form_state,
    build_upload_plan=_build_upload_plan,
    assemble_record=_assemble_record,
    record_to_form_state=_record_to_form_state,
    editable_sections=frozenset({"company", "employer"}),
    file_sections={CERTIFICATE_SECTION: "certificate"},
)


def comparison_fields(form_state: Mapping[str, Any]) -> tuple[str, str]:
    """Declared (company name, registration number) the certificate must match."""
    company = form_state.get("company") or {}
    return (
        str(company.get("companyName") or ""),
        str(company.get("businessRegistrationNo") or ""),
    )
