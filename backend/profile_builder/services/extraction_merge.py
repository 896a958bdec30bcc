"""Fold a CV extraction result into candidate wizard form state.

Rules:
- Scalars are written only when the extraction returned a value. A field
  the extraction did not return, or returned empty, keeps what the user
  already has.
- A list section returned with one or more items replaces the form
  state list wholesale. An empty or missing list leaves it untouched.
- Extracted items are mapped onto the wizard's item shape with the
  wizard's defaults for fields a CV does not carry.

The merge runs once, right after the CV upload, so replacing lists never
discards entries typed on later steps in practice.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from profile_builder.schemas.candidate_profile import EDUCATION_STATUSES
from profile_builder.schemas.cv_extraction import (
    CvExtractionResult,
    ExtractedCertificate,
    ExtractedEducation,
    ExtractedProject,
    ExtractedWorkExperience,
)
from profile_builder.services.step_sequencer import (
    FormState,
    WizardState,
    skip_to_first_data_step,
    update_section,
)

logger = structlog.get_logger()

_BASIC_INFO_FIELDS = {
    "first_name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "current_position": "currentPosition",
    "years_of_experience": "yearsOfExperience",
}
"""Extraction attribute -> basicInfo key."""

_COMPLETED_STATUS = "complete"
"""Status word CVs use for a finished degree; maps to the "general" grade."""


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


# =============================================================================
# Item mapping
# =============================================================================


def _work_experience(item: ExtractedWorkExperience) -> dict[str, Any]:
    return {
        "jobTitle": item.job_title or "",
        "company": item.company or "",
        "employmentType": "full_time",
        "locationType": "onsite",
        "startDate": item.start_date,
        "endDate": item.end_date,
        "description": item.description,
        "isCurrent": bool(item.is_current),
    }


def _education_status(status: str | None) -> str:
    normalized = (status or "").strip().lower()
    if normalized in EDUCATION_STATUSES:
        return normalized
    if normalized == _COMPLETED_STATUS:
        return "general"
    return "incomplete"


def _education(item: ExtractedEducation) -> dict[str, Any]:
    return {
        "educationType": "academic",
        "degreeDiploma": item.degree_diploma or "",
        "institution": item.institution or "",
        "status": _education_status(item.status),
    }


def _certificate(item: ExtractedCertificate) -> dict[str, Any]:
    return {
        "certificateName": item.certificate_name or "",
        "issuingAuthority": item.issuing_authority,
        "issueDate": item.issue_date,
    }


def _project(item: ExtractedProject) -> dict[str, Any]:
    return {
        "projectName": item.project_name or "",
        "description": item.description,
        "demoUrl": item.demo_url,
        "isCurrent": False,
    }


# =============================================================================
# Merge
# =============================================================================


def merge_extraction(
    form_state: Mapping[str, Any], result: CvExtractionResult
) -> FormState:
    """Build the form state patch for an extraction result.

    Args:
        form_state: Current candidate form state (read, never mutated).
        result: Best-effort extraction result.

    Returns:
        Section name -> new value. Only sections that change are included;
        "basicInfo" holds just the extracted keys, to be merged into the
        existing mapping.
    """
    patch: FormState = {}

    basic_info = {
        key: getattr(result, attr)
        for attr, key in _BASIC_INFO_FIELDS.items()
        if _present(getattr(result, attr))
    }
    if basic_info:
        patch["basicInfo"] = basic_info

    if _present(result.professional_summary):
        patch["professionalSummary"] = result.professional_summary

    if result.work_experiences:
        patch["workExperiences"] = [_work_experience(i) for i in result.work_experiences]
    if result.educations:
        patch["educations"] = [_education(i) for i in result.educations]
    if result.certificates:
        patch["certificates"] = [_certificate(i) for i in result.certificates]
    if result.projects:
        patch["projects"] = [_project(i) for i in result.projects]

    return patch


def apply_extraction(state: WizardState, result: CvExtractionResult) -> WizardState:
    """Merge an extraction into the wizard and jump to the first data step.

    Args:
        state: Candidate wizard state.
        result: Extraction result.

    Returns:
        Updated state positioned on the first data-entry step.
    """
    patch = merge_extraction(state.form_state, result)
    for name, value in patch.items():
        state = update_section(state, name, value)

    logger.info(
        "wizard_extraction_merged",
        wizard=state.definition.kind,
        sections=sorted(patch),
    )
    return skip_to_first_data_step(state)
