"""Wizard definitions.

Each wizard is a WizardDefinition driven by the generic step sequencer
and submission saga.

Wizards:
    employer_signup: Company registration + first employer admin
    employer_profile: Company and employer profile completion
    candidate_profile: Candidate profile, industry-dependent steps
"""

from collections.abc import Callable, Mapping
from typing import Any

from profile_builder.services.step_sequencer import WizardDefinition
from profile_builder.wizards.candidate_profile import CANDIDATE_PROFILE
from profile_builder.wizards.employer_profile import EMPLOYER_PROFILE
from profile_builder.wizards.employer_signup import EMPLOYER_SIGNUP, comparison_fields

WIZARDS: dict[str, WizardDefinition] = {
    definition.kind: definition
    for definition in (EMPLOYER_SIGNUP, EMPLOYER_PROFILE, CANDIDATE_PROFILE)
}

VERIFICATION_INPUTS: dict[tuple[str, str], Callable[[Mapping[str, Any]], tuple[str, str]]] = {
    (EMPLOYER_SIGNUP.kind, "company"): comparison_fields,
}
"""(wizard kind, step id) -> declared values the step's document is checked against."""


def get_wizard(kind: str) -> WizardDefinition:
    """Look up a wizard definition by kind.

    Raises:
        KeyError: If no wizard has this kind.
    """
    return WIZARDS[kind]


__all__ = [
    "CANDIDATE_PROFILE",
    "EMPLOYER_PROFILE",
    "EMPLOYER_SIGNUP",
    "VERIFICATION_INPUTS",
    "WIZARDS",
    "get_wizard",
]
