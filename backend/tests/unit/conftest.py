"""Shared form data for wizard unit tests.

Valid section values for each wizard, so tests only spell out the fields
they are about.
"""

import pytest

from profile_builder.services.step_sequencer import WizardState, record_verification, start
from profile_builder.wizards import EMPLOYER_SIGNUP
from profile_builder.wizards.employer_signup import CERTIFICATE_SECTION
from tests.conftest import make_file

VALID_COMPANY = {
    "companyName": "Acme Holdings",
    "businessRegistrationNo": "PV-12345",
    "industry": "it_software",
    "businessRegisteredAddress": "12 Main Street, Colombo",
}

VALID_EMPLOYER = {
    "firstName": "Jordan",
    "lastName": "Perera",
    "phone": "+94 77 123 4567",
    "email": "jordan@acme.com",
    "password": "Secret123",
    "confirmPassword": "Secret123",
    "jobTitle": "Talent Lead",
}

VALID_BASIC_INFO = {
    "firstName": "Sam",
    "lastName": "Silva",
    "email": "sam@example.com",
    "phone": "0771234567",
    "address": "5 Lake Road",
    "currentPosition": "Backend Engineer",
    "yearsOfExperience": 4,
}

VALID_SUMMARY = (
    "Backend engineer with four years of experience building payment APIs "
    "and data pipelines."
)

PASSED_VERDICT = {
    "verified": True,
    "message": "Certificate verified successfully!",
    "confidence": "high",
}


@pytest.fixture
def signup_state() -> WizardState:
    """Signup wizard with valid company data and a selected certificate."""
    form_state = EMPLOYER_SIGNUP.initial_form_state()
    form_state["company"] = dict(VALID_COMPANY)
    form_state["employer"] = dict(VALID_EMPLOYER)
    form_state[CERTIFICATE_SECTION] = make_file()
    return start(EMPLOYER_SIGNUP, form_state)


@pytest.fixture
def verified_signup_state(signup_state: WizardState) -> WizardState:
    """Signup wizard on its last step with a passing certificate verdict."""
    state = record_verification(signup_state, "company", PASSED_VERDICT)
    return WizardState(
        definition=state.definition,
        form_state=state.form_state,
        current_index=1,
    )
