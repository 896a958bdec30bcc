"""Tests for the generic step sequencer.

Covers:
- effective step list: definition order, recomputation, visibility toggles
- go_next / go_previous: validation gating, boundaries
- progress_fraction, skip_to_first_data_step
- update_section: merging, clamping, verdict invalidation, error clearing
- record_verification / is_verified
- return_to_field_errors and validate_all
"""

from dataclasses import replace

import pytest

from profile_builder.services.step_sequencer import (
    StepSpec,
    WizardDefinition,
    WizardState,
    go_next,
    go_previous,
    is_verified,
    progress_fraction,
    record_verification,
    return_to_field_errors,
    seed,
    skip_to_first_data_step,
    start,
    update_section,
    validate_all,
    verification_for,
)
from profile_builder.services.submission_saga import UploadPlan
from profile_builder.services.wizard_errors import OutOfRangeError
from profile_builder.wizards import CANDIDATE_PROFILE, EMPLOYER_SIGNUP
from profile_builder.wizards.employer_signup import CERTIFICATE_SECTION
from tests.conftest import make_file
from tests.unit.conftest import (
    PASSED_VERDICT,
    VALID_BASIC_INFO,
    VALID_COMPANY,
    VALID_SUMMARY,
)

# =============================================================================
# Helpers
# =============================================================================


def _require_name(form_state) -> dict[str, str]:
    if not form_state.get("name"):
        return {"name": "Name is required"}
    return {}


def _definition(**overrides) -> WizardDefinition:
    """Three-step wizard whose middle step shows only when 'extra' is set."""
    fields = {
        "kind": "test",
        "steps": (
            StepSpec(id="first", title="First", fields=("name",), validate=_require_name),
            StepSpec(
                id="middle",
                title="Middle",
                fields=("extra",),
                visible=lambda fs: bool(fs.get("extra")),
            ),
            StepSpec(id="last", title="Last", fields=("notes",)),
        ),
        "initial_form_state": lambda: {"name": "", "extra": False, "notes": ""},
        "build_upload_plan": lambda fs, owner: UploadPlan(),
        "assemble_record": lambda fs, urls, owner: dict(fs),
        "record_to_form_state": dict,
    }
    fields.update(overrides)
    return WizardDefinition(**fields)


def _ids(state: WizardState) -> list[str]:
    return [step.id for step in state.effective_steps]


# =============================================================================
# Definition checks
# =============================================================================


class TestWizardDefinition:
    """Tests for definition-time checks."""

    def test_rejects_empty_steps(self):
        """A wizard needs at least one step."""
        with pytest.raises(ValueError, match="no steps"):
            _definition(steps=())

    def test_rejects_duplicate_step_ids(self):
        """Step ids must be unique."""
        step = StepSpec(id="a", title="A")
        with pytest.raises(ValueError, match="duplicate"):
            _definition(steps=(step, step))

    def test_rejects_conditional_first_step(self):
        """The first step must always be visible."""
        step = StepSpec(id="a", title="A", visible=lambda fs: False)
        with pytest.raises(ValueError, match="always be visible"):
            _definition(steps=(step,))

    def test_field_step_resolves_nested_and_indexed_paths(self):
        """Dotted paths resolve to the step that owns any segment."""
        assert EMPLOYER_SIGNUP.field_step("company.businessRegistrationNo") == "company"
        assert EMPLOYER_SIGNUP.field_step("businessRegistrationNo") == "company"
        assert EMPLOYER_SIGNUP.field_step("employer.email") == "profile"
        assert CANDIDATE_PROFILE.field_step("workExperiences.0.jobTitle") == "experience"

    def test_field_step_returns_none_for_unknown_field(self):
        """Unknown fields have no owning step."""
        assert EMPLOYER_SIGNUP.field_step("nonexistent") is None


# =============================================================================
# Effective steps
# =============================================================================


class TestEffectiveSteps:
    """Tests for visibility-driven step lists."""

    def test_hidden_step_is_left_out(self):
        """A step whose predicate is false is not in the effective list."""
        state = start(_definition())
        assert _ids(state) == ["first", "last"]

    def test_visible_steps_keep_definition_order(self):
        """Effective steps are a subsequence of the definition's steps."""
        state = update_section(start(_definition()), "extra", True)
        assert _ids(state) == ["first", "middle", "last"]

    def test_recomputation_is_idempotent(self):
        """Recomputing with no intervening change yields the same list."""
        state = start(CANDIDATE_PROFILE, {"industry": "banking"})
        assert state.effective_steps == state.effective_steps

    @pytest.mark.parametrize(
        "industry,expected",
        [
            (
                "it_software",
                [
                    "industry",
                    "basic",
                    "experience",
                    "education",
                    "awards",
                    "projects",
                    "certificates",
                    "summary",
                ],
            ),
            (
                "banking",
                [
                    "industry",
                    "basic",
                    "experience",
                    "education",
                    "awards",
                    "licenses",
                    "bankingSkills",
                    "compliance",
                    "summary",
                ],
            ),
            ("other", ["industry", "basic", "experience", "education", "awards", "summary"]),
        ],
    )
    def test_candidate_steps_follow_industry(self, industry, expected):
        """Industry selects which optional candidate steps are shown."""
        state = update_section(start(CANDIDATE_PROFILE), "industry", industry)
        assert _ids(state) == expected
        all_ids = [step.id for step in CANDIDATE_PROFILE.steps]
        positions = [all_ids.index(step_id) for step_id in _ids(state)]
        assert positions == sorted(positions)

    def test_hidden_step_data_survives_industry_switch(self):
        """Switching industry away and back keeps the hidden step's entries."""
        state = update_section(start(CANDIDATE_PROFILE), "industry", "it_software")
        state = update_section(state, "projects", [{"projectName": "Ledger"}])
        state = update_section(state, "industry", "banking")
        assert "projects" not in _ids(state)
        state = update_section(state, "industry", "it_software")
        assert state.form_state["projects"] == [{"projectName": "Ledger"}]


# =============================================================================
# Navigation
# =============================================================================


class TestGoNext:
    """Tests for go_next."""

    def test_advances_by_one_when_valid(self):
        """A valid step moves forward exactly one step."""
        state = start(_definition(), {"name": "Ada", "extra": True, "notes": ""})
        result = go_next(state)
        assert result.current_index == 1
        assert result.current_step.id == "middle"
        assert result.validation_errors == {}

    def test_stays_put_when_invalid(self):
        """Validation failure keeps the index and attaches errors."""
        state = start(_definition())
        result = go_next(state)
        assert result.current_index == 0
        assert result.validation_errors == {"name": "Name is required"}

    def test_skips_invisible_steps(self):
        """The next step is the next visible one."""
        state = start(_definition(), {"name": "Ada", "extra": False, "notes": ""})
        assert go_next(state).current_step.id == "last"

    def test_raises_on_last_step(self):
        """go_next on the last step is out of range; submit applies instead."""
        state = start(_definition(), {"name": "Ada", "extra": False, "notes": ""})
        state = go_next(state)
        assert state.is_last_step
        with pytest.raises(OutOfRangeError):
            go_next(state)

    def test_does_not_mutate_input_state(self):
        """Transitions return new states."""
        state = start(_definition(), {"name": "Ada", "extra": False, "notes": ""})
        go_next(state)
        assert state.current_index == 0

    def test_unverified_step_blocks_advance(self, signup_state):
        """A verification step without a passing verdict cannot be left."""
        result = go_next(signup_state)
        assert result.current_index == 0
        assert CERTIFICATE_SECTION in result.validation_errors

    def test_failed_verdict_blocks_advance(self, signup_state):
        """A failing verdict blocks like a missing one."""
        state = record_verification(
            signup_state, "company", {"verified": False, "message": "mismatch"}
        )
        assert go_next(state).current_index == 0

    def test_verified_step_advances(self, signup_state):
        """A passing verdict plus valid fields moves on."""
        state = record_verification(signup_state, "company", PASSED_VERDICT)
        result = go_next(state)
        assert result.current_step.id == "profile"

    def test_missing_certificate_reported(self):
        """The company step requires a selected certificate."""
        state = start(EMPLOYER_SIGNUP)
        state = update_section(state, "company", VALID_COMPANY)
        errors = go_next(state).validation_errors
        assert errors[CERTIFICATE_SECTION] == (
            "Please upload your business registration certificate"
        )


class TestGoPrevious:
    """Tests for go_previous."""

    def test_noop_on_first_step(self):
        """Going back from the first step changes nothing."""
        state = start(_definition())
        assert go_previous(state) is state

    def test_moves_back_without_validating(self):
        """Going back never validates, even when data is now invalid."""
        state = start(_definition(), {"name": "Ada", "extra": True, "notes": ""})
        state = go_next(state)
        state = update_section(state, "name", "")
        result = go_previous(state)
        assert result.current_index == 0
        assert result.validation_errors == {}


class TestProgress:
    """Tests for progress_fraction."""

    def test_first_step_fraction(self):
        """Progress counts the current step."""
        state = start(_definition())
        assert progress_fraction(state) == pytest.approx(0.5)

    def test_last_step_is_complete(self):
        """The last step reports full progress."""
        state = start(_definition(), {"name": "Ada", "extra": True, "notes": ""})
        state = go_next(go_next(state))
        assert progress_fraction(state) == pytest.approx(1.0)

    def test_fraction_tracks_visibility(self):
        """Hiding steps changes the denominator."""
        state = update_section(start(CANDIDATE_PROFILE), "industry", "other")
        assert progress_fraction(state) == pytest.approx(1 / 6)


class TestSkipToFirstDataStep:
    """Tests for skip_to_first_data_step."""

    def test_jumps_to_named_step(self):
        """Candidate wizard lands on basic info."""
        state = start(CANDIDATE_PROFILE)
        result = skip_to_first_data_step(state)
        assert result.current_step.id == "basic"

    def test_defaults_to_second_step(self):
        """Without a named step the wizard moves to the second step."""
        state = start(_definition())
        assert skip_to_first_data_step(state).current_index == 1


# =============================================================================
# Form data
# =============================================================================


class TestUpdateSection:
    """Tests for update_section."""

    def test_merges_mapping_sections(self):
        """A mapping value is merged into an existing mapping section."""
        state = start(CANDIDATE_PROFILE)
        state = update_section(state, "basicInfo", {"firstName": "Sam"})
        basic = state.form_state["basicInfo"]
        assert basic["firstName"] == "Sam"
        assert basic["experienceLevel"] == "entry"

    def test_replaces_lists(self):
        """List values replace the section."""
        state = start(CANDIDATE_PROFILE)
        state = update_section(state, "awards", [{"natureOfAward": "Gold"}])
        state = update_section(state, "awards", [])
        assert state.form_state["awards"] == []

    def test_clamps_index_when_steps_disappear(self):
        """Hiding steps ahead of the index clamps it into range."""
        state = start(CANDIDATE_PROFILE, {"industry": "banking"})
        state = replace(state, current_index=8)
        assert state.current_step.id == "summary"
        state = update_section(state, "industry", "other")
        assert state.current_index == 5
        assert state.current_step.id == "summary"

    def test_verifications_section_is_protected(self, signup_state):
        """Verdicts can only be written by verification."""
        with pytest.raises(ValueError, match="verification"):
            update_section(signup_state, "verifications", {"company": PASSED_VERDICT})

    def test_replacing_file_drops_verdict(self, signup_state):
        """A new certificate invalidates the stored verdict."""
        state = record_verification(signup_state, "company", PASSED_VERDICT)
        state = update_section(state, CERTIFICATE_SECTION, make_file(filename="new.pdf"))
        assert verification_for(state, "company") is None
        assert not is_verified(state, "company")

    def test_editing_compared_fields_keeps_verdict(self, signup_state):
        """Changing the company name does not re-verify."""
        state = record_verification(signup_state, "company", PASSED_VERDICT)
        state = update_section(state, "company", {"companyName": "Other Name"})
        assert is_verified(state, "company")

    def test_clears_errors_of_edited_step_only(self, signup_state):
        """Editing a section clears errors owned by its step."""
        state = replace(
            signup_state,
            validation_errors={
                "company.companyName": "Too short",
                "employer.email": "Invalid",
            },
        )
        state = update_section(state, "company", {"companyName": "Acme Two"})
        assert state.validation_errors == {"employer.email": "Invalid"}


class TestVerification:
    """Tests for record_verification."""

    def test_records_verdict(self, signup_state):
        """The verdict is stored per step."""
        state = record_verification(signup_state, "company", PASSED_VERDICT)
        assert verification_for(state, "company")["confidence"] == "high"
        assert is_verified(state, "company")

    def test_rejects_step_without_verification(self, signup_state):
        """Only verification steps accept verdicts."""
        with pytest.raises(ValueError, match="does not require verification"):
            record_verification(signup_state, "profile", PASSED_VERDICT)

    def test_passing_verdict_clears_file_error(self, signup_state):
        """A passing verdict removes the unverified-document error."""
        state = go_next(signup_state)
        assert CERTIFICATE_SECTION in state.validation_errors
        state = record_verification(state, "company", PASSED_VERDICT)
        assert CERTIFICATE_SECTION not in state.validation_errors


# =============================================================================
# Error routing
# =============================================================================


class TestReturnToFieldErrors:
    """Tests for return_to_field_errors."""

    def test_moves_to_owning_step(self, verified_signup_state):
        """A duplicate registration number routes back to the company step."""
        errors = {"businessRegistrationNo": "duplicate"}
        state = return_to_field_errors(verified_signup_state, errors)
        assert state.current_step.id == "company"
        assert state.validation_errors == errors

    def test_picks_earliest_owning_step(self, verified_signup_state):
        """With errors on several steps the earliest one wins."""
        state = return_to_field_errors(
            verified_signup_state,
            {"email": "taken", "company.companyName": "bad"},
        )
        assert state.current_step.id == "company"

    def test_unknown_field_stays_put(self, verified_signup_state):
        """Errors no step owns keep the current position."""
        state = return_to_field_errors(verified_signup_state, {"mystery": "bad"})
        assert state.current_index == 1
        assert state.validation_errors == {"mystery": "bad"}


class TestValidateAll:
    """Tests for validate_all."""

    def test_collects_errors_from_every_visible_step(self):
        """Every visible step is validated."""
        state = update_section(start(CANDIDATE_PROFILE), "industry", "other")
        errors = validate_all(state)
        assert "basicInfo.firstName" in errors
        assert "professionalSummary" in errors

    def test_empty_when_complete(self, verified_signup_state):
        """A complete, verified signup has no errors."""
        assert validate_all(verified_signup_state) == {}

    def test_hidden_step_errors_ignored(self):
        """Invalid data on hidden steps does not block."""
        state = start(CANDIDATE_PROFILE)
        state = update_section(state, "industry", "other")
        state = update_section(state, "basicInfo", VALID_BASIC_INFO)
        state = update_section(state, "projects", [{"projectName": ""}])
        state = update_section(state, "professionalSummary", VALID_SUMMARY)
        assert validate_all(state) == {}


class TestSeed:
    """Tests for seed."""

    def test_seed_fills_defaults_and_record(self):
        """Seeding starts from a blank form and overlays the record."""
        state = seed(
            EMPLOYER_SIGNUP,
            {"company": VALID_COMPANY, "employer": {"firstName": "Jo"}},
        )
        assert state.current_index == 0
        assert state.form_state["company"]["companyName"] == "Acme Holdings"
        assert state.form_state[CERTIFICATE_SECTION] is None
