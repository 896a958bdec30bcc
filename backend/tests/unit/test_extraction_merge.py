"""Tests for merging CV extraction results into candidate form state.

Covers:
- scalar fields only overwrite when the extraction returned a value
- list sections are replaced only when non-empty
- item mapping defaults and education status normalization
- apply_extraction positions the wizard on the first data step
"""

from profile_builder.schemas.cv_extraction import CvExtractionResult
from profile_builder.services.extraction_merge import apply_extraction, merge_extraction
from profile_builder.services.step_sequencer import start, update_section
from profile_builder.wizards import CANDIDATE_PROFILE


def _result(**fields) -> CvExtractionResult:
    return CvExtractionResult.model_validate(fields)


# =============================================================================
# Scalars
# =============================================================================


class TestScalarMerge:
    """Tests for basic info and summary fields."""

    def test_present_values_are_patched(self):
        """Returned scalars land in basicInfo under camelCase keys."""
        patch = merge_extraction(
            CANDIDATE_PROFILE.initial_form_state(),
            _result(firstName="Sam", currentPosition="Engineer", yearsOfExperience=4),
        )
        assert patch["basicInfo"] == {
            "firstName": "Sam",
            "currentPosition": "Engineer",
            "yearsOfExperience": 4.0,
        }

    def test_missing_and_blank_values_are_skipped(self):
        """Empty strings never overwrite what the user typed."""
        patch = merge_extraction(
            CANDIDATE_PROFILE.initial_form_state(),
            _result(firstName="  ", email=None),
        )
        assert "basicInfo" not in patch

    def test_zero_years_counts_as_value(self):
        """Zero years of experience is a real value."""
        patch = merge_extraction(
            CANDIDATE_PROFILE.initial_form_state(), _result(yearsOfExperience=0)
        )
        assert patch["basicInfo"] == {"yearsOfExperience": 0.0}

    def test_summary_patched_when_present(self):
        """A returned summary replaces the form's summary."""
        patch = merge_extraction(
            CANDIDATE_PROFILE.initial_form_state(),
            _result(professionalSummary="Seasoned engineer."),
        )
        assert patch["professionalSummary"] == "Seasoned engineer."

    def test_existing_basic_info_keys_survive_apply(self):
        """Merged basic info keeps keys the extraction did not return."""
        state = start(CANDIDATE_PROFILE)
        state = update_section(state, "basicInfo", {"phone": "0771234567"})
        state = apply_extraction(state, _result(firstName="Sam"))
        assert state.form_state["basicInfo"]["phone"] == "0771234567"
        assert state.form_state["basicInfo"]["firstName"] == "Sam"


# =============================================================================
# Lists
# =============================================================================


class TestListMerge:
    """Tests for list section replacement."""

    def test_empty_work_history_keeps_list_and_education_replaced(self):
        """Zero work items leave the list alone; one education replaces it."""
        form_state = CANDIDATE_PROFILE.initial_form_state()
        patch = merge_extraction(
            form_state,
            _result(
                workExperiences=[],
                educations=[{"degreeDiploma": "BSc Computing", "institution": "UoM"}],
            ),
        )
        assert "workExperiences" not in patch
        assert patch["educations"] == [
            {
                "educationType": "academic",
                "degreeDiploma": "BSc Computing",
                "institution": "UoM",
                "status": "incomplete",
            }
        ]

    def test_non_empty_list_replaces_existing_entries(self):
        """Extracted items replace the current list wholesale."""
        state = start(CANDIDATE_PROFILE)
        state = update_section(
            state, "workExperiences", [{"jobTitle": "Old", "company": "Old Co"}]
        )
        state = apply_extraction(
            state,
            _result(workExperiences=[{"jobTitle": "New", "company": "New Co"}]),
        )
        experiences = state.form_state["workExperiences"]
        assert len(experiences) == 1
        assert experiences[0]["jobTitle"] == "New"

    def test_existing_list_kept_when_extraction_has_none(self):
        """A missing list section leaves user entries untouched."""
        state = start(CANDIDATE_PROFILE)
        awards = [{"natureOfAward": "Dean's List"}]
        state = update_section(state, "awards", awards)
        state = apply_extraction(state, _result(firstName="Sam"))
        assert state.form_state["awards"] == awards

    def test_work_experience_defaults(self):
        """Fields a CV does not carry get the wizard's defaults."""
        patch = merge_extraction(
            {},
            _result(workExperiences=[{"jobTitle": "Analyst", "isCurrent": True}]),
        )
        item = patch["workExperiences"][0]
        assert item["company"] == ""
        assert item["employmentType"] == "full_time"
        assert item["locationType"] == "onsite"
        assert item["isCurrent"] is True

    def test_certificates_and_projects_mapped(self):
        """IT sections are mapped onto the wizard item shape."""
        patch = merge_extraction(
            {},
            _result(
                certificates=[{"certificateName": "AWS SAA", "issuingAuthority": "AWS"}],
                projects=[{"projectName": "Ledger", "demoUrl": "https://x.dev"}],
            ),
        )
        assert patch["certificates"][0]["certificateName"] == "AWS SAA"
        assert patch["projects"][0] == {
            "projectName": "Ledger",
            "description": None,
            "demoUrl": "https://x.dev",
            "isCurrent": False,
        }

    def test_skills_are_not_merged(self):
        """Extracted free-text skills have no wizard section."""
        patch = merge_extraction({}, _result(skills=["Python", "SQL"]))
        assert patch == {}


class TestEducationStatus:
    """Tests for education status normalization."""

    def test_known_status_kept(self):
        patch = merge_extraction(
            {}, _result(educations=[{"degreeDiploma": "BSc", "status": "First_Class"}])
        )
        assert patch["educations"][0]["status"] == "first_class"

    def test_completed_maps_to_general(self):
        patch = merge_extraction(
            {}, _result(educations=[{"degreeDiploma": "BSc", "status": "complete"}])
        )
        assert patch["educations"][0]["status"] == "general"

    def test_unknown_status_is_incomplete(self):
        patch = merge_extraction(
            {}, _result(educations=[{"degreeDiploma": "BSc", "status": "ongoing"}])
        )
        assert patch["educations"][0]["status"] == "incomplete"


# =============================================================================
# Positioning
# =============================================================================


class TestApplyExtraction:
    """Tests for apply_extraction."""

    def test_lands_on_basic_info(self):
        """After merging the wizard shows the first data step."""
        state = apply_extraction(start(CANDIDATE_PROFILE), _result(firstName="Sam"))
        assert state.current_step.id == "basic"

    def test_empty_extraction_changes_nothing_but_position(self):
        """An extraction with nothing usable only moves forward."""
        before = start(CANDIDATE_PROFILE)
        after = apply_extraction(before, _result())
        assert after.form_state == before.form_state
        assert after.current_step.id == "basic"

    def test_does_not_mutate_input(self):
        """The original state is left untouched."""
        before = start(CANDIDATE_PROFILE)
        apply_extraction(before, _result(workExperiences=[{"jobTitle": "Dev"}]))
        assert before.form_state["workExperiences"] == []
