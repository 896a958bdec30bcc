"""Step sequencer for multi-step profile wizards.

A wizard is a WizardDefinition (ordered steps with visibility predicates
and per-step validation) plus a WizardState value that holds the form data
and the current position. Every operation here is a pure transition: it
takes a WizardState and returns a new one, so transitions can be tested in
isolation and a host can keep or discard them freely.

The effective step list is never stored. It is recomputed from form state
on every access, which keeps it consistent with whatever the user last
edited (e.g. switching industry toggles whole steps in or out).

Invisible steps keep their form data. Visibility is a projection, so a
user who switches industry back finds their entries intact.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import structlog

from profile_builder.services.wizard_errors import OutOfRangeError

if TYPE_CHECKING:
    from profile_builder.services.submission_saga import UploadPlan

logger = structlog.get_logger()

FormState = dict[str, Any]
"""Section name -> record, list of sub-records, scalar, or FileHandle."""

StepValidator = Callable[[Mapping[str, Any]], dict[str, str]]
VisibilityPredicate = Callable[[Mapping[str, Any]], bool]

VERIFICATIONS_SECTION = "verifications"
"""Form state section holding verification verdicts keyed by step id."""

_UNVERIFIED_MESSAGE = "Document must be verified before continuing"


# =============================================================================
# Definitions
# =============================================================================


@dataclass(frozen=True)
class FileHandle:
    """A file selected in the wizard but not yet uploaded.

    Held in form state until the submission saga uploads it and substitutes
    the returned URL into the record.

    Attributes:
        data: Raw file bytes.
        filename: Sanitized client filename (for logs and display).
        mime_type: MIME type detected from magic bytes.
        extension: Storage extension matching the detected type.
    """

    data: bytes = field(repr=False)
    filename: str
    mime_type: str
    extension: str

    @property
    def size(self) -> int:
        return len(self.data)


def always_visible(_form_state: Mapping[str, Any]) -> bool:
    """Visibility predicate for unconditional steps."""
    return True


def no_validation(_form_state: Mapping[str, Any]) -> dict[str, str]:
    """Validator for steps without local rules."""
    return {}


@dataclass(frozen=True)
class StepSpec:
    """One screen of a wizard.

    Attributes:
        id: Stable step identifier (e.g., "company").
        title: Display title.
        fields: Section names and field names this step owns. Used to route
            persistence field errors back to the step.
        visible: Predicate over form state deciding whether the step shows.
        validate: Returns a field -> message map for the step's local rules.
        requires_verification: The step's document must carry a passing
            verdict before the wizard may leave the step or submit.
        verification_file: Section holding the document that gets verified.
            Replacing it discards the stored verdict.
    """

    id: str
    title: str
    fields: tuple[str, ...] = ()
    visible: VisibilityPredicate = always_visible
    validate: StepValidator = no_validation
    requires_verification: bool = False
    verification_file: str | None = None


@dataclass(frozen=True)
class WizardDefinition:
    """Ordered steps plus the hooks the submission saga needs.

    Attributes:
        kind: Wizard identifier (e.g., "employer_signup").
        steps: All steps in display order, visible or not.
        initial_form_state: Factory for a blank form state.
        build_upload_plan: Builds the UploadPlan from form state and the
            owner id (used as a storage folder by some wizards).
        assemble_record: Builds the persistence record from form state,
            uploaded URLs keyed by section, and the owner id.
        record_to_form_state: Inverse of assemble_record for edit flows.
        editable_sections: Sections a client may write directly.
        file_sections: File sections -> upload category ("certificate",
            "image"); written only by selecting a file.
        first_data_step: Step shown after CV extraction or "skip".
    """

    kind: str
    steps: tuple[StepSpec, ...]
    initial_form_state: Callable[[], FormState]
    build_upload_plan: Callable[[Mapping[str, Any], str | None], "UploadPlan"]
    assemble_record: Callable[[Mapping[str, Any], Mapping[str, str], str | None], dict]
    record_to_form_state: Callable[[Mapping[str, Any]], FormState]
    editable_sections: frozenset[str] = frozenset()
    file_sections: Mapping[str, str] = field(default_factory=dict)
    first_data_step: str | None = None

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError(f"Wizard '{self.kind}' has no steps")
        ids = [step.id for step in self.steps]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Wizard '{self.kind}' has duplicate step ids")
        # Keeps the effective list non-empty for every form state
        if self.steps[0].visible is not always_visible:
            raise ValueError(f"First step of wizard '{self.kind}' must always be visible")

    def effective_steps(self, form_state: Mapping[str, Any]) -> tuple[StepSpec, ...]:
        """Visible steps for the given form state, in definition order."""
        return tuple(step for step in self.steps if step.visible(form_state))

    def step(self, step_id: str) -> StepSpec:
        """Look up a step by id.

        Raises:
            KeyError: If no step has this id.
        """
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(step_id)

    def field_step(self, field_path: str) -> str | None:
        """Find the step that owns a field.

        Path segments are tried left to right, skipping list indices, so
        "company.businessRegistrationNo", "businessRegistrationNo" and
        "workExperiences.0.jobTitle" all resolve.

        Args:
            field_path: Dotted field path from a validation error.

        Returns:
            Owning step id, or None if no step declares the field.
        """
        for segment in field_path.split("."):
            if segment.isdigit():
                continue
            for step in self.steps:
                if segment in step.fields:
                    return step.id
        return None


# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class WizardState:
    """Position and data of one in-progress wizard.

    Treat as immutable: every transition returns a new instance with a new
    form_state dict.

    Attributes:
        definition: The wizard being run.
        form_state: Accumulated form data.
        current_index: Position in the effective step list.
        validation_errors: Field errors shown on the current step.
    """

    definition: WizardDefinition
    form_state: Mapping[str, Any]
    current_index: int = 0
    validation_errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def effective_steps(self) -> tuple[StepSpec, ...]:
        return self.definition.effective_steps(self.form_state)

    @property
    def current_step(self) -> StepSpec:
        return self.effective_steps[self.current_index]

    @property
    def is_last_step(self) -> bool:
        return self.current_index >= len(self.effective_steps) - 1


def _clamp(index: int, step_count: int) -> int:
    return max(0, min(index, step_count - 1))


def start(
    definition: WizardDefinition, form_state: Mapping[str, Any] | None = None
) -> WizardState:
    """Create a wizard positioned on its first step.

    Args:
        definition: Wizard to run.
        form_state: Optional initial data; defaults to a blank form.

    Returns:
        New WizardState.
    """
    data = dict(form_state) if form_state is not None else definition.initial_form_state()
    return WizardState(definition=definition, form_state=data)


def seed(definition: WizardDefinition, record: Mapping[str, Any]) -> WizardState:
    """Create a wizard pre-filled from an existing persisted record.

    Args:
        definition: Wizard to run.
        record: Record in the shape assemble_record produces.

    Returns:
        New WizardState on the first step.
    """
    form_state = definition.initial_form_state()
    form_state.update(definition.record_to_form_state(record))
    return WizardState(definition=definition, form_state=form_state)


# =============================================================================
# Navigation
# =============================================================================


def _step_errors(state: WizardState, step: StepSpec) -> dict[str, str]:
    errors = dict(step.validate(state.form_state))
    if step.requires_verification and not is_verified(state, step.id):
        errors.setdefault(step.verification_file or step.id, _UNVERIFIED_MESSAGE)
    return errors


def go_next(state: WizardState) -> WizardState:
    """Advance one step if the current step validates.

    Args:
        state: Current wizard state.

    Returns:
        On success, the state one step further with errors cleared. On
        validation failure, the same position with validation_errors set.

    Raises:
        OutOfRangeError: If already on the last effective step.
    """
    steps = state.effective_steps
    if state.current_index >= len(steps) - 1:
        raise OutOfRangeError()

    step = steps[state.current_index]
    errors = _step_errors(state, step)
    if errors:
        logger.info(
            "wizard_step_invalid",
            wizard=state.definition.kind,
            step=step.id,
            fields=sorted(errors),
        )
        return replace(state, validation_errors=errors)

    return replace(state, current_index=state.current_index + 1, validation_errors={})


def go_previous(state: WizardState) -> WizardState:
    """Move back one step. Never validates and never fails."""
    if state.current_index == 0:
        return state
    return replace(state, current_index=state.current_index - 1, validation_errors={})


def progress_fraction(state: WizardState) -> float:
    """Display progress in (0, 1]."""
    return (state.current_index + 1) / len(state.effective_steps)


def skip_to_first_data_step(state: WizardState) -> WizardState:
    """Jump to the first data-entry step (after CV extraction or "skip CV")."""
    steps = state.effective_steps
    target = state.definition.first_data_step
    index = next(
        (i for i, step in enumerate(steps) if step.id == target),
        _clamp(1, len(steps)),
    )
    return replace(state, current_index=index, validation_errors={})


def return_to_field_errors(
    state: WizardState, field_errors: Mapping[str, str]
) -> WizardState:
    """Move to the earliest visible step owning one of the errored fields.

    Used after the persistence endpoint rejects fields, so the user lands
    where the error can be fixed. Stays put when no step owns any field.

    Args:
        state: Current wizard state.
        field_errors: Field path -> message from persistence.

    Returns:
        State positioned on the owning step with the errors attached.
    """
    owners = {state.definition.field_step(path) for path in field_errors}
    index = next(
        (i for i, step in enumerate(state.effective_steps) if step.id in owners),
        state.current_index,
    )
    return replace(state, current_index=index, validation_errors=dict(field_errors))


def validate_all(state: WizardState) -> dict[str, str]:
    """Run local validation for every visible step.

    Returns:
        Combined field -> message map (empty when everything passes).
    """
    errors: dict[str, str] = {}
    for step in state.effective_steps:
        for path, message in _step_errors(state, step).items():
            errors.setdefault(path, message)
    return errors


# =============================================================================
# Form data
# =============================================================================


def update_section(state: WizardState, name: str, value: Any) -> WizardState:
    """Write one form state section and re-derive visibility.

    Mapping values are merged into an existing mapping section; anything
    else (lists, scalars, file handles, None) replaces it. Errors for the
    edited step are cleared. Replacing a verified document drops its
    verdict. Does not validate.

    Args:
        state: Current wizard state.
        name: Section name.
        value: New section value.

    Returns:
        Updated state, with current_index clamped if steps disappeared.

    Raises:
        ValueError: If name is a protected section.
    """
    if name == VERIFICATIONS_SECTION:
        raise ValueError("Verification results can only be recorded by verification")

    form_state = dict(state.form_state)
    existing = form_state.get(name)
    if isinstance(existing, Mapping) and isinstance(value, Mapping):
        form_state[name] = {**existing, **value}
    else:
        form_state[name] = value

    definition = state.definition
    for step in definition.steps:
        if step.verification_file == name:
            verdicts = dict(form_state.get(VERIFICATIONS_SECTION) or {})
            if verdicts.pop(step.id, None) is not None:
                logger.info(
                    "wizard_verification_cleared",
                    wizard=definition.kind,
                    step=step.id,
                )
            form_state[VERIFICATIONS_SECTION] = verdicts

    owner = definition.field_step(name)
    errors = {
        path: message
        for path, message in state.validation_errors.items()
        if owner is None or definition.field_step(path) != owner
    }

    step_count = len(definition.effective_steps(form_state))
    return replace(
        state,
        form_state=form_state,
        current_index=_clamp(state.current_index, step_count),
        validation_errors=errors,
    )


def record_verification(
    state: WizardState, step_id: str, verdict: Mapping[str, Any]
) -> WizardState:
    """Store a verification verdict for a step.

    The verdict is kept until the verified document is replaced. Editing the
    compared fields afterwards does not re-verify.

    Args:
        state: Current wizard state.
        step_id: Step that requires verification.
        verdict: Serialized verdict; must contain a boolean "verified".

    Returns:
        Updated state.

    Raises:
        ValueError: If the step does not require verification.
    """
    step = state.definition.step(step_id)
    if not step.requires_verification:
        raise ValueError(f"Step '{step_id}' does not require verification")

    form_state = dict(state.form_state)
    verdicts = dict(form_state.get(VERIFICATIONS_SECTION) or {})
    verdicts[step_id] = dict(verdict)
    form_state[VERIFICATIONS_SECTION] = verdicts

    errors = dict(state.validation_errors)
    if verdict.get("verified") is True and step.verification_file:
        errors.pop(step.verification_file, None)
    return replace(state, form_state=form_state, validation_errors=errors)


def verification_for(state: WizardState, step_id: str) -> Mapping[str, Any] | None:
    """Stored verdict for a step, if any."""
    verdicts = state.form_state.get(VERIFICATIONS_SECTION) or {}
    return verdicts.get(step_id)


def is_verified(state: WizardState, step_id: str) -> bool:
    """Whether the step's stored verdict passed."""
    verdict = verification_for(state, step_id)
    return verdict is not None and verdict.get("verified") is True
