"""Wizard sessions API router.

Drives the three profile wizards over HTTP. A session holds one wizard's
state server-side; the client edits sections, moves between steps,
attaches files and finally submits.

Endpoints:
- POST   /{kind}/sessions                                  start (or resume editing)
- GET    /{kind}/sessions/{session_id}                     current state
- PATCH  /{kind}/sessions/{session_id}/sections/{name}     edit a section
- POST   /{kind}/sessions/{session_id}/next                validate and advance
- POST   /{kind}/sessions/{session_id}/previous            go back
- POST   /{kind}/sessions/{session_id}/files/{section}     select a file
- DELETE /{kind}/sessions/{session_id}/files/{section}     clear a file
- POST   /{kind}/sessions/{session_id}/verify/{step_id}    verify a document
- POST   /{kind}/sessions/{session_id}/extract             pre-fill from a CV
- POST   /{kind}/sessions/{session_id}/skip-extraction     skip the CV
- POST   /{kind}/sessions/{session_id}/submit              upload + persist
"""

from collections.abc import Mapping
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, File, UploadFile, status

from profile_builder.api.deps import (
    ExtractionService,
    PersistenceEndpoints,
    SessionStore,
    Storage,
    VerificationService,
)
from profile_builder.core.config import settings
from profile_builder.core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from profile_builder.core.file_validation import (
    FileCategory,
    max_size_bytes,
    read_file_with_size_limit,
    sanitize_filename,
    validate_file_content,
)
from profile_builder.core.responses import DataResponse
from profile_builder.schemas.wizard_session import (
    CreateSessionRequest,
    FileSummary,
    SectionUpdate,
    StepView,
    SubmissionResponse,
    VerificationResponse,
    WizardSessionView,
)
from profile_builder.services.cv_extraction_service import (
    _PARSE_FAILURE_MSG,
    SAFE_ERROR_MESSAGES,
)
from profile_builder.services.extraction_merge import apply_extraction
from profile_builder.services.step_sequencer import (
    FileHandle,
    WizardDefinition,
    WizardState,
    go_next,
    go_previous,
    progress_fraction,
    record_verification,
    return_to_field_errors,
    seed,
    skip_to_first_data_step,
    start,
    update_section,
    validate_all,
)
from profile_builder.services.submission_saga import SubmissionSaga
from profile_builder.services.wizard_errors import (
    LocalValidationError,
    PersistenceValidationError,
    PreconditionError,
    UploadError,
)
from profile_builder.services.wizard_session_store import WizardSession
from profile_builder.wizards import VERIFICATION_INPUTS, get_wizard
from profile_builder.wizards.candidate_profile import KIND as CANDIDATE_PROFILE
from profile_builder.wizards.employer_profile import KIND as EMPLOYER_PROFILE

logger = structlog.get_logger()

router = APIRouter()

_OWNER_REQUIRED = frozenset({CANDIDATE_PROFILE, EMPLOYER_PROFILE})
"""Wizards whose record belongs to an existing user or employer."""


# =============================================================================
# Helpers
# =============================================================================


def _definition(kind: str) -> WizardDefinition:
    try:
        return get_wizard(kind)
    except KeyError:
        raise NotFoundError("Wizard", kind) from None


def _session(store: SessionStore, kind: str, session_id: str) -> WizardSession:
    session = store.get(session_id)
    if session is None or session.state.definition.kind != kind:
        raise NotFoundError("Wizard session", session_id)
    return session


def _serialize(value: Any) -> Any:
    if isinstance(value, FileHandle):
        return FileSummary(
            filename=value.filename, mime_type=value.mime_type, size=value.size
        ).model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


def _view(session: WizardSession) -> WizardSessionView:
    state = session.state
    current = state.current_step
    return WizardSessionView(
        session_id=session.id,
        kind=state.definition.kind,
        steps=[StepView(id=step.id, title=step.title) for step in state.effective_steps],
        current_index=state.current_index,
        current_step=StepView(id=current.id, title=current.title),
        progress=progress_fraction(state),
        is_last_step=state.is_last_step,
        form_state=_serialize(state.form_state),
        validation_errors=dict(state.validation_errors),
    )


def _clear_files(state: WizardState) -> WizardState:
    for section in state.definition.file_sections:
        if state.form_state.get(section) is not None:
            state = update_section(state, section, None)
    return state


# =============================================================================
# Session lifecycle
# =============================================================================


@router.post("/{kind}/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    kind: str,
    store: SessionStore,
    endpoints: PersistenceEndpoints,
    body: CreateSessionRequest | None = None,
) -> DataResponse[WizardSessionView]:
    """Start a wizard, seeded from the stored record when one exists.

    Raises:
        NotFoundError: Unknown wizard, or no employer to complete.
        ValidationError: The wizard needs an owner and none was given.
    """
    definition = _definition(kind)
    owner_id = str(body.owner_id) if body and body.owner_id else None

    if kind in _OWNER_REQUIRED and owner_id is None:
        raise ValidationError(
            message="ownerId is required for this wizard",
            details=[{"field": "ownerId", "error": "REQUIRED"}],
        )

    record = await endpoints[kind].load(owner_id) if owner_id else None
    if record is not None:
        state = seed(definition, record)
    elif kind == EMPLOYER_PROFILE:
        raise NotFoundError("Employer", owner_id)
    else:
        state = start(definition)

    session = store.create(state, owner_id=owner_id)
    logger.info(
        "wizard_session_created",
        wizard=kind,
        session_id=session.id,
        seeded=record is not None,
    )
    return DataResponse(data=_view(session))


@router.get("/{kind}/sessions/{session_id}")
async def get_session(
    kind: str, session_id: str, store: SessionStore
) -> DataResponse[WizardSessionView]:
    """Current wizard state."""
    return DataResponse(data=_view(_session(store, kind, session_id)))


# =============================================================================
# Form data + navigation
# =============================================================================


@router.patch("/{kind}/sessions/{session_id}/sections/{name}")
async def update_form_section(
    kind: str,
    session_id: str,
    name: str,
    body: SectionUpdate,
    store: SessionStore,
) -> DataResponse[WizardSessionView]:
    """Write one form section. Mapping values merge; anything else replaces.

    Raises:
        ValidationError: If the section is not client-editable, or a mapping
            value carries keys the section does not have.
    """
    session = _session(store, kind, session_id)
    definition = session.state.definition
    if name not in definition.editable_sections:
        raise ValidationError(
            message=f"Section '{name}' cannot be edited directly",
            details=[{"field": name, "error": "NOT_EDITABLE"}],
        )
    template = definition.initial_form_state().get(name)
    if isinstance(template, Mapping) and isinstance(body.value, Mapping):
        unknown = sorted(set(body.value) - set(template))
        if unknown:
            raise ValidationError(
                message=f"Section '{name}' has no field(s): {', '.join(unknown)}",
                details=[
                    {"field": f"{name}.{key}", "error": "UNKNOWN_FIELD"} for key in unknown
                ],
            )
    store.save(session, update_section(session.state, name, body.value))
    return DataResponse(data=_view(session))


@router.post("/{kind}/sessions/{session_id}/next")
async def next_step(
    kind: str, session_id: str, store: SessionStore
) -> DataResponse[WizardSessionView]:
    """Validate the current step and advance.

    Raises:
        LocalValidationError: The step has invalid fields (400).
        OutOfRangeError: Already on the last step (422).
    """
    session = _session(store, kind, session_id)
    state = go_next(session.state)
    store.save(session, state)
    if state.validation_errors:
        raise LocalValidationError(state.validation_errors)
    return DataResponse(data=_view(session))


@router.post("/{kind}/sessions/{session_id}/previous")
async def previous_step(
    kind: str, session_id: str, store: SessionStore
) -> DataResponse[WizardSessionView]:
    """Go back one step. Never blocked."""
    session = _session(store, kind, session_id)
    store.save(session, go_previous(session.state))
    return DataResponse(data=_view(session))


# =============================================================================
# Files
# =============================================================================


@router.post("/{kind}/sessions/{session_id}/files/{section}")
async def select_file(
    kind: str,
    session_id: str,
    section: str,
    file: Annotated[UploadFile, File(...)],
    store: SessionStore,
) -> DataResponse[WizardSessionView]:
    """Attach a file to a file section. Nothing is uploaded until submit.

    Replacing a verified document discards its verification.

    Raises:
        ValidationError: Unknown file section, too large, empty, or the
            content does not match the allowed types.
    """
    session = _session(store, kind, session_id)
    category = session.state.definition.file_sections.get(section)
    if category is None:
        raise ValidationError(
            message=f"'{section}' does not accept files",
            details=[{"field": section, "error": "NOT_A_FILE_SECTION"}],
        )

    content = await read_file_with_size_limit(
        file, max_size_bytes(settings.upload_max_size_mb)
    )
    filename = sanitize_filename(file.filename or "unknown")
    mime_type, extension = validate_file_content(
        content, filename, FileCategory(category)
    )
    handle = FileHandle(
        data=content, filename=filename, mime_type=mime_type, extension=extension
    )
    store.save(session, update_section(session.state, section, handle))
    return DataResponse(data=_view(session))


@router.delete("/{kind}/sessions/{session_id}/files/{section}")
async def clear_file(
    kind: str, session_id: str, section: str, store: SessionStore
) -> DataResponse[WizardSessionView]:
    """Remove a selected file."""
    session = _session(store, kind, session_id)
    if section not in session.state.definition.file_sections:
        raise ValidationError(
            message=f"'{section}' does not accept files",
            details=[{"field": section, "error": "NOT_A_FILE_SECTION"}],
        )
    store.save(session, update_section(session.state, section, None))
    return DataResponse(data=_view(session))


# =============================================================================
# Verification + extraction
# =============================================================================


@router.post("/{kind}/sessions/{session_id}/verify/{step_id}")
async def verify_step(
    kind: str,
    session_id: str,
    step_id: str,
    store: SessionStore,
    service: VerificationService,
) -> DataResponse[VerificationResponse]:
    """Verify a step's document against the values entered on the step.

    A failed verdict is still stored and returned; the user fixes the
    inputs or attaches a clearer document and verifies again.

    Raises:
        NotFoundError: Unknown step.
        InvalidStateError: The step has nothing to verify.
        ValidationError: No document attached or declared values missing.
    """
    session = _session(store, kind, session_id)
    definition = session.state.definition
    try:
        step = definition.step(step_id)
    except KeyError:
        raise NotFoundError("Step", step_id) from None
    comparison = VERIFICATION_INPUTS.get((kind, step_id))
    if not step.requires_verification or comparison is None or not step.verification_file:
        raise InvalidStateError(f"Step '{step_id}' has nothing to verify")

    handle = session.state.form_state.get(step.verification_file)
    if not isinstance(handle, FileHandle):
        raise ValidationError(
            message="Please upload the document before verifying",
            details=[{"field": step.verification_file, "error": "FILE_REQUIRED"}],
        )
    company_name, registration_number = comparison(session.state.form_state)
    if not company_name.strip() or not registration_number.strip():
        raise ValidationError(
            message="Enter the company name and registration number before verifying",
            details=[{"field": step_id, "error": "COMPARISON_FIELDS_REQUIRED"}],
        )

    verdict = await service.verify(
        handle.data, handle.mime_type, company_name, registration_number
    )

    # The document may have been replaced while the model was reading it
    if session.state.form_state.get(step.verification_file) is handle:
        store.save(
            session,
            record_verification(
                session.state, step_id, verdict.model_dump(by_alias=True)
            ),
        )
    return DataResponse(data=VerificationResponse(verification=verdict, session=_view(session)))


@router.post("/{kind}/sessions/{session_id}/extract")
async def extract_cv(
    kind: str,
    session_id: str,
    file: Annotated[UploadFile, File(...)],
    store: SessionStore,
    service: ExtractionService,
) -> DataResponse[WizardSessionView]:
    """Pre-fill the wizard from a CV and jump to the first data step.

    Extracted lists replace the wizard's lists wholesale, so a CV is only
    taken on the first step, before any of them can have been filled in.

    Raises:
        InvalidStateError: The wizard does not take a CV, or the session
            has moved past its first step.
        ValidationError: Bad file, or nothing could be extracted.
    """
    session = _session(store, kind, session_id)
    definition = session.state.definition
    if definition.first_data_step is None:
        raise InvalidStateError("This wizard does not accept a CV")
    if session.state.current_step.id != definition.steps[0].id:
        raise InvalidStateError("A CV can only be uploaded on the first step")

    content = await read_file_with_size_limit(file, max_size_bytes(settings.cv_max_size_mb))
    filename = sanitize_filename(file.filename or "unknown")
    mime_type, _extension = validate_file_content(content, filename, FileCategory.CV)

    try:
        result = await service.extract(content, mime_type)
    except ValueError as exc:
        msg = str(exc)
        if msg not in SAFE_ERROR_MESSAGES:
            logger.warning("cv_extraction_unexpected_error", error=msg[:200])
            msg = _PARSE_FAILURE_MSG
        raise ValidationError(message=msg) from exc

    store.save(session, apply_extraction(session.state, result))
    return DataResponse(data=_view(session))


@router.post("/{kind}/sessions/{session_id}/skip-extraction")
async def skip_extraction(
    kind: str, session_id: str, store: SessionStore
) -> DataResponse[WizardSessionView]:
    """Skip the CV and go to the first data step."""
    session = _session(store, kind, session_id)
    if session.state.definition.first_data_step is None:
        raise InvalidStateError("This wizard does not accept a CV")
    store.save(session, skip_to_first_data_step(session.state))
    return DataResponse(data=_view(session))


# =============================================================================
# Submission
# =============================================================================


@router.post("/{kind}/sessions/{session_id}/submit")
async def submit_wizard(
    kind: str,
    session_id: str,
    store: SessionStore,
    storage: Storage,
    endpoints: PersistenceEndpoints,
) -> DataResponse[SubmissionResponse]:
    """Upload the selected files and persist the record.

    On success the session is discarded. On failure the session moves to
    the step that can fix the problem; after an upload failure every
    selected file must be selected again.

    Raises:
        InvalidStateError: Not on the last step.
        LocalValidationError: Some step no longer validates (400).
        ConflictError: A submission for this session is already running.
        WizardError: The submission failed (see the error handlers).
    """
    session = _session(store, kind, session_id)
    state = session.state
    if not state.is_last_step:
        raise InvalidStateError("Complete every step before submitting")

    errors = validate_all(state)
    if errors:
        store.save(session, return_to_field_errors(state, errors))
        raise LocalValidationError(errors)

    if session.submit_lock.locked():
        raise ConflictError(
            code="SUBMISSION_IN_PROGRESS",
            message="This wizard is already being submitted",
        )
    async with session.submit_lock:
        saga = SubmissionSaga(storage, endpoints[kind])
        result = await saga.submit(state, owner_id=session.owner_id)

    if result.succeeded:
        store.discard(session.id)
        return DataResponse(
            data=SubmissionResponse(
                record_id=result.record_id, uploaded_urls=list(result.uploaded_urls)
            )
        )

    # Edits made while the saga ran are kept
    state = session.state
    error = result.error
    if isinstance(error, PersistenceValidationError):
        state = return_to_field_errors(state, error.field_errors)
    elif isinstance(error, PreconditionError):
        step = state.definition.step(error.step_id)
        state = return_to_field_errors(
            state, {step.verification_file or step.id: error.message}
        )
    elif isinstance(error, UploadError):
        state = _clear_files(state)
    store.save(session, state)
    raise error
