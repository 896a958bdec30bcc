"""Submission saga: upload files, then persist one record, or undo the uploads.

Stages run strictly in order and each blocks the next:

1. Precondition gate: every visible step that requires verification must
   hold a passing verdict, and every required upload must have a file.
   Purely local; the verification service is not called again.
2. Uploads: each UploadStep in plan order. The first failure stops the
   stage; later uploads are not attempted.
3. Persist: the record is assembled with uploaded URLs substituted for file
   handles and sent to the persistence endpoint exactly once.
4. Compensation: after any failure in stage 2 or 3, every upload that
   already succeeded is deleted. Each delete is attempted once; failures
   are logged and never replace the original outcome.

Nothing is retried here. A retry is the user submitting again, which
starts over at stage 1 and re-uploads everything.

Cancellation (the client goes away mid-submit) runs the same compensation,
shielded from the cancellation, then re-raises. A persist call that has
started is shielded and awaited; if it committed, the uploads belong to the
record and are kept. Only an upload whose response never arrived can still
leave an orphaned object.
"""

import asyncio
import enum
import functools
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from profile_builder.services.step_sequencer import (
    FileHandle,
    WizardState,
    is_verified,
)
from profile_builder.services.wizard_errors import (
    PersistenceFatalError,
    PersistenceValidationError,
    PreconditionError,
    UploadError,
    WizardError,
)

if TYPE_CHECKING:
    from profile_builder.services.artifact_store import ArtifactStore
    from profile_builder.services.profile_persistence import PersistenceEndpoint

logger = structlog.get_logger()

_LOG_EXCERPT_LENGTH = 200
"""Collaborator error messages are cut to this length before logging."""


def _excerpt(exc: BaseException) -> str:
    return str(exc)[:_LOG_EXCERPT_LENGTH]


# =============================================================================
# Upload plan
# =============================================================================


@dataclass(frozen=True)
class UploadStep:
    """One file to upload.

    Attributes:
        section: Form state section holding the file; the returned URL is
            substituted for it when the record is assembled.
        artifact: The file, or None for a required upload with no file
            selected (refused by the precondition gate).
        bucket: Target storage bucket.
        folder: Optional folder inside the bucket.
        required: Whether submission is impossible without this file.
    """

    section: str
    artifact: FileHandle | None
    bucket: str
    folder: str | None = None
    required: bool = False


@dataclass(frozen=True)
class UploadPlan:
    """Ordered uploads, built once from form state at submission time."""

    steps: tuple[UploadStep, ...] = ()

    def __iter__(self) -> Iterator[UploadStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


# =============================================================================
# Result
# =============================================================================


class SagaOutcome(enum.Enum):
    """Terminal state of one submission attempt."""

    SUCCESS = "success"
    VALIDATION_FAILED = "validation_failed"
    UPLOAD_FAILED = "upload_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    ABORTED = "aborted"  # precondition gate refused; nothing was side-effected


@dataclass(frozen=True)
class SagaResult:
    """Outcome of a submission plus upload bookkeeping.

    Attributes:
        outcome: Terminal state.
        uploaded_urls: Every URL the store returned, in upload order,
            whether or not it was later compensated.
        compensated_urls: URLs whose compensating delete succeeded.
        record_id: Identity of the persisted record (SUCCESS only).
        error: The wizard error describing any failure.
    """

    outcome: SagaOutcome
    uploaded_urls: tuple[str, ...] = ()
    compensated_urls: tuple[str, ...] = ()
    record_id: str | None = None
    error: WizardError | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is SagaOutcome.SUCCESS

    @property
    def field_errors(self) -> dict[str, str]:
        if isinstance(self.error, PersistenceValidationError):
            return dict(self.error.field_errors)
        return {}

    @property
    def failed_stage(self) -> int | None:
        if isinstance(self.error, UploadError):
            return self.error.stage
        return None

    @property
    def orphaned_urls(self) -> tuple[str, ...]:
        """Uploads matched by neither a persisted record nor a delete."""
        if self.succeeded:
            return ()
        return tuple(u for u in self.uploaded_urls if u not in self.compensated_urls)


# =============================================================================
# Compensation
# =============================================================================


class CompensationStack:
    """Undo actions pushed after each irreversible step.

    unwind() runs them newest first, each exactly once. A failing action is
    logged and skipped so the remaining ones still run.
    """

    def __init__(self) -> None:
        self._actions: list[tuple[str, Callable[[], Awaitable[object]]]] = []

    def __len__(self) -> int:
        return len(self._actions)

    def push(self, label: str, action: Callable[[], Awaitable[object]]) -> None:
        """Register an undo action.

        Args:
            label: Identifies the side effect (the uploaded URL).
            action: Zero-argument coroutine function performing the undo.
        """
        self._actions.append((label, action))

    def discard(self) -> None:
        """Forget all actions; the side effects are now committed."""
        self._actions.clear()

    async def unwind(self) -> list[str]:
        """Run and remove every action, newest first.

        Returns:
            Labels of actions that completed without raising.
        """
        undone: list[str] = []
        while self._actions:
            label, action = self._actions.pop()
            logger.info("saga_compensation_start", target=label)
            try:
                await action()
            except Exception as exc:
                logger.warning(
                    "saga_compensation_failed",
                    target=label,
                    error=_excerpt(exc),
                    error_type=type(exc).__name__,
                )
                continue
            undone.append(label)
        return undone


# =============================================================================
# Saga
# =============================================================================


class SubmissionSaga:
    """Runs the upload -> persist pipeline for one wizard submission.

    Args:
        store: Artifact store used for uploads and compensating deletes.
        endpoint: Persistence endpoint for the wizard's record type.
    """

    def __init__(self, store: "ArtifactStore", endpoint: "PersistenceEndpoint") -> None:
        self.store = store
        self.endpoint = endpoint

    async def submit(self, state: WizardState, owner_id: str | None = None) -> SagaResult:
        """Turn a completed wizard into one persisted record.

        Args:
            state: Wizard state on its final step.
            owner_id: Owner of the record (user or employer id); wizards use
                it as a storage folder and record key.

        Returns:
            SagaResult. Collaborator exceptions never escape; they are
            reported through the outcome and error.

        Raises:
            asyncio.CancelledError: Re-raised when the submission is cancelled.
                A persist call already under way is awaited first, and uploads
                are compensated unless it committed.
        """
        definition = state.definition
        log = logger.bind(wizard=definition.kind)

        plan = definition.build_upload_plan(state.form_state, owner_id)
        refusal = _check_preconditions(state, plan)
        if refusal is not None:
            log.info("saga_refused", step=refusal.step_id)
            return SagaResult(outcome=SagaOutcome.ABORTED, error=refusal)

        log.info("saga_start", uploads=len(plan))
        stack = CompensationStack()
        uploaded: list[str] = []

        try:
            # Stage 2: uploads
            urls_by_section: dict[str, str] = {}
            for stage, step in enumerate(plan, start=1):
                if step.artifact is None:
                    continue
                try:
                    url = await self.store.upload(step.artifact, step.bucket, step.folder)
                except Exception as exc:
                    log.warning(
                        "saga_upload_failed",
                        stage=stage,
                        section=step.section,
                        bucket=step.bucket,
                        error=_excerpt(exc),
                        error_type=type(exc).__name__,
                    )
                    return await self._fail(
                        stack,
                        uploaded,
                        SagaOutcome.UPLOAD_FAILED,
                        UploadError(stage=stage, section=step.section),
                    )
                uploaded.append(url)
                urls_by_section[step.section] = url
                stack.push(url, functools.partial(self.store.delete, url))
                log.info("saga_upload_complete", stage=stage, section=step.section)

            # Stage 3: persist; once started it runs to completion
            persist: asyncio.Task[PersistResult] | None = None
            try:
                record = definition.assemble_record(
                    state.form_state, urls_by_section, owner_id
                )
                persist = asyncio.ensure_future(self.endpoint.submit(record))
                result = await asyncio.shield(persist)
            except asyncio.CancelledError:
                if persist is not None and await _committed(persist):
                    # The record points at the uploads; they must stay
                    stack.discard()
                    log.warning("saga_cancelled_after_commit", uploads=len(uploaded))
                raise
            except Exception as exc:
                log.error(
                    "saga_persist_failed",
                    error=_excerpt(exc),
                    error_type=type(exc).__name__,
                )
                return await self._fail(
                    stack, uploaded, SagaOutcome.PERSISTENCE_FAILED, PersistenceFatalError()
                )

            if not result.success:
                log.info("saga_persist_rejected", fields=sorted(result.field_errors))
                return await self._fail(
                    stack,
                    uploaded,
                    SagaOutcome.VALIDATION_FAILED,
                    PersistenceValidationError(result.field_errors),
                )
        except asyncio.CancelledError:
            log.warning("saga_cancelled", uploaded=len(uploaded))
            await asyncio.shield(stack.unwind())
            raise

        stack.discard()
        log.info("saga_complete", record_id=result.record_id, uploads=len(uploaded))
        return SagaResult(
            outcome=SagaOutcome.SUCCESS,
            uploaded_urls=tuple(uploaded),
            record_id=result.record_id,
        )

    async def _fail(
        self,
        stack: CompensationStack,
        uploaded: list[str],
        outcome: SagaOutcome,
        error: WizardError,
    ) -> SagaResult:
        compensated = await stack.unwind() if stack else []
        if compensated or uploaded:
            logger.info(
                "saga_compensated",
                uploaded=len(uploaded),
                deleted=len(compensated),
            )
        return SagaResult(
            outcome=outcome,
            uploaded_urls=tuple(uploaded),
            compensated_urls=tuple(compensated),
            error=error,
        )


async def _committed(persist: "asyncio.Task[PersistResult]") -> bool:
    """Wait out a persist call whose caller was cancelled.

    Returns:
        True if the endpoint reported success.

    Raises:
        asyncio.CancelledError: If the caller is cancelled again while waiting.
    """
    try:
        result = await persist
    except asyncio.CancelledError:
        if not persist.done():
            raise
        return False
    except Exception as exc:
        logger.error(
            "saga_persist_failed", error=_excerpt(exc), error_type=type(exc).__name__
        )
        return False
    return result.success


def _check_preconditions(state: WizardState, plan: UploadPlan) -> PreconditionError | None:
    for step in state.effective_steps:
        if step.requires_verification and not is_verified(state, step.id):
            return PreconditionError(step.id)
    for upload in plan:
        if upload.required and upload.artifact is None:
            owner = state.definition.field_step(upload.section) or upload.section
            return PreconditionError(owner, "A required file has not been selected")
    return None


@dataclass(frozen=True)
class PersistResult:
    """What a persistence endpoint returns for a handled submission.

    Attributes:
        success: Whether the record was written.
        record_id: Identity of the written record.
        field_errors: Field path -> message when rejected.
    """

    success: bool
    record_id: str | None = None
    field_errors: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def ok(cls, record_id: str) -> "PersistResult":
        return cls(success=True, record_id=record_id)

    @classmethod
    def rejected(cls, field_errors: Mapping[str, str]) -> "PersistResult":
        return cls(success=False, field_errors=dict(field_errors))
