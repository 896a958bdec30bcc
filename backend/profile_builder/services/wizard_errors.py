"""Wizard failure taxonomy.

Every failure a wizard host can see is one of these. The submission saga
converts collaborator exceptions (storage, persistence) into them at the
stage boundary, so raw transport errors never reach the host.

    WizardError
    ├── LocalValidationError        step fields invalid; blocks going forward
    ├── OutOfRangeError             go_next on the last step
    ├── PreconditionError           verification missing; blocks the saga
    ├── UploadError                 object store failed mid-pipeline
    ├── PersistenceValidationError  endpoint rejected fields after upload
    └── PersistenceFatalError       endpoint failed unexpectedly
"""

from collections.abc import Mapping


class WizardError(Exception):
    """Base class for wizard failures.

    Attributes:
        message: User-facing message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class LocalValidationError(WizardError):
    """Current step's fields failed validation. Nothing was side-effected."""

    def __init__(
        self,
        field_errors: Mapping[str, str],
        message: str = "Please fix the highlighted fields",
    ) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors)


class OutOfRangeError(WizardError):
    """Tried to advance past the last step; the submit entry point applies."""

    def __init__(self, message: str = "Already on the last step; submit instead") -> None:
        super().__init__(message)


class PreconditionError(WizardError):
    """A step that requires external verification has no passing verdict.

    Attributes:
        step_id: The step whose verification is missing or failed.
    """

    def __init__(self, step_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Step '{step_id}' must be verified before submitting")
        self.step_id = step_id


class UploadError(WizardError):
    """An upload failed; earlier uploads were compensated.

    Attributes:
        stage: 1-based position of the failed upload in the upload plan.
        section: Form state section whose file failed to upload.
    """

    def __init__(self, stage: int, section: str, message: str | None = None) -> None:
        super().__init__(
            message or "File upload failed. Please re-select your files and try again."
        )
        self.stage = stage
        self.section = section


class PersistenceValidationError(WizardError):
    """Persistence endpoint rejected specific fields; uploads were compensated."""

    def __init__(
        self,
        field_errors: Mapping[str, str],
        message: str = "Some details were rejected. Please review and resubmit.",
    ) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors)


class PersistenceFatalError(WizardError):
    """Persistence failed unexpectedly; uploads were compensated."""

    def __init__(
        self, message: str = "Something went wrong saving your profile. Please try again."
    ) -> None:
        super().__init__(message)
