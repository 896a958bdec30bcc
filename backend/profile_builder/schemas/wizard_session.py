"""Wizard session API schemas.

Request bodies and response views for the wizard session endpoints. Form
state is returned as-is except for selected files, which are summarised
(name, type, size) instead of echoing their bytes.
"""

import uuid
from typing import Any, Literal

from pydantic import Field

from profile_builder.schemas.common import CamelModel
from profile_builder.schemas.verification import VerificationVerdict

# =============================================================================
# Requests
# =============================================================================


class CreateSessionRequest(CamelModel):
    """Start a wizard.

    Attributes:
        owner_id: User (candidate wizard) or employer (profile completion)
            the record belongs to. Edit flows seed from the stored record.
    """

    owner_id: uuid.UUID | None = None


class SectionUpdate(CamelModel):
    """New value for one form state section."""

    value: Any = None


# =============================================================================
# Responses
# =============================================================================


class StepView(CamelModel):
    id: str
    title: str


class FileSummary(CamelModel):
    """A selected, not yet uploaded file."""

    filename: str
    mime_type: str
    size: int


class WizardSessionView(CamelModel):
    """Everything a client needs to render the current step."""

    session_id: str
    kind: str
    steps: list[StepView]
    current_index: int
    current_step: StepView
    progress: float = Field(gt=0, le=1)
    is_last_step: bool
    form_state: dict[str, Any]
    validation_errors: dict[str, str] = Field(default_factory=dict)


class VerificationResponse(CamelModel):
    verification: VerificationVerdict
    session: WizardSessionView


class SubmissionResponse(CamelModel):
    """Successful submission; the session is gone."""

    outcome: Literal["success"] = "success"
    record_id: str | None = None
    uploaded_urls: list[str] = Field(default_factory=list)
