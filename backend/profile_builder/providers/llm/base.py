"""Abstract base class and types for LLM providers.

LLMProvider abstract interface with TaskType enum, message types,
inline document attachments and JSON mode.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from profile_builder.providers.config import ProviderConfig


class TaskType(Enum):
    """Task types for model routing.

    WHY ENUM: Explicit task types prevent typos and enable IDE autocomplete.
    Adapters map these to specific models.
    """

    CERTIFICATE_VERIFICATION = "certificate_verification"
    CV_EXTRACTION = "cv_extraction"


@dataclass(frozen=True)
class DocumentAttachment:
    """Binary document sent inline alongside a message.

    Attributes:
        data: Raw file bytes.
        mime_type: Detected MIME type (e.g., "application/pdf").
    """

    data: bytes
    mime_type: str


@dataclass
class LLMMessage:
    """Provider-agnostic message format.

    Attributes:
        role: Message role ("system", "user", "assistant").
        content: Text content.
        attachment: Optional inline document (user messages only).
    """

    role: str
    content: str | None = None
    attachment: DocumentAttachment | None = None


@dataclass
class LLMResponse:
    """Provider-agnostic response format.

    Attributes:
        content: Text response (None if the model returned nothing).
        model: Actual model used (for logging).
        input_tokens: Number of input tokens used.
        output_tokens: Number of output tokens generated.
        finish_reason: Why generation stopped ("stop", "max_tokens", ...).
        latency_ms: Response time in milliseconds.
    """

    content: str | None
    model: str
    input_tokens: int
    output_tokens: int
    finish_reason: str
    latency_ms: float


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    WHY ABSTRACT CLASS:
    - Enforces consistent interface across providers
    - Makes testing via mock implementations trivial
    """

    def __init__(self, config: "ProviderConfig") -> None:
        """Initialize with provider configuration.

        Args:
            config: Provider configuration including API keys and defaults.
        """
        self.config = config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider identifier (e.g., 'gemini')."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        task: TaskType,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Conversation as list of LLMMessage. User messages may
                carry an inline DocumentAttachment.
            task: Task type for model routing.
            max_tokens: Override default max tokens.
            temperature: Override default temperature.
            json_mode: If True, enforce JSON output format.

        Returns:
            LLMResponse with content.

        Raises:
            ProviderError: On API failure.
        """
        ...

    @abstractmethod
    def get_model_for_task(self, task: TaskType) -> str:
        """Return the model identifier for a given task.

        Args:
            task: The task type to get the model for.

        Returns:
            Model identifier string (e.g., "gemini-2.5-flash").
        """
        ...
