"""Mock LLM provider for testing.

MockLLMProvider enables unit testing without hitting real LLM APIs.
"""

from typing import Any

from profile_builder.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    TaskType,
)


class MockLLMProvider(LLMProvider):
    """Mock provider for testing.

    WHY MOCK:
    - Unit tests shouldn't hit real APIs (cost, speed, flakiness)
    - Enables deterministic testing
    - Can simulate error conditions

    Attributes:
        responses: Pre-configured responses keyed by TaskType.
        errors: Pre-configured exceptions keyed by TaskType, raised instead
            of returning a response.
        calls: Record of all method invocations for test assertions.
        last_task: The most recent TaskType used in a call.
    """

    @property
    def provider_name(self) -> str:
        """Return 'mock' for testing."""
        return "mock"

    def __init__(self, responses: dict[TaskType, str] | None = None) -> None:
        """Initialize mock provider with optional pre-configured responses.

        Args:
            responses: Dict mapping TaskType to response content. If not provided
                for a task, returns a default "Mock response for {task}" string.
        """
        # Don't call super().__init__() - we don't need a config for mock
        self.responses: dict[TaskType, str] = dict(responses) if responses else {}
        self.errors: dict[TaskType, Exception] = {}
        self.calls: list[dict[str, Any]] = []
        self.last_task: TaskType | None = None

    def set_response(self, task: TaskType, content: str) -> None:
        """Set or update the response for a specific task type.

        Args:
            task: The TaskType to configure.
            content: The response content to return for this task.
        """
        self.responses[task] = content

    def set_error(self, task: TaskType, error: Exception) -> None:
        """Make calls for a task type raise the given exception.

        Args:
            task: The TaskType to configure.
            error: Exception raised by complete() for this task.
        """
        self.errors[task] = error

    async def complete(
        self,
        messages: list[LLMMessage],
        task: TaskType,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a mock completion.

        Records the call for test assertions and returns a pre-configured
        or default response.

        Returns:
            LLMResponse with configured or default content.

        Raises:
            Exception: The error configured via set_error() for this task.
        """
        self.calls.append(
            {
                "method": "complete",
                "messages": messages,
                "task": task,
                "kwargs": {
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "json_mode": json_mode,
                },
            }
        )
        self.last_task = task

        if task in self.errors:
            raise self.errors[task]

        content = self.responses.get(task, f"Mock response for {task.value}")

        return LLMResponse(
            content=content,
            model="mock-model",
            input_tokens=100,
            output_tokens=50,
            finish_reason="stop",
            latency_ms=10,
        )

    def get_model_for_task(self, _task: TaskType) -> str:
        """Return 'mock-model' for any task."""
        return "mock-model"

    def assert_called_with_task(self, task: TaskType) -> None:
        """Test helper to verify a task was called.

        Args:
            task: The TaskType that should have been called.

        Raises:
            AssertionError: If the task was not called.
        """
        tasks_called = [c["task"] for c in self.calls]
        assert task in tasks_called, f"Expected {task}, got {tasks_called}"
