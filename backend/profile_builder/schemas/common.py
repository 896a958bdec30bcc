"""Shared base model and validation helpers for wizard record schemas.

Wizard payloads travel as camelCase JSON (the shape the web client edits),
while the Python side stays snake_case. Field errors are always reported
with the camelCase path so they can be routed back to the owning step.
"""

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

_VALUE_ERROR_PREFIX = "Value error, "


class CamelModel(BaseModel):
    """Base for wizard schemas: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def field_errors_from_validation(
    exc: PydanticValidationError,
    prefix: str | None = None,
) -> dict[str, str]:
    """Flatten a pydantic ValidationError into a field path -> message map.

    Only the first message per field is kept, matching how a form shows one
    error under each input.

    Args:
        exc: The pydantic validation error.
        prefix: Optional path prefix (e.g. "workExperiences").

    Returns:
        Dict mapping dotted field paths to human-readable messages.
    """
    errors: dict[str, str] = {}
    for error in exc.errors():
        parts = [str(part) for part in error["loc"]]
        if prefix:
            parts.insert(0, prefix)
        path = ".".join(parts) or (prefix or "__root__")
        message = error["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX) :]
        errors.setdefault(path, message)
    return errors


def blank_to_none(value: object) -> object:
    """Treat empty or whitespace-only strings as missing."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
