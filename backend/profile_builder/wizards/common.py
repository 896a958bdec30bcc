"""Validation helpers shared by the wizard definitions.

Step validators return a field path -> message map. Paths use the same
camelCase dotted form as persistence errors ("company.companyName",
"workExperiences.0.jobTitle"), so both route to steps the same way.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from profile_builder.schemas.common import field_errors_from_validation
from profile_builder.services.step_sequencer import FileHandle


def validate_section(
    form_state: Mapping[str, Any], section: str, model: type[BaseModel]
) -> dict[str, str]:
    """Validate a mapping section against a schema."""
    try:
        model.model_validate(form_state.get(section) or {})
    except PydanticValidationError as exc:
        return field_errors_from_validation(exc, prefix=section)
    return {}


def validate_items(
    form_state: Mapping[str, Any], section: str, model: type[BaseModel]
) -> dict[str, str]:
    """Validate every item of a list section; an empty list is valid."""
    errors: dict[str, str] = {}
    for index, item in enumerate(form_state.get(section) or []):
        try:
            model.model_validate(item)
        except PydanticValidationError as exc:
            errors.update(field_errors_from_validation(exc, prefix=f"{section}.{index}"))
    return errors


def selected_file(form_state: Mapping[str, Any], section: str) -> FileHandle | None:
    """The file handle held in a section, ignoring anything else."""
    value = form_state.get(section)
    return value if isinstance(value, FileHandle) else None


def without_files(section: Mapping[str, Any] | None) -> dict[str, Any]:
    """Copy of a mapping section with any file handles left out."""
    return {
        key: value
        for key, value in (section or {}).items()
        if not isinstance(value, FileHandle)
    }
