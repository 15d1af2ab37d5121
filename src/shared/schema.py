"""JSON Schema checks for free-form configuration blocks."""

from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError


def _describe(error: ValidationError) -> str:
    if error.absolute_path:
        location = ".".join(str(p) for p in error.absolute_path)
        return f"{location}: {error.message}"
    return error.message


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages ordered by location)
    """
    if not schema:
        return True, []

    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))

    return not errors, [_describe(e) for e in errors]
