"""Conversion of pydantic validation errors into domain field errors."""

from collections.abc import Iterable

from pydantic import ValidationError

from travel_crm.domain.exceptions import FieldError


def _loc_to_path(loc: Iterable[int | str]) -> str:
    return ".".join(str(part) for part in loc)


def field_errors_from(exc: ValidationError, prefix: str = "") -> list[FieldError]:
    """Return every error of exc as {field, message}, optionally under a dotted prefix.

    Root-level errors (empty loc, e.g. "input should be a dict") are reported
    against the prefix itself, or "<root>" when there is none.
    """
    errors: list[FieldError] = []
    for err in exc.errors():
        path = _loc_to_path(err["loc"])
        if prefix:
            path = f"{prefix}.{path}" if path else prefix
        errors.append({"field": path or "<root>", "message": err["msg"]})
    return errors


def prefix_field_errors(errors: Iterable[FieldError], prefix: str) -> list[FieldError]:
    """Re-root already converted errors under prefix (e.g. 'actions.2.parameters')."""
    out: list[FieldError] = []
    for err in errors:
        field = err["field"]
        path = prefix if field == "<root>" else f"{prefix}.{field}"
        out.append({"field": path, "message": err["message"]})
    return out
