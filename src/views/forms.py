"""Validation of edit-form input, done locally before any network call."""

from __future__ import annotations

import math

from src.core.types import ConstantCard, Severity


class FormValidationError(ValueError):
    """User input rejected; ``field`` names the offending form field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


def parse_optional_number(text: str | None, field: str, label: str) -> float | None:
    """Blank means "not set"; anything else must be a finite number."""
    if text is None or not text.strip():
        return None
    try:
        value = float(text.strip())
    except ValueError:
        raise FormValidationError(field, f"{label} must be a valid number") from None
    if not math.isfinite(value):
        raise FormValidationError(field, f"{label} must be a valid number")
    return value


def parse_severity(level: str | None) -> Severity:
    if not level:
        return Severity.MEDIUM
    try:
        return Severity(level.strip().lower())
    except ValueError:
        raise FormValidationError("alert_level", f"Unknown alert level {level!r}") from None


def validate_alert_form(
    upper_text: str | None,
    lower_text: str | None,
    level: str | None = None,
) -> tuple[float | None, float | None, Severity]:
    """Return ``(upper, lower, severity)`` from raw form fields."""
    upper = parse_optional_number(upper_text, "upper_threshold", "Upper threshold")
    lower = parse_optional_number(lower_text, "lower_threshold", "Lower threshold")
    if upper is None and lower is None:
        raise FormValidationError("upper_threshold", "Set an upper or a lower threshold")
    return upper, lower, parse_severity(level)


def _optional_text(text: str | None) -> str | None:
    if text is None:
        return None
    stripped = text.strip()
    return stripped or None


def validate_constant_form(
    name: str | None,
    value_text: str | None,
    unit: str | None = None,
    description: str | None = None,
    color: str | None = None,
) -> ConstantCard:
    """Build a ConstantCard; name is required and value must be numeric."""
    value = parse_optional_number(value_text, "value", "Value")
    if value is None:
        raise FormValidationError("value", "Value must be a valid number")
    cleaned_name = _optional_text(name)
    if cleaned_name is None:
        raise FormValidationError("name", "Name is required")
    return ConstantCard(
        name=cleaned_name,
        value=value,
        unit=_optional_text(unit),
        description=_optional_text(description),
        color=_optional_text(color),
    )
