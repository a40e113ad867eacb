"""Tests for local form validation."""

from __future__ import annotations

import pytest

from src.core.types import Severity
from src.views.forms import (
    FormValidationError,
    parse_optional_number,
    parse_severity,
    validate_alert_form,
    validate_constant_form,
)


class TestParseOptionalNumber:
    def test_blank_is_unset(self) -> None:
        assert parse_optional_number("  ", "upper_threshold", "Upper threshold") is None
        assert parse_optional_number(None, "upper_threshold", "Upper threshold") is None

    def test_number(self) -> None:
        assert parse_optional_number(" -2.5 ", "lower_threshold", "Lower threshold") == -2.5

    @pytest.mark.parametrize("text", ["abc", "nan", "inf", "1,000"])
    def test_rejects_invalid(self, text: str) -> None:
        with pytest.raises(FormValidationError) as exc_info:
            parse_optional_number(text, "upper_threshold", "Upper threshold")
        assert exc_info.value.field == "upper_threshold"
        assert "valid number" in exc_info.value.message


class TestParseSeverity:
    def test_default_medium(self) -> None:
        assert parse_severity(None) == Severity.MEDIUM

    def test_case_insensitive(self) -> None:
        assert parse_severity(" CRITICAL ") == Severity.CRITICAL

    def test_unknown_rejected(self) -> None:
        with pytest.raises(FormValidationError) as exc_info:
            parse_severity("apocalyptic")
        assert exc_info.value.field == "alert_level"


class TestValidateAlertForm:
    def test_upper_only(self) -> None:
        assert validate_alert_form("100", "", "high") == (100.0, None, Severity.HIGH)

    def test_zero_is_a_threshold(self) -> None:
        upper, lower, _ = validate_alert_form(None, "0")
        assert upper is None
        assert lower == 0.0

    def test_requires_one_threshold(self) -> None:
        with pytest.raises(FormValidationError) as exc_info:
            validate_alert_form("", " ")
        assert exc_info.value.field == "upper_threshold"


class TestValidateConstantForm:
    def test_builds_card(self) -> None:
        card = validate_constant_form(" Budget ", "1000", " USD ", "", None)
        assert card.name == "Budget"
        assert card.value == 1000.0
        assert card.unit == "USD"
        assert card.description is None

    def test_value_required(self) -> None:
        with pytest.raises(FormValidationError) as exc_info:
            validate_constant_form("Budget", "")
        assert exc_info.value.field == "value"

    def test_name_required(self) -> None:
        with pytest.raises(FormValidationError) as exc_info:
            validate_constant_form("  ", "5")
        assert exc_info.value.field == "name"
