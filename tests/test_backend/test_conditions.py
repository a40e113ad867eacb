"""Tests for the alert-rule condition tokenizer and parser."""

from __future__ import annotations

import pytest

from src.backend.conditions import (
    ConditionParser,
    ParsedCondition,
    TokenKind,
    format_condition,
    parse_condition,
    tokenize,
)
from src.backend.exceptions import ConditionSyntaxError


class TestTokenize:
    def test_monitor_reference(self) -> None:
        tokens = tokenize("${monitor:cpu_load} >= 90")
        kinds = [t.kind for t in tokens]
        assert kinds == [TokenKind.MONITOR_REF, TokenKind.OP, TokenKind.NUMBER, TokenKind.EOF]
        assert tokens[0].text == "cpu_load"
        assert tokens[1].text == ">="

    def test_keywords_are_case_insensitive(self) -> None:
        kinds = [t.kind for t in tokenize("NOT value > 1 AND value < 2 or x")]
        assert TokenKind.NOT in kinds
        assert TokenKind.AND in kinds
        assert TokenKind.OR in kinds

    def test_unexpected_character(self) -> None:
        with pytest.raises(ConditionSyntaxError) as exc_info:
            tokenize("value > 1 # comment")
        assert exc_info.value.position == 10


class TestParseCondition:
    def test_upper_bound_for_monitor(self) -> None:
        assert parse_condition("${monitor:m1} > 100") == ParsedCondition("m1", 100.0, None)

    def test_lower_bound_on_placeholder(self) -> None:
        assert parse_condition("value < 5") == ParsedCondition(None, None, 5.0)

    def test_free_text_is_none(self) -> None:
        assert parse_condition("foo bar") is None

    def test_empty_is_none(self) -> None:
        assert parse_condition("") is None
        assert parse_condition("   ") is None
        assert parse_condition(None) is None

    def test_both_bounds(self) -> None:
        parsed = parse_condition("${monitor:m1} > 90 || ${monitor:m1} < 10")
        assert parsed == ParsedCondition("m1", 90.0, 10.0)

    def test_inclusive_operators(self) -> None:
        parsed = parse_condition("value >= 100 && value <= 0")
        assert parsed == ParsedCondition(None, 100.0, 0.0)

    def test_literal_on_left_flips_operator(self) -> None:
        assert parse_condition("100 < value") == ParsedCondition(None, 100.0, None)
        assert parse_condition("5 > ${monitor:m2}") == ParsedCondition("m2", None, 5.0)

    def test_first_bound_of_each_kind_wins(self) -> None:
        parsed = parse_condition("value > 10 || value > 20 || value < 1 || value < 0")
        assert parsed == ParsedCondition(None, 10.0, 1.0)

    def test_first_monitor_reference_wins(self) -> None:
        parsed = parse_condition("${monitor:a} > 1 && ${monitor:b} < 0")
        assert parsed is not None
        assert parsed.monitor_id == "a"

    def test_parentheses_and_negation(self) -> None:
        parsed = parse_condition("!(${monitor:m1} > 50) and (value < -2.5)")
        assert parsed == ParsedCondition("m1", None, -2.5)

    def test_negated_comparison_is_not_a_threshold(self) -> None:
        assert parse_condition("!(value > 100)") is None
        assert parse_condition("not ${monitor:m1} < 5") is None

    def test_bounds_after_negated_group_still_recorded(self) -> None:
        parsed = parse_condition("!(value < 0) || value > 100")
        assert parsed == ParsedCondition(None, 100.0, None)

    def test_equality_carries_no_threshold(self) -> None:
        assert parse_condition("${monitor:m1} == 3") is None

    def test_comparison_between_monitors_ignored(self) -> None:
        assert parse_condition("${monitor:a} > ${monitor:b}") is None

    def test_unbalanced_parenthesis_is_none(self) -> None:
        assert parse_condition("(value > 1") is None

    def test_trailing_operator_is_none(self) -> None:
        assert parse_condition("value >") is None

    def test_scientific_notation(self) -> None:
        assert parse_condition("value > 1e3") == ParsedCondition(None, 1000.0, None)


class TestConditionParser:
    def test_syntax_error_reports_position(self) -> None:
        with pytest.raises(ConditionSyntaxError) as exc_info:
            ConditionParser("value > 1 value").parse()
        assert exc_info.value.position == 10


class TestFormatCondition:
    def test_monitor_upper_and_lower(self) -> None:
        assert format_condition("m1", 100.0, 5.5) == "${monitor:m1} > 100 || ${monitor:m1} < 5.5"

    def test_placeholder_when_no_monitor(self) -> None:
        assert format_condition(None, lower=0.0) == "value < 0"

    def test_requires_a_threshold(self) -> None:
        with pytest.raises(ValueError):
            format_condition("m1")

    def test_parses_back(self) -> None:
        text = format_condition("disk", 80.0, 2.0)
        assert parse_condition(text) == ParsedCondition("disk", 80.0, 2.0)
