"""Tests for breach evaluation."""

from __future__ import annotations

import pytest

from src.alerts.evaluator import (
    build_alert_items,
    count_active,
    evaluate,
    index_configs,
    is_breached,
)
from src.core.types import AlertThresholdConfig, Monitor


def _make_monitor(monitor_id: str, value: float | None) -> Monitor:
    return Monitor(id=monitor_id, display_name=monitor_id.upper(), current_value=value)


def _make_config(monitor_id: str, upper: float | None = None, lower: float | None = None,
                 severity: str = "medium") -> AlertThresholdConfig:
    return AlertThresholdConfig(
        monitor_id=monitor_id, upper_threshold=upper, lower_threshold=lower, severity=severity,
    )


class TestIsBreached:
    @pytest.mark.parametrize(
        ("value", "upper", "expected"),
        [(101.0, 100.0, True), (100.0, 100.0, False), (99.0, 100.0, False)],
    )
    def test_upper_is_strict(self, value: float, upper: float, expected: bool) -> None:
        assert is_breached(value, upper, None) is expected

    def test_lower_is_strict(self) -> None:
        assert is_breached(4.9, None, 5.0) is True
        assert is_breached(5.0, None, 5.0) is False

    def test_zero_lower_threshold_is_present(self) -> None:
        assert is_breached(-1.0, None, 0.0) is True

    def test_zero_upper_threshold_is_present(self) -> None:
        assert is_breached(0.5, 0.0, None) is True

    def test_missing_value_never_breaches(self) -> None:
        assert is_breached(None, 0.0, 0.0) is False
        assert is_breached(None, -1e9, 1e9) is False

    def test_no_thresholds(self) -> None:
        assert is_breached(1e9) is False

    def test_inside_band(self) -> None:
        assert is_breached(50.0, 100.0, 0.0) is False


class TestEvaluate:
    def test_no_config(self) -> None:
        assert evaluate(_make_monitor("m1", 1e9), None) is False

    def test_breached(self) -> None:
        assert evaluate(_make_monitor("m1", 150.0), _make_config("m1", upper=100.0)) is True


class TestIndexConfigs:
    def test_last_one_wins(self) -> None:
        first = _make_config("m1", upper=1.0)
        second = _make_config("m1", upper=2.0)
        assert index_configs([first, second])["m1"] is second


class TestBuildAlertItems:
    def test_pairs_in_fetch_order(self) -> None:
        monitors = [_make_monitor("m2", 5.0), _make_monitor("m1", 150.0), _make_monitor("m3", 1.0)]
        configs = [_make_config("m1", upper=100.0), _make_config("m2", lower=10.0)]

        items = build_alert_items(monitors, configs)

        assert [i.monitor.id for i in items] == ["m2", "m1"]
        assert all(i.is_active for i in items)

    def test_config_without_monitor_skipped(self) -> None:
        items = build_alert_items([_make_monitor("m1", 1.0)], [_make_config("gone", upper=0.0)])
        assert items == []


class TestCountActive:
    def test_counts_breaches(self) -> None:
        monitors = [_make_monitor("m1", 150.0), _make_monitor("m2", 50.0), _make_monitor("m3", None)]
        configs = index_configs([
            _make_config("m1", upper=100.0),
            _make_config("m2", upper=100.0),
            _make_config("m3", upper=100.0),
        ])
        assert count_active(monitors, configs) == 1
