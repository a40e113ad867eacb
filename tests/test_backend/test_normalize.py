"""Tests for upstream JSON normalization and alert-rule expansion."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from src.backend.normalize import (
    collect,
    expand_alert_rule,
    expand_alert_rules,
    formula_chart,
    formula_monitor,
    legacy_alert_config,
    legacy_chart,
    legacy_monitor,
    records,
    summarize_points,
)
from src.core.types import ChartPoint, Monitor, MonitorKind


def _make_legacy_monitor(**overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "monitor_id": "m1",
        "monitor_name": "CPU load",
        "monitor_type": "monitor",
        "url": "https://source.example/cpu",
        "unit": "%",
        "latest_value": 42.5,
        "latest_timestamp": "2024-05-01T10:00:00Z",
        "min_value": 1.0,
        "max_value": 99.0,
        "avg_value": 40.0,
        "total_records": 120,
        "change_count": 7,
    }
    raw.update(overrides)
    return raw


def _make_rule(**overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": "r1",
        "condition": "${monitor:m1} > 100",
        "severity": "high",
        "enabled": True,
    }
    raw.update(overrides)
    return raw


class TestLegacyMonitor:
    def test_full_record(self) -> None:
        monitor = legacy_monitor(_make_legacy_monitor())
        assert monitor is not None
        assert monitor.id == "m1"
        assert monitor.name == "CPU load"
        assert monitor.kind == MonitorKind.REGULAR
        assert monitor.current_value == 42.5
        assert monitor.last_updated_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        assert monitor.statistics.maximum == 99.0
        assert monitor.statistics.change_count == 7
        assert monitor.source_url == "https://source.example/cpu"

    def test_constant_type(self) -> None:
        monitor = legacy_monitor(_make_legacy_monitor(monitor_type="constant"))
        assert monitor is not None
        assert monitor.is_constant

    def test_nulls_become_explicit_unavailable(self) -> None:
        monitor = legacy_monitor({"monitor_id": "m2", "latest_value": None, "total_records": None})
        assert monitor is not None
        assert monitor.current_value is None
        assert monitor.last_updated_at is None
        assert monitor.statistics.total_records == 0
        assert monitor.statistics.average is None

    def test_missing_id_rejected(self) -> None:
        assert legacy_monitor({"monitor_name": "orphan"}) is None

    def test_numeric_strings_coerced(self) -> None:
        monitor = legacy_monitor(_make_legacy_monitor(latest_value="12.5"))
        assert monitor is not None
        assert monitor.current_value == 12.5


class TestLegacyAlertConfig:
    def test_configured(self) -> None:
        cfg = legacy_alert_config(
            {"monitor_id": "m1", "upper_threshold": 100, "lower_threshold": None, "alert_level": "critical"}
        )
        assert cfg is not None
        assert cfg.upper_threshold == 100.0
        assert cfg.lower_threshold is None
        assert cfg.severity == "critical"

    def test_zero_threshold_kept(self) -> None:
        cfg = legacy_alert_config({"monitor_id": "m1", "lower_threshold": 0})
        assert cfg is not None
        assert cfg.lower_threshold == 0.0
        assert cfg.severity == "medium"

    def test_unconfigured_discarded(self) -> None:
        assert legacy_alert_config({"monitor_id": "m1", "alert_level": "high"}) is None


class TestLegacyChart:
    def test_points_and_summary(self) -> None:
        raw = {
            "monitor_id": "m1",
            "monitor_name": "CPU load",
            "data": [
                {"timestamp": "2024-05-01T10:00:00Z", "value": 1, "status": "ok"},
                {"timestamp": "2024-05-01T11:00:00Z", "value": 2, "status": "ok"},
            ],
            "summary": {
                "total_points": 2,
                "date_range": "2024-05-01 to 2024-05-01",
                "value_range": {"min": 1, "max": 2, "avg": 1.5},
                "changes_detected": 1,
                "latest_value": 2,
            },
        }
        chart = legacy_chart(raw, "m1")
        assert [p.value for p in chart.points] == [1.0, 2.0]
        assert chart.summary.average == 1.5
        assert chart.summary.changes_detected == 1
        assert chart.monitor_name == "CPU load"

    def test_garbage_body(self) -> None:
        chart = legacy_chart("not json object", "m9")
        assert chart.monitor_id == "m9"
        assert chart.points == []


class TestFormulaMonitor:
    def test_maps_fields_and_empty_statistics(self) -> None:
        monitor = formula_monitor(
            {
                "id": "f1",
                "name": "Error rate",
                "formula": "${monitor:errors} / ${monitor:requests}",
                "value": 0.02,
                "computed_at": "2024-05-01T10:00:00Z",
            }
        )
        assert monitor is not None
        assert monitor.name == "Error rate"
        assert monitor.formula is not None
        assert monitor.current_value == 0.02
        assert monitor.statistics.total_records == 0
        assert monitor.statistics.minimum is None

    def test_updated_at_fallback(self) -> None:
        monitor = formula_monitor({"id": "f1", "updated_at": "2024-05-02T00:00:00Z"})
        assert monitor is not None
        assert monitor.last_updated_at == datetime(2024, 5, 2, tzinfo=timezone.utc)


class TestExpandAlertRule:
    def test_scoped_rule(self) -> None:
        configs = expand_alert_rule(_make_rule(), ["m1", "m2"])
        assert len(configs) == 1
        assert configs[0].monitor_id == "m1"
        assert configs[0].upper_threshold == 100.0
        assert configs[0].severity == "high"
        assert configs[0].rule_id == "r1"

    def test_disabled_rule_yields_nothing(self) -> None:
        assert expand_alert_rule(_make_rule(enabled=False), ["m1"]) == []

    def test_rule_without_threshold_yields_nothing(self) -> None:
        assert expand_alert_rule(_make_rule(condition="foo bar"), ["m1"]) == []
        assert expand_alert_rule(_make_rule(condition=None), ["m1"]) == []

    def test_dangling_reference_yields_nothing(self) -> None:
        assert expand_alert_rule(_make_rule(condition="${monitor:gone} > 1"), ["m1"]) == []

    def test_global_rule_broadcasts(self) -> None:
        configs = expand_alert_rule(_make_rule(condition="value > 100"), ["m1", "m2", "m3"])
        assert [c.monitor_id for c in configs] == ["m1", "m2", "m3"]
        assert all(c.upper_threshold == 100.0 for c in configs)

    def test_missing_severity_defaults_to_medium(self) -> None:
        raw = _make_rule()
        del raw["severity"]
        assert expand_alert_rule(raw, ["m1"])[0].severity == "medium"


class TestExpandAlertRules:
    def test_configs_of_one_rule_stay_adjacent(self) -> None:
        monitors = [Monitor(id="m1"), Monitor(id="m2")]
        body = {
            "data": [
                _make_rule(id="g", condition="value < 0"),
                _make_rule(id="s", condition="${monitor:m2} > 5"),
                _make_rule(id="off", enabled=False),
            ]
        }
        configs = expand_alert_rules(body, monitors)
        assert [(c.rule_id, c.monitor_id) for c in configs] == [("g", "m1"), ("g", "m2"), ("s", "m2")]

    def test_non_list_body(self) -> None:
        assert expand_alert_rules(None, [Monitor(id="m1")]) == []


class TestFormulaChart:
    def test_summary_computed_locally(self) -> None:
        raw = {
            "points": [
                {"timestamp": "2024-05-01T10:00:00Z", "value": 5},
                {"timestamp": "2024-05-02T10:00:00Z", "value": 5},
                {"timestamp": "2024-05-03T10:00:00Z", "value": 8},
            ]
        }
        chart = formula_chart(raw, Monitor(id="f1", display_name="Error rate"))
        assert chart.monitor_name == "Error rate"
        assert chart.summary.total_points == 3
        assert chart.summary.changes_detected == 1
        assert chart.summary.maximum == 8.0
        assert chart.summary.latest_value == 8.0
        assert chart.summary.date_range == "2024-05-01 to 2024-05-03"

    def test_bare_list_body(self) -> None:
        chart = formula_chart([{"value": 1}], "f1")
        assert chart.monitor_id == "f1"
        assert len(chart.points) == 1


class TestSummarizePoints:
    def test_empty(self) -> None:
        summary = summarize_points([])
        assert summary.total_points == 0
        assert summary.average is None
        assert summary.latest_value is None

    def test_ignores_missing_values(self) -> None:
        summary = summarize_points([ChartPoint(value=2.0), ChartPoint(value=None), ChartPoint(value=4.0)])
        assert summary.total_points == 3
        assert summary.average == 3.0


class TestCollect:
    def test_drops_rejected_and_non_dict_records(self) -> None:
        monitors = collect(
            [_make_legacy_monitor(), {"monitor_name": "no id"}, "junk"],
            legacy_monitor,
        )
        assert [m.id for m in monitors] == ["m1"]

    def test_envelope(self) -> None:
        monitors = collect({"items": [{"id": "f1"}]}, formula_monitor)
        assert [m.id for m in monitors] == ["f1"]


class TestRecords:
    def test_list_and_envelopes(self) -> None:
        rule = {"id": "r1"}
        assert list(records([rule, 3])) == [rule]
        assert list(records({"data": [rule]})) == [rule]
        assert list(records({"items": [rule]})) == [rule]

    def test_non_list_is_empty(self) -> None:
        assert list(records({"data": {"id": "r1"}})) == []
        assert list(records(None)) == []
