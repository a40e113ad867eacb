"""Pure mapping functions from upstream JSON into the internal model.

Every function here tolerates missing and ``null`` fields: anything a given
backend shape does not supply is normalised to an explicit "unavailable"
value (None / 0) so downstream code can rely on each field being present.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

import structlog

from src.backend.conditions import parse_condition
from src.core.types import (
    AlertThresholdConfig,
    ChartData,
    ChartPoint,
    ChartSummary,
    Monitor,
    MonitorKind,
    MonitorStatistics,
    Severity,
    parse_timestamp,
)

logger = structlog.stdlib.get_logger()

T = TypeVar("T")


def _to_float(raw: Any) -> float | None:
    """Coerce a JSON number (or numeric string) to float; None otherwise."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _to_int(raw: Any) -> int:
    value = _to_float(raw)
    return int(value) if value is not None else 0


def _to_str(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw)
    return text if text else None


def _kind(raw: Any) -> MonitorKind:
    return MonitorKind.CONSTANT if str(raw or "").lower() == "constant" else MonitorKind.REGULAR


def records(body: Any) -> Iterator[dict[str, Any]]:
    """Yield dict entries from a list body or a ``data``/``items`` envelope."""
    if isinstance(body, dict):
        body = body.get("data", body.get("items"))
    if not isinstance(body, list):
        return
    for entry in body:
        if isinstance(entry, dict):
            yield entry


# ── Legacy schema ────────────────────────────────────────────────


def legacy_monitor(raw: dict[str, Any]) -> Monitor | None:
    """Map a legacy ``MonitorSummary`` record; None when it has no id."""
    monitor_id = _to_str(raw.get("monitor_id"))
    if monitor_id is None:
        return None
    return Monitor(
        id=monitor_id,
        display_name=_to_str(raw.get("monitor_name")),
        kind=_kind(raw.get("monitor_type")),
        unit=_to_str(raw.get("unit")),
        current_value=_to_float(raw.get("latest_value")),
        last_updated_at=parse_timestamp(raw.get("latest_timestamp")),
        statistics=MonitorStatistics(
            minimum=_to_float(raw.get("min_value")),
            maximum=_to_float(raw.get("max_value")),
            average=_to_float(raw.get("avg_value")),
            total_records=_to_int(raw.get("total_records")),
            change_count=_to_int(raw.get("change_count")),
        ),
        source_url=_to_str(raw.get("url")),
        description=_to_str(raw.get("description")),
        color=_to_str(raw.get("color")),
    )


def legacy_alert_config(raw: dict[str, Any]) -> AlertThresholdConfig | None:
    """Map a legacy ``AlertConfig`` record; None when unusable or unconfigured."""
    monitor_id = _to_str(raw.get("monitor_id"))
    if monitor_id is None:
        return None
    config = AlertThresholdConfig(
        monitor_id=monitor_id,
        upper_threshold=_to_float(raw.get("upper_threshold")),
        lower_threshold=_to_float(raw.get("lower_threshold")),
        severity=str(raw.get("alert_level") or Severity.MEDIUM),
        updated_at=parse_timestamp(raw.get("updated_at") or raw.get("created_at")),
    )
    return config if config.is_configured else None


def legacy_chart(raw: Any, monitor_id: str) -> ChartData:
    """Map a legacy ``/api/chart-data`` response."""
    body = raw if isinstance(raw, dict) else {}
    points = [
        ChartPoint(
            timestamp=parse_timestamp(p.get("timestamp")),
            value=_to_float(p.get("value")),
            status=str(p.get("status") or ""),
        )
        for p in records(body.get("data"))
    ]
    summary = body.get("summary") if isinstance(body.get("summary"), dict) else {}
    value_range = summary.get("value_range") if isinstance(summary.get("value_range"), dict) else {}
    return ChartData(
        monitor_id=_to_str(body.get("monitor_id")) or monitor_id,
        monitor_name=str(body.get("monitor_name") or ""),
        points=points,
        summary=ChartSummary(
            total_points=_to_int(summary.get("total_points", len(points))),
            date_range=str(summary.get("date_range") or ""),
            minimum=_to_float(value_range.get("min")),
            maximum=_to_float(value_range.get("max")),
            average=_to_float(value_range.get("avg")),
            changes_detected=_to_int(summary.get("changes_detected")),
            latest_value=_to_float(summary.get("latest_value")),
            latest_timestamp=parse_timestamp(summary.get("latest_timestamp")),
        ),
    )


# ── Formula schema ───────────────────────────────────────────────


def formula_monitor(raw: dict[str, Any]) -> Monitor | None:
    """Map a formula-schema monitor; statistics are not provided by this shape."""
    monitor_id = _to_str(raw.get("id"))
    if monitor_id is None:
        return None
    return Monitor(
        id=monitor_id,
        display_name=_to_str(raw.get("name")),
        kind=_kind(raw.get("kind") or raw.get("type")),
        unit=_to_str(raw.get("unit")),
        current_value=_to_float(raw.get("value")),
        last_updated_at=parse_timestamp(raw.get("computed_at") or raw.get("updated_at")),
        statistics=MonitorStatistics(),
        source_url=_to_str(raw.get("url")),
        description=_to_str(raw.get("description")),
        color=_to_str(raw.get("color")),
        formula=_to_str(raw.get("formula")),
    )


def expand_alert_rule(
    raw: dict[str, Any],
    monitor_ids: Iterable[str],
) -> list[AlertThresholdConfig]:
    """Expand one alert rule into zero, one, or many threshold configs.

    - disabled rules and rules without a parseable threshold yield nothing
    - a rule referencing ``${monitor:<id>}`` yields one config, only if that
      monitor exists
    - a rule without a reference applies to every monitor in *monitor_ids*
    """
    if not raw.get("enabled", True):
        return []

    parsed = parse_condition(_to_str(raw.get("condition")))
    if parsed is None:
        return []

    known = list(monitor_ids)
    if parsed.monitor_id is not None:
        if parsed.monitor_id not in known:
            logger.debug(
                "alert_rule_dangling_monitor",
                rule_id=raw.get("id"),
                monitor_id=parsed.monitor_id,
            )
            return []
        targets = [parsed.monitor_id]
    else:
        targets = known

    severity = str(raw.get("severity") or raw.get("level") or Severity.MEDIUM)
    updated_at = parse_timestamp(raw.get("updated_at") or raw.get("created_at"))
    rule_id = _to_str(raw.get("id"))
    return [
        AlertThresholdConfig(
            monitor_id=monitor_id,
            upper_threshold=parsed.upper,
            lower_threshold=parsed.lower,
            severity=severity,
            updated_at=updated_at,
            rule_id=rule_id,
        )
        for monitor_id in targets
    ]


def expand_alert_rules(
    body: Any,
    monitors: Iterable[Monitor],
) -> list[AlertThresholdConfig]:
    """Expand every rule in a response body; configs of one rule stay adjacent."""
    monitor_ids = [m.id for m in monitors]
    configs: list[AlertThresholdConfig] = []
    for rule in records(body):
        configs.extend(expand_alert_rule(rule, monitor_ids))
    return configs


def formula_chart(raw: Any, monitor: Monitor | str) -> ChartData:
    """Map a formula-schema history response; the summary is computed locally."""
    monitor_id = monitor if isinstance(monitor, str) else monitor.id
    monitor_name = "" if isinstance(monitor, str) else monitor.name
    body = raw if isinstance(raw, dict) else {"points": raw}
    points = [
        ChartPoint(
            timestamp=parse_timestamp(p.get("timestamp") or p.get("computed_at")),
            value=_to_float(p.get("value")),
            status=str(p.get("status") or ""),
        )
        for p in records(body.get("points"))
    ]
    return ChartData(
        monitor_id=monitor_id,
        monitor_name=monitor_name,
        points=points,
        summary=summarize_points(points),
    )


def summarize_points(points: list[ChartPoint]) -> ChartSummary:
    """Aggregate a point list the way the legacy backend reports it."""
    values = [p.value for p in points if p.value is not None]
    changes = sum(1 for prev, cur in zip(values, values[1:]) if prev != cur)
    stamps = [p.timestamp for p in points if p.timestamp is not None]
    date_range = ""
    if stamps:
        date_range = f"{min(stamps).date().isoformat()} to {max(stamps).date().isoformat()}"
    return ChartSummary(
        total_points=len(points),
        date_range=date_range,
        minimum=min(values) if values else None,
        maximum=max(values) if values else None,
        average=sum(values) / len(values) if values else None,
        changes_detected=changes,
        latest_value=points[-1].value if points else None,
        latest_timestamp=points[-1].timestamp if points else None,
    )


def collect(body: Any, mapper: Callable[[dict[str, Any]], T | None]) -> list[T]:
    """Apply *mapper* to every record, dropping the ones it rejects."""
    return [item for item in (mapper(r) for r in records(body)) if item is not None]
