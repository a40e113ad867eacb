"""Domain types for monitors, alert thresholds and history."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class MonitorKind(StrEnum):
    """Whether a monitor's value is computed or set by hand."""

    REGULAR = "regular"
    CONSTANT = "constant"


class Severity(StrEnum):
    """Alert level as reported by the backend."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Lower rank sorts first; anything unrecognised sorts last.
_SEVERITY_RANK: dict[str, int] = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}
UNKNOWN_SEVERITY_RANK = 4


def severity_rank(level: str) -> int:
    """Map an alert level to its sort rank (critical=0 ... low=3, unknown=4)."""
    return _SEVERITY_RANK.get(level, UNKNOWN_SEVERITY_RANK)


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Returns None for missing or unparseable input rather than raising.
    """
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class MonitorStatistics(BaseModel):
    """Historical aggregates; every field is explicit even when unavailable."""

    minimum: float | None = None
    maximum: float | None = None
    average: float | None = None
    total_records: int = 0
    change_count: int = 0


class Monitor(BaseModel):
    """A named, unit-tagged numeric data source."""

    id: str
    display_name: str | None = None
    kind: MonitorKind = MonitorKind.REGULAR
    unit: str | None = None
    current_value: float | None = None
    last_updated_at: datetime | None = None
    statistics: MonitorStatistics = Field(default_factory=MonitorStatistics)
    source_url: str | None = None
    description: str | None = None
    color: str | None = None
    formula: str | None = None

    @property
    def name(self) -> str:
        return self.display_name or self.id

    @property
    def is_constant(self) -> bool:
        return self.kind == MonitorKind.CONSTANT


class AlertThresholdConfig(BaseModel):
    """Per-monitor alert rule with optional upper/lower bounds."""

    monitor_id: str
    upper_threshold: float | None = None
    lower_threshold: float | None = None
    severity: str = Severity.MEDIUM
    updated_at: datetime | None = None
    rule_id: str | None = None

    @property
    def is_configured(self) -> bool:
        return self.upper_threshold is not None or self.lower_threshold is not None

    @property
    def rank(self) -> int:
        return severity_rank(self.severity)


class AlertItem(BaseModel):
    """A monitor paired with its alert config and evaluated state."""

    monitor: Monitor
    config: AlertThresholdConfig
    is_active: bool = False


class ChartPoint(BaseModel):
    """A single historical reading."""

    timestamp: datetime | None = None
    value: float | None = None
    status: str = ""


class ChartSummary(BaseModel):
    """Aggregates over a history window."""

    total_points: int = 0
    date_range: str = ""
    minimum: float | None = None
    maximum: float | None = None
    average: float | None = None
    changes_detected: int = 0
    latest_value: float | None = None
    latest_timestamp: datetime | None = None


class ChartData(BaseModel):
    """Monitor history for the detail view."""

    monitor_id: str
    monitor_name: str = ""
    points: list[ChartPoint] = Field(default_factory=list)
    summary: ChartSummary = Field(default_factory=ChartSummary)

    def recent(self, count: int = 10) -> list[ChartPoint]:
        """Most recent *count* points, newest first."""
        return list(reversed(self.points[-count:])) if count > 0 else []


class ConstantCard(BaseModel):
    """Input for creating or updating a constant-valued monitor."""

    name: str | None = None
    value: float
    unit: str | None = None
    description: str | None = None
    color: str | None = None

    def payload(self) -> dict[str, Any]:
        """Request body with unset fields left out."""
        return self.model_dump(exclude_none=True)
