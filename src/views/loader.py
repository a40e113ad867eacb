"""DashboardLoader: fetches everything a view needs in one refresh.

Fetch failures are absorbed here: the failing piece becomes an empty list
(or the previous refresh's data when ``keep_previous`` is set), the error is
recorded on the snapshot, and the user is notified once per refresh.
"""

from __future__ import annotations

import asyncio
import time

import structlog
from pydantic import BaseModel, Field

from src.alerts.evaluator import index_configs
from src.annotations.store import AnnotationStore
from src.backend.adapters import BackendAdapter
from src.backend.exceptions import BackendError
from src.backend.transport import Session
from src.core.types import AlertThresholdConfig, ChartData, Monitor
from src.views.notify import Notifier

logger = structlog.stdlib.get_logger()


class DashboardSnapshot(BaseModel):
    """Everything fetched for one view refresh."""

    monitors: list[Monitor] = Field(default_factory=list)
    configs: list[AlertThresholdConfig] = Field(default_factory=list)
    aliases: dict[str, str] = Field(default_factory=dict)
    tags: dict[str, list[str]] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    loaded_at: float = Field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        """False when any fetch failed; empty lists then mean "no data"."""
        return not self.errors

    @property
    def config_index(self) -> dict[str, AlertThresholdConfig]:
        return index_configs(self.configs)

    def monitor(self, monitor_id: str) -> Monitor | None:
        return next((m for m in self.monitors if m.id == monitor_id), None)


class DashboardLoader:
    """Loads monitors, alert configs and annotations for the views."""

    def __init__(
        self,
        adapter: BackendAdapter,
        annotations: AnnotationStore,
        notifier: Notifier | None = None,
    ) -> None:
        self._adapter = adapter
        self._annotations = annotations
        self._notifier = notifier or Notifier()
        self._last: DashboardSnapshot | None = None

    @property
    def last(self) -> DashboardSnapshot | None:
        """Most recent snapshot (last write wins across overlapping refreshes)."""
        return self._last

    async def load(self, session: Session, keep_previous: bool = False) -> DashboardSnapshot:
        """Fetch a fresh snapshot.

        Args:
            session: Authenticated backend session.
            keep_previous: On a failed fetch, reuse the previous snapshot's
                data for that piece instead of an empty list.
        """
        errors: list[str] = []
        previous = self._last if keep_previous else None

        monitors_result, annotations_result = await asyncio.gather(
            self._adapter.fetch_monitors(session),
            asyncio.to_thread(self._read_annotations),
            return_exceptions=True,
        )

        if isinstance(monitors_result, BackendError):
            errors.append(f"monitors: {monitors_result}")
            logger.warning("monitor_fetch_failed", error=str(monitors_result))
            monitors = list(previous.monitors) if previous else []
        elif isinstance(monitors_result, BaseException):
            raise monitors_result
        else:
            monitors = monitors_result

        if isinstance(annotations_result, BaseException):
            raise annotations_result
        aliases, tags = annotations_result

        try:
            configs = await self._adapter.fetch_alert_configs(session, monitors)
        except BackendError as exc:
            errors.append(f"alerts: {exc}")
            logger.warning("alert_config_fetch_failed", error=str(exc))
            configs = list(previous.configs) if previous else []

        snapshot = DashboardSnapshot(
            monitors=monitors,
            configs=configs,
            aliases=aliases,
            tags=tags,
            errors=errors,
        )
        self._last = snapshot

        logger.info(
            "dashboard_loaded",
            monitor_count=len(monitors),
            config_count=len(configs),
            error_count=len(errors),
        )
        if errors:
            await self._notifier.failure("Failed to load monitor data", "; ".join(errors))
        return snapshot

    async def load_history(self, session: Session, monitor: Monitor, days: int = 7) -> ChartData | None:
        """Fetch history for the detail view; None (plus a notification) on failure."""
        try:
            return await self._adapter.fetch_history(session, monitor, days)
        except BackendError as exc:
            logger.warning("history_fetch_failed", monitor_id=monitor.id, error=str(exc))
            await self._notifier.failure("Failed to load history", str(exc))
            return None

    def _read_annotations(self) -> tuple[dict[str, str], dict[str, list[str]]]:
        return self._annotations.all_aliases(), self._annotations.all_tags()
