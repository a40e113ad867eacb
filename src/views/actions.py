"""User-initiated edit actions.

Form input is validated first and ``FormValidationError`` propagates to the
caller so it can be shown next to the field; nothing is sent upstream in
that case. Backend failures are reported once through the notifier.
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterable
from typing import TypeVar

import structlog

from src.annotations.store import AnnotationStore
from src.backend.adapters import BackendAdapter
from src.backend.exceptions import BackendError
from src.backend.transport import Session
from src.core.types import AlertThresholdConfig
from src.views.forms import validate_alert_form, validate_constant_form
from src.views.notify import Notifier

logger = structlog.stdlib.get_logger()

T = TypeVar("T")


def split_tags(raw: str | Iterable[str]) -> list[str]:
    """Accept ``"a, b"`` or ``["a", "b"]``; blanks are dropped."""
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    return [p.strip() for p in parts if p.strip()]


class MonitorActions:
    """Edit operations behind the list, alerts and detail views."""

    def __init__(
        self,
        adapter: BackendAdapter,
        annotations: AnnotationStore,
        notifier: Notifier | None = None,
    ) -> None:
        self._adapter = adapter
        self._annotations = annotations
        self._notifier = notifier or Notifier()

    async def _run(self, verb: str, subject: str, call: Awaitable[T]) -> tuple[bool, T | None]:
        """Await *call* between a progress and a success/failure notification."""
        await self._notifier.progress(f"{verb} {subject}...")
        try:
            result = await call
        except BackendError as exc:
            logger.warning("monitor_action_failed", action=verb, subject=subject, error=str(exc))
            await self._notifier.failure(f"Failed to {verb.lower()} {subject}", str(exc))
            return False, None
        await self._notifier.success(f"{subject[:1].upper()}{subject[1:]} {_past(verb)}")
        return True, result

    # ── Alert thresholds ─────────────────────────────────────────

    async def save_alert_config(
        self,
        session: Session,
        monitor_id: str,
        upper_text: str | None,
        lower_text: str | None,
        level: str | None = None,
    ) -> AlertThresholdConfig | None:
        upper, lower, severity = validate_alert_form(upper_text, lower_text, level)
        _, saved = await self._run(
            "Save",
            "alert config",
            self._adapter.save_alert_config(session, monitor_id, upper, lower, severity),
        )
        return saved

    async def delete_alert_config(self, session: Session, monitor_id: str) -> bool:
        ok, _ = await self._run(
            "Delete", "alert config", self._adapter.delete_alert_config(session, monitor_id),
        )
        return ok

    # ── Constant cards ───────────────────────────────────────────

    async def create_constant(
        self,
        session: Session,
        name: str | None,
        value_text: str | None,
        unit: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> str | None:
        card = validate_constant_form(name, value_text, unit, description, color)
        _, monitor_id = await self._run(
            "Create", "constant card", self._adapter.create_constant(session, card),
        )
        return monitor_id

    async def update_constant(
        self,
        session: Session,
        monitor_id: str,
        name: str | None,
        value_text: str | None,
        unit: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> bool:
        card = validate_constant_form(name, value_text, unit, description, color)
        ok, _ = await self._run(
            "Update", "constant card", self._adapter.update_constant(session, monitor_id, card),
        )
        return ok

    async def delete_constant(self, session: Session, monitor_id: str) -> bool:
        ok, _ = await self._run(
            "Delete", "constant card", self._adapter.delete_constant(session, monitor_id),
        )
        return ok

    # ── Local annotations ────────────────────────────────────────

    async def set_alias(self, monitor_id: str, alias: str) -> None:
        self._annotations.set_alias(monitor_id, alias)
        title = "Alias saved" if alias.strip() else "Alias removed"
        await self._notifier.success(title)

    async def delete_alias(self, monitor_id: str) -> None:
        self._annotations.delete_alias(monitor_id)
        await self._notifier.success("Alias removed")

    async def set_tags(self, monitor_id: str, tags: str | Iterable[str]) -> list[str]:
        cleaned = split_tags(tags)
        self._annotations.set_tags(monitor_id, cleaned)
        await self._notifier.success("Tags saved" if cleaned else "Tags removed")
        return cleaned

    async def delete_tags(self, monitor_id: str) -> None:
        self._annotations.delete_tags(monitor_id)
        await self._notifier.success("Tags removed")


def _past(verb: str) -> str:
    return {"Save": "saved", "Delete": "deleted", "Create": "created", "Update": "updated"}.get(
        verb, verb.lower() + "d",
    )
