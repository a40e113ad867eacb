"""Backend adapters: one strategy per upstream API schema.

``LegacyAdapter`` speaks the original monitor/alert-config endpoints,
``FormulaAdapter`` the newer formula-monitor/alert-rule endpoints. Both
produce the same ``Monitor`` / ``AlertThresholdConfig`` model, so views never
know which backend generation they are talking to. ``FallbackAdapter`` tries
one adapter and switches to another when the endpoints are missing.
"""

from __future__ import annotations

import abc
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from src.backend import normalize
from src.backend.conditions import format_condition, parse_condition
from src.backend.exceptions import BackendParseError, BackendResponseError
from src.backend.transport import BackendTransport, Session
from src.core.config import BackendConfig, BackendSchema, get_settings
from src.core.types import (
    AlertThresholdConfig,
    ChartData,
    ConstantCard,
    Monitor,
    Severity,
)

logger = structlog.stdlib.get_logger()

T = TypeVar("T")

# Status codes meaning "this backend does not have these endpoints".
_MISSING_ENDPOINT_STATUSES = frozenset({404, 405, 501})


class BackendAdapter(abc.ABC):
    """Strategy interface over a backend schema generation.

    Every operation takes the Session explicitly and raises ``BackendError``
    on failure; absorbing failures is the caller's decision.
    """

    schema: BackendSchema

    def __init__(self, transport: BackendTransport) -> None:
        self._transport = transport

    @abc.abstractmethod
    async def fetch_monitors(self, session: Session) -> list[Monitor]:
        """Fetch and normalise the monitor list."""

    @abc.abstractmethod
    async def fetch_alert_configs(
        self,
        session: Session,
        monitors: list[Monitor],
    ) -> list[AlertThresholdConfig]:
        """Fetch alert rules and normalise them against *monitors*."""

    @abc.abstractmethod
    async def fetch_history(self, session: Session, monitor: Monitor, days: int = 7) -> ChartData:
        """Fetch recent history for one monitor."""

    @abc.abstractmethod
    async def save_alert_config(
        self,
        session: Session,
        monitor_id: str,
        upper: float | None,
        lower: float | None,
        severity: str = Severity.MEDIUM,
    ) -> AlertThresholdConfig:
        """Create or replace the alert thresholds of one monitor."""

    @abc.abstractmethod
    async def delete_alert_config(self, session: Session, monitor_id: str) -> None:
        """Remove the alert thresholds of one monitor."""

    @abc.abstractmethod
    async def create_constant(self, session: Session, card: ConstantCard) -> str:
        """Create a constant card and return its monitor id."""

    @abc.abstractmethod
    async def update_constant(self, session: Session, monitor_id: str, card: ConstantCard) -> None:
        """Update the value/metadata of a constant card."""

    @abc.abstractmethod
    async def delete_constant(self, session: Session, monitor_id: str) -> None:
        """Delete a constant card."""


class LegacyAdapter(BackendAdapter):
    """Adapter for the original ``/api/monitors`` + ``/api/alerts`` schema."""

    schema = BackendSchema.LEGACY

    async def fetch_monitors(self, session: Session) -> list[Monitor]:
        body = await self._transport.request("GET", "/api/monitors", session=session)
        return normalize.collect(body, normalize.legacy_monitor)

    async def fetch_alert_configs(
        self,
        session: Session,
        monitors: list[Monitor],
    ) -> list[AlertThresholdConfig]:
        body = await self._transport.request("GET", "/api/alerts/configs", session=session)
        return normalize.collect(body, normalize.legacy_alert_config)

    async def fetch_history(self, session: Session, monitor: Monitor, days: int = 7) -> ChartData:
        body = await self._transport.request(
            "GET", f"/api/chart-data/{monitor.id}", session=session, params={"days": days},
        )
        chart = normalize.legacy_chart(body, monitor.id)
        if not chart.monitor_name:
            chart.monitor_name = monitor.name
        return chart

    async def save_alert_config(
        self,
        session: Session,
        monitor_id: str,
        upper: float | None,
        lower: float | None,
        severity: str = Severity.MEDIUM,
    ) -> AlertThresholdConfig:
        body = await self._transport.request(
            "POST",
            "/api/alerts/config",
            session=session,
            json={
                "monitor_id": monitor_id,
                "upper_threshold": upper,
                "lower_threshold": lower,
                "alert_level": str(severity),
            },
        )
        saved = normalize.legacy_alert_config(body) if isinstance(body, dict) else None
        return saved or AlertThresholdConfig(
            monitor_id=monitor_id,
            upper_threshold=upper,
            lower_threshold=lower,
            severity=severity,
        )

    async def delete_alert_config(self, session: Session, monitor_id: str) -> None:
        await self._transport.request("DELETE", f"/api/alerts/config/{monitor_id}", session=session)

    async def create_constant(self, session: Session, card: ConstantCard) -> str:
        body = await self._transport.request(
            "POST", "/api/constant", session=session, json=card.payload(),
        )
        return _created_id(body, "monitor_id")

    async def update_constant(self, session: Session, monitor_id: str, card: ConstantCard) -> None:
        await self._transport.request(
            "PUT", f"/api/constant/{monitor_id}", session=session, json=card.payload(),
        )

    async def delete_constant(self, session: Session, monitor_id: str) -> None:
        await self._transport.request("DELETE", f"/api/constant/{monitor_id}", session=session)


class FormulaAdapter(BackendAdapter):
    """Adapter for the ``/api/v2`` formula-monitor and alert-rule schema."""

    schema = BackendSchema.FORMULA

    async def fetch_monitors(self, session: Session) -> list[Monitor]:
        body = await self._transport.request("GET", "/api/v2/monitors", session=session)
        return normalize.collect(body, normalize.formula_monitor)

    async def fetch_alert_configs(
        self,
        session: Session,
        monitors: list[Monitor],
    ) -> list[AlertThresholdConfig]:
        body = await self._transport.request("GET", "/api/v2/alert-rules", session=session)
        configs = normalize.expand_alert_rules(body, monitors)
        logger.debug("alert_rules_expanded", config_count=len(configs), monitor_count=len(monitors))
        return configs

    async def fetch_history(self, session: Session, monitor: Monitor, days: int = 7) -> ChartData:
        body = await self._transport.request(
            "GET", f"/api/v2/monitors/{monitor.id}/history", session=session, params={"days": days},
        )
        return normalize.formula_chart(body, monitor)

    async def _scoped_rules(self, session: Session, monitor_id: str) -> list[dict[str, Any]]:
        """Rules whose condition references exactly *monitor_id*."""
        body = await self._transport.request("GET", "/api/v2/alert-rules", session=session)
        scoped: list[dict[str, Any]] = []
        for rule in normalize.records(body):
            parsed = parse_condition(rule.get("condition"))
            if parsed is not None and parsed.monitor_id == monitor_id:
                scoped.append(rule)
        return scoped

    async def save_alert_config(
        self,
        session: Session,
        monitor_id: str,
        upper: float | None,
        lower: float | None,
        severity: str = Severity.MEDIUM,
    ) -> AlertThresholdConfig:
        payload = {
            "name": f"{monitor_id} thresholds",
            "condition": format_condition(monitor_id, upper, lower),
            "severity": str(severity),
            "enabled": True,
        }
        existing = await self._scoped_rules(session, monitor_id)
        if existing:
            rule_id = str(existing[0].get("id"))
            body = await self._transport.request(
                "PUT", f"/api/v2/alert-rules/{rule_id}", session=session, json=payload,
            )
        else:
            body = await self._transport.request(
                "POST", "/api/v2/alert-rules", session=session, json=payload,
            )
            rule_id = _created_id(body, "id")

        saved = normalize.expand_alert_rule(
            body if isinstance(body, dict) and "condition" in body else {**payload, "id": rule_id},
            [monitor_id],
        )
        if saved:
            return saved[0]
        return AlertThresholdConfig(
            monitor_id=monitor_id,
            upper_threshold=upper,
            lower_threshold=lower,
            severity=severity,
            rule_id=rule_id,
        )

    async def delete_alert_config(self, session: Session, monitor_id: str) -> None:
        for rule in await self._scoped_rules(session, monitor_id):
            await self._transport.request(
                "DELETE", f"/api/v2/alert-rules/{rule.get('id')}", session=session,
            )

    async def create_constant(self, session: Session, card: ConstantCard) -> str:
        body = await self._transport.request(
            "POST", "/api/v2/constants", session=session, json=card.payload(),
        )
        return _created_id(body, "id")

    async def update_constant(self, session: Session, monitor_id: str, card: ConstantCard) -> None:
        await self._transport.request(
            "PUT", f"/api/v2/constants/{monitor_id}", session=session, json=card.payload(),
        )

    async def delete_constant(self, session: Session, monitor_id: str) -> None:
        await self._transport.request("DELETE", f"/api/v2/constants/{monitor_id}", session=session)


class FallbackAdapter(BackendAdapter):
    """Use *primary* unless its endpoints are missing, then *fallback* for good.

    The schema is chosen once, by reading the primary monitor list before
    the first operation. Operations are never replayed on the other
    adapter, so a write reaches the backend at most once and a 404 on a
    single resource does not change the schema.
    """

    schema = BackendSchema.AUTO

    def __init__(self, primary: BackendAdapter, fallback: BackendAdapter) -> None:
        super().__init__(primary._transport)
        self._primary = primary
        self._fallback = fallback
        self._selected: BackendAdapter | None = None

    @property
    def selected(self) -> BackendAdapter | None:
        """The adapter in use, or None until the schema has been detected."""
        return self._selected

    async def _detect(self, session: Session) -> tuple[BackendAdapter, list[Monitor] | None]:
        """Read the primary monitor list; monitors are None when the fallback was chosen."""
        try:
            monitors = await self._primary.fetch_monitors(session)
        except (BackendResponseError, BackendParseError) as exc:
            status = getattr(exc, "status_code", None)
            if status is not None and status not in _MISSING_ENDPOINT_STATUSES:
                raise
            logger.info(
                "backend_schema_fallback",
                primary=self._primary.schema,
                fallback=self._fallback.schema,
                status_code=status,
            )
            self._selected = self._fallback
            return self._fallback, None
        self._selected = self._primary
        return self._primary, monitors

    async def _select(self, session: Session) -> BackendAdapter:
        if self._selected is not None:
            return self._selected
        adapter, _ = await self._detect(session)
        return adapter

    async def _call(self, session: Session, op: Callable[[BackendAdapter], Awaitable[T]]) -> T:
        return await op(await self._select(session))

    async def fetch_monitors(self, session: Session) -> list[Monitor]:
        if self._selected is None:
            _, monitors = await self._detect(session)
            if monitors is not None:
                return monitors
        return await self._call(session, lambda a: a.fetch_monitors(session))

    async def fetch_alert_configs(
        self,
        session: Session,
        monitors: list[Monitor],
    ) -> list[AlertThresholdConfig]:
        return await self._call(session, lambda a: a.fetch_alert_configs(session, monitors))

    async def fetch_history(self, session: Session, monitor: Monitor, days: int = 7) -> ChartData:
        return await self._call(session, lambda a: a.fetch_history(session, monitor, days))

    async def save_alert_config(
        self,
        session: Session,
        monitor_id: str,
        upper: float | None,
        lower: float | None,
        severity: str = Severity.MEDIUM,
    ) -> AlertThresholdConfig:
        return await self._call(
            session,
            lambda a: a.save_alert_config(session, monitor_id, upper, lower, severity),
        )

    async def delete_alert_config(self, session: Session, monitor_id: str) -> None:
        await self._call(session, lambda a: a.delete_alert_config(session, monitor_id))

    async def create_constant(self, session: Session, card: ConstantCard) -> str:
        return await self._call(session, lambda a: a.create_constant(session, card))

    async def update_constant(self, session: Session, monitor_id: str, card: ConstantCard) -> None:
        await self._call(session, lambda a: a.update_constant(session, monitor_id, card))

    async def delete_constant(self, session: Session, monitor_id: str) -> None:
        await self._call(session, lambda a: a.delete_constant(session, monitor_id))


def _created_id(body: Any, key: str) -> str:
    if isinstance(body, dict) and body.get(key) is not None:
        return str(body[key])
    raise BackendParseError(f"Create response is missing {key!r}")


def create_adapter(
    transport: BackendTransport,
    config: BackendConfig | None = None,
) -> BackendAdapter:
    """Build the adapter for the configured schema."""
    schema = (config or get_settings().backend).schema_version
    if schema == BackendSchema.FORMULA:
        return FormulaAdapter(transport)
    if schema == BackendSchema.AUTO:
        return FallbackAdapter(FormulaAdapter(transport), LegacyAdapter(transport))
    return LegacyAdapter(transport)
