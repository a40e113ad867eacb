"""Background refresh loops: periodic data reloads and menu bar rotation."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any

import structlog

from src.backend.transport import Session
from src.core.config import PreferencesConfig, get_settings
from src.views.builders import MenuBarState, build_menu_bar
from src.views.loader import DashboardLoader, DashboardSnapshot

logger = structlog.stdlib.get_logger()

RefreshCallback = Callable[[Any], Awaitable[None] | None]


class PeriodicRefresher:
    """Runs *task* every *interval_secs* until stopped.

    There is no retry: a failed run is logged and counted, and the next
    attempt simply happens on the next tick.

    Usage::

        refresher = PeriodicRefresher(reload, interval_secs=60, name="menu_bar")
        refresher.on_result(render)
        async with refresher:
            await asyncio.sleep(600)
    """

    def __init__(
        self,
        task: Callable[[], Awaitable[Any]],
        interval_secs: float,
        name: str = "refresher",
        run_immediately: bool = True,
    ) -> None:
        self._run_task = task
        self._interval_secs = interval_secs
        self._name = name
        self._run_immediately = run_immediately
        self._callbacks: list[RefreshCallback] = []
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._error_count = 0
        self._run_count = 0
        self._last_run_time: float = 0.0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def run_count(self) -> int:
        return self._run_count

    @property
    def last_run_time(self) -> float:
        return self._last_run_time

    def on_result(self, callback: RefreshCallback) -> None:
        """Register a callback receiving each successful run's result."""
        self._callbacks.append(callback)

    async def _emit(self, result: Any) -> None:
        for cb in self._callbacks:
            try:
                outcome = cb(result)
                if asyncio.iscoroutine(outcome):
                    await outcome
            except Exception:
                logger.exception("refresh_callback_error", refresher=self._name)

    async def run_once(self) -> Any:
        """Run the task now, outside the schedule, and emit its result."""
        result = await self._run_task()
        self._run_count += 1
        self._last_run_time = time.time()
        await self._emit(result)
        return result

    async def start(self) -> None:
        """Start the background loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("refresher_started", refresher=self._name, interval_secs=self._interval_secs)

    async def stop(self) -> None:
        """Stop the loop; an in-flight run is cancelled and its result discarded."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("refresher_stopped", refresher=self._name, run_count=self._run_count)

    async def _loop(self) -> None:
        first = True
        while self._running:
            if not first or self._run_immediately:
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    break
                except Exception:
                    self._error_count += 1
                    logger.exception(
                        "refresh_error",
                        refresher=self._name,
                        error_count=self._error_count,
                    )
            first = False

            try:
                await asyncio.sleep(self._interval_secs)
            except asyncio.CancelledError:
                break

    async def __aenter__(self) -> PeriodicRefresher:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()


class MenuBarController:
    """Keeps the menu bar fresh: reloads data and rotates the pinned monitor."""

    def __init__(
        self,
        loader: DashboardLoader,
        session: Session,
        preferences: PreferencesConfig | None = None,
    ) -> None:
        self._loader = loader
        self._session = session
        self._prefs = preferences or get_settings().preferences
        self._rotation_index = 0
        self._reload = PeriodicRefresher(
            self.refresh,
            interval_secs=self._prefs.menu_bar_refresh_interval.seconds,
            name="menu_bar_reload",
        )
        self._rotation = PeriodicRefresher(
            self._rotate,
            interval_secs=self._prefs.rotation_secs,
            name="menu_bar_rotation",
            run_immediately=False,
        )

    @property
    def rotation_index(self) -> int:
        return self._rotation_index

    def on_state(self, callback: RefreshCallback) -> None:
        """Register a callback receiving every new MenuBarState."""
        self._reload.on_result(lambda _snapshot: callback(self.state()))
        self._rotation.on_result(lambda _index: callback(self.state()))

    async def refresh(self) -> DashboardSnapshot:
        return await self._loader.load(self._session, keep_previous=True)

    def rotate(self) -> int:
        """Advance to the next pinned monitor (wraps around)."""
        pinned = len(self.state().pinned)
        self._rotation_index = (self._rotation_index + 1) % pinned if pinned > 1 else 0
        return self._rotation_index

    async def _rotate(self) -> int:
        return self.rotate()

    def state(self) -> MenuBarState:
        snapshot = self._loader.last
        loading = snapshot is None
        return build_menu_bar(
            snapshot or DashboardSnapshot(),
            self._prefs,
            rotation_index=self._rotation_index,
            loading=loading,
        )

    async def start(self) -> None:
        await self._reload.start()
        await self._rotation.start()

    async def stop(self) -> None:
        await self._rotation.stop()
        await self._reload.stop()
