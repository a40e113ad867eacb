"""Transient user notifications: progress, success and failure toasts."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from enum import StrEnum

import structlog
from pydantic import BaseModel, Field

logger = structlog.stdlib.get_logger()


class NotificationStyle(StrEnum):
    ANIMATED = "animated"
    SUCCESS = "success"
    FAILURE = "failure"


class Notification(BaseModel):
    """One toast shown to the user."""

    style: NotificationStyle
    title: str
    message: str = ""
    timestamp: float = Field(default_factory=time.time)


NotificationCallback = Callable[[Notification], Awaitable[None] | None]


class Notifier:
    """Fans notifications out to registered callbacks and keeps a short history.

    Callback errors are logged and never reach the code that raised the
    notification.
    """

    def __init__(self, history: int = 20) -> None:
        self._callbacks: list[NotificationCallback] = []
        self._recent: deque[Notification] = deque(maxlen=history)

    @property
    def recent(self) -> list[Notification]:
        return list(self._recent)

    @property
    def last(self) -> Notification | None:
        return self._recent[-1] if self._recent else None

    def on_notification(self, callback: NotificationCallback) -> None:
        """Register a callback for notifications."""
        self._callbacks.append(callback)

    async def notify(self, style: NotificationStyle, title: str, message: str = "") -> Notification:
        note = Notification(style=style, title=title, message=message)
        self._recent.append(note)
        log = logger.warning if style == NotificationStyle.FAILURE else logger.info
        log("user_notification", style=style.value, title=title, message=message)
        for cb in self._callbacks:
            try:
                result = cb(note)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("notification_callback_error", title=title)
        return note

    async def progress(self, title: str) -> Notification:
        return await self.notify(NotificationStyle.ANIMATED, title)

    async def success(self, title: str, message: str = "") -> Notification:
        return await self.notify(NotificationStyle.SUCCESS, title, message)

    async def failure(self, title: str, message: str = "") -> Notification:
        return await self.notify(NotificationStyle.FAILURE, title, message)
