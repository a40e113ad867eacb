#!/usr/bin/env python3
"""Matsu command-line client: lists monitors and alerts, edits annotations.

Usage::

    # Monitor list, sorted by alert status
    python scripts/matsu.py monitors --sort alertStatus

    # Alerts view in custom order
    python scripts/matsu.py alerts --sort custom

    # Menu bar state, refreshed until interrupted
    python scripts/matsu.py menubar --watch

    # Set / clear a local alias
    python scripts/matsu.py alias m1 "CPU load"
    python scripts/matsu.py alias m1

    # Replace local tags
    python scripts/matsu.py tags m1 infra prod

    # Custom config file and log level
    python scripts/matsu.py --config config/settings.yaml --log-level DEBUG monitors
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog

from src.alerts.sorter import AlertSort, MonitorSort
from src.annotations.store import AnnotationStore
from src.backend.adapters import create_adapter
from src.backend.exceptions import BackendError
from src.backend.transport import BackendTransport
from src.core.config import Settings, load_settings
from src.core.logging import bind_view, setup_logging
from src.views.actions import MonitorActions
from src.views.builders import (
    MenuBarState,
    build_alerts_view,
    build_monitor_rows,
)
from src.views.loader import DashboardLoader
from src.views.notify import Notification, NotificationStyle, Notifier
from src.views.refresher import MenuBarController

logger = structlog.get_logger(__name__)


def _print_notification(note: Notification) -> None:
    if note.style == NotificationStyle.FAILURE:
        detail = f": {note.message}" if note.message else ""
        print(f"! {note.title}{detail}", file=sys.stderr)


def _print_menu_bar(state: MenuBarState) -> None:
    print(f"title:   {state.title or '-'}")
    print(f"tooltip: {state.tooltip}")
    for row in state.pinned:
        print(f"  pinned  {row.badge or ' '} {row.name}: {row.value_text}")
    for tag, rows in state.tag_groups.items():
        print(f"  [{tag}]")
        for row in rows:
            print(f"    {row.badge or ' '} {row.name}: {row.value_text}")
    for row in state.untagged:
        print(f"  {row.badge or ' '} {row.name}: {row.value_text}")


async def _watch_menu_bar(controller: MenuBarController) -> None:
    controller.on_state(_print_menu_bar)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    await controller.start()
    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")
    finally:
        await controller.stop()


async def _run_annotation_command(args: argparse.Namespace, settings: Settings) -> int:
    annotations = AnnotationStore.from_config(settings.storage)
    notifier = Notifier()
    notifier.on_notification(_print_notification)
    # Annotation edits stay local, so the transport is never connected.
    adapter = create_adapter(BackendTransport(settings.backend), settings.backend)
    actions = MonitorActions(adapter, annotations, notifier)

    if args.command == "alias":
        await actions.set_alias(args.monitor_id, args.text or "")
        print(annotations.get_alias(args.monitor_id) or "(no alias)")
    else:
        cleaned = await actions.set_tags(args.monitor_id, args.tags)
        print(", ".join(cleaned) or "(no tags)")
    return 0


async def run(args: argparse.Namespace) -> int:
    """Log in, load the dashboard and print the requested view."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level, config=settings.logging)
    bind_view(args.command)

    if args.command in ("alias", "tags"):
        return await _run_annotation_command(args, settings)

    notifier = Notifier()
    notifier.on_notification(_print_notification)
    annotations = AnnotationStore.from_config(settings.storage)
    custom_order = settings.preferences.custom_order

    async with BackendTransport(settings.backend) as transport:
        try:
            session = await transport.login()
        except BackendError as exc:
            logger.error("login_failed", error=str(exc))
            print(f"Login failed: {exc}", file=sys.stderr)
            return 1

        adapter = create_adapter(transport, settings.backend)
        loader = DashboardLoader(adapter, annotations, notifier)

        if args.command == "menubar":
            controller = MenuBarController(loader, session, settings.preferences)
            if args.watch:
                await _watch_menu_bar(controller)
                return 0
            await controller.refresh()
            _print_menu_bar(controller.state())
            return 0

        snapshot = await loader.load(session)

        if args.command == "monitors":
            for row in build_monitor_rows(snapshot, args.sort, custom_order):
                tags = f" [{', '.join(row.tags)}]" if row.tags else ""
                print(f"{row.badge or ' '} {row.name:<32} {row.value_text:>16}  {row.updated_text}{tags}")
        else:
            view = build_alerts_view(snapshot, args.sort, custom_order)
            if view.empty:
                print("No alert configurations")
            for title, items in (("Active", view.active), ("Configured", view.configured)):
                if not items:
                    continue
                print(f"{title} ({len(items)})")
                for item in items:
                    cfg = item.config
                    print(
                        f"  {cfg.severity:<8} {view.name_of(item):<32} "
                        f"upper={cfg.upper_threshold} lower={cfg.lower_threshold} "
                        f"value={item.monitor.current_value}"
                    )

    return 0 if snapshot.ok else 2


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Matsu monitor client.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    monitors = sub.add_parser("monitors", help="List monitors")
    monitors.add_argument(
        "--sort",
        default=MonitorSort.NAME.value,
        choices=[s.value for s in MonitorSort],
    )

    alerts = sub.add_parser("alerts", help="List alert configurations")
    alerts.add_argument(
        "--sort",
        default=AlertSort.STATUS.value,
        choices=[s.value for s in AlertSort],
    )

    menubar = sub.add_parser("menubar", help="Show the menu bar state")
    menubar.add_argument("--watch", action="store_true", help="Keep refreshing until interrupted")

    alias = sub.add_parser("alias", help="Set a local alias (omit TEXT to remove)")
    alias.add_argument("monitor_id")
    alias.add_argument("text", nargs="?", default="")

    tags = sub.add_parser("tags", help="Replace local tags (none to remove)")
    tags.add_argument("monitor_id")
    tags.add_argument("tags", nargs="*")

    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
