"""Application entry point for the borderadar watcher."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sqlite3
from logging.handlers import RotatingFileHandler
from typing import Awaitable, Callable, Optional

from art import tprint

import settings
from adapters.feeds import HttpFeedFetcher
from adapters.gist_storage import GistStateStore
from adapters.sqlite_storage import SQLiteStateStore
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_notifier import TelegramSavedMessagesNotifier
from core.config import build_sources
from core.models import RunResult
from core.ports import NotifierPort, StateStorePort
from core.processor import EventPipeline
from core.state import read_latest

NAME = "BORDERADAR"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = [os.getenv(name) for name in redact_cfg.get("patterns", [])]
    # Longest first so a secret containing another is masked whole.
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/borderadar.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_store() -> StateStorePort:
    if settings.STATE_BACKEND == "gist":
        return GistStateStore(settings.GIST_TOKEN, settings.GIST_ID)
    if settings.STATE_BACKEND == "sqlite":
        store = SQLiteStateStore(settings.DB_PATH)
        try:
            store.init_db()
        except sqlite3.Error:
            # The run still goes ahead; the reconciler treats the failed load
            # as an empty state.
            LOGGER.exception("Could not initialise state database %s", settings.DB_PATH)
        return store
    raise RuntimeError("state.backend must be 'sqlite' or 'gist'")


async def _run_once(notifier: NotifierPort, store: StateStorePort) -> RunResult:
    try:
        sources = build_sources(settings.raw_sources())
    except ValueError as exc:
        LOGGER.error("Invalid source configuration: %s", exc)
        return RunResult(ok=False, error=f"invalid source configuration: {exc}")

    pipeline = EventPipeline(
        sources=sources,
        config=settings.PIPELINE_CONFIG,
        feeds=HttpFeedFetcher(
            items_per_source=settings.ITEMS_PER_SOURCE,
            timeout=settings.FEED_TIMEOUT_SECONDS,
        ),
        store=store,
        notifier=notifier,
        retention=settings.RETENTION,
    )
    result = await pipeline.run()
    print(json.dumps(result.to_dict()))
    return result


def _with_notifier(job: Callable[[NotifierPort], Awaitable[int]]) -> int:
    """Build the configured notifier and drive the job on the right loop."""

    if settings.NOTIFICATION_METHOD == "bot":
        if not settings.TELEGRAM_TOKEN or not settings.TELEGRAM_CHAT_ID:
            raise RuntimeError("TELEGRAM_TOKEN and TELEGRAM_CHAT_ID are required for bot notifications")
        notifier = TelegramBotNotifier(
            bot_token=settings.TELEGRAM_TOKEN,
            chat_id=str(settings.TELEGRAM_CHAT_ID),
            config=settings.NOTIFICATION_CONFIG,
        )
        return asyncio.run(job(notifier))

    if settings.NOTIFICATION_METHOD == "saved_messages":
        from client import build_client

        client = build_client()
        client.start()
        try:
            notifier = TelegramSavedMessagesNotifier(client, settings.NOTIFICATION_CONFIG)
            return client.loop.run_until_complete(job(notifier))
        finally:
            client.disconnect()

    raise RuntimeError("notification_method must be 'bot' or 'saved_messages'")


def _run() -> int:
    _configure_logging()
    LOGGER.info("Starting borderadar run")
    store = _build_store()

    async def job(notifier: NotifierPort) -> int:
        result = await _run_once(notifier, store)
        return 0 if result.ok else 1

    return _with_notifier(job)


def _watch() -> int:
    _print_banner()
    _configure_logging()
    interval = max(settings.INTERVAL_MINUTES, 1) * 60
    LOGGER.info("Watching feeds every %s minutes", interval / 60)
    store = _build_store()

    async def job(notifier: NotifierPort) -> int:
        # Runs are strictly sequential: the state store allows one writer.
        while True:
            await _run_once(notifier, store)
            await asyncio.sleep(interval)

    try:
        return _with_notifier(job)
    except KeyboardInterrupt:
        LOGGER.info("Stopped")
        return 0


def _latest() -> int:
    _configure_logging()
    print(json.dumps(read_latest(_build_store()), indent=2, ensure_ascii=False))
    return 0


def _panel() -> int:
    _print_banner()
    from frontend.app import EventsPanelApp

    EventsPanelApp(store=_build_store()).run()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="borderadar", description="Verified border incident alerts")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Fetch, verify and notify once")
    subparsers.add_parser("watch", help="Run repeatedly on the configured interval")
    subparsers.add_parser("latest", help="Print recently emitted events as JSON")
    subparsers.add_parser("panel", help="Browse recent events in a terminal UI")
    args = parser.parse_args(argv)

    commands = {
        "run": _run,
        "watch": _watch,
        "latest": _latest,
        "panel": _panel,
    }
    command = commands.get(args.command or "run")
    return command()


if __name__ == "__main__":
    raise SystemExit(main())
