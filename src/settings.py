"""Static configuration for borderadar.

All user-editable settings (sources, sectors, keywords, state, notifications)
live in a single JSON file for quick edits without touching Python. Secrets
come from the environment (.env is loaded by python-dotenv).
"""

import json
import logging
import os

from dotenv import load_dotenv

from core.config import NotificationConfig, RetentionConfig, build_pipeline_config

load_dotenv()

LOGGER = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("BORDERADAR_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def raw_sources() -> list:
    """Return source entries, honouring SOURCES_OVERRIDE_JSON when it parses.

    An override that is not valid JSON is ignored with a log line. One that
    parses but has the wrong shape is passed through so build_sources can
    reject it as a configuration error.
    """

    override = os.getenv("SOURCES_OVERRIDE_JSON")
    if override:
        try:
            return json.loads(override)
        except json.JSONDecodeError:
            LOGGER.warning("SOURCES_OVERRIDE_JSON parse error; using config.json sources")
    return _CONFIG.get("sources", [])


_CONFIG = _load_json_config()

# Keyword sets and sectors are injected into the core as immutable data.
PIPELINE_CONFIG = build_pipeline_config(_CONFIG)

# Feed fetching limits.
_feeds = _CONFIG.get("feeds", {})
ITEMS_PER_SOURCE = int(_feeds.get("items_per_source", 20))
FEED_TIMEOUT_SECONDS = float(_feeds.get("timeout_seconds", 20))

# State persistence:
# - STATE_BACKEND: "sqlite" (local file) or "gist" (GitHub gist)
# - STATE_MAX_EVENTS: cap on the recent events history
# - STATE_MAX_SEEN_IDS: cap on remembered fingerprints (null = unbounded)
_state = _CONFIG.get("state", {})
STATE_BACKEND = _state.get("backend", "sqlite")
DB_PATH = _state.get("db_path", "borderadar.db")
if not os.path.isabs(DB_PATH):
    DB_PATH = os.path.join(PROJECT_ROOT, DB_PATH)
_max_seen = _state.get("max_seen_ids", 5000)
RETENTION = RetentionConfig(
    max_events=int(_state.get("max_events", 200)),
    max_seen_ids=int(_max_seen) if _max_seen is not None else None,
)
GIST_TOKEN = os.getenv("GIST_TOKEN")
GIST_ID = os.getenv("GIST_ID")

# Notification method switches adapters without changing core logic.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "bot")
NOTIFICATION_CONFIG = NotificationConfig(snippet_chars=int(_notifications.get("snippet_chars", 400)))
TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID") or _notifications.get("bot_chat_id")

# Interval used by the `watch` command.
_schedule = _CONFIG.get("schedule", {})
INTERVAL_MINUTES = float(_schedule.get("interval_minutes", 15))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
