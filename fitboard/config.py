"""
fitboard.config — YAML Configuration Loader
============================================

**Why this file exists:**
This module reads ``config.yaml`` for deployment settings: which Discord
guild and channel carry the daily check-in threads, which civil timezone the
schedule follows, and where the ledger document lives.  Secrets (the bot
token) stay in ``.env`` and are read by the entry point.

Scoring constants are *not* configurable; they live in
:mod:`fitboard.engine.scoring`.

Usage::

    from fitboard.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.channel_id)        # 1468816181854081229
    print(cfg.timezone)          # "America/New_York"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_LEDGER_PATH = "ledger.json"


class ConfigError(RuntimeError):
    """A required setting is missing or unusable."""


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class FitBoardConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Discord
    bot_prefix: str
    guild_id: int
    channel_id: int  # The one channel whose prompt threads are tracked
    admin_role_id: int  # Role allowed to run admin commands; 0 = server administrators

    # Schedule
    timezone: str

    # Storage
    ledger_path: str

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> FitBoardConfig:
    """Read *path* and return a :class:`FitBoardConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ConfigError
        If ``channel_id`` is missing or empty, or ``timezone`` is not a
        known IANA zone.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    channel_id = raw.get("channel_id")
    if not channel_id:
        raise ConfigError(
            "channel_id is not set in config.yaml — the bot needs the ID of "
            "the channel where daily check-in threads are posted."
        )

    timezone = raw.get("timezone") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone in config.yaml: {timezone!r}") from exc

    return FitBoardConfig(
        community_name=raw.get("community_name", "FitBoard"),
        bot_prefix=raw.get("bot_prefix", "!"),
        guild_id=int(raw.get("guild_id") or 0),
        channel_id=int(channel_id),
        admin_role_id=int(raw.get("admin_role_id") or 0),
        timezone=timezone,
        ledger_path=raw.get("ledger_path") or DEFAULT_LEDGER_PATH,
    )
