"""
fitboard.bot.__main__ — Entry point for ``python -m fitboard.bot``
==================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (channel, timezone, ledger path).
3. Create the ledger (loaded and validated in ``setup_hook``).
4. Create the FitBoardBot and hand it config + ledger.
5. Start the bot (blocking — runs the asyncio event loop).
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from fitboard.bot.core import FitBoardBot
from fitboard.config import ConfigError, load_config
from fitboard.storage.ledger import Ledger

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("fitboard")


def main() -> None:
    """Bootstrap and run the FitBoard bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Configuration.
    try:
        cfg = load_config(os.getenv("FITBOARD_CONFIG", "config.yaml"))
    except (ConfigError, FileNotFoundError) as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    logger.info(
        "Config loaded — %s: channel %d, timezone %s",
        cfg.community_name, cfg.channel_id, cfg.timezone,
    )

    # 3. Ledger.
    ledger = Ledger(cfg.ledger_path)

    # 4. Bot.
    bot = FitBoardBot(cfg=cfg, ledger=ledger)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting FitBoard bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
