"""
FitBoard — Daily Check-in Leaderboards for Discord
====================================================
Members reply to a daily prompt thread posted by the bot.  Each qualifying
reply is a check-in worth points, reactions from teammates add a capped
bonus, and on a fixed local-time schedule the bot posts fresh prompts and
weekly / monthly leaderboards.

Package layout::

    fitboard/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Presentation constants + prompt lines
    ├── engine/
    │   ├── scoring.py     # Point constants and pure scoring functions
    │   ├── events.py      # Normalized inbound events + qualification
    │   ├── leaderboard.py # Window ranking + text rendering
    │   └── identity.py    # Cached bot account id
    ├── storage/
    │   └── ledger.py      # JSON-document ledger (check-ins + reactions)
    ├── services/
    │   ├── checkin_service.py       # Event → ledger mutation
    │   ├── announcement_service.py  # Prompt + leaderboard jobs
    │   └── scheduler.py             # Local-time → UTC cron jobs
    └── bot/
        ├── core.py        # Bot subclass, cog loader, chat gateway
        └── cogs/
            ├── checkins.py  # Thread replies → check-ins
            ├── reactions.py # Reactions → reaction points
            ├── meta.py      # /whiteboard
            └── tasks.py     # Scheduled posts
"""

__version__ = "0.1.0"
