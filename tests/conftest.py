"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from fitboard.storage.ledger import Ledger


def run_async(coro):
    """Run an async coroutine in a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    return tmp_path / "ledger.json"


@pytest.fixture
def ledger(ledger_path: Path) -> Ledger:
    """An initialized, empty ledger backed by a temp file."""
    store = Ledger(ledger_path)
    run_async(store.load())
    return store


@pytest.fixture
def read_document(ledger_path: Path):
    """Return a callable that parses the ledger file as it is on disk."""

    def _read() -> dict:
        return json.loads(ledger_path.read_text(encoding="utf-8"))

    return _read
