"""Shared pytest fixtures for bugbook tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from bugbook.core import BUGBOOK_DIR_NAME, BugStore
from bugbook.models import Bug


@pytest.fixture
def store(tmp_path: Path) -> BugStore:
    """Fresh, initialized BugStore for each test."""
    s = BugStore(tmp_path / BUGBOOK_DIR_NAME)
    s.initialize()
    return s


@pytest.fixture
def populated_store(store: BugStore) -> BugStore:
    """BugStore pre-populated with a representative bug set.

    Creates, oldest first:
    - AAAA0001: Backend, High, Open, due 2026-01-10, author Ada Lovelace
    - BBBB0002: Frontend, Low, Resolved, due 2026-01-05
    - CCCC0003: Backend, Medium, Open, no due date
    - DDDD0004: General, no priority, Open, due 2099-12-31, author Grace Hopper
    """
    store.save_bug(
        Bug(
            id="AAAA0001",
            timestamp="2026-01-01T10:00:00+00:00",
            category="Backend",
            error="NullPointer in handler",
            priority="High",
            due_date="2026-01-10",
            author="Ada Lovelace",
        )
    )
    store.save_bug(
        Bug(
            id="BBBB0002",
            timestamp="2026-01-02T10:00:00+00:00",
            category="Frontend",
            error="Button misaligned",
            solution="Fixed flexbox",
            status="Resolved",
            priority="Low",
            due_date="2026-01-05",
        )
    )
    store.save_bug(
        Bug(
            id="CCCC0003",
            timestamp="2026-01-03T10:00:00+00:00",
            category="Backend",
            error="Timeout on login",
            priority="Medium",
        )
    )
    store.save_bug(
        Bug(
            id="DDDD0004",
            timestamp="2026-01-04T10:00:00+00:00",
            error="Typo in footer",
            due_date="2099-12-31",
            author="Grace Hopper",
        )
    )
    return store


@pytest.fixture
def bugbook_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a bugbook project. Returns the project root."""
    BugStore(tmp_path / BUGBOOK_DIR_NAME).initialize()
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_bugbook_logger() -> Generator[None, None, None]:
    """Close file handlers the CLI attaches to the bugbook logger."""
    yield
    logger = logging.getLogger("bugbook")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
