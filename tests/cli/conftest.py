"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

import bugbook.config
from bugbook.cli import cli


@pytest.fixture(autouse=True)
def isolated_rc(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~/.bugbookrc at a throwaway file."""
    rc = tmp_path_factory.mktemp("home") / ".bugbookrc"
    monkeypatch.setattr(bugbook.config, "CONFIG_PATH", rc)
    return rc


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Install bugbook in tmp_path and return (runner, project_root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["install"])
    assert result.exit_code == 0
    yield cli_runner, tmp_path
    os.chdir(original_cwd)
