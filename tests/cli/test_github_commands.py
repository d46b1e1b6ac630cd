"""Tests for the github command group with a mocked GitHub API."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

import bugbook.cli_commands.github as github_commands
from bugbook.cli import cli
from bugbook.config import read_user_config


class FakeGitHub:
    def __init__(self, fail_issues: bool = False) -> None:
        self.fail_issues = fail_issues
        self.next_number = 1
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/user":
            if request.headers["Authorization"] == "Bearer good":
                return httpx.Response(200, json={"login": "octocat"})
            return httpx.Response(401, json={"message": "Bad credentials"})
        if self.fail_issues:
            return httpx.Response(500, json={"message": "down"})
        number = self.next_number
        self.next_number += 1
        return httpx.Response(201, json={"number": number, "html_url": f"https://github.com/o/r/issues/{number}"})

    def issue_posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def fake_github(monkeypatch: pytest.MonkeyPatch) -> FakeGitHub:
    fake = FakeGitHub()
    monkeypatch.setattr(github_commands, "_http_client", lambda: httpx.Client(transport=httpx.MockTransport(fake)))
    return fake


def _configure(runner: CliRunner) -> None:
    for key, value in (("github.token", "good"), ("github.owner", "o"), ("github.repo", "r")):
        assert runner.invoke(cli, ["config", key, value]).exit_code == 0


def _add(runner: CliRunner, *args: str) -> str:
    result = runner.invoke(cli, ["add", *args])
    assert result.exit_code == 0, result.output
    line = next(ln for ln in result.output.splitlines() if ln.startswith("Bug added with ID:"))
    return line.rsplit(":", 1)[1].strip()


def _record(root: Path, bug_id: str) -> dict:
    return json.loads((root / ".bugbook" / "bugs" / f"BUG-{bug_id}.json").read_text())


class TestAuth:
    def test_saves_verified_token_and_detects_repo(
        self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub
    ) -> None:
        runner, root = cli_in_project
        (root / ".git").mkdir()
        (root / ".git" / "config").write_text('[remote "origin"]\n\turl = git@github.com:octo/widgets.git\n')
        result = runner.invoke(cli, ["github", "auth", "--token", "good"])
        assert result.exit_code == 0, result.output
        assert "Authenticated as octocat" in result.output
        config = read_user_config()
        assert config.github.token == "good"
        assert (config.github.owner, config.github.repo) == ("octo", "widgets")

    def test_rejected_token_is_not_saved(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["github", "auth", "--token", "bad"])
        assert result.exit_code == 1
        assert "rejected" in result.output
        assert read_user_config().github.token is None


class TestPush:
    def test_pushes_open_unsynced_bugs(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, root = cli_in_project
        _configure(runner)
        first = _add(runner, "First crash", "-t", "Backend")
        done = _add(runner, "Already fixed")
        runner.invoke(cli, ["resolve", done])
        result = runner.invoke(cli, ["github", "push", "-y"])
        assert result.exit_code == 0, result.output
        assert f"[{first}] -> Issue #1" in result.output
        assert "Done! 1 succeeded, 0 failed." in result.output
        record = _record(root, first)
        assert record["github_issue_number"] == 1
        assert record["github_issue_url"] == "https://github.com/o/r/issues/1"
        assert record["github_issue_closed"] is False
        assert "last_synced" in record
        assert "github_issue_number" not in _record(root, done)
        assert json.loads(fake_github.issue_posts()[0].content)["labels"] == ["bug:Backend"]

    def test_second_push_skips_linked_bugs(
        self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub
    ) -> None:
        runner, _ = cli_in_project
        _configure(runner)
        _add(runner, "Once")
        runner.invoke(cli, ["github", "push", "-y"])
        result = runner.invoke(cli, ["github", "push", "-y"])
        assert "No bugs to push." in result.output
        assert len(fake_github.issue_posts()) == 1

    def test_dry_run_sends_nothing(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, _ = cli_in_project
        _configure(runner)
        bug_id = _add(runner, "Maybe")
        result = runner.invoke(cli, ["github", "push", "--dry-run"])
        assert result.exit_code == 0
        assert "Would create 1 issue(s)" in result.output
        assert bug_id in result.output
        assert fake_github.requests == []

    def test_unconfigured_is_an_error(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, _ = cli_in_project
        _add(runner, "Nowhere to go")
        result = runner.invoke(cli, ["github", "push", "-y"])
        assert result.exit_code == 1
        assert "not configured" in result.output

    def test_failures_exit_nonzero(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, root = cli_in_project
        _configure(runner)
        fake_github.fail_issues = True
        bug_id = _add(runner, "Unlucky")
        result = runner.invoke(cli, ["github", "push", bug_id])
        assert result.exit_code == 1
        assert "Done! 0 succeeded, 1 failed." in result.output
        assert "github_issue_number" not in _record(root, bug_id)

    def test_invalid_id_rejected(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["github", "push", "../x"])
        assert result.exit_code == 1
        assert "Invalid bug ID" in result.output

    def test_pushed_issue_closes_on_resolve(
        self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        runner, root = cli_in_project
        _configure(runner)
        bug_id = _add(runner, "Round trip")
        runner.invoke(cli, ["github", "push", "-y"])
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
        original = github_commands.GitHubIssueSync.from_config.__func__  # type: ignore[attr-defined]
        monkeypatch.setattr(
            "bugbook.cli_commands.workflow.GitHubIssueSync.from_config",
            classmethod(lambda cls, config: original(cls, config, client=client)),
        )
        result = runner.invoke(cli, ["resolve", bug_id])
        assert result.exit_code == 0, result.output
        assert "GitHub issue #1 closed." in result.output
        assert _record(root, bug_id)["github_issue_closed"] is True


class TestStatus:
    def test_counts(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, _ = cli_in_project
        _configure(runner)
        pushed = _add(runner, "Pushed")
        runner.invoke(cli, ["github", "push", pushed])
        waiting = _add(runner, "Waiting")
        result = runner.invoke(cli, ["github", "status"])
        assert result.exit_code == 0, result.output
        assert "Authenticated: yes" in result.output
        assert "Repository: o/r" in result.output
        assert "Open bugs: 2" in result.output
        assert "Synced to GitHub: 1" in result.output
        assert "Pending sync: 1" in result.output
        assert waiting in result.output

    def test_unconfigured(self, cli_in_project: tuple[CliRunner, Path], fake_github: FakeGitHub) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["github", "status"])
        assert result.exit_code == 0
        assert "Authenticated: no" in result.output
        assert "Repository: not set" in result.output
        assert fake_github.requests == []
