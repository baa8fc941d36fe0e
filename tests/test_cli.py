from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from bitbucket_report import cli
from bitbucket_report.activity import DateRange
from bitbucket_report.client import BitbucketClient
from bitbucket_report.config import Config
from bitbucket_report.errors import ConfigurationMissing, RepositoryListingError

from fakes import API, FakeResponse, FakeSession

CONFIG = Config("acme", "alice", "s3cret", frozenset({"Legacy"}))
YESTERDAY = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()


def _workspace_session() -> FakeSession:
    session = FakeSession()
    session.routes[f"{API}/acme?pagelen=100"] = FakeResponse(payload={"values": [
        {"name": "The Source"}, {"name": "Legacy"}, {"name": "web"},
    ]})
    session.routes[f"{API}/acme/the-source/commits?pagelen=50"] = FakeResponse(payload={"values": [
        {"hash": "aaaaaaaaaa", "date": YESTERDAY, "message": "one", "author": {"raw": "Jane <j@x.io>"}},
        {"hash": "bbbbbbbbbb", "date": YESTERDAY, "message": "two", "author": {"raw": "Jane <j@x.io>"}},
    ]})
    session.routes[f"{API}/acme/web/pullrequests?state=MERGED&pagelen=50"] = FakeResponse(payload={"values": [
        {"id": 5, "title": "Ship it", "state": "MERGED", "created_on": YESTERDAY, "updated_on": YESTERDAY,
         "author": {"display_name": "Bob"}},
    ]})
    return session


@pytest.fixture
def workspace_session() -> FakeSession:
    return _workspace_session()


@pytest.fixture
def patched_main(workspace_session: FakeSession):
    def make_client(username, app_password):
        return BitbucketClient(username, app_password, session=workspace_session)

    with patch.object(cli, "load_config", return_value=CONFIG), \
            patch.object(cli, "BitbucketClient", side_effect=make_client), \
            patch.object(cli.time, "sleep") as sleep:
        yield sleep


def test_help_exits_zero_without_network(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.object(cli, "BitbucketClient") as client_cls:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--help"])
    assert excinfo.value.code == 0
    assert "--create-config" in capsys.readouterr().out
    client_cls.assert_not_called()


def test_create_config_writes_template(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    with patch.object(cli, "BitbucketClient") as client_cls:
        assert cli.main(["--create-config"]) == 0
    assert json.loads((tmp_path / "bitbucket-config.json").read_text())["workspace"] == "your-workspace-name"
    client_cls.assert_not_called()


def test_missing_configuration_exits_before_network(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.object(cli, "load_config", side_effect=ConfigurationMissing("Configuration not found!")), \
            patch.object(cli, "BitbucketClient") as client_cls:
        assert cli.main([]) == cli.EXIT_CONFIG_MISSING
    assert "Configuration not found!" in capsys.readouterr().err
    client_cls.assert_not_called()


def test_run_collects_per_repository_and_skips_excluded(
    workspace_session: FakeSession, capsys: pytest.CaptureFixture[str]
) -> None:
    client = BitbucketClient("alice", "s3cret", session=workspace_session)

    stats = cli.run(CONFIG, client, DateRange.last_week(), pause=0)

    assert stats.repositories == ["The Source", "web"]
    assert [c.hash for c in stats.commits["Jane"]] == ["aaaaaaa", "bbbbbbb"]
    assert [pr.id for pr in stats.pull_requests["Bob"]] == [5]
    assert not any("/legacy/" in call["url"] for call in workspace_session.calls)

    out = capsys.readouterr()
    assert "📁 The Source... 2 commits, 0 PRs" in out.out
    assert "📁 web... 0 commits, 1 PRs" in out.out
    # Commits for web and PRs for The Source are missing from the routes
    assert "Could not fetch commits for web" in out.err
    assert "Could not fetch PRs for The Source" in out.err


def test_run_pauses_between_repositories(workspace_session: FakeSession) -> None:
    client = BitbucketClient("alice", "s3cret", session=workspace_session)
    with patch.object(cli.time, "sleep") as sleep:
        cli.run(CONFIG, client, DateRange.last_week())
    assert sleep.call_count == 2
    sleep.assert_called_with(0.1)


def test_run_propagates_listing_failure() -> None:
    client = BitbucketClient("alice", "s3cret", session=FakeSession())
    with pytest.raises(RepositoryListingError):
        cli.run(CONFIG, client, DateRange.last_week(), pause=0)


def test_main_prints_report(patched_main, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-v"]) == 0

    out = capsys.readouterr().out
    assert "🏢 Analyzing workspace: acme" in out
    assert "📝 Jane: 2 commits" in out
    assert "    aaaaaaa - one (The Source)" in out
    assert "🔀 Bob: 1 pull requests" in out
    assert "Total Commits: 2" in out
    assert "Active Contributors: 2" in out
    assert "Repositories Analyzed: 2" in out


def test_main_listing_failure_prints_no_report(
    patched_main, workspace_session: FakeSession, capsys: pytest.CaptureFixture[str]
) -> None:
    workspace_session.routes.clear()

    assert cli.main([]) == cli.EXIT_FAILURE

    captured = capsys.readouterr()
    assert "Failed to fetch repositories" in captured.err
    assert "ACTIVITY REPORT" not in captured.out


def test_main_writes_requested_exports(patched_main, tmp_path: Path) -> None:
    csv_path = tmp_path / "activity.csv"
    chart_path = tmp_path / "activity.png"

    assert cli.main(["--csv", str(csv_path), "--chart", str(chart_path)]) == 0

    assert csv_path.read_text(encoding="utf-8").startswith("kind,contributor,repo,id,summary,date")
    assert chart_path.stat().st_size > 0


def test_run_survives_malformed_repository_response(
    workspace_session: FakeSession, capsys: pytest.CaptureFixture[str]
) -> None:
    for url in (f"{API}/acme/web/commits?pagelen=50", f"{API}/acme/web/commits"):
        workspace_session.routes[url] = FakeResponse(payload={"values": None})
    client = BitbucketClient("alice", "s3cret", session=workspace_session)

    stats = cli.run(CONFIG, client, DateRange.last_week(), pause=0)

    assert stats.repositories == ["The Source", "web"]
    assert [pr.id for pr in stats.pull_requests["Bob"]] == [5]
    assert "Could not fetch commits for web" in capsys.readouterr().err
