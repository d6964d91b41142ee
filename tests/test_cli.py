"""Tests for the command line interface."""
from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from rich.console import Console
from typer.testing import CliRunner

from biocheck import cli
from biocheck.cli import app
from biocheck.net import RateLimitConfig
from biocheck.sources import WikiTreeClient, WikiTreePlusClient

from conftest import SOURCED_BIO, TEMPLATE_CATALOG, UNSOURCED_BIO, make_profile

PROFILES = {1: make_profile(1), 2: make_profile(2, bio=UNSOURCED_BIO)}


def wikitree_handler(request: httpx.Request) -> httpx.Response:
    """Serve the WikiTree API and both WikiTree+ services from ``PROFILES``."""
    host = request.url.host
    if host == "plus.wikitree.com":
        return httpx.Response(200, json={"templates": TEMPLATE_CATALOG})
    if host == "wikitree.sdms.si":
        return httpx.Response(200, json={"response": {"found": len(PROFILES), "profiles": list(PROFILES)}})

    if request.method == "POST":
        form = httpx.QueryParams(request.content.decode())
        keys = [int(k) for k in form["keys"].split(",")]
        people = {str(k): PROFILES[k] for k in keys if k in PROFILES}
        return httpx.Response(200, json=[{"status": 0, "people": people}])

    key = request.url.params["key"]
    for profile in PROFILES.values():
        if key in (str(profile["Id"]), profile["Name"]):
            return httpx.Response(200, json=[{"status": 0, "person": profile}])
    return httpx.Response(200, json=[{"status": "Invalid page name"}])


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    fast = RateLimitConfig(max_calls=1000)

    def make_clients(config):
        http = httpx.AsyncClient(transport=httpx.MockTransport(wikitree_handler))
        return WikiTreeClient(http, rate_limit=fast), WikiTreePlusClient(http, rate_limit=fast)

    monkeypatch.setattr(cli, "make_clients", make_clients)
    monkeypatch.setattr(
        cli, "get_config", lambda: {"user_id": "0", "cookies": None, "app_id": "bioCheck", "log_level": None}
    )
    monkeypatch.setenv("BIOCHECK_SYNC_DELAY_MS", "0")
    monkeypatch.setattr(cli, "console", Console(width=200))
    return CliRunner()


def test_bio_sourced(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "bio.txt"
    path.write_text(SOURCED_BIO, encoding="utf-8")

    result = runner.invoke(app, ["bio", str(path)])

    assert result.exit_code == 0
    assert "Sourced" in result.output


def test_bio_unsourced_with_templates(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "bio.txt"
    path.write_text(UNSOURCED_BIO, encoding="utf-8")
    templates = tmp_path / "templates.json"
    templates.write_text(json.dumps({"templates": TEMPLATE_CATALOG}), encoding="utf-8")
    output = tmp_path / "result.json"

    result = runner.invoke(app, ["--output", str(output), "bio", str(path), "--templates", str(templates)])

    assert result.exit_code == 0
    assert "Possibly unsourced" in result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["has_sources"] is False
    assert data["valid_sources"] == []


def test_bio_missing_file(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["bio", str(tmp_path / "missing.txt")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_bio_unreadable_templates(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "bio.txt"
    path.write_text(SOURCED_BIO, encoding="utf-8")
    templates = tmp_path / "templates.json"
    templates.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["bio", str(path), "--templates", str(templates)])

    assert result.exit_code == 1
    assert "Cannot read template catalog" in result.output


def test_profile(runner: CliRunner, tmp_path: Path) -> None:
    output = tmp_path / "report.json"

    result = runner.invoke(app, ["--output", str(output), "profile", "Smith-1"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "Checked 1 profiles" in result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["summary"]["checked"] == 1
    assert payload["rows"] == []


def test_profile_not_found(runner: CliRunner) -> None:
    result = runner.invoke(app, ["profile", "Nobody-1"], catch_exceptions=False)

    assert result.exit_code == 2
    assert "Profile Nobody-1 not found" in result.output


def test_query(runner: CliRunner, tmp_path: Path) -> None:
    output = tmp_path / "report.json"

    result = runner.invoke(app, ["--output", str(output), "query", "Smith"], catch_exceptions=False)

    assert result.exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["summary"]["checked"] == 2
    assert [row["wikitree_id"] for row in payload["rows"]] == ["Smith-2"]


def test_invalid_random_range(runner: CliRunner) -> None:
    result = runner.invoke(app, ["random", "--min", "10", "--max", "5"])

    assert result.exit_code == 1
    assert "Error" in result.output
