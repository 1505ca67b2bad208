"""Tests for the command-line entry point."""

import json
import sys
from unittest.mock import patch

import pytest

from nodemesh import cli
from nodemesh.strategies.general import DISABLED_REPLY


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["nodemesh", *argv])
    cli.main()


def test_ask_prints_intent_and_reply(monkeypatch, capsys):
    _run(monkeypatch, "ask", "tell", "me", "a", "joke")
    out = capsys.readouterr().out
    assert out.startswith("[general]")
    assert DISABLED_REPLY in out


def test_ask_json(monkeypatch, capsys):
    _run(monkeypatch, "ask", "weather in Tokyo", "--json", "--session", "cli-1")
    data = json.loads(capsys.readouterr().out)
    assert data["intent"] == "weather"
    assert data["location"] == "Tokyo"
    assert data["sessionId"] == "cli-1"


def test_ask_blank_message_exits(monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, "ask", "   ")
    assert excinfo.value.code == 2


def test_no_command_prints_help(monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch)
    assert excinfo.value.code == 1


def test_start_runs_uvicorn(monkeypatch):
    with patch("uvicorn.run") as mock_run:
        _run(monkeypatch, "start", "--port", "4000")
    mock_run.assert_called_once_with("nodemesh.api:app", host="127.0.0.1", port=4000, log_level="warning")


def test_invalid_port(monkeypatch):
    with pytest.raises(SystemExit):
        _run(monkeypatch, "start", "--port", "70000")
