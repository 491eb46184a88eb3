"""
Tests for structured telemetry events and the instrument decorator.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
from unittest.mock import MagicMock

import pytest
from column_tutor.core import config, deps
from column_tutor.services import telemetry


@pytest.fixture
def captured(monkeypatch):
    events = []
    monkeypatch.setattr(telemetry, "emit_event", lambda event, **kw: events.append((event, kw)))
    return events


def test_emit_event_logs_single_line_json(caplog):
    caplog.set_level(logging.INFO, logger="columntutor.telemetry")
    telemetry.emit_event("session_started", route="/api/v1/sessions", version="v1", session_id="abc")
    assert any('"session_id":"abc"' in r.getMessage() for r in caplog.records)


def test_events_not_persisted_by_default(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(deps, "get_supabase_client", lambda: client)
    telemetry.emit_event("x", route="/r", version="v1")
    client.table.assert_not_called()


def test_events_persisted_when_enabled(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(config, "get_settings", lambda: config.Settings(enable_telemetry_db=True))
    monkeypatch.setattr(deps, "get_supabase_client", lambda: client)
    telemetry.emit_event("x", route="/r", version="v1", problem_id="3")
    client.table.assert_called_once_with("telemetry_events")
    row = client.table.return_value.insert.call_args[0][0]
    assert row["problem_id"] == "3"
    assert "ts" not in row


def test_persist_failure_does_not_raise(monkeypatch):
    def boom():
        raise RuntimeError("no network")
    monkeypatch.setattr(config, "get_settings", lambda: config.Settings(enable_telemetry_db=True))
    monkeypatch.setattr(deps, "get_supabase_client", boom)
    telemetry.emit_event("x", route="/r", version="v1")


class TestInstrument:
    def test_success(self, captured):
        @telemetry.instrument(route="/r", version="v1")
        def handler(session_id: str):
            return session_id.upper()

        assert handler(session_id="abc") == "ABC"
        event, kw = captured[0]
        assert event == "api_call"
        assert kw["ok"] is True
        assert kw["session_id"] == "abc"
        assert kw["error_type"] is None

    def test_failure_reraised(self, captured):
        @telemetry.instrument(route="/r", version="v1")
        def handler():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            handler()
        assert captured[0][1]["ok"] is False
        assert captured[0][1]["error_type"] == "KeyError"
