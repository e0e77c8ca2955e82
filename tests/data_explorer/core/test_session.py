from __future__ import annotations

import os
import time

from data_explorer.core.session import OneShot, SessionContext, SessionManager


def test_one_shot_fires_once():
    calls = []
    once = OneShot("test")

    assert once.fire(calls.append, 1) is True
    assert once.fire(calls.append, 2) is False
    assert calls == [1]
    assert once.fired


def test_timezone_first_value_wins():
    session = SessionContext()

    assert session.receive_timezone(None) is False
    assert session.receive_timezone("Europe/Berlin") is True
    assert session.receive_timezone("America/New_York") is False
    assert session.timezone == "Europe/Berlin"


def test_identifier_uses_pid_and_token_slice():
    session = SessionContext(token="0" * 24 + "abcdef12" + "0" * 8)

    assert session.identifier() == f"Pid:{os.getpid()} Token:abcdef12"


def test_manager_open_get_close():
    opened = []
    manager = SessionManager(on_open=opened.append)

    session = manager.open(bookmark_snapshot={"slices": []})

    assert opened == [session]
    assert session.bookmark_snapshot == {"slices": []}
    assert manager.get(session.session_id) is session
    assert manager.get(None) is None
    assert session.session_id in manager

    assert manager.close(session.session_id) is True
    assert manager.close(session.session_id) is False
    assert len(manager) == 0
    assert session.progress.snapshot()[2] is True


def test_prune_idle_sessions():
    manager = SessionManager()
    old = manager.open()
    fresh = manager.open()
    old.last_seen = time.monotonic() - 100

    pruned = manager.prune_idle(max_age_s=10)

    assert pruned == [old.session_id]
    assert fresh.session_id in manager
    assert old.session_id not in manager
