"""Unit tests for SessionManager file handling and expiry."""
from __future__ import annotations

import json

import pytest

from proof360.sessions import SessionManager
from tests.lib.fake_dashboard import FakeClock

pytestmark = pytest.mark.unit

GOOD_STATE = {"cookies": [{"name": "auth", "value": "x"}], "origins": []}


@pytest.fixture
def clock():
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def manager(tmp_path, clock):
    return SessionManager("admin", tmp_path, validity=30 * 60, refresh_after=20 * 60, clock=clock)


def save_state(manager: SessionManager, state=GOOD_STATE) -> None:
    manager.storage_state_path.write_text(json.dumps(state))


class TestPaths:
    def test_file_names(self, tmp_path):
        m = SessionManager("normal", tmp_path)
        assert m.storage_state_path == tmp_path / "userStorageState_normal.json"
        assert m.validity_path == tmp_path / "sessionValidity_normal.json"


class TestValidity:
    def test_no_files(self, manager):
        assert manager.has_valid_session() is False

    def test_state_without_validity_file(self, manager):
        save_state(manager)
        assert manager.has_valid_session() is False

    def test_fresh_session(self, manager):
        save_state(manager)
        manager.mark_session_valid()
        assert manager.has_valid_session() is True
        data = json.loads(manager.validity_path.read_text())
        assert data["timestamp"] == 1_700_000_000_000
        assert data["userType"] == "admin"

    def test_expired(self, manager, clock):
        save_state(manager)
        manager.mark_session_valid()
        clock.advance(31 * 60)
        assert manager.has_valid_session() is False

    @pytest.mark.parametrize("state", [
        {"cookies": [], "origins": []},
        {"cookies": [{"name": "a"}]},
        {"origins": []},
        {"cookies": [{"name": "a"}], "origins": {}},
        {"cookies": [{"name": "a"}], "origins": None},
    ])
    def test_bad_storage_state(self, manager, state):
        save_state(manager, state)
        manager.mark_session_valid()
        assert manager.has_valid_session() is False

    def test_corrupt_validity_file(self, manager):
        save_state(manager)
        manager.validity_path.write_text("{not json")
        assert manager.has_valid_session() is False


class TestRefresh:
    def test_needs_refresh_without_file(self, manager):
        assert manager.needs_refresh() is True

    def test_refresh_threshold(self, manager, clock):
        manager.mark_session_valid()
        clock.advance(19 * 60)
        assert manager.needs_refresh() is False
        clock.advance(2 * 60)
        assert manager.needs_refresh() is True

    def test_extend_resets_age(self, manager, clock):
        save_state(manager)
        manager.mark_session_valid()
        clock.advance(25 * 60)
        manager.extend_session()
        clock.advance(25 * 60)
        assert manager.has_valid_session() is True
        assert "lastExtended" in json.loads(manager.validity_path.read_text())

    def test_extend_without_file_is_noop(self, manager):
        manager.extend_session()
        assert not manager.validity_path.exists()


class TestClear:
    def test_removes_both_files(self, manager):
        save_state(manager)
        manager.mark_session_valid()
        manager.clear_session()
        assert not manager.storage_state_path.exists()
        assert not manager.validity_path.exists()

    def test_clear_when_nothing_saved(self, manager):
        manager.clear_session()
