# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from flex_dashboard.auth.identity import StaticIdentityProvider
from flex_dashboard.cli.bootstrap import create_initial_state
from flex_dashboard.core.state import AppState

from .fakes import USER_ID, FakeSoundPlayer, FakeStateStore, RecordingPresenter


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="flex-test",
        backend="sqlite",
        app_id="test-app",
        data_dir=tmp_path,
        store_db_path=tmp_path / "state.sqlite3",
        identity_path=tmp_path / "identity.json",
        user_id=None,
        auth_token=None,
        daily_reward_minutes=30,
        initial_flex_minutes=60,
        sound_enabled=False,
        audio_dir=tmp_path / "audio",
    )


@pytest.fixture()
def store() -> FakeStateStore:
    return FakeStateStore()


@pytest.fixture()
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture()
def sound() -> FakeSoundPlayer:
    return FakeSoundPlayer()


@pytest.fixture()
def state(settings, store, presenter, sound) -> AppState:
    """
    AppState wired with the in-memory store and recording presenter.

    The session is not started; tests call start_session or seed the store first.
    """
    return create_initial_state(
        settings=settings,
        store=store,
        identity=StaticIdentityProvider(USER_ID),
        presenter=presenter,
        sound=sound,
    )


@pytest.fixture()
def signed_in(state: AppState) -> AppState:
    """AppState with a user id but no live subscriptions (actions read the session cache)."""
    state.session.user_id = USER_ID
    return state
