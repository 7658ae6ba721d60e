# tests/test_bootstrap.py

from __future__ import annotations

import threading

import pytest

from flex_dashboard.cli.bootstrap import shutdown_state, start_session
from flex_dashboard.core.state import AppState, SubscriptionState

from .fakes import FakeSoundPlayer, FakeStateStore


@pytest.mark.asyncio
async def test_shutdown_stops_audio_off_the_event_loop(
    state: AppState, store: FakeStateStore, sound: FakeSoundPlayer
) -> None:
    await start_session(state)
    await state.engine.drain()

    await shutdown_state(state)

    assert sound.shutdown_thread is not None
    assert sound.shutdown_thread != threading.get_ident()
    assert store.watches == []
    assert state.session.tasks_state is SubscriptionState.UNSUBSCRIBED
