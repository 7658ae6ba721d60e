# src/flex_dashboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/identity/notifier/sync),
- signs in and opens the live subscriptions,
- tears everything down on exit.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..auth.identity import LocalIdentityProvider, StaticIdentityProvider
from ..config import get_settings
from ..connectors.console_connector import ConsolePresenter
from ..core.actions import DashboardActions
from ..core.errors import InitializationError
from ..core.ports import IdentityProvider, Presenter, SoundPlayer, StateStore
from ..core.state import AppState, SessionContext
from ..notify.audio import AudioCuePlayer
from ..notify.notifier import Notifier
from ..storage.sqlite_store import SQLiteStateStore
from ..sync.sync_engine import SyncEngine
from ..tasks.task_store import TaskStoreAdapter

logger = logging.getLogger(__name__)

CONNECT_ERROR_MESSAGE = "Failed to connect to the database. Check console."


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.identity_path.parent.mkdir(parents=True, exist_ok=True)


def _build_store(settings) -> StateStore:
    backend = str(getattr(settings, "backend", "sqlite")).lower()
    if backend == "sqlite":
        return SQLiteStateStore(settings.store_db_path)
    if backend == "firestore":
        # firebase-admin is only imported when actually selected.
        from ..storage.firestore_store import FirestoreStateStore

        return FirestoreStateStore(settings.firebase_credentials, settings.firebase_project_id)
    raise InitializationError(f"Unknown state store backend: {backend!r}")


def _build_identity(settings) -> IdentityProvider:
    if getattr(settings, "user_id", None):
        return StaticIdentityProvider(settings.user_id)
    if str(getattr(settings, "backend", "sqlite")).lower() == "firestore":
        from ..auth.firebase_identity import FirebaseIdentityProvider

        return FirebaseIdentityProvider(settings.auth_token or "")
    return LocalIdentityProvider(settings.identity_path)


def create_initial_state(
    *,
    settings=None,
    store: StateStore | None = None,
    identity: IdentityProvider | None = None,
    presenter: Presenter | None = None,
    sound: SoundPlayer | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Every collaborator is injectable, which keeps tests free of env/config reads.
    If settings is None, falls back to get_settings().

    Raises InitializationError (after notifying) if the store cannot be created.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    presenter = presenter or ConsolePresenter()
    if sound is None:
        sound = AudioCuePlayer(enabled=settings.sound_enabled, audio_dir=settings.audio_dir)
    notifier = Notifier(presenter, sound)

    if store is None:
        try:
            store = _build_store(settings)
        except Exception as e:
            logger.exception("State store initialization failed")
            notifier.error(CONNECT_ERROR_MESSAGE)
            if isinstance(e, InitializationError):
                raise
            raise InitializationError(str(e)) from e

    session = SessionContext(app_id=getattr(settings, "app_id", None) or None)
    tasks = TaskStoreAdapter(store, session)
    actions = DashboardActions(
        session,
        store,
        tasks,
        notifier,
        daily_reward_minutes=settings.daily_reward_minutes,
    )
    engine = SyncEngine(
        session,
        store,
        tasks,
        notifier,
        presenter,
        initial_flex_minutes=settings.initial_flex_minutes,
    )

    return AppState(
        settings=settings,
        session=session,
        store=store,
        identity=identity or _build_identity(settings),
        presenter=presenter,
        sound=sound,
        notifier=notifier,
        tasks=tasks,
        actions=actions,
        engine=engine,
    )


async def start_session(state: AppState) -> str:
    """
    Sign in and open the live subscriptions.

    Any failure is surfaced once through the notifier and raised as InitializationError.
    No retry loop.
    """
    try:
        user_id = await state.identity.sign_in()
        state.session.user_id = user_id
        state.presenter.show_user(user_id)
        await state.engine.start()
    except Exception as e:
        logger.exception("Session initialization failed")
        state.notifier.error(CONNECT_ERROR_MESSAGE)
        if isinstance(e, InitializationError):
            raise
        raise InitializationError(str(e)) from e

    logger.info("Session started user=%s", user_id)
    return user_id


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.engine.stop()
    except Exception:
        logger.exception("Failed to stop sync engine.")

    try:
        # Waits for queued cues and the worker thread; keep it off the event loop.
        await asyncio.to_thread(state.sound.shutdown)
    except Exception:
        logger.debug("Sound shutdown failed.", exc_info=True)

    close = getattr(state.store, "close", None)
    if callable(close):
        with contextlib.suppress(Exception):
            close()
