# src/flex_dashboard/notify/notifier.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.ports import Presenter, SoundPlayer
from ..view.renderer import Color

logger = logging.getLogger(__name__)


class NotifyEvent(StrEnum):
    READY = "ready"
    DEFAULTS_LOADED = "defaults_loaded"
    TASK_ADDED = "task_added"
    TASKS_CLEARED = "tasks_cleared"
    RESET_NOOP = "reset_noop"
    HOLD_UP = "hold_up"
    MISSION_INCOMPLETE = "mission_incomplete"
    REQUEST_SENT = "request_sent"
    REWARD_GRANTED = "reward_granted"
    OVERAGE_DEDUCTED = "overage_deducted"
    GENERIC_ERROR = "generic_error"


class SoundCue(StrEnum):
    SUCCESS = "success"
    ADDED = "added"
    DEDUCT = "deduct"
    ERROR = "error"
    SENT = "sent"


@dataclass(slots=True, frozen=True)
class Popup:
    title: str
    body: str
    color: Color
    cue: SoundCue | None = None


@dataclass(slots=True, frozen=True)
class _Template:
    title: str
    body: str
    color: Color
    cue: SoundCue | None = None


_TEMPLATES: dict[NotifyEvent, _Template] = {
    NotifyEvent.READY: _Template(
        "SYSTEM READY", "Dashboard connected. Initializing {flex} min Flex Time.", Color.BLUE
    ),
    NotifyEvent.DEFAULTS_LOADED: _Template(
        "DEFAULT ROUTINE", "Morning routine loaded. Start checking tasks!", Color.BLUE
    ),
    NotifyEvent.TASK_ADDED: _Template(
        "TASK ADDED", '"{name}" successfully added.', Color.BLUE, SoundCue.ADDED
    ),
    NotifyEvent.TASKS_CLEARED: _Template(
        "TASKS CLEARED", "{count} completed tasks removed!", Color.GREEN
    ),
    NotifyEvent.RESET_NOOP: _Template(
        "NO TASKS TO RESET", "All current tasks are incomplete.", Color.BLUE
    ),
    NotifyEvent.HOLD_UP: _Template(
        "HOLD UP", "There are no tasks to confirm! Add some tasks first.", Color.RED, SoundCue.ERROR
    ),
    NotifyEvent.MISSION_INCOMPLETE: _Template(
        "MISSION INCOMPLETE", "You have {remaining} tasks remaining.", Color.RED, SoundCue.ERROR
    ),
    NotifyEvent.REQUEST_SENT: _Template(
        "REQUEST SENT", "Processing {reward} min Reward...", Color.BLUE, SoundCue.SENT
    ),
    NotifyEvent.REWARD_GRANTED: _Template(
        "ACCESS GRANTED!",
        "+{reward} min awarded! Debt cleared: {debt_cleared} min.",
        Color.GREEN,
        SoundCue.SUCCESS,
    ),
    NotifyEvent.OVERAGE_DEDUCTED: _Template(
        "WARNING: OVERAGE", "{minutes} min deducted. Debt increased.", Color.RED, SoundCue.DEDUCT
    ),
    NotifyEvent.GENERIC_ERROR: _Template("ERROR", "{message}", Color.RED, SoundCue.ERROR),
}


def build_popup(event: NotifyEvent, **params: Any) -> Popup:
    tpl = _TEMPLATES[event]
    return Popup(title=tpl.title, body=tpl.body.format(**params), color=tpl.color, cue=tpl.cue)


class Notifier:
    """
    Turns named events into popups and sound cues.

    Side effects only: presenter and audio failures are logged, never raised.
    """

    def __init__(self, presenter: Presenter, sound: SoundPlayer | None = None) -> None:
        self._presenter = presenter
        self._sound = sound

    def notify(self, event: NotifyEvent, **params: Any) -> Popup | None:
        try:
            popup = build_popup(event, **params)
        except Exception:
            logger.exception("Failed to build popup for event=%s params=%r", event, params)
            return None

        logger.info("[POPUP] %s: %s", popup.title, popup.body)

        try:
            self._presenter.show_popup(popup)
        except Exception:
            logger.exception("Presenter failed to show popup %r", popup.title)

        if popup.cue is not None and self._sound is not None:
            try:
                self._sound.play(popup.cue.value)
            except Exception as e:
                logger.error('Error playing sound "%s": %r', popup.cue.value, e)

        return popup

    def error(self, message: str) -> Popup | None:
        return self.notify(NotifyEvent.GENERIC_ERROR, message=message)
