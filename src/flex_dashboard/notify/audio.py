# src/flex_dashboard/notify/audio.py

from __future__ import annotations

import logging
import queue
import threading
import wave
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

# cue name -> file under the audio dir
CUE_FILES: dict[str, str] = {
    "success": "access_granted.wav",
    "added": "task_added.wav",
    "deduct": "deduction.wav",
    "error": "error.wav",
    "sent": "request_sent.wav",
}

_SAMPLE_DTYPES = {1: "uint8", 2: "int16", 4: "int32"}


class AudioCuePlayer:
    """
    Best-effort sound cue player.

    Design goals:
    - Optional at runtime (does not crash if PortAudio is missing on the host).
    - Does not block the event loop: decoding and playback happen in a worker thread.
    - Playback failures are logged and dropped.

    Cues are PCM WAV files; decoded clips are cached after the first play.
    """

    def __init__(self, enabled: bool, audio_dir: str | Path = "audio"):
        self.enabled = bool(enabled)
        self._audio_dir = Path(audio_dir)

        self._queue: Optional["queue.Queue[str | None]"] = None
        self._worker: Optional[threading.Thread] = None
        self._cache: dict[str, tuple[Any, int]] = {}

        self._np: Any = None  # numpy module (runtime import)
        self._sd: Any = None  # sounddevice module (runtime import)
        self._stop_requested = False

        if not self.enabled:
            logger.info("Sound cues disabled.")
            return

        # sounddevice raises OSError at import time when PortAudio is not installed.
        try:
            import numpy as np
            import sounddevice as sd
        except (ImportError, OSError) as e:
            self.enabled = False
            logger.warning(
                "Sound cues are enabled, but audio output is unavailable "
                "(numpy + sounddevice + PortAudio required). Error: %s",
                repr(e),
            )
            return

        self._np = np
        self._sd = sd
        self._queue = queue.Queue()

        self._worker = threading.Thread(target=self._audio_worker, daemon=True)
        self._worker.start()

        logger.info("Sound cues ready (audio_dir=%s).", self._audio_dir)

    def _load(self, cue: str) -> tuple[Any, int] | None:
        if cue in self._cache:
            return self._cache[cue]

        filename = CUE_FILES.get(cue)
        if filename is None:
            logger.warning("Unknown sound cue %r", cue)
            return None

        path = self._audio_dir / filename
        if not path.is_file():
            logger.warning("Sound cue file does not exist: %s", path)
            return None

        with wave.open(str(path), "rb") as wf:
            width = wf.getsampwidth()
            channels = wf.getnchannels()
            rate = wf.getframerate()
            frames = wf.readframes(wf.getnframes())

        dtype = _SAMPLE_DTYPES.get(width)
        if dtype is None:
            logger.warning("Unsupported sample width %d in %s", width, path)
            return None

        data = self._np.frombuffer(frames, dtype=dtype)
        if channels > 1:
            data = data.reshape(-1, channels)

        self._cache[cue] = (data, rate)
        return data, rate

    def _audio_worker(self) -> None:
        logger.debug("Sound worker thread started.")
        assert self._queue is not None

        while True:
            item = self._queue.get()
            try:
                if item is None:
                    logger.debug("Sound worker received stop signal.")
                    return

                try:
                    clip = self._load(item)
                except Exception as e:
                    logger.error('Error loading sound "%s": %r', item, e)
                    continue

                if clip is None:
                    continue

                data, rate = clip
                try:
                    self._sd.play(data, rate)
                    self._sd.wait()
                except Exception as e:
                    logger.error('Error playing sound "%s": %r', item, e)

            finally:
                self._queue.task_done()

    def play(self, cue: str) -> None:
        """Queue a cue for playback (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.put(cue)

    def wait_all(self) -> None:
        """Block until all queued cues are played (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.join()

    def shutdown(self) -> None:
        """Request a clean shutdown of the worker (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        if self._stop_requested:
            return
        self._stop_requested = True

        logger.debug("Stopping sound worker...")
        self._queue.put(None)
        self._queue.join()

        if self._worker is not None:
            self._worker.join(timeout=2.0)
