# src/flex_dashboard/auth/identity.py

from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any

from ..core.errors import InitializationError

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> dict[str, Any]:
    raw = path.read_text("utf-8")
    val = json.loads(raw)
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Best-effort: not critical on Windows or restricted FS.
        pass


class StaticIdentityProvider:
    """Uses a user id given up front (config override, tests)."""

    def __init__(self, user_id: str) -> None:
        if not user_id or not user_id.strip():
            raise ValueError("user_id is required")
        self._user_id = user_id.strip()

    async def sign_in(self) -> str:
        return self._user_id


class LocalIdentityProvider:
    """
    Anonymous sign-in for the local backend.

    The first run mints a random id and keeps it in identity.json so the same
    profile and tasks are found on restart.
    """

    def __init__(self, identity_path: str | Path) -> None:
        self._path = Path(identity_path)

    def _load_or_create(self) -> str:
        if self._path.exists():
            try:
                user_id = str(_load_json(self._path).get("user_id") or "").strip()
            except (OSError, ValueError) as e:
                raise InitializationError(f"Unreadable identity file {self._path}: {e}") from e
            if user_id:
                return user_id
            logger.warning("Identity file %s has no user_id; creating a new identity.", self._path)

        user_id = uuid.uuid4().hex
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write_json(self._path, {"user_id": user_id})
        except OSError as e:
            raise InitializationError(f"Cannot persist identity to {self._path}: {e}") from e
        logger.info("Created anonymous identity user=%s", user_id)
        return user_id

    async def sign_in(self) -> str:
        return await asyncio.to_thread(self._load_or_create)
