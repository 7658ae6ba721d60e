# src/flex_dashboard/auth/firebase_identity.py

from __future__ import annotations

import asyncio
import logging

from firebase_admin import auth

from ..core.errors import InitializationError

logger = logging.getLogger(__name__)


class FirebaseIdentityProvider:
    """
    Resolves the user id from a Firebase ID token.

    The token is minted by a client-side sign-in (anonymous or custom token);
    the dashboard only verifies it and uses the uid claim. Requires the Firebase
    app to be initialized first (FirestoreStateStore does that).
    """

    def __init__(self, id_token: str) -> None:
        self._id_token = id_token

    async def sign_in(self) -> str:
        if not self._id_token:
            raise InitializationError("No Firebase ID token configured (FLEX_AUTH_TOKEN).")
        try:
            claims = await asyncio.to_thread(auth.verify_id_token, self._id_token)
        except Exception as e:
            raise InitializationError(f"Firebase sign-in failed: {e}") from e

        uid = str(claims.get("uid") or "").strip()
        if not uid:
            raise InitializationError("Firebase token has no uid claim.")
        logger.info("Signed in via Firebase user=%s", uid)
        return uid
