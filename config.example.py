# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "FLEX_APP_NAME": "App display name (default: flex-dashboard).",
    "FLEX_LOG_LEVEL": "Logging level (default: INFO).",
    # State store
    "FLEX_BACKEND": "State store backend: sqlite (default) or firestore.",
    "FLEX_APP_ID": "Namespace under artifacts/<app_id>/ (default: default-task-tracker-id; empty => users/ at root).",
    # Identity
    "FLEX_USER_ID": "Fixed user id; skips sign-in (useful for a shared household profile).",
    "FLEX_AUTH_TOKEN": "Firebase ID token verified on sign-in (firestore backend). Fallback: FIREBASE_ID_TOKEN.",
    # Firebase
    "FLEX_FIREBASE_CREDENTIALS": (
        "Service account JSON path. Fallbacks: FIREBASE_CREDENTIALS, GOOGLE_APPLICATION_CREDENTIALS."
    ),
    "FLEX_FIREBASE_PROJECT_ID": "Firebase project id. Fallback: GOOGLE_CLOUD_PROJECT.",
    # Ledger
    "FLEX_DAILY_REWARD_MINUTES": "Minutes granted when every task is done (default: 30).",
    "FLEX_INITIAL_FLEX_MINUTES": "Flex Time written to a brand-new profile (default: 60).",
    # Sound cues
    "FLEX_SOUND_ENABLED": "Play WAV cues on popups (true/false, default: false).",
    "FLEX_AUDIO_DIR": "Directory holding the cue WAV files (default: audio).",
    # Paths (gitignored)
    "FLEX_DATA_DIR": "Local data directory (default: .local/flex).",
    "FLEX_STORE_DB_PATH": "SQLite state store path (default: <data_dir>/state.sqlite3).",
    "FLEX_IDENTITY_PATH": "Anonymous identity file (default: <data_dir>/identity.json).",
}
