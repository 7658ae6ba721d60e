# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for secrets. This file should contain only safe overrides.
"""

# Example: play sound cues on this machine
# SOUND_ENABLED = True

# Example: use the shared Firestore backend instead of the local SQLite file
# BACKEND = "firestore"
