# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` / TAKAHASHI_* variables. Only the switches below are read from here.
"""

# Example: run without reminders (e.g. on a headless box)
# NOTIFICATIONS_ENABLED = False

# Example: deliver reminders only, no interactive console
# CONSOLE_ENABLED = False
