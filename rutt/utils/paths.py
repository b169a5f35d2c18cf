"""Centralized path definitions for rutt.

Single source of truth for the application directories so the config layer,
the logging layer and the CLI agree on where things live.
"""

from pathlib import Path

# Base application directory
RUTT_DIR = Path.home() / ".rutt"

# Subdirectories
LOGS_DIR = RUTT_DIR / "logs"

# Specific files
CONFIG_PATH = RUTT_DIR / "config.json"
