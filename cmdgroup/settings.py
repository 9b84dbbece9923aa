"""
This module contains the configuration settings for cmdgroup.
It defines supervision timings, logging configuration and CLI constants.
Values can be overridden through a `.env` file or the process environment.
"""

import os
from dotenv import dotenv_values

# Values from .env are read without touching os.environ, since every child
# process inherits the supervisor's environment verbatim.
_ENV = {**dotenv_values(), **os.environ}


def _env_float(key: str, default: float) -> float:
    """Reads a float setting, falling back to the default on bad input."""
    try:
        return float(_ENV.get(key, default))
    except (TypeError, ValueError):
        return default


#* --- Supervision Settings ---
CMD_WAIT_DELAY = _env_float("CMDGROUP_WAIT_DELAY", 10.0)      # seconds after SIGTERM before SIGKILL
RESTART_DELAY = _env_float("CMDGROUP_RESTART_DELAY", 1.0)     # seconds between watched restarts
WAIT_POLL_INTERVAL = _env_float("CMDGROUP_POLL_INTERVAL", 0.1)
DEFAULT_WATCH = _ENV.get("CMDGROUP_WATCH") or "none"

#* --- Argument Handling ---
ARGS_DELIMITER = "--"

#* --- CLI ---
PROG_NAME = "cmdgroup"
# gokrazy treats this exit code as "do not supervise / do not restart".
DO_NOT_SUPERVISE_EXIT_CODE = 125
FAILURE_EXIT_CODE = 1

#* --- Logging ---
LOG_FORMAT = (_ENV.get("CMDGROUP_LOG_FORMAT") or "json").lower()
LOG_LEVEL = (_ENV.get("CMDGROUP_LOG_LEVEL") or "INFO").upper()
