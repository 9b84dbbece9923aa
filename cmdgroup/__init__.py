"""
cmdgroup runs multiple instances of the same command with different arguments
as a single supervised process group.

Arguments are split into instances at "--"; the arguments before the first
"--" are passed to every instance. Selected instances can be watched, which
restarts them whenever they exit until the group is stopped.
"""

from .context import Context
from .errors import (
    Cancelled,
    CmdGroupError,
    CommandNotFoundError,
    ConstructionError,
    ExitError,
    GroupError,
    InvalidLoggerError,
    StartError,
    WatchParseError,
    WatchRangeError,
)
from .supervisor import Group, GroupConfig, Instance, new_group

__all__ = [
    "Context", "Group", "GroupConfig", "Instance", "new_group",
    "CmdGroupError", "ConstructionError", "CommandNotFoundError", "WatchParseError",
    "WatchRangeError", "InvalidLoggerError", "StartError", "ExitError", "Cancelled", "GroupError",
]
