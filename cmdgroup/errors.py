"""
Exception types raised by cmdgroup.

Construction errors are raised before any child process starts. The remaining
types describe how a single instance ended and are collected by the group.
"""
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .supervisor.classify import ExitStatus


class CmdGroupError(Exception):
    """Base class for all cmdgroup errors."""


#* --- Construction ---
class ConstructionError(CmdGroupError):
    """The group could not be built. Nothing has been started."""


class CommandNotFoundError(ConstructionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"look path: executable '{name}' not found in PATH")
        self.name = name


class WatchParseError(ConstructionError, ValueError):
    """A watch token is not an integer."""


class WatchRangeError(ConstructionError, ValueError):
    """A watch index does not address an instance."""


class InvalidLoggerError(ConstructionError, TypeError):
    """The log sink is missing or is not a logger."""


#* --- Runtime ---
class StartError(CmdGroupError):
    """The child process could not be launched. Never retried."""

    def __init__(self, cmd: str, reason: OSError) -> None:
        super().__init__(f"failed to start '{cmd}': {reason}")
        self.cmd = cmd
        self.reason = reason


class ExitError(CmdGroupError):
    """The child process exited unsuccessfully."""

    def __init__(self, cmd: str, status: "ExitStatus") -> None:
        super().__init__(f"'{cmd}' {status}")
        self.cmd = cmd
        self.status = status


class Cancelled(CmdGroupError):
    """
    The instance stopped because its context was cancelled.

    :param cause: The exception that triggered the cancellation, if any.
    """

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        if isinstance(cause, Cancelled):
            cause = cause.cause
        super().__init__(f"context canceled: {cause}" if cause else "context canceled")
        self.cause = cause


class GroupError(CmdGroupError):
    """Aggregate of every instance that genuinely failed, in instance order."""

    def __init__(self, errors: List[BaseException]) -> None:
        super().__init__("\n".join(str(e) for e in errors))
        self.errors = list(errors)
