import signal
from typing import NamedTuple, Optional

from cmdgroup.errors import Cancelled, ExitError

# The cooperative-termination signal sent by process_utils.terminate.
TERMINATION_SIGNAL = signal.SIGTERM


class ExitStatus(NamedTuple):
    """A decoded child exit status."""
    success: bool
    code: Optional[int]
    signaled: bool
    signal: Optional[signal.Signals]

    def __str__(self) -> str:
        if self.success:
            return "exited successfully"
        if self.signaled:
            return f"signal: {self.signal.name if self.signal else 'unknown'}"
        return f"exit status {self.code}"


def decode_exit_status(returncode: int) -> ExitStatus:
    """
    Decodes a `subprocess.Popen.returncode`.

    A negative value means the child was terminated by signal `-returncode`.
    """
    if returncode < 0:
        try:
            sig = signal.Signals(-returncode)
        except ValueError:
            sig = None
        return ExitStatus(success=False, code=None, signaled=True, signal=sig)
    return ExitStatus(success=returncode == 0, code=returncode, signaled=False, signal=None)


def check_err(err: Optional[BaseException]) -> Optional[BaseException]:
    """
    Filters out expected termination outcomes.

    Cancellation and an exit caused by our own SIGTERM are normal shutdown
    noise and map to None. Everything else is returned unchanged.
    """
    if err is None:
        return None
    if isinstance(err, Cancelled):
        return None
    if not isinstance(err, ExitError):
        return err
    if err.status.signaled and err.status.signal == TERMINATION_SIGNAL:
        return None
    return err
