import os
import sys
import shlex
import signal
import psutil
import logging
import subprocess
from typing import Any, Dict, NamedTuple, Optional, Sequence

from cmdgroup import settings
from cmdgroup.context import Context
from .classify import TERMINATION_SIGNAL

log = logging.getLogger(__name__)


class WaitResult(NamedTuple):
    returncode: int
    terminated: bool  # a termination request was sent
    forced: bool      # the grace period expired and the child was killed


#* --- Process Creation ---
def format_command(path: str, args: Sequence[str]) -> str:
    """Returns a shell-quoted command line for logging."""
    return " ".join(shlex.quote(part) for part in (path, *args))


def _get_popen_kwargs() -> Dict[str, Any]:
    """
    Returns the keyword arguments for subprocess.Popen.

    Children inherit the environment and standard output/error. Each child
    leads a new session and therefore a new process group.
    """
    popen_kwargs: Dict[str, Any] = {
        "env": os.environ.copy(),
        "stdin": subprocess.DEVNULL,
        "stdout": None,
        "stderr": None,
    }
    if sys.platform != "win32":
        popen_kwargs["start_new_session"] = True
    return popen_kwargs


def launch_process(path: str, args: Sequence[str]) -> subprocess.Popen:
    """
    Starts the child process.

    :raises OSError: If the executable cannot be launched.
    """
    return subprocess.Popen([path, *args], **_get_popen_kwargs())


#* --- Process Termination ---
def _get_pgid(proc: subprocess.Popen) -> Optional[int]:
    """Returns the child's process group, or None if it cannot be used."""
    try:
        pgid = os.getpgid(proc.pid)
    except (ProcessLookupError, PermissionError, AttributeError):
        return None
    # Never signal our own group.
    if pgid == os.getpgrp():
        return None
    return pgid


def _signal_process(proc: subprocess.Popen, sig: int) -> None:
    """Sends a signal to the whole process group, or to the child alone as a fallback."""
    pgid = _get_pgid(proc)
    try:
        if pgid is not None:
            os.killpg(pgid, sig)
        else:
            proc.send_signal(sig)
    except ProcessLookupError:
        log.debug(f"Process {proc.pid} no longer exists, skipping signal {sig}.")


def terminate(proc: subprocess.Popen) -> None:
    """Sends the cooperative-termination signal to the child's process group."""
    log.debug(f"Sending {signal.Signals(TERMINATION_SIGNAL).name} to process group of PID {proc.pid}")
    _signal_process(proc, TERMINATION_SIGNAL)


def force_kill(proc: subprocess.Popen) -> None:
    """
    Forcefully kills the child and everything it spawned.

    Without a usable process group the descendants are discovered with psutil
    before the child itself is killed.
    """
    pgid = _get_pgid(proc)
    if pgid is not None:
        try:
            os.killpg(pgid, signal.SIGKILL)
        except ProcessLookupError:
            log.debug(f"Process group {pgid} no longer exists, skipping forceful kill.")
        return

    try:
        procs = [psutil.Process(proc.pid)]
        procs.extend(procs[0].children(recursive=True))
    except psutil.NoSuchProcess:
        return
    for p in procs:
        try:
            log.warning(f"Killing stubborn process {p.pid}.")
            p.kill()
        except psutil.NoSuchProcess:
            continue


def wait_process(
    proc: subprocess.Popen,
    ctx: Context,
    wait_delay: float = settings.CMD_WAIT_DELAY,
    poll_interval: float = settings.WAIT_POLL_INTERVAL,
) -> WaitResult:
    """
    Waits for the child to exit, honouring cancellation.

    When the context is cancelled the child's group receives SIGTERM. If it
    has not exited after `wait_delay` seconds it is killed.

    :param proc: The running child.
    :param ctx: The governing cancellation context.
    :param wait_delay: Grace period between the termination request and SIGKILL.
    :param poll_interval: How often cancellation is checked while waiting.
    :return: The child's return code and how it was stopped.
    """
    while not ctx.cancelled():
        try:
            return WaitResult(proc.wait(timeout=poll_interval), terminated=False, forced=False)
        except subprocess.TimeoutExpired:
            continue

    if proc.poll() is not None:
        return WaitResult(proc.returncode, terminated=False, forced=False)

    terminate(proc)
    try:
        return WaitResult(proc.wait(timeout=wait_delay), terminated=True, forced=False)
    except subprocess.TimeoutExpired:
        log.warning(f"Process {proc.pid} did not terminate within {wait_delay}s. Forcing shutdown...")

    force_kill(proc)
    return WaitResult(proc.wait(), terminated=True, forced=True)
