import enum
import subprocess
from typing import Optional, Sequence

from cmdgroup import settings
from cmdgroup.context import Context
from cmdgroup.errors import Cancelled, ExitError, StartError
from cmdgroup.log import ContextAdapter, null_logger
from cmdgroup.log.setup import LoggerLike
from . import process_utils
from .classify import decode_exit_status


class InstanceState(enum.Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    EXITED = "exited"
    RESTARTING = "restarting"
    TERMINAL = "terminal"


class Instance:
    """
    A single supervised execution of a command with a fixed argument set.

    An instance owns at most one live child at a time. When watched, the child
    is restarted after every exit until the governing context is cancelled.
    """

    def __init__(
        self,
        path: str,
        args: Sequence[str] = (),
        watch: bool = False,
        logger: Optional[LoggerLike] = None,
        index: int = 0,
        wait_delay: float = settings.CMD_WAIT_DELAY,
        restart_delay: float = settings.RESTART_DELAY,
    ) -> None:
        self.path = path
        self.args = tuple(args)
        self.index = index
        self.logger = logger if logger is not None else null_logger()
        self.wait_delay = wait_delay
        self.restart_delay = restart_delay

        self._watch = watch
        self.state = InstanceState.IDLE
        self.process: Optional[subprocess.Popen] = None
        self.starts = 0

    def __repr__(self) -> str:
        return f"Instance(path={self.path!r}, args={list(self.args)!r}, watch={self._watch})"

    @property
    def watch(self) -> bool:
        return self._watch

    @watch.setter
    def watch(self, value: bool) -> None:
        if self.state is not InstanceState.IDLE:
            raise RuntimeError("watch can only be changed before the instance runs")
        self._watch = bool(value)

    @property
    def command(self) -> str:
        return process_utils.format_command(self.path, self.args)

    def _set_state(self, state: InstanceState, cmd_log: ContextAdapter) -> None:
        cmd_log.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self, ctx: Optional[Context] = None) -> None:
        """
        Runs the instance to completion.

        :param ctx: The governing cancellation context.
        :raises StartError: If the child cannot be launched, regardless of watch mode.
        :raises ExitError: If an unwatched child exits unsuccessfully.
        :raises Cancelled: If the context is cancelled before the next (re)start.
        """
        ctx = ctx if ctx is not None else Context()
        cmd = self.command
        cmd_log = ContextAdapter(self.logger, {"index": self.index, "cmd": cmd})

        try:
            while True:
                if ctx.cancelled():
                    cmd_log.info("not starting", extra={"reason": str(ctx.cause)})
                    raise Cancelled(ctx.cause)

                self._set_state(InstanceState.STARTING, cmd_log)
                try:
                    self.process = process_utils.launch_process(self.path, self.args)
                except OSError as e:
                    cmd_log.error("start command", extra={"error": str(e)})
                    raise StartError(cmd, e) from e
                self.starts += 1

                proc_log = cmd_log.with_fields(pid=self.process.pid)
                self._set_state(InstanceState.RUNNING, proc_log)
                proc_log.info("started")

                result = process_utils.wait_process(self.process, ctx, self.wait_delay)
                status = decode_exit_status(result.returncode)
                self._set_state(InstanceState.EXITED, proc_log)
                if status.success:
                    proc_log.info("exited")
                else:
                    proc_log.info("exited", extra={"reason": str(status)})
                if result.forced:
                    proc_log.warning(f"killed after {self.wait_delay}s grace period")

                if not self._watch:
                    if status.success:
                        return
                    raise ExitError(cmd, status)

                if ctx.wait(self.restart_delay):
                    proc_log.info("not restarting", extra={"reason": str(ctx.cause)})
                    raise Cancelled(ctx.cause)

                self._set_state(InstanceState.RESTARTING, proc_log)
                proc_log.info("restarting")
        finally:
            self._set_state(InstanceState.TERMINAL, cmd_log)
