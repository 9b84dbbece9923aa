import os
import shutil
import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from cmdgroup import settings
from cmdgroup.context import Context
from cmdgroup.errors import CommandNotFoundError, GroupError
from cmdgroup.log import ContextAdapter, null_logger, validate_logger
from cmdgroup.log.setup import LoggerLike
from cmdgroup.parse import parse_watch, partition_args
from .classify import check_err
from .instance import Instance


@dataclass
class GroupConfig:
    """
    Configuration consumed once by `new_group`.

    :param args: Raw arguments; "--" separates the instances.
    :param watch: "none", "all" or comma-separated instance indexes to restart.
    :param logger: The log sink shared by every instance. Must not be None.
    :param wait_delay: Seconds between SIGTERM and SIGKILL on cancellation.
    :param restart_delay: Seconds before a watched instance is restarted.
    """
    args: List[str] = field(default_factory=list)
    watch: str = settings.DEFAULT_WATCH
    logger: Any = field(default_factory=null_logger)
    wait_delay: float = settings.CMD_WAIT_DELAY
    restart_delay: float = settings.RESTART_DELAY


def new_group(name: str, config: Optional[GroupConfig] = None) -> "Group":
    """
    Creates a command group for the given command name.
    By default a single unwatched instance is created and nothing is logged.

    :param name: The command, resolved against PATH.
    :param config: The group configuration.
    :return: A group ready to run. No process has been started.
    :raises ConstructionError: If the command, the watch specification or the logger is invalid.
    """
    config = config if config is not None else GroupConfig()
    logger = validate_logger(config.logger)

    path = shutil.which(name) if name else None
    if path is None:
        raise CommandNotFoundError(name)
    path = os.path.abspath(path)

    arg_sets = partition_args(config.args)
    watched = set(parse_watch(config.watch, len(arg_sets)))

    instances = [
        Instance(
            path,
            args,
            watch=index in watched,
            logger=logger,
            index=index,
            wait_delay=config.wait_delay,
            restart_delay=config.restart_delay,
        )
        for index, args in enumerate(arg_sets)
    ]
    return Group(instances, logger=logger)


class Group:
    """
    Runs a fixed set of instances in parallel and aggregates their outcome.

    If an unwatched instance genuinely fails, every other instance is asked to
    stop. Watched instances restart on their own and never stop the group.
    """

    def __init__(self, instances: Sequence[Instance], logger: Optional[LoggerLike] = None) -> None:
        self.instances = tuple(instances)
        self.logger = logger if logger is not None else null_logger()
        self._ran = False

    def _worker(self, ctx: Context, position: int, results: List[Optional[BaseException]]) -> None:
        """Runs one instance and stores its outcome in its own result slot."""
        instance = self.instances[position]
        try:
            instance.run(ctx)
        except Exception as e:
            results[position] = e

        failure = check_err(results[position])
        if failure is not None and not instance.watch and ctx.cancel(failure):
            ContextAdapter(self.logger, {"index": instance.index}).warning(
                "unwatched instance failed, stopping group", extra={"error": str(failure)}
            )

    def run(self, ctx: Optional[Context] = None) -> None:
        """
        Executes all instances in parallel and waits for every one to finish.

        :param ctx: The governing context; cancelling it stops every instance.
        :raises GroupError: With every genuine failure, in instance order.
        :raises RuntimeError: If the group has already been run.
        """
        if self._ran:
            raise RuntimeError("a group can only be run once")
        self._ran = True

        group_ctx = (ctx if ctx is not None else Context()).derive()
        results: List[Optional[BaseException]] = [None] * len(self.instances)

        threads = [
            threading.Thread(
                target=self._worker,
                args=(group_ctx, position, results),
                name=f"Instance-{position}",
                daemon=True,
            )
            for position in range(len(self.instances))
        ]
        for thread in threads:
            thread.start()
        # Joined with a timeout so signal handlers in the main thread stay responsive.
        for thread in threads:
            while thread.is_alive():
                thread.join(timeout=0.5)

        errors = [err for err in map(check_err, results) if err is not None]
        if errors:
            raise GroupError(errors)
