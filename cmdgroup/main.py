"""
Command-line entry point for cmdgroup.

    cmdgroup [-watch SPEC] [-verbose] [--] COMMAND [ARGS...]

Runs several instances of COMMAND, one per "--"-separated argument set, and
maps the outcome to an exit code the host init system understands.
"""
import sys
import signal
import logging
import argparse
import threading
import setproctitle
from typing import List, Optional, Sequence, Tuple

from cmdgroup import settings
from cmdgroup.context import Context
from cmdgroup.errors import Cancelled, ConstructionError, GroupError
from cmdgroup.log import setup_logging
from cmdgroup.supervisor import GroupConfig, new_group

log = logging.getLogger(__name__)

# Flags that consume the following token as their value.
_VALUE_FLAGS = {"-watch", "--watch", "-w"}


class _ArgumentParser(argparse.ArgumentParser):
    """An ArgumentParser that reports errors instead of exiting."""

    def error(self, message):
        raise ValueError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=settings.PROG_NAME,
        usage="%(prog)s [-watch SPEC] [-verbose] [--] COMMAND [ARGS...]",
        description="Run multiple instances of the same command with different arguments. "
                    "Argument sets are separated by '--'; arguments before the first '--' "
                    "are passed to every instance.",
        add_help=False,
    )
    parser.add_argument("-h", "-help", "--help", action="store_true", dest="help",
                        help="show this help message and exit")
    parser.add_argument("-w", "-watch", "--watch", default=settings.DEFAULT_WATCH,
                        help="watch none, all, or 0,1,... instances (default: %(default)s)")
    parser.add_argument("-v", "-verbose", "--verbose", action="store_true",
                        help="enable debug logging")
    return parser


def split_argv(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Separates supervisor flags from the supervised command line.

    Flag parsing stops at the first non-flag token or after a bare "--".

    :param argv: The arguments without the program name.
    :return: (flag tokens, command and its arguments)
    """
    flags: List[str] = []
    index = 0
    while index < len(argv):
        token = argv[index]
        if token == "--":
            return flags, list(argv[index + 1:])
        if not token.startswith("-") or token == "-":
            break
        flags.append(token)
        if token in _VALUE_FLAGS and index + 1 < len(argv):
            flags.append(argv[index + 1])
            index += 1
        index += 1
    return flags, list(argv[index:])


def _install_signal_handlers(ctx: Context) -> dict:
    """
    Translates SIGINT/SIGTERM into cancellation of the root context.

    The handler runs on the main thread, which may already hold the context's
    lock, so the cancellation itself happens on a short-lived thread.
    """

    def stop(name: str) -> None:
        if ctx.cancel(Cancelled(RuntimeError(f"received {name}"))):
            log.info(f"Received {name}, stopping all instances.")

    def handle(signum, _frame):
        name = signal.Signals(signum).name
        threading.Thread(target=stop, args=(name,), name=f"Signal-{name}", daemon=True).start()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[sig] = signal.signal(sig, handle)
        except ValueError:
            # Not in the main thread; the caller owns cancellation.
            break
    return previous


def run(argv: Sequence[str], ctx: Optional[Context] = None) -> int:
    """
    Runs cmdgroup and returns the process exit code.

    :param argv: Full argument vector including the program name.
    :param ctx: Optional root context; a new one is created when omitted.
    :return: 0 on success, 1 if an instance failed, 125 for usage or construction errors.
    """
    parser = _build_parser()
    flags, positional = split_argv(argv[1:])
    try:
        options = parser.parse_args(flags)
    except ValueError as e:
        setup_logging()
        log.error("parsing flags", extra={"error": str(e)})
        return settings.DO_NOT_SUPERVISE_EXIT_CODE

    if options.help:
        parser.print_help()
        return 0

    setup_logging(logging.DEBUG if options.verbose else None)

    if not positional:
        log.error("no command specified")
        return settings.DO_NOT_SUPERVISE_EXIT_CODE

    command, args = positional[0], positional[1:]
    try:
        group = new_group(command, GroupConfig(
            args=args,
            watch=options.watch,
            logger=logging.getLogger(settings.PROG_NAME),
        ))
    except ConstructionError as e:
        log.error("creating new command group", extra={"error": str(e)})
        return settings.DO_NOT_SUPERVISE_EXIT_CODE

    setproctitle.setproctitle(f"{settings.PROG_NAME}: {command}")

    ctx = ctx if ctx is not None else Context()
    previous_handlers = _install_signal_handlers(ctx)
    try:
        group.run(ctx)
    except GroupError as e:
        log.error("running command group", extra={"error": str(e)})
        return settings.FAILURE_EXIT_CODE
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    return 0


def main() -> None:
    """The main entry point for the console script."""
    sys.exit(run(sys.argv))


if __name__ == "__main__":
    main()
