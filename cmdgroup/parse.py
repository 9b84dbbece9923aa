from typing import List, Optional, Sequence

from .settings import ARGS_DELIMITER
from .errors import WatchParseError, WatchRangeError


def split_segments(args: Optional[Sequence[str]], delimiter: str = ARGS_DELIMITER) -> List[List[str]]:
    """
    Splits a flat argument list at every occurrence of the delimiter.

    `k` delimiters always produce `k + 1` segments, so leading, trailing and
    consecutive delimiters yield empty segments. Only exact matches split;
    "--flag" or "a -- b" are ordinary arguments.

    :param args: The raw arguments, may be None.
    :param delimiter: The token separating segments.
    :return: The ordered segments, never empty.
    """
    segments: List[List[str]] = [[]]
    for arg in args or ():
        if arg == delimiter:
            segments.append([])
        else:
            segments[-1].append(arg)
    return segments


def partition_args(args: Optional[Sequence[str]], delimiter: str = ARGS_DELIMITER) -> List[List[str]]:
    """
    Builds the final argument list of every instance.

    The first segment is a global prefix shared by all instances. Instance 0
    runs with the prefix alone, instance `i` with `prefix + segment[i]`.
    Without any delimiter this is a single instance receiving the whole input.

    :param args: The raw arguments, may be None.
    :param delimiter: The token separating instances.
    :return: One argument list per instance, at least one.
    """
    prefix, *suffixes = split_segments(args, delimiter)
    return [list(prefix)] + [prefix + suffix for suffix in suffixes]


def parse_watch(watch: str, count: int) -> List[int]:
    """
    Converts a watch specification to instance indexes.

    Accepts "none" (or ""), "all", or comma-separated indexes such as "0, 2".
    Blank tokens are skipped.

    :param watch: The watch specification.
    :param count: The number of instances; valid indexes are `0..count-1`.
    :return: The selected indexes in the order given.
    :raises WatchParseError: If a token is not an integer.
    :raises WatchRangeError: If an index is outside `[0, count)`.
    """
    watch = watch.strip()
    if watch in ("", "none"):
        return []
    if watch == "all":
        return list(range(count))

    indexes: List[int] = []
    for token in watch.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            index = int(token)
        except ValueError:
            raise WatchParseError(f"parse int: invalid watch index '{token}'") from None
        if index < 0 or index >= count:
            raise WatchRangeError(f"index out of range: {index} (instances: {count})")
        indexes.append(index)
    return indexes
