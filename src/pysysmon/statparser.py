"""Parser for /proc/<pid>/stat and /proc/<pid>/task/<tid>/stat records."""

import logging
from dataclasses import fields
from os import PathLike

from pysysmon.errors import ProcfsIOError, StatParseError
from pysysmon.models import RawSnapshot

logger = logging.getLogger(__name__)

# Records are a single short line; anything past this is never needed.
STAT_RECORD_LIMIT = 1024

# Fields decoded after the leading pid, in record order.
STAT_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(RawSnapshot))[1:]
STAT_FIELD_COUNT = len(STAT_FIELDS)  # 23


def _split_name(rest: str) -> tuple[str, str]:
    """Split the delimited name token off the front of a record."""
    end = rest.rfind(")")
    if end == -1:
        name, _, remainder = rest.partition(" ")
        return name, remainder
    return rest[: end + 1], rest[end + 1 :]


def parse_stat_line(text: str) -> RawSnapshot:
    """
    Decode one stat record into a RawSnapshot.

    The name field may contain spaces, so it runs up to the last ')' in the
    record. Trailing fields beyond rss are ignored.

    Args:
        text: Record contents, with or without the trailing newline.

    Returns:
        The decoded snapshot.

    Raises:
        StatParseError: If fewer than 23 fields follow the pid, or a field
            does not have the expected shape.
    """
    pid_field, _, rest = text.strip().partition(" ")
    if not rest:
        raise StatParseError(f"truncated stat record: {text!r}")

    name, remainder = _split_name(rest)
    values = [name, *remainder.split()]
    if len(values) < STAT_FIELD_COUNT:
        raise StatParseError(
            f"expected {STAT_FIELD_COUNT} fields after pid, got {len(values)}"
        )

    state = values[1]
    if len(state) != 1:
        raise StatParseError(f"invalid state field {state!r}")

    try:
        pid = int(pid_field)
        numbers = [int(v) for v in values[2:STAT_FIELD_COUNT]]
    except ValueError as e:
        raise StatParseError(f"non-numeric stat field: {e}") from e

    return RawSnapshot(pid, name, state, *numbers)


def parse_snapshot(path: str | PathLike[str]) -> RawSnapshot:
    """
    Read and decode the stat record at path.

    Args:
        path: Location of a per-process or per-thread stat record.

    Returns:
        The decoded snapshot.

    Raises:
        ProcfsIOError: If the record cannot be opened or read.
        StatParseError: If the record is malformed.
    """
    try:
        with open(path, "rb") as f:
            data = f.read(STAT_RECORD_LIMIT)
    except OSError as e:
        raise ProcfsIOError(path, e) from e

    try:
        return parse_stat_line(data.decode("utf-8", errors="surrogateescape"))
    except StatParseError:
        logger.debug("Failed to parse %s", path)
        raise
