"""Discovery of processes, threads and descriptors under a procfs root."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from pysysmon.errors import ProcessNotFound, ProcfsIOError, SnapshotError
from pysysmon.statparser import parse_snapshot

logger = logging.getLogger(__name__)


def iter_numeric_entries(directory: str | os.PathLike[str]) -> Iterator[int]:
    """
    Lazily yield the purely numeric entry names of a directory.

    Each call starts a fresh listing. Entries are yielded in directory order,
    which is not sorted.

    Raises:
        ProcfsIOError: If the directory cannot be listed.
    """
    try:
        with os.scandir(directory) as it:
            for entry in it:
                if entry.name.isascii() and entry.name.isdigit():
                    yield int(entry.name)
    except OSError as e:
        raise ProcfsIOError(directory, e) from e


def process_stat_path(root: Path, pid: int) -> Path:
    return root / str(pid) / "stat"


def thread_stat_path(root: Path, pid: int, tid: int) -> Path:
    return root / str(pid) / "task" / str(tid) / "stat"


def iter_pids(root: Path) -> Iterator[int]:
    """Yield the identifiers of all live processes."""
    return iter_numeric_entries(root)


def iter_tids(root: Path, pid: int) -> Iterator[int]:
    """Yield the identifiers of the live threads of pid."""
    return iter_numeric_entries(root / str(pid) / "task")


def count_descriptors(root: Path, pid: int) -> int:
    """
    Count the open file descriptors of pid.

    Raises:
        ProcfsIOError: If the descriptor listing is not accessible.
    """
    return sum(1 for _ in iter_numeric_entries(root / str(pid) / "fd"))


def resolve_by_name(name: str, root: Path) -> int:
    """
    Find a live process whose stat name equals name.

    Processes are tested in directory order and the first match wins, so
    with several live processes of the same name the result may differ
    between runs. Processes that exit or cannot be parsed while being tested
    are skipped.

    Args:
        name: Bare process name, as the kernel reports it.
        root: procfs mount point.

    Returns:
        The pid of the first matching process.

    Raises:
        ProcessNotFound: If no live process matches.
        ProcfsIOError: If root cannot be enumerated.
    """
    for pid in iter_pids(root):
        try:
            snapshot = parse_snapshot(process_stat_path(root, pid))
        except SnapshotError:
            continue

        short_name = snapshot.short_name
        if not short_name:
            logger.debug("Empty process name for pid %d", pid)
            continue
        if short_name == name:
            return pid

    raise ProcessNotFound(name)
