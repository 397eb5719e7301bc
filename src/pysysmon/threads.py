"""Per-process thread lifecycle tracking."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from pysysmon.config import SystemSettings
from pysysmon.cpu import cpu_load
from pysysmon.errors import SnapshotError
from pysysmon.models import RawSnapshot, ThreadStats
from pysysmon.statparser import parse_snapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ThreadState:
    """Tracking state of one observed thread."""

    path: Path
    name: str
    baseline: RawSnapshot


class ThreadTracker:
    """
    Tracks the threads of one monitored process across ticks.

    A thread is established on first sight and only reported from its second
    successful observation onward. Threads that can no longer be read, or that
    disappear from the live listing, are forgotten; if the same tid shows up
    again later it starts over from a fresh baseline.
    """

    def __init__(self, pid: int, settings: SystemSettings) -> None:
        """
        Initialize the ThreadTracker.

        Args:
            pid: Identifier of the owning process.
            settings: Host constants used for load computation.
        """
        self._pid = pid
        self._settings = settings
        self._threads: dict[int, ThreadState] = {}

    @property
    def pid(self) -> int:
        return self._pid

    def __contains__(self, tid: object) -> bool:
        return tid in self._threads

    def __len__(self) -> int:
        return len(self._threads)

    def tids(self) -> list[int]:
        """Return the tracked thread ids in insertion order."""
        return list(self._threads)

    def clear(self) -> None:
        self._threads.clear()

    def observe(
        self,
        tid: int,
        path: Path,
        *,
        timestamp: float,
        elapsed: float,
    ) -> ThreadStats | None:
        """
        Observe one live thread.

        Args:
            tid: Thread identifier.
            path: Stat record of the thread, used on first sight only.
            timestamp: Timestamp stamped on the produced sample.
            elapsed: Seconds since the previous observation pass.

        Returns:
            A ThreadStats sample, or None when the thread was just established
            or has exited.

        Raises:
            SnapshotError: If a never-seen thread cannot be read. Nothing is
                tracked in that case.
        """
        state = self._threads.get(tid)
        if state is None:
            baseline = parse_snapshot(path)
            self._threads[tid] = ThreadState(
                path=path,
                name=f"{tid}-{baseline.short_name}",
                baseline=baseline,
            )
            return None

        try:
            current = parse_snapshot(state.path)
        except SnapshotError:
            logger.debug("Thread %d of pid %d finished", tid, self._pid)
            del self._threads[tid]
            return None

        load = cpu_load(state.baseline, current, self._settings.clock_ticks, elapsed)
        state.baseline = current

        return ThreadStats(
            timestamp=timestamp,
            pid=self._pid,
            tid=tid,
            name=state.name,
            cpu_load=load,
        )

    def reconcile(self, live_tids: Iterable[int]) -> list[int]:
        """
        Forget every tracked thread missing from the live listing.

        Args:
            live_tids: Thread ids currently listed for the process.

        Returns:
            The removed thread ids.
        """
        live = set(live_tids)
        gone = [tid for tid in self._threads if tid not in live]
        for tid in gone:
            del self._threads[tid]
        if gone:
            logger.debug("Threads %s of pid %d are gone", gone, self._pid)
        return gone
