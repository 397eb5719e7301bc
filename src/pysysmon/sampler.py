"""Per-process sampling."""

import logging
from dataclasses import dataclass

from pysysmon.config import SystemSettings
from pysysmon.cpu import cpu_load
from pysysmon.errors import ProcessNotFound, ProcfsIOError, SnapshotError
from pysysmon.models import ProcessStats, RawSnapshot
from pysysmon.procfs import (
    count_descriptors,
    iter_tids,
    process_stat_path,
    resolve_by_name,
    thread_stat_path,
)
from pysysmon.recorder import Recorder
from pysysmon.statparser import parse_snapshot
from pysysmon.threads import ThreadTracker

logger = logging.getLogger(__name__)

FD_COUNT_UNAVAILABLE = -1


@dataclass(slots=True)
class MonitoredProcess:
    """A process requested by name, and what is known about it so far."""

    name: str
    pid: int | None = None
    baseline: RawSnapshot | None = None
    threads: ThreadTracker | None = None

    @property
    def is_resolved(self) -> bool:
        return self.pid is not None

    @property
    def awaiting_baseline(self) -> bool:
        """True while the next successful snapshot only sets the baseline."""
        return self.baseline is None

    def reset(self) -> None:
        """Forget the resolved process and everything learned about it."""
        self.pid = None
        self.baseline = None
        self.threads = None


class ProcessSampler:
    """
    Samples one monitored process and its threads once per tick.

    Every failure is confined to this process: a missing process is looked up
    again on the next tick, and a thread that cannot be read only drops that
    thread.
    """

    def __init__(self, name: str, settings: SystemSettings) -> None:
        """
        Initialize the ProcessSampler.

        Args:
            name: Process name to monitor.
            settings: Host constants captured at startup.
        """
        self._settings = settings
        self._target = MonitoredProcess(name=name)
        self._missing_logged = False

    @property
    def name(self) -> str:
        return self._target.name

    @property
    def target(self) -> MonitoredProcess:
        return self._target

    @property
    def pid(self) -> int | None:
        return self._target.pid

    def _resolve(self) -> bool:
        target = self._target
        try:
            target.pid = resolve_by_name(target.name, self._settings.proc_root)
        except (ProcessNotFound, ProcfsIOError) as e:
            # Logged once per disappearance
            if not self._missing_logged:
                logger.info("Process '%s' not found: %s", target.name, e)
                self._missing_logged = True
            return False

        self._missing_logged = False
        target.threads = ThreadTracker(target.pid, self._settings)
        logger.info("Monitoring '%s' as pid %d", target.name, target.pid)
        return True

    def _fd_count(self, pid: int) -> int:
        try:
            return count_descriptors(self._settings.proc_root, pid)
        except ProcfsIOError as e:
            logger.debug("Descriptor count unavailable for pid %d: %s", pid, e)
            return FD_COUNT_UNAVAILABLE

    def tick(self, now: float, elapsed: float, recorder: Recorder) -> ProcessStats | None:
        """
        Run one sampling pass for this process.

        Args:
            now: Timestamp stamped on every sample of this pass.
            elapsed: Seconds since the previous pass. Must be positive.
            recorder: Receives the process sample, then its thread samples.

        Returns:
            The emitted ProcessStats, or None when nothing was emitted.
        """
        target = self._target
        if not target.is_resolved and not self._resolve():
            return None

        pid = target.pid
        root = self._settings.proc_root
        try:
            current = parse_snapshot(process_stat_path(root, pid))
        except SnapshotError as e:
            logger.info("Can't find pid stats '%s' (pid %d): %s", target.name, pid, e)
            target.reset()
            return None

        if target.awaiting_baseline:
            target.baseline = current
            return None

        stats = ProcessStats(
            timestamp=now,
            pid=pid,
            name=target.name,
            cpu_load=cpu_load(target.baseline, current, self._settings.clock_ticks, elapsed),
            vsize_kb=current.vsize // 1024,
            rss_kb=current.rss * self._settings.page_size // 1024,
            thread_count=current.num_threads,
            fd_count=self._fd_count(pid),
        )
        recorder.record_process(stats)
        target.baseline = current

        self._sample_threads(now, elapsed, recorder)
        return stats

    def _sample_threads(self, now: float, elapsed: float, recorder: Recorder) -> None:
        target = self._target
        pid = target.pid
        root = self._settings.proc_root
        try:
            tids = list(iter_tids(root, pid))
        except ProcfsIOError as e:
            logger.info("Failed to list threads of pid %d: %s", pid, e)
            # Baselines must come from the previous pass
            target.threads.clear()
            return

        target.threads.reconcile(tids)
        for tid in tids:
            try:
                stats = target.threads.observe(
                    tid,
                    thread_stat_path(root, pid, tid),
                    timestamp=now,
                    elapsed=elapsed,
                )
            except SnapshotError as e:
                logger.debug("Failed to process thread %d: %s", tid, e)
                continue
            if stats is not None:
                recorder.record_thread(stats)
