"""Sample recorders.

A recorder is the observer the sampling engine reports to. The engine calls
it from a single thread, one sample at a time, always emitting a process
sample before the samples of its threads.
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from queue import Queue
from typing import IO

from pysysmon.models import AcquisitionDuration, ProcessStats, ThreadStats

logger = logging.getLogger(__name__)

Sample = ProcessStats | ThreadStats | AcquisitionDuration


class Recorder:
    """Base recorder. Every hook is a no-op."""

    def record_process(self, stats: ProcessStats) -> None:
        """Handle one process sample."""

    def record_thread(self, stats: ThreadStats) -> None:
        """Handle one thread sample."""

    def record_duration(self, duration: AcquisitionDuration) -> None:
        """Handle the duration of a completed sampling pass."""

    def close(self) -> None:
        """Release any resource held by the recorder."""

    def __enter__(self) -> "Recorder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def sample_to_dict(sample: Sample) -> dict:
    """Convert a sample to a JSON-serializable dict tagged with its kind."""
    if isinstance(sample, ProcessStats):
        kind = "process"
    elif isinstance(sample, ThreadStats):
        kind = "thread"
    else:
        kind = "duration"
    return {"type": kind, **asdict(sample)}


class JsonLinesRecorder(Recorder):
    """
    Write samples to a file, one JSON object per line.

    Write failures are logged and the sample is dropped; they never propagate
    into the sampling pass.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize the JsonLinesRecorder.

        Args:
            path: Output file. Parent directories are created on open().
        """
        self._path = Path(path)
        self._file: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> "JsonLinesRecorder":
        """Open the output file for appending."""
        if self._file is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self._path.open("a", encoding="utf-8")
        return self

    def __enter__(self) -> "JsonLinesRecorder":
        return self.open()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _write(self, sample: Sample) -> None:
        if self._file is None:
            logger.error("record() failed: %s is not open", self._path)
            return
        try:
            self._file.write(json.dumps(sample_to_dict(sample)) + "\n")
            self._file.flush()
        except OSError as e:
            logger.error("record() failed for %s: %s", self._path, e)

    def record_process(self, stats: ProcessStats) -> None:
        self._write(stats)

    def record_thread(self, stats: ThreadStats) -> None:
        self._write(stats)

    def record_duration(self, duration: AcquisitionDuration) -> None:
        self._write(duration)


class QueueRecorder(Recorder):
    """Push every sample into a thread-safe Queue."""

    def __init__(self, queue: Queue[Sample]) -> None:
        self._queue = queue

    def record_process(self, stats: ProcessStats) -> None:
        self._queue.put(stats)

    def record_thread(self, stats: ThreadStats) -> None:
        self._queue.put(stats)

    def record_duration(self, duration: AcquisitionDuration) -> None:
        self._queue.put(duration)


class TeeRecorder(Recorder):
    """Forward every sample to several recorders, in order."""

    def __init__(self, *recorders: Recorder) -> None:
        self._recorders = recorders

    def record_process(self, stats: ProcessStats) -> None:
        for recorder in self._recorders:
            recorder.record_process(stats)

    def record_thread(self, stats: ThreadStats) -> None:
        for recorder in self._recorders:
            recorder.record_thread(stats)

    def record_duration(self, duration: AcquisitionDuration) -> None:
        for recorder in self._recorders:
            recorder.record_duration(duration)

    def close(self) -> None:
        for recorder in self._recorders:
            recorder.close()
