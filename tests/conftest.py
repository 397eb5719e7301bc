"""Shared fixtures: a fake procfs tree, a collecting recorder and a manual clock."""

import logging
from pathlib import Path

import pytest

from pysysmon.config import SystemSettings
from pysysmon.log_config import ROOT_LOGGER
from pysysmon.models import AcquisitionDuration, ProcessStats, ThreadStats
from pysysmon.recorder import Recorder

CLOCK_TICKS = 100
PAGE_SIZE = 4096


def stat_line(
    pid: int,
    name: str,
    utime: int = 0,
    stime: int = 0,
    num_threads: int = 1,
    vsize: int = 10 * 1024 * 1024,
    rss: int = 256,
    state: str = "S",
) -> str:
    """Build a stat record shaped like the kernel's, trailing fields included."""
    fields = [
        str(pid),
        f"({name})",
        state,
        "1",  # ppid
        str(pid),  # pgrp
        str(pid),  # session
        "0",  # tty_nr
        "-1",  # tpgid
        "4194560",  # flags
        "1200",  # minflt
        "0",  # cminflt
        "3",  # majflt
        "0",  # cmajflt
        str(utime),
        str(stime),
        "0",  # cutime
        "0",  # cstime
        "20",  # priority
        "0",  # nice
        str(num_threads),
        "0",  # itrealvalue
        "123456",  # starttime
        str(vsize),
        str(rss),
        "18446744073709551615 1 1 0 0 0 0 0 0 0 0 0 0 17 2 0 0 0 0 0",
    ]
    return " ".join(fields) + "\n"


class FakeProcfs:
    """Builds and mutates a procfs-like directory tree."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / "self").mkdir()  # Non-numeric entries must be ignored
        (self.root / "meminfo").write_text("MemTotal: 1 kB\n")

    def add_process(self, pid: int, name: str, utime: int = 0, stime: int = 0, fds: int = 3, **kwargs) -> Path:
        proc = self.root / str(pid)
        (proc / "task").mkdir(parents=True, exist_ok=True)
        (proc / "fd").mkdir(exist_ok=True)
        for fd in range(fds):
            (proc / "fd" / str(fd)).touch()
        self.set_process(pid, name, utime, stime, **kwargs)
        return proc

    def set_process(self, pid: int, name: str, utime: int = 0, stime: int = 0, **kwargs) -> None:
        (self.root / str(pid) / "stat").write_text(stat_line(pid, name, utime, stime, **kwargs))

    def remove_process(self, pid: int) -> None:
        proc = self.root / str(pid)
        for path in sorted(proc.rglob("*"), key=lambda p: len(p.parts), reverse=True):
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
        proc.rmdir()

    def add_thread(self, pid: int, tid: int, name: str, utime: int = 0, stime: int = 0) -> Path:
        task = self.root / str(pid) / "task" / str(tid)
        task.mkdir(parents=True, exist_ok=True)
        path = task / "stat"
        path.write_text(stat_line(tid, name, utime, stime))
        return path

    def set_thread(self, pid: int, tid: int, name: str, utime: int = 0, stime: int = 0) -> None:
        self.add_thread(pid, tid, name, utime, stime)

    def remove_thread(self, pid: int, tid: int) -> None:
        task = self.root / str(pid) / "task" / str(tid)
        (task / "stat").unlink()
        task.rmdir()

    def remove_fd_dir(self, pid: int) -> None:
        fd_dir = self.root / str(pid) / "fd"
        for path in fd_dir.iterdir():
            path.unlink()
        fd_dir.rmdir()


class ListRecorder(Recorder):
    """Collects every sample in emission order."""

    def __init__(self) -> None:
        self.samples: list = []

    def record_process(self, stats: ProcessStats) -> None:
        self.samples.append(stats)

    def record_thread(self, stats: ThreadStats) -> None:
        self.samples.append(stats)

    def record_duration(self, duration: AcquisitionDuration) -> None:
        self.samples.append(duration)

    @property
    def processes(self) -> list[ProcessStats]:
        return [s for s in self.samples if isinstance(s, ProcessStats)]

    @property
    def threads(self) -> list[ThreadStats]:
        return [s for s in self.samples if isinstance(s, ThreadStats)]

    @property
    def durations(self) -> list[AcquisitionDuration]:
        return [s for s in self.samples if isinstance(s, AcquisitionDuration)]

    def clear(self) -> None:
        self.samples.clear()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def procfs(tmp_path: Path) -> FakeProcfs:
    """An empty fake procfs tree."""
    return FakeProcfs(tmp_path / "proc")


@pytest.fixture
def settings(procfs: FakeProcfs) -> SystemSettings:
    """Host constants pointing at the fake procfs tree."""
    return SystemSettings(clock_ticks=CLOCK_TICKS, page_size=PAGE_SIZE, proc_root=procfs.root)


@pytest.fixture
def recorder() -> ListRecorder:
    return ListRecorder()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo any setup_logging() call so caplog keeps working."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
