"""Data models for pysysmon."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class RawSnapshot:
    """Immutable parse of one /proc stat record."""

    pid: int
    name: str  # Delimited token as exposed by the kernel, e.g. '(bash)'
    state: str  # 'R', 'S', 'Z', 'D', etc.
    ppid: int
    pgrp: int
    session: int
    tty_nr: int
    tpgid: int
    flags: int
    minflt: int
    cminflt: int
    majflt: int
    cmajflt: int
    utime: int  # Clock ticks
    stime: int  # Clock ticks
    cutime: int
    cstime: int
    priority: int
    nice: int
    num_threads: int
    itrealvalue: int
    starttime: int
    vsize: int  # Bytes
    rss: int  # Pages

    @property
    def short_name(self) -> str:
        """Name with exactly one delimiter character stripped from each end."""
        return self.name[1:-1]

    @property
    def cpu_ticks(self) -> int:
        """Accumulated user and kernel clock ticks."""
        return self.utime + self.stime


@dataclass(slots=True, frozen=True)
class ProcessStats:
    """One process-level sample."""

    timestamp: float
    pid: int
    name: str
    cpu_load: int  # Percent of one CPU
    vsize_kb: int
    rss_kb: int
    thread_count: int
    fd_count: int  # -1 when the descriptor listing is unavailable


@dataclass(slots=True, frozen=True)
class ThreadStats:
    """One thread-level sample."""

    timestamp: float
    pid: int
    tid: int
    name: str  # '<tid>-<short name>'
    cpu_load: int


@dataclass(slots=True, frozen=True)
class AcquisitionDuration:
    """Start time and wall-clock duration of one full sampling pass."""

    start: float
    duration: float
