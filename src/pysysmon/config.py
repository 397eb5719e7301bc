"""Configuration values for pysysmon."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import psutil

from pysysmon.errors import InvalidArgument

DEFAULT_PERIOD = 1  # Seconds


def default_proc_root() -> Path:
    """Return the procfs mount point psutil is configured with."""
    return Path(getattr(psutil, "PROCFS_PATH", "/proc"))


@dataclass(slots=True, frozen=True)
class SystemSettings:
    """Host constants captured once at startup and shared by every sampler."""

    clock_ticks: int
    page_size: int
    proc_root: Path = field(default_factory=default_proc_root)

    def __post_init__(self) -> None:
        if self.clock_ticks <= 0:
            raise InvalidArgument(f"clock_ticks must be positive, got {self.clock_ticks}")
        if self.page_size <= 0:
            raise InvalidArgument(f"page_size must be positive, got {self.page_size}")

    @classmethod
    def capture(cls, proc_root: str | os.PathLike[str] | None = None) -> "SystemSettings":
        """
        Read the host clock rate and page size.

        Args:
            proc_root: procfs mount point. Defaults to psutil.PROCFS_PATH.
        """
        return cls(
            clock_ticks=os.sysconf("SC_CLK_TCK"),
            page_size=os.sysconf("SC_PAGE_SIZE"),
            proc_root=Path(proc_root) if proc_root is not None else default_proc_root(),
        )


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Validated run configuration."""

    names: tuple[str, ...]
    period: int = DEFAULT_PERIOD
    output: Path | None = None
    tui: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.period, bool) or not isinstance(self.period, int) or self.period <= 0:
            raise InvalidArgument(f"period must be a positive whole number of seconds, got {self.period!r}")
        if not self.names:
            raise InvalidArgument("no process name specified")
        for name in self.names:
            if not isinstance(name, str) or not name:
                raise InvalidArgument(f"invalid process name {name!r}")
        if self.output is None and not self.tui:
            raise InvalidArgument("no output file specified")
