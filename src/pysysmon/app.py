"""pysysmon - live Textual view of the samples."""

from enum import Enum
from queue import Empty, Queue

import psutil
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from pysysmon.config import SystemSettings
from pysysmon.models import AcquisitionDuration, ProcessStats, ThreadStats
from pysysmon.monitor import SamplingLoop
from pysysmon.recorder import QueueRecorder, Recorder, Sample, TeeRecorder
from pysysmon.scheduler import SamplingScheduler


class SortKey(Enum):
    """Sort keys for the stats table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"


def format_kb(size_kb: int) -> str:
    """Format a size in kilobytes as a human-readable string."""
    if size_kb < 0:
        return "-"
    size = float(size_kb)
    for unit in ["K", "M", "G"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "K" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}T"


def row_key(stats: ProcessStats | ThreadStats) -> str:
    """Return the table row key of a sample."""
    if isinstance(stats, ThreadStats):
        return f"{stats.pid}:{stats.tid}"
    return str(stats.pid)


class HeaderStats(Static):
    """Header widget showing host CPU and memory, and the last pass duration."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 3;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._duration: AcquisitionDuration | None = None
        self._passes = 0
        # First call returns 0.0
        psutil.cpu_percent()

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_host_info(), id="host-info"),
            Static(self._get_pass_info(), id="pass-info"),
        )

    @property
    def passes(self) -> int:
        return self._passes

    def update_duration(self, duration: AcquisitionDuration) -> None:
        """Record a completed sampling pass and refresh."""
        self._duration = duration
        self._passes += 1
        self._refresh_display()

    def _refresh_display(self) -> None:
        try:
            self.query_one("#host-info", Static).update(self._get_host_info())
            self.query_one("#pass-info", Static).update(self._get_pass_info())
        except Exception:
            pass  # Widget not mounted yet

    def _get_host_info(self) -> str:
        mem = psutil.virtual_memory()
        return (
            f"CPU {psutil.cpu_percent():5.1f}%  "
            f"Mem {mem.used / (1024**3):.1f}G/{mem.total / (1024**3):.1f}G"
        )

    def _get_pass_info(self) -> str:
        if self._duration is None:
            return "Waiting for samples..."
        return f"Pass #{self._passes} took {self._duration.duration * 1000:.1f} ms"


class StatsTable(Container):
    """Container for the per-process and per-thread stats table."""

    DEFAULT_CSS = """
    StatsTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize StatsTable."""
        super().__init__(*args, **kwargs)
        self._rows: dict[str, ProcessStats | ThreadStats] = {}
        self._sort_key: SortKey = SortKey.CPU

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    @property
    def row_keys(self) -> list[str]:
        return list(self._rows)

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        self._render_rows()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the stats table."""
        yield DataTable(id="stats-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#stats-table", DataTable)
        table.cursor_type = "row"
        table.add_column("PID", key="pid", width=8)
        table.add_column("TID", key="tid", width=8)
        table.add_column("CPU%", key="cpu", width=6)
        table.add_column("VSZ", key="vsize", width=8)
        table.add_column("RES", key="rss", width=8)
        table.add_column("THR", key="threads", width=5)
        table.add_column("FD", key="fds", width=5)
        table.add_column("Name", key="name")

    def update_pass(self, samples: list[ProcessStats | ThreadStats]) -> None:
        """
        Replace the table contents with the samples of one completed pass.

        Entities that did not report during the pass are dropped.
        """
        self._rows = {row_key(s): s for s in samples}
        self._render_rows()

    def _sort_value(self, stats: ProcessStats | ThreadStats):
        # Threads sort right after their process
        owner = self._rows.get(str(stats.pid), stats)
        if self._sort_key is SortKey.CPU:
            primary = -owner.cpu_load
        elif self._sort_key is SortKey.MEM:
            primary = -getattr(owner, "rss_kb", 0)
        else:
            primary = stats.pid
        tid = stats.tid if isinstance(stats, ThreadStats) else -1
        return (primary, stats.pid, tid)

    def _render_rows(self) -> None:
        try:
            table = self.query_one("#stats-table", DataTable)
        except Exception:
            return  # Not mounted yet

        table.clear()
        for stats in sorted(self._rows.values(), key=self._sort_value):
            if isinstance(stats, ThreadStats):
                cells = (str(stats.pid), str(stats.tid), str(stats.cpu_load), "", "", "", "", stats.name)
            else:
                cells = (
                    str(stats.pid),
                    "",
                    str(stats.cpu_load),
                    format_kb(stats.vsize_kb),
                    format_kb(stats.rss_kb),
                    str(stats.thread_count),
                    str(stats.fd_count) if stats.fd_count >= 0 else "-",
                    stats.name,
                )
            table.add_row(*cells, key=row_key(stats))


class SysmonApp(App):
    """Main pysysmon live view."""

    TITLE = "pysysmon"
    SUB_TITLE = "Process and thread sampler"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
    }

    Horizontal {
        height: auto;
    }

    #host-info {
        width: 1fr;
    }

    #pass-info {
        width: 1fr;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(
        self,
        names: list[str] | tuple[str, ...],
        settings: SystemSettings | None = None,
        period: int = 1,
        recorder: Recorder | None = None,
    ) -> None:
        """
        Initialize the SysmonApp.

        Args:
            names: Process names to monitor.
            settings: Host constants. Captured from the host when omitted.
            period: Seconds between sampling passes.
            recorder: Optional recorder that also receives every sample.
        """
        super().__init__()
        self._update_queue: Queue[Sample] = Queue()
        self._pending: list[ProcessStats | ThreadStats] = []
        queue_recorder = QueueRecorder(self._update_queue)
        sink = TeeRecorder(queue_recorder, recorder) if recorder else queue_recorder
        scheduler = SamplingScheduler(sink, settings or SystemSettings.capture())
        for name in names:
            scheduler.register(name)
        self._monitor = SamplingLoop(scheduler, period=period)

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield StatsTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start sampling when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the sample queue, refreshing the view at each completed pass."""
        while True:
            try:
                sample = self._update_queue.get_nowait()
            except Empty:
                break
            self.handle_sample(sample)

    def handle_sample(self, sample: Sample) -> None:
        """Buffer a sample; flush the buffer to the view at the end of a pass."""
        if not isinstance(sample, AcquisitionDuration):
            self._pending.append(sample)
            return

        samples, self._pending = self._pending, []
        self.query_one(StatsTable).update_pass(samples)
        self.query_one("#header-stats", HeaderStats).update_duration(sample)

    def action_sort(self) -> None:
        """Cycle through sort keys."""
        new_sort_key = self.query_one(StatsTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_quit(self) -> None:
        """Stop sampling and exit."""
        self._monitor.stop()
        self.exit()
