"""Tests for the pysysmon live view."""

import pytest
from textual.widgets import DataTable

from pysysmon.app import HeaderStats, SortKey, StatsTable, SysmonApp, format_kb, row_key
from pysysmon.models import AcquisitionDuration, ProcessStats, ThreadStats
from pysysmon.monitor import SamplingLoop

from conftest import ListRecorder


def process(pid: int, cpu: int = 0, rss_kb: int = 1024, name: str = "daemon") -> ProcessStats:
    return ProcessStats(
        timestamp=1.0, pid=pid, name=name, cpu_load=cpu, vsize_kb=4096, rss_kb=rss_kb, thread_count=1, fd_count=3
    )


def thread(pid: int, tid: int, cpu: int = 0) -> ThreadStats:
    return ThreadStats(timestamp=1.0, pid=pid, tid=tid, name=f"{tid}-daemon", cpu_load=cpu)


PASS_END = AcquisitionDuration(start=1.0, duration=0.004)


def test_format_kb_kilobytes():
    """Test format_kb with kilobyte values."""
    assert "K" in format_kb(500)


def test_format_kb_megabytes():
    """Test format_kb with megabyte values."""
    assert "M" in format_kb(5 * 1024)


def test_format_kb_gigabytes():
    """Test format_kb with gigabyte values."""
    assert "G" in format_kb(3 * 1024 * 1024)


def test_format_kb_unavailable():
    """Test negative sizes render as unavailable."""
    assert format_kb(-1) == "-"


def test_row_key():
    """Test processes and threads get distinct row keys."""
    assert row_key(process(10)) == "10"
    assert row_key(thread(10, 11)) == "10:11"


def test_sort_key_members():
    """Test SortKey enum has all expected members."""
    assert [k.value for k in SortKey] == ["cpu", "mem", "pid"]


@pytest.mark.asyncio
async def test_app_creation(settings):
    """Test SysmonApp can be instantiated."""
    app = SysmonApp(["daemon"], settings)
    assert app.title == "pysysmon"
    assert app._monitor.scheduler.names == ["daemon"]
    assert isinstance(app._monitor, SamplingLoop)
    assert not app._monitor.is_running


@pytest.mark.asyncio
async def test_app_compose(settings):
    """Test SysmonApp composes correctly."""
    app = SysmonApp(["daemon"], settings)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#header-stats") is not None
        assert pilot.app.query_one("#stats-table") is not None
        assert pilot.app._monitor.is_running


@pytest.mark.asyncio
async def test_samples_shown_at_end_of_pass(settings):
    """Test buffered samples reach the table when the pass completes."""
    app = SysmonApp(["daemon"], settings)
    async with app.run_test() as pilot:
        table = pilot.app.query_one(StatsTable)

        pilot.app.handle_sample(process(10))
        pilot.app.handle_sample(thread(10, 11))
        assert table.row_keys == []

        pilot.app.handle_sample(PASS_END)
        assert table.row_keys == ["10", "10:11"]
        assert pilot.app.query_one("#stats-table", DataTable).row_count == 2
        assert pilot.app.query_one(HeaderStats).passes == 1


@pytest.mark.asyncio
async def test_stale_rows_are_dropped(settings):
    """Test entities missing from the latest pass disappear."""
    app = SysmonApp(["daemon"], settings)
    async with app.run_test() as pilot:
        for sample in (process(10), thread(10, 11), thread(10, 12), PASS_END):
            pilot.app.handle_sample(sample)
        for sample in (process(10), thread(10, 12), PASS_END):
            pilot.app.handle_sample(sample)

        assert pilot.app.query_one(StatsTable).row_keys == ["10", "10:12"]


@pytest.mark.asyncio
async def test_sort_binding(settings):
    """Test that F6 cycles the sort key."""
    app = SysmonApp(["daemon"], settings)
    async with app.run_test() as pilot:
        table = pilot.app.query_one(StatsTable)
        assert table.sort_key == SortKey.CPU

        await pilot.press("f6")
        assert table.sort_key == SortKey.MEM

        table.cycle_sort()
        assert table.sort_key == SortKey.PID

        table.cycle_sort()
        assert table.sort_key == SortKey.CPU


@pytest.mark.asyncio
async def test_threads_sort_with_their_process(settings):
    """Test threads stay grouped under their process when sorting by CPU."""
    app = SysmonApp(["a", "b"], settings)
    async with app.run_test() as pilot:
        for sample in (process(10, cpu=5), thread(10, 11, cpu=5), process(20, cpu=50), thread(20, 21, cpu=1), PASS_END):
            pilot.app.handle_sample(sample)

        table = pilot.app.query_one("#stats-table", DataTable)
        keys = [row.key.value for row in table.ordered_rows]
        assert keys == ["20", "20:21", "10", "10:11"]


@pytest.mark.asyncio
async def test_quit_binding_stops_sampling(settings):
    """Test that 'q' stops the loop and exits."""
    app = SysmonApp(["daemon"], settings)
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert not pilot.app._monitor.is_running
        assert pilot.app._monitor.stop_requested


@pytest.mark.asyncio
async def test_extra_recorder_receives_samples(procfs, settings):
    """Test a recorder passed to the app sees the same samples."""
    procfs.add_process(10, "daemon")
    extra = ListRecorder()
    app = SysmonApp(["daemon"], settings, recorder=extra)
    async with app.run_test() as pilot:
        pilot.app._monitor.scheduler._last_tick -= 1
        pilot.app._monitor.tick_once()
        pilot.app._check_for_updates()

        assert len(extra.durations) >= 1
        assert pilot.app.query_one(HeaderStats).passes >= 1
