"""CPU load computation from clock-tick deltas."""

from pysysmon.errors import InvalidInterval
from pysysmon.models import RawSnapshot


def cpu_load(
    previous: RawSnapshot,
    current: RawSnapshot,
    clock_ticks: int,
    elapsed: float,
) -> int:
    """
    Compute the CPU load of an entity between two snapshots.

    Args:
        previous: Baseline snapshot.
        current: Newer snapshot of the same entity.
        clock_ticks: Scheduler clock ticks per second.
        elapsed: Wall-clock seconds between the two snapshots.

    Returns:
        Whole percentage of one CPU, never negative.
    """
    if elapsed <= 0:
        raise InvalidInterval(f"elapsed time must be positive, got {elapsed}")

    spent = current.cpu_ticks - previous.cpu_ticks
    return max(0, round(100 * spent / (clock_ticks * elapsed)))
