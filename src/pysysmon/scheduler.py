"""Scheduler driving one sampling pass over every monitored process."""

import logging
import time
from collections.abc import Callable

from pysysmon.config import SystemSettings
from pysysmon.errors import InvalidArgument, InvalidInterval
from pysysmon.models import AcquisitionDuration
from pysysmon.recorder import Recorder
from pysysmon.sampler import ProcessSampler

logger = logging.getLogger(__name__)


class SamplingScheduler:
    """
    Holds every ProcessSampler and runs them once per external tick.

    The scheduler does no waiting of its own: whoever owns the timer calls
    tick() once per period, from a single thread.
    """

    def __init__(
        self,
        recorder: Recorder,
        settings: SystemSettings,
        clock: Callable[[], float] = time.monotonic,
        wallclock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the SamplingScheduler.

        Args:
            recorder: Receives every sample.
            settings: Host constants shared by all samplers.
            clock: Monotonic clock used for elapsed time between ticks.
            wallclock: Clock used to timestamp samples.
        """
        self._recorder = recorder
        self._settings = settings
        self._clock = clock
        self._wallclock = wallclock
        self._samplers: list[ProcessSampler] = []
        self._last_tick = clock()

    @property
    def settings(self) -> SystemSettings:
        return self._settings

    @property
    def samplers(self) -> list[ProcessSampler]:
        return list(self._samplers)

    @property
    def names(self) -> list[str]:
        return [s.name for s in self._samplers]

    def __len__(self) -> int:
        return len(self._samplers)

    def register(self, name: str) -> ProcessSampler:
        """
        Add a process to monitor. It is looked up on the next tick.

        Raises:
            InvalidArgument: If name is not a non-empty string.
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgument(f"invalid process name {name!r}")

        sampler = ProcessSampler(name, self._settings)
        self._samplers.append(sampler)
        return sampler

    def tick(self) -> AcquisitionDuration:
        """
        Sample every registered process, in registration order.

        Returns:
            Start and duration of the pass, also sent to the recorder.

        Raises:
            InvalidInterval: If no time elapsed since the previous tick.
                Nothing is sampled in that case.
        """
        now = self._clock()
        elapsed = now - self._last_tick
        if elapsed <= 0:
            raise InvalidInterval(f"no time elapsed since the previous tick ({elapsed}s)")

        start = self._wallclock()
        for sampler in self._samplers:
            try:
                sampler.tick(start, elapsed, self._recorder)
            except Exception:
                logger.exception("Sampling '%s' failed", sampler.name)

        duration = AcquisitionDuration(start=start, duration=self._clock() - now)
        self._last_tick = now
        try:
            self._recorder.record_duration(duration)
        except Exception:
            logger.exception("Recording the acquisition duration failed")
        return duration
