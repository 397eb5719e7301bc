"""Periodic driving loop for the sampling scheduler."""

import logging
import threading

from pysysmon.errors import InvalidInterval
from pysysmon.scheduler import SamplingScheduler

logger = logging.getLogger(__name__)

MIN_PERIOD = 1  # Seconds


class SamplingLoop:
    """
    Calls SamplingScheduler.tick() once per period until stopped.

    The wait for the next period doubles as the wait for cancellation, so
    stop() takes effect between ticks: a tick in progress always completes.
    The loop runs either in the calling thread (run) or in a daemon thread
    (start/stop).
    """

    def __init__(self, scheduler: SamplingScheduler, period: int = 1) -> None:
        """
        Initialize the SamplingLoop.

        Args:
            scheduler: Scheduler to tick.
            period: Seconds between ticks. Default 1s.
        """
        self._scheduler = scheduler
        self._period = max(MIN_PERIOD, int(period))
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0

    @property
    def period(self) -> int:
        """Get the current period."""
        return self._period

    @period.setter
    def period(self, value: int) -> None:
        """Set the period, in whole seconds."""
        self._period = max(MIN_PERIOD, int(value))

    @property
    def scheduler(self) -> SamplingScheduler:
        return self._scheduler

    @property
    def ticks(self) -> int:
        """Number of completed ticks."""
        return self._ticks

    @property
    def is_running(self) -> bool:
        """Check if the loop thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Start the loop in a background thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SamplingLoop",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Request the loop to stop and wait for the background thread.

        Safe to call from a signal handler while run() is active.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            self._thread = None

    def run(self) -> None:
        """Run the loop in the calling thread until stop() is called."""
        self._stop_event.clear()
        self._poll_loop()

    def tick_once(self) -> bool:
        """
        Run a single scheduler tick.

        Returns:
            True if the tick ran, False if it was rejected.
        """
        try:
            self._scheduler.tick()
        except InvalidInterval as e:
            logger.warning("Tick skipped: %s", e)
            return False
        self._ticks += 1
        return True

    def _poll_loop(self) -> None:
        """Wait one period, tick, repeat until stopped."""
        logger.debug("Sampling every %ds", self._period)
        while not self._stop_event.wait(timeout=self._period):
            self.tick_once()
        logger.debug("Sampling loop stopped after %d ticks", self._ticks)
