"""Background worker: wakes on a short tick, collects on a throttle interval.

The loop wakes every tick_seconds only to check whether throttle_seconds
have passed since the last completed cycle; remote calls are never made
more often than the throttle allows. run_once() executes a cycle
synchronously and is used for the startup self-check and on-demand
refreshes.
"""

import logging
import threading
import time
import uuid
from collections.abc import Callable

from thermhub.config.schema import ThermHubConfig
from thermhub.models.common import utc_now_iso
from thermhub.models.reporting import CycleSummary
from thermhub.pipeline.collect_pipeline import CollectPipeline
from thermhub.snapshot.store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE = 300  # 5 minutes between collect cycles
DEFAULT_TICK = 4


class Worker:
    """Runs the collect pipeline on its own thread with crash isolation."""

    def __init__(
        self,
        pipeline: CollectPipeline,
        throttle_seconds: float = DEFAULT_THROTTLE,
        tick_seconds: float = DEFAULT_TICK,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.pipeline = pipeline
        self.throttle_seconds = throttle_seconds
        self.tick_seconds = tick_seconds
        self._clock = clock
        self._cycle_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._running = False
        self._last_completed: float | None = None
        self._consecutive_failures = 0
        self._total_cycles = 0
        self._total_successes = 0
        self._total_failures = 0
        self._started_at: str | None = None
        self.last_summary: CycleSummary | None = None

    @classmethod
    def from_config(cls, config: ThermHubConfig, store: SnapshotStore) -> "Worker":
        return cls(
            CollectPipeline.from_config(config, store),
            throttle_seconds=config.worker.throttle_seconds,
            tick_seconds=config.worker.tick_seconds,
        )

    def run_forever(self) -> threading.Thread:
        """Spawn the background loop. Returns the started thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._running = True
        self._started_at = utc_now_iso()
        self._thread = threading.Thread(
            target=self._loop, name="thermhub-worker", daemon=True
        )
        self._thread.start()
        logger.info(
            "Worker started: throttle=%ss tick=%ss",
            self.throttle_seconds, self.tick_seconds,
        )
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        """Ask the loop to exit after its current tick."""
        self._running = False
        if self._thread is not None and timeout is not None:
            self._thread.join(timeout)

    def throttle_due(self, now: float | None = None) -> bool:
        if self._last_completed is None:
            return True
        if now is None:
            now = self._clock()
        return now - self._last_completed >= self.throttle_seconds

    def run_once(self) -> CycleSummary:
        """Execute one cycle synchronously. Never raises."""
        with self._cycle_lock:
            self._total_cycles += 1
            try:
                summary = self.pipeline.run()
            except Exception as e:
                logger.exception("Cycle #%d crashed", self._total_cycles)
                summary = CycleSummary(cycle_id=str(uuid.uuid4()), errors=[f"crashed: {e}"])
            finally:
                self._last_completed = self._clock()

            if summary.ok:
                self._total_successes += 1
                self._consecutive_failures = 0
            else:
                self._total_failures += 1
                self._consecutive_failures += 1
                logger.warning(
                    "Cycle #%d produced no data (%d consecutive): %s",
                    self._total_cycles, self._consecutive_failures, summary.errors,
                )
            self.last_summary = summary
            return summary

    def status(self) -> dict:
        return {
            "running": self._running,
            "started_at": self._started_at,
            "throttle_seconds": self.throttle_seconds,
            "tick_seconds": self.tick_seconds,
            "total_cycles": self._total_cycles,
            "total_successes": self._total_successes,
            "total_failures": self._total_failures,
            "consecutive_failures": self._consecutive_failures,
        }

    def _loop(self) -> None:
        while self._running:
            if self.throttle_due():
                try:
                    self.run_once()
                except Exception:
                    logger.exception("Worker tick failed")
            time.sleep(self.tick_seconds)
        logger.info(
            "Worker stopped: %d cycles (%d ok, %d failed)",
            self._total_cycles, self._total_successes, self._total_failures,
        )
