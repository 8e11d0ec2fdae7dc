import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class PerformanceLogger:
    """
    Logger for tracking how long each processing phase of a job takes.
    Timestamps are UTC.
    """

    def __init__(self):
        self._start_times: Dict[str, float] = {}

    def _now(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def start_phase(self, phase_name: str) -> None:
        """Start tracking a phase."""
        self._start_times[phase_name] = time.perf_counter()
        logger.info(f"[{self._now()}] [START] {phase_name}")

    def end_phase(self, phase_name: str, extra_info: str = "") -> float:
        """
        End tracking a phase and log the duration.
        Returns the duration in seconds.
        """
        start_time = self._start_times.pop(phase_name, None)
        if start_time is None:
            logger.warning(f"Attempted to end phase '{phase_name}' without starting it.")
            return 0.0

        duration = time.perf_counter() - start_time
        info_str = f" - {extra_info}" if extra_info else ""

        logger.info(
            f"[{self._now()}] [END]   {phase_name}{info_str} "
            f"(Duration: {duration:.3f}s)"
        )
        return duration

    @contextmanager
    def phase(self, phase_name: str) -> Iterator[None]:
        """Track a phase around a block; failures are logged as FAILED."""
        self.start_phase(phase_name)
        try:
            yield
        except BaseException:
            self.end_phase(phase_name, "FAILED")
            raise
        self.end_phase(phase_name)


# Singleton instance
perf_logger = PerformanceLogger()
