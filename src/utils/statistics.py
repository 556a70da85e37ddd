"""
Processing metrics and progress reporting for export and sync jobs.
"""

from collections import deque
from datetime import datetime, timedelta
from typing import Any, Callable, Deque, Dict, Optional

from config import settings
from src.utils.logging import get_logger

logger = get_logger(__name__)


class ProcessingMetrics:
    """Counts processed items and keeps a rolling window of processing times."""

    def __init__(self, start_time: Optional[datetime] = None, sample_window: Optional[int] = None):
        """
        Initialize ProcessingMetrics.

        Args:
            start_time: Operation start time (defaults to now)
            sample_window: Number of processing-time samples kept
                           (defaults to settings.METRICS_SAMPLE_WINDOW)
        """
        self.start_time = start_time or datetime.now()
        self.products_processed = 0
        self.variants_processed = 0
        self.errors = 0
        self._processing_times: Deque[timedelta] = deque(
            maxlen=sample_window or settings.METRICS_SAMPLE_WINDOW
        )

    @property
    def total_processed(self) -> int:
        return self.products_processed + self.variants_processed

    def record_item(self, item_type: str) -> None:
        """Count one successfully processed item."""
        if item_type == "variant":
            self.variants_processed += 1
        else:
            self.products_processed += 1

    def record_error(self) -> None:
        self.errors += 1

    def record_processing_time(self, elapsed: timedelta) -> None:
        self._processing_times.append(elapsed)

    @property
    def average_processing_time(self) -> timedelta:
        if not self._processing_times:
            return timedelta(0)
        return sum(self._processing_times, timedelta(0)) / len(self._processing_times)

    @property
    def elapsed_time(self) -> timedelta:
        return datetime.now() - self.start_time

    @property
    def items_per_second(self) -> float:
        seconds = self.elapsed_time.total_seconds()
        return self.total_processed / seconds if seconds > 0 else 0.0

    def get_completed_summary(self) -> str:
        """
        Generate the summary for a job that ran to completion.

        Returns:
            Multi-line summary string
        """
        lines = [
            "Export completed successfully:",
            f"  Products: {self.products_processed}",
            f"  Variants: {self.variants_processed}",
            f"  Total: {self.total_processed}",
            f"  Errors: {self.errors}",
            f"  Duration: {self.elapsed_time.total_seconds() / 60:.1f} minutes",
            f"  Average: {self.items_per_second:.1f} items/second",
            f"  Avg processing time: {self.average_processing_time.total_seconds() * 1000:.0f}ms",
        ]
        return "\n".join(lines)

    def get_stopped_summary(self) -> str:
        return (
            f"Job stopped. Processed {self.total_processed} items "
            f"({self.products_processed} products, {self.variants_processed} variants). "
            f"Errors: {self.errors}"
        )

    def get_failed_summary(self, error: str) -> str:
        return f"Job failed after processing {self.total_processed} items: {error}"

    def get_stats(self) -> Dict[str, Any]:
        """
        Get current statistics.

        Returns:
            Statistics dictionary
        """
        return {
            "products_processed": self.products_processed,
            "variants_processed": self.variants_processed,
            "total_processed": self.total_processed,
            "errors": self.errors,
            "start_time": self.start_time.isoformat(),
            "elapsed_seconds": self.elapsed_time.total_seconds(),
            "items_per_second": self.items_per_second,
            "average_processing_ms": self.average_processing_time.total_seconds() * 1000,
        }


class ProgressReporter:
    """Reports progress at most once per interval."""

    def __init__(
        self,
        status_callback: Optional[Callable[[str], None]] = None,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize ProgressReporter.

        Args:
            status_callback: Called with the status text on every report
            interval_seconds: Minimum seconds between reports
                              (defaults to settings.PROGRESS_REPORT_INTERVAL_SECONDS)
            clock: Time source
        """
        self.status_callback = status_callback
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.PROGRESS_REPORT_INTERVAL_SECONDS
        )
        self.clock = clock
        self._last_report: Optional[datetime] = None
        self._last_reported_count = 0
        self.reports_sent = 0

    def report_progress(self, metrics: ProcessingMetrics) -> bool:
        """
        Report progress if the interval has elapsed.

        Args:
            metrics: Current job metrics

        Returns:
            True if a report was sent
        """
        now = self.clock()

        if (
            self._last_report is not None
            and (now - self._last_report).total_seconds() < self.interval_seconds
        ):
            return False

        since_start = self._last_report or metrics.start_time
        window = (now - since_start).total_seconds()
        recent_rate = (metrics.total_processed - self._last_reported_count) / window if window > 0 else 0.0

        status = (
            f"Progress: {metrics.total_processed} items "
            f"({metrics.products_processed}p/{metrics.variants_processed}v) | "
            f"Rate: {metrics.items_per_second:.1f} items/s (recent: {recent_rate:.1f} items/s) | "
            f"Errors: {metrics.errors} | "
            f"Elapsed: {metrics.elapsed_time.total_seconds() / 60:.1f}m"
        )

        if self.status_callback:
            self.status_callback(status)
        logger.info(f"Job progress: {status}")

        self._last_report = now
        self._last_reported_count = metrics.total_processed
        self.reports_sent += 1
        return True
