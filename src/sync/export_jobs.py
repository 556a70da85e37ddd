"""
Catalog export jobs: per-item, batched, and with detailed progress metrics.
"""
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from config import settings
from src.sync.base_job import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_STOPPED,
    CatalogJob,
    JobResult,
)
from src.sync.clients import ExportClient
from src.traversal.errors import TraversalCancelled, TraversalError
from src.traversal.models import LeafItem, TraversalOptions
from src.traversal.traversal_engine import TraversalEngine
from src.utils.statistics import ProcessingMetrics, ProgressReporter


class CatalogExportJob(CatalogJob):
    """Exports every item of a catalog, one at a time."""

    name = "catalog export"

    def __init__(
        self,
        engine: TraversalEngine,
        client: ExportClient,
        catalog_name: Optional[str] = None,
        report_every: Optional[int] = None,
        **kwargs,
    ):
        """
        Initialize CatalogExportJob.

        Args:
            engine: Traversal engine over the content store
            client: Destination for items
            catalog_name: Catalog to export (defaults to settings.DEFAULT_CATALOG_NAME)
            report_every: Items between status messages (defaults to settings.PROGRESS_REPORT_EVERY)
            **kwargs: Passed to CatalogJob
        """
        super().__init__(engine, client, **kwargs)
        self.catalog_name = catalog_name or settings.DEFAULT_CATALOG_NAME
        self.report_every = report_every or settings.PROGRESS_REPORT_EVERY

    def execute(self) -> JobResult:
        processed = 0
        errors = 0
        start_time = datetime.now()

        options = TraversalOptions(catalog_name=self.catalog_name)
        self.logger.info(f"Starting catalog export for '{self.catalog_name}'")

        try:
            for item in self.engine.traverse(options, self.cancellation_token):
                try:
                    self.client.export_item(item)
                    processed += 1

                    if processed % self.report_every == 0:
                        self.on_status_changed(f"Processed {processed} items...")
                except Exception as e:
                    self.logger.error(f"Error exporting item {item.id}: {e}", exc_info=True)
                    errors += 1

        except TraversalCancelled:
            self.logger.warning(f"Job stopped by user at {processed} items")
            return JobResult(
                STATUS_STOPPED, processed, errors, f"Job stopped by user. Processed {processed} items."
            )
        except TraversalError as e:
            self.logger.error("Fatal error in catalog export job", exc_info=True)
            return JobResult(
                STATUS_FAILED, processed, errors, f"Job failed after processing {processed} items: {e}"
            )

        minutes = (datetime.now() - start_time).total_seconds() / 60
        message = (
            f"Successfully processed {processed} items in {minutes:.1f} minutes. Errors: {errors}"
        )
        self.logger.info(f"Catalog export completed: {message}")
        return JobResult(STATUS_COMPLETED, processed, errors, message)


class BatchCatalogExportJob(CatalogJob):
    """Exports items in fixed-size batches, falling back to single items when a batch fails."""

    name = "batch catalog export"

    def __init__(
        self,
        engine: TraversalEngine,
        client: ExportClient,
        catalog_name: Optional[str] = None,
        batch_size: Optional[int] = None,
        **kwargs,
    ):
        """
        Initialize BatchCatalogExportJob.

        Args:
            engine: Traversal engine over the content store
            client: Destination for batches
            catalog_name: Catalog to export (defaults to settings.DEFAULT_CATALOG_NAME)
            batch_size: Items per batch (defaults to settings.BATCH_SIZE)
            **kwargs: Passed to CatalogJob
        """
        super().__init__(engine, client, **kwargs)
        self.catalog_name = catalog_name or settings.DEFAULT_CATALOG_NAME
        self.batch_size = batch_size or settings.BATCH_SIZE
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")

    def execute(self) -> JobResult:
        total_processed = 0
        batch_count = 0
        error_count = 0

        options = TraversalOptions(catalog_name=self.catalog_name)
        self.on_status_changed(f"Starting batch export with batch size: {self.batch_size}")

        batch: List[LeafItem] = []

        try:
            for item in self.engine.traverse(options, self.cancellation_token):
                batch.append(item)

                if len(batch) >= self.batch_size:
                    batch_count += 1
                    processed, errors = self._process_batch(batch, batch_count)
                    total_processed += processed
                    error_count += errors
                    batch = []

                    self.on_status_changed(
                        f"Processed {total_processed} items in {batch_count} batches..."
                    )

        except TraversalCancelled:
            # Flush what was already pulled before reporting the stop
            if batch:
                batch_count += 1
                processed, errors = self._process_batch(batch, batch_count)
                total_processed += processed
                error_count += errors
            message = f"Job stopped. Processed {total_processed} items in {batch_count} batches."
            self.logger.warning(message)
            return JobResult(
                STATUS_STOPPED, total_processed, error_count, message, {"batches": batch_count}
            )
        except TraversalError as e:
            self.logger.error("Fatal error in batch export job", exc_info=True)
            return JobResult(
                STATUS_FAILED,
                total_processed,
                error_count,
                f"Job failed after processing {total_processed} items: {e}",
                {"batches": batch_count},
            )

        if batch:
            batch_count += 1
            processed, errors = self._process_batch(batch, batch_count)
            total_processed += processed
            error_count += errors

        message = (
            f"Successfully processed {total_processed} items in {batch_count} batches. "
            f"Errors: {error_count}"
        )
        self.logger.info(message)
        return JobResult(
            STATUS_COMPLETED, total_processed, error_count, message, {"batches": batch_count}
        )

    def _process_batch(self, batch: List[LeafItem], batch_number: int) -> Tuple[int, int]:
        """
        Send one batch, retrying item by item if the batch call fails.

        Args:
            batch: Items to send
            batch_number: 1-based batch number for logging

        Returns:
            Tuple of (processed, errors)
        """
        try:
            self.logger.info(f"Processing batch {batch_number} with {len(batch)} items")
            self.client.export_batch(batch)
            return len(batch), 0
        except Exception as e:
            self.logger.error(f"Error processing batch {batch_number}: {e}", exc_info=True)
            return self._process_batch_individually(batch, batch_number)

    def _process_batch_individually(
        self, batch: List[LeafItem], batch_number: int
    ) -> Tuple[int, int]:
        self.logger.warning(f"Batch {batch_number} failed, attempting individual processing")

        processed = 0
        errors = 0

        for item in batch:
            try:
                self.client.export_item(item)
                processed += 1
            except Exception as e:
                self.logger.error(
                    f"Error processing item {item.id} from batch {batch_number}: {e}"
                )
                errors += 1

        return processed, errors


class DetailedProgressExportJob(CatalogJob):
    """Exports items while tracking per-item timing and reporting progress on an interval."""

    name = "detailed progress export"

    def __init__(
        self,
        engine: TraversalEngine,
        client: ExportClient,
        catalog_name: Optional[str] = None,
        report_interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
        **kwargs,
    ):
        super().__init__(engine, client, **kwargs)
        self.catalog_name = catalog_name or settings.DEFAULT_CATALOG_NAME
        self.report_interval_seconds = report_interval_seconds
        self.clock = clock
        self.metrics: Optional[ProcessingMetrics] = None

    def execute(self) -> JobResult:
        metrics = ProcessingMetrics(start_time=self.clock())
        self.metrics = metrics
        reporter = ProgressReporter(
            self.on_status_changed, self.report_interval_seconds, clock=self.clock
        )

        options = TraversalOptions(catalog_name=self.catalog_name)

        try:
            for item in self.engine.traverse(options, self.cancellation_token):
                try:
                    started = self.clock()
                    self.client.export_item(item)
                    metrics.record_item(item.item_type)
                    metrics.record_processing_time(self.clock() - started)
                except Exception as e:
                    self.logger.error(f"Error processing item {item.id}: {e}", exc_info=True)
                    metrics.record_error()

                reporter.report_progress(metrics)

        except TraversalCancelled:
            summary = metrics.get_stopped_summary()
            self.logger.warning(summary)
            return JobResult(
                STATUS_STOPPED, metrics.total_processed, metrics.errors, summary, metrics.get_stats()
            )
        except TraversalError as e:
            self.logger.error("Fatal error in export job", exc_info=True)
            return JobResult(
                STATUS_FAILED,
                metrics.total_processed,
                metrics.errors,
                metrics.get_failed_summary(str(e)),
                metrics.get_stats(),
            )

        summary = metrics.get_completed_summary()
        self.logger.info(summary.replace("\n", " | "))
        return JobResult(
            STATUS_COMPLETED, metrics.total_processed, metrics.errors, summary, metrics.get_stats()
        )
