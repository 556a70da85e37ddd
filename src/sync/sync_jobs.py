"""
Catalog sync jobs: incremental (watermark based) and multi-catalog.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

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
from src.traversal.models import (
    ContainerRef,
    MissingTimestampPolicy,
    RootSelector,
    TraversalOptions,
)
from src.traversal.traversal_engine import TraversalEngine
from src.utils.state_manager import SyncStateManager


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IncrementalCatalogSyncJob(CatalogJob):
    """
    Syncs only the items changed since the last successful run.

    The watermark saved for the next run is the time this run started, and
    it is saved only when the traversal completes. A stop or a store fault
    leaves the previous watermark in place so the next run covers the gap.
    """

    name = "incremental catalog sync"

    def __init__(
        self,
        engine: TraversalEngine,
        client: ExportClient,
        sync_state: SyncStateManager,
        catalog_name: Optional[str] = None,
        sync_key: Optional[str] = None,
        missing_timestamp: Optional[MissingTimestampPolicy] = None,
        report_every: Optional[int] = None,
        clock: Callable[[], datetime] = _utc_now,
        **kwargs,
    ):
        """
        Initialize IncrementalCatalogSyncJob.

        Args:
            engine: Traversal engine over the content store
            client: Destination for changed items
            sync_state: Watermark store
            catalog_name: Catalog to sync (defaults to settings.DEFAULT_CATALOG_NAME)
            sync_key: Watermark key (defaults to "CatalogSync_<catalog_name>")
            missing_timestamp: Policy for items without last_modified
                               (defaults to settings.MISSING_TIMESTAMP_POLICY)
            report_every: Items between status messages
            clock: Time source for the new watermark
            **kwargs: Passed to CatalogJob
        """
        super().__init__(engine, client, **kwargs)
        self.sync_state = sync_state
        self.catalog_name = catalog_name or settings.DEFAULT_CATALOG_NAME
        self.sync_key = sync_key or f"CatalogSync_{self.catalog_name}"
        self.missing_timestamp = missing_timestamp or MissingTimestampPolicy(
            settings.MISSING_TIMESTAMP_POLICY
        )
        self.report_every = report_every or settings.SYNC_PROGRESS_REPORT_EVERY
        self.clock = clock

    def execute(self) -> JobResult:
        last_sync_date = self.sync_state.get_last_sync_date(self.sync_key)
        current_sync_date = self.clock()

        updated_count = 0
        error_count = 0

        options = TraversalOptions(
            catalog_name=self.catalog_name,
            changed_since=last_sync_date,
            missing_timestamp=self.missing_timestamp,
        )

        sync_type = "Incremental" if last_sync_date else "Full"
        self.logger.info(
            f"{sync_type} sync started. Last sync: "
            f"{last_sync_date.isoformat() if last_sync_date else 'Never'}"
        )

        details: Dict[str, Any] = {
            "sync_type": sync_type.lower(),
            "last_sync": last_sync_date.isoformat() if last_sync_date else None,
        }

        try:
            for item in self.engine.traverse(options, self.cancellation_token):
                try:
                    self.client.export_item(item)
                    updated_count += 1

                    if updated_count % self.report_every == 0:
                        self.on_status_changed(f"Synced {updated_count} changed items...")
                except Exception as e:
                    self.logger.error(f"Error syncing item {item.id}: {e}", exc_info=True)
                    error_count += 1

        except TraversalCancelled:
            message = (
                f"Sync stopped after {updated_count} items; watermark not advanced."
            )
            self.logger.warning(message)
            return JobResult(STATUS_STOPPED, updated_count, error_count, message, details)
        except TraversalError as e:
            # Keep the old watermark; the next run retries from the same point
            self.logger.error("Fatal error in catalog sync job", exc_info=True)
            return JobResult(
                STATUS_FAILED,
                updated_count,
                error_count,
                f"Job failed after processing {updated_count} items: {e}",
                details,
            )

        self.sync_state.save_last_sync_date(self.sync_key, current_sync_date, updated_count)
        details["new_watermark"] = current_sync_date.isoformat()

        if last_sync_date:
            message = (
                f"Incremental sync complete: {updated_count} items changed since "
                f"{last_sync_date.isoformat()}. Errors: {error_count}"
            )
        else:
            message = f"Full sync complete: {updated_count} items processed. Errors: {error_count}"

        self.logger.info(f"Sync completed: {message}")
        return JobResult(STATUS_COMPLETED, updated_count, error_count, message, details)


class MultiCatalogSyncJob(CatalogJob):
    """
    Syncs every catalog, each with its own independent traversal.

    With ``max_workers`` above 1 the catalogs are processed in parallel
    threads; each thread owns its traversal's frontier and visited set. A
    catalog whose traversal fails is reported as failed while the others
    carry on.
    """

    name = "multi-catalog sync"

    def __init__(
        self,
        engine: TraversalEngine,
        client: ExportClient,
        max_workers: int = 1,
        **kwargs,
    ):
        super().__init__(engine, client, **kwargs)
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    def execute(self) -> JobResult:
        try:
            catalogs = list(self.engine.store.list_root_containers(RootSelector.all()))
        except Exception as e:
            self.logger.error("Fatal error listing catalogs", exc_info=True)
            return JobResult(STATUS_FAILED, message=f"Job failed listing catalogs: {e}")

        self.logger.info(f"Found {len(catalogs)} catalogs to process")

        if self.max_workers > 1 and len(catalogs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(self._process_catalog, catalogs))
        else:
            results = []
            for catalog in catalogs:
                if self.stop_requested:
                    self.logger.warning(f"Job stopped before catalog '{catalog.name}'")
                    break
                self.on_status_changed(f"Processing catalog: {catalog.name}")
                results.append(self._process_catalog(catalog))

        catalog_results = {result["id"]: result for result in results}
        total_processed = sum(result["processed"] for result in results)
        total_errors = sum(result["errors"] for result in results)

        statuses = [result["status"] for result in results]
        if STATUS_FAILED in statuses:
            status = STATUS_FAILED
        elif STATUS_STOPPED in statuses or len(results) < len(catalogs):
            status = STATUS_STOPPED
        else:
            status = STATUS_COMPLETED

        lines = [
            f"Multi-catalog sync {status}:",
            f"Total: {total_processed} items processed, {total_errors} errors",
            "",
        ]
        for result in results:
            lines.append(
                f"  {result['catalog']} ({result['id']}): {result['processed']} items, "
                f"{result['errors']} errors ({result['status']})"
            )

        message = "\n".join(lines)
        self.logger.info(message.replace("\n", " | "))
        return JobResult(status, total_processed, total_errors, message, {"catalogs": catalog_results})

    def _process_catalog(self, catalog: ContainerRef) -> Dict[str, Any]:
        """
        Sync one catalog.

        Args:
            catalog: Root catalog reference

        Returns:
            Dictionary with id, catalog (display name), status, processed, errors
        """
        processed = 0
        errors = 0
        status = STATUS_COMPLETED
        name = catalog.name or catalog.id

        options = TraversalOptions(catalog_ref=catalog)

        try:
            for item in self.engine.traverse(options, self.cancellation_token):
                try:
                    self.client.export_item(item)
                    processed += 1
                except Exception as e:
                    self.logger.error(
                        f"Error processing item {item.id} in catalog '{name}': {e}", exc_info=True
                    )
                    errors += 1
        except TraversalCancelled:
            status = STATUS_STOPPED
            self.logger.warning(f"Job stopped while processing catalog '{name}'")
        except TraversalError as e:
            status = STATUS_FAILED
            self.logger.error(f"Fatal error in catalog '{name}': {e}", exc_info=True)

        self.logger.info(f"Completed catalog '{name}': {processed} processed, {errors} errors")
        return {
            "id": catalog.id,
            "catalog": name,
            "status": status,
            "processed": processed,
            "errors": errors,
        }

