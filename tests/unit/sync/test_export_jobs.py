"""
Tests for catalog export jobs.
"""
import json
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from src.catalog.content_store import ContentStore
from src.sync.base_job import STATUS_COMPLETED, STATUS_FAILED, STATUS_STOPPED, JobResult
from src.sync.clients import ExportClient, JsonLinesExportClient, RecordingExportClient
from src.sync.export_jobs import (
    BatchCatalogExportJob,
    CatalogExportJob,
    DetailedProgressExportJob,
)
from src.traversal.models import ContainerRef, LeafChild, LeafItem
from src.traversal.traversal_engine import TraversalEngine
from tests.unit.fixtures.catalog_stores import FaultyStore


class FlakyClient(RecordingExportClient):
    """Fails on chosen item ids and, optionally, on every batch call."""

    def __init__(self, fail_ids=(), fail_batches=False):
        super().__init__()
        self.fail_ids = set(fail_ids)
        self.fail_batches = fail_batches

    def export_item(self, item):
        if item.id in self.fail_ids:
            raise RuntimeError(f"rejected {item.id}")
        super().export_item(item)

    def export_batch(self, items):
        if self.fail_batches:
            raise RuntimeError("bulk endpoint unavailable")
        super().export_batch(items)


class StoppingClient(RecordingExportClient):
    """Stops the job once it has received a number of items."""

    def __init__(self, stop_after: int):
        super().__init__()
        self.stop_after = stop_after
        self.job = None

    def export_item(self, item):
        super().export_item(item)
        if len(self.items) == self.stop_after:
            self.job.stop()


class HookStore(ContentStore):
    """Calls a hook while handing out the leaf with a given id."""

    def __init__(self, inner: ContentStore, trigger: str):
        self.inner = inner
        self.trigger = trigger
        self.hook = None

    def list_root_containers(self, selector):
        return self.inner.list_root_containers(selector)

    def list_children(self, ref):
        for child in self.inner.list_children(ref):
            if isinstance(child, LeafChild) and child.item.id == self.trigger:
                self.hook()
            yield child


def ids(items):
    return [item.id for item in items]


@pytest.mark.unit
class TestJobResult:
    """Test JobResult."""

    def test_succeeded(self):
        assert JobResult(STATUS_COMPLETED).succeeded is True
        assert JobResult(STATUS_STOPPED).succeeded is False


@pytest.mark.unit
class TestCatalogExportJob:
    """Test CatalogExportJob.execute()."""

    def test_exports_named_catalog(self, multi_engine, recording_client):
        job = CatalogExportJob(multi_engine, recording_client, catalog_name="Fashion")

        result = job.execute()

        assert result.status == STATUS_COMPLETED
        assert result.processed == 3
        assert ids(recording_client.items) == ["shirt", "tee", "tee-red"]
        assert result.message.startswith("Successfully processed 3 items")

    def test_defaults_to_configured_catalog(self, multi_engine, recording_client):
        job = CatalogExportJob(multi_engine, recording_client)

        assert job.catalog_name == "Fashion"

    def test_item_errors_counted_and_skipped(self, multi_engine):
        client = FlakyClient(fail_ids={"tee"})

        result = CatalogExportJob(multi_engine, client, catalog_name="Fashion").execute()

        assert result.status == STATUS_COMPLETED
        assert result.processed == 2
        assert result.errors == 1
        assert "Errors: 1" in result.message

    def test_status_callback_every_n_items(self, multi_engine, recording_client):
        callback = Mock()
        job = CatalogExportJob(
            multi_engine, recording_client, catalog_name="Fashion", report_every=2, status_callback=callback
        )

        job.execute()

        callback.assert_called_once_with("Processed 2 items...")

    def test_stop(self, multi_engine):
        client = StoppingClient(stop_after=1)
        job = CatalogExportJob(multi_engine, client, catalog_name="Fashion")
        client.job = job

        result = job.execute()

        assert result.status == STATUS_STOPPED
        assert result.processed == 1
        assert result.message == "Job stopped by user. Processed 1 items."

    def test_store_fault_fails_job(self, multi_catalog_store, recording_client):
        engine = TraversalEngine(FaultyStore(multi_catalog_store, fail_on="tops"))

        result = CatalogExportJob(engine, recording_client, catalog_name="Fashion").execute()

        assert result.status == STATUS_FAILED
        assert result.processed == 1
        assert "tops" in result.message

    def test_unknown_catalog_completes_empty(self, multi_engine, recording_client):
        result = CatalogExportJob(multi_engine, recording_client, catalog_name="Garden").execute()

        assert result.status == STATUS_COMPLETED
        assert result.processed == 0


@pytest.mark.unit
class TestBatchCatalogExportJob:
    """Test BatchCatalogExportJob.execute()."""

    def test_batches_with_remainder(self, multi_engine, recording_client):
        job = BatchCatalogExportJob(multi_engine, recording_client, catalog_name="Fashion", batch_size=2)

        result = job.execute()

        assert result.status == STATUS_COMPLETED
        assert result.processed == 3
        assert result.details == {"batches": 2}
        assert [ids(batch) for batch in recording_client.batches] == [["shirt", "tee"], ["tee-red"]]

    def test_invalid_batch_size(self, multi_engine, recording_client):
        with pytest.raises(ValueError):
            BatchCatalogExportJob(multi_engine, recording_client, batch_size=-1)

    def test_failed_batch_falls_back_to_items(self, multi_engine):
        client = FlakyClient(fail_ids={"tee-red"}, fail_batches=True)

        result = BatchCatalogExportJob(
            multi_engine, client, catalog_name="Fashion", batch_size=5
        ).execute()

        assert result.status == STATUS_COMPLETED
        assert result.processed == 2
        assert result.errors == 1
        assert ids(client.items) == ["shirt", "tee"]

    def test_stop_before_first_item(self, multi_engine):
        client = RecordingExportClient()
        job = BatchCatalogExportJob(multi_engine, client, catalog_name="Fashion", batch_size=10)
        callback_calls = []

        def stop_on_start(message):
            callback_calls.append(message)
            job.stop()

        job.status_callback = stop_on_start

        result = job.execute()

        assert result.status == STATUS_STOPPED
        assert result.processed == 0
        assert result.details == {"batches": 0}
        assert client.batches == []
        assert callback_calls[0].startswith("Starting batch export")

    def test_stop_flushes_partial_batch(self, multi_catalog_store):
        client = RecordingExportClient()
        store = HookStore(multi_catalog_store, trigger="tee")
        job = BatchCatalogExportJob(
            TraversalEngine(store), client, catalog_name="Fashion", batch_size=10
        )
        store.hook = job.stop

        result = job.execute()

        assert result.status == STATUS_STOPPED
        assert result.processed == 2
        assert [ids(batch) for batch in client.batches] == [["shirt", "tee"]]

    def test_stop_mid_batch_exports_pulled_items(self, multi_engine):
        client = RecordingExportClient()
        job = BatchCatalogExportJob(multi_engine, client, catalog_name="Fashion", batch_size=2)

        def stop_after_first_batch(message):
            if message.startswith("Processed"):
                job.stop()

        job.status_callback = stop_after_first_batch

        result = job.execute()

        assert result.status == STATUS_STOPPED
        assert result.processed == 2
        assert result.message == "Job stopped. Processed 2 items in 1 batches."


@pytest.mark.unit
class TestDetailedProgressExportJob:
    """Test DetailedProgressExportJob.execute()."""

    def test_counts_products_and_variants(self, multi_engine, recording_client):
        job = DetailedProgressExportJob(multi_engine, recording_client, catalog_name="Fashion")

        result = job.execute()

        assert result.status == STATUS_COMPLETED
        assert result.details["products_processed"] == 2
        assert result.details["variants_processed"] == 1
        assert result.message.startswith("Export completed successfully:")

    def test_progress_reported_on_interval(self, multi_engine, recording_client):
        start = datetime(2026, 2, 1)
        ticks = iter(start + timedelta(seconds=n) for n in range(100))
        callback = Mock()
        job = DetailedProgressExportJob(
            multi_engine,
            recording_client,
            catalog_name="Fashion",
            report_interval_seconds=1000,
            clock=lambda: next(ticks),
            status_callback=callback,
        )

        job.execute()

        # First item always reports; the interval is never reached afterwards
        assert callback.call_count == 1

    def test_item_errors_recorded(self, multi_engine):
        client = FlakyClient(fail_ids={"shirt"})

        result = DetailedProgressExportJob(multi_engine, client, catalog_name="Fashion").execute()

        assert result.errors == 1
        assert result.processed == 2
        assert result.details["errors"] == 1

    def test_stop(self, multi_engine):
        client = StoppingClient(stop_after=2)
        job = DetailedProgressExportJob(multi_engine, client, catalog_name="Fashion")
        client.job = job

        result = job.execute()

        assert result.status == STATUS_STOPPED
        assert result.processed == 2
        assert job.metrics.total_processed == 2


@pytest.mark.unit
class TestExportClients:
    """Test ExportClient implementations."""

    def test_default_export_batch_sends_items(self):
        class Collecting(ExportClient):
            def __init__(self):
                self.seen = []

            def export_item(self, item):
                self.seen.append(item.id)

        client = Collecting()
        client.export_batch([LeafItem("a"), LeafItem("b")])

        assert client.seen == ["a", "b"]

    def test_json_lines_client(self, tmp_path):
        output = tmp_path / "out" / "items.jsonl"
        client = JsonLinesExportClient(output)

        client.export_item(LeafItem("a", "A", parent=ContainerRef("shoes")))
        client.export_batch([LeafItem("b"), LeafItem("c")])

        lines = output.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["id"] for line in lines] == ["a", "b", "c"]
        assert json.loads(lines[0])["parent"] == "shoes"
