"""
Export and sync jobs that consume catalog traversals.
"""
from src.sync.base_job import CatalogJob, JobResult
from src.sync.clients import ExportClient, JsonLinesExportClient, RecordingExportClient
from src.sync.export_jobs import BatchCatalogExportJob, CatalogExportJob, DetailedProgressExportJob
from src.sync.sync_jobs import IncrementalCatalogSyncJob, MultiCatalogSyncJob

__all__ = [
    "CatalogJob",
    "JobResult",
    "ExportClient",
    "JsonLinesExportClient",
    "RecordingExportClient",
    "CatalogExportJob",
    "BatchCatalogExportJob",
    "DetailedProgressExportJob",
    "IncrementalCatalogSyncJob",
    "MultiCatalogSyncJob",
]
