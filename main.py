#!/usr/bin/env python3
"""
Catalog Traversal - Main entry point.

Streams products and variants out of a catalog document and runs an export
or sync job over them.
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

# Add project root to path for imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv  # noqa: E402

load_dotenv()

from config import settings  # noqa: E402
from src.catalog.memory_store import InMemoryContentStore  # noqa: E402
from src.sync.base_job import STATUS_FAILED, CatalogJob  # noqa: E402
from src.sync.clients import JsonLinesExportClient  # noqa: E402
from src.sync.export_jobs import (  # noqa: E402
    BatchCatalogExportJob,
    CatalogExportJob,
    DetailedProgressExportJob,
)
from src.sync.sync_jobs import IncrementalCatalogSyncJob, MultiCatalogSyncJob  # noqa: E402
from src.traversal.date_parser import WatermarkParser  # noqa: E402
from src.traversal.errors import TraversalError  # noqa: E402
from src.traversal.models import TraversalOptions  # noqa: E402
from src.traversal.traversal_engine import TraversalEngine  # noqa: E402
from src.utils.logging import setup_logging  # noqa: E402
from src.utils.state_manager import SyncStateManager  # noqa: E402

JOB_CHOICES = ["export", "batch-export", "detailed-export", "incremental-sync", "multi-sync", "list"]

# Job currently running, stopped on interrupt
current_job: Optional[CatalogJob] = None


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Stream catalog items breadth-first into export and sync jobs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export the Fashion catalog to a JSON lines file
  python main.py --job export --catalog-name Fashion

  # Sync items changed since the last successful sync
  python main.py --job incremental-sync

  # List items changed in the last 3 days
  python main.py --job list --changed-since "3 days ago"
        """,
    )

    parser.add_argument(
        "--catalog-file",
        default=settings.CATALOG_PATH,
        help="Catalog JSON document. Defaults to CATALOG_PATH.",
    )
    parser.add_argument("--job", choices=JOB_CHOICES, default="export", help="Job to run.")
    parser.add_argument(
        "--catalog-name",
        default=None,
        help=f"Catalog to process. Defaults to '{settings.DEFAULT_CATALOG_NAME}' (all catalogs for 'list').",
    )
    parser.add_argument(
        "--changed-since",
        default=None,
        help="Only list items changed after this point (ISO date or phrase like '2 days ago'). "
        "Applies to --job list only.",
    )
    parser.add_argument(
        "--output", default=settings.EXPORT_PATH, help="JSON lines output file. Defaults to EXPORT_PATH."
    )
    parser.add_argument(
        "--state-file",
        default=settings.SYNC_STATE_PATH,
        help="Sync watermark file. Defaults to SYNC_STATE_PATH.",
    )
    parser.add_argument("--sync-key", default=None, help="Watermark key for incremental sync.")
    parser.add_argument(
        "--batch-size", type=int, default=settings.BATCH_SIZE, help="Items per batch for batch-export."
    )
    parser.add_argument(
        "--workers", type=int, default=1, help="Parallel catalogs for multi-sync."
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")

    args = parser.parse_args(argv)

    args.changed_since_date = None
    if args.changed_since and args.job != "list":
        parser.error("--changed-since only applies to --job list")
    if args.changed_since:
        try:
            args.changed_since_date = WatermarkParser().parse_or_raise(args.changed_since)
        except ValueError as e:
            parser.error(str(e))

    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")
    if args.workers < 1:
        parser.error("--workers must be at least 1")

    return args


def signal_handler(signum, frame):
    """Stop the running job cooperatively."""
    if current_job is not None:
        current_job.stop()
    else:
        sys.exit(0)


def build_job(args: argparse.Namespace, engine: TraversalEngine) -> CatalogJob:
    """
    Create the job selected on the command line.

    Returns:
        Job instance ready to execute
    """
    client = JsonLinesExportClient(args.output)
    catalog_name = args.catalog_name

    if args.job == "export":
        return CatalogExportJob(engine, client, catalog_name=catalog_name)
    if args.job == "batch-export":
        return BatchCatalogExportJob(
            engine, client, catalog_name=catalog_name, batch_size=args.batch_size
        )
    if args.job == "detailed-export":
        return DetailedProgressExportJob(engine, client, catalog_name=catalog_name)
    if args.job == "incremental-sync":
        return IncrementalCatalogSyncJob(
            engine,
            client,
            SyncStateManager(Path(args.state_file)),
            catalog_name=catalog_name,
            sync_key=args.sync_key,
        )
    return MultiCatalogSyncJob(engine, client, max_workers=args.workers)


def list_items(args: argparse.Namespace, engine: TraversalEngine, logger) -> int:
    """Print matching items, one per line."""
    options = TraversalOptions(
        catalog_name=args.catalog_name, changed_since=args.changed_since_date
    )
    run = engine.traverse(options)
    try:
        for item in run:
            modified = item.last_modified.isoformat() if item.last_modified else "-"
            print(f"{item.item_type}\t{item.id}\t{modified}\t{item.name}")
    except TraversalError as e:
        logger.error(f"Listing failed after {e.emitted} items: {e}")
        return 1

    logger.info(f"Listed {run.stats.leaves_emitted} of {run.stats.leaves_scanned} items")
    return 0


def run(args: argparse.Namespace) -> int:
    """
    Load the catalog and run the selected job.

    Returns:
        Exit code (0 for completed or stopped, 1 for errors)
    """
    global current_job

    logger = setup_logging(args.log_level)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        store = InMemoryContentStore.from_json_file(args.catalog_file)
    except FileNotFoundError:
        logger.error(f"Catalog file not found: {args.catalog_file}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid catalog file {args.catalog_file}: {e}")
        return 1

    engine = TraversalEngine(store)

    if args.job == "list":
        return list_items(args, engine, logger)

    logger.info("=" * 60)
    logger.info(f"Running job: {args.job}")
    logger.info("=" * 60)

    current_job = build_job(args, engine)
    try:
        result = current_job.execute()
    finally:
        current_job = None

    logger.info("=" * 60)
    for line in result.message.splitlines():
        logger.info(line)
    logger.info("=" * 60)

    return 1 if result.status == STATUS_FAILED else 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point.

    Parses command-line arguments and runs the selected job.
    """
    try:
        args = parse_arguments(argv)
        return run(args)
    except KeyboardInterrupt:
        logger = setup_logging()
        logger.warning("\nInterrupted by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
