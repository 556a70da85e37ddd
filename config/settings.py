"""
Configuration constants for the catalog traversal project.
"""
import os
from pathlib import Path

# Base directory (project root)
BASE_DIR = Path(__file__).parent.parent

# Traversal
DEFAULT_CATALOG_NAME = "Fashion"
MISSING_TIMESTAMP_POLICY = os.getenv("MISSING_TIMESTAMP_POLICY", "exclude").lower()

# Jobs
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "50"))
PROGRESS_REPORT_EVERY = 100  # Items between status messages
SYNC_PROGRESS_REPORT_EVERY = 50
PROGRESS_REPORT_INTERVAL_SECONDS = 10.0
METRICS_SAMPLE_WINDOW = 100  # Processing-time samples kept for averages

# Paths (relative to BASE_DIR)
DATA_DIR = BASE_DIR / "data"
LOG_DIR = DATA_DIR / "logs"

# Environment Variables (with defaults)
CATALOG_PATH = os.getenv("CATALOG_PATH", str(DATA_DIR / "catalog.json"))
EXPORT_PATH = os.getenv("EXPORT_PATH", str(DATA_DIR / "export.jsonl"))
SYNC_STATE_PATH = os.getenv("SYNC_STATE_PATH", str(DATA_DIR / "sync_state.json"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Ensure data directories exist
LOG_DIR.mkdir(parents=True, exist_ok=True)
