"""
Utility modules: logging, sync state, metrics.
"""
from src.utils.logging import get_logger, setup_logging
from src.utils.state_manager import SyncStateManager
from src.utils.statistics import ProcessingMetrics, ProgressReporter

__all__ = ["setup_logging", "get_logger", "SyncStateManager", "ProcessingMetrics", "ProgressReporter"]
