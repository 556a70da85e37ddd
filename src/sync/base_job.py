"""
Base class for jobs that consume a catalog traversal.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from src.sync.clients import ExportClient
from src.traversal.cancellation import CancellationToken
from src.traversal.traversal_engine import TraversalEngine
from src.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_COMPLETED = "completed"
STATUS_STOPPED = "stopped"
STATUS_FAILED = "failed"


@dataclass
class JobResult:
    """Outcome of one job execution."""

    status: str
    processed: int = 0
    errors: int = 0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_COMPLETED


class CatalogJob(ABC):
    """
    Job that streams items from a TraversalEngine into an ExportClient.

    A job owns one CancellationToken; ``stop()`` cancels it and the traversal
    raises TraversalCancelled at its next cancellation check. Jobs are
    single-use once stopped.
    """

    name = "catalog job"

    def __init__(
        self,
        engine: TraversalEngine,
        client: ExportClient,
        status_callback: Optional[Callable[[str], None]] = None,
        logger_instance=None,
    ):
        """
        Initialize CatalogJob.

        Args:
            engine: Traversal engine over the content store
            client: Destination for items
            status_callback: Optional callback receiving status messages
            logger_instance: Optional logger instance
        """
        self.engine = engine
        self.client = client
        self.status_callback = status_callback
        self.logger = logger_instance or logger
        self.cancellation_token = CancellationToken()

    @abstractmethod
    def execute(self) -> JobResult:
        """
        Run the job to completion, stop or failure.

        Returns:
            JobResult describing what happened
        """
        pass

    def stop(self) -> None:
        """Ask the running job to stop at its next cancellation check."""
        self.logger.warning(f"Stop requested for {self.name}")
        self.cancellation_token.cancel()

    @property
    def stop_requested(self) -> bool:
        return self.cancellation_token.is_cancelled

    def on_status_changed(self, message: str) -> None:
        if self.status_callback:
            self.status_callback(message)
        self.logger.info(message)
