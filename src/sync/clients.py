"""
Export clients that receive traversed items.
"""
import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Union

from src.traversal.models import LeafItem
from src.utils.logging import get_logger

logger = get_logger(__name__)


class ExportClient(ABC):
    """Destination for exported or synced catalog items."""

    @abstractmethod
    def export_item(self, item: LeafItem) -> None:
        """
        Export a single item.

        Args:
            item: Product or variant to export

        Raises:
            Exception: Any failure; jobs count it and move on
        """
        pass

    def export_batch(self, items: Sequence[LeafItem]) -> None:
        """
        Export a batch of items.

        The default sends items one by one; clients with a bulk endpoint
        override this.

        Args:
            items: Items to export
        """
        for item in items:
            self.export_item(item)


class JsonLinesExportClient(ExportClient):
    """Appends one JSON document per item to a file."""

    def __init__(self, output_path: Union[str, Path]):
        """
        Initialize JsonLinesExportClient.

        Args:
            output_path: File to append to (parent directory is created)
        """
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        # Parallel catalog syncs share one client
        self._lock = threading.Lock()
        logger.info(f"Exporting items to {self.output_path}")

    def export_item(self, item: LeafItem) -> None:
        self.export_batch([item])

    def export_batch(self, items: Sequence[LeafItem]) -> None:
        lines = "".join(json.dumps(item.to_dict(), ensure_ascii=False) + "\n" for item in items)
        with self._lock:
            with open(self.output_path, "a", encoding="utf-8") as f:
                f.write(lines)
        logger.debug(f"Wrote {len(items)} items to {self.output_path}")


class RecordingExportClient(ExportClient):
    """Keeps exported items in memory."""

    def __init__(self):
        self.items: List[LeafItem] = []
        self.batches: List[List[LeafItem]] = []

    def export_item(self, item: LeafItem) -> None:
        self.items.append(item)

    def export_batch(self, items: Sequence[LeafItem]) -> None:
        self.batches.append(list(items))
        self.items.extend(items)
