"""
Exceptions raised by catalog traversals.
"""
from typing import Optional

from src.traversal.models import ContainerRef


class TraversalError(Exception):
    """Base class for abnormal traversal termination."""

    def __init__(self, message: str, emitted: int = 0):
        """
        Initialize TraversalError.

        Args:
            message: Human readable description
            emitted: Number of items delivered to the consumer before termination
        """
        super().__init__(message)
        self.emitted = emitted


class StoreFault(TraversalError):
    """The content store raised while resolving roots or listing children."""

    def __init__(self, message: str, emitted: int = 0, container: Optional[ContainerRef] = None):
        super().__init__(message, emitted)
        self.container = container


class TraversalCancelled(TraversalError):
    """Cancellation was observed before the traversal completed."""
