"""
Lazy breadth-first traversal of hierarchical catalogs.
"""

from src.traversal.cancellation import CancellationToken
from src.traversal.date_parser import WatermarkParser
from src.traversal.errors import StoreFault, TraversalCancelled, TraversalError
from src.traversal.filters import ChangedSinceFilter
from src.traversal.models import (
    Child,
    ChildKind,
    ContainerChild,
    ContainerRef,
    LeafChild,
    LeafItem,
    MissingTimestampPolicy,
    RootSelector,
    RootSelectorMode,
    TraversalOptions,
)
from src.traversal.traversal_engine import (
    TraversalEngine,
    TraversalOutcome,
    TraversalRun,
    TraversalStats,
)

__all__ = [
    "CancellationToken",
    "ChangedSinceFilter",
    "Child",
    "ChildKind",
    "ContainerChild",
    "ContainerRef",
    "LeafChild",
    "LeafItem",
    "MissingTimestampPolicy",
    "RootSelector",
    "RootSelectorMode",
    "StoreFault",
    "TraversalCancelled",
    "TraversalEngine",
    "TraversalError",
    "TraversalOptions",
    "TraversalOutcome",
    "TraversalRun",
    "TraversalStats",
    "WatermarkParser",
]
