"""
Traversal engine for streaming leaf items out of a hierarchical catalog.

The walk is breadth-first and lazy: children are pulled from the store one at
a time and each passing leaf is handed to the consumer before the next child
is requested, so memory stays proportional to the frontier width rather than
to the size of the catalog.
"""
import time
from collections import deque
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, Generator, Iterator, List, Optional, Set

from src.traversal.cancellation import CancellationToken
from src.traversal.errors import StoreFault, TraversalCancelled
from src.traversal.filters import ChangedSinceFilter
from src.traversal.models import (
    ContainerChild,
    ContainerRef,
    LeafChild,
    LeafItem,
    RootSelector,
    TraversalOptions,
)
from src.utils.logging import get_logger

if TYPE_CHECKING:
    from src.catalog.content_store import ContentStore

logger = get_logger(__name__)

CycleObserver = Callable[[ContainerRef], None]

_EXHAUSTED = object()


class TraversalOutcome(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    ABANDONED = "abandoned"


@dataclass
class TraversalStats:
    """Counters for one traversal call."""

    roots_resolved: int = 0
    containers_expanded: int = 0
    leaves_scanned: int = 0
    leaves_emitted: int = 0
    leaves_filtered: int = 0
    unsupported_skipped: int = 0
    cycles_detected: int = 0
    peak_frontier: int = 0
    peak_held_refs: int = 0
    elapsed_ms: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TraversalRun:
    """
    Single-use lazy iterator over the leaves of one traversal.

    The run records its outcome and counters while it is consumed. Closing it
    (or dropping it) before exhaustion abandons the traversal without error.
    """

    def __init__(
        self,
        engine: "TraversalEngine",
        options: TraversalOptions,
        cancellation_token: Optional[CancellationToken] = None,
    ):
        self.options = options
        self.cancellation_token = cancellation_token or CancellationToken()
        self.stats = TraversalStats()
        self.outcome = TraversalOutcome.PENDING
        self.error: Optional[BaseException] = None
        self._generator = engine._walk(self)

    def __iter__(self) -> "TraversalRun":
        return self

    def __next__(self) -> LeafItem:
        return next(self._generator)

    def close(self) -> None:
        """Stop the traversal early and release its frontier."""
        self._generator.close()
        if self.outcome is TraversalOutcome.PENDING:
            self.outcome = TraversalOutcome.ABANDONED

    @property
    def emitted(self) -> int:
        return self.stats.leaves_emitted

    def __enter__(self) -> "TraversalRun":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class TraversalEngine:
    """Breadth-first, cycle-safe, lazily yielding walk over a ContentStore."""

    def __init__(
        self,
        store: "ContentStore",
        on_cycle: Optional[CycleObserver] = None,
        logger_instance=None,
    ):
        """
        Initialize TraversalEngine.

        Args:
            store: Content store to read containers and children from
            on_cycle: Optional hook called with each container reached a second time
            logger_instance: Optional logger instance
        """
        self.store = store
        self.on_cycle = on_cycle
        self.logger = logger_instance or logger

    def traverse(
        self,
        options: Optional[TraversalOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> TraversalRun:
        """
        Start an independent traversal.

        Nothing is read from the store until the returned run is iterated.

        Args:
            options: Root selection and changed-since filter (defaults to all roots, no filter)
            cancellation_token: Optional token polled before each dequeue and each child

        Returns:
            TraversalRun yielding LeafItem objects

        Raises (while iterating):
            StoreFault: The store raised; the traversal is abandoned
            TraversalCancelled: The token was cancelled
        """
        return TraversalRun(self, options or TraversalOptions(), cancellation_token)

    def _walk(self, run: TraversalRun) -> Generator[LeafItem, None, None]:
        run.outcome = TraversalOutcome.RUNNING
        started = time.monotonic()
        try:
            yield from self._expand(run)
        except GeneratorExit:
            run.outcome = TraversalOutcome.ABANDONED
            self.logger.debug(
                f"Traversal abandoned by consumer after {run.stats.leaves_emitted} items"
            )
            raise
        except TraversalCancelled as e:
            run.outcome = TraversalOutcome.CANCELLED
            run.error = e
            self.logger.warning(f"Traversal cancelled after {e.emitted} items")
            raise
        except StoreFault as e:
            run.outcome = TraversalOutcome.FAILED
            run.error = e
            self.logger.error(f"Traversal failed after {e.emitted} items: {e}")
            raise
        except Exception as e:
            run.outcome = TraversalOutcome.FAILED
            run.error = e
            raise
        else:
            run.outcome = TraversalOutcome.COMPLETED
        finally:
            run.stats.elapsed_ms = (time.monotonic() - started) * 1000

        self.logger.info(
            f"Catalog traversal completed: {run.stats.leaves_scanned} items scanned, "
            f"{run.stats.leaves_emitted} emitted in {run.stats.elapsed_ms:.0f}ms"
        )

    def _expand(self, run: TraversalRun) -> Iterator[LeafItem]:
        stats = run.stats
        leaf_filter = ChangedSinceFilter(run.options.changed_since, run.options.missing_timestamp)

        frontier: Deque[ContainerRef] = deque(self._resolve_roots(run.options.root_selector, run))
        visited: Set[ContainerRef] = set()

        stats.roots_resolved = len(frontier)
        stats.peak_frontier = len(frontier)
        stats.peak_held_refs = len(frontier)

        while frontier:
            self._check_cancelled(run)

            current = frontier.popleft()

            if current in visited:
                self._report_cycle(current, run)
                continue

            visited.add(current)
            stats.containers_expanded += 1
            stats.peak_held_refs = max(stats.peak_held_refs, len(frontier) + len(visited))

            children = self._list_children(current, run)

            while True:
                self._check_cancelled(run)

                child = self._next_child(children, current, run)
                if child is _EXHAUSTED:
                    break

                if isinstance(child, ContainerChild):
                    frontier.append(child.ref)
                    stats.peak_frontier = max(stats.peak_frontier, len(frontier))
                    stats.peak_held_refs = max(stats.peak_held_refs, len(frontier) + len(visited))
                elif isinstance(child, LeafChild):
                    stats.leaves_scanned += 1
                    if leaf_filter.should_include(child.item):
                        stats.leaves_emitted += 1
                        yield child.item
                    else:
                        stats.leaves_filtered += 1
                else:
                    stats.unsupported_skipped += 1
                    self.logger.debug(
                        f"Skipping unsupported child type {type(child).__name__} at {current}"
                    )

    def _resolve_roots(self, selector: RootSelector, run: TraversalRun) -> List[ContainerRef]:
        """
        Resolve the root containers for a selector.

        Returns:
            Root references in store order (empty if nothing matched)
        """
        try:
            roots = list(self.store.list_root_containers(selector))
        except Exception as e:
            raise StoreFault(
                f"Failed to resolve root containers for {selector.describe()}: {e}",
                emitted=run.stats.leaves_emitted,
            ) from e

        if not roots:
            self.logger.warning(f"No catalogs found matching {selector.describe()}")
            return []

        for root in roots:
            self.logger.info(f"Found catalog {root}")

        return roots

    def _list_children(self, ref: ContainerRef, run: TraversalRun) -> Iterator[object]:
        try:
            return iter(self.store.list_children(ref))
        except Exception as e:
            raise StoreFault(
                f"Failed to list children of {ref}: {e}",
                emitted=run.stats.leaves_emitted,
                container=ref,
            ) from e

    def _next_child(self, children: Iterator[object], ref: ContainerRef, run: TraversalRun) -> object:
        try:
            return next(children, _EXHAUSTED)
        except Exception as e:
            raise StoreFault(
                f"Failed to list children of {ref}: {e}",
                emitted=run.stats.leaves_emitted,
                container=ref,
            ) from e

    def _check_cancelled(self, run: TraversalRun) -> None:
        if run.cancellation_token.is_cancelled:
            raise TraversalCancelled(
                f"Traversal cancelled after {run.stats.leaves_emitted} items",
                emitted=run.stats.leaves_emitted,
            )

    def _report_cycle(self, ref: ContainerRef, run: TraversalRun) -> None:
        run.stats.cycles_detected += 1
        self.logger.warning(f"Circular reference detected at {ref}")
        if self.on_cycle is not None:
            self.on_cycle(ref)
