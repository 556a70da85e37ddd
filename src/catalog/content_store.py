"""
Content store interface consumed by the traversal engine.
"""
from abc import ABC, abstractmethod
from typing import Iterable

from src.traversal.models import Child, ContainerRef, RootSelector


class ContentStore(ABC):
    """Abstract tree-shaped catalog the engine reads from."""

    @abstractmethod
    def list_root_containers(self, selector: RootSelector) -> Iterable[ContainerRef]:
        """
        Resolve the root containers for a selector.

        Args:
            selector: ALL, BY_NAME or BY_REF selector

        Returns:
            Matching root references; empty if nothing matches
        """
        pass

    @abstractmethod
    def list_children(self, ref: ContainerRef) -> Iterable[Child]:
        """
        List the direct children of a container in a stable order.

        Args:
            ref: Container to list

        Returns:
            ContainerChild and LeafChild entries, in store order
        """
        pass
