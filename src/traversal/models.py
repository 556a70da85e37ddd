"""
Data model for catalog traversal: container references, leaf items,
child variants and traversal options.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union


class ChildKind(Enum):
    """Kind of a child returned by a content store."""

    CONTAINER = "container"
    LEAF = "leaf"


class MissingTimestampPolicy(Enum):
    """What the changed-since filter does with leaves lacking last_modified."""

    EXCLUDE = "exclude"
    INCLUDE = "include"


class RootSelectorMode(Enum):
    ALL = "all"
    BY_NAME = "by_name"
    BY_REF = "by_ref"


@dataclass(frozen=True)
class ContainerRef:
    """
    Opaque identifier of a container (catalog or category node).

    Equality and hashing use ``id`` only; ``name`` is informational.
    """

    id: str
    name: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} ({self.id})"
        return self.id


@dataclass(frozen=True)
class LeafItem:
    """A product or variant emitted by a traversal."""

    id: str
    name: str = ""
    item_type: str = "product"
    last_modified: Optional[datetime] = None
    parent: Optional[ContainerRef] = None
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the item for export clients.

        Returns:
            JSON-compatible dictionary
        """
        return {
            "id": self.id,
            "name": self.name,
            "type": self.item_type,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "parent": self.parent.id if self.parent else None,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True)
class ContainerChild:
    """Child that is itself a container and gets enqueued."""

    ref: ContainerRef

    @property
    def kind(self) -> ChildKind:
        return ChildKind.CONTAINER


@dataclass(frozen=True)
class LeafChild:
    """Child that is a leaf and gets filtered, then emitted."""

    item: LeafItem

    @property
    def kind(self) -> ChildKind:
        return ChildKind.LEAF


Child = Union[ContainerChild, LeafChild]


@dataclass(frozen=True)
class RootSelector:
    """Which root containers seed a traversal."""

    mode: RootSelectorMode = RootSelectorMode.ALL
    name: Optional[str] = None
    ref: Optional[ContainerRef] = None

    @classmethod
    def all(cls) -> "RootSelector":
        return cls(RootSelectorMode.ALL)

    @classmethod
    def by_name(cls, name: str) -> "RootSelector":
        return cls(RootSelectorMode.BY_NAME, name=name)

    @classmethod
    def by_ref(cls, ref: ContainerRef) -> "RootSelector":
        return cls(RootSelectorMode.BY_REF, ref=ref)

    def describe(self) -> str:
        if self.mode is RootSelectorMode.BY_REF:
            return str(self.ref)
        if self.mode is RootSelectorMode.BY_NAME:
            return f"'{self.name}'"
        return "any"


@dataclass(frozen=True)
class TraversalOptions:
    """
    Options for one traversal call.

    Attributes:
        catalog_name: Select root catalogs by name (case-insensitive)
        catalog_ref: Select one root container by reference; wins over catalog_name
        changed_since: Only emit leaves modified strictly after this time
        missing_timestamp: Policy for leaves without last_modified under a filter
    """

    catalog_name: Optional[str] = None
    catalog_ref: Optional[ContainerRef] = None
    changed_since: Optional[datetime] = None
    missing_timestamp: MissingTimestampPolicy = MissingTimestampPolicy.EXCLUDE

    @property
    def root_selector(self) -> RootSelector:
        if self.catalog_ref is not None:
            return RootSelector.by_ref(self.catalog_ref)
        if self.catalog_name is not None:
            return RootSelector.by_name(self.catalog_name)
        return RootSelector.all()
