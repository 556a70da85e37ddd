"""
In-memory content store, buildable in code or from a JSON catalog document.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from src.catalog.content_store import ContentStore
from src.traversal.date_parser import parse_iso_timestamp
from src.traversal.models import (
    Child,
    ContainerChild,
    ContainerRef,
    LeafChild,
    LeafItem,
    RootSelector,
    RootSelectorMode,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

LEAF_TYPES = ("product", "variant")


class InMemoryContentStore(ContentStore):
    """
    Ordered in-memory catalog.

    Catalogs and children are kept in insertion order, so repeated traversals
    over an unchanged store see the same order.
    """

    def __init__(self):
        self._catalogs: List[ContainerRef] = []
        self._containers: Dict[ContainerRef, ContainerRef] = {}
        self._children: Dict[ContainerRef, List[Child]] = {}

    def add_catalog(self, ref_id: str, name: Optional[str] = None) -> ContainerRef:
        """
        Add a root catalog.

        Args:
            ref_id: Unique container id
            name: Catalog name used by name selection (defaults to ref_id)

        Returns:
            Reference to the new catalog
        """
        ref = self._register(ref_id, name or ref_id)
        self._catalogs.append(ref)
        return ref

    def add_node(self, parent: ContainerRef, ref_id: str, name: Optional[str] = None) -> ContainerRef:
        """Add a category node under parent and return its reference."""
        ref = self._register(ref_id, name or ref_id)
        self._append(parent, ContainerChild(ref))
        return ref

    def link(self, parent: ContainerRef, target: ContainerRef) -> None:
        """Add an existing container as a child of parent (shared nodes, cycles)."""
        if target not in self._containers:
            raise KeyError(f"Unknown container: {target.id}")
        self._append(parent, ContainerChild(self._containers[target]))

    def add_leaf(self, parent: ContainerRef, item: LeafItem) -> LeafItem:
        self._append(parent, LeafChild(item))
        return item

    def add_product(
        self,
        parent: ContainerRef,
        item_id: str,
        name: str = "",
        last_modified: Optional[datetime] = None,
        **attributes: Any,
    ) -> LeafItem:
        return self.add_leaf(
            parent,
            LeafItem(
                item_id, name, "product", last_modified, self._containers.get(parent), attributes
            ),
        )

    def add_variant(
        self,
        parent: ContainerRef,
        item_id: str,
        name: str = "",
        last_modified: Optional[datetime] = None,
        **attributes: Any,
    ) -> LeafItem:
        return self.add_leaf(
            parent,
            LeafItem(
                item_id, name, "variant", last_modified, self._containers.get(parent), attributes
            ),
        )

    def list_root_containers(self, selector: RootSelector) -> List[ContainerRef]:
        if selector.mode is RootSelectorMode.BY_REF:
            if selector.ref is not None and selector.ref in self._containers:
                return [self._containers[selector.ref]]
            return []

        if selector.mode is RootSelectorMode.BY_NAME:
            wanted = (selector.name or "").casefold()
            return [ref for ref in self._catalogs if (ref.name or "").casefold() == wanted]

        return list(self._catalogs)

    def list_children(self, ref: ContainerRef) -> Iterator[Child]:
        if ref not in self._children:
            raise KeyError(f"Unknown container: {ref.id}")
        return iter(self._children[ref])

    def _register(self, ref_id: str, name: str) -> ContainerRef:
        ref = ContainerRef(ref_id, name)
        if ref in self._containers:
            raise ValueError(f"Duplicate container id: {ref_id}")
        self._containers[ref] = ref
        self._children[ref] = []
        return ref

    def _append(self, parent: ContainerRef, child: Child) -> None:
        if parent not in self._children:
            raise KeyError(f"Unknown container: {parent.id}")
        self._children[parent].append(child)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryContentStore":
        """
        Build a store from a catalog document.

        Expected structure::

            {"catalogs": [{"id": "fashion", "name": "Fashion", "children": [
                {"type": "node", "id": "shoes", "name": "Shoes", "children": [...]},
                {"type": "product", "id": "p1", "last_modified": "2026-02-01T00:00:00"},
                {"type": "link", "ref": "fashion"}
            ]}]}

        Links are resolved after all containers are registered, so they may
        point forward or back up the tree.

        Args:
            data: Parsed catalog document

        Returns:
            Populated store

        Raises:
            ValueError: On unknown child types or missing ids
        """
        store = cls()
        pending_links: List[tuple] = []

        def load_children(parent: ContainerRef, entries: List[Mapping[str, Any]]) -> None:
            for entry in entries:
                entry_type = entry.get("type")
                if entry_type == "node":
                    node = store.add_node(parent, _require(entry, "id"), entry.get("name"))
                    load_children(node, entry.get("children", []))
                elif entry_type in LEAF_TYPES:
                    store.add_leaf(
                        parent,
                        LeafItem(
                            _require(entry, "id"),
                            entry.get("name", ""),
                            entry_type,
                            _parse_timestamp(entry.get("last_modified")),
                            parent,
                            dict(entry.get("attributes", {})),
                        ),
                    )
                elif entry_type == "link":
                    # Placeholder keeps sibling order; filled in once all ids exist
                    target_id = _require(entry, "ref")
                    index = len(store._children[parent])
                    store._children[parent].append(ContainerChild(ContainerRef(target_id)))
                    pending_links.append((parent, index, target_id))
                else:
                    raise ValueError(f"Unknown catalog entry type: {entry_type!r}")

        for catalog in data.get("catalogs", []):
            ref = store.add_catalog(_require(catalog, "id"), catalog.get("name"))
            load_children(ref, catalog.get("children", []))

        for parent, index, target_id in pending_links:
            target = ContainerRef(target_id)
            if target not in store._containers:
                raise ValueError(f"Link from {parent.id} to unknown container {target_id!r}")
            store._children[parent][index] = ContainerChild(store._containers[target])

        logger.info(
            f"Loaded catalog store: {len(store._catalogs)} catalogs, "
            f"{len(store._containers)} containers"
        )
        return store

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryContentStore":
        """
        Load a store from a JSON catalog file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the document is invalid
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.debug(f"Read catalog document from {path}")
        return cls.from_dict(data)


def _require(entry: Mapping[str, Any], key: str) -> str:
    value = entry.get(key)
    if not value:
        raise ValueError(f"Catalog entry missing '{key}': {dict(entry)}")
    return str(value)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return parse_iso_timestamp(value)
