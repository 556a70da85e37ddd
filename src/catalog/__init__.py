"""
Content stores: the tree-shaped catalogs traversals read from.
"""
from src.catalog.content_store import ContentStore
from src.catalog.memory_store import InMemoryContentStore

__all__ = ["ContentStore", "InMemoryContentStore"]
