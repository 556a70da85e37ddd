"""
Sync state manager for persisting last-successful-sync watermarks.
"""
import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from src.utils.logging import get_logger

logger = get_logger(__name__)


class SyncStateManager:
    """Stores one watermark per sync key in a JSON file."""

    def __init__(self, state_path: Path):
        """
        Initialize SyncStateManager.

        Args:
            state_path: Path to sync state JSON file
        """
        self.state_path = Path(state_path)
        self._state: Optional[Dict[str, Any]] = None

        # Ensure directory exists
        self.state_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"SyncStateManager initialized with path: {self.state_path}")

    def get_state(self) -> Dict[str, Any]:
        """
        Get current state (loads from file if not already loaded).

        Returns:
            State dictionary
        """
        if self._state is None:
            self._state = self.load_state() or self._default_state()

        return self._state

    def get_last_sync_date(self, key: str) -> Optional[datetime]:
        """
        Get the watermark of the last successful sync for a key.

        Args:
            key: Sync key (e.g. "CatalogSync_Fashion")

        Returns:
            Timestamp of the last successful sync, or None if never synced
        """
        entry = self.get_state()["syncs"].get(key)
        if not entry or not entry.get("last_sync"):
            return None

        try:
            return datetime.fromisoformat(entry["last_sync"])
        except ValueError:
            logger.warning(f"Invalid last_sync value for '{key}': {entry['last_sync']!r}")
            return None

    def save_last_sync_date(self, key: str, when: datetime, items_synced: int = 0) -> None:
        """
        Record a successful sync.

        Args:
            key: Sync key
            when: Watermark to store (the time the sync started)
            items_synced: Number of items the sync processed
        """
        state = self.get_state()
        state["syncs"][key] = {
            "last_sync": when.isoformat(),
            "items_synced": items_synced,
        }
        self.save_state(state)
        logger.info(f"Saved sync watermark for '{key}': {when.isoformat()}")

    def save_state(self, state: Optional[Dict[str, Any]] = None) -> None:
        """
        Save sync state to JSON file.

        Args:
            state: State dictionary to save (uses current state if None)
        """
        if state is None:
            state = self.get_state()

        state["last_updated"] = datetime.now(timezone.utc).isoformat()

        try:
            # Create backup if file exists
            if self.state_path.exists():
                backup_path = self.state_path.with_suffix(".json.bak")
                shutil.copy2(self.state_path, backup_path)
                logger.debug(f"Created backup: {backup_path}")

            # Write to temp file first (atomic write)
            temp_path = self.state_path.with_suffix(".json.tmp")

            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, ensure_ascii=False)

            # Atomic rename
            temp_path.replace(self.state_path)

            self._state = state

            logger.debug(f"State saved to {self.state_path}")

        except OSError as e:
            logger.error(f"Failed to save sync state: {e}")
            raise

    def load_state(self) -> Optional[Dict[str, Any]]:
        """
        Load sync state from JSON file.

        Returns:
            State dictionary or None if file doesn't exist or is corrupted
        """
        if not self.state_path.exists():
            logger.debug("Sync state file does not exist, using default state")
            return None

        try:
            with open(self.state_path, encoding="utf-8") as f:
                state = json.load(f)

            if self._validate_state(state):
                self._state = state
                logger.info(f"Sync state loaded from {self.state_path}")
                return state
            else:
                logger.warning("Invalid sync state structure, using default state")
                return None

        except json.JSONDecodeError as e:
            logger.error(f"Corrupted JSON in sync state file: {e}")
            return None
        except OSError as e:
            logger.error(f"Failed to load sync state: {e}")
            return None

    def clear_state(self, key: Optional[str] = None) -> None:
        """
        Clear sync state.

        Args:
            key: Forget only this key; when None, delete the whole file
        """
        if key is not None:
            state = self.get_state()
            if state["syncs"].pop(key, None) is not None:
                self.save_state(state)
                logger.info(f"Sync watermark cleared for '{key}'")
            return

        if self.state_path.exists():
            self.state_path.unlink()
            logger.info("Sync state cleared")

        self._state = None

    def _default_state(self) -> Dict[str, Any]:
        return {
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "syncs": {},
        }

    def _validate_state(self, state: Any) -> bool:
        return isinstance(state, dict) and isinstance(state.get("syncs"), dict)
