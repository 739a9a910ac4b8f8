"""Favorites store keyed by event id, with a local JSON file backend."""
import json
import logging
import os
import tempfile
import threading
from typing import FrozenSet, List, Optional

from processor.errors import StoreBackendError, StoreWriteError

logger = logging.getLogger(__name__)


class JsonFileFavoritesBackend:
    """Local key-value file holding the favorites record under one key."""

    CORRUPT_SUFFIX = '.corrupt'

    def __init__(self, path: str, key: str = 'favoriteEventIds'):
        """
        Initialize the file backend.

        Args:
            path: Location of the JSON key-value file
            key: Key of the favorites record inside the file
        """
        self.path = os.path.expanduser(path)
        self.key = key

    def _read_document(self) -> Optional[dict]:
        """
        Read the key-value document.

        Returns:
            The document, {} if the file does not exist, or None if it
            exists but is not a JSON object
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except FileNotFoundError:
            return {}
        except ValueError as e:
            logger.warning(f"Ignoring unreadable favorites file {self.path}: {e}")
            return None
        except OSError as e:
            raise StoreBackendError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(document, dict):
            logger.warning(f"Ignoring favorites file {self.path}: not a JSON object")
            return None
        return document

    def _set_aside_corrupt_file(self) -> None:
        """Keep an unreadable file next to the new one instead of overwriting it."""
        corrupt_path = self.path + self.CORRUPT_SUFFIX
        try:
            os.replace(self.path, corrupt_path)
        except OSError as e:
            raise StoreBackendError(
                f"Cannot move unreadable {self.path} aside: {e}"
            ) from e
        logger.warning(f"Moved unreadable favorites file to {corrupt_path}")

    def load(self) -> List[str]:
        """
        Read the favorited event ids.

        Returns:
            List of event ids; empty on first run
        """
        ids = (self._read_document() or {}).get(self.key, [])
        if not isinstance(ids, list):
            logger.warning(f"Ignoring favorites record '{self.key}': not a list")
            return []
        return [event_id for event_id in ids if isinstance(event_id, str)]

    def save(self, event_ids: List[str]) -> None:
        """
        Write the favorites record, keeping any other keys in the file.

        Args:
            event_ids: Favorited event ids

        Raises:
            StoreBackendError: If the file cannot be written
        """
        document = self._read_document()
        if document is None:
            self._set_aside_corrupt_file()
            document = {}
        document[self.key] = list(event_ids)

        directory = os.path.dirname(self.path) or '.'
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(document, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error(f"Error writing favorites file {self.path}: {e}")
            raise StoreBackendError(f"Cannot write {self.path}: {e}") from e


class FavoritesStore:
    """Set of favorited event ids, written through to a backend on every change."""

    WRITE_ATTEMPTS = 2

    def __init__(self, backend):
        """
        Load the favorites set from the backend.

        Args:
            backend: Object with load() -> list of ids and save(ids)
        """
        self._backend = backend
        self._lock = threading.Lock()
        self._favorites = set(backend.load())
        logger.info(f"Loaded {len(self._favorites)} favorites")

    def is_favorite(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._favorites

    def favorites(self) -> FrozenSet[str]:
        """Snapshot of the favorited ids."""
        with self._lock:
            return frozenset(self._favorites)

    def toggle_favorite(self, event_id: str) -> bool:
        """
        Flip the favorite state of an event.

        Args:
            event_id: Event identifier

        Returns:
            The new favorite state

        Raises:
            StoreWriteError: If the change could not be persisted
        """
        with self._lock:
            updated = set(self._favorites)
            if event_id in updated:
                updated.discard(event_id)
            else:
                updated.add(event_id)
            self._persist(updated)
            self._favorites = updated
            return event_id in updated

    def set_favorite(self, event_id: str, value: bool) -> bool:
        """
        Put an event in the given favorite state.

        Args:
            event_id: Event identifier
            value: Desired favorite state

        Returns:
            True if the state changed, False if it already matched

        Raises:
            StoreWriteError: If the change could not be persisted
        """
        with self._lock:
            if (event_id in self._favorites) == value:
                return False
            updated = set(self._favorites)
            if value:
                updated.add(event_id)
            else:
                updated.discard(event_id)
            self._persist(updated)
            self._favorites = updated
            return True

    def _persist(self, favorites: set) -> None:
        """
        Write the set through to the backend, retrying once.

        Args:
            favorites: Full set to persist

        Raises:
            StoreWriteError: If every attempt fails
        """
        event_ids = sorted(favorites)
        for attempt in range(self.WRITE_ATTEMPTS):
            try:
                self._backend.save(event_ids)
                return
            except StoreBackendError as e:
                if attempt < self.WRITE_ATTEMPTS - 1:
                    logger.warning(
                        f"Favorites write failed (attempt {attempt + 1}/"
                        f"{self.WRITE_ATTEMPTS}): {e}. Retrying..."
                    )
                else:
                    logger.error(
                        f"All {self.WRITE_ATTEMPTS} favorites write attempts failed. "
                        f"Last error: {e}"
                    )
                    raise StoreWriteError(f"Could not save favorites: {e}") from e
