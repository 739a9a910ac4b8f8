"""Catalog loader reading events from a bundled file or a remote feed."""
import logging
import os
from typing import Optional
from urllib.parse import urlparse

import requests

from processor.errors import CatalogError, ConfigurationError, TransportError
from processor.event_processor import EventProcessor
from processor.models import LoadResult

logger = logging.getLogger(__name__)

BUNDLED_EVENTS_PATH = os.path.join(os.path.dirname(__file__), 'data', 'events.json')

SOURCE_REMOTE = 'remote'
SOURCE_BUNDLED = 'bundled'


class EventCatalogLoader:
    """Loader for the event catalog."""

    EVENTS_PATH = '/events'

    def __init__(
        self,
        base_url: Optional[str] = None,
        bundled_path: Optional[str] = None,
        timeout: int = 30,
        processor: Optional[EventProcessor] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the catalog loader.

        Args:
            base_url: Feed base URL; events are fetched from <base_url>/events
            bundled_path: Local JSON file with the same schema as the feed
            timeout: HTTP request timeout in seconds (default: 30)
            processor: Payload decoder (default: EventProcessor())
            session: requests session to reuse (default: module-level requests)

        Raises:
            ConfigurationError: If neither source is usable
        """
        if base_url is None and bundled_path is None:
            raise ConfigurationError("No event source configured")

        self.events_url = self._build_events_url(base_url) if base_url else None

        if bundled_path is not None and not os.path.isfile(bundled_path):
            raise ConfigurationError(f"Bundled events file not found: {bundled_path}")

        self.bundled_path = bundled_path
        self.timeout = timeout
        self.processor = processor or EventProcessor()
        self.session = session or requests

    def _build_events_url(self, base_url: str) -> str:
        """
        Validate the base URL and derive the events endpoint.

        Args:
            base_url: Configured feed base URL

        Returns:
            Full URL of the events endpoint
        """
        parsed = urlparse(base_url.strip())
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigurationError(f"Invalid events base URL: {base_url!r}")
        return base_url.strip().rstrip('/') + self.EVENTS_PATH

    @property
    def has_remote(self) -> bool:
        return self.events_url is not None

    def load(self) -> LoadResult:
        """
        Load the catalog from the remote feed, or the bundled file when no
        feed is configured.

        Returns:
            LoadResult with events, or the error that prevented loading
        """
        if self.has_remote:
            return self._load_from(SOURCE_REMOTE, self._fetch_remote_payload)
        return self._load_from(SOURCE_BUNDLED, self._read_bundled_payload)

    def refresh(self) -> LoadResult:
        """
        Re-fetch the catalog from the remote feed.

        Returns:
            LoadResult with events, or the error that prevented loading
        """
        if not self.has_remote:
            error = ConfigurationError("Refresh requested but no remote feed is configured")
            logger.error(str(error))
            return LoadResult(error=error, source=SOURCE_REMOTE)
        return self._load_from(SOURCE_REMOTE, self._fetch_remote_payload)

    def _load_from(self, source: str, read_payload) -> LoadResult:
        logger.info(f"Loading events from {source} source")
        try:
            payload = read_payload()
            events = self.processor.decode_payload(payload)
        except CatalogError as e:
            logger.error(
                f"Failed to load events from {source} source: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return LoadResult(error=e, source=source)

        logger.info(f"Successfully loaded {len(events)} events from {source} source")
        return LoadResult(events=events, source=source)

    def _fetch_remote_payload(self) -> bytes:
        """
        Fetch the raw catalog from the remote feed. No retries.

        Returns:
            Response body

        Raises:
            TransportError: On network failure or non-2xx status
        """
        try:
            response = self.session.get(self.events_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.events_url} failed: {e}") from e
        return response.content

    def _read_bundled_payload(self) -> bytes:
        """
        Read the bundled catalog file.

        Returns:
            File contents

        Raises:
            TransportError: If the file cannot be read
        """
        try:
            with open(self.bundled_path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise TransportError(f"Cannot read bundled events file: {e}") from e
