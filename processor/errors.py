"""Error types for catalog loading, calendar export and favorites storage."""


class EventsError(Exception):
    """Base class for all events-browser errors."""


class CatalogError(EventsError):
    """Base class for failures while loading the event catalog."""


class ConfigurationError(CatalogError):
    """Invalid feed URL or bundled file path. Fatal at startup."""


class TransportError(CatalogError):
    """Network failure or non-2xx response while fetching the catalog."""


class DecodeError(CatalogError):
    """Malformed payload; the whole batch is rejected."""


class ExportError(EventsError):
    """An event cannot be turned into a calendar entry."""


class StoreError(EventsError):
    """Base class for favorites storage failures."""


class StoreBackendError(StoreError):
    """A storage backend failed to read or write the favorites record."""


class StoreWriteError(StoreError):
    """A favorites write failed even after retrying."""
