"""Browsing session: owns the event list, the filter selection and the visible list."""
import logging
import threading
from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Callable, List, Optional

from catalog.event_feed import EventCatalogLoader
from processor.calendar_export import build_calendar_entry
from processor.errors import CatalogError
from processor.event_filter import apply_filters, available_categories, available_cities
from processor.models import CalendarEntry, DateBucket, Event, FilterSelection, LoadResult
from storage.favorites_store import FavoritesStore

logger = logging.getLogger(__name__)


class ViewState(Enum):
    """What the list view should show."""
    LOADING = 'loading'
    EMPTY_CATALOG = 'empty_catalog'
    NO_RESULTS = 'no_results'
    READY = 'ready'


class EventBrowser:
    """
    State owner for the event list view.

    Every change to the selection, the catalog or the favorites is followed
    by an explicit re-filter. Loads and refreshes may run on a background
    thread; the newest completed fetch replaces the catalog
    (last-write-wins by completion order), and filtering always uses the
    selection current at apply-time.
    """

    def __init__(
        self,
        loader: EventCatalogLoader,
        store: FavoritesStore,
        today: Callable[[], date] = date.today
    ):
        self.loader = loader
        self.store = store
        self._today = today
        self._lock = threading.RLock()
        self._events: List[Event] = []
        self._selection = FilterSelection()
        self._visible: List[Event] = []
        self._loaded = False
        self.last_error: Optional[CatalogError] = None

    @property
    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    @property
    def visible_events(self) -> List[Event]:
        with self._lock:
            return list(self._visible)

    @property
    def selection(self) -> FilterSelection:
        with self._lock:
            return self._selection

    @property
    def view_state(self) -> ViewState:
        with self._lock:
            if not self._loaded:
                return ViewState.LOADING
            if not self._events:
                return ViewState.EMPTY_CATALOG
            if not self._visible:
                return ViewState.NO_RESULTS
            return ViewState.READY

    def load(self) -> LoadResult:
        """Initial catalog load."""
        return self._complete_fetch(self.loader.load())

    def refresh(self) -> LoadResult:
        """Explicit re-fetch from the remote feed."""
        return self._complete_fetch(self.loader.refresh())

    def refresh_in_background(self) -> threading.Thread:
        """
        Start a refresh on a daemon thread.

        Returns:
            The started thread, so callers can join() it
        """
        thread = threading.Thread(target=self.refresh, name='events-refresh', daemon=True)
        thread.start()
        return thread

    def _complete_fetch(self, result: LoadResult) -> LoadResult:
        with self._lock:
            if result.ok:
                self._events = list(result.events)
                self.last_error = None
                self._loaded = True
                self.apply_filters()
            else:
                # Keep showing the last known list; a failed first load shows empty.
                self.last_error = result.error
                self._loaded = True
                logger.warning(
                    f"Keeping {len(self._events)} previously loaded events after "
                    f"{type(result.error).__name__}"
                )
        return result

    def apply_filters(self) -> List[Event]:
        """Recompute the visible list from the current catalog and selection."""
        with self._lock:
            self._visible = apply_filters(
                self._events,
                self._selection,
                self.store.is_favorite,
                self._today()
            )
            logger.debug(
                f"{len(self._visible)} of {len(self._events)} events visible",
                extra={'selection': str(self._selection)}
            )
            return list(self._visible)

    def set_selection(self, selection: FilterSelection) -> List[Event]:
        with self._lock:
            self._selection = selection
            return self.apply_filters()

    def set_date_bucket(self, bucket: DateBucket) -> List[Event]:
        with self._lock:
            return self.set_selection(replace(self._selection, date_bucket=bucket))

    def set_city(self, city: Optional[str]) -> List[Event]:
        with self._lock:
            return self.set_selection(replace(self._selection, city=city))

    def set_category(self, category: Optional[str]) -> List[Event]:
        with self._lock:
            return self.set_selection(replace(self._selection, category=category))

    def clear_filters(self) -> List[Event]:
        return self.set_selection(FilterSelection())

    def available_cities(self) -> List[str]:
        with self._lock:
            return available_cities(self._events)

    def available_categories(self) -> List[str]:
        with self._lock:
            return available_categories(self._events)

    def get_event(self, event_id: str) -> Optional[Event]:
        with self._lock:
            for event in self._events:
                if event.id == event_id:
                    return event
        return None

    def is_favorite(self, event_id: str) -> bool:
        return self.store.is_favorite(event_id)

    def toggle_favorite(self, event_id: str) -> bool:
        """
        Flip an event's favorite state and re-filter.

        Returns:
            The new favorite state
        """
        starred = self.store.toggle_favorite(event_id)
        self.apply_filters()
        return starred

    def set_favorite(self, event_id: str, value: bool) -> bool:
        changed = self.store.set_favorite(event_id, value)
        if changed:
            self.apply_filters()
        return changed

    def calendar_entry(self, event_id: str) -> Optional[CalendarEntry]:
        """
        Calendar export data for a loaded event.

        Returns:
            CalendarEntry, or None if the id is not in the catalog

        Raises:
            ExportError: If the event cannot be exported
        """
        event = self.get_event(event_id)
        if event is None:
            return None
        return build_calendar_entry(event)
