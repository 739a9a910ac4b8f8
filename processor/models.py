"""Data models for the event catalog and its filters."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from processor.errors import CatalogError


@dataclass(frozen=True)
class Event:
    """Event record as delivered by the feed. Favorite state is kept elsewhere."""
    id: str
    name: str
    host: str
    city: str
    date_from: str
    date_to: str
    category: Optional[str] = None
    link: Optional[str] = None


class DateBucket(Enum):
    """Mutually exclusive date-range filter modes."""
    ALL = "All"
    THIS_MONTH = "This Month"
    NEXT_MONTH = "Next Month"
    STARRED = "Starred"

    @classmethod
    def parse(cls, value: str) -> 'DateBucket':
        """
        Resolve a bucket from its label or member name.

        Args:
            value: Label ("This Month") or name ("this_month"), any case

        Returns:
            Matching DateBucket

        Raises:
            ValueError: If nothing matches
        """
        normalized = value.strip().lower()
        for bucket in cls:
            if normalized in (bucket.value.lower(), bucket.name.lower()):
                return bucket
        raise ValueError(f"Unknown date bucket: {value!r}")


@dataclass(frozen=True)
class FilterSelection:
    """Filters currently chosen in the list view. Never persisted."""
    date_bucket: DateBucket = DateBucket.ALL
    city: Optional[str] = None
    category: Optional[str] = None


@dataclass
class LoadResult:
    """Result of a catalog load or refresh."""
    events: List[Event] = field(default_factory=list)
    error: Optional[CatalogError] = None
    source: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CalendarEntry:
    """Full-day entry handed to an external calendar integration."""
    title: str
    location: str
    start: date
    end: date
    notes: str
    all_day: bool = True
