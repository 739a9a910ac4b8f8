"""Filtering, sorting and facet helpers for the event list."""
import logging
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from processor.models import DateBucket, Event, FilterSelection

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'


def parse_event_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD event date.

    Args:
        date_str: Date text from the feed

    Returns:
        date object or None if parsing fails
    """
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def _as_date(reference: date) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def _same_month(first: date, second: date) -> bool:
    return first.year == second.year and first.month == second.month


def next_month(reference_date: date) -> Optional[date]:
    """Same day one calendar month later, or None past the last representable year."""
    try:
        return reference_date + relativedelta(months=1)
    except (ValueError, OverflowError):
        logger.debug(f"No month follows {reference_date}")
        return None


def _bucket_month(bucket: DateBucket, reference_date: date) -> Optional[date]:
    if bucket is DateBucket.NEXT_MONTH:
        return next_month(reference_date)
    return reference_date


def in_date_bucket(event_date: date, bucket: DateBucket, reference_date: date) -> bool:
    """
    Check whether an event date falls inside a date bucket.

    Args:
        event_date: Parsed start date of the event
        bucket: Selected date bucket
        reference_date: Today's date

    Returns:
        True if the date is inside the bucket
    """
    if bucket not in (DateBucket.THIS_MONTH, DateBucket.NEXT_MONTH):
        return True
    anchor = _bucket_month(bucket, reference_date)
    return anchor is not None and _same_month(event_date, anchor)


def apply_filters(
    events: Iterable[Event],
    selection: FilterSelection,
    is_favorite: Callable[[str], bool],
    reference_date: date
) -> List[Event]:
    """
    Derive the visible event list from the full catalog.

    Past events and events with an unparsable start date are dropped first.
    The Starred bucket shows every upcoming favorite and ignores the city
    and category selections. The result is ordered by start date; ties keep
    catalog order.

    Args:
        events: Full event list
        selection: Current filter selection
        is_favorite: Lookup telling whether an event id is starred
        reference_date: Today's date; time of day is ignored

    Returns:
        Filtered and sorted list of events
    """
    reference_date = _as_date(reference_date)

    upcoming: List[Tuple[date, Event]] = []
    skipped = 0
    for event in events:
        start = parse_event_date(event.date_from)
        if start is None:
            skipped += 1
            continue
        if start >= reference_date:
            upcoming.append((start, event))

    if skipped:
        logger.debug(f"Excluded {skipped} events with unparsable dateFrom")

    if selection.date_bucket is DateBucket.STARRED:
        visible = [
            (start, event) for start, event in upcoming
            if is_favorite(event.id)
        ]
    else:
        if selection.date_bucket is DateBucket.ALL:
            visible = list(upcoming)
        else:
            anchor = _bucket_month(selection.date_bucket, reference_date)
            visible = [
                (start, event) for start, event in upcoming
                if anchor is not None and _same_month(start, anchor)
            ]
        if selection.city is not None:
            visible = [pair for pair in visible if pair[1].city == selection.city]
        if selection.category is not None:
            visible = [
                pair for pair in visible
                if pair[1].category == selection.category
            ]

    visible.sort(key=lambda pair: pair[0])
    return [event for _, event in visible]


def available_cities(events: Iterable[Event]) -> List[str]:
    """Distinct cities across the full catalog, sorted."""
    return sorted({event.city for event in events})


def available_categories(events: Iterable[Event]) -> List[str]:
    """Distinct non-empty categories across the full catalog, sorted."""
    return sorted({event.category for event in events if event.category})
