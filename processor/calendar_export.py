"""Calendar export data and date display helpers."""
import logging

from processor.errors import ExportError
from processor.event_filter import parse_event_date
from processor.models import CalendarEntry, Event

logger = logging.getLogger(__name__)

UNSPECIFIED_CATEGORY = "Not Specified"


def build_calendar_entry(event: Event) -> CalendarEntry:
    """
    Build the data for a full-day calendar entry.

    Args:
        event: Event to export

    Returns:
        CalendarEntry for an external calendar integration

    Raises:
        ExportError: If the event has no name or its dates do not parse
    """
    title = event.name.strip()
    if not title:
        raise ExportError("Event must have a name")

    start = parse_event_date(event.date_from)
    end = parse_event_date(event.date_to)
    if start is None or end is None:
        raise ExportError(
            f"Invalid date format for event '{title}': "
            f"{event.date_from} / {event.date_to}"
        )

    notes = (
        f"Host: {event.host}\n"
        f"Category: {event.category or UNSPECIFIED_CATEGORY}"
    )

    logger.debug(f"Built calendar entry for event {event.id}")
    return CalendarEntry(
        title=title,
        location=event.city,
        start=start,
        end=end,
        notes=notes
    )


def format_month(date_str: str) -> str:
    """Abbreviated upper-case month ("JAN"), or the input if it does not parse."""
    parsed = parse_event_date(date_str)
    if parsed is None:
        return date_str
    return parsed.strftime('%b').upper()


def format_day(date_str: str) -> str:
    """Day of month without padding ("5"), or the input if it does not parse."""
    parsed = parse_event_date(date_str)
    if parsed is None:
        return date_str
    return str(parsed.day)


def format_date_range(date_from: str, date_to: str) -> str:
    """
    Format an event's date span for display.

    Args:
        date_from: Start date (YYYY-MM-DD)
        date_to: End date (YYYY-MM-DD)

    Returns:
        "10-Jan" for single-day events, "10-Jan to 12-Jan" otherwise.
        Unparsable input falls back to the raw start date.
    """
    start = parse_event_date(date_from)
    end = parse_event_date(date_to)
    if start is None or end is None:
        return date_from

    if start == end:
        return start.strftime('%d-%b')
    return f"{start.strftime('%d-%b')} to {end.strftime('%d-%b')}"
