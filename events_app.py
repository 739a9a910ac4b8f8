"""Command-line entry point for browsing the event catalog."""
import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from browser.event_browser import EventBrowser
from catalog.event_feed import BUNDLED_EVENTS_PATH, EventCatalogLoader
from processor.calendar_export import format_date_range, format_day, format_month
from processor.errors import ConfigurationError, ExportError, StoreError
from processor.models import DateBucket, Event, FilterSelection
from storage.dynamodb_manager import DynamoDBFavoritesBackend
from storage.favorites_store import FavoritesStore, JsonFileFavoritesBackend

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Logs go to stderr so stdout stays pure JSON output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


@dataclass
class AppConfig:
    """Settings read from the environment."""
    base_url: Optional[str]
    bundled_path: str
    favorites_backend: str
    favorites_path: str
    favorites_table: str
    favorites_key: str
    timeout_seconds: int
    log_level: str


def _int_env(environ: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(environ.get(name, str(default)))
    except ValueError:
        return default


def load_config(environ: Mapping[str, str] = os.environ) -> AppConfig:
    """
    Read configuration from environment variables.

    Args:
        environ: Environment mapping (default: os.environ)

    Returns:
        AppConfig with defaults applied
    """
    return AppConfig(
        base_url=environ.get('EVENTS_BASE_URL') or None,
        bundled_path=environ.get('EVENTS_BUNDLED_PATH', BUNDLED_EVENTS_PATH),
        favorites_backend=environ.get('FAVORITES_BACKEND', 'file').lower(),
        favorites_path=environ.get(
            'FAVORITES_PATH', os.path.join('~', '.events-browser', 'favorites.json')
        ),
        favorites_table=environ.get('FAVORITES_TABLE', 'events-browser-favorites'),
        favorites_key=environ.get('FAVORITES_KEY', 'favoriteEventIds'),
        timeout_seconds=_int_env(environ, 'TIMEOUT_SECONDS', 30),
        log_level=environ.get('LOG_LEVEL', 'INFO')
    )


def build_store(config: AppConfig) -> FavoritesStore:
    """Create the favorites store for the configured backend."""
    if config.favorites_backend == 'dynamodb':
        backend = DynamoDBFavoritesBackend(
            table_name=config.favorites_table,
            key=config.favorites_key
        )
    elif config.favorites_backend == 'file':
        backend = JsonFileFavoritesBackend(
            path=config.favorites_path,
            key=config.favorites_key
        )
    else:
        raise ConfigurationError(
            f"Unknown favorites backend: {config.favorites_backend!r}"
        )
    return FavoritesStore(backend)


def build_browser(config: AppConfig) -> EventBrowser:
    """Wire loader, store and browsing session from configuration."""
    loader = EventCatalogLoader(
        base_url=config.base_url,
        bundled_path=config.bundled_path,
        timeout=config.timeout_seconds
    )
    return EventBrowser(loader=loader, store=build_store(config))


def event_to_dict(event: Event, starred: bool) -> Dict[str, Any]:
    """Serialize an event for output, with its local favorite flag."""
    return {
        'id': event.id,
        'name': event.name,
        'host': event.host,
        'city': event.city,
        'dateFrom': event.date_from,
        'dateTo': event.date_to,
        'dates': format_date_range(event.date_from, event.date_to),
        'month': format_month(event.date_from),
        'day': format_day(event.date_from),
        'category': event.category,
        'link': event.link,
        'starred': starred
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='events-browser',
        description='Browse upcoming events and manage favorites.'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='List upcoming events')
    list_parser.add_argument(
        '--bucket',
        type=DateBucket.parse,
        default=DateBucket.ALL,
        help='All, "This Month", "Next Month" or Starred'
    )
    list_parser.add_argument('--city', help='Only events in this city')
    list_parser.add_argument('--category', help='Only events in this category')
    list_parser.add_argument(
        '--refresh', action='store_true', help='Re-fetch from the remote feed'
    )

    subparsers.add_parser('facets', help='Show available cities and categories')

    for name, help_text in (
        ('show', 'Show one event with calendar export data'),
        ('star', 'Mark an event as favorite'),
        ('unstar', 'Remove an event from favorites'),
        ('toggle', 'Flip the favorite state of an event'),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('event_id')

    return parser


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _run_list(browser: EventBrowser, args: argparse.Namespace) -> int:
    if args.refresh:
        # A failed refresh keeps the list from the initial load.
        browser.refresh()
    browser.set_selection(FilterSelection(
        date_bucket=args.bucket,
        city=args.city,
        category=args.category
    ))
    _emit({
        'state': browser.view_state.value,
        'selection': {
            'bucket': args.bucket.value,
            'city': args.city,
            'category': args.category
        },
        'events': [
            event_to_dict(event, browser.is_favorite(event.id))
            for event in browser.visible_events
        ],
        'error': str(browser.last_error) if browser.last_error else None
    })
    return EXIT_FAILURE if browser.last_error else EXIT_OK


def _run_event_command(browser: EventBrowser, args: argparse.Namespace) -> int:
    event = browser.get_event(args.event_id)
    if event is None:
        _emit({'error': f"Unknown event id: {args.event_id}"})
        return EXIT_USAGE

    if args.command == 'star':
        browser.set_favorite(event.id, True)
    elif args.command == 'unstar':
        browser.set_favorite(event.id, False)
    elif args.command == 'toggle':
        browser.toggle_favorite(event.id)

    output = event_to_dict(event, browser.is_favorite(event.id))
    if args.command == 'show':
        try:
            entry = browser.calendar_entry(event.id)
            output['calendar'] = {
                'title': entry.title,
                'location': entry.location,
                'start': entry.start.isoformat(),
                'end': entry.end.isoformat(),
                'notes': entry.notes,
                'allDay': entry.all_day
            }
        except ExportError as e:
            output['calendar'] = None
            output['calendarError'] = str(e)
    _emit(output)
    return EXIT_OK


def main(argv: Optional[List[str]] = None, environ: Mapping[str, str] = os.environ) -> int:
    """
    Run the command-line program.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])
        environ: Environment mapping for configuration

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    config = load_config(environ)

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)
    logger.info(
        "events-browser started",
        extra={'command': args.command, 'remote': bool(config.base_url)}
    )

    try:
        browser = build_browser(config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}", exc_info=True)
        _emit({'error': str(e), 'error_type': type(e).__name__})
        return EXIT_USAGE
    except StoreError as e:
        logger.error(f"Favorites store unavailable: {e}", exc_info=True)
        _emit({'error': str(e), 'error_type': type(e).__name__})
        return EXIT_FAILURE

    browser.load()

    try:
        if args.command == 'list':
            return _run_list(browser, args)
        if args.command == 'facets':
            _emit({
                'cities': browser.available_cities(),
                'categories': browser.available_categories()
            })
            return EXIT_OK
        return _run_event_command(browser, args)
    except StoreError as e:
        logger.error(f"Failed to update favorites: {e}", exc_info=True)
        _emit({'error': str(e), 'error_type': type(e).__name__})
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
