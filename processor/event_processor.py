"""Event processor for decoding and normalizing catalog payloads."""
import hashlib
import json
import logging
from typing import Any, List, Optional, Union

from processor.errors import DecodeError
from processor.models import Event

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor that turns a JSON catalog payload into Event records."""

    DEFAULT_NAME = "Unnamed Event"
    REQUIRED_FIELDS = ('host', 'city', 'dateFrom', 'dateTo')
    OPTIONAL_FIELDS = ('category', 'link')

    def decode_payload(self, payload: Union[str, bytes]) -> List[Event]:
        """
        Decode a raw JSON payload into events.

        Args:
            payload: JSON text holding an array of event objects

        Returns:
            List of Event objects in payload order

        Raises:
            DecodeError: If the payload is not valid JSON or any record is invalid
        """
        try:
            raw_events = json.loads(payload)
        except ValueError as e:
            raise DecodeError(f"Catalog payload is not valid JSON: {e}") from e
        except RecursionError as e:
            raise DecodeError("Catalog payload is nested too deeply") from e

        return self.process_events(raw_events)

    def process_events(self, raw_events: Any) -> List[Event]:
        """
        Validate and normalize already-parsed event objects.

        The batch is all-or-nothing: one bad record rejects the payload.

        Args:
            raw_events: Parsed JSON value, expected to be a list of dicts

        Returns:
            List of Event objects

        Raises:
            DecodeError: If the payload shape or any record is invalid
        """
        if not isinstance(raw_events, list):
            raise DecodeError(
                f"Catalog payload must be a JSON array, got {type(raw_events).__name__}"
            )

        events = [
            self._process_single_event(index, raw)
            for index, raw in enumerate(raw_events)
        ]

        logger.info(f"Decoded {len(events)} events")
        return events

    def _process_single_event(self, index: int, raw: Any) -> Event:
        """
        Process a single event object.

        Args:
            index: Position of the record in the payload, for error messages
            raw: Parsed JSON object

        Returns:
            Event object
        """
        if not isinstance(raw, dict):
            raise DecodeError(f"Event #{index} is not a JSON object")

        for field_name in self.REQUIRED_FIELDS:
            value = raw.get(field_name)
            if value is None:
                raise DecodeError(
                    f"Event #{index} missing required field: {field_name}"
                )
            if not isinstance(value, str):
                raise DecodeError(
                    f"Event #{index} field {field_name} must be a string"
                )

        name = raw.get('name')
        if name is None:
            name = self.DEFAULT_NAME
        elif not isinstance(name, str):
            raise DecodeError(f"Event #{index} field name must be a string")

        category = self._optional_string(index, raw, 'category')
        link = self._optional_string(index, raw, 'link')

        event_id = raw.get('id')
        if event_id is None or (isinstance(event_id, str) and not event_id.strip()):
            event_id = self.generate_event_id(
                name=name,
                host=raw['host'],
                city=raw['city'],
                date_from=raw['dateFrom']
            )
        elif not isinstance(event_id, str):
            raise DecodeError(f"Event #{index} field id must be a string")

        return Event(
            id=event_id,
            name=name,
            host=raw['host'],
            city=raw['city'],
            date_from=raw['dateFrom'],
            date_to=raw['dateTo'],
            category=category,
            link=link
        )

    def _optional_string(self, index: int, raw: dict, field_name: str) -> Optional[str]:
        """
        Read an optional string field, mapping missing or blank values to None.

        Args:
            index: Position of the record in the payload
            raw: Parsed JSON object
            field_name: Key to read

        Returns:
            The string value or None
        """
        value = raw.get(field_name)
        if value is None:
            return None
        if not isinstance(value, str):
            raise DecodeError(
                f"Event #{index} field {field_name} must be a string"
            )
        if not value.strip():
            return None
        return value

    def generate_event_id(self, name: str, host: str, city: str, date_from: str) -> str:
        """
        Generate a stable identifier for an event that arrived without one.

        Args:
            name: Event name
            host: Event organizer
            city: Event city
            date_from: Event start date

        Returns:
            Event ID (SHA256 hash)
        """
        composite = f"{name}|{host}|{city}|{date_from}"
        hash_obj = hashlib.sha256(composite.encode('utf-8'))
        return hash_obj.hexdigest()
