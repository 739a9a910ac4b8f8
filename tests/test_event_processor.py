"""Unit tests for EventProcessor."""
import json

import pytest

from processor.errors import DecodeError
from processor.event_processor import EventProcessor


def _raw_event(**overrides):
    raw = {
        'id': 'evt-1',
        'name': 'Jazz Night',
        'host': 'City Jazz Club',
        'city': 'NYC',
        'dateFrom': '2025-01-10',
        'dateTo': '2025-01-10',
        'category': 'Music',
        'link': 'https://example.com/agenda/1'
    }
    raw.update(overrides)
    return raw


class TestEventProcessor:
    """Test cases for EventProcessor class."""

    def test_decode_payload_valid_event(self):
        """Test decoding a payload with one complete event."""
        processor = EventProcessor()

        events = processor.decode_payload(json.dumps([_raw_event()]))

        assert len(events) == 1
        event = events[0]
        assert event.id == 'evt-1'
        assert event.name == 'Jazz Night'
        assert event.host == 'City Jazz Club'
        assert event.city == 'NYC'
        assert event.date_from == '2025-01-10'
        assert event.date_to == '2025-01-10'
        assert event.category == 'Music'
        assert event.link == 'https://example.com/agenda/1'

    def test_decode_payload_accepts_bytes(self):
        """Test that response bodies can be passed as bytes."""
        processor = EventProcessor()

        events = processor.decode_payload(json.dumps([_raw_event()]).encode('utf-8'))

        assert [event.id for event in events] == ['evt-1']

    def test_decode_payload_empty_array(self):
        """Test that an empty catalog decodes to an empty list."""
        assert EventProcessor().decode_payload('[]') == []

    def test_missing_name_defaults_to_placeholder(self):
        """Test that a missing name becomes the placeholder."""
        raw = _raw_event()
        del raw['name']

        events = EventProcessor().process_events([raw])

        assert events[0].name == 'Unnamed Event'

    def test_missing_optional_fields_become_none(self):
        """Test that category and link are None when absent or blank."""
        raw = _raw_event(category='  ')
        del raw['link']

        events = EventProcessor().process_events([raw])

        assert events[0].category is None
        assert events[0].link is None

    def test_null_optional_fields_become_none(self):
        """Test that explicit nulls for optional fields become None."""
        events = EventProcessor().process_events([_raw_event(category=None, link=None)])

        assert events[0].category is None
        assert events[0].link is None

    @pytest.mark.parametrize('field_name', ['host', 'city', 'dateFrom', 'dateTo'])
    def test_missing_required_field_rejects_batch(self, field_name):
        """Test that one record missing a required field fails the whole load."""
        broken = _raw_event(id='evt-2')
        del broken[field_name]

        with pytest.raises(DecodeError, match=field_name):
            EventProcessor().process_events([_raw_event(), broken])

    def test_wrong_type_rejects_batch(self):
        """Test that a non-string required field fails the load."""
        with pytest.raises(DecodeError):
            EventProcessor().process_events([_raw_event(city=42)])

    def test_malformed_json_raises_decode_error(self):
        """Test that invalid JSON raises DecodeError."""
        with pytest.raises(DecodeError):
            EventProcessor().decode_payload('[{"id": ')

    def test_deeply_nested_json_raises_decode_error(self):
        """Test that nesting beyond the parser limit is a decode failure."""
        with pytest.raises(DecodeError, match='nested'):
            EventProcessor().decode_payload('[' * 200000)

    def test_non_array_payload_raises_decode_error(self):
        """Test that a top-level object is rejected."""
        with pytest.raises(DecodeError, match='array'):
            EventProcessor().decode_payload(json.dumps({'events': []}))

    def test_non_object_element_raises_decode_error(self):
        """Test that array elements must be objects."""
        with pytest.raises(DecodeError):
            EventProcessor().process_events([_raw_event(), 'oops'])

    def test_unparsable_dates_are_kept_as_text(self):
        """Test that date validity is not checked at decode time."""
        events = EventProcessor().process_events([_raw_event(dateFrom='not-a-date')])

        assert events[0].date_from == 'not-a-date'

    def test_server_starred_flag_is_ignored(self):
        """Test that favorite state is never taken from the feed."""
        events = EventProcessor().process_events([_raw_event(starred=True)])

        assert not hasattr(events[0], 'starred')

    def test_missing_id_is_derived_consistently(self):
        """Test that events without an id get the same id on every decode."""
        raw = _raw_event()
        del raw['id']
        processor = EventProcessor()

        first = processor.process_events([dict(raw)])[0]
        second = processor.process_events([dict(raw)])[0]

        assert first.id == second.id
        assert len(first.id) == 64

    def test_generate_event_id_uniqueness(self):
        """Test that different events produce different ids."""
        processor = EventProcessor()

        id_1 = processor.generate_event_id('A', 'Host', 'NYC', '2025-01-10')
        id_2 = processor.generate_event_id('B', 'Host', 'NYC', '2025-01-10')
        id_3 = processor.generate_event_id('A', 'Host', 'LA', '2025-01-10')

        assert len({id_1, id_2, id_3}) == 3

    def test_non_string_id_rejects_batch(self):
        """Test that ids must be strings."""
        with pytest.raises(DecodeError):
            EventProcessor().process_events([_raw_event(id=7)])
