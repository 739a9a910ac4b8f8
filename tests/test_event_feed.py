"""Unit tests for EventCatalogLoader."""
import json

import pytest
import responses
from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout

from catalog.event_feed import BUNDLED_EVENTS_PATH, EventCatalogLoader
from processor.errors import ConfigurationError, DecodeError, TransportError

BASE_URL = "https://events.example.com"
EVENTS_URL = "https://events.example.com/events"

SAMPLE_PAYLOAD = [
    {
        "id": "a",
        "name": "Jazz Night",
        "host": "City Jazz Club",
        "city": "NYC",
        "dateFrom": "2025-01-10",
        "dateTo": "2025-01-10",
        "category": "Music"
    },
    {
        "id": "b",
        "host": "Gallery Row",
        "city": "LA",
        "dateFrom": "2025-02-05",
        "dateTo": "2025-02-06",
        "link": "https://example.com/b"
    }
]


@pytest.fixture
def bundled_file(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps(SAMPLE_PAYLOAD), encoding="utf-8")
    return str(path)


class TestEventCatalogLoader:
    """Test cases for EventCatalogLoader class."""

    @responses.activate
    def test_load_remote_success(self):
        """Test successful fetch and decode from the remote feed."""
        responses.add(responses.GET, EVENTS_URL, json=SAMPLE_PAYLOAD, status=200)

        loader = EventCatalogLoader(base_url=BASE_URL, timeout=30)
        result = loader.load()

        assert result.ok
        assert result.source == "remote"
        assert [event.id for event in result.events] == ["a", "b"]
        assert result.events[1].name == "Unnamed Event"
        assert result.events[1].category is None
        assert result.events[1].link == "https://example.com/b"
        assert len(responses.calls) == 1

    @responses.activate
    def test_base_url_trailing_slash(self):
        """Test that a trailing slash does not double up in the URL."""
        responses.add(responses.GET, EVENTS_URL, json=[], status=200)

        loader = EventCatalogLoader(base_url=BASE_URL + "/")
        result = loader.load()

        assert result.ok
        assert responses.calls[0].request.url == EVENTS_URL

    @responses.activate
    def test_load_http_error_is_transport_error(self):
        """Test that a non-2xx status is reported, not raised, and not retried."""
        responses.add(responses.GET, EVENTS_URL, body="Server Error", status=500)

        loader = EventCatalogLoader(base_url=BASE_URL)
        result = loader.load()

        assert not result.ok
        assert isinstance(result.error, TransportError)
        assert result.events == []
        assert len(responses.calls) == 1

    @responses.activate
    def test_load_timeout_is_transport_error(self):
        """Test timeout handling."""
        responses.add(responses.GET, EVENTS_URL, body=Timeout("Request timed out"))

        result = EventCatalogLoader(base_url=BASE_URL).load()

        assert isinstance(result.error, TransportError)

    @responses.activate
    def test_load_connection_error_is_transport_error(self):
        responses.add(responses.GET, EVENTS_URL, body=RequestsConnectionError("refused"))

        result = EventCatalogLoader(base_url=BASE_URL).load()

        assert isinstance(result.error, TransportError)

    @responses.activate
    def test_load_malformed_json_is_decode_error(self):
        """Test that a malformed body rejects the whole batch."""
        responses.add(responses.GET, EVENTS_URL, body="<html>oops</html>", status=200)

        result = EventCatalogLoader(base_url=BASE_URL).load()

        assert isinstance(result.error, DecodeError)
        assert result.events == []

    @responses.activate
    def test_load_missing_required_field_is_decode_error(self):
        """Test that one bad record fails the load."""
        payload = SAMPLE_PAYLOAD + [{"id": "c", "host": "X", "dateFrom": "2025-03-01", "dateTo": "2025-03-01"}]
        responses.add(responses.GET, EVENTS_URL, json=payload, status=200)

        result = EventCatalogLoader(base_url=BASE_URL).load()

        assert isinstance(result.error, DecodeError)
        assert result.events == []

    def test_load_bundled_file(self, bundled_file):
        """Test loading from the bundled file when no feed is configured."""
        result = EventCatalogLoader(bundled_path=bundled_file).load()

        assert result.ok
        assert result.source == "bundled"
        assert [event.id for event in result.events] == ["a", "b"]

    def test_shipped_bundled_catalog_decodes(self):
        """Test that the catalog shipped with the package is valid."""
        result = EventCatalogLoader(bundled_path=BUNDLED_EVENTS_PATH).load()

        assert result.ok
        assert len(result.events) > 0

    def test_refresh_without_remote_reports_configuration_error(self, bundled_file):
        """Test that refresh never silently falls back to the bundled file."""
        result = EventCatalogLoader(bundled_path=bundled_file).refresh()

        assert isinstance(result.error, ConfigurationError)

    @responses.activate
    def test_refresh_uses_remote_even_with_bundled_file(self, bundled_file):
        responses.add(responses.GET, EVENTS_URL, json=SAMPLE_PAYLOAD[:1], status=200)

        loader = EventCatalogLoader(base_url=BASE_URL, bundled_path=bundled_file)
        result = loader.refresh()

        assert result.source == "remote"
        assert [event.id for event in result.events] == ["a"]

    @pytest.mark.parametrize("url", ["not a url", "ftp://events.example.com", "https://", "localhost:3000"])
    def test_invalid_url_is_configuration_error(self, url):
        """Test that a malformed URL is fatal at construction."""
        with pytest.raises(ConfigurationError):
            EventCatalogLoader(base_url=url)

    def test_missing_bundled_file_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            EventCatalogLoader(bundled_path=str(tmp_path / "missing.json"))

    def test_no_source_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            EventCatalogLoader()

    @responses.activate
    def test_load_deeply_nested_json_is_decode_error(self):
        """Test that a pathologically nested body is reported, not raised."""
        responses.add(responses.GET, EVENTS_URL, body="[" * 200000, status=200)

        result = EventCatalogLoader(base_url=BASE_URL).load()

        assert not result.ok
        assert isinstance(result.error, DecodeError)
        assert result.events == []
