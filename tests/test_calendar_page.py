"""Unit tests for CalendarPageAdapter."""
from unittest.mock import patch

import pytest
import responses
from requests.exceptions import Timeout

from adapters.calendar_page import (
    CalendarPageAdapter,
    civil_timestamp,
    normalize_date,
    normalize_time,
    parse_time_range,
)
from processor.errors import AdapterTransportError

CALENDAR_URL = "http://www.makeoutroom.com/events"


@pytest.fixture
def adapter():
    return CalendarPageAdapter('makeoutroom', 'Make-Out Room', CALENDAR_URL, timeout=30)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch('adapters.http.time.sleep') as mock_sleep:
        yield mock_sleep


class TestCalendarPageAdapter:
    """Test cases for CalendarPageAdapter class."""

    @responses.activate
    def test_fetch_and_parse(self, adapter):
        """Test successful event fetching and parsing."""
        mock_html = """
        <html>
            <body>
                <div class="event-item">
                    <h3 class="event-title">Live Music Night</h3>
                    <span class="event-date">2026-02-13</span>
                    <span class="event-time">7:00 PM - 9:00 PM</span>
                    <span class="event-location">Back Room</span>
                    <div class="event-description">Enjoy live entertainment</div>
                    <span class="event-category">Music</span>
                    <a class="event-link" href="/event/123">Details</a>
                </div>
                <div class="event-item">
                    <h3 class="event-title">Trivia</h3>
                    <span class="event-date">02/16/2026</span>
                    <span class="event-time">8:00 PM</span>
                </div>
            </body>
        </html>
        """

        responses.add(responses.GET, CALENDAR_URL, body=mock_html, status=200)

        records = adapter.parse(adapter.fetch())

        assert len(records) == 2
        assert 'start=' in responses.calls[0].request.url
        assert 'end=' in responses.calls[0].request.url

        first = records[0]
        assert first.title == "Live Music Night"
        assert first.start_at == "2026-02-13T19:00:00"
        assert first.end_at == "2026-02-13T21:00:00"
        assert first.location_name == "Back Room"
        assert first.description == "Enjoy live entertainment"
        assert first.tags == ["Music"]
        assert first.source_url == "http://www.makeoutroom.com/event/123"
        assert first.source_natural_key is None

        second = records[1]
        assert second.title == "Trivia"
        assert second.start_at == "2026-02-16T20:00:00"
        assert second.end_at is None
        assert second.source_url == CALENDAR_URL
        assert second.source_natural_key == "Trivia|02/16/2026|8:00 PM"

    @responses.activate
    def test_fetch_with_retry_success(self, adapter):
        """Test retry logic succeeds after an initial failure."""
        responses.add(responses.GET, CALENDAR_URL, body="Server Error", status=500)
        responses.add(responses.GET, CALENDAR_URL, body="<html></html>", status=200)

        assert adapter.fetch() == "<html></html>"
        assert len(responses.calls) == 2

    @responses.activate
    def test_fetch_all_retries_fail(self, adapter):
        """Test that a transport error is raised when all retries fail."""
        for _ in range(2):
            responses.add(responses.GET, CALENDAR_URL, body="Server Error", status=500)

        with pytest.raises(AdapterTransportError):
            adapter.fetch()

        assert len(responses.calls) == 2

    @responses.activate
    def test_fetch_timeout(self, adapter):
        """Test timeout handling."""
        for _ in range(2):
            responses.add(responses.GET, CALENDAR_URL, body=Timeout("Request timed out"))

        with pytest.raises(AdapterTransportError) as exc_info:
            adapter.fetch()

        assert isinstance(exc_info.value.__cause__, Timeout)

    def test_parse_skips_invalid_elements(self, adapter):
        """Test that blocks without a date are skipped."""
        mock_html = """
        <div class="event-item">
            <h3 class="event-title">Valid Event</h3>
            <span class="event-date">2026-01-15</span>
            <span class="event-time">10:00 AM</span>
        </div>
        <div class="event-item">
            <h3 class="event-title">Invalid Event - Missing Date</h3>
            <span class="event-time">10:00 AM</span>
        </div>
        <div class="event-item">
            <h3 class="event-title">All Day Event</h3>
            <span class="event-date">2026-01-16</span>
        </div>
        """

        records = adapter.parse(mock_html)

        assert [r.title for r in records] == ["Valid Event", "All Day Event"]
        assert records[1].start_at == "2026-01-16"

    def test_unrecognized_time_passed_through(self, adapter):
        mock_html = """
        <div class="event-item">
            <h3 class="event-title">Late Show</h3>
            <span class="event-date">2026-01-15</span>
            <span class="event-time">doors at dusk</span>
        </div>
        """
        records = adapter.parse(mock_html)
        assert records[0].start_at == "2026-01-15 doors at dusk"


class TestHelpers:

    def test_parse_time_range_with_end_time(self):
        assert parse_time_range("10:00 AM - 2:00 PM") == ("10:00 AM", "2:00 PM")

    def test_parse_time_range_without_end_time(self):
        assert parse_time_range("10:00 AM") == ("10:00 AM", None)

    @pytest.mark.parametrize('text, expected', [
        ('2026-01-15', '2026-01-15'),
        ('01/15/2026', '2026-01-15'),
        ('January 15, 2026', '2026-01-15'),
        ('Jan 15, 2026', '2026-01-15'),
        ('someday', None),
    ])
    def test_normalize_date(self, text, expected):
        assert normalize_date(text) == expected

    @pytest.mark.parametrize('text, expected', [
        ('19:00', '19:00:00'),
        ('7:00 PM', '19:00:00'),
        ('7:00PM', '19:00:00'),
        ('12:00 AM', '00:00:00'),
        ('8 PM', '20:00:00'),
        ('late', None),
    ])
    def test_normalize_time(self, text, expected):
        assert normalize_time(text) == expected

    def test_civil_timestamp_without_time(self):
        assert civil_timestamp('2026-01-15', None) is None
