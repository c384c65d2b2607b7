"""Adapter for HTML calendar pages built from 'event-item' blocks."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from adapters.base import SourceAdapter
from adapters.http import fetch_text
from processor.models import RawRecord

logger = logging.getLogger(__name__)

DATE_FORMATS = [
    '%Y-%m-%d',      # ISO 8601
    '%m/%d/%Y',      # US format
    '%m-%d-%Y',      # US format with dashes
    '%B %d, %Y',     # Full month name
    '%b %d, %Y',     # Abbreviated month name
    '%Y/%m/%d',      # Alternative ISO format
]

TIME_FORMATS = [
    '%H:%M',         # 24-hour format
    '%I:%M %p',      # 12-hour format with AM/PM
    '%I:%M%p',       # 12-hour format without space
    '%H:%M:%S',      # 24-hour with seconds
    '%I:%M:%S %p',   # 12-hour with seconds and AM/PM
    '%I %p',
]


def normalize_date(date_str: str) -> Optional[str]:
    """
    Normalize date to ISO 8601 format (YYYY-MM-DD).

    Returns:
        ISO 8601 formatted date string or None if parsing fails
    """
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str.strip(), fmt).strftime('%Y-%m-%d')
        except ValueError:
            continue
    return None


def normalize_time(time_str: str) -> Optional[str]:
    """
    Normalize time to 24-hour format (HH:MM:SS).

    Returns:
        24-hour formatted time string or None if parsing fails
    """
    time_str = time_str.strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(time_str, fmt).strftime('%H:%M:%S')
        except ValueError:
            continue
    return None


def parse_time_range(time_text: str) -> Tuple[str, Optional[str]]:
    """
    Parse time range from text.

    Args:
        time_text: Time text (e.g., "10:00 AM - 2:00 PM")

    Returns:
        Tuple of (start_time, end_time)
    """
    if '-' in time_text:
        parts = time_text.split('-')
        start_time = parts[0].strip()
        end_time = parts[1].strip() or None
    else:
        start_time = time_text.strip()
        end_time = None
    return start_time, end_time


def civil_timestamp(date_text: str, time_text: Optional[str]) -> Optional[str]:
    """
    Combine page date and time text into an offset-less ISO timestamp.

    The result is civil time; the normalizer anchors it to the deployment's
    zone. Unrecognized text is passed through unchanged so it can still be
    parsed (or rejected) downstream.
    """
    if not time_text:
        return None
    date_iso = normalize_date(date_text)
    time_iso = normalize_time(time_text)
    if date_iso and time_iso:
        return f"{date_iso}T{time_iso}"
    return f"{date_text.strip()} {time_text.strip()}"


class CalendarPageAdapter(SourceAdapter):
    """Scraper for calendar pages listing events as div.event-item blocks."""

    def __init__(
        self,
        source_id: str,
        display_name: str,
        url: str,
        days_ahead: int = 90,
        timeout: float = 15
    ):
        """
        Initialize the calendar page adapter.

        Args:
            source_id: Stable adapter id
            display_name: Source display name
            url: Calendar page URL; receives 'start' and 'end' query params
            days_ahead: Number of days to request (default: 90)
            timeout: HTTP request timeout in seconds
        """
        self.id = source_id
        self.display_name = display_name
        self.url = url
        self.days_ahead = days_ahead
        self.timeout = timeout

    def fetch(self) -> str:
        start_date = datetime.now().date()
        end_date = start_date + timedelta(days=self.days_ahead)
        params = {
            'start': start_date.strftime('%Y-%m-%d'),
            'end': end_date.strftime('%Y-%m-%d')
        }
        logger.info(f"{self.id}: fetching calendar for {self.days_ahead} days ahead")
        return fetch_text(self.url, timeout=self.timeout, params=params)

    def parse(self, payload: str) -> List[RawRecord]:
        soup = BeautifulSoup(payload, 'html.parser')
        records = []

        for element in soup.find_all('div', class_='event-item'):
            record = self._parse_event_element(element)
            if record:
                records.append(record)

        logger.info(f"{self.id}: parsed {len(records)} events")
        return records

    def _parse_event_element(self, element) -> Optional[RawRecord]:
        """
        Parse a single event element.

        Returns:
            RawRecord or None if the block lacks a title or date
        """
        title_elem = element.find('h3', class_='event-title')
        date_elem = element.find('span', class_='event-date')
        time_elem = element.find('span', class_='event-time')
        location_elem = element.find('span', class_='event-location')
        description_elem = element.find('div', class_='event-description')
        category_elem = element.find('span', class_='event-category')
        url_elem = element.find('a', class_='event-link')

        if not all([title_elem, date_elem]):
            return None

        date_text = date_elem.get_text(strip=True)
        time_text = time_elem.get_text(strip=True) if time_elem else ''
        start_time, end_time = parse_time_range(time_text)

        title = title_elem.get_text(strip=True)
        start_at = civil_timestamp(date_text, start_time) or date_text
        href = url_elem.get('href') if url_elem else None

        # Without a detail link every block shares the page URL
        natural_key = None if href else f"{title}|{date_text}|{start_time}"

        return RawRecord(
            title=title,
            source_natural_key=natural_key,
            start_at=start_at,
            end_at=civil_timestamp(date_text, end_time),
            location_name=location_elem.get_text(strip=True) if location_elem else None,
            description=description_elem.get_text(strip=True) if description_elem else None,
            tags=[category_elem.get_text(strip=True)] if category_elem else [],
            source_url=urljoin(self.url, href) if href else self.url
        )
