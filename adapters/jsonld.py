"""Adapter for listing pages that publish schema.org events as JSON-LD."""
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from adapters.base import SourceAdapter
from adapters.http import fetch_text, fetch_text_with_url
from processor.errors import AdapterTransportError
from processor.models import RawRecord

logger = logging.getLogger(__name__)

EVENT_TYPES = {
    'Event', 'MusicEvent', 'TheaterEvent', 'ComedyEvent',
    'DanceEvent', 'LiteraryEvent', 'ScreeningEvent', 'SportsEvent',
}


def _is_event(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get('@type')
    if isinstance(node_type, str):
        return node_type in EVENT_TYPES
    if isinstance(node_type, list):
        return any(str(t) in EVENT_TYPES for t in node_type)
    return False


def _walk(value: Any) -> Iterator[Dict[str, Any]]:
    if _is_event(value):
        yield value
    if isinstance(value, list):
        for item in value:
            yield from _walk(item)
    elif isinstance(value, dict) and isinstance(value.get('@graph'), list):
        for item in value['@graph']:
            yield from _walk(item)


def extract_json_ld_events(html: str) -> List[Dict[str, Any]]:
    """
    Return every schema.org Event node embedded in a page.

    Scripts that are not valid JSON are skipped.
    """
    soup = BeautifulSoup(html, 'html.parser')
    events = []
    for tag in soup.find_all('script', type='application/ld+json'):
        try:
            data = json.loads(tag.string or '')
        except ValueError:
            logger.debug("Skipping unparseable JSON-LD block")
            continue
        events.extend(_walk(data))
    return events


def title_from_node(node: Dict[str, Any]) -> Optional[str]:
    """Prefer the event name, then the first performer's name."""
    name = node.get('name')
    if isinstance(name, str) and len(name.strip()) > 1:
        return name.strip()
    performers = node.get('performer') or node.get('performers') or []
    if isinstance(performers, dict):
        performers = [performers]
    for performer in performers:
        if isinstance(performer, dict):
            performer_name = str(performer.get('name') or '').strip()
            if len(performer_name) > 1:
                return performer_name
    return None


def _address_text(address: Any) -> Optional[str]:
    if isinstance(address, str):
        return address.strip() or None
    if isinstance(address, dict):
        parts = [
            address.get('streetAddress'),
            address.get('addressLocality'),
            address.get('addressRegion'),
            address.get('postalCode'),
        ]
        text = ', '.join(str(p).strip() for p in parts if p and str(p).strip())
        return text or None
    return None


def _plain_text(markup: Any) -> Optional[str]:
    if not isinstance(markup, str):
        return None
    text = BeautifulSoup(markup, 'html.parser').get_text(' ', strip=True)
    return text or None


def _natural_key(node: Dict[str, Any]) -> Optional[str]:
    for key in ('identifier', '@id'):
        value = node.get(key)
        if isinstance(value, (str, int)) and str(value).strip():
            return str(value).strip()
    return None


def description_from_page(html: str) -> Optional[str]:
    """Description from a detail page: JSON-LD first, then the meta tag."""
    for node in extract_json_ld_events(html):
        description = _plain_text(node.get('description'))
        if description:
            return description
    soup = BeautifulSoup(html, 'html.parser')
    meta = soup.find('meta', attrs={'name': 'description'})
    content = (meta.get('content') or '').strip() if meta else ''
    if len(content) > 20:
        return content
    return None


class JsonLdAdapter(SourceAdapter):
    """Adapter for a single listing page with schema.org event markup."""

    DETAIL_CONCURRENCY = 5
    DETAIL_TIMEOUT_SECONDS = 8

    def __init__(
        self,
        source_id: str,
        display_name: str,
        listing_url: str,
        tags: Sequence[str] = (),
        enrich_details: bool = False,
        timeout: float = 15
    ):
        """
        Initialize the adapter.

        Args:
            source_id: Stable adapter id
            display_name: Source display name
            listing_url: Page listing upcoming events
            tags: Tags applied to every record from this source
            enrich_details: Fetch detail pages for records lacking a description
            timeout: HTTP request timeout in seconds for the listing page
        """
        self.id = source_id
        self.display_name = display_name
        self.listing_url = listing_url
        self.tags = list(tags)
        self.enrich_details = enrich_details
        self.timeout = timeout

    def fetch(self) -> str:
        return fetch_text(self.listing_url, timeout=self.timeout)

    def parse(self, payload: str) -> List[RawRecord]:
        records = []
        for node in extract_json_ld_events(payload):
            record = self._record_from_node(node)
            if record is not None:
                records.append(record)

        logger.info(f"{self.id}: found {len(records)} JSON-LD events")

        if self.enrich_details:
            records = self._enrich(records)
        return records

    def _record_from_node(self, node: Dict[str, Any]) -> Optional[RawRecord]:
        title = title_from_node(node)
        start = node.get('startDate')
        if not title or not start:
            return None

        url = node.get('url')
        source_url = urljoin(self.listing_url, url) if isinstance(url, str) else self.listing_url

        location = node.get('location')
        if isinstance(location, list):
            location = location[0] if location else None
        location_name = None
        location_address = None
        if isinstance(location, dict):
            location_name = str(location.get('name') or '').strip() or None
            location_address = _address_text(location.get('address'))
        elif isinstance(location, str):
            location_name = location.strip() or None

        return RawRecord(
            title=title,
            start_at=str(start),
            end_at=node.get('endDate'),
            location_name=location_name,
            location_address=location_address,
            source_url=source_url,
            source_natural_key=_natural_key(node),
            description=_plain_text(node.get('description')),
            tags=list(self.tags)
        )

    def _enrich(self, records: List[RawRecord]) -> List[RawRecord]:
        """Fill in missing descriptions from detail pages, in source order."""
        with ThreadPoolExecutor(max_workers=self.DETAIL_CONCURRENCY) as executor:
            return list(executor.map(self._enrich_one, records))

    def _enrich_one(self, record: RawRecord) -> RawRecord:
        if record.description or record.source_url == self.listing_url:
            return record
        try:
            html, _ = fetch_text_with_url(
                record.source_url,
                timeout=self.DETAIL_TIMEOUT_SECONDS,
                retries=1
            )
        except AdapterTransportError as e:
            logger.debug(f"{self.id}: detail fetch failed for {record.source_url}: {e}")
            return record
        description = description_from_page(html)
        if not description:
            return record
        return replace(record, description=description)
