"""Normalization of raw adapter records into canonical events."""
import logging
from typing import Optional

from processor.errors import EmptyTitle, EmptyUrl, InvalidStartTime, MalformedDateTime
from processor.models import CanonicalEvent, DateTimeValue, RawRecord
from processor.timezone import ZonedTimeResolver

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim a string, mapping empty or missing values to None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class EventNormalizer:
    """Maps RawRecords into CanonicalEvents. Pure: performs no I/O."""

    def __init__(self, resolver: ZonedTimeResolver):
        """
        Initialize the normalizer.

        Args:
            resolver: Resolver configured with the deployment's time zone
        """
        self.resolver = resolver

    def normalize(
        self,
        raw: RawRecord,
        source_id: str,
        source_name: str,
        event_id: str
    ) -> CanonicalEvent:
        """
        Normalize a single raw record.

        Args:
            raw: Record produced by an adapter
            source_id: Id of the producing adapter
            source_name: Display name of the producing adapter
            event_id: Stable id derived for this record

        Returns:
            CanonicalEvent

        Raises:
            InvalidStartTime: If start_at cannot be resolved
            EmptyTitle: If the title is empty after trimming
            EmptyUrl: If the source URL is empty after trimming
        """
        try:
            start_at = self.resolver.parse(raw.start_at)
        except MalformedDateTime as e:
            raise InvalidStartTime(str(e)) from e

        end_at = self._parse_end(raw.end_at)

        title = _clean(raw.title)
        if not title:
            raise EmptyTitle("Event title is empty")

        source_url = _clean(raw.source_url)
        if not source_url:
            raise EmptyUrl("Event source URL is empty")

        location_address = _clean(raw.location_address)
        location_name = _clean(raw.location_name) or location_address or source_name

        tags = list(raw.tags) if isinstance(raw.tags, (list, tuple)) else []
        extra = raw.extra if isinstance(raw.extra, dict) and raw.extra else None

        return CanonicalEvent(
            id=event_id,
            source_id=source_id,
            source_name=source_name,
            source_url=source_url,
            title=title,
            start_at=start_at,
            end_at=end_at,
            location_name=location_name or None,
            location_address=location_address,
            description=_clean(raw.description),
            tags=tags,
            extra=extra
        )

    def _parse_end(self, value: Optional[DateTimeValue]):
        """Resolve end_at, dropping it to None when absent or unparseable."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        try:
            return self.resolver.parse(value)
        except MalformedDateTime as e:
            logger.debug(f"Dropping unparseable end time {value!r}: {e}")
            return None
