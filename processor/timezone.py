"""Resolution of civil (wall-clock) date/time values into UTC instants."""
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from processor.errors import ConfigurationError, MalformedDateTime
from processor.models import DateTimeValue

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'America/Los_Angeles'

_EXPLICIT_OFFSET = re.compile(r'(?:[zZ]|[+-]\d{2}:?\d{2})$')
_CIVIL_DATE_TIME = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})[T\s](\d{2}):(\d{2})(?::(\d{2}))?'
)
_CIVIL_DATE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')

# Human-readable formats seen on venue pages, tried only as a last resort
_FALLBACK_DATE_FORMATS = [
    '%m/%d/%Y',      # US format
    '%m-%d-%Y',      # US format with dashes
    '%B %d, %Y',     # Full month name
    '%b %d, %Y',     # Abbreviated month name
    '%A, %B %d, %Y',
    '%d/%m/%Y',      # European format
    '%Y/%m/%d',      # Alternative ISO format
]
_FALLBACK_TIME_FORMATS = [
    '%H:%M',
    '%I:%M %p',
    '%I:%M%p',
    '%H:%M:%S',
    '%I:%M:%S %p',
    '%I %p',
    '%I%p',
]


def has_explicit_offset(text: str) -> bool:
    """Return True when an ISO-like string ends in 'Z' or a numeric UTC offset."""
    return bool(_EXPLICIT_OFFSET.search(text))


class ZonedTimeResolver:
    """
    Converts civil date/time values into aware UTC datetimes.

    Values without a UTC offset are interpreted in an IANA zone (the
    deployment's default unless another is given), never in UTC or in the
    process's local zone. Zone objects are cached per resolver instance; the
    cache is only ever added to, since zone rules do not change while the
    process runs.
    """

    MAX_ITERATIONS = 3

    def __init__(self, default_zone: str = DEFAULT_TIMEZONE):
        """
        Initialize the resolver.

        Args:
            default_zone: IANA zone used when a value carries no offset

        Raises:
            ConfigurationError: If the zone is not a known IANA zone
        """
        self._zones: Dict[str, ZoneInfo] = {}
        self.default_zone = default_zone
        self._zone(default_zone)

    def _zone(self, name: Optional[str]) -> ZoneInfo:
        name = name or self.default_zone
        zone = self._zones.get(name)
        if zone is None:
            try:
                zone = ZoneInfo(name)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigurationError(f"Unknown time zone: {name!r}") from e
            self._zones[name] = zone
        return zone

    def resolve_parts(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        zone: Optional[str] = None,
    ) -> datetime:
        """
        Resolve civil date/time fields in a zone to a UTC instant.

        Starts by reading the fields as if they were UTC, renders that guess
        back into the zone and shifts the guess by the difference, repeating
        until the rendering matches (at most MAX_ITERATIONS times).

        Args:
            year, month, day: Calendar date
            hour, minute, second: Wall-clock time (default midnight)
            zone: IANA zone (default: the resolver's default zone)

        Returns:
            Aware datetime in UTC

        Raises:
            MalformedDateTime: If any field is out of range
        """
        try:
            desired = datetime(year, month, day, hour, minute, second)
        except (TypeError, ValueError) as e:
            raise MalformedDateTime(
                f"Invalid date/time fields "
                f"{year}-{month}-{day} {hour}:{minute}:{second}: {e}"
            ) from e

        tz = self._zone(zone)
        guess = desired.replace(tzinfo=timezone.utc)
        try:
            for _ in range(self.MAX_ITERATIONS):
                rendered = guess.astimezone(tz).replace(tzinfo=None)
                delta = desired - rendered
                if not delta:
                    break
                guess = guess + delta
        except OverflowError as e:
            raise MalformedDateTime(f"Date out of range: {desired.isoformat()}") from e
        return guess

    def parse(self, value: DateTimeValue, zone: Optional[str] = None) -> datetime:
        """
        Parse a date/time value into a UTC instant.

        Strings carrying 'Z' or a numeric offset are parsed as-is. Strings
        without one are read as civil time in the zone. Anything else goes
        through generic parsing, which may fail.

        Args:
            value: ISO-like string or datetime
            zone: IANA zone for offset-less values (default: resolver default)

        Returns:
            Aware datetime in UTC

        Raises:
            MalformedDateTime: If the value cannot be parsed
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None and value.utcoffset() is not None:
                try:
                    return value.astimezone(timezone.utc)
                except OverflowError as e:
                    raise MalformedDateTime(f"Date out of range: {value!r}") from e
            resolved = self.resolve_parts(
                value.year, value.month, value.day,
                value.hour, value.minute, value.second, zone=zone
            )
            return resolved.replace(microsecond=value.microsecond)

        if not isinstance(value, str) or not value.strip():
            raise MalformedDateTime(f"Invalid date: {value!r}")

        text = value.strip()

        if has_explicit_offset(text):
            try:
                return datetime.fromisoformat(text).astimezone(timezone.utc)
            except OverflowError as e:
                raise MalformedDateTime(f"Date out of range: {text!r}") from e
            except ValueError:
                logger.debug(f"Not ISO 8601 despite offset suffix: {text!r}")

        match = _CIVIL_DATE_TIME.match(text)
        if match and not has_explicit_offset(text):
            year, month, day, hour, minute, second = match.groups()
            return self.resolve_parts(
                int(year), int(month), int(day),
                int(hour), int(minute), int(second or 0), zone=zone
            )

        match = _CIVIL_DATE.match(text)
        if match:
            year, month, day = match.groups()
            return self.resolve_parts(int(year), int(month), int(day), zone=zone)

        return self._parse_generic(text, zone)

    def _parse_generic(self, text: str, zone: Optional[str]) -> datetime:
        """Last-resort parsing of human-readable and RFC 2822 date strings."""
        for date_fmt in _FALLBACK_DATE_FORMATS:
            candidates = [date_fmt] + [
                f"{date_fmt} {time_fmt}" for time_fmt in _FALLBACK_TIME_FORMATS
            ]
            for fmt in candidates:
                try:
                    parsed = datetime.strptime(text, fmt)
                except ValueError:
                    continue
                return self.parse(parsed, zone=zone)

        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                # RFC 2822 '-0000': UTC with no local information
                parsed = parsed.replace(tzinfo=timezone.utc)
            try:
                return parsed.astimezone(timezone.utc)
            except OverflowError as e:
                raise MalformedDateTime(f"Date out of range: {text!r}") from e

        raise MalformedDateTime(f"Invalid date: {text!r}")
