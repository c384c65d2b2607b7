"""Unit tests for ZonedTimeResolver."""
from datetime import datetime, timedelta, timezone

import pytest

from processor.errors import ConfigurationError, MalformedDateTime
from processor.timezone import ZonedTimeResolver, has_explicit_offset


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestResolveParts:
    """Test cases for civil field resolution."""

    def test_standard_time(self, resolver):
        """Winter evenings in Los Angeles are UTC-8."""
        result = resolver.resolve_parts(2026, 2, 13, 20, 0)
        assert result == utc(2026, 2, 14, 4, 0)

    def test_daylight_time(self, resolver):
        """Summer evenings in Los Angeles are UTC-7."""
        result = resolver.resolve_parts(2026, 7, 13, 20, 0)
        assert result == utc(2026, 7, 14, 3, 0)

    def test_defaults_to_midnight(self, resolver):
        assert resolver.resolve_parts(2026, 2, 13) == utc(2026, 2, 13, 8, 0)

    def test_explicit_zone(self, resolver):
        result = resolver.resolve_parts(2026, 2, 13, 20, 0, zone='America/New_York')
        assert result == utc(2026, 2, 14, 1, 0)

    def test_repeated_hour_resolves_to_first_occurrence(self, resolver):
        """01:30 on the fall-back date exists twice; the daylight one is chosen."""
        result = resolver.resolve_parts(2026, 11, 1, 1, 30)
        assert result == utc(2026, 11, 1, 8, 30)

    def test_skipped_hour_shifts_forward(self, resolver):
        """02:30 on the spring-forward date does not exist; it moves by the gap."""
        result = resolver.resolve_parts(2026, 3, 8, 2, 30)
        assert result == utc(2026, 3, 8, 10, 30)

    @pytest.mark.parametrize('fields', [
        (9999, 12, 31, 20, 0),
        (1, 1, 1, 0, 0),
    ])
    def test_out_of_range_instants(self, resolver, fields):
        with pytest.raises(MalformedDateTime):
            resolver.resolve_parts(*fields)

    def test_result_is_utc(self, resolver):
        result = resolver.resolve_parts(2026, 3, 1, 9, 15, 30)
        assert result.utcoffset() == timedelta(0)
        assert result == utc(2026, 3, 1, 17, 15, 30)

    @pytest.mark.parametrize('fields', [
        (2026, 13, 1),
        (2026, 2, 30),
        (2026, 2, 13, 24, 0),
        (2026, 2, 13, 20, 60),
    ])
    def test_invalid_ranges(self, resolver, fields):
        with pytest.raises(MalformedDateTime):
            resolver.resolve_parts(*fields)

    def test_unknown_zone(self):
        with pytest.raises(ConfigurationError):
            ZonedTimeResolver('Mars/Olympus_Mons')

    def test_zone_cache_is_reused(self, resolver):
        resolver.resolve_parts(2026, 2, 13, zone='Europe/Berlin')
        cached = resolver._zones['Europe/Berlin']
        resolver.resolve_parts(2026, 6, 13, zone='Europe/Berlin')
        assert resolver._zones['Europe/Berlin'] is cached


class TestParse:
    """Test cases for offset-aware string parsing."""

    def test_civil_string_uses_default_zone(self, resolver):
        """Offset-less strings are not read as UTC."""
        assert resolver.parse('2026-02-13T20:00:00') == utc(2026, 2, 14, 4, 0)
        assert resolver.parse('2026-07-13T20:00:00') == utc(2026, 7, 14, 3, 0)

    def test_civil_string_without_seconds(self, resolver):
        assert resolver.parse('2026-02-13T20:00') == utc(2026, 2, 14, 4, 0)

    def test_civil_string_with_space_separator(self, resolver):
        assert resolver.parse('2026-02-13 20:00') == utc(2026, 2, 14, 4, 0)

    def test_civil_string_with_override_zone(self, resolver):
        result = resolver.parse('2026-02-13T20:00:00', zone='America/Chicago')
        assert result == utc(2026, 2, 14, 2, 0)

    def test_date_only_is_local_midnight(self, resolver):
        assert resolver.parse('2026-02-13') == utc(2026, 2, 13, 8, 0)

    @pytest.mark.parametrize('zone', ['America/Los_Angeles', 'Asia/Tokyo', 'UTC'])
    def test_z_suffix_ignores_zone(self, zone):
        resolver = ZonedTimeResolver(zone)
        assert resolver.parse('2026-02-13T20:00:00Z') == utc(2026, 2, 13, 20, 0)

    @pytest.mark.parametrize('zone', ['America/Los_Angeles', 'Asia/Tokyo'])
    def test_numeric_offset_ignores_zone(self, zone):
        resolver = ZonedTimeResolver(zone)
        result = resolver.parse('2026-02-13T20:00:00-05:00')
        assert result == utc(2026, 2, 14, 1, 0)

    def test_fractional_seconds_with_offset(self, resolver):
        result = resolver.parse('2026-02-13T20:00:00.000Z')
        assert result == utc(2026, 2, 13, 20, 0)

    def test_surrounding_whitespace(self, resolver):
        assert resolver.parse('  2026-02-13T20:00:00  ') == utc(2026, 2, 14, 4, 0)

    def test_aware_datetime_passthrough(self, resolver):
        value = datetime(2026, 2, 13, 20, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert resolver.parse(value) == utc(2026, 2, 14, 1, 0)

    def test_naive_datetime_is_civil(self, resolver):
        assert resolver.parse(datetime(2026, 2, 13, 20, 0)) == utc(2026, 2, 14, 4, 0)

    def test_human_readable_fallback(self, resolver):
        assert resolver.parse('02/13/2026 8:00 PM') == utc(2026, 2, 14, 4, 0)
        assert resolver.parse('February 13, 2026') == utc(2026, 2, 13, 8, 0)

    def test_rfc_2822_fallback(self, resolver):
        result = resolver.parse('Fri, 13 Feb 2026 20:00:00 -0800')
        assert result == utc(2026, 2, 14, 4, 0)

    def test_civil_string_with_invalid_fields(self, resolver):
        with pytest.raises(MalformedDateTime):
            resolver.parse('2026-02-30T20:00:00')

    @pytest.mark.parametrize('value', [
        '9999-12-31T20:00:00',
        '0001-01-01T00:00:00',
        '9999-12-31T23:00:00-05:00',
        datetime(1, 1, 1, 0, 0, tzinfo=timezone(timedelta(hours=5))),
    ])
    def test_out_of_range_values(self, resolver, value):
        with pytest.raises(MalformedDateTime):
            resolver.parse(value)

    @pytest.mark.parametrize('value', ['', '   ', 'TBA', 'sometime next week', None, 42])
    def test_unparseable(self, resolver, value):
        with pytest.raises(MalformedDateTime):
            resolver.parse(value)


class TestHasExplicitOffset:

    @pytest.mark.parametrize('text', [
        '2026-02-13T20:00:00Z',
        '2026-02-13T20:00:00z',
        '2026-02-13T20:00:00-08:00',
        '2026-02-13T20:00:00+0000',
    ])
    def test_detects_offsets(self, text):
        assert has_explicit_offset(text)

    @pytest.mark.parametrize('text', ['2026-02-13T20:00:00', '2026-02-13', '8:00 PM'])
    def test_no_offset(self, text):
        assert not has_explicit_offset(text)
