"""Shared fixtures for ingestion tests."""
import os
import time
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from adapters.base import SourceAdapter
from processor.models import RawRecord
from processor.timezone import ZonedTimeResolver


class StaticAdapter(SourceAdapter):
    """Adapter returning canned records, optionally failing or stalling."""

    def __init__(self, source_id, records=None, fetch_error=None, delay=0.0, name=None):
        self.id = source_id
        self.display_name = name or source_id.title()
        self.records = records or []
        self.fetch_error = fetch_error
        self.delay = delay
        self.fetch_calls = 0

    def fetch(self):
        self.fetch_calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.fetch_error:
            raise self.fetch_error
        return 'payload'

    def parse(self, payload):
        return list(self.records)


@pytest.fixture
def now():
    return datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def resolver():
    return ZonedTimeResolver('America/Los_Angeles')


@pytest.fixture
def make_adapter():
    """Factory for StaticAdapter instances."""
    return StaticAdapter


@pytest.fixture
def make_record():
    """Factory for RawRecords with sensible defaults."""
    def _make(n=1, **overrides):
        fields = {
            'title': f'Event {n}',
            'start_at': '2026-02-13T20:00:00',
            'source_url': f'https://example.com/events/{n}',
        }
        fields.update(overrides)
        return RawRecord(**fields)
    return _make


@pytest.fixture
def aws_credentials():
    """Fake AWS credentials so boto3 never talks to a real account."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1',
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars
