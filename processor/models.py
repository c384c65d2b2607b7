"""Data models for event ingestion."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union


DateTimeValue = Union[str, datetime]


def to_iso_z(value: Optional[datetime]) -> Optional[str]:
    """Render an aware datetime as an ISO 8601 UTC string ending in 'Z'."""
    if value is None:
        return None
    text = value.astimezone(timezone.utc).isoformat()
    return text.replace('+00:00', 'Z')


@dataclass
class RawRecord:
    """Event as produced by a source adapter, before normalization."""
    title: str
    start_at: DateTimeValue
    source_url: str
    end_at: Optional[DateTimeValue] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    source_natural_key: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    extra: Optional[Dict[str, Any]] = None


@dataclass
class CanonicalEvent:
    """Normalized, storage-ready event."""
    id: str
    source_id: str
    source_name: str
    source_url: str
    title: str
    start_at: datetime
    end_at: Optional[datetime]
    location_name: Optional[str]
    location_address: Optional[str]
    description: Optional[str]
    tags: List[str]
    extra: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'sourceId': self.source_id,
            'sourceName': self.source_name,
            'sourceUrl': self.source_url,
            'title': self.title,
            'startAt': to_iso_z(self.start_at),
            'endAt': to_iso_z(self.end_at),
            'locationName': self.location_name,
            'locationAddress': self.location_address,
            'description': self.description,
            'tags': list(self.tags),
        }
        if self.extra:
            data['extra'] = self.extra
        return data


@dataclass
class AdapterOutcome:
    """Result of running one adapter."""
    source_id: str
    source_name: str = ''
    record_count_emitted: int = 0
    errors: List[str] = field(default_factory=list)
    error_count: int = 0
    filtered_count: int = 0
    timed_out: bool = False
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sourceId': self.source_id,
            'sourceName': self.source_name,
            'recordCountEmitted': self.record_count_emitted,
            'errors': list(self.errors),
            'errorCount': self.error_count,
            'filteredCount': self.filtered_count,
            'timedOut': self.timed_out,
            'durationSeconds': round(self.duration_seconds, 2),
        }


@dataclass
class RunResult:
    """Aggregate output of an orchestrator run."""
    canonical_events: List[CanonicalEvent]
    outcomes: List[AdapterOutcome]


@dataclass
class SourceSummary:
    """Per-source health summary, computed without persisting anything."""
    source_id: str
    source_name: str
    total_raw: int = 0
    normalized_ok: int = 0
    min_start_at: Optional[datetime] = None
    max_start_at: Optional[datetime] = None
    span_days: Optional[int] = None
    max_days_ahead: Optional[int] = None
    counts: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    error_count: int = 0
    timed_out: bool = False

    def to_dict(self, include_errors: bool = False) -> Dict[str, Any]:
        data = {
            'sourceId': self.source_id,
            'sourceName': self.source_name,
            'totalRaw': self.total_raw,
            'normalizedOk': self.normalized_ok,
            'minStartAt': to_iso_z(self.min_start_at),
            'maxStartAt': to_iso_z(self.max_start_at),
            'spanDays': self.span_days,
            'maxDaysAhead': self.max_days_ahead,
            'counts': dict(self.counts),
            'errorCount': self.error_count,
            'timedOut': self.timed_out,
        }
        if include_errors:
            data['errors'] = list(self.errors)
        return data


@dataclass
class IngestionOptions:
    """Per-invocation options for an ingestion run."""
    dry_run: bool = False
    window_days: int = 90
    per_adapter_timeout_ms: int = 25000


@dataclass
class IngestionReport:
    """Summary returned to the caller of an ingestion run."""
    total_events: int
    per_source: List[AdapterOutcome]
    dry_run: bool = False
    upserted: int = 0
    persist_failures: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalEvents': self.total_events,
            'dryRun': self.dry_run,
            'upserted': self.upserted,
            'persistFailures': self.persist_failures,
            'durationSeconds': round(self.duration_seconds, 2),
            'perSource': [outcome.to_dict() for outcome in self.per_source],
        }
