"""Entry points for ingestion runs, source summaries and adapter previews."""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from adapters.registry import AdapterRegistry
from ingestion.orchestrator import Orchestrator
from processor.errors import ConfigurationError, SinkUnavailable, UnknownSource
from processor.event_processor import EventNormalizer
from processor.identity import derive_event_id
from processor.models import (
    CanonicalEvent,
    IngestionOptions,
    IngestionReport,
    to_iso_z,
)
from processor.timezone import ZonedTimeResolver
from processor.window import WindowFilter

logger = logging.getLogger(__name__)

SUMMARY_HORIZONS = (7, 30, 180)


class EventSink(Protocol):
    """Persistence layer that upserts events by id."""

    def is_available(self) -> bool:
        ...

    def upsert(self, event_id: str, event: CanonicalEvent) -> bool:
        ...


def _validate_options(options: IngestionOptions) -> None:
    for name in ('window_days', 'per_adapter_timeout_ms'):
        value = getattr(options, name)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")


def run_ingestion(
    options: IngestionOptions,
    registry: AdapterRegistry,
    sink: Optional[EventSink],
    resolver: ZonedTimeResolver,
    now: Optional[datetime] = None
) -> IngestionReport:
    """
    Run every registered adapter and upsert the resulting events.

    Args:
        options: Dry-run flag, window and per-adapter timeout
        registry: Active adapters
        sink: Upsert target; may be None in dry-run mode
        resolver: Resolver for the deployment's time zone
        now: Reference time (default: current UTC time)

    Returns:
        IngestionReport, also when every adapter failed

    Raises:
        ConfigurationError: If options are invalid
        SinkUnavailable: If not a dry run and the sink cannot be used
    """
    _validate_options(options)
    now = now or datetime.now(timezone.utc)
    window = WindowFilter(now, options.window_days)

    if not options.dry_run:
        if sink is None:
            raise SinkUnavailable("No event sink configured")
        if not sink.is_available():
            raise SinkUnavailable("Event sink is not reachable")

    started = time.monotonic()
    orchestrator = Orchestrator(EventNormalizer(resolver))
    result = orchestrator.run_all(
        registry.all(),
        options.per_adapter_timeout_ms / 1000,
        now,
        window.cutoff
    )

    upserted = 0
    persist_failures = 0
    if not options.dry_run:
        for event in result.canonical_events:
            try:
                ok = sink.upsert(event.id, event)
            except Exception as e:
                logger.error(
                    f"Failed to upsert event {event.id}: {e}",
                    extra={'event_id': event.id, 'error_type': type(e).__name__}
                )
                ok = False
            if ok:
                upserted += 1
            else:
                persist_failures += 1

    report = IngestionReport(
        total_events=len(result.canonical_events),
        per_source=result.outcomes,
        dry_run=options.dry_run,
        upserted=upserted,
        persist_failures=persist_failures,
        duration_seconds=time.monotonic() - started
    )
    logger.info(
        "Ingestion run completed",
        extra={
            'dry_run': options.dry_run,
            'total_events': report.total_events,
            'upserted': upserted,
            'persist_failures': persist_failures,
            'failed_sources': [o.source_id for o in report.per_source if o.error_count],
        }
    )
    return report


def summarize_sources(
    registry: AdapterRegistry,
    resolver: ZonedTimeResolver,
    window_days: int,
    per_adapter_timeout_ms: int,
    include_errors: bool = False,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Summarize how far into the future each source publishes events.

    Returns:
        JSON-serializable summary of every source
    """
    _validate_options(IngestionOptions(
        window_days=window_days,
        per_adapter_timeout_ms=per_adapter_timeout_ms
    ))
    now = now or datetime.now(timezone.utc)
    horizons = sorted({*SUMMARY_HORIZONS, window_days})

    orchestrator = Orchestrator(EventNormalizer(resolver))
    summaries = orchestrator.summarize(
        registry.all(),
        per_adapter_timeout_ms / 1000,
        now,
        horizons
    )
    return {
        'now': to_iso_z(now),
        'scrapeWindowDays': window_days,
        'perSourceTimeoutMs': per_adapter_timeout_ms,
        'sources': [summary.to_dict(include_errors) for summary in summaries],
    }


def _raw_time(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def preview_adapter(
    registry: AdapterRegistry,
    source_id: str,
    resolver: ZonedTimeResolver,
    limit: int = 5
) -> Dict[str, Any]:
    """
    Fetch one source and show raw and normalized versions of its first records.

    Adapter failures propagate to the caller.

    Raises:
        UnknownSource: If no adapter has this id
    """
    adapter = registry.get(source_id)
    if adapter is None:
        raise UnknownSource(
            f'Source "{source_id}" not found. Available: {", ".join(registry.ids())}'
        )

    raw_records = adapter.parse(adapter.fetch()) or []
    normalizer = EventNormalizer(resolver)

    samples = []
    for raw in raw_records[:max(0, limit)]:
        sample: Dict[str, Any] = {
            'raw': {
                'title': raw.title,
                'startAt': _raw_time(raw.start_at),
                'endAt': _raw_time(raw.end_at),
                'locationName': raw.location_name,
                'locationAddress': raw.location_address,
                'sourceUrl': raw.source_url,
                'description': raw.description,
            }
        }
        try:
            event_id = derive_event_id(adapter.id, raw.source_url, raw.source_natural_key)
            normalized = normalizer.normalize(raw, adapter.id, adapter.display_name, event_id)
            sample['normalized'] = normalized.to_dict()
        except Exception as e:
            sample['error'] = f"{type(e).__name__}: {e}"
        samples.append(sample)

    return {
        'sourceId': adapter.id,
        'sourceName': adapter.display_name,
        'totalFound': len(raw_records),
        'samples': samples,
    }
