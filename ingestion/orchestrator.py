"""Concurrent execution of source adapters with per-adapter time budgets."""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from adapters.base import SourceAdapter
from processor.errors import AdapterTimeout
from processor.event_processor import EventNormalizer
from processor.identity import derive_event_id
from processor.models import (
    AdapterOutcome,
    CanonicalEvent,
    RawRecord,
    RunResult,
    SourceSummary,
)
from processor.window import within_window

logger = logging.getLogger(__name__)

MAX_OUTCOME_ERRORS = 20
LOGGED_RECORD_ERRORS = 3

T = TypeVar('T')


def describe_error(error: BaseException) -> str:
    """Render any exception as a single error string."""
    message = str(error).strip()
    return message or type(error).__name__


def record_error(raw: RawRecord, error: BaseException, width: int = 30) -> str:
    title = raw.title if isinstance(raw.title, str) else ''
    return f'Event "{title[:width]}": {describe_error(error)}'


class Orchestrator:
    """
    Runs adapters concurrently and aggregates their output.

    Each adapter gets its own worker thread and the same time budget, measured
    from a common start. Adapters still running when the budget expires are
    abandoned: their threads are left to finish in the background and their
    results are discarded. Failures of one adapter, or of one record, never
    affect the others.
    """

    def __init__(self, normalizer: EventNormalizer, max_errors: int = MAX_OUTCOME_ERRORS):
        """
        Initialize the orchestrator.

        Args:
            normalizer: Normalizer applied to every raw record
            max_errors: Maximum error strings kept per adapter outcome
        """
        self.normalizer = normalizer
        self.max_errors = max_errors

    def run_all(
        self,
        adapters: Iterable[SourceAdapter],
        per_adapter_timeout: float,
        now: datetime,
        window_cutoff: datetime
    ) -> RunResult:
        """
        Fetch, parse, normalize and window-filter every adapter's records.

        Args:
            adapters: Adapters to run
            per_adapter_timeout: Time budget per adapter in seconds
            now: Start of the run
            window_cutoff: Latest start time accepted

        Returns:
            RunResult with events (source order within each adapter) and one
            outcome per adapter, in adapter order
        """
        adapters = list(adapters)
        logger.info(
            f"Running {len(adapters)} adapters",
            extra={
                'per_adapter_timeout': per_adapter_timeout,
                'window_days': round((window_cutoff - now).total_seconds() / 86400, 2)
            }
        )

        settled = self._race(
            adapters,
            lambda adapter: self._run_adapter(adapter, window_cutoff),
            per_adapter_timeout
        )

        events: List[CanonicalEvent] = []
        outcomes: List[AdapterOutcome] = []
        for adapter, future in settled:
            if future is None:
                outcome = self._timed_out_outcome(adapter, per_adapter_timeout)
                adapter_events: List[CanonicalEvent] = []
            elif future.exception() is not None:
                outcome = AdapterOutcome(source_id=adapter.id, source_name=adapter.display_name)
                self._add_error(outcome, describe_error(future.exception()))
                adapter_events = []
            else:
                adapter_events, outcome = future.result()
            events.extend(adapter_events)
            outcomes.append(outcome)
            self._log_outcome(outcome)

        return RunResult(canonical_events=events, outcomes=outcomes)

    def summarize(
        self,
        adapters: Iterable[SourceAdapter],
        per_adapter_timeout: float,
        now: datetime,
        horizons: Sequence[int]
    ) -> List[SourceSummary]:
        """
        Report how far ahead each source reaches, without filtering or persisting.

        Args:
            adapters: Adapters to run
            per_adapter_timeout: Time budget per adapter in seconds
            now: Reference time for past/future classification
            horizons: Day horizons to count events within

        Returns:
            Summaries ordered by max_days_ahead, furthest first
        """
        adapters = list(adapters)
        settled = self._race(
            adapters,
            lambda adapter: self._summarize_adapter(adapter, now, horizons),
            per_adapter_timeout
        )

        summaries = []
        for adapter, future in settled:
            if future is not None and future.exception() is None:
                summaries.append(future.result())
                continue
            summary = SourceSummary(
                source_id=adapter.id,
                source_name=adapter.display_name,
                counts=self._empty_counts(horizons)
            )
            if future is None:
                summary.timed_out = True
                error = AdapterTimeout(f"Adapter timed out after {per_adapter_timeout:g}s")
            else:
                error = future.exception()
            summary.errors.append(describe_error(error))
            summary.error_count = 1
            summaries.append(summary)

        summaries.sort(
            key=lambda s: s.max_days_ahead if s.max_days_ahead is not None else -999999,
            reverse=True
        )
        return summaries

    def _race(
        self,
        adapters: List[SourceAdapter],
        work: Callable[[SourceAdapter], T],
        timeout: float
    ) -> List[Tuple[SourceAdapter, Optional['Future[T]']]]:
        """
        Run work for every adapter concurrently under a shared deadline.

        Returns:
            (adapter, future) pairs in adapter order; the future is None when
            the adapter did not finish in time
        """
        if not adapters:
            return []

        executor = ThreadPoolExecutor(
            max_workers=len(adapters),
            thread_name_prefix='adapter'
        )
        try:
            futures = [executor.submit(work, adapter) for adapter in adapters]
            done, _ = wait(futures, timeout=timeout)
        finally:
            # Never block on abandoned adapters
            executor.shutdown(wait=False, cancel_futures=True)

        return [
            (adapter, future if future in done else None)
            for adapter, future in zip(adapters, futures)
        ]

    def _run_adapter(
        self,
        adapter: SourceAdapter,
        window_cutoff: datetime
    ) -> Tuple[List[CanonicalEvent], AdapterOutcome]:
        started = time.monotonic()
        outcome = AdapterOutcome(source_id=adapter.id, source_name=adapter.display_name)
        events: List[CanonicalEvent] = []

        try:
            payload = adapter.fetch()
            raw_records = adapter.parse(payload) or []
        except Exception as e:
            logger.error(
                f"Adapter {adapter.id} failed: {describe_error(e)}",
                extra={'source_id': adapter.id, 'error_type': type(e).__name__},
                exc_info=True
            )
            self._add_error(outcome, describe_error(e))
            raw_records = []

        for raw in raw_records:
            try:
                event_id = derive_event_id(adapter.id, raw.source_url, raw.source_natural_key)
                event = self.normalizer.normalize(
                    raw, adapter.id, adapter.display_name, event_id
                )
            except Exception as e:
                self._add_error(outcome, record_error(raw, e))
                continue

            if not within_window(event, window_cutoff):
                outcome.filtered_count += 1
                continue
            events.append(event)

        outcome.record_count_emitted = len(events)
        outcome.duration_seconds = time.monotonic() - started
        return events, outcome

    def _summarize_adapter(
        self,
        adapter: SourceAdapter,
        now: datetime,
        horizons: Sequence[int]
    ) -> SourceSummary:
        summary = SourceSummary(
            source_id=adapter.id,
            source_name=adapter.display_name,
            counts=self._empty_counts(horizons)
        )

        try:
            raw_records = adapter.parse(adapter.fetch()) or []
        except Exception as e:
            summary.errors.append(describe_error(e))
            summary.error_count = 1
            return summary

        summary.total_raw = len(raw_records)
        for raw in raw_records:
            try:
                event_id = derive_event_id(adapter.id, raw.source_url, raw.source_natural_key)
                event = self.normalizer.normalize(
                    raw, adapter.id, adapter.display_name, event_id
                )
            except Exception as e:
                summary.error_count += 1
                if len(summary.errors) < self.max_errors:
                    summary.errors.append(record_error(raw, e, width=40))
                continue

            summary.normalized_ok += 1
            start = event.start_at
            if summary.min_start_at is None or start < summary.min_start_at:
                summary.min_start_at = start
            if summary.max_start_at is None or start > summary.max_start_at:
                summary.max_start_at = start

            delta_days = (start - now).total_seconds() / 86400
            if delta_days >= 0:
                summary.counts['future'] += 1
            else:
                summary.counts['past'] += 1
            for horizon in horizons:
                if 0 <= delta_days <= horizon:
                    summary.counts[str(horizon)] += 1

        if summary.min_start_at is not None and summary.max_start_at is not None:
            span = summary.max_start_at - summary.min_start_at
            summary.span_days = round(span.total_seconds() / 86400)
            ahead = summary.max_start_at - now
            summary.max_days_ahead = round(ahead.total_seconds() / 86400)
        return summary

    @staticmethod
    def _empty_counts(horizons: Sequence[int]) -> dict:
        counts = {str(horizon): 0 for horizon in horizons}
        counts['future'] = 0
        counts['past'] = 0
        return counts

    def _timed_out_outcome(self, adapter: SourceAdapter, timeout: float) -> AdapterOutcome:
        outcome = AdapterOutcome(
            source_id=adapter.id,
            source_name=adapter.display_name,
            timed_out=True,
            duration_seconds=timeout
        )
        self._add_error(outcome, describe_error(
            AdapterTimeout(f"Adapter timed out after {timeout:g}s")
        ))
        return outcome

    def _add_error(self, outcome: AdapterOutcome, message: str) -> None:
        outcome.error_count += 1
        if len(outcome.errors) < self.max_errors:
            outcome.errors.append(message)

    def _log_outcome(self, outcome: AdapterOutcome) -> None:
        extra = {
            'source_id': outcome.source_id,
            'records': outcome.record_count_emitted,
            'filtered': outcome.filtered_count,
            'error_count': outcome.error_count,
            'timed_out': outcome.timed_out,
        }
        if outcome.timed_out:
            logger.warning(f"Adapter {outcome.source_id} timed out", extra=extra)
        elif outcome.error_count:
            logger.warning(
                f"Adapter {outcome.source_id}: {outcome.record_count_emitted} events, "
                f"{outcome.error_count} errors: {outcome.errors[:LOGGED_RECORD_ERRORS]}",
                extra=extra
            )
        else:
            logger.info(
                f"Adapter {outcome.source_id}: {outcome.record_count_emitted} events",
                extra=extra
            )
