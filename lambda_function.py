"""AWS Lambda handler for event feed ingestion."""
import json
import logging
import time
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError

from adapters.registry import AdapterRegistry
from adapters.sources import default_adapters
from ingestion.config import IngestionSettings, parse_positive_int
from ingestion.pipeline import preview_adapter, run_ingestion, summarize_sources
from processor.errors import ConfigurationError, SinkUnavailable, UnknownSource
from processor.models import IngestionOptions
from processor.timezone import ZonedTimeResolver
from storage.dynamodb_manager import DynamoDBEventSink

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_LOG_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_LOG_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body)}


def _param(event: Dict[str, Any], name: str) -> Optional[Any]:
    """Read a parameter from the event body or its query string."""
    if event.get(name) is not None:
        return event[name]
    query = event.get('queryStringParameters') or {}
    return query.get(name)


def _int_param(event: Dict[str, Any], name: str, default: int) -> int:
    value = _param(event, name)
    return default if value is None else parse_positive_int(value, name)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return bool(value)


def _build_sink(settings: IngestionSettings) -> Optional[DynamoDBEventSink]:
    """Create the DynamoDB sink, or None when AWS is not configured."""
    try:
        return DynamoDBEventSink(settings.table_name, region_name=settings.aws_region)
    except BotoCoreError as e:
        logging.getLogger(__name__).error(f"Cannot create DynamoDB sink: {e}")
        return None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for event ingestion.

    Supported actions (``action`` field, default ``run``):
        run: fetch, normalize and upsert events (``dryRun`` skips the upsert)
        summary: per-source reach report, nothing persisted
        preview: sample records from one source (``sourceId``, ``limit``)
        sources: list registered sources

    Args:
        event: Invocation payload (EventBridge or API Gateway)
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    event = event or {}
    settings = IngestionSettings.from_env()

    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    action = _param(event, 'action') or 'run'
    logger.info(
        "Lambda execution started",
        extra={
            'action': action,
            'table_name': settings.table_name,
            'window_days': settings.window_days,
            'timezone': settings.timezone
        }
    )

    try:
        resolver = ZonedTimeResolver(settings.timezone)
        registry = AdapterRegistry(default_adapters())

        if action == 'sources':
            return _response(200, {'sources': registry.describe()})

        if action == 'preview':
            source_id = _param(event, 'sourceId')
            if not source_id:
                return _response(400, {'error': 'Missing sourceId parameter'})
            limit = _int_param(event, 'limit', 5)
            try:
                preview = preview_adapter(registry, source_id, resolver, limit=limit)
            except UnknownSource as e:
                return _response(404, {'error': str(e)})
            except Exception as e:
                logger.error(
                    f"Preview of {source_id} failed: {e}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
                return _response(500, {'error': f"Scraper failed: {e}", 'sourceId': source_id})
            return _response(200, preview)

        if action not in ('run', 'summary'):
            return _response(400, {'error': f"Unknown action: {action}"})

        window_days = _int_param(event, 'windowDays', settings.window_days)
        timeout_ms = _int_param(event, 'perAdapterTimeoutMs', settings.adapter_timeout_ms)

        if action == 'summary':
            summary = summarize_sources(
                registry,
                resolver,
                window_days,
                timeout_ms,
                include_errors=_flag(_param(event, 'includeErrors'))
            )
            return _response(200, summary)

        options = IngestionOptions(
            dry_run=_flag(_param(event, 'dryRun')),
            window_days=window_days,
            per_adapter_timeout_ms=timeout_ms
        )
        sink = None if options.dry_run else _build_sink(settings)
        report = run_ingestion(options, registry, sink, resolver)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed",
            extra={
                'duration_seconds': round(duration, 2),
                'total_events': report.total_events
            }
        )
        body = report.to_dict()
        body['message'] = 'Ingestion completed'
        return _response(200, body)

    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return _response(400, {'error': str(e), 'error_type': type(e).__name__})

    except SinkUnavailable as e:
        logger.error(f"Event store unavailable: {e}")
        return _response(503, {
            'error': str(e),
            'error_type': type(e).__name__,
            'totalEvents': 0,
            'perSource': []
        })

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _response(500, {
            'message': 'Ingestion failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })
