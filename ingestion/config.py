"""Environment configuration for ingestion runs."""
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from processor.errors import ConfigurationError
from processor.timezone import DEFAULT_TIMEZONE
from processor.window import DEFAULT_WINDOW_DAYS

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = 'canonical-events'
DEFAULT_ADAPTER_TIMEOUT_MS = 25000


def _positive_int_or_default(raw: Optional[str], default: int, name: str) -> int:
    """Lenient parse for environment values: anything unusable means default."""
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value


def parse_positive_int(value: Any, name: str) -> int:
    """Strict parse for explicit per-invocation overrides."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"{name} must be a positive integer, got {value!r}"
        ) from e
    if number <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return number


@dataclass
class IngestionSettings:
    """Deployment-level settings, read once per invocation."""
    table_name: str = DEFAULT_TABLE_NAME
    log_level: str = 'INFO'
    window_days: int = DEFAULT_WINDOW_DAYS
    timezone: str = DEFAULT_TIMEZONE
    adapter_timeout_ms: int = DEFAULT_ADAPTER_TIMEOUT_MS
    aws_region: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'IngestionSettings':
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            IngestionSettings
        """
        env = os.environ if environ is None else environ
        return cls(
            table_name=env.get('TABLE_NAME', DEFAULT_TABLE_NAME),
            log_level=env.get('LOG_LEVEL', 'INFO'),
            window_days=_positive_int_or_default(
                env.get('SCRAPE_WINDOW_DAYS'), DEFAULT_WINDOW_DAYS, 'SCRAPE_WINDOW_DAYS'
            ),
            timezone=(env.get('EVENT_TIMEZONE') or '').strip() or DEFAULT_TIMEZONE,
            adapter_timeout_ms=_positive_int_or_default(
                env.get('ADAPTER_TIMEOUT_MS'), DEFAULT_ADAPTER_TIMEOUT_MS, 'ADAPTER_TIMEOUT_MS'
            ),
            aws_region=env.get('AWS_REGION') or env.get('AWS_DEFAULT_REGION')
        )
