"""Exceptions raised by the ingestion pipeline."""


class IngestionError(Exception):
    """Base class for ingestion errors."""


class MalformedDateTime(IngestionError):
    """A date/time value matches no recognized pattern."""


class InvalidStartTime(IngestionError):
    """A record's start time could not be resolved to an instant."""


class EmptyTitle(IngestionError):
    """A record's title is empty after trimming."""


class EmptyUrl(IngestionError):
    """A record's source URL is empty after trimming."""


class AdapterTransportError(IngestionError):
    """An adapter failed to retrieve its payload (network or HTTP status)."""


class AdapterTimeout(IngestionError):
    """An adapter exceeded its time budget."""


class SinkUnavailable(IngestionError):
    """The persistence layer is not configured or not reachable."""


class ConfigurationError(IngestionError):
    """The pipeline was invoked with invalid configuration."""


class UnknownSource(IngestionError):
    """No adapter is registered under the requested id."""
