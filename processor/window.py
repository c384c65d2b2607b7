"""Forward-looking scrape window."""
from datetime import datetime, timedelta

from processor.errors import ConfigurationError
from processor.models import CanonicalEvent

DEFAULT_WINDOW_DAYS = 90


def within_window(event: CanonicalEvent, cutoff: datetime) -> bool:
    """True when the event starts no later than the cutoff."""
    return event.start_at <= cutoff


class WindowFilter:
    """
    Drops events starting after now + window_days.

    The cutoff is inclusive. Past events are kept; pruning them is the
    storage layer's concern.
    """

    def __init__(self, now: datetime, window_days: int = DEFAULT_WINDOW_DAYS):
        if not isinstance(window_days, int) or window_days <= 0:
            raise ConfigurationError(
                f"window_days must be a positive integer, got {window_days!r}"
            )
        self.now = now
        self.window_days = window_days
        self.cutoff = now + timedelta(days=window_days)

    def accepts(self, event: CanonicalEvent) -> bool:
        return within_window(event, self.cutoff)
