"""Contract every event source adapter implements."""
from abc import ABC, abstractmethod
from typing import Any, List

from processor.models import RawRecord


class SourceAdapter(ABC):
    """
    A source of raw event records.

    Attributes:
        id: Unique id, stable across releases; namespaces derived event ids
        display_name: Human-readable source name, also the venue label of last resort
    """

    id: str
    display_name: str

    @abstractmethod
    def fetch(self) -> Any:
        """
        Retrieve the source payload (HTML, JSON, or any intermediate).

        Raises:
            AdapterTransportError: If the payload cannot be retrieved
        """

    @abstractmethod
    def parse(self, payload: Any) -> List[RawRecord]:
        """
        Turn a payload into raw records, in source order.

        May perform secondary fetches to enrich records, bounded by the
        adapter itself.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
