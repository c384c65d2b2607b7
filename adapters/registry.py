"""Read-only registry of active source adapters."""
import logging
from typing import Dict, Iterable, Iterator, List, Optional

from adapters.base import SourceAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    The set of adapters active for this process.

    Built once from an explicit list. An adapter whose id is already
    registered is ignored, so the first registration wins.
    """

    def __init__(self, adapters: Iterable[SourceAdapter]):
        registered: Dict[str, SourceAdapter] = {}
        for adapter in adapters:
            if adapter.id in registered:
                logger.debug(f"Ignoring duplicate adapter registration: {adapter.id}")
                continue
            registered[adapter.id] = adapter
        self._adapters = tuple(registered.values())
        logger.info(f"Registered {len(self._adapters)} source adapters")

    def all(self) -> List[SourceAdapter]:
        return list(self._adapters)

    def ids(self) -> List[str]:
        return [adapter.id for adapter in self._adapters]

    def get(self, source_id: str) -> Optional[SourceAdapter]:
        for adapter in self._adapters:
            if adapter.id == source_id:
                return adapter
        return None

    def describe(self) -> List[Dict[str, str]]:
        return [
            {'id': adapter.id, 'name': adapter.display_name}
            for adapter in self._adapters
        ]

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self) -> Iterator[SourceAdapter]:
        return iter(self._adapters)
