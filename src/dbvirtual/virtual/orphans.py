"""
Orphan Entity Cache

Virtual entities for data containers that have no place in the schema tree,
most likely custom queries. Entries are defined by users by hand, so the
cache is unbounded and lives as long as the process.
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

from ..config import get_config
from .model import VirtualEntity
from ..utils import get_logger

logger = get_logger(__name__)


class OrphanEntityCache:
    """
    Keyed store of orphan virtual entities; lookup-or-create is atomic

    The key separator is read from the configuration once, so keys stay
    stable for the lifetime of the cache even if the configuration changes.
    """

    def __init__(self, key_separator: Optional[str] = None):
        self.key_separator = key_separator or get_config().orphan_key_separator
        self._entities: Dict[str, VirtualEntity] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[VirtualEntity]:
        with self._lock:
            return self._entities.get(key)

    def get_or_create(
        self,
        key: str,
        factory: Callable[[], VirtualEntity],
        create: bool = True
    ) -> Optional[VirtualEntity]:
        """
        Look up ``key`` and, if missing and ``create`` is set, store ``factory()``

        The factory runs under the cache lock and must not block on I/O.
        """
        with self._lock:
            entity = self._entities.get(key)
            if entity is None and create:
                entity = factory()
                self._entities[key] = entity
                logger.debug(f"Created orphan virtual entity {key}")
            return entity

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entities.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entities


_orphan_cache: Optional[OrphanEntityCache] = None
_orphan_cache_lock = threading.Lock()


def get_orphan_cache() -> OrphanEntityCache:
    """Get the process-wide orphan cache"""
    global _orphan_cache
    with _orphan_cache_lock:
        if _orphan_cache is None:
            _orphan_cache = OrphanEntityCache()
        return _orphan_cache
