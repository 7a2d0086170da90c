# grantkeeper/adapters/outbound/cache/client_cache.py

import copy
import time
from typing import Callable, Dict, Optional, Tuple

from grantkeeper.domain.models.client_domain_model import Client


class ClientCache:
    """
    Read-through cache of registered clients.

    Entries expire ``ttl`` seconds after they were stored. Every key carries
    a generation number bumped by :meth:`invalidate`; a value read from the
    store is only cached if no invalidation happened while it was being
    read, so a lookup racing an update cannot put the old client back.

    Entries are stored and handed out as copies, so a caller cannot change
    what other lookups see.

    All methods are synchronous and touch nothing but in-process dicts, so
    they run atomically with respect to other coroutines.
    """

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Client]] = {}
        self._generations: Dict[str, int] = {}

    def generation(self, client_id: str) -> int:
        return self._generations.get(client_id, 0)

    def get(self, client_id: str) -> Optional[Client]:
        entry = self._entries.get(client_id)
        if entry is None:
            return None

        deadline, client = entry
        if self.clock() >= deadline:
            self._entries.pop(client_id, None)
            return None
        return copy.deepcopy(client)

    def set(self, client: Client, generation: Optional[int] = None) -> bool:
        """
        Store a client.

        Args:
            client: Client read from the store
            generation: Value of :meth:`generation` taken before the read

        Returns:
            False when the entry was invalidated since ``generation``
        """
        if self.ttl <= 0:
            return False
        if generation is not None and generation != self.generation(client.client_id):
            return False
        self._entries[client.client_id] = (self.clock() + self.ttl, copy.deepcopy(client))
        return True

    def invalidate(self, client_id: str) -> None:
        self._entries.pop(client_id, None)
        self._generations[client_id] = self.generation(client_id) + 1

    def clear(self) -> None:
        for client_id in list(self._entries):
            self.invalidate(client_id)

    def __len__(self) -> int:
        return len(self._entries)
