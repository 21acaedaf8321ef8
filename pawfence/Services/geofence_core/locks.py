# pawfence/Services/geofence_core/locks.py
"""
Per-dog mutual exclusion.

"Load prior state → evaluate → save new state" must run as one unit per dog,
otherwise two concurrent samples could both see the same `inside` state and
fire two exit notifications. Different dogs never share a lock and proceed
in parallel.

Locks are reference counted and discarded once no thread holds or waits on
them, so the registry does not grow with the number of dogs ever seen.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class EntityLockRegistry:
    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, entity_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(entity_id)
            if entry is None:
                entry = self._entries[entity_id] = _Entry()
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[entity_id]

    def active_entities(self) -> List[str]:
        with self._guard:
            return sorted(self._entries)


# --------------------------------------------------------
# INSTANCIA GLOBAL (Singleton)
# --------------------------------------------------------
entity_locks = EntityLockRegistry()
