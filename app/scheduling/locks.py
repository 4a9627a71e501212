import threading
import weakref
from contextlib import contextmanager


class _ServiceLock:
    # threading.Lock cannot be weakly referenced
    __slots__ = ("lock", "__weakref__")

    def __init__(self):
        self.lock = threading.Lock()


class ServiceLockRegistry:
    """One lock per service id, so booking attempts for a service run one at a time.

    This only serializes callers inside one process. Across workers the
    service row lock and the partial unique index on bookings take over.
    An entry lives only while some caller holds or waits on it.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, _ServiceLock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def _lock_for(self, service_id: str) -> _ServiceLock:
        with self._guard:
            entry = self._locks.get(service_id)
            if entry is None:
                entry = self._locks[service_id] = _ServiceLock()
            return entry

    def __len__(self):
        return len(self._locks)

    @contextmanager
    def hold(self, service_id: str):
        entry = self._lock_for(service_id)
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()


service_locks = ServiceLockRegistry()
