# railfood/services/lock_service.py
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator

from railfood.utils.logging import get_logger

logger = get_logger(__name__)


class LockService:
    """
    -serializacja mutacji per klucz (koszyk, zamowienie)
    -druga mutacja na ten sam klucz czeka w kolejce az pierwsza sie skonczy
    -rozne klucze ida rownolegle
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._holders: Dict[Hashable, int] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            self._holders[key] = self._holders.get(key, 0) + 1
            return lock

    def _release_ref(self, key: Hashable) -> None:
        with self._guard:
            left = self._holders.get(key, 1) - 1
            if left <= 0:
                #nikt nie czeka, sprzatamy
                self._holders.pop(key, None)
                self._locks.pop(key, None)
            else:
                self._holders[key] = left

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        if lock.locked():
            logger.info(f"Waiting for in-flight mutation on {key}")
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            self._release_ref(key)

    def is_locked(self, key: Hashable) -> bool:
        with self._guard:
            lock = self._locks.get(key)
            return lock is not None and lock.locked()
