"""
Per-fixture locks for resolve + propagate.

Two matches feeding the same next match (e.g. both semifinals) must not
race for its slots, so result application is serialized per fixture.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, Optional


class FixtureLockRegistry:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Optional[Hashable], threading.Lock] = {}

    def lock_for(self, fixture_id: Optional[Hashable]) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(fixture_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[fixture_id] = lock
            return lock

    @contextmanager
    def hold(self, fixture_id: Optional[Hashable]) -> Iterator[None]:
        lock = self.lock_for(fixture_id)
        with lock:
            yield

    def discard(self, fixture_id: Optional[Hashable]) -> None:
        """Forget a fixture's lock (e.g. after the fixture is cancelled)."""
        with self._guard:
            self._locks.pop(fixture_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
