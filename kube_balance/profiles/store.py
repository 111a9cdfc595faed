# kube_balance/profiles/store.py
"""Profile store - concurrently readable cache of WorkloadProfiles."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Optional

from kube_balance.core.models import WorkloadProfile


class ReadWriteLock:
    """
    Many readers or one writer.

    Waiting writers block new readers so a steady stream of
    reads cannot starve an update.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ProfileStore:
    """
    Mapping workload type -> WorkloadProfile.

    Reads return independent copies. Writes come only from the
    profile event consumer.
    """

    def __init__(self):
        self._profiles: Dict[str, WorkloadProfile] = {}
        self._lock = ReadWriteLock()

    # -------------------------
    # READS
    # -------------------------

    def get_all(self) -> Dict[str, WorkloadProfile]:
        """Snapshot of all cached profiles."""
        with self._lock.read_locked():
            return dict(self._profiles)

    def get(self, name: str) -> Optional[WorkloadProfile]:
        with self._lock.read_locked():
            return self._profiles.get(name)

    def is_empty(self) -> bool:
        with self._lock.read_locked():
            return not self._profiles

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._profiles)

    # -------------------------
    # WRITES
    # -------------------------

    def upsert(self, profile: WorkloadProfile) -> None:
        """Insert or replace the profile under its name."""
        with self._lock.write_locked():
            self._profiles[profile.name] = profile

    def remove(self, name: str) -> bool:
        """Drop a profile. Returns False if it was already absent."""
        with self._lock.write_locked():
            return self._profiles.pop(name, None) is not None

    def replace_all(self, profiles: Iterable[WorkloadProfile]) -> None:
        """Swap the whole cache in one step (used after a relist)."""
        fresh = {p.name: p for p in profiles}
        with self._lock.write_locked():
            self._profiles = fresh
