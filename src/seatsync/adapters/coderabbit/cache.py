"""Single-flight read-through cache for the seat roster."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from seatsync.domain.model import SeatRoster

log = getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
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
    def write(self) -> Iterator[None]:
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


class SeatRosterCache:
    """Hold at most one roster snapshot per generation.

    ``get`` first looks under the shared lock; on a miss it takes the exclusive lock
    and checks again before fetching, so concurrent misses trigger a single upstream
    read. ``invalidate`` drops the snapshot and starts a new generation without
    refetching.
    """

    def __init__(self, fetch: Callable[[], SeatRoster]) -> None:
        self._fetch = fetch
        self._lock = ReadWriteLock()
        self._roster: SeatRoster | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def get(self) -> SeatRoster:
        with self._lock.read():
            cached = self._roster
        if cached is not None:
            return cached

        with self._lock.write():
            if self._roster is not None:
                return self._roster
            log.debug(f"Seat roster cache miss (generation {self._generation}), fetching")
            roster = self._fetch()
            self._roster = roster
            return roster

    def invalidate(self) -> None:
        with self._lock.write():
            self._roster = None
            self._generation += 1
            log.debug(f"Seat roster cache invalidated (generation {self._generation})")

    def peek(self) -> SeatRoster | None:
        """Return the cached snapshot without fetching."""

        with self._lock.read():
            return self._roster
