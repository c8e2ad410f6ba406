"""
Toroidal Double-Buffered Field

Holds the two (height, width) float64 buffers of a simulation. One buffer
is current (what every reader sees), the other is scratch space written
by the update engine. commit() swaps them under the exclusive side of a
read/write lock, so readers always see a whole generation.
"""

import threading
from contextlib import contextmanager

import numpy as np

from .seeds import stamp


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class Field:
    """Current/next buffer pair over a wrapping grid."""

    def __init__(self, width, height):
        if width <= 0 or height <= 0:
            raise ValueError(
                f"Field size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.current = np.zeros((self.height, self.width), dtype=np.float64)
        self.next = np.zeros_like(self.current)
        self.lock = ReadWriteLock()

    def wrap(self, x, y):
        """Map any (x, y) onto the torus. Accepts ints or index arrays."""
        return x % self.width, y % self.height

    def read(self, x, y):
        """Value of the current buffer at (x, y), wrapping out-of-range indices."""
        wx, wy = self.wrap(x, y)
        return float(self.current[wy, wx])

    def seed(self, pattern="blobs", rng=None, **kwargs):
        """Clear both buffers and stamp a seeding pattern.

        Args:
            pattern: Pattern name (see seeds.PATTERNS)
            rng: None, an int seed, or a numpy Generator
            **kwargs: Pattern options (radius, count, value, ...)
        """
        rng = np.random.default_rng(rng)
        with self.lock.write_locked():
            self.current[:] = 0
            self.next[:] = 0
            stamp(self.current, pattern, rng, **kwargs)

    def commit(self):
        """Swap current and next. Call only after next is fully written."""
        with self.lock.write_locked():
            self.current, self.next = self.next, self.current

    def snapshot(self):
        """Copy of the current buffer, taken under the shared lock."""
        with self.lock.read_locked():
            return self.current.copy()

    def mass(self):
        with self.lock.read_locked():
            return float(self.current.sum())
