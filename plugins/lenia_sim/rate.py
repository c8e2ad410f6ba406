"""
Simulation Rate Controller

Speed is a positive multiplier on the per-step growth increment. It does
not change the update cadence; that belongs to whoever drives update().
"""

from .field import ReadWriteLock


class RateController:
    """Speed scalar with multiplicative up/down steps and a positive floor."""

    def __init__(self, growth_rate=0.05, speed=1.0, factor=1.1,
                 min_speed=1e-3, lock=None):
        """
        Args:
            growth_rate: Base growth increment per step at speed 1.0
            speed: Initial speed multiplier
            factor: Multiplier applied by increase/decrease (> 1)
            min_speed: Floor that decrease_speed() never goes below
            lock: ReadWriteLock to share with the field (new one if None)
        """
        if not factor > 1:
            raise ValueError(f"Speed factor must be > 1, got {factor}")
        if not min_speed > 0:
            raise ValueError(f"Minimum speed must be positive, got {min_speed}")
        if not speed > 0:
            raise ValueError(f"Speed must be positive, got {speed}")
        self.growth_rate = growth_rate
        self.factor = factor
        self.min_speed = min_speed
        self._speed = max(min_speed, speed)
        self._lock = lock if lock is not None else ReadWriteLock()

    @property
    def speed(self):
        with self._lock.read_locked():
            return self._speed

    @property
    def increment(self):
        """Effective growth increment: growth_rate * speed."""
        with self._lock.read_locked():
            return self.growth_rate * self._speed

    def increase_speed(self):
        with self._lock.write_locked():
            self._speed *= self.factor
            return self._speed

    def decrease_speed(self):
        with self._lock.write_locked():
            self._speed = max(self.min_speed, self._speed / self.factor)
            return self._speed

