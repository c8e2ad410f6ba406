"""
Abstract Base Class for Field Engines

An engine owns a Field and knows how to advance it one generation.
The simulator drives any engine through this interface.
"""

from abc import ABC, abstractmethod

from .field import Field


class CAEngine(ABC):
    """Base class for engines stepping a toroidal Field."""

    def __init__(self, width, height):
        self.field = Field(width, height)
        self.generation = 0

    @property
    def world(self):
        """The current (externally visible) buffer."""
        return self.field.current

    @abstractmethod
    def step(self):
        """Advance one time step. Returns the current buffer."""

    def step_n(self, n):
        """Advance n steps. Returns final state."""
        for _ in range(n):
            self.step()
        return self.world

    @abstractmethod
    def set_params(self, **params):
        """Update engine parameters."""

    @abstractmethod
    def get_params(self):
        """Return dict of current parameter values."""

    def seed(self, pattern="blobs", rng=None, **kwargs):
        """Re-seed the field and restart the generation count."""
        self.field.seed(pattern, rng=rng, **kwargs)
        self.generation = 0

    def close(self):
        """Release any resources held by the engine."""

    @property
    def stats(self):
        """Return current world statistics."""
        with self.field.lock.read_locked():
            world = self.field.current
            return {
                "generation": self.generation,
                "mass": float(world.sum()),
                "mean": float(world.mean()),
                "max": float(world.max()),
                "alive_pct": float((world > 0.01).sum()) / world.size * 100,
            }
