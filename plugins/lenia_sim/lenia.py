"""
Lenia - Continuous Cellular Automaton Engine

A continuous generalization of Conway's Game of Life where:
- States are continuous [0, 1] instead of binary
- Neighborhoods are a Gaussian-weighted average over a square kernel
- Growth/decay is governed by a normalized Gaussian growth function
- Edges wrap: every cell has a full neighborhood

The neighborhood sum is a direct toroidal convolution. Rows are split into
contiguous ranges handed to a fixed thread pool; each worker reads only
the current buffer and the read-only kernel, and writes only its own rows
of the next buffer. The buffers swap once every worker has finished.

Reference: Bert Chan, "Lenia - Biology of Artificial Life" (2020)
"""

import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .engine_base import CAEngine
from .kernel import build_kernel, validate_kernel
from .rate import RateController


class Lenia(CAEngine):

    def __init__(self, width, height, kernel=None, kernel_diameter=21,
                 kernel_decay=20.0, mu=0.05, sigma=0.010, growth_rate=0.05,
                 epsilon=1e-5, workers=8, rate=None, speed=1.0,
                 speed_factor=1.1, min_speed=1e-3):
        """
        Args:
            width, height: Grid dimensions in cells
            kernel: Prebuilt weight table; built from diameter/decay if None
            kernel_diameter: Kernel width in cells (odd)
            kernel_decay: Gaussian falloff of the kernel weights
            mu: Growth function center ("comfort zone" for survival)
            sigma: Growth function width (tolerance around mu)
            growth_rate: Base increment per step, scaled by speed
            epsilon: Values below this snap to exactly 0
            workers: Number of row ranges updated in parallel
            rate: RateController to read speed from; if None one is built
                from growth_rate/speed/speed_factor/min_speed on the field lock
        """
        super().__init__(width, height)
        if not sigma > 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        if not growth_rate > 0:
            raise ValueError(f"growth_rate must be positive, got {growth_rate}")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.kernel_decay = kernel_decay
        self.kernel = (validate_kernel(kernel) if kernel is not None
                       else build_kernel(kernel_diameter, kernel_decay))
        self.kernel_diameter = self.kernel.shape[0]
        self.mu = mu
        self.sigma = sigma
        self.epsilon = epsilon
        # Speed shares the field lock so speed and increment never tear
        self.rate = rate if rate is not None else RateController(
            growth_rate=growth_rate, speed=speed, factor=speed_factor,
            min_speed=min_speed, lock=self.field.lock)

        self.workers = min(int(workers), self.field.height)
        bounds = np.linspace(0, self.field.height, self.workers + 1).astype(int)
        self._row_ranges = list(zip(bounds[:-1], bounds[1:]))
        self._executor = (ThreadPoolExecutor(max_workers=self.workers,
                                             thread_name_prefix="lenia")
                          if self.workers > 1 else None)

    @property
    def beta(self):
        """Peak normalization 1 / (sigma * sqrt(2 pi))."""
        return 1.0 / (self.sigma * math.sqrt(2 * math.pi))

    def growth(self, U):
        """Gaussian bump over the neighborhood potential, peaking at mu."""
        return self.beta * np.exp(-(U - self.mu) ** 2 / (2 * self.sigma ** 2))

    def _potential(self, src, kernel, y0, y1):
        """Toroidal convolution for rows [y0, y1) of src.

        Gathers the rows plus a wrapped margin of half a kernel on every
        side once, then accumulates shifted views of that block.
        """
        h, w = src.shape
        d = kernel.shape[0]
        half = d // 2
        n = y1 - y0
        rows = np.arange(y0 - half, y1 + half) % h
        cols = np.arange(-half, w + half) % w
        padded = src[np.ix_(rows, cols)]

        U = np.zeros((n, w), dtype=np.float64)
        term = np.empty_like(U)
        for ky in range(d):
            for kx in range(d):
                weight = kernel[ky, kx]
                if weight == 0:
                    continue
                np.multiply(padded[ky:ky + n, kx:kx + w], weight, out=term)
                U += term
        return U

    def _update_rows(self, src, dst, kernel, increment, y0, y1):
        U = self._potential(src, kernel, y0, y1)
        out = src[y0:y1] + increment * (2.0 * self.growth(U) - 1.0)
        np.clip(out, 0.0, 1.0, out=out)
        out[out < self.epsilon] = 0.0
        dst[y0:y1] = out

    def neighborhood(self):
        """Full potential field U for the current buffer."""
        with self.field.lock.read_locked():
            src = self.field.current.copy()
        return self._potential(src, self.kernel, 0, src.shape[0])

    def step(self):
        """Advance one time step. Returns the world state."""
        src, dst = self.field.current, self.field.next
        kernel = self.kernel
        increment = self.rate.increment

        if self._executor is None:
            for y0, y1 in self._row_ranges:
                self._update_rows(src, dst, kernel, increment, y0, y1)
        else:
            futures = [
                self._executor.submit(self._update_rows, src, dst, kernel,
                                      increment, y0, y1)
                for y0, y1 in self._row_ranges
            ]
            # Join before the swap; result() re-raises worker errors
            for f in futures:
                f.result()

        self.field.commit()
        self.generation += 1
        return self.world

    def close(self):
        """Shut the worker pool down. Later steps run on the calling thread."""
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def set_params(self, mu=None, sigma=None, growth_rate=None, epsilon=None,
                   kernel_diameter=None, kernel_decay=None, **_kw):
        """Update parameters. Rebuilds the kernel if its shape changes.

        Everything is checked before anything is assigned, so a rejected
        call leaves the engine as it was.
        """
        if sigma is not None and not sigma > 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        if growth_rate is not None and not growth_rate > 0:
            raise ValueError(f"growth_rate must be positive, got {growth_rate}")

        diameter = self.kernel_diameter if kernel_diameter is None else kernel_diameter
        decay = self.kernel_decay if kernel_decay is None else kernel_decay
        kernel = self.kernel
        if diameter != self.kernel_diameter or decay != self.kernel_decay:
            kernel = build_kernel(diameter, decay)

        if sigma is not None:
            self.sigma = sigma
        if mu is not None:
            self.mu = mu
        if growth_rate is not None:
            self.rate.growth_rate = growth_rate
        if epsilon is not None:
            self.epsilon = epsilon
        self.kernel = kernel
        self.kernel_diameter = diameter
        self.kernel_decay = decay

    def get_params(self):
        return {
            "mu": self.mu,
            "sigma": self.sigma,
            "growth_rate": self.rate.growth_rate,
            "epsilon": self.epsilon,
            "kernel_diameter": self.kernel_diameter,
            "kernel_decay": self.kernel_decay,
            "workers": self.workers,
        }
