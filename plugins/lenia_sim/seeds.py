"""
Seeding Patterns

Each pattern stamps values into an already-cleared (height, width) array.
Disks wrap around the edges like everything else on the torus. All
randomness comes from the numpy Generator passed in, so a fixed seed
reproduces the same field.
"""

import numpy as np


def _disk_offsets(radius):
    """(dy, dx) offsets of every cell with dx^2 + dy^2 <= radius^2."""
    r = int(radius)
    y, x = np.mgrid[-r:r+1, -r:r+1]
    inside = x * x + y * y <= r * r
    return y[inside], x[inside]


def _center(world, center):
    h, w = world.shape
    if center is None:
        return w // 2, h // 2
    return int(center[0]), int(center[1])


def seed_blobs(world, rng, count=5, radius=10, low=0.5, high=1.0):
    """Random disks at random positions, each cell uniform in [low, high)."""
    h, w = world.shape
    dy, dx = _disk_offsets(radius)
    for _ in range(count):
        cx, cy = rng.integers(w), rng.integers(h)
        world[(cy + dy) % h, (cx + dx) % w] = rng.uniform(low, high, dy.size)


def seed_wave(world, rng, radius=None, rings=3, arms=3, center=None):
    """One large disk carrying a radial/angular wave.

    value = 0.5 + 0.5 * sin(rings * pi * r) * cos(arms * theta), with r
    the distance from the center normalized to the disk radius.
    """
    h, w = world.shape
    if radius is None:
        radius = max(1, min(w, h) // 4)
    cx, cy = _center(world, center)
    dy, dx = _disk_offsets(radius)
    r = np.sqrt(dx * dx + dy * dy) / radius
    theta = np.arctan2(dy, dx)
    values = 0.5 + 0.5 * np.sin(rings * np.pi * r) * np.cos(arms * theta)
    world[(cy + dy) % h, (cx + dx) % w] = np.clip(values, 0.0, 1.0)


def seed_ring(world, rng, radius=None, thickness=None, low=0.5, high=1.0,
              center=None):
    """Annulus of random values - breaks into several organisms."""
    h, w = world.shape
    if radius is None:
        radius = max(2, min(w, h) // 5)
    if thickness is None:
        thickness = max(2, radius // 3)
    cx, cy = _center(world, center)
    outer = radius + thickness // 2
    inner = max(0, radius - thickness // 2)
    dy, dx = _disk_offsets(outer)
    keep = dx * dx + dy * dy >= inner * inner
    dy, dx = dy[keep], dx[keep]
    world[(cy + dy) % h, (cx + dx) % w] = rng.uniform(low, high, dy.size)


def seed_disk(world, rng, radius=10, value=1.0, center=None):
    """Single solid disk of constant value."""
    h, w = world.shape
    cx, cy = _center(world, center)
    dy, dx = _disk_offsets(radius)
    world[(cy + dy) % h, (cx + dx) % w] = value


def seed_cell(world, rng, x=None, y=None, value=1.0):
    """Single cell; defaults to the grid center."""
    h, w = world.shape
    if x is None:
        x = w // 2
    if y is None:
        y = h // 2
    world[y % h, x % w] = value


PATTERNS = {
    "blobs": seed_blobs,
    "wave": seed_wave,
    "ring": seed_ring,
    "disk": seed_disk,
    "cell": seed_cell,
}


def stamp(world, pattern, rng, **kwargs):
    """Apply a named pattern to world in place."""
    try:
        fn = PATTERNS[pattern]
    except KeyError:
        raise ValueError(f"Unknown seed pattern: {pattern!r}. "
                         f"Available: {sorted(PATTERNS)}") from None
    fn(world, rng, **kwargs)
