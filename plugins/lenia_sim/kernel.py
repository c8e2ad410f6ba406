"""
Convolution Kernel Builder

Builds the fixed weight table used for the neighborhood sum. The table is
a square Gaussian falloff around its center, normalized so the neighborhood
potential is a true weighted average. Built once at startup and shared
read-only across all update workers.
"""

import numpy as np


def _check_diameter(diameter):
    if isinstance(diameter, bool) or not isinstance(diameter, (int, np.integer)):
        raise ValueError(f"Kernel diameter must be an int, got {diameter!r}")
    if diameter <= 0 or diameter % 2 == 0:
        raise ValueError(
            f"Kernel diameter must be positive and odd, got {diameter}")


def _freeze(K):
    """Normalize to sum 1 and mark read-only."""
    total = K.sum()
    if not total > 0:
        raise ValueError("Kernel has zero total weight")
    K = K / total
    K.flags.writeable = False
    return K


def build_kernel(diameter=21, decay=20.0):
    """Gaussian weight table: w(dx, dy) = exp(-dist^2 / decay).

    Args:
        diameter: Table width/height in cells (positive, odd)
        decay: Falloff parameter; larger spreads weight further out

    Returns:
        (diameter, diameter) float64 array summing to 1, read-only
    """
    _check_diameter(diameter)
    if not decay > 0:
        raise ValueError(f"Kernel decay must be positive, got {decay}")

    mid = diameter // 2
    y, x = np.ogrid[-mid:mid+1, -mid:mid+1]
    dist_sq = (x * x + y * y).astype(np.float64)
    return _freeze(np.exp(-dist_sq / decay))


def box_kernel(diameter=3):
    """Uniform table, every weight 1/diameter^2."""
    _check_diameter(diameter)
    return _freeze(np.ones((diameter, diameter), dtype=np.float64))


def validate_kernel(K):
    """Check a prebuilt table and return a read-only float64 copy.

    The table must be square with a positive odd size, have no negative
    weights, and sum to 1 within 1e-9.
    """
    K = np.asarray(K, dtype=np.float64)
    if K.ndim != 2 or K.shape[0] != K.shape[1]:
        raise ValueError(f"Kernel must be a square table, got shape {K.shape}")
    _check_diameter(K.shape[0])
    if (K < 0).any() or not np.isfinite(K).all():
        raise ValueError("Kernel weights must be finite and non-negative")
    if abs(K.sum() - 1.0) > 1e-9:
        raise ValueError(f"Kernel weights must sum to 1, got {K.sum()!r}")
    K = K.copy()
    K.flags.writeable = False
    return K
