"""
Colormaps for Lenia Visualization

Maps float values [0, 1] to RGBA colors. Each map is a function from a
float array to a uint8 array with a trailing channel axis.
"""

import numpy as np


def lenia_rgba(values):
    """Direct Lenia coloring.

    R = 255 * v^0.5, G = 255 * (1 - v)^2, B = 255 * sin(v * pi), A = 255.
    Channels are truncated to uint8.

    Args:
        values: float array in [0, 1], any shape

    Returns:
        uint8 array of shape values.shape + (4,)
    """
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    rgba = np.empty(v.shape + (4,), dtype=np.uint8)
    rgba[..., 0] = (255 * np.sqrt(v)).astype(np.uint8)
    rgba[..., 1] = (255 * (1.0 - v) ** 2).astype(np.uint8)
    # sin(pi) is ~1e-16, never negative on [0, 1]
    rgba[..., 2] = (255 * np.maximum(np.sin(v * np.pi), 0.0)).astype(np.uint8)
    rgba[..., 3] = 255
    return rgba


def smoke_rgba(values):
    """White smoke on black."""
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    rgba = np.empty(v.shape + (4,), dtype=np.uint8)
    rgba[..., :3] = (255 * v).astype(np.uint8)[..., None]
    rgba[..., 3] = 255
    return rgba


COLORMAPS = {
    "lenia": lenia_rgba,
    "smoke": smoke_rgba,
}


def get_colormap(name):
    """Get a colormap function by name."""
    if name not in COLORMAPS:
        raise ValueError(f"Unknown colormap: {name!r}. "
                         f"Available: {sorted(COLORMAPS)}")
    return COLORMAPS[name]
