"""
Frame Producer and Bounded Frame Channel

render_frame() turns a field snapshot into a scaled RGBA image.
FrameChannel hands frames from the simulation to a renderer without ever
blocking the simulation: when the queue is full the incoming frame is
dropped, so the renderer may skip frames but never sees them out of order.
"""

import queue
import threading

import numpy as np

from .colormaps import get_colormap


def render_frame(values, scale=4, skip_below=1e-5, colormap="lenia",
                 background=(0, 0, 0, 255)):
    """Render a (H, W) float field to a (H*scale, W*scale, 4) uint8 frame.

    Args:
        values: Field values in [0, 1]
        scale: Edge length in pixels of each cell's block
        skip_below: Cells below this stay background; None draws every cell
        colormap: Name of a colormap in colormaps.COLORMAPS
        background: RGBA for skipped cells
    """
    if scale < 1:
        raise ValueError(f"Render scale must be >= 1, got {scale}")
    rgba = get_colormap(colormap)(values)
    if skip_below is not None:
        rgba[np.asarray(values) < skip_below] = background
    if scale > 1:
        rgba = np.repeat(np.repeat(rgba, scale, axis=0), scale, axis=1)
    return rgba


class FrameChannel:
    """Bounded FIFO of frames with a non-blocking, drop-newest offer()."""

    def __init__(self, capacity=30):
        if capacity < 1:
            raise ValueError(f"Frame queue capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._queue = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self):
        return self._closed

    def offer(self, frame):
        """Queue a frame without blocking.

        Returns:
            True if accepted, False if dropped (queue full or closed)
        """
        with self._lock:
            if self._closed:
                self.dropped += 1
                return False
            try:
                self._queue.put_nowait(frame)
            except queue.Full:
                self.dropped += 1
                return False
            return True

    def poll(self):
        """Oldest queued frame, or None if there is none."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def close(self):
        """Refuse further frames and discard queued ones. Idempotent."""
        with self._lock:
            self._closed = True
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break

    def __len__(self):
        return self._queue.qsize()
