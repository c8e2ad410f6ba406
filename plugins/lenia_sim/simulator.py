"""
LeniaSimulator - Headless simulation handle

Ties the engine, rate controller and frame channel together behind the
handle a window/render loop talks to. Updates can be driven two ways:
call update() from an external fixed-timestep loop, or start() the
background ticker thread. Either way every update advances one
generation and offers exactly one frame to the channel, in order.

Usage:
    from lenia_sim.simulator import LeniaSimulator
    sim = LeniaSimulator(200, 150, seed=1)
    sim.start()
    ...
    sim.try_render_into(sink)   # sink.draw_image(frame)
    sim.shutdown()
"""

import threading
import time

from .lenia import Lenia
from .frames import FrameChannel, render_frame
from .presets import LeniaConfig


class _Ticker(threading.Thread):
    """Background thread calling simulator.update() at a fixed rate.

    The wait between ticks is an Event wait, so stop() takes effect
    immediately instead of after the current sleep.
    """

    def __init__(self, simulator, tick_rate):
        super().__init__(daemon=True, name="lenia-ticker")
        self.simulator = simulator
        self.interval = 1.0 / tick_rate
        self._stop_event = threading.Event()

    def run(self):
        print("[Lenia] Background ticker started")
        while not self._stop_event.is_set():
            now = time.perf_counter()
            try:
                if not self.simulator.update():
                    break
            except Exception as e:
                print(f"[Lenia] Background update error: {e}")

            elapsed = time.perf_counter() - now
            self._stop_event.wait(max(0.0, self.interval - elapsed))
        print("[Lenia] Background ticker stopped")

    def stop(self):
        self._stop_event.set()


class LeniaSimulator:
    """Handle over one Lenia field, its update schedule and its frames."""

    def __init__(self, width, height, config=None, seed=None, pattern=None,
                 **pattern_kwargs):
        """
        Args:
            width, height: Grid size in cells
            config: LeniaConfig (defaults if None); validated here
            seed: Int seed (or numpy Generator) for the initial pattern
            pattern: Seed pattern name; config.pattern if None
            **pattern_kwargs: Options for the seed pattern
        """
        self.config = (config or LeniaConfig()).validate()
        cfg = self.config

        self.engine = Lenia(
            width, height,
            kernel_diameter=cfg.kernel_diameter, kernel_decay=cfg.kernel_decay,
            mu=cfg.mu, sigma=cfg.sigma, growth_rate=cfg.growth_rate,
            epsilon=cfg.epsilon, workers=cfg.workers, speed=cfg.speed,
            speed_factor=cfg.speed_factor, min_speed=cfg.min_speed,
        )
        self.rate = self.engine.rate
        self.channel = FrameChannel(cfg.queue_capacity)

        self._update_lock = threading.Lock()
        self._stopped = False
        self._ticker = None

        self.engine.seed(pattern or cfg.pattern, rng=seed, **pattern_kwargs)

    # --- Properties ---

    @property
    def field(self):
        return self.engine.field

    @property
    def width(self):
        return self.engine.field.width

    @property
    def height(self):
        return self.engine.field.height

    @property
    def generation(self):
        return self.engine.generation

    @property
    def speed(self):
        return self.rate.speed

    @property
    def stopped(self):
        return self._stopped

    @property
    def running(self):
        """True while the background ticker is alive."""
        return self._ticker is not None and self._ticker.is_alive()

    @property
    def stats(self):
        stats = self.engine.stats
        stats["speed"] = self.rate.speed
        stats["queued_frames"] = len(self.channel)
        stats["dropped_frames"] = self.channel.dropped
        return stats

    # --- Simulation ---

    def update(self):
        """Advance exactly one generation and offer its frame.

        Returns:
            False if the simulator has been shut down, True otherwise
        """
        with self._update_lock:
            if self._stopped:
                return False
            self.engine.step()
            self._produce()
            return True

    def reset(self, pattern=None, seed=None, **pattern_kwargs):
        """Re-seed the field in place. No-op (False) after shutdown."""
        with self._update_lock:
            if self._stopped:
                return False
            self.engine.seed(pattern or self.config.pattern, rng=seed,
                             **pattern_kwargs)
            return True

    def set_params(self, **params):
        """Change growth/kernel parameters between updates."""
        with self._update_lock:
            self.engine.set_params(**params)

    def increase_speed(self):
        return self.rate.increase_speed()

    def decrease_speed(self):
        return self.rate.decrease_speed()

    # --- Frames ---

    def _produce(self):
        cfg = self.config
        skip = cfg.epsilon if cfg.skip_below_epsilon else None
        with self.field.lock.read_locked():
            frame = render_frame(self.field.current, scale=cfg.cell_scale,
                                 skip_below=skip, colormap=cfg.colormap)
        return self.channel.offer(frame)

    def produce_frame(self):
        """Render the current generation into the channel.

        Returns:
            True if the frame was queued, False if dropped or shut down
        """
        with self._update_lock:
            if self._stopped:
                return False
            return self._produce()

    def try_render_into(self, sink):
        """Hand the oldest queued frame to sink.draw_image(), if any.

        Never blocks. Returns True if a frame was drawn.
        """
        frame = self.channel.poll()
        if frame is None:
            return False
        sink.draw_image(frame)
        return True

    # --- Lifecycle ---

    def start(self):
        """Start the background ticker. Idempotent; False after shutdown."""
        with self._update_lock:
            if self._stopped:
                return False
            if self._ticker is None:
                self._ticker = _Ticker(self, self.config.tick_rate)
                self._ticker.start()
            return True

    def shutdown(self):
        """Stop the ticker, close the frame channel, release workers.

        Safe to call from any thread, any number of times.
        """
        with self._update_lock:
            if self._stopped:
                return
            self._stopped = True
            ticker, self._ticker = self._ticker, None

        if ticker is not None:
            ticker.stop()
            if ticker is not threading.current_thread():
                ticker.join()
        self.channel.close()
        self.engine.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
        return False
