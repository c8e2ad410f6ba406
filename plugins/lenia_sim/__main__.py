"""
Lenia Viewer - Entry Point

Usage:
    python -m lenia_sim [preset] [--size WxH] [--scale N] [--seed N]
                        [--ticker] [--snap N] [--list]

Examples:
    python -m lenia_sim
    python -m lenia_sim bloom
    python -m lenia_sim halo --size 160x120 --scale 5
    python -m lenia_sim classic --seed 7 --snap 300

Use --list to see all available presets.
"""

import os
import sys

from .presets import PRESET_ORDER, LeniaConfig, list_presets


class _LastFrameSink:
    """Sink that keeps only the most recent frame."""

    def __init__(self):
        self.frame = None

    def draw_image(self, frame):
        self.frame = frame


def snap(preset, width, height, steps, scale=None, seed=None):
    """Headless mode: run N updates, save the last frame as PNG, exit."""
    from PIL import Image
    from .simulator import LeniaSimulator

    overrides = {"cell_scale": scale} if scale else {}
    config = LeniaConfig.from_preset(preset, **overrides)
    sink = _LastFrameSink()

    print(f"  {preset}: running {steps} steps...", end="", flush=True)
    with LeniaSimulator(width, height, config=config, seed=seed) as sim:
        for _ in range(steps):
            sim.update()
            sim.try_render_into(sink)
        stats = sim.stats

    screenshots_dir = os.path.join(os.getcwd(), "screenshots")
    os.makedirs(screenshots_dir, exist_ok=True)
    path = os.path.join(screenshots_dir, f"lenia_{preset}.png")
    Image.fromarray(sink.frame).save(path)
    print(f" saved: {path}  (mass {stats['mass']:.1f}, "
          f"alive {stats['alive_pct']:.1f}%)")


def main():
    preset = "classic"
    width, height = 200, 150
    scale = None
    seed = None
    use_ticker = False
    snap_steps = 0

    args = sys.argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--size" and i + 1 < len(args):
            parts = args[i + 1].split("x")
            width, height = int(parts[0]), int(parts[1])
            i += 2
        elif arg == "--scale" and i + 1 < len(args):
            scale = int(args[i + 1])
            i += 2
        elif arg == "--seed" and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--ticker":
            use_ticker = True
            i += 1
        elif arg == "--list":
            print("\nAvailable presets:\n")
            for key, name, desc in list_presets():
                print(f"    {key:12s} {name:12s} {desc}")
            print()
            return
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        elif arg in PRESET_ORDER:
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print(f"Use --list to see available presets")
            return

    if snap_steps > 0:
        print(f"Headless snap mode: {preset} @ {width}x{height}, {snap_steps} steps")
        snap(preset, width, height, snap_steps, scale=scale, seed=seed)
        return

    from .viewer import Viewer

    print(f"Starting Lenia Viewer")
    print(f"  Preset: {preset}")
    print(f"  Grid: {width}x{height}")
    print(f"  Updates: {'background ticker' if use_ticker else 'fixed timestep'}")
    print()

    viewer = Viewer(width=width, height=height, preset=preset, scale=scale,
                    seed=seed, use_ticker=use_ticker)
    viewer.run()


if __name__ == "__main__":
    main()
