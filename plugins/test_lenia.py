#!/usr/bin/env python3
"""
Tests for the Lenia simulation core.

Verifies:
1. Kernel normalization, symmetry and configuration errors
2. Toroidal wrapping of field reads and the neighborhood sum
3. Clamping and epsilon snapping of the update
4. Parallel determinism (1 worker vs N workers)
5. Buffer swap atomicity under concurrent readers
6. Hand-computed 8x8 end-to-end scenario
7. Seeding reproducibility and reset mass
8. Parameter and prebuilt-kernel validation leave the engine unchanged
"""

import math
import threading

import numpy as np
import pytest

from lenia_sim.kernel import build_kernel, box_kernel
from lenia_sim.field import Field
from lenia_sim.lenia import Lenia


def test_kernel_normalization():
    """Weights sum to 1 for any diameter/decay."""
    for d in (1, 3, 7, 21, 31):
        for decay in (0.5, 5.0, 20.0, 200.0):
            K = build_kernel(d, decay)
            assert K.shape == (d, d)
            assert abs(K.sum() - 1.0) < 1e-9, f"d={d} decay={decay}: {K.sum()}"
            assert (K >= 0).all()


def test_kernel_symmetry_and_peak():
    K = build_kernel(21, 20.0)
    assert np.allclose(K, K.T)
    assert np.allclose(K, K[::-1, :])
    assert np.allclose(K, K[:, ::-1])
    assert K[10, 10] == K.max(), "Weight should peak at the center"
    # exp(-1/decay) ratio between center and a direct neighbor
    assert K[10, 11] / K[10, 10] == pytest.approx(math.exp(-1 / 20.0))


def test_kernel_is_read_only():
    K = build_kernel(5, 3.0)
    with pytest.raises(ValueError):
        K[0, 0] = 1.0


@pytest.mark.parametrize("diameter", [0, -3, 2, 20, 3.0])
def test_kernel_rejects_bad_diameter(diameter):
    with pytest.raises(ValueError):
        build_kernel(diameter, 20.0)
    with pytest.raises(ValueError):
        box_kernel(diameter)


def test_kernel_rejects_bad_decay():
    with pytest.raises(ValueError):
        build_kernel(5, 0.0)


def test_box_kernel_uniform():
    K = box_kernel(3)
    assert (K == 1.0 / 9.0).all()


def test_field_rejects_bad_size():
    for w, h in ((0, 8), (8, 0), (-1, 4)):
        with pytest.raises(ValueError):
            Field(w, h)


def test_field_wrap_and_read():
    field = Field(8, 6)
    field.current[5, 7] = 0.75
    for x in range(-20, 20):
        assert field.wrap(x + 8, 0) == field.wrap(x, 0)
    for y in range(-20, 20):
        assert field.wrap(0, y + 6) == field.wrap(0, y)
    assert field.read(7, 5) == 0.75
    assert field.read(-1, -1) == 0.75
    assert field.read(15, 11) == 0.75
    assert field.read(0, 0) == 0.0


def test_neighborhood_wraps_around_corner():
    """Cell (0, 0) sees the opposite corner through the torus."""
    engine = Lenia(8, 8, kernel=box_kernel(3), workers=1)
    engine.field.current[7, 7] = 1.0
    U = engine.neighborhood()
    assert U[0, 0] == pytest.approx(1.0 / 9.0)
    assert U[7, 0] == pytest.approx(1.0 / 9.0)
    assert U[0, 7] == pytest.approx(1.0 / 9.0)
    assert U[3, 3] == 0.0
    engine.close()


def test_end_to_end_single_cell():
    """8x8 field, one live cell, 3x3 box kernel, one hand-computed update."""
    mu, sigma, rate = 0.1, 0.05, 0.05
    engine = Lenia(8, 8, kernel=box_kernel(3), mu=mu, sigma=sigma,
                   growth_rate=rate, workers=4)
    engine.field.current[4, 4] = 1.0

    U = engine.neighborhood()
    for y in range(8):
        for x in range(8):
            expected = 1.0 / 9.0 if abs(x - 4) <= 1 and abs(y - 4) <= 1 else 0.0
            assert U[y, x] == pytest.approx(expected, abs=1e-15), (x, y)

    beta = 1.0 / (sigma * math.sqrt(2 * math.pi))

    def expected_next(value, u):
        g = beta * math.exp(-(u - mu) ** 2 / (2 * sigma ** 2))
        v = min(1.0, max(0.0, value + rate * (2 * g - 1)))
        return 0.0 if v < 1e-5 else v

    engine.step()
    world = engine.world
    assert engine.generation == 1
    for y in range(8):
        for x in range(8):
            near = abs(x - 4) <= 1 and abs(y - 4) <= 1
            value = 1.0 if (x, y) == (4, 4) else 0.0
            u = 1.0 / 9.0 if near else 0.0
            assert world[y, x] == pytest.approx(expected_next(value, u)), (x, y)
    assert world[4, 4] == 1.0, "Center should clamp at 1"
    engine.close()


def test_values_stay_clamped():
    """Any field, any number of passes: every value in [0, 1]."""
    rng = np.random.default_rng(3)
    for mu, sigma in ((0.05, 0.01), (0.3, 0.05), (0.5, 0.2)):
        engine = Lenia(24, 16, kernel_diameter=7, kernel_decay=6.0,
                       mu=mu, sigma=sigma, growth_rate=0.2, workers=3)
        engine.field.current[:] = rng.random((16, 24))
        for _ in range(15):
            world = engine.step()
            assert world.min() >= 0.0
            assert world.max() <= 1.0
        engine.close()


def test_epsilon_snapping():
    """A value that would land just above zero snaps to exactly 0."""
    engine = Lenia(6, 6, kernel=box_kernel(3), mu=0.9, sigma=0.01,
                   growth_rate=0.05, epsilon=1e-5, workers=2)
    engine.field.current[:] = 0.05 + 5e-6
    engine.step()
    assert (engine.world == 0.0).all()
    engine.close()


def test_no_residuals_below_epsilon():
    engine = Lenia(32, 32, kernel_diameter=9, kernel_decay=10.0, workers=4)
    engine.seed("blobs", rng=11, radius=4)
    for _ in range(10):
        world = engine.step()
        residual = (world > 0) & (world < engine.epsilon)
        assert not residual.any()
    engine.close()


def test_parallel_determinism():
    """Same input field: 1 worker and N workers give identical output."""
    results = []
    for workers in (1, 3, 8):
        engine = Lenia(40, 30, kernel_diameter=7, kernel_decay=8.0,
                       mu=0.15, sigma=0.03, workers=workers)
        engine.seed("blobs", rng=42, radius=5)
        engine.step_n(5)
        results.append(engine.world.copy())
        engine.close()
    assert np.array_equal(results[0], results[1])
    assert np.array_equal(results[0], results[2])


def test_workers_clamped_to_rows():
    engine = Lenia(10, 3, kernel=box_kernel(3), workers=8)
    assert engine.workers == 3
    engine.step()
    engine.close()


def test_swap_is_atomic_for_readers():
    """A uniform field stays uniform each pass; a torn read would not be."""
    engine = Lenia(32, 32, kernel=box_kernel(3), mu=0.05, sigma=0.01,
                   growth_rate=0.02, workers=4)
    engine.field.current[:] = 0.5
    done = threading.Event()
    torn = []

    def reader():
        while not done.is_set():
            snap = engine.field.snapshot()
            if np.unique(snap).size != 1:
                torn.append(snap)

    t = threading.Thread(target=reader)
    t.start()
    try:
        for _ in range(20):
            engine.step()
    finally:
        done.set()
        t.join()
    engine.close()

    assert not torn, "Reader saw a mix of two generations"
    assert engine.world[0, 0] < 0.5


def test_seed_reproducible():
    a, b = Field(50, 40), Field(50, 40)
    for pattern in ("blobs", "ring", "wave"):
        a.seed(pattern, rng=123)
        b.seed(pattern, rng=123)
        assert np.array_equal(a.current, b.current), pattern
        assert a.current.min() >= 0.0 and a.current.max() <= 1.0


def test_seed_blobs_values():
    field = Field(60, 60)
    field.seed("blobs", rng=5)
    live = field.current[field.current > 0]
    assert live.size > 0
    assert live.min() >= 0.5 and live.max() < 1.0
    assert (field.next == 0).all()


def test_seed_single_cell():
    field = Field(8, 8)
    field.seed("cell", x=4, y=4)
    assert field.read(4, 4) == 1.0
    assert field.mass() == 1.0


def test_seed_unknown_pattern():
    with pytest.raises(ValueError):
        Field(8, 8).seed("glider")


def test_reset_mass_matches_seeded_area():
    """After reseeding, the only mass is the disk that was stamped."""
    radius, value = 3, 0.7
    area = sum(1 for dy in range(-radius, radius + 1)
               for dx in range(-radius, radius + 1)
               if dx * dx + dy * dy <= radius * radius)

    engine = Lenia(20, 20, kernel_diameter=5, kernel_decay=4.0, workers=2)
    engine.seed("blobs", rng=1)
    engine.step_n(3)
    engine.seed("disk", radius=radius, value=value, center=(0, 0))

    assert engine.generation == 0
    assert engine.field.mass() == pytest.approx(area * value)
    assert (engine.world > 0).sum() == area
    # Disk at the corner wraps onto all four corners
    assert engine.field.read(-1, -1) == value
    assert engine.field.read(10, 10) == 0.0
    engine.close()


def test_set_params_rebuilds_kernel():
    engine = Lenia(16, 16, kernel_diameter=5, workers=1)
    engine.set_params(kernel_diameter=9, mu=0.2)
    assert engine.kernel.shape == (9, 9)
    assert engine.get_params()["mu"] == 0.2
    with pytest.raises(ValueError):
        engine.set_params(sigma=0.0)
    engine.close()


def test_set_params_rejects_bad_diameter_without_side_effects():
    engine = Lenia(16, 16, kernel_diameter=5, kernel_decay=4.0, workers=1)
    before = engine.kernel
    with pytest.raises(ValueError):
        engine.set_params(kernel_diameter=4, mu=0.3)
    params = engine.get_params()
    assert params["kernel_diameter"] == 5
    assert params["mu"] == 0.05, "Rejected call must not apply other params"
    assert engine.kernel is before
    # Later unrelated changes still work against the old diameter
    engine.set_params(kernel_decay=3.0)
    assert engine.kernel.shape == (5, 5)
    assert engine.get_params()["kernel_decay"] == 3.0
    engine.close()


def test_set_params_rejects_non_positive_growth_rate():
    engine = Lenia(8, 8, kernel_diameter=3, workers=1)
    for bad in (0.0, -0.05):
        with pytest.raises(ValueError):
            engine.set_params(growth_rate=bad)
    assert engine.get_params()["growth_rate"] == 0.05
    with pytest.raises(ValueError):
        Lenia(8, 8, kernel_diameter=3, growth_rate=0.0)
    engine.close()


@pytest.mark.parametrize("kernel", [
    np.full((4, 4), 1 / 16),                     # even size
    np.full((3, 5), 1 / 15),                     # not square
    np.full(9, 1 / 9),                           # not 2-D
    np.array([[0.5, 0.0, 0.0],
              [0.0, 1.0, 0.0],
              [0.0, 0.0, -0.5]]),                # negative weight
    np.full((3, 3), 1 / 3),                      # sums to 3
    np.full((3, 3), np.nan),                     # not finite
])
def test_prebuilt_kernel_is_validated(kernel):
    with pytest.raises(ValueError):
        Lenia(8, 8, kernel=kernel, workers=1)


def test_prebuilt_kernel_is_copied_read_only():
    K = np.full((3, 3), 1 / 9)
    engine = Lenia(8, 8, kernel=K, workers=1)
    assert engine.kernel_diameter == 3
    assert not engine.kernel.flags.writeable
    K[1, 1] = 0.0
    assert engine.kernel[1, 1] == pytest.approx(1 / 9)
    engine.close()


def _naive_potential(values, kernel):
    h, w = values.shape
    half = kernel.shape[0] // 2
    U = np.zeros_like(values)
    for y in range(h):
        for x in range(w):
            total = 0.0
            for ky in range(kernel.shape[0]):
                for kx in range(kernel.shape[1]):
                    total += kernel[ky, kx] * values[(y + ky - half) % h,
                                                     (x + kx - half) % w]
            U[y, x] = total
    return U


@pytest.mark.parametrize("width,height,diameter", [
    (9, 6, 3),
    (10, 7, 5),
    (4, 5, 7),   # kernel wider than the grid wraps more than once
    (3, 3, 9),
])
def test_neighborhood_matches_direct_sum(width, height, diameter):
    rng = np.random.default_rng(width * 100 + diameter)
    engine = Lenia(width, height, kernel_diameter=diameter, kernel_decay=3.0,
                   workers=3)
    engine.field.current[:] = rng.random((height, width))
    expected = _naive_potential(engine.field.snapshot(), engine.kernel)
    assert np.allclose(engine.neighborhood(), expected, rtol=0, atol=1e-12)
    engine.close()


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
