import numpy as np
import pytest

from trufflify.particles import (ParticleSet, ParticleTransport, Placement,
                                 build_assignment, build_target_index,
                                 particle_stride)
from trufflify.utils import ease_out_cubic

from conftest import solid


def test_ease_out_cubic():
    assert ease_out_cubic(0) == 0.0
    assert ease_out_cubic(1) == 1.0
    assert ease_out_cubic(0.5) == pytest.approx(0.875)
    assert ease_out_cubic(-3) == 0.0
    assert ease_out_cubic(7) == 1.0
    ts = np.linspace(0, 1, 50)
    eased = [ease_out_cubic(t) for t in ts]
    assert eased == sorted(eased)


@pytest.mark.parametrize("w, h, budget, expected", [
    (100, 100, 15000, 1),
    (1000, 1000, 15000, 8),
    (400, 300, 15000, 2),
    (10, 10, 2, 7),
])
def test_particle_stride(w, h, budget, expected):
    assert particle_stride(w, h, budget) == expected


def test_placement_fit_centres_each_image():
    p = Placement.fit(100, 50, (800, 800), 0.8)
    assert p.scale == pytest.approx(6.4)
    assert (p.offset_x, p.offset_y) == pytest.approx((80.0, 240.0))

    q = Placement.fit(50, 100, (800, 600), 0.8)
    assert q.scale == pytest.approx(4.8)
    assert 50 * q.scale + 2 * q.offset_x == pytest.approx(800)
    assert 100 * q.scale + 2 * q.offset_y == pytest.approx(600)


def test_target_index_skips_transparent():
    target = solid(3, 2, (9, 9, 9, 255))
    target[0, 1, 3] = 0
    colors, positions = build_target_index(target, Placement(2.0, 1.0, 1.0))
    assert len(colors) == 5
    assert [1.0 + 2.0 * 1, 1.0 + 2.0 * 0] not in positions.tolist()


def test_count_independent_of_randomness(random_grid):
    source = random_grid(40, 30, opaque=False)
    target = random_grid(25, 25)
    counts = {len(build_assignment(source, target, seed=s, budget=300)) for s in range(5)}
    assert len(counts) == 1

    step = particle_stride(40, 30, 300)
    expected = int(np.count_nonzero(source[::step, ::step, 3]))
    assert counts == {expected}


def test_interpolation_endpoints_are_exact(random_grid):
    ps = build_assignment(random_grid(30, 20), random_grid(20, 30), seed=3)
    assert np.array_equal(ps.positions_at(0), ps.start_positions)
    assert np.array_equal(ps.positions_at(1), ps.end_positions)


def test_positions_are_pure_in_t(random_grid):
    ps = build_assignment(random_grid(12, 12), random_grid(12, 12), seed=9)
    a = ps.positions_at(0.37)
    ps.positions_at(0.9)
    ps.positions_at(0.0)
    assert np.array_equal(a, ps.positions_at(0.37))
    assert ps.primitives_at(0.37) == ps.primitives_at(0.37)


def test_colour_stays_fixed(random_grid):
    ps = build_assignment(random_grid(8, 8), random_grid(8, 8), seed=2)
    for t in (0.0, 0.5, 1.0):
        prims = ps.primitives_at(t)
        assert [c for _, _, c in prims] == [tuple(c) for c in ps.start_colors.tolist()]


def test_empty_target_means_no_motion(random_grid):
    target = random_grid(10, 10)
    target[..., 3] = 0
    ps = build_assignment(random_grid(10, 10), target, seed=0)
    assert len(ps) == 100
    assert np.array_equal(ps.end_positions, ps.start_positions)
    assert np.array_equal(ps.positions_at(0.6), ps.start_positions)


def test_single_pixel_scenario():
    source = solid(5, 5, (0, 0, 0, 0))
    source[3, 2] = (10, 200, 30, 255)
    target = solid(4, 4, (0, 0, 0, 0))
    target[2, 1] = (250, 5, 5, 255)

    place = Placement.fit(4, 4)
    expected = place.apply([1], [2])[0]

    exact = build_assignment(source, target, seed=1, jitter=0.0)
    assert len(exact) == 1
    p = exact[0]
    assert p.end_position == tuple(expected)
    assert p.end_color == (250, 5, 5, 255)
    assert p.start_color == (10, 200, 30, 255)
    assert p.start_position == tuple(Placement.fit(5, 5).apply([2], [3])[0])

    jittered = build_assignment(source, target, seed=1)
    assert len(jittered) == 1
    assert np.all(np.abs(jittered.end_positions[0] - expected) <= 0.5 * place.scale)


def test_closest_colour_wins_with_enough_samples():
    source = solid(1, 1, (255, 0, 0, 255))
    target = solid(2, 1, (0, 0, 255, 255))
    target[0, 1] = (250, 0, 0, 255)
    ps = build_assignment(source, target, seed=4, samples=200, jitter=0.0)
    expected = Placement.fit(2, 1).apply([1], [0])[0]
    assert np.array_equal(ps.end_positions[0], expected)


def test_sizes_follow_stride():
    source = solid(200, 200, (1, 2, 3, 255))
    ps = build_assignment(source, solid(10, 10, (0, 0, 0, 255)), seed=0,
                          budget=2500, size_jitter=0.0)
    assert ps.stride == 4
    assert np.allclose(ps.sizes, 4 * Placement.fit(200, 200).scale)


def test_particle_set_is_read_only(random_grid):
    ps = build_assignment(random_grid(6, 6), random_grid(6, 6), seed=0)
    with pytest.raises(ValueError):
        ps.end_positions[0, 0] = 1.0


def test_particle_set_rejects_ragged_columns():
    with pytest.raises(ValueError):
        ParticleSet(np.zeros((3, 2)), np.zeros((3, 4)), np.zeros((2, 2)),
                    np.zeros((3, 4)), np.ones(3))


def test_transport_wraps_assignment(random_grid):
    source, target = random_grid(16, 16), random_grid(16, 16)
    transport = ParticleTransport(source, target, viewport=(400, 300), seed=8)
    same = build_assignment(source, target, (400, 300), seed=8)
    assert len(transport) == len(same) == 256
    assert np.array_equal(transport.positions_at(1), same.end_positions)
