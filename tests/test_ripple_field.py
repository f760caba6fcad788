"""
tests/test_ripple_field.py

Behavior tests for RippleField: pruning, evaluation, averaging and
board writes.
"""

import math
import threading

import numpy as np
import pytest

from board import ActuatorGrid
from contracts import ValidationError
from ripples import RippleField, ripple_contribution, sample_points


def _field(columns: int = 3, rows: int = 3, **kwargs) -> RippleField:
    return RippleField(ActuatorGrid(columns, rows), **kwargs)


class _OfflineSink:
    """Sink whose actuator bus can be taken offline."""

    def __init__(self) -> None:
        self.online = True

    def resize(self, columns: int, rows: int) -> None:
        pass

    def set_position(self, x: int, y: int, value: float) -> None:
        if not self.online:
            raise OSError("actuator bus offline")


# =============================================================================
# Helpers
# =============================================================================


class TestSamplePoints:
    def test_regular_board(self):
        u, v = sample_points(3, 2)
        np.testing.assert_allclose(u, [[0.0, 0.0], [0.5, 0.5], [1.0, 1.0]])
        np.testing.assert_allclose(v, [[0.0, 1.0], [0.0, 1.0], [0.0, 1.0]])

    def test_single_column_maps_to_zero(self):
        u, v = sample_points(1, 3)
        np.testing.assert_array_equal(u, np.zeros((1, 3)))
        np.testing.assert_allclose(v, [[0.0, 0.5, 1.0]])

    def test_single_cell(self):
        u, v = sample_points(1, 1)
        assert u.shape == (1, 1)
        assert u[0, 0] == 0.0 and v[0, 0] == 0.0


class TestRippleContribution:
    def test_parabola(self):
        values = ripple_contribution(np.array([0.0, 0.25, -0.25, 0.5, 0.75]), 0.5)
        np.testing.assert_allclose(values, [1.0, 0.75, 0.75, 0.0, 0.0])

    def test_zero_range_keeps_only_the_front(self):
        values = ripple_contribution(np.array([0.0, 1e-9, -0.3]), 0.0)
        np.testing.assert_array_equal(values, [1.0, 0.0, 0.0])


# =============================================================================
# Tick
# =============================================================================


def test_empty_field_retracts_every_cell() -> None:
    field = _field()
    field.grid.set_all(np.ones((3, 3)))

    field.tick(0.0)

    np.testing.assert_array_equal(field.grid.snapshot(), np.zeros((3, 3)))


def test_reference_scenario_quarter_ring() -> None:
    field = _field(ripple_range=0.5)
    field.spawn((0.0, 0.0), spread_duration=2.0, max_radius=1.0, spawn_time=0.0)

    field.tick(1.0)

    centre = 1.0 - ((math.sqrt(0.5) - 0.5) / 0.5) ** 2
    expected = np.array([
        [0.0, 1.0, 0.0],
        [1.0, centre, 0.0],
        [0.0, 0.0, 0.0],
    ])
    np.testing.assert_allclose(field.grid.snapshot(), expected, atol=1e-12)


def test_point_source_peaks_at_nearest_cell() -> None:
    field = _field(ripple_range=1.0)
    field.spawn((0.5, 0.5), spread_duration=5.0, max_radius=0.0, spawn_time=0.0)

    field.tick(0.0)

    targets = field.grid.snapshot()
    assert targets[1, 1] == 1.0
    assert targets[0, 1] == pytest.approx(0.75)
    assert targets[0, 0] == pytest.approx(0.5)
    assert targets.max() == targets[1, 1]


def test_expiry_is_hard_cutoff() -> None:
    field = _field(ripple_range=1.0)
    field.spawn((0.5, 0.5), spread_duration=5.0, max_radius=0.0, spawn_time=0.0)

    field.tick(4.999)
    assert field.grid.get_target(1, 1) == 1.0
    assert field.source_count == 1

    field.tick(5.0)
    assert field.source_count == 0
    np.testing.assert_array_equal(field.grid.snapshot(), np.zeros((3, 3)))


def test_pruned_sources_leave_the_average() -> None:
    field = _field(ripple_range=1.0)
    field.spawn((1.0, 1.0), spread_duration=5.0, max_radius=0.0, spawn_time=0.0)
    field.spawn((0.0, 0.0), spread_duration=100.0, max_radius=0.0, spawn_time=0.0)

    field.tick(0.0)
    assert field.grid.get_target(0, 0) == pytest.approx(0.5)

    field.tick(5.0)
    assert field.grid.get_target(0, 0) == pytest.approx(1.0)


def test_overlapping_sources_are_averaged() -> None:
    field = _field(ripple_range=1.0)
    field.spawn((0.0, 0.0), spread_duration=10.0, max_radius=0.0, spawn_time=0.0)
    field.spawn((1.0, 1.0), spread_duration=10.0, max_radius=0.0, spawn_time=0.0)

    field.tick(0.0)

    targets = field.grid.snapshot()
    assert targets[0, 0] == pytest.approx(0.5)
    assert targets[2, 2] == pytest.approx(0.5)
    assert targets[1, 1] == pytest.approx(0.5)
    assert targets[2, 0] == 0.0


def test_output_independent_of_insertion_order() -> None:
    rng = np.random.default_rng(3)
    params = [
        (tuple(rng.uniform(0.0, 1.0, 2)), float(rng.uniform(1.0, 5.0)), float(rng.uniform(0.0, 2.0)))
        for _ in range(12)
    ]

    forward = _field(7, 5, ripple_range=0.3)
    backward = _field(7, 5, ripple_range=0.3)
    for origin, duration, radius in params:
        forward.spawn(origin, duration, radius, spawn_time=0.0)
    for origin, duration, radius in reversed(params):
        backward.spawn(origin, duration, radius, spawn_time=0.0)

    forward.tick(0.7)
    backward.tick(0.7)

    np.testing.assert_array_equal(forward.grid.snapshot(), backward.grid.snapshot())


def test_1x1_board() -> None:
    field = _field(1, 1)
    field.tick(0.0)
    assert field.grid.get_target(0, 0) == 0.0

    field.spawn((0.0, 0.0), spread_duration=1.0, max_radius=0.0)
    field.tick(0.0)
    assert field.grid.get_target(0, 0) == 1.0


def test_single_row_board_uses_zero_row_coordinate() -> None:
    field = _field(3, 1, ripple_range=0.5)
    field.spawn((0.5, 0.0), spread_duration=1.0, max_radius=0.0, spawn_time=0.0)

    field.tick(0.0)

    np.testing.assert_allclose(field.grid.snapshot(), [[0.0], [1.0], [0.0]])


def test_tick_follows_grid_resize() -> None:
    field = _field()
    field.grid.resize(4, 2)
    field.spawn((0.0, 0.0), spread_duration=1.0, max_radius=0.0, spawn_time=0.0)

    field.tick(0.0)

    assert field.grid.snapshot().shape == (4, 2)
    assert field.grid.get_target(0, 0) == 1.0


def test_tick_on_destroyed_grid_still_prunes() -> None:
    field = _field()
    field.spawn((0.5, 0.5), spread_duration=1.0, max_radius=0.0, spawn_time=0.0)
    field.grid.destroy()

    field.tick(2.0)

    assert field.source_count == 0


def test_tick_with_failing_sink_keeps_previous_board() -> None:
    sink = _OfflineSink()
    field = RippleField(ActuatorGrid(3, 3, sinks=[sink]), ripple_range=1.0)
    field.spawn((0.5, 0.5), spread_duration=5.0, max_radius=0.0, spawn_time=0.0)
    field.tick(0.0)
    before = field.grid.snapshot()
    assert before[1, 1] == 1.0

    sink.online = False
    field.tick(5.0)

    assert field.source_count == 0
    np.testing.assert_array_equal(field.grid.snapshot(), before)

    sink.online = True
    field.tick(5.1)
    np.testing.assert_array_equal(field.grid.snapshot(), np.zeros((3, 3)))


def test_source_count_while_spawning() -> None:
    field = _field()
    seen = []

    def producer() -> None:
        for _ in range(100):
            field.spawn((0.5, 0.5), spread_duration=10.0, max_radius=0.5, spawn_time=0.0)

    thread = threading.Thread(target=producer)
    thread.start()
    while thread.is_alive():
        seen.append(field.source_count)
    thread.join()

    assert seen == sorted(seen)
    assert field.source_count == 100


def test_zero_duration_never_produces_nan() -> None:
    field = _field()
    field.spawn((0.5, 0.5), spread_duration=0.0, max_radius=1.0, spawn_time=0.0)

    field.tick(0.0)

    assert field.source_count == 0
    targets = field.grid.snapshot()
    assert np.all(np.isfinite(targets))
    np.testing.assert_array_equal(targets, np.zeros((3, 3)))


def test_zero_ripple_range() -> None:
    field = _field(ripple_range=0.0)
    field.spawn((0.0, 0.0), spread_duration=1.0, max_radius=0.0, spawn_time=0.0)

    field.tick(0.0)

    expected = np.zeros((3, 3))
    expected[0, 0] = 1.0
    np.testing.assert_array_equal(field.grid.snapshot(), expected)


# =============================================================================
# Clock and spread clamping
# =============================================================================


def test_rewound_clock_unclamped_vs_clamped() -> None:
    for clamp, expected in ((False, 0.0), (True, 1.0)):
        field = _field(ripple_range=0.5, clamp_spread=clamp)
        field.spawn((0.0, 0.0), spread_duration=2.0, max_radius=1.0, spawn_time=10.0)

        # Fraction -0.5: unclamped radius -0.5 puts the corner 0.5 off the front.
        field.tick(9.0)

        assert field.grid.get_target(0, 0) == pytest.approx(expected)


def test_spawn_uses_field_time_by_default() -> None:
    field = _field(initial_time=1.5)
    assert field.spawn((0.5, 0.5), 1.0, 0.0).spawn_time == 1.5

    field.tick(3.0)
    assert field.time == 3.0
    assert field.spawn((0.5, 0.5), 1.0, 0.0).spawn_time == 3.0


def test_spawn_reads_injected_clock() -> None:
    field = RippleField(ActuatorGrid(), clock=lambda: 7.5)
    assert field.spawn((0.5, 0.5), 1.0, 0.0).spawn_time == 7.5
    assert field.spawn((0.5, 0.5), 1.0, 0.0, spawn_time=2.0).spawn_time == 2.0


def test_spawn_does_not_clamp_origin() -> None:
    field = _field()
    source = field.spawn((-0.5, 2.0), 1.0, 0.5)
    assert source.origin == (-0.5, 2.0)
    assert field.sources == (source,)


# =============================================================================
# Evaluation without writes
# =============================================================================


def test_evaluate_at_matches_grid_without_pruning() -> None:
    field = _field(ripple_range=0.5)
    field.spawn((0.0, 0.0), spread_duration=2.0, max_radius=1.0, spawn_time=0.0)

    assert field.evaluate_at((0.5, 0.0), 1.0) == pytest.approx(1.0)
    assert field.evaluate_at((0.0, 0.0), 1.0) == 0.0

    # Expired sources are ignored but stay until the next tick.
    assert field.evaluate_at((0.5, 0.0), 2.0) == 0.0
    assert field.source_count == 1


def test_evaluate_does_not_touch_grid() -> None:
    field = _field(ripple_range=0.5)
    field.spawn((0.0, 0.0), spread_duration=2.0, max_radius=1.0, spawn_time=0.0)

    values = field.evaluate(3, 3, 1.0)

    assert values[1, 0] == pytest.approx(1.0)
    np.testing.assert_array_equal(field.grid.snapshot(), np.zeros((3, 3)))


def test_prune_and_clear() -> None:
    field = _field()
    field.spawn((0.5, 0.5), spread_duration=1.0, max_radius=0.0, spawn_time=0.0)
    field.spawn((0.5, 0.5), spread_duration=3.0, max_radius=0.0, spawn_time=0.0)

    assert field.prune(2.0) == 1
    assert field.source_count == 1

    field.clear()
    assert field.source_count == 0


def test_ripple_range_validation() -> None:
    with pytest.raises(ValidationError):
        _field(ripple_range=-0.1)

    field = _field()
    field.ripple_range = 0.25
    assert field.ripple_range == 0.25
    with pytest.raises(ValidationError):
        field.ripple_range = float("nan")


def test_concurrent_spawn_while_ticking() -> None:
    field = _field(5, 5)
    n_threads, per_thread = 4, 50

    def producer() -> None:
        for _ in range(per_thread):
            field.spawn((0.5, 0.5), spread_duration=100.0, max_radius=0.5, spawn_time=0.0)

    threads = [threading.Thread(target=producer) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for i in range(20):
        field.tick(0.01 * i)
    for t in threads:
        t.join()

    field.tick(0.5)
    assert field.source_count == n_threads * per_thread
    assert np.all(np.isfinite(field.grid.snapshot()))
