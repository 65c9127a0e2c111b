"""Tests for the PatchMatch optimizer."""

import numpy as np
import pytest

from src_patch_match.matching.cost_model import PlaneCostModel
from src_patch_match.matching.extractor import DisparityExtractor
from src_patch_match.matching.image_adapter import StereoImageAdapter
from src_patch_match.matching.optimizer import (
    OptimizerState, PatchMatchOptimizer, ScanDirection, anti_diagonals
)
from src_patch_match.matching.plane import DisparityPlane, View
from src_patch_match.matching.plane_store import PlaneStore

from .stereo_samples import make_parameters, make_shifted_pair


def build_optimizer(left, right, **overrides):
    parameters = make_parameters(**overrides)
    left_view, right_view = StereoImageAdapter().prepare(left, right)
    store = PlaneStore(PlaneCostModel(left_view, right_view, parameters))
    return PatchMatchOptimizer(store, parameters)


@pytest.fixture(scope="module")
def converged_shift():
    """Optimizer run to completion on a pair with a constant shift of 4."""
    optimizer = build_optimizer(*make_shifted_pair(24, 40, shift=4), niters=3)
    optimizer.run()
    return optimizer


class TestAntiDiagonals:

    @pytest.mark.parametrize("direction", list(ScanDirection))
    def test_every_pixel_visited_once(self, direction):
        visited = [pixel for diagonal in anti_diagonals(5, 7, direction) for pixel in diagonal]
        assert len(visited) == 35
        assert set(visited) == {(x, y) for y in range(5) for x in range(7)}

    @pytest.mark.parametrize("direction", list(ScanDirection))
    def test_neighbours_come_first(self, direction):
        order = {}
        for index, diagonal in enumerate(anti_diagonals(4, 6, direction)):
            for pixel in diagonal:
                order[pixel] = index

        for (x, y), index in order.items():
            for dx, dy in direction.neighbor_offsets:
                neighbour = (x + dx, y + dy)
                if neighbour in order:
                    assert order[neighbour] < index

    def test_direction_alternates(self):
        assert ScanDirection.for_iteration(0) is ScanDirection.FORWARD
        assert ScanDirection.for_iteration(1) is ScanDirection.BACKWARD
        assert ScanDirection.for_iteration(2) is ScanDirection.FORWARD


class TestPatchMatchOptimizer:

    def test_initialize_sets_every_cost(self, shifted_pair):
        optimizer = build_optimizer(*shifted_pair)
        assert optimizer.state is OptimizerState.CREATED

        optimizer.initialize()
        assert optimizer.state is OptimizerState.INITIALIZED
        for view in View:
            costs = optimizer.store.costs(view)
            assert np.all(np.isfinite(costs))
            assert np.all(costs <= optimizer.store.cost_model.max_cost + 1e-9)

    def test_run_converges_and_never_raises_costs(self, shifted_pair):
        optimizer = build_optimizer(*shifted_pair)
        optimizer.run()

        assert optimizer.state is OptimizerState.CONVERGED
        assert optimizer.iterations_completed == 2
        for view in View:
            assert np.all(optimizer.store.costs(view) <= optimizer.initial_costs[view])

    def test_zero_iterations_keeps_initial_planes(self, shifted_pair):
        optimizer = build_optimizer(*shifted_pair)
        optimizer.run(niters=0)
        assert optimizer.state is OptimizerState.CONVERGED
        np.testing.assert_array_equal(optimizer.store.costs(View.LEFT),
                                      optimizer.initial_costs[View.LEFT])

    def test_uniform_images_stay_within_slant_bounds(self, uniform_pair):
        optimizer = build_optimizer(*uniform_pair, max_disparity=3, niters=2)
        optimizer.run()

        for view in View:
            state = optimizer.store.state(view)
            assert np.all(np.isfinite(state.coefficients))
            assert np.all(np.abs(state.coefficients[..., :2]) <= optimizer.parameters.max_slant + 1e-9)

    @pytest.mark.parametrize("seed", range(6))
    def test_uniform_images_settle_on_zero_disparity(self, uniform_pair, seed):
        optimizer = build_optimizer(*uniform_pair, max_disparity=3, niters=4, seed=seed)
        optimizer.run()

        for view in View:
            np.testing.assert_array_equal(optimizer.store.costs(view), 0.0)
            disparity = DisparityExtractor.extract(optimizer.store.state(view))
            assert np.abs(disparity).max() < 0.5

    def test_stored_planes_stay_in_disparity_range(self, converged_shift):
        max_disparity = converged_shift.parameters.max_disparity
        for view in View:
            disparity = DisparityExtractor.extract(converged_shift.store.state(view))
            assert disparity.min() >= -1e-4
            assert disparity.max() <= max_disparity + 1e-4

    def test_spatial_propagation_skips_plane_out_of_range_here(self, shifted_pair):
        optimizer = build_optimizer(*shifted_pair)
        # 0.2 at (4, 3) but -0.3 one pixel to the right
        steep = DisparityPlane.from_slant(4, 3, 0.2, -0.5, 0.0)
        assert optimizer.store.try_set(View.LEFT, 4, 3, steep)

        optimizer.spatial_propagation(View.LEFT, 5, 3, ScanDirection.FORWARD)

        assert optimizer.skipped_candidates == 1
        assert optimizer.store.disparity(View.LEFT, 5, 3) >= 0.0
        plane, _ = optimizer.store.get(View.LEFT, 5, 3)
        assert plane.coefficients[0] == pytest.approx(0.0)

    def test_fronto_parallel_search(self, shifted_pair):
        optimizer = build_optimizer(*shifted_pair, max_slant=0.0, niters=1)
        optimizer.run()
        state = optimizer.store.state(View.LEFT)
        np.testing.assert_allclose(state.coefficients[..., :2], 0.0, atol=1e-12)

    def test_seeded_runs_are_reproducible(self, shifted_pair):
        first = build_optimizer(*shifted_pair, niters=1)
        second = build_optimizer(*shifted_pair, niters=1)
        first.run()
        second.run()
        for view in View:
            np.testing.assert_array_equal(first.store.state(view).coefficients,
                                          second.store.state(view).coefficients)

    def test_statistics_reported(self, shifted_pair):
        optimizer = build_optimizer(*shifted_pair, niters=1)
        optimizer.run()
        stats = optimizer.get_statistics()
        assert stats['iterations_completed'] == 1
        assert stats['cost_evaluations'] > 0
        assert stats['accepted'] + stats['rejected'] == stats['cost_evaluations']
        assert {'initialization', 'spatial_propagation', 'plane_refinement'} <= set(stats['by_phase'])

    def test_recovers_constant_shift(self, converged_shift):
        disparity = DisparityExtractor.extract(converged_shift.store.state(View.LEFT))
        # columns below the shift have no match in the right image
        interior = disparity[3:-3, 8:-3]
        assert np.median(np.abs(interior - 4.0)) < 0.5

    def test_right_view_recovers_constant_shift(self, converged_shift):
        disparity = DisparityExtractor.extract(converged_shift.store.state(View.RIGHT))
        interior = disparity[3:-3, 3:-8]
        assert np.median(np.abs(interior - 4.0)) < 0.5
