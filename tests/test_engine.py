"""End-to-end tests for the PatchMatch stereo engine and disparity extraction."""

import numpy as np
import pytest

from src_patch_match.matching import (
    DisparityExtractor, OcclusionLabel, PatchMatchStereo, View, ViewState
)
from utils.exceptions import ShapeMismatchError

from .stereo_samples import make_parameters, make_shifted_pair, make_uniform_pair


@pytest.fixture(scope="module")
def engine_result():
    engine = PatchMatchStereo(make_parameters(niters=2))
    result = engine.compute(*make_shifted_pair(16, 24, shift=3))
    return engine, result


class TestDisparityExtractor:

    def test_evaluates_each_plane_at_its_pixel(self):
        coefficients = np.zeros((2, 3, 3))
        coefficients[..., 0] = 0.5
        coefficients[..., 1] = -1.0
        coefficients[..., 2] = 4.0
        state = ViewState(coefficients=coefficients,
                          normals=np.tile([0.0, 0.0, 1.0], (2, 3, 1)),
                          costs=np.zeros((2, 3)))

        disparity = DisparityExtractor.extract(state)
        assert disparity.dtype == np.float32
        np.testing.assert_allclose(disparity, [[4.0, 4.5, 5.0], [3.0, 3.5, 4.0]])


class TestPatchMatchStereo:

    @pytest.mark.parametrize("seed", range(6))
    def test_uniform_pair_gives_zero_disparity(self, seed):
        engine = PatchMatchStereo(make_parameters(max_disparity=3, niters=4, seed=seed))
        result = engine.compute(*make_uniform_pair(4, 4))

        assert np.abs(result.left_disparity).max() < 0.5
        assert np.abs(result.right_disparity).max() < 0.5
        assert np.all(result.left_labels == OcclusionLabel.VALID.value)

    def test_outputs_have_image_shape(self, engine_result):
        _, result = engine_result
        for array in (result.left_disparity, result.right_disparity,
                      result.left_raw_disparity, result.right_raw_disparity,
                      result.left_labels, result.right_labels,
                      result.left_costs, result.right_costs):
            assert array.shape == (16, 24)
        assert result.left_disparity.dtype == np.float32
        assert result.left_labels.dtype == np.uint8

    def test_final_maps_complete(self, engine_result):
        _, result = engine_result
        for disparity in (result.left_disparity, result.right_disparity):
            assert np.all(np.isfinite(disparity))

    def test_raw_maps_follow_stored_planes(self, engine_result):
        engine, result = engine_result
        for view, raw in ((View.LEFT, result.left_raw_disparity),
                          (View.RIGHT, result.right_raw_disparity)):
            for x, y in ((0, 0), (12, 8), (23, 15)):
                assert raw[y, x] == pytest.approx(engine.store.disparity(view, x, y), abs=1e-4)

    def test_labels_use_known_values(self, engine_result):
        _, result = engine_result
        labels = set(np.unique(result.left_labels).tolist())
        assert labels <= {label.value for label in OcclusionLabel}
        assert np.any(result.left_labels == OcclusionLabel.VALID)

    def test_statistics_collected(self, engine_result):
        _, result = engine_result
        stats = result.statistics
        assert stats['iterations_completed'] == 2
        assert stats['elapsed_seconds'] >= 0.0
        assert set(stats['labels']) == {'left', 'right'}

    def test_mismatched_images_rejected(self):
        engine = PatchMatchStereo(make_parameters())
        left = np.zeros((8, 10, 3), dtype=np.uint8)
        right = np.zeros((8, 12, 3), dtype=np.uint8)
        with pytest.raises(ShapeMismatchError):
            engine.compute(left, right)

    def test_configuration_info(self):
        info = PatchMatchStereo(make_parameters()).get_configuration_info()
        assert info['configured'] is True
        assert info['parameters']['winsize'] == 2
