"""Tests for the disparity plane representation."""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from src_patch_match.matching.plane import DisparityPlane, View


coordinates = st.integers(min_value=0, max_value=500)
disparities = st.floats(min_value=0.0, max_value=200.0, allow_nan=False)
slants = st.floats(min_value=-2.0, max_value=2.0, allow_nan=False)


class TestDisparityPlane:

    @given(coordinates, coordinates, disparities, slants, slants)
    @settings(max_examples=100)
    def test_plane_reproduces_its_own_disparity(self, x, y, z, a, b):
        plane = DisparityPlane.from_slant(x, y, z, a, b)
        assert plane.disparity(x, y) == pytest.approx(z, abs=1e-6)
        assert plane.coefficients[0] == pytest.approx(a, abs=1e-9)
        assert plane.coefficients[1] == pytest.approx(b, abs=1e-9)

    @given(coordinates, coordinates, disparities, slants, slants, coordinates, coordinates)
    @settings(max_examples=50)
    def test_reanchoring_keeps_the_plane(self, x, y, z, a, b, u, v):
        plane = DisparityPlane.from_slant(x, y, z, a, b)
        rebuilt = DisparityPlane.from_coefficients(plane.coefficients, plane.normal, u, v)
        assert rebuilt.disparity(x, y) == pytest.approx(z, abs=1e-6)
        np.testing.assert_allclose(rebuilt.coefficients, plane.coefficients, atol=1e-6)

    def test_normal_is_unit_and_oriented(self):
        plane = DisparityPlane((3, 4, 5.0), (0.0, 0.0, -2.0))
        np.testing.assert_allclose(plane.normal, [0.0, 0.0, 1.0])
        assert plane.disparity(10, 10) == pytest.approx(5.0)

    def test_degenerate_normals_rejected(self):
        with pytest.raises(ValueError):
            DisparityPlane((0, 0, 1.0), (0.0, 0.0, 0.0))
        with pytest.raises(ValueError):
            DisparityPlane((0, 0, 1.0), (1.0, 0.0, 0.0))

    def test_plane_is_immutable(self):
        plane = DisparityPlane.from_slant(1, 1, 2.0, 0.1, 0.0)
        with pytest.raises(ValueError):
            plane.coefficients[0] = 3.0

    def test_evaluates_arrays(self):
        plane = DisparityPlane.from_slant(0, 0, 2.0, 0.5, -0.25)
        xs = np.array([0, 2, 4])
        ys = np.array([0, 4, 8])
        np.testing.assert_allclose(plane.disparity(xs, ys), [2.0, 2.0, 2.0])

    def test_view_transform_moves_along_the_row(self):
        plane = DisparityPlane.from_slant(10, 3, 4.0, 0.0, 0.0)

        transformed, qx, qy = plane.view_transform(10, 3, View.LEFT.sign)
        assert (qx, qy) == (6, 3)
        assert transformed.disparity(qx, qy) == pytest.approx(4.0)
        np.testing.assert_allclose(transformed.normal, plane.normal)

        _, qx, qy = plane.view_transform(10, 3, View.RIGHT.sign)
        assert (qx, qy) == (14, 3)


class TestView:

    def test_sign_and_opposite(self):
        assert View.LEFT.sign == -1
        assert View.RIGHT.sign == 1
        assert View.LEFT.opposite is View.RIGHT
        assert View.RIGHT.opposite is View.LEFT
