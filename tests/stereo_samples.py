"""Synthetic stereo pairs and parameter helpers for the tests."""

import cv2
import numpy as np

from src_patch_match.matching.parameters import PatchMatchParameters


BASE_PARAMETERS = {
    'alpha': 0.9,
    'gamma': 10.0,
    'tau_c': 10.0,
    'tau_g': 2.0,
    'winsize': 2,
    'max_disparity': 8,
    'niters': 2,
    'seed': 7
}


def make_parameters(**overrides) -> PatchMatchParameters:
    values = dict(BASE_PARAMETERS)
    values.update(overrides)
    return PatchMatchParameters(**values)


def make_shifted_pair(height: int, width: int, shift: int, seed: int = 0):
    """
    Textured stereo pair where left pixel x matches right pixel x - shift.

    Returns:
        Tuple[np.ndarray, np.ndarray]: (left, right) uint8 BGR images
    """
    rng = np.random.default_rng(seed)
    wide = rng.integers(0, 256, size=(height, width + shift, 3)).astype(np.uint8)
    wide = cv2.GaussianBlur(wide, (3, 3), 0)
    left = np.ascontiguousarray(wide[:, :width])
    right = np.ascontiguousarray(wide[:, shift:shift + width])
    return left, right


def make_uniform_pair(height: int, width: int, value=(90, 120, 150)):
    image = np.empty((height, width, 3), dtype=np.uint8)
    image[:] = value
    return image.copy(), image.copy()
