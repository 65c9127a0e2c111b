"""
Disparity extraction from plane coefficients.
"""

import numpy as np

from .plane_store import ViewState


class DisparityExtractor:
    """Evaluates each pixel's plane at its own coordinates."""

    @staticmethod
    def extract(state: ViewState) -> np.ndarray:
        """
        Args:
            state: Frozen plane state of one view

        Returns:
            np.ndarray: (H, W) float32 disparity map
        """
        height, width = state.shape
        ys, xs = np.mgrid[0:height, 0:width]
        a = state.coefficients[..., 0]
        b = state.coefficients[..., 1]
        c = state.coefficients[..., 2]
        return (a * xs + b * ys + c).astype(np.float32)
