"""
Adaptive support-weight matching cost for slanted disparity planes.

The cost of a plane at pixel p is the weighted mean, over a square window
around p, of a truncated colour difference and a truncated gradient
difference between the reference view and the opposite view sampled at
the plane's disparity. Weights favour window pixels whose colour is close
to p's colour, so support comes mostly from the same surface.
"""

import functools
from typing import NamedTuple, Tuple

import numpy as np

from .image_adapter import ViewImage
from .parameters import PatchMatchParameters
from .plane import DisparityPlane, View
from utils.logger_config import get_logger

logger = get_logger(__name__)


class SupportWindow(NamedTuple):
    """Pixels of one clipped support window with their precomputed weights."""

    xs: np.ndarray          # (n,) column indices
    ys: np.ndarray          # (n,) row indices
    weights: np.ndarray     # (n,) adaptive support weights
    color: np.ndarray       # (n, 3) reference colours
    gradient: np.ndarray    # (n, 2) reference gradients
    total_weight: float


class PlaneCostModel:
    """
    Evaluates the matching cost of a candidate plane at a pixel.

    Every evaluation is total: samples falling outside the opposite image
    or outside ``[0, max_disparity]`` contribute the maximum truncated cost
    instead of failing.
    """

    def __init__(self, left_view: ViewImage, right_view: ViewImage,
                 parameters: PatchMatchParameters, window_cache_size: int = 8192):
        """
        Args:
            left_view: Left colour/gradient view
            right_view: Right colour/gradient view
            parameters: Matching parameters
            window_cache_size: Number of support windows kept in memory
        """
        self.views = (left_view, right_view)
        self.parameters = parameters
        self.height = left_view.height
        self.width = left_view.width
        self.max_cost = parameters.max_cost
        self.evaluations = 0

        self._support_window = functools.lru_cache(maxsize=window_cache_size)(self._build_window)

        logger.debug(f"Cost model ready: window={parameters.window_size}, "
                     f"alpha={parameters.alpha}, gamma={parameters.gamma}, "
                     f"tau_c={parameters.tau_c}, tau_g={parameters.tau_g}")

    def support_window(self, view: View, x: int, y: int) -> SupportWindow:
        """Return the cached support window of pixel (x, y) in ``view``."""
        return self._support_window(View(view), int(x), int(y))

    def _build_window(self, view: View, x: int, y: int) -> SupportWindow:
        ws = self.parameters.winsize
        y0, y1 = max(0, y - ws), min(self.height, y + ws + 1)
        x0, x1 = max(0, x - ws), min(self.width, x + ws + 1)

        ys, xs = np.mgrid[y0:y1, x0:x1]
        ys = ys.ravel()
        xs = xs.ravel()

        image = self.views[view]
        color = image.color[ys, xs]
        gradient = image.gradient[ys, xs]

        center = image.color[y, x]
        weights = np.exp(-np.abs(color - center).sum(axis=1) / self.parameters.gamma)

        return SupportWindow(xs, ys, weights, color, gradient, float(weights.sum()))

    def cost(self, view: View, x: int, y: int, plane: DisparityPlane) -> float:
        """
        Aggregated matching cost of ``plane`` at pixel (x, y) of ``view``.

        Args:
            view: Reference view
            x, y: Pixel coordinates in the reference view
            plane: Candidate disparity plane

        Returns:
            float: Weighted mean cost in ``[0, max_cost]``
        """
        view = View(view)
        window = self.support_window(view, x, y)
        self.evaluations += 1

        disparities = plane.disparity(window.xs, window.ys)
        match_x = window.xs + view.sign * disparities

        valid = ((disparities >= 0.0) & (disparities <= self.parameters.max_disparity)
                 & (match_x >= 0.0) & (match_x < self.width))

        costs = np.full(window.xs.shape[0], self.max_cost, dtype=np.float64)
        if np.any(valid):
            color, gradient = self._sample_opposite(view.opposite, match_x[valid], window.ys[valid])
            costs[valid] = self.dissimilarity(
                window.color[valid], color, window.gradient[valid], gradient
            )

        return float(np.dot(window.weights, costs) / window.total_weight)

    def dissimilarity(self, color_p: np.ndarray, color_q: np.ndarray,
                      gradient_p: np.ndarray, gradient_q: np.ndarray) -> np.ndarray:
        """Truncated colour/gradient dissimilarity, row by row."""
        color_diff = np.minimum(np.abs(color_p - color_q).sum(axis=1), self.parameters.tau_c)
        gradient_diff = np.minimum(np.abs(gradient_p - gradient_q).sum(axis=1), self.parameters.tau_g)
        alpha = self.parameters.alpha
        return (1.0 - alpha) * color_diff + alpha * gradient_diff

    def _sample_opposite(self, view: View, match_x: np.ndarray,
                         ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Linearly interpolate colour and gradient along rows of ``view``."""
        image = self.views[view]
        x1 = np.floor(match_x).astype(np.intp)
        x2 = np.minimum(x1 + 1, self.width - 1)
        frac = (match_x - x1)[:, None]

        color = (1.0 - frac) * image.color[ys, x1] + frac * image.color[ys, x2]
        gradient = (1.0 - frac) * image.gradient[ys, x1] + frac * image.gradient[ys, x2]
        return color, gradient

    def cache_info(self):
        return self._support_window.cache_info()
