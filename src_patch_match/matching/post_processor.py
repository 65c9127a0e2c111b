"""
Disparity post-processing for PatchMatch stereo.

This module handles left-right consistency labelling, filling of occluded
or mismatched pixels from neighbouring planes, and colour-weighted median
smoothing of the final maps.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Any, Optional, Tuple

import numpy as np

from .image_adapter import ViewImage
from .parameters import PatchMatchParameters
from .plane import View
from .plane_store import ViewState
from utils.logger_config import get_logger

logger = get_logger(__name__)


# Disparity used for rows without a single valid pixel
FALLBACK_DISPARITY = 0.0


class OcclusionLabel(IntEnum):
    VALID = 0
    MISMATCH = 1
    OCCLUDED = 2


@dataclass(frozen=True)
class PostProcessingResult:
    left_disparity: np.ndarray
    right_disparity: np.ndarray
    left_labels: np.ndarray
    right_labels: np.ndarray
    statistics: Dict[str, Any]


class DisparityPostProcessor:
    """Turns raw plane disparities into final disparity maps."""

    def __init__(self, parameters: PatchMatchParameters):
        self.parameters = parameters
        self.logger = get_logger(__name__)

    def process(
        self,
        views: Tuple[ViewImage, ViewImage],
        states: Tuple[ViewState, ViewState],
        raw_disparities: Tuple[np.ndarray, np.ndarray]
    ) -> PostProcessingResult:
        """
        Run consistency check, occlusion filling and smoothing on both views.

        Args:
            views: (left, right) colour views
            states: (left, right) frozen plane states
            raw_disparities: (left, right) extracted disparity maps

        Returns:
            PostProcessingResult: Final maps, labels and label statistics
        """
        left_labels, right_labels = self.check_consistency(*raw_disparities)
        labels = (left_labels, right_labels)

        finals = []
        statistics = {}
        for view in View:
            filled = self.fill_invalid(raw_disparities[view], states[view].coefficients, labels[view])
            mask = labels[view] != OcclusionLabel.VALID if self.parameters.median_filter_invalid_only else None
            smoothed = self.weighted_median_filter(filled, views[view].color, mask)
            smoothed.setflags(write=False)
            labels[view].setflags(write=False)
            finals.append(smoothed)
            statistics[view.name.lower()] = self.label_statistics(labels[view])

        self.logger.info(f"Post-processing done: "
                         f"left valid={statistics['left']['valid_ratio']:.1%}, "
                         f"right valid={statistics['right']['valid_ratio']:.1%}")

        return PostProcessingResult(
            left_disparity=finals[View.LEFT],
            right_disparity=finals[View.RIGHT],
            left_labels=left_labels,
            right_labels=right_labels,
            statistics=statistics
        )

    def check_consistency(self, disp_left: np.ndarray,
                          disp_right: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Label each pixel of both views as valid, mismatch or occluded.

        A pixel is occluded when its match falls outside the opposite image
        and a mismatch when the opposite view's disparity at the match
        differs by more than ``consistency_threshold``.

        Returns:
            Tuple[np.ndarray, np.ndarray]: (left_labels, right_labels), uint8
        """
        return (self._check_view(disp_left, disp_right, View.LEFT),
                self._check_view(disp_right, disp_left, View.RIGHT))

    def _check_view(self, disparity: np.ndarray, other: np.ndarray, view: View) -> np.ndarray:
        height, width = disparity.shape
        ys, xs = np.mgrid[0:height, 0:width]

        match_x = np.rint(xs + view.sign * disparity)
        inside = np.isfinite(match_x) & (match_x >= 0) & (match_x < width)

        labels = np.full((height, width), OcclusionLabel.VALID, dtype=np.uint8)
        labels[~inside] = OcclusionLabel.OCCLUDED

        mx = np.clip(np.nan_to_num(match_x), 0, width - 1).astype(np.intp)
        difference = np.abs(disparity - other[ys, mx])
        labels[inside & ~(difference <= self.parameters.consistency_threshold)] = OcclusionLabel.MISMATCH
        return labels

    def fill_invalid(self, disparity: np.ndarray, coefficients: np.ndarray,
                     labels: np.ndarray) -> np.ndarray:
        """
        Replace non-valid pixels with the smaller of the nearest valid planes.

        For each non-valid pixel the nearest valid pixel to the left and to
        the right on the same row are found; their planes are evaluated at
        the pixel and the smaller disparity (the background) is kept. Rows
        with no valid pixel receive ``FALLBACK_DISPARITY``.

        Args:
            disparity: (H, W) raw disparity
            coefficients: (H, W, 3) plane coefficients of the same view
            labels: (H, W) occlusion labels

        Returns:
            np.ndarray: Filled float32 disparity map
        """
        filled = disparity.astype(np.float32).copy()
        height, _ = filled.shape
        degenerate_rows = 0

        for y in range(height):
            valid_x = np.flatnonzero(labels[y] == OcclusionLabel.VALID)
            invalid_x = np.flatnonzero(labels[y] != OcclusionLabel.VALID)
            if invalid_x.size == 0:
                continue
            if valid_x.size == 0:
                filled[y, invalid_x] = FALLBACK_DISPARITY
                degenerate_rows += 1
                continue

            positions = np.searchsorted(valid_x, invalid_x)
            for x, position in zip(invalid_x, positions):
                candidates = []
                if position > 0:
                    candidates.append(_evaluate(coefficients[y, valid_x[position - 1]], x, y))
                if position < valid_x.size:
                    candidates.append(_evaluate(coefficients[y, valid_x[position]], x, y))
                filled[y, x] = min(candidates)

        if degenerate_rows:
            self.logger.warning(f"{degenerate_rows} rows without valid pixels "
                                f"filled with {FALLBACK_DISPARITY}")
        return filled

    def weighted_median_filter(self, disparity: np.ndarray, color: np.ndarray,
                               mask: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Colour-weighted median filter.

        Window pixels are weighted by ``exp(-L1 colour distance / gamma)``
        to the centre pixel, so values across colour edges contribute
        little and depth discontinuities survive.

        Args:
            disparity: (H, W) disparity to smooth
            color: (H, W, 3) reference colours
            mask: Optional boolean mask; only True pixels are filtered

        Returns:
            np.ndarray: Smoothed float32 disparity map
        """
        height, width = disparity.shape
        ws = self.parameters.winsize
        gamma = self.parameters.gamma
        source = disparity.astype(np.float32)
        result = source.copy()

        for y in range(height):
            y0, y1 = max(0, y - ws), min(height, y + ws + 1)
            for x in range(width):
                if mask is not None and not mask[y, x]:
                    continue
                x0, x1 = max(0, x - ws), min(width, x + ws + 1)
                values = source[y0:y1, x0:x1].ravel()
                distance = np.abs(color[y0:y1, x0:x1] - color[y, x]).sum(axis=2).ravel()
                result[y, x] = weighted_median(values, np.exp(-distance / gamma))

        return result

    @staticmethod
    def label_statistics(labels: np.ndarray) -> Dict[str, Any]:
        total = labels.size
        counts = {label.name.lower(): int(np.count_nonzero(labels == label)) for label in OcclusionLabel}
        counts['valid_ratio'] = counts['valid'] / total if total else 0.0
        return counts


def weighted_median(values: np.ndarray, weights: np.ndarray) -> float:
    """Smallest value whose cumulative weight reaches half of the total weight."""
    order = np.argsort(values, kind='stable')
    cumulative = np.cumsum(weights[order])
    index = int(np.searchsorted(cumulative, cumulative[-1] / 2.0))
    return float(values[order][min(index, values.size - 1)])


def _evaluate(coefficients: np.ndarray, x: int, y: int) -> float:
    a, b, c = coefficients
    return float(a * x + b * y + c)
