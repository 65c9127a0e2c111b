"""
Image buffer adapter for PatchMatch stereo.

Converts a rectified stereo pair into the per-view colour and gradient
arrays used by the cost model.
"""

import cv2
import numpy as np
from dataclasses import dataclass
from typing import Tuple

from utils.exceptions import ShapeMismatchError
from utils.logger_config import get_logger

logger = get_logger(__name__)


# Sobel 3x3 sums to 8 on a unit step
GRADIENT_SCALE = 1.0 / 8.0


@dataclass(frozen=True)
class ViewImage:
    """Colour and gradient representation of one view."""

    color: np.ndarray      # (H, W, 3) float32
    gradient: np.ndarray   # (H, W, 2) float32, (x, y)

    @property
    def height(self) -> int:
        return self.color.shape[0]

    @property
    def width(self) -> int:
        return self.color.shape[1]


class StereoImageAdapter:
    """Normalizes a stereo pair into ViewImage instances."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def prepare(self, left_image: np.ndarray, right_image: np.ndarray) -> Tuple[ViewImage, ViewImage]:
        """
        Validate a stereo pair and build colour/gradient views.

        Args:
            left_image: Left image, (H, W, 3) BGR or (H, W) grayscale
            right_image: Right image with the same pixel dimensions

        Returns:
            Tuple[ViewImage, ViewImage]: (left_view, right_view)

        Raises:
            ShapeMismatchError: If the images differ in size or rank
        """
        self._validate_stereo_images(left_image, right_image)

        left_view = self._build_view(left_image)
        right_view = self._build_view(right_image)

        self.logger.info(f"Prepared stereo views: {left_view.width}x{left_view.height}")
        return left_view, right_view

    def _validate_stereo_images(self, left_image: np.ndarray, right_image: np.ndarray) -> None:
        if left_image is None or right_image is None:
            raise ValueError("Input images cannot be None")

        left_image = np.asarray(left_image)
        right_image = np.asarray(right_image)

        for image in (left_image, right_image):
            if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] != 3):
                raise ShapeMismatchError(
                    left_image.shape, right_image.shape,
                    f"Expected (H, W) or (H, W, 3) images, got {image.shape}"
                )

        if left_image.shape[:2] != right_image.shape[:2]:
            raise ShapeMismatchError(left_image.shape, right_image.shape)

        if left_image.shape[0] == 0 or left_image.shape[1] == 0:
            raise ShapeMismatchError(left_image.shape, right_image.shape,
                                     f"Images must not be empty, got {left_image.shape}")

        if left_image.dtype != right_image.dtype:
            self.logger.warning(f"Image dtypes differ: "
                                f"left={left_image.dtype}, right={right_image.dtype}")

    def _build_view(self, image: np.ndarray) -> ViewImage:
        image = np.asarray(image)
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        image = np.ascontiguousarray(image)

        color = image.astype(np.float32)
        color.setflags(write=False)
        gradient = compute_greyscale_gradient(image)
        gradient.setflags(write=False)
        return ViewImage(color=color, gradient=gradient)


def compute_greyscale_gradient(image: np.ndarray) -> np.ndarray:
    """
    Compute the (x, y) luminance gradient of a BGR image.

    Borders replicate edge pixels, so a uniform image yields zero gradient
    everywhere including the first and last rows and columns.

    Args:
        image: (H, W, 3) uint8 BGR image

    Returns:
        np.ndarray: (H, W, 2) float32 gradient
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY).astype(np.float32)
    grad_x = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3, scale=GRADIENT_SCALE,
                       borderType=cv2.BORDER_REPLICATE)
    grad_y = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3, scale=GRADIENT_SCALE,
                       borderType=cv2.BORDER_REPLICATE)
    return np.dstack((grad_x, grad_y)).astype(np.float32)
