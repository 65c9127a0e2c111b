"""
Disparity plane representation.

A plane is stored as a point (x, y, z) on the plane and a unit normal. The
disparity at any image coordinate (u, v) is ``a*u + b*v + c`` with the
coefficients derived from point and normal.
"""

from enum import IntEnum
from typing import Tuple, Union

import numpy as np


# Normals flatter than this describe near-vertical planes in disparity space
MIN_NORMAL_Z = 1e-3


class View(IntEnum):
    """Stereo view index."""

    LEFT = 0
    RIGHT = 1

    @property
    def sign(self) -> int:
        """Direction of the match in the opposite view: x_other = x + sign * d."""
        return -1 if self is View.LEFT else 1

    @property
    def opposite(self) -> 'View':
        return View.RIGHT if self is View.LEFT else View.LEFT


class DisparityPlane:
    """Immutable affine disparity plane."""

    __slots__ = ('_point', '_normal', '_coefficients')

    def __init__(self, point, normal):
        point = np.asarray(point, dtype=np.float64)
        normal = np.asarray(normal, dtype=np.float64)
        norm = np.linalg.norm(normal)
        if norm == 0.0:
            raise ValueError("Plane normal must be non-zero")
        normal = normal / norm
        # n and -n describe the same plane; keep nz positive
        if normal[2] < 0:
            normal = -normal
        if normal[2] < MIN_NORMAL_Z:
            raise ValueError(f"Plane normal too close to the image plane: {normal}")

        nx, ny, nz = normal
        px, py, pz = point
        self._point = point
        self._normal = normal
        self._coefficients = np.array([
            -nx / nz,
            -ny / nz,
            (nx * px + ny * py + nz * pz) / nz
        ])
        for array in (self._point, self._normal, self._coefficients):
            array.setflags(write=False)

    @classmethod
    def from_slant(cls, x: float, y: float, disparity: float, a: float, b: float) -> 'DisparityPlane':
        """Build the plane through (x, y, disparity) with slopes ``a`` along x and ``b`` along y."""
        return cls((x, y, disparity), (-a, -b, 1.0))

    @classmethod
    def from_coefficients(cls, coefficients, normal, x: float, y: float) -> 'DisparityPlane':
        """Rebuild a stored plane, anchoring it at pixel (x, y)."""
        a, b, c = coefficients
        return cls((x, y, a * x + b * y + c), normal)

    @property
    def point(self) -> np.ndarray:
        return self._point

    @property
    def normal(self) -> np.ndarray:
        return self._normal

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    def disparity(self, x: Union[float, np.ndarray], y: Union[float, np.ndarray]):
        """Evaluate the plane at image coordinates (scalars or arrays)."""
        a, b, c = self._coefficients
        return a * x + b * y + c

    def view_transform(self, x: int, y: int, sign: int) -> Tuple['DisparityPlane', int, int]:
        """
        Map the plane seen at pixel (x, y) into the opposite view.

        Args:
            x, y: Pixel in the current view
            sign: ``View.sign`` of the current view

        Returns:
            Tuple[DisparityPlane, int, int]: Plane anchored at the matching
            pixel, and that pixel's (qx, qy)
        """
        d = float(self.disparity(x, y))
        qx = int(round(x + sign * d))
        qy = y
        return DisparityPlane((qx, qy, d), self._normal), qx, qy

    def __repr__(self) -> str:
        a, b, c = self._coefficients
        return f"DisparityPlane(a={a:.4f}, b={b:.4f}, c={c:.4f})"
