"""
Per-view storage of the best disparity plane and its cost.

``PlaneStore.try_set`` is the only way plane or cost arrays change: it
evaluates a candidate and keeps it only when the cost strictly improves.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from .cost_model import PlaneCostModel
from .plane import DisparityPlane, View


@dataclass
class ViewState:
    """Plane and cost arrays owned by one view."""

    coefficients: np.ndarray   # (H, W, 3) a, b, c
    normals: np.ndarray        # (H, W, 3) unit normals
    costs: np.ndarray          # (H, W)

    @classmethod
    def empty(cls, height: int, width: int) -> 'ViewState':
        normals = np.zeros((height, width, 3), dtype=np.float64)
        normals[..., 2] = 1.0
        return cls(
            coefficients=np.zeros((height, width, 3), dtype=np.float64),
            normals=normals,
            costs=np.full((height, width), np.inf, dtype=np.float64)
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.costs.shape


@dataclass
class StoreStatistics:
    accepted: int = 0
    rejected: int = 0
    by_phase: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def record(self, phase: str, accepted: bool) -> None:
        counts = self.by_phase.setdefault(phase, {'accepted': 0, 'rejected': 0})
        if accepted:
            self.accepted += 1
            counts['accepted'] += 1
        else:
            self.rejected += 1
            counts['rejected'] += 1

    def as_dict(self) -> Dict[str, object]:
        return {
            'accepted': self.accepted,
            'rejected': self.rejected,
            'by_phase': {phase: dict(counts) for phase, counts in self.by_phase.items()}
        }


class PlaneStore:
    """Holds both views' plane states behind a single mutation primitive."""

    def __init__(self, cost_model: PlaneCostModel):
        self.cost_model = cost_model
        self.height = cost_model.height
        self.width = cost_model.width
        self._states = (
            ViewState.empty(self.height, self.width),
            ViewState.empty(self.height, self.width)
        )
        self.statistics = StoreStatistics()

    def inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, view: View, x: int, y: int) -> Tuple[DisparityPlane, float]:
        """Current plane at pixel (x, y) of ``view`` and its cost."""
        state = self._states[view]
        plane = DisparityPlane.from_coefficients(state.coefficients[y, x], state.normals[y, x], x, y)
        return plane, float(state.costs[y, x])

    def disparity(self, view: View, x: int, y: int) -> float:
        a, b, c = self._states[view].coefficients[y, x]
        return float(a * x + b * y + c)

    def try_set(self, view: View, x: int, y: int, candidate: DisparityPlane,
                phase: str = 'unspecified') -> bool:
        """
        Replace the plane at (x, y) when ``candidate`` is strictly cheaper.

        Equal cost is a rejection, so repeated proposals of the same plane
        never change state.

        Args:
            view: View owning the pixel
            x, y: Pixel coordinates
            candidate: Proposed plane
            phase: Label used for acceptance statistics

        Returns:
            bool: True if the candidate was stored
        """
        state = self._states[view]
        cost = self.cost_model.cost(view, x, y, candidate)

        accepted = bool(cost < state.costs[y, x])
        if accepted:
            state.coefficients[y, x] = candidate.coefficients
            state.normals[y, x] = candidate.normal
            state.costs[y, x] = cost

        self.statistics.record(phase, accepted)
        return accepted

    def state(self, view: View) -> ViewState:
        """Read-only snapshot of a view's arrays."""
        state = self._states[view]
        snapshot = ViewState(
            coefficients=state.coefficients.copy(),
            normals=state.normals.copy(),
            costs=state.costs.copy()
        )
        for array in (snapshot.coefficients, snapshot.normals, snapshot.costs):
            array.setflags(write=False)
        return snapshot

    def costs(self, view: View) -> np.ndarray:
        costs = self._states[view].costs.copy()
        costs.setflags(write=False)
        return costs
