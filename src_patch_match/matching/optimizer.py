"""
Randomized PatchMatch optimizer.

Runs random initialization followed by ``niters`` sweeps over both views.
Each pixel of a sweep goes through spatial propagation, plane refinement
and view propagation; every candidate is submitted through
``PlaneStore.try_set``.
"""

import time
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .parameters import PatchMatchParameters
from .plane import DisparityPlane, View, MIN_NORMAL_Z
from .plane_store import PlaneStore
from utils.logger_config import get_logger

logger = get_logger(__name__)


class OptimizerState(Enum):
    CREATED = 'created'
    INITIALIZED = 'initialized'
    PROPAGATING = 'propagating'
    REFINING = 'refining'
    VIEW_PROPAGATING = 'view_propagating'
    CONVERGED = 'converged'


class ScanDirection(Enum):
    FORWARD = 'forward'     # top-left to bottom-right
    BACKWARD = 'backward'   # bottom-right to top-left

    @classmethod
    def for_iteration(cls, iteration: int) -> 'ScanDirection':
        return cls.FORWARD if iteration % 2 == 0 else cls.BACKWARD

    @property
    def neighbor_offsets(self) -> Tuple[Tuple[int, int], ...]:
        """Offsets (dx, dy) of the neighbours already visited in this direction."""
        if self is ScanDirection.FORWARD:
            return ((-1, 0), (0, -1))
        return ((1, 0), (0, 1))


def anti_diagonals(height: int, width: int,
                   direction: ScanDirection = ScanDirection.FORWARD) -> Iterator[List[Tuple[int, int]]]:
    """
    Yield the pixels of each anti-diagonal ``x + y = k`` in scan order.

    The left and upper neighbours of a pixel lie on diagonal ``k - 1``, so
    pixels sharing a diagonal never depend on each other during a forward
    sweep (and symmetrically for a backward sweep).

    Args:
        height, width: Image size
        direction: Sweep direction

    Yields:
        List[Tuple[int, int]]: (x, y) pixels of one diagonal
    """
    diagonals = range(height + width - 1)
    if direction is ScanDirection.BACKWARD:
        diagonals = reversed(diagonals)

    for k in diagonals:
        ys = np.arange(max(0, k - (width - 1)), min(height - 1, k) + 1)
        xs = k - ys
        if direction is ScanDirection.BACKWARD:
            ys, xs = ys[::-1], xs[::-1]
        yield list(zip(xs.tolist(), ys.tolist()))


class PatchMatchOptimizer:
    """Iterative randomized plane search over both stereo views."""

    def __init__(self, store: PlaneStore, parameters: PatchMatchParameters,
                 rng: Optional[np.random.Generator] = None):
        """
        Args:
            store: Plane store shared by both views
            parameters: Matching parameters
            rng: Random source; seeded from ``parameters.seed`` when omitted
        """
        self.store = store
        self.parameters = parameters
        self.rng = rng if rng is not None else np.random.default_rng(parameters.seed)
        self.logger = get_logger(__name__)

        self.state = OptimizerState.CREATED
        self.iteration = None
        self.direction = None
        self.iterations_completed = 0
        self.skipped_candidates = 0
        self.initial_costs: Dict[View, np.ndarray] = {}

    def initialize(self) -> None:
        """Give every pixel of both views the cheaper of the zero plane and a random plane."""
        start = time.time()
        max_disparity = self.parameters.max_disparity
        max_slant = self.parameters.max_slant

        for view in View:
            for y in range(self.store.height):
                for x in range(self.store.width):
                    # zero-disparity plane first; the random plane replaces it
                    # only when strictly cheaper
                    self.store.try_set(view, x, y, DisparityPlane.from_slant(x, y, 0.0, 0.0, 0.0),
                                       phase='initialization')
                    z = self.rng.uniform(0.0, max_disparity)
                    a, b = self.rng.uniform(-max_slant, max_slant, size=2)
                    plane = DisparityPlane.from_slant(x, y, z, a, b)
                    self.store.try_set(view, x, y, plane, phase='initialization')
            self.initial_costs[view] = self.store.costs(view)

        self.state = OptimizerState.INITIALIZED
        self.logger.info(f"Planes initialized in {time.time() - start:.2f}s: "
                         f"mean cost left={self.initial_costs[View.LEFT].mean():.4f}, "
                         f"right={self.initial_costs[View.RIGHT].mean():.4f}")

    def run(self, niters: Optional[int] = None) -> None:
        """
        Run the full optimization.

        Args:
            niters: Number of sweeps; defaults to ``parameters.niters``
        """
        niters = self.parameters.niters if niters is None else niters

        if self.state is OptimizerState.CREATED:
            self.initialize()

        for iteration in range(niters):
            start = time.time()
            accepted_before = self.store.statistics.accepted

            self.iteration = iteration
            self.direction = ScanDirection.for_iteration(iteration)
            for view in View:
                self.sweep(view, iteration)

            self.iterations_completed += 1
            left_costs = self.store.costs(View.LEFT)
            right_costs = self.store.costs(View.RIGHT)
            self.logger.info(f"Iteration {iteration + 1}/{niters} ({self.direction.value}) "
                             f"done in {time.time() - start:.2f}s: "
                             f"accepted={self.store.statistics.accepted - accepted_before}, "
                             f"mean cost left={left_costs.mean():.4f}, "
                             f"right={right_costs.mean():.4f}")

        self.state = OptimizerState.CONVERGED

    def sweep(self, view: View, iteration: int) -> None:
        """Process every pixel of ``view`` diagonal by diagonal."""
        direction = ScanDirection.for_iteration(iteration)
        for diagonal in anti_diagonals(self.store.height, self.store.width, direction):
            for x, y in diagonal:
                self.process_pixel(view, x, y, direction)

    def process_pixel(self, view: View, x: int, y: int, direction: ScanDirection) -> None:
        self.state = OptimizerState.PROPAGATING
        self.spatial_propagation(view, x, y, direction)

        self.state = OptimizerState.REFINING
        self.plane_refinement(view, x, y)

        self.state = OptimizerState.VIEW_PROPAGATING
        self.view_propagation(view, x, y)

    def spatial_propagation(self, view: View, x: int, y: int, direction: ScanDirection) -> None:
        """Propose the planes of the already-visited neighbours."""
        for dx, dy in direction.neighbor_offsets:
            nx, ny = x + dx, y + dy
            if not self.store.inside(nx, ny):
                continue
            neighbor_plane, _ = self.store.get(view, nx, ny)
            if not self._in_range(neighbor_plane, x, y):
                self.skipped_candidates += 1
                continue
            self.store.try_set(view, x, y, neighbor_plane, phase='spatial_propagation')

    def plane_refinement(self, view: View, x: int, y: int) -> None:
        """Shrinking-range random search around the current best plane."""
        max_dz = self.parameters.max_disparity / 2.0
        max_dn = 1.0

        while max_dz >= self.parameters.min_refine_range:
            plane, _ = self.store.get(view, x, y)
            dz = self.rng.uniform(-max_dz, max_dz)
            dn = self.rng.uniform(-max_dn, max_dn, size=3)

            candidate = self._perturbed_plane(x, y, plane.disparity(x, y) + dz, plane.normal + dn)
            if candidate is None:
                self.skipped_candidates += 1
            else:
                self.store.try_set(view, x, y, candidate, phase='plane_refinement')

            max_dz /= 2.0
            max_dn /= 2.0

    def view_propagation(self, view: View, x: int, y: int) -> None:
        """Offer this pixel's plane to its match in the opposite view."""
        plane, _ = self.store.get(view, x, y)
        transformed, qx, qy = plane.view_transform(x, y, view.sign)
        if not self.store.inside(qx, qy):
            return
        if not self._in_range(transformed, qx, qy):
            self.skipped_candidates += 1
            return
        self.store.try_set(view.opposite, qx, qy, transformed, phase='view_propagation')

    def _in_range(self, plane: DisparityPlane, x: int, y: int) -> bool:
        return 0.0 <= plane.disparity(x, y) <= self.parameters.max_disparity

    def _perturbed_plane(self, x: int, y: int, z: float,
                         normal: np.ndarray) -> Optional[DisparityPlane]:
        """Build a refinement candidate, or None when it leaves the search space."""
        if not 0.0 <= z <= self.parameters.max_disparity:
            return None

        max_slant = self.parameters.max_slant
        if max_slant == 0.0:
            # Fronto-parallel search
            normal = np.array([0.0, 0.0, 1.0])

        norm = np.linalg.norm(normal)
        if norm == 0.0:
            return None
        normal = normal / norm
        if normal[2] < 0:
            normal = -normal
        if normal[2] < MIN_NORMAL_Z:
            return None

        if abs(normal[0] / normal[2]) > max_slant or abs(normal[1] / normal[2]) > max_slant:
            return None

        return DisparityPlane((x, y, z), normal)

    def get_statistics(self) -> Dict[str, object]:
        stats = self.store.statistics.as_dict()
        stats.update({
            'iterations_completed': self.iterations_completed,
            'skipped_candidates': self.skipped_candidates,
            'cost_evaluations': self.store.cost_model.evaluations
        })
        return stats
