"""
PatchMatch stereo engine.

This module wires the image adapter, cost model, plane store, optimizer,
disparity extractor and post-processor into a single ``compute`` call that
returns disparity maps for both views.
"""

import time
from dataclasses import dataclass
from typing import Dict, Any, Optional

import numpy as np

from .cost_model import PlaneCostModel
from .extractor import DisparityExtractor
from .image_adapter import StereoImageAdapter
from .optimizer import PatchMatchOptimizer
from .parameters import PatchMatchParameters
from .plane import View
from .plane_store import PlaneStore
from .post_processor import DisparityPostProcessor
from utils.logger_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StereoMatchResult:
    """Outputs of one PatchMatch run."""

    # Final, post-processed maps
    left_disparity: np.ndarray
    right_disparity: np.ndarray

    # Plane disparities before post-processing
    left_raw_disparity: np.ndarray
    right_raw_disparity: np.ndarray

    # Consistency labels (see OcclusionLabel)
    left_labels: np.ndarray
    right_labels: np.ndarray

    # Final plane costs
    left_costs: np.ndarray
    right_costs: np.ndarray

    statistics: Dict[str, Any]


class PatchMatchStereo:
    """PatchMatch stereo matcher for a rectified image pair."""

    def __init__(self, parameters: PatchMatchParameters,
                 rng: Optional[np.random.Generator] = None):
        """
        Args:
            parameters: Validated matching parameters
            rng: Optional random source; defaults to a generator seeded with
                ``parameters.seed``
        """
        self.parameters = parameters
        self.rng = rng
        self.logger = get_logger(__name__)

        self.image_adapter = StereoImageAdapter()
        self.extractor = DisparityExtractor()
        self.post_processor = DisparityPostProcessor(parameters)

        # Populated by compute(); kept for inspection
        self.store: Optional[PlaneStore] = None
        self.optimizer: Optional[PatchMatchOptimizer] = None

        self.logger.info(f"PatchMatch parameters configured: "
                         f"alpha={parameters.alpha}, gamma={parameters.gamma}, "
                         f"tau_c={parameters.tau_c}, tau_g={parameters.tau_g}, "
                         f"winsize={parameters.winsize}, maxDisp={parameters.max_disparity}, "
                         f"niters={parameters.niters}")

    def compute(self, left_image: np.ndarray, right_image: np.ndarray) -> StereoMatchResult:
        """
        Compute disparity maps for both views of a stereo pair.

        Args:
            left_image: Left rectified image (H, W, 3) BGR uint8
            right_image: Right rectified image, same size

        Returns:
            StereoMatchResult: Final and raw maps, labels, costs and statistics

        Raises:
            ShapeMismatchError: If the images differ in size
        """
        start = time.time()
        left_view, right_view = self.image_adapter.prepare(left_image, right_image)

        cost_model = PlaneCostModel(left_view, right_view, self.parameters)
        self.store = PlaneStore(cost_model)
        rng = self.rng if self.rng is not None else np.random.default_rng(self.parameters.seed)
        self.optimizer = PatchMatchOptimizer(self.store, self.parameters, rng)

        self.logger.info("Computing disparity using PatchMatch algorithm")
        self.optimizer.initialize()
        self.optimizer.run()

        states = (self.store.state(View.LEFT), self.store.state(View.RIGHT))
        raw = (self.extractor.extract(states[View.LEFT]), self.extractor.extract(states[View.RIGHT]))

        post = self.post_processor.process((left_view, right_view), states, raw)

        statistics = self.optimizer.get_statistics()
        statistics['labels'] = post.statistics
        statistics['elapsed_seconds'] = time.time() - start

        self.logger.info(f"Disparity computed in {statistics['elapsed_seconds']:.2f}s: "
                         f"range=[{post.left_disparity.min():.2f}, {post.left_disparity.max():.2f}] (left), "
                         f"[{post.right_disparity.min():.2f}, {post.right_disparity.max():.2f}] (right)")

        return StereoMatchResult(
            left_disparity=post.left_disparity,
            right_disparity=post.right_disparity,
            left_raw_disparity=raw[View.LEFT],
            right_raw_disparity=raw[View.RIGHT],
            left_labels=post.left_labels,
            right_labels=post.right_labels,
            left_costs=states[View.LEFT].costs,
            right_costs=states[View.RIGHT].costs,
            statistics=statistics
        )

    def get_configuration_info(self) -> Dict[str, Any]:
        """
        Get current PatchMatch configuration information.

        Returns:
            Dict[str, Any]: Configuration information
        """
        return {
            'configured': True,
            'parameters': self.parameters.to_dict()
        }
