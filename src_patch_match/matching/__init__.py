"""
PatchMatch stereo matching module.

This module contains the plane-based matching engine: image adapter, cost
model, plane store, optimizer, disparity extraction and post-processing,
plus the file manager used by the batch processor.
"""

from .parameters import PatchMatchParameters
from .image_adapter import StereoImageAdapter, ViewImage
from .plane import DisparityPlane, View
from .cost_model import PlaneCostModel
from .plane_store import PlaneStore, ViewState
from .optimizer import PatchMatchOptimizer, OptimizerState, ScanDirection
from .extractor import DisparityExtractor
from .post_processor import DisparityPostProcessor, OcclusionLabel
from .patch_match_engine import PatchMatchStereo, StereoMatchResult
from .file_manager import MatchingFileManager

__all__ = [
    'PatchMatchParameters',
    'StereoImageAdapter',
    'ViewImage',
    'DisparityPlane',
    'View',
    'PlaneCostModel',
    'PlaneStore',
    'ViewState',
    'PatchMatchOptimizer',
    'OptimizerState',
    'ScanDirection',
    'DisparityExtractor',
    'DisparityPostProcessor',
    'OcclusionLabel',
    'PatchMatchStereo',
    'StereoMatchResult',
    'MatchingFileManager'
]
