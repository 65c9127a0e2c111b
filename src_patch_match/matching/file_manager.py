"""
File management utilities for PatchMatch stereo results.

This module handles saving of disparity maps, occlusion labels,
visualizations and metadata for each processed stereo pair.
"""

from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

import numpy as np

from utils.file_operations import DataSaver, ImageLoader, PathManager
from utils.image import ImageChartGenerator
from ..base import BaseFileManager
from .patch_match_engine import StereoMatchResult
from .post_processor import OcclusionLabel


class MatchingFileManager(BaseFileManager):
    """Manages file operations for stereo matching output."""

    def __init__(self, base_output_path: Path, base_temp_path: Optional[Path] = None):
        """
        Initialize matching file manager.

        Args:
            base_output_path: Base path for output files
            base_temp_path: Base path for temporary files (optional)
        """
        super().__init__(base_output_path, base_temp_path)

    def get_folder_name(self) -> str:
        """Get the specific folder name for disparity processing."""
        return "target_pictures_set_disparity"

    def load_stereo_pair(self, pair_folder: Path,
                         pair_name: str) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        """
        Load the left/right images of a pair folder.

        Returns:
            Tuple[np.ndarray, np.ndarray]: (left_image, right_image) or (None, None) if failed
        """
        left_path, right_path = PathManager.find_stereo_pair(pair_folder, pair_name)
        if left_path is None or right_path is None:
            self.logger.error(f"Stereo images not found for pair {pair_name}")
            return None, None

        try:
            left_image = ImageLoader.load(left_path)
            right_image = ImageLoader.load(right_path)
        except (FileNotFoundError, ValueError) as e:
            self.logger.error(f"Failed to load stereo images for {pair_name}: {e}")
            return None, None

        self.logger.info(f"Loaded stereo images for {pair_name}: {left_image.shape}")
        return left_image, right_image

    def save_disparity_maps(
        self,
        result: StereoMatchResult,
        output_paths: Dict[str, Path],
        pair_name: str,
        save_formats: List[str] = ('npy',)
    ) -> Dict[str, bool]:
        """
        Save both final disparity maps and the label maps.

        Args:
            result: Matching result
            output_paths: Dictionary of output paths
            pair_name: Name of the image pair
            save_formats: Formats for the disparity maps ('npy', 'csv', 'txt')

        Returns:
            Dict[str, bool]: Save results for each array, format and location
        """
        arrays = {
            'disparity_left': result.left_disparity,
            'disparity_right': result.right_disparity,
            'labels_left': result.left_labels,
            'labels_right': result.right_labels
        }

        results = {}
        for location_name, path in output_paths.items():
            for array_name, array in arrays.items():
                formats = save_formats if array_name.startswith('disparity') else ('npy',)
                for format_type in formats:
                    success = DataSaver.save_numpy_array(
                        np.asarray(array), path, f'{array_name}_{pair_name}', format_type
                    )
                    self._record(success)
                    results[f'{location_name}_{array_name}_{format_type}'] = success

        self.logger.info(f"Saved disparity maps for {pair_name} in formats: {list(save_formats)}")
        return results

    def save_disparity_visualization(
        self,
        result: StereoMatchResult,
        output_path: Path,
        pair_name: str,
        max_disparity: float,
        need_show: bool = False
    ) -> Dict[str, bool]:
        """
        Save colour-mapped disparity and label figures.

        Args:
            result: Matching result
            output_path: Output directory path
            pair_name: Name of the image pair
            max_disparity: Upper end of the colour scale
            need_show: Whether to show the figures

        Returns:
            Dict[str, bool]: Save result per figure
        """
        figures = {
            'disparity_left': result.left_disparity,
            'disparity_right': result.right_disparity
        }
        label_names = [label.name.lower() for label in OcclusionLabel]
        results = {}

        for name, disparity in figures.items():
            try:
                painter = ImageChartGenerator(
                    img=disparity,
                    xlabel="pixel",
                    ylabel="pixel",
                    save_path_result=str(output_path),
                    need_show=need_show,
                    range_max=max_disparity,
                    range_min=0
                )
                painter.create_disparity(photo_name=f"{name}_{pair_name}")
                results[name] = True
            except (OSError, ValueError) as e:
                self.logger.error(f"Failed to save {name} visualization: {e}")
                results[name] = False
            self._record(results[name])

        for side, labels in (('left', result.left_labels), ('right', result.right_labels)):
            name = f'labels_{side}'
            try:
                painter = ImageChartGenerator(
                    img=labels,
                    xlabel="pixel",
                    ylabel="pixel",
                    save_path_result=str(output_path),
                    need_show=need_show
                )
                painter.create_labels(label_names, photo_name=f"{name}_{pair_name}")
                results[name] = True
            except (OSError, ValueError) as e:
                self.logger.error(f"Failed to save {name} visualization: {e}")
                results[name] = False
            self._record(results[name])

        self.logger.info(f"Saved disparity visualization for {pair_name}")
        return results

    def create_disparity_metadata(
        self,
        result: StereoMatchResult,
        parameters: Dict[str, Any],
        pair_info: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Create metadata for a matching result.

        Args:
            result: Matching result
            parameters: PatchMatch parameters used
            pair_info: Processing context of the pair

        Returns:
            Dict[str, Any]: Metadata
        """
        def summary(disparity: np.ndarray) -> Dict[str, float]:
            return {
                'min': float(disparity.min()),
                'max': float(disparity.max()),
                'mean': float(disparity.mean()),
                'std': float(disparity.std())
            }

        return {
            'pair_info': pair_info,
            'processing_version': 'patch_match_stereo_v1.0',
            'disparity_info': {
                'shape': list(result.left_disparity.shape),
                'dtype': str(result.left_disparity.dtype),
                'left': summary(result.left_disparity),
                'right': summary(result.right_disparity)
            },
            'patch_match_parameters': parameters,
            'optimization_statistics': result.statistics
        }
