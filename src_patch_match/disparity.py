"""
Batch PatchMatch disparity calculation.

This module runs the PatchMatch stereo engine over every stereo pair found
under the configured input folder and saves the resulting maps.
"""

from pathlib import Path
from typing import Dict, Any

from .base import BaseProcessor
from .matching.file_manager import MatchingFileManager
from .matching.parameters import PatchMatchParameters
from .matching.patch_match_engine import PatchMatchStereo


class DisparityCalculator(BaseProcessor):
    """
    Main disparity calculation coordinator class.

    Loads each ``set_*/<pair>/`` stereo pair, runs PatchMatch stereo and
    hands the result to the matching file manager.
    """

    def __init__(self, config):
        """
        Initialize disparity calculator with configuration.

        Args:
            config: Configuration object with matching and path parameters

        Raises:
            ConfigurationError: If a matching parameter is missing or invalid
        """
        super().__init__(config, "disparity")

        self.parameters: PatchMatchParameters = config.get_match_parameters()
        self.engine = PatchMatchStereo(self.parameters)
        self.file_manager = MatchingFileManager(self.output_folder, self.temp_folder)
        self.save_formats = list(getattr(config, 'save_formats', ['npy']))

        self._setup_input_folder()

        self.logger.info("DisparityCalculator initialized with PatchMatch engine")

    def create_disparity(self) -> None:
        """Process every 'set_*' folder in the input directory."""
        self.process_all_sets()

    def _setup_input_folder(self) -> None:
        """Setup input folder path specific to disparity processing."""
        self.input_folder = self._resolve(self.config.input_path)

    def _get_processor_specific_config(self) -> Dict[str, Any]:
        config = self.parameters.to_dict()
        config['save_formats'] = self.save_formats
        return config

    def _is_processing_ready(self) -> bool:
        return self.engine is not None and self.file_manager is not None

    def _execute_processing_pipeline(self, pair_folder: Path) -> Dict[str, Any]:
        """
        Execute the disparity calculation pipeline for a single pair.

        Args:
            pair_folder: Path to the pair folder

        Returns:
            Dict[str, Any]: Processing results
        """
        pair_name = pair_folder.name

        left_image, right_image = self.file_manager.load_stereo_pair(pair_folder, pair_name)
        if left_image is None or right_image is None:
            raise ValueError(f"Failed to load stereo images for {pair_name}")

        result = self.engine.compute(left_image, right_image)

        return {'result': result}

    def _save_processing_results(self, processing_results: Dict[str, Any], pair_name: str) -> None:
        """
        Save disparity calculation results using the file manager.

        Args:
            processing_results: Results from disparity processing
            pair_name: Name of the image pair
        """
        result = processing_results['result']
        set_name = self.current_pair_info['set_name']

        output_paths = self.file_manager.setup_output_directories(set_name, pair_name)

        map_results = self.file_manager.save_disparity_maps(
            result, output_paths, pair_name, save_formats=self.save_formats
        )

        viz_results = self.file_manager.save_disparity_visualization(
            result, output_paths['output'], pair_name,
            self.parameters.max_disparity, self.need_show
        )

        metadata = self.file_manager.create_disparity_metadata(
            result, self._extract_relevant_config(), self.current_pair_info
        )
        metadata_results = self.file_manager.save_metadata(
            metadata, output_paths, pair_name, filename_prefix="disparity_metadata"
        )

        self.file_manager.log_save_results(pair_name, {
            'maps': map_results,
            'visualization': viz_results,
            'metadata': metadata_results
        })

    def get_processing_info(self) -> Dict[str, Any]:
        info = super().get_processing_info()
        info['engine_info'] = self.engine.get_configuration_info()
        info['file_statistics'] = self.file_manager.get_processing_statistics()
        return info
