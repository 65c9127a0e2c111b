"""
Base processor for batch stereo matching.

Input folders follow the layout ``<input>/set_*/<pair>/`` where each pair
folder holds a ``left_<pair>`` and ``right_<pair>`` image. The base class
walks that tree, keeps the per-pair context used in metadata and records
which pairs succeeded; subclasses supply the pipeline and the saving step.
"""

import datetime
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Any, Iterator, List

from utils.file_operations import PathManager
from utils.logger_config import get_logger


class BaseProcessor(ABC):
    """Walks ``set_*/<pair>/`` folders and runs one pipeline per stereo pair."""

    def __init__(self, config, processing_type: str):
        """
        Args:
            config: Loaded ``Config`` with host paths and matching parameters
            processing_type: Short label used in logs and metadata
        """
        self.config = config
        self.processing_type = processing_type
        self.root = Path(__file__).parent.parent.parent
        self.logger = get_logger(f"{__name__}.{type(self).__name__}")

        self.current_pair_info: Dict[str, Any] = {}
        self.processed_pairs: List[str] = []
        self.failed_pairs: List[str] = []

        self.input_folder = None
        self.output_folder = self._resolve(self.config.save_path_result)
        self.temp_folder = self._resolve(self.config.save_path_temp)
        self.logger.info(f"Results go to {self.output_folder} (temp copy: {self.temp_folder})")

        self.need_show = str(getattr(self.config, 'need_showPicture', 'False')) == "True"

    def _resolve(self, path) -> Path:
        # absolute paths are kept, relative ones hang off the project root
        return self.root / Path(path)

    def process_all_sets(self) -> None:
        """Run the pipeline on every pair of every ``set_*`` folder."""
        if self.input_folder is None:
            self.logger.error("Input folder not configured")
            return
        try:
            set_folders = PathManager.validate_input_structure(self.input_folder)
        except ValueError as e:
            self.logger.error(f"Nothing to process: {e}")
            return

        for set_folder in set_folders:
            self._process_set(set_folder)

        self.logger.info(f"{self.processing_type} finished: {len(self.processed_pairs)} pairs done, "
                         f"{len(self.failed_pairs)} failed")

    def _iter_pairs(self, set_folder: Path) -> Iterator[Path]:
        yield from sorted(child for child in set_folder.iterdir() if child.is_dir())

    def _process_set(self, set_folder: Path) -> None:
        set_name = set_folder.name
        pair_folders = list(self._iter_pairs(set_folder))
        if not pair_folders:
            self.logger.warning(f"Set {set_name} has no pair folders")
            return

        self.logger.info(f"Set {set_name}: {len(pair_folders)} pairs")
        for pair_folder in pair_folders:
            key = f"{set_name}/{pair_folder.name}"
            try:
                self._process_image_pair(set_name, pair_folder)
            except Exception as e:
                # a failing pair is logged and skipped
                self.logger.error(f"Skipping {key}: {e}")
                self.failed_pairs.append(key)
            else:
                self.processed_pairs.append(key)

    def _process_image_pair(self, set_name: str, pair_folder: Path) -> None:
        """
        Match one stereo pair and save its outputs.

        Raises:
            Exception: Anything raised by the pipeline or the saving step
        """
        pair_name = pair_folder.name
        self.current_pair_info = {
            'set_name': set_name,
            'pair_name': pair_name,
            'pair_folder': str(pair_folder),
            'timestamp': datetime.datetime.now().isoformat(),
            'processing_type': self.processing_type
        }
        self.logger.info(f"Matching {set_name}/{pair_name}")

        results = self._execute_processing_pipeline(pair_folder)
        self._save_processing_results(results, pair_name)

    def _extract_relevant_config(self) -> Dict[str, Any]:
        """Settings recorded alongside every saved result."""
        relevant = {
            'need_show': self.need_show,
            'save_path_result': str(self.config.save_path_result),
            'save_path_temp': str(self.config.save_path_temp)
        }
        relevant.update(self._get_processor_specific_config())
        return relevant

    def get_processing_info(self) -> Dict[str, Any]:
        return {
            'processing_type': self.processing_type,
            'input_folder': str(self.input_folder) if self.input_folder else None,
            'output_folder': str(self.output_folder),
            'temp_folder': str(self.temp_folder),
            'current_pair_info': self.current_pair_info,
            'configuration': self._extract_relevant_config(),
            'processing_ready': self._is_processing_ready()
        }

    @abstractmethod
    def _setup_input_folder(self) -> None:
        """Point ``self.input_folder`` at the folder holding the sets."""

    @abstractmethod
    def _execute_processing_pipeline(self, pair_folder: Path) -> Dict[str, Any]:
        """
        Run the matcher on the pair stored in ``pair_folder``.

        Returns:
            Dict[str, Any]: Whatever ``_save_processing_results`` needs
        """

    @abstractmethod
    def _save_processing_results(self, processing_results: Dict[str, Any], pair_name: str) -> None:
        """Persist the outputs of one pair."""

    @abstractmethod
    def _get_processor_specific_config(self) -> Dict[str, Any]:
        """Processor settings to record in metadata."""

    @abstractmethod
    def _is_processing_ready(self) -> bool:
        """Whether the processor holds everything needed to run."""
