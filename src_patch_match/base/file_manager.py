"""
Base file manager for stereo matching output.

Results of a pair are written to ``<output>/<folder>/<set>/<pair>/`` and,
when a temp root is configured, mirrored to the same layout under it.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Any, Optional

from utils.file_operations import PathManager, DataSaver
from utils.logger_config import get_logger


class BaseFileManager(ABC):
    """Shared output layout, metadata writing and save bookkeeping."""

    def __init__(self, base_output_path: Path, base_temp_path: Optional[Path] = None,
                 folder_name: str = ""):
        """
        Args:
            base_output_path: Root of the persistent results
            base_temp_path: Root of the scratch copy, or None to skip it
            folder_name: Subfolder for this kind of output; defaults to
                ``get_folder_name()``
        """
        self.base_output_path = Path(base_output_path)
        self.base_temp_path = Path(base_temp_path) if base_temp_path else None
        self.folder_name = folder_name or self.get_folder_name()
        self.logger = get_logger(f"{__name__}.{type(self).__name__}")

        self.processing_stats = {
            'total_operations': 0,
            'successful_operations': 0,
            'failed_operations': 0
        }

    def setup_output_directories(self, set_name: str, pair_name: str) -> Dict[str, Path]:
        """
        Create the folders that receive one pair's files.

        The temp folder is emptied first; the output folder is kept as is.

        Returns:
            Dict[str, Path]: ``'output'`` and, with a temp root, ``'temp'``
        """
        relative = Path(self.folder_name) / set_name / pair_name
        paths = {'output': PathManager.ensure_directory_exists(self.base_output_path / relative)}
        if self.base_temp_path:
            paths['temp'] = PathManager.ensure_directory_exists(self.base_temp_path / relative,
                                                               clear_if_exists=True)

        self.logger.debug(f"Output folders for {set_name}/{pair_name}: {list(paths.values())}")
        return paths

    def save_metadata(self, metadata: Dict[str, Any], output_paths: Dict[str, Path],
                      pair_name: str, filename_prefix: str = "metadata") -> Dict[str, bool]:
        """
        Write ``<prefix>_<pair>.json`` into every output location.

        Returns:
            Dict[str, bool]: Success flag keyed ``<location>_metadata``
        """
        filename = f'{filename_prefix}_{pair_name}'
        results = {}
        for location, folder in output_paths.items():
            saved = DataSaver.save_json_data(metadata, folder, filename)
            self._record(saved)
            results[f'{location}_metadata'] = saved
            if not saved:
                self.logger.error(f"Metadata not written to {location}: {folder / filename}.json")
        return results

    def _record(self, success: bool) -> None:
        self.processing_stats['total_operations'] += 1
        key = 'successful_operations' if success else 'failed_operations'
        self.processing_stats[key] += 1

    def log_save_results(self, pair_name: str, results: Dict[str, Dict[str, bool]]) -> None:
        """Log how many writes of a pair succeeded and name the failed ones."""
        flags = [ok for category in results.values() for ok in category.values()]
        self.logger.info(f"{pair_name}: {sum(flags)}/{len(flags)} files written")

        for category, category_results in results.items():
            failed = [name for name, ok in category_results.items() if not ok]
            if failed:
                self.logger.warning(f"{pair_name}: failed {category} writes: {failed}")

    def get_processing_statistics(self) -> Dict[str, Any]:
        stats = dict(self.processing_stats)
        total = stats['total_operations']
        stats['success_rate'] = stats['successful_operations'] / total if total else 0
        return stats

    @abstractmethod
    def get_folder_name(self) -> str:
        """Subfolder name for this kind of output."""
