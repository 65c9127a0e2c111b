"""
File operation utilities for the stereo matching toolkit.

Path handling, stereo pair discovery, image loading and the array/JSON
writers used by the file managers. Writers report failure through their
return value instead of raising.
"""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import cv2
import numpy as np

from utils.logger_config import get_logger

logger = get_logger(__name__)


IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')

# format name -> (extension, writer)
ARRAY_WRITERS = {
    'npy': ('.npy', np.save),
    'csv': ('.csv', lambda path, array: np.savetxt(path, array, delimiter=',')),
    'txt': ('.txt', np.savetxt),
}


class PathManager:
    """Directory helpers and input tree discovery."""

    @staticmethod
    def ensure_directory_exists(path: Path, clear_if_exists: bool = False) -> Path:
        """
        Create ``path`` with its parents.

        Args:
            path: Folder to create
            clear_if_exists: Remove any previous content first

        Returns:
            Path: ``path``
        """
        path = Path(path)
        if clear_if_exists and path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def validate_input_structure(input_path: Path) -> List[Path]:
        """
        List the ``set_*`` folders below ``input_path``.

        Raises:
            ValueError: If the folder is missing or holds no set folder
        """
        input_path = Path(input_path)
        if not input_path.is_dir():
            raise ValueError(f"Input folder not found: {input_path}")

        sets = sorted(child for child in input_path.glob('set_*') if child.is_dir())
        if not sets:
            raise ValueError(f"No 'set_*' folder in {input_path}")

        logger.info(f"{len(sets)} set folders in {input_path}")
        return sets

    @staticmethod
    def find_stereo_pair(pair_folder: Path, pair_name: str) -> Tuple[Optional[Path], Optional[Path]]:
        """
        Locate ``left_<pair>`` and ``right_<pair>`` images in a pair folder.

        Returns:
            Tuple[Path, Path]: (left_path, right_path); missing entries are None
        """
        found = []
        for side in ('left', 'right'):
            match = None
            for extension in IMAGE_EXTENSIONS + ('.npy',):
                candidate = pair_folder / f'{side}_{pair_name}{extension}'
                if candidate.exists():
                    match = candidate
                    break
            if match is None:
                logger.warning(f"Missing {side} image for pair {pair_name} in {pair_folder}")
            found.append(match)
        return found[0], found[1]


class ImageLoader:
    """Loads stereo images from disk in OpenCV BGR order."""

    @staticmethod
    def load(path: Path) -> np.ndarray:
        """
        Args:
            path: Image file or ``.npy`` array

        Returns:
            np.ndarray: Loaded image

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file cannot be decoded
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        if path.suffix == '.npy':
            return np.load(path)

        image = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if image is None:
            raise ValueError(f"Could not decode image: {path}")
        return image


class DataSaver:
    """Array and JSON writers returning a success flag."""

    @staticmethod
    def save_numpy_array(array: np.ndarray, output_path: Path, filename: str,
                         format_type: str = 'npy') -> bool:
        """
        Write ``array`` as ``<output_path>/<filename>.<format_type>``.

        Args:
            array: Array to write; csv and txt need 1-D or 2-D arrays
            output_path: Target folder, created when missing
            filename: File name without extension
            format_type: One of ``ARRAY_WRITERS``

        Returns:
            bool: True when the file was written
        """
        if format_type not in ARRAY_WRITERS:
            logger.error(f"Unsupported array format '{format_type}' for {filename}")
            return False

        extension, writer = ARRAY_WRITERS[format_type]
        target = Path(output_path) / f"{filename}{extension}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            writer(target, array)
        except (OSError, ValueError) as e:
            logger.error(f"Could not write {target}: {e}")
            return False

        logger.debug(f"Wrote {target}")
        return True

    @staticmethod
    def save_json_data(data: Dict[str, Any], output_path: Path, filename: str,
                       indent: int = 2) -> bool:
        """
        Write ``data`` as ``<output_path>/<filename>.json``.

        Numpy scalars and arrays and ``Path`` objects are converted to plain
        JSON values.

        Returns:
            bool: True when the file was written
        """
        target = Path(output_path) / f"{filename}.json"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as handle:
                json.dump(data, handle, ensure_ascii=False, indent=indent, default=_to_json)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write {target}: {e}")
            return False

        logger.debug(f"Wrote {target}")
        return True


def _to_json(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
