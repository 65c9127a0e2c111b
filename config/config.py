import json
import os
import shutil
from typing import Dict, Any, Optional

from src_patch_match.matching.parameters import PatchMatchParameters
from utils.logger_config import get_logger

logger = get_logger(__name__)


class Config:
    def __init__(self, config_path: Optional[str] = None, config_data: Optional[Dict[str, Any]] = None):
        if config_data is None:
            if config_path is None:
                raise ValueError("Either config_path or config_data must be given")
            config_data = self._load_config(config_path)
        else:
            config_data = dict(config_data)
            self._process_string_formatting(config_data)
        self.config_data = config_data

        self._init_optional_defaults()
        # Matching parameters are validated before any folder is touched
        self.match_parameters = PatchMatchParameters.from_mapping(self.config_data)

        if "save_path_temp" in self.config_data:
            self._check_folder(self.config_data["save_path_temp"], is_temp=True)
        if "save_path_result" in self.config_data:
            self._check_folder(self.config_data["save_path_result"])

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        with open(config_path, 'r', encoding='utf-8') as config_file:
            config_data = json.load(config_file)

        self._process_string_formatting(config_data)
        return config_data

    def _process_string_formatting(self, config_data: Dict[str, Any]) -> None:
        """Replace {case_name} in string values with the configured case name."""
        case_name = config_data.get("case_name", "")

        for key, value in config_data.items():
            if isinstance(value, str) and "{case_name}" in value:
                try:
                    config_data[key] = value.format(case_name=case_name)
                except (KeyError, ValueError, IndexError) as e:
                    # Keep original value if formatting fails
                    logger.warning(f"Could not format value for key '{key}': {e}")

    def _init_optional_defaults(self) -> None:
        """Fill optional matching and output settings that the file omits."""
        defaults = {
            "max_slant": 0.5,
            "min_refine_range": 0.1,
            "consistency_threshold": 1.0,
            "median_filter_invalid_only": "False",
            "seed": None,
            "need_showPicture": "False",
            "save_formats": ["npy"],
            "result_root": "result"
        }
        for key, value in defaults.items():
            self.config_data.setdefault(key, value)

    def get_match_parameters(self) -> PatchMatchParameters:
        """Return the validated PatchMatch parameter block."""
        return self.match_parameters

    def _check_folder(self, folder_name, is_temp=False):
        result_root = self.config_data["result_root"]
        counter = 1
        new_path = os.path.join(result_root, folder_name)
        if is_temp:
            # the temp folder is recreated empty on every run
            if os.path.exists(new_path):
                shutil.rmtree(new_path)
            os.makedirs(new_path, exist_ok=True)
            self.config_data["save_path_temp"] = new_path
        else:
            # never overwrite earlier results
            while os.path.exists(new_path):
                new_path = os.path.join(result_root, f"{folder_name}({counter})")
                counter += 1
            os.makedirs(new_path)
            self.config_data["save_path_result"] = new_path

    def __getattr__(self, name: str) -> Any:
        config_data = self.__dict__.get("config_data", {})
        if name in config_data:
            return config_data[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")
