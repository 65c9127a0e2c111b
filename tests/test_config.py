"""Tests for JSON configuration loading."""

import json
import os

import pytest

from config.config import Config
from utils.exceptions import ConfigurationError

from .stereo_samples import BASE_PARAMETERS


def write_config(tmp_path, **overrides):
    data = dict(BASE_PARAMETERS)
    data.update({
        "case_name": "cones",
        "input_path": "data/{case_name}",
        "save_path_temp": "temp_{case_name}",
        "save_path_result": "disparity_{case_name}",
        "result_root": str(tmp_path / "result")
    })
    data.update(overrides)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestConfig:

    def test_case_name_expanded_and_folders_created(self, tmp_path):
        config = Config(str(write_config(tmp_path)))

        assert config.input_path == "data/cones"
        assert config.save_path_result == os.path.join(str(tmp_path / "result"), "disparity_cones")
        assert os.path.isdir(config.save_path_result)
        assert os.path.isdir(config.save_path_temp)

    def test_existing_result_folder_not_overwritten(self, tmp_path):
        config_path = write_config(tmp_path)
        first = Config(str(config_path))
        second = Config(str(config_path))

        assert second.save_path_result != first.save_path_result
        assert second.save_path_result.endswith("disparity_cones(1)")

    def test_temp_folder_recreated_empty(self, tmp_path):
        config_path = write_config(tmp_path)
        first = Config(str(config_path))
        marker = os.path.join(first.save_path_temp, "stale.txt")
        with open(marker, "w", encoding="utf-8") as handle:
            handle.write("old")

        second = Config(str(config_path))
        assert second.save_path_temp == first.save_path_temp
        assert not os.path.exists(marker)

    def test_match_parameters_built_with_defaults(self, tmp_path):
        parameters = Config(str(write_config(tmp_path))).get_match_parameters()
        assert parameters.winsize == BASE_PARAMETERS["winsize"]
        assert parameters.max_slant == 0.5
        assert parameters.min_refine_range == 0.1
        assert parameters.median_filter_invalid_only is False

    def test_missing_parameter_raises_before_folders(self, tmp_path):
        config_path = write_config(tmp_path)
        data = json.loads(config_path.read_text(encoding="utf-8"))
        del data["gamma"]
        config_path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ConfigurationError) as excinfo:
            Config(str(config_path))
        assert excinfo.value.field == "gamma"
        assert not (tmp_path / "result").exists()

    def test_dictionary_config_without_paths(self):
        config = Config(config_data=dict(BASE_PARAMETERS))
        assert config.niters == BASE_PARAMETERS["niters"]
        assert config.save_formats == ["npy"]
        with pytest.raises(AttributeError):
            config.not_a_setting

    def test_requires_a_source(self):
        with pytest.raises(ValueError):
            Config()
