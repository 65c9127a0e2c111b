import argparse
import logging
from pathlib import Path

from config.config import Config
from src_patch_match.disparity import DisparityCalculator
from utils.logger_config import LoggerConfig


def load_config(config_path: str) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        config_path (str): Path to the configuration JSON file.

    Returns:
        Config: Loaded configuration object.
    """
    return Config(config_path)


def process_disparity(config: Config) -> DisparityCalculator:
    """
    Run PatchMatch stereo over every stereo pair of the configured input folder.

    Args:
        config (Config): Configuration object containing processing parameters.
    """
    calculator = DisparityCalculator(config)
    calculator.create_disparity()
    return calculator


def main() -> None:
    """
    Main function to execute the PatchMatch disparity pipeline.
    """
    parser = argparse.ArgumentParser(description="PatchMatch stereo disparity estimation")
    parser.add_argument("--config", default="config/config_patch_match.json",
                        help="Path to the JSON configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    args = parser.parse_args()

    if args.log_file is not None:
        LoggerConfig.add_file_handler(args.log_file)
    if args.verbose:
        LoggerConfig.set_level(logging.DEBUG)

    config = load_config(args.config)
    calculator = process_disparity(config)
    print(f"Processing completed: {len(calculator.processed_pairs)} pairs succeeded, "
          f"{len(calculator.failed_pairs)} failed")


if __name__ == "__main__":
    main()
