"""
Logging setup shared by the PatchMatch stereo toolkit.

All loggers live below one root, ``patch_match_stereo``, which owns the
handlers. Modules call ``get_logger(__name__)`` and never add handlers of
their own.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LoggerConfig:
    """Owns the toolkit's root logger and its handlers."""

    _configured = False
    _root_logger_name = 'patch_match_stereo'

    @classmethod
    def _root(cls) -> logging.Logger:
        return logging.getLogger(cls._root_logger_name)

    @classmethod
    def _attach(cls, handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        cls._root().addHandler(handler)
        return handler

    @classmethod
    def setup_root_logger(
        cls,
        level: int = logging.INFO,
        format_string: Optional[str] = None,
        log_file: Optional[Path] = None
    ) -> logging.Logger:
        """
        Configure the root logger once; later calls return it unchanged.

        Args:
            level: Level for the logger and its handlers
            format_string: Record format, ``DEFAULT_FORMAT`` when omitted
            log_file: Optional extra destination besides stdout

        Returns:
            logging.Logger: The toolkit root logger
        """
        root_logger = cls._root()
        if cls._configured:
            return root_logger

        root_logger.setLevel(level)
        root_logger.handlers.clear()
        formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

        cls._attach(logging.StreamHandler(sys.stdout), level, formatter)
        if log_file is not None:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            cls._attach(logging.FileHandler(log_file), level, formatter)

        # records stop here so the Python root logger does not print them twice
        root_logger.propagate = False
        cls._configured = True

        root_logger.debug(f"Logging configured at {logging.getLevelName(level)}")
        return root_logger

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Child logger ``patch_match_stereo.<name>``."""
        if not cls._configured:
            cls.setup_root_logger()
        return logging.getLogger(f"{cls._root_logger_name}.{name}")

    @classmethod
    def set_level(cls, level: int) -> None:
        """Apply ``level`` to the root logger and all of its handlers."""
        root_logger = cls._root()
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)
        root_logger.info(f"Log level set to {logging.getLevelName(level)}")

    @classmethod
    def add_file_handler(cls, log_file: Path) -> logging.Handler:
        """
        Also write the log to ``log_file``.

        The root logger is configured on import, so a file chosen later on
        the command line is attached here.

        Returns:
            logging.Handler: The new handler
        """
        root_logger = cls.setup_root_logger()
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        existing = root_logger.handlers[0].formatter if root_logger.handlers else None
        handler = cls._attach(logging.FileHandler(log_file), root_logger.level,
                              existing or logging.Formatter(DEFAULT_FORMAT))
        root_logger.info(f"Logging to file: {log_file}")
        return handler

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_configuration_info(cls) -> Dict[str, Any]:
        """Level and handler summary of the root logger."""
        if not cls._configured:
            return {'configured': False}

        root_logger = cls._root()
        return {
            'configured': True,
            'root_logger_name': cls._root_logger_name,
            'level': logging.getLevelName(root_logger.level),
            'handlers': [
                {'type': type(handler).__name__, 'level': logging.getLevelName(handler.level)}
                for handler in root_logger.handlers
            ]
        }


def get_logger(name: str = None) -> logging.Logger:
    """
    Shortcut for ``LoggerConfig.get_logger``.

    Args:
        name: Logger name; the caller's module name when omitted
    """
    if name is None:
        import inspect
        frame = inspect.currentframe().f_back
        name = frame.f_globals.get('__name__', 'unknown')
    return LoggerConfig.get_logger(name)


def initialize_default_logger():
    """Configure the root logger with defaults unless already done."""
    if not LoggerConfig.is_configured():
        LoggerConfig.setup_root_logger()


initialize_default_logger()
