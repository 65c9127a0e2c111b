"""
Base classes for batch stereo matching.

This package provides the shared base classes for file management and
set/pair processing.
"""

from .file_manager import BaseFileManager
from .processor import BaseProcessor

__all__ = ['BaseFileManager', 'BaseProcessor']
