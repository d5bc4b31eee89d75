"""Utility modules for the TTS reader.

This package provides utility functions for logging, file handling, error messages
and call throttling.
"""

from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils
from utils.throttle import Throttle

__all__: list[str] = ["FileUtils", "LoggerUtils", "Throttle"]
