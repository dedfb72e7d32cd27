"""Utility modules."""

from .config import Config
from .logger import logger, setup_logger
from .timing import get_timestamp, parse_time, to_iso

__all__ = ["Config", "logger", "setup_logger", "get_timestamp", "parse_time", "to_iso"]
