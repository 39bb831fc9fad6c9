"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import (
    drive_root,
    ensure_directory,
    format_size,
    get_available_space,
    has_content,
    is_drive_ready,
    remove_tree,
)
from .timeutil import format_duration, human_timestamp, log_stamp

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "drive_root",
    "ensure_directory",
    "format_size",
    "get_available_space",
    "has_content",
    "is_drive_ready",
    "remove_tree",
    # timeutil
    "format_duration",
    "human_timestamp",
    "log_stamp",
]
