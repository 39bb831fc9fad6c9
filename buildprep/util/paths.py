"""Utility functions for path and drive operations."""

import os
import shutil
import stat
import sys
from pathlib import Path
from typing import Optional

from ..util.logging import get_logger

logger = get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def drive_root(path: Path) -> Optional[Path]:
    """Return the drive/root a path lives on, or None for root-less paths."""
    anchor = Path(path).anchor
    if not anchor:
        return None
    return Path(anchor)


def is_drive_ready(path: Path) -> bool:
    """Check that the drive holding ``path`` is mounted and reports a size.

    Relative paths have no drive and are never considered ready.
    """
    root = drive_root(path)
    if root is None:
        return False

    try:
        usage = shutil.disk_usage(root)
    except OSError as e:
        logger.debug(f"Drive {root} is not ready: {e}")
        return False

    return usage.total > 0


def get_available_space(path: Path) -> int:
    """Get available space in bytes for the given path.

    The path does not need to exist yet; its closest existing ancestor is
    measured instead.
    """
    probe = Path(path)
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent

    try:
        return shutil.disk_usage(probe).free
    except OSError as e:
        logger.warning(f"Could not get disk usage for {path}: {e}")
        return 0


def _clear_readonly(func, target, _exc):
    # Deployed package files are often read-only.
    os.chmod(target, stat.S_IWRITE)
    func(target)


def remove_tree(path: Path) -> bool:
    """Delete a directory tree and confirm it is gone.

    Returns:
        True when the path no longer exists afterwards
    """
    path = Path(path)
    if path.exists():
        try:
            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=_clear_readonly)
            else:
                shutil.rmtree(path, onerror=_clear_readonly)
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")

    return not path.exists()


def has_content(path: Path) -> bool:
    """True when ``path`` is a directory with at least one entry."""
    path = Path(path)
    if not path.is_dir():
        return False
    return any(path.iterdir())


def format_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size = float(size_bytes)
    while size >= 1024.0 and i < len(size_names) - 1:
        size /= 1024.0
        i += 1

    return f"{size:.1f} {size_names[i]}"
