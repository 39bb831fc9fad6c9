"""Independent tree scanning for file counts and byte totals."""

import fnmatch
import os
import typing as t
from pathlib import Path

from tqdm import tqdm

from ..util.logging import get_logger
from .manifest import MANIFEST_FILE_NAME

logger = get_logger(__name__)


class ScanResult:
    """File count and byte total of a scanned tree."""

    def __init__(self, root: t.Optional[Path] = None) -> None:
        self.root = root
        self.total_files = 0
        self.total_bytes = 0
        self.errors: t.List[str] = []

    def add_file(self, size: int) -> None:
        self.total_files += 1
        self.total_bytes += size

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def matches(self, other: "ScanResult") -> bool:
        return self.total_files == other.total_files and self.total_bytes == other.total_bytes

    def __repr__(self) -> str:
        return f"ScanResult(root='{self.root}', files={self.total_files}, bytes={self.total_bytes})"


class TreeScanner:
    """Walks a directory tree and totals its regular files."""

    def __init__(
        self,
        exclude_files: t.Iterable[str] = (MANIFEST_FILE_NAME,),
        show_progress: bool = False
    ) -> None:
        """Initialize tree scanner.

        Args:
            exclude_files: File names or wildcards left out of the totals
            show_progress: Show a progress bar over top-level entries
        """
        self.exclude_files = [pattern.lower() for pattern in exclude_files]
        self.show_progress = show_progress

    def _is_excluded(self, name: str) -> bool:
        name = name.lower()
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self.exclude_files)

    def _add_file(self, path: Path, result: ScanResult) -> None:
        if self._is_excluded(path.name):
            return
        try:
            result.add_file(path.stat().st_size)
        except OSError as e:
            result.add_error(f"{path}: {e}")

    def _walk(self, directory: Path, result: ScanResult) -> None:
        def on_error(error: OSError) -> None:
            result.add_error(f"{error.filename}: {error.strerror}")

        for dirpath, _dirnames, filenames in os.walk(directory, onerror=on_error):
            for name in filenames:
                self._add_file(Path(dirpath) / name, result)

    def scan(self, root: Path) -> ScanResult:
        """Scan ``root``; a missing root scans as empty."""
        root = Path(root)
        result = ScanResult(root)

        if not root.is_dir():
            return result

        entries = sorted(root.iterdir(), key=lambda p: p.name.lower())
        for entry in tqdm(entries, desc=f"Scanning {root.name}", unit="dir", disable=not self.show_progress):
            if entry.is_dir() and not entry.is_symlink():
                self._walk(entry, result)
            elif entry.is_file():
                self._add_file(entry, result)

        if result.errors:
            logger.warning(f"Scan of {root} hit {len(result.errors)} unreadable entries")
            for error in result.errors:
                logger.debug(error)

        logger.debug(f"Scanned {result!r}")
        return result
