"""Backup root layout and resolution."""

import typing as t
from pathlib import Path

from pydantic import BaseModel

from ..errors import CleanupFailed, NoBackupPathAvailable
from ..util.logging import get_logger
from ..util.paths import has_content, is_drive_ready, remove_tree
from .manifest import ManifestManager

logger = get_logger(__name__)

PACKAGES = "Packages"
DATABASES = "Databases"


class BackupRoot(BaseModel):
    """A backup base directory scoped to one purpose."""

    base: Path
    purpose: str
    newly_selected: bool = False

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def path(self) -> Path:
        """Directory holding the backup content and its manifest."""
        return self.base / self.purpose

    @property
    def manifest(self) -> ManifestManager:
        return ManifestManager(self.path)


class BackupPathResolver:
    """Locates the backup base directory for a purpose."""

    def __init__(self, on_select: t.Optional[t.Callable[[Path], None]] = None) -> None:
        """Initialize resolver.

        Args:
            on_select: Called with a newly selected base so it can be persisted
        """
        self.on_select = on_select

    def resolve(
        self,
        purpose: str,
        configured_path: t.Optional[Path] = None,
        default_candidates: t.Sequence[Path] = ()
    ) -> BackupRoot:
        """Resolve the backup root for ``purpose``.

        A configured path is used as is. Otherwise the first candidate on a
        ready, rooted drive is selected and reported through ``on_select``.

        Raises:
            NoBackupPathAvailable: No candidate drive is usable
            CleanupFailed: Stale content under a new root could not be removed
        """
        if configured_path is not None:
            root = BackupRoot(base=Path(configured_path), purpose=purpose)
            logger.debug(f"Using configured {purpose} backup root {root.path}")
            return root

        for candidate in default_candidates:
            candidate = Path(candidate)
            if not is_drive_ready(candidate):
                logger.debug(f"Skipping backup candidate {candidate}: drive not ready")
                continue

            root = BackupRoot(base=candidate, purpose=purpose, newly_selected=True)
            self._discard_stale(root)

            if self.on_select:
                self.on_select(candidate)

            logger.info(f"Selected {purpose} backup root {root.path}")
            return root

        raise NoBackupPathAvailable(
            "No backup path configured and no default candidate drive is usable",
            operation=f"resolve {purpose} backup root",
            context={"candidates": ", ".join(str(c) for c in default_candidates) or "none"},
        )

    def _discard_stale(self, root: BackupRoot) -> None:
        """Delete leftovers of an earlier failed attempt under a new root."""
        if not has_content(root.path) or root.manifest.exists():
            return

        logger.warning(f"Removing stale content without manifest: {root.path}")
        if not remove_tree(root.path):
            raise CleanupFailed(
                "Stale backup content could not be removed",
                operation=f"resolve {root.purpose} backup root",
                context={"path": root.path},
            )
