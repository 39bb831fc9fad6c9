"""Database backup or restore branch."""

import typing as t
from enum import Enum
from pathlib import Path

from ..errors import BackupMissing, CleanupFailed, DatabaseScriptFailed
from ..tools.database import DatabaseMode, DatabaseScriptRunner
from ..util.logging import get_logger
from ..util.paths import ensure_directory, format_size, has_content, remove_tree
from .manifest import BackupManifest
from .storage import BackupRoot

logger = get_logger(__name__)


class DatabaseAction(str, Enum):
    BACKED_UP = "backed_up"
    BACKUP_EXISTS = "backup_exists"
    RESTORED = "restored"
    SKIPPED = "skipped"


class DatabaseBackupManager:
    """Backs up or restores the database through the external script."""

    def __init__(
        self,
        runner: DatabaseScriptRunner,
        database_name: str,
        database_server: str,
        backup_file_name: str = "{name}.bak",
        collection_url: t.Optional[str] = None,
    ) -> None:
        self.runner = runner
        self.database_name = database_name
        self.database_server = database_server
        self.backup_file_name = backup_file_name
        self.collection_url = collection_url

    def backup_file(self, root: BackupRoot) -> Path:
        return root.path / self.backup_file_name.format(name=self.database_name)

    def backup(self, root: BackupRoot) -> DatabaseAction:
        """Back up the database into ``root`` unless a complete backup exists."""
        backup_file = self.backup_file(root)

        if root.manifest.exists() and backup_file.is_file():
            logger.info(f"Database backup already exists at {backup_file}; skipping")
            return DatabaseAction.BACKUP_EXISTS

        if has_content(root.path):
            logger.info(f"Deleting incomplete database backup at {root.path}")
            if not remove_tree(root.path):
                raise CleanupFailed(
                    "Could not delete incomplete database backup",
                    operation="database backup",
                    context={"path": root.path},
                )

        ensure_directory(root.path)
        self.runner.invoke(backup_file, self.database_name, self.database_server, DatabaseMode.BACKUP)

        if not backup_file.is_file():
            raise DatabaseScriptFailed(
                "Database script succeeded but wrote no backup file",
                operation="database backup",
                context={"backup_file": backup_file},
            )

        size = backup_file.stat().st_size
        root.manifest.save_manifest(BackupManifest(
            purpose=root.purpose,
            source=f"{self.database_server}/{self.database_name}",
            total_files=1,
            total_bytes=size,
            collection_url=self.collection_url,
        ))

        logger.info(f"Database {self.database_name} backed up to {backup_file} ({format_size(size)})")
        return DatabaseAction.BACKED_UP

    def restore(self, backup_file: Path) -> DatabaseAction:
        """Restore the database from an explicitly supplied backup file."""
        backup_file = Path(backup_file)
        if not backup_file.is_file():
            raise BackupMissing(
                "Database backup file does not exist",
                operation="database restore",
                context={"backup_file": backup_file},
            )

        self.runner.invoke(backup_file, self.database_name, self.database_server, DatabaseMode.RESTORE)
        logger.info(f"Database {self.database_name} restored from {backup_file}")
        return DatabaseAction.RESTORED
