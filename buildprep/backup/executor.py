"""Baseline package backup."""

import typing as t
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from ..errors import (
    BackupFailed,
    BackupVerificationFailed,
    CleanupFailed,
    DriveNotReady,
    InsufficientSpace,
)
from ..tools.mirror import MirrorClient, MirrorRequest, describe_exit_code
from ..util.logging import get_logger
from ..util.paths import (
    ensure_directory,
    format_size,
    get_available_space,
    has_content,
    is_drive_ready,
    remove_tree,
)
from ..util.timeutil import log_stamp
from .manifest import MANIFEST_FILE_NAME, BackupManifest
from .scanner import TreeScanner
from .storage import BackupRoot

logger = get_logger(__name__)


class BackupState(str, Enum):
    ABSENT = "absent"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


class BackupOutcome(BaseModel):
    created: bool
    manifest: t.Optional[BackupManifest] = None


class PackageBackupManager:
    """Creates the one-time baseline backup of the packages tree."""

    def __init__(
        self,
        mirror: MirrorClient,
        log_dir: Path,
        retry_count: int = 2,
        retry_wait_seconds: int = 5,
        parallelism: t.Optional[int] = None,
        scanner: t.Optional[TreeScanner] = None,
        collection_url: t.Optional[str] = None,
    ) -> None:
        """Initialize backup manager.

        Args:
            mirror: Mirror capability used for the bulk copy
            log_dir: Directory receiving mirror log files
            retry_count: Per-file retry attempts handed to the mirror
            retry_wait_seconds: Delay between per-file retries
            parallelism: Mirror worker threads
            scanner: Tree scanner used for verification
            collection_url: Recorded in the manifest
        """
        self.mirror = mirror
        self.log_dir = Path(log_dir)
        self.retry_count = retry_count
        self.retry_wait_seconds = retry_wait_seconds
        self.parallelism = parallelism
        self.scanner = scanner or TreeScanner()
        self.collection_url = collection_url

    def inspect(self, root: BackupRoot) -> BackupState:
        if root.manifest.exists():
            return BackupState.COMPLETE
        if has_content(root.path):
            return BackupState.INCOMPLETE
        return BackupState.ABSENT

    def _discard(self, root: BackupRoot, reason: str) -> None:
        logger.info(f"Deleting {reason} backup at {root.path}")
        if not remove_tree(root.path):
            raise CleanupFailed(
                f"Could not delete {reason} backup",
                operation="package backup",
                context={"path": root.path},
            )

    def backup(self, root: BackupRoot, source_path: Path, overwrite: bool = False) -> BackupOutcome:
        """Create the baseline backup of ``source_path`` unless one is complete.

        Returns:
            BackupOutcome with ``created`` False when an existing backup was kept
        """
        source_path = Path(source_path)
        state = self.inspect(root)

        if state is BackupState.COMPLETE:
            if not overwrite:
                manifest = root.manifest.load_manifest()
                when = f" from {manifest.created_at}" if manifest else ""
                logger.info(f"Package backup{when} already exists at {root.path}; skipping")
                return BackupOutcome(created=False, manifest=manifest)
            self._discard(root, "existing")
        elif state is BackupState.INCOMPLETE:
            self._discard(root, "incomplete")

        manifest = self._create(root, source_path)
        return BackupOutcome(created=True, manifest=manifest)

    def _create(self, root: BackupRoot, source_path: Path) -> BackupManifest:
        context = {"source": source_path, "destination": root.path}

        if not is_drive_ready(root.path):
            raise DriveNotReady("Backup drive is not ready", operation="package backup", context=context)

        logger.info(f"Scanning {source_path}")
        source_scan = self.scanner.scan(source_path)

        available = get_available_space(root.path)
        if source_scan.total_bytes > available:
            raise InsufficientSpace(
                f"Backup needs {format_size(source_scan.total_bytes)} "
                f"but only {format_size(available)} is free",
                operation="package backup",
                context={**context, "required_bytes": source_scan.total_bytes, "available_bytes": available},
            )

        ensure_directory(root.path)
        logger.info(
            f"Backing up {source_scan.total_files} files ({format_size(source_scan.total_bytes)}) "
            f"to {root.path}"
        )

        report = self.mirror.mirror(MirrorRequest(
            source=source_path,
            destination=root.path,
            mirror_deletions=True,
            exclude_files=[MANIFEST_FILE_NAME],
            retry_count=self.retry_count,
            retry_wait_seconds=self.retry_wait_seconds,
            log_path=self.log_dir / f"PackagesBackup_{log_stamp()}.log",
            parallelism=self.parallelism,
        ))

        if not report.succeeded:
            raise BackupFailed(
                f"Mirror exited with {report.exit_code} ({describe_exit_code(report.exit_code)})",
                operation="package backup",
                context={**context, "log": report.log_path},
            )

        backup_scan = self.scanner.scan(root.path)
        report = report.with_summary(backup_scan.total_files, backup_scan.total_bytes)

        if not backup_scan.matches(source_scan):
            raise BackupVerificationFailed(
                f"Backup holds {report.total_files} files / {report.total_bytes} bytes, "
                f"source had {source_scan.total_files} files / {source_scan.total_bytes} bytes",
                operation="package backup",
                context={**context, "log": report.log_path},
            )

        manifest = BackupManifest(
            purpose=root.purpose,
            source=str(source_path),
            total_files=backup_scan.total_files,
            total_bytes=backup_scan.total_bytes,
            collection_url=self.collection_url,
        )
        root.manifest.save_manifest(manifest)

        logger.info(f"Package backup verified and completed at {root.path}")
        return manifest
