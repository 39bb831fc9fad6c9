"""Selective restore of the package backup onto the deployment."""

import typing as t
from pathlib import Path

from ..errors import BackupMissing, RestoreFailed
from ..tools.mirror import MirrorClient, MirrorRequest, describe_exit_code
from ..util.logging import get_logger
from ..util.paths import format_size
from ..util.timeutil import log_stamp
from .analyzer import SyncLogAnalyzer, VerificationResult
from .classifier import PackageClassifier
from .rules import ExclusionPlanner
from .scanner import TreeScanner
from .storage import BackupRoot

logger = get_logger(__name__)


class PackageRestoreManager:
    """Mirrors the baseline backup back over the deployed packages."""

    def __init__(
        self,
        mirror: MirrorClient,
        log_dir: Path,
        classifier: t.Optional[PackageClassifier] = None,
        planner: t.Optional[ExclusionPlanner] = None,
        analyzer: t.Optional[SyncLogAnalyzer] = None,
        scanner: t.Optional[TreeScanner] = None,
        retry_count: int = 2,
        retry_wait_seconds: int = 5,
        parallelism: t.Optional[int] = None,
    ) -> None:
        self.mirror = mirror
        self.log_dir = Path(log_dir)
        self.classifier = classifier or PackageClassifier()
        self.planner = planner or ExclusionPlanner()
        self.analyzer = analyzer or SyncLogAnalyzer()
        self.scanner = scanner or TreeScanner()
        self.retry_count = retry_count
        self.retry_wait_seconds = retry_wait_seconds
        self.parallelism = parallelism

    def restore(
        self,
        root: BackupRoot,
        destination_path: Path,
        restore_all_files: bool = False
    ) -> VerificationResult:
        """Restore the backup in ``root`` onto ``destination_path``.

        Raises:
            BackupMissing: No complete backup exists in ``root``
            RestoreFailed: The mirror reported a failure exit code
        """
        destination_path = Path(destination_path)
        context = {"backup": root.path, "destination": destination_path}

        if not root.path.is_dir() or not root.manifest.exists():
            raise BackupMissing("No complete package backup to restore from", operation="package restore",
                                context=context)

        # Classified fresh on both sides, never cached.
        backup_children = self.classifier.classify_children(root.path)
        deployment_children = self.classifier.classify_children(destination_path)
        exclusions = self.planner.plan(backup_children, deployment_children, restore_all_files)

        mode = "all files" if restore_all_files else "packages only"
        logger.info(f"Restoring {root.path} -> {destination_path} ({mode})")

        report = self.mirror.mirror(MirrorRequest(
            source=root.path,
            destination=destination_path,
            mirror_deletions=True,
            exclude_files=exclusions.files,
            exclude_directories=exclusions.directories,
            retry_count=self.retry_count,
            retry_wait_seconds=self.retry_wait_seconds,
            log_path=self.log_dir / f"PackagesRestore_{log_stamp()}.log",
            parallelism=self.parallelism,
        ))

        if not report.succeeded:
            raise RestoreFailed(
                f"Mirror exited with {report.exit_code} ({describe_exit_code(report.exit_code)})",
                operation="package restore",
                context={**context, "log": report.log_path},
            )

        result = self.analyzer.analyze(report.log_lines, destination_path, root.path)

        scan = self.scanner.scan(destination_path)
        report = report.with_summary(scan.total_files, scan.total_bytes)
        logger.info(
            f"{result.summary()} (exit code {report.exit_code}: {describe_exit_code(report.exit_code)}; "
            f"{report.total_files} files, {format_size(report.total_bytes)} deployed)"
        )

        return result
