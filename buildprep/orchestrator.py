"""Sequencing of one build preparation run."""

import time
import typing as t
from pathlib import Path

from pydantic import BaseModel

from .backup.analyzer import SyncLogAnalyzer, VerificationResult
from .backup.classifier import PackageClassifier
from .backup.database import DatabaseAction, DatabaseBackupManager
from .backup.executor import PackageBackupManager
from .backup.restore import PackageRestoreManager
from .backup.rules import ExclusionPlanner
from .backup.storage import DATABASES, PACKAGES, BackupPathResolver, BackupRoot
from .config import BuildPrepConfig
from .errors import BuildPrepError, PackagesPathUnresolved
from .tools.database import DatabaseScriptRunner
from .tools.mirror import MirrorClient, RobocopyClient
from .tools.service import ServiceController
from .util.logging import get_logger
from .util.timeutil import format_duration

logger = get_logger(__name__)


class RunSummary(BaseModel):
    """What a build preparation run did."""

    packages_path: t.Optional[Path] = None
    package_root: t.Optional[BackupRoot] = None
    package_backup_created: bool = False
    restore_result: t.Optional[VerificationResult] = None
    database_root: t.Optional[BackupRoot] = None
    database_action: DatabaseAction = DatabaseAction.SKIPPED
    duration_seconds: float = 0.0


class BuildPrepOrchestrator:
    """Runs service stop, package backup-or-restore and database work in order."""

    def __init__(
        self,
        config: BuildPrepConfig,
        mirror: t.Optional[MirrorClient] = None,
        resolver: t.Optional[BackupPathResolver] = None,
        service: t.Optional[ServiceController] = None,
        database: t.Optional[DatabaseBackupManager] = None,
    ) -> None:
        self.config = config
        self.mirror = mirror or RobocopyClient(config.mirror.executable)
        self.resolver = resolver or BackupPathResolver()
        self.service = service if service is not None else self._default_service(config)
        self.database = database if database is not None else self._default_database(config)

        mirror_settings = config.mirror
        packages = config.packages

        self.backup_manager = PackageBackupManager(
            self.mirror,
            log_dir=mirror_settings.log_dir,
            retry_count=mirror_settings.retry_count,
            retry_wait_seconds=mirror_settings.retry_wait_seconds,
            parallelism=mirror_settings.parallelism,
            collection_url=config.collection_url,
        )
        self.restore_manager = PackageRestoreManager(
            self.mirror,
            log_dir=mirror_settings.log_dir,
            classifier=PackageClassifier(
                descriptor_dir=packages.descriptor_dir,
                descriptor_pattern=packages.descriptor_pattern,
                customization_marker=packages.customization_marker,
            ),
            planner=ExclusionPlanner(metadata_location_file=packages.metadata_location_file),
            analyzer=SyncLogAnalyzer(),
            retry_count=mirror_settings.retry_count,
            retry_wait_seconds=mirror_settings.retry_wait_seconds,
            parallelism=mirror_settings.parallelism,
        )

    @staticmethod
    def _default_service(config: BuildPrepConfig) -> t.Optional[ServiceController]:
        if not config.service.name:
            return None
        return ServiceController(
            config.service.name,
            stop_command=config.service.stop_command,
            tolerated_exit_codes=config.service.tolerated_exit_codes,
        )

    @staticmethod
    def _default_database(config: BuildPrepConfig) -> t.Optional[DatabaseBackupManager]:
        settings = config.database
        if settings.script is None or not settings.name:
            return None
        return DatabaseBackupManager(
            DatabaseScriptRunner(settings.script, shell=settings.shell),
            database_name=settings.name,
            database_server=settings.server,
            backup_file_name=settings.backup_file_name,
            collection_url=config.collection_url,
        )

    def _packages_path(self) -> Path:
        packages_path = self.config.resolve_packages_path()
        if packages_path is None or not packages_path.is_dir():
            raise PackagesPathUnresolved(
                "Deployed packages directory could not be resolved",
                operation="resolve packages path",
                context={"packages_path": packages_path, "sdk_path": self.config.packages.sdk_path},
            )
        return packages_path

    def run(self, database_backup_file: t.Optional[Path] = None) -> RunSummary:
        """Run all phases in order; any failure propagates to the caller."""
        started = time.monotonic()
        summary = RunSummary()

        if self.config.collection_url:
            logger.info(f"Preparing build environment for {self.config.collection_url}")

        summary.packages_path = self._packages_path()

        if self.service is not None:
            self.service.stop()
        else:
            logger.debug("No deployment service configured; nothing to stop")

        self._run_packages(summary)
        self._run_database(summary, database_backup_file)

        summary.duration_seconds = time.monotonic() - started
        logger.info(f"Build environment prepared in {format_duration(summary.duration_seconds)}")
        return summary

    def _run_packages(self, summary: RunSummary) -> None:
        backup = self.config.backup
        summary.package_root = self.resolver.resolve(PACKAGES, backup.backup_path, backup.default_candidates)

        outcome = self.backup_manager.backup(summary.package_root, summary.packages_path, overwrite=backup.overwrite)
        summary.package_backup_created = outcome.created

        if outcome.created:
            logger.info("New package backup created; deployment is already at baseline, skipping restore")
            return

        summary.restore_result = self.restore_manager.restore(
            summary.package_root,
            summary.packages_path,
            restore_all_files=self.config.restore_all_files,
        )

    def _run_database(self, summary: RunSummary, database_backup_file: t.Optional[Path]) -> None:
        if self.database is None:
            if database_backup_file is not None:
                raise BuildPrepError(
                    "A database backup file was supplied but no database script is configured",
                    operation="database restore",
                    context={"backup_file": database_backup_file},
                )
            logger.info("No database script configured; skipping database backup")
            return

        if database_backup_file is not None:
            summary.database_action = self.database.restore(database_backup_file)
            return

        configured = self.config.backup.backup_path
        if configured is None and summary.package_root is not None:
            configured = summary.package_root.base

        summary.database_root = self.resolver.resolve(
            DATABASES, configured, self.config.backup.default_candidates
        )
        summary.database_action = self.database.backup(summary.database_root)
