"""Backup module initialization."""

from .analyzer import (
    ProblemFile,
    ProblemStatus,
    SyncLogAnalyzer,
    SyncLogError,
    VerificationResult,
)
from .classifier import PackageClassification, PackageClassifier
from .database import DatabaseAction, DatabaseBackupManager
from .executor import BackupOutcome, BackupState, PackageBackupManager
from .manifest import MANIFEST_FILE_NAME, BackupManifest, ManifestManager
from .restore import PackageRestoreManager
from .rules import ExclusionPlanner, ExclusionSet
from .scanner import ScanResult, TreeScanner
from .storage import DATABASES, PACKAGES, BackupPathResolver, BackupRoot

__all__ = [
    # storage
    "BackupPathResolver",
    "BackupRoot",
    "DATABASES",
    "PACKAGES",
    # scanner
    "ScanResult",
    "TreeScanner",
    # classifier
    "PackageClassification",
    "PackageClassifier",
    # rules
    "ExclusionPlanner",
    "ExclusionSet",
    # manifest
    "MANIFEST_FILE_NAME",
    "BackupManifest",
    "ManifestManager",
    # executor
    "BackupOutcome",
    "BackupState",
    "PackageBackupManager",
    # restore
    "PackageRestoreManager",
    # analyzer
    "ProblemFile",
    "ProblemStatus",
    "SyncLogAnalyzer",
    "SyncLogError",
    "VerificationResult",
    # database
    "DatabaseAction",
    "DatabaseBackupManager",
]
