"""Error taxonomy for build preparation."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Category of a failure, used to decide how a run reacts to it."""

    CONFIGURATION = "configuration"
    RESOURCE = "resource"
    VERIFICATION = "verification"
    EXTERNAL_TOOL = "external_tool"


class BuildPrepError(Exception):
    """Base error carrying a kind, the failing operation and its context."""

    kind: ErrorKind = ErrorKind.CONFIGURATION
    fatal: bool = True

    def __init__(
        self,
        message: str,
        operation: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.context = dict(context or {})

    def describe(self) -> str:
        """Single line description with operation and context."""
        parts = [f"[{self.kind.value}]"]
        if self.operation:
            parts.append(f"{self.operation}:")
        parts.append(self.message)
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            parts.append(f"({details})")
        return " ".join(parts)


class NoBackupPathAvailable(BuildPrepError):
    kind = ErrorKind.CONFIGURATION


class PackagesPathUnresolved(BuildPrepError):
    kind = ErrorKind.CONFIGURATION


class BackupMissing(BuildPrepError):
    kind = ErrorKind.CONFIGURATION


class CleanupFailed(BuildPrepError):
    kind = ErrorKind.RESOURCE


class DriveNotReady(BuildPrepError):
    kind = ErrorKind.RESOURCE


class InsufficientSpace(BuildPrepError):
    kind = ErrorKind.RESOURCE


class BackupVerificationFailed(BuildPrepError):
    kind = ErrorKind.VERIFICATION


class MirrorError(BuildPrepError):
    """The mirror tool could not be run at all."""

    kind = ErrorKind.EXTERNAL_TOOL


class BackupFailed(BuildPrepError):
    kind = ErrorKind.EXTERNAL_TOOL


class RestoreFailed(BuildPrepError):
    kind = ErrorKind.EXTERNAL_TOOL


class DatabaseScriptFailed(BuildPrepError):
    kind = ErrorKind.EXTERNAL_TOOL


class ServiceControlFailed(BuildPrepError):
    kind = ErrorKind.EXTERNAL_TOOL


__all__ = [
    "ErrorKind",
    "BuildPrepError",
    "NoBackupPathAvailable",
    "PackagesPathUnresolved",
    "BackupMissing",
    "CleanupFailed",
    "DriveNotReady",
    "InsufficientSpace",
    "BackupVerificationFailed",
    "MirrorError",
    "BackupFailed",
    "RestoreFailed",
    "DatabaseScriptFailed",
    "ServiceControlFailed",
]
