"""External tool wrappers."""

from .database import DatabaseMode, DatabaseScriptRunner
from .mirror import (
    BENIGN_EXIT_CODES,
    FAILURE_EXIT_CODE,
    MirrorClient,
    MirrorRequest,
    RobocopyClient,
    SyncReport,
    describe_exit_code,
    read_log_lines,
)
from .service import ServiceController

__all__ = [
    # mirror
    "BENIGN_EXIT_CODES",
    "FAILURE_EXIT_CODE",
    "MirrorClient",
    "MirrorRequest",
    "RobocopyClient",
    "SyncReport",
    "describe_exit_code",
    "read_log_lines",
    # database
    "DatabaseMode",
    "DatabaseScriptRunner",
    # service
    "ServiceController",
]
