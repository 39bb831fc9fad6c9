"""External database backup/restore script runner."""

import subprocess
import typing as t
from enum import Enum
from pathlib import Path

from ..errors import DatabaseScriptFailed
from ..util.logging import get_logger

logger = get_logger(__name__)


class DatabaseMode(str, Enum):
    BACKUP = "backup"
    RESTORE = "restore"


class DatabaseScriptRunner:
    """Runs the opaque database script with a file-path contract."""

    def __init__(self, script: Path, shell: t.Optional[t.List[str]] = None) -> None:
        """Initialize script runner.

        Args:
            script: Backup/restore script to run
            shell: Command prefix placed before the script path
        """
        self.script = Path(script)
        self.shell = list(shell or [])

    def build_command(
        self,
        backup_file: Path,
        database_name: str,
        database_server: str,
        mode: DatabaseMode
    ) -> t.List[str]:
        return self.shell + [
            str(self.script),
            "-BackupFilePath", str(backup_file),
            "-DatabaseName", database_name,
            "-DatabaseServer", database_server,
            "-Mode", mode.value,
        ]

    def invoke(
        self,
        backup_file: Path,
        database_name: str,
        database_server: str,
        mode: DatabaseMode
    ) -> None:
        """Run the script; raises DatabaseScriptFailed unless it exits with 0."""
        cmd = self.build_command(backup_file, database_name, database_server, mode)
        context = {
            "script": self.script,
            "backup_file": backup_file,
            "database": database_name,
            "server": database_server,
        }

        logger.info(f"Running database {mode.value} of {database_name} on {database_server}")
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise DatabaseScriptFailed(
                f"Database script could not be started: {e}",
                operation=f"database {mode.value}",
                context=context,
            ) from e

        if result.stdout:
            logger.debug(result.stdout.strip())

        if result.returncode != 0:
            context["exit_code"] = result.returncode
            raise DatabaseScriptFailed(
                f"Database script failed: {result.stderr.strip() or 'no error output'}",
                operation=f"database {mode.value}",
                context=context,
            )
