"""Bulk directory mirroring capability."""

import codecs
import locale
import subprocess
import typing as t
from pathlib import Path

from pydantic import BaseModel, Field

from ..errors import MirrorError
from ..util.logging import get_logger

logger = get_logger(__name__)

# Exit codes below this value mean the mirror completed, possibly with
# informational differences. Anything at or above it is a failure.
FAILURE_EXIT_CODE = 8
BENIGN_EXIT_CODES = range(0, FAILURE_EXIT_CODE)

_EXIT_BITS = {
    1: "files copied",
    2: "extra files or directories detected",
    4: "mismatched files or directories detected",
    8: "some files or directories could not be copied",
    16: "fatal error, nothing copied",
}


class MirrorRequest(BaseModel):
    """One mirror invocation."""

    source: Path = Field(description="Tree to copy from")
    destination: Path = Field(description="Tree made to match the source")
    mirror_deletions: bool = Field(default=True, description="Delete destination content missing from the source")
    exclude_files: t.List[str] = Field(default_factory=list, description="File names or wildcards left untouched")
    exclude_directories: t.List[str] = Field(default_factory=list, description="Top-level directory names left untouched")
    retry_count: int = Field(default=2, description="Per-file retry attempts")
    retry_wait_seconds: int = Field(default=5, description="Delay between per-file retries")
    log_path: Path = Field(description="Log file written by the mirror tool")
    parallelism: t.Optional[int] = Field(default=None, description="Worker threads, tool default when None")


class SyncReport(BaseModel):
    """Outcome of one mirror invocation."""

    exit_code: int
    log_path: t.Optional[Path] = None
    log_lines: t.List[str] = Field(default_factory=list)
    total_files: t.Optional[int] = Field(default=None, description="Files found by rescanning the destination")
    total_bytes: t.Optional[int] = Field(default=None, description="Bytes found by rescanning the destination")

    @property
    def succeeded(self) -> bool:
        return self.exit_code in BENIGN_EXIT_CODES

    def with_summary(self, total_files: int, total_bytes: int) -> "SyncReport":
        """Copy of this report carrying independently scanned totals."""
        return self.model_copy(update={"total_files": total_files, "total_bytes": total_bytes})


def describe_exit_code(exit_code: int) -> str:
    """Human readable meaning of a mirror exit code."""
    if exit_code == 0:
        return "no changes"
    if exit_code < 0:
        return f"terminated ({exit_code})"

    meanings = [text for bit, text in _EXIT_BITS.items() if exit_code & bit]
    return ", ".join(meanings) if meanings else f"unknown ({exit_code})"


def read_log_lines(log_path: t.Optional[Path]) -> t.List[str]:
    """Read a mirror log file.

    Logs written with ``/UNILOG`` are UTF-16 with a byte order mark. Logs
    without one are tried as UTF-8, then in the host's preferred encoding.
    """
    if log_path is None or not log_path.exists():
        return []

    raw = log_path.read_bytes()
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        text = raw.decode("utf-16", errors="replace")
    else:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = raw.decode(locale.getpreferredencoding(False), errors="replace")
    return text.splitlines()


class MirrorClient:
    """Makes a destination tree match a source tree."""

    def mirror(self, request: MirrorRequest) -> SyncReport:
        """Run one mirror operation.

        Implementations return the raw exit code and log; they never raise
        for exit codes, only when the tool cannot be run.
        """
        raise NotImplementedError


class RobocopyClient(MirrorClient):
    """Mirror capability backed by robocopy."""

    def __init__(self, executable: str = "robocopy") -> None:
        """Initialize robocopy client.

        Args:
            executable: Path to the robocopy executable
        """
        self.executable = executable

    def build_command(self, request: MirrorRequest) -> t.List[str]:
        """Build the robocopy command line for a request."""
        cmd = [self.executable, str(request.source), str(request.destination)]

        cmd.append("/MIR" if request.mirror_deletions else "/E")

        if request.exclude_files:
            cmd.append("/XF")
            cmd.extend(request.exclude_files)

        if request.exclude_directories:
            # A bare /XD name matches at any depth; full paths pin it to the top level.
            cmd.append("/XD")
            for name in request.exclude_directories:
                cmd.append(str(request.source / name))
                cmd.append(str(request.destination / name))

        cmd.append(f"/R:{request.retry_count}")
        cmd.append(f"/W:{request.retry_wait_seconds}")

        if request.parallelism:
            cmd.append(f"/MT:{request.parallelism}")

        cmd.extend(["/FP", "/NP", "/NDL", "/BYTES", f"/UNILOG:{request.log_path}"])
        return cmd

    def mirror(self, request: MirrorRequest) -> SyncReport:
        request.log_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command(request)

        logger.info(f"Mirroring {request.source} -> {request.destination}")
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False
            )
        except FileNotFoundError as e:
            raise MirrorError(
                f"Mirror tool not found: {self.executable}",
                operation="mirror",
                context={"source": request.source, "destination": request.destination},
            ) from e
        except OSError as e:
            raise MirrorError(
                f"Mirror tool could not be started: {e}",
                operation="mirror",
                context={"source": request.source, "destination": request.destination},
            ) from e

        logger.info(
            f"Mirror finished with exit code {result.returncode} "
            f"({describe_exit_code(result.returncode)})"
        )

        return SyncReport(
            exit_code=result.returncode,
            log_path=request.log_path,
            log_lines=read_log_lines(request.log_path),
        )
