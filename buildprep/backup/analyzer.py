"""Mirror log analysis.

The mirror tool's exit code says little about individual files. Its log
lists every file it failed to copy or delete, but many of those failures
resolve themselves on retry. Each logged path is therefore checked on disk
on both sides: a file present on both sides, or absent from both, ended up
where a successful restore or purge would have left it. A file present on
only one side is a real problem.
"""

import re
import typing as t
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from ..util.logging import get_logger

logger = get_logger(__name__)

# e.g. "2024/05/01 10:11:12 ERROR 5 (0x00000005) Deleting Extra File C:\Pkg\Foo\bin\x.runtime"
_ERROR_LINE = re.compile(
    r"ERROR\s+(?P<code>\d+)\s+(?:\(0x[0-9A-Fa-f]+\)\s+)?"
    r"(?P<action>.+?)\s+"
    r"(?P<path>(?:[A-Za-z]:[\\/]|\\\\|/).*?)\s*$"
)
_RETRY_LINE = re.compile(r"^\s*Waiting\s+\d+\s+seconds", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\\/]+")


class ProblemStatus(str, Enum):
    PURGED = "purged"
    RESTORED = "restored"
    NOT_PURGED = "not_purged"
    NOT_RESTORED = "not_restored"
    UNRESOLVED = "unresolved"


class SyncLogError(BaseModel):
    """One error line from a mirror log."""

    code: int
    action: str
    path: str
    detail: str = ""


class ProblemFile(BaseModel):
    """A logged path checked against both sides of the mirror."""

    path: str = Field(description="Path as logged by the mirror tool")
    counterpart: t.Optional[str] = Field(default=None, description="Same file on the opposite side")
    error_code: int
    action: str
    message: str = ""
    status: ProblemStatus
    benign: bool


class VerificationResult(BaseModel):
    """Outcome of checking a restore's mirror log."""

    passed: bool = True
    problem_count: int = Field(default=0, description="Real problems")
    benign_count: int = Field(default=0, description="Logged errors that resolved themselves")
    problems: t.List[ProblemFile] = Field(default_factory=list)

    @property
    def status(self) -> str:
        return "success" if self.problem_count == 0 else "success_with_warnings"

    @property
    def has_warnings(self) -> bool:
        return self.problem_count > 0

    def summary(self) -> str:
        if self.problem_count == 0:
            if self.benign_count:
                return f"Restore verified; {self.benign_count} logged errors resolved themselves"
            return "Restore verified"
        return (
            f"Restore completed with warnings: {self.problem_count} problem files, "
            f"{self.benign_count} logged errors resolved themselves"
        )


def _parts(path: str) -> t.List[str]:
    return [part for part in _SEPARATORS.split(path) if part]


def _relative_parts(path: str, root: Path) -> t.Optional[t.List[str]]:
    """Parts of ``path`` below ``root``, compared case-insensitively."""
    path_parts = _parts(path)
    root_parts = _parts(str(root))

    if not root_parts or len(path_parts) <= len(root_parts):
        return None

    head = path_parts[:len(root_parts)]
    if [p.lower() for p in head] != [p.lower() for p in root_parts]:
        return None

    return path_parts[len(root_parts):]


class SyncLogAnalyzer:
    """Turns mirror log error lines into classified problem files."""

    def parse(self, log_lines: t.Sequence[str]) -> t.List[SyncLogError]:
        """Extract error records, one per distinct path."""
        errors: t.List[SyncLogError] = []
        seen = set()

        for index, line in enumerate(log_lines):
            match = _ERROR_LINE.search(line)
            if not match:
                continue

            path = match.group("path")
            if path.lower() in seen:
                continue
            seen.add(path.lower())

            detail = ""
            if index + 1 < len(log_lines):
                following = log_lines[index + 1].strip()
                if following and not _ERROR_LINE.search(following) and not _RETRY_LINE.match(following):
                    detail = following

            errors.append(SyncLogError(
                code=int(match.group("code")),
                action=match.group("action").strip(),
                path=path,
                detail=detail,
            ))

        return errors

    def classify(self, error: SyncLogError, destination_root: Path, backup_root: Path) -> ProblemFile:
        destination_root = Path(destination_root)
        backup_root = Path(backup_root)

        # Try the deeper root first in case one root contains the other.
        candidates = sorted(
            [(destination_root, backup_root, True), (backup_root, destination_root, False)],
            key=lambda c: len(_parts(str(c[0]))),
            reverse=True,
        )

        for own_root, other_root, on_destination in candidates:
            relative = _relative_parts(error.path, own_root)
            if relative is None:
                continue

            own_path = own_root.joinpath(*relative)
            counterpart = other_root.joinpath(*relative)
            destination_path, backup_path = (own_path, counterpart) if on_destination else (counterpart, own_path)

            in_destination = destination_path.exists()
            in_backup = backup_path.exists()

            if in_destination and in_backup:
                status = ProblemStatus.RESTORED
            elif not in_destination and not in_backup:
                status = ProblemStatus.PURGED
            elif in_destination:
                status = ProblemStatus.NOT_PURGED
            else:
                status = ProblemStatus.NOT_RESTORED

            return ProblemFile(
                path=error.path,
                counterpart=str(counterpart),
                error_code=error.code,
                action=error.action,
                message=error.detail,
                status=status,
                benign=status in (ProblemStatus.RESTORED, ProblemStatus.PURGED),
            )

        return ProblemFile(
            path=error.path,
            error_code=error.code,
            action=error.action,
            message=error.detail,
            status=ProblemStatus.UNRESOLVED,
            benign=False,
        )

    def analyze(
        self,
        log_lines: t.Sequence[str],
        destination_root: Path,
        backup_root: Path
    ) -> VerificationResult:
        problems = [
            self.classify(error, destination_root, backup_root)
            for error in self.parse(log_lines)
        ]

        real = [p for p in problems if not p.benign]
        for problem in real:
            logger.warning(
                f"{problem.status.value}: {problem.path} "
                f"(ERROR {problem.error_code} {problem.action}{': ' + problem.message if problem.message else ''})"
            )
        for problem in problems:
            if problem.benign:
                logger.debug(f"{problem.status.value}: {problem.path} (ERROR {problem.error_code} {problem.action})")

        return VerificationResult(
            passed=not real,
            problem_count=len(real),
            benign_count=len(problems) - len(real),
            problems=problems,
        )
