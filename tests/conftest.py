"""Shared fixtures: an in-process mirror and package tree builders."""

import fnmatch
import os
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from buildprep.tools.mirror import MirrorClient, MirrorRequest, SyncReport


class FakeMirror(MirrorClient):
    """Emulates the robocopy contract on the local filesystem.

    Exit code bits follow robocopy: 1 files copied, 2 extras purged.
    Directory exclusions apply to top-level entries only.
    """

    def __init__(
        self,
        exit_code: Optional[int] = None,
        extra_log_lines: Optional[List[str]] = None,
        after_copy: Optional[Callable[[MirrorRequest], None]] = None,
    ) -> None:
        self.exit_code = exit_code
        self.extra_log_lines = list(extra_log_lines or [])
        self.after_copy = after_copy
        self.requests: List[MirrorRequest] = []

    @staticmethod
    def _excluded(name: str, patterns: List[str]) -> bool:
        return any(fnmatch.fnmatch(name.lower(), p.lower()) for p in patterns)

    def mirror(self, request: MirrorRequest) -> SyncReport:
        self.requests.append(request)
        source, destination = Path(request.source), Path(request.destination)
        destination.mkdir(parents=True, exist_ok=True)
        lines = [f"Source : {source}", f"Dest : {destination}"]
        copied = purged = 0

        for dirpath, dirnames, filenames in os.walk(source):
            if Path(dirpath) == source:
                dirnames[:] = [d for d in dirnames if not self._excluded(d, request.exclude_directories)]
            target_dir = destination / Path(dirpath).relative_to(source)
            target_dir.mkdir(parents=True, exist_ok=True)
            for name in filenames:
                if self._excluded(name, request.exclude_files):
                    continue
                shutil.copy2(Path(dirpath) / name, target_dir / name)
                lines.append(f"\t    New File  \t\t{target_dir / name}")
                copied += 1

        if request.mirror_deletions:
            for dirpath, dirnames, filenames in os.walk(destination):
                source_dir = source / Path(dirpath).relative_to(destination)
                for name in list(dirnames):
                    if Path(dirpath) == destination and self._excluded(name, request.exclude_directories):
                        dirnames.remove(name)
                    elif not (source_dir / name).exists():
                        shutil.rmtree(Path(dirpath) / name)
                        dirnames.remove(name)
                        lines.append(f"\t*EXTRA Dir \t\t{Path(dirpath) / name}")
                        purged += 1
                for name in filenames:
                    if self._excluded(name, request.exclude_files):
                        continue
                    if not (source_dir / name).exists():
                        (Path(dirpath) / name).unlink()
                        lines.append(f"\t*EXTRA File \t\t{Path(dirpath) / name}")
                        purged += 1

        if self.after_copy:
            self.after_copy(request)

        lines.extend(self.extra_log_lines)
        request.log_path.parent.mkdir(parents=True, exist_ok=True)
        request.log_path.write_text("\n".join(lines), encoding="utf-8")

        exit_code = self.exit_code
        if exit_code is None:
            exit_code = (1 if copied else 0) | (2 if purged else 0)

        return SyncReport(exit_code=exit_code, log_path=request.log_path, log_lines=lines)


def make_package(
    root: Path,
    name: str,
    descriptor: bool = True,
    customized: bool = False,
    files: Optional[Dict[str, str]] = None,
) -> Path:
    """Create a top-level package directory with optional descriptor and marker."""
    package = root / name
    package.mkdir(parents=True, exist_ok=True)

    if descriptor:
        (package / "Descriptor").mkdir(exist_ok=True)
        (package / "Descriptor" / f"{name}.xml").write_text(f"<Descriptor name='{name}'/>")
    if customized:
        (package / "Customization.marker").write_text("customized")

    for relative, content in (files or {}).items():
        path = package / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)

    return package


@pytest.fixture
def fake_mirror():
    return FakeMirror()


@pytest.fixture
def deployment(tmp_path):
    """Deployed packages tree with two packages."""
    root = tmp_path / "PackagesLocalDirectory"
    make_package(root, "Ledger", files={"bin/Ledger.dll": "ledger-binary", "XppMetadata/Ledger.md": "meta"})
    make_package(root, "Payroll", files={"bin/Payroll.dll": "payroll-binary"})
    return root
