"""Exclusion rules for selective mirror operations."""

import typing as t

from pydantic import BaseModel, Field

from ..util.logging import get_logger
from .classifier import PackageClassification
from .manifest import MANIFEST_FILE_NAME

logger = get_logger(__name__)


def _dedupe(names: t.Iterable[str]) -> t.List[str]:
    """Drop case-insensitive duplicates, keeping first-seen order."""
    seen = set()
    unique = []
    for name in names:
        key = name.lower()
        if key not in seen:
            seen.add(key)
            unique.append(name)
    return unique


class ExclusionSet(BaseModel):
    """Names a mirror operation must not touch."""

    files: t.List[str] = Field(default_factory=list, description="Excluded file names or wildcards")
    directories: t.List[str] = Field(default_factory=list, description="Excluded directory names")

    def union(self, other: "ExclusionSet") -> "ExclusionSet":
        return ExclusionSet(
            files=_dedupe(self.files + other.files),
            directories=_dedupe(self.directories + other.directories),
        )

    def excludes_directory(self, name: str) -> bool:
        return name.lower() in {d.lower() for d in self.directories}


class ExclusionPlanner:
    """Builds the exclusion set for restoring a backup over a deployment."""

    def __init__(self, metadata_location_file: str = "MetadataLocation.xml") -> None:
        self.metadata_location_file = metadata_location_file

    def plan_backup_side(
        self,
        backup_children: t.Sequence[PackageClassification],
        restore_all_files: bool = False
    ) -> ExclusionSet:
        """Exclusions derived from the backup: its non-package directories."""
        files = [MANIFEST_FILE_NAME]
        if restore_all_files:
            return ExclusionSet(files=files)

        files.append(self.metadata_location_file)
        directories = [c.name for c in backup_children if not c.is_package]
        return ExclusionSet(files=files, directories=_dedupe(directories))

    def plan_deployment_side(
        self,
        deployment_children: t.Sequence[PackageClassification],
        already_excluded: t.Optional[ExclusionSet] = None,
        restore_all_files: bool = False
    ) -> ExclusionSet:
        """Exclusions derived from the deployment.

        Directories that are neither packages nor customized are protected
        unless the backup side already excludes them.
        """
        files = [MANIFEST_FILE_NAME]
        if restore_all_files:
            return ExclusionSet(files=files)

        files.append(self.metadata_location_file)
        directories = [
            c.name for c in deployment_children
            if not c.is_package
            and not c.is_customized
            and not (already_excluded and already_excluded.excludes_directory(c.name))
        ]
        return ExclusionSet(files=files, directories=_dedupe(directories))

    def plan(
        self,
        backup_children: t.Sequence[PackageClassification],
        deployment_children: t.Sequence[PackageClassification],
        restore_all_files: bool = False
    ) -> ExclusionSet:
        backup_side = self.plan_backup_side(backup_children, restore_all_files)
        deployment_side = self.plan_deployment_side(deployment_children, backup_side, restore_all_files)
        exclusions = backup_side.union(deployment_side)

        logger.debug(f"Excluded files: {', '.join(exclusions.files)}")
        if exclusions.directories:
            logger.info(f"Excluding {len(exclusions.directories)} non-package directories: "
                        f"{', '.join(exclusions.directories)}")

        return exclusions
