"""Package directory classification."""

import typing as t
from pathlib import Path

from pydantic import BaseModel, Field

from ..util.logging import get_logger

logger = get_logger(__name__)


class PackageClassification(BaseModel):
    """How one top-level directory is treated by backups and restores."""

    name: str = Field(description="Directory name")
    path: Path = Field(description="Directory path")
    is_package: bool = Field(description="Has a descriptor folder with at least one descriptor")
    is_customized: bool = Field(description="Carries the customization marker file")


class PackageClassifier:
    """Decides whether a directory is a build package or foreign content.

    Classification depends only on the descriptor folder and the
    customization marker, never on timestamps.
    """

    def __init__(
        self,
        descriptor_dir: str = "Descriptor",
        descriptor_pattern: str = "*.xml",
        customization_marker: str = "Customization.marker"
    ) -> None:
        self.descriptor_dir = descriptor_dir
        self.descriptor_pattern = descriptor_pattern
        self.customization_marker = customization_marker

    def has_descriptor(self, directory: Path) -> bool:
        descriptor_dir = directory / self.descriptor_dir
        if not descriptor_dir.is_dir():
            return False
        return any(p.is_file() for p in descriptor_dir.glob(self.descriptor_pattern))

    def has_customization_marker(self, directory: Path) -> bool:
        return (directory / self.customization_marker).is_file()

    def classify(self, directory: Path) -> PackageClassification:
        directory = Path(directory)
        return PackageClassification(
            name=directory.name,
            path=directory,
            is_package=self.has_descriptor(directory),
            is_customized=self.has_customization_marker(directory),
        )

    def classify_children(self, root: Path) -> t.List[PackageClassification]:
        """Classify the immediate child directories of ``root``, sorted by name."""
        root = Path(root)
        if not root.is_dir():
            return []

        children = sorted(
            (p for p in root.iterdir() if p.is_dir()),
            key=lambda p: p.name.lower()
        )
        classifications = [self.classify(child) for child in children]

        packages = sum(1 for c in classifications if c.is_package)
        logger.debug(f"Classified {root}: {packages} packages, {len(classifications) - packages} other directories")
        return classifications
