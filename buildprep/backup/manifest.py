"""Backup completion manifest."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..util.logging import get_logger
from ..util.timeutil import human_timestamp

logger = get_logger(__name__)

# Sentinel name; mirrors exclude it so they never copy or purge it.
MANIFEST_FILE_NAME = "BackupComplete.manifest"


class BackupManifest(BaseModel):
    """Completion marker written once a backup has been verified."""

    version: int = Field(default=1, description="Manifest format version")
    purpose: str = Field(description="Purpose of the backup root (Packages, Databases)")
    source: str = Field(description="Directory or database the backup was taken from")
    created_at: str = Field(default_factory=human_timestamp, description="When the backup completed")
    total_files: int = Field(default=0, description="Files in the backup")
    total_bytes: int = Field(default=0, description="Bytes in the backup")
    collection_url: Optional[str] = Field(default=None, description="Project collection of the creating build")


class ManifestManager:
    """Reads and writes the manifest of one backup root.

    Only the presence of the manifest file says a backup is complete; its
    content is informational.
    """

    def __init__(self, backup_path: Path):
        self.backup_path = Path(backup_path)
        self.manifest_path = self.backup_path / MANIFEST_FILE_NAME

    def exists(self) -> bool:
        return self.manifest_path.is_file()

    def save_manifest(self, manifest: BackupManifest) -> None:
        self.backup_path.mkdir(parents=True, exist_ok=True)

        yaml = YAML()
        yaml.default_flow_style = False
        yaml.width = 120

        with open(self.manifest_path, "w", encoding="utf-8") as f:
            yaml.dump(manifest.model_dump(), f)

        logger.debug(f"Saved manifest to {self.manifest_path}")

    def load_manifest(self) -> Optional[BackupManifest]:
        """Load manifest content, or None when missing or unreadable."""
        if not self.exists():
            return None

        try:
            yaml = YAML(typ="safe")
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                data = yaml.load(f) or {}
            return BackupManifest(**data)
        except (OSError, YAMLError, ValidationError, TypeError) as e:
            logger.warning(f"Manifest {self.manifest_path} is present but unreadable: {e}")
            return None

    def remove(self) -> None:
        if self.exists():
            self.manifest_path.unlink()
