"""Configuration management for buildprep."""

import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/buildprep/config.yaml"


class BackupSettings(BaseModel):
    """Where backups live."""

    backup_path: Optional[Path] = Field(
        default=None,
        description="Backup base directory; selected and persisted on first run when unset"
    )
    default_candidates: List[Path] = Field(
        default=[
            Path("K:\\Backup"),
            Path("D:\\Backup"),
            Path("C:\\Backup"),
        ],
        description="Base directories probed in order when no backup path is configured"
    )
    overwrite: bool = Field(default=False, description="Discard and recreate an existing package backup")

    class Config:
        """Pydantic configuration."""

        frozen = True


class PackageSettings(BaseModel):
    """Layout of the deployed metadata packages tree."""

    packages_path: Optional[Path] = Field(default=None, description="Deployed packages directory")
    sdk_path: Optional[Path] = Field(default=None, description="SDK root holding the packages directory")
    packages_dir_name: str = Field(default="PackagesLocalDirectory", description="Packages directory under the SDK root")
    descriptor_dir: str = Field(default="Descriptor", description="Subdirectory holding package descriptors")
    descriptor_pattern: str = Field(default="*.xml", description="Glob for descriptor documents")
    customization_marker: str = Field(
        default="Customization.marker",
        description="File marking a directory with build-pipeline customizations"
    )
    metadata_location_file: str = Field(
        default="MetadataLocation.xml",
        description="Per-package metadata location file that may diverge through hot fixes"
    )

    class Config:
        """Pydantic configuration."""

        frozen = True


class MirrorSettings(BaseModel):
    """Settings handed to the bulk mirror tool."""

    executable: str = Field(default="robocopy", description="Mirror tool executable")
    retry_count: int = Field(default=2, description="Per-file retry attempts")
    retry_wait_seconds: int = Field(default=5, description="Delay between per-file retries")
    parallelism: Optional[int] = Field(default=16, description="Mirror worker threads")
    log_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "buildprep",
        description="Directory for mirror log files"
    )

    class Config:
        """Pydantic configuration."""

        frozen = True


class DatabaseSettings(BaseModel):
    """External database backup/restore script."""

    name: Optional[str] = Field(default="AxDB", description="Database name")
    server: str = Field(default="localhost", description="Database server")
    script: Optional[Path] = Field(default=None, description="Backup/restore script; database work is skipped when unset")
    shell: List[str] = Field(
        default=["powershell.exe", "-NoProfile", "-ExecutionPolicy", "Bypass", "-File"],
        description="Command prefix used to run the script"
    )
    backup_file_name: str = Field(default="{name}.bak", description="Backup file name inside the Databases root")

    class Config:
        """Pydantic configuration."""

        frozen = True


class ServiceSettings(BaseModel):
    """Deployment service stopped before package work."""

    name: Optional[str] = Field(default=None, description="Service name; nothing is stopped when unset")
    stop_command: List[str] = Field(default=["sc.exe", "stop", "{name}"], description="Stop command template")
    tolerated_exit_codes: List[int] = Field(
        default=[0, 1062],
        description="Exit codes meaning stopped or already not running"
    )

    class Config:
        """Pydantic configuration."""

        frozen = True


class BuildPrepConfig(BaseModel):
    """Main configuration for buildprep."""

    backup: BackupSettings = Field(default_factory=BackupSettings)
    packages: PackageSettings = Field(default_factory=PackageSettings)
    mirror: MirrorSettings = Field(default_factory=MirrorSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)

    collection_url: Optional[str] = Field(default=None, description="Project collection URL of the build")
    restore_all_files: bool = Field(default=False, description="Restore without safe-mode exclusions")
    log_level: str = Field(default="INFO", description="Logging level")

    class Config:
        """Pydantic configuration."""

        frozen = True

    def resolve_packages_path(self) -> Optional[Path]:
        """Deployed packages directory, explicit or derived from the SDK root."""
        if self.packages.packages_path is not None:
            return self.packages.packages_path
        if self.packages.sdk_path is not None:
            return self.packages.sdk_path / self.packages.packages_dir_name
        return None


def load_config(config_path: Optional[Path] = None) -> BuildPrepConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
        return BuildPrepConfig(**data)
    else:
        config = BuildPrepConfig()
        save_config(config, config_path)
        return config


def save_config(config: BuildPrepConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def remember_backup_path(backup_path: Path, config_path: Optional[Path] = None) -> BuildPrepConfig:
    """Persist a newly selected backup base so later runs reuse it."""
    config = load_config(config_path)
    updated = config.model_copy(update={
        "backup": config.backup.model_copy(update={"backup_path": Path(backup_path)})
    })
    save_config(updated, config_path)
    return updated


def apply_overrides(
    config: BuildPrepConfig,
    packages_path: Optional[Path] = None,
    sdk_path: Optional[Path] = None,
    backup_path: Optional[Path] = None,
    service_name: Optional[str] = None,
    log_dir: Optional[Path] = None,
    collection_url: Optional[str] = None,
    restore_all_files: Optional[bool] = None,
    overwrite_backup: Optional[bool] = None,
) -> BuildPrepConfig:
    """Return a copy of ``config`` with command line values applied."""

    packages = {}
    if packages_path is not None:
        packages["packages_path"] = Path(packages_path)
    if sdk_path is not None:
        packages["sdk_path"] = Path(sdk_path)

    backup = {}
    if backup_path is not None:
        backup["backup_path"] = Path(backup_path)
    if overwrite_backup is not None:
        backup["overwrite"] = overwrite_backup

    update = {}
    if packages:
        update["packages"] = config.packages.model_copy(update=packages)
    if backup:
        update["backup"] = config.backup.model_copy(update=backup)
    if service_name is not None:
        update["service"] = config.service.model_copy(update={"name": service_name})
    if log_dir is not None:
        update["mirror"] = config.mirror.model_copy(update={"log_dir": Path(log_dir)})
    if collection_url is not None:
        update["collection_url"] = collection_url
    if restore_all_files is not None:
        update["restore_all_files"] = restore_all_files

    return config.model_copy(update=update)
