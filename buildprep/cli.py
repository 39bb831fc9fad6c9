"""Command Line Interface for buildprep."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .backup import (
    DATABASES,
    PACKAGES,
    BackupPathResolver,
    BackupRoot,
    SyncLogAnalyzer,
)
from .config import DEFAULT_CONFIG_PATH, apply_overrides, load_config, remember_backup_path
from .errors import BuildPrepError
from .orchestrator import BuildPrepOrchestrator, RunSummary
from .tools.mirror import read_log_lines
from .util import format_size, get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Configuration file path")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Write a detailed log to this file")
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[Path], log_file: Optional[Path]):
    """buildprep - Prepare an ERP build host by backing up or restoring deployed packages."""
    ctx.ensure_object(dict)

    config_path = config_path or DEFAULT_CONFIG_PATH
    config = load_config(config_path)

    level = "DEBUG" if verbose else config.log_level
    setup_logging(level=level, log_file=log_file, console=console)

    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


@cli.command("prepare")
@click.option("--collection-url", help="Project collection URL of the build")
@click.option("--sdk-path", type=click.Path(file_okay=False, path_type=Path), help="SDK root path")
@click.option("--packages-path", type=click.Path(file_okay=False, path_type=Path),
              help="Deployed packages directory (defaults to the SDK packages directory)")
@click.option("--backup-path", type=click.Path(file_okay=False, path_type=Path), help="Backup base directory")
@click.option("--database-backup-file", type=click.Path(dir_okay=False, path_type=Path),
              help="Restore the database from this backup file instead of backing it up")
@click.option("--service-name", help="Deployment service to stop before package work")
@click.option("--restore-all-files", is_flag=True, help="Restore without safe-mode exclusions")
@click.option("--overwrite-backup", is_flag=True, help="Discard and recreate the package backup")
@click.option("--log-dir", type=click.Path(file_okay=False, path_type=Path), help="Directory for mirror logs")
@click.pass_context
def prepare(ctx, collection_url: Optional[str], sdk_path: Optional[Path], packages_path: Optional[Path],
            backup_path: Optional[Path], database_backup_file: Optional[Path], service_name: Optional[str],
            restore_all_files: bool, overwrite_backup: bool, log_dir: Optional[Path]):
    """Back up the deployed packages on first run, restore them afterwards."""
    config = apply_overrides(
        ctx.obj["config"],
        packages_path=packages_path,
        sdk_path=sdk_path,
        backup_path=backup_path,
        service_name=service_name,
        log_dir=log_dir,
        collection_url=collection_url,
        restore_all_files=restore_all_files or None,
        overwrite_backup=overwrite_backup or None,
    )
    config_path = ctx.obj["config_path"]

    resolver = BackupPathResolver(on_select=lambda base: remember_backup_path(base, config_path))

    try:
        summary = BuildPrepOrchestrator(config, resolver=resolver).run(database_backup_file=database_backup_file)
    except BuildPrepError as e:
        logger.error(f"Build preparation failed: {e.describe()}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Build preparation failed: {e}")
        sys.exit(1)

    _print_summary(summary)


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="Build Preparation")
    table.add_column("Step", style="cyan")
    table.add_column("Result", style="white")

    table.add_row("Packages", str(summary.packages_path))
    if summary.package_root is not None:
        table.add_row("Package backup", str(summary.package_root.path))

    if summary.package_backup_created:
        table.add_row("Package backup", "[green]created[/green]")
    elif summary.restore_result is not None:
        result = summary.restore_result
        style = "yellow" if result.has_warnings else "green"
        table.add_row("Package restore", f"[{style}]{result.summary()}[/{style}]")

    table.add_row("Database", summary.database_action.value.replace("_", " "))
    console.print(table)


@cli.command("status")
@click.option("--backup-path", type=click.Path(file_okay=False, path_type=Path), help="Backup base directory")
@click.pass_context
def status(ctx, backup_path: Optional[Path]):
    """Show the backups recorded under the backup path."""
    config = ctx.obj["config"]
    base = backup_path or config.backup.backup_path

    if base is None:
        console.print("[yellow]No backup path configured[/yellow]")
        return

    table = Table(title=f"Backups - {base}")
    table.add_column("Purpose", style="cyan")
    table.add_column("State", style="white")
    table.add_column("Files", style="white")
    table.add_column("Size", style="white")
    table.add_column("Created", style="white")

    for purpose in (PACKAGES, DATABASES):
        root = BackupRoot(base=base, purpose=purpose)
        manifest = root.manifest.load_manifest()

        if manifest is not None:
            table.add_row(purpose, "[green]complete[/green]", str(manifest.total_files),
                          format_size(manifest.total_bytes), manifest.created_at)
        elif root.manifest.exists():
            table.add_row(purpose, "[green]complete[/green]", "?", "?", "?")
        elif root.path.exists():
            table.add_row(purpose, "[red]incomplete[/red]", "-", "-", "-")
        else:
            table.add_row(purpose, "[yellow]absent[/yellow]", "-", "-", "-")

    console.print(table)


@cli.command("analyze-log")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--destination", required=True, type=click.Path(file_okay=False, path_type=Path),
              help="Mirror destination (deployed packages)")
@click.option("--backup", "backup_dir", required=True, type=click.Path(file_okay=False, path_type=Path),
              help="Mirror source (package backup)")
def analyze_log(log_path: Path, destination: Path, backup_dir: Path):
    """Classify the errors in an existing mirror log."""
    result = SyncLogAnalyzer().analyze(read_log_lines(log_path), destination, backup_dir)

    if result.problems:
        table = Table(title=f"Logged Errors - {log_path.name}")
        table.add_column("Status", style="cyan")
        table.add_column("Error", style="white")
        table.add_column("Path", style="white")

        for problem in result.problems:
            style = "green" if problem.benign else "red"
            table.add_row(f"[{style}]{problem.status.value}[/{style}]",
                          f"{problem.error_code} {problem.action}", problem.path)

        console.print(table)

    console.print(result.summary())


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
