"""Tests for the database backup branch."""

from unittest.mock import MagicMock

import pytest

from buildprep.backup.database import DatabaseAction, DatabaseBackupManager
from buildprep.backup.storage import DATABASES, BackupRoot
from buildprep.errors import BackupMissing, DatabaseScriptFailed
from buildprep.tools.database import DatabaseMode


@pytest.fixture
def root(tmp_path):
    return BackupRoot(base=tmp_path / "backup", purpose=DATABASES)


def writing_runner(content="bak"):
    """Runner whose script writes the requested backup file."""
    runner = MagicMock()

    def invoke(backup_file, database_name, database_server, mode):
        if mode is DatabaseMode.BACKUP:
            backup_file.write_text(content)

    runner.invoke.side_effect = invoke
    return runner


class TestDatabaseBackupManager:
    """Test database backup and restore decisions."""

    def test_backup_writes_file_and_manifest(self, root):
        runner = writing_runner("x" * 64)
        manager = DatabaseBackupManager(runner, "AxDB", "sql01", collection_url="https://tfs/Build")

        action = manager.backup(root)

        assert action is DatabaseAction.BACKED_UP
        runner.invoke.assert_called_once_with(root.path / "AxDB.bak", "AxDB", "sql01", DatabaseMode.BACKUP)
        manifest = root.manifest.load_manifest()
        assert manifest.total_bytes == 64
        assert manifest.source == "sql01/AxDB"

    def test_existing_backup_skipped(self, root):
        runner = writing_runner()
        manager = DatabaseBackupManager(runner, "AxDB", "sql01")
        manager.backup(root)

        action = manager.backup(root)

        assert action is DatabaseAction.BACKUP_EXISTS
        assert runner.invoke.call_count == 1

    def test_incomplete_backup_removed(self, root):
        root.path.mkdir(parents=True)
        (root.path / "AxDB.bak.partial").write_text("half written")

        DatabaseBackupManager(writing_runner(), "AxDB", "sql01").backup(root)

        assert not (root.path / "AxDB.bak.partial").exists()
        assert (root.path / "AxDB.bak").exists()

    def test_script_without_file_fails(self, root):
        runner = MagicMock()

        with pytest.raises(DatabaseScriptFailed):
            DatabaseBackupManager(runner, "AxDB", "sql01").backup(root)

        assert not root.manifest.exists()

    def test_custom_file_name(self, root):
        manager = DatabaseBackupManager(writing_runner(), "AxDB", "sql01", backup_file_name="{name}_baseline.bak")

        assert manager.backup_file(root) == root.path / "AxDB_baseline.bak"

    def test_restore_from_supplied_file(self, tmp_path):
        backup_file = tmp_path / "golden.bak"
        backup_file.write_text("bak")
        runner = MagicMock()

        action = DatabaseBackupManager(runner, "AxDB", "sql01").restore(backup_file)

        assert action is DatabaseAction.RESTORED
        runner.invoke.assert_called_once_with(backup_file, "AxDB", "sql01", DatabaseMode.RESTORE)

    def test_restore_missing_file(self, tmp_path):
        runner = MagicMock()

        with pytest.raises(BackupMissing):
            DatabaseBackupManager(runner, "AxDB", "sql01").restore(tmp_path / "missing.bak")

        runner.invoke.assert_not_called()
