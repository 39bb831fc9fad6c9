"""Tests for backup root resolution."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from buildprep.backup.manifest import BackupManifest
from buildprep.backup.storage import PACKAGES, BackupPathResolver, BackupRoot
from buildprep.errors import CleanupFailed, ErrorKind, NoBackupPathAvailable


class TestBackupRoot:
    def test_path_is_scoped_by_purpose(self, tmp_path):
        root = BackupRoot(base=tmp_path, purpose=PACKAGES)

        assert root.path == tmp_path / "Packages"
        assert root.manifest.manifest_path.parent == root.path


class TestBackupPathResolver:
    """Test configured and default backup path selection."""

    def test_configured_path_used_unchanged(self, tmp_path):
        on_select = MagicMock()
        resolver = BackupPathResolver(on_select=on_select)

        root = resolver.resolve(PACKAGES, tmp_path / "configured", [tmp_path / "candidate"])

        assert root.base == tmp_path / "configured"
        assert not root.newly_selected
        on_select.assert_not_called()

    def test_first_ready_candidate_selected_and_persisted(self, tmp_path):
        on_select = MagicMock()
        resolver = BackupPathResolver(on_select=on_select)

        # A relative path has no drive and is skipped.
        root = resolver.resolve(PACKAGES, None, [Path("relative/backup"), tmp_path / "backup"])

        assert root.base == tmp_path / "backup"
        assert root.newly_selected
        on_select.assert_called_once_with(tmp_path / "backup")

    @patch("buildprep.backup.storage.is_drive_ready")
    def test_candidates_probed_in_order(self, mock_ready, tmp_path):
        mock_ready.side_effect = lambda p: p.name != "first"

        root = BackupPathResolver().resolve(PACKAGES, None, [tmp_path / "first", tmp_path / "second"])

        assert root.base == tmp_path / "second"

    def test_no_usable_candidate(self):
        with pytest.raises(NoBackupPathAvailable) as exc_info:
            BackupPathResolver().resolve(PACKAGES, None, [Path("relative/a"), Path("relative/b")])

        assert exc_info.value.kind is ErrorKind.CONFIGURATION

    def test_no_candidates_at_all(self):
        with pytest.raises(NoBackupPathAvailable):
            BackupPathResolver().resolve(PACKAGES)

    def test_stale_content_under_new_root_deleted(self, tmp_path):
        stale = tmp_path / "backup" / "Packages"
        (stale / "Ledger").mkdir(parents=True)
        (stale / "Ledger" / "partial.dll").write_text("half copied")

        root = BackupPathResolver().resolve(PACKAGES, None, [tmp_path / "backup"])

        assert root.path == stale
        assert not stale.exists()

    def test_complete_backup_under_new_root_kept(self, tmp_path):
        root = BackupRoot(base=tmp_path / "backup", purpose=PACKAGES)
        (root.path / "Ledger").mkdir(parents=True)
        root.manifest.save_manifest(BackupManifest(purpose=PACKAGES, source="/deploy", total_files=1))

        BackupPathResolver().resolve(PACKAGES, None, [tmp_path / "backup"])

        assert (root.path / "Ledger").exists()

    def test_stale_content_under_configured_root_untouched(self, tmp_path):
        stale = tmp_path / "backup" / "Packages"
        stale.mkdir(parents=True)
        (stale / "partial.dll").write_text("half copied")

        BackupPathResolver().resolve(PACKAGES, tmp_path / "backup")

        assert (stale / "partial.dll").exists()

    @patch("buildprep.backup.storage.remove_tree", return_value=False)
    def test_cleanup_failure_is_fatal(self, _mock_remove, tmp_path):
        stale = tmp_path / "backup" / "Packages"
        stale.mkdir(parents=True)
        (stale / "locked.dll").write_text("locked")

        with pytest.raises(CleanupFailed) as exc_info:
            BackupPathResolver().resolve(PACKAGES, None, [tmp_path / "backup"])

        assert exc_info.value.fatal
        assert exc_info.value.kind is ErrorKind.RESOURCE
