"""Tests for exclusion planning."""

from pathlib import Path

from buildprep.backup.classifier import PackageClassification
from buildprep.backup.manifest import MANIFEST_FILE_NAME
from buildprep.backup.rules import ExclusionPlanner, ExclusionSet


def entry(name, is_package=True, is_customized=False):
    return PackageClassification(
        name=name,
        path=Path("/packages") / name,
        is_package=is_package,
        is_customized=is_customized,
    )


class TestExclusionSet:
    """Test exclusion set union semantics."""

    def test_union_keeps_order_and_drops_duplicates(self):
        first = ExclusionSet(files=["a.xml", "b.xml"], directories=["Temp"])
        second = ExclusionSet(files=["B.XML", "c.xml"], directories=["temp", "Scratch"])

        union = first.union(second)

        assert union.files == ["a.xml", "b.xml", "c.xml"]
        assert union.directories == ["Temp", "Scratch"]

    def test_excludes_directory_case_insensitive(self):
        exclusions = ExclusionSet(directories=["Temp"])

        assert exclusions.excludes_directory("TEMP")
        assert not exclusions.excludes_directory("Ledger")


class TestExclusionPlanner:
    """Test exclusion rules for safe and full restores."""

    def test_ledger_and_temp_scenario(self):
        """A backup holding Ledger and Temp excludes only Temp."""
        backup = [entry("Ledger"), entry("Temp", is_package=False)]
        deployment = [entry("Ledger"), entry("Temp", is_package=False)]

        exclusions = ExclusionPlanner().plan(backup, deployment, restore_all_files=False)

        assert exclusions.directories == ["Temp"]
        assert exclusions.files == [MANIFEST_FILE_NAME, "MetadataLocation.xml"]

    def test_manifest_always_excluded(self):
        exclusions = ExclusionPlanner().plan([], [], restore_all_files=True)

        assert exclusions.files == [MANIFEST_FILE_NAME]
        assert exclusions.directories == []

    def test_restore_all_files_only_excludes_manifest(self):
        backup = [entry("Ledger"), entry("Temp", is_package=False)]
        deployment = [entry("Scratch", is_package=False)]

        exclusions = ExclusionPlanner().plan(backup, deployment, restore_all_files=True)

        assert exclusions.files == [MANIFEST_FILE_NAME]
        assert exclusions.directories == []

    def test_foreign_deployment_directory_is_protected(self):
        """Deployment content without descriptor or marker is never touched."""
        backup = [entry("Ledger")]
        deployment = [entry("Ledger"), entry("Scratch", is_package=False)]

        exclusions = ExclusionPlanner().plan(backup, deployment)

        assert "Scratch" in exclusions.directories

    def test_customized_deployment_directory_not_excluded(self):
        """A customized non-package directory is left out of the deployment exclusions."""
        backup = [entry("Ledger")]
        deployment = [entry("Ledger"), entry("Hotfix", is_package=False, is_customized=True)]

        exclusions = ExclusionPlanner().plan(backup, deployment)

        assert "Hotfix" not in exclusions.directories

    def test_customized_directory_still_excluded_when_backup_excludes_it(self):
        """The backup-side exclusion stands even if the deployment copy gained a marker."""
        backup = [entry("Hotfix", is_package=False)]
        deployment = [entry("Hotfix", is_package=False, is_customized=True)]

        exclusions = ExclusionPlanner().plan(backup, deployment)

        assert exclusions.directories == ["Hotfix"]

    def test_deployment_side_skips_names_already_excluded(self):
        planner = ExclusionPlanner()
        backup_side = planner.plan_backup_side([entry("Temp", is_package=False)])

        deployment_side = planner.plan_deployment_side(
            [entry("temp", is_package=False), entry("Scratch", is_package=False)],
            already_excluded=backup_side,
        )

        assert deployment_side.directories == ["Scratch"]

    def test_every_bare_deployment_directory_excluded(self):
        """Each bare deployment directory not excluded on the backup side ends up excluded."""
        backup = [entry("Ledger"), entry("Old", is_package=False)]
        deployment = [
            entry("Ledger"),
            entry("Alpha", is_package=False),
            entry("Beta", is_package=False),
            entry("Gamma", is_package=False, is_customized=True),
            entry("Old", is_package=False),
        ]

        exclusions = ExclusionPlanner().plan(backup, deployment)

        assert exclusions.directories == ["Old", "Alpha", "Beta"]

    def test_plan_is_stable(self):
        backup = [entry("B", is_package=False), entry("A", is_package=False)]
        deployment = [entry("D", is_package=False), entry("C", is_package=False)]
        planner = ExclusionPlanner()

        first = planner.plan(backup, deployment)
        second = planner.plan(backup, deployment)

        assert first == second
        assert first.directories == ["B", "A", "D", "C"]

    def test_custom_metadata_location_file(self):
        exclusions = ExclusionPlanner(metadata_location_file="*.mdlocation").plan([], [])

        assert exclusions.files == [MANIFEST_FILE_NAME, "*.mdlocation"]
