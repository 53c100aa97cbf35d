"""Unit tests for the counting stage."""

from pathlib import Path

from unityclean.engine.models import UnitKind
from unityclean.engine.planner import CleanPlanner
from unityclean.rules.models import CleanCategory
from unityclean.rules.tables import DEFAULT_RULES


class TestCleanPlanner:
    """Tests for CleanPlanner.plan."""

    def test_temp_files_become_file_units(self, unity_project, write_files) -> None:
        """Every file below Temp is one unit."""
        project = unity_project()
        write_files(project, ["Temp/a.txt", "Temp/sub/b.txt", "Temp/sub/deeper/c.txt"])

        plan = CleanPlanner().plan(project, [CleanCategory.TEMPORARY_FILES])

        assert plan.total == 3
        assert {u.relative for u in plan.units} == {
            "Temp/a.txt",
            "Temp/sub/b.txt",
            "Temp/sub/deeper/c.txt",
        }
        assert all(u.kind == UnitKind.FILE for u in plan.units)

    def test_named_cache_roots_become_subtree_units(self, unity_project, write_files) -> None:
        """Named Library caches are single units regardless of file count."""
        project = unity_project()
        write_files(project, [f"Library/ShaderCache/{i}.bin" for i in range(20)])
        write_files(project, ["Library/ArtifactDB", "Library/PackageCache/pkg/package.json"])

        plan = CleanPlanner().plan(project, [CleanCategory.LIBRARY_CACHE])

        subtrees = [u.relative for u in plan.units if u.kind == UnitKind.SUBTREE]
        files = [u.relative for u in plan.units if u.kind == UnitKind.FILE]
        assert subtrees == ["Library/PackageCache", "Library/ShaderCache"]
        # ArtifactDB is a file here, not a directory
        assert files == ["Library/ArtifactDB"]

    def test_protected_library_entries_are_kept(self, unity_project, write_files) -> None:
        """Protected Library files and folders are never planned."""
        project = unity_project()
        write_files(
            project,
            [
                "Library/LastSceneManagerSetup.txt",
                "Library/ScriptAssemblies/Game.dll",
                "Library/Misc/cache.dat",
            ],
        )

        plan = CleanPlanner().plan(project, [CleanCategory.LIBRARY_CACHE])

        assert [u.relative for u in plan.units] == ["Library/Misc/cache.dat"]
        assert "Library/LastSceneManagerSetup.txt" in plan.protected_kept
        assert "Library/ScriptAssemblies" in plan.protected_kept

    def test_unclassified_paths_are_excluded(self, unity_project, write_files) -> None:
        """Files outside every safe root never become units."""
        project = unity_project()
        write_files(project, ["Builds/Game.exe", "Assets/Player.cs", "Temp/x.tmp"])

        plan = CleanPlanner().plan(
            project, [CleanCategory.TEMPORARY_FILES, CleanCategory.LIBRARY_CACHE]
        )

        assert [u.relative for u in plan.units] == ["Temp/x.tmp"]

    def test_subtree_with_protected_entry_is_downgraded(self, unity_project, write_files) -> None:
        """A cache root holding a protected rule is planned file by file."""
        project = unity_project()
        write_files(project, [f"Library/ShaderCache/{i:03}.bin" for i in range(100)])
        write_files(project, ["Library/ShaderCache/keep.bin"])
        rules = DEFAULT_RULES.with_protected(["Library/ShaderCache/keep.bin"])

        plan = CleanPlanner(rules).plan(project, [CleanCategory.LIBRARY_CACHE])

        assert plan.downgraded == ("Library/ShaderCache",)
        assert plan.total == 100
        assert all(u.kind == UnitKind.FILE for u in plan.units)
        assert "Library/ShaderCache/keep.bin" in plan.protected_kept

    def test_categories_run_in_fixed_order(
        self, unity_project, write_files, tmp_path: Path
    ) -> None:
        """Units follow category order, not selection order."""
        project = unity_project()
        write_files(project, ["Temp/t.txt", "Library/l.txt"])
        data_dir = tmp_path / "unity-data"
        write_files(data_dir, ["Editor/e.txt"])

        plan = CleanPlanner(unity_data_dir=data_dir).plan(
            project,
            [
                CleanCategory.EDITOR_CACHE,
                CleanCategory.LIBRARY_CACHE,
                CleanCategory.TEMPORARY_FILES,
            ],
        )

        assert [u.category for u in plan.units] == [
            CleanCategory.TEMPORARY_FILES,
            CleanCategory.LIBRARY_CACHE,
            CleanCategory.EDITOR_CACHE,
        ]
        assert plan.units[-1].path == data_dir / "Editor" / "e.txt"

    def test_missing_roots_are_recorded(self, unity_project) -> None:
        """A missing Temp folder is reported, not an error."""
        project = unity_project()

        plan = CleanPlanner().plan(project, [CleanCategory.TEMPORARY_FILES])

        assert plan.total == 0
        assert plan.missing_roots == (str(project / "Temp"),)
        assert plan.is_empty is True

    def test_editor_cache_without_data_dir(self, unity_project) -> None:
        """Without a Unity data directory the editor cache is skipped."""
        planner = CleanPlanner(unity_data_dir=None)

        plan = planner.plan(unity_project(), [CleanCategory.EDITOR_CACHE])

        assert plan.total == 0
        assert plan.missing_roots == ("Editor",)

    def test_sign_out_collects_credentials(
        self, unity_project, write_files, tmp_path: Path
    ) -> None:
        """Credential files are collected but not counted in the total."""
        project = unity_project()
        roots = [tmp_path / "roaming" / "Unity", tmp_path / "roaming" / "UnityHub"]
        write_files(roots[0], ["Unity.sso.json", "prefs.txt"])
        write_files(roots[1], ["session/AccessToken", "settings.json"])

        plan = CleanPlanner(credential_roots=roots).plan(project, [CleanCategory.SIGN_OUT])

        assert plan.total == 0
        assert sorted(p.name for p in plan.credential_files) == ["AccessToken", "Unity.sso.json"]
        assert plan.is_empty is False

    def test_symlinked_directory_is_not_followed(
        self, unity_project, write_files, tmp_path: Path
    ) -> None:
        """A symlink to a directory is removed as a link only."""
        project = unity_project()
        outside = tmp_path / "outside"
        write_files(outside, ["precious.txt"])
        (project / "Temp").mkdir()
        (project / "Temp" / "link").symlink_to(outside, target_is_directory=True)

        plan = CleanPlanner().plan(project, [CleanCategory.TEMPORARY_FILES])

        assert [u.relative for u in plan.units] == ["Temp/link"]

    def test_symlinked_category_root_is_skipped(
        self, unity_project, write_files, tmp_path: Path
    ) -> None:
        """A category root that is a symlink is recorded as skipped, not walked."""
        project = unity_project()
        write_files(tmp_path / "outside", ["precious.txt"])
        (project / "Temp").symlink_to(tmp_path / "outside", target_is_directory=True)

        plan = CleanPlanner().plan(project, [CleanCategory.TEMPORARY_FILES])

        assert plan.units == ()
        assert [s.path for s in plan.skipped] == [str(project / "Temp")]
        assert plan.missing_roots == ()

    def test_should_stop_ends_enumeration(self, unity_project, write_files) -> None:
        """Enumeration stops once should_stop returns True."""
        project = unity_project()
        write_files(project, ["Temp/a.txt", "Library/b.txt"])

        plan = CleanPlanner().plan(
            project,
            [CleanCategory.TEMPORARY_FILES, CleanCategory.LIBRARY_CACHE],
            should_stop=lambda: True,
        )

        assert plan.total == 0

    def test_planning_deletes_nothing(self, unity_project, write_files) -> None:
        """The counting stage has no side effects."""
        project = unity_project()
        created = write_files(project, ["Temp/a.txt", "Library/ShaderCache/b.bin"])

        CleanPlanner().plan(project, [CleanCategory.TEMPORARY_FILES, CleanCategory.LIBRARY_CACHE])

        assert all(path.exists() for path in created)
