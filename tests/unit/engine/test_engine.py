"""Unit tests for CleaningEngine.

Runs execute on the engine's worker thread against real temporary
project trees; lock-holder checks use a mocked ProcessGuard.
"""

import os
import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from unityclean.engine.engine import CleaningEngine
from unityclean.engine.errors import (
    InvalidProjectError,
    LockHolderError,
    NoCategorySelectedError,
    RunActiveError,
    SignOutNotConfirmedError,
)
from unityclean.engine.models import (
    CleanPlan,
    CleanUnit,
    LogEvent,
    LogLevel,
    ProgressEvent,
    RunState,
    StateEvent,
)
from unityclean.process.guard import ProcessGuard, ProcessHandle, TerminationReport
from unityclean.rules.models import CleanCategory
from unityclean.rules.tables import DEFAULT_RULES

TEMP = CleanCategory.TEMPORARY_FILES
LIBRARY = CleanCategory.LIBRARY_CACHE

UNITY = ProcessHandle(pid=4242, name="Unity", create_time=1.0)


@pytest.fixture
def make_engine():
    """Factory for engines that are shut down after the test."""
    engines: list[CleaningEngine] = []

    def _make(**kwargs) -> CleaningEngine:
        kwargs.setdefault("guard", _guard())
        engine = CleaningEngine(**kwargs)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.shutdown()


def _guard(running: list[ProcessHandle] | None = None) -> MagicMock:
    guard = MagicMock(spec=ProcessGuard)
    guard.list_blocking_processes.return_value = running or []
    return guard


def _collect(engine: CleaningEngine) -> list:
    events: list = []
    engine.subscribe(events.append)
    return events


def _messages(summary) -> list[str]:
    return [event.message for event in summary.log]


class TestPreconditions:
    """Tests for the synchronous checks of start_clean."""

    def test_no_category_selected(self, make_engine, unity_project) -> None:
        """Starting without categories is rejected."""
        engine = make_engine()

        with pytest.raises(NoCategorySelectedError, match="at least one cleaning option"):
            engine.start_clean(unity_project(), [])

        assert engine.state == RunState.IDLE

    def test_invalid_project(self, make_engine, tmp_path: Path) -> None:
        """A folder that is not a Unity project is rejected with a reason."""
        engine = make_engine()
        (tmp_path / "NotAProject").mkdir()

        with pytest.raises(InvalidProjectError) as exc_info:
            engine.start_clean(tmp_path / "NotAProject", [TEMP])

        assert exc_info.value.reason is not None
        assert engine.state == RunState.IDLE

    def test_sign_out_requires_confirmation(self, make_engine, unity_project) -> None:
        """SIGN_OUT without its own confirmation is rejected."""
        engine = make_engine()

        with pytest.raises(SignOutNotConfirmedError):
            engine.start_clean(unity_project(), [TEMP, CleanCategory.SIGN_OUT])

    def test_lock_holder_refuses_and_deletes_nothing(
        self, make_engine, unity_project, write_files
    ) -> None:
        """A running editor blocks the run before anything is deleted."""
        project = unity_project()
        files = write_files(project, ["Temp/a.txt", "Temp/b.txt"])
        guard = _guard([UNITY])
        engine = make_engine(guard=guard)

        with pytest.raises(LockHolderError) as exc_info:
            engine.start_clean(project, [TEMP])

        assert exc_info.value.remaining == (UNITY,)
        assert exc_info.value.attempted_close is False
        assert all(path.exists() for path in files)
        guard.terminate.assert_not_called()
        assert engine.state == RunState.IDLE

    def test_lock_holder_closed_on_request(self, make_engine, unity_project, write_files) -> None:
        """With close_lock_holders the processes are terminated and the run starts."""
        project = unity_project()
        write_files(project, ["Temp/a.txt"])
        guard = _guard([UNITY])
        guard.terminate.return_value = TerminationReport(terminated=(UNITY,))
        engine = make_engine(guard=guard)

        summary = engine.start_clean(project, [TEMP], close_lock_holders=True).wait(timeout=10)

        guard.terminate.assert_called_once_with([UNITY])
        assert summary.state == RunState.COMPLETED
        assert summary.processed == 1

    def test_lock_holder_that_survives_close(
        self, make_engine, unity_project, write_files
    ) -> None:
        """A process that survives termination still blocks the run."""
        project = unity_project()
        files = write_files(project, ["Temp/a.txt"])
        guard = _guard([UNITY])
        guard.terminate.return_value = TerminationReport(remaining=(UNITY,))
        engine = make_engine(guard=guard)

        with pytest.raises(LockHolderError) as exc_info:
            engine.start_clean(project, [TEMP], close_lock_holders=True)

        assert exc_info.value.attempted_close is True
        assert files[0].exists()

    def test_run_already_active(self, make_engine, unity_project) -> None:
        """A second start while a run is active is rejected."""
        project = unity_project()
        engine = make_engine()
        release = threading.Event()
        original = engine._planner.plan

        def blocking_plan(*args, **kwargs):
            release.wait(timeout=10)
            return original(*args, **kwargs)

        with patch.object(engine._planner, "plan", side_effect=blocking_plan):
            handle = engine.start_clean(project, [TEMP])
            try:
                with pytest.raises(RunActiveError):
                    engine.start_clean(project, [TEMP])
            finally:
                release.set()
            summary = handle.wait(timeout=10)

        assert summary.state == RunState.COMPLETED
        assert engine.state == RunState.IDLE


class TestRun:
    """Tests for complete cleaning runs."""

    def test_processed_equals_total(self, make_engine, unity_project, write_files) -> None:
        """Every counted unit is deleted and reported."""
        project = unity_project()
        write_files(project, ["Temp/a.txt", "Temp/sub/b.txt", "Library/Misc/c.dat"])
        write_files(project, [f"Library/ShaderCache/{i}.bin" for i in range(5)])
        engine = make_engine()
        plan = engine.plan(project, [TEMP, LIBRARY])

        summary = engine.start_clean(project, [TEMP, LIBRARY]).wait(timeout=10)

        assert summary.state == RunState.COMPLETED
        assert summary.total == plan.total == 4
        assert summary.processed == summary.total
        assert summary.files_deleted == 3
        assert summary.subtrees_deleted == 1
        assert summary.skipped == ()
        assert not (project / "Library" / "ShaderCache").exists()
        assert not (project / "Temp" / "a.txt").exists()

    def test_protected_and_unclassified_survive(
        self, make_engine, unity_project, write_files
    ) -> None:
        """Only safe paths are deleted."""
        project = unity_project()
        keep = write_files(
            project,
            [
                "Assets/Player.cs",
                "Builds/Game.exe",
                "Library/LastSceneManagerSetup.txt",
                "Library/ScriptAssemblies/Game.dll",
            ],
        )
        write_files(project, ["Temp/a.txt", "Library/Misc/cache.dat"])
        engine = make_engine()

        summary = engine.start_clean(project, [TEMP, LIBRARY]).wait(timeout=10)

        assert summary.processed == 2
        assert all(path.exists() for path in keep)
        assert (project / "ProjectSettings" / "ProjectVersion.txt").exists()

    def test_protected_entry_inside_cache_subtree(
        self, make_engine, unity_project, write_files
    ) -> None:
        """A protected file inside a cache root survives; its siblings do not."""
        project = unity_project()
        write_files(project, [f"Library/ShaderCache/{i:03}.bin" for i in range(100)])
        (keep,) = write_files(project, ["Library/ShaderCache/keep.bin"])
        rules = DEFAULT_RULES.with_protected(["Library/ShaderCache/keep.bin"])
        engine = make_engine(rules=rules)

        summary = engine.start_clean(project, [LIBRARY]).wait(timeout=10)

        assert summary.processed == 100
        assert summary.files_deleted == 100
        assert summary.subtrees_deleted == 0
        assert keep.exists()
        assert sorted(p.name for p in keep.parent.iterdir()) == ["keep.bin"]
        assert any("Library/ShaderCache" in m for m in _messages(summary))

    def test_events_in_order(self, make_engine, unity_project, write_files) -> None:
        """Observers see state transitions and monotonic progress."""
        project = unity_project()
        write_files(project, ["Temp/a.txt", "Temp/b.txt", "Temp/c.txt"])
        engine = make_engine()
        events = _collect(engine)

        engine.start_clean(project, [TEMP]).wait(timeout=10)
        assert engine.flush_events(timeout=10)

        states = [e.state for e in events if isinstance(e, StateEvent)]
        progress = [e for e in events if isinstance(e, ProgressEvent)]
        assert states == [
            RunState.COUNTING,
            RunState.CLEANING,
            RunState.COMPLETED,
            RunState.IDLE,
        ]
        assert progress == [ProgressEvent(i, 3) for i in range(4)]

    def test_session_log(self, make_engine, unity_project, write_files) -> None:
        """The session log names the category and the final count."""
        project = unity_project()
        write_files(project, ["Temp/a.txt"])
        engine = make_engine()
        events = _collect(engine)

        summary = engine.start_clean(project, [TEMP]).wait(timeout=10)
        engine.flush_events(timeout=10)

        messages = _messages(summary)
        assert "Cleaning Temporary Files..." in messages
        assert "Temporary Files cleaned successfully" in messages
        assert messages[-1] == "Finished: 1 of 1 items removed, 0 skipped"
        assert [e for e in events if isinstance(e, LogEvent)] == list(summary.log)

    def test_missing_root_and_empty_plan(self, make_engine, unity_project) -> None:
        """A missing Temp folder is logged and the run completes with nothing to do."""
        project = unity_project()
        engine = make_engine()

        summary = engine.start_clean(project, [TEMP]).wait(timeout=10)

        messages = _messages(summary)
        assert summary.state == RunState.COMPLETED
        assert summary.total == 0
        assert f"{project.resolve() / 'Temp'} not found. Skipping..." in messages
        assert "No files to clean." in messages

    def test_vanished_file_is_skipped(self, make_engine, unity_project, write_files) -> None:
        """A unit deleted by someone else is skipped and the run continues."""
        project = unity_project()
        (present,) = write_files(project, ["Temp/present.txt"])
        gone = project / "Temp" / "gone.txt"
        plan = CleanPlan(
            project=project,
            categories=(TEMP,),
            units=(
                CleanUnit(TEMP, gone, "Temp/gone.txt"),
                CleanUnit(TEMP, present, "Temp/present.txt"),
            ),
        )
        engine = make_engine()

        with patch.object(engine._planner, "plan", return_value=plan):
            summary = engine.start_clean(project, [TEMP]).wait(timeout=10)

        assert summary.state == RunState.COMPLETED
        assert summary.processed == 1
        assert [(s.path, s.reason) for s in summary.skipped] == [
            (str(gone), "vanished before deletion")
        ]
        assert summary.attempted == summary.total == 2
        assert not present.exists()
        assert any(e.level == LogLevel.ERROR for e in summary.log)

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_permission_denied_is_skipped(self, make_engine, unity_project, write_files) -> None:
        """A file that cannot be removed is skipped with the OS reason."""
        project = unity_project()
        (locked,) = write_files(project, ["Temp/locked/file.txt"])
        write_files(project, ["Temp/other.txt"])
        engine = make_engine()
        locked.parent.chmod(0o500)
        try:
            summary = engine.start_clean(project, [TEMP]).wait(timeout=10)
        finally:
            locked.parent.chmod(0o755)

        assert summary.state == RunState.COMPLETED
        assert summary.processed == 1
        assert len(summary.skipped) == 1
        assert locked.exists()

    def test_unreadable_directory_is_reported(
        self, make_engine, unity_project, write_files
    ) -> None:
        """A directory that cannot be listed shows up as skipped in the summary."""
        project = unity_project()
        write_files(project, ["Temp/a.txt", "Temp/locked/b.txt"])
        real_walk = os.walk

        def walk(top, onerror=None, **kwargs):
            for dirpath, dirnames, filenames in real_walk(top, onerror=onerror, **kwargs):
                if "locked" in dirnames:
                    dirnames.remove("locked")
                    locked = os.path.join(dirpath, "locked")
                    onerror(PermissionError(13, "Permission denied", locked))
                yield dirpath, dirnames, filenames

        engine = make_engine()
        with patch("unityclean.engine.planner.os.walk", side_effect=walk):
            summary = engine.start_clean(project, [TEMP]).wait(timeout=10)

        assert summary.state == RunState.COMPLETED
        assert summary.processed == summary.total == 1
        assert [(Path(s.path).name, s.reason) for s in summary.skipped] == [
            ("locked", "Permission denied")
        ]
        assert (project / "Temp" / "locked" / "b.txt").exists()
        assert any(e.level == LogLevel.ERROR and "locked" in e.message for e in summary.log)
        assert _messages(summary)[-1] == "Finished: 1 of 1 items removed, 1 skipped"

    def test_symlinked_category_root_is_not_followed(
        self, make_engine, unity_project, write_files, tmp_path: Path
    ) -> None:
        """A Temp folder that is a symlink leaves the link target untouched."""
        project = unity_project()
        (precious,) = write_files(tmp_path / "outside", ["precious.txt"])
        (project / "Temp").symlink_to(tmp_path / "outside", target_is_directory=True)
        engine = make_engine()

        summary = engine.start_clean(project, [TEMP]).wait(timeout=10)

        assert precious.exists()
        assert (project / "Temp").is_symlink()
        assert summary.processed == summary.total == 0
        assert [s.path for s in summary.skipped] == [str(project.resolve() / "Temp")]

    def test_cancel_stops_before_next_unit(self, make_engine, unity_project, write_files) -> None:
        """Cancelling mid-run deletes nothing further and reports no extra progress."""
        project = unity_project()
        files = write_files(project, [f"Temp/{i:02}.txt" for i in range(10)])
        engine = make_engine()
        events = _collect(engine)
        original = engine._delete_unit

        def delete_then_cancel(context, unit):
            original(context, unit)
            engine.cancel()

        with patch.object(engine, "_delete_unit", side_effect=delete_then_cancel):
            summary = engine.start_clean(project, [TEMP]).wait(timeout=10)
        engine.flush_events(timeout=10)

        progress = [e for e in events if isinstance(e, ProgressEvent)]
        assert summary.state == RunState.CANCELLED
        assert summary.processed == 1
        assert sum(path.exists() for path in files) == 9
        assert progress == [ProgressEvent(0, 10), ProgressEvent(1, 10)]
        assert "Operation cancelled by user." in _messages(summary)
        assert engine.state == RunState.IDLE

    def test_cancel_during_counting(self, make_engine, unity_project, write_files) -> None:
        """A run cancelled while counting ends without deleting anything."""
        project = unity_project()
        files = write_files(project, ["Temp/a.txt"])
        engine = make_engine()
        original = engine._planner.plan

        def cancel_then_plan(*args, **kwargs):
            engine.cancel()
            return original(*args, **kwargs)

        with patch.object(engine._planner, "plan", side_effect=cancel_then_plan):
            summary = engine.start_clean(project, [TEMP]).wait(timeout=10)

        assert summary.state == RunState.CANCELLED
        assert summary.processed == 0
        assert files[0].exists()

    def test_unexpected_error_fails_run(self, make_engine, unity_project) -> None:
        """An unexpected exception ends the run in FAILED and returns to IDLE."""
        project = unity_project()
        engine = make_engine()

        with patch.object(engine._planner, "plan", side_effect=RuntimeError("disk on fire")):
            summary = engine.start_clean(project, [TEMP]).wait(timeout=10)

        assert summary.state == RunState.FAILED
        assert summary.error == "disk on fire"
        assert "Error during cleaning: disk on fire" in _messages(summary)
        assert engine.state == RunState.IDLE

    def test_engine_is_reusable(self, make_engine, unity_project, write_files) -> None:
        """A second run can start once the first has finished."""
        project = unity_project()
        engine = make_engine()
        write_files(project, ["Temp/a.txt"])
        first = engine.start_clean(project, [TEMP])
        first.wait(timeout=10)
        write_files(project, ["Temp/b.txt"])

        second = engine.start_clean(project, [TEMP])

        assert second.run_id == first.run_id + 1
        assert second.wait(timeout=10).processed == 1


class TestSignOut:
    """Tests for the sign-out category."""

    def test_removes_credential_files(
        self, make_engine, unity_project, write_files, tmp_path: Path
    ) -> None:
        """Credential files are deleted; other files in the same folder stay."""
        project = unity_project()
        creds = tmp_path / "creds"
        removed = write_files(creds, ["Unity.sso.json", "hub/RefreshToken"])
        (prefs,) = write_files(creds, ["prefs.txt"])
        engine = make_engine(credential_roots=[creds])

        summary = engine.start_clean(
            project, [CleanCategory.SIGN_OUT], confirm_sign_out=True
        ).wait(timeout=10)

        assert summary.state == RunState.COMPLETED
        assert summary.credentials_removed == 2
        assert summary.total == 0
        assert not any(path.exists() for path in removed)
        assert prefs.exists()
        assert "Signing out of Unity..." in _messages(summary)

    def test_nothing_to_sign_out(self, make_engine, unity_project, tmp_path: Path) -> None:
        """Without credential files the run still completes."""
        engine = make_engine(credential_roots=[tmp_path / "nowhere"])

        summary = engine.start_clean(
            unity_project(), [CleanCategory.SIGN_OUT], confirm_sign_out=True
        ).wait(timeout=10)

        assert summary.state == RunState.COMPLETED
        assert "No Unity credentials found." in _messages(summary)


class TestInspection:
    """Tests for plan, validate and debug_snapshot."""

    def test_plan_checks_preconditions(self, make_engine, tmp_path: Path) -> None:
        """plan() rejects missing categories and invalid projects."""
        engine = make_engine()

        with pytest.raises(NoCategorySelectedError):
            engine.plan(tmp_path, [])
        with pytest.raises(InvalidProjectError):
            engine.plan(tmp_path, [TEMP])

    def test_validate(self, make_engine, unity_project, tmp_path: Path) -> None:
        """validate() reports the result of the project validator."""
        engine = make_engine()

        assert engine.validate(unity_project()).valid is True
        assert engine.validate(tmp_path / "missing").valid is False

    def test_debug_snapshot(self, make_engine, tmp_path: Path) -> None:
        """The snapshot describes state, rules and lock holders."""
        engine = make_engine(
            guard=_guard([UNITY]),
            unity_data_dir=tmp_path / "data",
            credential_roots=[tmp_path / "creds"],
        )

        snapshot = engine.debug_snapshot()

        assert snapshot["state"] == "idle"
        assert snapshot["active_run"] is None
        assert "Assets" in snapshot["protected_paths"]
        assert snapshot["categories"]["library_cache"]["safe_roots"] == ["Library"]
        assert snapshot["unity_data_dir"] == str(tmp_path / "data")
        assert snapshot["credential_roots"] == [str(tmp_path / "creds")]
        assert snapshot["lock_holders"] == [{"pid": 4242, "name": "Unity"}]

    def test_cancel_without_active_run(self, make_engine) -> None:
        """Cancelling while idle does nothing."""
        engine = make_engine()
        engine.cancel()
        assert engine.state == RunState.IDLE

    def test_default_guard_checks_unity_processes(self, unity_project, write_files) -> None:
        """Without an explicit guard the standard Unity processes still block a run."""
        project = unity_project()
        (temp_file,) = write_files(project, ["Temp/a.txt"])

        with patch(
            "unityclean.engine.engine.ProcessGuard.list_blocking_processes",
            return_value=[UNITY],
        ):
            engine = CleaningEngine()
            try:
                with pytest.raises(LockHolderError):
                    engine.start_clean(project, [TEMP])
            finally:
                engine.shutdown()

        assert temp_file.exists()
