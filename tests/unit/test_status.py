"""
Unit tests for status and diff computation.
"""

from vcr.core import Repository
from vcr.core.status import DiffSide, FileDiff, StatusOrchestrator


class TestStatus:
    """Tests for working tree classification."""

    def test_clean_after_commit(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        status = repo.status()
        assert status.is_clean()
        assert repo.staging.is_empty()

    def test_modified_after_commit(self, repo: Repository, commit_file, write) -> None:
        commit_file("a.txt", "x")
        write("a.txt", "y")

        status = repo.status()
        assert status.modified_unstaged == ["a.txt"]
        assert status.staged == []

    def test_staged_file(self, repo: Repository, write) -> None:
        write("a.txt", "x")
        repo.stage(["a.txt"])

        assert repo.status().staged == ["a.txt"]

    def test_staged_then_modified(self, repo: Repository, write) -> None:
        write("a.txt", "x")
        repo.stage(["a.txt"])
        write("a.txt", "changed again")

        status = repo.status()
        assert status.staged == []
        assert status.modified_unstaged == ["a.txt"]

    def test_untracked_file_counts_as_modified(self, repo: Repository, write) -> None:
        write("new.txt", "n")
        assert repo.status().modified_unstaged == ["new.txt"]

    def test_ignored_files_hidden(self, repo: Repository, write) -> None:
        write(".vcrignore", "secret.txt\n.vcrignore\n")
        write("secret.txt", "s")
        assert repo.status().is_clean()

    def test_content_not_mtime(self, repo: Repository, commit_file, write) -> None:
        """Test that rewriting identical bytes is not a modification."""
        commit_file("a.txt", "x")
        write("a.txt", "x")
        assert repo.status().is_clean()


class TestDiff:
    """Tests for diffs between sides."""

    def test_working_against_staging(self, repo: Repository, commit_file, write) -> None:
        commit_file("a.txt", "x\n")
        write("a.txt", "y\n")

        assert repo.diff() == [FileDiff("a.txt", b"x\n", b"y\n")]

    def test_staged_against_frame(self, repo: Repository, commit_file, write) -> None:
        commit_file("a.txt", "x\n")
        write("a.txt", "y\n")
        repo.stage(["a.txt"])

        assert repo.diff() == []
        assert repo.diff(staged=True) == [FileDiff("a.txt", b"x\n", b"y\n")]

    def test_against_named_frame(self, repo: Repository, commit_file, write) -> None:
        first = commit_file("a.txt", "1\n")
        commit_file("a.txt", "2\n")
        write("a.txt", "3\n")

        diffs = repo.diff(frame=first)
        assert diffs == [FileDiff("a.txt", b"1\n", b"3\n")]

    def test_restricted_paths(self, repo: Repository, write) -> None:
        write("a.txt", "a")
        write("b.txt", "b")

        diffs = repo.diff(["b.txt"])
        assert [d.path for d in diffs] == ["b.txt"]
        assert diffs[0].change == "added"

    def test_removed_file(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        (repo.work_dir / "a.txt").unlink()

        diffs = repo.diff()
        assert diffs == [FileDiff("a.txt", b"x", None)]
        assert diffs[0].change == "removed"

    def test_sides(self, repo: Repository, commit_file, write) -> None:
        commit_file("a.txt", "x")
        write("b.txt", "b")
        repo.stage(["b.txt"])
        engine: StatusOrchestrator = repo.status_engine

        assert engine.side_contents(DiffSide.FRAME) == {"a.txt": b"x"}
        assert engine.side_contents(DiffSide.STAGING) == {"a.txt": b"x", "b.txt": b"b"}
        assert engine.side_contents(DiffSide.WORKING) == {"a.txt": b"x", "b.txt": b"b"}

    def test_compare(self) -> None:
        diffs = StatusOrchestrator.compare({"a": b"1", "b": b"2"}, {"b": b"3", "c": b"4"})
        assert [(d.path, d.change) for d in diffs] == [
            ("a", "removed"),
            ("b", "modified"),
            ("c", "added"),
        ]
