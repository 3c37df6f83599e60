"""
Unit tests for three-way merging.
"""

import pytest

from vcr.core import Repository
from vcr.core.errors import (
    DetachedOrStaleTrack,
    MergeConflictError,
    NoMergeInProgress,
    StagingNotEmpty,
)
from vcr.core.merge import (
    MergeOutcome,
    PathState,
    classify,
    conflict_content,
    merged_content,
)


def _diverge(repo: Repository, commit_file, path: str, ours: str, theirs: str):
    """Fork feature from master and change ``path`` on both sides."""
    base = commit_file(path, "base\n")
    repo.create_track("feature", checkout=True)
    feature = commit_file(path, theirs)
    repo.checkout("master")
    master = commit_file(path, ours)
    return base, feature, master


class TestClassify:
    """Tests for per-path classification."""

    def test_states(self) -> None:
        base = {"same": b"1", "src": b"1", "tgt": b"1", "both": b"1", "clash": b"1"}
        source = {"same": b"1", "src": b"2", "tgt": b"1", "both": b"2", "clash": b"2"}
        target = {"same": b"1", "src": b"1", "tgt": b"2", "both": b"2", "clash": b"3"}

        states = {e.path: e.state for e in classify(base, source, target)}
        assert states == {
            "both": PathState.BOTH_SAME,
            "clash": PathState.CONFLICT,
            "same": PathState.UNCHANGED,
            "src": PathState.SOURCE_ONLY,
            "tgt": PathState.TARGET_ONLY,
        }

    def test_added_and_removed_paths(self) -> None:
        entries = {
            e.path: e
            for e in classify({"gone": b"x"}, {"new": b"n"}, {"gone": b"x"})
        }
        assert entries["new"].state == PathState.SOURCE_ONLY
        assert entries["gone"].state == PathState.SOURCE_ONLY
        assert merged_content(entries["gone"], "master", "feature") is None
        assert merged_content(entries["new"], "master", "feature") == b"n"

    def test_added_differently_on_both_sides(self) -> None:
        (entry,) = classify({}, {"f": b"a"}, {"f": b"b"})
        assert entry.state == PathState.CONFLICT

    def test_conflict_markers(self) -> None:
        content = conflict_content(b"ours\n", b"theirs", "master", "feature")
        assert content == (
            b"<<<<<<< master\nours\n=======\ntheirs\n>>>>>>> feature\n"
        )

    def test_conflict_with_deleted_side(self) -> None:
        content = conflict_content(None, b"theirs\n", "master", "feature")
        assert content == b"<<<<<<< master\n=======\ntheirs\n>>>>>>> feature\n"


class TestMergeOutcomes:
    """Tests for merge results that need no conflict resolution."""

    def test_merge_into_itself(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        result = repo.merge("master")
        assert result.outcome == MergeOutcome.NO_MERGE_NECESSARY

    def test_source_already_contained(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        repo.create_track("feature", checkout=True)
        head = commit_file("a.txt", "y")

        result = repo.merge("master")
        assert result.outcome == MergeOutcome.NO_MERGE_NECESSARY
        assert repo.refs.read_track("feature").head == head

    def test_empty_source(self, repo: Repository, commit_file) -> None:
        repo.create_track("empty")
        commit_file("a.txt", "x")
        assert repo.merge("empty").outcome == MergeOutcome.NO_MERGE_NECESSARY

    def test_fast_forward(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        repo.create_track("feature", checkout=True)
        head = commit_file("a.txt", "y")
        repo.checkout("master")
        frames_before = len(repo.objects.list_frames())

        result = repo.merge("feature")

        assert result.outcome == MergeOutcome.FAST_FORWARD
        assert repo.refs.read_track("master").head == head
        assert len(repo.objects.list_frames()) == frames_before

    def test_fast_forward_empty_target(self, repo: Repository, commit_file) -> None:
        repo.create_track("feature", checkout=True)
        head = commit_file("a.txt", "y")
        repo.checkout("master")

        assert repo.merge("feature").outcome == MergeOutcome.FAST_FORWARD
        assert repo.refs.read_track("master").head == head

    def test_clean_three_way_merge(self, repo: Repository, commit_file, write) -> None:
        write("a.txt", "a\n")
        write("b.txt", "b\n")
        repo.stage(["a.txt", "b.txt"])
        repo.commit("base")
        repo.create_track("feature", checkout=True)
        theirs = commit_file("a.txt", "a from feature\n")
        repo.checkout("master")
        ours = commit_file("b.txt", "b from master\n")

        result = repo.merge("feature")

        assert result.outcome == MergeOutcome.MERGED
        frame = repo.show(result.frame_id)
        assert frame.parents == [ours, theirs]
        assert frame.message == "Merge feature into master"
        assert repo.objects.read_snapshot(result.frame_id) == {
            "a.txt": b"a from feature\n",
            "b.txt": b"b from master\n",
        }
        assert repo.refs.read_track("master").head == result.frame_id
        assert repo.current_track_name() == "master"

    def test_merge_into_named_track(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        repo.create_track("feature", checkout=True)
        head = commit_file("a.txt", "y")

        result = repo.merge("feature", "master")

        assert result.outcome == MergeOutcome.FAST_FORWARD
        assert repo.refs.read_track("master").head == head

    def test_target_must_be_track(self, repo: Repository, commit_file) -> None:
        commit_file("a.txt", "x")
        repo.create_tag("v1")
        with pytest.raises(DetachedOrStaleTrack):
            repo.merge("master", "v1")

    def test_requires_empty_staging(self, repo: Repository, commit_file, write) -> None:
        commit_file("a.txt", "x")
        repo.create_track("feature", checkout=True)
        commit_file("a.txt", "y")
        repo.checkout("master")
        write("other.txt", "o")
        repo.stage(["other.txt"])

        with pytest.raises(StagingNotEmpty):
            repo.merge("feature")


class TestMergeConflicts:
    """Tests for conflicted merges."""

    def test_conflict_is_staged(self, repo: Repository, commit_file) -> None:
        _, feature, master = _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        frames_before = len(repo.objects.list_frames())

        with pytest.raises(MergeConflictError) as exc_info:
            repo.merge("feature")

        assert exc_info.value.paths == ["a.txt"]
        assert len(repo.objects.list_frames()) == frames_before
        assert repo.refs.read_track("master").head == master
        assert repo.staging.read("a.txt") == (
            b"<<<<<<< master\nmaster\n=======\nfeature\n>>>>>>> feature\n"
        )
        pending = repo.pending_merge()
        assert pending.source == feature
        assert pending.target == master
        assert pending.conflicts == ["a.txt"]

    def test_commit_after_conflict_has_two_parents(
        self, repo: Repository, commit_file, write
    ) -> None:
        _, feature, master = _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        with pytest.raises(MergeConflictError):
            repo.merge("feature")

        write("a.txt", "resolved\n")
        repo.stage(["a.txt"])
        frame_id = repo.commit("resolve conflict")

        assert repo.show(frame_id).parents == [master, feature]
        assert repo.objects.read_snapshot(frame_id) == {"a.txt": b"resolved\n"}
        assert repo.pending_merge() is None
        assert repo.staging.is_empty()
        assert repo.lineage.has_ancestor(frame_id, feature)

    def test_non_conflicting_changes_are_staged_too(
        self, repo: Repository, commit_file, write
    ) -> None:
        write("b.txt", "b\n")
        repo.stage(["b.txt"])
        _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        repo.checkout("feature")
        commit_file("b.txt", "b from feature\n")
        repo.checkout("master")

        with pytest.raises(MergeConflictError):
            repo.merge("feature")

        assert repo.staging.read("b.txt") == b"b from feature\n"

    def test_abort(self, repo: Repository, commit_file) -> None:
        _, _, master = _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        with pytest.raises(MergeConflictError):
            repo.merge("feature")

        repo.abort_merge()

        assert repo.staging.is_empty()
        assert repo.pending_merge() is None
        assert repo.refs.read_track("master").head == master

    def test_abort_without_merge(self, repo: Repository) -> None:
        with pytest.raises(NoMergeInProgress):
            repo.abort_merge()

    def test_second_merge_blocked(self, repo: Repository, commit_file) -> None:
        _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        with pytest.raises(MergeConflictError):
            repo.merge("feature")
        with pytest.raises(StagingNotEmpty):
            repo.merge("feature")

    def test_checkout_blocked_while_pending(self, repo: Repository, commit_file) -> None:
        _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        with pytest.raises(MergeConflictError):
            repo.merge("feature")
        with pytest.raises(StagingNotEmpty):
            repo.checkout("feature")

    def test_conflict_into_other_track_stages_nothing(
        self, repo: Repository, commit_file
    ) -> None:
        _diverge(repo, commit_file, "a.txt", "master\n", "feature\n")
        repo.checkout("feature")

        with pytest.raises(MergeConflictError):
            repo.merge("feature", "master")

        assert repo.staging.is_empty()
        assert repo.pending_merge() is None
