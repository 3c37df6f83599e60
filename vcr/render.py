"""
Human-readable output for the command line.

Line diffs come from difflib; colours are applied with click.style so they
are stripped automatically when output is not a terminal.
"""

import difflib
from typing import Dict, Iterable, List, Optional

import click

from vcr.core import (
    FileDiff,
    Frame,
    MergeOutcome,
    MergeResult,
    StageOutcome,
    Status,
    Track,
)


def _lines(content: Optional[bytes]) -> List[str]:
    if content is None:
        return []
    return content.decode("utf-8", errors="replace").splitlines(keepends=True)


def _is_binary(content: Optional[bytes]) -> bool:
    return content is not None and b"\0" in content


def _colour(line: str) -> str:
    if line.startswith(("---", "+++")):
        return click.style(line, fg="bright_black", bold=True)
    if line.startswith("@@"):
        return click.style(line, fg="cyan")
    if line.startswith("+"):
        return click.style(line, fg="green")
    if line.startswith("-"):
        return click.style(line, fg="red")
    return line


def render_diff(diff: FileDiff, context: int = 3) -> str:
    """Unified diff of one file."""
    old_name = f"a/{diff.path}" if diff.old is not None else "/dev/null"
    new_name = f"b/{diff.path}" if diff.new is not None else "/dev/null"
    if _is_binary(diff.old) or _is_binary(diff.new):
        return click.style(f"Binary files {old_name} and {new_name} differ\n", bold=True)

    lines = difflib.unified_diff(
        _lines(diff.old), _lines(diff.new), old_name, new_name, n=context
    )
    out = []
    for line in lines:
        if not line.endswith("\n"):
            line += "\n\\ No newline at end of file\n"
        out.append(_colour(line))
    return "".join(out)


def render_diffs(diffs: Iterable[FileDiff]) -> str:
    return "".join(render_diff(d) for d in diffs)


def render_frame(frame: Frame) -> str:
    """Frame header block used by history and show."""
    lines = [click.style(f"frame {frame.frame_id}", fg="yellow")]
    if frame.is_merge:
        lines.append("Merge:  " + " ".join(p[:8] for p in frame.parents))
    lines.append(f"Author: {frame.author}")
    lines.append(f"Date:   {frame.timestamp}")
    lines.append("")
    lines.extend(f"    {line}" for line in frame.message.splitlines() or [""])
    return "\n".join(lines) + "\n"


def render_history(frames: Iterable[Frame]) -> str:
    return "\n".join(render_frame(f) for f in frames)


def render_status(
    status: Status,
    track: Optional[str],
    head: str,
    conflicts: Iterable[str] = (),
) -> str:
    if track:
        lines = [f"On track {click.style(track, bold=True)}"]
    else:
        lines = [f"HEAD detached at {head[:8] or '(empty)'}"]

    conflicts = list(conflicts)
    if conflicts:
        lines.append("")
        lines.append("Unresolved merge conflicts:")
        lines.extend(click.style(f"    {p}", fg="red", bold=True) for p in conflicts)

    if status.staged:
        lines.append("")
        lines.append("Staged for commit:")
        lines.extend(click.style(f"    {p}", fg="green") for p in status.staged)

    if status.modified_unstaged:
        lines.append("")
        lines.append("Not staged for commit:")
        lines.extend(click.style(f"    {p}", fg="red") for p in status.modified_unstaged)

    if status.is_clean():
        lines.append("Nothing to commit, working tree clean")
    return "\n".join(lines) + "\n"


def render_stage(outcomes: Dict[str, StageOutcome]) -> str:
    lines = []
    for path, outcome in outcomes.items():
        if outcome == StageOutcome.STAGED:
            lines.append(f"staged {path}")
        else:
            lines.append(click.style(f"unchanged {path}", dim=True))
    return "\n".join(lines) + ("\n" if lines else "")


def render_tracks(tracks: Iterable[Track], current: Optional[str]) -> str:
    lines = []
    for track in tracks:
        if track.name == current:
            lines.append(click.style(f"* {track.name}", fg="green"))
        else:
            lines.append(f"  {track.name}")
    return "\n".join(lines) + ("\n" if lines else "")


def render_merge(result: MergeResult) -> str:
    if result.outcome == MergeOutcome.NO_MERGE_NECESSARY:
        return "Already up to date.\n"
    if result.outcome == MergeOutcome.FAST_FORWARD:
        return f"Fast-forward {result.track} to {result.source[:8]}\n"
    return f"Merged into {result.track} as {result.frame_id}\n"
