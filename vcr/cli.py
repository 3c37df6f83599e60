"""
CLI interface for VCR.

Every command opens the repository containing the current directory, runs one
facade operation and renders its result. VCRError is caught here and only
here, reported as ``error[<kind>]: <message>`` and turned into the kind's exit
code.
"""

import os
from pathlib import Path
from typing import Optional, Tuple

import click

from vcr import __version__, render
from vcr.config import config
from vcr.core import MergeConflictError, Repository, SymbolicTrack, VCRError
from vcr.logging import initialize_logging


class VCRGroup(click.Group):
    """Click group that maps VCRError onto exit codes."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except VCRError as e:
            kind = e.kind.value if e.kind else "error"
            click.echo(f"error[{kind}]: {e}", err=True)
            if isinstance(e, MergeConflictError):
                for path in e.paths:
                    click.echo(f"    conflict: {path}", err=True)
            ctx.exit(e.exit_code)


def _open() -> Repository:
    return Repository.open(confirm=lambda question: click.confirm(question, default=False))


def _absolute(paths: Tuple[str, ...]):
    return [os.path.abspath(p) for p in paths]


@click.group(cls=VCRGroup)
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
def cli(verbose: bool) -> None:
    """VCR: version control for a working directory."""
    initialize_logging(
        level="DEBUG" if verbose else config.logging.level,
        format_string=config.logging.format,
        action_format=config.logging.action_format,
        enable_console_logging=config.logging.enable_console_logging,
        enable_action_log=config.logging.enable_action_log,
    )


@cli.command()
@click.argument("path", required=False, type=click.Path(file_okay=False))
@click.option("--track", "default_track", help="Name of the initial track")
def init(path: Optional[str], default_track: Optional[str]):
    """Create a repository in PATH (default: the current directory)."""
    repo = Repository.init(Path(path) if path else None, default_track=default_track)
    click.echo(f"Initialized empty vcr repository in {repo.repo_dir}")


# -- Tracks --


@cli.group()
def track():
    """Create, list, show and delete tracks."""
    pass


@track.command("new")
@click.argument("name")
@click.option("--checkout", "-c", is_flag=True, help="Check the new track out")
def track_new(name: str, checkout: bool):
    """Create a track at the current frame."""
    created = _open().create_track(name, checkout=checkout)
    click.echo(f"Created track {created.name} at {created.head[:8] or '(empty)'}")


@track.command("list")
def track_list():
    """List tracks; the checked-out track is starred."""
    repo = _open()
    click.echo(render.render_tracks(repo.list_tracks(), repo.current_track_name()), nl=False)


@track.command("show")
@click.argument("name")
def track_show(name: str):
    """Show the frames made on a track, oldest first."""
    click.echo(render.render_history(_open().show_track(name)), nl=False)


@track.command("delete")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Delete unmerged tracks without asking")
def track_delete(name: str, yes: bool):
    """Delete a track. Its frames are kept."""
    repo = _open()
    confirm = (lambda question: True) if yes else None
    if repo.delete_track(name, confirm=confirm):
        click.echo(f"Deleted track {name}")
    else:
        click.echo(f"Kept track {name}")


# -- Tags --


@cli.group()
def tag():
    """Create, list and delete tags."""
    pass


@tag.command("new")
@click.argument("name")
@click.argument("target", required=False)
def tag_new(name: str, target: Optional[str]):
    """Tag TARGET (default: the current frame)."""
    frame_id = _open().create_tag(name, target)
    click.echo(f"Tagged {frame_id[:8]} as {name}")


@tag.command("list")
def tag_list():
    """List tags with the frames they name."""
    for name, frame_id in _open().list_tags().items():
        click.echo(f"{name}\t{frame_id[:8]}")


@tag.command("delete")
@click.argument("name")
def tag_delete(name: str):
    """Delete a tag."""
    _open().delete_tag(name)
    click.echo(f"Deleted tag {name}")


# -- Staging --


@cli.command()
@click.argument("paths", nargs=-1, required=True)
def stage(paths: Tuple[str, ...]):
    """Stage files or directories for the next commit."""
    outcomes = _open().stage(_absolute(paths))
    click.echo(render.render_stage(outcomes), nl=False)


@cli.command()
@click.argument("paths", nargs=-1, required=True)
def unstage(paths: Tuple[str, ...]):
    """Remove files from the staging area."""
    for path in _open().unstage(_absolute(paths)):
        click.echo(f"unstaged {path}")


# -- Inspection --


@cli.command()
def status():
    """Show staged and modified files."""
    repo = _open()
    pending = repo.pending_merge()
    click.echo(
        render.render_status(
            repo.status(),
            repo.current_track_name(),
            repo.current_frame(),
            pending.conflicts if pending else (),
        ),
        nl=False,
    )


@cli.command()
@click.argument("paths", nargs=-1)
@click.option("--staged", is_flag=True, help="Compare staged content with the current frame")
@click.option("--frame", "frame", help="Compare the working tree with this frame")
def diff(paths: Tuple[str, ...], staged: bool, frame: Optional[str]):
    """Show line differences."""
    diffs = _open().diff(_absolute(paths) or None, staged=staged, frame=frame)
    click.echo(render.render_diffs(diffs), nl=False)


@cli.command()
@click.option("--limit", "-n", type=int, help="Maximum frames to show")
@click.argument("ref", required=False)
def history(limit: Optional[int], ref: Optional[str]):
    """Show frames reachable from REF (default: HEAD), newest first."""
    click.echo(render.render_history(_open().history(limit=limit, ref=ref)), nl=False)


@cli.command()
@click.argument("ref")
def show(ref: str):
    """Show a frame and the changes it made."""
    repo = _open()
    click.echo(render.render_frame(repo.show(ref)))
    click.echo(render.render_diffs(repo.changes(ref)), nl=False)


# -- Changing history --


@cli.command()
@click.argument("target")
@click.option("--restore", is_flag=True, help="Write the frame's files into the working tree")
def checkout(target: str, restore: bool):
    """Point HEAD at a track, tag or frame."""
    resolved = _open().checkout(target, restore=restore)
    if isinstance(resolved, SymbolicTrack):
        click.echo(f"Switched to track {resolved.name}")
    else:
        click.echo(f"HEAD is now at {resolved.head_value}")


@cli.command()
@click.argument("message", required=False, default="")
@click.option("--author", help="Override the frame author")
def commit(message: str, author: Optional[str]):
    """Record staged changes as a new frame."""
    repo = _open()
    frame_id = repo.commit(message, author=author)
    click.echo(f"[{repo.current_track_name()} {frame_id[:8]}] {message}")


@cli.command()
@click.argument("source", required=False)
@click.argument("target", required=False)
@click.option("--message", "-m", help="Message for the merge frame")
@click.option("--abort", is_flag=True, help="Abandon a conflicted merge")
def merge(source: Optional[str], target: Optional[str], message: Optional[str], abort: bool):
    """Merge SOURCE into TARGET (default: the checked-out track)."""
    repo = _open()
    if abort:
        pending = repo.abort_merge()
        click.echo(f"Aborted merge into {pending.track}")
        return
    if not source:
        raise click.UsageError("Missing argument 'SOURCE'.")
    click.echo(render.render_merge(repo.merge(source, target, message=message)), nl=False)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
