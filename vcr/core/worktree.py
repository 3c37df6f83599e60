"""
Working tree access and the ignore set.

The ignore file is a plain list of literal repository-relative paths, one per
line. A listed directory hides everything beneath it. The file is read again
on every scan.
"""

from pathlib import Path, PurePosixPath
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from .errors import InvalidPath, PathNotFound

IgnoreLoader = Callable[[], Iterable[str]]


class IgnoreSet:
    """Literal paths excluded from status, diff and directory staging."""

    def __init__(self, paths: Iterable[str] = ()):
        self.paths: FrozenSet[str] = frozenset(
            PurePosixPath(p.strip().strip("/")).as_posix()
            for p in paths
            if p.strip() and not p.strip().startswith("#")
        )

    @classmethod
    def from_file(cls, path: Path) -> "IgnoreSet":
        if not path.is_file():
            return cls()
        return cls(path.read_text(encoding="utf-8").splitlines())

    def __contains__(self, path: str) -> bool:
        relative = PurePosixPath(path)
        if relative.as_posix() in self.paths:
            return True
        return any(parent.as_posix() in self.paths for parent in relative.parents)


class WorkingTree:
    """
    Files of the working directory, minus the repository directory itself.

    Args:
        root: Working directory root
        repo_dir_name: Name of the marker directory to skip
        ignore_file: Name of the ignore file in ``root``
        ignore_loader: Optional collaborator returning ignored paths
    """

    def __init__(
        self,
        root: Path,
        repo_dir_name: str,
        ignore_file: str = ".vcrignore",
        ignore_loader: Optional[IgnoreLoader] = None,
    ):
        self.root = root
        self.repo_dir_name = repo_dir_name
        self.ignore_file = ignore_file
        self.ignore_loader = ignore_loader

    def ignore_set(self) -> IgnoreSet:
        if self.ignore_loader is not None:
            return IgnoreSet(self.ignore_loader())
        return IgnoreSet.from_file(self.root / self.ignore_file)

    def relative(self, path: str) -> str:
        """
        Normalise a user path to a repository-relative POSIX path.

        Relative paths are taken from the working tree root.

        Raises:
            InvalidPath: If the path leaves the working tree or enters the store
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            relative = candidate.resolve().relative_to(self.root.resolve())
        except ValueError:
            raise InvalidPath(f"Outside the working tree: {path}") from None
        if relative.parts and relative.parts[0] == self.repo_dir_name:
            raise InvalidPath(f"Inside the repository directory: {path}")
        return relative.as_posix()

    def files(self, under: str = ".") -> List[str]:
        """
        Sorted non-ignored files, optionally restricted to a subdirectory.
        """
        ignored = self.ignore_set()
        base = self.root if under in ("", ".") else self.root / under
        if base.is_file():
            candidates: Iterable[Path] = [base]
        else:
            candidates = base.rglob("*")

        result = []
        for path in candidates:
            relative = path.relative_to(self.root)
            if relative.parts[0] == self.repo_dir_name:
                continue
            if not path.is_file() or path.is_symlink():
                continue
            posix = relative.as_posix()
            if posix in ignored:
                continue
            result.append(posix)
        return sorted(result)

    def expand(self, path: str) -> List[str]:
        """
        Expand a user path into the files it names.

        Raises:
            InvalidPath: See ``relative``
            PathNotFound: If nothing exists at the path
        """
        relative = self.relative(path)
        target = self.root / relative
        if target.is_file():
            return [relative]
        if target.is_dir():
            return self.files(relative)
        raise PathNotFound(f"No such file in the working tree: {path}")

    def read(self, path: str) -> Optional[bytes]:
        try:
            return (self.root / path).read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            return None

    def read_all(self) -> Dict[str, bytes]:
        contents = {}
        for path in self.files():
            content = self.read(path)
            if content is not None:
                contents[path] = content
        return contents

    def write(self, path: str, content: bytes) -> None:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
