"""
Shared fixtures for VCR tests.
"""

from pathlib import Path
from typing import Callable

import pytest

from vcr.config import Config
from vcr.core import Repository
from vcr.settings import DictSettings


@pytest.fixture
def app_config() -> Config:
    return Config()


@pytest.fixture
def repo(tmp_path: Path, app_config: Config) -> Repository:
    """A fresh repository with the master track checked out."""
    return Repository.init(
        tmp_path / "work",
        app_config=app_config,
        settings=DictSettings({"user": {"name": "tester"}}),
    )


@pytest.fixture
def write(repo: Repository) -> Callable[[str, str], Path]:
    """Write a working tree file of ``repo``."""

    def _write(path: str, text: str) -> Path:
        target = repo.work_dir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return target

    return _write


@pytest.fixture
def commit_file(repo: Repository, write) -> Callable[..., str]:
    """Write, stage and commit one file; returns the new frame id."""

    def _commit(path: str, text: str, message: str = "") -> str:
        write(path, text)
        repo.stage([path])
        return repo.commit(message or f"update {path}")

    return _commit
