"""Shared test fixtures for git-agenix."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import pytest

from helpers import FakeRepository, git, make_identity, write_rules


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    root = (tmp_path / "repo").resolve()
    root.mkdir()
    return root


@pytest.fixture
def fake_repo(workdir: Path) -> FakeRepository:
    git_dir = workdir / ".git"
    git_dir.mkdir()
    return FakeRepository(workdir, git_dir)


@pytest.fixture
def identity(tmp_path: Path) -> Tuple[Path, str]:
    keys = tmp_path / "keys"
    keys.mkdir()
    return make_identity(keys)


@pytest.fixture
def rules_file(workdir: Path, identity: Tuple[Path, str]) -> Path:
    _, public_key = identity
    return write_rules(
        workdir / "secrets.yaml",
        {"secrets/db.txt": {"publicKeys": [public_key]}},
    )


@pytest.fixture
def git_workdir(workdir: Path) -> Path:
    """Provide an initialized git repository with an identity configured."""
    git(workdir, "init", "-q")
    git(workdir, "config", "user.email", "tests@example.com")
    git(workdir, "config", "user.name", "Tests")
    git(workdir, "config", "commit.gpgsign", "false")
    return workdir
