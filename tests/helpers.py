"""Helpers shared by the test modules."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Dict, Tuple

import pytest
import yaml
from pyrage import x25519

from gitagenix.errors import RepositoryError
from gitagenix.repository import Repository


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class FakeRepository(Repository):
    """Repository whose HEAD is a plain dict, so tests need no git binary."""

    def __init__(self, workdir: Path, git_dir: Path):
        super().__init__(workdir, git_dir)
        self.head: Dict[str, bytes] = {}

    def commit(self, file: str, data: bytes) -> None:
        self.head[self.relative(file)] = data

    def committed_blob(self, file) -> bytes:
        rel = self.relative(file)
        try:
            return self.head[rel]
        except KeyError:
            raise RepositoryError(f"No committed version of {rel} at HEAD")


def make_identity(directory: Path, name: str = "key.txt") -> Tuple[Path, str]:
    """Write a fresh age identity file; return its path and public key."""
    identity = x25519.Identity.generate()
    path = directory / name
    path.write_text(
        f"# created for tests\n# public key: {identity.to_public()}\n{identity}\n"
    )
    return path, str(identity.to_public())


def write_rules(path: Path, rules: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(rules, sort_keys=False))
    return path


def git(cwd: Path, *args: str) -> bytes:
    return subprocess.run(
        ["git", *args], cwd=cwd, check=True, stdout=subprocess.PIPE
    ).stdout
