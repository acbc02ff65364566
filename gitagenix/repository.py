"""
Git repository adapter.

Everything the filter needs from git goes through here:
- locating the working tree and the git directory
- mapping tracked files to their hash sidecars
- reading the blob committed at HEAD
- registering and removing the filter driver in the local git config

All git access is done by running the ``git`` executable.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from .config import FILTER_NAME, HASH_EXTENSION, SIDECAR_DIR_NAME, get_filter_command
from .errors import RepositoryError
from .sidecar import SidecarStore

logger = logging.getLogger(__name__)

# Printed by ``git config --remove-section`` when the section is absent
NO_SUCH_SECTION = "no such section"


def run_git(
    args: Sequence[str],
    cwd: str | Path,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a git command and capture its output as bytes.

    Raises:
        RepositoryError: if git is missing, or exits non-zero with check=True
    """

    cmd = ["git", *args]
    logger.debug("Running %s in %s", cmd, cwd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except FileNotFoundError:
        raise RepositoryError("git executable not found on PATH")

    if check and proc.returncode != 0:
        stderr = proc.stderr.decode("utf-8", errors="replace").strip()
        raise RepositoryError(f"git {' '.join(args)} failed: {stderr}")
    return proc


class Repository:
    def __init__(self, workdir: str | Path, git_dir: str | Path):
        self.workdir = Path(workdir).resolve()
        self.git_dir = Path(git_dir).resolve()

    @classmethod
    def discover(cls, start: Optional[str | Path] = None) -> "Repository":
        """
        Locate the repository containing ``start`` (default: cwd).

        Raises:
            RepositoryError: if ``start`` is not inside a git working tree
        """

        start = Path(start) if start is not None else Path.cwd()
        proc = run_git(
            ["rev-parse", "--show-toplevel", "--absolute-git-dir"],
            cwd=start,
            check=False,
        )
        if proc.returncode != 0:
            raise RepositoryError(f"Not inside a git working tree: {start}")

        lines = [
            line.strip()
            for line in proc.stdout.decode("utf-8").splitlines()
            if line.strip()
        ]
        if len(lines) < 2:
            raise RepositoryError(f"Unexpected git rev-parse output in {start}")

        return cls(workdir=lines[0], git_dir=lines[1])

    # ------------------------------------------------------------------
    # Sidecars
    # ------------------------------------------------------------------

    @property
    def sidecar_dir(self) -> Path:
        return self.git_dir / SIDECAR_DIR_NAME

    def sidecar_store(self, extension: str = HASH_EXTENSION) -> SidecarStore:
        return SidecarStore(self.sidecar_dir, self.workdir, extension)

    def sidecar_path(self, file: str | Path, extension: str = HASH_EXTENSION) -> Path:
        return self.sidecar_store(extension).path_for(file)

    def delete_all_sidecars(self) -> List[Path]:
        """Remove every sidecar; returns the ones that could not be removed."""
        return self.sidecar_store().remove_all()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def relative(self, file: str | Path) -> str:
        """Return ``file`` as a workdir-relative POSIX path."""

        file = Path(file)
        if not file.is_absolute():
            file = self.workdir / file
        try:
            return file.relative_to(self.workdir).as_posix()
        except ValueError:
            raise RepositoryError(f"{file} is outside of {self.workdir}")

    def committed_blob(self, file: str | Path) -> bytes:
        """
        Return the bytes stored at HEAD for ``file``, exactly as committed.

        Raises:
            RepositoryError: if HEAD has no such file
        """

        rel = self.relative(file)
        proc = run_git(["cat-file", "blob", f"HEAD:{rel}"], cwd=self.workdir, check=False)
        if proc.returncode != 0:
            raise RepositoryError(f"No committed version of {rel} at HEAD")
        return proc.stdout

    # ------------------------------------------------------------------
    # Filter registration
    # ------------------------------------------------------------------

    def install_filter_config(
        self,
        rules_path: str | Path,
        identities: Sequence[str | Path],
    ) -> None:
        """Register clean/smudge/textconv drivers in the local git config."""

        command = get_filter_command()
        rules = shlex.quote(str(Path(rules_path).resolve()))
        ids: List[str] = []
        for identity in identities:
            ids += ["-i", shlex.quote(str(Path(identity).expanduser()))]

        settings = [
            (f"filter.{FILTER_NAME}.clean", [command, "clean", "--secrets-nix", rules, "--", "%f"]),
            (f"filter.{FILTER_NAME}.smudge", [command, "smudge", *ids, "--", "%f"]),
            (f"filter.{FILTER_NAME}.required", ["true"]),
            (f"diff.{FILTER_NAME}.textconv", [command, "textconv", *ids]),
        ]
        for key, words in settings:
            value = " ".join(words)
            logger.debug("Setting %s=%s", key, value)
            run_git(["config", "--local", key, value], cwd=self.workdir)

    def remove_filter_config(self) -> None:
        """Remove the filter and diff sections; absent sections are fine."""

        for section in (f"filter.{FILTER_NAME}", f"diff.{FILTER_NAME}"):
            proc = run_git(
                ["config", "--local", "--remove-section", section],
                cwd=self.workdir,
                check=False,
            )
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            if proc.returncode != 0 and NO_SUCH_SECTION not in stderr.lower():
                raise RepositoryError(f"Failed to remove {section}: {stderr}")
            logger.debug("Removed git config section %s", section)
