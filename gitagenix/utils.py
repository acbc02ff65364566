"""
Shared utility helpers.

This module contains small, reusable helpers that do not belong
to rule resolution, encryption or filter orchestration.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------


def content_digest(data: bytes) -> bytes:
    """Return the 32-byte SHA-256 digest of arbitrary bytes."""
    return hashlib.sha256(data).digest()


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def ensure_parent_dir(path: Path) -> None:
    """Ensure the parent directory of a file exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Replace the content of ``path`` with ``data`` in one step.

    The bytes go to a temporary file in the same directory first, so a
    reader never observes a half-written file.
    """

    ensure_parent_dir(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
