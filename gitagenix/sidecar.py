"""
Hash sidecar store.

One small file per tracked path remembers the digest of the plaintext
last seen for it. Clean compares against it to avoid re-encrypting
content that did not change, since age output differs on every run.

The store keeps no state in memory: every call goes straight to disk.

This module does NOT:
- decide when to re-encrypt
- know anything about git
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from .config import DIGEST_SIZE, HASH_EXTENSION
from .errors import SidecarError
from .utils import atomic_write_bytes

logger = logging.getLogger(__name__)


class SidecarStore:
    def __init__(
        self,
        directory: str | Path,
        workdir: str | Path,
        extension: str = HASH_EXTENSION,
    ):
        self.directory = Path(directory)
        self.workdir = Path(workdir)
        self.extension = extension

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def path_for(self, file: str | Path) -> Path:
        """
        Map a tracked file to its sidecar.

        The workdir-relative path is mirrored below the store directory,
        so two distinct files never share a sidecar.
        """

        file = Path(file)
        if not file.is_absolute():
            file = self.workdir / file

        try:
            rel = file.relative_to(self.workdir)
        except ValueError:
            raise SidecarError(f"{file} is outside of {self.workdir}")

        if not rel.parts:
            raise SidecarError(f"{file} is the working directory itself")

        return self.directory / rel.parent / f"{rel.name}.{self.extension}"

    def read(self, file: str | Path) -> Optional[bytes]:
        """
        Return the stored digest, or None if no sidecar exists.

        Raises:
            SidecarError: if the sidecar does not hold exactly one digest
        """

        sidecar = self.path_for(file)
        try:
            data = sidecar.read_bytes()
        except FileNotFoundError:
            logger.debug("No saved hash file found; sidecar=%s", sidecar)
            return None

        if len(data) != DIGEST_SIZE:
            raise SidecarError(
                f"Sidecar {sidecar} holds {len(data)} bytes, expected {DIGEST_SIZE}"
            )
        return data

    def write(self, file: str | Path, digest: bytes) -> None:
        if len(digest) != DIGEST_SIZE:
            raise SidecarError(
                f"Refusing to store a {len(digest)}-byte digest for {file}"
            )

        sidecar = self.path_for(file)
        logger.debug("Storing hash; hash=%s sidecar=%s", digest.hex(), sidecar)
        atomic_write_bytes(sidecar, digest)

    def remove_all(self) -> List[Path]:
        """
        Delete every sidecar below the store directory.

        A file that cannot be removed is logged and skipped so the rest
        still go away.

        Returns:
            List[Path]: sidecars that could not be removed
        """

        if not self.directory.exists():
            return []

        failed: List[Path] = []
        suffix = f".{self.extension}"

        for root, dirs, files in os.walk(self.directory, topdown=False):
            root_path = Path(root)
            for name in files:
                if not name.endswith(suffix):
                    continue
                sidecar = root_path / name
                try:
                    sidecar.unlink()
                    logger.debug("Removed sidecar %s", sidecar)
                except OSError as e:
                    logger.error("Failed to remove sidecar %s: %s", sidecar, e)
                    failed.append(sidecar)

            # Prune directories left empty
            try:
                if not any(root_path.iterdir()):
                    root_path.rmdir()
            except OSError as e:
                logger.error("Failed to prune sidecar directory %s: %s", root_path, e)

        return failed
