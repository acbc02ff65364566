"""
Git filter operations: clean, smudge and textconv.

This module wires the hash sidecars, the rule resolver and the age
adapter together. It works on bytes only; reading stdin and writing
stdout is left to the CLI.

- clean     plaintext from the index pipe -> ciphertext to store
- smudge    stored ciphertext -> plaintext for the working tree
- textconv  file on disk -> something readable for ``git diff``
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from . import crypto
from .errors import NotEncrypted, RepositoryError
from .repository import Repository
from .rules import RuleResolver
from .utils import content_digest

logger = logging.getLogger(__name__)


class AgenixFilter:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.sidecars = repo.sidecar_store()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def clean(self, plaintext: bytes, file: str | Path, rules_path: str | Path) -> bytes:
        """
        Encrypt staged content.

        If the plaintext hashes to what the sidecar remembers, the blob
        already committed at HEAD is returned instead of a fresh
        ciphertext, so unchanged files never show up as modified. A file
        with nothing at HEAD yet is encrypted afresh.

        Raises:
            NoRuleFound: if the rule file has no entry for ``file``
            ConfigError: if the rule file is malformed
        """

        logger.info("Encrypting file")
        target = self.repo.workdir / file

        new_digest = content_digest(plaintext)
        old_digest = self.sidecars.read(target)
        logger.debug(
            "Comparing hashes for file; old_hash=%s, new_hash=%s",
            old_digest.hex() if old_digest else None,
            new_digest.hex(),
        )

        if old_digest == new_digest:
            logger.debug("File didn't change since last encryption, loading from git HEAD")
            try:
                return self.repo.committed_blob(target)
            except RepositoryError:
                # Staged but never committed yet
                logger.debug("No committed version at HEAD, re-encrypting")
        else:
            logger.debug("File changed since last encryption, re-encrypting")

        rule = RuleResolver(rules_path).resolve(target)
        ciphertext = crypto.encrypt(rule.public_keys, plaintext)

        # Only remember the digest once a ciphertext for it exists
        self.sidecars.write(target, new_digest)
        return ciphertext

    def smudge(
        self,
        ciphertext: bytes,
        identities: Sequence[str | Path],
        file: str | Path,
    ) -> bytes:
        """
        Decrypt checked-out content and record its digest.

        Raises:
            NotEncrypted: if the input is not an age payload
            CryptoError: if none of the identities can decrypt it
        """

        logger.info("Decrypting file")
        target = self.repo.workdir / file

        plaintext = crypto.decrypt(identities, ciphertext)
        if plaintext is None:
            raise NotEncrypted(f"Input isn't encrypted: {target}")

        logger.info("Decrypted file")
        self.sidecars.write(target, content_digest(plaintext))
        return plaintext


def textconv(path: str | Path, identities: Sequence[str | Path]) -> bytes:
    """
    Return the content of ``path`` in a form fit for diff output.

    Files that are not age payloads (typically a plaintext working copy)
    are returned unchanged.
    """

    logger.info("Decrypting file to show in diff")
    data = Path(path).read_bytes()

    plaintext = crypto.decrypt(identities, data)
    if plaintext is None:
        logger.info("File isn't encrypted, probably a working copy; showing as is.")
        return data

    logger.info("Decrypted file to show in diff")
    return plaintext
