"""
age encryption adapter.

This module performs the actual cryptography through the pyrage
bindings. It is intentionally dumb about policy: it never decides who
a file is encrypted for, it only encrypts for the keys it is given.

Decryption has three outcomes:
- plaintext bytes on success
- None when the input is not an age payload at all
- CryptoError when it is an age payload that cannot be decrypted
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pyrage
from pyrage import ssh, x25519

from .errors import CryptoError

logger = logging.getLogger(__name__)

AGE_BINARY_HEADER = b"age-encryption.org/"
AGE_ARMOR_HEADER = b"-----BEGIN AGE ENCRYPTED FILE-----"
AGE_SECRET_KEY_PREFIX = "AGE-SECRET-KEY-"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_encrypted(data: bytes) -> bool:
    """Return True if ``data`` looks like an age payload."""
    return data.startswith(AGE_BINARY_HEADER) or data.lstrip().startswith(AGE_ARMOR_HEADER)


def encrypt(public_keys: Sequence[str], plaintext: bytes) -> bytes:
    """
    Encrypt ``plaintext`` for every recipient in ``public_keys``.

    Raises:
        CryptoError: if no key is given or a key cannot be parsed
    """

    if not public_keys:
        raise CryptoError("Cannot encrypt without at least one public key")

    recipients = [parse_recipient(k) for k in public_keys]
    try:
        return pyrage.encrypt(plaintext, recipients)
    except pyrage.EncryptError as e:
        raise CryptoError(f"Encryption failed: {e}") from e


def decrypt(identities: Iterable[str | Path], ciphertext: bytes) -> Optional[bytes]:
    """
    Decrypt ``ciphertext`` with the first identity able to do so.

    Returns:
        Optional[bytes]: plaintext, or None if the input is not age format

    Raises:
        CryptoError: if the payload is age format but cannot be decrypted
    """

    if not is_encrypted(ciphertext):
        logger.debug("Input has no age header")
        return None

    keys = load_identities(identities)
    if not keys:
        raise CryptoError("No identities available to decrypt with")

    try:
        return pyrage.decrypt(ciphertext, keys)
    except pyrage.DecryptError as e:
        raise CryptoError(f"Decryption failed: {e}") from e


def parse_recipient(public_key: str):
    """Turn a recipient string into a pyrage recipient object."""

    key = public_key.strip()
    if key.startswith("age1"):
        parser = x25519.Recipient.from_str
    elif key.startswith("ssh-"):
        parser = ssh.Recipient.from_str
    else:
        raise CryptoError(f"Unsupported public key: {public_key!r}")

    try:
        return parser(key)
    except Exception as e:
        raise CryptoError(f"Invalid public key {public_key!r}: {e}") from e


def load_identities(sources: Iterable[str | Path]) -> List[object]:
    """
    Read identity files into pyrage identity objects.

    A file holding ``AGE-SECRET-KEY-`` lines yields one X25519 identity per
    line; any other file is read as an unencrypted OpenSSH private key.
    """

    identities: List[object] = []
    for source in sources:
        identities.extend(_read_identity_file(Path(source)))
    return identities


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_identity_file(path: Path) -> List[object]:
    try:
        data = path.expanduser().read_bytes()
    except OSError as e:
        raise CryptoError(f"Cannot read identity file {path}: {e}") from e

    text = data.decode("utf-8", errors="replace")
    age_lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip().startswith(AGE_SECRET_KEY_PREFIX)
    ]

    try:
        if age_lines:
            logger.debug("Loaded %d age identities from %s", len(age_lines), path)
            return [x25519.Identity.from_str(line) for line in age_lines]

        logger.debug("Loading %s as an SSH identity", path)
        return [ssh.Identity.from_buffer(data)]
    except Exception as e:
        raise CryptoError(f"Invalid identity file {path}: {e}") from e
