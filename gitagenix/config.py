"""
Global configuration and environment handling.

This module is responsible for:
- Defining global constants and defaults
- Reading the few environment variables the tool honours
- Providing normalized, ready-to-use configuration values

Nothing in this file should depend on:
- the repository
- the rule file
- CLI arguments
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final, List

# ---------------------------------------------------------------------------
# Tool versioning
# ---------------------------------------------------------------------------

TOOL_VERSION: Final[str] = "0.1.0"

# ---------------------------------------------------------------------------
# Filter / sidecar layout
# ---------------------------------------------------------------------------

FILTER_NAME: Final[str] = "agenix"
SIDECAR_DIR_NAME: Final[str] = "agenix"
HASH_EXTENSION: Final[str] = "hash"
DIGEST_SIZE: Final[int] = 32

DEFAULT_RULES_FILE: Final[str] = "secrets.nix"
DEFAULT_COMMAND: Final[str] = "git-agenix"

# Tried in order when no identity is given explicitly
DEFAULT_IDENTITY_CANDIDATES: Final[tuple] = (
    "~/.ssh/id_ed25519",
    "~/.ssh/id_rsa",
)

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------

ENV_IDENTITIES: Final[str] = "AGENIX_IDENTITIES"
ENV_LOG: Final[str] = "GIT_AGENIX_LOG"
ENV_COMMAND: Final[str] = "GIT_AGENIX_COMMAND"

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_identities() -> List[Path]:
    """
    Return the identity files to use when none were passed explicitly.

    ``AGENIX_IDENTITIES`` wins when set (entries separated by ``os.pathsep``);
    otherwise the usual SSH private keys that actually exist are used.

    Returns:
        List[Path]: identity files, possibly empty
    """

    raw = os.getenv(ENV_IDENTITIES)
    if raw:
        return [Path(p).expanduser() for p in raw.split(os.pathsep) if p]

    candidates = [Path(p).expanduser() for p in DEFAULT_IDENTITY_CANDIDATES]
    return [p for p in candidates if p.is_file()]


def get_log_level() -> int:
    """
    Return the log level requested through ``GIT_AGENIX_LOG``.

    Unknown names fall back to WARNING.
    """

    name = os.getenv(ENV_LOG, "WARNING").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def get_filter_command() -> str:
    """Return the executable name written into git config."""
    return os.getenv(ENV_COMMAND, DEFAULT_COMMAND)
