"""
Error taxonomy.

Every failure the filter reports to the user derives from AgenixError.
Plain OSError from stream and file I/O is left to propagate as is.
"""

from __future__ import annotations

from pathlib import Path


class AgenixError(RuntimeError):
    """Base class for all user-facing failures."""


class ConfigError(AgenixError):
    """The rule file could not be evaluated or is malformed."""


class NoRuleFound(AgenixError):
    def __init__(self, rule_source: str | Path, target_path: str | Path):
        self.rule_source = Path(rule_source)
        self.target_path = Path(target_path)
        super().__init__(f"No rule in {self.rule_source} for {self.target_path}")


class NotEncrypted(AgenixError):
    """Input handed to smudge is not an age payload."""


class CryptoError(AgenixError):
    """Encryption or decryption failed (bad key, wrong identity, corrupt data)."""


class RepositoryError(AgenixError):
    """A git command failed or the repository could not be located."""


class SidecarError(AgenixError):
    """A hash sidecar exists but cannot be interpreted."""
