"""
git-agenix

Transparent encryption for files in a git repository. Files are stored
as age ciphertext in history and appear as plaintext in the working
tree, using git's clean/smudge/textconv filter drivers.
"""

__version__ = "0.1.0"

from .errors import (
    AgenixError,
    ConfigError,
    CryptoError,
    NoRuleFound,
    NotEncrypted,
    RepositoryError,
    SidecarError,
)
from .filters import AgenixFilter, textconv
from .repository import Repository
from .rules import RecipientRule, RuleResolver, load_rule_for
from .sidecar import SidecarStore

__all__ = [
    "AgenixError",
    "ConfigError",
    "CryptoError",
    "NoRuleFound",
    "NotEncrypted",
    "RepositoryError",
    "SidecarError",
    "AgenixFilter",
    "textconv",
    "Repository",
    "RecipientRule",
    "RuleResolver",
    "load_rule_for",
    "SidecarStore",
]
