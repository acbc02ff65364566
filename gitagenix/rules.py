"""
Recipient rule resolution.

Given a rule file and the absolute path of a file, this module decides
which public keys the file is encrypted for.

The rule file evaluates to a mapping keyed by paths relative to the
rule file's own directory:

    {
      "secrets/db.txt": { "publicKeys": ["age1...", "ssh-ed25519 ..."] },
    }

Rules DO NOT encrypt anything. They only return recipients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from .errors import ConfigError, NoRuleFound
from .evaluator import evaluate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipientRule:
    path: Path
    public_keys: Tuple[str, ...]


class RuleResolver:
    def __init__(self, rules_path: str | Path):
        self.rules_path = Path(rules_path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, target: str | Path) -> RecipientRule:
        """
        Return the first rule whose path equals ``target``.

        Raises:
            ConfigError: if the rule file is malformed
            NoRuleFound: if no entry matches
        """

        target = Path(target)
        tree, base_dir = self._load()

        for key, value in tree.items():
            candidate = base_dir / _rule_path(key)
            if candidate != target:
                logger.debug(
                    "Encryption rule doesn't match; candidate=%s, target=%s",
                    candidate,
                    target,
                )
                continue

            logger.debug("Encryption rule matches; target=%s", candidate)
            rule = RecipientRule(
                path=candidate,
                public_keys=tuple(_public_keys(key, value)),
            )
            logger.debug(
                "Collected public keys; target=%s, public_keys=%s",
                rule.path,
                list(rule.public_keys),
            )
            return rule

        raise NoRuleFound(self.rules_path, target)

    def iter_rules(self) -> Iterator[RecipientRule]:
        """Yield every rule in declaration order, validating each one."""

        tree, base_dir = self._load()
        for key, value in tree.items():
            yield RecipientRule(
                path=base_dir / _rule_path(key),
                public_keys=tuple(_public_keys(key, value)),
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> Tuple[Dict[str, Any], Path]:
        tree = evaluate(self.rules_path)
        if not isinstance(tree, dict):
            raise ConfigError(
                f"{self.rules_path} must evaluate to a mapping of paths to rules, "
                f"got {type(tree).__name__}"
            )

        # Entries are relative to the rule file, not to the caller's cwd
        base_dir = self.rules_path.parent.resolve(strict=True)
        return tree, base_dir


def load_rule_for(rules_path: str | Path, target: str | Path) -> RecipientRule:
    """Shortcut for ``RuleResolver(rules_path).resolve(target)``."""
    return RuleResolver(rules_path).resolve(target)


def _rule_path(key: Any) -> str:
    if not isinstance(key, str):
        raise ConfigError(f"Rule key must be a path string, got {key!r}")
    return key


def _public_keys(key: str, value: Any) -> List[str]:
    if not isinstance(value, dict):
        raise ConfigError(f"Rule for '{key}' must be a mapping")

    if "publicKeys" not in value:
        raise ConfigError(f"Rule for '{key}' is missing publicKeys")

    keys = value["publicKeys"]
    if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
        raise ConfigError(f"Rule for '{key}': publicKeys must be a list of strings")

    return list(keys)
