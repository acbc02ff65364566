"""
Rule file evaluation.

Turns a rule source into a plain Python value tree (dicts, lists,
strings, scalars). The rule resolver validates the shape; this module
only cares about getting a value out of the file.

Supported sources:
- ``*.nix``   evaluated by ``nix-instantiate --eval --strict --json``
- ``*.yaml``, ``*.yml``, ``*.json``   parsed with PyYAML
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

NIX_EVAL_COMMAND = ["nix-instantiate", "--eval", "--strict", "--json"]
YAML_SUFFIXES = (".yaml", ".yml", ".json")


def evaluate(source: str | Path) -> Any:
    """
    Evaluate a rule source into a generic value tree.

    Raises:
        ConfigError: if the file is missing, unsupported, or fails to evaluate
    """

    source = Path(source)
    if not source.is_file():
        raise ConfigError(f"Rule file not found: {source}")

    suffix = source.suffix.lower()
    if suffix == ".nix":
        return _evaluate_nix(source)
    if suffix in YAML_SUFFIXES:
        return _load_yaml(source)

    raise ConfigError(
        f"Unsupported rule file type '{source.suffix}': {source} "
        f"(expected .nix, .yaml, .yml or .json)"
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _evaluate_nix(source: Path) -> Any:
    cmd = [*NIX_EVAL_COMMAND, str(source)]
    logger.debug("Evaluating rule file; cmd=%s", cmd)

    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            check=False,
        )
    except FileNotFoundError:
        raise ConfigError(
            f"Cannot evaluate {source}: nix-instantiate not found on PATH"
        )

    if proc.returncode != 0:
        raise ConfigError(
            f"Failed to evaluate {source}: {proc.stderr.strip() or 'nix-instantiate failed'}"
        )

    try:
        return json.loads(proc.stdout)
    except json.JSONDecodeError as e:
        raise ConfigError(f"nix-instantiate returned invalid JSON for {source}: {e}")


def _load_yaml(source: Path) -> Any:
    try:
        with source.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {source}: {e}")

    return {} if raw is None else raw
