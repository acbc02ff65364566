"""
Command-line interface for git-agenix.

This module orchestrates all other components and provides
the commands git and the user call:
- init / deinit      (user)
- clean / smudge     (git filter driver, stdin -> stdout)
- textconv           (git diff driver, path -> stdout)
- explain            (user, rule debugging)

Filter commands write nothing but payload bytes to stdout; every
message goes to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import (
    DEFAULT_RULES_FILE,
    FILTER_NAME,
    TOOL_VERSION,
    default_identities,
    get_log_level,
)
from .errors import AgenixError
from .filters import AgenixFilter, textconv
from .repository import Repository
from .rules import RuleResolver


# ---------------------------------------------------------------------------
# Color output helpers
# ---------------------------------------------------------------------------


class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colored(text: str, color: str) -> str:
    """Return colored text for terminal output."""
    return f"{color}{text}{Colors.RESET}"


def print_error(msg: str) -> None:
    """Print error message to stderr."""
    print(colored(f"✗ Error: {msg}", Colors.RED), file=sys.stderr)


def print_success(msg: str) -> None:
    print(colored(f"✓ {msg}", Colors.GREEN))


def print_warning(msg: str) -> None:
    print(colored(f"⚠ Warning: {msg}", Colors.YELLOW), file=sys.stderr)


# ---------------------------------------------------------------------------
# CLI context
# ---------------------------------------------------------------------------


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, verbose: bool, quiet: bool):
        self.verbose = verbose
        self.quiet = quiet

        # Lazy-loaded; textconv and explain work outside a repository
        self._repo: Optional[Repository] = None

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = Repository.discover()
        return self._repo

    def log(self, msg: str) -> None:
        """Log message if not quiet."""
        if not self.quiet:
            print(msg)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else get_log_level()
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _identities(args: argparse.Namespace) -> List[Path]:
    if args.identities:
        return [Path(i) for i in args.identities]
    return default_identities()


def _read_stdin() -> bytes:
    return sys.stdin.buffer.read()


def _write_stdout(data: bytes) -> None:
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def cmd_init(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Register the filter and diff drivers in the local git config.
    """
    rules_path = Path(args.secrets_nix)
    identities = _identities(args)
    if not identities:
        print_warning("No identities found; smudge and textconv will fail until one is configured")

    ctx.repo.install_filter_config(rules_path, identities)
    print_success(f"Configured filter '{FILTER_NAME}' in {ctx.repo.git_dir / 'config'}")

    ctx.log("")
    ctx.log("Add lines like these to .gitattributes:")
    try:
        for rule in RuleResolver(rules_path).iter_rules():
            rel = ctx.repo.relative(rule.path)
            ctx.log(f"  {rel} filter={FILTER_NAME} diff={FILTER_NAME}")
    except AgenixError as e:
        print_warning(f"Could not list rules from {rules_path}: {e}")
        ctx.log(f"  <pattern> filter={FILTER_NAME} diff={FILTER_NAME}")
    return 0


def cmd_deinit(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Remove the driver configuration and every hash sidecar.
    """
    ctx.repo.remove_filter_config()
    failed = ctx.repo.delete_all_sidecars()

    for path in failed:
        print_warning(f"Could not remove sidecar {path}")
    if failed:
        return 1

    print_success(f"Removed filter '{FILTER_NAME}' and its hash sidecars")
    return 0


def cmd_clean(ctx: CLIContext, args: argparse.Namespace) -> int:
    plaintext = _read_stdin()
    result = AgenixFilter(ctx.repo).clean(plaintext, args.file, args.secrets_nix)
    _write_stdout(result)
    return 0


def cmd_smudge(ctx: CLIContext, args: argparse.Namespace) -> int:
    ciphertext = _read_stdin()
    result = AgenixFilter(ctx.repo).smudge(ciphertext, _identities(args), args.file)
    _write_stdout(result)
    return 0


def cmd_textconv(ctx: CLIContext, args: argparse.Namespace) -> int:
    _write_stdout(textconv(args.path, _identities(args)))
    return 0


def cmd_explain(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Show which rule applies to a file and who can decrypt it.
    """
    target = (Path.cwd() / args.path).resolve()
    rule = RuleResolver(args.secrets_nix).resolve(target)

    ctx.log(colored("Rule Evaluation", Colors.BOLD))
    ctx.log(f"{colored('File:', Colors.BOLD)}       {target}")
    ctx.log(f"{colored('Rule file:', Colors.BOLD)}  {args.secrets_nix}")
    ctx.log(f"{colored('Recipients:', Colors.CYAN)}")
    for key in rule.public_keys:
        ctx.log(f"  - {key}")
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_identity_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i", "--identity",
        dest="identities",
        action="append",
        default=[],
        help="Identity (private key) file; may be repeated",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="git-agenix",
        description="Transparent age encryption for files in a git repository",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {TOOL_VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress non-error output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # init command
    init_parser = subparsers.add_parser("init", help="Register the filter in git config")
    init_parser.add_argument(
        "--secrets-nix",
        default=DEFAULT_RULES_FILE,
        help="Rule file mapping paths to public keys",
    )
    _add_identity_option(init_parser)

    # deinit command
    subparsers.add_parser("deinit", help="Remove the filter and hash sidecars")

    # Filter commands, called by git
    clean_parser = subparsers.add_parser("clean", help="Encrypt stdin for FILE (git clean filter)")
    clean_parser.add_argument("--secrets-nix", required=True, help="Rule file")
    clean_parser.add_argument("file", help="Workdir-relative path of the file")

    smudge_parser = subparsers.add_parser("smudge", help="Decrypt stdin for FILE (git smudge filter)")
    _add_identity_option(smudge_parser)
    smudge_parser.add_argument("file", help="Workdir-relative path of the file")

    textconv_parser = subparsers.add_parser("textconv", help="Decrypt PATH for diff output")
    _add_identity_option(textconv_parser)
    textconv_parser.add_argument("path", help="File to show")

    # explain command
    explain_parser = subparsers.add_parser("explain", help="Show the rule for a file")
    explain_parser.add_argument("--secrets-nix", default=DEFAULT_RULES_FILE, help="Rule file")
    explain_parser.add_argument("path", help="File path to explain")

    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    configure_logging(args.verbose)
    ctx = CLIContext(verbose=args.verbose, quiet=args.quiet)

    commands = {
        "init": cmd_init,
        "deinit": cmd_deinit,
        "clean": cmd_clean,
        "smudge": cmd_smudge,
        "textconv": cmd_textconv,
        "explain": cmd_explain,
    }

    try:
        return commands[args.command](ctx, args)
    except KeyboardInterrupt:
        print_error("Interrupted")
        return 130
    except (AgenixError, OSError) as e:
        print_error(str(e))
        return 1
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1
