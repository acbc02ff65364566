"""
Main entry point for running git-agenix as a module.

Usage:
    python -m gitagenix <command> [options]
"""

from .cli import main
import sys

if __name__ == "__main__":
    sys.exit(main())
