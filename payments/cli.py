"""
cli.py - Command-line entry point

Usage:
    python -m payments transactions.csv > accounts.csv
    python -m payments --verbose transactions.csv

Replays the transaction file and writes one CSV row per client to stdout.
A malformed row or an unreadable file aborts the run with exit code 1 and
nothing is written to stdout.
"""

from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from . import __version__
from .core import PaymentsError
from .csv_io import replay_file, write_accounts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments",
        description="Replay a transaction CSV file and print final client account balances.",
    )
    parser.add_argument(
        "transaction_file",
        help="Path to the transaction CSV file (columns: type, client, tx, amount)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Report every ignored transaction on stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        registry = replay_file(args.transaction_file, verbose=args.verbose)
    except OSError as e:
        print(f"Error reading transaction file: {e}", file=sys.stderr)
        return 1
    except PaymentsError as e:
        print(f"Error applying transactions: {e}", file=sys.stderr)
        return 1

    write_accounts(registry.snapshot(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
