"""
Command Line Entry Point

Replays a CSV file of transaction events and prints the account report
to stdout. Logs go to stderr.
"""

import argparse
import sys
from typing import List, Optional

from .config import get_config
from .csv_io import read_events, write_snapshots
from .ledger import LedgerEngine, ReplaySummary
from .logging_config import setup_logging, log_action


class LedgerInputError(Exception):
    """Raised when the input file cannot be opened or decoded"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payment-ledger",
        description="Replay transaction events and print final client balances as CSV."
    )
    parser.add_argument("input", help="Path to the input CSV (type,client,tx,amount)")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Override LEDGER_LOG_LEVEL")
    return parser


def replay_file(path: str, engine: LedgerEngine, encoding: str = "utf-8") -> ReplaySummary:
    """
    Replay every event in a CSV file through the engine

    Raises:
        LedgerInputError: If the file cannot be opened or decoded
    """
    try:
        with open(path, newline="", encoding=encoding) as stream:
            return engine.apply_all(read_events(stream))
    except OSError as e:
        raise LedgerInputError(f"Cannot read input file '{path}': {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise LedgerInputError(f"Cannot decode input file '{path}' as {encoding}: {e.reason}") from e


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()

    logger = setup_logging(
        level=args.log_level or config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
    )

    engine = LedgerEngine()
    try:
        summary = replay_file(args.input, engine, encoding=config.input_encoding)
    except LedgerInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    log_action(
        logger, "info", "Replay finished",
        extra={
            "applied": summary.applied,
            "dropped": {outcome.value: count for outcome, count in summary.dropped.items()},
            "accounts": len(engine.accounts),
        }
    )

    try:
        write_snapshots(sys.stdout, engine.snapshots())
        sys.stdout.flush()
    except OSError as e:
        print(f"error: cannot write report: {e}", file=sys.stderr)
        return 1

    return 0
