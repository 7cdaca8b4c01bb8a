import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from config import EngineConfig, default_log_level
from errors import ParseError
from payments_engine import PaymentsEngine
from snapshot_exporter import write_snapshot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-ledger",
        description="Apply a CSV stream of transactions and print the final client accounts as CSV.",
    )
    parser.add_argument("input", help="CSV file with columns type, client, tx, amount")
    parser.add_argument("-o", "--output", help="write accounts here instead of stdout")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="log level for stderr diagnostics (default: $LEDGER_LOG_LEVEL or WARNING)",
    )
    parser.add_argument("--dispute-withdrawals", action="store_true", default=None,
                        help="allow withdrawals to be disputed")
    parser.add_argument("--allow-redispute", action="store_true", default=None,
                        help="allow a resolved transaction to be disputed again")
    parser.add_argument("--no-implicit-accounts", dest="create_accounts_for_any_type",
                        action="store_false", default=None,
                        help="only deposits open accounts for unseen clients")
    parser.add_argument("--stats", action="store_true", help="print a processing summary to stderr")
    return parser


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Environment config, with any flag given on the command line taking precedence."""
    config = EngineConfig.from_env()
    overrides = {
        name: getattr(args, name)
        for name in ("dispute_withdrawals", "allow_redispute", "create_accounts_for_any_type")
        if getattr(args, name) is not None
    }
    return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        logging.basicConfig(
            level=args.log_level or default_log_level(),
            format="%(levelname)s: %(message)s",
            stream=sys.stderr,
        )
        config = build_config(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    engine = PaymentsEngine(config)
    try:
        accounts = engine.process_file(args.input)
    except OSError as e:
        print(f"error: cannot read {args.input}: {e}", file=sys.stderr)
        return 1
    except ParseError as e:
        print(f"error: invalid input: {e}", file=sys.stderr)
        return 1

    if args.output:
        try:
            with open(args.output, "w", newline="") as f:
                write_snapshot(accounts.values(), f)
        except OSError as e:
            print(f"error: cannot write {args.output}: {e}", file=sys.stderr)
            return 1
    else:
        write_snapshot(accounts.values(), sys.stdout)

    if args.stats:
        print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
