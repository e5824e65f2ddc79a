"""CLI entry: python -m notifier.cli {run,serve} [--config path] [--dry-run]."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from notifier.runner import run, serve

load_dotenv()

DEFAULT_CONFIG = "config/config.yaml"
LOG_DIR = Path("logs")


def _setup_logging() -> None:
    LOG_DIR.mkdir(exist_ok=True)
    log_file = LOG_DIR / "app.log"
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    formatter = logging.Formatter(fmt)
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    if not root.handlers:
        h_stderr = logging.StreamHandler(sys.stderr)
        h_stderr.setFormatter(formatter)
        root.addHandler(h_stderr)
        h_file = logging.FileHandler(log_file, encoding="utf-8")
        h_file.setFormatter(formatter)
        root.addHandler(h_file)


def _parse_at(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO datetime: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="EcoBreak notification scheduler")
    sub = parser.add_subparsers(dest="command", required=True)

    run_parser = sub.add_parser("run", help="Evaluate a single tick and exit")
    run_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Config file path (default: {DEFAULT_CONFIG})",
    )
    run_parser.add_argument(
        "--at",
        type=_parse_at,
        default=None,
        help="Evaluate as if it were this local time, e.g. 2026-10-17T08:00 (default: now)",
    )
    run_parser.add_argument(
        "--evaluator",
        default=None,
        help="Run only this evaluator id (default: all enabled)",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Evaluate and log messages but do not send or deactivate anything",
    )

    serve_parser = sub.add_parser("serve", help="Run a tick on every cron boundary")
    serve_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Config file path (default: {DEFAULT_CONFIG})",
    )
    serve_parser.add_argument("--dry-run", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    _setup_logging()

    try:
        if args.command == "run":
            run(args.config, args.at, args.evaluator, args.dry_run)
        elif args.command == "serve":
            serve(args.config, args.dry_run)
    except FileNotFoundError as e:
        logging.error("%s", e)
        sys.exit(1)
    except ValueError as e:
        logging.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logging.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
