from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Callable, List, Optional

from countervalue_history.common.errors import ConfigurationError, RateLoadError
from countervalue_history.common.logging import log, setup_logger
from countervalue_history.countervalues.api import CountervaluesAPI
from countervalue_history.ranges import get_ranges
from countervalue_history.report.formatters import HistoryFormat
from countervalue_history.report.job import countervalues_job
from countervalue_history.report.options import load_config, merge_options


def _ensure_run_id() -> None:
    os.environ.setdefault("CVH_RUN_ID", uuid.uuid4().hex)


def _write_item(item: Any) -> None:
    if isinstance(item, str):
        print(item)
    else:
        print(json.dumps(item, ensure_ascii=False))
    sys.stdout.flush()


def _execute_step(name: str, func: Callable[[], int], logger: logging.Logger) -> int:
    log(logger, logging.INFO, "cli_step_start", step=name)
    try:
        code = func()
    except (ConfigurationError, RateLoadError) as exc:
        log(logger, logging.ERROR, "cli_step_failed", step=name, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        code = 1
    level = logging.INFO if code == 0 else logging.ERROR
    log(logger, level, "cli_step_complete", step=name, exit_code=code)
    return code


def _run_countervalues(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config)) if args.config else {}
    options = merge_options(vars(args), config)
    for item in countervalues_job(options, api=CountervaluesAPI(), echo=_write_item):
        _write_item(item)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cvh", description="Countervalue history CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    cv_parser = subparsers.add_parser(
        "countervalues", help="Report historical countervalues of currencies"
    )
    cv_parser.add_argument(
        "-c", "--currency", action="append", help="ticker of a currency (repeatable)"
    )
    cv_parser.add_argument(
        "-C",
        "--countervalue",
        action="append",
        help="ticker of a countervalue currency (repeatable)",
    )
    cv_parser.add_argument("-p", "--period", help=" | ".join(get_ranges()))
    cv_parser.add_argument(
        "-f",
        "--format",
        metavar=" | ".join(f.value for f in HistoryFormat),
        help="how to display the data",
    )
    cv_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="print the loaded rate state before computing",
    )
    cv_parser.add_argument(
        "--fiats",
        action="store_true",
        default=None,
        help="enable all fiats as countervalues",
    )
    cv_parser.add_argument(
        "-m",
        "--marketcap",
        type=int,
        help="use top N tickers of the market-cap ranking instead of listing each --currency",
    )
    cv_parser.add_argument(
        "-g",
        "--disableAutofillGaps",
        dest="disable_autofill_gaps",
        action="store_true",
        default=None,
        help="disable the autofill of gaps used to evaluate the rates availability",
    )
    cv_parser.add_argument(
        "-l", "--latest", action="store_true", default=None, help="only fetch latest"
    )
    cv_parser.add_argument("--config", help="YAML file with option defaults")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    _ensure_run_id()

    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_logger("cli", command=args.command)

    if args.command == "countervalues":
        return _execute_step("countervalues", lambda: _run_countervalues(args), logger)

    raise ValueError(f"Unknown command {args.command}")


if __name__ == "__main__":
    sys.exit(main())
