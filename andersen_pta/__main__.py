#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
andersen_pta/__main__.py
========================

Command-line host for the points-to analysis.

Usage
-----
    python -m andersen_pta <command> [options] <ir-file>

Commands
--------
    analyze     Run the analysis and print the points-to mapping as JSON
    check       Parse and validate an IR file without analysing it

Exit codes
----------
    0   success
    1   the input could not be read, parsed or validated
    3   the iteration limit was exceeded
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from typing import List, Optional, Sequence

from . import __version__
from .analysis import AnalysisOptions, andersen_pta
from .errors import ErrorCodes, IterationLimitExceeded, PTAError
from .frontend import parse_program
from .ir import Function

logger = logging.getLogger("andersen_pta")

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_LIMIT_EXCEEDED = 3


# ═══════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def _load_functions(args: argparse.Namespace) -> List[Function]:
    functions = parse_program(_read_source(args.input))
    wanted = getattr(args, "function", None)
    if wanted:
        functions = [fn for fn in functions if fn.name in wanted]
        missing = set(wanted) - {fn.name for fn in functions}
        if missing:
            names = ", ".join(f"@{name}" for name in sorted(missing))
            raise PTAError(
                f"no such function(s): {names}", ErrorCodes.UNKNOWN_FUNCTION
            )
    return functions


def _report_error(exc: PTAError, as_json: bool) -> None:
    if as_json:
        sys.stderr.write(json.dumps({"error": exc.to_json()}) + "\n")
    else:
        sys.stderr.write(f"error: {exc}\n")


# ═══════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════

def cmd_analyze(args: argparse.Namespace) -> int:
    """Analyse every (selected) function and print the result mapping."""
    options = AnalysisOptions(
        optimize=not args.no_optimize,
        max_iterations=args.max_iterations,
    )
    try:
        functions = _load_functions(args)
    except (OSError, UnicodeDecodeError) as exc:
        sys.stderr.write(f"error: cannot read {args.input}: {exc}\n")
        return EXIT_INPUT_ERROR
    except PTAError as exc:
        _report_error(exc, args.json_errors)
        return EXIT_INPUT_ERROR

    output = {}
    status = EXIT_OK
    for fn in functions:
        try:
            result = andersen_pta(fn, options)
        except IterationLimitExceeded as exc:
            logger.warning("@%s not analysed: %s", fn.name, exc)
            _report_error(exc, args.json_errors)
            status = EXIT_LIMIT_EXCEEDED
            continue
        entry = {"points_to": result.to_json()}
        if args.stats:
            entry["stats"] = result.stats_json()
        output[fn.name] = entry

    json.dump(output, sys.stdout, indent=args.indent, sort_keys=True)
    sys.stdout.write("\n")
    return status


def cmd_check(args: argparse.Namespace) -> int:
    """Parse and validate the input."""
    try:
        functions = _load_functions(args)
    except (OSError, UnicodeDecodeError) as exc:
        sys.stderr.write(f"error: cannot read {args.input}: {exc}\n")
        return EXIT_INPUT_ERROR
    except PTAError as exc:
        _report_error(exc, args.json_errors)
        return EXIT_INPUT_ERROR

    for fn in functions:
        sys.stdout.write(
            f"@{fn.name}: {len(fn)} statement(s), "
            f"{len(fn.variables)} variable(s), "
            f"{len(fn.allocation_sites)} allocation site(s)\n"
        )
    return EXIT_OK


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT PARSER
# ═══════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="andersen-pta",
        description="Inclusion-based (Andersen-style) points-to analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s analyze program.pta
              %(prog)s analyze program.pta --function main --stats
              %(prog)s analyze program.pta --max-iterations 10000
              %(prog)s check program.pta
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "input",
        help="IR file (use '-' for stdin)",
    )
    common.add_argument(
        "-f", "--function",
        action="append",
        metavar="NAME",
        help="Only process this function (repeatable)",
    )
    common.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    common.add_argument(
        "--json-errors",
        action="store_true",
        help="Report errors on stderr as JSON objects",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # ── analyze ──────────────────────────────────────────────────────────

    p_analyze = subparsers.add_parser(
        "analyze",
        parents=[common],
        help="Compute points-to sets and print them as JSON",
    )
    p_analyze.add_argument(
        "--no-optimize",
        action="store_true",
        help="Skip SCC-based cycle collapsing (results are unchanged)",
    )
    p_analyze.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        metavar="N",
        help="Give up on a function after N solver iterations",
    )
    p_analyze.add_argument(
        "--stats",
        action="store_true",
        help="Include solver statistics in the output",
    )
    p_analyze.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )
    p_analyze.set_defaults(func=cmd_analyze)

    # ── check ────────────────────────────────────────────────────────────

    p_check = subparsers.add_parser(
        "check",
        parents=[common],
        help="Parse and validate an IR file",
    )
    p_check.set_defaults(func=cmd_check)

    return parser


# ═══════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point.

    Parameters
    ----------
    argv : sequence of str, optional
        Command-line arguments. Defaults to ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130


if __name__ == "__main__":
    sys.exit(main())
