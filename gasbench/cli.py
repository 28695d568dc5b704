#!/usr/bin/env python3
"""Command line for differential gas benchmarks."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .baseline import BaselineStore
from .config import BenchConfig
from .errors import BenchError, GasMismatch
from .harness import run_benchmark
from .runtime.program import BUILTIN_ARTIFACT, resolve_artifact

logger = logging.getLogger("gasbench")


def _add_run_parser(sub: argparse._SubParsersAction) -> None:
    run = sub.add_parser("run", help="Run one candidate/baseline comparison")
    run.add_argument(
        "--config", type=str, help="Load settings from a JSON config before applying flags"
    )
    run.add_argument(
        "--entry-points",
        nargs=2,
        metavar=("CANDIDATE", "BASELINE"),
        help="Entry points to compare (default: fuzz_map_heavy fuzz_map_heavy_old)",
    )
    run.add_argument(
        "--artifact",
        type=str,
        help=f"Candidate program artifact: '{BUILTIN_ARTIFACT}' or a manifest path",
    )
    run.add_argument(
        "--baseline-artifact",
        type=str,
        help="Baseline program artifact (default: same as --artifact)",
    )
    run.add_argument("--trials", type=int, help="Number of trials (default 24)")
    run.add_argument("--seed", type=int, help="Generator seed (default 0)")
    run.add_argument(
        "--actions",
        type=int,
        help="Actions per trial; omit to decode a random-length buffer per trial",
    )
    run.add_argument("--buffer-size", type=int, help="Generator buffer size in bytes")
    run.add_argument("--gas-limit", type=int, help="Gas ceiling per submission")
    run.add_argument(
        "--expect",
        nargs=2,
        type=int,
        metavar=("CANDIDATE", "BASELINE"),
        help="Fail unless totals match exactly",
    )
    run.add_argument(
        "--tolerance",
        type=float,
        help="Fail when candidate differs from baseline by more than this fraction",
    )
    run.add_argument("--baseline-file", type=str, help="JSON file of pinned totals")
    run.add_argument(
        "--update-baseline",
        action="store_true",
        help="Record the totals into --baseline-file instead of checking them",
    )
    run.add_argument("--trace-file", type=str, help="Write a Perfetto trace of the trials")
    run.add_argument("--json", action="store_true", help="Print a JSON report")


def _add_list_parser(sub: argparse._SubParsersAction) -> None:
    ls = sub.add_parser("entry-points", help="List the entry points of an artifact")
    ls.add_argument("--artifact", type=str, default=BUILTIN_ARTIFACT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gasbench", description="Differential gas benchmarks for keyed collections"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug"
    )
    sub = parser.add_subparsers(dest="command", required=True)
    _add_run_parser(sub)
    _add_list_parser(sub)
    return parser


def config_from_args(args: argparse.Namespace) -> BenchConfig:
    config = BenchConfig.load(args.config) if args.config else BenchConfig()
    config = config.with_env()
    changes = {}
    if args.entry_points:
        changes["candidate_entry"], changes["baseline_entry"] = args.entry_points
    if args.artifact:
        changes["candidate_artifact"] = args.artifact
    if args.baseline_artifact:
        changes["baseline_artifact"] = args.baseline_artifact
    for flag, name in (
        ("trials", "trials"),
        ("seed", "seed"),
        ("actions", "actions_per_trial"),
        ("buffer_size", "buffer_size"),
        ("gas_limit", "gas_limit"),
        ("tolerance", "tolerance"),
        ("trace_file", "trace_file"),
    ):
        value = getattr(args, flag)
        if value is not None:
            changes[name] = value
    if args.expect:
        changes["expected"] = tuple(args.expect)
    return config.replace(**changes) if changes else config


def _cmd_run(args: argparse.Namespace) -> int:
    if args.update_baseline and not args.baseline_file:
        raise BenchError("--update-baseline needs --baseline-file")
    config = config_from_args(args)
    totals = run_benchmark(config)

    if args.baseline_file:
        store = BaselineStore(args.baseline_file)
        key = config.scenario_key()
        if args.update_baseline:
            store.record(key, totals)
        else:
            store.check(key, totals)

    if args.json:
        report = {"scenario": config.scenario_key(), **totals.to_dict()}
        json.dump(report, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print(f"candidate {config.candidate_entry}: {totals.candidate}")
        print(f"baseline  {config.baseline_entry}: {totals.baseline}")
        print(f"delta {totals.delta:+d} (ratio {totals.ratio:.4f})")
    return 0


def _cmd_entry_points(args: argparse.Namespace) -> int:
    artifact = resolve_artifact(args.artifact)
    for name in artifact.names():
        spec = artifact.entry_points[name]
        print(f"{name}\t{spec.kind}\t{spec.shape}\t{spec.engine}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    handlers = {"run": _cmd_run, "entry-points": _cmd_entry_points}
    try:
        return handlers[args.command](args)
    except GasMismatch as exc:
        logger.error("%s", exc)
        return 1
    except BenchError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
