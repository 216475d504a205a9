# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# __main__.py
# -----------------------------------------------------------------------------
# Purpose:
#   Command line entry point: run one configured network and print its KPIs.
#
# Usage:
#   python -m qnet config/tandem.yaml --max-time 1e5 --seed 3
# -----------------------------------------------------------------------------

from __future__ import annotations
import argparse, json, logging, sys
from typing import List, Optional

from .config import DEFAULT_CONFIG, apply_overrides, load_config
from .errors import QnetError
from .simulation import run_network

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qnet",
        description="Discrete-event simulation of an overflow/move queueing network",
    )
    parser.add_argument("config", nargs="?", default=DEFAULT_CONFIG, help="YAML config file")
    parser.add_argument("--max-time", type=float, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--lam", type=float, default=None, help="override external arrival rate")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    overrides = {"sim": {}}
    if args.max_time is not None:
        overrides["sim"]["max_time"] = args.max_time
    if args.seed is not None:
        overrides["sim"]["seed"] = args.seed
    if args.verbose > 1:
        overrides["sim"]["debug"] = True

    try:
        cfg = apply_overrides(load_config(args.config), overrides)
        results = run_network(cfg, lam=args.lam)
    except QnetError as exc:
        print(f"qnet: run failed: {exc}", file=sys.stderr)
        return 2
    print(json.dumps(results, indent=2))
    return 0

if __name__ == "__main__":
    sys.exit(main())
