#!/usr/bin/env python3
"""
Playground command line.

Usage:
    clusterplay                       # one pd, one tikv, one tidb, latest installed
    clusterplay v4.0.0 --db 2 --kv 3  # pinned version, bigger cluster
    clusterplay --config play.yaml    # defaults from a YAML file
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .config.loader import load_config
from .core.orchestrator import ClusterOrchestrator
from .utils.exceptions import PlaygroundError
from .utils.logging import logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clusterplay",
        description="Bootstrap a TiDB cluster in your local host"
    )
    parser.add_argument(
        "version",
        nargs="?",
        default=None,
        help="Component version to run (default: whatever is installed, or latest)"
    )
    parser.add_argument("--db", type=int, default=None, help="TiDB instance number (default: 1)")
    parser.add_argument("--kv", type=int, default=None, help="TiKV instance number (default: 1)")
    parser.add_argument("--pd", type=int, default=None, help="PD instance number (default: 1)")
    parser.add_argument("--host", default=None, help="Playground cluster host (default: 127.0.0.1)")
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with playground settings; flags take precedence"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def execute(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run the playground, returning the exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, overrides={
            "version": args.version,
            "host": args.host,
            "pd": args.pd,
            "tikv": args.kv,
            "tidb": args.db,
        })
        level = "DEBUG" if args.verbose else config.logging.level
        log_file = Path(config.logging.file) if config.logging.file else None
        setup_logging(level=level, log_file=log_file, console=config.logging.console)

        orchestrator = ClusterOrchestrator(config)
        asyncio.run(orchestrator.run())
    except PlaygroundError as e:
        if not e.before_launch:
            logger.debug("Some playground processes may still be running")
        print("Playground bootstrapping failed:", e)
        return 1
    except KeyboardInterrupt:
        print("\nPlayground bootstrapping interrupted")
        return 1

    return 0


def main():
    """Main entry point."""
    sys.exit(execute())


if __name__ == "__main__":
    main()
