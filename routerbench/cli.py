# routerbench/cli.py
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from routerbench.core.config import Settings, load_targets, settings
from routerbench.core.exceptions import ServerNotReadyError
from routerbench.services.benchmark_service import run_benchmark
from routerbench.services.report_repository import ReportRepository
from routerbench.services.summary_service import format_summary

logger = logging.getLogger("routerbench")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="routerbench",
        description="Compare real-browser page load and navigation performance of router demo apps.",
    )
    parser.add_argument("--iterations", type=int, default=None, help="Measured trials per app")
    parser.add_argument("--warmup", type=int, default=None, help="Discarded warm-up trials per app")
    parser.add_argument("--results-dir", type=Path, default=None, help="Where reports are written")
    parser.add_argument(
        "--targets-file", type=Path, default=None, help="JSON file replacing the default app table"
    )
    parser.add_argument(
        "--only",
        action="append",
        default=None,
        metavar="NAME",
        help="Measure only the named app. Can be repeated.",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser windows")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    """Applies the command line overrides on top of the environment settings."""
    overrides = {}
    if args.iterations is not None:
        overrides["iterations"] = args.iterations
    if args.warmup is not None:
        overrides["warmup_runs"] = args.warmup
    if args.results_dir is not None:
        overrides["results_dir"] = args.results_dir
    if args.targets_file is not None:
        overrides["targets_file"] = args.targets_file
    if args.headed:
        overrides["headless"] = False
    return base.model_copy(update=overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    config = resolve_settings(args, settings)
    try:
        targets = load_targets(config)
        if args.only:
            targets = [t for t in targets if t.name in args.only]
            if not targets:
                logger.error("No configured app matches %s", ", ".join(args.only))
                return 1

        repository = ReportRepository(config.results_dir)
        report = asyncio.run(run_benchmark(config, targets, repository))
    except ServerNotReadyError as e:
        logger.error("Browser performance test failed: %s", e)
        logger.error("Make sure every app server is running (e.g. `npm run dev`)")
        return 1
    except Exception:
        logger.exception("Browser performance test failed")
        return 1

    print(format_summary(report))
    print(f"\nLatest: {repository.latest_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
