# src/main.py — v1
"""CLI entry point: normalize, validate, compare commands.

Usage:
    fscpulse normalize <candidate.json> --carrier UPS --source-id ... [options]
    fscpulse validate --run <run_dir> [--registry <path>]
    fscpulse compare --baseline <run_dir> --llm <run_dir> --out <report.json>
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from fscpulse.config.settings import ConfigurationError, Settings, load_settings
from fscpulse.logging.logger import setup_logging
from fscpulse.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="fscpulse",
        description=f"fscpulse v{__version__}: fuel surcharge table normalizer",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- normalize ---
    p_normalize = subparsers.add_parser(
        "normalize", help="Normalize a single extraction candidate",
    )
    p_normalize.add_argument("candidate", type=Path, help="Path to candidate JSON")
    p_normalize.add_argument("--carrier", required=True, help="Carrier of the capture")
    p_normalize.add_argument("--source-id", required=True, help="Registry source id")
    p_normalize.add_argument(
        "--captured-at", required=True,
        help="Capture timestamp (e.g. 2026-01-05T10-00-00Z)",
    )
    p_normalize.add_argument("--source-url", required=True, help="Captured page URL")
    p_normalize.add_argument(
        "--content-type", default="text/html",
        help="Content type of the artifact (default: text/html)",
    )
    p_normalize.add_argument(
        "-o", "--output", type=Path, default=Path("."),
        help="Directory for parsed.json and validation_report.json (default: .)",
    )
    p_normalize.set_defaults(func=_cmd_normalize)

    # --- validate ---
    p_validate = subparsers.add_parser(
        "validate", help="Re-normalize and diff every candidate of a run",
    )
    p_validate.add_argument(
        "--run", dest="run_dir", type=Path, required=True,
        help="Run directory to validate",
    )
    p_validate.add_argument(
        "--registry", type=Path, default=None,
        help="Source registry (default: REGISTRY_PATH, then the run manifest)",
    )
    p_validate.set_defaults(func=_cmd_validate)

    # --- compare ---
    p_compare = subparsers.add_parser(
        "compare", help="Compare a baseline run against an LLM run",
    )
    p_compare.add_argument(
        "--baseline", type=Path, required=True, help="Baseline run directory",
    )
    p_compare.add_argument("--llm", type=Path, required=True, help="LLM run directory")
    p_compare.add_argument("--out", type=Path, required=True, help="Output report path")
    p_compare.set_defaults(func=_cmd_compare)

    return parser


def _cmd_normalize(args: argparse.Namespace, settings: Settings) -> int:
    """Normalize one candidate file into a snapshot and a validation report."""
    from fscpulse.core.models import NormalizationContext
    from fscpulse.normalize.snapshot import normalize_candidate
    from fscpulse.storage import layout
    from fscpulse.storage.reader import read_json
    from fscpulse.storage.writer import write_json

    candidate_path: Path = args.candidate
    if not candidate_path.is_file():
        logger.error("File not found: %s", candidate_path)
        return 1

    context = NormalizationContext(
        carrier=args.carrier,
        source_id=args.source_id,
        captured_at=args.captured_at,
        source_url=args.source_url,
        content_type=args.content_type,
    )
    result = normalize_candidate(read_json(candidate_path), context)

    write_json(args.output / layout.PARSED_SNAPSHOT_FILE, result.snapshot)
    write_json(args.output / layout.VALIDATION_REPORT_FILE, result.report)

    report = result.report
    print("\nNormalization complete:")
    print(f"  Candidate valid:  {report.candidate_valid}")
    print(f"  Structural error: {report.structural_error}")
    print(f"  Tables:           {report.table_count}")
    print(f"  Effective date:   {report.effective_date or '-'}")
    print(f"  Output:           {args.output}")
    return 0


def _cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    """Validate a run directory."""
    from fscpulse.config.registry import load_registry
    from fscpulse.pipeline.validate_run import validate_run

    run_dir: Path = args.run_dir
    if not run_dir.is_dir():
        logger.error("Not a directory: %s", run_dir)
        return 1

    registry_path = args.registry or settings.registry_path
    registry = load_registry(registry_path) if registry_path else None

    summary = validate_run(run_dir, registry=registry, out_dir=settings.out_dir)

    print(f"\nValidation of {summary.run_id} complete:")
    print(f"  Candidates:        {summary.candidates}")
    print(f"  Structural errors: {summary.structural_errors}")
    print(f"  Delta records:     {summary.delta_records}")
    print(f"  Skipped:           {summary.skipped}")
    return 0


def _cmd_compare(args: argparse.Namespace, settings: Settings) -> int:
    """Compare two runs and write the report."""
    from fscpulse.compare.engine import compare_runs
    from fscpulse.compare.models import MismatchCategory
    from fscpulse.storage.writer import write_json

    for run_dir in (args.baseline, args.llm):
        if not run_dir.is_dir():
            logger.error("Not a directory: %s", run_dir)
            return 1

    report = compare_runs(args.baseline, args.llm, tolerance=settings.compare_tolerance)
    write_json(args.out, report)

    print("\nComparison complete:")
    for category in MismatchCategory:
        print(f"  {category.value + ':':24s}{report.count(category)}")
    print(f"  Report: {args.out}")
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    cli()
