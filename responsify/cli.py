"""Command-line entry point for responsify."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from . import __version__
from .config import load_config_file
from .engine import responsify
from .errors import TransformError
from .models import TransformResult
from .presets import get_available_presets
from .validator import validate_config

logger = logging.getLogger("responsify.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="responsify",
        description=(
            "Transform HTML img tags to responsive picture elements or srcset attributes."
        ),
        epilog=(
            "Examples:\n"
            "  responsify --input index.html --config config.json --output result.html\n"
            "  responsify --config config.json < input.html > output.html\n"
            "  cat page.html | responsify --preset standard --format json"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        help="Input HTML file (reads stdin when omitted)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file (writes stdout when omitted)",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-c",
        "--config",
        type=Path,
        help="JSON configuration file with transformation rules",
    )
    source.add_argument(
        "--preset",
        choices=get_available_presets(),
        help="Use a built-in preset instead of a configuration file",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=("html", "json"),
        default="html",
        help="Output format (default: html)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser.parse_args(argv)


def read_input(path: Optional[Path]) -> str:
    if path is None:
        return sys.stdin.read()
    return path.expanduser().read_text(encoding="utf-8")


def write_output(content: str, path: Optional[Path]) -> None:
    if path is None:
        sys.stdout.write(content)
        sys.stdout.flush()
        return
    path.expanduser().write_text(content, encoding="utf-8")


def format_output(result: TransformResult, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(result.to_dict(), indent=2)
    return result.html if result.success else ""


def _load_config(args: argparse.Namespace) -> Dict[str, Any]:
    if args.preset:
        return {"preset": args.preset}
    return load_config_file(args.config)


def run(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except TransformError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    validation = validate_config(config)
    if not validation.valid:
        print("Error: Invalid configuration", file=sys.stderr)
        for error in validation.errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    try:
        html = read_input(args.input)
    except OSError as exc:
        print(f"Error: Could not read input: {exc}", file=sys.stderr)
        return 1

    logger.debug("Processing %d characters of HTML", len(html))
    result = responsify(html, config)
    if not result.success:
        print(f"Error: Transformation failed - {result.error}", file=sys.stderr)
        return 1

    stats = result.stats
    logger.info(
        "Transformed %d/%d image(s) with %d rule(s) in %.2fms",
        stats.images_transformed,
        stats.images_found,
        stats.rules_applied,
        stats.processing_time_ms,
    )

    try:
        write_output(format_output(result, args.format), args.output)
    except OSError as exc:
        print(f"Error: Could not write output: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
