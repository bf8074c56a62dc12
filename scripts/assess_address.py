#!/usr/bin/env python3
"""CLI script to run one fire damage assessment and print it as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Ensure the project source is importable when running the script directly.
_project_root = Path(__file__).resolve().parent.parent
_src = _project_root / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from firedamage.assessment.pipeline import create_pipeline  # noqa: E402
from firedamage.core.config import Settings  # noqa: E402
from firedamage.core.log_setup import configure_logging  # noqa: E402
from firedamage.gis.errors import AssessmentError  # noqa: E402
from firedamage.gis.models import Address, StructuredAddress  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Look up the CAL FIRE DINS damage assessment for an address."
    )
    parser.add_argument("address", nargs="?", help="Full single-line address.")
    parser.add_argument("--street", help="Street address.")
    parser.add_argument("--city", help="City.")
    parser.add_argument("--state", help="State.")
    parser.add_argument("--zip", help="ZIP code.")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print progress to stderr.",
    )
    return parser.parse_args()


def build_address(args: argparse.Namespace) -> Address | None:
    if args.address:
        return args.address
    if any((args.street, args.city, args.state, args.zip)):
        return StructuredAddress(street=args.street, city=args.city, state=args.state, zip=args.zip)
    return None


async def print_progress(progress: int, total: int, message: str | None) -> None:
    print(f"[{progress:3d}/{total}] {message or ''}", file=sys.stderr)


async def main() -> int:
    args = parse_args()
    address = build_address(args)
    if address is None:
        print("An address or at least one of --street/--city/--state/--zip is required.", file=sys.stderr)
        return 2

    settings = Settings()
    configure_logging(settings.log_level)
    pipeline = create_pipeline(settings)
    try:
        assessment = await pipeline.assess(address, progress=None if args.quiet else print_progress)
    except AssessmentError as exc:
        print(f"{exc.kind} ({exc.code}): {exc.message}", file=sys.stderr)
        return 1
    finally:
        await pipeline.close()

    print(json.dumps(assessment.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
