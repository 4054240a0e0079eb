"""Helper script to run the market lookup against the default inputs."""
from __future__ import annotations

import argparse

from marketlookup.cli import main


def _parse_args(argv: list[str] | None = None) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(description="Run the market lookup pipeline")
    parser.add_argument(
        "--matched-only",
        action="store_true",
        help="Report only reference items with at least one accepted market match.",
    )
    return parser.parse_known_args(argv)


if __name__ == "__main__":  # pragma: no cover
    args, remaining = _parse_args()
    forward_args: list[str] = list(remaining)
    if args.matched_only:
        forward_args.extend(["--status", "matched"])
    raise SystemExit(main(forward_args))
