"""Telegraphy CLI — inspect the features a router serves.

Entry point registered as ``telegraphy`` in ``pyproject.toml``::

    [project.scripts]
    telegraphy = "telegraphy.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``telegraphy`` command."""
    parser = argparse.ArgumentParser(
        prog="telegraphy",
        description="Telegraphy — typed feature dispatch over pluggable cables.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- telegraphy features ----------------------------------------------
    features_parser = subparsers.add_parser("features", help="List features and methods served by a router")
    features_parser.add_argument(
        "router",
        help="Import string (e.g. myapp:router)",
    )
    features_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the feature catalog with JSON schemas",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "features":
        from telegraphy.cli._features import run_features

        run_features(args)
