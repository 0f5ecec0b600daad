"""Mantle CLI — layout administration.

Entry point registered as ``mantle`` in ``pyproject.toml``::

    [project.scripts]
    mantle = "mantle.cli:main"
"""

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``mantle`` command."""
    parser = argparse.ArgumentParser(
        prog="mantle",
        description="Mantle — secure layout composition for server-rendered HTML.",
    )
    parser.add_argument("--views-dir", default="views", help="Views root directory")
    parser.add_argument(
        "--layouts-dir",
        default=None,
        help="Layouts directory (default: <views-dir>/layouts)",
    )
    parser.add_argument("--extension", default=".html", help="Template file extension")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command")

    # -- mantle layouts ---------------------------------------------------
    layouts_parser = subparsers.add_parser("layouts", help="Manage layout files")
    layout_commands = layouts_parser.add_subparsers(dest="action")

    layout_commands.add_parser("list", help="List layouts on disk")

    create_parser = layout_commands.add_parser("create", help="Create or replace a layout")
    create_parser.add_argument("name", help="Layout name")
    create_parser.add_argument(
        "--from-file",
        default=None,
        help="Read layout content from this file (default: built-in layout)",
    )

    delete_parser = layout_commands.add_parser("delete", help="Delete a layout")
    delete_parser.add_argument("name", help="Layout name")

    layout_commands.add_parser("default", help="Print the built-in default layout")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "layouts":
        if args.action is None:
            layouts_parser.print_help()
            sys.exit(0)

        from mantle.cli._layouts import run_layouts

        run_layouts(args)
