"""``mantle layouts`` — list, create and delete layout files.

Builds a ``LayoutManager`` from the command-line directories and runs
one administrative operation on it. Exits with code 1 on failure.
"""

import argparse
import sys
from pathlib import Path

import anyio

from mantle.config import LayoutConfig
from mantle.errors import ConfigurationError, MantleError
from mantle.manager import LayoutManager


def _build_manager(args: argparse.Namespace) -> LayoutManager:
    layouts_dir = args.layouts_dir or str(Path(args.views_dir) / "layouts")
    config = LayoutConfig(
        views_dir=args.views_dir,
        layouts_dir=layouts_dir,
        extension=args.extension,
    )
    return LayoutManager(config)


async def _run(manager: LayoutManager, args: argparse.Namespace) -> None:
    if args.action == "list":
        names = await manager.list_layouts()
        if not names:
            print("No layouts found.")
        for name in names:
            print(name)
    elif args.action == "create":
        content = None
        if args.from_file:
            content = await anyio.Path(args.from_file).read_text(encoding="utf-8")
        await manager.create_layout(args.name, content)
        print(f"Created layout {args.name}")
    elif args.action == "delete":
        await manager.delete_layout(args.name)
        print(f"Deleted layout {args.name}")
    elif args.action == "default":
        print(manager.default_layout_content(), end="")


def run_layouts(args: argparse.Namespace) -> None:
    """Run one ``mantle layouts`` action."""
    try:
        manager = _build_manager(args)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        anyio.run(_run, manager, args)
    except (MantleError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    finally:
        manager.destroy()
