#!/usr/bin/env python3
"""
AltFinder Pins - Console Application

Manage pinned files without the GUI.

Usage:
    altfinder-pins pin ~/proj ~/proj/readme.md
    altfinder-pins unpin ~/proj ~/proj/readme.md
    altfinder-pins list ~/proj
    altfinder-pins all
    altfinder-pins reorder ~/proj 2 0
    altfinder-pins ls ~/proj --hidden
"""
import argparse
import asyncio
import os
import sys
from typing import List, Optional

from altfinder.core.bootstrap import ApplicationBuilder
from altfinder.pins.bundle import PinsBundle
from altfinder.pins.service import PinService

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="altfinder-pins",
        description="AltFinder pinned files - console tool",
    )
    parser.add_argument("--config", default=os.path.join(os.path.expanduser("~"), ".config", "altfinder", "config.json"),
                        help="Path to config.json")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    pin_parser = subparsers.add_parser("pin", help="Pin a file in a directory")
    pin_parser.add_argument("directory")
    pin_parser.add_argument("path")

    unpin_parser = subparsers.add_parser("unpin", help="Unpin a file")
    unpin_parser.add_argument("directory")
    unpin_parser.add_argument("path")

    list_parser = subparsers.add_parser("list", help="List a directory's pins")
    list_parser.add_argument("directory")

    subparsers.add_parser("all", help="List pinned files across all directories")

    reorder_parser = subparsers.add_parser("reorder", help="Move a pin to a new position")
    reorder_parser.add_argument("directory")
    reorder_parser.add_argument("from_index", type=int)
    reorder_parser.add_argument("to_index", type=int)

    ls_parser = subparsers.add_parser("ls", help="List a directory, pinned entries first")
    ls_parser.add_argument("directory")
    ls_parser.add_argument("--hidden", action="store_true", help="Show dot-files")

    return parser


async def run_command(args: argparse.Namespace, pins: PinService) -> int:
    """Execute one parsed command against a started PinService."""
    if args.command == "pin":
        ok = await pins.add_pinned(os.path.abspath(args.directory), os.path.abspath(args.path))
        print(f"✓ Pinned {args.path}" if ok else f"✗ Could not pin {args.path}")
        return EXIT_OK if ok else EXIT_FAILED

    if args.command == "unpin":
        ok = await pins.remove_pinned(os.path.abspath(args.directory), os.path.abspath(args.path))
        print(f"✓ Unpinned {args.path}" if ok else f"✗ Could not unpin {args.path}")
        return EXIT_OK if ok else EXIT_FAILED

    if args.command == "list":
        paths = await pins.get_pinned(os.path.abspath(args.directory))
        for i, path in enumerate(paths):
            print(f"  {i}. {path}")
        if not paths:
            print("No pinned files")
        return EXIT_OK

    if args.command == "all":
        pinned = await pins.get_all_pinned()
        for item in pinned:
            print(f"  {item.file.name}")
            print(f"     {item.source_dir}")
        print(f"✓ {len(pinned)} pinned files")
        return EXIT_OK

    if args.command == "reorder":
        order = await pins.reorder(os.path.abspath(args.directory), args.from_index, args.to_index)
        for i, path in enumerate(order):
            print(f"  {i}. {os.path.basename(path)}")
        return EXIT_OK

    if args.command == "ls":
        try:
            listing = await pins.list_directory(os.path.abspath(args.directory), show_hidden=args.hidden)
        except OSError as e:
            print(f"✗ {e}")
            return EXIT_FAILED
        for info in listing.pinned:
            print(f"* {info.name}{'/' if info.is_directory else ''}")
        for info in listing.unpinned:
            print(f"  {info.name}{'/' if info.is_directory else ''}")
        return EXIT_OK

    return EXIT_USAGE


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for console application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    builder = (ApplicationBuilder("AltFinder Pins", args.config)
               .add_bundle(PinsBundle())
               .with_logging(debug=args.debug or None, quiet=not args.debug))
    locator = await builder.build()

    pins = locator.get_system(PinService)
    if not pins.is_ready:
        print("✗ Pin service failed to start")
        await locator.stop_all()
        return EXIT_FAILED

    pins.on_error.connect(lambda directory, message: print(f"✗ {message}"))
    try:
        return await run_command(args, pins)
    finally:
        await locator.stop_all()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
