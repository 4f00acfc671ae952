"""
Command-line interface for kicad-blocks.

Provides the `kicad-blocks` (or `kcb`) command:

    kicad-blocks check <composition>     - Compatibility report (DRC)
    kicad-blocks place <composition>     - Auto-place blocks on the grid
    kicad-blocks merge <composition>     - Merge block schematics into one board
    kicad-blocks summary <slug>          - Describe one block
    kicad-blocks config                  - Show or initialise configuration

Examples:
    kcb check board.yaml
    kcb place board.yaml --format json
    kcb merge board.yaml -o weather-station.kicad_sch
    kcb -v merge board.yaml --fail-fast
    kcb summary sensor-bme280 --root ./blocks
    kcb config --init
"""

import argparse
import sys
from typing import List, Optional

from kicad_blocks import __version__
from kicad_blocks.config import Config, ConfigError
from kicad_blocks.exceptions import KiCadBlocksError
from kicad_blocks.logging import enable_verbose

from . import check_cmd, config_cmd, merge_cmd, place_cmd, summary_cmd
from .utils import print_error

__all__ = ["main", "build_parser"]

COMMANDS = {
    "check": check_cmd.run,
    "place": place_cmd.run,
    "merge": merge_cmd.run,
    "summary": summary_cmd.run,
    "config": config_cmd.run,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kicad-blocks",
        description="Compose KiCad boards from reusable circuit blocks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"kicad-blocks {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log progress (-vv for debug)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress text output")
    parser.add_argument("--config", dest="config_path", help="Use this config file only")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check
    check = subparsers.add_parser("check", help="Check block compatibility")
    check.add_argument("composition", help="Composition file (.yaml or .json)")
    check.add_argument("--format", choices=["text", "json"])
    check.add_argument("--detailed", action="store_true", help="Include issue codes in JSON output")

    # place
    place = subparsers.add_parser("place", help="Auto-place blocks on the grid")
    place.add_argument("composition", help="Composition file (.yaml or .json)")
    place.add_argument("--format", choices=["text", "json"])
    place.add_argument("--columns", type=int, help="Scan window width in grid units")
    place.add_argument("--rows", type=int, help="Scan window height in grid units")

    # merge
    merge = subparsers.add_parser("merge", help="Merge block schematics into one board")
    merge.add_argument("composition", help="Composition file (.yaml or .json)")
    merge.add_argument("-o", "--output", help="Output .kicad_sch (default: <project>.kicad_sch)")
    merge.add_argument("--format", choices=["text", "json"])
    merge.add_argument("--fail-fast", action="store_true", help="Write nothing if any block fails")
    merge.add_argument("--force", action="store_true", help="Merge even if blocks are incompatible")

    # summary
    summary = subparsers.add_parser("summary", help="Describe one block")
    summary.add_argument("slug", help="Block slug")
    summary.add_argument("--root", help="Local block library directory")
    summary.add_argument("--url", help="Block API base URL")
    summary.add_argument("--format", choices=["text", "json"])

    # config
    config = subparsers.add_parser("config", help="Show or initialise configuration")
    action = config.add_mutually_exclusive_group()
    action.add_argument("--show", action="store_true", help="Show effective configuration")
    action.add_argument("--init", action="store_true", help="Create a template config file")
    action.add_argument("--paths", action="store_true", help="Show config file paths")
    config.add_argument("--user", action="store_true", help="With --init, write the user config")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the kicad-blocks CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        config = Config.from_file(args.config_path) if args.config_path else Config.load()
    except ConfigError as e:
        print_error(e)
        return 1

    if getattr(args, "format", None) is None and hasattr(args, "format"):
        args.format = config.defaults.format
    args.quiet = args.quiet or config.defaults.quiet

    verbosity = args.verbose or (1 if config.defaults.verbose else 0)
    if verbosity:
        enable_verbose("DEBUG" if verbosity > 1 else "INFO")

    try:
        return COMMANDS[args.command](args, config)
    except (KiCadBlocksError, FileNotFoundError, ValueError) as e:
        print_error(e, verbose=verbosity > 1)
        return 1


if __name__ == "__main__":
    sys.exit(main())
