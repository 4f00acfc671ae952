"""
``kicad-blocks config``: view or initialise configuration.

Usage:
    kicad-blocks config --show      Show effective configuration with sources
    kicad-blocks config --init      Create template config file
    kicad-blocks config --paths     Show config file paths
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from kicad_blocks.config import (
    CONFIG_FILENAMES,
    SECTIONS,
    USER_CONFIG_PATH,
    Config,
    generate_template,
    get_config_paths,
)


def run(args: argparse.Namespace, config: Config) -> int:
    if args.init:
        return _init_config(args.user)
    if args.paths:
        return _show_paths()
    return _show_config(config)


def _show_config(config: Config) -> int:
    """Show effective configuration with sources."""
    print("# Effective kicad-blocks configuration")
    values = config.to_dict()
    for section in SECTIONS:
        print()
        print(f"[{section}]")
        for key, value in values[section].items():
            _print_value(key, value, config.get_source(f"{section}.{key}"))
    return 0


def _print_value(key: str, value, source: str) -> None:
    """Print a config value with its source."""
    if isinstance(value, str):
        formatted = f'"{value}"'
    elif isinstance(value, bool):
        formatted = "true" if value else "false"
    elif value is None:
        formatted = "# not set"
    elif isinstance(value, (list, tuple)):
        formatted = "[" + ", ".join(f'"{v}"' for v in value) + "]"
    else:
        formatted = str(value)

    source_display = Path(source).name if source != "default" else source
    print(f"{key} = {formatted}  # from: {source_display}")


def _show_paths() -> int:
    paths = get_config_paths()

    print(f"User config: {USER_CONFIG_PATH}")
    print("  Status: exists" if paths["user"] else "  Status: not found")
    print()
    print(f"Project config search: {', '.join(CONFIG_FILENAMES)}")
    print(f"  Found: {paths['project']}" if paths["project"] else "  Status: not found")
    return 0


def _init_config(user: bool = False) -> int:
    """Create a template config file."""
    if user:
        target = USER_CONFIG_PATH
        target.parent.mkdir(parents=True, exist_ok=True)
    else:
        target = Path.cwd() / CONFIG_FILENAMES[0]

    if target.exists():
        print(f"Error: Config file already exists: {target}", file=sys.stderr)
        print("Remove it first or edit manually.", file=sys.stderr)
        return 1

    try:
        target.write_text(generate_template(), encoding="utf-8")
    except OSError as e:
        print(f"Error writing config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config template: {target}")
    return 0
