"""``kicad-blocks summary``: describe one block."""

from __future__ import annotations

import argparse

from rich.markup import escape

from kicad_blocks.blocks.registry import HttpBlockRegistry, LocalBlockRegistry
from kicad_blocks.blocks.summary import format_block_summary, gather_block_summary
from kicad_blocks.config import Config
from kicad_blocks.exceptions import ConfigurationError

from .utils import get_console, print_json


def run(args: argparse.Namespace, config: Config) -> int:
    if args.root:
        registry = LocalBlockRegistry(args.root)
    elif args.url:
        registry = HttpBlockRegistry(args.url, timeout=config.registry.timeout)
    elif config.registry.root:
        registry = LocalBlockRegistry(config.registry.root)
    elif config.registry.url:
        registry = HttpBlockRegistry(config.registry.url, timeout=config.registry.timeout)
    else:
        raise ConfigurationError(
            "No block registry configured",
            suggestions=["Pass --root or --url", "Or set [registry] root / url in .kicad-blocks.toml"],
        )

    definition = registry.get_definition(args.slug)
    if args.format == "json":
        print_json(gather_block_summary(definition))
    else:
        get_console(quiet=args.quiet).print(escape(format_block_summary(definition)), soft_wrap=True)
    return 0
