"""Shared utilities for CLI commands."""

from __future__ import annotations

import json
import sys
import traceback
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kicad_blocks.blocks.registry import BlockRegistry
from kicad_blocks.compose.composer import Composition, load_composition, make_registry
from kicad_blocks.config import Config
from kicad_blocks.exceptions import KiCadBlocksError

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "format_error",
    "print_error",
    "get_console",
    "print_json",
    "load_inputs",
]

def get_console(quiet: bool = False) -> Console:
    """Console for normal output; resolves ``sys.stdout`` when printing."""
    from rich.console import Console

    return Console(quiet=quiet, highlight=False)


def print_error(e: Exception, verbose: bool = False) -> None:
    """Print an exception to stderr; with ``verbose`` include the traceback."""
    if verbose:
        print(traceback.format_exc(), file=sys.stderr)
        return
    print(format_error(e), file=sys.stderr)


def format_error(e: Exception) -> str:
    """Format an exception for user-friendly display (plain text)."""
    if isinstance(e, KiCadBlocksError):
        return f"Error: {e}"
    if isinstance(e, FileNotFoundError):
        return f"Error: {e}"
    return f"Error: {type(e).__name__}: {e}"


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def load_inputs(composition_path: str, config: Config) -> tuple[Composition, BlockRegistry]:
    """Load a composition file and the registry it should use."""
    path = Path(composition_path)
    composition = load_composition(path)
    registry = make_registry(composition, config, base_dir=path.parent)
    return composition, registry
