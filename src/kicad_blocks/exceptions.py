"""
Exception hierarchy for kicad-blocks.

Every exception carries the same three pieces of information:
- a short message
- context (slug, file, grid cell, ...)
- suggestions for resolving the problem

Design-rule problems (address conflicts, power budget, missing controller)
are *not* exceptions. They are returned as part of a
:class:`~kicad_blocks.compose.compatibility.CompatibilityReport`. Exceptions
are reserved for I/O, parsing and caller mistakes.

Example::

    from kicad_blocks.exceptions import RegistryFetchError

    raise RegistryFetchError(
        "Schematic download failed",
        context={"slug": "sensor-bme280", "status": 503},
        suggestions=["Retry once the block store is reachable"],
        transient=True,
    )
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class KiCadBlocksError(Exception):
    """
    Base exception for all kicad-blocks errors.

    Attributes:
        context: Dictionary of contextual information (slug, file, cell, ...)
        suggestions: List of actionable suggestions for fixing the error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]

        if self.context:
            parts.append("\n\nContext:")
            for key, value in self.context.items():
                parts.append(f"\n  {key}: {value}")

        if self.suggestions:
            parts.append("\n\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"\n  - {suggestion}")

        return "".join(parts)

    def __str__(self) -> str:
        return self._format_message()


class ParseError(KiCadBlocksError):
    """
    S-expression text could not be parsed.

    ``position`` is the character offset where the parser gave up.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        position: Optional[int] = None,
        file_path: Optional[Union[str, Path]] = None,
    ):
        ctx = context or {}
        if file_path and "file" not in ctx:
            ctx["file"] = str(file_path)
        if position is not None and "position" not in ctx:
            ctx["position"] = position
        self.position = position
        super().__init__(message, ctx, suggestions)


class FileFormatError(KiCadBlocksError):
    """A document parsed, but is not the expected KiCad file type."""

    pass


class ValidationError(KiCadBlocksError):
    """
    Input data failed validation.

    Collects every problem instead of stopping at the first one.

    Attributes:
        errors: List of individual validation error messages
    """

    def __init__(
        self,
        errors: List[str],
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.errors = errors
        message = f"Validation failed with {len(errors)} error(s):\n"
        message += "\n".join(f"  {i + 1}. {e}" for i, e in enumerate(errors))
        super().__init__(message, context, suggestions)


class BlockNotFoundError(KiCadBlocksError):
    """The registry has no block with the requested slug."""

    pass


class RegistryFetchError(KiCadBlocksError):
    """
    Fetching a block definition or schematic from a registry failed.

    Attributes:
        transient: True when retrying may succeed (timeouts, 5xx responses)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        transient: bool = False,
    ):
        self.transient = transient
        super().__init__(message, context, suggestions)


class PlacementError(KiCadBlocksError):
    """A placement list is unusable (overlap, unknown block, bad rotation)."""

    pass


class ConfigurationError(KiCadBlocksError):
    """Configuration is invalid, missing, or incompatible."""

    pass


class CompositionCancelledError(KiCadBlocksError):
    """The caller cancelled a composition while schematics were being fetched."""

    pass


__all__ = [
    "KiCadBlocksError",
    "ParseError",
    "FileFormatError",
    "ValidationError",
    "BlockNotFoundError",
    "RegistryFetchError",
    "PlacementError",
    "ConfigurationError",
    "CompositionCancelledError",
]
