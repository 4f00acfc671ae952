"""Schematic document models and geometry transforms."""

from .schematic import DEFAULT_VERSION, Schematic, TitleBlock
from .symbol import SymbolInstance
from .transform import PLACEABLE_TAGS, derive_uuid, rekey_uuids, translate_element
from .wire import Wire

__all__ = [
    "Schematic",
    "TitleBlock",
    "DEFAULT_VERSION",
    "SymbolInstance",
    "Wire",
    "PLACEABLE_TAGS",
    "translate_element",
    "rekey_uuids",
    "derive_uuid",
]
