"""Block definitions, registries and summaries."""

from .definition import (
    CONTROLLER_CATEGORY,
    EDGE_DIRECTIONS,
    BlockCategory,
    BlockComponent,
    BlockDefinition,
    BlockEdges,
    BusInterface,
    BusTap,
    EdgeConnection,
    GpioClaims,
    I2cInterface,
    PlacedBlock,
    PowerInterface,
    PowerProvides,
    PowerRequires,
    SpiInterface,
)
from .registry import (
    BlockRegistry,
    HttpBlockRegistry,
    InMemoryBlockRegistry,
    LocalBlockRegistry,
    schematic_filename,
)
from .summary import format_block_summary, gather_block_summary

__all__ = [
    "BlockCategory",
    "CONTROLLER_CATEGORY",
    "EDGE_DIRECTIONS",
    "BlockComponent",
    "BlockDefinition",
    "BlockEdges",
    "BusInterface",
    "BusTap",
    "EdgeConnection",
    "GpioClaims",
    "I2cInterface",
    "PlacedBlock",
    "PowerInterface",
    "PowerProvides",
    "PowerRequires",
    "SpiInterface",
    "BlockRegistry",
    "HttpBlockRegistry",
    "InMemoryBlockRegistry",
    "LocalBlockRegistry",
    "schematic_filename",
    "format_block_summary",
    "gather_block_summary",
]
