"""
Pydantic models for block definitions (``block.json`` / ``block.yaml``).

A block definition describes everything the composer needs to know about a
reusable circuit module:
- identity (slug, name, category)
- grid footprint in 12.7mm units
- bus interface (taps, power rails, I2C/SPI/GPIO usage)
- edge connections on each compass side
- mounted components

Keys are camelCase in the JSON files and snake_case in Python; both spellings
are accepted when constructing models.

Definitions are assumed to have passed schema validation upstream; these
models only coerce types and fill defaults.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..exceptions import ValidationError

__all__ = [
    "BlockCategory",
    "CONTROLLER_CATEGORY",
    "BusTap",
    "PowerProvides",
    "PowerRequires",
    "PowerInterface",
    "I2cInterface",
    "SpiInterface",
    "GpioClaims",
    "BusInterface",
    "EdgeConnection",
    "BlockEdges",
    "BlockComponent",
    "BlockDefinition",
    "PlacedBlock",
    "EDGE_DIRECTIONS",
    "GRID_UNIT_MM",
]


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class BlockCategory(str, Enum):
    """Block categories. ``MCU`` is the controller role."""

    MCU = "mcu"
    POWER = "power"
    SENSOR = "sensor"
    OUTPUT = "output"
    CONNECTOR = "connector"
    UTILITY = "utility"


CONTROLLER_CATEGORY = BlockCategory.MCU

# One grid unit is half an inch, the native KiCad placement quantum
GRID_UNIT_MM = 12.7

EDGE_DIRECTIONS = ("north", "south", "east", "west")


class BusTap(_Model):
    """A named local signal exposed to the shared bus."""

    net: str
    reference: Optional[str] = Field(default=None, description="0R resistor reference, e.g. R1")
    purpose: Optional[str] = None


def _coerce_tap(value: Any) -> Any:
    # Older block files spell the net as "signal"
    if isinstance(value, dict) and "net" not in value and "signal" in value:
        return {**value, "net": value["signal"]}
    return value


class PowerProvides(_Model):
    rail: str
    max_ma: float = Field(ge=0)
    typical_ma: Optional[float] = Field(default=None, ge=0)


class PowerRequires(_Model):
    rail: str
    typical_ma: float = Field(default=0, ge=0)
    max_ma: float = Field(ge=0)


class PowerInterface(_Model):
    provides: List[PowerProvides] = Field(default_factory=list)
    requires: List[PowerRequires] = Field(default_factory=list)


class I2cInterface(_Model):
    addresses: List[int] = Field(default_factory=list)
    address_configurable: bool = False
    provides_pullups: bool = False

    @field_validator("addresses", mode="before")
    @classmethod
    def validate_addresses(cls, value: Any) -> Any:
        # Accept "0x76" strings as well as integers
        if isinstance(value, list):
            return [int(v, 0) if isinstance(v, str) else v for v in value]
        return value


class SpiInterface(_Model):
    cs_pin: Optional[str] = None


class GpioClaims(_Model):
    claims: List[str] = Field(default_factory=list)


class BusInterface(_Model):
    taps: List[BusTap] = Field(default_factory=list)
    power: PowerInterface = Field(default_factory=PowerInterface)
    i2c: Optional[I2cInterface] = None
    spi: Optional[SpiInterface] = None
    gpio: Optional[GpioClaims] = None

    @field_validator("taps", mode="before")
    @classmethod
    def validate_taps(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_tap(v) for v in value]
        return value

    @property
    def i2c_addresses(self) -> List[int]:
        return list(self.i2c.addresses) if self.i2c else []

    @property
    def gpio_claims(self) -> List[str]:
        return list(self.gpio.claims) if self.gpio else []

    @property
    def cs_pin(self) -> Optional[str]:
        return self.spi.cs_pin if self.spi else None


class EdgeConnection(_Model):
    """A bus net exposed on one edge of a block."""

    net: str
    offset_mm: float = Field(ge=0)
    layer: str = "F.Cu"


class BlockEdges(_Model):
    north: List[EdgeConnection] = Field(default_factory=list)
    south: List[EdgeConnection] = Field(default_factory=list)
    east: List[EdgeConnection] = Field(default_factory=list)
    west: List[EdgeConnection] = Field(default_factory=list)

    def side(self, direction: str) -> List[EdgeConnection]:
        if direction not in EDGE_DIRECTIONS:
            raise ValueError(f"Unknown edge direction: {direction}")
        return list(getattr(self, direction))

    def find(self, direction: str, net: str) -> Optional[EdgeConnection]:
        """First connection on ``direction`` carrying exactly ``net``."""
        for conn in self.side(direction):
            if conn.net == net:
                return conn
        return None


class BlockComponent(_Model):
    reference: str
    value: str
    footprint: str
    manufacturer: Optional[str] = None
    mpn: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


class BlockDefinition(_Model):
    """A reusable, pre-validated circuit block."""

    slug: str
    name: str
    category: BlockCategory
    version: str = "1.0.0"
    description: str = ""
    grid_size: Tuple[int, int]
    bus: BusInterface = Field(default_factory=BusInterface)
    edges: BlockEdges = Field(default_factory=BlockEdges)
    components: List[BlockComponent] = Field(default_factory=list)

    @field_validator("grid_size")
    @classmethod
    def validate_grid_size(cls, value: Tuple[int, int]) -> Tuple[int, int]:
        if value[0] < 1 or value[1] < 1:
            raise ValueError("grid size must be at least 1x1")
        return value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BlockDefinition:
        """
        Build from a parsed ``block.json`` / ``block.yaml`` mapping.

        Raises:
            ValidationError: If the mapping is not a valid block definition
        """
        data = dict(data)
        # Database rows carry widthUnits/heightUnits instead of gridSize
        if "gridSize" not in data and "grid_size" not in data:
            if "widthUnits" in data and "heightUnits" in data:
                data["gridSize"] = (data["widthUnits"], data["heightUnits"])
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ValidationError(errors, context={"block": data.get("slug", "<unknown>")}) from e

    @property
    def width(self) -> int:
        return self.grid_size[0]

    @property
    def height(self) -> int:
        return self.grid_size[1]

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def size_mm(self) -> Tuple[float, float]:
        return (self.width * GRID_UNIT_MM, self.height * GRID_UNIT_MM)

    @property
    def is_controller(self) -> bool:
        return self.category == CONTROLLER_CATEGORY

    @property
    def taps(self) -> List[BusTap]:
        return list(self.bus.taps)

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"


class PlacedBlock(_Model):
    """A block placed on the composition grid."""

    slug: str
    grid_x: int = Field(ge=0)
    grid_y: int = Field(ge=0)
    rotation: int = 0

    @field_validator("rotation")
    @classmethod
    def validate_rotation(cls, value: int) -> int:
        if value not in (0, 90, 180, 270):
            raise ValueError("rotation must be 0, 90, 180 or 270")
        return value

    def cells(self, definition: BlockDefinition) -> List[Tuple[int, int]]:
        """Grid cells covered by this placement, row-major."""
        return [
            (self.grid_x + dx, self.grid_y + dy)
            for dy in range(definition.height)
            for dx in range(definition.width)
        ]
