"""Tests for block definition models and summaries."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from kicad_blocks.blocks import (
    BlockCategory,
    BlockDefinition,
    PlacedBlock,
    format_block_summary,
    gather_block_summary,
)
from kicad_blocks.exceptions import ValidationError


class TestBlockDefinition:
    """Tests for BlockDefinition parsing."""

    def test_camel_case_keys(self, controller_block):
        assert controller_block.slug == "mcu-esp32c6"
        assert controller_block.category == BlockCategory.MCU
        assert controller_block.is_controller
        assert controller_block.grid_size == (2, 2)
        assert controller_block.bus.power.provides[0].max_ma == 500
        assert controller_block.edges.east[0].offset_mm == 5

    def test_snake_case_keys(self):
        """Python-side field names are accepted too."""
        block = BlockDefinition(
            slug="led",
            name="LED",
            category="output",
            grid_size=(1, 1),
            bus={"power": {"requires": [{"rail": "3V3", "typical_ma": 2, "max_ma": 20}]}},
        )
        assert block.bus.power.requires[0].typical_ma == 2
        assert not block.is_controller

    def test_geometry(self, controller_block):
        assert controller_block.width == 2
        assert controller_block.height == 2
        assert controller_block.area == 4
        assert controller_block.size_mm == (25.4, 25.4)

    def test_hex_string_addresses(self):
        block = BlockDefinition.from_dict(
            {"slug": "s", "name": "S", "category": "sensor", "gridSize": [1, 1],
             "bus": {"i2c": {"addresses": ["0x76", 119]}}}
        )
        assert block.bus.i2c_addresses == [0x76, 0x77]

    def test_width_height_units(self):
        """Database rows with widthUnits/heightUnits are accepted."""
        block = BlockDefinition.from_dict(
            {"slug": "s", "name": "S", "category": "sensor", "widthUnits": 3, "heightUnits": 1}
        )
        assert block.grid_size == (3, 1)

    def test_tap_signal_alias(self):
        block = BlockDefinition.from_dict(
            {"slug": "s", "name": "S", "category": "sensor", "gridSize": [1, 1],
             "bus": {"taps": [{"signal": "BUS_SDA"}, {"net": "BUS_SCL", "reference": "R2"}]}}
        )
        assert [t.net for t in block.taps] == ["BUS_SDA", "BUS_SCL"]
        assert block.taps[1].reference == "R2"

    def test_bus_defaults(self, block_factory):
        block = block_factory("plain")
        assert block.bus.i2c_addresses == []
        assert block.bus.gpio_claims == []
        assert block.bus.cs_pin is None

    def test_invalid_grid_size(self):
        with pytest.raises(ValidationError, match="at least 1x1"):
            BlockDefinition.from_dict({"slug": "s", "name": "S", "category": "sensor", "gridSize": [0, 1]})

    def test_unknown_category(self):
        with pytest.raises(ValidationError) as exc_info:
            BlockDefinition.from_dict({"slug": "s", "name": "S", "category": "robot", "gridSize": [1, 1]})
        assert exc_info.value.errors[0].startswith("category:")
        assert exc_info.value.context == {"block": "s"}

    def test_frozen(self, sensor_block):
        with pytest.raises(PydanticValidationError):
            sensor_block.slug = "other"

    def test_edges_side_and_find(self, sensor_block):
        assert [e.net for e in sensor_block.edges.side("west")] == ["BUS_SDA"]
        assert sensor_block.edges.find("west", "BUS_SDA").offset_mm == 5
        assert sensor_block.edges.find("west", "BUS_SCL") is None
        with pytest.raises(ValueError, match="Unknown edge direction"):
            sensor_block.edges.side("up")


class TestPlacedBlock:
    """Tests for PlacedBlock."""

    def test_cells_row_major(self, controller_block):
        placed = PlacedBlock(slug="mcu-esp32c6", grid_x=1, grid_y=2)
        assert placed.cells(controller_block) == [(1, 2), (2, 2), (1, 3), (2, 3)]

    def test_camel_case_coordinates(self):
        placed = PlacedBlock.model_validate({"slug": "x", "gridX": 3, "gridY": 4})
        assert (placed.grid_x, placed.grid_y) == (3, 4)

    def test_rotation_validated(self):
        assert PlacedBlock(slug="x", grid_x=0, grid_y=0, rotation=90).rotation == 90
        with pytest.raises(PydanticValidationError, match="rotation"):
            PlacedBlock(slug="x", grid_x=0, grid_y=0, rotation=45)

    def test_negative_coordinates_rejected(self):
        with pytest.raises(PydanticValidationError):
            PlacedBlock(slug="x", grid_x=-1, grid_y=0)


class TestBlockSummary:
    """Tests for block summaries."""

    def test_gather(self, sensor_block):
        summary = gather_block_summary(sensor_block)
        assert summary["slug"] == "sensor-bme280"
        assert summary["grid_size"] == [1, 1]
        assert summary["size_mm"] == [12.7, 12.7]
        assert summary["i2c"]["addresses"] == ["0x76"]
        assert summary["edges"]["west"] == ["BUS_SDA"]
        assert summary["edges"]["east"] == []

    def test_component_counts(self):
        block = BlockDefinition.from_dict(
            {
                "slug": "reg",
                "name": "Regulator",
                "category": "power",
                "gridSize": [1, 2],
                "components": [
                    {"reference": "U1", "value": "AP2112", "footprint": "SOT-23-5"},
                    {"reference": "C1", "value": "1u", "footprint": "0402", "quantity": 2},
                    {"reference": "C3", "value": "10u", "footprint": "0603"},
                ],
            }
        )
        comps = gather_block_summary(block)["components"]
        assert comps["total"] == 4
        assert comps["by_type"] == {"C": 3, "U": 1}

    def test_format(self, controller_block):
        text = format_block_summary(controller_block)
        lines = text.splitlines()
        assert lines[0] == "Block: ESP32-C6 (mcu-esp32c6) v1.0.0"
        assert "Category: mcu" in lines
        assert "Size: 2x2 grid units (25.4 x 25.4 mm)" in lines
        assert "  provides 3V3 up to 500mA" in lines
        assert "  Taps: BUS_SDA, BUS_SCL" in lines
        assert "  east: BUS_SDA" in lines

    def test_format_requirements(self, sensor_block):
        text = format_block_summary(sensor_block)
        assert "  requires 3V3 1mA typical, 4mA max" in text
        assert "  I2C: 0x76" in text
