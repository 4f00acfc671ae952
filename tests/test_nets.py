"""Tests for the global net table and net assignments."""

import pytest

from kicad_blocks.blocks import PlacedBlock
from kicad_blocks.compose import RESERVED_NETS, NetAssignment, NetTable, assign_nets, build_global_net_table
from kicad_blocks.compose.nets import collect_net_assignments


class TestNetTable:
    """Tests for NetTable."""

    def test_reserved_first(self):
        table = NetTable()
        assert table.names == ["GND", "V3V3", "VBUS"]
        assert table.id_of("GND") == 1
        assert table.id_of("VBUS") == 3
        assert len(table) == 3

    def test_add_is_idempotent(self):
        table = NetTable()
        assert table.add("BUS_SDA") == 4
        assert table.add("BUS_SDA") == 4
        assert table.add("BUS_SCL") == 5
        assert table.to_dict() == {"GND": 1, "V3V3": 2, "VBUS": 3, "BUS_SDA": 4, "BUS_SCL": 5}

    def test_custom_reserved(self):
        table = NetTable(["GND"])
        assert list(table) == ["GND"]
        assert "V3V3" not in table

    def test_resolve(self):
        table = NetTable()
        table.add("BUS_SDA")
        assert table.resolve("BUS_SDA") == "BUS_SDA"
        with pytest.raises(KeyError, match="BUS_MISO"):
            table.resolve("BUS_MISO")

    def test_id_of_unknown(self):
        assert NetTable().id_of("nope") is None


class TestBuildNetTable:
    """Tests for build_global_net_table."""

    def test_first_appearance_order(self, controller_block, sensor_block, block_factory):
        led = block_factory("led", taps=["GPIO_LED", "BUS_SDA"])
        table = build_global_net_table([controller_block, sensor_block, led])
        assert table.names == list(RESERVED_NETS) + ["BUS_SDA", "BUS_SCL", "GPIO_LED"]

    def test_tap_named_like_reserved(self, block_factory):
        """A tap on a reserved net keeps the reserved id."""
        block = block_factory("pwr", taps=["GND", "EN"])
        table = build_global_net_table([block])
        assert table.id_of("GND") == 1
        assert table.id_of("EN") == 4


class TestAssignments:
    """Tests for per-block net assignments."""

    def test_one_per_tap(self, sensor_block):
        table = build_global_net_table([sensor_block])
        assignments = assign_nets(sensor_block, table)
        assert assignments == [
            NetAssignment("BUS_SDA", "BUS_SDA", "sensor-bme280"),
            NetAssignment("BUS_SCL", "BUS_SCL", "sensor-bme280"),
        ]

    def test_to_dict(self):
        assert NetAssignment("A", "A", "blk").to_dict() == {
            "local_net": "A",
            "global_net": "A",
            "block_slug": "blk",
        }
        assert NetAssignment("A", "A", "blk", gpio="GPIO4").to_dict()["gpio"] == "GPIO4"

    def test_collect_in_placement_order(self, controller_block, sensor_block):
        definitions = {"mcu-esp32c6": controller_block, "sensor-bme280": sensor_block}
        table = build_global_net_table(definitions.values())
        placed = [
            PlacedBlock(slug="sensor-bme280", grid_x=2, grid_y=0),
            PlacedBlock(slug="ghost", grid_x=5, grid_y=0),
            PlacedBlock(slug="mcu-esp32c6", grid_x=0, grid_y=0),
        ]
        slugs = [a.block_slug for a in collect_net_assignments(placed, definitions, table)]
        assert slugs == ["sensor-bme280", "sensor-bme280", "mcu-esp32c6", "mcu-esp32c6"]
