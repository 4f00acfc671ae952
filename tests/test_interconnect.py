"""Tests for the interconnect wire generator."""

from kicad_blocks.blocks import PlacedBlock
from kicad_blocks.compose import LoadedBlock, generate_interconnect_wires
from kicad_blocks.compose.interconnect import EdgeMismatch, build_block_occupancy


def _load(*entries):
    return [
        LoadedBlock(placed=PlacedBlock(slug=d.slug, grid_x=x, grid_y=y), definition=d, index=i)
        for i, (d, x, y) in enumerate(entries)
    ]


class TestEastAdjacency:
    """Wires across a block's east edge."""

    def test_matching_net(self, controller_block, sensor_block):
        """One wire from the controller's east edge to the sensor's west edge."""
        result = generate_interconnect_wires(_load((controller_block, 0, 0), (sensor_block, 2, 0)))
        assert len(result.wires) == 1
        wire = result.wires[0]
        assert wire.net == "BUS_SDA"
        assert wire.direction == "east"
        assert (wire.from_block, wire.to_block) == ("mcu-esp32c6", "sensor-bme280")
        assert wire.start == (24.4, 5)
        assert wire.end == (26.4, 5)
        assert result.mismatches == []

    def test_mismatched_net_name(self, block_factory):
        """Nets must match exactly; a one-sided entry is reported."""
        a = block_factory("a", edges={"east": [{"net": "BUS_SDA", "offsetMm": 5}]})
        b = block_factory("b", edges={"west": [{"net": "SDA", "offsetMm": 5}]})
        result = generate_interconnect_wires(_load((a, 0, 0), (b, 1, 0)))
        assert result.wires == []
        assert set(result.mismatches) == {
            EdgeMismatch("a", "east", "BUS_SDA", "b"),
            EdgeMismatch("b", "west", "SDA", "a"),
        }

    def test_offsets_per_side(self, block_factory):
        a = block_factory("a", edges={"east": [{"net": "N", "offsetMm": 3}]})
        b = block_factory("b", edges={"west": [{"net": "N", "offsetMm": 8.5}]})
        wire = generate_interconnect_wires(_load((a, 1, 1), (b, 2, 1))).wires[0]
        assert wire.start == (24.4, 15.7)
        assert wire.end == (26.4, 21.2)

    def test_not_adjacent(self, block_factory):
        a = block_factory("a", edges={"east": [{"net": "N", "offsetMm": 3}]})
        b = block_factory("b", edges={"west": [{"net": "N", "offsetMm": 3}]})
        result = generate_interconnect_wires(_load((a, 0, 0), (b, 2, 0)))
        assert result.wires == []
        assert result.mismatches == []

    def test_only_top_row_neighbour(self, block_factory):
        """The east neighbour is looked up at the block's top row only."""
        tall = block_factory("tall", grid=(1, 2), edges={"east": [{"net": "N", "offsetMm": 3}]})
        low = block_factory("low", edges={"west": [{"net": "N", "offsetMm": 3}]})
        result = generate_interconnect_wires(_load((tall, 0, 0), (low, 1, 1)))
        assert result.wires == []


class TestSouthAdjacency:
    """Wires across a block's south edge."""

    def test_matching_net(self, block_factory):
        top = block_factory("top", grid=(2, 1), edges={"south": [{"net": "VBUS", "offsetMm": 4}]})
        bottom = block_factory("bottom", edges={"north": [{"net": "VBUS", "offsetMm": 6}]})
        result = generate_interconnect_wires(_load((top, 0, 0), (bottom, 0, 1)))
        assert len(result.wires) == 1
        wire = result.wires[0]
        assert wire.direction == "south"
        assert wire.start == (4, 11.7)
        assert wire.end == (6, 13.7)

    def test_no_double_wires(self, block_factory):
        """A west/north edge never initiates a wire."""
        top = block_factory("top", edges={"south": [{"net": "N", "offsetMm": 2}]})
        bottom = block_factory(
            "bottom",
            edges={"north": [{"net": "N", "offsetMm": 2}], "west": [{"net": "N", "offsetMm": 2}]},
        )
        result = generate_interconnect_wires(_load((top, 0, 0), (bottom, 0, 1)))
        assert len(result.wires) == 1


class TestWireOutput:
    """Tests for wire serialization and identity."""

    def test_to_sexp(self, controller_block, sensor_block):
        wire = generate_interconnect_wires(
            _load((controller_block, 0, 0), (sensor_block, 2, 0)), project="demo"
        ).wires[0]
        sexp = wire.to_sexp()
        assert sexp.tag == "wire"
        points = [xy.values for xy in sexp.find("pts").find_all("xy")]
        assert points == [[24.4, 5], [26.4, 5]]
        assert sexp.find("uuid").get_string(0) == wire.uuid

    def test_uuid_stable_per_project(self, controller_block, sensor_block):
        loaded = _load((controller_block, 0, 0), (sensor_block, 2, 0))
        a = generate_interconnect_wires(loaded, project="demo").wires[0].uuid
        b = generate_interconnect_wires(loaded, project="demo").wires[0].uuid
        c = generate_interconnect_wires(loaded, project="other").wires[0].uuid
        assert a == b
        assert a != c

    def test_to_dict(self, controller_block, sensor_block):
        result = generate_interconnect_wires(_load((controller_block, 0, 0), (sensor_block, 2, 0)))
        assert result.to_dict()["wires"][0] == {
            "net": "BUS_SDA",
            "direction": "east",
            "from": "mcu-esp32c6",
            "to": "sensor-bme280",
            "start": [24.4, 5],
            "end": [26.4, 5],
        }

    def test_mismatch_text(self):
        text = str(EdgeMismatch("a", "east", "BUS_SDA", "b"))
        assert text == "a declares BUS_SDA on its east edge but b has no matching west entry"

    def test_occupancy(self, controller_block, sensor_block):
        loaded = _load((controller_block, 0, 0), (sensor_block, 2, 0))
        occupancy = build_block_occupancy(loaded)
        assert occupancy[(1, 1)] is loaded[0]
        assert occupancy[(2, 0)] is loaded[1]
