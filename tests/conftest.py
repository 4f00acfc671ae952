"""Pytest fixtures for kicad-blocks tests."""

import json

import pytest

from kicad_blocks.blocks.definition import BlockDefinition
from kicad_blocks.blocks.registry import InMemoryBlockRegistry

# Controller block schematic: one MCU symbol, a resistor, a wire and a label
CONTROLLER_SCHEMATIC = """(kicad_sch
  (version 20231120)
  (generator "eeschema")
  (generator_version "8.0")
  (uuid "10000000-0000-0000-0000-000000000001")
  (paper "A4")
  (lib_symbols
    (symbol "MCU:ESP32-C6"
      (property "Reference" "U" (at 0 0 0) (effects (font (size 1.27 1.27))))
    )
    (symbol "Device:R"
      (property "Reference" "R" (at 0 0 0) (effects (font (size 1.27 1.27))))
    )
  )
  (symbol
    (lib_id "MCU:ESP32-C6")
    (at 10 10 0)
    (uuid "10000000-0000-0000-0000-000000000002")
    (property "Reference" "U1" (at 10 5 0) (effects (font (size 1.27 1.27))))
    (property "Value" "ESP32-C6" (at 10 15 0) (effects (font (size 1.27 1.27))))
    (instances
      (project "mcu-esp32c6"
        (path "/10000000-0000-0000-0000-000000000001"
          (reference "U1")
          (unit 1)
        )
      )
    )
  )
  (symbol
    (lib_id "Device:R")
    (at 20 10 0)
    (uuid "10000000-0000-0000-0000-000000000003")
    (property "Reference" "R1" (at 20 8 0) (effects (font (size 1.27 1.27))))
    (property "Value" "4.7k" (at 20 12 0) (effects (font (size 1.27 1.27))))
  )
  (wire
    (pts (xy 12 10) (xy 18 10))
    (stroke (width 0) (type default))
    (uuid "10000000-0000-0000-0000-000000000004")
  )
  (label "BUS_SDA"
    (at 18 10 0)
    (effects (font (size 1.27 1.27)))
    (uuid "10000000-0000-0000-0000-000000000005")
  )
  (sheet_instances
    (path "/" (page "1"))
  )
)
"""

# Sensor block schematic: one sensor symbol, a resistor and a wire
SENSOR_SCHEMATIC = """(kicad_sch
  (version 20231120)
  (generator "eeschema")
  (uuid "20000000-0000-0000-0000-000000000001")
  (paper "A4")
  (lib_symbols
    (symbol "Sensor:BME280"
      (property "Reference" "U" (at 0 0 0) (effects (font (size 1.27 1.27))))
    )
    (symbol "Device:R"
      (property "Reference" "R" (at 0 0 0) (effects (font (size 1.27 1.27))))
    )
  )
  (symbol
    (lib_id "Sensor:BME280")
    (at 5 5 0)
    (uuid "20000000-0000-0000-0000-000000000002")
    (property "Reference" "U2" (at 5 2 0) (effects (font (size 1.27 1.27))))
    (property "Value" "BME280" (at 5 8 0) (effects (font (size 1.27 1.27))))
  )
  (wire
    (pts (xy 1 5) (xy 4 5))
    (stroke (width 0) (type default))
    (uuid "20000000-0000-0000-0000-000000000003")
  )
)
"""


def block_data(
    slug,
    category="sensor",
    grid=(1, 1),
    provides=None,
    requires=None,
    i2c=None,
    spi_cs=None,
    gpio=None,
    taps=None,
    edges=None,
    name=None,
):
    """Build a block.json style mapping (camelCase keys)."""
    bus = {
        "taps": [{"net": t} for t in taps or []],
        "power": {"provides": provides or [], "requires": requires or []},
    }
    if i2c is not None:
        bus["i2c"] = i2c
    if spi_cs is not None:
        bus["spi"] = {"csPin": spi_cs}
    if gpio is not None:
        bus["gpio"] = {"claims": gpio}
    return {
        "slug": slug,
        "name": name or slug,
        "category": category,
        "gridSize": list(grid),
        "bus": bus,
        "edges": edges or {},
        "components": [],
    }


def make_block(slug, **kwargs):
    """Build a BlockDefinition with test defaults."""
    return BlockDefinition.from_dict(block_data(slug, **kwargs))


@pytest.fixture
def controller_schematic():
    """Raw schematic text of the controller block."""
    return CONTROLLER_SCHEMATIC


@pytest.fixture
def sensor_schematic():
    """Raw schematic text of the sensor block."""
    return SENSOR_SCHEMATIC


@pytest.fixture
def block_factory():
    """Factory for BlockDefinition instances."""
    return make_block


@pytest.fixture
def controller_block():
    """2x2 controller providing 3V3 at 500mA, east edge BUS_SDA at 5mm."""
    return make_block(
        "mcu-esp32c6",
        category="mcu",
        grid=(2, 2),
        name="ESP32-C6",
        provides=[{"rail": "3V3", "maxMa": 500}],
        i2c={"addresses": [], "providesPullups": True},
        taps=["BUS_SDA", "BUS_SCL"],
        edges={"east": [{"net": "BUS_SDA", "offsetMm": 5}]},
    )


@pytest.fixture
def sensor_block():
    """1x1 sensor requiring 3V3 1mA/4mA at I2C 0x76, west edge BUS_SDA at 5mm."""
    return make_block(
        "sensor-bme280",
        grid=(1, 1),
        name="BME280",
        requires=[{"rail": "3V3", "typicalMa": 1, "maxMa": 4}],
        i2c={"addresses": [0x76]},
        taps=["BUS_SDA", "BUS_SCL"],
        edges={"west": [{"net": "BUS_SDA", "offsetMm": 5}]},
    )


@pytest.fixture
def registry(controller_block, sensor_block):
    """In-memory registry with the controller and sensor blocks."""
    return InMemoryBlockRegistry(
        [controller_block, sensor_block],
        {
            "mcu-esp32c6": CONTROLLER_SCHEMATIC,
            "sensor-bme280": SENSOR_SCHEMATIC,
        },
    )


@pytest.fixture
def block_library(tmp_path):
    """On-disk block library with the controller and sensor blocks."""
    root = tmp_path / "blocks"
    mcu = root / "mcu-esp32c6"
    mcu.mkdir(parents=True)
    (mcu / "block.json").write_text(
        json.dumps(
            block_data(
                "mcu-esp32c6",
                category="mcu",
                grid=(2, 2),
                name="ESP32-C6",
                provides=[{"rail": "3V3", "maxMa": 500}],
                taps=["BUS_SDA", "BUS_SCL"],
                edges={"east": [{"net": "BUS_SDA", "offsetMm": 5}]},
            )
        )
    )
    (mcu / "mcu-esp32c6.kicad_sch").write_text(CONTROLLER_SCHEMATIC)

    sensor = root / "sensor-bme280"
    sensor.mkdir()
    (sensor / "block.yaml").write_text(
        """slug: sensor-bme280
name: BME280
category: sensor
gridSize: [1, 1]
bus:
  taps:
    - net: BUS_SDA
    - net: BUS_SCL
  power:
    requires:
      - rail: 3V3
        typicalMa: 1
        maxMa: 4
  i2c:
    addresses: ["0x76"]
edges:
  west:
    - net: BUS_SDA
      offsetMm: 5
"""
    )
    (sensor / "sensor-bme280.kicad_sch").write_text(SENSOR_SCHEMATIC)
    return root
