"""
Human-readable overview of a single block definition.

Used by ``kicad-blocks summary <slug>`` and handy when choosing blocks for a
composition.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List

from .definition import EDGE_DIRECTIONS, BlockDefinition


def gather_block_summary(definition: BlockDefinition) -> Dict[str, Any]:
    """Collect the summary fields as plain data (JSON friendly)."""
    bus = definition.bus
    ref_counts: Counter = Counter()
    for comp in definition.components:
        prefix = "".join(c for c in comp.reference if c.isalpha())
        ref_counts[prefix] += comp.quantity

    return {
        "slug": definition.slug,
        "name": definition.name,
        "category": definition.category.value,
        "version": definition.version,
        "description": definition.description,
        "grid_size": [definition.width, definition.height],
        "size_mm": list(definition.size_mm),
        "power": {
            "provides": [{"rail": p.rail, "max_ma": p.max_ma} for p in bus.power.provides],
            "requires": [
                {"rail": r.rail, "typical_ma": r.typical_ma, "max_ma": r.max_ma}
                for r in bus.power.requires
            ],
        },
        "i2c": {
            "addresses": [f"0x{a:02x}" for a in bus.i2c_addresses],
            "configurable": bool(bus.i2c and bus.i2c.address_configurable),
            "pullups": bool(bus.i2c and bus.i2c.provides_pullups),
        },
        "spi_cs": bus.cs_pin,
        "gpio": bus.gpio_claims,
        "taps": [t.net for t in bus.taps],
        "edges": {d: [e.net for e in definition.edges.side(d)] for d in EDGE_DIRECTIONS},
        "components": {
            "total": sum(c.quantity for c in definition.components),
            "by_type": dict(ref_counts.most_common()),
        },
    }


def format_block_summary(definition: BlockDefinition) -> str:
    """Render a block definition as a short multi-line text report."""
    s = gather_block_summary(definition)
    width_mm, height_mm = s["size_mm"]
    lines: List[str] = [
        f"Block: {s['name']} ({s['slug']}) v{s['version']}",
        "=" * 60,
        f"Category: {s['category']}",
        f"Size: {s['grid_size'][0]}x{s['grid_size'][1]} grid units "
        f"({width_mm:g} x {height_mm:g} mm)",
    ]
    if s["description"]:
        lines.append(f"Description: {s['description']}")

    power = s["power"]
    if power["provides"] or power["requires"]:
        lines.append("")
        lines.append("Power:")
        for p in power["provides"]:
            lines.append(f"  provides {p['rail']} up to {p['max_ma']:g}mA")
        for r in power["requires"]:
            lines.append(f"  requires {r['rail']} {r['typical_ma']:g}mA typical, {r['max_ma']:g}mA max")

    bus_lines: List[str] = []
    if s["i2c"]["addresses"]:
        flags = []
        if s["i2c"]["configurable"]:
            flags.append("configurable")
        if s["i2c"]["pullups"]:
            flags.append("pull-ups")
        suffix = f" ({', '.join(flags)})" if flags else ""
        bus_lines.append(f"  I2C: {', '.join(s['i2c']['addresses'])}{suffix}")
    if s["spi_cs"]:
        bus_lines.append(f"  SPI CS: {s['spi_cs']}")
    if s["gpio"]:
        bus_lines.append(f"  GPIO: {', '.join(s['gpio'])}")
    if s["taps"]:
        bus_lines.append(f"  Taps: {', '.join(s['taps'])}")
    if bus_lines:
        lines.append("")
        lines.append("Bus:")
        lines.extend(bus_lines)

    edge_lines = [f"  {d}: {', '.join(nets)}" for d, nets in s["edges"].items() if nets]
    if edge_lines:
        lines.append("")
        lines.append("Edges:")
        lines.extend(edge_lines)

    comps = s["components"]
    if comps["total"]:
        lines.append("")
        types = ", ".join(f"{k}:{v}" for k, v in comps["by_type"].items())
        lines.append(f"Components: {comps['total']} ({types})")

    return "\n".join(lines)
