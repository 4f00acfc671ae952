"""
Block compatibility checker (design-rule check over block definitions).

Decides whether a set of blocks may legally share one board. The check is
placement independent, so it can gate a composition before any layout work.

Pairwise checks run over every unordered pair of blocks:
- I2C address conflicts
- GPIO claim conflicts
- SPI chip-select conflicts

Aggregate checks run over the whole set:
- exactly one controller (``mcu``) block
- power budget per rail
- optional I2C pull-up presence

Problems are returned as a :class:`CompatibilityReport`; nothing here raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..blocks.definition import BlockDefinition

DEFAULT_NEAR_CAPACITY_RATIO = 0.8


class Severity(Enum):
    """Issue severity level."""

    ERROR = "error"
    WARNING = "warning"


class IssueCode(Enum):
    """Known compatibility issue codes."""

    I2C_ADDRESS_CONFLICT = "I2C_ADDRESS_CONFLICT"
    I2C_ADDRESS_CONFLICT_CONFIGURABLE = "I2C_ADDRESS_CONFLICT_CONFIGURABLE"
    GPIO_CONFLICT = "GPIO_CONFLICT"
    SPI_CS_CONFLICT = "SPI_CS_CONFLICT"
    NO_MCU = "NO_MCU"
    MULTIPLE_MCU = "MULTIPLE_MCU"
    MISSING_POWER_RAIL = "MISSING_POWER_RAIL"
    POWER_BUDGET_EXCEEDED = "POWER_BUDGET_EXCEEDED"
    POWER_NEAR_CAPACITY = "POWER_NEAR_CAPACITY"
    MULTIPLE_POWER_PROVIDERS = "MULTIPLE_POWER_PROVIDERS"
    NO_I2C_PULLUPS = "NO_I2C_PULLUPS"


@dataclass
class CompatibilityIssue:
    """A single compatibility problem."""

    code: IssueCode
    severity: Severity
    message: str
    blocks: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
            "blocks": self.blocks,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


@dataclass
class CompatibilityReport:
    """Result of checking a set of blocks."""

    issues: List[CompatibilityIssue] = field(default_factory=list)

    @property
    def compatible(self) -> bool:
        """True iff there are no errors; warnings never block composition."""
        return not any(i.is_error for i in self.issues)

    @property
    def error_issues(self) -> List[CompatibilityIssue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warning_issues(self) -> List[CompatibilityIssue]:
        return [i for i in self.issues if not i.is_error]

    @property
    def errors(self) -> List[str]:
        return [i.message for i in self.error_issues]

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.warning_issues]

    def by_code(self, code: IssueCode) -> List[CompatibilityIssue]:
        return [i for i in self.issues if i.code == code]

    def to_dict(self, detailed: bool = False) -> dict:
        data = {
            "compatible": self.compatible,
            "errors": self.errors,
            "warnings": self.warnings,
        }
        if detailed:
            data["issues"] = [i.to_dict() for i in self.issues]
        return data


@dataclass
class RailUsage:
    """Required current on one rail, summed over blocks."""

    typical: float = 0.0
    max: float = 0.0


@dataclass
class PowerBudget:
    """Provided and required current per normalised rail name."""

    provides: Dict[str, float] = field(default_factory=dict)
    requires: Dict[str, RailUsage] = field(default_factory=dict)
    providers: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "provides": dict(self.provides),
            "requires": {r: {"typical": u.typical, "max": u.max} for r, u in self.requires.items()},
        }


def normalize_rail(rail: str) -> str:
    """Canonical rail name: ``V3V3`` and ``3V3`` are one rail, as are ``VBUS`` and ``5V0``."""
    name = rail.upper()
    if name in ("V3V3", "3V3"):
        return "3V3"
    if name in ("VBUS", "5V0"):
        return "5V0"
    return name


def check_compatibility(
    blocks: Sequence[BlockDefinition],
    strict: bool = False,
    check_i2c_pullups: bool = False,
    near_capacity_ratio: float = DEFAULT_NEAR_CAPACITY_RATIO,
    missing_rail_is_error: bool = True,
) -> CompatibilityReport:
    """
    Run every compatibility check over a set of blocks.

    Args:
        blocks: Block definitions in the composition
        strict: Report power budget overruns as errors instead of warnings
        check_i2c_pullups: Warn when I2C devices exist but nothing provides pull-ups
        near_capacity_ratio: Fraction of a rail's capacity that typical draw may
            reach before a warning is emitted
        missing_rail_is_error: Report a required rail with no provider as an
            error; when false it is a warning

    Returns:
        CompatibilityReport; ``compatible`` is true iff it holds no errors
    """
    report = CompatibilityReport()
    if not blocks:
        return report

    report.issues.extend(_check_controller(blocks))

    # Every unordered pair, explicitly
    for i in range(len(blocks)):
        for j in range(i + 1, len(blocks)):
            report.issues.extend(check_i2c_conflict(blocks[i], blocks[j]))
            report.issues.extend(check_gpio_conflict(blocks[i], blocks[j]))
            report.issues.extend(check_spi_conflict(blocks[i], blocks[j]))

    report.issues.extend(_check_power(blocks, strict, near_capacity_ratio, missing_rail_is_error))

    if check_i2c_pullups:
        pullups = _check_i2c_pullups(blocks)
        if pullups is not None:
            report.issues.append(pullups)

    return report


def are_blocks_compatible(blocks: Sequence[BlockDefinition], **options: Any) -> bool:
    """Quick yes/no; warnings are ignored."""
    return check_compatibility(blocks, **options).compatible


def _check_controller(blocks: Sequence[BlockDefinition]) -> List[CompatibilityIssue]:
    controllers = [b for b in blocks if b.is_controller]
    if not controllers:
        return [
            CompatibilityIssue(
                IssueCode.NO_MCU,
                Severity.ERROR,
                "No MCU block selected. An MCU block is required to define the bus.",
            )
        ]
    if len(controllers) > 1:
        names = ", ".join(b.name for b in controllers)
        return [
            CompatibilityIssue(
                IssueCode.MULTIPLE_MCU,
                Severity.ERROR,
                f"Multiple MCU blocks selected: {names}. Only one MCU is allowed.",
                blocks=[b.slug for b in controllers],
            )
        ]
    return []


def check_i2c_conflict(a: BlockDefinition, b: BlockDefinition) -> List[CompatibilityIssue]:
    """
    Shared I2C addresses between two blocks.

    Always an error. When either block can change its address the message
    says how to fix it and the code is ``I2C_ADDRESS_CONFLICT_CONFIGURABLE``.
    """
    issues = []
    other = set(b.bus.i2c_addresses)
    configurable = bool(
        (a.bus.i2c and a.bus.i2c.address_configurable)
        or (b.bus.i2c and b.bus.i2c.address_configurable)
    )
    for address in a.bus.i2c_addresses:
        if address not in other:
            continue
        hex_addr = f"0x{address:02x}"
        prefix = f"I2C address conflict at {hex_addr} between {a.name} and {b.name}."
        if configurable:
            code = IssueCode.I2C_ADDRESS_CONFLICT_CONFIGURABLE
            message = (
                f"{prefix} One or both blocks have configurable addresses - "
                "adjust address jumpers and retry."
            )
        else:
            code = IssueCode.I2C_ADDRESS_CONFLICT
            message = f"{prefix} These blocks cannot be used together."
        issues.append(
            CompatibilityIssue(
                code,
                Severity.ERROR,
                message,
                blocks=[a.slug, b.slug],
                details={"address": address, "address_hex": hex_addr, "configurable": configurable},
            )
        )
    return issues


def check_gpio_conflict(a: BlockDefinition, b: BlockDefinition) -> List[CompatibilityIssue]:
    """One error per GPIO claimed by both blocks."""
    other = set(b.bus.gpio_claims)
    return [
        CompatibilityIssue(
            IssueCode.GPIO_CONFLICT,
            Severity.ERROR,
            f"GPIO conflict: {gpio} claimed by both {a.name} and {b.name}",
            blocks=[a.slug, b.slug],
            details={"gpio": gpio},
        )
        for gpio in a.bus.gpio_claims
        if gpio in other
    ]


def check_spi_conflict(a: BlockDefinition, b: BlockDefinition) -> List[CompatibilityIssue]:
    cs_a = a.bus.cs_pin
    cs_b = b.bus.cs_pin
    if not cs_a or not cs_b or cs_a != cs_b:
        return []
    return [
        CompatibilityIssue(
            IssueCode.SPI_CS_CONFLICT,
            Severity.ERROR,
            f"SPI chip select conflict: {cs_a} used by both {a.name} and {b.name}",
            blocks=[a.slug, b.slug],
            details={"cs_pin": cs_a},
        )
    ]


def calculate_power_budget(blocks: Sequence[BlockDefinition]) -> PowerBudget:
    """
    Aggregate power per normalised rail.

    Provided current is the maximum over providers; required current is the
    sum of typical and the sum of max over consumers.
    """
    budget = PowerBudget()
    for block in blocks:
        for p in block.bus.power.provides:
            rail = normalize_rail(p.rail)
            budget.provides[rail] = max(budget.provides.get(rail, 0.0), p.max_ma)
            budget.providers.setdefault(rail, []).append(block.name)
        for r in block.bus.power.requires:
            usage = budget.requires.setdefault(normalize_rail(r.rail), RailUsage())
            usage.typical += r.typical_ma
            usage.max += r.max_ma
    return budget


def _check_power(
    blocks: Sequence[BlockDefinition],
    strict: bool,
    near_capacity_ratio: float,
    missing_rail_is_error: bool = True,
) -> List[CompatibilityIssue]:
    issues: List[CompatibilityIssue] = []
    budget = calculate_power_budget(blocks)

    for rail, names in budget.providers.items():
        if len(names) > 1:
            issues.append(
                CompatibilityIssue(
                    IssueCode.MULTIPLE_POWER_PROVIDERS,
                    Severity.WARNING,
                    f"Multiple blocks provide {rail} rail: {', '.join(names)}. "
                    "Ensure power sources don't conflict (e.g., via isolation taps).",
                    blocks=[b.slug for b in blocks if _provides(b, rail)],
                    details={"rail": rail, "providers": names},
                )
            )

    for rail, usage in budget.requires.items():
        available = budget.provides.get(rail, 0.0)
        consumers = [b.slug for b in blocks if _requires(b, rail)]

        if available <= 0:
            issues.append(
                CompatibilityIssue(
                    IssueCode.MISSING_POWER_RAIL,
                    Severity.ERROR if missing_rail_is_error else Severity.WARNING,
                    f"No block provides {rail} rail, but {usage.max:g}mA max is required",
                    blocks=consumers,
                    details={"rail": rail, "required_max": usage.max},
                )
            )
        elif usage.max > available:
            issues.append(
                CompatibilityIssue(
                    IssueCode.POWER_BUDGET_EXCEEDED,
                    Severity.ERROR if strict else Severity.WARNING,
                    f"{rail} rail budget exceeded: {usage.max:g}mA required, "
                    f"{available:g}mA available",
                    blocks=consumers,
                    details={"rail": rail, "required": usage.max, "available": available},
                )
            )
        elif usage.typical > available * near_capacity_ratio:
            utilization = usage.typical / available
            issues.append(
                CompatibilityIssue(
                    IssueCode.POWER_NEAR_CAPACITY,
                    Severity.WARNING,
                    f"{rail} rail near capacity: {usage.typical:g}mA typical usage, "
                    f"{available:g}mA available ({round(utilization * 100)}% utilization)",
                    blocks=consumers,
                    details={
                        "rail": rail,
                        "typical": usage.typical,
                        "available": available,
                        "utilization": utilization,
                    },
                )
            )

    return issues


def _provides(block: BlockDefinition, rail: str) -> bool:
    return any(normalize_rail(p.rail) == rail for p in block.bus.power.provides)


def _requires(block: BlockDefinition, rail: str) -> bool:
    return any(normalize_rail(r.rail) == rail for r in block.bus.power.requires)


def _check_i2c_pullups(blocks: Sequence[BlockDefinition]) -> Optional[CompatibilityIssue]:
    devices = [b.slug for b in blocks if b.bus.i2c_addresses]
    has_pullups = any(b.bus.i2c and b.bus.i2c.provides_pullups for b in blocks)
    if devices and not has_pullups:
        return CompatibilityIssue(
            IssueCode.NO_I2C_PULLUPS,
            Severity.WARNING,
            "No block provides I2C pullup resistors. External pullups may be required.",
            blocks=devices,
        )
    return None


def find_conflicting_blocks(
    new_block: BlockDefinition,
    existing: Sequence[BlockDefinition],
) -> List[Dict[str, str]]:
    """
    Blocks in ``existing`` that ``new_block`` has a bus conflict with.

    Returns one ``{"slug", "reason"}`` entry per conflicting block, using the
    first conflict found (I2C, then GPIO, then SPI).
    """
    conflicts = []
    for block in existing:
        for check in (check_i2c_conflict, check_gpio_conflict, check_spi_conflict):
            found = check(new_block, block)
            if found:
                conflicts.append({"slug": block.slug, "reason": found[0].message})
                break
    return conflicts


def format_report(report: CompatibilityReport) -> str:
    """Plain text rendering of a report."""
    lines = ["DRC: PASSED" if report.compatible else "DRC: FAILED"]

    if report.error_issues:
        lines.append("")
        lines.append(f"Errors ({len(report.error_issues)}):")
        lines.extend(f"  - {issue}" for issue in report.error_issues)

    if report.warning_issues:
        lines.append("")
        lines.append(f"Warnings ({len(report.warning_issues)}):")
        lines.extend(f"  - {issue}" for issue in report.warning_issues)

    return "\n".join(lines)


__all__ = [
    "Severity",
    "IssueCode",
    "CompatibilityIssue",
    "CompatibilityReport",
    "PowerBudget",
    "RailUsage",
    "DEFAULT_NEAR_CAPACITY_RATIO",
    "normalize_rail",
    "check_compatibility",
    "check_i2c_conflict",
    "check_gpio_conflict",
    "check_spi_conflict",
    "calculate_power_budget",
    "are_blocks_compatible",
    "find_conflicting_blocks",
    "format_report",
]
