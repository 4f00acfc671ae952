"""
End-to-end composition pipeline.

Ties the pieces together the way the CLI and embedding code use them:

    registry -> definitions -> compatibility gate -> placement -> merge

A composition is described by a small YAML or JSON file::

    project: weather-station
    blocks: [mcu-esp32c6, sensor-bme280]
    placements:            # optional; auto-placed when omitted
      - {slug: mcu-esp32c6, x: 0, y: 0}
      - {slug: sensor-bme280, x: 2, y: 0}
    registry:
      root: ./blocks       # or url: https://blocks.example.com
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..blocks.definition import BlockDefinition, PlacedBlock
from ..blocks.registry import BlockRegistry, HttpBlockRegistry, LocalBlockRegistry
from ..config import Config
from ..exceptions import ConfigurationError, PlacementError, ValidationError
from .compatibility import CompatibilityReport, check_compatibility
from .merge import MergeOptions, MergeResult, merge_block_schematics, record_unplaced
from .placement import PlacementResult, auto_place_blocks, validate_placement

logger = logging.getLogger(__name__)


class PlacementEntry(BaseModel):
    """One caller-supplied placement in a composition file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    slug: str
    x: int = Field(default=0, ge=0, validation_alias=AliasChoices("x", "grid_x", "gridX"))
    y: int = Field(default=0, ge=0, validation_alias=AliasChoices("y", "grid_y", "gridY"))
    rotation: int = 0

    def to_placed(self) -> PlacedBlock:
        return PlacedBlock(slug=self.slug, grid_x=self.x, grid_y=self.y, rotation=self.rotation)


class RegistrySource(BaseModel):
    root: Optional[str] = None
    url: Optional[str] = None


class Composition(BaseModel):
    """A composition request: which blocks, where, and where to get them."""

    model_config = ConfigDict(extra="ignore")

    project: str
    blocks: List[str] = Field(default_factory=list)
    placements: List[PlacementEntry] = Field(default_factory=list)
    registry: Optional[RegistrySource] = None

    @property
    def block_slugs(self) -> List[str]:
        """Block instances in the composition; placements imply blocks when none are listed."""
        if self.blocks:
            return list(self.blocks)
        return [p.slug for p in self.placements]

    @property
    def placed_blocks(self) -> List[PlacedBlock]:
        return [p.to_placed() for p in self.placements]


def load_composition(path: Path | str) -> Composition:
    """
    Load a composition file (``.json``, ``.yaml`` or ``.yml``).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the content is not a valid composition
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Composition file not found: {path}")

    content = path.read_text(encoding="utf-8")
    try:
        data = json.loads(content) if path.suffix == ".json" else yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError([f"Cannot parse {path.name}: {e}"], context={"file": str(path)}) from e

    if not isinstance(data, dict):
        raise ValidationError(
            ["Composition file must contain a mapping"], context={"file": str(path)}
        )
    return parse_composition(data, source=str(path))


def parse_composition(data: Dict[str, Any], source: str = "<data>") -> Composition:
    try:
        composition = Composition.model_validate(data)
    except PydanticValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ValidationError(errors, context={"file": source}) from e
    if not composition.block_slugs:
        raise ValidationError(["Composition lists no blocks"], context={"file": source})
    return composition


def make_registry(
    composition: Composition,
    config: Config,
    base_dir: Optional[Path] = None,
) -> BlockRegistry:
    """
    Build the registry a composition should use.

    The composition's own ``registry`` section wins over the config file.
    Relative roots in a composition file resolve against ``base_dir``.

    Raises:
        ConfigurationError: If neither a local root nor a URL is configured
    """
    source = composition.registry
    if source is not None and source.root:
        root = Path(source.root).expanduser()
        if not root.is_absolute() and base_dir is not None:
            root = base_dir / root
        return LocalBlockRegistry(root)
    if source is not None and source.url:
        return HttpBlockRegistry(source.url, timeout=config.registry.timeout)

    if config.registry.root:
        return LocalBlockRegistry(config.registry.root)
    if config.registry.url:
        return HttpBlockRegistry(config.registry.url, timeout=config.registry.timeout)

    raise ConfigurationError(
        "No block registry configured",
        suggestions=[
            "Add 'registry: {root: ./blocks}' to the composition file",
            "Or set [registry] root / url in .kicad-blocks.toml",
        ],
    )


@dataclass
class CompositionResult:
    """Everything produced while composing one board."""

    project: str
    definitions: List[BlockDefinition] = field(default_factory=list)
    report: CompatibilityReport = field(default_factory=CompatibilityReport)
    placement: Optional[PlacementResult] = None
    placed: List[PlacedBlock] = field(default_factory=list)
    merge: Optional[MergeResult] = None

    @property
    def compatible(self) -> bool:
        return self.report.compatible

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            "project": self.project,
            "compatibility": self.report.to_dict(),
            "placed": [
                {"slug": p.slug, "x": p.grid_x, "y": p.grid_y, "rotation": p.rotation}
                for p in self.placed
            ],
        }
        if self.placement is not None:
            data["unplaced"] = self.placement.unplaced_slugs
        if self.merge is not None:
            data["merge"] = self.merge.to_dict()
        return data


def check_composition(composition: Composition, registry: BlockRegistry, config: Optional[Config] = None):
    """Resolve definitions and run the compatibility check only."""
    config = config or Config()
    definitions = registry.get_definitions(composition.block_slugs)
    report = check_compatibility(
        definitions,
        strict=config.drc.strict,
        check_i2c_pullups=config.drc.check_i2c_pullups,
        near_capacity_ratio=config.drc.near_capacity_ratio,
        missing_rail_is_error=config.drc.missing_rail_is_error,
    )
    return definitions, report


def plan_placement(
    composition: Composition,
    definitions: List[BlockDefinition],
    config: Optional[Config] = None,
):
    """
    Placements for a composition: caller-supplied ones are validated,
    otherwise blocks are auto-placed.

    Returns:
        (placed blocks, PlacementResult or None when placements were supplied)

    Raises:
        PlacementError: If supplied placements overlap or name unknown blocks
    """
    config = config or Config()
    if composition.placements:
        placed = composition.placed_blocks
        problems = validate_placement(placed, {d.slug: d for d in definitions})
        if problems:
            raise PlacementError(
                "Invalid placement",
                context={"project": composition.project, "problems": "; ".join(problems)},
            )
        return placed, None

    placement = auto_place_blocks(
        definitions,
        max_columns=config.placement.max_columns,
        max_rows=config.placement.max_rows,
    )
    return placement.placed, placement


def compose_board(
    composition: Composition,
    registry: BlockRegistry,
    config: Optional[Config] = None,
    cancel_event: Optional[threading.Event] = None,
    require_compatible: bool = True,
) -> CompositionResult:
    """
    Run the whole pipeline for one composition.

    Args:
        composition: What to compose
        registry: Where blocks come from
        config: Effective configuration (defaults when omitted)
        cancel_event: Set from another thread to abandon the merge
        require_compatible: Stop before merging when the compatibility check
            reports errors

    Returns:
        CompositionResult; ``merge`` is None when the compatibility gate stopped
        the pipeline
    """
    config = config or Config()
    definitions, report = check_composition(composition, registry, config)
    result = CompositionResult(project=composition.project, definitions=definitions, report=report)

    if require_compatible and not report.compatible:
        logger.warning(f"{composition.project}: blocks are not compatible, skipping merge")
        return result

    result.placed, result.placement = plan_placement(composition, definitions, config)
    options = MergeOptions.from_config(config)
    result.merge = merge_block_schematics(
        result.placed,
        definitions,
        composition.project,
        registry,
        options=options,
        cancel_event=cancel_event,
    )
    if result.placement is not None and result.placement.unplaced:
        record_unplaced(
            result.merge, result.placement.unplaced_slugs, len(result.placed), options.fail_fast
        )
    return result


__all__ = [
    "Composition",
    "PlacementEntry",
    "RegistrySource",
    "CompositionResult",
    "load_composition",
    "parse_composition",
    "make_registry",
    "check_composition",
    "plan_placement",
    "compose_board",
]
