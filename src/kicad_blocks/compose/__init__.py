"""
Block composition: placement, compatibility checking, net unification,
interconnect synthesis and schematic merging.
"""

from .compatibility import (
    CompatibilityIssue,
    CompatibilityReport,
    IssueCode,
    PowerBudget,
    Severity,
    are_blocks_compatible,
    calculate_power_budget,
    check_compatibility,
    find_conflicting_blocks,
    format_report,
    normalize_rail,
)
from .composer import (
    Composition,
    CompositionResult,
    compose_board,
    load_composition,
    make_registry,
    parse_composition,
)
from .grid import EDGE_OVERLAP_MM, GRID_UNIT_MM, BoardSize, board_size, build_occupancy
from .interconnect import (
    EdgeMismatch,
    InterconnectResult,
    InterconnectWire,
    LoadedBlock,
    generate_interconnect_wires,
)
from .merge import (
    MergeOptions,
    MergeResult,
    MergeStatus,
    SkippedBlock,
    fetch_with_retries,
    merge_block_schematics,
    record_unplaced,
)
from .nets import (
    RESERVED_NETS,
    NetAssignment,
    NetTable,
    assign_nets,
    build_global_net_table,
)
from .placement import PlacementResult, auto_place_blocks, validate_placement

__all__ = [
    # Grid
    "GRID_UNIT_MM",
    "EDGE_OVERLAP_MM",
    "BoardSize",
    "board_size",
    "build_occupancy",
    # Placement
    "PlacementResult",
    "auto_place_blocks",
    "validate_placement",
    # Compatibility
    "Severity",
    "IssueCode",
    "CompatibilityIssue",
    "CompatibilityReport",
    "PowerBudget",
    "check_compatibility",
    "are_blocks_compatible",
    "calculate_power_budget",
    "find_conflicting_blocks",
    "format_report",
    "normalize_rail",
    # Nets
    "RESERVED_NETS",
    "NetTable",
    "NetAssignment",
    "build_global_net_table",
    "assign_nets",
    # Interconnect
    "LoadedBlock",
    "InterconnectWire",
    "InterconnectResult",
    "EdgeMismatch",
    "generate_interconnect_wires",
    # Merge
    "MergeStatus",
    "MergeOptions",
    "MergeResult",
    "SkippedBlock",
    "merge_block_schematics",
    "fetch_with_retries",
    "record_unplaced",
    # Pipeline
    "Composition",
    "CompositionResult",
    "compose_board",
    "load_composition",
    "parse_composition",
    "make_registry",
]
