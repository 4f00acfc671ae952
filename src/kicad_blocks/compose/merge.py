"""
Schematic merge engine.

Combines the schematics of placed blocks into one board schematic:

1. Fetch each block's ``<slug>.kicad_sch`` from the registry (concurrently,
   with bounded retries for transient failures)
2. Parse it into a fresh tree
3. Offset every element by (grid_x * 12.7, grid_y * 12.7) mm
4. Re-derive element UUIDs per placement so a block can be placed twice
5. Append the elements, embedded library symbols and net assignments

Fetches run on a thread pool but results are always joined in placement
order, so the merged document is identical regardless of network timing.

A block whose schematic cannot be fetched or parsed is skipped and listed in
:attr:`MergeResult.skipped`; the caller decides through :class:`MergeStatus`
whether a partial merge is acceptable.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..blocks.definition import BlockDefinition, PlacedBlock
from ..blocks.registry import BlockRegistry
from ..core.sexp import SExp
from ..exceptions import CompositionCancelledError, KiCadBlocksError, RegistryFetchError
from ..schema.schematic import Schematic
from ..schema.transform import PLACEABLE_TAGS, derive_uuid, rekey_uuids, translate_element
from .grid import BoardSize, board_size, grid_to_mm
from .interconnect import InterconnectResult, LoadedBlock, generate_interconnect_wires
from .nets import RESERVED_NETS, NetAssignment, assign_nets, build_global_net_table

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

DEFAULT_COMPANY = "PHAESTUS Generated"


class MergeStatus(Enum):
    """Overall outcome of a merge."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class MergeOptions:
    """Knobs for :func:`merge_block_schematics`."""

    max_workers: int = 4
    retries: int = 2
    retry_backoff: float = 0.5
    fail_fast: bool = False
    company: str = DEFAULT_COMPANY
    paper: str = "A4"
    reserved_nets: Sequence[str] = RESERVED_NETS

    @classmethod
    def from_config(cls, config: "Config") -> MergeOptions:
        return cls(
            max_workers=config.registry.max_workers,
            retries=config.registry.retries,
            retry_backoff=config.registry.retry_backoff,
            fail_fast=config.merge.fail_fast,
            company=config.merge.company,
            paper=config.merge.paper,
            reserved_nets=tuple(config.nets.reserved),
        )


@dataclass
class SkippedBlock:
    """A placed block left out of the merge."""

    index: int
    slug: str
    reason: str

    def to_dict(self) -> dict:
        return {"index": self.index, "slug": self.slug, "reason": self.reason}

    def __str__(self) -> str:
        return f"{self.slug} (placement {self.index}): {self.reason}"


@dataclass
class MergeResult:
    """Outcome of merging block schematics."""

    status: MergeStatus
    schematic: Optional[Schematic]
    net_list: List[NetAssignment] = field(default_factory=list)
    board_size: BoardSize = field(default_factory=BoardSize)
    skipped: List[SkippedBlock] = field(default_factory=list)
    interconnect: InterconnectResult = field(default_factory=InterconnectResult)
    merged: List[str] = field(default_factory=list)

    @property
    def schematic_text(self) -> Optional[str]:
        """Merged schematic serialized as ``.kicad_sch`` text."""
        return self.schematic.to_string() if self.schematic is not None else None

    @property
    def complete(self) -> bool:
        return self.status == MergeStatus.COMPLETE

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "board_size": self.board_size.to_dict(),
            "merged": list(self.merged),
            "skipped": [s.to_dict() for s in self.skipped],
            "net_list": [n.to_dict() for n in self.net_list],
            "interconnect": self.interconnect.to_dict(),
        }


@dataclass
class _Fetched:
    schematic: Optional[Schematic] = None
    error: Optional[str] = None


def merge_block_schematics(
    placed: Sequence[PlacedBlock],
    definitions: Union[Mapping[str, BlockDefinition], Iterable[BlockDefinition]],
    project: str,
    registry: BlockRegistry,
    options: Optional[MergeOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> MergeResult:
    """
    Merge the schematics of placed blocks into one document.

    Args:
        placed: Placements, in the order their elements should appear
        definitions: Block definitions, by slug or as a list
        project: Project name for the title block and sheet file
        registry: Source of block schematics
        options: Concurrency, retry and output options
        cancel_event: Set from another thread to abandon the merge

    Returns:
        MergeResult. ``COMPLETE`` when every block merged, ``PARTIAL`` when
        some were skipped, ``FAILED`` when all were skipped or ``fail_fast``
        is set and any was; no schematic is produced for ``FAILED``.

    Raises:
        CompositionCancelledError: If ``cancel_event`` was set
    """
    options = options or MergeOptions()
    cancel_event = cancel_event or threading.Event()
    by_slug = _index_definitions(definitions)

    if cancel_event.is_set():
        raise CompositionCancelledError("Composition cancelled", context={"project": project})

    size = board_size(placed, by_slug)
    net_table = build_global_net_table(by_slug.values(), options.reserved_nets)

    skipped: List[SkippedBlock] = []
    jobs: Dict[int, PlacedBlock] = {}
    for index, block in enumerate(placed):
        if block.slug not in by_slug:
            skipped.append(SkippedBlock(index, block.slug, "no block definition"))
            logger.warning(f"Skipping {block.slug}: no block definition")
        else:
            jobs[index] = block

    fetched = _fetch_all(jobs, registry, options, cancel_event)

    root_uuid = derive_uuid("schematic", project)
    merged = Schematic.new(project, root_uuid, company=options.company, paper=options.paper)
    loaded: List[LoadedBlock] = []
    net_list: List[NetAssignment] = []

    # Join in placement order
    for index in sorted(jobs):
        block = jobs[index]
        outcome = fetched[index]
        if outcome.schematic is None:
            skipped.append(SkippedBlock(index, block.slug, outcome.error or "unknown error"))
            logger.warning(f"Skipping {block.slug}: {outcome.error}")
            continue

        definition = by_slug[block.slug]
        _merge_one(merged, outcome.schematic, block, index, project, root_uuid)
        loaded.append(LoadedBlock(placed=block, definition=definition, index=index))
        net_list.extend(assign_nets(definition, net_table))

    skipped.sort(key=lambda s: s.index)
    status = _status(len(placed), skipped, options.fail_fast)

    if status == MergeStatus.FAILED:
        logger.warning(f"Merge of {project} failed: {len(skipped)} of {len(placed)} block(s) skipped")
        return MergeResult(status=status, schematic=None, board_size=size, skipped=skipped)

    interconnect = generate_interconnect_wires(loaded, project)
    for wire in interconnect.wires:
        merged.append(wire.to_sexp())

    logger.info(
        f"Merged {len(loaded)} block(s) into {project} "
        f"({len(interconnect.wires)} interconnect wire(s), board {size})"
    )
    return MergeResult(
        status=status,
        schematic=merged,
        net_list=net_list,
        board_size=size,
        skipped=skipped,
        interconnect=interconnect,
        merged=[b.slug for b in loaded],
    )


def _index_definitions(
    definitions: Union[Mapping[str, BlockDefinition], Iterable[BlockDefinition]],
) -> Dict[str, BlockDefinition]:
    if isinstance(definitions, Mapping):
        return dict(definitions)
    return {d.slug: d for d in definitions}


def _status(total: int, skipped: List[SkippedBlock], fail_fast: bool) -> MergeStatus:
    if not skipped:
        return MergeStatus.COMPLETE
    if fail_fast or len(skipped) >= total:
        return MergeStatus.FAILED
    return MergeStatus.PARTIAL


def record_unplaced(
    result: MergeResult,
    slugs: Sequence[str],
    placed_count: int,
    fail_fast: bool = False,
) -> MergeResult:
    """
    Add blocks that never got a grid position to a merge result.

    They are listed as skipped after the placed blocks, and the status is
    recomputed over all of them: a complete merge becomes ``PARTIAL``, or
    ``FAILED`` when ``fail_fast`` is set or nothing was merged. A ``FAILED``
    result drops its schematic.
    """
    if not slugs:
        return result
    for offset, slug in enumerate(slugs):
        result.skipped.append(SkippedBlock(placed_count + offset, slug, "not placed"))
    result.status = _status(placed_count + len(slugs), result.skipped, fail_fast)
    if result.status == MergeStatus.FAILED:
        result.schematic = None
        result.net_list = []
        result.merged = []
        result.interconnect = InterconnectResult()
    return result


# Fetching


def _fetch_all(
    jobs: Mapping[int, PlacedBlock],
    registry: BlockRegistry,
    options: MergeOptions,
    cancel_event: threading.Event,
) -> Dict[int, _Fetched]:
    """Fetch and parse every job's schematic; results keyed by placement index."""
    results: Dict[int, _Fetched] = {}
    if not jobs:
        return results

    workers = max(1, min(options.max_workers, len(jobs)))
    futures: Dict[Future, int] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="kicad-blocks-fetch") as executor:
        for index, block in jobs.items():
            future = executor.submit(_fetch_one, registry, block.slug, options, cancel_event)
            futures[future] = index

        try:
            for future in as_completed(futures):
                index = futures[future]
                results[index] = future.result()
                if cancel_event.is_set():
                    raise CompositionCancelledError("Composition cancelled while fetching schematics")
                if options.fail_fast and results[index].error is not None:
                    logger.debug("Fail-fast: cancelling remaining fetches")
                    for pending in futures:
                        pending.cancel()
                    break
        except CompositionCancelledError:
            for pending in futures:
                pending.cancel()
            raise

    # Fetches cut short by fail-fast
    for future, index in futures.items():
        if index in results:
            continue
        if future.cancelled():
            results[index] = _Fetched(error="not fetched after an earlier failure")
        else:
            results[index] = future.result()
    return results


def _fetch_one(
    registry: BlockRegistry,
    slug: str,
    options: MergeOptions,
    cancel_event: threading.Event,
) -> _Fetched:
    """Runs on a worker thread."""
    if cancel_event.is_set():
        raise CompositionCancelledError("Composition cancelled", context={"slug": slug})
    try:
        text = fetch_with_retries(registry, slug, options.retries, options.retry_backoff, cancel_event)
        return _Fetched(schematic=Schematic.from_text(text, source=slug))
    except CompositionCancelledError:
        raise
    except KiCadBlocksError as e:
        return _Fetched(error=e.message)
    except (OSError, UnicodeDecodeError) as e:
        return _Fetched(error=str(e))


def fetch_with_retries(
    registry: BlockRegistry,
    slug: str,
    retries: int = 2,
    backoff: float = 0.5,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """
    Fetch a schematic, retrying transient failures.

    Waits ``backoff * attempt`` seconds between attempts. Permanent failures
    are raised immediately.

    Raises:
        RegistryFetchError: When attempts are exhausted or the failure is permanent
        BlockNotFoundError: If the registry has no such block
        CompositionCancelledError: If cancelled while waiting to retry
    """
    cancel_event = cancel_event or threading.Event()
    attempt = 0
    while True:
        try:
            return registry.fetch_schematic(slug)
        except RegistryFetchError as e:
            if not e.transient or attempt >= retries:
                raise
            attempt += 1
            delay = backoff * attempt
            logger.info(f"Retrying {slug} in {delay:g}s (attempt {attempt + 1} of {retries + 1}): {e.message}")
            if cancel_event.wait(delay):
                raise CompositionCancelledError("Composition cancelled", context={"slug": slug}) from e


# Document assembly


def _merge_one(
    merged: Schematic,
    source: Schematic,
    block: PlacedBlock,
    index: int,
    project: str,
    root_uuid: str,
) -> None:
    """Append one block's translated elements to the merged document."""
    if block.rotation:
        logger.warning(f"Rotation {block.rotation} of {block.slug} is ignored; merging unrotated")

    dx, dy = grid_to_mm(block.grid_x, block.grid_y)
    seed = f"{index}:{block.slug}"

    if lib_syms := source.lib_symbols:
        for definition in lib_syms.find_all("symbol"):
            merged.add_lib_symbol(definition)

    count = 0
    for element in source.sexp.iter_children():
        if element.tag not in PLACEABLE_TAGS:
            continue
        moved = rekey_uuids(translate_element(element, dx, dy), seed)
        if moved.tag == "symbol":
            _retarget_instances(moved, project, root_uuid)
        merged.append(moved)
        count += 1

    logger.debug(f"Merged {count} element(s) from {block.slug} at offset ({dx:g}, {dy:g})")


def _retarget_instances(symbol: SExp, project: str, root_uuid: str) -> None:
    """Point a symbol's ``(instances (project ... (path ...)))`` at the merged sheet."""
    instances = symbol.find("instances")
    if instances is None:
        return
    for proj in instances.find_all("project"):
        proj.set_value(0, project)
        for path in proj.find_all("path"):
            path.set_value(0, f"/{root_uuid}")


__all__ = [
    "DEFAULT_COMPANY",
    "MergeStatus",
    "MergeOptions",
    "SkippedBlock",
    "MergeResult",
    "merge_block_schematics",
    "fetch_with_retries",
    "record_unplaced",
]
