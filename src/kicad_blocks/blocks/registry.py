"""
Block registries: where block definitions and schematic sources come from.

The block store itself is an external system. A registry adapts it to two
calls the composer needs:

- ``get_definition(slug)`` returns a :class:`BlockDefinition`
- ``fetch_schematic(slug)`` returns the raw ``<slug>.kicad_sch`` text

Implementations:

- :class:`LocalBlockRegistry` reads a directory tree
  (``<root>/<slug>/block.json`` and ``<root>/<slug>/<slug>.kicad_sch``)
- :class:`HttpBlockRegistry` talks to the block API over HTTP
- :class:`InMemoryBlockRegistry` serves dictionaries (tests, embedding)

Registries are expected to be safe to call from several threads at once;
the merge engine fetches schematics concurrently.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from ..exceptions import BlockNotFoundError, RegistryFetchError
from .definition import BlockDefinition

logger = logging.getLogger(__name__)

DEFINITION_FILENAMES = ("block.json", "block.yaml", "block.yml")


def schematic_filename(slug: str) -> str:
    """File name convention for a block's schematic source."""
    return f"{slug}.kicad_sch"


class BlockRegistry(ABC):
    """Abstract source of block definitions and schematic text."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name used in log messages."""
        ...

    @abstractmethod
    def get_definition(self, slug: str) -> BlockDefinition:
        """
        Look up a block definition.

        Raises:
            BlockNotFoundError: If no block has this slug
            RegistryFetchError: If the store could not be reached
        """
        ...

    @abstractmethod
    def fetch_schematic(self, slug: str) -> str:
        """
        Fetch the raw schematic source for a block.

        Raises:
            BlockNotFoundError: If the block or its schematic is missing
            RegistryFetchError: If the store could not be reached
        """
        ...

    def get_definitions(self, slugs: Iterable[str]) -> List[BlockDefinition]:
        """Resolve several slugs, preserving order."""
        return [self.get_definition(slug) for slug in slugs]

    def __str__(self) -> str:
        return self.name


class InMemoryBlockRegistry(BlockRegistry):
    """Registry backed by dictionaries."""

    def __init__(
        self,
        definitions: Optional[Iterable[BlockDefinition]] = None,
        schematics: Optional[Dict[str, str]] = None,
    ):
        self._definitions: Dict[str, BlockDefinition] = {d.slug: d for d in definitions or []}
        self._schematics: Dict[str, str] = dict(schematics or {})

    @property
    def name(self) -> str:
        return "memory"

    def add(self, definition: BlockDefinition, schematic: Optional[str] = None) -> None:
        self._definitions[definition.slug] = definition
        if schematic is not None:
            self._schematics[definition.slug] = schematic

    def get_definition(self, slug: str) -> BlockDefinition:
        try:
            return self._definitions[slug]
        except KeyError:
            raise BlockNotFoundError(
                f"Unknown block: {slug}",
                context={"registry": self.name, "available": sorted(self._definitions)},
            ) from None

    def fetch_schematic(self, slug: str) -> str:
        try:
            return self._schematics[slug]
        except KeyError:
            raise BlockNotFoundError(
                f"No schematic for block: {slug}",
                context={"registry": self.name, "file": schematic_filename(slug)},
            ) from None


class LocalBlockRegistry(BlockRegistry):
    """
    Registry backed by a directory of block folders.

    Layout::

        blocks/
          mcu-esp32c6/
            block.json
            mcu-esp32c6.kicad_sch
          sensor-bme280/
            block.yaml
            sensor-bme280.kicad_sch
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser()

    @property
    def name(self) -> str:
        return f"local:{self.root}"

    def block_dir(self, slug: str) -> Path:
        return self.root / slug

    def list_slugs(self) -> List[str]:
        """Slugs of every folder that contains a definition file."""
        if not self.root.is_dir():
            return []
        return sorted(
            p.name
            for p in self.root.iterdir()
            if p.is_dir() and any((p / f).is_file() for f in DEFINITION_FILENAMES)
        )

    def get_definition(self, slug: str) -> BlockDefinition:
        block_dir = self.block_dir(slug)
        for filename in DEFINITION_FILENAMES:
            path = block_dir / filename
            if path.is_file():
                return BlockDefinition.from_dict(_load_mapping(path))
        raise BlockNotFoundError(
            f"Unknown block: {slug}",
            context={"registry": self.name, "searched": str(block_dir)},
            suggestions=[f"Create {block_dir / 'block.json'}"],
        )

    def fetch_schematic(self, slug: str) -> str:
        path = self.block_dir(slug) / schematic_filename(slug)
        if not path.is_file():
            raise BlockNotFoundError(
                f"No schematic for block: {slug}",
                context={"registry": self.name, "file": str(path)},
            )
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryFetchError(
                f"Cannot read schematic for block {slug}: {e}",
                context={"file": str(path)},
            ) from e


class HttpBlockRegistry(BlockRegistry):
    """
    Registry backed by the block HTTP API.

    Endpoints:
        GET {base_url}/api/blocks/{slug}
        GET {base_url}/api/blocks/{slug}/files/{slug}.kicad_sch

    Connection errors, timeouts and 5xx responses raise a *transient*
    :class:`RegistryFetchError` so the merge engine may retry them. 404 maps
    to :class:`BlockNotFoundError`; other 4xx responses are permanent.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session: Any = None):
        import requests

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def name(self) -> str:
        return f"http:{self.base_url}"

    def definition_url(self, slug: str) -> str:
        return f"{self.base_url}/api/blocks/{slug}"

    def schematic_url(self, slug: str) -> str:
        return f"{self.base_url}/api/blocks/{slug}/files/{schematic_filename(slug)}"

    def get_definition(self, slug: str) -> BlockDefinition:
        response = self._get(slug, self.definition_url(slug))
        try:
            payload = response.json()
        except ValueError as e:
            raise RegistryFetchError(
                f"Block API returned invalid JSON for {slug}",
                context={"url": self.definition_url(slug)},
            ) from e
        # The API wraps the record as {"block": {...}}
        if isinstance(payload, dict) and isinstance(payload.get("block"), dict):
            payload = payload["block"]
        return BlockDefinition.from_dict(payload)

    def fetch_schematic(self, slug: str) -> str:
        return self._get(slug, self.schematic_url(slug)).text

    def _get(self, slug: str, url: str):
        import requests

        logger.debug(f"GET {url}")
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryFetchError(
                f"Request for block {slug} failed: {e}",
                context={"url": url},
                transient=True,
            ) from e

        status = response.status_code
        if status == 404:
            raise BlockNotFoundError(f"Unknown block: {slug}", context={"url": url})
        if status >= 400:
            raise RegistryFetchError(
                f"Block API returned HTTP {status} for {slug}",
                context={"url": url, "status": status},
                transient=status >= 500,
            )
        return response


def _load_mapping(path: Path) -> Dict[str, Any]:
    """Load a JSON or YAML definition file."""
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise RegistryFetchError(
            f"Invalid block definition file: {path}",
            context={"file": str(path), "error": str(e)},
        ) from e
    if not isinstance(data, dict):
        raise RegistryFetchError(
            f"Block definition must be a mapping: {path}",
            context={"file": str(path), "got": type(data).__name__},
        )
    return data
