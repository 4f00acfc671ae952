"""
Configuration file support for kicad-blocks.

Provides hierarchical configuration loading from:
1. Project config: .kicad-blocks.toml or kicad-blocks.toml in project root
2. User config: ~/.config/kicad-blocks/config.toml

CLI arguments override config file values, and project config overrides user config.
"""

import sys
import warnings
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .exceptions import ConfigurationError

# Config file names to search for in project directories
CONFIG_FILENAMES = [".kicad-blocks.toml", "kicad-blocks.toml"]

# User-level config path
USER_CONFIG_PATH = Path.home() / ".config" / "kicad-blocks" / "config.toml"


@dataclass
class DefaultsConfig:
    """Default options for CLI commands."""

    format: str = "text"
    verbose: bool = False
    quiet: bool = False


@dataclass
class RegistryConfig:
    """Where blocks come from and how they are fetched."""

    root: str | None = None
    url: str | None = None
    timeout: float = 10.0
    retries: int = 2
    retry_backoff: float = 0.5
    max_workers: int = 4


@dataclass
class PlacementConfig:
    """Auto-placement scan window, in grid units."""

    max_columns: int = 10
    max_rows: int = 10


@dataclass
class DrcConfig:
    """Compatibility check options."""

    strict: bool = False
    missing_rail_is_error: bool = True
    check_i2c_pullups: bool = False
    near_capacity_ratio: float = 0.8


@dataclass
class MergeConfig:
    """Schematic merge options."""

    fail_fast: bool = False
    company: str = "PHAESTUS Generated"
    paper: str = "A4"


@dataclass
class NetsConfig:
    """Global net table options."""

    reserved: list[str] = field(default_factory=lambda: ["GND", "V3V3", "VBUS"])


@dataclass
class Config:
    """Merged configuration from all sources."""

    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    drc: DrcConfig = field(default_factory=DrcConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    nets: NetsConfig = field(default_factory=NetsConfig)

    # Track which file each setting came from (for --show)
    _sources: dict = field(default_factory=dict, repr=False)

    @classmethod
    def load(cls, start_dir: Path | None = None) -> "Config":
        """
        Load configuration with precedence: project > user > defaults.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Merged configuration object
        """
        if start_dir is None:
            start_dir = Path.cwd()

        config = cls()
        sources: dict[str, str] = {}

        if USER_CONFIG_PATH.exists():
            _merge_config(config, _load_toml_file(USER_CONFIG_PATH), str(USER_CONFIG_PATH), sources)

        project_config = _find_project_config(start_dir)
        if project_config:
            _merge_config(config, _load_toml_file(project_config), str(project_config), sources)

        config._sources = sources
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load a single config file on top of the defaults."""
        config = cls()
        _merge_config(config, _load_toml_file(Path(path)), str(path), config._sources)
        return config

    def get_source(self, key: str) -> str:
        """Get the source file for a config key."""
        return self._sources.get(key, "default")

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {
            section: {f.name: getattr(getattr(self, section), f.name) for f in fields(getattr(self, section))}
            for section in SECTIONS
        }


class ConfigError(ConfigurationError):
    """Configuration file could not be read or parsed."""

    pass


SECTIONS = ("defaults", "registry", "placement", "drc", "merge", "nets")


def _find_project_config(start_dir: Path) -> Path | None:
    """
    Find project config by walking up the directory tree.

    Stops at .git directory or filesystem root.
    """
    current = start_dir.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        if (current / ".git").exists():
            break

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _load_toml_file(path: Path) -> dict[str, Any]:
    """
    Load a TOML file.

    Raises:
        ConfigError: If the file cannot be read or the TOML is invalid
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", context={"file": str(path)}) from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", context={"file": str(path)}) from e


def _merge_config(config: Config, data: dict[str, Any], source: str, sources: dict[str, str]) -> None:
    """
    Merge loaded config data into a Config object.

    Args:
        config: Config object to update
        data: Raw config data from TOML
        source: Source file path (for tracking)
        sources: Dict to update with source info
    """
    for key in data:
        if key not in SECTIONS:
            warnings.warn(f"Unknown config key '{key}' in {source}", stacklevel=3)

    for section in SECTIONS:
        section_data = data.get(section)
        if section_data is None:
            continue
        if not isinstance(section_data, dict):
            raise ConfigError(
                f"Config section [{section}] must be a table",
                context={"file": source, "got": type(section_data).__name__},
            )

        target = getattr(config, section)
        known = {f.name for f in fields(target)}
        _warn_unknown_keys(section_data, known, section, source)

        for key, value in section_data.items():
            if key in known:
                setattr(target, key, value)
                sources[f"{section}.{key}"] = source


def _warn_unknown_keys(data: dict[str, Any], known: set[str], section: str, source: str) -> None:
    """Warn about unknown keys in a config section."""
    for key in data:
        if key not in known:
            warnings.warn(f"Unknown config key '{section}.{key}' in {source}", stacklevel=4)


def generate_template() -> str:
    """
    Generate a template config file with all options documented.

    Returns:
        Template TOML string
    """
    return """# kicad-blocks configuration file
# Place as .kicad-blocks.toml in project root or ~/.config/kicad-blocks/config.toml for user defaults

[defaults]
# Output format: text, json
# format = "text"

# Enable verbose output by default
# verbose = false

# Enable quiet mode by default
# quiet = false

[registry]
# Local block library: <root>/<slug>/block.json and <root>/<slug>/<slug>.kicad_sch
# root = "./blocks"

# Block API base URL (used when root is not set)
# url = "https://blocks.example.com"

# HTTP timeout in seconds
# timeout = 10.0

# Retries for transient fetch failures
# retries = 2

# Seconds to wait before the first retry; grows linearly
# retry_backoff = 0.5

# Concurrent schematic fetches
# max_workers = 4

[placement]
# Auto-placement scan window in 12.7mm grid units
# max_columns = 10
# max_rows = 10

[drc]
# Treat power budget overruns as errors instead of warnings
# strict = false

# Report a required rail that no block provides as an error (false: warning)
# missing_rail_is_error = true

# Warn when I2C devices are present but no block provides pull-ups
# check_i2c_pullups = false

# Warn when typical draw exceeds this fraction of the available current
# near_capacity_ratio = 0.8

[merge]
# Produce no schematic if any block fails to load
# fail_fast = false

# Title block company and paper size of merged schematics
# company = "PHAESTUS Generated"
# paper = "A4"

[nets]
# Nets present in every composition, in id order
# reserved = ["GND", "V3V3", "VBUS"]
"""


def get_config_paths() -> dict[str, Path | None]:
    """
    Get paths to config files that would be loaded.

    Returns:
        Dict with 'user' and 'project' keys
    """
    project_config = _find_project_config(Path.cwd())

    return {
        "user": USER_CONFIG_PATH if USER_CONFIG_PATH.exists() else None,
        "project": project_config,
    }
