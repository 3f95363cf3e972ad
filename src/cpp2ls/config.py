"""Configuration management for cpp2ls.

Settings are loaded from three sources in order of priority:
1. Environment variables (highest priority)
2. Project-level config: <workspace>/.cpp2ls/config.toml
3. Global config: ~/.config/cpp2ls/config.toml (lowest priority)
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console

from cpp2ls.exceptions import ConfigError

console = Console(stderr=True)

_GLOBAL_CONFIG_DIR = Path.home() / ".config" / "cpp2ls"
_GLOBAL_CONFIG_PATH = _GLOBAL_CONFIG_DIR / "config.toml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ServerConfig:
    """cpp2ls configuration.

    Attributes:
        workspace_root: Root directory of the workspace being served.
        cache_dir: Index cache directory, relative to the workspace root.
        cache_enabled: If False, the index is never read from or written to disk.
        source_extensions: File extensions recognized as Cpp2 sources.
        header_extension: Extension appended to extension-less include names.
        log_level: Console verbosity (DEBUG, INFO, WARNING, ERROR).
    """

    workspace_root: Path = field(default_factory=Path.cwd)
    cache_dir: Path = field(default_factory=lambda: Path(".cache") / "cpp2ls")
    cache_enabled: bool = True
    source_extensions: tuple[str, ...] = (".cpp2", ".h2")
    header_extension: str = ".h2"
    log_level: str = "INFO"

    @property
    def cache_path(self) -> Path:
        """Absolute path of the index cache file."""
        return self.workspace_root / self.cache_dir / "index.json"

    @property
    def verbose(self) -> bool:
        """True when per-request trace output is wanted."""
        return self.log_level == "DEBUG"


def load_config(workspace_root: Path) -> ServerConfig:
    """Load configuration from env vars, project config, and global config.

    Priority: env vars > .cpp2ls/config.toml > ~/.config/cpp2ls/config.toml

    Args:
        workspace_root: Root directory of the workspace.

    Returns:
        A fully resolved ServerConfig instance.

    Raises:
        ConfigError: If a setting holds an invalid value.
    """
    config = ServerConfig(workspace_root=workspace_root.resolve())

    # Layer 1: Global config (lowest priority)
    _apply_toml(config, _load_toml(_GLOBAL_CONFIG_PATH))

    # Layer 2: Project config
    _apply_toml(config, _load_toml(config.workspace_root / ".cpp2ls" / "config.toml"))

    # Layer 3: Environment variables (highest priority)
    _apply_env(config)

    _validate(config)
    return config


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file, returning an empty dict if missing or invalid."""
    if not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, OSError) as exc:
        console.print(f"[yellow]Warning:[/yellow] Could not parse {path}: {exc}")
        return {}


def _apply_toml(config: ServerConfig, settings: dict[str, Any]) -> None:
    """Merge TOML settings into a ServerConfig."""
    if "cache_dir" in settings:
        config.cache_dir = Path(str(settings["cache_dir"]))
    if "cache_enabled" in settings:
        config.cache_enabled = bool(settings["cache_enabled"])
    if "source_extensions" in settings:
        raw = settings["source_extensions"]
        if not isinstance(raw, list):
            raise ConfigError("source_extensions must be a list of strings")
        config.source_extensions = tuple(_normalize_extension(str(ext)) for ext in raw)
    if "header_extension" in settings:
        config.header_extension = _normalize_extension(str(settings["header_extension"]))
    if "log_level" in settings:
        config.log_level = str(settings["log_level"]).upper()


def _apply_env(config: ServerConfig) -> None:
    """Override config with environment variables where set."""
    if cache_dir := os.environ.get("CPP2LS_CACHE_DIR"):
        config.cache_dir = Path(cache_dir)
    if cache_enabled := os.environ.get("CPP2LS_CACHE_ENABLED"):
        config.cache_enabled = cache_enabled.lower() in ("true", "1", "yes")
    if extensions := os.environ.get("CPP2LS_SOURCE_EXTENSIONS"):
        config.source_extensions = tuple(
            _normalize_extension(ext) for ext in extensions.split(",") if ext.strip()
        )
    if header_ext := os.environ.get("CPP2LS_HEADER_EXTENSION"):
        config.header_extension = _normalize_extension(header_ext)
    if log_level := os.environ.get("CPP2LS_LOG_LEVEL"):
        config.log_level = log_level.upper()


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def _validate(config: ServerConfig) -> None:
    """Reject settings the rest of the server cannot work with."""
    if config.log_level not in _LOG_LEVELS:
        raise ConfigError(
            f"Invalid log_level '{config.log_level}'. Valid: {', '.join(_LOG_LEVELS)}"
        )
    if not config.source_extensions:
        raise ConfigError("At least one source extension must be configured")
    if not config.header_extension:
        raise ConfigError("header_extension must not be empty")
