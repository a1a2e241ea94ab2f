"""Configuration for shellsearch."""

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from shellsearch.data.volumes import MOUNTINFO_PATH

PERSIST_ENV = "SHELLSEARCH_PERSIST"


def _xdg_dir(env_name: str, fallback: Path) -> Path:
    value = os.environ.get(env_name, "")
    return Path(value) if value else fallback


def _default_socket_path() -> Path:
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR", "")
    if runtime_dir:
        return Path(runtime_dir) / "shellsearch.sock"
    return Path(tempfile.gettempdir()) / f"shellsearch-{os.getuid()}.sock"


@dataclass(frozen=True)
class Config:
    """Service configuration."""

    socket_path: Path = field(default_factory=_default_socket_path)
    search_location: Path = field(default_factory=Path.home)
    bookmarks_path: Path = field(
        default_factory=lambda: _xdg_dir("XDG_CONFIG_HOME", Path.home() / ".config")
        / "gtk-3.0"
        / "bookmarks"
    )
    thumbnails_dir: Path = field(
        default_factory=lambda: _xdg_dir("XDG_CACHE_HOME", Path.home() / ".cache") / "thumbnails"
    )
    mountinfo_path: Path = MOUNTINFO_PATH
    inactivity_timeout: float = 12.0
    persist: bool = False
    icon_size: int = 128
    locate_command: tuple[str, ...] = ("locate",)
    max_results: int = 500

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "Config":
        """Build a config, enabling persist mode when the toggle variable is set."""
        env = os.environ if environ is None else environ
        config = cls(**overrides)
        if PERSIST_ENV in env:
            config = replace(config, persist=True)
        return config
