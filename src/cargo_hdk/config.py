"""Crate-root discovery, project-local config, and precedence resolution.

This module turns "where am I and what did the user ask for" into a
:class:`~cargo_hdk.models.BuildLayout`:

* **Crate root** -- :func:`find_crate_root` walks up from the current
  directory to the first directory holding a ``Cargo.toml`` file. Cargo does
  not tell subcommands where the manifest lives.
* **Project config** -- an optional ``.cargo-hdk.json`` in the crate root,
  validated into a :class:`~cargo_hdk.models.HdkConfig`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the project config.
* **Data directory** -- XDG-aware location for crash logs
  (:func:`get_data_dir`).
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from cargo_hdk.cmake_args import parse_bracket_args
from cargo_hdk.exceptions import ConfigError
from cargo_hdk.models import BuildLayout, BuildMode, HdkConfig

_APP_NAME = "cargo-hdk"
_MANIFEST_FILENAME = "Cargo.toml"
_PROJECT_CONFIG_FILENAME = ".cargo-hdk.json"

ENV_HDK_PATH = "CARGO_HDK_PATH"
ENV_CMAKE_ARGS = "CARGO_HDK_CMAKE_ARGS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cargo-hdk/`` (default
    ``~/.local/share/cargo-hdk/``). On macOS/Windows: ``~/.cargo-hdk/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Crate root ---


def find_crate_root(start: Optional[Path] = None) -> Path:
    """Find the nearest directory at or above *start* containing ``Cargo.toml``.

    Args:
        start: Directory to begin the search from. Defaults to the current
            working directory.

    Returns:
        Absolute path of the crate root.

    Raises:
        ConfigError: If no ancestor directory holds a ``Cargo.toml`` file.
    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if (candidate / _MANIFEST_FILENAME).is_file():
            return candidate
    raise ConfigError(
        f"Couldn't find `{_MANIFEST_FILENAME}` in {origin} or any parent directory."
    )


# --- Project-local config ---


def load_project_config(crate_root: Path) -> HdkConfig:
    """Load ``.cargo-hdk.json`` from *crate_root*.

    Returns:
        The validated :class:`~cargo_hdk.models.HdkConfig`, or a default
        instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = crate_root / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return HdkConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return HdkConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc


# --- Precedence resolution ---


def resolve_config(
    cli_hdk_path: Optional[str] = None,
    release: bool = False,
    start: Optional[Path] = None,
) -> tuple[HdkConfig, BuildLayout]:
    """Resolve the effective configuration and build layout.

    Precedence (high to low):
        1. CLI flags (``--hdk-path``)
        2. Environment variables (``CARGO_HDK_PATH``, ``CARGO_HDK_CMAKE_ARGS``)
        3. Project config (``<crate root>/.cargo-hdk.json``)
        4. Defaults (``hdk``, no CMake arguments)

    ``--cmake`` is not part of this chain: an explicit
    ``--cmake`` also forces a reconfigure, which the orchestrator decides.

    Args:
        cli_hdk_path: Value of ``--hdk-path``, or ``None``.
        release: Whether ``--release`` was passed.
        start: Directory to start the crate root search from.

    Returns:
        A tuple of ``(effective_config, layout)``.

    Raises:
        ConfigError: If the crate root or plugin directory cannot be found,
            or the project config is invalid.
        InvalidUsageError: If ``CARGO_HDK_CMAKE_ARGS`` is malformed.
    """
    crate_root = find_crate_root(start)
    config = load_project_config(crate_root)

    env_hdk_path = os.environ.get(ENV_HDK_PATH)
    if env_hdk_path:
        config = config.model_copy(update={"hdk_path": env_hdk_path})
    env_cmake = os.environ.get(ENV_CMAKE_ARGS)
    if env_cmake:
        config = config.model_copy(
            update={"cmake_args": parse_bracket_args(env_cmake, option=ENV_CMAKE_ARGS)}
        )
    if cli_hdk_path is not None:
        config = config.model_copy(update={"hdk_path": cli_hdk_path})

    plugin_dir = (crate_root / config.hdk_path).resolve()
    if not plugin_dir.is_dir():
        raise ConfigError(f"HDK plugin directory not found: {plugin_dir}")

    layout = BuildLayout(
        crate_root=crate_root,
        plugin_dir=plugin_dir,
        mode=BuildMode.from_flag(release),
    )
    return config, layout
