"""Build-directory lifecycle and generator-cache probing.

The CMake build directory is the only state cargo-hdk keeps between runs,
and it never writes a marker of its own there. Whether a previous configure
step ran (and with which generator) is read from CMake's own
``CMakeCache.txt`` every time it is needed, so the answer always reflects
what is on disk right now.

A cache counts as valid only when it records a ``CMAKE_GENERATOR`` entry.
A configure step that was interrupted before CMake picked a generator leaves
a cache without one, and the next run configures again instead of handing
``cmake --build`` a half-written tree.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Optional

from cargo_hdk.exceptions import ConfigError
from cargo_hdk.output import debug, trace

CMAKE_CACHE_FILE_NAME = "CMakeCache.txt"
CMAKE_GENERATOR_KEY = "CMAKE_GENERATOR"

# KEY:TYPE=VALUE, where TYPE is optional.
_CACHE_ENTRY_RE = re.compile(r"^(?P<key>[^:=#/][^:=]*)(?::(?P<type>[^=]*))?=(?P<value>.*)$")


def ensure_build_dir(build_dir: Path) -> None:
    """Create *build_dir* (and missing parents) if it does not exist yet.

    Raises:
        ConfigError: If the directory cannot be created, e.g. because a file
            with the same name is in the way.
    """
    try:
        build_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Failed to create build directory {build_dir}: {exc}") from exc


def clean_build_dir(build_dir: Path) -> bool:
    """Remove *build_dir* and everything in it.

    Returns:
        ``True`` if a directory was removed, ``False`` if there was nothing
        to clean.

    Raises:
        ConfigError: If the directory exists but cannot be removed.
    """
    if not build_dir.exists():
        debug(f"Nothing to clean at {build_dir}")
        return False
    try:
        shutil.rmtree(build_dir)
    except OSError as exc:
        raise ConfigError(
            f"Failed to remove HDK build artifacts located in {build_dir}: {exc}"
        ) from exc
    return True


def read_cmake_cache(build_dir: Path) -> dict[str, str]:
    """Parse ``CMakeCache.txt`` in *build_dir* into a ``{key: value}`` dict.

    Comment lines (``#`` and ``//``) and blank lines are skipped. A missing
    or unreadable cache yields an empty dict.
    """
    cache_path = build_dir / CMAKE_CACHE_FILE_NAME
    if not cache_path.is_file():
        return {}
    entries: dict[str, str] = {}
    try:
        with cache_path.open("r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                line = line.rstrip("\r\n")
                if not line or line.startswith(("#", "//")):
                    continue
                match = _CACHE_ENTRY_RE.match(line)
                if match:
                    entries[match.group("key").strip()] = match.group("value")
    except OSError as exc:
        debug(f"Could not read {cache_path}: {exc}")
        return {}
    trace(f"Read {len(entries)} entries from {cache_path}")
    return entries


def cached_generator(build_dir: Path) -> Optional[str]:
    """Return the CMake generator recorded in *build_dir*'s cache, if any."""
    generator = read_cmake_cache(build_dir).get(CMAKE_GENERATOR_KEY, "").strip()
    return generator or None


def is_configured(build_dir: Path) -> bool:
    """Return ``True`` if a previous configure step left a usable cache in *build_dir*."""
    return cached_generator(build_dir) is not None
