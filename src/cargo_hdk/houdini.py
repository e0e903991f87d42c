"""Houdini installation discovery and the environment handed to build steps.

The plugin's ``CMakeLists.txt`` locates the HDK through ``$ENV{HFS}``, and
``hserver`` may need to verify the license while the plugin builds, so each
child process gets ``HFS`` set and ``$HFS/bin`` on its ``PATH``. The
orchestrator's own ``os.environ`` is left untouched.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Optional

from cargo_hdk.exceptions import ConfigError
from cargo_hdk.output import debug

HFS_ENV_VAR = "HFS"

KNOWN_VERSIONS = ("20.5", "20.0", "19.5", "19.0", "18.5", "18.0", "17.5", "17.0")
"""Houdini versions probed under ``/opt`` when ``HFS`` is not set, newest first."""


def candidate_paths(versions: Iterable[str] = KNOWN_VERSIONS) -> list[Path]:
    """Typical Linux install locations (``/opt/hfs<version>``), newest first."""
    return [Path(f"/opt/hfs{version}") for version in versions]


def find_hfs(
    environ: Optional[Mapping[str, str]] = None,
    candidates: Optional[Iterable[Path]] = None,
) -> Path:
    """Locate the Houdini installation directory.

    Args:
        environ: Environment to read ``HFS`` from. Defaults to ``os.environ``.
        candidates: Directories to probe when ``HFS`` is unset. Defaults to
            :func:`candidate_paths`.

    Returns:
        The Houdini install root.

    Raises:
        ConfigError: If ``HFS`` is unset and no candidate directory exists.
    """
    env = os.environ if environ is None else environ
    hfs = env.get(HFS_ENV_VAR)
    if hfs:
        debug(f"Using Houdini installation from ${HFS_ENV_VAR}: {hfs}")
        return Path(hfs)

    for path in candidate_paths() if candidates is None else candidates:
        debug(f"Looking for a Houdini installation at {path}")
        if path.is_dir():
            debug(f"Using Houdini installation path {path}")
            return path

    raise ConfigError(
        "Couldn't find HFS. Please source 'houdini_setup' from Houdini's installation "
        "directory or set the 'HFS' environment variable to the Houdini installation path."
    )


def build_environment(hfs: Path, environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Return a copy of *environ* prepared for the build steps.

    ``HFS`` is set to *hfs* and ``$HFS/bin`` is appended to ``PATH`` unless it
    is already listed.
    """
    env = dict(os.environ if environ is None else environ)
    env[HFS_ENV_VAR] = str(hfs)

    hfs_bin = str(hfs / "bin")
    paths = [p for p in env.get("PATH", "").split(os.pathsep) if p]
    if hfs_bin not in paths:
        paths.append(hfs_bin)
    env["PATH"] = os.pathsep.join(paths)
    return env
