"""Pydantic models and enums shared across cargo-hdk modules.

The models fall into two groups:

**Run parameters** -- chosen once per invocation and immutable afterwards:
    :class:`BuildMode`, :class:`Verbosity`, and :class:`BuildLayout`.

**Configuration models** -- deserialised from the project-local
``.cargo-hdk.json`` file in the crate root:
    :class:`HdkConfig`.
"""

from __future__ import annotations

import enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


# --- Run parameters ---


class BuildMode(str, enum.Enum):
    """Build configuration for both the CMake plugin build and ``cargo build``.

    The enum value is the string passed to CMake as ``CMAKE_BUILD_TYPE``.
    """

    DEBUG = "Debug"
    RELEASE = "Release"

    @classmethod
    def from_flag(cls, release: bool) -> "BuildMode":
        """Return :attr:`RELEASE` when *release* is set, :attr:`DEBUG` otherwise."""
        return cls.RELEASE if release else cls.DEBUG

    @property
    def build_dir_name(self) -> str:
        """Name of the mode-specific build directory inside the plugin directory."""
        return "build" if self is BuildMode.RELEASE else "build_debug"

    @property
    def cargo_flags(self) -> list[str]:
        """Flags that select this mode on the ``cargo build`` command line."""
        return ["--release"] if self is BuildMode.RELEASE else []


class Verbosity(enum.IntEnum):
    """Diagnostic verbosity, ordered from silent to most detailed.

    Maps the ``-q`` / ``-v`` flags onto levels: ``-q`` is :attr:`OFF`, no
    flag is :attr:`ERROR`, and each ``-v`` raises the level by one up to
    :attr:`TRACE` at ``-vvvv``.
    """

    OFF = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5

    @classmethod
    def from_flags(cls, quiet: bool = False, verbose: int = 0) -> "Verbosity":
        if quiet:
            return cls.OFF
        return cls(min(cls.ERROR + max(verbose, 0), cls.TRACE))


class BuildLayout(BaseModel):
    """Resolved filesystem layout for one invocation.

    ``build_dir`` is derived from ``plugin_dir`` and ``mode`` alone, so two
    layouts with the same plugin directory and mode always agree on where
    artifacts live.

    Example::

        layout = BuildLayout(
            crate_root=Path("/work/my-sop"),
            plugin_dir=Path("/work/my-sop/hdk"),
            mode=BuildMode.RELEASE,
        )
        layout.build_dir  # Path("/work/my-sop/hdk/build")
    """

    model_config = ConfigDict(frozen=True)

    crate_root: Path = Field(description="Directory containing the crate's Cargo.toml.")
    plugin_dir: Path = Field(description="Directory holding the HDK CMakeLists.txt and sources.")
    mode: BuildMode = Field(default=BuildMode.DEBUG, description="Selected build mode.")

    @property
    def build_dir(self) -> Path:
        """Mode-specific CMake build directory."""
        return self.plugin_dir / self.mode.build_dir_name


# --- Project config ---


class HdkConfig(BaseModel):
    """Project-local settings read from ``<crate root>/.cargo-hdk.json``.

    Both fields are optional; command-line flags and environment variables
    take precedence over them (see :func:`cargo_hdk.config.resolve_config`).

    Example file::

        {
            "hdk_path": "plugin",
            "cmake_args": ["-G", "Ninja"]
        }
    """

    model_config = ConfigDict(extra="forbid")

    hdk_path: str = Field(
        default="hdk",
        description="Plugin directory relative to the crate root.",
    )
    cmake_args: list[str] = Field(
        default_factory=list,
        description="Arguments appended to the CMake configure step.",
    )
