"""Shared test fixtures for cargo-hdk.

Provides an on-disk crate tree, an isolated environment (XDG dirs, HFS,
``CARGO_HDK_*`` variables), output state management, and a recording step
runner that stands in for ``cmake`` and ``cargo``. These fixtures are
automatically discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from cargo_hdk.cmake_args import requested_generator
from cargo_hdk.models import Verbosity
from cargo_hdk.output import OutputManager, reset_output, set_output
from cargo_hdk.pipeline import STEP_CONFIGURE, Step


CMAKE_LISTS = """\
cmake_minimum_required( VERSION 3.6 )
project( Test )
list( APPEND CMAKE_PREFIX_PATH "$ENV{HFS}/toolkit/cmake" )
find_package( Houdini REQUIRED )
add_library( test SHARED src/SOP_Test.C )
target_link_libraries( test PUBLIC Houdini )
"""


def write_cmake_cache(build_dir: Path, generator: Optional[str] = "Unix Makefiles") -> Path:
    """Write a minimal ``CMakeCache.txt`` the way CMake lays one out."""
    build_dir.mkdir(parents=True, exist_ok=True)
    lines = [
        "# This is the CMakeCache file.",
        "# For build in directory: " + str(build_dir),
        "",
        "//Choose the type of build.",
        "CMAKE_BUILD_TYPE:STRING=Debug",
        "",
    ]
    if generator is not None:
        lines += ["//Name of generator.", f"CMAKE_GENERATOR:INTERNAL={generator}"]
    path = build_dir / "CMakeCache.txt"
    path.write_text("\n".join(lines) + "\n")
    return path


class RecordingRunner:
    """Step runner that records every step instead of spawning processes.

    Args:
        returncodes: Exit code per step name; unlisted steps succeed.
        simulate_cmake: When ``True``, a successful ``configure`` step writes
            a ``CMakeCache.txt`` into the build directory like CMake would.
    """

    def __init__(
        self,
        returncodes: Optional[dict[str, int]] = None,
        simulate_cmake: bool = True,
    ) -> None:
        self.returncodes = returncodes or {}
        self.simulate_cmake = simulate_cmake
        self.steps: list[Step] = []

    def __call__(self, step: Step) -> int:
        self.steps.append(step)
        code = self.returncodes.get(step.name, 0)
        if code == 0 and self.simulate_cmake and step.name == STEP_CONFIGURE:
            build_dir = Path(step.command[step.command.index("-B") + 1])
            write_cmake_cache(build_dir, requested_generator(step.command) or "Unix Makefiles")
        return code

    @property
    def names(self) -> list[str]:
        return [step.name for step in self.steps]

    def command(self, name: str) -> list[str]:
        return next(step.command for step in self.steps if step.name == name)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches a Rich console bound to sys.stderr at creation
    time. When CliRunner or capsys swaps that stream the cached reference
    goes stale, so a fresh manager is created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_DATA_HOME into tmp_path and clear cargo-hdk related variables."""
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["CARGO_HDK_PATH", "CARGO_HDK_CMAKE_ARGS", "CARGO", "HFS", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def hfs(isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A fake Houdini installation exported through ``$HFS``."""
    path = isolated_env / "opt" / "hfs20.5"
    (path / "bin").mkdir(parents=True)
    (path / "toolkit" / "cmake").mkdir(parents=True)
    monkeypatch.setenv("HFS", str(path))
    return path


@pytest.fixture
def crate(isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A crate with an HDK plugin directory; the working directory is its root."""
    root = isolated_env / "my-sop"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "my-sop"\nversion = "0.1.0"\n')
    (root / "src" / "lib.rs").write_text("")
    plugin = root / "hdk"
    (plugin / "src").mkdir(parents=True)
    (plugin / "CMakeLists.txt").write_text(CMAKE_LISTS)
    (plugin / "src" / "SOP_Test.C").write_text("// SOP\n")
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def runner() -> RecordingRunner:
    """A recording step runner where every step succeeds."""
    return RecordingRunner()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a plain-text OutputManager at TRACE level."""
    output = OutputManager(verbosity=Verbosity.TRACE, no_color=True)
    set_output(output)
    yield output
    reset_output()
