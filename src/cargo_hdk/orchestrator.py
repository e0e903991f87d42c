"""Plans and runs the HDK plugin build.

A normal run is a pipeline of up to three steps::

    configure     cmake -S <plugin dir> -B <build dir> [args] -DCMAKE_BUILD_TYPE=<mode>
    build-plugin  cmake --build <build dir> --config <mode>
    cargo-build   cargo build [--release] [build args]

``configure`` is only planned when the build directory holds no usable CMake
cache or when the user passed ``--cmake`` on this run; otherwise CMake's
cached generator is reused. ``cargo-build`` is skipped with ``--hdk-only``.

``--clean`` runs ``cargo clean`` (unless ``--hdk-only``) and then deletes the
mode-specific build directory, so the next build configures from scratch.

All pre-flight checks (crate root, plugin directory, ``CMakeLists.txt``,
Houdini installation) happen before the first process is spawned.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from cargo_hdk.builddir import cached_generator, clean_build_dir, ensure_build_dir, is_configured
from cargo_hdk.cmake_args import requested_generator
from cargo_hdk.config import resolve_config
from cargo_hdk.exceptions import ConfigError, StepFailedError
from cargo_hdk.houdini import build_environment, find_hfs
from cargo_hdk.models import BuildLayout
from cargo_hdk.output import debug, info, success, suggest, warning
from cargo_hdk.pipeline import (
    STEP_BUILD_PLUGIN,
    STEP_CARGO_BUILD,
    STEP_CARGO_CLEAN,
    STEP_CONFIGURE,
    Runner,
    Step,
    StepResult,
    run_pipeline,
    run_step,
)

CMAKE = "cmake"
SUBCOMMAND_NAME = "hdk"
CARGO_RELEASE_FLAGS = ("-r", "--release")


@dataclass
class BuildRequest:
    """Everything the user asked for on the command line.

    Attributes:
        release: Build in Release mode instead of Debug.
        hdk_only: Skip the cargo step.
        clean: Remove build artifacts instead of building.
        cmake_args: Arguments from ``--cmake``, or ``None`` when the option
            was not given. Any non-``None`` value forces a configure step.
        hdk_path: ``--hdk-path`` override, or ``None``.
        build_args: Trailing arguments forwarded to cargo.
    """

    release: bool = False
    hdk_only: bool = False
    clean: bool = False
    cmake_args: Optional[list[str]] = None
    hdk_path: Optional[str] = None
    build_args: list[str] = field(default_factory=list)


def strip_subcommand_name(args: Sequence[str]) -> list[str]:
    """Drop the leading ``hdk`` token cargo passes when run as ``cargo hdk``."""
    if args and args[0] == SUBCOMMAND_NAME:
        return list(args[1:])
    return list(args)


def take_release_flag(args: Sequence[str]) -> tuple[bool, list[str]]:
    """Remove cargo's ``-r``/``--release`` from *args*.

    Cargo selects a release profile from either spelling, and the plugin
    must be configured in the same mode, so the flag is folded into
    ``--release`` and re-added once by :attr:`BuildMode.cargo_flags`.
    Tokens after a ``--`` separator belong to the built program and are
    left alone.

    Returns:
        ``(found, remaining_args)``.
    """
    args = list(args)
    end = args.index("--") if "--" in args else len(args)
    head = [arg for arg in args[:end] if arg not in CARGO_RELEASE_FLAGS]
    return len(head) != end, head + args[end:]


def cargo_executable(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the cargo binary: ``$CARGO`` when cargo launched us, else ``cargo``."""
    env = os.environ if environ is None else environ
    return env.get("CARGO") or "cargo"


def needs_configure(build_dir: Path, explicit_cmake_args: Optional[list[str]]) -> bool:
    """Decide whether the configure step must run.

    It must run when the user supplied ``--cmake`` this time, or when
    *build_dir* has no CMake cache recording a generator.
    """
    if explicit_cmake_args is not None:
        return True
    return not is_configured(build_dir)


# ------------------------------------------------------------------ #
# Step construction
# ------------------------------------------------------------------ #


def configure_step(
    layout: BuildLayout, cmake_args: Sequence[str], env: Optional[Mapping[str, str]] = None
) -> Step:
    return Step(
        name=STEP_CONFIGURE,
        description="Configuring CMake.",
        command=[
            CMAKE,
            "-S", str(layout.plugin_dir),
            "-B", str(layout.build_dir),
            *cmake_args,
            f"-DCMAKE_BUILD_TYPE={layout.mode.value}",
        ],
        cwd=layout.build_dir,
        env=env,
    )


def build_plugin_step(layout: BuildLayout, env: Optional[Mapping[str, str]] = None) -> Step:
    # --config only matters for multi-config generators (Visual Studio, Xcode).
    return Step(
        name=STEP_BUILD_PLUGIN,
        description="Building the C/C++ HDK plugin.",
        command=[CMAKE, "--build", str(layout.build_dir), "--config", layout.mode.value],
        cwd=layout.build_dir,
        env=env,
    )


def cargo_step(
    name: str,
    subcommand: str,
    layout: BuildLayout,
    build_args: Sequence[str],
    cargo: str,
    env: Optional[Mapping[str, str]] = None,
) -> Step:
    return Step(
        name=name,
        description=f"Running 'cargo {subcommand}' for the Rust crate.",
        command=[cargo, subcommand, *layout.mode.cargo_flags, *build_args],
        cwd=layout.crate_root,
        env=env,
    )


def plan_build(
    layout: BuildLayout,
    *,
    configure: bool,
    cmake_args: Sequence[str],
    hdk_only: bool,
    build_args: Sequence[str],
    cargo: str,
    env: Optional[Mapping[str, str]] = None,
) -> list[Step]:
    """Return the ordered build steps for *layout*."""
    steps: list[Step] = []
    if configure:
        steps.append(configure_step(layout, cmake_args, env))
    steps.append(build_plugin_step(layout, env))
    if not hdk_only:
        steps.append(cargo_step(STEP_CARGO_BUILD, "build", layout, build_args, cargo, env))
    return steps


def plan_clean(
    layout: BuildLayout, *, hdk_only: bool, build_args: Sequence[str], cargo: str
) -> list[Step]:
    """Return the external steps of a clean (the directory removal is not a process)."""
    if hdk_only:
        return []
    return [cargo_step(STEP_CARGO_CLEAN, "clean", layout, build_args, cargo)]


# ------------------------------------------------------------------ #
# Execution
# ------------------------------------------------------------------ #


def _raise_for_failure(steps: Sequence[Step], results: Sequence[StepResult]) -> None:
    if results and not results[-1].ok:
        failed = results[-1]
        step = next(s for s in steps if s.name == failed.name)
        raise StepFailedError(failed.name, failed.returncode, step.description.rstrip("."))


def clean(
    request: BuildRequest,
    layout: BuildLayout,
    *,
    runner: Runner = run_step,
    environ: Optional[Mapping[str, str]] = None,
) -> None:
    """Run ``cargo clean`` (unless ``hdk_only``) and delete the build directory.

    Raises:
        StepFailedError: If ``cargo clean`` fails; the build directory is
            then left in place.
        ConfigError: If the build directory cannot be removed.
    """
    steps = plan_clean(
        layout,
        hdk_only=request.hdk_only,
        build_args=request.build_args,
        cargo=cargo_executable(environ),
    )
    results = run_pipeline(steps, runner)
    _raise_for_failure(steps, results)

    info(f"Removing HDK build artifacts in {layout.build_dir}.")
    if clean_build_dir(layout.build_dir):
        success(f"Removed {layout.build_dir}")


def build(
    request: BuildRequest,
    layout: BuildLayout,
    *,
    default_cmake_args: Sequence[str] = (),
    runner: Runner = run_step,
    environ: Optional[Mapping[str, str]] = None,
) -> list[StepResult]:
    """Configure (if needed) and build the plugin, then run ``cargo build``.

    Args:
        request: The parsed command line.
        layout: Resolved paths and mode.
        default_cmake_args: Configure arguments from the environment or
            project config, used when ``--cmake`` was not given.
        runner: Process launcher for the pipeline.
        environ: Base environment for the child processes.

    Returns:
        The results of every step that ran (all successful).

    Raises:
        ConfigError: If ``CMakeLists.txt`` or the Houdini installation is
            missing, or the build directory cannot be created.
        StepFailedError: If any step exits non-zero.
    """
    cmake_lists = layout.plugin_dir / "CMakeLists.txt"
    if not cmake_lists.is_file():
        raise ConfigError(f"No CMakeLists.txt found in HDK plugin directory {layout.plugin_dir}")

    info("Looking for a Houdini installation.")
    hfs = find_hfs(environ)
    env = build_environment(hfs, environ)

    debug(f"Creating the build directory: {layout.build_dir}")
    ensure_build_dir(layout.build_dir)

    configure = needs_configure(layout.build_dir, request.cmake_args)
    cmake_args = list(default_cmake_args) if request.cmake_args is None else request.cmake_args
    previous = cached_generator(layout.build_dir)
    if not configure:
        info(f"Reusing cached CMake generator '{previous}' in {layout.build_dir}.")
    elif previous is not None:
        wanted = requested_generator(cmake_args)
        if wanted is not None and wanted != previous:
            warning(
                f"Build directory was configured with generator '{previous}' but "
                f"'{wanted}' was requested; CMake will refuse to switch generators."
            )
            suggest("Run with --clean first to start from a fresh build directory.")

    steps = plan_build(
        layout,
        configure=configure,
        cmake_args=cmake_args,
        hdk_only=request.hdk_only,
        build_args=request.build_args,
        cargo=cargo_executable(environ),
        env=env,
    )
    results = run_pipeline(steps, runner)
    _raise_for_failure(steps, results)
    success(f"HDK plugin built in {layout.build_dir} ({layout.mode.value}).")
    return results


def run(
    request: BuildRequest,
    *,
    runner: Runner = run_step,
    environ: Optional[Mapping[str, str]] = None,
    start: Optional[Path] = None,
) -> None:
    """Resolve configuration and perform the requested clean or build.

    Args:
        request: The parsed command line.
        runner: Process launcher for the pipeline.
        environ: Base environment. Defaults to ``os.environ``.
        start: Directory to start the crate root search from.

    Raises:
        CargoHdkError: On any pre-flight or step failure.
    """
    info("Looking for a parent directory containing the `Cargo.toml` manifest file.")
    config, layout = resolve_config(request.hdk_path, request.release, start)
    debug(f"Crate root: {layout.crate_root}")
    debug(f"HDK plugin directory: {layout.plugin_dir}")
    debug(f"Build type: {layout.mode.value} -> {layout.build_dir}")

    if request.clean:
        clean(request, layout, runner=runner, environ=environ)
        return
    build(
        request,
        layout,
        default_cmake_args=config.cmake_args,
        runner=runner,
        environ=environ,
    )
