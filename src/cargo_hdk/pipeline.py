"""Sequential pipeline of named external-process steps.

A build is an ordered list of :class:`Step` objects. :func:`run_pipeline`
runs them one at a time and stops at the first step that exits non-zero;
nothing is retried and nothing is rolled back, so artifacts of a failed step
stay on disk for inspection.

Each step's process inherits stdin, stdout and stderr, so compiler output
reaches the terminal unmodified. There is no timeout: a step runs until it
exits or the user interrupts the whole tool.

The process launcher is injectable (``runner=``) so the pipeline can be
exercised without spawning anything.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from cargo_hdk.cmake_args import format_args
from cargo_hdk.exceptions import ToolNotFoundError
from cargo_hdk.output import debug, info

STEP_CONFIGURE = "configure"
STEP_BUILD_PLUGIN = "build-plugin"
STEP_CARGO_BUILD = "cargo-build"
STEP_CARGO_CLEAN = "cargo-clean"


@dataclass(frozen=True)
class Step:
    """One external command in the pipeline.

    Attributes:
        name: Stable identifier used in diagnostics and tests
            (e.g. ``"configure"``).
        description: Human-readable summary printed before the step runs.
        command: Program and arguments, passed to the OS without a shell.
        cwd: Working directory for the process, or ``None`` to inherit.
        env: Full environment for the process, or ``None`` to inherit.
    """

    name: str
    description: str
    command: list[str]
    cwd: Optional[Path] = None
    env: Optional[Mapping[str, str]] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class StepResult:
    """Outcome of running a :class:`Step`."""

    name: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Runner = Callable[[Step], int]
"""Callable that runs a step to completion and returns its exit code."""


def normalize_returncode(returncode: int) -> int:
    """Map a subprocess return code onto a shell-style exit status.

    Processes killed by a signal report ``-N``; shells report ``128 + N``.
    """
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


def run_step(step: Step) -> int:
    """Run *step* with inherited standard streams and return its exit status.

    Raises:
        ToolNotFoundError: If the step's executable does not exist or cannot
            be executed.
    """
    try:
        completed = subprocess.run(step.command, cwd=step.cwd, env=step.env)
    except FileNotFoundError as exc:
        raise ToolNotFoundError(
            f"Could not run '{step.command[0]}' for step '{step.name}': {exc.strerror or exc}. "
            "Is it installed and on PATH?"
        ) from exc
    except PermissionError as exc:
        raise ToolNotFoundError(
            f"Permission denied running '{step.command[0]}' for step '{step.name}'.",
            exit_code=126,
        ) from exc
    return normalize_returncode(completed.returncode)


def run_pipeline(steps: Sequence[Step], runner: Runner = run_step) -> list[StepResult]:
    """Run *steps* in order, stopping after the first failure.

    Args:
        steps: Steps to execute.
        runner: Process launcher. Defaults to :func:`run_step`.

    Returns:
        One :class:`StepResult` per step that ran. If a step failed it is
        the last element; later steps are absent because they never ran.
    """
    results: list[StepResult] = []
    for step in steps:
        info(step.description)
        debug(f"$ {format_args(step.command)}" + (f"  (in {step.cwd})" if step.cwd else ""))
        result = StepResult(name=step.name, returncode=runner(step))
        results.append(result)
        if not result.ok:
            debug(f"Step '{step.name}' exited with {result.returncode}; stopping.")
            break
    return results

