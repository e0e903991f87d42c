"""Exception hierarchy for cargo-hdk.

All exceptions inherit from :class:`CargoHdkError`, which carries an
``exit_code`` attribute. The top-level handler in :func:`cargo_hdk.app.main`
catches ``CargoHdkError`` and exits with that code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    CargoHdkError (exit 1)
    +-- InvalidUsageError   (exit 64)
    +-- ConfigError         (exit 78)
    +-- ToolNotFoundError   (exit 127)
    +-- StepFailedError     (exit = failing subprocess's code)
"""

from __future__ import annotations

from cargo_hdk.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TOOL_NOT_FOUND,
)


class CargoHdkError(Exception):
    """Base exception for all cargo-hdk errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CargoHdkError):
    """Raised for malformed CLI input, such as a ``--cmake`` value without brackets."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(CargoHdkError):
    """Raised when pre-flight resolution fails (crate root, HFS, project config)."""

    exit_code = EXIT_CONFIG_ERROR


class ToolNotFoundError(CargoHdkError):
    """Raised when the executable for a build step cannot be launched."""

    exit_code = EXIT_TOOL_NOT_FOUND


class StepFailedError(CargoHdkError):
    """Raised when an external build step exits with a non-zero status.

    The exception's ``exit_code`` is the subprocess's own return code so that
    the tool's exit status matches the first failing step.

    Args:
        step: Name of the failed pipeline step (e.g. ``"configure"``).
        returncode: The subprocess's non-zero exit code.
        description: Human-readable description of the step.
    """

    def __init__(self, step: str, returncode: int, description: str = ""):
        what = description or step
        super().__init__(
            f"{what} failed (step '{step}', exit code {returncode}).",
            exit_code=returncode,
        )
        self.step = step
        self.returncode = returncode
