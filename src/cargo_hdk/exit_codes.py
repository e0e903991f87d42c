"""Numeric process exit codes.

Pre-flight failures use the BSD ``sysexits.h`` values so they never collide
with the small exit codes compilers and ``cargo`` commonly return. When an
external build step fails, cargo-hdk exits with that step's own code instead
(see :class:`~cargo_hdk.exceptions.StepFailedError`).

Example::

    $ cargo hdk --cmake '-G Ninja'
    Error: CMake arguments must be surrounded with square brackets ...
    $ echo $?
    64   # EXIT_INVALID_USAGE
"""

EXIT_SUCCESS = 0
"""Every step completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unexpected internal error occurred (a crash log is written)."""

EXIT_INVALID_USAGE = 64
"""The command was invoked with malformed arguments (``EX_USAGE``)."""

EXIT_CONFIG_ERROR = 78
"""Pre-flight configuration failed: no crate root, no Houdini, bad config (``EX_CONFIG``)."""

EXIT_TOOL_NOT_FOUND = 127
"""An external tool (``cmake`` or ``cargo``) could not be executed."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""
