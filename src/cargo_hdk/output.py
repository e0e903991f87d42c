"""Diagnostic output with verbosity levels and stderr discipline.

cargo-hdk never writes to stdout itself: the build tools it launches inherit
stdout and stderr, and everything the orchestrator has to say (progress,
warnings, the name of a failed step) goes to stderr. Colour follows
`clig.dev <https://clig.dev/>`_ conventions and respects ``NO_COLOR``,
``TERM=dumb``, and the ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding the verbosity level
   and a Rich stderr console. Created once in :func:`~cargo_hdk.app.hdk`
   and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager`` so
   callers do not need to pass the manager around.

Each message kind has a minimum :class:`~cargo_hdk.models.Verbosity`:

========== ===============
message    shown from
========== ===============
error      ``ERROR`` (default)
warning    ``WARN``  (``-v``)
info       ``INFO``  (``-vv``)
success    ``INFO``
suggest    ``INFO``
debug      ``DEBUG`` (``-vvv``)
trace      ``TRACE`` (``-vvvv``)
========== ===============
"""

from __future__ import annotations

import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

from cargo_hdk.models import Verbosity


class OutputManager:
    """Central manager for diagnostic output on stderr.

    Args:
        verbosity: Minimum level a message needs to be printed.
        no_color: Disable all colour and Rich markup.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.ERROR,
        no_color: bool = False,
    ) -> None:
        self._verbosity = verbosity
        self._no_color = no_color or _should_disable_color()
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
            highlight=False,
            soft_wrap=True,
        )

    @property
    def verbosity(self) -> Verbosity:
        """The active verbosity level."""
        return self._verbosity

    @property
    def is_quiet(self) -> bool:
        """Whether all output is suppressed (``-q``)."""
        return self._verbosity == Verbosity.OFF

    def enabled(self, level: Verbosity) -> bool:
        """Return ``True`` if messages at *level* are printed."""
        return level != Verbosity.OFF and self._verbosity >= level

    def error(self, message: str) -> None:
        """Print a bold-red error. Only ``-q`` suppresses it.

        Args:
            message: The error text.
        """
        self._emit(Verbosity.ERROR, "Error: ", "[bold red]Error:[/bold red] ", message)

    def warning(self, message: str) -> None:
        """Print a yellow warning. Shown from ``-v``.

        Args:
            message: The warning text.
        """
        self._emit(Verbosity.WARN, "Warning: ", "[yellow]Warning:[/yellow] ", message)

    def info(self, message: str) -> None:
        """Print an informational message. Shown from ``-vv``.

        Args:
            message: The message text.
        """
        self._emit(Verbosity.INFO, "", "", message)

    def success(self, message: str) -> None:
        """Print a green success message. Shown from ``-vv``."""
        self._emit(Verbosity.INFO, "", "", message, style="green")

    def suggest(self, message: str) -> None:
        """Print a dimmed hint such as ``→ Run with --clean``. Shown from ``-vv``."""
        self._emit(Verbosity.INFO, "→ ", "→ ", message, style="dim")

    def debug(self, message: str) -> None:
        """Print a debug message prefixed with ``[debug]``. Shown from ``-vvv``."""
        self._emit(Verbosity.DEBUG, "[debug] ", "[dim]\\[debug][/dim] ", message)

    def trace(self, message: str) -> None:
        """Print a trace message prefixed with ``[trace]``. Shown at ``-vvvv``."""
        self._emit(Verbosity.TRACE, "[trace] ", "[dim]\\[trace][/dim] ", message)

    def _emit(
        self,
        level: Verbosity,
        plain_prefix: str,
        rich_prefix: str,
        message: str,
        style: Optional[str] = None,
    ) -> None:
        if not self.enabled(level):
            return
        if self._no_color:
            print(f"{plain_prefix}{message}", file=sys.stderr, flush=True)
            return
        # Messages routinely contain "[-G Ninja]"-style text; never treat it as markup.
        text = f"{rich_prefix}{escape(message)}"
        if style:
            text = f"[{style}]{text}[/{style}]"
        self._stderr.print(text)


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value) or ``TERM=dumb`` turns colour off."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; tests call this so stale stderr handles are dropped."""
    global _output
    _output = None


def error(message: str) -> None:
    get_output().error(message)


def warning(message: str) -> None:
    get_output().warning(message)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def trace(message: str) -> None:
    get_output().trace(message)
