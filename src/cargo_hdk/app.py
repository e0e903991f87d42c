"""Typer application and console-script entry point for cargo-hdk.

The CLI is a single command. Its own options are declared below and only
their exact spellings are parsed (see :func:`split_command_line`); every other
argument, including ``--`` and whatever follows it, is forwarded verbatim to
``cargo build`` (or ``cargo clean``). Cargo's ``-r`` also selects Release
mode. When cargo runs the tool as ``cargo hdk ...`` it passes ``hdk`` as the
first argument, which is dropped.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app, and
writes a crash log under the data directory for unexpected exceptions.

See Also:
    :mod:`cargo_hdk.orchestrator`: What actually happens once flags are parsed.
    :mod:`cargo_hdk.output`: Output initialised in :func:`hdk`.
"""

from __future__ import annotations

import re
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import click
import typer
from typer.core import TyperCommand

from cargo_hdk import __version__
from cargo_hdk.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED

ABOUT = (
    "cargo-hdk is a cargo subcommand to compile C++ code defining an HDK interface "
    "for a Houdini plugin. It builds the HDK plugin with CMake and then runs "
    "'cargo build' with the provided arguments."
)

app = typer.Typer(
    name="cargo-hdk",
    help=ABOUT,
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"cargo-hdk {__version__}")
        raise typer.Exit()


# --- Command-line splitting ---

_VALUE_OPTIONS = frozenset({"--cmake", "-c", "--hdk-path", "-H"})
_FLAG_OPTIONS = frozenset({
    "--release", "--clean", "--hdk-only", "-k", "--quiet", "-q",
    "--verbose", "--no-color", "--version", "-h", "--help",
})
_VERBOSE_CLUSTER_RE = re.compile(r"^-v+$")


def split_command_line(args: list[str]) -> tuple[list[str], list[str]]:
    """Separate cargo-hdk's own options from the arguments meant for cargo.

    Only exact spellings of the options declared on :func:`hdk` are kept
    (plus ``--cmake=VALUE``/``--hdk-path=VALUE`` and ``-vvv`` clusters).
    Every other token is forwarded as typed, so cargo clusters such as
    ``-Fcuda`` are never split into cargo-hdk flags. A ``--`` ends option
    processing: it and everything after it go to cargo unchanged.

    Args:
        args: The raw command line, without the program name.

    Returns:
        A tuple of ``(own_args, cargo_args)``.

    Example::

        >>> split_command_line(["hdk", "-c", "[-G Ninja]", "-Fcuda", "--", "-v"])
        (['-c', '[-G Ninja]'], ['hdk', '-Fcuda', '--', '-v'])
    """
    own: list[str] = []
    cargo: list[str] = []
    index = 0
    while index < len(args):
        token = args[index]
        if token == "--":
            cargo.extend(args[index:])
            break
        if token in _VALUE_OPTIONS:
            own.extend(args[index:index + 2])
            index += 2
            continue
        if token.split("=", 1)[0] in _VALUE_OPTIONS and token.startswith("--"):
            own.append(token)
        elif token in _FLAG_OPTIONS or _VERBOSE_CLUSTER_RE.match(token):
            own.append(token)
        else:
            cargo.append(token)
        index += 1
    return own, cargo


class PassthroughCommand(TyperCommand):
    """Command that lets Click parse only cargo-hdk's own options.

    The remaining tokens are stored verbatim as the ``build_args`` parameter.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        own, cargo = split_command_line(args)
        super().parse_args(ctx, own)
        ctx.params["build_args"] = cargo
        return []


@app.command(cls=PassthroughCommand)
def hdk(
    build_args: Optional[list[str]] = typer.Argument(
        None,
        metavar="[BUILD ARGS]...",
        help="Arguments for the 'cargo build' step. Mostly ignored with --hdk-only.",
        show_default=False,
    ),
    release: bool = typer.Option(
        False, "--release",
        help="Build in Release mode (default: Debug). Also passed to cargo.",
    ),
    cmake: Optional[str] = typer.Option(
        None, "--cmake", "-c",
        help=(
            "Pass arguments to CMake configuration, listed between brackets. "
            "For instance, to use Ninja as the generator: --cmake '[-G Ninja]'. "
            "Forces a reconfigure."
        ),
    ),
    clean: bool = typer.Option(
        False, "--clean",
        help=(
            "Remove artifacts created by the build process including the HDK plugin. "
            "Combine with --hdk-only to clean the HDK build only."
        ),
    ),
    hdk_only: bool = typer.Option(
        False, "--hdk-only", "-k",
        help="Skip the 'cargo build' step. Build only the HDK plugin.",
    ),
    hdk_path: Optional[str] = typer.Option(
        None, "--hdk-path", "-H",
        help="Path to the HDK plugin relative to the root of the crate. [default: ./hdk]",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Silence all diagnostic output.",
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True,
        help="More output per occurrence (-v warnings, -vv info, -vvv debug, -vvvv trace).",
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Build the HDK plugin with CMake, then the crate with cargo.

    Initialises the global :class:`~cargo_hdk.output.OutputManager` from the
    verbosity flags, turns the command line into a
    :class:`~cargo_hdk.orchestrator.BuildRequest`, and runs it. Any
    :class:`~cargo_hdk.exceptions.CargoHdkError` is reported on stderr and
    becomes the process exit code.
    """
    from cargo_hdk.cmake_args import parse_bracket_args
    from cargo_hdk.exceptions import CargoHdkError
    from cargo_hdk.models import Verbosity
    from cargo_hdk.orchestrator import BuildRequest, run, strip_subcommand_name, take_release_flag
    from cargo_hdk.output import OutputManager, error, set_output

    set_output(OutputManager(verbosity=Verbosity.from_flags(quiet, verbose), no_color=no_color))

    release_in_args, cargo_args = take_release_flag(strip_subcommand_name(build_args or []))

    try:
        request = BuildRequest(
            release=release or release_in_args,
            hdk_only=hdk_only,
            clean=clean,
            cmake_args=parse_bracket_args(cmake) if cmake is not None else None,
            hdk_path=hdk_path,
            build_args=cargo_args,
        )
        run(request)
    except CargoHdkError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from cargo_hdk.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``cargo-hdk`` console script.

    :class:`~cargo_hdk.exceptions.CargoHdkError` is handled inside
    :func:`hdk`; anything that escapes it is unexpected and produces a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from cargo_hdk.output import error

        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
