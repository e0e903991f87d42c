"""Parsing of bracket-delimited argument lists.

Arguments destined for CMake are passed as a single option value wrapped in
square brackets so that the option parser does not mistake them for
cargo-hdk's own flags::

    cargo hdk --cmake '[-G Ninja]'
    cargo hdk --cmake '[-G "Unix Makefiles" -DHOUDINI_DSO_ERROR=ON]'

The text between the brackets is split with shell quoting rules, so tokens
are forwarded exactly as the user would have typed them in a shell.
"""

from __future__ import annotations

import shlex

from cargo_hdk.exceptions import InvalidUsageError


def parse_bracket_args(text: str | None, *, option: str = "--cmake") -> list[str]:
    """Split a ``[...]``-delimited argument string into tokens.

    Args:
        text: The raw option value. ``None`` or an empty/whitespace string
            means the option was not supplied and yields ``[]``.
        option: Option name used in error messages.

    Returns:
        The list of tokens between the brackets, in order.

    Raises:
        InvalidUsageError: If the value is not surrounded by ``[`` and ``]``
            or contains unbalanced quotes.

    Example::

        >>> parse_bracket_args("[-G Ninja]")
        ['-G', 'Ninja']
        >>> parse_bracket_args("[]")
        []
    """
    if text is None:
        return []
    stripped = text.strip()
    if not stripped:
        return []
    if not (stripped.startswith("[") and stripped.endswith("]")):
        raise InvalidUsageError(
            f"{option} arguments must be surrounded with square brackets, "
            f"e.g. {option} '[-G Ninja]' (got {text!r})."
        )
    try:
        return shlex.split(stripped[1:-1])
    except ValueError as exc:
        raise InvalidUsageError(f"Could not parse {option} arguments {text!r}: {exc}") from exc


def format_args(args: list[str]) -> str:
    """Render *args* as a shell-quoted command line for diagnostics."""
    return shlex.join(args)


def requested_generator(args: list[str]) -> str | None:
    """Return the generator named by ``-G <name>`` or ``-G<name>`` in *args*, if any.

    When ``-G`` appears more than once the last occurrence wins, as in CMake.
    """
    generator = None
    it = iter(args)
    for token in it:
        if token == "-G":
            generator = next(it, None)
        elif token.startswith("-G"):
            generator = token[2:]
    return generator
