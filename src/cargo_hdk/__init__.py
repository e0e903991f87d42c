"""cargo_hdk -- build a Houdini HDK plugin alongside a Rust crate.

``cargo-hdk`` is a cargo subcommand. ``cargo hdk [ARGS]`` configures and
builds the C++ plugin under ``<crate>/hdk`` with CMake, then runs
``cargo build [ARGS]`` for the Rust side.

Typical workflow::

    cargo hdk --cmake '[-G Ninja]'   # first build: pick a CMake generator
    cargo hdk --release              # later builds reuse the cached generator
    cargo hdk --clean                # start over

Modules:
    app: Typer application and console-script entry point.
    orchestrator: Plans and runs the clean/build pipelines.
    pipeline: Named external-process steps run in sequence.
    builddir: Build directory lifecycle and CMake cache probing.
    config: Crate-root discovery and configuration precedence.
    houdini: Houdini installation discovery.
    output: Verbosity-levelled diagnostics on stderr.
"""

__version__ = "0.3.0"
