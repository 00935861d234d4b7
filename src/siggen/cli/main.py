"""siggen CLI - type-directed signature generation.

This module provides the command-line interface for siggen, generating
declarations from the templates attached to the methods a program calls.
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from siggen.core.config import get_config
from siggen.core.errors import SiggenError

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="siggen",
    help="Generate RBS declarations from templates attached to called methods",
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()
err_console = Console(stderr=True)

# Global verbose flag
_verbose: bool = False


def set_verbose(verbose: bool) -> None:
    """Set global verbose mode."""
    global _verbose
    _verbose = verbose


def print_exception(e: Exception) -> None:
    """Print exception details in verbose mode."""
    if _verbose:
        err_console.print("\n[dim]--- Traceback (verbose mode) ---[/dim]")
        err_console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")


def fail(e: Exception) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(str(e))}")
    print_exception(e)
    return typer.Exit(1)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with full tracebacks"),
    ] = False,
) -> None:
    """siggen CLI - type-directed signature generation."""
    set_verbose(verbose)


SignatureOption = Annotated[
    Optional[list[Path]],
    typer.Option(
        "--signature",
        "-s",
        help="Signature file or directory to load (repeatable)",
    ),
]
NoCoreOption = Annotated[
    bool,
    typer.Option("--no-core", help="Do not preload the bundled core declarations"),
]


def build_engine(signatures: list[Path] | None, no_core: bool):
    """Create an engine from the global configuration plus command-line overrides."""
    from siggen.client import Siggen

    base = get_config()
    config = base.model_copy(
        update={
            "signature_paths": [*base.signature_paths, *(signatures or [])],
            "load_core": base.load_core and not no_core,
        }
    )
    return Siggen(config)


@app.command()
def generate(
    path: Annotated[
        Path,
        typer.Argument(help="Program file or directory to analyze", exists=True),
    ],
    signatures: SignatureOption = None,
    no_core: NoCoreOption = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the declarations to a file instead of stdout"),
    ] = None,
) -> None:
    """Generate declarations for every program file under PATH.

    Example:
        siggen generate app/models -s sig/
    """
    chunks: list[str] = []

    def collect(engine, file: Path) -> None:
        generated = engine.generate()
        if generated:
            chunks.append(generated)

    try:
        engine = build_engine(signatures, no_core)
        files = engine.analyze(path, collect)
    except SiggenError as e:
        raise fail(e) from e

    text = "".join(chunks)
    if output is None:
        console.print(text, end="", markup=False, highlight=False, soft_wrap=True)
        return

    output.write_text(text, encoding="utf-8")
    console.print(f"[green]✓[/green] Generated declarations for {len(files)} files")
    console.print(f"  Output: {escape(str(output))}")


@app.command()
def calls(
    path: Annotated[
        Path,
        typer.Argument(help="Program file to analyze", exists=True, dir_okay=False),
    ],
    signatures: SignatureOption = None,
    no_core: NoCoreOption = False,
) -> None:
    """Show how each call site in a program file resolves.

    Example:
        siggen calls app/models/user.rb -s sig/
    """
    from siggen.cli._tables import build_calls_table

    try:
        engine = build_engine(signatures, no_core)
        engine.analyze(path)
    except SiggenError as e:
        raise fail(e) from e

    console.print(build_calls_table(engine.program))


if __name__ == "__main__":
    app()
