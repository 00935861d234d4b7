"""Rich table builders used by the CLI.

Kept separate to keep the command module smaller.
"""

from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from siggen.core.models import AnalyzedProgram
from siggen.core.nodes import Call, CallWithBlock, walk


def _snippet(text: str, width: int = 48) -> str:
    first = text.strip().splitlines()[0] if text.strip() else ""
    return first if len(first) <= width else first[: width - 3] + "..."


def build_calls_table(program: AnalyzedProgram) -> Table:
    """Build the (Call, Method, Resolution, Owners, Templates) table for `calls`."""
    table = Table(show_header=True)
    table.add_column("Call")
    table.add_column("Method")
    table.add_column("Resolution")
    table.add_column("Owners")
    table.add_column("Templates", justify="right")
    for node in walk(program.root):
        if not isinstance(node, (Call, CallWithBlock)) or node.node_id not in program.typing:
            continue
        resolution = program.typing.call_of(node)
        owners = ", ".join(
            f"{d.owner}{'.' if d.singleton else '#'}{d.method_name}" for d in resolution.declarations
        )
        templates = sum(len(d.templates) for d in resolution.declarations)
        table.add_row(
            escape(_snippet(node.text or node.method_name)),
            escape(node.method_name),
            resolution.kind.value,
            escape(owners),
            str(templates),
        )
    return table
