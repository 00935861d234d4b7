"""Program AST consumed by the generation pipeline.

Language adapters convert their parser's concrete tree into this closed set of
node variants. Every node keeps the identity of the concrete node it was built
from (``node_id``) so typing lookups can be keyed on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Call:
    """A method call without a block."""

    node_id: int
    method_name: str
    receiver: ProgramNode | None
    arguments: tuple[ProgramNode, ...]
    argument_values: tuple[str, ...]
    text: str = ""

    @property
    def children(self) -> tuple[ProgramNode, ...]:
        head = (self.receiver,) if self.receiver is not None else ()
        return head + self.arguments


@dataclass(frozen=True)
class CallWithBlock:
    """A method call that passes a literal block (``do ... end`` or ``{ ... }``)."""

    node_id: int
    method_name: str
    receiver: ProgramNode | None
    arguments: tuple[ProgramNode, ...]
    argument_values: tuple[str, ...]
    block_parameters: tuple[str, ...]
    body: tuple[ProgramNode, ...]
    text: str = ""

    @property
    def children(self) -> tuple[ProgramNode, ...]:
        head = (self.receiver,) if self.receiver is not None else ()
        return head + self.arguments + self.body


@dataclass(frozen=True)
class Other:
    """Any node that is not a call.

    ``literal`` holds the value a literal node contributes when used as a call
    argument (symbol name, string contents, ...). Other leaves carry their
    source text; interior nodes that are not literals carry an empty string.
    """

    node_id: int
    kind: str
    literal: str
    children: tuple[ProgramNode, ...] = ()
    text: str = ""


ProgramNode = Union[Call, CallWithBlock, Other]


def walk(node: ProgramNode):
    """Yield ``node`` and all of its descendants in pre-order."""
    yield node
    for child in node.children:
        yield from walk(child)
