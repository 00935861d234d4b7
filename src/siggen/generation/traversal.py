"""Traversal engine: walks a program and emits template fragments."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from siggen.core.errors import SiggenError
from siggen.core.models import CallResolution, Fragment
from siggen.core.nodes import Call, CallWithBlock, ProgramNode
from siggen.core.typing_index import TypingIndex
from siggen.generation.binder import StackEntry, TemplateBinder
from siggen.generation.expander import TemplateExpander

logger = logging.getLogger(__name__)


class Traversal:
    """Depth-first, pre-order walk in source order.

    Calls that resolve to declarations carrying templates emit one fragment
    per (declaration, template). Calls with blocks are pushed on the context
    stack while their receiver, arguments and body are walked, so nested calls
    can refer to the enclosing call's arguments.
    """

    def __init__(
        self,
        typing: TypingIndex,
        binder: TemplateBinder | None = None,
        expander: TemplateExpander | None = None,
    ) -> None:
        self._typing = typing
        self._binder = binder or TemplateBinder()
        self._expander = expander or TemplateExpander()

    def traverse(self, root: ProgramNode) -> Iterator[Fragment]:
        """Yield the fragments of every call site under ``root``.

        Raises:
            TemplateExpansionError: If a template fails to render.
        """
        yield from self._visit(root, [])

    def _resolution(self, node: ProgramNode) -> CallResolution:
        try:
            return self._typing.call_of(node)
        except SiggenError:
            return CallResolution.absent()
        except Exception as e:
            # Lookup failures are treated as "no match" and never abort a run.
            logger.debug(f"Typing lookup failed for node {node.node_id}: {e}")
            return CallResolution.absent()

    def _visit(self, node: ProgramNode, stack: list[StackEntry]) -> Iterator[Fragment]:
        resolution = self._resolution(node)

        if not resolution.is_matched or not isinstance(node, (Call, CallWithBlock)):
            for child in node.children:
                yield from self._visit(child, stack)
            return

        yield from self._emit(node, resolution, stack)

        if isinstance(node, CallWithBlock):
            stack.append((node, resolution))
            try:
                for child in node.children:
                    yield from self._visit(child, stack)
            finally:
                stack.pop()

    def _emit(
        self, node: Call | CallWithBlock, resolution: CallResolution, stack: list[StackEntry]
    ) -> Iterator[Fragment]:
        for declaration in resolution.declarations:
            if not declaration.templates:
                continue
            context = self._binder.bind(stack, node, declaration)
            for template in declaration.templates:
                yield self._expander.expand(
                    declaration.owner, template, context, resolution.method_name
                )
