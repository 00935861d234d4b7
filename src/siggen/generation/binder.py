"""Template binder: builds the substitution context of a call site."""

from __future__ import annotations

from collections.abc import Sequence

from siggen.core.models import CallResolution, MatchedDeclaration, Record, Scalar, SubstitutionValue
from siggen.core.nodes import Call, CallWithBlock

StackEntry = tuple[Call | CallWithBlock, CallResolution]


class TemplateBinder:
    """Binds call arguments to declared parameter names.

    Enclosing block calls contribute a nested record each, installed under
    the method name that was called; the current call's own bindings are
    merged last, so they win over an enclosing entry of the same name.
    """

    @staticmethod
    def bind_arguments(node: Call | CallWithBlock, declaration: MatchedDeclaration) -> dict[str, Scalar]:
        """Pair required parameter names with argument values in order.

        Pairing stops at the shorter side, and unnamed parameters bind nothing.
        """
        return {
            name: Scalar(value)
            for name, value in zip(declaration.required_parameters, node.argument_values)
            if name is not None
        }

    def bind(
        self,
        stack: Sequence[StackEntry],
        node: Call | CallWithBlock,
        declaration: MatchedDeclaration,
    ) -> Record:
        """Build the context for expanding ``declaration``'s templates at ``node``.

        Args:
            stack: Enclosing calls with blocks, outermost first.
            node: The call being expanded.
            declaration: The matched declaration whose templates are expanded.

        Returns:
            The substitution context.
        """
        values: dict[str, SubstitutionValue] = {}
        for outer, resolution in stack:
            if not resolution.declarations:
                continue
            values[resolution.method_name] = Record(
                self.bind_arguments(outer, resolution.declarations[0])
            )
        values.update(self.bind_arguments(node, declaration))
        return Record(values)
