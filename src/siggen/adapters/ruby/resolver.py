"""Ruby resolver: program conversion and call resolution.

Walks a tree-sitter-ruby tree once, in source order, converting it to
:mod:`siggen.core.nodes` variants while tracking the type of ``self``, the
constant nesting and local variables. Every call site gets a
:class:`CallResolution` keyed by its node id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tree_sitter import Node

from siggen.adapters.ruby.ast_utils import (
    LITERAL_NODES,
    NON_POSITIONAL_ARGUMENTS,
    SPLAT_ARGUMENTS,
    RubyAstUtils,
)
from siggen.adapters.ruby.local_scope import RubyContext, RubyLocalScope
from siggen.adapters.ruby.type_inferrer import RubyTypeInferrer
from siggen.core.models import CallResolution, MatchedDeclaration
from siggen.core.nodes import Call, CallWithBlock, Other, ProgramNode
from siggen.signature.ast import (
    ClassInstanceType,
    ClassSingletonType,
    MethodType,
    Type,
    TypeName,
)
from siggen.signature.environment import MethodEntry

if TYPE_CHECKING:
    from siggen.signature.environment import SignatureEnvironment

logger = logging.getLogger(__name__)

# (receiver member, method entry, chosen overload)
_Match = tuple[Type, MethodEntry, MethodType]


class RubyTypeResolver:
    """Converts a Ruby tree and resolves its call sites.

    One resolver handles one program; create a new one per analysis.
    """

    def __init__(self, environment: SignatureEnvironment, content: bytes) -> None:
        """Initialize the resolver.

        Args:
            environment: Signature environment calls are resolved against.
            content: Program source as bytes.
        """
        self._environment = environment
        self._content = content
        self._types: dict[int, Type | None] = {}
        self._resolutions: dict[int, CallResolution] = {}
        self._inferrer = RubyTypeInferrer(environment, content, self._types)

    def resolve(self, root: Node) -> tuple[ProgramNode, dict[int, CallResolution]]:
        """Convert the tree under ``root`` and resolve every call in it.

        Returns:
            The converted program and the resolutions keyed by node id.
        """
        context = RubyContext(self._inferrer.instance_named("Object"), ())
        program = self._visit(root, context)
        matched = sum(1 for r in self._resolutions.values() if r.is_matched)
        logger.debug(f"Resolved {len(self._resolutions)} call sites ({matched} matched)")
        return program, dict(self._resolutions)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _visit(self, node: Node, context: RubyContext) -> ProgramNode:
        node_type = node.type

        if node_type in ("class", "module"):
            return self._visit_module(node, context)
        if node_type == "singleton_class":
            return self._visit_singleton_class(node, context)
        if node_type == "method":
            return self._visit_method(node, context)
        if node_type == "singleton_method":
            return self._visit_singleton_method(node, context)
        if node_type == "identifier":
            return self._visit_identifier(node, context)
        if node_type == "assignment":
            return self._visit_assignment(node, context)
        if node_type == "operator_assignment":
            return self._visit_operator_assignment(node, context)
        if node_type == "call":
            return self._visit_call(node, context)
        if node_type == "lambda":
            return self._visit_lambda(node, context)
        return self._other(node, context)

    def _text(self, node: Node) -> str:
        return RubyAstUtils.get_node_text(node, self._content)

    def _leaf(self, node: Node) -> Other:
        literal = RubyAstUtils.literal_value(node, self._content)
        return Other(node.id, node.type, literal)

    def _other(
        self,
        node: Node,
        context: RubyContext,
        children: tuple[ProgramNode, ...] | None = None,
    ) -> Other:
        if children is None:
            children = tuple(self._visit(child, context) for child in RubyAstUtils.named_children(node))
        if node.type in LITERAL_NODES or not node.named_children:
            literal = RubyAstUtils.literal_value(node, self._content)
        else:
            literal = ""
        return Other(node.id, node.type, literal, children)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def _qualify(self, name: str, context: RubyContext) -> str:
        if name.startswith("::"):
            return name[2:]
        if context.nesting:
            return f"{context.nesting[0]}::{name}"
        return name

    def _visit_module(self, node: Node, context: RubyContext) -> Other:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return self._other(node, context)
        qualified = self._qualify(self._text(name_node), context)
        inner = RubyContext(
            self_type=ClassSingletonType(TypeName.parse(qualified)),
            nesting=(qualified,) + context.nesting,
            scope=RubyLocalScope(),
        )
        children: list[ProgramNode] = []
        for child in RubyAstUtils.named_children(node):
            if child.id == name_node.id:
                children.append(self._leaf(child))
            elif child.type == "superclass":
                children.append(self._visit(child, context))
            else:
                children.append(self._visit(child, inner))
        return self._other(node, context, tuple(children))

    def _visit_singleton_class(self, node: Node, context: RubyContext) -> Other:
        value = node.child_by_field_name("value")
        value_type = self._inferrer.infer_type(value, context) if value is not None else None
        inner = RubyContext(
            self_type=value_type,
            nesting=context.nesting,
            scope=RubyLocalScope(),
            in_singleton_class=True,
        )
        children = tuple(
            self._visit(child, context if value is not None and child.id == value.id else inner)
            for child in RubyAstUtils.named_children(node)
        )
        return self._other(node, context, children)

    def _visit_method(self, node: Node, context: RubyContext) -> Other:
        if context.in_singleton_class:
            self_type = context.self_type
        else:
            self_type = self._inferrer.instance_of(context.self_type)
        inner = RubyContext(self_type=self_type, nesting=context.nesting, scope=RubyLocalScope())
        return self._other(node, context, self._method_children(node, inner))

    def _visit_singleton_method(self, node: Node, context: RubyContext) -> Other:
        target = node.child_by_field_name("object")
        children: list[ProgramNode] = []
        self_type = None
        if target is not None:
            children.append(self._visit(target, context))
            self_type = self._inferrer.infer_type(target, context)
        inner = RubyContext(self_type=self_type, nesting=context.nesting, scope=RubyLocalScope())
        skip = target.id if target is not None else None
        children.extend(self._method_children(node, inner, skip))
        return self._other(node, context, tuple(children))

    def _method_children(
        self, node: Node, inner: RubyContext, skip: int | None = None
    ) -> tuple[ProgramNode, ...]:
        name_node = node.child_by_field_name("name")
        children: list[ProgramNode] = []
        for child in RubyAstUtils.named_children(node):
            if child.id == skip:
                continue
            if name_node is not None and child.id == name_node.id:
                children.append(self._leaf(child))
            elif child.type == "method_parameters":
                children.append(self._visit_parameters(child, inner))
            else:
                children.append(self._visit(child, inner))
        return tuple(children)

    def _visit_parameters(self, node: Node, context: RubyContext) -> Other:
        """Declare parameter names; default values are ordinary expressions."""
        children: list[ProgramNode] = []
        for param in RubyAstUtils.named_children(node):
            value = param.child_by_field_name("value")
            name = RubyAstUtils.parameter_name(param, self._content)
            if name is not None:
                context.scope.declare(name)
            if param.type == "destructured_parameter":
                for name in RubyAstUtils.all_identifiers(param, self._content):
                    context.scope.declare(name)
            if value is not None:
                children.append(self._other(param, context, (self._visit(value, context),)))
            else:
                children.append(self._leaf(param))
        return self._other(node, context, tuple(children))

    # ------------------------------------------------------------------
    # Locals
    # ------------------------------------------------------------------

    def _visit_identifier(self, node: Node, context: RubyContext) -> ProgramNode:
        name = self._text(node)
        if context.scope.has(name):
            return self._leaf(node)
        # A bare name that is not a local is a receiverless call with no arguments.
        resolution, matches = self._resolve_call(name, context.self_type, 0, False, False)
        self._record(node, resolution, matches)
        return Call(node.id, name, None, (), (), name)

    def _visit_assignment(self, node: Node, context: RubyContext) -> ProgramNode:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return self._other(node, context)

        if left.type == "call":
            return self._other(node, context, (self._visit_call(left, context, assigned=right),))

        if left.type == "identifier":
            value = self._visit(right, context)
            context.scope.declare(self._text(left), self._inferrer.infer_type(right, context))
            return self._other(node, context, (self._leaf(left), value))

        value = self._visit(right, context)
        if left.type in ("left_assignment_list", "destructured_left_assignment"):
            for name in RubyAstUtils.all_identifiers(left, self._content):
                context.scope.declare(name)
            return self._other(node, context, (self._leaf(left), value))
        return self._other(node, context, (self._visit(left, context), value))

    def _visit_operator_assignment(self, node: Node, context: RubyContext) -> ProgramNode:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "identifier":
            return self._other(node, context)
        value = self._visit(right, context)
        name = self._text(left)
        if not context.scope.has(name) or context.scope.get_type(name) is None:
            context.scope.declare(name, self._inferrer.infer_type(right, context))
        return self._other(node, context, (self._leaf(left), value))

    def _visit_lambda(self, node: Node, context: RubyContext) -> Other:
        inner = RubyContext(
            self_type=context.self_type,
            nesting=context.nesting,
            scope=context.scope.copy(),
            in_singleton_class=context.in_singleton_class,
        )
        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            for name in RubyAstUtils.all_identifiers(parameters, self._content):
                inner.scope.declare(name)
        children: list[ProgramNode] = []
        for child in RubyAstUtils.named_children(node):
            if parameters is not None and child.id == parameters.id:
                children.append(self._leaf(child))
            elif child.type in ("block", "do_block"):
                body = tuple(self._visit(stmt, inner) for stmt in RubyAstUtils.block_body(child))
                children.append(self._other(child, inner, body))
            else:
                children.append(self._visit(child, inner))
        self._types[node.id] = self._inferrer.instance_named("Proc")
        return self._other(node, context, tuple(children))

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _visit_call(
        self, node: Node, context: RubyContext, assigned: Node | None = None
    ) -> ProgramNode:
        receiver_node = node.child_by_field_name("receiver")
        method_node = node.child_by_field_name("method")
        block_node = RubyAstUtils.call_block(node)

        method_name = self._text(method_node) if method_node is not None else "call"
        if assigned is not None:
            method_name += "="

        receiver = None
        receiver_type = context.self_type
        if receiver_node is not None:
            receiver = self._visit(receiver_node, context)
            receiver_type = self._inferrer.infer_type(receiver_node, context)

        argument_nodes = RubyAstUtils.call_arguments(node)
        if assigned is not None:
            argument_nodes.append(assigned)
        arguments = tuple(self._visit(argument, context) for argument in argument_nodes)
        positional = [a for a in argument_nodes if a.type not in NON_POSITIONAL_ARGUMENTS]
        has_splat = any(a.type in SPLAT_ARGUMENTS for a in argument_nodes)
        has_pairs = any(a.type == "pair" for a in argument_nodes)
        values = tuple(RubyAstUtils.literal_value(a, self._content) for a in positional)

        resolution, matches = self._resolve_call(
            method_name, receiver_type, len(positional), has_splat, has_pairs
        )
        self._record(node, resolution, matches)

        if block_node is None:
            return Call(node.id, method_name, receiver, arguments, values, self._text(node))

        block_context = self._block_context(block_node, context, matches)
        parameters = self._block_parameters(block_node)
        names = tuple(
            name for name in RubyAstUtils.parameter_names(parameters, self._content) if name is not None
        )
        body = tuple(
            self._visit(statement, block_context) for statement in RubyAstUtils.block_body(block_node)
        )
        return CallWithBlock(
            node.id, method_name, receiver, arguments, values, names, body, self._text(node)
        )

    def _block_parameters(self, block: Node) -> Node | None:
        parameters = block.child_by_field_name("parameters")
        if parameters is not None:
            return parameters
        for child in block.named_children:
            if child.type == "block_parameters":
                return child
        return None

    def _block_context(
        self, block: Node, context: RubyContext, matches: list[_Match]
    ) -> RubyContext:
        self_type = context.self_type
        parameter_types: list[Type | None] = []
        if matches:
            member, entry, overload = matches[0]
            parameter_types = self._inferrer.block_parameter_types(entry, overload, member)
            bound_self = self._inferrer.block_self_type(entry, overload, member)
            if bound_self is not None:
                self_type = bound_self

        scope = context.scope.copy()
        parameters = self._block_parameters(block)
        if parameters is not None:
            for name in RubyAstUtils.all_identifiers(parameters, self._content):
                scope.declare(name)
            names = RubyAstUtils.parameter_names(parameters, self._content)
            for index, name in enumerate(names):
                if name is not None:
                    declared = parameter_types[index] if index < len(parameter_types) else None
                    scope.declare(name, declared)
        return RubyContext(
            self_type=self_type,
            nesting=context.nesting,
            scope=scope,
            in_singleton_class=context.in_singleton_class,
        )

    def _record(self, node: Node, resolution: CallResolution, matches: list[_Match]) -> None:
        self._resolutions[node.id] = resolution
        self._types[node.id] = self._result_type(resolution.method_name, matches)

    def _result_type(self, method_name: str, matches: list[_Match]) -> Type | None:
        if not matches:
            return None
        results = []
        for member, entry, overload in matches:
            if method_name == "new" and isinstance(member, ClassSingletonType) and entry.owner == "Class":
                results.append(ClassInstanceType(member.name))
            else:
                results.append(self._inferrer.return_type(entry, overload, member))
        return self._inferrer.union(results)

    def _resolve_call(
        self,
        method_name: str,
        receiver_type: Type | None,
        positional_count: int,
        has_splat: bool,
        has_pairs: bool,
    ) -> tuple[CallResolution, list[_Match]]:
        """Match a call against the declared methods of its receiver.

        Args:
            method_name: Method name as called.
            receiver_type: Resolved receiver type (self for receiverless calls).
            positional_count: Number of positional arguments.
            has_splat: The call splats an argument, so its arity is unknown.
            has_pairs: The call passes ``key: value`` pairs.

        Returns:
            The resolution and, when matched, the overload chosen per receiver type.
        """
        members = self._inferrer.receiver_types(receiver_type)
        if members is None:
            logger.debug(f"Dynamic call to {method_name}: receiver type unknown")
            return CallResolution.dynamic(method_name), []

        matches: list[_Match] = []
        for member in members:
            entry = self._environment.find_method(
                member.name.qualified(),
                method_name,
                singleton=isinstance(member, ClassSingletonType),
            )
            if entry is None:
                logger.debug(f"No method {method_name} on {member}")
                return CallResolution.absent(method_name), []
            overload = self._select_overload(entry, positional_count, has_splat, has_pairs)
            if overload is None:
                logger.debug(f"No overload of {entry.owner}#{method_name} takes {positional_count} arguments")
                return CallResolution.absent(method_name), []
            matches.append((member, entry, overload))

        declarations: list[MatchedDeclaration] = []
        for _, entry, overload in matches:
            declaration = MatchedDeclaration(
                owner=entry.owner,
                method_name=entry.name,
                singleton=entry.singleton,
                required_parameters=tuple(p.name for p in overload.function.required_positionals),
                templates=entry.templates,
                annotations=entry.annotations,
            )
            if declaration not in declarations:
                declarations.append(declaration)
        return CallResolution.matched(method_name, declarations), matches

    @staticmethod
    def _select_overload(
        entry: MethodEntry, positional_count: int, has_splat: bool, has_pairs: bool
    ) -> MethodType | None:
        for overload in entry.overloads:
            function = overload.function
            count = positional_count
            takes_keywords = bool(
                function.required_keywords or function.optional_keywords or function.rest_keywords
            )
            if has_pairs and not takes_keywords:
                # Trailing pairs become a positional hash.
                count += 1
            if has_splat or function.accepts_positional_count(count):
                return overload
        return None

