"""Ruby type inference for call resolution.

This module provides the RubyTypeInferrer class that infers receiver types
from Ruby AST expression nodes and resolves declared signature types into
the small set of concrete types the resolver looks methods up on.

Resolved types are always one of:

- ``ClassInstanceType`` with a qualified name (an instance of a class/module)
- ``ClassSingletonType`` with a qualified name (the class object itself)
- ``InterfaceType`` with a qualified name
- ``UnionType`` of the above

Anything else, including ``untyped``, is reported as None (unknown).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

from tree_sitter import Node

from siggen.adapters.ruby.ast_utils import RubyAstUtils
from siggen.signature.ast import (
    AliasType,
    BaseType,
    ClassInstanceType,
    ClassSingletonType,
    InterfaceType,
    IntersectionType,
    LiteralType,
    MethodType,
    OptionalType,
    ProcType,
    RecordType,
    TupleType,
    Type,
    TypeName,
    UnionType,
)
from siggen.signature.environment import MethodEntry, namespace_prefixes

if TYPE_CHECKING:
    from siggen.adapters.ruby.local_scope import RubyContext
    from siggen.signature.environment import SignatureEnvironment

logger = logging.getLogger(__name__)

_MAX_ALIAS_DEPTH = 16

_CONSTANT_PATH = re.compile(r"(::)?[A-Z][A-Za-z0-9_]*(::[A-Z][A-Za-z0-9_]*)*")

_LITERAL_CLASSES = {
    "string": "String",
    "chained_string": "String",
    "heredoc_beginning": "String",
    "simple_symbol": "Symbol",
    "delimited_symbol": "Symbol",
    "hash_key_symbol": "Symbol",
    "integer": "Integer",
    "float": "Float",
    "nil": "NilClass",
    "true": "TrueClass",
    "false": "FalseClass",
    "array": "Array",
    "string_array": "Array",
    "symbol_array": "Array",
    "hash": "Hash",
    "regex": "Regexp",
    "range": "Range",
    "lambda": "Proc",
}

_BASE_CLASSES = {"nil": "NilClass", "true": "TrueClass", "false": "FalseClass"}


class RubyTypeInferrer:
    """Infers types from Ruby AST expression nodes.

    Used by the resolver to determine call receiver types, block parameter
    types and the types of local variables assigned from expressions.
    """

    def __init__(
        self,
        environment: SignatureEnvironment,
        content: bytes,
        call_types: Mapping[int, Type | None],
    ) -> None:
        """Initialize the type inferrer.

        Args:
            environment: Signature environment declared types resolve against.
            content: Program source as bytes.
            call_types: Result types of the call nodes resolved so far, keyed
                by node id. The resolver fills this as it walks the tree.
        """
        self._environment = environment
        self._content = content
        self._call_types = call_types

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def infer_type(self, node: Node, context: RubyContext) -> Type | None:
        """Infer the type of an expression node.

        Args:
            node: The AST expression node.
            context: Self type, constant nesting and locals at the node.

        Returns:
            The resolved type, or None if it cannot be determined.
        """
        node_type = node.type

        if node_type in _LITERAL_CLASSES:
            return self.instance_named(_LITERAL_CLASSES[node_type])

        if node_type == "self":
            return context.self_type

        if node_type == "identifier":
            name = RubyAstUtils.get_node_text(node, self._content)
            if context.scope.has(name):
                return context.scope.get_type(name)
            return self._call_types.get(node.id)

        if node_type in ("constant", "scope_resolution"):
            return self._infer_constant(node, context)

        if node_type == "call":
            return self._call_types.get(node.id)

        if node_type == "parenthesized_statements":
            children = RubyAstUtils.named_children(node)
            return self.infer_type(children[-1], context) if children else self.instance_named("NilClass")

        if node_type == "assignment":
            right = node.child_by_field_name("right")
            return self.infer_type(right, context) if right is not None else None

        if node_type == "global_variable":
            declared = self._environment.global_type(RubyAstUtils.get_node_text(node, self._content))
            return self.resolve(declared, ()) if declared is not None else None

        return None

    def _infer_constant(self, node: Node, context: RubyContext) -> Type | None:
        text = RubyAstUtils.get_node_text(node, self._content)
        if not _CONSTANT_PATH.fullmatch(text):
            return None
        type_name = TypeName.parse(text)
        qualified = self._environment.resolve_constant(type_name, context.nesting)
        if qualified is None:
            logger.debug(f"Unknown constant {text}")
            return None
        if self._environment.has_module(qualified):
            return ClassSingletonType(TypeName.parse(qualified))
        declared = self._environment.constant_type(qualified)
        if declared is None:
            return None
        return self.resolve(declared, namespace_prefixes(qualified)[1:])

    # ------------------------------------------------------------------
    # Declared types
    # ------------------------------------------------------------------

    def instance_named(self, name: str) -> Type | None:
        if not self._environment.has_module(name):
            return None
        return ClassInstanceType(TypeName.parse(name))

    def instance_of(self, type_: Type | None) -> Type | None:
        """The instance type of a class object (identity for instances)."""
        if isinstance(type_, ClassSingletonType):
            return ClassInstanceType(type_.name)
        if isinstance(type_, (ClassInstanceType, InterfaceType)):
            return type_
        if isinstance(type_, UnionType):
            return self.union(self.instance_of(member) for member in type_.types)
        return None

    def singleton_of(self, type_: Type | None) -> Type | None:
        """The class object of an instance type (``Class``/``Module`` for class objects)."""
        if isinstance(type_, ClassInstanceType):
            return ClassSingletonType(type_.name)
        if isinstance(type_, ClassSingletonType):
            kind = self._environment.module_kind(type_.name.qualified())
            return self.instance_named("Module" if kind == "module" else "Class")
        if isinstance(type_, UnionType):
            return self.union(self.singleton_of(member) for member in type_.types)
        return None

    def receiver_types(self, type_: Type | None) -> list[Type] | None:
        """Flatten a resolved type into the members methods are looked up on."""
        if type_ is None:
            return None
        if isinstance(type_, UnionType):
            members: list[Type] = []
            for member in type_.types:
                flattened = self.receiver_types(member)
                if flattened is None:
                    return None
                members.extend(m for m in flattened if m not in members)
            return members
        if isinstance(type_, (ClassInstanceType, ClassSingletonType, InterfaceType)):
            return [type_]
        return None

    def substitution(self, entry: MethodEntry, receiver: Type | None) -> dict[str, Type | None]:
        """Bind the owner's type parameters to the receiver's type arguments.

        Only applies when the method is defined on the receiver's own class;
        inherited generic methods see their type variables as unknown.
        """
        if not isinstance(receiver, (ClassInstanceType, InterfaceType)) or not receiver.args:
            return {}
        if receiver.name.qualified() != entry.owner:
            return {}
        names = self._environment.type_params_of(entry.owner)
        return {
            name: None if isinstance(arg, BaseType) else arg
            for name, arg in zip(names, receiver.args)
        }

    def return_type(self, entry: MethodEntry, overload: MethodType, receiver: Type | None) -> Type | None:
        return self.resolve(
            overload.function.return_type,
            entry.context,
            receiver,
            self.substitution(entry, receiver),
        )

    def block_parameter_types(
        self, entry: MethodEntry, overload: MethodType, receiver: Type | None
    ) -> list[Type | None]:
        """Types the method yields to its block, in positional order."""
        if overload.block is None:
            return []
        function = overload.block.function
        substitution = self.substitution(entry, receiver)
        params = function.required_positionals + function.optional_positionals
        return [self.resolve(p.type, entry.context, receiver, substitution) for p in params]

    def block_self_type(self, entry: MethodEntry, overload: MethodType, receiver: Type | None) -> Type | None:
        """Self type inside the block, from the block's ``[self: T]`` binding."""
        if overload.block is None or overload.block.self_type is None:
            return None
        return self.resolve(
            overload.block.self_type, entry.context, receiver, self.substitution(entry, receiver)
        )

    def resolve(
        self,
        type_: Type,
        nesting: tuple[str, ...],
        receiver: Type | None = None,
        substitution: Mapping[str, Type | None] | None = None,
        depth: int = 0,
    ) -> Type | None:
        """Resolve a declared type to a concrete receiver type.

        Args:
            type_: Type as written in a signature.
            nesting: Lexical nesting of the declaration the type appears in.
            receiver: Type ``self``/``instance``/``class`` refer to.
            substitution: Type variable bindings.
            depth: Alias expansion depth.

        Returns:
            The resolved type, or None when it is unknown.
        """
        substitution = substitution or {}
        if depth > _MAX_ALIAS_DEPTH:
            return None

        if isinstance(type_, BaseType):
            keyword = type_.keyword
            if keyword == "self":
                return receiver
            if keyword == "instance":
                return self.instance_of(receiver)
            if keyword == "class":
                return self.singleton_of(receiver)
            if keyword in _BASE_CLASSES:
                return self.instance_named(_BASE_CLASSES[keyword])
            if keyword == "bool":
                return self.union([self.instance_named("TrueClass"), self.instance_named("FalseClass")])
            return None

        if isinstance(type_, ClassInstanceType):
            name = type_.name
            if not name.namespace and not name.absolute and name.name in substitution:
                return substitution[name.name]
            qualified = self._environment.resolve_constant(name, nesting)
            if qualified is None or self._environment.module_kind(qualified) not in ("class", "module"):
                return None
            args = tuple(
                self.resolve(arg, nesting, receiver, substitution, depth + 1) or BaseType("untyped")
                for arg in type_.args
            )
            return ClassInstanceType(TypeName.parse(qualified), args)

        if isinstance(type_, InterfaceType):
            qualified = self._environment.resolve_constant(type_.name, nesting)
            if qualified is None or self._environment.module_kind(qualified) != "interface":
                return None
            args = tuple(
                self.resolve(arg, nesting, receiver, substitution, depth + 1) or BaseType("untyped")
                for arg in type_.args
            )
            return InterfaceType(TypeName.parse(qualified), args)

        if isinstance(type_, ClassSingletonType):
            qualified = self._environment.resolve_constant(type_.name, nesting)
            if qualified is None or not self._environment.has_module(qualified):
                return None
            return ClassSingletonType(TypeName.parse(qualified))

        if isinstance(type_, AliasType):
            decl = self._environment.resolve_alias(type_.name, nesting)
            if decl is None:
                return None
            return self.resolve(decl.type, nesting, receiver, substitution, depth + 1)

        if isinstance(type_, OptionalType):
            return self.resolve(type_.type, nesting, receiver, substitution, depth)

        if isinstance(type_, UnionType):
            return self.union(
                self.resolve(member, nesting, receiver, substitution, depth) for member in type_.types
            )

        if isinstance(type_, IntersectionType):
            for member in type_.types:
                resolved = self.resolve(member, nesting, receiver, substitution, depth)
                if resolved is not None:
                    return resolved
            return None

        if isinstance(type_, LiteralType):
            if type_.literal.startswith(("'", '"')):
                return self.instance_named("String")
            if type_.literal.startswith(":"):
                return self.instance_named("Symbol")
            return self.instance_named("Integer")

        if isinstance(type_, TupleType):
            return self.instance_named("Array")
        if isinstance(type_, RecordType):
            return self.instance_named("Hash")
        if isinstance(type_, ProcType):
            return self.instance_named("Proc")
        return None

    def union(self, members) -> Type | None:
        flattened: list[Type] = []
        for member in members:
            if member is None:
                return None
            for item in member.types if isinstance(member, UnionType) else (member,):
                if item not in flattened:
                    flattened.append(item)
        if not flattened:
            return None
        if len(flattened) == 1:
            return flattened[0]
        return UnionType(tuple(flattened))
