"""Ruby AST utility functions.

This module provides utility functions for extracting information
from tree-sitter AST nodes for Ruby source code.
"""

from __future__ import annotations

from tree_sitter import Node

from siggen.core.errors import ProgramSyntaxError

# Argument nodes that never bind to a required positional parameter.
NON_POSITIONAL_ARGUMENTS = frozenset(
    {
        "pair",
        "block_argument",
        "splat_argument",
        "hash_splat_argument",
        "forward_argument",
        "comment",
    }
)

SPLAT_ARGUMENTS = frozenset({"splat_argument", "forward_argument"})

LITERAL_NODES = frozenset(
    {
        "string",
        "simple_symbol",
        "delimited_symbol",
        "hash_key_symbol",
        "integer",
        "float",
        "nil",
        "true",
        "false",
    }
)

BLOCK_NODES = frozenset({"block", "do_block"})

BLOCK_BODY_NODES = frozenset({"block_body", "body_statement"})


class RubyAstUtils:
    """Ruby AST utility functions for tree-sitter nodes."""

    @staticmethod
    def get_node_text(node: Node, content: bytes) -> str:
        """Get the text content of a node.

        Args:
            node: The AST node
            content: Source file content

        Returns:
            The text content of the node
        """
        return content[node.start_byte:node.end_byte].decode("utf-8")

    @staticmethod
    def named_children(node: Node) -> list[Node]:
        """Named children without comments."""
        return [child for child in node.named_children if child.type != "comment"]

    @staticmethod
    def literal_value(node: Node, content: bytes) -> str:
        """Value a literal contributes when passed as a call argument.

        Symbols lose their colon, strings their quotes, ``nil`` renders empty;
        anything else is its source text.
        """
        kind = node.type
        if kind == "nil":
            return ""
        if kind == "simple_symbol":
            return RubyAstUtils.get_node_text(node, content)[1:]
        if kind in ("string", "delimited_symbol", "bare_string", "bare_symbol"):
            return RubyAstUtils._inner_text(node, content)
        return RubyAstUtils.get_node_text(node, content)

    @staticmethod
    def _inner_text(node: Node, content: bytes) -> str:
        parts = node.named_children
        if not parts:
            return ""
        return content[parts[0].start_byte:parts[-1].end_byte].decode("utf-8")

    @staticmethod
    def call_block(node: Node) -> Node | None:
        """The literal block (``{ }`` or ``do end``) attached to a call node."""
        block = node.child_by_field_name("block")
        if block is not None:
            return block
        for child in node.named_children:
            if child.type in BLOCK_NODES:
                return child
        return None

    @staticmethod
    def call_arguments(node: Node) -> list[Node]:
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return []
        return RubyAstUtils.named_children(arguments)

    @staticmethod
    def block_body(block: Node) -> list[Node]:
        """Statements of a block, flattening the body wrapper node."""
        statements: list[Node] = []
        for child in RubyAstUtils.named_children(block):
            if child.type == "block_parameters":
                continue
            if child.type in BLOCK_BODY_NODES:
                statements.extend(RubyAstUtils.named_children(child))
            else:
                statements.append(child)
        return statements

    @staticmethod
    def parameter_names(parameters: Node | None, content: bytes) -> list[str | None]:
        """Names of the parameters of a method or block, in order.

        Destructured parameters yield None in their position.
        """
        if parameters is None:
            return []
        return [
            RubyAstUtils.parameter_name(child, content)
            for child in RubyAstUtils.named_children(parameters)
            if child.type != "block_parameters"
        ]

    @staticmethod
    def parameter_name(parameter: Node, content: bytes) -> str | None:
        """Name of a single parameter node; None for destructuring."""
        if parameter.type == "identifier":
            return RubyAstUtils.get_node_text(parameter, content)
        name = parameter.child_by_field_name("name")
        if name is None:
            return None
        return RubyAstUtils.get_node_text(name, content)

    @staticmethod
    def all_identifiers(node: Node, content: bytes) -> list[str]:
        """Every identifier under ``node`` (for destructuring targets)."""
        found = []
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type == "identifier":
                found.append(RubyAstUtils.get_node_text(current, content))
            stack.extend(reversed(current.named_children))
        return found

    @staticmethod
    def first_error(root: Node) -> Node | None:
        """The first ERROR or MISSING node in document order."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node
            if node.has_error:
                stack.extend(reversed(node.children))
        return None

    @staticmethod
    def syntax_error(root: Node, content: bytes, name: str) -> ProgramSyntaxError:
        """Build the error reported for a tree containing parse errors."""
        error = RubyAstUtils.first_error(root) or root
        line, column = error.start_point[0] + 1, error.start_point[1] + 1
        if error.is_missing:
            details = f"missing {error.type}"
        else:
            text = RubyAstUtils.get_node_text(error, content).strip().splitlines()
            details = f"unexpected {text[0]!r}" if text else "unexpected input"
        return ProgramSyntaxError(name, line, column, details)
