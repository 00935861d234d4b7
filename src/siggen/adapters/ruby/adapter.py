"""Ruby language adapter using tree-sitter-ruby.

This module implements the LanguageAdapter interface for Ruby programs:
parse with tree-sitter, reject trees with syntax errors, then convert and
resolve call sites in a single pass.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import tree_sitter_ruby as tsruby
from tree_sitter import Language, Parser

from siggen.adapters.base import LanguageAdapter
from siggen.adapters.ruby.ast_utils import RubyAstUtils
from siggen.adapters.ruby.resolver import RubyTypeResolver
from siggen.core.models import AnalyzedProgram
from siggen.core.typing_index import TypingIndex

if TYPE_CHECKING:
    from siggen.signature.environment import SignatureEnvironment

logger = logging.getLogger(__name__)


class RubyAdapter(LanguageAdapter):
    """Ruby language adapter using tree-sitter."""

    def __init__(self) -> None:
        """Initialize the Ruby adapter."""
        self._language = Language(tsruby.language())
        self._parser = Parser(self._language)

    @property
    def language_name(self) -> str:
        """Return Ruby as the supported language."""
        return "ruby"

    @property
    def file_extensions(self) -> tuple[str, ...]:
        return (".rb",)

    def analyze_program(
        self, text: str, name: str, environment: SignatureEnvironment
    ) -> AnalyzedProgram:
        content = text.encode("utf-8")
        tree = self._parser.parse(content)
        root = tree.root_node
        if root.has_error:
            raise RubyAstUtils.syntax_error(root, content, name)

        resolver = RubyTypeResolver(environment, content)
        program, resolutions = resolver.resolve(root)
        logger.debug(f"Analyzed {name}: {len(resolutions)} call sites")
        return AnalyzedProgram(name=name, root=program, typing=TypingIndex(resolutions))
