"""Public client interface for siggen.

siggen already exposes lower-level building blocks (signature/, adapters/ and
generation/). This module provides the engine callers normally use: load
signatures, analyze a program, generate declarations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from siggen.adapters.base import LanguageAdapter
from siggen.adapters.ruby import RubyAdapter
from siggen.core.config import SiggenConfig, get_config
from siggen.core.errors import AnalysisStateError, SiggenError
from siggen.core.models import AnalyzedProgram
from siggen.generation import DeclarationMerger, TemplateBinder, TemplateExpander, Traversal
from siggen.signature.ast import Declaration
from siggen.signature.environment import EnvironmentLoader, SignatureEnvironment
from siggen.signature.parser import SignatureParser
from siggen.signature.writer import SignatureWriter

logger = logging.getLogger(__name__)

AnalyzeCallback = Callable[["Siggen", Path], None]


class Siggen:
    """Type-directed declaration generator.

    Owns one signature environment and the state of the most recent program
    analysis. Not safe for concurrent use.
    """

    def __init__(
        self,
        config: SiggenConfig | None = None,
        *,
        adapter: LanguageAdapter | None = None,
    ) -> None:
        """Create an engine and preload its signature environment.

        Args:
            config: Settings; defaults to the cached global configuration.
            adapter: Program-language adapter; defaults to Ruby.

        Raises:
            SignatureSyntaxError: If a preloaded signature file is malformed.
        """
        self._config = config or get_config()
        self._adapter = adapter or RubyAdapter()
        self._parser = SignatureParser()
        self._environment = SignatureEnvironment(self._parser, marker=self._config.annotation_marker)
        self._program: AnalyzedProgram | None = None

        self._binder = TemplateBinder()
        self._expander = TemplateExpander(self._parser)
        self._merger = DeclarationMerger()
        self._writer = SignatureWriter()

        loader = EnvironmentLoader(
            self._config.signature_paths,
            load_core=self._config.load_core,
            glob=self._config.signature_glob,
        )
        loader.load(self._environment)

    @property
    def config(self) -> SiggenConfig:
        return self._config

    @property
    def environment(self) -> SignatureEnvironment:
        """The signature environment (read it, extend it via add_signature)."""
        return self._environment

    @property
    def program(self) -> AnalyzedProgram | None:
        """The current analysis state, or None before the first analysis."""
        return self._program

    def add_signature(self, text: str, name: str | None = None) -> list[Declaration]:
        """Parse signature text and add it to the environment.

        Args:
            text: Signature source.
            name: Label used in error messages.

        Returns:
            The parsed top-level declarations.

        Raises:
            SignatureSyntaxError: If the text is malformed; the environment is
                left unchanged.
        """
        return self._environment.add_signature(text, name or self._config.default_signature_name)

    def analyze_program(self, text: str, name: str | None = None) -> AnalyzedProgram:
        """Analyze one program, replacing the current analysis state.

        Raises:
            ProgramSyntaxError: If the program is malformed; the previous
                state is kept.
        """
        program = self._adapter.analyze_program(
            text, name or self._config.default_program_name, self._environment
        )
        self._program = program
        return program

    def analyze(self, path: Path | str, callback: AnalyzeCallback | None = None) -> list[Path]:
        """Analyze every program file under ``path``, one at a time.

        Each analysis replaces the previous one, so callers generate from the
        callback, which runs after each file.

        Args:
            path: A program file or a directory searched recursively.
            callback: Called with ``(engine, file)`` after each file.

        Returns:
            The analyzed files, in order.
        """
        files = self._program_files(Path(path))
        for file in files:
            self._program = self._adapter.analyze_file(file, self._environment)
            if callback is not None:
                callback(self, file)
        logger.info(f"Analyzed {len(files)} program files under {path}")
        return files

    def _program_files(self, path: Path) -> list[Path]:
        if path.is_file():
            return [path]
        if path.is_dir():
            extensions = self._adapter.file_extensions
            return sorted(
                p
                for p in path.glob(self._config.program_glob)
                if p.is_file() and (not extensions or p.suffix in extensions)
            )
        raise SiggenError("Program path does not exist", str(path))

    def generate(self) -> str:
        """Generate declarations for the current analysis state.

        Returns:
            Canonical signature text without blank lines; empty when no call
            site carries a template.

        Raises:
            AnalysisStateError: If no program has been analyzed.
            TemplateExpansionError: If a template fails to render.
            FragmentParseError: If expanded text is not a valid signature.
        """
        if self._program is None:
            raise AnalysisStateError("Nothing to generate", "no program has been analyzed")

        traversal = Traversal(self._program.typing, self._binder, self._expander)
        declarations: list[Declaration] = []
        fragments = 0
        for fragment in traversal.traverse(self._program.root):
            declarations.extend(self._expander.parse_fragment(fragment))
            fragments += 1
        if not fragments:
            return ""

        merged = self._merger.merge(declarations)
        logger.info(
            f"Generated {fragments} fragments into {len(merged)} declarations for {self._program.name}"
        )
        text = self._writer.write(merged)
        return "".join(line for line in text.splitlines(keepends=True) if line.strip())
