"""Base class for language adapters.

A language adapter is the type resolver of the pipeline: it parses program
text, converts the concrete syntax tree into :mod:`siggen.core.nodes`
variants, and records a call resolution for every call site it can type
against the signature environment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from siggen.core.models import AnalyzedProgram
    from siggen.signature.environment import SignatureEnvironment


class LanguageAdapter(ABC):
    """Abstract base class for program-language adapters.

    Subclasses must implement the abstract methods for their specific language.
    """

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the supported program language."""
        ...

    @property
    def file_extensions(self) -> tuple[str, ...]:
        """Source file extensions handled by this adapter."""
        return ()

    @abstractmethod
    def analyze_program(
        self, text: str, name: str, environment: SignatureEnvironment
    ) -> AnalyzedProgram:
        """Parse and type one program.

        Args:
            text: Program source.
            name: Label used in error messages.
            environment: Signature environment call sites are resolved against.

        Returns:
            The program AST together with its typing index.

        Raises:
            ProgramSyntaxError: If the program text does not parse.
        """
        ...

    def analyze_file(self, path: Path, environment: SignatureEnvironment) -> AnalyzedProgram:
        """Read ``path`` and analyze it, labelled with its path."""
        return self.analyze_program(path.read_text(encoding="utf-8"), str(path), environment)
