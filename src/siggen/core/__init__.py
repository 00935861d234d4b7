"""Core module containing configuration, errors, program nodes and shared models."""

from siggen.core.config import SiggenConfig, get_config, reload_config
from siggen.core.errors import (
    AnalysisStateError,
    CannotStartDeclarationError,
    DuplicateDeclarationError,
    FragmentParseError,
    ProgramSyntaxError,
    SiggenError,
    SignatureSyntaxError,
    TemplateExpansionError,
    UnknownNodeError,
)
from siggen.core.models import (
    AnalyzedProgram,
    CallResolution,
    Fragment,
    MatchedDeclaration,
    Record,
    ResolutionKind,
    Scalar,
    SubstitutionValue,
)
from siggen.core.nodes import Call, CallWithBlock, Other, ProgramNode
from siggen.core.typing_index import TypingIndex

__all__ = [
    "AnalysisStateError",
    "AnalyzedProgram",
    "Call",
    "CallResolution",
    "CallWithBlock",
    "CannotStartDeclarationError",
    "DuplicateDeclarationError",
    "Fragment",
    "FragmentParseError",
    "MatchedDeclaration",
    "Other",
    "ProgramNode",
    "ProgramSyntaxError",
    "Record",
    "ResolutionKind",
    "Scalar",
    "SiggenConfig",
    "SiggenError",
    "SignatureSyntaxError",
    "SubstitutionValue",
    "TemplateExpansionError",
    "TypingIndex",
    "UnknownNodeError",
    "get_config",
    "reload_config",
]
