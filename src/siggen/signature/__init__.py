"""Signature language support: declaration model, parser, writer and environment."""

from siggen.signature.ast import (
    Annotation,
    ClassDecl,
    Comment,
    Declaration,
    InterfaceDecl,
    Member,
    MethodDefinition,
    MethodType,
    ModuleDecl,
    ModuleSelf,
    SuperClass,
    Type,
    TypeName,
)
from siggen.signature.environment import (
    EnvironmentLoader,
    MethodEntry,
    SignatureEnvironment,
    extract_templates,
)
from siggen.signature.parser import SignatureParser
from siggen.signature.writer import SignatureWriter, format_annotation

__all__ = [
    "Annotation",
    "ClassDecl",
    "Comment",
    "Declaration",
    "EnvironmentLoader",
    "InterfaceDecl",
    "Member",
    "MethodDefinition",
    "MethodEntry",
    "MethodType",
    "ModuleDecl",
    "ModuleSelf",
    "SignatureEnvironment",
    "SignatureParser",
    "SignatureWriter",
    "Type",
    "TypeName",
    "extract_templates",
    "format_annotation",
]
