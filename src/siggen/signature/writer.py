"""Canonical text output for signature declarations."""

from __future__ import annotations

from collections.abc import Iterable

from siggen.signature.ast import (
    AliasMember,
    Annotation,
    AttributeMember,
    ClassDecl,
    Comment,
    ConstantDecl,
    Declaration,
    GlobalDecl,
    InstanceVariableMember,
    InterfaceDecl,
    Member,
    MethodDefinition,
    MixinMember,
    ModuleDecl,
    TypeAliasDecl,
    VisibilityMember,
    type_params_string,
)

_ANNOTATION_DELIMITERS = (("{", "}"), ("(", ")"), ("[", "]"), ("<", ">"), ("|", "|"))

_METHOD_PREFIX = {
    "instance": "",
    "singleton": "self.",
    "singleton_instance": "self?.",
}


def format_annotation(annotation: Annotation) -> str:
    """Render an annotation, picking delimiters its body does not contain."""
    for opening, closing in _ANNOTATION_DELIMITERS:
        if closing not in annotation.string:
            return f"%a{opening}{annotation.string}{closing}"
    raise ValueError(f"annotation cannot be delimited: {annotation.string!r}")


class SignatureWriter:
    """Writes declarations as RBS text.

    Members are indented by ``indent`` per nesting level, overloads are aligned
    under the method's colon, and top-level declarations are separated by a
    blank line.
    """

    def __init__(self, indent: str = "  ") -> None:
        self._indent = indent

    def write(self, declarations: Iterable[Declaration]) -> str:
        chunks = ["\n".join(self._declaration(decl, 0)) for decl in declarations]
        if not chunks:
            return ""
        return "\n\n".join(chunks) + "\n"

    def _prefix(self, decl, level: int) -> list[str]:
        pad = self._indent * level
        lines = []
        comment: Comment | None = getattr(decl, "comment", None)
        if comment is not None:
            for line in comment.string.split("\n"):
                lines.append(f"{pad}# {line}".rstrip())
        for annotation in getattr(decl, "annotations", ()):
            lines.append(pad + format_annotation(annotation))
        return lines

    def _declaration(self, decl: Declaration, level: int) -> list[str]:
        pad = self._indent * level
        lines = self._prefix(decl, level)

        if isinstance(decl, ClassDecl):
            header = f"class {decl.name}{type_params_string(decl.type_params)}"
            if decl.super_class is not None:
                header += f" < {decl.super_class}"
            lines.append(pad + header)
            lines.extend(self._body(decl.members, level + 1))
            lines.append(pad + "end")
        elif isinstance(decl, ModuleDecl):
            header = f"module {decl.name}{type_params_string(decl.type_params)}"
            if decl.self_types:
                header += " : " + ", ".join(str(s) for s in decl.self_types)
            lines.append(pad + header)
            lines.extend(self._body(decl.members, level + 1))
            lines.append(pad + "end")
        elif isinstance(decl, InterfaceDecl):
            lines.append(pad + f"interface {decl.name}{type_params_string(decl.type_params)}")
            lines.extend(self._body(decl.members, level + 1))
            lines.append(pad + "end")
        elif isinstance(decl, TypeAliasDecl):
            lines.append(pad + f"type {decl.name}{type_params_string(decl.type_params)} = {decl.type}")
        elif isinstance(decl, ConstantDecl):
            lines.append(pad + f"{decl.name}: {decl.type}")
        elif isinstance(decl, GlobalDecl):
            lines.append(pad + f"{decl.name}: {decl.type}")
        else:
            raise TypeError(f"not a declaration: {decl!r}")
        return lines

    def _body(self, members: Iterable[Member], level: int) -> list[str]:
        lines: list[str] = []
        for member in members:
            if isinstance(member, (ClassDecl, ModuleDecl, InterfaceDecl, TypeAliasDecl, ConstantDecl)):
                lines.extend(self._declaration(member, level))
            else:
                lines.extend(self._member(member, level))
        return lines

    def _member(self, member: Member, level: int) -> list[str]:
        pad = self._indent * level
        lines = self._prefix(member, level)

        if isinstance(member, MethodDefinition):
            head = f"def {_METHOD_PREFIX[member.kind]}{member.name}:"
            types = [str(t) for t in member.overloads]
            if member.overloading:
                types.append("...")
            lines.append(f"{pad}{head} {types[0]}")
            for method_type in types[1:]:
                lines.append(f"{pad}{' ' * (len(head) - 1)}| {method_type}")
        elif isinstance(member, AttributeMember):
            prefix = "self." if member.singleton else ""
            lines.append(f"{pad}attr_{member.kind} {prefix}{member.name}: {member.type}")
        elif isinstance(member, MixinMember):
            args = f"[{', '.join(str(a) for a in member.args)}]" if member.args else ""
            lines.append(f"{pad}{member.kind} {member.name}{args}")
        elif isinstance(member, InstanceVariableMember):
            lines.append(f"{pad}{member.name}: {member.type}")
        elif isinstance(member, AliasMember):
            prefix = "self." if member.singleton else ""
            lines.append(f"{pad}alias {prefix}{member.new_name} {prefix}{member.old_name}")
        elif isinstance(member, VisibilityMember):
            lines.append(f"{pad}{member.visibility}")
        else:
            raise TypeError(f"not a member: {member!r}")
        return lines
