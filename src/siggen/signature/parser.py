"""Signature parser built on lark.

Parses RBS signature text into the declaration model in
:mod:`siggen.signature.ast`. Syntax errors surface as
:class:`~siggen.core.errors.SignatureSyntaxError`; the specific case of a
token that cannot begin a top-level declaration (a bare ``def`` fragment)
surfaces as :class:`~siggen.core.errors.CannotStartDeclarationError` so
callers can repair the text by wrapping it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from lark import Lark, Token, Transformer, UnexpectedInput, v_args

from siggen.core.errors import CannotStartDeclarationError, SignatureSyntaxError
from siggen.signature.ast import (
    AliasMember,
    AliasType,
    Annotation,
    AttributeMember,
    BaseType,
    Block,
    ClassDecl,
    ClassInstanceType,
    ClassSingletonType,
    Comment,
    ConstantDecl,
    Declaration,
    FunctionType,
    GlobalDecl,
    InstanceVariableMember,
    InterfaceDecl,
    InterfaceType,
    IntersectionType,
    LiteralType,
    Location,
    MethodDefinition,
    MethodType,
    MixinMember,
    ModuleDecl,
    ModuleSelf,
    OptionalType,
    Param,
    ProcType,
    RecordField,
    RecordType,
    SuperClass,
    TupleType,
    TypeAliasDecl,
    TypeName,
    TypeParam,
    UnionType,
    VisibilityMember,
)

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

# Terminals that only a top-level declaration (resp. a class body) can begin with.
_DECLARATION_START = "_CLASS"
_MEMBER_START = "_DEF"


class _TypeParams(tuple):
    pass


class _TypeArgs(tuple):
    pass


class _SelfTypes(tuple):
    pass


class _SelfBinding:
    def __init__(self, type_) -> None:
        self.type = type_


class _Overloads:
    def __init__(self, overloads: tuple[MethodType, ...], overloading: bool) -> None:
        self.overloads = overloads
        self.overloading = overloading


class _Params:
    """Parameters of a ``( ... )`` group, sorted into function-type slots."""

    def __init__(self, specs: list[tuple[str, str | None, Param]]) -> None:
        self.required: list[Param] = []
        self.optional: list[Param] = []
        self.rest: Param | None = None
        self.trailing: list[Param] = []
        self.required_keywords: list[tuple[str, Param]] = []
        self.optional_keywords: list[tuple[str, Param]] = []
        self.rest_keywords: Param | None = None

        for kind, keyword, param in specs:
            if kind == "required":
                if self.rest is not None or self.optional:
                    self.trailing.append(param)
                else:
                    self.required.append(param)
            elif kind == "optional":
                self.optional.append(param)
            elif kind == "rest":
                self.rest = param
            elif kind == "keyword":
                self.required_keywords.append((keyword, param))
            elif kind == "optional_keyword":
                self.optional_keywords.append((keyword, param))
            else:
                self.rest_keywords = param

    def function(self, return_type) -> FunctionType:
        return FunctionType(
            required_positionals=tuple(self.required),
            optional_positionals=tuple(self.optional),
            rest_positionals=self.rest,
            trailing_positionals=tuple(self.trailing),
            required_keywords=tuple(self.required_keywords),
            optional_keywords=tuple(self.optional_keywords),
            rest_keywords=self.rest_keywords,
            return_type=return_type,
        )


_NO_PARAMS = _Params([])


def _split_function_parts(children: list) -> tuple[_Params, _SelfBinding | None, Block | None, object]:
    """Pick the optional parts of a method, block or proc signature apart."""
    params = _NO_PARAMS
    self_binding = None
    block = None
    for child in children[:-1]:
        if isinstance(child, _Params):
            params = child
        elif isinstance(child, _SelfBinding):
            self_binding = child
        elif isinstance(child, Block):
            block = child
    return params, self_binding, block, children[-1]


def _param(kind: str, children: list) -> tuple[str, str | None, Param]:
    keyword = None
    if isinstance(children[0], Token) and children[0].type == "KEYWORD_LABEL":
        keyword = str(children[0])[:-1]
        children = children[1:]
    name = str(children[1]) if len(children) > 1 else None
    return kind, keyword, Param(type=children[0], name=name)


def _annotation_body(token: Token) -> str:
    # Strip "%a" and the opening/closing delimiter.
    return str(token)[3:-1]


class _SignatureTransformer(Transformer):
    """Turns the lark parse tree into declaration dataclasses."""

    def __init__(self, name: str, comments: dict[int, Comment]) -> None:
        super().__init__()
        self._name = name
        self._comments = comments

    def _attach(self, meta, body, annotations: tuple[Annotation, ...]):
        location = Location(
            name=self._name,
            start_line=meta.line,
            start_column=meta.column,
            end_line=meta.end_line,
            end_column=meta.end_column,
        )
        if isinstance(body, VisibilityMember):
            return replace(body, location=location)
        first_line = annotations[0].location.start_line if annotations else meta.line
        comment = self._comments.get(first_line - 1)
        return replace(body, annotations=annotations, comment=comment, location=location)

    def start(self, children) -> list[Declaration]:
        return list(children)

    @v_args(meta=True)
    def declaration(self, meta, children):
        annotations, body = children
        return self._attach(meta, body, annotations)

    @v_args(meta=True)
    def member(self, meta, children):
        annotations, body = children
        return self._attach(meta, body, annotations)

    def annotations(self, children) -> tuple[Annotation, ...]:
        return tuple(
            Annotation(
                string=_annotation_body(token),
                location=Location(
                    self._name, token.line, token.column, token.end_line, token.end_column
                ),
            )
            for token in children
        )

    # Declarations

    def class_decl(self, children) -> ClassDecl:
        type_params: tuple[TypeParam, ...] = ()
        super_class = None
        members = []
        for child in children[1:]:
            if isinstance(child, _TypeParams):
                type_params = tuple(child)
            elif isinstance(child, SuperClass):
                super_class = child
            else:
                members.append(child)
        return ClassDecl(
            name=children[0],
            type_params=type_params,
            super_class=super_class,
            members=tuple(members),
        )

    def super_class(self, children) -> SuperClass:
        args = tuple(children[1]) if len(children) > 1 else ()
        return SuperClass(name=children[0], args=args)

    def module_decl(self, children) -> ModuleDecl:
        type_params: tuple[TypeParam, ...] = ()
        self_types: tuple[ModuleSelf, ...] = ()
        members = []
        for child in children[1:]:
            if isinstance(child, _TypeParams):
                type_params = tuple(child)
            elif isinstance(child, _SelfTypes):
                self_types = tuple(child)
            else:
                members.append(child)
        return ModuleDecl(
            name=children[0],
            type_params=type_params,
            self_types=self_types,
            members=tuple(members),
        )

    def module_self_types(self, children) -> _SelfTypes:
        return _SelfTypes(children)

    def module_self(self, children) -> ModuleSelf:
        args = tuple(children[1]) if len(children) > 1 else ()
        return ModuleSelf(name=children[0], args=args)

    def interface_decl(self, children) -> InterfaceDecl:
        type_params: tuple[TypeParam, ...] = ()
        members = []
        for child in children[1:]:
            if isinstance(child, _TypeParams):
                type_params = tuple(child)
            else:
                members.append(child)
        return InterfaceDecl(name=children[0], type_params=type_params, members=tuple(members))

    def type_alias_decl(self, children) -> TypeAliasDecl:
        type_params = tuple(children[1]) if len(children) > 2 else ()
        return TypeAliasDecl(name=children[0], type=children[-1], type_params=type_params)

    def constant_decl(self, children) -> ConstantDecl:
        return ConstantDecl(name=children[0], type=children[1])

    def global_decl(self, children) -> GlobalDecl:
        return GlobalDecl(name=str(children[0]), type=children[1])

    # Members

    def method_member(self, children) -> MethodDefinition:
        if len(children) == 3:
            kind, name, overloads = children
        else:
            kind = "instance"
            name, overloads = children
        return MethodDefinition(
            name=name,
            kind=kind,
            overloads=overloads.overloads,
            overloading=overloads.overloading,
        )

    def method_kind(self, children) -> str:
        return "singleton" if children[0].type == "SELF_DOT" else "singleton_instance"

    def method_name(self, children) -> str:
        return str(children[0])

    def method_types(self, children) -> _Overloads:
        overloads = tuple(child for child in children if isinstance(child, MethodType))
        overloading = any(isinstance(child, Token) and child.type == "DOTS" for child in children)
        return _Overloads(overloads, overloading)

    def method_type(self, children) -> MethodType:
        type_params: tuple[TypeParam, ...] = ()
        if isinstance(children[0], _TypeParams):
            type_params = tuple(children[0])
            children = children[1:]
        params, _, block, return_type = _split_function_parts(children)
        return MethodType(function=params.function(return_type), block=block, type_params=type_params)

    def attribute_member(self, children) -> AttributeMember:
        kind = str(children[0])[len("attr_"):]
        singleton = any(isinstance(c, Token) and c.type == "SELF_DOT" for c in children)
        label = next(c for c in children if isinstance(c, Token) and c.type == "KEYWORD_LABEL")
        return AttributeMember(kind=kind, name=str(label)[:-1], type=children[-1], singleton=singleton)

    def mixin_member(self, children) -> MixinMember:
        args = tuple(children[2]) if len(children) > 2 else ()
        return MixinMember(kind=str(children[0]), name=children[1], args=args)

    def ivar_member(self, children) -> InstanceVariableMember:
        return InstanceVariableMember(name=str(children[0]), type=children[1])

    def alias_member(self, children) -> AliasMember:
        singleton = any(isinstance(c, Token) and c.type == "SELF_DOT" for c in children)
        new_name, old_name = [c for c in children if not isinstance(c, Token)]
        return AliasMember(new_name=new_name, old_name=old_name, singleton=singleton)

    def visibility_member(self, children) -> VisibilityMember:
        return VisibilityMember(visibility=str(children[0]))

    # Functions

    def param_group(self, children) -> _Params:
        return _Params(children)

    def required_param(self, children):
        return _param("required", children)

    def optional_param(self, children):
        return _param("optional", children)

    def rest_param(self, children):
        return _param("rest", children)

    def keyword_param(self, children):
        return _param("keyword", children)

    def optional_keyword_param(self, children):
        return _param("optional_keyword", children)

    def rest_keyword_param(self, children):
        return _param("rest_keyword", children)

    def block(self, children) -> Block:
        params, self_binding, _, return_type = _split_function_parts(children)
        self_type = self_binding.type if self_binding is not None else None
        return Block(function=params.function(return_type), required=True, self_type=self_type)

    def optional_block(self, children) -> Block:
        return replace(self.block(children), required=False)

    def self_binding(self, children) -> _SelfBinding:
        return _SelfBinding(children[0])

    def type_params(self, children) -> _TypeParams:
        return _TypeParams(children)

    def type_param(self, children) -> TypeParam:
        unchecked = False
        variance = "invariant"
        name = ""
        upper_bound = None
        for child in children:
            if not isinstance(child, Token):
                upper_bound = child
            elif child.type == "UNCHECKED":
                unchecked = True
            elif child.type == "VARIANCE":
                variance = "covariant" if child == "out" else "contravariant"
            else:
                name = str(child)
        return TypeParam(name=name, variance=variance, upper_bound=upper_bound, unchecked=unchecked)

    def type_args(self, children) -> _TypeArgs:
        return _TypeArgs(children)

    # Types

    def union_type(self, children) -> UnionType:
        left, right = children
        head = left.types if isinstance(left, UnionType) else (left,)
        return UnionType(types=head + (right,))

    def intersection_type(self, children) -> IntersectionType:
        left, right = children
        head = left.types if isinstance(left, IntersectionType) else (left,)
        return IntersectionType(types=head + (right,))

    def optional_type(self, children) -> OptionalType:
        return OptionalType(type=children[0])

    def class_instance_type(self, children) -> ClassInstanceType:
        args = tuple(children[1]) if len(children) > 1 else ()
        return ClassInstanceType(name=children[0], args=args)

    def interface_type(self, children) -> InterfaceType:
        args = tuple(children[1]) if len(children) > 1 else ()
        return InterfaceType(name=children[0], args=args)

    def alias_type(self, children) -> AliasType:
        args = tuple(children[1]) if len(children) > 1 else ()
        return AliasType(name=children[0], args=args)

    def class_singleton_type(self, children) -> ClassSingletonType:
        return ClassSingletonType(name=children[0])

    def base_type(self, children) -> BaseType:
        return BaseType(keyword=str(children[0]))

    def literal_type(self, children) -> LiteralType:
        return LiteralType(literal=str(children[0]))

    def tuple_type(self, children) -> TupleType:
        return TupleType(types=tuple(children))

    def record_type(self, children) -> RecordType:
        return RecordType(fields=tuple(children))

    def record_field(self, children) -> RecordField:
        return RecordField(key=str(children[0])[:-1], type=children[1])

    def optional_record_field(self, children) -> RecordField:
        return RecordField(key=str(children[0])[:-1], type=children[1], required=False)

    def proc_type(self, children) -> ProcType:
        params, self_binding, block, return_type = _split_function_parts(children)
        self_type = self_binding.type if self_binding is not None else None
        return ProcType(function=params.function(return_type), block=block, self_type=self_type)

    def class_name(self, children) -> TypeName:
        return TypeName.parse("".join(str(c) for c in children))

    interface_name = class_name
    alias_name = class_name


def _comment_blocks(tokens: list[Token], name: str) -> dict[int, Comment]:
    """Group consecutive comment lines; key each block by its last line."""
    blocks: dict[int, Comment] = {}
    lines: list[str] = []
    first: Token | None = None
    last_line = -1

    def flush() -> None:
        if first is not None:
            blocks[last_line] = Comment(
                string="\n".join(lines),
                location=Location(name, first.line, first.column, last_line, 0),
            )

    for token in sorted(tokens, key=lambda t: (t.line, t.column)):
        text = str(token)[1:]
        if text.startswith(" "):
            text = text[1:]
        if first is not None and token.line == last_line + 1:
            lines.append(text)
        else:
            flush()
            first = token
            lines = [text]
        last_line = token.line
    flush()
    return blocks


class SignatureParser:
    """Parser for RBS signature text.

    One instance owns one lark parser; instances are not meant to be shared
    between threads.
    """

    def __init__(self) -> None:
        self._comments: list[Token] = []
        self._lark = Lark(
            _GRAMMAR_SRC,
            parser="lalr",
            lexer="contextual",
            propagate_positions=True,
            maybe_placeholders=False,
            lexer_callbacks={"COMMENT": self._comments.append},
        )

    def parse(self, text: str, name: str = "a.rbs") -> list[Declaration]:
        """Parse signature text into top-level declarations.

        Args:
            text: Signature source.
            name: Label used in locations and error messages.

        Returns:
            Declarations in source order.

        Raises:
            CannotStartDeclarationError: A top-level position holds a token that
                cannot begin a declaration.
            SignatureSyntaxError: Any other syntax error.
        """
        self._comments.clear()
        try:
            tree = self._lark.parse(text)
        except UnexpectedInput as e:
            raise _syntax_error(e, name) from e

        comments = _comment_blocks(list(self._comments), name)
        declarations = _SignatureTransformer(name, comments).transform(tree)
        logger.debug(f"Parsed {len(declarations)} declarations from {name}")
        return declarations


def _syntax_error(error: UnexpectedInput, name: str) -> SignatureSyntaxError:
    expected = set(getattr(error, "expected", None) or getattr(error, "allowed", None) or ())
    line = error.line if getattr(error, "line", -1) > 0 else None
    column = error.column if getattr(error, "column", -1) > 0 else None
    details = str(error).strip().splitlines()[0] if str(error).strip() else type(error).__name__

    if _DECLARATION_START in expected and _MEMBER_START not in expected:
        return CannotStartDeclarationError(name, line, column, f"cannot start a declaration ({details})")
    return SignatureSyntaxError(name, line, column, details)
