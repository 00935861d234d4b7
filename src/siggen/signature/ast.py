"""Declaration model for the signature language.

All nodes are frozen dataclasses. Source locations are carried for error
reporting only and never take part in equality, so a declaration parsed from
two different texts compares equal when its structure does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class Location:
    """Source span of a declaration or member."""

    name: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def __str__(self) -> str:
        return f"{self.name}:{self.start_line}:{self.start_column}"


def _location():
    return field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class TypeName:
    """A possibly namespaced constant or alias name (``Foo::Bar``, ``::Baz``)."""

    name: str
    namespace: tuple[str, ...] = ()
    absolute: bool = False

    @classmethod
    def parse(cls, text: str) -> TypeName:
        absolute = text.startswith("::")
        parts = [part for part in text.split("::") if part]
        if not parts:
            raise ValueError(f"invalid type name: {text!r}")
        return cls(name=parts[-1], namespace=tuple(parts[:-1]), absolute=absolute)

    def relative(self) -> TypeName:
        return TypeName(self.name, self.namespace, False)

    def qualified(self) -> str:
        """Qualified name without the leading ``::``."""
        return "::".join(self.namespace + (self.name,))

    def __str__(self) -> str:
        prefix = "::" if self.absolute else ""
        return prefix + self.qualified()


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def _args_string(args: tuple[Type, ...]) -> str:
    return f"[{', '.join(str(arg) for arg in args)}]" if args else ""


@dataclass(frozen=True)
class ClassInstanceType:
    name: TypeName
    args: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}{_args_string(self.args)}"


@dataclass(frozen=True)
class ClassSingletonType:
    name: TypeName

    def __str__(self) -> str:
        return f"singleton({self.name})"


@dataclass(frozen=True)
class InterfaceType:
    name: TypeName
    args: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}{_args_string(self.args)}"


@dataclass(frozen=True)
class AliasType:
    name: TypeName
    args: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}{_args_string(self.args)}"


BASE_TYPE_KEYWORDS = frozenset(
    {
        "self",
        "instance",
        "class",
        "void",
        "untyped",
        "nil",
        "top",
        "bot",
        "bool",
        "boolish",
        "true",
        "false",
    }
)


@dataclass(frozen=True)
class BaseType:
    keyword: str

    def __post_init__(self) -> None:
        if self.keyword not in BASE_TYPE_KEYWORDS:
            raise ValueError(f"unknown base type: {self.keyword}")

    def __str__(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class LiteralType:
    """String, symbol or integer literal type, kept in source form."""

    literal: str

    def __str__(self) -> str:
        return self.literal


@dataclass(frozen=True)
class OptionalType:
    type: Type

    def __str__(self) -> str:
        inner = self.type
        if isinstance(inner, (UnionType, IntersectionType, ProcType, OptionalType)):
            return f"({inner})?"
        return f"{inner}?"


@dataclass(frozen=True)
class UnionType:
    types: tuple[Type, ...]

    def __str__(self) -> str:
        return " | ".join(
            f"({t})" if isinstance(t, (UnionType, ProcType)) else str(t) for t in self.types
        )


@dataclass(frozen=True)
class IntersectionType:
    types: tuple[Type, ...]

    def __str__(self) -> str:
        return " & ".join(
            f"({t})" if isinstance(t, (UnionType, IntersectionType, ProcType)) else str(t)
            for t in self.types
        )


@dataclass(frozen=True)
class TupleType:
    types: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"[{', '.join(str(t) for t in self.types)}]" if self.types else "[ ]"


@dataclass(frozen=True)
class RecordField:
    key: str
    type: Type
    required: bool = True

    def __str__(self) -> str:
        prefix = "" if self.required else "?"
        return f"{prefix}{self.key}: {self.type}"


@dataclass(frozen=True)
class RecordType:
    fields: tuple[RecordField, ...]

    def __str__(self) -> str:
        return "{ " + ", ".join(str(f) for f in self.fields) + " }"


@dataclass(frozen=True)
class ProcType:
    function: FunctionType
    block: Optional[Block] = None
    self_type: Optional[Type] = None

    def __str__(self) -> str:
        self_binding = f" [self: {self.self_type}]" if self.self_type is not None else ""
        block = f" {self.block}" if self.block is not None else ""
        return (
            f"^({self.function.param_string()}){self_binding}{block} "
            f"-> {return_type_string(self.function.return_type)}"
        )


Type = Union[
    ClassInstanceType,
    ClassSingletonType,
    InterfaceType,
    AliasType,
    BaseType,
    LiteralType,
    OptionalType,
    UnionType,
    IntersectionType,
    TupleType,
    RecordType,
    ProcType,
]


def return_type_string(type_: Type) -> str:
    """Render a type in return position, where unions need parentheses."""
    if isinstance(type_, (UnionType, IntersectionType)):
        return f"({type_})"
    return str(type_)


# ---------------------------------------------------------------------------
# Functions and method types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Param:
    type: Type
    name: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.type} {self.name}" if self.name else str(self.type)


@dataclass(frozen=True)
class FunctionType:
    required_positionals: tuple[Param, ...] = ()
    optional_positionals: tuple[Param, ...] = ()
    rest_positionals: Optional[Param] = None
    trailing_positionals: tuple[Param, ...] = ()
    required_keywords: tuple[tuple[str, Param], ...] = ()
    optional_keywords: tuple[tuple[str, Param], ...] = ()
    rest_keywords: Optional[Param] = None
    return_type: Type = field(default_factory=lambda: BaseType("void"))

    def param_string(self) -> str:
        parts = [str(p) for p in self.required_positionals]
        parts += [f"?{p}" for p in self.optional_positionals]
        if self.rest_positionals is not None:
            parts.append(f"*{self.rest_positionals}")
        parts += [str(p) for p in self.trailing_positionals]
        parts += [f"{key}: {p}" for key, p in self.required_keywords]
        parts += [f"?{key}: {p}" for key, p in self.optional_keywords]
        if self.rest_keywords is not None:
            parts.append(f"**{self.rest_keywords}")
        return ", ".join(parts)

    def accepts_positional_count(self, count: int) -> bool:
        """Whether ``count`` positional arguments fit this function's arity."""
        minimum = len(self.required_positionals) + len(self.trailing_positionals)
        if count < minimum:
            return False
        if self.rest_positionals is not None:
            return True
        return count <= minimum + len(self.optional_positionals)


@dataclass(frozen=True)
class Block:
    function: FunctionType
    required: bool = True
    self_type: Optional[Type] = None

    def __str__(self) -> str:
        prefix = "" if self.required else "?"
        self_binding = f" [self: {self.self_type}]" if self.self_type is not None else ""
        return (
            f"{prefix}{{ ({self.function.param_string()}){self_binding} "
            f"-> {return_type_string(self.function.return_type)} }}"
        )


@dataclass(frozen=True)
class TypeParam:
    name: str
    variance: str = "invariant"
    upper_bound: Optional[Type] = None
    unchecked: bool = False

    def __str__(self) -> str:
        parts = []
        if self.unchecked:
            parts.append("unchecked")
        if self.variance == "covariant":
            parts.append("out")
        elif self.variance == "contravariant":
            parts.append("in")
        parts.append(self.name)
        text = " ".join(parts)
        if self.upper_bound is not None:
            text += f" < {self.upper_bound}"
        return text


def type_params_string(params: tuple[TypeParam, ...]) -> str:
    return f"[{', '.join(str(p) for p in params)}]" if params else ""


@dataclass(frozen=True)
class MethodType:
    function: FunctionType
    block: Optional[Block] = None
    type_params: tuple[TypeParam, ...] = ()

    def __str__(self) -> str:
        prefix = f"{type_params_string(self.type_params)} " if self.type_params else ""
        block = f" {self.block}" if self.block is not None else ""
        return (
            f"{prefix}({self.function.param_string()}){block} "
            f"-> {return_type_string(self.function.return_type)}"
        )


# ---------------------------------------------------------------------------
# Annotations and comments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Annotation:
    """Content of a ``%a{...}`` annotation, without delimiters."""

    string: str
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class Comment:
    string: str
    location: Optional[Location] = _location()


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MethodDefinition:
    """``def`` member. ``kind`` is instance, singleton or singleton_instance."""

    name: str
    kind: str = "instance"
    overloads: tuple[MethodType, ...] = ()
    overloading: bool = False
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()

    @property
    def is_singleton(self) -> bool:
        return self.kind in ("singleton", "singleton_instance")

    @property
    def is_instance(self) -> bool:
        return self.kind in ("instance", "singleton_instance")


@dataclass(frozen=True)
class AttributeMember:
    """``attr_reader``/``attr_writer``/``attr_accessor`` member."""

    kind: str
    name: str
    type: Type
    singleton: bool = False
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()

    @property
    def reader(self) -> bool:
        return self.kind in ("reader", "accessor")

    @property
    def writer(self) -> bool:
        return self.kind in ("writer", "accessor")


@dataclass(frozen=True)
class MixinMember:
    """``include``/``extend``/``prepend`` member."""

    kind: str
    name: TypeName
    args: tuple[Type, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class InstanceVariableMember:
    name: str
    type: Type
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class AliasMember:
    new_name: str
    old_name: str
    singleton: bool = False
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class VisibilityMember:
    visibility: str
    location: Optional[Location] = _location()


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SuperClass:
    name: TypeName
    args: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}{_args_string(self.args)}"


@dataclass(frozen=True)
class ModuleSelf:
    name: TypeName
    args: tuple[Type, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}{_args_string(self.args)}"


@dataclass(frozen=True)
class ClassDecl:
    name: TypeName
    type_params: tuple[TypeParam, ...] = ()
    super_class: Optional[SuperClass] = None
    members: tuple[Member, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class ModuleDecl:
    name: TypeName
    type_params: tuple[TypeParam, ...] = ()
    self_types: tuple[ModuleSelf, ...] = ()
    members: tuple[Member, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class InterfaceDecl:
    name: TypeName
    type_params: tuple[TypeParam, ...] = ()
    members: tuple[Member, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class TypeAliasDecl:
    name: TypeName
    type: Type
    type_params: tuple[TypeParam, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class ConstantDecl:
    name: TypeName
    type: Type
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


@dataclass(frozen=True)
class GlobalDecl:
    name: str
    type: Type
    annotations: tuple[Annotation, ...] = ()
    comment: Optional[Comment] = None
    location: Optional[Location] = _location()


Declaration = Union[ClassDecl, ModuleDecl, InterfaceDecl, TypeAliasDecl, ConstantDecl, GlobalDecl]

Member = Union[
    MethodDefinition,
    AttributeMember,
    MixinMember,
    InstanceVariableMember,
    AliasMember,
    VisibilityMember,
    ClassDecl,
    ModuleDecl,
    InterfaceDecl,
    TypeAliasDecl,
    ConstantDecl,
]

NESTABLE_DECLARATIONS = (ClassDecl, ModuleDecl, InterfaceDecl, TypeAliasDecl, ConstantDecl)
