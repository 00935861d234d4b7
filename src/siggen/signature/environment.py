"""Signature environment: indexed declarations and method lookup.

The environment owns every declaration added to it, indexed by qualified
name. Nested declarations are registered under their outer name
(``class A; class B`` becomes ``A::B``) and reopened classes accumulate.
Generation templates are extracted from method annotations once, when the
declaration is added.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from siggen.core.errors import DuplicateDeclarationError, SiggenError
from siggen.signature.ast import (
    AliasMember,
    Annotation,
    AttributeMember,
    ClassDecl,
    ConstantDecl,
    Declaration,
    FunctionType,
    GlobalDecl,
    InterfaceDecl,
    MethodDefinition,
    MethodType,
    MixinMember,
    ModuleDecl,
    Param,
    Type,
    TypeAliasDecl,
    TypeName,
)
from siggen.signature.parser import SignatureParser

logger = logging.getLogger(__name__)

CORE_ROOT = Path(__file__).with_name("core")

_MAX_ANCESTOR_DEPTH = 64


def extract_templates(annotations: Iterable[Annotation], marker: str) -> tuple[str, ...]:
    """Return the template bodies of annotations carrying ``marker``.

    The body is the text following the first occurrence of the marker (up to
    a second occurrence, if any), stripped of surrounding whitespace.
    """
    return tuple(
        annotation.string.split(marker)[1].strip()
        for annotation in annotations
        if marker in annotation.string
    )


def namespace_prefixes(qualified: str) -> tuple[str, ...]:
    """Lexical nesting of a qualified name, innermost first.

    ``"A::B::C"`` yields ``("A::B::C", "A::B", "A")``.
    """
    parts = qualified.split("::") if qualified else []
    return tuple("::".join(parts[:i]) for i in range(len(parts), 0, -1))


@dataclass(frozen=True)
class _MethodRecord:
    name: str
    overloads: tuple[MethodType, ...]
    overloading: bool
    annotations: tuple[str, ...]
    templates: tuple[str, ...]


@dataclass(frozen=True)
class MethodEntry:
    """A method found through :meth:`SignatureEnvironment.find_method`.

    ``owner`` is the qualified name of the class, module or interface whose
    declaration defines the method; ``context`` is the lexical nesting used
    to resolve type names appearing in its signature.
    """

    owner: str
    name: str
    singleton: bool
    overloads: tuple[MethodType, ...]
    templates: tuple[str, ...] = ()
    annotations: tuple[str, ...] = ()
    context: tuple[str, ...] = ()


@dataclass
class _ModuleEntry:
    name: str
    kind: str
    declarations: list[Declaration] = field(default_factory=list)
    super_class: TypeName | None = None
    instance_methods: dict[str, list[_MethodRecord]] = field(default_factory=dict)
    singleton_methods: dict[str, list[_MethodRecord]] = field(default_factory=dict)
    instance_aliases: dict[str, str] = field(default_factory=dict)
    singleton_aliases: dict[str, str] = field(default_factory=dict)
    includes: list[TypeName] = field(default_factory=list)
    extends: list[TypeName] = field(default_factory=list)
    prepends: list[TypeName] = field(default_factory=list)

    @property
    def context(self) -> tuple[str, ...]:
        return namespace_prefixes(self.name)


_DECLARATION_KINDS = {ClassDecl: "class", ModuleDecl: "module", InterfaceDecl: "interface"}


class SignatureEnvironment:
    """Declarations indexed by qualified name, with Ruby-style method lookup."""

    def __init__(self, parser: SignatureParser | None = None, marker: str = "siggen:") -> None:
        if not marker:
            raise ValueError("annotation marker must not be empty")
        self._parser = parser or SignatureParser()
        self._marker = marker
        self._modules: dict[str, _ModuleEntry] = {}
        self._aliases: dict[str, TypeAliasDecl] = {}
        self._constants: dict[str, ConstantDecl] = {}
        self._globals: dict[str, GlobalDecl] = {}
        self._sources: list[str] = []

    @property
    def marker(self) -> str:
        return self._marker

    @property
    def sources(self) -> list[str]:
        """Labels of the signature texts added so far, in order."""
        return list(self._sources)

    def add_signature(self, text: str, name: str = "a.rbs") -> list[Declaration]:
        """Parse ``text`` and add its declarations.

        Parsing happens before any indexing, so a syntax error leaves the
        environment untouched.

        Args:
            text: Signature source.
            name: Label used in error messages.

        Returns:
            The parsed top-level declarations.
        """
        declarations = self._parser.parse(text, name)
        self.add_declarations(declarations, name)
        return declarations

    def add_declarations(self, declarations: Iterable[Declaration], name: str = "") -> None:
        declarations = list(declarations)
        self._check_kinds(declarations, ())
        for decl in declarations:
            self._index(decl, ())
        self._sources.append(name)
        logger.debug(f"Indexed {len(declarations)} declarations from {name or '<anonymous>'}")

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _qualify(self, type_name: TypeName, outer: tuple[str, ...]) -> str:
        if type_name.absolute or not outer:
            return type_name.qualified()
        return f"{outer[0]}::{type_name.qualified()}"

    def _check_kinds(self, declarations: list, outer: tuple[str, ...]) -> None:
        pending: dict[str, str] = {}
        for decl in declarations:
            kind = _DECLARATION_KINDS.get(type(decl))
            if kind is None:
                continue
            qualified = self._qualify(decl.name, outer)
            existing = self._modules.get(qualified)
            existing_kind = existing.kind if existing is not None else pending.get(qualified)
            if existing_kind is not None and existing_kind != kind:
                raise DuplicateDeclarationError(qualified, existing_kind, kind)
            pending[qualified] = kind
            nested = [m for m in decl.members if type(m) in _DECLARATION_KINDS]
            self._check_kinds(nested, (qualified,) + outer)

    def _index(self, decl: Declaration, outer: tuple[str, ...]) -> None:
        if isinstance(decl, TypeAliasDecl):
            self._aliases[self._qualify(decl.name, outer)] = decl
            return
        if isinstance(decl, ConstantDecl):
            self._constants[self._qualify(decl.name, outer)] = decl
            return
        if isinstance(decl, GlobalDecl):
            self._globals[decl.name] = decl
            return

        qualified = self._qualify(decl.name, outer)
        entry = self._modules.get(qualified)
        if entry is None:
            entry = _ModuleEntry(name=qualified, kind=_DECLARATION_KINDS[type(decl)])
            self._modules[qualified] = entry
        entry.declarations.append(decl)
        if isinstance(decl, ClassDecl) and decl.super_class is not None and entry.super_class is None:
            entry.super_class = decl.super_class.name

        inner = (qualified,) + outer
        for member in decl.members:
            if isinstance(member, MethodDefinition):
                record = self._method_record(member)
                if member.is_instance:
                    entry.instance_methods.setdefault(member.name, []).append(record)
                if member.is_singleton:
                    entry.singleton_methods.setdefault(member.name, []).append(record)
            elif isinstance(member, AttributeMember):
                methods = entry.singleton_methods if member.singleton else entry.instance_methods
                for record in self._attribute_records(member):
                    methods.setdefault(record.name, []).append(record)
            elif isinstance(member, AliasMember):
                aliases = entry.singleton_aliases if member.singleton else entry.instance_aliases
                aliases[member.new_name] = member.old_name
            elif isinstance(member, MixinMember):
                getattr(entry, f"{member.kind}s").append(member.name)
            elif isinstance(member, (ClassDecl, ModuleDecl, InterfaceDecl, TypeAliasDecl, ConstantDecl)):
                self._index(member, inner)

    def _method_record(self, member: MethodDefinition) -> _MethodRecord:
        return _MethodRecord(
            name=member.name,
            overloads=member.overloads,
            overloading=member.overloading,
            annotations=tuple(a.string for a in member.annotations),
            templates=extract_templates(member.annotations, self._marker),
        )

    def _attribute_records(self, member: AttributeMember) -> Iterator[_MethodRecord]:
        annotations = tuple(a.string for a in member.annotations)
        templates = extract_templates(member.annotations, self._marker)
        if member.reader:
            reader = MethodType(function=FunctionType(return_type=member.type))
            yield _MethodRecord(member.name, (reader,), False, annotations, templates)
        if member.writer:
            writer = MethodType(
                function=FunctionType(
                    required_positionals=(Param(member.type, member.name),),
                    return_type=member.type,
                )
            )
            yield _MethodRecord(f"{member.name}=", (writer,), False, annotations, templates)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def has_module(self, name: str) -> bool:
        return name in self._modules

    def module_kind(self, name: str) -> str | None:
        """``"class"``, ``"module"`` or ``"interface"`` for a known name."""
        entry = self._modules.get(name)
        return entry.kind if entry is not None else None

    def declarations_of(self, name: str) -> list[Declaration]:
        entry = self._modules.get(name)
        return list(entry.declarations) if entry is not None else []

    def type_params_of(self, name: str) -> tuple[str, ...]:
        """Type parameter names of a generic class, module or interface."""
        entry = self._modules.get(name)
        if entry is None or not entry.declarations:
            return ()
        return tuple(param.name for param in entry.declarations[0].type_params)

    def resolve_constant(self, type_name: TypeName, nesting: tuple[str, ...] = ()) -> str | None:
        """Resolve a class/module/constant name against a lexical nesting.

        Args:
            type_name: Name as written, possibly namespaced or absolute.
            nesting: Enclosing qualified names, innermost first.

        Returns:
            The qualified name if it is declared, otherwise None.
        """
        relative = type_name.qualified()
        candidates = [relative] if type_name.absolute else [
            f"{prefix}::{relative}" for prefix in nesting
        ] + [relative]
        for candidate in candidates:
            if candidate in self._modules or candidate in self._constants:
                return candidate
        return None

    def resolve_alias(self, type_name: TypeName, nesting: tuple[str, ...] = ()) -> TypeAliasDecl | None:
        relative = type_name.qualified()
        candidates = [relative] if type_name.absolute else [
            f"{prefix}::{relative}" for prefix in nesting
        ] + [relative]
        for candidate in candidates:
            if candidate in self._aliases:
                return self._aliases[candidate]
        return None

    def constant_type(self, qualified: str) -> Type | None:
        decl = self._constants.get(qualified)
        return decl.type if decl is not None else None

    def global_type(self, name: str) -> Type | None:
        decl = self._globals.get(name)
        return decl.type if decl is not None else None

    def super_class_of(self, name: str) -> str | None:
        """Qualified superclass of a class; implicitly ``Object``."""
        entry = self._modules.get(name)
        if entry is None or entry.kind != "class" or name == "BasicObject":
            return None
        if entry.super_class is None:
            if name == "Object":
                return "BasicObject" if "BasicObject" in self._modules else None
            return "Object" if "Object" in self._modules else None
        return self.resolve_constant(entry.super_class, entry.context[1:])

    def is_subclass(self, name: str, ancestor: str) -> bool:
        seen = set()
        current: str | None = name
        while current is not None and current not in seen:
            if current == ancestor:
                return True
            seen.add(current)
            current = self.super_class_of(current)
        return False

    # ------------------------------------------------------------------
    # Method lookup
    # ------------------------------------------------------------------

    def ancestors(self, name: str, singleton: bool = False) -> list[tuple[str, bool]]:
        """Method lookup order for instances (or the singleton) of ``name``.

        Returns:
            ``(qualified_name, singleton_side)`` pairs, nearest first.
        """
        result: list[tuple[str, bool]] = []
        if name not in self._modules:
            return result
        seen: set[tuple[str, bool]] = set()

        def add_instance_side(module: str, depth: int) -> None:
            entry = self._modules.get(module)
            if entry is None or (module, False) in seen or depth > _MAX_ANCESTOR_DEPTH:
                return
            for prepended in reversed(entry.prepends):
                target = self.resolve_constant(prepended, entry.context[1:])
                if target is not None:
                    add_instance_side(target, depth + 1)
            seen.add((module, False))
            result.append((module, False))
            for included in reversed(entry.includes):
                target = self._resolve_mixin(included, entry)
                if target is not None:
                    add_instance_side(target, depth + 1)

        if not singleton:
            current: str | None = name
            depth = 0
            while current is not None and depth <= _MAX_ANCESTOR_DEPTH:
                add_instance_side(current, depth)
                current = self.super_class_of(current)
                depth += 1
            if self.module_kind(name) == "module":
                add_instance_side("Object", 1)
            return result

        current = name
        depth = 0
        while current is not None and depth <= _MAX_ANCESTOR_DEPTH:
            entry = self._modules.get(current)
            if entry is None or (current, True) in seen:
                break
            seen.add((current, True))
            result.append((current, True))
            for extended in reversed(entry.extends):
                target = self._resolve_mixin(extended, entry)
                if target is not None:
                    add_instance_side(target, depth + 1)
            current = self.super_class_of(current)
            depth += 1
        meta = "Module" if self.module_kind(name) == "module" else "Class"
        current = meta
        while current is not None and depth <= _MAX_ANCESTOR_DEPTH:
            add_instance_side(current, depth)
            current = self.super_class_of(current)
            depth += 1
        return result

    def _resolve_mixin(self, type_name: TypeName, entry: _ModuleEntry) -> str | None:
        return self.resolve_constant(type_name, entry.context[1:]) or self.resolve_constant(
            type_name, entry.context
        )

    def find_method(self, type_name: str, method: str, singleton: bool = False) -> MethodEntry | None:
        """Look a method up through the ancestors of ``type_name``.

        Args:
            type_name: Qualified class, module or interface name.
            method: Method name.
            singleton: Look up a class-level method instead of an instance method.

        Returns:
            The nearest definition, or None when no ancestor defines it.
        """
        return self._find_method(type_name, method, singleton, set())

    def _find_method(
        self, type_name: str, method: str, singleton: bool, visited: set[tuple[str, str, bool]]
    ) -> MethodEntry | None:
        key = (type_name, method, singleton)
        if key in visited:
            return None
        visited.add(key)

        for owner, singleton_side in self.ancestors(type_name, singleton):
            entry = self._modules[owner]
            methods = entry.singleton_methods if singleton_side else entry.instance_methods
            records = methods.get(method)
            if records:
                return self._method_entry(owner, method, singleton_side, records, entry)
            aliases = entry.singleton_aliases if singleton_side else entry.instance_aliases
            if method in aliases:
                target = self._find_method(owner, aliases[method], singleton_side, visited)
                if target is not None:
                    return target
        return None

    def _method_entry(
        self,
        owner: str,
        method: str,
        singleton: bool,
        records: list[_MethodRecord],
        entry: _ModuleEntry,
    ) -> MethodEntry:
        # A later full definition replaces earlier ones; "..." overloads extend it.
        base = 0
        for index, record in enumerate(records):
            if not record.overloading:
                base = index
        overloads: tuple[MethodType, ...] = ()
        templates: tuple[str, ...] = ()
        annotations: tuple[str, ...] = ()
        for record in records[base:]:
            overloads = record.overloads + overloads if record.overloading else record.overloads
            templates += record.templates
            annotations += record.annotations
        return MethodEntry(
            owner=owner,
            name=method,
            singleton=singleton,
            overloads=overloads,
            templates=templates,
            annotations=annotations,
            context=entry.context,
        )


class EnvironmentLoader:
    """Loads signature files and directories into an environment.

    The bundled core declarations (``BasicObject``, ``Object``, ``Class``, ...)
    are loaded first unless ``load_core`` is False.
    """

    def __init__(
        self,
        paths: Iterable[Path | str] = (),
        *,
        load_core: bool = True,
        glob: str = "**/*.rbs",
    ) -> None:
        self._paths = [Path(p) for p in paths]
        self._load_core = load_core
        self._glob = glob

    def add(self, path: Path | str) -> None:
        self._paths.append(Path(path))

    def each_file(self) -> Iterator[Path]:
        roots = ([CORE_ROOT] if self._load_core else []) + self._paths
        for root in roots:
            if root.is_dir():
                yield from sorted(p for p in root.glob(self._glob) if p.is_file())
            elif root.is_file():
                yield root
            else:
                raise SiggenError("Signature path does not exist", str(root))

    def load(self, environment: SignatureEnvironment) -> list[Path]:
        """Add every signature file to ``environment``.

        Returns:
            The loaded file paths, in load order.
        """
        loaded = []
        for path in self.each_file():
            environment.add_signature(path.read_text(encoding="utf-8"), str(path))
            loaded.append(path)
        logger.info(f"Loaded {len(loaded)} signature files")
        return loaded
