"""Unit tests for the signature parser."""

import pytest

from siggen.core.errors import CannotStartDeclarationError, SignatureSyntaxError
from siggen.signature.ast import (
    AliasMember,
    AttributeMember,
    BaseType,
    ClassDecl,
    ClassInstanceType,
    ClassSingletonType,
    ConstantDecl,
    GlobalDecl,
    InterfaceDecl,
    MethodDefinition,
    MixinMember,
    ModuleDecl,
    OptionalType,
    TypeAliasDecl,
    TypeName,
    UnionType,
)
from siggen.signature.parser import SignatureParser


class TestDeclarations:
    """Tests for top-level declarations."""

    def test_empty_text(self, parser: SignatureParser) -> None:
        assert parser.parse("") == []

    def test_class_with_superclass(self, parser: SignatureParser) -> None:
        (decl,) = parser.parse("class Article < Model\nend\n")
        assert isinstance(decl, ClassDecl)
        assert decl.name == TypeName("Article")
        assert decl.super_class is not None
        assert str(decl.super_class) == "Model"

    def test_generic_class(self, parser: SignatureParser) -> None:
        (decl,) = parser.parse("class Box[out T] < Object\nend")
        assert [str(p) for p in decl.type_params] == ["out T"]

    def test_module_with_self_types(self, parser: SignatureParser) -> None:
        (decl,) = parser.parse("module Walkable : _Legs, Animal\nend")
        assert isinstance(decl, ModuleDecl)
        assert [str(s) for s in decl.self_types] == ["_Legs", "Animal"]

    def test_nested_declarations(self, parser: SignatureParser) -> None:
        (outer,) = parser.parse("module A\n  class B\n    def c: () -> void\n  end\nend")
        (inner,) = outer.members
        assert isinstance(inner, ClassDecl)
        assert inner.name == TypeName("B")
        assert isinstance(inner.members[0], MethodDefinition)

    def test_namespaced_name(self, parser: SignatureParser) -> None:
        (decl,) = parser.parse("class ::Foo::Bar\nend")
        assert decl.name == TypeName("Bar", ("Foo",), absolute=True)
        assert str(decl.name) == "::Foo::Bar"

    def test_interface_alias_constant_global(self, parser: SignatureParser) -> None:
        text = """
interface _Each[T]
  def each: () { (T) -> void } -> void
end
type id = Integer | String
VERSION: String
$stdout: IO
"""
        interface, alias, constant, global_ = parser.parse(text)
        assert isinstance(interface, InterfaceDecl)
        assert interface.name == TypeName("_Each")
        assert isinstance(alias, TypeAliasDecl)
        assert isinstance(alias.type, UnionType)
        assert isinstance(constant, ConstantDecl)
        assert isinstance(global_, GlobalDecl)
        assert global_.name == "$stdout"


class TestMembers:
    """Tests for class body members."""

    def test_singleton_method(self, parser: SignatureParser) -> None:
        (decl,) = parser.parse("class A\n  def self.foo: (Symbol name) -> void\nend")
        (method,) = decl.members
        assert method.name == "foo"
        assert method.kind == "singleton"
        assert method.is_singleton and not method.is_instance
        (overload,) = method.overloads
        (param,) = overload.function.required_positionals
        assert param.name == "name"
        assert param.type == ClassInstanceType(TypeName("Symbol"))
        assert overload.function.return_type == BaseType("void")

    def test_overloads_and_dots(self, parser: SignatureParser) -> None:
        text = "class A\n  def fetch: (Integer) -> String\n           | (String key) -> String?\n           | ...\nend"
        (method,) = parser.parse(text)[0].members
        assert len(method.overloads) == 2
        assert method.overloading is True
        assert method.overloads[0].function.required_positionals[0].name is None
        assert isinstance(method.overloads[1].function.return_type, OptionalType)

    def test_parameter_kinds(self, parser: SignatureParser) -> None:
        text = "class A\n  def m: (Integer a, ?String b, *Symbol rest, key: bool, ?opt: nil, **untyped kw) -> void\nend"
        (method,) = parser.parse(text)[0].members
        function = method.overloads[0].function
        assert [p.name for p in function.required_positionals] == ["a"]
        assert [p.name for p in function.optional_positionals] == ["b"]
        assert function.rest_positionals is not None
        assert function.rest_positionals.name == "rest"
        assert [key for key, _ in function.required_keywords] == ["key"]
        assert [key for key, _ in function.optional_keywords] == ["opt"]
        assert function.rest_keywords is not None

    def test_block_with_self_binding(self, parser: SignatureParser) -> None:
        text = "class A\n  def self.define: () { () [self: instance] -> void } -> void\nend"
        (method,) = parser.parse(text)[0].members
        block = method.overloads[0].block
        assert block is not None
        assert block.required
        assert block.self_type == BaseType("instance")

    def test_optional_block(self, parser: SignatureParser) -> None:
        text = "class A\n  def each: () ?{ (Integer) -> void } -> void\nend"
        (method,) = parser.parse(text)[0].members
        assert method.overloads[0].block.required is False

    def test_singleton_type_and_operator(self, parser: SignatureParser) -> None:
        text = "class A\n  def ==: (untyped other) -> bool\n  def klass: () -> singleton(A)\nend"
        equals, klass = parser.parse(text)[0].members
        assert equals.name == "=="
        assert klass.overloads[0].function.return_type == ClassSingletonType(TypeName("A"))

    def test_attributes_mixins_aliases(self, parser: SignatureParser) -> None:
        text = """class A
  include Comparable
  extend Enumerable[Integer]
  attr_accessor name: String
  attr_reader self.count: Integer
  alias to_s inspect
  @cache: Hash[Symbol, String]
  private
end"""
        members = parser.parse(text)[0].members
        include, extend, accessor, reader, alias = members[:5]
        assert isinstance(include, MixinMember) and include.kind == "include"
        assert str(extend.args[0]) == "Integer"
        assert isinstance(accessor, AttributeMember)
        assert accessor.reader and accessor.writer
        assert reader.singleton and not reader.writer
        assert isinstance(alias, AliasMember)
        assert (alias.new_name, alias.old_name) == ("to_s", "inspect")
        assert members[-1].visibility == "private"

    def test_member_keywords_after_class_types(self, parser: SignatureParser) -> None:
        text = """class A < Base
  include Comparable
  def to_s: () -> String
  extend Countable
  def size: () -> Integer
  attr_reader name: String
  def parent: () -> A
  public
  def id: () -> Integer
  private
end"""
        members = parser.parse(text)[0].members
        assert [type(m).__name__ for m in members] == [
            "MixinMember",
            "MethodDefinition",
            "MixinMember",
            "MethodDefinition",
            "AttributeMember",
            "MethodDefinition",
            "VisibilityMember",
            "MethodDefinition",
            "VisibilityMember",
        ]

    @pytest.mark.parametrize("name", ["include?", "attr_reader", "public_send", "extend", "private_methods"])
    def test_keyword_like_method_names(self, parser: SignatureParser, name: str) -> None:
        (decl,) = parser.parse(f"class Module\n  def {name}: (Symbol value) -> void\nend")
        (member,) = decl.members
        assert isinstance(member, MethodDefinition)
        assert member.name == name


class TestAnnotationsAndComments:
    """Tests for annotations and attached comments."""

    def test_annotation_body(self, parser: SignatureParser) -> None:
        text = "class A\n  %a{siggen:\n    def self.<%= name %>: () -> void\n  }\n  def self.foo: (Symbol name) -> void\nend"
        (method,) = parser.parse(text)[0].members
        (annotation,) = method.annotations
        assert annotation.string.startswith("siggen:")
        assert "def self.<%= name %>: () -> void" in annotation.string

    def test_annotation_delimiters(self, parser: SignatureParser) -> None:
        text = "class A\n  %a(pure) %a[deprecated]\n  def foo: () -> void\nend"
        (method,) = parser.parse(text)[0].members
        assert [a.string for a in method.annotations] == ["pure", "deprecated"]

    def test_comment_attaches_to_next_declaration(self, parser: SignatureParser) -> None:
        text = "# A thing.\n# Second line.\nclass A\n  # Does foo.\n  def foo: () -> void\nend"
        (decl,) = parser.parse(text)
        assert decl.comment is not None
        assert decl.comment.string == "A thing.\nSecond line."
        assert decl.members[0].comment.string == "Does foo."

    def test_detached_comment_is_dropped(self, parser: SignatureParser) -> None:
        (decl,) = parser.parse("# stray\n\nclass A\nend")
        assert decl.comment is None

    def test_locations_do_not_affect_equality(self, parser: SignatureParser) -> None:
        first = parser.parse("class A\n  def foo: () -> void\nend")
        second = parser.parse("\n\nclass A\n    def foo: () -> void\nend")
        assert first == second
        assert first[0].location.start_line == 1
        assert second[0].location.start_line == 3


class TestSyntaxErrors:
    """Tests for syntax error reporting."""

    def test_bare_member_cannot_start_declaration(self, parser: SignatureParser) -> None:
        with pytest.raises(CannotStartDeclarationError):
            parser.parse("def self.bar: () -> void")

    def test_other_errors_are_plain_syntax_errors(self, parser: SignatureParser) -> None:
        with pytest.raises(SignatureSyntaxError) as exc_info:
            parser.parse("class A\n  def foo: ( -> void\nend", "broken.rbs")
        assert not isinstance(exc_info.value, CannotStartDeclarationError)
        assert exc_info.value.name == "broken.rbs"
        assert exc_info.value.line == 2

    def test_unterminated_class(self, parser: SignatureParser) -> None:
        with pytest.raises(SignatureSyntaxError):
            parser.parse("class A\n  def foo: () -> void\n")
