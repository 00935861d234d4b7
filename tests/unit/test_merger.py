"""Unit tests for the declaration merger."""

import pytest

from siggen.generation.merger import DeclarationMerger
from siggen.signature.ast import (
    Annotation,
    BaseType,
    ClassDecl,
    Comment,
    ConstantDecl,
    ModuleDecl,
    ModuleSelf,
    SuperClass,
    TypeName,
)
from siggen.signature.parser import SignatureParser
from siggen.signature.writer import SignatureWriter


@pytest.fixture
def merger() -> DeclarationMerger:
    return DeclarationMerger()


def _merge_text(parser: SignatureParser, merger: DeclarationMerger, *texts: str) -> str:
    declarations = [decl for text in texts for decl in parser.parse(text)]
    return SignatureWriter().write(merger.merge(declarations))


class TestDeclarationMerger:
    """Tests for grouping by qualified name."""

    def test_same_class_is_merged(self, parser: SignatureParser, merger: DeclarationMerger) -> None:
        text = _merge_text(
            parser,
            merger,
            "class A\n  def self.bar: () -> void\nend",
            "class A\n  def self.baz: () -> void\nend",
        )
        assert text == "class A\n  def self.bar: () -> void\n  def self.baz: () -> void\nend\n"

    def test_groups_keep_first_seen_order(self, parser: SignatureParser, merger: DeclarationMerger) -> None:
        merged = merger.merge(
            parser.parse("class B\nend")
            + parser.parse("class A\n  def x: () -> void\nend")
            + parser.parse("class B\n  def y: () -> void\nend")
        )
        assert [str(d.name) for d in merged] == ["B", "A"]
        assert [m.name for m in merged[0].members] == ["y"]

    def test_duplicate_members_are_kept(self, parser: SignatureParser, merger: DeclarationMerger) -> None:
        fragment = "class A\n  def x: () -> void\nend"
        (merged,) = merger.merge(parser.parse(fragment) + parser.parse(fragment))
        assert len(merged.members) == 2

    def test_superclass_taken_from_first_declaration_naming_one(self, merger: DeclarationMerger) -> None:
        bare = ClassDecl(name=TypeName("Article"))
        typed = ClassDecl(name=TypeName("Article"), super_class=SuperClass(TypeName("Model")))
        (merged,) = merger.merge([bare, typed])
        assert merged.super_class == SuperClass(TypeName("Model"))

    def test_annotations_deduplicated_and_first_comment_wins(self, merger: DeclarationMerger) -> None:
        first = ClassDecl(name=TypeName("A"), annotations=(Annotation("pure"),))
        second = ClassDecl(
            name=TypeName("A"),
            annotations=(Annotation("pure"), Annotation("deprecated")),
            comment=Comment("second"),
        )
        third = ClassDecl(name=TypeName("A"), comment=Comment("third"))
        (merged,) = merger.merge([first, second, third])
        assert [a.string for a in merged.annotations] == ["pure", "deprecated"]
        assert merged.comment == Comment("second")

    def test_modules_union_self_types(self, merger: DeclarationMerger) -> None:
        first = ModuleDecl(name=TypeName("M"), self_types=(ModuleSelf(TypeName("A")),))
        second = ModuleDecl(name=TypeName("M"), self_types=(ModuleSelf(TypeName("A")), ModuleSelf(TypeName("B"))))
        (merged,) = merger.merge([first, second])
        assert [str(s) for s in merged.self_types] == ["A", "B"]

    def test_class_and_module_with_same_name_stay_apart(self, merger: DeclarationMerger) -> None:
        merged = merger.merge([ClassDecl(name=TypeName("A")), ModuleDecl(name=TypeName("A"))])
        assert len(merged) == 2

    def test_other_declarations_pass_through(self, merger: DeclarationMerger) -> None:
        constant = ConstantDecl(name=TypeName("VERSION"), type=BaseType("untyped"))
        same = ConstantDecl(name=TypeName("VERSION"), type=BaseType("untyped"))
        assert merger.merge([constant, same]) == [constant, same]

    def test_single_declaration_is_unchanged(self, merger: DeclarationMerger) -> None:
        decl = ClassDecl(name=TypeName("A"), comment=Comment("only"))
        assert merger.merge([decl])[0] is decl

    def test_absolute_and_relative_names_are_distinct(self, merger: DeclarationMerger) -> None:
        merged = merger.merge([ClassDecl(name=TypeName("A")), ClassDecl(name=TypeName("A", absolute=True))])
        assert len(merged) == 2
