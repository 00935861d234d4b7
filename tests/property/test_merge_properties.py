"""Property tests for declaration merging.

For any sequence of class and module declarations, merging yields one
declaration per (kind, qualified name), keeps every member in encounter
order, and is idempotent.
"""

from hypothesis import given, strategies as st

from siggen.generation.merger import DeclarationMerger
from siggen.signature.ast import (
    Annotation,
    BaseType,
    ClassDecl,
    Comment,
    FunctionType,
    MethodDefinition,
    MethodType,
    ModuleDecl,
    SuperClass,
    TypeName,
)

names = st.sampled_from(["A", "B", "C", "Outer::Inner"])
method_names = st.from_regex(r"[a-z][a-z0-9_]{0,8}", fullmatch=True)
annotation_strings = st.sampled_from(["pure", "deprecated", "siggen: def x: () -> void"])


@st.composite
def method_strategy(draw: st.DrawFn) -> MethodDefinition:
    return MethodDefinition(
        name=draw(method_names),
        kind=draw(st.sampled_from(["instance", "singleton"])),
        overloads=(MethodType(function=FunctionType(return_type=BaseType("void"))),),
    )


@st.composite
def declaration_strategy(draw: st.DrawFn) -> ClassDecl | ModuleDecl:
    name = TypeName.parse(draw(names))
    members = tuple(draw(st.lists(method_strategy(), max_size=4)))
    annotations = tuple(Annotation(s) for s in draw(st.lists(annotation_strings, max_size=3)))
    comment = draw(st.one_of(st.none(), st.just(Comment("doc"))))
    if draw(st.booleans()):
        super_class = draw(st.one_of(st.none(), st.just(SuperClass(TypeName("Base")))))
        return ClassDecl(
            name=name, super_class=super_class, members=members, annotations=annotations, comment=comment
        )
    return ModuleDecl(name=name, members=members, annotations=annotations, comment=comment)


declarations = st.lists(declaration_strategy(), max_size=8)


def _key(decl) -> tuple[str, str]:
    return (type(decl).__name__, str(decl.name))


@given(declarations)
def test_one_declaration_per_kind_and_name(decls) -> None:
    merged = DeclarationMerger().merge(decls)
    keys = [_key(d) for d in merged]
    assert len(keys) == len(set(keys))
    assert set(keys) == {_key(d) for d in decls}


@given(declarations)
def test_groups_follow_first_encounter(decls) -> None:
    merged = DeclarationMerger().merge(decls)
    first_seen = list(dict.fromkeys(_key(d) for d in decls))
    assert [_key(d) for d in merged] == first_seen


@given(declarations)
def test_members_are_concatenated_in_order(decls) -> None:
    for decl in DeclarationMerger().merge(decls):
        expected = [m for d in decls if _key(d) == _key(decl) for m in d.members]
        assert list(decl.members) == expected


@given(declarations)
def test_annotations_are_unique_and_complete(decls) -> None:
    for decl in DeclarationMerger().merge(decls):
        seen = [a for d in decls if _key(d) == _key(decl) for a in d.annotations]
        if len([d for d in decls if _key(d) == _key(decl)]) > 1:
            assert list(decl.annotations) == list(dict.fromkeys(seen))
        else:
            assert list(decl.annotations) == seen


@given(declarations)
def test_superclass_comes_from_first_declaring_member(decls) -> None:
    for decl in DeclarationMerger().merge(decls):
        if isinstance(decl, ClassDecl):
            group = [d for d in decls if _key(d) == _key(decl)]
            expected = next((d.super_class for d in group if d.super_class is not None), None)
            assert decl.super_class == expected


@given(declarations)
def test_merge_is_idempotent(decls) -> None:
    merger = DeclarationMerger()
    once = merger.merge(decls)
    assert merger.merge(once) == once
