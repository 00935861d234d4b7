"""Property tests for fragment repair.

For any bare-member fragment, parsing wraps it in a class named after the
fragment's target, and writing the result then parsing it again yields the
same declarations.
"""

from hypothesis import given, strategies as st

from siggen.core.models import Fragment
from siggen.generation.expander import TemplateExpander
from siggen.signature.ast import ClassDecl, TypeName
from siggen.signature.parser import SignatureParser
from siggen.signature.writer import SignatureWriter

_KEYWORDS = {"class", "module", "interface", "type", "def", "end", "alias", "self", "singleton"}

parser = SignatureParser()
expander = TemplateExpander(parser)

method_names = st.from_regex(r"[a-z][a-z0-9_]{0,10}", fullmatch=True).filter(lambda n: n not in _KEYWORDS)
targets = st.lists(st.from_regex(r"[A-Z][A-Za-z0-9]{0,8}", fullmatch=True), min_size=1, max_size=3).map(
    "::".join
)
return_types = st.sampled_from(["void", "String", "Integer?", "bool", "Array[String]", "(String | nil)"])


@st.composite
def bare_fragment(draw: st.DrawFn) -> tuple[Fragment, list[str]]:
    names = draw(st.lists(method_names, min_size=1, max_size=4))
    prefix = draw(st.sampled_from(["", "self."]))
    lines = [f"def {prefix}{name}: () -> {draw(return_types)}" for name in names]
    return Fragment(target=draw(targets), text="\n".join(lines)), names


@given(bare_fragment())
def test_bare_members_are_wrapped_in_target(case) -> None:
    fragment, names = case
    (decl,) = expander.parse_fragment(fragment)
    assert isinstance(decl, ClassDecl)
    assert decl.name == TypeName.parse(fragment.target)
    assert [m.name for m in decl.members] == names


@given(bare_fragment())
def test_written_fragment_parses_back(case) -> None:
    fragment, _ = case
    declarations = expander.parse_fragment(fragment)
    text = SignatureWriter().write(declarations)
    assert parser.parse(text) == declarations


@given(bare_fragment())
def test_wrapped_fragment_matches_explicit_class(case) -> None:
    fragment, _ = case
    explicit = parser.parse(f"class {fragment.target}\n{fragment.text}\nend")
    assert expander.parse_fragment(fragment) == explicit
