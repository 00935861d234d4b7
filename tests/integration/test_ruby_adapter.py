"""Integration tests for the Ruby adapter (tree-sitter parsing plus call resolution)."""

from __future__ import annotations

import pytest

from siggen.adapters.ruby import RubyAdapter
from siggen.core.errors import ProgramSyntaxError
from siggen.core.models import AnalyzedProgram, CallResolution, ResolutionKind
from siggen.core.nodes import Call, CallWithBlock, Other, walk
from siggen.signature.environment import SignatureEnvironment

SIGNATURE = """
class A
  %a{siggen:
    def self.<%= name %>: () -> void
  }
  def self.foo: (Symbol name) -> void

  def self.define: () { () [self: instance] -> void } -> void
  def create_table: (String name) { (A) -> void } -> void
  def text: (String name) -> void
  def bar: () -> Integer
  def options: (Symbol name, ?Hash[Symbol, untyped] opts) -> void
end

class Box[T]
  def get: () -> T
  def self.build: () -> Box[String]
end

class Left
  def label: () -> String
end

class Right
  def label: () -> String
end

class Chooser
  def self.pick: () -> (Left | Right)
  def self.either: () -> (Left | Chooser)
end
"""


@pytest.fixture(scope="module")
def adapter() -> RubyAdapter:
    return RubyAdapter()


@pytest.fixture
def env(environment: SignatureEnvironment) -> SignatureEnvironment:
    environment.add_signature(SIGNATURE, "a.rbs")
    return environment


def _analyze(adapter: RubyAdapter, env: SignatureEnvironment, text: str) -> AnalyzedProgram:
    return adapter.analyze_program(text, "a.rb", env)


def _calls(program: AnalyzedProgram, method_name: str) -> list[Call | CallWithBlock]:
    return [
        node
        for node in walk(program.root)
        if isinstance(node, (Call, CallWithBlock)) and node.method_name == method_name
    ]


def _resolution(program: AnalyzedProgram, method_name: str) -> CallResolution:
    (node,) = _calls(program, method_name)
    return program.typing.call_of(node)


class TestRubyAdapter:
    """Tests for adapter metadata and program conversion."""

    def test_language(self, adapter: RubyAdapter) -> None:
        assert adapter.language_name == "ruby"
        assert adapter.file_extensions == (".rb",)

    def test_program_root(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "class A\nend\n")
        assert program.name == "a.rb"
        assert isinstance(program.root, Other)
        assert program.root.kind == "program"

    def test_call_arguments_are_literal_values(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, 'class A\n  foo :bar\n  text "body"\nend\n')
        (foo,) = _calls(program, "foo")
        assert foo.argument_values == ("bar",)
        assert foo.receiver is None
        (argument,) = foo.arguments
        assert isinstance(argument, Other)
        assert argument.literal == "bar"

    def test_block_call(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        text = 'A.define do\n  create_table "articles" do |t|\n    t.text "body"\n  end\nend\n'
        program = _analyze(adapter, env, text)
        (create_table,) = _calls(program, "create_table")
        assert isinstance(create_table, CallWithBlock)
        assert create_table.block_parameters == ("t",)
        assert create_table.argument_values == ("articles",)
        assert [n.method_name for n in create_table.body if isinstance(n, Call)] == ["text"]

    def test_syntax_error(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        with pytest.raises(ProgramSyntaxError) as exc_info:
            _analyze(adapter, env, "class A\n  def foo(\nend\n")
        assert exc_info.value.name == "a.rb"
        assert exc_info.value.line >= 1


class TestCallResolution:
    """Tests for matching call sites against the environment."""

    def test_receiverless_call_in_class_body(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "class A\n  foo :bar\nend\n")
        resolution = _resolution(program, "foo")
        assert resolution.is_matched
        (declaration,) = resolution.declarations
        assert declaration.owner == "A"
        assert declaration.singleton is True
        assert declaration.required_parameters == ("name",)
        assert declaration.templates == ("def self.<%= name %>: () -> void",)

    def test_block_self_binding(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        text = 'A.define do\n  create_table "articles" do |t|\n    t.text "body"\n  end\nend\n'
        program = _analyze(adapter, env, text)
        assert _resolution(program, "define").is_matched
        table = _resolution(program, "create_table")
        assert table.is_matched
        assert table.declarations[0].singleton is False
        text_resolution = _resolution(program, "text")
        assert text_resolution.is_matched
        assert text_resolution.declarations[0].owner == "A"

    def test_local_variable_from_constructor(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "a = A.new\na.bar\n")
        assert _resolution(program, "new").declarations[0].owner == "Class"
        assert _resolution(program, "bar").declarations[0].owner == "A"

    def test_literal_receiver(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, '"abc".upcase\n')
        assert _resolution(program, "upcase").declarations[0].owner == "String"

    def test_chained_return_types(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "Box.build.get.upcase\n")
        assert _resolution(program, "get").declarations[0].owner == "Box"
        assert _resolution(program, "upcase").is_matched

    def test_unknown_method_is_absent(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "class A\n  nope :bar\nend\n")
        assert _resolution(program, "nope").kind == ResolutionKind.ABSENT

    def test_arity_mismatch_is_absent(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "class A\n  foo\nend\n")
        assert _resolution(program, "foo").kind == ResolutionKind.ABSENT

    def test_optional_hash_argument(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "a = A.new\na.options :x, required: true\n")
        resolution = _resolution(program, "options")
        assert resolution.is_matched
        assert _calls(program, "options")[0].argument_values == ("x",)

    def test_unknown_receiver_is_dynamic(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "Missing.new.whatever\n")
        assert _resolution(program, "new").kind == ResolutionKind.DYNAMIC
        assert _resolution(program, "whatever").kind == ResolutionKind.DYNAMIC

    def test_method_body_self_is_instance(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "class A\n  def run\n    bar\n  end\nend\n")
        resolution = _resolution(program, "bar")
        assert resolution.is_matched
        assert resolution.declarations[0].singleton is False

    def test_locals_are_not_calls(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "class A\n  def run(bar)\n    bar\n  end\nend\n")
        assert _calls(program, "bar") == []

    def test_dynamic_definitions_do_not_fail(
        self, adapter: RubyAdapter, environment: SignatureEnvironment, fixtures_path
    ) -> None:
        program = adapter.analyze_file(fixtures_path / "programs" / "dsl" / "a.rb", environment)
        assert program.name.endswith("a.rb")
        assert _resolution(program, "generated_hoge").kind == ResolutionKind.DYNAMIC

    def test_union_receiver_matches_each_member(self, adapter: RubyAdapter, env: SignatureEnvironment) -> None:
        program = _analyze(adapter, env, "Chooser.pick.label\n")
        resolution = _resolution(program, "label")
        assert resolution.is_matched
        assert [d.owner for d in resolution.declarations] == ["Left", "Right"]

    def test_union_member_without_method_is_absent(
        self, adapter: RubyAdapter, env: SignatureEnvironment
    ) -> None:
        program = _analyze(adapter, env, "Chooser.either.label\n")
        assert _resolution(program, "label").kind == ResolutionKind.ABSENT
