"""Ruby language adapter submodule.

This module provides the Ruby adapter, which parses Ruby programs with
tree-sitter and resolves their call sites against a signature environment.
"""

from siggen.adapters.ruby.adapter import RubyAdapter
from siggen.adapters.ruby.local_scope import RubyContext, RubyLocalScope
from siggen.adapters.ruby.resolver import RubyTypeResolver
from siggen.adapters.ruby.type_inferrer import RubyTypeInferrer

__all__ = ["RubyAdapter", "RubyContext", "RubyLocalScope", "RubyTypeInferrer", "RubyTypeResolver"]
