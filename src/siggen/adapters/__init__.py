"""Language adapters that parse programs and resolve their call sites."""

from siggen.adapters.base import LanguageAdapter
from siggen.adapters.ruby import RubyAdapter

__all__ = [
    "LanguageAdapter",
    "RubyAdapter",
]
