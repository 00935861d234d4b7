"""Ruby local variable tracking.

Separated from the resolver to keep `resolver.py` focused on call resolution.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from siggen.signature.ast import Type


class RubyLocalScope:
    """Tracks local variables and their inferred types.

    A variable may be known with an unknown type (None): it is still a local,
    so a bare reference to it is not a method call.
    """

    def __init__(self) -> None:
        """Initialize an empty local scope."""
        self._variables: dict[str, Type | None] = {}

    def declare(self, name: str, type_: Type | None = None) -> None:
        """Add or overwrite a local variable.

        Args:
            name: The variable name.
            type_: The inferred type, or None when unknown.
        """
        self._variables[name] = type_

    def has(self, name: str) -> bool:
        return name in self._variables

    def get_type(self, name: str) -> Type | None:
        """Look up a variable's type by name.

        Args:
            name: The variable name to look up.

        Returns:
            The type if known, None otherwise.
        """
        return self._variables.get(name)

    def copy(self) -> RubyLocalScope:
        """Create a copy for block bodies, which see the enclosing locals.

        Returns:
            A new RubyLocalScope with the same variable mappings.
        """
        new_scope = RubyLocalScope()
        new_scope._variables = self._variables.copy()
        return new_scope


@dataclass(frozen=True)
class RubyContext:
    """What the resolver knows at a point in the program.

    Attributes:
        self_type: Type of ``self``, or None when unknown.
        nesting: Enclosing class/module qualified names, innermost first.
        scope: Local variables visible at this point.
        in_singleton_class: Inside `class << self`, where defs are singleton methods.
    """

    self_type: Type | None
    nesting: tuple[str, ...]
    scope: RubyLocalScope = field(default_factory=RubyLocalScope)
    in_singleton_class: bool = False

    def with_self(self, self_type: Type | None) -> RubyContext:
        return replace(self, self_type=self_type)
