"""Template expansion and fragment repair.

Templates are Jinja2 templates written with ERB-style delimiters:
``<%= expr %>`` prints, ``<% stmt %>`` runs a statement and ``<%# ... %>`` is
a comment. They render in a sandbox with strict undefined handling, so a
template that names an unbound variable fails instead of printing nothing.

Bound values are strings. The inflections (``classify``, ``pluralize`` and so
on) read as attributes, but other str methods need a call: write
``<%= name.capitalize() %>``, or use a filter such as ``<%= name | upcase %>``.
Without the parentheses the template prints the bound method itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from siggen.core.errors import (
    CannotStartDeclarationError,
    FragmentParseError,
    SignatureSyntaxError,
    TemplateExpansionError,
)
from siggen.core.models import Fragment, Record, Scalar, SubstitutionValue
from siggen.generation import inflector
from siggen.signature.ast import Declaration
from siggen.signature.parser import SignatureParser

logger = logging.getLogger(__name__)


class TemplateText(str):
    """A bound scalar, with the inflections exposed as attributes.

    ``<%= name.classify %>`` and ``<%= name | classify %>`` are equivalent.
    """

    @property
    def pluralize(self) -> TemplateText:
        return TemplateText(inflector.pluralize(self))

    @property
    def singularize(self) -> TemplateText:
        return TemplateText(inflector.singularize(self))

    @property
    def camelize(self) -> TemplateText:
        return TemplateText(inflector.camelize(self))

    @property
    def underscore(self) -> TemplateText:
        return TemplateText(inflector.underscore(self))

    @property
    def classify(self) -> TemplateText:
        return TemplateText(inflector.classify(self))

    @property
    def tableize(self) -> TemplateText:
        return TemplateText(inflector.tableize(self))


class _Namespace:
    """A nested record with dotted access; keys never collide with methods."""

    def __init__(self, values: Mapping[str, object]) -> None:
        self.__dict__["_values"] = dict(values)

    def __getattr__(self, name: str) -> object:
        try:
            return self.__dict__["_values"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name: str) -> object:
        return self.__dict__["_values"][name]

    def __contains__(self, name: object) -> bool:
        return name in self.__dict__["_values"]

    def __repr__(self) -> str:
        return f"_Namespace({self.__dict__['_values']!r})"


def _template_value(value: SubstitutionValue) -> object:
    if isinstance(value, Record):
        return _Namespace({key: _template_value(item) for key, item in value.items()})
    if isinstance(value, Scalar):
        return TemplateText(value.text)
    raise TypeError(f"not a substitution value: {value!r}")


class TemplateExpander:
    """Renders generation templates and turns their output into declarations."""

    def __init__(self, parser: SignatureParser | None = None) -> None:
        self._parser = parser or SignatureParser()
        self._env = SandboxedEnvironment(
            block_start_string="<%",
            block_end_string="%>",
            variable_start_string="<%=",
            variable_end_string="%>",
            comment_start_string="<%#",
            comment_end_string="%>",
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        # No built-in globals; templates only see their bindings and the inflections.
        self._env.globals = {}
        self._env.filters.update(inflector.INFLECTIONS)
        self._env.filters.update({"upcase": str.upper, "downcase": str.lower})
        self._compiled: dict[str, object] = {}

    def render(self, template: str, context: Record, target: str = "") -> str:
        """Substitute ``context`` into ``template``.

        Args:
            template: Template body.
            context: Bindings from the template binder.
            target: Owner the output is meant for (used in error messages).

        Returns:
            The expanded text.

        Raises:
            TemplateExpansionError: If the template is malformed, names an
                unbound variable or fails while rendering.
        """
        variables = {key: _template_value(value) for key, value in context.items()}
        try:
            compiled = self._compiled.get(template)
            if compiled is None:
                compiled = self._env.from_string(template)
                self._compiled[template] = compiled
            return compiled.render(variables)
        except (TemplateError, TypeError, ValueError, LookupError, ArithmeticError) as e:
            raise TemplateExpansionError(target, template, str(e)) from e

    def expand(self, target: str, template: str, context: Record, method_name: str = "") -> Fragment:
        text = self.render(template, context, target)
        logger.debug(f"Expanded template of {method_name or '?'} for {target}")
        return Fragment(target=target, text=text, method_name=method_name, template=template)

    def parse_fragment(self, fragment: Fragment) -> list[Declaration]:
        """Parse a fragment, wrapping bare members in a class of its target.

        Raises:
            FragmentParseError: If the text does not parse, or still does not
                parse once wrapped.
        """
        name = f"<generated for {fragment.target}>"
        try:
            return self._parser.parse(fragment.text, name)
        except CannotStartDeclarationError:
            wrapped = wrap_fragment(fragment)
        except SignatureSyntaxError as e:
            raise FragmentParseError(fragment.target, fragment.text, str(e)) from e

        try:
            return self._parser.parse(wrapped, name)
        except SignatureSyntaxError as e:
            raise FragmentParseError(fragment.target, wrapped, str(e)) from e


def wrap_fragment(fragment: Fragment) -> str:
    """The fragment text inside a ``class <target>`` body."""
    return f"class {fragment.target}\n{fragment.text}\nend"
