"""Error taxonomy for siggen.

Fatal conditions are raised as subclasses of SiggenError. Non-fatal conditions
(unresolved or dynamic call sites, failed typing lookups) never surface here;
they are absorbed where they occur.
"""

from __future__ import annotations


class SiggenError(Exception):
    """Base error for all fatal siggen failures."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class SignatureSyntaxError(SiggenError):
    """Signature text could not be parsed."""

    def __init__(
        self,
        name: str,
        line: int | None,
        column: int | None,
        details: str | None = None,
    ) -> None:
        location = f"{name}:{line}:{column}" if line is not None else name
        super().__init__(f"Syntax error in signature {location}", details)
        self.name = name
        self.line = line
        self.column = column


class CannotStartDeclarationError(SignatureSyntaxError):
    """A token that cannot begin a top-level declaration was found there.

    Raised for fragments that consist of bare members (``def ...``) and can be
    repaired by wrapping them in a class body.
    """


class ProgramSyntaxError(SiggenError):
    """Program text could not be parsed."""

    def __init__(self, name: str, line: int, column: int, details: str | None = None) -> None:
        super().__init__(f"Syntax error in program {name}:{line}:{column}", details)
        self.name = name
        self.line = line
        self.column = column


class TemplateExpansionError(SiggenError):
    """A generation template failed to render."""

    def __init__(self, target: str, template: str, details: str | None = None) -> None:
        super().__init__(f"Failed to expand template for {target}", details)
        self.target = target
        self.template = template


class FragmentParseError(SiggenError):
    """An expanded fragment is not valid signature text, even after wrapping."""

    def __init__(self, target: str, text: str, details: str | None = None) -> None:
        super().__init__(f"Generated fragment for {target} is not a valid signature", details)
        self.target = target
        self.text = text


class AnalysisStateError(SiggenError):
    """Generation was requested before any program was analyzed."""


class UnknownNodeError(SiggenError):
    """The typing index holds no resolution for a node."""

    def __init__(self, node_id: int) -> None:
        super().__init__("No call resolution recorded", f"node {node_id}")
        self.node_id = node_id


class DuplicateDeclarationError(SiggenError):
    """A name is declared with two different kinds (e.g. class and module)."""

    def __init__(self, name: str, existing: str, new: str) -> None:
        super().__init__(
            f"Conflicting declarations for {name}", f"declared as {existing}, then as {new}"
        )
        self.name = name
