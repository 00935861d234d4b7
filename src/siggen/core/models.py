"""Data models shared by the generation pipeline.

This module defines call resolutions produced by a language adapter, the
fragments emitted by the traversal, and the substitution context handed to the
template expander.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from siggen.core.nodes import ProgramNode
    from siggen.core.typing_index import TypingIndex


class ResolutionKind(str, Enum):
    """Outcome of matching a call site against the signature environment."""

    ABSENT = "absent"
    DYNAMIC = "dynamic"
    MATCHED = "matched"


class MatchedDeclaration(BaseModel):
    """A method declaration a call site resolved to."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Qualified name of the class/module defining the method")
    method_name: str = Field(..., description="Method name as declared")
    singleton: bool = Field(False, description="True for singleton (class-level) methods")
    required_parameters: tuple[str | None, ...] = Field(
        default=(), description="Required positional parameter names in declared order"
    )
    templates: tuple[str, ...] = Field(
        default=(), description="Generation template bodies carried by the declaration"
    )
    annotations: tuple[str, ...] = Field(
        default=(), description="All raw annotation strings on the declaration"
    )


class CallResolution(BaseModel):
    """Resolution of one call site.

    Either absent (no match), dynamic (receiver type unknown) or matched with at
    least one declaration.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResolutionKind
    method_name: str = ""
    declarations: tuple[MatchedDeclaration, ...] = ()

    @model_validator(mode="after")
    def _check_declarations(self) -> CallResolution:
        if self.kind == ResolutionKind.MATCHED and not self.declarations:
            raise ValueError("a matched resolution needs at least one declaration")
        if self.kind != ResolutionKind.MATCHED and self.declarations:
            raise ValueError(f"a {self.kind.value} resolution carries no declarations")
        return self

    @classmethod
    def absent(cls, method_name: str = "") -> CallResolution:
        return cls(kind=ResolutionKind.ABSENT, method_name=method_name)

    @classmethod
    def dynamic(cls, method_name: str) -> CallResolution:
        return cls(kind=ResolutionKind.DYNAMIC, method_name=method_name)

    @classmethod
    def matched(
        cls, method_name: str, declarations: tuple[MatchedDeclaration, ...] | list[MatchedDeclaration]
    ) -> CallResolution:
        return cls(
            kind=ResolutionKind.MATCHED,
            method_name=method_name,
            declarations=tuple(declarations),
        )

    @property
    def is_matched(self) -> bool:
        return self.kind == ResolutionKind.MATCHED


class Fragment(BaseModel):
    """Expanded template text targeted at one qualified declaration name."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Qualified name the fragment belongs to")
    text: str = Field(..., description="Expanded template text")
    method_name: str = Field("", description="Method whose annotation produced the fragment")
    template: str = Field("", description="Template body the text was expanded from")


@dataclass(frozen=True)
class Scalar:
    """A bound argument value."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Record(Mapping):
    """A name -> value binding; values are Scalars or nested Records."""

    bindings: Mapping[str, SubstitutionValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bindings", MappingProxyType(dict(self.bindings)))

    def __getitem__(self, key: str) -> SubstitutionValue:
        return self.bindings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __hash__(self) -> int:
        return hash(tuple(self.bindings.items()))

    def to_plain(self) -> dict[str, object]:
        """Convert to nested builtin dicts/strings (handy for logging and tests)."""
        return {
            key: value.to_plain() if isinstance(value, Record) else value.text
            for key, value in self.bindings.items()
        }


SubstitutionValue = Union[Scalar, Record]


@dataclass(frozen=True)
class AnalyzedProgram:
    """Program AST plus its typing index, as produced by a language adapter."""

    name: str
    root: ProgramNode
    typing: TypingIndex
