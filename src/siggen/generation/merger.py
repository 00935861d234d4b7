"""Declaration merger: combines fragments that target the same declaration."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from siggen.signature.ast import ClassDecl, Declaration, ModuleDecl

logger = logging.getLogger(__name__)


def _merge_key(decl: Declaration) -> tuple[str, object]:
    if isinstance(decl, ClassDecl):
        return ("class", str(decl.name))
    if isinstance(decl, ModuleDecl):
        return ("module", str(decl.name))
    # Everything else keeps its own identity.
    return ("other", id(decl))


def _unique(items: Iterable) -> tuple:
    seen: list = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return tuple(seen)


class DeclarationMerger:
    """Merges class and module declarations that share a qualified name.

    Groups keep the order in which their first declaration was seen. Within a
    group the members of every declaration are concatenated in order, without
    removing duplicates; annotations are de-duplicated keeping the first
    occurrence, and the first comment wins. A class takes its superclass and
    type parameters from the first declaration naming a superclass (or the
    first declaration); a module also unions its self types.
    """

    def merge(self, declarations: Iterable[Declaration]) -> list[Declaration]:
        groups: dict[tuple[str, object], list[Declaration]] = {}
        for decl in declarations:
            groups.setdefault(_merge_key(decl), []).append(decl)

        merged: list[Declaration] = []
        for (kind, name), group in groups.items():
            if len(group) == 1:
                merged.append(group[0])
            elif kind == "class":
                merged.append(self._merge_classes(group))
            else:
                merged.append(self._merge_modules(group))
            if len(group) > 1:
                logger.debug(f"Merged {len(group)} declarations of {kind} {name}")
        return merged

    @staticmethod
    def _merge_classes(group: list[ClassDecl]) -> ClassDecl:
        primary = next((decl for decl in group if decl.super_class is not None), group[0])
        return replace(
            primary,
            members=tuple(member for decl in group for member in decl.members),
            annotations=_unique(a for decl in group for a in decl.annotations),
            comment=next((decl.comment for decl in group if decl.comment is not None), None),
        )

    @staticmethod
    def _merge_modules(group: list[ModuleDecl]) -> ModuleDecl:
        primary = group[0]
        return replace(
            primary,
            self_types=_unique(s for decl in group for s in decl.self_types),
            members=tuple(member for decl in group for member in decl.members),
            annotations=_unique(a for decl in group for a in decl.annotations),
            comment=next((decl.comment for decl in group if decl.comment is not None), None),
        )
