"""Typing index: per-node call resolutions for one analyzed program."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from siggen.core.errors import UnknownNodeError
from siggen.core.models import CallResolution

if TYPE_CHECKING:
    from siggen.core.nodes import ProgramNode


class TypingIndex:
    """Immutable mapping from node identity to its CallResolution.

    Built once per analyzed program by a language adapter and read-only
    afterwards.
    """

    def __init__(self, resolutions: Mapping[int, CallResolution] | None = None) -> None:
        self._resolutions = MappingProxyType(dict(resolutions or {}))

    def call_of(self, node: ProgramNode) -> CallResolution:
        """Return the resolution recorded for ``node``.

        Raises:
            UnknownNodeError: If nothing was recorded for the node.
        """
        try:
            return self._resolutions[node.node_id]
        except KeyError:
            raise UnknownNodeError(node.node_id) from None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._resolutions

    def __len__(self) -> int:
        return len(self._resolutions)

    @property
    def resolutions(self) -> Mapping[int, CallResolution]:
        return self._resolutions
