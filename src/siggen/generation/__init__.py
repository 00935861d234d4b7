"""Generation pipeline: traversal, binding, expansion and merging."""

from siggen.generation.binder import TemplateBinder
from siggen.generation.expander import TemplateExpander, TemplateText, wrap_fragment
from siggen.generation.merger import DeclarationMerger
from siggen.generation.traversal import Traversal

__all__ = [
    "DeclarationMerger",
    "TemplateBinder",
    "TemplateExpander",
    "TemplateText",
    "Traversal",
    "wrap_fragment",
]
