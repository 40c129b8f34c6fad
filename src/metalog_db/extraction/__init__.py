"""Fact extraction from untyped graph objects.

This module provides:
- A pluggable extractor turning nodes/edges into facts
- Triple derivation from node/edge facts
"""

from .extractors import CanvasFactExtractor, FactExtractor, extract_facts, flatten_canvas
from .rdf import facts_to_triples

__all__ = ["CanvasFactExtractor", "FactExtractor", "extract_facts", "facts_to_triples", "flatten_canvas"]
