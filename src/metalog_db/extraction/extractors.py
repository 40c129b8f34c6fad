from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..logic.models import Fact, PropertyValue, dedupe

logger = logging.getLogger(__name__)

NODE_FIELDS = ("id", "type", "x", "y", "text")
EDGE_FIELDS = ("id", "type", "fromNode", "toNode")

VERTICAL_MARKER = "v:"
HORIZONTAL_MARKER = "h:"

_UNSAFE_KEY_RE = re.compile(r"[^\w\-]")


class FactExtractor(Protocol):
    def extract(self, objects: Iterable[Any]) -> list[Fact]: ...


def properties(obj: Mapping[str, Any], *, skip: Iterable[str] = ()) -> list[tuple[str, PropertyValue]]:
    """Ordered (key, value) pairs of ``obj`` minus ``skip``."""
    skipped = set(skip)
    return [(str(k), v) for k, v in obj.items() if k not in skipped]


def predicate_name(prefix: str, key: str) -> str:
    """``prefix_key`` with every character a goal string cannot name replaced by ``_``."""
    safe = _UNSAFE_KEY_RE.sub("_", key)
    return f"{prefix}_{safe}"


def flatten_canvas(document: Any) -> list[Any]:
    """Turn a canvas mapping (``{"nodes": [...], "edges": [...]}``) into one object list.

    Anything that is already a sequence of objects is returned as a list.
    """
    if isinstance(document, Mapping):
        if "nodes" in document or "edges" in document:
            return [*(document.get("nodes") or []), *(document.get("edges") or [])]
        return [document]
    return list(document)


def is_edge_like(obj: Any) -> bool:
    return isinstance(obj, Mapping) and "fromNode" in obj and "toNode" in obj


def is_node_like(obj: Any) -> bool:
    return isinstance(obj, Mapping) and "id" in obj and not is_edge_like(obj)


@dataclass(slots=True)
class CanvasFactExtractor:
    """Flatten canvas nodes and edges into facts.

    Facts:
    - node(id, type, x, y, text) plus node_<key>(id, value) per extra property
    - edge(id, type, fromNode, toNode) plus edge_<key>(id, value) per extra property
    - vertical(id, from, to) / horizontal(id, from, to) for ``v:`` / ``h:`` edge types
    - object(ref, kind) plus object_<key>(ref, value) for anything else

    No object is dropped: shapes that are neither node nor edge land under the
    ``object`` predicates keyed by their declared or inferred kind.
    """

    default_type: str = "unknown"
    # refs for id-less objects stay unique across extract() calls
    _refs: Iterator[int] = field(default_factory=itertools.count, repr=False, compare=False)

    def next_ref(self) -> str:
        return f"_:o{next(self._refs)}"

    def extract(self, objects: Iterable[Any]) -> list[Fact]:
        facts: list[Fact] = []
        unmatched = 0
        for obj in objects:
            if is_edge_like(obj):
                facts.extend(self._edge_facts(obj))
            elif is_node_like(obj):
                facts.extend(self._node_facts(obj))
            else:
                unmatched += 1
                facts.extend(self._object_facts(obj))

        if unmatched:
            logger.debug(f"{unmatched} objects matched neither node nor edge shape")
        return dedupe(facts)

    def _node_facts(self, obj: Mapping[str, Any]) -> list[Fact]:
        node_id = obj["id"]
        out = [
            Fact.of(
                "node",
                node_id,
                obj.get("type") or self.default_type,
                obj.get("x") or 0,
                obj.get("y") or 0,
                obj.get("text") or "",
            )
        ]
        for key, value in properties(obj, skip=NODE_FIELDS):
            out.append(Fact.of(predicate_name("node", key), node_id, value))
        return out

    def _edge_facts(self, obj: Mapping[str, Any]) -> list[Fact]:
        edge_id = obj.get("id") or self.next_ref()
        edge_type = obj.get("type") or self.default_type
        src, dst = obj["fromNode"], obj["toNode"]

        out = [Fact.of("edge", edge_id, edge_type, src, dst)]
        if isinstance(edge_type, str) and edge_type.startswith(VERTICAL_MARKER):
            out.append(Fact.of("vertical", edge_id, src, dst))
        if isinstance(edge_type, str) and edge_type.startswith(HORIZONTAL_MARKER):
            out.append(Fact.of("horizontal", edge_id, src, dst))
        for key, value in properties(obj, skip=EDGE_FIELDS):
            out.append(Fact.of(predicate_name("edge", key), edge_id, value))
        return out

    def _object_facts(self, obj: Any) -> list[Fact]:
        ref = self.next_ref()
        if not isinstance(obj, Mapping):
            return [Fact.of("object", ref, type(obj).__name__), Fact.of("object_value", ref, obj)]

        kind = obj.get("type") or obj.get("kind") or "object"
        out = [Fact.of("object", ref, kind)]
        for key, value in properties(obj):
            out.append(Fact.of(predicate_name("object", key), ref, value))
        return out


def extract_facts(objects: Iterable[Any] | Mapping[str, Any]) -> list[Fact]:
    return CanvasFactExtractor().extract(flatten_canvas(objects))
