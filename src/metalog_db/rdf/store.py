from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional, Union

from ..settings import settings
from .entailment import rdfs_closure
from .models import Literal, Object, Triple, coerce_triple
from .sparql import SelectQuery, Solution, ask, evaluate, parse_patterns, parse_query

logger = logging.getLogger(__name__)

TripleLike = Union[Triple, Mapping[str, Any], tuple]
QueryLike = Union[str, SelectQuery, Sequence[Sequence[Any]]]


def _object_key(o: Object) -> tuple:
    if isinstance(o, Literal):
        return ("literal", o.value, o.datatype, o.language)
    return ("iri", o)


class TripleStore:
    """In-memory triple set with subject / predicate / object indexes.

    Asserted and entailed triples are kept apart (so a report can tell them
    apart) but every lookup sees both.
    """

    def __init__(self, max_entailment_iterations: Optional[int] = None):
        self.max_entailment_iterations = (
            settings.max_entailment_iterations if max_entailment_iterations is None else max_entailment_iterations
        )
        self._lock = threading.RLock()
        self._asserted: dict[Triple, None] = {}
        self._entailed: dict[Triple, None] = {}
        self._by_s: dict[str, dict[Triple, None]] = {}
        self._by_p: dict[str, dict[Triple, None]] = {}
        self._by_o: dict[tuple, dict[Triple, None]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._asserted) + len(self._entailed)

    def _index(self, t: Triple) -> None:
        self._by_s.setdefault(t.subject, {})[t] = None
        self._by_p.setdefault(t.predicate, {})[t] = None
        self._by_o.setdefault(_object_key(t.object), {})[t] = None

    def add_triples(self, triples: Iterable[TripleLike]) -> int:
        """Assert triples (duplicates collapse). Returns how many were new."""
        added = 0
        with self._lock:
            for raw in triples:
                t = coerce_triple(raw)
                if t in self._asserted:
                    continue
                if t in self._entailed:
                    # promoted: now asserted, already indexed
                    del self._entailed[t]
                else:
                    self._index(t)
                self._asserted[t] = None
                added += 1
        logger.debug(f"TripleStore: added {added} triples")
        return added

    def _add_entailed(self, triples: Iterable[Triple]) -> None:
        with self._lock:
            for t in triples:
                if t in self._asserted or t in self._entailed:
                    continue
                self._entailed[t] = None
                self._index(t)

    def match(
        self,
        subject: Optional[str] = None,
        predicate: Optional[str] = None,
        object: Optional[Object] = None,
    ) -> list[Triple]:
        """Triples matching the given positions (None matches anything)."""
        with self._lock:
            candidates: list[dict[Triple, None]] = []
            if subject is not None:
                candidates.append(self._by_s.get(subject, {}))
            if predicate is not None:
                candidates.append(self._by_p.get(predicate, {}))
            if object is not None:
                candidates.append(self._by_o.get(_object_key(object), {}))

            if not candidates:
                return [*self._asserted, *self._entailed]

            smallest = min(candidates, key=len)
            return [
                t
                for t in smallest
                if (subject is None or t.subject == subject)
                and (predicate is None or t.predicate == predicate)
                and (object is None or _object_key(t.object) == _object_key(object))
            ]

    def parse(self, query: QueryLike) -> SelectQuery:
        if isinstance(query, SelectQuery):
            return query
        return parse_query(query) if isinstance(query, str) else parse_patterns(query)

    def sparql(self, query: QueryLike) -> list[Solution]:
        """Evaluate a basic graph pattern.

        ``query`` is a SELECT or ASK string, a parsed query or a sequence of
        ``(s, p, o)`` patterns whose ``?``-prefixed positions are variables. An
        empty pattern or no match gives an empty list. An ASK query that holds
        gives a single empty solution.
        """
        parsed = self.parse(query)
        if parsed.form == "ASK":
            return [{}] if ask(parsed, self.match) else []
        return evaluate(parsed, self.match)

    def ask(self, query: QueryLike) -> bool:
        return ask(self.parse(query), self.match)

    def rdfs_entailment(self, triples: Iterable[TripleLike] = ()) -> list[Triple]:
        """Entail new triples from the stored ones plus ``triples``.

        The newly entailed triples are recorded in the store and returned.
        """
        extra = [coerce_triple(t) for t in triples]
        with self._lock:
            base = list(dict.fromkeys([*self._asserted, *self._entailed, *extra]))
        new = rdfs_closure(base, max_iterations=self.max_entailment_iterations)
        self._add_entailed(new)
        logger.info(f"RDFS entailment produced {len(new)} triples from {len(base)}")
        return new

    def get_triples(self, include_entailed: bool = True) -> list[Triple]:
        with self._lock:
            if include_entailed:
                return [*self._asserted, *self._entailed]
            return list(self._asserted)

    def asserted_triples(self) -> list[Triple]:
        return self.get_triples(include_entailed=False)

    def entailed_triples(self) -> list[Triple]:
        with self._lock:
            return list(self._entailed)

    def clear(self) -> None:
        with self._lock:
            self._asserted.clear()
            self._entailed.clear()
            self._by_s.clear()
            self._by_p.clear()
            self._by_o.clear()
