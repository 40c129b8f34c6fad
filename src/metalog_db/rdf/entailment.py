"""Minimal RDFS entailment.

Rules, applied until a pass adds nothing:

1. A subClassOf B, B subClassOf C      => A subClassOf C
2. X rdf:type C, C subClassOf D         => X rdf:type D
3. P subPropertyOf Q, Q subPropertyOf R => P subPropertyOf R
4. X P Y, P subPropertyOf Q             => X Q Y
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..errors import FixedPointDidNotConvergeError
from .models import RDF_TYPE, RDFS_SUBCLASS_OF, RDFS_SUBPROPERTY_OF, Triple

logger = logging.getLogger(__name__)


def _hierarchy(triples: Iterable[Triple], predicate: str) -> dict[str, dict[str, None]]:
    out: dict[str, dict[str, None]] = {}
    for t in triples:
        if t.predicate == predicate and isinstance(t.object, str):
            out.setdefault(t.subject, {})[t.object] = None
    return out


def _one_pass(known: dict[Triple, None]) -> list[Triple]:
    sub_class = _hierarchy(known, RDFS_SUBCLASS_OF)
    sub_prop = _hierarchy(known, RDFS_SUBPROPERTY_OF)
    out: list[Triple] = []

    for a, supers in sub_class.items():
        for b in supers:
            for c in sub_class.get(b, ()):
                out.append(Triple(a, RDFS_SUBCLASS_OF, c))

    for p, supers in sub_prop.items():
        for q in supers:
            for r in sub_prop.get(q, ()):
                out.append(Triple(p, RDFS_SUBPROPERTY_OF, r))

    for t in known:
        if t.predicate == RDF_TYPE and isinstance(t.object, str):
            for d in sub_class.get(t.object, ()):
                out.append(Triple(t.subject, RDF_TYPE, d))
        for q in sub_prop.get(t.predicate, ()):
            out.append(Triple(t.subject, q, t.object))

    return [t for t in dict.fromkeys(out) if t not in known]


def rdfs_closure(triples: Iterable[Triple], *, max_iterations: int = 1000) -> list[Triple]:
    """Triples entailed by ``triples`` that are not already among them.

    Raises:
        FixedPointDidNotConvergeError: closure needed more than ``max_iterations`` passes
    """
    known: dict[Triple, None] = dict.fromkeys(triples)
    given = len(known)
    iterations = 0
    while True:
        iterations += 1
        if iterations > max_iterations:
            raise FixedPointDidNotConvergeError(iterations - 1, len(known), what="RDFS entailment")
        fresh = _one_pass(known)
        if not fresh:
            break
        known.update(dict.fromkeys(fresh))

    logger.debug(f"RDFS closure: {len(known) - given} new triples after {iterations} passes")
    return list(known)[given:]
