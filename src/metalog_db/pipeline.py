from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .datalog import DatalogEngine
from .extraction import CanvasFactExtractor, FactExtractor, facts_to_triples, flatten_canvas
from .logic.models import Fact
from .prolog import PrologEngine
from .rdf import Triple, TripleStore


@dataclass(slots=True)
class IngestStats:
    objects: int
    facts: int
    triples: int
    extract_ms: float
    load_ms: float


class FactIngestor:
    """Extract facts from graph objects and hand copies to each present engine.

    Engines never see each other's derived results: each receives the same
    extracted facts (and the store the triples derived from them).
    """

    def __init__(
        self,
        *,
        prolog: Optional[PrologEngine] = None,
        datalog: Optional[DatalogEngine] = None,
        rdf: Optional[TripleStore] = None,
        extractor: FactExtractor | None = None,
        iri_base: str = "http://example.org/",
    ):
        self.prolog = prolog
        self.datalog = datalog
        self.rdf = rdf
        self.extractor = extractor or CanvasFactExtractor()
        self.iri_base = iri_base
        self.facts: dict[Fact, None] = {}

    def extract(self, objects: Iterable[Any] | Mapping[str, Any]) -> list[Fact]:
        return self.extractor.extract(flatten_canvas(objects))

    def to_triples(self, facts: Iterable[Fact]) -> list[Triple]:
        return facts_to_triples(facts, base=self.iri_base)

    def ingest(self, objects: Iterable[Any] | Mapping[str, Any]) -> IngestStats:
        items = flatten_canvas(objects)
        t0 = time.perf_counter()
        facts = self.extractor.extract(items)
        triples = self.to_triples(facts) if self.rdf is not None else []
        t1 = time.perf_counter()
        if self.prolog is not None:
            self.prolog.add_facts(facts)
        if self.datalog is not None:
            self.datalog.add_facts(facts)
        if self.rdf is not None:
            self.rdf.add_triples(triples)
        self.facts.update(dict.fromkeys(facts))
        t2 = time.perf_counter()
        return IngestStats(
            objects=len(items),
            facts=len(facts),
            triples=len(triples),
            extract_ms=(t1 - t0) * 1000.0,
            load_ms=(t2 - t1) * 1000.0,
        )
