"""
MetaLogDb - one entry point over the three reasoning engines.

Which engines exist is decided once, at construction, from an explicit
capability set. Calls that need an absent engine raise EngineNotEnabledError
instead of quietly returning nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any, Optional, Union

from .datalog import DatalogEngine
from .errors import EngineNotEnabledError
from .logic.models import Fact, Program, Rule
from .logic.parsing import parse_rule
from .pipeline import FactIngestor, IngestStats
from .prolog import PrologEngine
from .rdf import Triple, TripleStore
from .rdf.store import TripleLike
from .results import DatalogQueryResult, PrologQueryResult, SparqlQueryResult
from .settings import MetaLogSettings, settings as default_settings

logger = logging.getLogger(__name__)


class EngineKind(Enum):
    PROLOG = "prolog"
    DATALOG = "datalog"
    RDF = "rdf"


def engines_from_settings(cfg: MetaLogSettings) -> frozenset[EngineKind]:
    flags = {
        EngineKind.PROLOG: cfg.enable_prolog,
        EngineKind.DATALOG: cfg.enable_datalog,
        EngineKind.RDF: cfg.enable_rdf,
    }
    return frozenset(kind for kind, on in flags.items() if on)


class MetaLogDb:
    """Deductive database over extracted graph facts.

    Example:
        db = MetaLogDb()
        db.load_objects([{"id": "n1", "type": "text", "x": 0, "y": 0, "text": "hi"}])
        await db.prolog_query("node(?id, text, ?x, ?y, ?t)")
    """

    def __init__(
        self,
        engines: Optional[Iterable[Union[EngineKind, str]]] = None,
        *,
        config: Optional[MetaLogSettings] = None,
    ):
        self.config = config or default_settings
        if engines is None:
            self.engines = engines_from_settings(self.config)
        else:
            self.engines = frozenset(EngineKind(e) for e in engines)

        self._prolog = (
            PrologEngine(max_steps=self.config.max_resolution_steps)
            if EngineKind.PROLOG in self.engines
            else None
        )
        self._datalog = (
            DatalogEngine(max_iterations=self.config.max_fixed_point_iterations)
            if EngineKind.DATALOG in self.engines
            else None
        )
        self._rdf = (
            TripleStore(max_entailment_iterations=self.config.max_entailment_iterations)
            if EngineKind.RDF in self.engines
            else None
        )
        self._ingestor = FactIngestor(
            prolog=self._prolog,
            datalog=self._datalog,
            rdf=self._rdf,
            iri_base=self.config.iri_base,
        )
        logger.info(f"MetaLogDb ready with engines: {sorted(e.value for e in self.engines)}")

    # --- capability checks ---

    @property
    def prolog(self) -> PrologEngine:
        if self._prolog is None:
            raise EngineNotEnabledError(EngineKind.PROLOG.value)
        return self._prolog

    @property
    def datalog(self) -> DatalogEngine:
        if self._datalog is None:
            raise EngineNotEnabledError(EngineKind.DATALOG.value)
        return self._datalog

    @property
    def rdf(self) -> TripleStore:
        if self._rdf is None:
            raise EngineNotEnabledError(EngineKind.RDF.value)
        return self._rdf

    def has_engine(self, kind: Union[EngineKind, str]) -> bool:
        return EngineKind(kind) in self.engines

    # --- loading ---

    def load_objects(self, objects: Iterable[Any] | Mapping[str, Any]) -> IngestStats:
        """Extract facts from graph objects and feed every present engine."""
        stats = self._ingestor.ingest(objects)
        logger.info(
            f"Loaded {stats.objects} objects -> {stats.facts} facts, {stats.triples} triples "
            f"({stats.extract_ms:.1f}ms extract, {stats.load_ms:.1f}ms load)"
        )
        return stats

    def extract_facts(self, objects: Optional[Iterable[Any] | Mapping[str, Any]] = None) -> list[Fact]:
        """Facts for ``objects``, or every fact loaded so far when omitted."""
        if objects is None:
            return list(self._ingestor.facts)
        return self._ingestor.extract(objects)

    def facts_to_triples(self, facts: Optional[Iterable[Fact]] = None) -> list[Triple]:
        return self._ingestor.to_triples(self._ingestor.facts if facts is None else facts)

    # --- resolution engine ---

    async def prolog_query(self, goal: str, *, max_steps: Optional[int] = None) -> PrologQueryResult:
        return PrologQueryResult.from_bindings(self.prolog.query(goal, max_steps=max_steps))

    def build_prolog_db(self, facts: Iterable[Fact]) -> None:
        self.prolog.build_db(facts)

    def add_prolog_rule(self, rule: str) -> Rule:
        """Parse and add ``head :- body``. Raises InvalidRuleSyntaxError."""
        engine = self.prolog
        parsed = parse_rule(rule)
        engine.add_rule(parsed)
        return parsed

    # --- fixed-point engine ---

    async def datalog_query(self, goal: str, program: Optional[Program] = None) -> DatalogQueryResult:
        return DatalogQueryResult.from_facts(self.datalog.query(goal, program).facts)

    def add_datalog_rule(self, rule: str) -> Rule:
        engine = self.datalog
        parsed = parse_rule(rule)
        engine.add_rule(parsed)
        return parsed

    def build_datalog_program(self, rules: Sequence[str]) -> Program:
        """Program from rule strings plus the current facts. Raises InvalidRuleSyntaxError."""
        return self.datalog.build_program(list(rules))

    # --- triple store ---

    async def sparql_query(self, query: Union[str, Sequence[Sequence[Any]]]) -> SparqlQueryResult:
        store = self.rdf
        parsed = store.parse(query)
        if parsed.form == "ASK":
            return SparqlQueryResult(boolean=store.ask(parsed))
        return SparqlQueryResult.from_solutions(store.sparql(parsed))

    def store_triples(self, triples: Iterable[TripleLike]) -> int:
        return self.rdf.add_triples(triples)

    def rdfs_entailment(self, triples: Iterable[TripleLike] = ()) -> list[Triple]:
        return self.rdf.rdfs_entailment(triples)

    def get_triples(self, include_entailed: bool = True) -> list[Triple]:
        return self.rdf.get_triples(include_entailed=include_entailed)

    # --- misc ---

    def clear(self) -> None:
        """Drop all session state of every present engine."""
        for engine in (self._prolog, self._datalog, self._rdf):
            if engine is not None:
                engine.clear()
        self._ingestor.facts.clear()

    def get_config(self) -> dict[str, Any]:
        cfg = self.config.model_dump()
        cfg["engines"] = sorted(e.value for e in self.engines)
        return cfg
