from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field

from .logic.models import Binding, Fact
from .rdf.models import Literal as RdfLiteral
from .rdf.models import Object

ScalarValue = Union[str, int, float]


class FactRecord(BaseModel):
    predicate: str
    args: list[ScalarValue] = Field(default_factory=list)

    @classmethod
    def from_fact(cls, fact: Fact) -> FactRecord:
        return cls(predicate=fact.predicate, args=fact.values())


class PrologQueryResult(BaseModel):
    bindings: list[dict[str, ScalarValue]] = Field(default_factory=list)

    @classmethod
    def from_bindings(cls, bindings: list[Binding]) -> PrologQueryResult:
        return cls(bindings=[{k: v.to_python() for k, v in b.items()} for b in bindings])


class DatalogQueryResult(BaseModel):
    facts: list[FactRecord] = Field(default_factory=list)

    @classmethod
    def from_facts(cls, facts: list[Fact]) -> DatalogQueryResult:
        return cls(facts=[FactRecord.from_fact(f) for f in facts])


class SparqlValue(BaseModel):
    value: str
    type: Literal["uri", "literal", "typed-literal"] = "uri"
    datatype: str | None = None
    language: str | None = Field(default=None, serialization_alias="xml:lang")

    @classmethod
    def from_object(cls, o: Object) -> SparqlValue:
        if isinstance(o, RdfLiteral):
            if o.datatype:
                return cls(value=o.value, type="typed-literal", datatype=o.datatype)
            return cls(value=o.value, type="literal", language=o.language)
        return cls(value=o, type="uri")


class SparqlResults(BaseModel):
    bindings: list[dict[str, SparqlValue]] = Field(default_factory=list)


class SparqlQueryResult(BaseModel):
    results: SparqlResults = Field(default_factory=SparqlResults)
    # set for ASK queries only
    boolean: bool | None = None

    @classmethod
    def from_solutions(cls, solutions: list[dict[str, Any]]) -> SparqlQueryResult:
        rows = [{k: SparqlValue.from_object(v) for k, v in s.items()} for s in solutions]
        return cls(results=SparqlResults(bindings=rows))
