from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"

RDF_TYPE = RDF_NS + "type"
RDFS_SUBCLASS_OF = RDFS_NS + "subClassOf"
RDFS_SUBPROPERTY_OF = RDFS_NS + "subPropertyOf"

DEFAULT_PREFIXES: dict[str, str] = {
    "rdf": RDF_NS,
    "rdfs": RDFS_NS,
    "xsd": XSD_NS,
}


@dataclass(frozen=True, slots=True)
class Literal:
    value: str
    datatype: str | None = None
    language: str | None = None

    def __str__(self) -> str:
        if self.language:
            return f'"{self.value}"@{self.language}'
        if self.datatype:
            return f'"{self.value}"^^<{self.datatype}>'
        return f'"{self.value}"'


Object = Union[str, Literal]


@dataclass(frozen=True, slots=True)
class Triple:
    """A subject-predicate-object statement. IRIs are plain strings."""

    subject: str
    predicate: str
    object: Object

    def __str__(self) -> str:
        obj = self.object if isinstance(self.object, Literal) else f"<{self.object}>"
        return f"<{self.subject}> <{self.predicate}> {obj} ."


def strip_angle(iri: str) -> str:
    if len(iri) >= 2 and iri.startswith("<") and iri.endswith(">"):
        return iri[1:-1]
    return iri


def object_value(o: Object) -> str:
    return o.value if isinstance(o, Literal) else o


def coerce_triple(t: Triple | Mapping[str, Any] | tuple) -> Triple:
    """Accept a Triple, a ``{subject, predicate, object}`` mapping or a 3-tuple."""
    if isinstance(t, Triple):
        return t
    if isinstance(t, Mapping):
        s, p, o = t["subject"], t["predicate"], t["object"]
    else:
        s, p, o = t
    if isinstance(o, Mapping):
        o = Literal(str(o["value"]), o.get("datatype"), o.get("language"))
    elif isinstance(o, str):
        o = strip_angle(o)
    elif isinstance(o, bool):
        o = Literal("true" if o else "false", XSD_NS + "boolean")
    elif isinstance(o, int):
        o = Literal(str(o), XSD_NS + "integer")
    elif isinstance(o, float):
        o = Literal(repr(o), XSD_NS + "decimal")
    elif not isinstance(o, Literal):
        o = Literal(str(o))
    return Triple(strip_angle(str(s)), strip_angle(str(p)), o)
