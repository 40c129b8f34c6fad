from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote

from ..logic.models import Fact
from ..rdf.models import RDF_TYPE, Triple


def _seg(value: object) -> str:
    return quote(str(value), safe="-._~:")


def node_iri(base: str, node_id: object) -> str:
    return f"{base}node/{_seg(node_id)}"


def edge_iri(base: str, edge_id: object) -> str:
    return f"{base}edge/{_seg(edge_id)}"


def type_iri(base: str, type_name: object) -> str:
    return f"{base}type/{_seg(type_name)}"


def predicate_iri(base: str, name: str) -> str:
    return f"{base}predicate/{_seg(name)}"


def facts_to_triples(facts: Iterable[Fact], base: str = "http://example.org/") -> list[Triple]:
    """Derive RDF triples from node/edge facts.

    node(id, type, ...)            -> <node/id> rdf:type <type/type>
    edge(id, type, from, to, ...)  -> <edge/id> fromNode <node/from>
                                      <edge/id> toNode   <node/to>
                                      <edge/id> rdf:type <type/type>
    """
    if not base.endswith(("/", "#")):
        base += "/"

    triples: list[Triple] = []
    for f in facts:
        vals = [str(a) for a in f.args]
        if f.predicate == "node" and len(vals) >= 2:
            node_id, node_type = vals[0], vals[1]
            triples.append(Triple(node_iri(base, node_id), RDF_TYPE, type_iri(base, node_type)))
        elif f.predicate == "edge" and len(vals) >= 4:
            edge_id, edge_type, src, dst = vals[:4]
            subj = edge_iri(base, edge_id)
            triples.append(Triple(subj, predicate_iri(base, "fromNode"), node_iri(base, src)))
            triples.append(Triple(subj, predicate_iri(base, "toNode"), node_iri(base, dst)))
            triples.append(Triple(subj, RDF_TYPE, type_iri(base, edge_type)))
    return list(dict.fromkeys(triples))
