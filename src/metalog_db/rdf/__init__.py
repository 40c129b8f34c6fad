"""Triple store with basic graph pattern queries and RDFS entailment."""

from .entailment import rdfs_closure
from .models import RDF_TYPE, RDFS_SUBCLASS_OF, RDFS_SUBPROPERTY_OF, Literal, Triple
from .sparql import SelectQuery, TriplePattern, parse_query
from .store import TripleStore

__all__ = [
    "Literal",
    "RDFS_SUBCLASS_OF",
    "RDFS_SUBPROPERTY_OF",
    "RDF_TYPE",
    "SelectQuery",
    "Triple",
    "TriplePattern",
    "TripleStore",
    "parse_query",
    "rdfs_closure",
]
