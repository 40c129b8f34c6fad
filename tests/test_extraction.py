from metalog_db.extraction import CanvasFactExtractor, extract_facts, facts_to_triples, flatten_canvas
from metalog_db.logic.models import Fact
from metalog_db.logic.parsing import parse_goal
from metalog_db.rdf.models import RDF_TYPE, Triple


def test_node_extraction_emits_node_and_property_facts_only() -> None:
    facts = CanvasFactExtractor().extract(
        [{"id": "n1", "type": "text", "x": 0, "y": 0, "text": "hi", "color": "red"}]
    )
    assert [str(f) for f in facts] == ["node(n1,text,0,0,hi)", "node_color(n1,red)"]


def test_node_defaults_for_missing_fields() -> None:
    facts = extract_facts([{"id": "n9"}])
    assert facts == [Fact.of("node", "n9", "unknown", 0, 0, "")]


def test_edge_extraction_with_vertical_and_horizontal(canvas: dict) -> None:
    facts = extract_facts(canvas)
    assert Fact.of("edge", "e1", "v:parent", "n1", "n2") in facts
    assert Fact.of("vertical", "e1", "n1", "n2") in facts
    assert Fact.of("edge", "e2", "h:next", "n2", "n1") in facts
    assert Fact.of("horizontal", "e2", "n2", "n1") in facts
    assert Fact.of("edge_label", "e2", "back") in facts
    assert not any(f.predicate == "horizontal" and f.args[0].value == "e1" for f in facts)


def test_unmatched_objects_are_kept_under_catch_all() -> None:
    facts = extract_facts([{"kind": "group", "label": "g"}, 42])
    assert Fact.of("object", "_:o0", "group") in facts
    assert Fact.of("object_label", "_:o0", "g") in facts
    assert Fact.of("object", "_:o1", "int") in facts
    assert Fact.of("object_value", "_:o1", 42) in facts


def test_duplicate_objects_collapse() -> None:
    obj = {"id": "n1", "type": "text", "x": 1, "y": 2, "text": "t"}
    assert len(extract_facts([obj, dict(obj)])) == 1


def test_flatten_canvas_orders_nodes_then_edges(canvas: dict) -> None:
    flat = flatten_canvas(canvas)
    assert [o["id"] for o in flat] == ["n1", "n2", "e1", "e2"]
    assert flatten_canvas([{"id": "x"}]) == [{"id": "x"}]


def test_facts_to_triples() -> None:
    facts = [
        Fact.of("node", "n1", "text", 0, 0, "hi"),
        Fact.of("edge", "e1", "link", "n1", "n2"),
        Fact.of("node_color", "n1", "red"),
    ]
    triples = facts_to_triples(facts, base="http://ex.org/")
    assert triples == [
        Triple("http://ex.org/node/n1", RDF_TYPE, "http://ex.org/type/text"),
        Triple("http://ex.org/edge/e1", "http://ex.org/predicate/fromNode", "http://ex.org/node/n1"),
        Triple("http://ex.org/edge/e1", "http://ex.org/predicate/toNode", "http://ex.org/node/n2"),
        Triple("http://ex.org/edge/e1", RDF_TYPE, "http://ex.org/type/link"),
    ]


def test_facts_to_triples_quotes_iri_segments() -> None:
    (t,) = facts_to_triples([Fact.of("node", "my node", "v:x", 0, 0, "")], base="http://ex.org")
    assert t.subject == "http://ex.org/node/my%20node"
    assert t.object == "http://ex.org/type/v:x"


def test_refs_stay_unique_across_extract_calls() -> None:
    extractor = CanvasFactExtractor()
    first = extractor.extract([{"kind": "group", "label": "first"}])
    second = extractor.extract([{"kind": "note", "label": "second"}, {"fromNode": "a", "toNode": "b"}])
    assert Fact.of("object", "_:o0", "group") in first
    assert Fact.of("object", "_:o1", "note") in second
    assert Fact.of("object_label", "_:o1", "second") in second
    assert Fact.of("edge", "_:o2", "unknown", "a", "b") in second


def test_property_keys_become_queryable_predicates() -> None:
    facts = extract_facts([{"id": "n1", "meta.tag": "x", "@id": "y", "has-dash": 1}])
    assert [f.predicate for f in facts] == ["node", "node_meta_tag", "node__id", "node_has-dash"]
    for f in facts[1:]:
        assert parse_goal(f"{f.predicate}(n1, ?v)").key == f.key
