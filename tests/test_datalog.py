import logging
import random

import pytest

from metalog_db.datalog import DatalogEngine, FixedPointMatches
from metalog_db.datalog.fixed_point import FactIndex, compute, match
from metalog_db.errors import FixedPointDidNotConvergeError, InvalidRuleSyntaxError
from metalog_db.logic.models import Atom, Fact, Number, Program, Rule, Variable
from metalog_db.logic.parsing import parse_goal, parse_rule

PATH_RULES = [
    "path(X, Y) :- edge(X, Y)",
    "path(X, Z) :- edge(X, Y), path(Y, Z)",
]


def chain(n: int) -> list[Fact]:
    return [Fact.of("edge", f"n{i}", f"n{i + 1}") for i in range(n)]


def test_transitive_closure() -> None:
    program = Program(rules=tuple(parse_rule(r) for r in PATH_RULES), facts=tuple(chain(3)))
    paths = {str(f) for f in compute(program) if f.predicate == "path"}
    assert paths == {
        "path(n0,n1)",
        "path(n1,n2)",
        "path(n2,n3)",
        "path(n0,n2)",
        "path(n1,n3)",
        "path(n0,n3)",
    }


def test_input_facts_come_first_in_result() -> None:
    facts = chain(2)
    program = Program(rules=tuple(parse_rule(r) for r in PATH_RULES), facts=tuple(facts))
    assert compute(program)[:2] == facts


def test_rule_order_does_not_change_result() -> None:
    rules = [parse_rule(r) for r in PATH_RULES] + [parse_rule("reach(X) :- path(n0, X)")]
    expected = set(compute(Program(rules=tuple(rules), facts=tuple(chain(5)))))
    rng = random.Random(7)
    for _ in range(5):
        shuffled = rules[:]
        rng.shuffle(shuffled)
        assert set(compute(Program(rules=tuple(shuffled), facts=tuple(chain(5))))) == expected


def test_fixed_point_is_idempotent() -> None:
    rules = tuple(parse_rule(r) for r in PATH_RULES)
    once = compute(Program(rules=rules, facts=tuple(chain(4))))
    twice = compute(Program(rules=rules, facts=tuple(once)))
    assert set(twice) == set(once)
    assert len(twice) == len(once)


def test_non_convergence_within_bound_raises() -> None:
    program = Program(rules=tuple(parse_rule(r) for r in PATH_RULES), facts=tuple(chain(10)))
    with pytest.raises(FixedPointDidNotConvergeError) as exc:
        compute(program, max_iterations=2)
    assert exc.value.iterations == 2


def test_bodiless_rules_seed_facts(caplog) -> None:
    rules = (
        Rule(head=Fact.of("p", "a")),
        Rule(head=Fact("p", (Variable("x"),))),
        parse_rule("q(X) :- p(X)"),
    )
    with caplog.at_level(logging.WARNING, logger="metalog_db.datalog.fixed_point"):
        facts = compute(Program(rules=rules))
    assert facts == [Fact.of("p", "a"), Fact.of("q", "a")]
    assert "non-ground" in caplog.text


def test_match_is_typed() -> None:
    assert match(parse_goal("val(1)"), Fact.of("val", 1)) == {}
    assert match(parse_goal("val(1)"), Fact.of("val", "1")) is None
    assert match(parse_goal("val(?x, ?x)"), Fact.of("val", "a", "b")) is None
    assert match(parse_goal("val(?x, ?x)"), Fact.of("val", "a", "a")) == {"x": Atom("a")}
    assert match(parse_goal("val(?x)"), Fact.of("val", "a", "a")) is None


def test_fact_index_dedupes() -> None:
    idx = FactIndex([Fact.of("p", "a"), Fact.of("p", "a"), Fact.of("p", "b", "c")])
    assert len(idx) == 2
    assert list(idx.get(("p", 1))) == [Fact.of("p", "a")]


@pytest.fixture
def engine() -> DatalogEngine:
    e = DatalogEngine()
    e.add_facts(chain(3))
    for r in PATH_RULES:
        e.add_rule(r)
    return e


def test_query_filters_fixed_point(engine: DatalogEngine) -> None:
    res = engine.query("path(n0, ?y)")
    assert {str(f.args[1]) for f in res.facts} == {"n1", "n2", "n3"}


def test_query_with_constant_number_argument() -> None:
    e = DatalogEngine()
    e.add_facts([Fact.of("age", "bob", 42), Fact.of("age", "amy", "42")])
    res = e.query("age(?who, 42)")
    assert res.facts == [Fact("age", (Atom("bob"), Number(42.0)))]


def test_query_against_explicit_program_snapshot(engine: DatalogEngine) -> None:
    program = engine.build_program(["linked(X, Y) :- edge(X, Y)"])
    engine.add_facts([Fact.of("edge", "late", "fact")])
    res = engine.query("linked(?x, ?y)", program)
    assert len(res.facts) == 3
    assert engine.query("path(?x, ?y)", program).facts == []


def test_build_program_rejects_bad_rule(engine: DatalogEngine) -> None:
    with pytest.raises(InvalidRuleSyntaxError):
        engine.build_program(["linked(X, Y) edge(X, Y)"])


def test_add_rule_warns_on_unbound_head_variable(caplog) -> None:
    e = DatalogEngine()
    with caplog.at_level(logging.WARNING, logger="metalog_db.datalog.engine"):
        e.add_rule("bad(X, W) :- p(X)")
    assert "never fire" in caplog.text
    e.add_facts([Fact.of("p", "a")])
    assert e.query("bad(?x, ?w)").facts == []


def test_duplicates_and_clear(engine: DatalogEngine) -> None:
    assert engine.add_facts(chain(3)) == 0
    assert engine.add_rule(PATH_RULES[0]) is False
    engine.clear()
    assert engine.get_facts() == []
    assert engine.get_rules() == []


def test_query_returns_fixed_point_matches(engine: DatalogEngine) -> None:
    res = engine.query("edge(n0, ?y)")
    assert isinstance(res, FixedPointMatches)
    assert res.facts == [Fact.of("edge", "n0", "n1")]


def test_zero_iteration_bound_is_honoured() -> None:
    e = DatalogEngine(max_iterations=0)
    e.add_facts(chain(1))
    with pytest.raises(FixedPointDidNotConvergeError):
        e.query("edge(?x, ?y)")
