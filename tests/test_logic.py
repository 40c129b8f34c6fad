import pytest

from metalog_db.errors import InvalidRuleSyntaxError, MalformedGoalError
from metalog_db.logic.models import Atom, Fact, Number, Rule, Variable, term_from_value
from metalog_db.logic.parsing import parse_clause, parse_goal, parse_rule, split_top_level
from metalog_db.logic.unification import unify, unify_facts


def test_fact_identity_includes_arity() -> None:
    assert Fact.of("p", "a") != Fact.of("p", "a", "b")
    assert Fact.of("p", "a") == Fact.of("p", "a")
    assert len({Fact.of("p", "a"), Fact.of("p", "a")}) == 1
    assert Fact.of("p", "a", "b").key == ("p", 2)


def test_number_rendering_and_equality() -> None:
    assert str(Number(0.0)) == "0"
    assert str(Number(2.5)) == "2.5"
    assert Number(1) == Number(1.0)
    assert Atom("1") != Number(1.0)


def test_term_from_value_closed_variant() -> None:
    assert term_from_value(True) == Atom("true")
    assert term_from_value(None) == Atom("null")
    assert term_from_value(3) == Number(3.0)
    assert term_from_value("x") == Atom("x")
    assert term_from_value({"b": 1, "a": 2}) == Atom('{"a": 2, "b": 1}')


def test_fact_str() -> None:
    assert str(Fact.of("node", "n1", "text", 0, 0, "hi")) == "node(n1,text,0,0,hi)"
    assert str(Fact("halt")) == "halt"


def test_parse_goal_arguments() -> None:
    g = parse_goal('edge(?id, "v:a b", 3, 1.5, Foo, _)')
    assert g.predicate == "edge"
    assert g.args[0] == Variable("id")
    assert g.args[1] == Atom("v:a b")
    assert g.args[2] == Number(3.0)
    assert g.args[3] == Number(1.5)
    # bare upper-case tokens are constants in goals
    assert g.args[4] == Atom("Foo")
    assert isinstance(g.args[5], Variable) and g.args[5].is_anonymous


def test_parse_goal_without_args() -> None:
    assert parse_goal("halt") == Fact("halt")
    assert parse_goal("p()") == Fact("p")


@pytest.mark.parametrize("bad", ["", "p(a", "p(f(x))", "(a)", "p(a,,b)", 'p("a)', "p(?)"])
def test_parse_goal_malformed(bad: str) -> None:
    with pytest.raises(MalformedGoalError) as exc:
        parse_goal(bad)
    assert exc.value.goal == bad


def test_parse_rule_prolog_variables() -> None:
    r = parse_rule("grandparent(X,Z) :- parent(X,Y), parent(Y,Z).")
    assert r.head == Fact("grandparent", (Variable("X"), Variable("Z")))
    assert r.body == (
        Fact("parent", (Variable("X"), Variable("Y"))),
        Fact("parent", (Variable("Y"), Variable("Z"))),
    )


def test_parse_rule_splits_on_first_separator_and_top_level_commas() -> None:
    r = parse_rule("p(?x) :- q(?x, 'a,b'), r(?x)")
    assert len(r.body) == 2
    assert r.body[0].args[1] == Atom("a,b")


@pytest.mark.parametrize("bad", ["p(a)", "p(a) :- ", "p(a) :- q(a),", ":- q(a)", "p(a) :- q(f(x))"])
def test_parse_rule_invalid(bad: str) -> None:
    with pytest.raises(InvalidRuleSyntaxError) as exc:
        parse_rule(bad)
    assert exc.value.rule == bad


def test_parse_clause_accepts_facts() -> None:
    assert parse_clause("parent(a, b).") == Rule(head=Fact.of("parent", "a", "b"))


def test_split_top_level() -> None:
    assert split_top_level("a, (b, c), 'd,e'") == ["a", "(b, c)", "'d,e'"]


def test_unify_ground_self_is_empty_binding() -> None:
    for t in (Atom("a"), Number(4.0)):
        assert unify(t, t) == {}


def test_unify_distinct_ground_atoms_fails() -> None:
    assert unify(Atom("a"), Atom("b")) is None
    assert unify(Atom("1"), Number(1.0)) is None


def test_unify_binds_variables_either_side() -> None:
    assert unify(Variable("x"), Atom("a")) == {"x": Atom("a")}
    assert unify(Atom("a"), Variable("x")) == {"x": Atom("a")}
    assert unify(Variable("x"), Atom("b"), {"x": Atom("a")}) is None


def test_unify_facts_positionwise() -> None:
    pat = Fact("p", (Variable("x"), Variable("x")))
    assert unify_facts(pat, Fact.of("p", "a", "a")) == {"x": Atom("a")}
    assert unify_facts(pat, Fact.of("p", "a", "b")) is None
    assert unify_facts(pat, Fact.of("p", "a")) is None


def test_rule_unbound_head_variables() -> None:
    r = parse_rule("p(X, W) :- q(X)")
    assert [v.name for v in r.unbound_head_variables()] == ["W"]


def test_anonymous_variables_are_numbered_per_clause() -> None:
    text = "linked(A, B) :- edge(_, _, A, B)"
    first, second = parse_rule(text), parse_rule(text)
    assert first == second
    anon = [a for a in first.body[0].args if isinstance(a, Variable) and a.is_anonymous]
    assert len(set(anon)) == 2
    assert parse_goal("edge(_, ?x)") == parse_goal("edge(_, ?x)")
