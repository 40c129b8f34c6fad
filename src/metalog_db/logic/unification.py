"""Unification over the function-symbol-free term language.

Terms are atoms, numbers or variables, so a binding chain always ends in a
constant or an unbound variable and no occurs-check is needed.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .models import Binding, Fact, Term, Variable


def walk(t: Term, binding: Binding) -> Term:
    """Follow variable bindings until a constant or an unbound variable."""
    while isinstance(t, Variable):
        nxt = binding.get(t.name)
        if nxt is None:
            return t
        t = nxt
    return t


def bind_terms(a: Term, b: Term, binding: Binding, trail: list[str]) -> bool:
    """Unify two terms in place. Every new binding's name is pushed on ``trail``."""
    a = walk(a, binding)
    b = walk(b, binding)
    if a == b:
        return True
    if isinstance(a, Variable):
        binding[a.name] = b
        trail.append(a.name)
        return True
    if isinstance(b, Variable):
        binding[b.name] = a
        trail.append(b.name)
        return True
    return False


def bind_args(xs: Sequence[Term], ys: Sequence[Term], binding: Binding, trail: list[str]) -> bool:
    if len(xs) != len(ys):
        return False
    for x, y in zip(xs, ys):
        if not bind_terms(x, y, binding, trail):
            return False
    return True


def undo(binding: Binding, trail: list[str], mark: int) -> None:
    """Drop every binding recorded on ``trail`` after ``mark``."""
    while len(trail) > mark:
        del binding[trail.pop()]


def unify(a: Term, b: Term, binding: Optional[Binding] = None) -> Optional[Binding]:
    """Functional unification: returns an extended copy of ``binding`` or None."""
    out: Binding = dict(binding or {})
    if bind_terms(a, b, out, []):
        return out
    return None


def unify_facts(a: Fact, b: Fact, binding: Optional[Binding] = None) -> Optional[Binding]:
    if a.key != b.key:
        return None
    out: Binding = dict(binding or {})
    if bind_args(a.args, b.args, out, []):
        return out
    return None


def substitute(fact: Fact, binding: Binding) -> Fact:
    return Fact(fact.predicate, tuple(walk(a, binding) for a in fact.args))


def resolve_binding(names: Sequence[str], binding: Binding) -> Binding:
    """Project ``binding`` onto ``names``, fully dereferenced.

    A name left unbound maps to a fresh ``_G<n>`` variable, shared by every
    name that ends on the same unbound variable.
    """
    out: Binding = {}
    fresh: dict[str, Variable] = {}
    for n in names:
        t = walk(Variable(n), binding)
        if isinstance(t, Variable):
            t = fresh.setdefault(t.name, Variable(f"_G{len(fresh)}"))
        out[n] = t
    return out
