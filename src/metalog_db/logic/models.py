from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

# A value found on an extracted graph object. Anything richer is serialized.
PropertyValue = Union[str, int, float, bool, None]


@dataclass(frozen=True, slots=True)
class Atom:
    value: str

    def __str__(self) -> str:
        return self.value

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Number:
    """Numeric constant. ``Number(1) == Number(1.0)`` since they hash alike."""

    value: float

    def __str__(self) -> str:
        v = float(self.value)
        if v.is_integer():
            return str(int(v))
        return repr(v)

    def to_python(self) -> int | float:
        v = float(self.value)
        return int(v) if v.is_integer() else v


@dataclass(frozen=True, slots=True)
class Variable:
    # Name without the leading '?'
    name: str

    def __str__(self) -> str:
        return f"?{self.name}"

    def to_python(self) -> str:
        return self.name

    @property
    def is_anonymous(self) -> bool:
        return self.name.startswith("_")


Term = Union[Atom, Number, Variable]


def is_variable(t: Term) -> bool:
    return isinstance(t, Variable)


def term_from_value(value: Any) -> Term:
    """Map a property value onto the closed term vocabulary."""
    if isinstance(value, (Atom, Number, Variable)):
        return value
    if value is None:
        return Atom("null")
    if isinstance(value, bool):
        return Atom("true" if value else "false")
    if isinstance(value, (int, float)):
        return Number(float(value))
    if isinstance(value, str):
        return Atom(value)
    return Atom(json.dumps(value, sort_keys=True, default=str))


@dataclass(frozen=True, slots=True)
class Fact:
    """A predicate applied to terms.

    Ground facts populate fact bases; facts holding variables act as patterns
    (goals, rule heads and bodies).
    """

    predicate: str
    args: tuple[Term, ...] = ()

    @classmethod
    def of(cls, predicate: str, *values: Any) -> Fact:
        return cls(predicate=predicate, args=tuple(term_from_value(v) for v in values))

    @property
    def arity(self) -> int:
        return len(self.args)

    @property
    def key(self) -> tuple[str, int]:
        return (self.predicate, len(self.args))

    @property
    def is_ground(self) -> bool:
        return not any(isinstance(a, Variable) for a in self.args)

    def variables(self) -> list[Variable]:
        seen: dict[str, Variable] = {}
        for a in self.args:
            if isinstance(a, Variable):
                seen.setdefault(a.name, a)
        return list(seen.values())

    def values(self) -> list[Any]:
        return [a.to_python() for a in self.args]

    def __str__(self) -> str:
        if not self.args:
            return self.predicate
        return f"{self.predicate}({','.join(str(a) for a in self.args)})"


@dataclass(frozen=True, slots=True)
class Rule:
    """``head`` holds if every literal of ``body`` holds under one binding."""

    head: Fact
    body: tuple[Fact, ...] = ()

    @property
    def is_fact(self) -> bool:
        return not self.body

    def variables(self) -> list[Variable]:
        seen: dict[str, Variable] = {}
        for lit in (self.head, *self.body):
            for v in lit.variables():
                seen.setdefault(v.name, v)
        return list(seen.values())

    def unbound_head_variables(self) -> list[Variable]:
        """Head variables that no body literal binds (the rule can never fire)."""
        body_names = {v.name for lit in self.body for v in lit.variables()}
        return [v for v in self.head.variables() if v.name not in body_names]

    def __str__(self) -> str:
        if not self.body:
            return f"{self.head}."
        return f"{self.head} :- {', '.join(str(b) for b in self.body)}."


@dataclass(frozen=True, slots=True)
class Program:
    """Unit submitted to the fixed-point engine.

    Rule order is kept for diagnostics; it does not change the result.
    """

    rules: tuple[Rule, ...] = ()
    facts: tuple[Fact, ...] = field(default_factory=tuple)


# Variable name (no '?') -> term. Transient, never persisted.
Binding = dict[str, Term]


def dedupe(items) -> list:
    """Order-preserving de-duplication under structural equality."""
    return list(dict.fromkeys(items))
