"""Bottom-up least fixed point, semi-naive.

Each pass only fires rule instances that use at least one fact derived by the
previous pass (the first pass treats every fact as new). Derivations of a pass
are computed against the fact set as it stood when the pass began and merged
once the pass is over, so rule order never changes the result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Optional

from ..errors import FixedPointDidNotConvergeError
from ..logic.models import Binding, Fact, Program, Rule
from ..logic.unification import bind_args, substitute

logger = logging.getLogger(__name__)


class FactIndex:
    """Insertion-ordered fact set indexed by (predicate, arity)."""

    def __init__(self, facts: Iterable[Fact] = ()):
        self._all: dict[Fact, None] = {}
        self._by_key: dict[tuple[str, int], list[Fact]] = {}
        for f in facts:
            self.add(f)

    def add(self, fact: Fact) -> bool:
        if fact in self._all:
            return False
        self._all[fact] = None
        self._by_key.setdefault(fact.key, []).append(fact)
        return True

    def get(self, key: tuple[str, int]) -> Sequence[Fact]:
        return self._by_key.get(key, ())

    def __contains__(self, fact: object) -> bool:
        return fact in self._all

    def __iter__(self) -> Iterator[Fact]:
        return iter(self._all)

    def __len__(self) -> int:
        return len(self._all)


def match(pattern: Fact, fact: Fact, binding: Optional[Binding] = None) -> Optional[Binding]:
    """Match a pattern against a fact, extending ``binding``. Constants compare typed."""
    if pattern.key != fact.key:
        return None
    out: Binding = dict(binding or {})
    if bind_args(pattern.args, fact.args, out, []):
        return out
    return None


def join_body(rule: Rule, full: FactIndex, delta: FactIndex, delta_pos: int) -> list[Binding]:
    """Bindings of ``rule.body`` with literal ``delta_pos`` taken from ``delta``."""
    order = [delta_pos, *(i for i in range(len(rule.body)) if i != delta_pos)]
    bindings: list[Binding] = [{}]
    for i in order:
        lit = rule.body[i]
        source = delta if i == delta_pos else full
        nxt: list[Binding] = []
        for b in bindings:
            for f in source.get(lit.key):
                m = match(lit, f, b)
                if m is not None:
                    nxt.append(m)
        bindings = nxt
        if not bindings:
            break
    return bindings


def compute(program: Program, *, max_iterations: int = 1000) -> list[Fact]:
    """Least fixed point of ``program``.

    Raises:
        FixedPointDidNotConvergeError: more than ``max_iterations`` passes were needed
    """
    db = FactIndex(program.facts)
    active: list[Rule] = []
    for rule in program.rules:
        if rule.body:
            active.append(rule)
        elif rule.head.is_ground:
            db.add(rule.head)
        else:
            logger.warning(f"Skipping non-ground bodiless rule {rule}")

    delta = FactIndex(db)
    iterations = 0
    while len(delta):
        iterations += 1
        if iterations > max_iterations:
            raise FixedPointDidNotConvergeError(iterations - 1, len(db))

        derived = FactIndex()
        for rule in active:
            for pos, lit in enumerate(rule.body):
                if not delta.get(lit.key):
                    continue
                for b in join_body(rule, db, delta, pos):
                    head = substitute(rule.head, b)
                    if head.is_ground and head not in db:
                        derived.add(head)

        for f in derived:
            db.add(f)
        delta = derived

    logger.debug(f"Fixed point reached after {iterations} passes with {len(db)} facts")
    return list(db)
