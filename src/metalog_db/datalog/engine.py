from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

from ..logic.models import Fact, Program, Rule
from ..logic.parsing import parse_goal, parse_rule
from ..settings import settings
from . import fixed_point
from .fixed_point import match

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FixedPointMatches:
    facts: list[Fact] = field(default_factory=list)


class DatalogEngine:
    """Accumulates facts and rules; every query recomputes the least fixed point."""

    def __init__(self, max_iterations: Optional[int] = None):
        self.max_iterations = settings.max_fixed_point_iterations if max_iterations is None else max_iterations
        self._lock = threading.RLock()
        self._facts: dict[Fact, None] = {}
        self._rules: dict[Rule, None] = {}

    def add_facts(self, facts: Iterable[Fact]) -> int:
        with self._lock:
            before = len(self._facts)
            self._facts.update(dict.fromkeys(facts))
            added = len(self._facts) - before
        logger.debug(f"Datalog: added {added} facts")
        return added

    def add_rule(self, rule: Union[Rule, str]) -> bool:
        if isinstance(rule, str):
            rule = parse_rule(rule)
        unbound = rule.unbound_head_variables()
        if rule.body and unbound:
            logger.warning(
                f"Rule {rule} leaves {', '.join(str(v) for v in unbound)} unbound in its head; it will never fire"
            )
        with self._lock:
            if rule in self._rules:
                return False
            self._rules[rule] = None
            return True

    def build_program(self, rules: Sequence[Union[Rule, str]]) -> Program:
        """Snapshot the current facts together with ``rules``."""
        parsed = tuple(parse_rule(r) if isinstance(r, str) else r for r in rules)
        with self._lock:
            return Program(rules=parsed, facts=tuple(self._facts))

    def _own_program(self) -> Program:
        with self._lock:
            return Program(rules=tuple(self._rules), facts=tuple(self._facts))

    def fixed_point(self, program: Optional[Program] = None) -> list[Fact]:
        return fixed_point.compute(program or self._own_program(), max_iterations=self.max_iterations)

    def query(self, goal: Union[Fact, str], program: Optional[Program] = None) -> FixedPointMatches:
        """Facts of the fixed point matching ``goal``.

        Predicate and arity must be equal, constants must be equal (typed) and
        variables match anything, consistently when repeated.
        """
        pattern = parse_goal(goal) if isinstance(goal, str) else goal
        facts = self.fixed_point(program)
        matching = [f for f in facts if match(pattern, f) is not None]
        logger.debug(f"Datalog query {pattern}: {len(matching)} of {len(facts)} facts")
        return FixedPointMatches(facts=matching)

    def get_facts(self) -> list[Fact]:
        with self._lock:
            return list(self._facts)

    def get_rules(self) -> list[Rule]:
        with self._lock:
            return list(self._rules)

    def clear(self) -> None:
        with self._lock:
            self._facts.clear()
            self._rules.clear()
