from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Optional, Union

from ..logic.models import Binding, Fact, Rule
from ..logic.parsing import parse_goal, parse_rule
from ..settings import settings
from .resolution import SLDResolver

logger = logging.getLogger(__name__)


class PrologEngine:
    """Clause database queried by SLD resolution.

    Facts are stored as zero-body clauses next to rules, in insertion order,
    and de-duplicated structurally. Mutations and the snapshot taken at the
    start of a query are serialized by a lock.

    Example:
        engine = PrologEngine()
        engine.add_facts([Fact.of("parent", "a", "b"), Fact.of("parent", "b", "c")])
        engine.add_rule("grandparent(X, Z) :- parent(X, Y), parent(Y, Z)")
        engine.query("grandparent(?x, ?z)")  # [{'x': Atom('a'), 'z': Atom('c')}]
    """

    def __init__(self, max_steps: Optional[int] = None):
        self.max_steps = settings.max_resolution_steps if max_steps is None else max_steps
        self._lock = threading.RLock()
        self._clauses: dict[Rule, None] = {}
        self._index: dict[tuple[str, int], list[Rule]] = {}

    def _add_clause(self, clause: Rule) -> bool:
        if clause in self._clauses:
            return False
        self._clauses[clause] = None
        self._index.setdefault(clause.head.key, []).append(clause)
        return True

    def add_facts(self, facts: Iterable[Fact]) -> int:
        """Add facts as zero-body clauses. Returns how many were new."""
        with self._lock:
            added = sum(1 for f in facts if self._add_clause(Rule(head=f)))
        logger.debug(f"Prolog: added {added} facts")
        return added

    def add_rule(self, rule: Union[Rule, str]) -> bool:
        if isinstance(rule, str):
            rule = parse_rule(rule)
        with self._lock:
            return self._add_clause(rule)

    def build_db(self, facts: Iterable[Fact]) -> None:
        """Replace the whole clause database (rules included) with ``facts``."""
        with self._lock:
            self._clauses.clear()
            self._index.clear()
            n = sum(1 for f in facts if self._add_clause(Rule(head=f)))
        logger.info(f"Prolog database rebuilt with {n} facts")

    def _snapshot(self) -> dict[tuple[str, int], tuple[Rule, ...]]:
        with self._lock:
            return {k: tuple(v) for k, v in self._index.items()}

    def solve(self, goal: Union[Fact, str], *, max_steps: Optional[int] = None) -> Iterator[Binding]:
        """Lazily enumerate solutions of ``goal``."""
        goal_text = goal if isinstance(goal, str) else str(goal)
        parsed = parse_goal(goal) if isinstance(goal, str) else goal
        resolver = SLDResolver(self._snapshot(), max_steps=self.max_steps if max_steps is None else max_steps)
        return resolver.solve(parsed, goal_text=goal_text)

    def query(
        self,
        goal: Union[Fact, str],
        *,
        max_steps: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Binding]:
        """Return every solution of ``goal`` (or the first ``limit`` of them).

        Raises:
            MalformedGoalError: goal string does not parse
            ResolutionBudgetExceededError: more than ``max_steps`` clause attempts
        """
        goal_text = goal if isinstance(goal, str) else str(goal)
        parsed = parse_goal(goal) if isinstance(goal, str) else goal
        resolver = SLDResolver(self._snapshot(), max_steps=self.max_steps if max_steps is None else max_steps)

        results: list[Binding] = []
        for solution in resolver.solve(parsed, goal_text=goal_text):
            results.append(solution)
            if limit is not None and len(results) >= limit:
                break

        logger.debug(f"Prolog query {goal_text!r}: {len(results)} solutions in {resolver.steps} steps")
        return results

    def get_facts(self) -> list[Fact]:
        with self._lock:
            return [c.head for c in self._clauses if c.is_fact]

    def get_rules(self) -> list[Rule]:
        with self._lock:
            return [c for c in self._clauses if not c.is_fact]

    def clear(self) -> None:
        with self._lock:
            self._clauses.clear()
            self._index.clear()
