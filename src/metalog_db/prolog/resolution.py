"""SLD resolution with an explicit choice-point stack.

The search never recurses in Python: every open alternative lives on a stack
of choice points, and bindings made since a choice point was pushed are undone
through a trail when the search backtracks to it. Each clause attempt costs one
step so a caller-supplied budget bounds the work done by a query.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

from ..errors import ResolutionBudgetExceededError
from ..logic.models import Binding, Fact, Rule, Term, Variable
from ..logic.unification import bind_args, resolve_binding, undo

ClauseIndex = Mapping[tuple[str, int], Sequence[Rule]]


@dataclass(slots=True)
class GoalList:
    """Immutable cons list of pending goals, shared between choice points."""

    goal: Fact
    rest: GoalList | None = None


@dataclass(slots=True)
class ChoicePoint:
    goal: Fact
    rest: GoalList | None
    candidates: Sequence[Rule]
    trail_mark: int
    next_index: int = 0


def rename_clause(clause: Rule, suffix: int) -> tuple[Fact, tuple[Fact, ...]]:
    """Standardize a clause apart so separate uses never share a binding."""
    if not clause.variables():
        return clause.head, clause.body

    fresh: dict[str, Variable] = {}

    def rn(t: Term) -> Term:
        if isinstance(t, Variable):
            v = fresh.get(t.name)
            if v is None:
                v = fresh[t.name] = Variable(f"{t.name}#{suffix}")
            return v
        return t

    def rn_fact(f: Fact) -> Fact:
        return Fact(f.predicate, tuple(rn(a) for a in f.args))

    return rn_fact(clause.head), tuple(rn_fact(b) for b in clause.body)


class SLDResolver:
    """One resolution run over a fixed clause index."""

    def __init__(self, index: ClauseIndex, *, max_steps: int):
        self.index = index
        self.max_steps = max_steps
        self.steps = 0
        self._suffix = itertools.count(1)

    def _candidates(self, goal: Fact) -> Sequence[Rule]:
        return self.index.get(goal.key, ())

    def solve(self, goal: Fact, *, goal_text: str | None = None) -> Iterator[Binding]:
        """Yield one binding of the goal's named variables per proof.

        Raises ResolutionBudgetExceededError once more than ``max_steps``
        clause attempts have been made.
        """
        text = goal_text or str(goal)
        names = [v.name for v in goal.variables() if not v.is_anonymous]
        binding: Binding = {}
        trail: list[str] = []
        stack = [ChoicePoint(goal, None, self._candidates(goal), 0)]

        while stack:
            cp = stack[-1]
            if cp.next_index >= len(cp.candidates):
                stack.pop()
                continue

            self.steps += 1
            if self.steps > self.max_steps:
                raise ResolutionBudgetExceededError(text, self.steps, self.max_steps)

            clause = cp.candidates[cp.next_index]
            cp.next_index += 1
            undo(binding, trail, cp.trail_mark)

            head, body = rename_clause(clause, next(self._suffix))
            if not bind_args(cp.goal.args, head.args, binding, trail):
                continue

            pending = cp.rest
            for lit in reversed(body):
                pending = GoalList(lit, pending)

            if pending is None:
                yield resolve_binding(names, binding)
                continue

            stack.append(
                ChoicePoint(pending.goal, pending.rest, self._candidates(pending.goal), len(trail))
            )
