"""Error taxonomy shared by the three engines and the facade."""

from __future__ import annotations


class MetaLogError(Exception):
    """Base class for every error raised by metalog_db."""


class MalformedGoalError(MetaLogError, ValueError):
    """A goal or query string could not be parsed."""

    def __init__(self, goal: str, reason: str = "unparsable goal"):
        self.goal = goal
        self.reason = reason
        super().__init__(f"Malformed goal {goal!r}: {reason}")


class InvalidRuleSyntaxError(MetaLogError, ValueError):
    """A rule string is not of the form ``head :- body1, body2, ...``."""

    def __init__(self, rule: str, reason: str = "expected 'head :- body'"):
        self.rule = rule
        self.reason = reason
        super().__init__(f"Invalid rule {rule!r}: {reason}")


class NonTerminationError(MetaLogError):
    """A computation hit its step or iteration bound.

    Recoverable: callers may retry with a different bound or a smaller problem.
    """


class ResolutionBudgetExceededError(NonTerminationError):
    def __init__(self, goal: str, steps: int, budget: int):
        self.goal = goal
        self.steps = steps
        self.budget = budget
        super().__init__(
            f"Resolution of {goal!r} exceeded its budget of {budget} steps (took {steps})"
        )


class FixedPointDidNotConvergeError(NonTerminationError):
    def __init__(self, iterations: int, fact_count: int, what: str = "fixed point"):
        self.iterations = iterations
        self.fact_count = fact_count
        self.what = what
        super().__init__(
            f"{what} did not converge after {iterations} iterations ({fact_count} facts so far)"
        )


class EngineNotEnabledError(MetaLogError):
    """A call targeted an engine that is not part of this database's capability set."""

    def __init__(self, engine: str):
        self.engine = engine
        super().__init__(f"{engine} engine not enabled")
