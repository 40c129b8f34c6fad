"""metalog_db - a deductive database over canvas graph facts.

Three independent engines share one fact model and one extraction pipeline:
- PrologEngine: SLD resolution with backtracking
- DatalogEngine: bottom-up least fixed point
- TripleStore: basic graph pattern queries and RDFS entailment
"""

from .database import EngineKind, MetaLogDb
from .datalog import DatalogEngine
from .errors import (
    EngineNotEnabledError,
    FixedPointDidNotConvergeError,
    InvalidRuleSyntaxError,
    MalformedGoalError,
    MetaLogError,
    NonTerminationError,
    ResolutionBudgetExceededError,
)
from .logic import Atom, Fact, Number, Program, Rule, Variable
from .prolog import PrologEngine
from .rdf import Literal, Triple, TripleStore

__version__ = "0.1.0"

__all__ = [
    "Atom",
    "DatalogEngine",
    "EngineKind",
    "EngineNotEnabledError",
    "Fact",
    "FixedPointDidNotConvergeError",
    "InvalidRuleSyntaxError",
    "Literal",
    "MalformedGoalError",
    "MetaLogDb",
    "MetaLogError",
    "NonTerminationError",
    "Number",
    "Program",
    "PrologEngine",
    "ResolutionBudgetExceededError",
    "Rule",
    "Triple",
    "TripleStore",
    "Variable",
]
