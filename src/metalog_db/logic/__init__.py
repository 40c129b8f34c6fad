"""Shared term and fact model.

This module provides:
- Terms (atoms, numbers, variables), facts, rules and programs
- Goal / rule string parsing
- Unification with an undo trail for backtracking search
"""

from .models import Atom, Binding, Fact, Number, Program, PropertyValue, Rule, Term, Variable, term_from_value
from .parsing import parse_clause, parse_goal, parse_rule
from .unification import unify, unify_facts

__all__ = [
    "Atom",
    "Binding",
    "Fact",
    "Number",
    "Program",
    "PropertyValue",
    "Rule",
    "Term",
    "Variable",
    "parse_clause",
    "parse_goal",
    "parse_rule",
    "term_from_value",
    "unify",
    "unify_facts",
]
