"""Goal and rule string parsing.

Goals look like ``pred(arg, ...)``. Arguments prefixed with ``?`` are
variables, ``_`` is an anonymous variable, numbers become ``Number`` and
everything else (quoted or bare) becomes an ``Atom``. Inside rule strings a
bare identifier starting with an upper-case letter is also a variable, so
``grandparent(X,Z) :- parent(X,Y), parent(Y,Z)`` reads as in Prolog.
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Iterator

from ..errors import InvalidRuleSyntaxError, MalformedGoalError
from .models import Atom, Fact, Number, Rule, Term, Variable

_GOAL_RE = re.compile(r"^(?P<pred>[A-Za-z_][\w\-]*)\s*(?:\((?P<args>.*)\))?$", re.DOTALL)
_NUMBER_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?$")
_VAR_NAME_RE = re.compile(r"^\w+$")
_PROLOG_VAR_RE = re.compile(r"^[A-Z_]\w*$")

def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on ``sep`` outside parentheses and quotes. Parts are trimmed."""
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None
    i = 0
    while i < len(text):
        c = text[i]
        if quote:
            buf.append(c)
            if c == "\\" and i + 1 < len(text):
                buf.append(text[i + 1])
                i += 2
                continue
            if c == quote:
                quote = None
        elif c in "\"'":
            quote = c
            buf.append(c)
        elif c == "(":
            depth += 1
            buf.append(c)
        elif c == ")":
            depth -= 1
            if depth < 0:
                raise ValueError("unbalanced ')'")
            buf.append(c)
        elif depth == 0 and text.startswith(sep, i):
            parts.append("".join(buf).strip())
            buf = []
            i += len(sep)
            continue
        else:
            buf.append(c)
        i += 1
    if quote:
        raise ValueError("unterminated quote")
    if depth:
        raise ValueError("unbalanced '('")
    parts.append("".join(buf).strip())
    return parts


def parse_term(text: str, *, rule_vars: bool = False, anon: Iterator[int] | None = None) -> Term:
    """Parse one argument. ``anon`` numbers the ``_`` occurrences of one clause."""
    s = text.strip()
    if not s:
        raise ValueError("empty argument")
    if s == "_":
        # '#' never occurs in a written variable name
        return Variable(f"_#{next(anon if anon is not None else itertools.count())}")
    if s.startswith("?"):
        name = s[1:]
        if not _VAR_NAME_RE.match(name):
            raise ValueError(f"bad variable name {s!r}")
        return Variable(name)
    if len(s) >= 2 and s[0] in "\"'" and s[-1] == s[0]:
        inner = s[1:-1]
        return Atom(re.sub(r"\\(.)", r"\1", inner))
    if _NUMBER_RE.match(s):
        return Number(float(s))
    if rule_vars and _PROLOG_VAR_RE.match(s):
        return Variable(s)
    if "(" in s or ")" in s:
        raise ValueError(f"compound term {s!r} is not supported")
    if s[0] in "\"'" or s[-1] in "\"'":
        raise ValueError(f"unbalanced quotes in {s!r}")
    return Atom(s)


def _parse_literal(text: str, *, rule_vars: bool, anon: Iterator[int]) -> Fact:
    s = text.strip()
    if s.endswith("."):
        s = s[:-1].rstrip()
    m = _GOAL_RE.match(s)
    if not m:
        raise ValueError("expected pred(arg, ...)")
    args_src = m.group("args")
    if args_src is None or not args_src.strip():
        return Fact(m.group("pred"), ())
    args = tuple(parse_term(a, rule_vars=rule_vars, anon=anon) for a in split_top_level(args_src))
    return Fact(m.group("pred"), args)


def parse_goal(goal: str) -> Fact:
    """Parse a query goal. Raises MalformedGoalError."""
    if not isinstance(goal, str):
        raise MalformedGoalError(repr(goal), "goal must be a string")
    try:
        return _parse_literal(goal, rule_vars=False, anon=itertools.count())
    except ValueError as e:
        raise MalformedGoalError(goal, str(e)) from e


def parse_rule(rule: str) -> Rule:
    """Parse ``head :- body1, body2, ...``. Raises InvalidRuleSyntaxError."""
    s = rule.strip()
    if s.endswith("."):
        s = s[:-1].rstrip()
    if ":-" not in s:
        raise InvalidRuleSyntaxError(rule, "missing ':-'")
    head_src, body_src = s.split(":-", 1)
    anon = itertools.count()
    try:
        head = _parse_literal(head_src, rule_vars=True, anon=anon)
        body_parts = split_top_level(body_src)
        if any(not p for p in body_parts):
            raise ValueError("empty body literal")
        body = tuple(_parse_literal(p, rule_vars=True, anon=anon) for p in body_parts)
    except ValueError as e:
        raise InvalidRuleSyntaxError(rule, str(e)) from e
    return Rule(head=head, body=body)


def parse_clause(text: str) -> Rule:
    """Parse either a rule or a bare fact (``pred(a, b).``)."""
    if ":-" in text:
        return parse_rule(text)
    try:
        head = _parse_literal(text, rule_vars=True, anon=itertools.count())
    except ValueError as e:
        raise InvalidRuleSyntaxError(text, str(e)) from e
    return Rule(head=head)
