"""Basic graph pattern queries.

Supported subset:

    PREFIX ex: <http://example.org/>
    SELECT [DISTINCT] ?a ?b | *
    WHERE { ?a ex:p ?b . ?b a ex:C . FILTER(?a != ex:x)
            OPTIONAL { ?a ex:label ?l } FILTER(!bound(?l)) }
    ORDER BY [ASC|DESC](?a) LIMIT 10 OFFSET 2

    ASK { ?a ex:p ?b . FILTER(regex(?b, "^x", "i")) }

FILTER takes one comparison, ``bound(?v)`` or ``regex(term, "pattern"[, "flags"])``;
the last two may be negated with ``!``. OPTIONAL groups are left joins and may
nest. A bare pattern list (``?x p ?y . ?y q ?z``, braces optional) is accepted
too and projects every variable. No UNION, property paths or aggregates.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..errors import MalformedGoalError
from ..logic.models import Variable
from .models import DEFAULT_PREFIXES, RDF_TYPE, XSD_NS, Literal, Object, Triple, strip_angle

PatternTerm = Union[Variable, str, Literal]
Solution = dict[str, Object]
Matcher = Callable[[Optional[str], Optional[str], Optional[Object]], list[Triple]]

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<iri><[^<>\s]*>)
      | (?P<lit>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')(?:@(?P<lang>[A-Za-z][\w\-]*)|\^\^(?P<dt><[^<>\s]*>|[\w\-]*:[\w\-]*))?
      | (?P<var>[?$]\w+)
      | (?P<op>!=|<=|>=|=|<|>)
      | (?P<punct>[{}().*,!])
      | (?P<word>[^\s{}()"'<>=!*,]+)
    )""",
    re.VERBOSE,
)
_NUMBER_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def compile_regex(pattern: str, flags: str = "") -> re.Pattern[str]:
    bits = 0
    for c in flags:
        if c not in _REGEX_FLAGS:
            raise ValueError(f"unsupported regex flag {c!r}")
        bits |= _REGEX_FLAGS[c]
    try:
        return re.compile(pattern, bits)
    except re.error as e:
        raise ValueError(f"bad regex {pattern!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class TriplePattern:
    subject: PatternTerm
    predicate: PatternTerm
    object: PatternTerm

    def variables(self) -> list[str]:
        return [t.name for t in (self.subject, self.predicate, self.object) if isinstance(t, Variable)]


@dataclass(frozen=True, slots=True)
class Filter:
    left: PatternTerm
    op: str  # comparison operator, "bound" or "regex"
    right: Optional[PatternTerm] = None
    flags: str = ""
    negated: bool = False


@dataclass(slots=True)
class SelectQuery:
    form: str = "SELECT"  # or "ASK"
    patterns: list[TriplePattern] = field(default_factory=list)
    variables: Optional[list[str]] = None  # None means '*'
    distinct: bool = False
    filters: list[Filter] = field(default_factory=list)
    order_by: list[tuple[str, bool]] = field(default_factory=list)  # (var, descending)
    limit: Optional[int] = None
    offset: int = 0
    optionals: list[SelectQuery] = field(default_factory=list)


@dataclass(slots=True)
class _Tok:
    kind: str
    text: str
    lang: Optional[str] = None
    dt: Optional[str] = None


def tokenize(text: str) -> list[_Tok]:
    toks: list[_Tok] = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            raise ValueError(f"unexpected input at {text[pos:pos + 20]!r}")
        pos = m.end()
        kind = m.lastgroup
        if kind in ("lang", "dt"):
            kind = "lit"
        if kind == "word" and len(m.group("word")) > 1 and m.group("word").endswith("."):
            # trailing statement terminator glued to a bare word
            toks.append(_Tok("word", m.group("word")[:-1]))
            toks.append(_Tok("punct", "."))
            continue
        toks.append(_Tok(kind, m.group(kind), m.group("lang"), m.group("dt")))
    return toks


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.toks = tokenize(text)
        self.i = 0
        self.prefixes = dict(DEFAULT_PREFIXES)

    def peek(self) -> Optional[_Tok]:
        return self.toks[self.i] if self.i < len(self.toks) else None

    def next(self) -> _Tok:
        tok = self.peek()
        if tok is None:
            raise ValueError("unexpected end of query")
        self.i += 1
        return tok

    def keyword(self, *words: str) -> bool:
        tok = self.peek()
        if tok is not None and tok.kind == "word" and tok.text.upper() in words:
            self.i += 1
            return True
        return False

    def expect(self, text: str) -> None:
        tok = self.next()
        if tok.text != text:
            raise ValueError(f"expected {text!r}, got {tok.text!r}")

    def expand(self, word: str) -> str:
        if ":" in word:
            prefix, local = word.split(":", 1)
            if prefix in self.prefixes:
                return self.prefixes[prefix] + local
        return word

    def term(self, *, predicate: bool = False) -> PatternTerm:
        tok = self.next()
        if tok.kind == "var":
            return Variable(tok.text[1:])
        if tok.kind == "iri":
            return strip_angle(tok.text)
        if tok.kind == "lit":
            raw = tok.text[1:-1]
            value = re.sub(r"\\(.)", r"\1", raw)
            dt = self.expand(strip_angle(tok.dt)) if tok.dt else None
            return Literal(value, dt, tok.lang)
        if tok.kind == "word":
            if predicate and tok.text == "a":
                return RDF_TYPE
            if _NUMBER_RE.match(tok.text):
                dt = XSD_NS + ("decimal" if "." in tok.text else "integer")
                return Literal(tok.text, dt)
            return self.expand(tok.text)
        raise ValueError(f"unexpected {tok.text!r}")

    def parse(self) -> SelectQuery:
        q = SelectQuery()
        while self.keyword("PREFIX"):
            name = self.next()
            if name.kind != "word" or not name.text.endswith(":"):
                raise ValueError("expected prefix name")
            iri = self.next()
            if iri.kind != "iri":
                raise ValueError("expected prefix IRI")
            self.prefixes[name.text[:-1]] = strip_angle(iri.text)

        if self.keyword("ASK"):
            q.form = "ASK"
            self.keyword("WHERE")
            self.expect("{")
            self.body(q, closing="}")
        elif self.keyword("SELECT"):
            q.distinct = self.keyword("DISTINCT")
            names: list[str] = []
            star = False
            while True:
                tok = self.peek()
                if tok is None:
                    raise ValueError("missing WHERE clause")
                if tok.kind == "var":
                    names.append(self.next().text[1:])
                elif tok.text == "*":
                    self.next()
                    star = True
                else:
                    break
            if not names and not star:
                raise ValueError("SELECT needs variables or '*'")
            q.variables = None if star else names
            self.keyword("WHERE")
            self.expect("{")
            self.body(q, closing="}")
            self.modifiers(q)
        else:
            braced = self.peek() is not None and self.peek().text == "{"
            if braced:
                self.next()
            self.body(q, closing="}" if braced else None)

        if self.peek() is not None:
            raise ValueError(f"trailing input {self.peek().text!r}")
        return q

    def body(self, q: SelectQuery, closing: Optional[str]) -> None:
        while True:
            tok = self.peek()
            if tok is None:
                if closing:
                    raise ValueError(f"missing {closing!r}")
                return
            if closing and tok.text == closing and tok.kind == "punct":
                self.next()
                return
            if tok.kind == "punct" and tok.text == ".":
                self.next()
                continue
            if self.keyword("OPTIONAL"):
                self.expect("{")
                group = SelectQuery()
                self.body(group, closing="}")
                q.optionals.append(group)
                continue
            if self.keyword("FILTER"):
                self.expect("(")
                q.filters.append(self.filter_expr())
                self.expect(")")
                continue
            s = self.term()
            p = self.term(predicate=True)
            o = self.term()
            q.patterns.append(TriplePattern(s, p, o))

    def filter_expr(self) -> Filter:
        tok = self.peek()
        negated = tok is not None and tok.kind == "punct" and tok.text == "!"
        if negated:
            self.next()

        if self.keyword("BOUND"):
            self.expect("(")
            var = self.term()
            if not isinstance(var, Variable):
                raise ValueError("bound() takes a variable")
            self.expect(")")
            return Filter(var, "bound", negated=negated)

        if self.keyword("REGEX"):
            self.expect("(")
            left = self.term()
            self.expect(",")
            pattern = self.term()
            flags = ""
            tok = self.peek()
            if tok is not None and tok.text == ",":
                self.next()
                flags_term = self.term()
                if not isinstance(flags_term, Literal):
                    raise ValueError("regex() flags must be a string literal")
                flags = flags_term.value
            self.expect(")")
            if not isinstance(pattern, Literal):
                raise ValueError("regex() pattern must be a string literal")
            compile_regex(pattern.value, flags)
            return Filter(left, "regex", pattern, flags, negated)

        if negated:
            raise ValueError("'!' only applies to bound() and regex()")
        left = self.term()
        op = self.next()
        if op.kind != "op":
            raise ValueError(f"expected comparison operator, got {op.text!r}")
        right = self.term()
        return Filter(left, op.text, right)

    def modifiers(self, q: SelectQuery) -> None:
        while self.peek() is not None:
            if self.keyword("ORDER"):
                if not self.keyword("BY"):
                    raise ValueError("expected BY after ORDER")
                while True:
                    tok = self.peek()
                    if tok is not None and tok.kind == "var":
                        q.order_by.append((self.next().text[1:], False))
                    elif tok is not None and tok.kind == "word" and tok.text.upper() in ("ASC", "DESC"):
                        desc = self.next().text.upper() == "DESC"
                        wrapped = self.peek() is not None and self.peek().text == "("
                        if wrapped:
                            self.next()
                        var = self.next()
                        if var.kind != "var":
                            raise ValueError("expected variable in ORDER BY")
                        if wrapped:
                            self.expect(")")
                        q.order_by.append((var.text[1:], desc))
                    else:
                        break
                if not q.order_by:
                    raise ValueError("empty ORDER BY")
            elif self.keyword("LIMIT"):
                q.limit = int(self.next().text)
            elif self.keyword("OFFSET"):
                q.offset = int(self.next().text)
            else:
                raise ValueError(f"unexpected {self.peek().text!r}")


def parse_query(text: str) -> SelectQuery:
    """Raises MalformedGoalError on anything outside the supported subset."""
    try:
        return _Parser(text).parse()
    except ValueError as e:
        raise MalformedGoalError(text, str(e)) from e


def _pattern_term(value: Any) -> PatternTerm:
    if isinstance(value, (Variable, Literal)):
        return value
    s = str(value)
    if s.startswith("?") and len(s) > 1:
        return Variable(s[1:])
    return strip_angle(s)


def parse_patterns(patterns: Sequence[Sequence[Any]]) -> SelectQuery:
    """Build a query from ``(s, p, o)`` tuples; ``?``-prefixed strings are variables."""
    out: list[TriplePattern] = []
    for p in patterns:
        if len(p) != 3:
            raise MalformedGoalError(repr(p), "triple pattern needs exactly 3 positions")
        out.append(TriplePattern(*(_pattern_term(x) for x in p)))
    return SelectQuery(patterns=out)


def _resolve(t: PatternTerm, b: Solution) -> PatternTerm:
    if isinstance(t, Variable) and t.name in b:
        return b[t.name]
    return t


def _extend(b: Solution, t: PatternTerm, value: Object) -> bool:
    if isinstance(t, Variable):
        prev = b.get(t.name)
        if prev is not None and prev != value:
            return False
        b[t.name] = value
    return True


def match_bgp(
    patterns: Sequence[TriplePattern], match: Matcher, seed: Optional[Solution] = None
) -> list[Solution]:
    """Join triple patterns left to right against ``match``, starting from ``seed``."""
    if not patterns:
        return []
    solutions: list[Solution] = [dict(seed or {})]
    for pat in patterns:
        nxt: list[Solution] = []
        for b in solutions:
            s, p, o = (_resolve(x, b) for x in (pat.subject, pat.predicate, pat.object))
            # subjects and predicates are IRIs; a literal bound there matches nothing
            if isinstance(s, Literal) or isinstance(p, Literal):
                continue
            candidates = match(
                None if isinstance(s, Variable) else s,
                None if isinstance(p, Variable) else p,
                None if isinstance(o, Variable) else o,
            )
            for t in candidates:
                ext = dict(b)
                if _extend(ext, s, t.subject) and _extend(ext, p, t.predicate) and _extend(ext, o, t.object):
                    nxt.append(ext)
        solutions = nxt
        if not solutions:
            break
    return solutions


def _value_str(v: Object) -> str:
    return v.value if isinstance(v, Literal) else v


def _as_number(v: Object) -> Optional[float]:
    try:
        return float(_value_str(v))
    except ValueError:
        return None


def _sort_key(v: Object) -> tuple:
    n = _as_number(v)
    return (0, n, "") if n is not None else (1, 0.0, _value_str(v))


def _passes(f: Filter, b: Solution) -> bool:
    return _holds(f, b) != f.negated


def _holds(f: Filter, b: Solution) -> bool:
    if f.op == "bound":
        return isinstance(f.left, Variable) and f.left.name in b
    left = _resolve(f.left, b)
    if f.op == "regex":
        if isinstance(left, Variable):
            return False
        return compile_regex(_value_str(f.right), f.flags).search(_value_str(left)) is not None

    right = _resolve(f.right, b)
    if isinstance(left, Variable) or isinstance(right, Variable):
        return False
    if f.op == "=":
        return left == right
    if f.op == "!=":
        return left != right
    ln, rn = _as_number(left), _as_number(right)
    if ln is None or rn is None:
        ln, rn = _value_str(left), _value_str(right)  # type: ignore[assignment]
    if f.op == "<":
        return ln < rn
    if f.op == ">":
        return ln > rn
    if f.op == "<=":
        return ln <= rn
    return ln >= rn


def _left_join(solutions: list[Solution], group: SelectQuery, match: Matcher) -> list[Solution]:
    """Extend each solution by ``group`` where it matches, keep it unchanged where not."""
    out: list[Solution] = []
    for b in solutions:
        ext = [e for e in match_bgp(group.patterns, match, seed=b) if all(_passes(f, e) for f in group.filters)]
        for inner in group.optionals:
            ext = _left_join(ext, inner, match)
        out.extend(ext or [b])
    return out


def evaluate(query: SelectQuery, match: Matcher) -> list[Solution]:
    solutions = match_bgp(query.patterns, match)
    for group in query.optionals:
        solutions = _left_join(solutions, group, match)
    if query.filters:
        solutions = [b for b in solutions if all(_passes(f, b) for f in query.filters)]

    for var, desc in reversed(query.order_by):
        bound = [b for b in solutions if var in b]
        unbound = [b for b in solutions if var not in b]
        bound.sort(key=lambda b: _sort_key(b[var]), reverse=desc)
        solutions = bound + unbound

    if query.variables is not None:
        solutions = [{v: b[v] for v in query.variables if v in b} for b in solutions]

    if query.distinct:
        seen: set[tuple] = set()
        unique: list[Solution] = []
        for b in solutions:
            key = tuple(sorted(b.items(), key=lambda kv: kv[0]))
            if key not in seen:
                seen.add(key)
                unique.append(b)
        solutions = unique

    if query.offset:
        solutions = solutions[query.offset:]
    if query.limit is not None:
        solutions = solutions[: query.limit]
    return solutions


def ask(query: SelectQuery, match: Matcher) -> bool:
    """True when the query's pattern has at least one solution."""
    return bool(evaluate(query, match))
