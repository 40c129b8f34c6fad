from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from metalog_db.errors import MetaLogError
from metalog_db.settings import settings

console = Console()


def _configure_logging() -> None:
    import logging

    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def read_objects(path: str) -> Any:
    """Objects from a JSON array, a canvas document or a JSONL file."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix in (".jsonl", ".canvasl"):
        return [json.loads(line) for line in text.splitlines() if line.strip() and not line.lstrip().startswith("@")]
    return json.loads(text)


def _open_db(args: argparse.Namespace, engines: list[str]):
    from metalog_db import MetaLogDb

    db = MetaLogDb(engines=engines)
    db.load_objects(read_objects(args.path))
    return db


def _print_rows(rows: list[dict[str, Any]]) -> None:
    if not rows:
        console.print("[dim]no results[/dim]")
        return
    columns = list(dict.fromkeys(k for r in rows for k in r))
    table = Table(*columns)
    for r in rows:
        table.add_row(*(str(r.get(c, "")) for c in columns))
    console.print(table)


def cmd_version() -> int:
    from metalog_db import __version__

    print(__version__)
    return 0


def cmd_facts(args: argparse.Namespace) -> int:
    from metalog_db.extraction import extract_facts

    for f in extract_facts(read_objects(args.path)):
        print(f"{f}.")
    return 0


def cmd_prolog(args: argparse.Namespace) -> int:
    _configure_logging()
    db = _open_db(args, ["prolog"])
    for rule in args.rule or []:
        db.add_prolog_rule(rule)
    res = asyncio.run(db.prolog_query(args.goal, max_steps=args.max_steps))
    _print_rows(res.bindings)
    return 0


def cmd_datalog(args: argparse.Namespace) -> int:
    _configure_logging()
    db = _open_db(args, ["datalog"])
    for rule in args.rule or []:
        db.add_datalog_rule(rule)
    res = asyncio.run(db.datalog_query(args.goal))
    for f in res.facts:
        print(f"{f.predicate}({','.join(str(a) for a in f.args)}).")
    return 0


def cmd_sparql(args: argparse.Namespace) -> int:
    _configure_logging()
    db = _open_db(args, ["rdf"])
    if args.entail:
        db.rdfs_entailment()
    res = asyncio.run(db.sparql_query(args.query))
    if res.boolean is not None:
        print("true" if res.boolean else "false")
        return 0
    _print_rows([{k: v.value for k, v in row.items()} for row in res.results.bindings])
    return 0


def cmd_triples(args: argparse.Namespace) -> int:
    db = _open_db(args, ["rdf"])
    if args.entail:
        db.rdfs_entailment()
    for t in db.get_triples():
        print(t)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="metalog")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=lambda _a: cmd_version())

    facts = sub.add_parser("facts", help="Print the facts extracted from a canvas / JSON / JSONL file")
    facts.add_argument("path")
    facts.set_defaults(func=cmd_facts)

    pl = sub.add_parser("prolog", help="Resolve a goal against extracted facts")
    pl.add_argument("path")
    pl.add_argument("goal", help="e.g. 'edge(?id, ?type, n1, ?to)'")
    pl.add_argument("--rule", action="append", help="'head :- body', repeatable")
    pl.add_argument("--max-steps", type=int, default=None)
    pl.set_defaults(func=cmd_prolog)

    dl = sub.add_parser("datalog", help="Query the least fixed point of facts and rules")
    dl.add_argument("path")
    dl.add_argument("goal")
    dl.add_argument("--rule", action="append", help="'head :- body', repeatable")
    dl.set_defaults(func=cmd_datalog)

    sq = sub.add_parser("sparql", help="Run a basic graph pattern query over derived triples")
    sq.add_argument("path")
    sq.add_argument("query")
    sq.add_argument("--entail", action="store_true", help="Apply RDFS entailment first")
    sq.set_defaults(func=cmd_sparql)

    tr = sub.add_parser("triples", help="Print triples derived from the file")
    tr.add_argument("path")
    tr.add_argument("--entail", action="store_true")
    tr.set_defaults(func=cmd_triples)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except MetaLogError as e:
        console.print(f"[red]error:[/red] {e}")
        return 2


def app() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    app()
