import json

import pytest

from metalog_db.cli.main import main, read_objects


@pytest.fixture
def canvas_file(tmp_path, canvas):
    path = tmp_path / "board.canvas"
    path.write_text(json.dumps(canvas), encoding="utf-8")
    return str(path)


def test_version(capsys) -> None:
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == "0.1.0"


def test_facts_command_prints_clauses(canvas_file, capsys) -> None:
    assert main(["facts", canvas_file]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[:2] == ["node(n1,text,0,0,hi).", "node_color(n1,red)."]
    assert "horizontal(e2,n2,n1)." in lines


def test_jsonl_skips_directives(tmp_path) -> None:
    path = tmp_path / "board.jsonl"
    path.write_text('@version 1\n{"id": "a"}\n\n{"id": "b"}\n', encoding="utf-8")
    assert read_objects(str(path)) == [{"id": "a"}, {"id": "b"}]


def test_prolog_command(canvas_file, capsys) -> None:
    rc = main(["prolog", canvas_file, "linked(n1, ?b)", "--rule", "linked(A, B) :- edge(_, _, A, B)"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "n2" in out


def test_datalog_command(canvas_file, capsys) -> None:
    rc = main(["datalog", canvas_file, "reach(n2, ?y)", "--rule", "reach(X, Y) :- edge(_, _, X, Y)"])
    assert rc == 0
    assert capsys.readouterr().out.splitlines() == ["reach(n2,n1)."]


def test_sparql_command_with_entailment(canvas_file, capsys) -> None:
    q = "SELECT ?n WHERE { ?n a <http://example.org/type/file> }"
    assert main(["sparql", canvas_file, q, "--entail"]) == 0
    assert "http://example.org/node/n2" in capsys.readouterr().out


def test_triples_command(canvas_file, capsys) -> None:
    assert main(["triples", canvas_file]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 8
    assert all(line.endswith(" .") for line in lines)


def test_errors_exit_with_code_two(canvas_file, capsys) -> None:
    assert main(["prolog", canvas_file, "edge(?x"]) == 2
    assert "error" in capsys.readouterr().out


def test_sparql_ask_prints_boolean(canvas_file, capsys) -> None:
    q = "ASK { <http://example.org/node/n1> a <http://example.org/type/text> }"
    assert main(["sparql", canvas_file, q]) == 0
    assert capsys.readouterr().out.strip() == "true"
