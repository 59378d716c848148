import json

import pytest

from docpatch.cli import main


def test_cli_prints_summary(tmp_path, capsys):
    doc = tmp_path / "page.html"
    doc.write_text("<p>Hello world</p>", encoding="utf-8")
    ops = tmp_path / "ops.json"
    ops.write_text(json.dumps([{
        "tool": "insert_document_content",
        "args": {"content": "<p>Intro</p>", "position": 0},
        "timestamp": 1,
    }]), encoding="utf-8")

    assert main([str(doc), str(ops), "--out", str(tmp_path / "out"), "--decision", "accept"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["state"] == "committed"
    assert summary["editops_applied"] == 1
    assert summary["additions"] == 1
    assert summary["committed"].endswith("page.committed.html")


def test_cli_rejects_missing_input(tmp_path):
    with pytest.raises(SystemExit):
        main([str(tmp_path / "missing.html"), str(tmp_path / "ops.json")])


def test_cli_reports_bad_operations_file(tmp_path):
    doc = tmp_path / "page.html"
    doc.write_text("abc", encoding="utf-8")
    ops = tmp_path / "ops.json"
    ops.write_text('{"executions": 5}', encoding="utf-8")
    with pytest.raises(SystemExit):
        main([str(doc), str(ops), "--out", str(tmp_path / "out")])


def test_cli_reports_non_mapping_rules(tmp_path):
    doc = tmp_path / "page.html"
    doc.write_text("abc", encoding="utf-8")
    ops = tmp_path / "ops.json"
    ops.write_text("[]", encoding="utf-8")
    rules = tmp_path / "rules.yml"
    rules.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(SystemExit):
        main([str(doc), str(ops), "--rules", str(rules), "--out", str(tmp_path / "out")])
