import json

from docx import Document

from docpatch.adapters.docx_adapter import DocxContentSource, emit_docx, extract_html
from docpatch.pipeline import run_pipeline


def _sample(path):
    doc = Document()
    doc.add_heading("Title", level=1)
    p = doc.add_paragraph("Body ")
    p.add_run("text").bold = True
    doc.add_paragraph("one", style="List Bullet")
    doc.add_paragraph("two", style="List Bullet")
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "a"
    table.cell(0, 1).text = "b"
    table.cell(1, 0).text = "1"
    table.cell(1, 1).text = "2"
    doc.save(str(path))


def test_extract_html_maps_styles(tmp_path):
    path = tmp_path / "sample.docx"
    _sample(path)
    assert extract_html(path) == (
        "<h1>Title</h1>"
        "<p>Body <strong>text</strong></p>"
        "<ul><li>one</li><li>two</li></ul>"
        "<table><thead><tr><th>a</th><th>b</th></tr></thead>"
        "<tbody><tr><td>1</td><td>2</td></tr></tbody></table>"
    )


def test_emit_then_extract(tmp_path):
    path = tmp_path / "out.docx"
    markup = "<h2>Sec</h2><p>x &amp; y</p><ol><li>one</li></ol><blockquote><p>q</p></blockquote>"
    assert emit_docx(markup, path) == 4
    styles = [p.style.name for p in Document(str(path)).paragraphs if p.text]
    assert styles == ["Heading 2", "Normal", "List Number", "Quote"]
    assert extract_html(path) == markup


def test_content_source_store_and_fetch(tmp_path):
    source = DocxContentSource(tmp_path)
    source.store("memo", "<p>Hello world</p>")
    assert (tmp_path / "memo.docx").exists()
    assert source.fetch("memo") == "<p>Hello world</p>"


def test_pipeline_commits_docx(tmp_path):
    src = tmp_path / "memo.docx"
    DocxContentSource(tmp_path).store("memo", "<p>Hello world</p>")
    ops = tmp_path / "ops.json"
    ops.write_text(json.dumps([{"kind": "append", "content": "<p>Signed</p>"}]), encoding="utf-8")

    payload = run_pipeline(input_path=str(src), operations_path=str(ops), out_dir=str(tmp_path / "out"), decision="accept")
    committed = payload["artifacts"]["committed"]
    assert committed.endswith("memo.committed.docx")
    assert extract_html(committed) == "<p>Hello world</p><p>Signed</p>"
