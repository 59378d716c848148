from __future__ import annotations
from pathlib import Path
from typing import Iterator, List, Optional, Union
import html
import logging
import re

from docx import Document
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"heading\s*(\d)", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_RE = re.compile(
    r"<(?P<open>ul|ol)\b[^>]*>"
    r"|</(?P<close>ul|ol)>"
    r"|<(?P<table>table)\b[^>]*>(?P<rows>[\s\S]*?)</table>"
    r"|<(?P<tag>h[1-6]|p|li|blockquote|pre)\b[^>]*>(?P<body>[\s\S]*?)</(?P=tag)>",
    re.IGNORECASE,
)
_ROW_RE = re.compile(r"<tr\b[^>]*>([\s\S]*?)</tr>", re.IGNORECASE)
_CELL_RE = re.compile(r"<t([hd])\b[^>]*>([\s\S]*?)</t[hd]>", re.IGNORECASE)


def _iter_blocks(doc) -> Iterator[Union[Paragraph, Table]]:
    for child in doc.element.body.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, doc)
        elif child.tag == qn("w:tbl"):
            yield Table(child, doc)


def _runs_html(p: Paragraph) -> str:
    out = []
    for run in p.runs:
        text = html.escape(run.text, quote=False)
        if not text:
            continue
        if run.italic:
            text = f"<em>{text}</em>"
        if run.bold:
            text = f"<strong>{text}</strong>"
        out.append(text)
    return "".join(out)


def _table_html(table: Table) -> str:
    rows = []
    for r_i, row in enumerate(table.rows):
        tag = "th" if r_i == 0 else "td"
        cells = "".join(f"<{tag}>{html.escape(c.text, quote=False)}</{tag}>" for c in row.cells)
        rows.append(f"<tr>{cells}</tr>")
    if not rows:
        return ""
    return f"<table><thead>{rows[0]}</thead><tbody>{''.join(rows[1:])}</tbody></table>"


def extract_html(docx_path: Union[str, Path]) -> str:
    """Flatten a .docx body into editor-schema HTML."""
    doc = Document(str(docx_path))
    parts: List[str] = []
    list_type: Optional[str] = None

    for block in _iter_blocks(doc):
        if isinstance(block, Table):
            if list_type:
                parts.append(f"</{list_type}>")
                list_type = None
            parts.append(_table_html(block))
            continue

        if not block.text.strip():
            continue
        style = block.style.name if block.style is not None else ""
        body = _runs_html(block)

        wanted = None
        if style.startswith("List Bullet"):
            wanted = "ul"
        elif style.startswith("List Number"):
            wanted = "ol"
        if wanted != list_type:
            if list_type:
                parts.append(f"</{list_type}>")
            if wanted:
                parts.append(f"<{wanted}>")
            list_type = wanted
        if wanted:
            parts.append(f"<li>{body}</li>")
            continue

        heading = _HEADING_RE.match(style)
        if style == "Title":
            parts.append(f"<h1>{body}</h1>")
        elif heading:
            level = min(max(int(heading.group(1)), 1), 6)
            parts.append(f"<h{level}>{body}</h{level}>")
        elif "Quote" in style:
            parts.append(f"<blockquote><p>{body}</p></blockquote>")
        else:
            parts.append(f"<p>{body}</p>")

    if list_type:
        parts.append(f"</{list_type}>")
    return "".join(parts)


def _plain(fragment: str) -> str:
    text = re.sub(r"<br\s*/?>", "\n", fragment, flags=re.IGNORECASE)
    return html.unescape(_TAG_RE.sub("", text)).strip()


def emit_docx(markup: str, out_docx: Union[str, Path], template: Optional[str] = None) -> int:
    """Write editor HTML to a .docx; returns the number of blocks written."""
    doc = Document(template) if template else Document()
    lists: List[str] = []
    written = 0

    matches = list(_BLOCK_RE.finditer(markup))
    if not matches and markup.strip():
        for line in _plain(markup).split("\n"):
            if line.strip():
                doc.add_paragraph(line)
                written += 1

    for m in matches:
        if m.group("open"):
            lists.append(m.group("open").lower())
        elif m.group("close"):
            if lists:
                lists.pop()
        elif m.group("table"):
            rows = [[_plain(c.group(2)) for c in _CELL_RE.finditer(r.group(1))] for r in _ROW_RE.finditer(m.group("rows"))]
            rows = [r for r in rows if r]
            if not rows:
                continue
            table = doc.add_table(rows=len(rows), cols=max(len(r) for r in rows))
            for r_i, row in enumerate(rows):
                for c_i, value in enumerate(row):
                    table.cell(r_i, c_i).text = value
            written += 1
        else:
            tag = m.group("tag").lower()
            text = _plain(m.group("body"))
            if not text:
                continue
            if tag.startswith("h"):
                doc.add_heading(text, level=int(tag[1]))
            elif tag == "li":
                style = "List Number" if lists and lists[-1] == "ol" else "List Bullet"
                doc.add_paragraph(text, style=style)
            elif tag == "blockquote":
                doc.add_paragraph(text, style="Quote")
            else:
                doc.add_paragraph(text)
            written += 1

    doc.save(str(out_docx))
    logger.info(f"Emitted {written} blocks to {out_docx}")
    return written


class DocxContentSource:
    """Word documents under one directory, exchanged as editor HTML."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, doc_id: str) -> Path:
        return self.root / (doc_id if doc_id.lower().endswith(".docx") else f"{doc_id}.docx")

    def fetch(self, doc_id: str) -> str:
        return extract_html(self.path_for(doc_id))

    def store(self, doc_id: str, content: str) -> None:
        emit_docx(content, self.path_for(doc_id))
