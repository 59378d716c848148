"""
Content Normalizer

Converts plain text, Markdown or mixed Markdown/HTML into HTML that the
rich-text editor schema accepts (paragraphs, h1-h6, strong/em/code, lists,
links, tables, blockquotes, pre). Never raises: anything that cannot be
converted comes back as an escaped, paragraph-wrapped literal.
"""
from __future__ import annotations
from typing import List, Tuple
import html
import logging
import re

logger = logging.getLogger(__name__)

HTML_TAG_RE = re.compile(r"<[^>]+>")
_HTML_HEADER_RE = re.compile(r"<h[1-3][\s>]", re.IGNORECASE)

_BLOCK_NAMES = r"p|div|h[1-6]|ul|ol|li|table|thead|tbody|tr|td|th|blockquote|pre|hr"
_BLOCK_LINE_RE = re.compile(rf"^</?(?:{_BLOCK_NAMES})[\s>/]", re.IGNORECASE)

_FENCE_RE = re.compile(r"```(\w+)?[ \t]*\n?([\s\S]*?)```")
_HEADER_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_BULLET_RE = re.compile(r"^[-*+]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\d+[.)]\s+(.*)$")
_QUOTE_RE = re.compile(r"^>\s?(.*)$")
_RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_TABLE_ROW_RE = re.compile(r"^\|(.+)\|$")
_TABLE_SEP_RE = re.compile(r"^\|[-:\s|]+\|$")

_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_BOLD_ITALIC_RE = re.compile(r"\*\*\*(?!\s)(.+?)(?<!\s)\*\*\*")
_BOLD_RE = re.compile(r"\*\*(?!\s)(.+?)(?<!\s)\*\*")
_BOLD_UNDERSCORE_RE = re.compile(r"(?<!\w)__(?!\s)(.+?)(?<!\s)__(?!\w)")
# lookarounds keep `**bold**` remains and in-word asterisks (2*3*4) out of the italic rule
_ITALIC_RE = re.compile(r"(?<![\w*])\*(?!\s|\*)([^*\n]+?)(?<!\s)\*(?![\w*])")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")

_PLACEHOLDER = "\x00{}\x00"
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")
_INLINE_PLACEHOLDER = "\x01{}\x01"
_INLINE_PLACEHOLDER_RE = re.compile(r"\x01(\d+)\x01")
_PRE_RE = re.compile(r"<pre\b[\s\S]*?</pre>", re.IGNORECASE)


def has_html(content: str) -> bool:
    return bool(HTML_TAG_RE.search(content or ""))


def looks_like_markdown(content: str) -> bool:
    """True when plain text carries Markdown block or inline syntax."""
    if not content or has_html(content):
        return False
    if _has_block_syntax(content):
        return True
    return any(p.search(content) for p in (_INLINE_CODE_RE, _BOLD_RE, _BOLD_UNDERSCORE_RE, _ITALIC_RE, _LINK_RE))


def _has_block_syntax(content: str) -> bool:
    if "```" in content:
        return True
    for raw in content.split("\n"):
        line = raw.strip()
        if (_HEADER_RE.match(line) or _BULLET_RE.match(line) or _NUMBERED_RE.match(line)
                or _QUOTE_RE.match(line) or _TABLE_ROW_RE.match(line)):
            return True
    return False


def has_block_markdown(content: str) -> bool:
    """Markdown that needs block output: block syntax, or more than one line of text."""
    if _has_block_syntax(content):
        return True
    return sum(1 for raw in content.split("\n") if raw.strip()) > 1


def _stash(store: List[str], fragment: str, template: str = _PLACEHOLDER) -> str:
    store.append(fragment)
    return template.format(len(store) - 1)


def _render_fence(match: "re.Match[str]") -> str:
    lang = match.group(1)
    body = html.escape((match.group(2) or "").rstrip("\n"), quote=False)
    if lang:
        return f'<pre><code class="language-{lang}">{body}</code></pre>'
    return f"<pre><code>{body}</code></pre>"


def render_inline(text: str) -> str:
    codes: List[str] = []
    out = _INLINE_CODE_RE.sub(
        lambda m: _stash(codes, f"<code>{html.escape(m.group(1), quote=False)}</code>", _INLINE_PLACEHOLDER),
        text,
    )
    out = _BOLD_ITALIC_RE.sub(r"<strong><em>\1</em></strong>", out)
    out = _BOLD_RE.sub(r"<strong>\1</strong>", out)
    out = _BOLD_UNDERSCORE_RE.sub(r"<strong>\1</strong>", out)
    out = _ITALIC_RE.sub(r"<em>\1</em>", out)
    out = _LINK_RE.sub(r'<a href="\2">\1</a>', out)
    return _INLINE_PLACEHOLDER_RE.sub(lambda m: codes[int(m.group(1))], out)


def _split_cells(row: str) -> List[str]:
    return [c.strip() for c in row.strip().strip("|").split("|")]


def _is_table_separator(line: str) -> bool:
    return bool(_TABLE_SEP_RE.match(line)) and "-" in line


def _render_table(header: str, body: List[str]) -> str:
    head = "".join(f"<th>{render_inline(c)}</th>" for c in _split_cells(header))
    rows = "".join(
        "<tr>" + "".join(f"<td>{render_inline(c)}</td>" for c in _split_cells(r)) + "</tr>"
        for r in body
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{rows}</tbody></table>"


def markdown_to_html(markdown: str, convert_headers: bool = True) -> str:
    """
    Line-oriented Markdown pass.

    Lines that already start with a block-level HTML tag pass through, so the
    same pass handles mixed content. With convert_headers=False, ATX headers
    stay literal text.
    """
    blocks: List[str] = []
    text = markdown.replace("\r\n", "\n").replace("\r", "\n")
    text = _FENCE_RE.sub(lambda m: _stash(blocks, _render_fence(m)), text)

    lines = text.split("\n")
    out: List[str] = []
    paragraph: List[str] = []
    in_list = False
    list_type = None

    def close_paragraph() -> None:
        if paragraph:
            out.append("<p>" + "<br>".join(paragraph) + "</p>")
            paragraph.clear()

    def close_list() -> None:
        nonlocal in_list, list_type
        if in_list and list_type:
            out.append(f"</{list_type}>")
        in_list = False
        list_type = None

    i = 0
    while i < len(lines):
        line = lines[i].strip()

        if _TABLE_ROW_RE.match(line) and i + 1 < len(lines) and _is_table_separator(lines[i + 1].strip()):
            close_paragraph()
            close_list()
            body: List[str] = []
            j = i + 2
            while j < len(lines) and _TABLE_ROW_RE.match(lines[j].strip()):
                body.append(lines[j].strip())
                j += 1
            out.append(_render_table(line, body))
            i = j
            continue

        bullet = _BULLET_RE.match(line) if not _RULE_RE.match(line) else None
        numbered = _NUMBERED_RE.match(line)
        if bullet or numbered:
            close_paragraph()
            wanted = "ul" if bullet else "ol"
            if not in_list or list_type != wanted:
                close_list()
                out.append(f"<{wanted}>")
                in_list = True
                list_type = wanted
            item = (bullet or numbered).group(1)
            out.append(f"<li>{render_inline(item)}</li>")
            i += 1
            continue

        close_list()
        i += 1

        if not line:
            close_paragraph()
            continue

        header = _HEADER_RE.match(line) if convert_headers else None
        if header:
            close_paragraph()
            level = len(header.group(1))
            out.append(f"<h{level}>{render_inline(header.group(2))}</h{level}>")
            continue

        if _RULE_RE.match(line):
            close_paragraph()
            out.append("<hr>")
            continue

        quote = _QUOTE_RE.match(line)
        if quote:
            close_paragraph()
            out.append(f"<blockquote><p>{render_inline(quote.group(1))}</p></blockquote>")
            continue

        if _PLACEHOLDER_RE.fullmatch(line) or _BLOCK_LINE_RE.match(line):
            close_paragraph()
            out.append(line)
            continue

        paragraph.append(render_inline(line))

    close_paragraph()
    close_list()

    result = "\n".join(out)
    return _PLACEHOLDER_RE.sub(lambda m: blocks[int(m.group(1))], result)


def sanitize_html(markup: str) -> str:
    pres: List[str] = []
    s = _PRE_RE.sub(lambda m: _stash(pres, m.group(0)), markup)

    s = re.sub(r"<br\s*/?>\s*<br\s*/?>", "</p><p>", s)
    s = re.sub(r"</ul>\s*<ul>", "", s)
    s = re.sub(r"</ol>\s*<ol>", "", s)
    s = re.sub(r"</blockquote>\s*<blockquote>", "", s)

    s = re.sub(r"\s+", " ", s)
    s = re.sub(rf">\s+(?=</?(?:{_BLOCK_NAMES})\b)", ">", s)
    s = re.sub(rf"(</?(?:{_BLOCK_NAMES})\b[^>]*>)\s+(?=<)", r"\1", s)
    s = re.sub(r"<p>\s*</p>", "", s)
    s = re.sub(r"\s*(\x00\d+\x00)\s*", r"\1", s)

    s = _PLACEHOLDER_RE.sub(lambda m: pres[int(m.group(1))], s)
    return s.strip()


def normalize_content(content: object) -> str:
    if content is None:
        return ""
    text = content if isinstance(content, str) else str(content)
    if not text.strip():
        return ""
    try:
        if has_html(text):
            converted = markdown_to_html(text, convert_headers=not _HTML_HEADER_RE.search(text))
        else:
            converted = markdown_to_html(text)
        return sanitize_html(converted)
    except Exception as e:
        logger.warning(f"Normalization failed ({type(e).__name__}: {e}); using literal text")
        return f"<p>{html.escape(text.strip(), quote=False)}</p>"


def text_preview(content: str, limit: int = 80) -> Tuple[str, int, int]:
    """Return (snippet, text length, raw length) for change descriptions."""
    text_only = re.sub(r"\s+", " ", HTML_TAG_RE.sub(" ", content or "")).strip()
    raw_length = len(content or "")
    if not text_only:
        return "", 0, raw_length
    snippet = text_only if len(text_only) <= limit else f"{text_only[:limit]}..."
    return snippet, len(text_only), raw_length
