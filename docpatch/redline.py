"""
Preview Renderer

Walks the segment store and emits three HTML strings: a highlighted preview
of every pending change, the final document if the change-set is accepted,
and a log of the removed content. No DOM is involved; the editor surface
parses the strings itself.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import html
import re

from docpatch.ir import ChangeDetail, WorkingDocument
from docpatch.normalize import HTML_TAG_RE
from docpatch.rules.load_rules import HighlightRules, PreviewConfig

_BLOCK_TAG_RE = re.compile(
    r"<\s*/?\s*(?:p|div|h[1-6]|ul|ol|li|table|thead|tbody|tr|td|th|blockquote|pre|hr|section|article)\b",
    re.IGNORECASE,
)


@dataclass
class ChangeSet:
    additions: int = 0
    deletions: int = 0
    details: List[ChangeDetail] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions


@dataclass
class PreviewResult:
    preview_html: str
    final_html: str
    removed_html: str
    changes: ChangeSet

    @property
    def has_changes(self) -> bool:
        return self.changes.total_changes > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "previewHtml": self.preview_html,
            "finalHtml": self.final_html,
            "removedHtml": self.removed_html,
            "changes": {
                "additions": self.changes.additions,
                "deletions": self.changes.deletions,
                "totalChanges": self.changes.total_changes,
                "details": [
                    {"type": d.kind, "tool": d.tool, "description": d.description, "from": d.start, "to": d.end}
                    for d in self.changes.details
                ],
            },
        }


def _highlight(content: str, kind: str, rules: HighlightRules) -> str:
    if not content:
        return ""
    if kind == "addition":
        cls, style = rules.addition_class, rules.addition_style
    else:
        cls, style = rules.deletion_class, rules.deletion_style
    attrs = f'class="{cls}" data-preview="{kind}"'
    if style:
        attrs += f' style="{html.escape(style)}"'

    if _BLOCK_TAG_RE.search(content):
        return f"<div {attrs}>{content}</div>"
    if HTML_TAG_RE.search(content):
        # inline markup (strong, em, a...) stays markup
        return f"<span {attrs}>{content}</span>"
    return f"<span {attrs}>{html.escape(content, quote=False)}</span>"


def render_addition(content: str, rules: Optional[HighlightRules] = None) -> str:
    return _highlight(content, "addition", rules or HighlightRules())


def render_deletion(content: str, rules: Optional[HighlightRules] = None) -> str:
    return _highlight(content, "deletion", rules or HighlightRules())


def render_preview(doc: WorkingDocument, config: Optional[PreviewConfig] = None) -> PreviewResult:
    rules = (config or PreviewConfig()).highlight

    parts: List[str] = []
    for seg in doc.segments:
        if seg.kind == "addition":
            parts.append(_highlight(seg.text, "addition", rules))
        elif seg.kind == "deletion":
            parts.append(_highlight(seg.text, "deletion", rules))
        else:
            parts.append(seg.text)
    body = "".join(parts)
    preview_html = f'<div class="{rules.root_class}">{body}</div>' if rules.root_class else body

    final_html = "".join(seg.text for seg in doc.segments if seg.visible)
    removed_html = rules.removed_separator.join(
        _highlight(seg.text, "deletion", rules) for seg in doc.segments if seg.kind == "deletion" and seg.text
    )

    changes = ChangeSet(
        additions=sum(1 for s in doc.segments if s.kind == "addition" and s.text),
        deletions=sum(1 for s in doc.segments if s.kind == "deletion" and s.text),
        details=list(doc.changes),
    )
    return PreviewResult(preview_html=preview_html, final_html=final_html, removed_html=removed_html, changes=changes)
