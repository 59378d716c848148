from __future__ import annotations
from typing import List, Optional, Tuple
import logging

from docpatch.editops import EditOp, Range
from docpatch.ir import ChangeDetail, WorkingDocument
from docpatch.normalize import has_block_markdown, looks_like_markdown, normalize_content, render_inline, text_preview
from docpatch.rules.load_rules import PreviewConfig

logger = logging.getLogger(__name__)


def _prepare_content(content: str, policy: str) -> str:
    if policy == "always":
        return normalize_content(content)
    if policy == "auto" and looks_like_markdown(content):
        if has_block_markdown(content):
            return normalize_content(content)
        # inline fragment: no paragraph wrap, so it can sit mid-sentence
        return render_inline(content)
    return content


def _label(content: str, limit: int) -> Tuple[int, str]:
    snippet, text_length, raw_length = text_preview(content, limit)
    return (text_length if text_length > 0 else raw_length), (snippet or "[non-text content]")


def _log_addition(doc: WorkingDocument, op: EditOp, position: int, content: str, config: PreviewConfig) -> None:
    size, label = _label(content, config.snippet_limit)
    noun = "replacement characters" if op.kind == "replace" else "characters"
    doc.changes.append(_detail("addition", op, f'Added {size} {noun} at position {position}: "{label}"',
                               position, position + len(content)))


def _log_deletion(doc: WorkingDocument, op: EditOp, start: int, end: int, removed: str, config: PreviewConfig) -> None:
    size, label = _label(removed, config.snippet_limit)
    doc.changes.append(_detail("deletion", op, f'Removed {size} characters from {start}–{end}: "{label}"',
                               start, end))


def _detail(kind: str, op: EditOp, description: str, start: int, end: int) -> ChangeDetail:
    return ChangeDetail(kind=kind, tool=op.tool, description=description, start=start, end=end)


def _resolve_anchor(doc: WorkingDocument, op: EditOp) -> Optional[Range]:
    idx = doc.text.find(op.anchor.target)
    if idx == -1:
        return None
    if op.kind == "insert":
        point = idx if op.anchor.placement == "before" else idx + len(op.anchor.target)
        return Range(point, point)
    return Range(idx, idx + len(op.anchor.target))


def _resolve_span(doc: WorkingDocument, op: EditOp) -> Optional[Range]:
    if op.anchor is not None and op.range is None:
        return _resolve_anchor(doc, op)
    return doc.remapper.remap_range(op.range, doc.length)


def _apply_insert(doc: WorkingDocument, op: EditOp, content: str, config: PreviewConfig) -> None:
    if op.kind == "append":
        target = doc.length
    elif op.range is None:
        span = _resolve_anchor(doc, op)
        if span is None:
            op.skip("anchor_not_found")
            return
        target = span.start
    else:
        target = doc.remapper.remap_point(op.range.start, doc.length)

    position = doc.insert(target, content)
    if position is None:
        op.skip("empty_content")
        return
    _log_addition(doc, op, position, content, config)
    op.status = "applied"
    op.verification["applied_range"] = [position, position + len(content)]


def _check_hint(op: EditOp, removed: str) -> None:
    if op.removed_hint is not None and op.removed_hint != removed:
        # truncated or outdated tool metadata; the live slice wins
        op.verification["stale_removed_hint"] = True
        logger.debug(f"Stale removedContent for {op.tool} seq={op.sequence}, using live slice")


def _apply_removal(doc: WorkingDocument, op: EditOp, content: str, config: PreviewConfig) -> None:
    if op.range is not None and op.range.end < op.range.start:
        op.skip("inverted_range")
        return
    span = _resolve_span(doc, op)
    if span is None:
        op.skip("anchor_not_found" if op.range is None else "empty_range")
        return

    removed = doc.remove(span.start, span.end)
    if removed is not None:
        _check_hint(op, removed.text)
        if len(removed.retracted) < len(removed.text):
            _log_deletion(doc, op, removed.start, removed.end, removed.text, config)
        else:
            # only pending additions were taken back; no deletion segment exists
            op.verification["retracted"] = True
        op.verification["removed_range"] = [removed.start, removed.end]

    inserted = None
    if op.kind == "replace" and content:
        inserted = doc.insert(span.start, content)
        if inserted is not None:
            _log_addition(doc, op, inserted, content, config)
            op.verification["applied_range"] = [inserted, inserted + len(content)]

    if removed is None and inserted is None:
        op.skip("empty_range")
        return
    op.status = "applied"


def apply_editops(
    doc: WorkingDocument,
    ops: List[EditOp],
    config: Optional[PreviewConfig] = None,
) -> Tuple[WorkingDocument, List[EditOp]]:
    """Execute ops in ascending sequence order against `doc`."""
    config = config or PreviewConfig()

    for op in sorted(ops, key=lambda o: o.sequence):
        if op.status != "proposed":
            continue
        try:
            content = _prepare_content(op.content, config.normalize) if op.kind != "remove" else ""
            if op.kind in ("append", "insert"):
                if not content:
                    op.skip("empty_content")
                    continue
                _apply_insert(doc, op, content, config)
            else:
                _apply_removal(doc, op, content, config)
        except Exception as e:
            logger.warning(f"Edit op {op.kind} seq={op.sequence} failed: {type(e).__name__}: {e}")
            op.fail(f"{type(e).__name__}: {e}")

    applied = sum(1 for o in ops if o.status == "applied")
    logger.info(f"Applied {applied}/{len(ops)} edit ops ({len(doc.segments)} segments)")
    return doc, ops
