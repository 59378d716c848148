from __future__ import annotations
from typing import List
from docpatch.ir import Finding, WorkingDocument


def verify_segments(doc: WorkingDocument) -> List[Finding]:
    findings: List[Finding] = []

    visible_length = sum(len(s.text) for s in doc.segments if s.visible)
    if visible_length != doc.length:
        findings.append(Finding(
            rule_id="seg.length_mismatch",
            severity="critical",
            category="segments",
            message="Tracked working length differs from the visible segments.",
            details={"tracked": str(doc.length), "visible": str(visible_length)},
        ))

    for i, seg in enumerate(doc.segments):
        if not seg.text:
            findings.append(Finding(
                rule_id="seg.empty",
                severity="warning",
                category="segments",
                message="Empty segment in store.",
                details={"index": str(i), "kind": seg.kind},
            ))
        if seg.visible == (seg.kind == "deletion"):
            findings.append(Finding(
                rule_id="seg.visibility",
                severity="critical",
                category="segments",
                message="Deletion segments must be invisible and all others visible.",
                details={"index": str(i), "kind": seg.kind, "visible": str(seg.visible)},
            ))
    return findings


def verify_round_trip(doc: WorkingDocument, original: str) -> List[Finding]:
    reverted = doc.copy()
    reverted.revert()
    if reverted.text == original:
        return []
    return [Finding(
        rule_id="inv.revert_round_trip",
        severity="critical",
        category="invariant",
        message="Reverting the change-set does not restore the original document.",
        details={"original_length": str(len(original)), "reverted_length": str(len(reverted.text))},
    )]


def verify_committed(doc: WorkingDocument) -> List[Finding]:
    leftovers = [s.kind for s in doc.segments if s.kind != "unchanged"]
    if not leftovers:
        return []
    return [Finding(
        rule_id="inv.commit_finality",
        severity="critical",
        category="invariant",
        message="Committed document still holds pending additions or deletions.",
        details={"pending": str(len(leftovers))},
    )]
