from __future__ import annotations
from dataclasses import asdict, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from pathlib import Path
from datetime import datetime, timezone
from shutil import copy2
import json
import logging

from docpatch.adapters.content_source import source_for_path
from docpatch.apply import apply_editops
from docpatch.changelog import write_json, write_txt
from docpatch.decision import PreviewSession
from docpatch.editops import EditOp
from docpatch.ir import Finding, WorkingDocument
from docpatch.propose import ToolExecution, propose_from_executions
from docpatch.redline import PreviewResult
from docpatch.rules.load_rules import PreviewConfig, default_config
from docpatch.verify import verify_committed, verify_round_trip, verify_segments

logger = logging.getLogger(__name__)

OperationLike = Union[EditOp, ToolExecution, Dict[str, Any]]
DECISIONS = ("accept", "reject", "none")


def _to_editops(items: Sequence[OperationLike], config: PreviewConfig) -> List[EditOp]:
    if items and all(isinstance(i, EditOp) for i in items):
        # each preview works on its own copies; the caller's ops stay proposed
        return [replace(op, verification=dict(op.verification)) for op in items]  # type: ignore[arg-type]
    return propose_from_executions(items, config)  # type: ignore[arg-type]


def open_preview(
    content: str,
    operations: Sequence[OperationLike],
    config: Optional[PreviewConfig] = None,
    sink: Optional[Callable[[str], None]] = None,
) -> PreviewSession:
    """Apply a change-set to a private working copy and hold it for a decision."""
    config = config or PreviewConfig()
    original = content if isinstance(content, str) else str(content or "")
    doc = WorkingDocument.from_content(original, coordinates=config.coordinates)
    ops = _to_editops(list(operations), config)
    doc, ops = apply_editops(doc, ops, config)
    return PreviewSession.open(original, doc, ops, config=config, sink=sink)


def generate_preview(
    content: str,
    operations: Sequence[OperationLike],
    config: Optional[PreviewConfig] = None,
) -> PreviewResult:
    return open_preview(content, operations, config).result


def load_operations(path: str) -> List[OperationLike]:
    """Read an operations file: a list, or an object holding `executions`/`operations`."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("executions", raw.get("operations", []))
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of operations")

    records = [r for r in raw if isinstance(r, dict)]
    if records and all("kind" in r and "args" not in r and "result" not in r for r in records):
        return [EditOp.from_dict(r, sequence=i) for i, r in enumerate(records)]
    return list(records)


def run_pipeline(
    *,
    input_path: str,
    operations_path: str,
    out_dir: str,
    decision: str = "none",
    rules_path: Optional[str] = None,
    coordinates: Optional[str] = None,
    normalize: Optional[str] = None,
) -> Dict[str, Any]:
    if decision not in DECISIONS:
        raise ValueError(f"decision must be one of {DECISIONS}, got {decision!r}")

    ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    out = Path(out_dir); out.mkdir(parents=True, exist_ok=True)

    src_path = Path(input_path)
    stem, suffix = src_path.stem, src_path.suffix or ".html"
    bundle = out / f"{stem}_{ts.replace('-','').replace(':','').replace('T','_')}"
    bundle.mkdir(parents=True, exist_ok=True)

    original_copy = str(bundle / f"{stem}.original{suffix}")
    preview_path = str(bundle / f"{stem}.preview.html")
    final_path = str(bundle / f"{stem}.final.html")
    removed_path = str(bundle / f"{stem}.removed.html")
    changelog_json = str(bundle / f"{stem}.changelog.json")
    changelog_txt = str(bundle / f"{stem}.changelog.txt")

    copy2(input_path, original_copy)

    config = default_config(rules_path)
    if coordinates:
        config.coordinates = coordinates
    if normalize:
        config.normalize = normalize

    source, doc_id = source_for_path(original_copy)
    content = source.fetch(doc_id)
    operations = load_operations(operations_path)

    committed_path: Optional[str] = None

    def store_committed(text: str) -> None:
        nonlocal committed_path
        committed_source, _ = source_for_path(bundle / f"{stem}.committed{suffix}")
        committed_source.store(f"{stem}.committed{suffix}", text)
        committed_path = str(bundle / f"{stem}.committed{suffix}")

    session = open_preview(content, operations, config, sink=store_committed)
    result = session.result

    Path(preview_path).write_text(result.preview_html, encoding="utf-8")
    Path(final_path).write_text(result.final_html, encoding="utf-8")
    Path(removed_path).write_text(result.removed_html, encoding="utf-8")

    # Verification
    findings: List[Finding] = []
    findings.extend(verify_segments(session.document))
    findings.extend(verify_round_trip(session.document, session.original))

    if decision != "none":
        session.resolve(decision == "accept")
        if session.state == "committed":
            findings.extend(verify_committed(session.document))
    for f in findings:
        logger.warning(f"[{f.severity}] {f.rule_id}: {f.message}")

    ops = session.ops
    preview = result.to_dict()
    payload: Dict[str, Any] = {
        "timestamp_utc": ts,
        "decision": decision,
        "state": session.state,
        "coordinates": config.coordinates,
        "normalize": config.normalize,
        "artifacts": {
            "original": original_copy,
            "preview_html": preview_path,
            "final_html": final_path,
            "removed_html": removed_path,
            "committed": committed_path,
            "changelog_json": changelog_json,
            "changelog_txt": changelog_txt,
        },
        "stats": {
            "editops_total": len(ops),
            "editops_applied": sum(1 for o in ops if o.status == "applied"),
            "editops_skipped": sum(1 for o in ops if o.status == "skipped"),
            "editops_failed": sum(1 for o in ops if o.status == "failed"),
            "additions": result.changes.additions,
            "deletions": result.changes.deletions,
            "chars_before": len(session.original),
            "chars_after": len(result.final_html),
            "findings_total": len(findings),
        },
        "changes": preview["changes"],
        "findings": [asdict(f) for f in findings],
        "editops": [o.to_dict() for o in ops],
    }

    write_json(changelog_json, payload)
    write_txt(changelog_txt, payload)
    return payload
