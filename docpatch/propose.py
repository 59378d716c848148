"""
Operation intake.

Turns the tool-invocation layer's execution log into validated EditOps:
filters failed and read-only calls, orders by timestamp, drops replayed
duplicates and resolves each record's positions and content once.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import hashlib
import json
import logging
import math

from docpatch.editops import Anchor, EditOp, Range
from docpatch.rules.load_rules import PreviewConfig

logger = logging.getLogger(__name__)


@dataclass
class ToolExecution:
    tool: str
    args: Dict[str, Any] = field(default_factory=dict)
    result: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    timestamp: float = 0
    malformed: List[str] = field(default_factory=list)  # fields that were not mappings

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ToolExecution":
        ts = raw.get("timestamp", 0)
        malformed: List[str] = []
        fields: Dict[str, Dict[str, Any]] = {}
        for name in ("args", "result"):
            value = raw.get(name)
            if isinstance(value, Mapping):
                fields[name] = dict(value)
            else:
                fields[name] = {}
                if value is not None:
                    malformed.append(name)
        return cls(
            tool=str(raw.get("tool") or ""),
            args=fields["args"],
            result=fields["result"],
            success=bool(raw.get("success", True)),
            timestamp=ts if _is_number(ts) else 0,
            malformed=malformed,
        )


ExecutionLike = Union[ToolExecution, Mapping[str, Any]]


def _mk_id(seed: str) -> str:
    return hashlib.sha1(seed.encode("utf-8")).hexdigest()[:12]


def execution_signature(ex: ToolExecution) -> Optional[str]:
    """Signature over (tool, timestamp, args); None if args cannot be serialized."""
    try:
        payload = json.dumps(ex.args, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return None
    return _mk_id(f"{ex.tool}|{ex.timestamp}|{payload}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _range_from(value: Any) -> Optional[Range]:
    if not isinstance(value, Mapping):
        return None
    start, end = value.get("from"), value.get("to")
    if not _is_number(start):
        return None
    if not _is_number(end):
        end = start
    return Range(int(start), int(end))


def _declared_range(ex: ToolExecution) -> Optional[Range]:
    before = (ex.result.get("range") or {}).get("before") if isinstance(ex.result.get("range"), Mapping) else None
    for candidate in (before, ex.result.get("position"), ex.args.get("position")):
        rng = _range_from(candidate)
        if rng is not None:
            return rng
    return None


def _insert_point(ex: ToolExecution) -> Optional[Range]:
    rng = _declared_range(ex)
    if rng is not None:
        return Range(rng.start, rng.start)
    for candidate in (ex.result.get("insertedAt"), ex.args.get("position")):
        if _is_number(candidate):
            return Range(int(candidate), int(candidate))
    return None


def _content(ex: ToolExecution) -> str:
    value = ex.result.get("insertedContent")
    if value is None:
        value = ex.args.get("content")
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _to_editop(ex: ToolExecution, kind: str, sequence: int, source_id: str) -> EditOp:
    op = EditOp(kind=kind, content=_content(ex), sequence=sequence, source_id=source_id, tool=ex.tool)  # type: ignore[arg-type]
    if "args" in ex.malformed:
        return op.fail("malformed_record")
    if "result" in ex.malformed:
        # free-text tool results carry no positions; args still do
        op.verification["malformed_result"] = True

    if kind == "insert":
        op.range = _insert_point(ex)
        target = ex.args.get("target")
        if op.range is None and isinstance(target, str) and target:
            placement = ex.args.get("position") if ex.args.get("position") in ("before", "after") else "after"
            op.anchor = Anchor(target, placement)
        if op.range is None and op.anchor is None:
            # no usable position: the content lands at the end of the document
            op.kind = "append"
            op.verification["position_defaulted"] = True
    elif kind in ("replace", "remove"):
        op.range = _declared_range(ex)
        pattern = ex.args.get("position")
        if op.range is None and isinstance(pattern, str) and pattern:
            op.anchor = Anchor(pattern)
        hint = ex.result.get("removedContent")
        if isinstance(hint, str):
            op.removed_hint = hint

    return op.validate()


def propose_from_executions(executions: Iterable[ExecutionLike], config: PreviewConfig) -> List[EditOp]:
    records: List[ToolExecution] = []
    for raw in executions:
        if isinstance(raw, ToolExecution):
            records.append(raw)
        elif isinstance(raw, Mapping):
            records.append(ToolExecution.from_dict(raw))
        else:
            logger.warning(f"Ignoring execution record of type {type(raw).__name__}")

    candidates = [r for r in records if r.success and r.tool in config.tools]
    candidates.sort(key=lambda r: r.timestamp)

    seen = set()
    ops: List[EditOp] = []
    for ex in candidates:
        sig = execution_signature(ex)
        if sig is not None:
            if sig in seen:
                logger.debug(f"Dropping replayed execution {ex.tool}@{ex.timestamp}")
                continue
            seen.add(sig)
        source_id = sig or _mk_id(f"{ex.tool}|{ex.timestamp}|{len(ops)}")
        kind = config.tools[ex.tool]
        try:
            op = _to_editop(ex, kind, len(ops), source_id)
        except Exception as e:
            logger.warning(f"Unreadable {ex.tool} record @{ex.timestamp}: {type(e).__name__}: {e}")
            op = EditOp(kind=kind, sequence=len(ops), source_id=source_id, tool=ex.tool).fail("malformed_record")  # type: ignore[arg-type]
        ops.append(op)

    logger.info(f"Proposed {len(ops)} edit ops from {len(records)} tool executions")
    return ops
