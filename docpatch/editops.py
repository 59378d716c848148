from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, Literal
import math

OpKind = Literal["append", "insert", "replace", "remove"]
OpStatus = Literal["proposed", "applied", "skipped", "failed"]
OP_KINDS = ("append", "insert", "replace", "remove")


@dataclass(frozen=True)
class Range:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Anchor:
    target: str                         # literal text located in the live content
    placement: str = "after"            # before|after (ignored for removals)


@dataclass
class EditOp:
    kind: OpKind
    content: str = ""
    range: Optional[Range] = None       # declared range; append has none
    sequence: int = 0
    source_id: str = ""
    tool: str = "manual"
    anchor: Optional[Anchor] = None
    removed_hint: Optional[str] = None  # removed text reported by the tool layer
    status: OpStatus = "proposed"
    verification: Dict[str, Any] = field(default_factory=dict)

    def fail(self, reason: str) -> "EditOp":
        self.status = "failed"
        self.verification["reason"] = reason
        return self

    def skip(self, reason: str) -> "EditOp":
        self.status = "skipped"
        self.verification["reason"] = reason
        return self

    def validate(self) -> "EditOp":
        """Bring the op to its per-kind shape, or mark it failed."""
        if self.kind not in OP_KINDS:
            return self.fail("unknown_kind")
        if self.content is None:
            self.content = ""
        elif not isinstance(self.content, str):
            self.content = str(self.content)

        if self.kind == "append":
            self.range = None
            self.anchor = None
        elif self.range is None and self.anchor is None:
            return self.fail("missing_position" if self.kind == "insert" else "missing_range")
        elif self.kind == "insert" and self.range is not None and self.range.end != self.range.start:
            self.range = Range(self.range.start, self.range.start)

        if self.anchor is not None and not self.anchor.target:
            return self.fail("empty_anchor")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], sequence: int = 0) -> "EditOp":
        rng = raw.get("range")
        start = _as_int(rng.get("start")) if isinstance(rng, dict) else None
        end = _as_int(rng.get("end", rng.get("start"))) if isinstance(rng, dict) else None
        anchor = raw.get("anchor")
        seq = _as_int(raw.get("sequence"))
        op = cls(
            kind=raw.get("kind"),  # type: ignore[arg-type]
            content=raw.get("content", ""),
            range=Range(start, end) if start is not None and end is not None else None,
            sequence=sequence if seq is None else seq,
            source_id=str(raw.get("source_id") or ""),
            tool=str(raw.get("tool") or "manual"),
            anchor=Anchor(str(anchor.get("target") or ""), str(anchor.get("placement") or "after")) if isinstance(anchor, dict) else None,
            removed_hint=raw.get("removed_hint") if isinstance(raw.get("removed_hint"), str) else None,
        )
        return op.validate()


def append(content: str, **kw: Any) -> EditOp:
    return EditOp(kind="append", content=content, **kw).validate()


def insert(position: int, content: str, **kw: Any) -> EditOp:
    return EditOp(kind="insert", content=content, range=Range(position, position), **kw).validate()


def replace(start: int, end: int, content: str, **kw: Any) -> EditOp:
    return EditOp(kind="replace", content=content, range=Range(start, end), **kw).validate()


def remove(start: int, end: int, **kw: Any) -> EditOp:
    return EditOp(kind="remove", range=Range(start, end), **kw).validate()


def insert_at(target: str, placement: str, content: str, **kw: Any) -> EditOp:
    return EditOp(kind="insert", content=content, anchor=Anchor(target, placement), **kw).validate()


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None
