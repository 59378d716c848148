from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Literal

from docpatch.remap import PositionRemapper

SegmentKind = Literal["unchanged", "addition", "deletion"]


@dataclass
class Segment:
    text: str
    kind: SegmentKind = "unchanged"
    visible: bool = True


@dataclass
class RemovedSpan:
    text: str      # live slice that left the working content
    start: int
    end: int
    retracted: str = ""  # part of `text` that was added in this change-set


@dataclass
class ChangeDetail:
    kind: Literal["addition", "deletion"]
    tool: str
    description: str
    start: int
    end: int


@dataclass
class Finding:
    rule_id: str
    severity: str  # info|warning|critical
    message: str
    category: str = "general"
    details: Dict[str, str] = field(default_factory=dict)


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


class WorkingDocument:
    """
    Ordered segment list for one preview request.

    Visible segments concatenate to the working content. Deletion segments
    stay in place (invisible) so the preview and revert can see them.
    """

    def __init__(self, segments: Optional[List[Segment]] = None, coordinates: str = "live"):
        self.segments: List[Segment] = segments or []
        self.changes: List[ChangeDetail] = []
        self.remapper = PositionRemapper(coordinates=coordinates)
        self._length = sum(len(s.text) for s in self.segments if s.visible)

    @classmethod
    def from_content(cls, content: str, coordinates: str = "live") -> "WorkingDocument":
        text = content if isinstance(content, str) else str(content or "")
        segments = [Segment(text=text)] if text else []
        return cls(segments, coordinates=coordinates)

    @property
    def length(self) -> int:
        return self._length

    @property
    def text(self) -> str:
        return "".join(s.text for s in self.segments if s.visible)

    def copy(self) -> "WorkingDocument":
        dup = WorkingDocument([Segment(s.text, s.kind, s.visible) for s in self.segments])
        dup.changes = list(self.changes)
        dup.remapper = self.remapper.copy()
        return dup

    def removed_text(self) -> str:
        return "".join(s.text for s in self.segments if s.kind == "deletion")

    def split_at(self, offset: int) -> int:
        """Return the segment index at which `offset` begins, splitting if needed."""
        if not self.segments:
            return 0

        safe = _clamp(offset, 0, self._length)
        accumulated = 0
        for index, segment in enumerate(self.segments):
            if not segment.visible:
                continue
            size = len(segment.text)
            if safe == accumulated:
                return index
            if safe > accumulated + size:
                accumulated += size
                continue
            if safe == accumulated + size:
                return index + 1

            cut = safe - accumulated
            before = Segment(segment.text[:cut], segment.kind, segment.visible)
            after = Segment(segment.text[cut:], segment.kind, segment.visible)
            self.segments[index:index + 1] = [before, after]
            return index + 1

        return len(self.segments)

    def insert(self, position: int, text: str) -> Optional[int]:
        if not text:
            return None
        safe = _clamp(position, 0, self._length)
        index = self.split_at(safe)
        self.segments.insert(index, Segment(text=text, kind="addition"))
        self._length += len(text)
        self.remapper.record_insert(safe, len(text))
        return safe

    def remove(self, start: int, end: int) -> Optional[RemovedSpan]:
        if self._length == 0:
            return None
        safe_start = _clamp(start, 0, self._length)
        safe_end = _clamp(end, safe_start, self._length)
        if safe_end <= safe_start:
            return None

        first = self.split_at(safe_start)
        last = self.split_at(safe_end)

        live_parts: List[str] = []
        replacement: List[Segment] = []
        retracted: List[str] = []
        for segment in self.segments[first:last]:
            if segment.visible:
                live_parts.append(segment.text)
            if segment.kind == "addition":
                # text added in this change-set has no original to restore
                retracted.append(segment.text)
                continue
            if replacement and replacement[-1].kind == "deletion":
                replacement[-1].text += segment.text
            else:
                replacement.append(Segment(text=segment.text, kind="deletion", visible=False))

        self.segments[first:last] = replacement
        removed = "".join(live_parts)
        self._length -= len(removed)
        self.remapper.record_remove(safe_start, safe_end)
        return RemovedSpan(text=removed, start=safe_start, end=safe_end, retracted="".join(retracted))

    def commit(self) -> None:
        kept = [Segment(s.text) for s in self.segments if s.visible and s.text]
        self.segments = _coalesce(kept)
        self._length = sum(len(s.text) for s in self.segments)
        self._settle()

    def revert(self) -> None:
        kept = [Segment(s.text) for s in self.segments if s.kind != "addition" and s.text]
        self.segments = _coalesce(kept)
        self._length = sum(len(s.text) for s in self.segments)
        self._settle()

    def _settle(self) -> None:
        # resolved content becomes the new baseline
        self.changes = []
        self.remapper = PositionRemapper(coordinates=self.remapper.coordinates)


def _coalesce(segments: List[Segment]) -> List[Segment]:
    merged: List[Segment] = []
    for segment in segments:
        if merged and merged[-1].kind == segment.kind and merged[-1].visible == segment.visible:
            merged[-1].text += segment.text
        else:
            merged.append(segment)
    return merged
