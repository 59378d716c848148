"""
Position Remapper

Translates a declared edit range into the coordinate space of the current
working content, given the structural changes already applied.

Two coordinate modes:

- live: ranges were recorded against the content as it stood when the
  operation ran (the tool layer records them this way). Only clamping
  applies, which makes the engine equivalent to replaying each operation on
  a plain mutable buffer.
- original: ranges were declared against the untouched original document
  and are shifted through every recorded insertion and removal.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Literal
import logging

from docpatch.editops import Range

logger = logging.getLogger(__name__)

CoordinateMode = Literal["live", "original"]
COORDINATE_MODES = ("live", "original")


@dataclass(frozen=True)
class AppliedChange:
    kind: Literal["insert", "remove"]
    start: int
    end: int  # insert: start + inserted length


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


class PositionRemapper:
    def __init__(self, coordinates: str = "live"):
        if coordinates not in COORDINATE_MODES:
            logger.warning(f"Unknown coordinate mode {coordinates!r}, using 'live'")
            coordinates = "live"
        self.coordinates: CoordinateMode = coordinates  # type: ignore[assignment]
        self.changes: List[AppliedChange] = []

    def copy(self) -> "PositionRemapper":
        dup = PositionRemapper(self.coordinates)
        dup.changes = list(self.changes)
        return dup

    def record_insert(self, position: int, length: int) -> None:
        if length > 0:
            self.changes.append(AppliedChange("insert", position, position + length))

    def record_remove(self, start: int, end: int) -> None:
        if end > start:
            self.changes.append(AppliedChange("remove", start, end))

    def map_position(self, position: int) -> int:
        """Shift one original-space boundary through every recorded change."""
        pos = position
        for change in self.changes:
            if change.kind == "insert":
                if pos >= change.start:
                    pos += change.end - change.start
            else:
                if pos >= change.end:
                    pos -= change.end - change.start
                elif pos > change.start:
                    pos = change.start
        return pos

    def remap_range(self, declared: Range, current_length: int) -> Optional[Range]:
        """
        Map `declared` into current coordinates, clamped to [0, current_length].

        Returns None for inverted ranges and, in original coordinates, for
        non-empty ranges whose whole span was already removed. A range lying
        past the end clamps to an empty range at the end.
        """
        if declared.end < declared.start:
            return None

        start, end = declared.start, declared.end
        if self.coordinates == "original":
            start = self.map_position(start)
            end = self.map_position(end)
            if declared.end > declared.start and end <= start:
                logger.debug(f"Range {declared.start}-{declared.end} collapsed after remapping")
                return None

        start = _clamp(start, 0, current_length)
        end = _clamp(end, start, current_length)
        return Range(start, end)

    def remap_point(self, position: int, current_length: int) -> int:
        mapped = self.map_position(position) if self.coordinates == "original" else position
        return _clamp(mapped, 0, current_length)
