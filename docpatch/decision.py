"""
Decision Controller

One change-set, one decision: a preview is either committed (every pending
addition kept, every deletion dropped) or reverted (the document returns to
its pre-preview content). There is no per-operation accept.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional
import logging

from docpatch.editops import EditOp
from docpatch.ir import WorkingDocument
from docpatch.redline import PreviewResult, render_preview
from docpatch.rules.load_rules import PreviewConfig

logger = logging.getLogger(__name__)

SessionState = Literal["previewing", "committed", "reverted"]


class DecisionError(RuntimeError):
    """Raised when a change-set that was already resolved is resolved again."""


@dataclass
class PreviewSession:
    original: str
    document: WorkingDocument
    ops: List[EditOp]
    result: PreviewResult
    config: PreviewConfig = field(default_factory=PreviewConfig)
    sink: Optional[Callable[[str], None]] = None  # receives committed content
    state: SessionState = "previewing"

    @classmethod
    def open(
        cls,
        original: str,
        document: WorkingDocument,
        ops: List[EditOp],
        config: Optional[PreviewConfig] = None,
        sink: Optional[Callable[[str], None]] = None,
    ) -> "PreviewSession":
        config = config or PreviewConfig()
        return cls(original=original, document=document, ops=ops,
                   result=render_preview(document, config), config=config, sink=sink)

    @property
    def resolved(self) -> bool:
        return self.state != "previewing"

    def _ensure_open(self, action: str) -> None:
        if self.resolved:
            raise DecisionError(f"Cannot {action}: change-set already {self.state}")

    def commit(self) -> str:
        self._ensure_open("commit")
        self.document.commit()
        self.state = "committed"
        self.result = render_preview(self.document, self.config)
        content = self.document.text
        logger.info(f"Committed change-set ({len(self.ops)} ops, {len(content)} chars)")
        if self.sink is not None:
            self.sink(content)
        return content

    def revert(self) -> str:
        self._ensure_open("revert")
        self.document.revert()
        self.state = "reverted"
        self.result = render_preview(self.document, self.config)
        content = self.document.text
        if content != self.original:
            logger.warning("Reverted content differs from the pre-preview document")
        logger.info(f"Reverted change-set ({len(self.ops)} ops discarded)")
        return content

    def resolve(self, accept: bool) -> str:
        return self.commit() if accept else self.revert()
