"""Content-fetch interface: live document content by identifier."""
from __future__ import annotations
from pathlib import Path
from typing import Protocol, Tuple, Union
import logging

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    def fetch(self, doc_id: str) -> str: ...

    def store(self, doc_id: str, content: str) -> None: ...


class DirectoryContentSource:
    """Documents stored as HTML/text files under one directory."""

    def __init__(self, root: Union[str, Path], suffix: str = ".html"):
        self.root = Path(root)
        self.suffix = suffix

    def path_for(self, doc_id: str) -> Path:
        name = doc_id if Path(doc_id).suffix else f"{doc_id}{self.suffix}"
        return self.root / name

    def fetch(self, doc_id: str) -> str:
        return self.path_for(doc_id).read_text(encoding="utf-8")

    def store(self, doc_id: str, content: str) -> None:
        path = self.path_for(doc_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"Stored {len(content)} chars to {path}")


def source_for_path(path: Union[str, Path]) -> Tuple[ContentSource, str]:
    """Pick the source matching a file's type; returns (source, doc_id)."""
    p = Path(path)
    if p.suffix.lower() == ".docx":
        from docpatch.adapters.docx_adapter import DocxContentSource
        return DocxContentSource(p.parent), p.stem
    return DirectoryContentSource(p.parent, suffix=p.suffix or ".html"), p.name
