from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

from docpatch.editops import OP_KINDS
from docpatch.remap import COORDINATE_MODES

DEFAULT_RULES_PATH = str(Path(__file__).parent / "tool_rules.yml")
NORMALIZE_POLICIES = ("auto", "always", "never")


@dataclass
class HighlightRules:
    root_class: str = "ai-preview-root"
    addition_class: str = "ai-preview-addition"
    addition_style: str = "background-color: #d4f8d4;"
    deletion_class: str = "ai-preview-deletion"
    deletion_style: str = "background-color: #fddede; color: #b42318; text-decoration: line-through;"
    removed_separator: str = "<br /><br />"


@dataclass
class PreviewConfig:
    tools: Dict[str, str] = field(default_factory=lambda: {
        "append_document_content": "append",
        "insert_document_content": "insert",
        "insert_document_content_at_location": "insert",
        "replace_document_content": "replace",
        "remove_document_content": "remove",
    })
    coordinates: str = "live"
    normalize: str = "auto"
    snippet_limit: int = 80
    highlight: HighlightRules = field(default_factory=HighlightRules)


def load_rule_pack(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        pack = yaml.safe_load(f) or {}
    if not isinstance(pack, dict):
        raise ValueError(f"{path}: rule pack must be a mapping, got {type(pack).__name__}")
    return pack


def load_preview_config(rule_pack: Dict[str, Any]) -> PreviewConfig:
    if not isinstance(rule_pack, dict):
        raise ValueError("rule pack must be a mapping")
    cfg = PreviewConfig()

    tools = rule_pack.get("tools")
    if tools is not None:
        if not isinstance(tools, dict):
            raise ValueError("'tools' must map tool names to edit kinds")
        for name, kind in tools.items():
            if kind not in OP_KINDS:
                raise ValueError(f"Tool {name!r} maps to unknown edit kind {kind!r}")
        cfg.tools = {str(k): str(v) for k, v in tools.items()}

    coordinates = str(rule_pack.get("coordinates", cfg.coordinates))
    if coordinates not in COORDINATE_MODES:
        raise ValueError(f"coordinates must be one of {COORDINATE_MODES}, got {coordinates!r}")
    cfg.coordinates = coordinates

    normalize = str(rule_pack.get("normalize", cfg.normalize))
    if normalize not in NORMALIZE_POLICIES:
        raise ValueError(f"normalize must be one of {NORMALIZE_POLICIES}, got {normalize!r}")
    cfg.normalize = normalize

    cfg.snippet_limit = int(rule_pack.get("snippet_limit", cfg.snippet_limit))

    hl = rule_pack.get("highlight") or {}
    if not isinstance(hl, dict):
        raise ValueError("'highlight' must be a mapping")
    cfg.highlight = HighlightRules(**{
        k: str(hl[k]) for k in HighlightRules.__dataclass_fields__ if k in hl
    })
    return cfg


def default_config(path: Optional[str] = None) -> PreviewConfig:
    return load_preview_config(load_rule_pack(path or DEFAULT_RULES_PATH))
