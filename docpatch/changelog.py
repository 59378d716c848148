from __future__ import annotations
from typing import Dict, Any, List
import json

def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))

def _span(op: Dict[str, Any]) -> str:
    if op.get("range"):
        return f"{op['range']['start']}-{op['range']['end']}"
    if op.get("anchor"):
        return f"{op['anchor']['placement']} {op['anchor']['target']!r}"
    return "end"

def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"Preview Bundle: {payload.get('timestamp_utc')}")
    lines.append("")
    a = payload.get("artifacts", {})
    lines.append("Artifacts")
    lines.append(f"- Original:  {a.get('original')}")
    lines.append(f"- Preview:   {a.get('preview_html')}")
    lines.append(f"- Final:     {a.get('final_html')}")
    lines.append(f"- Removed:   {a.get('removed_html')}")
    lines.append(f"- Committed: {a.get('committed') or '[not written]'}")
    lines.append("")
    lines.append("Decision")
    lines.append(f"- Requested:   {payload.get('decision')}")
    lines.append(f"- State:       {payload.get('state')}")
    lines.append(f"- Coordinates: {payload.get('coordinates')}")
    lines.append(f"- Normalize:   {payload.get('normalize')}")
    lines.append("")
    stats = payload.get("stats", {})
    lines.append("Stats")
    for k, v in stats.items():
        lines.append(f"- {k}: {v}")
    lines.append("")
    details = (payload.get("changes") or {}).get("details", []) or []
    if details:
        lines.append("Changes")
        for d in details[:50]:
            lines.append(f"- [{d['type'].upper()}] {d['tool']}: {d['description']}")
        if len(details) > 50:
            lines.append(f"... plus {len(details)-50} more.")
        lines.append("")
    findings = payload.get("findings", []) or []
    if findings:
        lines.append("Findings")
        for fnd in findings[:60]:
            lines.append(f"- [{fnd['severity'].upper()}] {fnd['category']} {fnd['rule_id']}: {fnd['message']}")
        if len(findings) > 60:
            lines.append(f"... plus {len(findings)-60} more.")
        lines.append("")
    ops = payload.get("editops", []) or []
    if ops:
        lines.append("EditOps (first 50)")
        for op in ops[:50]:
            reason = (op.get("verification") or {}).get("reason")
            suffix = f" [{reason}]" if reason else ""
            lines.append(f"- {op['status']}: {op['kind']} #{op['sequence']} via {op['tool']} @ {_span(op)}{suffix}")
    return "\n".join(lines)
