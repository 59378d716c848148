from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from docpatch.pipeline import DECISIONS, run_pipeline
from docpatch.remap import COORDINATE_MODES
from docpatch.rules.load_rules import NORMALIZE_POLICIES


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="docpatch",
        description="Preview a batch of document edits as a highlighted change-set, then accept or reject it"
    )
    ap.add_argument("input", help="Document to edit (.html, .txt or .docx)")
    ap.add_argument("operations", help="JSON file of tool executions or edit ops")
    ap.add_argument("--out", default="./docpatch_out", help="Output directory")
    ap.add_argument(
        "--decision", default="none",
        choices=list(DECISIONS),
        help="Resolve the change-set: accept (write committed document), reject (revert), none (preview only)"
    )

    preview_group = ap.add_argument_group("Preview Options")
    preview_group.add_argument(
        "--coordinates",
        choices=list(COORDINATE_MODES),
        help="How declared ranges are read: live (after earlier ops) or original (pre-preview content)"
    )
    preview_group.add_argument(
        "--normalize",
        choices=list(NORMALIZE_POLICIES),
        help="Markdown normalization of inserted content (default from rule pack)"
    )
    preview_group.add_argument("--rules", help="Path to a tool rules YAML file")

    ap.add_argument("--verbose", action="store_true", help="Log pipeline progress to stderr")

    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not Path(args.input).is_file():
        ap.error(f"input not found: {args.input}")
    if not Path(args.operations).is_file():
        ap.error(f"operations file not found: {args.operations}")
    if args.rules and not Path(args.rules).is_file():
        ap.error(f"rules file not found: {args.rules}")

    try:
        payload = run_pipeline(
            input_path=args.input,
            operations_path=args.operations,
            out_dir=args.out,
            decision=args.decision,
            rules_path=args.rules,
            coordinates=args.coordinates,
            normalize=args.normalize,
        )
    except (ValueError, yaml.YAMLError, json.JSONDecodeError) as e:
        ap.error(str(e))

    output = {
        "bundle_dir": str(Path(payload["artifacts"]["changelog_json"]).parent),
        "state": payload["state"],
        "committed": payload["artifacts"]["committed"],
        "editops_total": payload["stats"]["editops_total"],
        "editops_applied": payload["stats"]["editops_applied"],
        "editops_skipped": payload["stats"]["editops_skipped"],
        "editops_failed": payload["stats"]["editops_failed"],
        "additions": payload["stats"]["additions"],
        "deletions": payload["stats"]["deletions"],
        "findings_total": payload["stats"]["findings_total"],
    }

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
