from docpatch.editops import EditOp, Range, Anchor, append, insert, replace, remove, insert_at
from docpatch.ir import WorkingDocument
from docpatch.apply import apply_editops
from docpatch.rules.load_rules import PreviewConfig

def test_span_replace_editop():
    doc = WorkingDocument.from_content("We did this in order to improve.")
    ops = [replace(12, 23, "to")]
    doc2, ops2 = apply_editops(doc, ops)
    assert doc2.text == "We did this to improve."
    assert ops2[0].status == "applied"
    assert ops2[0].verification["removed_range"] == [12, 23]
    assert ops2[0].verification["applied_range"] == [12, 14]

def test_validate_shapes_per_kind():
    assert insert(4, "x").range == Range(4, 4)
    assert EditOp(kind="insert", content="x", range=Range(4, 9)).validate().range == Range(4, 4)
    assert append("x", range=Range(1, 2)).range is None
    assert EditOp(kind="replace", content=None, range=Range(0, 1)).validate().content == ""
    assert EditOp(kind="insert", content=42, range=Range(0, 0)).validate().content == "42"

def test_validate_failures():
    assert EditOp(kind="rename").validate().verification["reason"] == "unknown_kind"
    assert EditOp(kind="insert", content="x").validate().verification["reason"] == "missing_position"
    assert EditOp(kind="remove").validate().verification["reason"] == "missing_range"
    assert insert_at("", "after", "x").status == "failed"

def test_from_dict_reads_ranges_and_anchors():
    op = EditOp.from_dict({"kind": "replace", "content": "y", "range": {"start": 1, "end": 3}}, sequence=7)
    assert op.range == Range(1, 3) and op.sequence == 7 and op.status == "proposed"
    op = EditOp.from_dict({"kind": "insert", "content": "y", "anchor": {"target": "abc", "placement": "before"}})
    assert op.anchor == Anchor("abc", "before")
    op = EditOp.from_dict({"kind": "remove", "range": {"start": "1", "end": 3}})
    assert op.status == "failed"

def test_failed_and_skipped_ops_do_not_abort_batch():
    doc = WorkingDocument.from_content("abc")
    ops = [
        EditOp(kind="remove", sequence=0).validate(),
        insert(1, "", sequence=1),
        remove(2, 1, sequence=2),
        remove(3, 3, sequence=3),
        append("!", sequence=4),
    ]
    doc, ops = apply_editops(doc, ops)
    assert doc.text == "abc!"
    assert [o.status for o in ops] == ["failed", "skipped", "skipped", "skipped", "applied"]
    assert ops[2].verification["reason"] == "inverted_range"
    assert ops[3].verification["reason"] == "empty_range"

def test_ops_run_in_sequence_order():
    doc = WorkingDocument.from_content("X")
    ops = [insert(0, "B", sequence=1), insert(0, "A", sequence=0)]
    doc, _ = apply_editops(doc, ops)
    assert doc.text == "BAX"

def test_anchor_insert_and_remove():
    doc = WorkingDocument.from_content("<p>Intro</p><p>Body</p>")
    ops = [
        insert_at("<p>Intro</p>", "after", "<p>New</p>", sequence=0),
        EditOp(kind="remove", anchor=Anchor("<p>Body</p>"), sequence=1).validate(),
        insert_at("missing", "before", "zzz", sequence=2),
    ]
    doc, ops = apply_editops(doc, ops, PreviewConfig(normalize="never"))
    assert doc.text == "<p>Intro</p><p>New</p>"
    assert ops[2].status == "skipped" and ops[2].verification["reason"] == "anchor_not_found"

def test_replace_out_of_range_degrades_to_insert():
    doc = WorkingDocument.from_content("abc")
    doc, ops = apply_editops(doc, [replace(10, 20, "Z")])
    assert doc.text == "abcZ"
    assert ops[0].status == "applied"

def test_stale_removed_hint_uses_live_slice():
    doc = WorkingDocument.from_content("The quick brown fox")
    op = remove(4, 10, removed_hint="quick brown fox jumps...")
    doc, ops = apply_editops(doc, [op])
    assert doc.removed_text() == "quick "
    assert ops[0].verification["stale_removed_hint"] is True

def test_change_descriptions():
    doc = WorkingDocument.from_content("The quick brown fox")
    doc, _ = apply_editops(doc, [replace(4, 9, "slow", tool="replace_document_content")])
    kinds = [d.kind for d in doc.changes]
    assert kinds == ["deletion", "addition"]
    assert doc.changes[0].description == 'Removed 5 characters from 4–9: "quick"'
    assert doc.changes[1].description == 'Added 4 replacement characters at position 4: "slow"'
    assert doc.changes[1].tool == "replace_document_content"

def test_removing_pending_addition_logs_no_deletion():
    doc = WorkingDocument.from_content("abc")
    doc, ops = apply_editops(doc, [insert(1, "XYZ", sequence=0), remove(1, 4, sequence=1)])
    assert doc.text == "abc"
    assert [d.kind for d in doc.changes] == ["addition"]
    assert ops[1].status == "applied"
    assert ops[1].verification["retracted"] is True
    assert not any(s.kind == "deletion" for s in doc.segments)

def test_from_dict_non_finite_range_fails():
    op = EditOp.from_dict({"kind": "remove", "range": {"start": float("nan"), "end": 2}})
    assert op.status == "failed"
    assert op.verification["reason"] == "missing_range"
