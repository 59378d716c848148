from docpatch.ir import Segment, WorkingDocument
from docpatch.verify import verify_committed, verify_round_trip, verify_segments


def test_split_at_mid_segment():
    doc = WorkingDocument.from_content("Hello world")
    idx = doc.split_at(5)
    assert idx == 1
    assert [s.text for s in doc.segments] == ["Hello", " world"]
    assert all(s.kind == "unchanged" for s in doc.segments)


def test_split_at_boundaries_do_not_split():
    doc = WorkingDocument.from_content("abc")
    assert doc.split_at(0) == 0
    assert doc.split_at(3) == 1
    assert doc.split_at(99) == 1
    assert len(doc.segments) == 1


def test_split_at_skips_invisible_segments():
    doc = WorkingDocument([Segment("ab"), Segment("cd", "deletion", False), Segment("ef")])
    assert doc.length == 4
    idx = doc.split_at(3)
    assert [s.text for s in doc.segments] == ["ab", "cd", "e", "f"]
    assert idx == 3


def test_insert_clamps_position():
    doc = WorkingDocument.from_content("abc")
    assert doc.insert(-4, "X") == 0
    assert doc.insert(100, "Y") == 4
    assert doc.text == "XabcY"
    assert doc.length == 5


def test_insert_empty_text_is_noop():
    doc = WorkingDocument.from_content("abc")
    assert doc.insert(1, "") is None
    assert doc.text == "abc"


def test_remove_keeps_invisible_deletion():
    doc = WorkingDocument.from_content("The quick brown fox")
    span = doc.remove(4, 10)
    assert span.text == "quick "
    assert doc.text == "The brown fox"
    assert doc.removed_text() == "quick "
    deletions = [s for s in doc.segments if s.kind == "deletion"]
    assert len(deletions) == 1 and not deletions[0].visible


def test_remove_zero_length_or_empty_document():
    doc = WorkingDocument.from_content("abc")
    assert doc.remove(2, 2) is None
    assert doc.remove(3, 1) is None
    assert WorkingDocument.from_content("").remove(0, 5) is None


def test_remove_merges_adjacent_deletions():
    doc = WorkingDocument.from_content("abcdef")
    doc.remove(2, 4)          # "abef"
    doc.remove(1, 3)          # drops "b" and "e" around the earlier deletion
    assert doc.text == "af"
    kinds = [s.kind for s in doc.segments]
    assert kinds == ["unchanged", "deletion", "unchanged"]
    assert doc.removed_text() == "bcde"


def test_remove_retracts_added_text():
    doc = WorkingDocument.from_content("abc")
    doc.insert(1, "XYZ")      # aXYZbc
    doc.remove(0, 3)          # drops "aXY"
    assert doc.text == "Zbc"
    assert doc.removed_text() == "a"
    doc.revert()
    assert doc.text == "abc"


def test_commit_flattens_to_unchanged():
    doc = WorkingDocument.from_content("Hello world")
    doc.insert(5, " there")
    doc.remove(0, 1)
    doc.commit()
    assert doc.text == "ello there world"
    assert [s.kind for s in doc.segments] == ["unchanged"]
    assert verify_committed(doc) == []
    assert doc.changes == []


def test_revert_restores_original():
    doc = WorkingDocument.from_content("Hello world")
    doc.insert(5, " there")
    doc.remove(6, 12)
    doc.revert()
    assert doc.text == "Hello world"
    assert len(doc.segments) == 1


def test_verify_flags_broken_store():
    doc = WorkingDocument([Segment("ab"), Segment("", "addition"), Segment("cd", "deletion", True)])
    rule_ids = {f.rule_id for f in verify_segments(doc)}
    assert "seg.empty" in rule_ids
    assert "seg.visibility" in rule_ids


def test_verify_round_trip_clean_document():
    doc = WorkingDocument.from_content("abc")
    doc.insert(0, "zz")
    doc.remove(2, 4)
    assert verify_segments(doc) == []
    assert verify_round_trip(doc, "abc") == []
    assert doc.text == "zzc"
