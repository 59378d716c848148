import pytest
import yaml

from docpatch.rules.load_rules import DEFAULT_RULES_PATH, default_config, load_preview_config, load_rule_pack


def test_default_rule_pack():
    pack = load_rule_pack(DEFAULT_RULES_PATH)
    assert pack["version"] == 1
    cfg = default_config()
    assert cfg.tools["insert_document_content_at_location"] == "insert"
    assert cfg.tools["remove_document_content"] == "remove"
    assert cfg.coordinates == "live"
    assert cfg.normalize == "auto"
    assert cfg.snippet_limit == 80
    assert cfg.highlight.root_class == "ai-preview-root"
    assert cfg.highlight.removed_separator == "<br /><br />"


def test_custom_rule_file(tmp_path):
    path = tmp_path / "rules.yml"
    path.write_text(yaml.safe_dump({
        "tools": {"add_text": "append"},
        "coordinates": "original",
        "normalize": "never",
        "highlight": {"addition_class": "ins"},
    }), encoding="utf-8")
    cfg = default_config(str(path))
    assert cfg.tools == {"add_text": "append"}
    assert cfg.coordinates == "original"
    assert cfg.normalize == "never"
    assert cfg.highlight.addition_class == "ins"
    assert cfg.highlight.deletion_class == "ai-preview-deletion"


def test_invalid_rule_pack_values():
    with pytest.raises(ValueError):
        load_preview_config({"tools": {"x": "rename"}})
    with pytest.raises(ValueError):
        load_preview_config({"coordinates": "sideways"})
    with pytest.raises(ValueError):
        load_preview_config({"normalize": "sometimes"})
    with pytest.raises(ValueError):
        load_preview_config({"tools": ["append"]})


def test_empty_rule_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    cfg = default_config(str(path))
    assert cfg.coordinates == "live"
    assert len(cfg.tools) == 5


def test_rule_pack_must_be_a_mapping(tmp_path):
    path = tmp_path / "list.yml"
    path.write_text("- append\n- insert\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_rule_pack(str(path))
    with pytest.raises(ValueError):
        load_preview_config(["tools"])
    with pytest.raises(ValueError):
        load_preview_config({"highlight": ["root_class"]})
