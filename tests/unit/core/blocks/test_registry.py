"""Unit tests for core/blocks/registry.py"""

import pytest

from mdblocks.core.blocks.registry import BlockRegistry, FieldRule, default_registry


def test_list_types_has_all_widget_names(registry):
    """Every recognized fence type is listed, including ones without a schema."""
    types = registry.list_types()
    assert len(types) == 39
    assert {"card", "barchart", "piechart", "spinner", "separator"} <= types


def test_schema_types_subset(registry):
    """Only the schema-backed types are returned by schema_types."""
    assert registry.schema_types() == {
        "card", "barchart", "linechart", "scatterplot", "histogram",
        "tablejson", "alert", "button", "progress", "gauge",
    }
    assert registry.schema_types() <= registry.list_types()


def test_get_schema_unknown_returns_none(registry):
    assert registry.get_schema("piechart") is None
    assert registry.get_schema("nope") is None
    assert isinstance(registry.get_schema("card"), FieldRule)


def test_default_registry_is_cached():
    assert default_registry() is default_registry()


# --- validation boundary ---

def test_progress_value_over_max():
    """A value above the schema maximum fails with a max-bound message."""
    result = default_registry().validate("progress", {"value": 150, "max": 100})
    assert not result.valid
    assert result.errors == ["value: must be <= 100"]


def test_card_missing_title():
    result = default_registry().validate("card", {})
    assert not result.valid
    assert result.errors == ["root: must have required property 'title'"]


def test_gauge_color_pattern():
    result = default_registry().validate("gauge", {"value": 50, "color": "blue"})
    assert not result.valid
    assert result.errors == ['color: must match pattern "^#[0-9A-Fa-f]{6}$"']


def test_gauge_missing_value_and_bad_color():
    """Required errors come before nested field errors."""
    result = default_registry().validate("gauge", {"color": "blue"})
    assert result.errors[0] == "root: must have required property 'value'"
    assert 'color: must match pattern "^#[0-9A-Fa-f]{6}$"' in result.errors


def test_barchart_empty_data():
    result = default_registry().validate("barchart", {"title": "t", "data": []})
    assert not result.valid
    assert result.errors == ["data: must NOT have fewer than 1 items"]


def test_barchart_nested_item_path():
    """Errors inside arrays carry the slash-joined instance path."""
    result = default_registry().validate("barchart", {"title": "t", "data": [{"name": "", "value": "x"}]})
    assert "data/0/name: must NOT have fewer than 1 characters" in result.errors
    assert "data/0/value: must be number" in result.errors


def test_additional_properties_rejected():
    result = default_registry().validate("alert", {"title": "a", "message": "b", "extra": 1})
    assert result.errors == ["root: must NOT have additional properties"]


def test_enum_mismatch():
    result = default_registry().validate("alert", {"title": "a", "message": "b", "variant": "loud"})
    assert result.errors == ["variant: must be equal to one of the allowed values"]


def test_uri_format():
    result = default_registry().validate("button", {"label": "Go", "url": "not a uri"})
    assert result.errors == ['url: must match format "uri"']
    assert default_registry().validate("button", {"label": "Go", "url": "https://x.io"}).valid


def test_minimum_bound():
    result = default_registry().validate("histogram", {"title": "h", "data": [1, 2], "bins": 1})
    assert result.errors == ["bins: must be >= 2"]


def test_number_rejects_boolean():
    result = default_registry().validate("progress", {"value": True})
    assert result.errors == ["value: must be number"]


def test_number_accepts_int_and_float():
    assert default_registry().validate("progress", {"value": 42}).valid
    assert default_registry().validate("progress", {"value": 42.5}).valid


@pytest.mark.parametrize("payload", [None, [], "card", 3])
def test_non_object_payload(payload):
    result = default_registry().validate("card", payload)
    assert result.errors == ["root: must be object"]


def test_unknown_block_type():
    """Types without a schema cannot be validated, even if they render."""
    assert default_registry().validate("piechart", {}).errors == ["Unknown block type: piechart"]
    assert default_registry().validate("bogus", {}).errors == ["Unknown block type: bogus"]


def test_valid_linechart():
    payload = {
        "title": "Trend",
        "series": [{"name": "a", "data": [{"x": 0, "y": 1}, {"x": 1, "y": 2.5}], "color": "#00FF00"}],
    }
    result = default_registry().validate("linechart", payload)
    assert result.valid
    assert result.errors == []


def test_from_yaml_custom_file(tmp_path):
    """A registry can be loaded from any YAML file with the same layout."""
    f = tmp_path / "blocks.yaml"
    f.write_text(
        "block_types: [note]\n"
        "schemas:\n"
        "  note:\n"
        "    type: object\n"
        "    required: [text]\n"
        "    properties:\n"
        "      text: {type: string, min_length: 2}\n"
    )
    reg = BlockRegistry.from_yaml(f)
    assert reg.list_types() == {"note"}
    assert reg.validate("note", {"text": "x"}).errors == ["text: must NOT have fewer than 2 characters"]
    assert reg.validate("note", {"text": "ok", "other": 1}).valid


def test_from_yaml_invalid(tmp_path):
    f = tmp_path / "bad.yaml"
    f.write_text("schemas: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid block schema file"):
        BlockRegistry.from_yaml(f)
