from __future__ import annotations

import json

import pytest

from composer.json_builder import (
    INVALID_JSON_MESSAGE,
    NOT_A_NUMBER_MESSAGE,
    FieldEntry,
    JsonBuilder,
    build_object,
    field_error,
    parse_number,
)


class Recorder:
    def __init__(self) -> None:
        self.emitted: list[str] = []
        self.validity: list[bool] = []

    def on_change(self, text: str) -> None:
        self.emitted.append(text)

    def on_validation_change(self, valid: bool) -> None:
        self.validity.append(valid)

    @property
    def last(self):
        return json.loads(self.emitted[-1])


def _builder(value: str) -> tuple[JsonBuilder, Recorder]:
    rec = Recorder()
    return JsonBuilder(value, rec.on_change, rec.on_validation_change), rec


def test_unparseable_initial_value_yields_placeholder_field():
    b, rec = _builder("{oops")
    assert b.fields == [FieldEntry(0, "key", "value", "string")]
    assert b.valid
    assert rec.emitted == [] and rec.validity == []


@pytest.mark.parametrize("value", ["[1, 2]", "42", "null", '"text"'])
def test_non_object_initial_value_yields_placeholder_field(value):
    b, _ = _builder(value)
    assert [(f.key, f.value, f.type) for f in b.fields] == [("key", "value", "string")]


def test_initial_object_fields_in_order_with_inferred_types():
    b, _ = _builder('{"name": "x", "count": 3, "ratio": 1.5, "on": true, "tags": ["a"], "obj": {"k": 1}, "nothing": null}')
    assert [(f.key, f.value, f.type) for f in b.fields] == [
        ("name", "x", "string"),
        ("count", "3", "number"),
        ("ratio", "1.5", "number"),
        ("on", "true", "boolean"),
        ("tags", '["a"]', "object"),
        ("obj", '{"k":1}', "object"),
        ("nothing", "null", "object"),
    ]
    assert [f.id for f in b.fields] == list(range(7))
    assert b.to_object() == {"name": "x", "count": 3, "ratio": 1.5, "on": True, "tags": ["a"], "obj": {"k": 1}, "nothing": None}


def test_add_field_appends_empty_string_entry_with_fresh_id():
    b, rec = _builder('{"a": 1}')
    added = b.add_field()
    assert added == FieldEntry(1, "", "", "string")
    assert b.fields[-1] == added
    assert rec.validity == [True]
    # empty keys are skipped on emission
    assert rec.last == {"a": 1}

    b.remove_field(added.id)
    again = b.add_field()
    assert again.id == 2


def test_remove_field_by_id():
    b, rec = _builder('{"a": 1, "b": 2, "c": 3}')
    b.remove_field(1)
    assert [f.key for f in b.fields] == ["a", "c"]
    assert rec.last == {"a": 1, "c": 3}


def test_removing_all_fields_emits_empty_object():
    b, rec = _builder('{"a": 1, "b": 2}')
    for f in b.fields:
        b.remove_field(f.id)
    assert b.fields == []
    assert rec.validity[-1] is True
    assert rec.emitted[-1] == "{}"


def test_invalid_number_withholds_emission_until_fixed():
    b, rec = _builder('{"count": 3}')
    b.update_field(0, "value", "abc")
    assert rec.validity == [False]
    assert rec.emitted == []
    assert not b.valid
    assert b.to_object() is None
    assert field_error(b.fields[0]) == NOT_A_NUMBER_MESSAGE

    b.update_field(0, "key", "total")
    assert rec.validity == [False, False]
    assert rec.emitted == []

    b.update_field(0, "value", "42")
    assert rec.validity[-1] is True
    assert rec.last == {"total": 42}


def test_invalid_nested_json_is_an_error():
    b, rec = _builder('{"obj": {"a": 1}}')
    b.update_field(0, "value", "{bad")
    assert rec.validity == [False]
    assert field_error(b.fields[0]) == INVALID_JSON_MESSAGE
    b.update_field(0, "value", '{"a": [1, 2]}')
    assert rec.last == {"obj": {"a": [1, 2]}}


def test_string_and_boolean_fields_never_error():
    b, rec = _builder('{"s": "x", "b": true}')
    b.update_field(0, "value", "{not json, not a number")
    b.update_field(1, "value", "garbage")
    assert rec.validity == [True, True]
    assert rec.last == {"s": "{not json, not a number", "b": False}


def test_changing_type_revalidates_existing_value():
    b, rec = _builder('{"x": "hello"}')
    b.update_field(0, "type", "number")
    assert rec.validity == [False]
    b.update_field(0, "type", "string")
    assert rec.validity == [False, True]
    assert rec.last == {"x": "hello"}


def test_empty_values_are_valid_and_convert_to_defaults():
    b, rec = _builder('{"n": 1, "o": {}}')
    b.update_field(0, "value", "")
    b.update_field(1, "value", "")
    assert rec.validity == [True, True]
    assert rec.last == {"n": 0, "o": {}}


def test_whitespace_keys_are_skipped():
    b, rec = _builder('{"a": 1}')
    b.update_field(0, "key", "   ")
    assert rec.last == {}


def test_duplicate_keys_later_entry_wins():
    b, rec = _builder('{"a": "first"}')
    added = b.add_field()
    b.update_field(added.id, "key", "a")
    b.update_field(added.id, "type", "number")
    b.update_field(added.id, "value", "7")
    assert rec.last == {"a": 7}


def test_emitted_text_is_indented_json():
    b, rec = _builder('{"a": 1}')
    b.update_field(0, "value", "2")
    assert rec.emitted[-1] == '{\n  "a": 2\n}'


def test_unknown_property_or_type_is_rejected():
    b, _ = _builder('{"a": 1}')
    with pytest.raises(ValueError):
        b.update_field(0, "colour", "red")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        b.update_field(0, "type", "date")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("42", 42.0),
        (" 3.5 ", 3.5),
        ("-1e3", -1000.0),
        (".5", 0.5),
        ("5.", 5.0),
        ("0x1F", 31.0),
        ("0b101", 5.0),
        ("", 0.0),
        ("   ", 0.0),
        ("abc", None),
        ("1,000", None),
        ("NaN", None),
        ("1_000", None),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


def test_number_conversion_edge_cases():
    entries = [
        FieldEntry(0, "zero", "0", "number"),
        FieldEntry(1, "float", "2.50", "number"),
        FieldEntry(2, "inf", "Infinity", "number"),
        FieldEntry(3, "int_like", "3.0", "number"),
    ]
    assert build_object(entries) == {"zero": 0, "float": 2.5, "inf": None, "int_like": 3}


def test_initial_numbers_render_like_javascript_strings():
    b, _ = _builder('{"whole": 1.0, "neg": -2.0, "frac": 0.25, "huge": 1e21, "int": 7}')
    assert [f.value for f in b.fields] == ["1", "-2", "0.25", "1e+21", "7"]
    assert b.to_object() == {"whole": 1, "neg": -2, "frac": 0.25, "huge": 1e21, "int": 7}
