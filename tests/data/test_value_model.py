"""
Тесты модели значений: построение из Python-объектов, истинность,
текстовое представление и навигация.
"""

import datetime as dt

import pytest

from rtpl.data.model import Value, ValueKind
from rtpl.errors import DataError


class TestFromPython:

    def test_scalars(self):
        assert Value.from_python(None) == Value.null()
        assert Value.from_python(True) == Value.boolean(True)
        assert Value.from_python(3) == Value.number(3)
        assert Value.from_python("s") == Value.string("s")

    def test_bool_is_not_number(self):
        assert Value.from_python(False).kind == ValueKind.BOOL
        assert Value.from_python(False) != Value.number(0)

    def test_nested_structures(self):
        value = Value.from_python({"a": [1, {"b": None}]})

        assert value.kind == ValueKind.MAPPING
        inner = value.get_key("a")
        assert inner.kind == ValueKind.SEQUENCE
        assert inner.get_index(1).get_key("b") == Value.null()

    def test_mapping_preserves_insertion_order(self):
        value = Value.from_python({"z": 1, "a": 2, "m": 3})

        assert list(value.data) == ["z", "a", "m"]

    def test_scalar_keys_become_strings(self):
        value = Value.from_python({1: "one", False: "no", 2.5: "x"})

        assert list(value.data) == ["1", "false", "2.5"]

    def test_unsupported_key(self):
        with pytest.raises(DataError, match="unsupported mapping key"):
            Value.from_python({("a", "b"): 1})

    def test_dates_become_iso_strings(self):
        assert Value.from_python(dt.date(2024, 1, 2)) == Value.string("2024-01-02")

    def test_unsupported_type_reports_path(self):
        with pytest.raises(DataError, match=r"\$\.items\[1\]: unsupported value type object"):
            Value.from_python({"items": [1, object()]})

    def test_round_trip_to_python(self):
        obj = {"a": [1, 2.5, "x", None, True], "b": {}}

        assert Value.from_python(obj).to_python() == obj

    def test_immutable(self):
        value = Value.from_python({"a": 1})

        with pytest.raises(TypeError):
            value.data["b"] = Value.number(2)


class TestTruthiness:

    @pytest.mark.parametrize("obj, expected", [
        (None, False),
        (False, False),
        (True, True),
        (0, False),
        (0.0, False),
        (7, True),
        ("", False),
        (" ", True),
        ([], False),
        ([None], True),
        ({}, False),
        ({"k": 0}, True),
    ])
    def test_is_truthy(self, obj, expected):
        assert Value.from_python(obj).is_truthy() is expected


class TestToText:

    @pytest.mark.parametrize("obj, expected", [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (-3, "-3"),
        (2.5, "2.5"),
        (3.0, "3.0"),
        ("плоский текст", "плоский текст"),
        ([1, "a", None], '[1,"a",null]'),
        ({"k": [True]}, '{"k":[true]}'),
    ])
    def test_to_text(self, obj, expected):
        assert Value.from_python(obj).to_text() == expected


class TestNavigation:

    def test_get_key_on_non_mapping(self):
        assert Value.string("x").get_key("a") is None

    def test_get_index_bounds(self):
        seq = Value.from_python([1, 2, 3])

        assert seq.get_index(0) == Value.number(1)
        assert seq.get_index(-1) == Value.number(3)
        assert seq.get_index(3) is None
        assert seq.get_index(-4) is None

    def test_length(self):
        assert Value.string("abc").length() == 3
        assert Value.from_python({"a": 1}).length() == 1
        assert Value.number(1).length() is None

    def test_iter_items(self):
        assert list(Value.from_python([1, 2]).iter_items()) == [Value.number(1), Value.number(2)]
        assert list(Value.from_python({"a": "x"}).iter_items()) == [Value.string("x")]

    def test_iter_items_scalar(self):
        with pytest.raises(TypeError, match="number is not iterable"):
            Value.number(1).iter_items()

    def test_type_names(self):
        assert [Value.from_python(o).type_name for o in (None, True, 1, "s", [], {})] == [
            "null", "bool", "number", "string", "sequence", "mapping",
        ]
