# tests/test_coercion.py

from datetime import date

import pytest

from schedule_builder.app.services.coercion import (
    coerce_value,
    infer_column_type,
    infer_value_type,
    parse_float,
    unwrap,
)


def test_percent_currency_and_garbage_to_number():
    assert coerce_value("42%", "number") == pytest.approx(0.42)
    assert coerce_value("$17.50", "number") == 17.5
    assert coerce_value("abc", "number") is None


def test_boolean_target_keeps_true():
    assert coerce_value(True, "boolean") is True
    assert coerce_value("yes", "boolean") is None


def test_empty_object_to_string_is_none():
    assert coerce_value({}, "string") is None
    assert coerce_value({"a": 1}, "string") == '{"a":1}'


def test_none_and_wrapped_values():
    assert coerce_value(None) is None
    assert coerce_value({"_": None}) is None
    assert coerce_value({"_": "3.5"}, "number") == 3.5
    assert unwrap({"_": "x"}) == "x"
    assert unwrap({"x": 1}) == {"x": 1}


def test_number_never_nan():
    assert coerce_value("nan", "number") is None
    assert coerce_value(float("inf"), "number") is None
    assert parse_float("1e3") == 1000.0
    assert parse_float("12abc") is None


@pytest.mark.parametrize("value, value_type", [
    ("42%", "number"),
    ("$17.50", "number"),
    ("abc", "string"),
    (True, "boolean"),
    (False, "string"),
    (3.0, "string"),
    ("2024-01-31", "date"),
])
def test_coercion_is_idempotent(value, value_type):
    once = coerce_value(value, value_type)
    assert coerce_value(once, value_type) == once


def test_inference():
    assert infer_value_type(True) == "boolean"
    assert infer_value_type(3) == "number"
    assert infer_value_type(" 2.5 ") == "number"
    assert infer_value_type("EI60") == "string"
    assert infer_value_type({"_": 7}) == "number"
    assert infer_column_type("2024-01-31") == "date"
    assert infer_column_type(date(2024, 1, 31)) == "date"
    assert infer_column_type("2024") == "number"


def test_string_rendering():
    assert coerce_value(True, "string") == "true"
    assert coerce_value(3.0, "string") == "3"
    assert coerce_value(2.5, "string") == "2.5"
