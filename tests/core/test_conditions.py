"""
Unit Tests for the Condition Evaluator

Tests cover:
- Loose equality truth table
- Numeric and string comparison for gt/lt
- Absent fields
- Unknown operators
"""

import pytest

from nexus_flows.core.conditions import (
    UNKNOWN_OPERATOR_RESULT,
    evaluate,
    greater_than,
    less_than,
    loose_equals,
    to_number,
)
from nexus_flows.core.context import ContextManager, MISSING
from nexus_flows.core.nodes import create_node_from_dict


def make_condition(field, operator, value):
    return create_node_from_dict({
        "id": "cond",
        "type": "condition",
        "config": {"field": field, "operator": operator, "value": value},
    })


# ============================================================================
# LOOSE EQUALITY
# ============================================================================

@pytest.mark.unit
@pytest.mark.parametrize("left,right,expected", [
    (5, "5", True),
    ("5", 5, True),
    (1.0, 1, True),
    (" 5 ", 5, True),
    (True, 1, True),
    (True, "1", True),
    (False, "0", True),
    (True, "true", False),
    ("", 0, True),
    (0, "", True),
    ("abc", "abc", True),
    ("abc", "ABC", False),
    ("abc", 0, False),
    (None, None, True),
    (MISSING, None, True),
    (0, None, False),
    ("", None, False),
    (False, None, False),
    (MISSING, 0, False),
])
def test_loose_equals_truth_table(left, right, expected):
    assert loose_equals(left, right) is expected


@pytest.mark.unit
def test_loose_equals_objects_compare_by_identity():
    data = {"a": 1}
    assert loose_equals(data, data) is True
    assert loose_equals({"a": 1}, {"a": 1}) is False
    assert loose_equals([1], [1]) is False


@pytest.mark.unit
def test_to_number_coercion():
    assert to_number(None) == 0
    assert to_number(True) == 1
    assert to_number("  ") == 0
    assert to_number("12.5") == 12.5
    assert to_number("abc") != to_number("abc")  # NaN
    assert to_number(MISSING) != to_number(MISSING)


# ============================================================================
# GT / LT
# ============================================================================

@pytest.mark.unit
@pytest.mark.parametrize("left,right,expected", [
    (150, 100, True),
    (100, 100, False),
    (50, 100, False),
    ("150", 100, True),
    ("abc", 100, False),
    (MISSING, 100, False),
    (None, -1, True),
    ("b", "a", True),
    ("10", "9", False),  # two strings: lexicographic
    ({"qty": 1}, 0, False),
])
def test_greater_than(left, right, expected):
    assert greater_than(left, right) is expected


@pytest.mark.unit
@pytest.mark.parametrize("left,right,expected", [
    (50, 100, True),
    (100, 100, False),
    ("50", 100, True),
    (MISSING, 100, False),
    ("a", "b", True),
])
def test_less_than(left, right, expected):
    assert less_than(left, right) is expected


# ============================================================================
# EVALUATE
# ============================================================================

@pytest.mark.unit
def test_evaluate_gt_true_and_false():
    node = make_condition("qty", "gt", 100)
    assert evaluate(node, ContextManager({"qty": 150})) is True
    assert evaluate(node, ContextManager({"qty": 50})) is False


@pytest.mark.unit
def test_evaluate_equals_is_loose():
    node = make_condition("status", "equals", "5")
    assert evaluate(node, ContextManager({"status": 5})) is True


@pytest.mark.unit
def test_evaluate_absent_field_is_not_an_error():
    assert evaluate(make_condition("qty", "gt", 100), ContextManager({})) is False
    assert evaluate(make_condition("qty", "lt", 100), ContextManager({})) is False
    assert evaluate(make_condition("qty", "equals", None), ContextManager({})) is True


@pytest.mark.unit
def test_evaluate_accepts_plain_dict():
    node = make_condition("qty", "lt", 10)
    assert evaluate(node, {"qty": 3}) is True


@pytest.mark.unit
@pytest.mark.parametrize("operator", ["contains", "gte", "", None])
def test_unknown_operator_evaluates_to_constant(operator):
    node = make_condition("qty", operator, 1)
    assert UNKNOWN_OPERATOR_RESULT is False
    assert evaluate(node, ContextManager({"qty": 1})) is UNKNOWN_OPERATOR_RESULT


@pytest.mark.unit
def test_evaluate_has_no_side_effects():
    context = ContextManager({"qty": 150})
    evaluate(make_condition("qty", "gt", 100), context)
    assert context.get_all() == {"qty": 150}
