"""
Condition Evaluator

Pure function deciding which branch a condition node takes:

    evaluate(node, context) -> bool

Operators:
- equals: loose (coercive) equality. 5 equals "5", True equals 1,
  "" equals 0, an absent field equals None. Saved flows rely on this,
  so it is not tightened to strict equality.
- gt / lt: numeric comparison after coercion. Two strings compare
  lexicographically. Anything that is not a number (absent field,
  "abc", a dict) makes the comparison False.
- any other operator: False (UNKNOWN_OPERATOR_RESULT). evaluate() does
  not raise; the engine records an error entry and takes the "false" edges.
"""

import math
from typing import Any, Callable, Dict, Union

from .context import ContextManager, MISSING
from .nodes import ConditionNode

UNKNOWN_OPERATOR_RESULT = False

_NAN = float("nan")


def to_number(value: Any) -> float:
    """
    Numeric coercion used by loose comparisons.

    None -> 0, bool -> 0/1, numeric strings -> their value,
    blank strings -> 0, absent or anything else -> NaN.
    """
    if value is MISSING:
        return _NAN
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return _NAN
    return _NAN


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def loose_equals(left: Any, right: Any) -> bool:
    """
    Coercive equality.

    Examples:
        >>> loose_equals(5, "5")
        True
        >>> loose_equals(MISSING, None)
        True
        >>> loose_equals(0, None)
        False
        >>> loose_equals("abc", "ABC")
        False
    """
    left_nullish = left is None or left is MISSING
    right_nullish = right is None or right is MISSING
    if left_nullish or right_nullish:
        return left_nullish and right_nullish

    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(left, bool) and isinstance(right, bool):
            return left == right
        # A boolean is compared by its numeric value
        left = to_number(left) if isinstance(left, bool) else left
        right = to_number(right) if isinstance(right, bool) else right
        return loose_equals(left, right)

    if isinstance(left, str) and isinstance(right, str):
        return left == right

    if _is_number(left) and isinstance(right, str) or isinstance(left, str) and _is_number(right):
        a, b = to_number(left), to_number(right)
        return not math.isnan(a) and a == b

    if _is_number(left) and _is_number(right):
        return float(left) == float(right)

    # Objects and arrays: identity only
    return left is right


def _compare(left: Any, right: Any, op: Callable[[Any, Any], bool]) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return op(left, right)

    a, b = to_number(left), to_number(right)
    if math.isnan(a) or math.isnan(b):
        return False
    return op(a, b)


def greater_than(left: Any, right: Any) -> bool:
    return _compare(left, right, lambda a, b: a > b)


def less_than(left: Any, right: Any) -> bool:
    return _compare(left, right, lambda a, b: a < b)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": loose_equals,
    "gt": greater_than,
    "lt": less_than,
}


def evaluate(node: ConditionNode, context: Union[ContextManager, Dict[str, Any]]) -> bool:
    """
    Evaluate a condition node against the runtime context.

    Args:
        node: Condition node ({field, operator, value} in config)
        context: ContextManager or plain dict

    Returns:
        True or False. Unknown operators return UNKNOWN_OPERATOR_RESULT.
    """
    config = node.config

    if isinstance(context, ContextManager):
        actual_value = context.lookup(config.field)
    else:
        actual_value = context.get(config.field, MISSING) if config.field is not None else MISSING

    operator = OPERATORS.get(config.operator)
    if operator is None:
        return UNKNOWN_OPERATOR_RESULT

    return bool(operator(actual_value, config.value))


def is_known_operator(operator: str) -> bool:
    return operator in OPERATORS
