import json
import math
from typing import Any, Mapping, Optional

from codejudge.config import Config

MAX_OUTPUT_DEPTH = 100


def _nesting_depth(value: Any) -> int:
    deepest, stack = 0, [(value, 1)]
    while stack:
        item, depth = stack.pop()
        if isinstance(item, list):
            children = item
        elif isinstance(item, dict):
            children = item.values()
        else:
            continue
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in children)
    return deepest


def parse_output(text: Optional[str]) -> Any:
    """
    Parse program output as a JSON literal, falling back to the trimmed text.

    Output nested deeper than ``MAX_OUTPUT_DEPTH`` is kept as text, so later
    recursive comparison and serialization stay bounded.
    """
    if text is None:
        return None
    stripped = text.strip()
    try:
        parsed = json.loads(stripped)
    except (ValueError, RecursionError):
        return stripped
    if _nesting_depth(parsed) > MAX_OUTPUT_DEPTH:
        return stripped
    return parsed


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def numbers_equal(
    actual: Any,
    expected: Any,
    rel_tol: Optional[float] = None,
    abs_tol: Optional[float] = None,
) -> bool:
    """
    Canonical numeric equality.

    Two integers compare exactly. As soon as a float is involved the values
    are compared with ``math.isclose``, so ``1 == 1.0`` and ``0.1 + 0.2 == 0.3``.
    An integer too large for a float is never close to a float.
    """
    if isinstance(actual, int) and isinstance(expected, int):
        return actual == expected
    try:
        actual, expected = float(actual), float(expected)
    except OverflowError:
        return False
    if math.isnan(actual) or math.isnan(expected):
        return math.isnan(actual) and math.isnan(expected)
    return math.isclose(
        actual,
        expected,
        rel_tol=Config.FLOAT_REL_TOL if rel_tol is None else rel_tol,
        abs_tol=Config.FLOAT_ABS_TOL if abs_tol is None else abs_tol,
    )


def structurally_equal(actual: Any, expected: Any) -> bool:
    """
    Recursive structural equality between a program's output and the expected
    value.

    Sequences must match element by element with equal length and order.
    Mappings must have the same key set; key order is irrelevant. Booleans are
    never equal to numbers.
    """
    if isinstance(actual, (list, tuple)) and isinstance(expected, (list, tuple)):
        if len(actual) != len(expected):
            return False
        return all(structurally_equal(a, e) for a, e in zip(actual, expected))

    if isinstance(actual, Mapping) and isinstance(expected, Mapping):
        if set(actual.keys()) != set(expected.keys()):
            return False
        return all(structurally_equal(actual[key], expected[key]) for key in actual)

    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected

    if _is_number(actual) and _is_number(expected):
        return numbers_equal(actual, expected)

    if actual is None or expected is None:
        return actual is None and expected is None

    if type(actual) is not type(expected):
        return False
    return actual == expected
