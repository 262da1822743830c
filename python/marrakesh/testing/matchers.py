"""Assertion logic comparing model outputs against expectations.

Comparisons follow JSON semantics: `bool` is never equal to a number, `1 == 1.0`,
tuples compare like lists and pydantic models are compared through their dump.
"""
import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from ..errors import MatchError
from ..utils import to_jsonable


def match(actual: Any, expected: Any) -> bool:
    """Strict deep equality. Never raises: malformed inputs are a non-match."""
    try:
        return _deep_equal(actual, expected)
    except Exception:
        return False


def match_partial(actual: Any, expected: Any) -> bool:
    """Subset matching: `actual` must contain everything in `expected`.

    - Objects: every expected key must be present and partially match. Extra keys are ignored.
    - Arrays: every expected element needs its own matching element in `actual`, in any order.
    - Anything else: strict equality.
    """
    try:
        return _partial_equal(actual, expected)
    except Exception:
        return False


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) # noqa: UP038


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) # noqa: UP038


def _deep_equal(a: Any, b: Any) -> bool:
    a, b = _normalize(a), _normalize(b)

    if a is None or b is None:
        return a is None and b is None

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if _is_number(a) or _is_number(b):
        return _is_number(a) and _is_number(b) and a == b

    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b

    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if set(a.keys()) != set(b.keys()):
            return False
        return all(_deep_equal(a[key], b[key]) for key in a)

    if _is_sequence(a) or _is_sequence(b):
        if not (_is_sequence(a) and _is_sequence(b)) or len(a) != len(b):
            return False
        return all(_deep_equal(x, y) for x, y in zip(a, b, strict=True))

    if isinstance(a, re.Pattern) and isinstance(b, re.Pattern):
        return a.pattern == b.pattern and a.flags == b.flags

    if type(a) is not type(b):
        return False
    return a == b


def _partial_equal(actual: Any, expected: Any) -> bool:
    actual, expected = _normalize(actual), _normalize(expected)

    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            return False
        for key, expected_value in expected.items():
            if key not in actual:
                return False
            if not _partial_equal(actual[key], expected_value):
                return False
        return True

    if _is_sequence(expected):
        if not _is_sequence(actual):
            return False
        candidates = [
            [j for j, actual_item in enumerate(actual) if _partial_equal(actual_item, expected_item)]
            for expected_item in expected
        ]
        return _has_complete_assignment(candidates, len(actual))

    return _deep_equal(actual, expected)


def _has_complete_assignment(candidates: list[list[int]], n_actual: int) -> bool:
    """Whether each expected element can be paired with a distinct actual element.

    Bipartite matching by augmenting paths (Kuhn's algorithm).
    """
    if len(candidates) > n_actual:
        return False
    owner: list[int | None] = [None] * n_actual

    def assign(i: int, visited: set[int]) -> bool:
        for j in candidates[i]:
            if j in visited:
                continue
            visited.add(j)
            if owner[j] is None or assign(owner[j], visited):
                owner[j] = i
                return True
        return False

    return all(assign(i, set()) for i in range(len(candidates)))


def _to_json(value: Any) -> str:
    return json.dumps(to_jsonable(_normalize(value)), indent=2, ensure_ascii=False)


def format_diff(expected: Any, actual: Any) -> str:
    """Human readable diff between an expected and an actual value."""
    expected_str = _to_json(expected)
    actual_str = _to_json(actual)
    if expected_str == actual_str:
        return "Values are equal"
    return f"Expected:\n{expected_str}\n\nActual:\n{actual_str}"


def create_match_error(expected: Any, actual: Any, context: str | None = None) -> MatchError:
    """Build a MatchError carrying both values and their diff."""
    diff = format_diff(expected, actual)
    message = f"{context}\n\n{diff}" if context else f"Assertion failed\n\n{diff}"
    return MatchError(message, expected=expected, actual=actual)
