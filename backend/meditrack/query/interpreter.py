"""Evaluates a parsed SELECT against the rows of the in-memory table."""
import re
from functools import cmp_to_key
from typing import Any, Dict, List

from .parser import Condition, SelectStatement, parse_query

Row = Dict[str, Any]


def like_to_regex(pattern: str):
    """Translate a LIKE pattern (% and _ wildcards) to a case-insensitive regex."""
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _matches(row: Row, condition: Condition) -> bool:
    value = row.get(condition.column)
    if value is None or value == "":
        return False
    if condition.operator == "=":
        return str(value).lower() == condition.value.lower()
    return like_to_regex(condition.value).fullmatch(str(value)) is not None


def _compare(a, b) -> int:
    if a == b:
        return 0
    # missing values sort last ascending, first descending
    if a is None:
        return 1
    if b is None:
        return -1
    try:
        return -1 if a < b else 1
    except TypeError:
        return -1 if str(a) < str(b) else 1


def evaluate(statement: SelectStatement, rows: List[Row]) -> List[Row]:
    """Filter, count or order, paginate, then project. Input rows are not modified."""
    matched = [row for row in rows if all(_matches(row, c) for c in statement.conditions)]

    count_item = statement.count_item
    if count_item is not None:
        return [{count_item.alias: len(matched)}]

    if statement.order is not None:
        column = statement.order.column
        matched = sorted(
            matched,
            key=cmp_to_key(lambda a, b: _compare(a.get(column), b.get(column))),
            reverse=statement.order.descending,
        )

    start = statement.offset
    matched = matched[start:] if statement.limit is None else matched[start:start + statement.limit]

    if not statement.projection:
        return [dict(row) for row in matched]
    return [
        {item.alias: row.get(item.column) if item.column else None for item in statement.projection}
        for row in matched
    ]


def run_query(text: str, rows: List[Row], fail_open: bool = False) -> List[Row]:
    return evaluate(parse_query(text, fail_open=fail_open), rows)
