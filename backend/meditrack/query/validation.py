"""Checks applied to every query before it reaches either backend."""
import re

from ..exceptions import (
    DestructiveQueryError, EmptyQueryError, MissingFromClauseError, QuerySyntaxError,
    TableNotFoundError, UnsupportedQueryError
)
from ..models.patient import TABLE_NAME

#quoted text is matched first so comment markers inside literals are left alone
COMMENT_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|/\*.*?(?:\*/|\Z)|--[^\n]*", re.DOTALL)
DESTRUCTIVE_RE = re.compile(r"\b(drop\s+table|delete\s+from|truncate)\b", re.IGNORECASE)
SELECT_RE = re.compile(r"^select\b", re.IGNORECASE)
FROM_TABLE_RE = re.compile(r"\bfrom\s+\"?(\w+)", re.IGNORECASE)


def strip_comments(query: str) -> str:
    """Replace ``/* */`` and ``--`` comments with a space, keeping quoted text."""
    def _replace(match):
        text = match.group()
        return text if text[0] in "'\"" else " "

    return COMMENT_RE.sub(_replace, query)


def validate_query(text) -> str:
    """Return the stripped query text or raise a QuerySyntaxError."""
    if not isinstance(text, str):
        raise QuerySyntaxError("Query must be a string")
    query = text.strip()
    if not query:
        raise EmptyQueryError()
    bare = strip_comments(query).strip()
    if DESTRUCTIVE_RE.search(bare):
        raise DestructiveQueryError()
    if not SELECT_RE.match(bare):
        raise UnsupportedQueryError("Only SELECT queries are supported")
    match = FROM_TABLE_RE.search(bare)
    if not match:
        raise MissingFromClauseError()
    table = match.group(1).lower()
    if table != TABLE_NAME:
        raise TableNotFoundError(table)
    return query
