"""SQL-subset interpreter used when the embedded engine is unavailable."""
from .interpreter import evaluate, run_query
from .parser import SelectStatement, parse_query
from .validation import validate_query

__all__ = ["evaluate", "run_query", "SelectStatement", "parse_query", "validate_query"]
