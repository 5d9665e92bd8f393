"""
query.parser
~~~~~~~~~~~~

Recursive-descent parser for the SELECT subset the in-memory backend can
answer::

    SELECT projection FROM patients
        [WHERE condition [AND condition ...]]
        [ORDER BY column | alias [ASC | DESC]]
        [LIMIT n] [OFFSET n] [;]

    projection := * | item [, item ...]
    item       := COUNT(*) [AS alias] | column [AS alias]
    condition  := gender = 'v' | first_name = 'v' | column [I]LIKE 'pattern'

In fail-open mode unrecognised conditions and clauses are skipped instead
of raising, and unknown columns are carried through (they evaluate to None).
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import (
    MissingFromClauseError, TableNotFoundError, UnknownColumnError, UnsupportedQueryError
)
from ..models.patient import PATIENT_COLUMNS, TABLE_NAME
from .tokenizer import END, NUMBER, STRING, WORD, Token, tokenize

EQUALITY_COLUMNS = ("gender", "first_name")
CLAUSE_KEYWORDS = ("where", "order", "limit", "offset")
COUNT_KEY = "count"


@dataclass
class ProjectionItem:
    expression: str
    alias: str
    column: Optional[str] = None
    is_count: bool = False


@dataclass
class Condition:
    column: str
    operator: str  # "=" or "like"
    value: str


@dataclass
class OrderSpec:
    column: str
    descending: bool = False


@dataclass
class SelectStatement:
    table: str
    projection: List[ProjectionItem] = field(default_factory=list)  # empty means *
    conditions: List[Condition] = field(default_factory=list)
    order: Optional[OrderSpec] = None
    limit: Optional[int] = None
    offset: int = 0

    @property
    def count_item(self) -> Optional[ProjectionItem]:
        for item in self.projection:
            if item.is_count:
                return item
        return None


class Parser:
    def __init__(self, text: str, fail_open: bool = False):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0
        self.fail_open = fail_open

    # token helpers

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != END:
            self.pos += 1
        return token

    def at_end(self) -> bool:
        return self.peek().kind == END

    def _unsupported(self, message: str) -> None:
        if not self.fail_open:
            raise UnsupportedQueryError(message)

    def _near(self, token: Token) -> str:
        return self.text[token.position:token.position + 20].strip() or "end of query"

    def _column(self, name: str) -> str:
        column = name.lower()
        if column not in PATIENT_COLUMNS and not self.fail_open:
            raise UnknownColumnError(column)
        return column

    def _skip_to(self, *stop_words: str) -> None:
        while not self.at_end() and not self.peek().is_word(*stop_words) and not self.peek().is_symbol(";"):
            self.advance()

    # grammar

    def parse(self) -> SelectStatement:
        if not self.peek().is_word("select"):
            raise UnsupportedQueryError(
                "Only SELECT queries can run without the database engine"
            )
        self.advance()
        projection = self.parse_projection()
        if not self.peek().is_word("from"):
            raise MissingFromClauseError()
        self.advance()
        table = self.advance()
        if table.kind != WORD:
            raise MissingFromClauseError()
        if table.value.lower() != TABLE_NAME:
            raise TableNotFoundError(table.value.lower())
        statement = SelectStatement(table=TABLE_NAME, projection=projection)
        self.parse_clauses(statement)
        if statement.count_item and len(statement.projection) > 1:
            self._unsupported("COUNT(*) cannot be combined with other columns without GROUP BY")
        return statement

    def parse_projection(self) -> List[ProjectionItem]:
        if self.peek().is_symbol("*"):
            self.advance()
            return []
        items = [self.parse_projection_item()]
        while self.peek().is_symbol(","):
            self.advance()
            items.append(self.parse_projection_item())
        return items

    def parse_projection_item(self) -> ProjectionItem:
        start = self.peek()
        if (start.is_word("count") and self.peek(1).is_symbol("(")
                and self.peek(2).is_symbol("*") and self.peek(3).is_symbol(")")):
            self.pos += 4
            item = ProjectionItem(expression="count(*)", alias=COUNT_KEY, is_count=True)
        elif start.kind == WORD and self._ends_item(self.peek(1)):
            self.advance()
            column = self._column(start.value)
            item = ProjectionItem(expression=column, alias=column, column=column)
        else:
            self._unsupported(f"Unsupported select expression near '{self._near(start)}'")
            # keep the raw text as the output key; its value is always None
            depth = 0
            while not self.at_end():
                token = self.peek()
                if depth == 0 and (token.is_symbol(",") or token.is_word("from", "as")):
                    break
                if token.is_symbol("("):
                    depth += 1
                elif token.is_symbol(")"):
                    depth -= 1
                self.advance()
            expression = self.text[start.position:self.peek().position].strip().lower()
            item = ProjectionItem(expression=expression, alias=expression)
        if self.peek().is_word("as"):
            self.advance()
            alias = self.advance()
            if alias.kind != WORD:
                raise UnsupportedQueryError(f"Expected an alias after AS near '{self._near(alias)}'")
            item.alias = alias.value if alias.quoted else alias.value.lower()
        return item

    @staticmethod
    def _ends_item(token: Token) -> bool:
        return token.is_symbol(",") or token.is_word("from", "as")

    def parse_clauses(self, statement: SelectStatement) -> None:
        seen = set()
        while not self.at_end():
            token = self.peek()
            keyword = token.value.lower() if token.kind == WORD and not token.quoted else None
            if token.is_symbol(";"):
                self.advance()
                if not self.at_end():
                    self._unsupported("Only one statement can be run at a time")
                    return
                continue
            if keyword in CLAUSE_KEYWORDS and keyword not in seen:
                seen.add(keyword)
                self.advance()
                if keyword == "where":
                    statement.conditions = self.parse_predicate()
                elif keyword == "order":
                    statement.order = self.parse_order(statement.projection)
                elif keyword == "limit":
                    statement.limit = self.parse_count_value("LIMIT", statement.limit)
                else:
                    statement.offset = self.parse_count_value("OFFSET", statement.offset)
                continue
            self._unsupported(f"Unsupported clause near '{self._near(token)}'")
            self.advance()
            self._skip_to(*CLAUSE_KEYWORDS)

    def parse_predicate(self) -> List[Condition]:
        conditions = []
        condition = self.parse_condition()
        if condition is not None:
            conditions.append(condition)
        while self.peek().is_word("and"):
            self.advance()
            condition = self.parse_condition()
            if condition is not None:
                conditions.append(condition)
        return conditions

    def parse_condition(self) -> Optional[Condition]:
        name, operator, value = self.peek(), self.peek(1), self.peek(2)
        if name.kind == WORD and value.kind == STRING:
            column = name.value.lower()
            if operator.is_symbol("=") and column in EQUALITY_COLUMNS:
                self.pos += 3
                return Condition(column, "=", value.value)
            if operator.is_word("like", "ilike"):
                self.pos += 3
                return Condition(self._column(name.value), "like", value.value)
        self._unsupported(f"Unsupported condition near '{self._near(name)}'")
        self._skip_to("and", *CLAUSE_KEYWORDS)
        return None

    def parse_order(self, projection: List[ProjectionItem]) -> Optional[OrderSpec]:
        if not self.peek().is_word("by"):
            self._unsupported("Expected BY after ORDER")
            return None
        self.advance()
        column = self.peek()
        if column.kind != WORD:
            self._unsupported(f"Unsupported ORDER BY expression near '{self._near(column)}'")
            return None
        self.advance()
        # output aliases win over source columns of the same name
        aliased = self._aliased_item(column, projection)
        if aliased is not None:
            source = aliased.column
        else:
            source = self._column(column.value)
        descending = False
        if self.peek().is_word("asc", "desc"):
            descending = self.advance().value.lower() == "desc"
        # COUNT(*) and unknown expressions give no usable sort key
        return OrderSpec(source, descending) if source else None

    @staticmethod
    def _aliased_item(token: Token, projection: List[ProjectionItem]) -> Optional[ProjectionItem]:
        name = token.value if token.quoted else token.value.lower()
        for item in projection:
            if item.alias == name or (not token.quoted and item.alias.lower() == name):
                return item
        return None

    def parse_count_value(self, clause: str, current):
        token = self.peek()
        if token.kind != NUMBER:
            self._unsupported(f"{clause} expects a whole number")
            return current
        self.advance()
        return int(token.value)


def parse_query(text: str, fail_open: bool = False) -> SelectStatement:
    return Parser(text, fail_open=fail_open).parse()
