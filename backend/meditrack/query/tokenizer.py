"""Splits query text into tokens for the in-memory interpreter."""
import re
from dataclasses import dataclass
from typing import List

from ..exceptions import QuerySyntaxError

WORD = "word"
NUMBER = "number"
STRING = "string"
SYMBOL = "symbol"
END = "end"

_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"\d+")
_SYMBOLS = "*,()=;<>!.+-/%"


@dataclass
class Token:
    kind: str
    value: str
    position: int
    quoted: bool = False

    def is_word(self, *words: str) -> bool:
        return self.kind == WORD and not self.quoted and self.value.lower() in words

    def is_symbol(self, symbol: str) -> bool:
        return self.kind == SYMBOL and self.value == symbol


def tokenize(text: str) -> List[Token]:
    """Words, integers, single-quoted strings ('' escapes a quote) and symbols.

    Double-quoted names are read as words and comments are skipped. The list
    always ends with an END token.
    """
    tokens: List[Token] = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if text.startswith("--", i):
            end = text.find("\n", i)
            i = length if end < 0 else end + 1
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end < 0 else end + 2
            continue
        if ch == "'" or ch == '"':
            start = i
            i += 1
            chars = []
            while True:
                if i >= length:
                    raise QuerySyntaxError(f"Unterminated quoted text at position {start}")
                if text[i] == ch:
                    if i + 1 < length and text[i + 1] == ch:
                        chars.append(ch)
                        i += 2
                        continue
                    i += 1
                    break
                chars.append(text[i])
                i += 1
            tokens.append(Token(STRING if ch == "'" else WORD, "".join(chars), start, quoted=True))
            continue
        match = _WORD_RE.match(text, i)
        if match:
            tokens.append(Token(WORD, match.group(), i))
            i = match.end()
            continue
        match = _NUMBER_RE.match(text, i)
        if match:
            tokens.append(Token(NUMBER, match.group(), i))
            i = match.end()
            continue
        if ch in _SYMBOLS:
            tokens.append(Token(SYMBOL, ch, i))
            i += 1
            continue
        raise QuerySyntaxError(f"Unexpected character {ch!r} at position {i}")
    tokens.append(Token(END, "", length))
    return tokens
