"""
Lexical analyzer for the BLOK language.

This module converts raw source text into the flat token list consumed by the parser:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    tokenize: Lex a whole source string into a list of tokens (without the final EOF).

Features:
    - Skips whitespace and single-line comments (`#`)
    - Recognizes:
        * Keywords (`data`, `group`, `do`, `run`, `if`, `foreach`, `for`, `in`, `let`, `create`),
          or any alias configured through a keyword table
        * Identifiers, numbers and quoted strings, all emitted as `SYMBOL` tokens
          carrying their raw text
        * Punctuation `{ } ( ) , : = . ;` and operators `+ - * / %`

Raises:
    LexError: On malformed numbers, unterminated strings, or unknown characters.

Example:
    >>> tokenize("data Point { x: Int }")[:2]
    [Token(DATA, data), Token(SYMBOL, Point)]
"""

import logging
from typing import Any

from blok.blok_constants import CANONICAL_KEYWORD_MAP, EOF, token_hashmap
from blok.blok_errors import LexError

logger = logging.getLogger(__name__)


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            LexError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise LexError(
                f"Attempted to read past end of source at position {self.position}",
                line=self.line,
                col=self.column,
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the BLOK language.

    Attributes:
        type (str): The canonical token type (e.g. 'SYMBOL', 'LBRACE', 'EOF').
        value (str): The raw string value associated with the token.
        line (int): The 1-based line number where the token appears (0 if synthetic).
        col (int): The 1-based column number where the token starts (0 if synthetic).
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for the BLOK language.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        keywords (dict[str, str]): Word → keyword token type. Defaults to the
            canonical lowercase keywords.
    """

    def __init__(
        self, stream: CharacterStream, keywords: dict[str, str] | None = None
    ) -> None:
        self.stream = stream
        self.keywords = keywords if keywords is not None else CANONICAL_KEYWORD_MAP

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek() in " \t\r\n":
                self.advance()
            elif self.peek() == "#":
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an `EOF` token once the source is exhausted.

        Raises:
            LexError: If a malformed token is encountered.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return Token(EOF, EOF, self.stream.line, self.stream.column)

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        # 1. Identifier or keyword
        if ch.isalpha() or ch == "_":
            ident = ""
            while not self.stream.end_of_file() and (
                self.peek().isalnum() or self.peek() == "_"
            ):
                ident += self.advance()
            if ident in self.keywords:
                return Token(self.keywords[ident], ident, line, col)
            return Token("SYMBOL", ident, line, col)

        # 2. Number, kept as raw text
        if ch.isdigit():
            num = ""
            has_dot = False
            while not self.stream.end_of_file() and (
                self.peek().isdigit()
                or (self.peek() == "." and self.stream.peek(1).isdigit())
            ):
                if self.peek() == ".":
                    if has_dot:
                        raise LexError(
                            f"Invalid number format at line {line}, col {col}",
                            line=line,
                            col=col,
                        )
                    has_dot = True
                num += self.advance()
            return Token("SYMBOL", num, line, col)

        # 3. String, quotes included in the raw text
        if ch in ('"', "'"):
            quote = self.advance()
            val = quote
            while not self.stream.end_of_file() and self.peek() != quote:
                if self.peek() == "\\":
                    val += self.advance()
                    if not self.stream.end_of_file():
                        val += self.advance()
                else:
                    val += self.advance()
            if self.peek() == quote:
                val += self.advance()
                return Token("SYMBOL", val, line, col)
            raise LexError(
                f"Unterminated string at line {line}, col {col}", line=line, col=col
            )

        # 4. Punctuation or operator
        if ch in token_hashmap:
            self.advance()
            return Token(token_hashmap[ch], ch, line, col)

        raise LexError(
            f"Unexpected character {ch!r} at line {line}, col {col}",
            line=line,
            col=col,
        )


def tokenize(source: str, keywords: dict[str, str] | None = None) -> list[Token]:
    """Lexes `source` into a list of tokens, excluding the terminating EOF token."""
    lexer = Lexer(CharacterStream(source), keywords)
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        if tok.type == EOF:
            break
        tokens.append(tok)
    logger.debug("tokenized %d characters into %d tokens", len(source), len(tokens))
    return tokens


__all__ = ["CharacterStream", "Lexer", "Token", "token_hashmap", "tokenize"]
