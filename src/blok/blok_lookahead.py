"""
One-token lookahead cursor over a token list.

`TokenStream` is the only way the parser reads tokens: `peek()` looks at the next
token without consuming it and `next()` consumes it. Both return None at end of
input. An `EOF` token marks end of input as well, so token lists with or without a
trailing `EOF` behave the same.
"""

from blok.blok_constants import EOF
from blok.blok_lexer import Token


class TokenStream:
    """
    Cursor over a list of tokens with a single token of lookahead.

    Attributes:
        tokens (list[Token]): The tokens being read. Never mutated.
        position (int): Index of the next token to hand out.
    """

    def __init__(self, tokens: list[Token], position: int = 0) -> None:
        self.tokens = tokens
        self.position = position

    def peek(self) -> Token | None:
        """Returns the next token without consuming it, or None at end of input."""
        if self.position >= len(self.tokens):
            return None
        tok = self.tokens[self.position]
        return None if tok.type == EOF else tok

    def next(self) -> Token | None:
        """Consumes and returns the next token, or None at end of input."""
        tok = self.peek()
        if tok is not None:
            self.position += 1
        return tok

    def end_of_input(self) -> bool:
        return self.peek() is None

    def last(self) -> Token | None:
        """Returns the most recently consumed token, used to locate end-of-input errors."""
        return self.tokens[self.position - 1] if self.position > 0 else None
