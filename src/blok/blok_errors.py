"""
Error types raised while lexing and parsing BLOK source.

The parser is fail-fast: the first grammar violation raises one of the
`BlokSyntaxError` subclasses below and no partial tree is returned. Every error
carries its taxonomy tag (`kind`), the offending token (or None at end of input)
and, when the token has one, its source position.

Classes:
    BlokSyntaxError: Base class, a `SyntaxError` carrying kind/token/line/col.
    LexError: Malformed source text (unterminated string, stray character).
    UnexpectedToken / ExpectedInstruction: A different token was required.
    MissingName / MissingType / MissingDelimiter: A required piece is absent.
    IncompleteInput / NoTokens: Input ended while a construct was open.
    NestingTooDeep: Instruction bodies nested past the parser's depth limit.
    MappingError: Invalid keyword alias configuration.
    ErrorContext: File/line/column/snippet formatting for diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blok.blok_lexer import Token


@dataclass
class ErrorContext:
    """
    Source location attached to an error for display.

    Attributes:
        file: Name of the source (a path, or "<string>" for inline code).
        line: Line number (1-indexed).
        column: Column number (1-indexed).
        snippet: Optional source lines around the error, starting 2 lines before it.
    """

    file: str
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """Formats the context as `file:line:col`, followed by the snippet if any."""
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        if not self.snippet:
            return ""

        formatted = []
        start_line = max(1, self.line - 2)
        for i, text in enumerate(self.snippet.split("\n")):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + text)
            if line_num == self.line:
                formatted.append(" " * (len(prefix) + self.column - 1) + "^^^")
        return "\n".join(formatted)

    @classmethod
    def from_source(
        cls, file: str, source: str, line: int, column: int
    ) -> "ErrorContext":
        """Builds a context whose snippet is cut from `source` around `line`."""
        lines = source.split("\n")
        start = max(1, line - 2)
        end = min(len(lines), line + 2)
        snippet = "\n".join(lines[start - 1 : end])
        return cls(file=file, line=line, column=column, snippet=snippet)


class BlokSyntaxError(SyntaxError):
    """
    Base class for every syntactic error in BLOK.

    Args:
        message: Human-readable description of the violation.
        token: The offending token, or None when the input ended.

    Attributes:
        kind (str): Taxonomy tag, identical to the class name.
        message (str): The description passed in.
        token (Token | None): The offending token.
        line (int): Line of the offending token (0 if unknown).
        col (int): Column of the offending token (0 if unknown).
        context (ErrorContext | None): Display context set by `with_context`.
    """

    kind = "BlokSyntaxError"

    def __init__(
        self,
        message: str,
        token: Token | None = None,
        line: int | None = None,
        col: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.token = token
        self.line = line if line is not None else (token.line if token else 0)
        self.col = col if col is not None else (token.col if token else 0)
        self.context: ErrorContext | None = None

    def __str__(self) -> str:
        if self.context:
            return f"{self.context.format()}\n{self.kind}: {self.message}"
        return self.message

    def with_context(self, file: str, source: str) -> "BlokSyntaxError":
        """Attaches an `ErrorContext` pointing at this error's position and returns self."""
        if self.line:
            self.context = ErrorContext.from_source(
                file, source, self.line, self.col or 1
            )
        else:
            self.context = ErrorContext(file=file, line=0, column=0)
        return self


class LexError(BlokSyntaxError):
    kind = "LexError"


class UnexpectedToken(BlokSyntaxError):
    kind = "UnexpectedToken"


class ExpectedInstruction(UnexpectedToken):
    kind = "ExpectedInstruction"


class MissingName(BlokSyntaxError):
    kind = "MissingName"


class MissingType(BlokSyntaxError):
    kind = "MissingType"


class MissingDelimiter(BlokSyntaxError):
    kind = "MissingDelimiter"


class IncompleteInput(BlokSyntaxError):
    kind = "IncompleteInput"


class NoTokens(IncompleteInput):
    kind = "NoTokens"


class NestingTooDeep(BlokSyntaxError):
    kind = "NestingTooDeep"


class MappingError(Exception):
    """Raised when a keyword alias configuration is invalid or conflicting.

    Attributes:
        conflicts (list[str]): Descriptions of each conflicting alias.
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


__all__ = [
    "BlokSyntaxError",
    "ErrorContext",
    "ExpectedInstruction",
    "IncompleteInput",
    "LexError",
    "MappingError",
    "MissingDelimiter",
    "MissingName",
    "MissingType",
    "NestingTooDeep",
    "NoTokens",
    "UnexpectedToken",
]
