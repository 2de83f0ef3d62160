"""
BLOK Language Parser

Parses BLOK tokens into a `Program` abstract syntax tree.

This module implements a hand-written recursive-descent parser with one method per
grammar non-terminal. It reads tokens through a `TokenStream` with exactly one token
of lookahead and never backtracks: every dispatch point consumes its keyword before
delegating.

Supported Constructs
--------------------
- Blocks:
    * `data NAME { field: Type, ... }`
    * `group NAME (param: Type, ...) { DataName(field = value, ...) ... }`
    * `do NAME { instructions }`
    * `run (action ...) { instructions }`

- Instructions:
    * `let NAME = expr`
    * `create GroupName(value ...)`
    * `if expr { ... }`
    * `foreach a, b in xs, ys { ... }`
    * `for let i = 0; cond; i = i + 1 { ... }`

- Expressions:
    * `+ -` over `* / %` over values, all left-associative
    * Values are symbols or two-part dotted paths (`a.b`)

Parser Behavior
---------------
- Fail-fast: the first violation raises a `BlokSyntaxError` subclass; no recovery and
  no partial tree.
- Commas between fields, parameters and data instantiations are optional, and a
  leading or trailing comma is tolerated.
- Instruction nesting deeper than `max_depth` raises `NestingTooDeep`.

Entry Points
------------
- `parse_ast(tokens)`: Parse a token list into a `Program`.
- `parse_source(source)`: Lex and parse BLOK source text.
- `Parser.parse()`: The same, on an existing parser instance.

Raises
------
BlokSyntaxError
    `UnexpectedToken`, `ExpectedInstruction`, `MissingName`, `MissingType`,
    `MissingDelimiter`, `IncompleteInput`, `NoTokens` or `NestingTooDeep`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from blok.blok_ast import (
    BlockNode,
    CreateInstruction,
    Data,
    DataInstanciation,
    Declaration,
    Division,
    Do,
    Expression,
    ExpressionNode,
    Field,
    FieldValue,
    For,
    Foreach,
    Group,
    If,
    InstructionNode,
    Modulo,
    Multiplication,
    Parameter,
    Program,
    Run,
    Substraction,
    Sum,
    Value,
)
from blok.blok_constants import TOKEN_TEXT
from blok.blok_errors import (
    BlokSyntaxError,
    ExpectedInstruction,
    IncompleteInput,
    MissingDelimiter,
    MissingName,
    MissingType,
    NestingTooDeep,
    NoTokens,
    UnexpectedToken,
)
from blok.blok_lexer import Token, tokenize
from blok.blok_lookahead import TokenStream

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 200

T = TypeVar("T")


class Parser:
    """
    BLOK Parser Class

    Transforms a list of lexical tokens into a `Program` node. Each `parse_*` method
    handles one non-terminal, consumes the tokens of that construct and returns the
    node it built.

    Attributes
    ----------
    stream : TokenStream
        One-token lookahead cursor over the input tokens.
    max_depth : int
        Maximum nesting of instruction bodies before `NestingTooDeep` is raised.
    depth : int
        Current nesting of instruction bodies.

    Raises
    ------
    BlokSyntaxError
        When an invalid construct or malformed syntax is encountered during parsing.
    """

    def __init__(self, tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.stream = TokenStream(tokens)
        self.max_depth = max_depth
        self.depth = 0

    # --- token helpers --------------------------------------------------------

    def check(self, *types: str) -> bool:
        tok = self.stream.peek()
        return tok is not None and tok.type in types

    def is_symbol(self) -> bool:
        return self.check("SYMBOL")

    def incomplete(self, message: str) -> IncompleteInput:
        """Builds an IncompleteInput located just after the last consumed token."""
        last = self.stream.last()
        if last is None:
            return IncompleteInput(message)
        return IncompleteInput(
            message, line=last.line, col=last.col + len(last.value)
        )

    def require_more(self, what: str) -> Token:
        """Peeks the next token, raising IncompleteInput if the input has ended."""
        tok = self.stream.peek()
        if tok is None:
            raise self.incomplete(f"Unexpected end of input in {what}.")
        return tok

    def expect(self, type_: str, what: str) -> Token:
        """Consumes a required delimiter token of type `type_`."""
        tok = self.stream.peek()
        text = TOKEN_TEXT.get(type_, type_)
        if tok is None:
            raise self.incomplete(f"Expected '{text}' {what}, got end of input.")
        if tok.type != type_:
            raise MissingDelimiter(
                f"Expected '{text}' {what}, got '{tok.value}'.", tok
            )
        self.stream.next()
        return tok

    def expect_symbol(self, error: type[BlokSyntaxError], message: str) -> str:
        """Consumes a required SYMBOL token and returns its text."""
        tok = self.stream.peek()
        if tok is None:
            raise self.incomplete(message)
        if tok.type != "SYMBOL":
            raise error(f"{message} Got '{tok.value}'.", tok)
        self.stream.next()
        return tok.value

    def parse_separated(
        self, close: str, parse_item: Callable[[], T], what: str
    ) -> list[T]:
        """Parses items up to `close`, skipping a single comma before each item.

        Both comma-separated and bare adjacent items are accepted, as well as a
        leading or trailing comma. Consumes the closing token.
        """
        items: list[T] = []
        while not self.check(close):
            self.require_more(what)
            if self.check("COMMA"):
                self.stream.next()
                if self.check(close):
                    break
                self.require_more(what)
            items.append(parse_item())
        self.stream.next()
        return items

    def parse_block(self, what: str) -> list[InstructionNode]:
        """Parses a `{}`-enclosed sequence of instructions."""
        self.expect("LBRACE", f"to open {what}")

        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise NestingTooDeep(
                    f"{what} is nested more than {self.max_depth} levels deep.",
                    self.stream.last(),
                )
            instructions: list[InstructionNode] = []
            while not self.check("RBRACE"):
                self.require_more(what)
                instructions.append(self.parse_instruction())
        finally:
            self.depth -= 1

        self.stream.next()
        return instructions

    # --- top level ------------------------------------------------------------

    def parse(self) -> Program:
        """Parse a full BLOK program."""
        return self.parse_program()

    def parse_program(self) -> Program:
        blocks: list[BlockNode] = []
        while self.stream.peek() is not None:
            blocks.append(self.parse_primitive_bloc())
        logger.debug("parsed %d top-level blocks", len(blocks))
        return Program(blocks)

    def parse_primitive_bloc(self) -> BlockNode:
        """Consume one block keyword and dispatch to the matching block parser."""
        tok = self.stream.next()
        if tok is None:
            raise NoTokens("No token provided.")

        logger.debug("parsing %s block at %d:%d", tok.type, tok.line, tok.col)
        if tok.type == "DATA":
            return self.parse_data()
        if tok.type == "GROUP":
            return self.parse_group()
        if tok.type == "DO":
            return self.parse_do()
        if tok.type == "RUN":
            return self.parse_run()
        raise UnexpectedToken(f"Unexpected token: {tok.value}", tok)

    def parse_data(self) -> Data:
        """Parse `NAME { field: Type, ... }` after the `data` keyword."""
        name = self.expect_symbol(MissingName, "Data structure requires a name.")
        self.expect("LBRACE", "to open data structure body")
        fields = self.parse_separated(
            "RBRACE", self.parse_field, "data structure body"
        )
        return Data(name, fields)

    def parse_group(self) -> Group:
        """Parse `NAME (params) { instantiations }` after the `group` keyword."""
        name = self.expect_symbol(MissingName, "Group requires a name.")

        self.expect("LPAREN", "to open group parameters")
        parameters = self.parse_separated(
            "RPAREN", self.parse_parameter, "group parameters"
        )

        self.expect("LBRACE", "to open group body")
        data_instanciations = self.parse_separated(
            "RBRACE", self.parse_data_instanciation, "group body"
        )
        return Group(name, parameters, data_instanciations)

    def parse_do(self) -> Do:
        name = self.expect_symbol(MissingName, "Do requires a name.")
        return Do(name, self.parse_block("do body"))

    def parse_run(self) -> Run:
        """Parse `(action ...) { instructions }` after the `run` keyword.

        Any non-symbol token inside the action list is skipped.
        """
        self.expect("LPAREN", "to open list of actions to do")

        actions_to_do: list[str] = []
        while not self.check("RPAREN"):
            tok = self.require_more("list of actions to do")
            if tok.type == "SYMBOL":
                actions_to_do.append(tok.value)
            self.stream.next()
        self.stream.next()

        return Run(actions_to_do, self.parse_block("run body"))

    # --- members --------------------------------------------------------------

    def parse_field(self) -> Field:
        name = self.expect_symbol(MissingName, "Expected name for field.")
        self.expect("COLON", f"before type of field '{name}'")
        field_type = self.expect_symbol(
            MissingType, f"Expected type for field with name: {name}."
        )
        return Field(name, field_type)

    def parse_parameter(self) -> Parameter:
        name = self.expect_symbol(MissingName, "Expected name for parameter.")
        self.expect("COLON", f"before type of parameter '{name}'")
        parameter_type = self.expect_symbol(
            MissingType, f"Expected type for parameter with name: {name}."
        )
        return Parameter(name, parameter_type)

    def parse_field_value(self) -> FieldValue:
        name = self.expect_symbol(MissingName, "Expected name of field.")
        self.expect("EQUAL", f"before value of field '{name}'")
        value = self.expect_symbol(MissingName, f"Expected value for field: {name}.")
        return FieldValue(name, value)

    def parse_data_instanciation(self) -> DataInstanciation:
        data_name = self.expect_symbol(
            MissingName, "Expected name of data structure to instanciate."
        )
        self.expect("LPAREN", "to open data instanciation values")
        field_values = self.parse_separated(
            "RPAREN", self.parse_field_value, "data instanciation values"
        )
        return DataInstanciation(data_name, field_values)

    # --- instructions ---------------------------------------------------------

    def parse_instruction(self) -> InstructionNode:
        """Dispatch on the next token without consuming it."""
        tok = self.require_more("instruction")

        if tok.type == "CREATE":
            return self.parse_create_instruction()
        if tok.type == "IF":
            return self.parse_if()
        if tok.type == "FOREACH":
            return self.parse_foreach()
        if tok.type == "FOR":
            return self.parse_for()
        if tok.type == "LET":
            return self.parse_declaration()
        raise ExpectedInstruction(f"Expected an instruction, got '{tok.value}'.", tok)

    def parse_create_instruction(self) -> CreateInstruction:
        """Parse `create GroupName(value ...)`; non-symbols between values are skipped."""
        self.stream.next()
        group_name = self.expect_symbol(
            MissingName, "Expected the name of a group to create."
        )
        self.expect("LPAREN", "to open group creation parameters")

        parameter_values: list[Value] = []
        while not self.check("RPAREN"):
            self.require_more("group creation parameters")
            if self.is_symbol():
                parameter_values.append(self.parse_value())
            else:
                self.stream.next()
        self.stream.next()

        return CreateInstruction(group_name, parameter_values)

    def parse_declaration(self) -> Declaration:
        """Parse `[let] NAME = expr`; the `let` keyword is optional."""
        if self.check("LET"):
            self.stream.next()

        variable_name = self.expect_symbol(
            MissingName, "Expected name of variable to declare."
        )
        self.expect("EQUAL", "before declaration value")
        return Declaration(variable_name, self.parse_expression())

    def parse_statement(self) -> Declaration | Expression:
        """Parse the progression clause of a `for` header.

        `let NAME = expr` and `NAME = expr` are declarations; anything else is an
        arithmetic expression wrapped in `Expression`. The first operand is parsed
        before deciding, so one token of lookahead is enough.
        """
        if self.check("LET"):
            return self.parse_declaration()

        first = self.parse_value()
        if self.check("EQUAL"):
            if TOKEN_TEXT["DOT"] in first.value:
                raise MissingName(
                    "Expected name of variable to declare. "
                    f"Got '{first.value}'.",
                    self.stream.peek(),
                )
            self.stream.next()
            return Declaration(first.value, self.parse_expression())
        return Expression(self.parse_add_sub_expression(first))

    def parse_if(self) -> If:
        self.stream.next()
        condition = self.parse_expression()
        return If(condition, self.parse_block("if body"))

    def parse_foreach(self) -> Foreach:
        """Parse `foreach a, b in xs, ys { ... }`."""
        self.stream.next()

        tok = self.require_more("foreach")
        if tok.type != "SYMBOL":
            raise UnexpectedToken(f"Unexpected token in foreach: {tok.value}.", tok)

        values: list[str] = []
        while not self.check("IN"):
            self.require_more("foreach values")
            if self.check("COMMA"):
                self.stream.next()
            values.append(
                self.expect_symbol(MissingName, "Expected a value name in foreach.")
            )
        self.stream.next()

        collections: list[ExpressionNode] = []
        while not self.check("LBRACE"):
            self.require_more("foreach collections")
            if self.check("COMMA"):
                self.stream.next()
            collections.append(self.parse_expression())

        return Foreach(values, collections, self.parse_block("foreach body"))

    def parse_for(self) -> For:
        """Parse `for decl; condition; statement { ... }`."""
        self.stream.next()

        declaration = self.parse_declaration()
        self.expect("SEMICOLON", "after for declaration")
        condition = self.parse_expression()
        self.expect("SEMICOLON", "after for condition")
        progression = self.parse_statement()

        return For(declaration, condition, progression, self.parse_block("for body"))

    # --- expressions ----------------------------------------------------------

    def parse_value(self) -> Value:
        """Parse `NAME` or `NAME.NAME`.

        A dot with no symbol after it is kept verbatim (`a.`).
        """
        tok = self.stream.peek()
        if tok is None:
            raise self.incomplete("Expected a value, got end of input.")
        if tok.type != "SYMBOL":
            raise UnexpectedToken(f"Expected a value, got '{tok.value}'.", tok)

        value = tok.value
        self.stream.next()

        if self.check("DOT"):
            value += TOKEN_TEXT["DOT"]
            self.stream.next()
            if self.is_symbol():
                value += self.stream.next().value  # type: ignore[union-attr]

        return Value(value)

    def parse_expression(self) -> ExpressionNode:
        return self.parse_add_sub_expression()

    def parse_add_sub_expression(
        self, first: ExpressionNode | None = None
    ) -> ExpressionNode:
        """Parse `MulDivMod (('+'|'-') MulDivMod)*`, optionally from an already parsed operand."""
        lhs = self.parse_mul_div_mod_expression(first)

        while self.check("PLUS", "SUB"):
            op = self.stream.next()
            rhs = self.parse_mul_div_mod_expression()
            if op.type == "PLUS":  # type: ignore[union-attr]
                lhs = Sum(lhs, rhs)
            else:
                lhs = Substraction(lhs, rhs)

        return lhs

    def parse_mul_div_mod_expression(
        self, first: ExpressionNode | None = None
    ) -> ExpressionNode:
        lhs = first if first is not None else self.parse_value()

        while self.check("MULT", "DIV", "MOD"):
            op = self.stream.next()
            rhs = self.parse_value()
            if op.type == "MULT":  # type: ignore[union-attr]
                lhs = Multiplication(lhs, rhs)
            elif op.type == "DIV":  # type: ignore[union-attr]
                lhs = Division(lhs, rhs)
            else:
                lhs = Modulo(lhs, rhs)

        return lhs


def parse_ast(tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> Program:
    """Parse a token list into a `Program`. Each call uses a fresh parser."""
    return Parser(tokens, max_depth=max_depth).parse()


def parse_source(source: str, keywords: dict[str, str] | None = None) -> Program:
    """Lex and parse BLOK source text."""
    return parse_ast(tokenize(source, keywords))


__all__ = ["DEFAULT_MAX_DEPTH", "Parser", "parse_ast", "parse_source"]
