"""
Renders BLOK AST nodes back into canonical BLOK source text.

This module defines the `SourceFormatter` class, a downstream consumer of the parser
output. It walks a `Program` and emits source that the parser reads back into an equal
tree, which makes it usable both as a code formatter and as a debugging view of what
the parser understood.

Canonical layout:
    - 4-space indentation, one instruction per line
    - comma-separated fields, parameters, field values, actions and collections
    - one blank line between top-level blocks
    - empty bodies written as `{}`

Raises:
    - `TypeError`: If something other than an AST node is encountered.
    - `ValueError`: If an expression tree cannot be written without parentheses
      (a right-nested chain, or a sum under a product), since the grammar has none,
      or if a value cannot be spelled so that it lexes back to the same text.
"""

from blok.blok_ast import (
    ASTNode,
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
from blok.blok_errors import BlokSyntaxError
from blok.blok_lexer import tokenize
from blok.blok_parser import Parser

ADD_SUB = (Sum, Substraction)

OPERATOR_TEXT: dict[type, str] = {
    Sum: "+",
    Substraction: "-",
    Multiplication: "*",
    Division: "/",
    Modulo: "%",
}


class SourceFormatter:
    """Emits BLOK source from AST nodes.

    Attributes:
        lines (list[str]): Accumulated lines of emitted source.
        indent (int): Current indentation level.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.indent = 0

    def indent_str(self) -> str:
        return "    " * self.indent

    def get_output(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""

    def format(self, program: Program) -> str:
        """Formats a whole program and returns the source text."""
        self.emit(program)
        return self.get_output()

    def emit(self, node: ASTNode) -> None:
        match node:
            case Program(blocks=blocks):
                for i, block in enumerate(blocks):
                    if i:
                        self.lines.append("")
                    self.emit(block)
            case Data(name, fields):
                self.emit_members(
                    f"data {name}", [self.emit_field(f) for f in fields]
                )
            case Group(name, parameters, data_instanciations):
                params = ", ".join(self.emit_parameter(p) for p in parameters)
                self.emit_members(
                    f"group {name}({params})",
                    [self.emit_data_instanciation(d) for d in data_instanciations],
                    separator="",
                )
            case Do(name, instructions):
                self.emit_body(f"do {name}", instructions)
            case Run(actions_to_do, instructions):
                self.emit_body(f"run ({', '.join(actions_to_do)})", instructions)
            case CreateInstruction() | Declaration() | If() | Foreach() | For():
                self.emit_instruction(node)
            case _:
                raise TypeError(f"Cannot format {node!r} as a statement")

    def emit_members(
        self, header: str, members: list[str], separator: str = ","
    ) -> None:
        if not members:
            self.lines.append(f"{self.indent_str()}{header} {{}}")
            return
        self.lines.append(f"{self.indent_str()}{header} {{")
        self.indent += 1
        for i, member in enumerate(members):
            sep = separator if i < len(members) - 1 else ""
            self.lines.append(f"{self.indent_str()}{member}{sep}")
        self.indent -= 1
        self.lines.append(f"{self.indent_str()}}}")

    def emit_body(
        self, header: str, instructions: tuple[InstructionNode, ...]
    ) -> None:
        if not instructions:
            self.lines.append(f"{self.indent_str()}{header} {{}}")
            return
        self.lines.append(f"{self.indent_str()}{header} {{")
        self.indent += 1
        for instruction in instructions:
            self.emit_instruction(instruction)
        self.indent -= 1
        self.lines.append(f"{self.indent_str()}}}")

    def emit_instruction(self, node: InstructionNode) -> None:
        match node:
            case Declaration():
                declaration = self.emit_declaration(node)
                self.lines.append(f"{self.indent_str()}let {declaration}")
            case CreateInstruction(group_name, parameter_values):
                args = ", ".join(self.emit_expr(v) for v in parameter_values)
                self.lines.append(f"{self.indent_str()}create {group_name}({args})")
            case If(condition, instructions):
                self.emit_body(f"if {self.emit_expr(condition)}", instructions)
            case Foreach(values, collections, instructions):
                names = ", ".join(values)
                exprs = ", ".join(self.emit_expr(c) for c in collections)
                self.emit_body(f"foreach {names} in {exprs}", instructions)
            case For(declaration, condition, progression, instructions):
                header = (
                    f"for let {self.emit_declaration(declaration)}; "
                    f"{self.emit_expr(condition)}; {self.emit_statement(progression)}"
                )
                self.emit_body(header, instructions)
            case _:
                raise TypeError(f"Not an instruction: {node!r}")

    def emit_statement(self, node: Declaration | Expression) -> str:
        match node:
            case Declaration():
                return self.emit_declaration(node)
            case Expression(value):
                return self.emit_expr(value)
            case _:
                raise TypeError(f"Not a statement: {node!r}")

    def emit_declaration(self, node: Declaration) -> str:
        return f"{node.variable_name} = {self.emit_expr(node.value)}"

    def emit_field(self, node: Field) -> str:
        return f"{node.name}: {node.field_type}"

    def emit_parameter(self, node: Parameter) -> str:
        return f"{node.name}: {node.parameter_type}"

    def emit_field_value(self, node: FieldValue) -> str:
        return f"{node.name} = {node.value}"

    def emit_data_instanciation(self, node: DataInstanciation) -> str:
        values = ", ".join(self.emit_field_value(fv) for fv in node.field_values)
        return f"{node.data_name}({values})"

    def emit_expr(self, node: ExpressionNode) -> str:
        """Emits an expression; refuses trees that would need parentheses."""
        match node:
            case Value():
                return self.emit_value(node)
            case Sum(lhs, rhs) | Substraction(lhs, rhs):
                if isinstance(rhs, ADD_SUB):
                    raise ValueError(
                        f"Right-nested {type(node).__name__} needs parentheses"
                    )
                return self.emit_binary(node, lhs, rhs)
            case Multiplication(lhs, rhs) | Division(lhs, rhs) | Modulo(lhs, rhs):
                if isinstance(lhs, ADD_SUB) or not isinstance(rhs, Value):
                    raise ValueError(
                        f"{type(node).__name__} operand needs parentheses"
                    )
                return self.emit_binary(node, lhs, rhs)
            case _:
                raise TypeError(f"Not an expression: {node!r}")

    def emit_value(self, node: Value) -> str:
        """Emits a value so that it lexes back to the same text.

        `1.2 . 3` parses to `Value("1.2.3")`, which does not lex when written
        joined, so such values get spaces around the dot that separates the parts.
        """
        text = node.value
        if _reads_back(text, text):
            return text
        for i in reversed(range(len(text))):
            if text[i] != ".":
                continue
            spaced = f"{text[:i]} . {text[i + 1:]}".rstrip()
            if _reads_back(spaced, text):
                return spaced
        raise ValueError(f"Value {text!r} cannot be written as BLOK source")

    def emit_binary(
        self, node: ExpressionNode, lhs: ExpressionNode, rhs: ExpressionNode
    ) -> str:
        op = OPERATOR_TEXT[type(node)]
        return f"{self.emit_expr(lhs)} {op} {self.emit_expr(rhs)}"


def _reads_back(source: str, text: str) -> bool:
    """True if `source` lexes to exactly one value whose text is `text`."""
    try:
        parser = Parser(tokenize(source))
        value = parser.parse_value()
    except BlokSyntaxError:
        return False
    return value.value == text and parser.stream.end_of_input()


def format_source(program: Program) -> str:
    """Formats `program` as canonical BLOK source."""
    return SourceFormatter().format(program)
