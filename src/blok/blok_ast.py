"""
Defines the abstract syntax tree (AST) node variants for the BLOK language.

The AST is one closed tagged union, `ASTNode`: every variant is a frozen dataclass
with a class-level `kind` tag. Consumers dispatch with `match` over the variant
classes rather than calling methods on the nodes.

Variants:
    Top level:   Program, Data, Group, Do, Run
    Members:     Parameter, Field, FieldValue, DataInstanciation
    Instructions: Declaration, CreateInstruction, If, Foreach, For
    Expressions: Value, Sum, Substraction, Multiplication, Division, Modulo, Expression

Ownership:
    Each node owns its children. Sequences handed to a constructor are copied into
    tuples, so no two parents share a child container, and nodes cannot be mutated
    after construction. `None` is never a valid child; an empty body is `()`.

Functions:
    children(node): The direct child nodes of `node`, in source order.
    walk(node): Pre-order iterator over `node` and all of its descendants.
    to_dict(node): Nested plain-dict form, suitable for JSON output.

Example:
    >>> Data("Point", [Field("x", "Int")])
    Data(name='Point', fields=(Field(name='x', field_type='Int'),))
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from dataclasses import fields as dataclass_fields
from typing import Any, ClassVar, Union


def _own(node: Any, attr: str, allowed: tuple[type, ...]) -> None:
    """Copies a child sequence into an owned tuple and checks every element."""
    items = getattr(node, attr)
    if items is None or isinstance(items, (str, bytes)):
        raise TypeError(
            f"{type(node).__name__}.{attr} must be a sequence, got {items!r}"
        )
    owned = tuple(items)
    for item in owned:
        if not isinstance(item, allowed):
            raise TypeError(
                f"{type(node).__name__}.{attr} cannot hold {type(item).__name__}"
            )
    object.__setattr__(node, attr, owned)


def _require(node: Any, attr: str, allowed: tuple[type, ...]) -> None:
    child = getattr(node, attr)
    if not isinstance(child, allowed):
        raise TypeError(
            f"{type(node).__name__}.{attr} cannot be {type(child).__name__}"
        )


# --- Expressions -------------------------------------------------------------


@dataclass(frozen=True)
class Value:
    """An atomic operand: a bare symbol (`a`) or a dotted path (`a.b`)."""

    value: str
    kind: ClassVar[str] = "value"


@dataclass(frozen=True)
class Sum:
    lhs: ExpressionNode
    rhs: ExpressionNode
    kind: ClassVar[str] = "sum"

    def __post_init__(self) -> None:
        _require(self, "lhs", EXPRESSION_TYPES)
        _require(self, "rhs", EXPRESSION_TYPES)


@dataclass(frozen=True)
class Substraction:
    lhs: ExpressionNode
    rhs: ExpressionNode
    kind: ClassVar[str] = "substraction"

    def __post_init__(self) -> None:
        _require(self, "lhs", EXPRESSION_TYPES)
        _require(self, "rhs", EXPRESSION_TYPES)


@dataclass(frozen=True)
class Multiplication:
    lhs: ExpressionNode
    rhs: ExpressionNode
    kind: ClassVar[str] = "multiplication"

    def __post_init__(self) -> None:
        _require(self, "lhs", EXPRESSION_TYPES)
        _require(self, "rhs", EXPRESSION_TYPES)


@dataclass(frozen=True)
class Division:
    lhs: ExpressionNode
    rhs: ExpressionNode
    kind: ClassVar[str] = "division"

    def __post_init__(self) -> None:
        _require(self, "lhs", EXPRESSION_TYPES)
        _require(self, "rhs", EXPRESSION_TYPES)


@dataclass(frozen=True)
class Modulo:
    lhs: ExpressionNode
    rhs: ExpressionNode
    kind: ClassVar[str] = "modulo"

    def __post_init__(self) -> None:
        _require(self, "lhs", EXPRESSION_TYPES)
        _require(self, "rhs", EXPRESSION_TYPES)


@dataclass(frozen=True)
class Expression:
    """An arithmetic expression used as a statement (the `for` progression clause)."""

    value: ExpressionNode
    kind: ClassVar[str] = "expression"

    def __post_init__(self) -> None:
        _require(self, "value", EXPRESSION_TYPES)


# --- Members -----------------------------------------------------------------


@dataclass(frozen=True)
class Parameter:
    name: str
    parameter_type: str
    kind: ClassVar[str] = "parameter"


@dataclass(frozen=True)
class Field:
    name: str
    field_type: str
    kind: ClassVar[str] = "field"


@dataclass(frozen=True)
class FieldValue:
    name: str
    value: str
    kind: ClassVar[str] = "field_value"


@dataclass(frozen=True)
class DataInstanciation:
    data_name: str
    field_values: tuple[FieldValue, ...] = ()
    kind: ClassVar[str] = "data_instanciation"

    def __post_init__(self) -> None:
        _own(self, "field_values", (FieldValue,))


# --- Instructions ------------------------------------------------------------


@dataclass(frozen=True)
class Declaration:
    variable_name: str
    value: ExpressionNode
    kind: ClassVar[str] = "declaration"

    def __post_init__(self) -> None:
        _require(self, "value", EXPRESSION_TYPES)


@dataclass(frozen=True)
class CreateInstruction:
    group_name: str
    parameter_values: tuple[Value, ...] = ()
    kind: ClassVar[str] = "create_instruction"

    def __post_init__(self) -> None:
        _own(self, "parameter_values", (Value,))


@dataclass(frozen=True)
class If:
    condition: ExpressionNode
    instructions: tuple[InstructionNode, ...] = ()
    kind: ClassVar[str] = "if"

    def __post_init__(self) -> None:
        _require(self, "condition", EXPRESSION_TYPES)
        _own(self, "instructions", INSTRUCTION_TYPES)


@dataclass(frozen=True)
class Foreach:
    values: tuple[str, ...]
    collections: tuple[ExpressionNode, ...] = ()
    instructions: tuple[InstructionNode, ...] = ()
    kind: ClassVar[str] = "foreach"

    def __post_init__(self) -> None:
        _own(self, "values", (str,))
        _own(self, "collections", EXPRESSION_TYPES)
        _own(self, "instructions", INSTRUCTION_TYPES)


@dataclass(frozen=True)
class For:
    declaration: Declaration
    condition: ExpressionNode
    progression: Declaration | Expression
    instructions: tuple[InstructionNode, ...] = ()
    kind: ClassVar[str] = "for"

    def __post_init__(self) -> None:
        _require(self, "declaration", (Declaration,))
        _require(self, "condition", EXPRESSION_TYPES)
        _require(self, "progression", (Declaration, Expression))
        _own(self, "instructions", INSTRUCTION_TYPES)


# --- Blocks ------------------------------------------------------------------


@dataclass(frozen=True)
class Data:
    name: str
    fields: tuple[Field, ...] = ()
    kind: ClassVar[str] = "data"

    def __post_init__(self) -> None:
        _own(self, "fields", (Field,))


@dataclass(frozen=True)
class Group:
    name: str
    parameters: tuple[Parameter, ...] = ()
    data_instanciations: tuple[DataInstanciation, ...] = ()
    kind: ClassVar[str] = "group"

    def __post_init__(self) -> None:
        _own(self, "parameters", (Parameter,))
        _own(self, "data_instanciations", (DataInstanciation,))


@dataclass(frozen=True)
class Do:
    name: str
    instructions: tuple[InstructionNode, ...] = ()
    kind: ClassVar[str] = "do"

    def __post_init__(self) -> None:
        _own(self, "instructions", INSTRUCTION_TYPES)


@dataclass(frozen=True)
class Run:
    actions_to_do: tuple[str, ...] = ()
    instructions: tuple[InstructionNode, ...] = ()
    kind: ClassVar[str] = "run"

    def __post_init__(self) -> None:
        _own(self, "actions_to_do", (str,))
        _own(self, "instructions", INSTRUCTION_TYPES)


@dataclass(frozen=True)
class Program:
    blocks: tuple[BlockNode, ...] = ()
    kind: ClassVar[str] = "program"

    def __post_init__(self) -> None:
        _own(self, "blocks", BLOCK_TYPES)


ExpressionNode = Union[Value, Sum, Substraction, Multiplication, Division, Modulo]
InstructionNode = Union[CreateInstruction, If, Foreach, For, Declaration]
BlockNode = Union[Data, Group, Do, Run]

ASTNode = Union[
    Program,
    Data,
    Group,
    Do,
    Run,
    Parameter,
    Field,
    FieldValue,
    Value,
    Expression,
    Declaration,
    DataInstanciation,
    CreateInstruction,
    Sum,
    Substraction,
    Multiplication,
    Division,
    Modulo,
    If,
    Foreach,
    For,
]

EXPRESSION_TYPES: tuple[type, ...] = (
    Value,
    Sum,
    Substraction,
    Multiplication,
    Division,
    Modulo,
)
INSTRUCTION_TYPES: tuple[type, ...] = (CreateInstruction, If, Foreach, For, Declaration)
BLOCK_TYPES: tuple[type, ...] = (Data, Group, Do, Run)
NODE_TYPES: tuple[type, ...] = (
    BLOCK_TYPES
    + INSTRUCTION_TYPES
    + EXPRESSION_TYPES
    + (Program, Parameter, Field, FieldValue, Expression, DataInstanciation)
)

# Plain-dict form produced by `to_dict`: {"kind": ..., <attribute>: ...}.
ASTDict = dict[str, Any]


def children(node: ASTNode) -> tuple[ASTNode, ...]:
    """Returns the direct child nodes of `node` in source order.

    Name sets (`Run.actions_to_do`, `Foreach.values`) are strings, not nodes, and are
    not included.
    """
    match node:
        case Program(blocks=blocks):
            return blocks
        case Data(fields=data_fields):
            return data_fields
        case Group(parameters=parameters, data_instanciations=instanciations):
            return parameters + instanciations
        case Do(instructions=instructions) | Run(instructions=instructions):
            return instructions
        case DataInstanciation(field_values=field_values):
            return field_values
        case CreateInstruction(parameter_values=parameter_values):
            return parameter_values
        case Declaration(value=value) | Expression(value=value):
            return (value,)
        case (
            Sum(lhs, rhs)
            | Substraction(lhs, rhs)
            | Multiplication(lhs, rhs)
            | Division(lhs, rhs)
            | Modulo(lhs, rhs)
        ):
            return (lhs, rhs)
        case If(condition=condition, instructions=instructions):
            return (condition,) + instructions
        case Foreach(collections=collections, instructions=instructions):
            return collections + instructions
        case For(declaration, condition, progression, instructions):
            return (declaration, condition, progression) + instructions
        case Parameter() | Field() | FieldValue() | Value():
            return ()
        case _:
            raise TypeError(f"Not an AST node: {node!r}")


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Yields `node` and every descendant in pre-order."""
    stack: list[ASTNode] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def _to_plain(value: Any) -> Any:
    if isinstance(value, NODE_TYPES):
        return to_dict(value)
    if isinstance(value, tuple):
        return [_to_plain(v) for v in value]
    return value


def to_dict(node: ASTNode) -> ASTDict:
    """Converts `node` and all descendants into nested dicts and lists."""
    if not isinstance(node, NODE_TYPES):
        raise TypeError(f"Not an AST node: {node!r}")
    result: ASTDict = {"kind": node.kind}
    for f in dataclass_fields(node):
        result[f.name] = _to_plain(getattr(node, f.name))
    return result


def count_nodes(nodes: Iterable[ASTNode]) -> int:
    return sum(1 for node in nodes for _ in walk(node))
