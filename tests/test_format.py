import pytest
from hypothesis import given
from hypothesis import strategies as st

from blok.blok_ast import (
    CreateInstruction,
    Declaration,
    Do,
    Expression,
    Field,
    For,
    Multiplication,
    Program,
    Substraction,
    Sum,
    Value,
)
from blok.blok_constants import CANONICAL_KEYWORD_MAP
from blok.blok_format import SourceFormatter, format_source
from blok.blok_parser import parse_source

SAMPLE = """
data Person { name: Str, age: Int }
data Empty {}
group Team(leader: Person, size: Int) {
    Person(name = leader, age = 30)
    Badge(id = size, level = "gold")
}
do Main {
    let total = price * qty + tax % 3 - discount
    create Team(alice, bob.team)
    if total - limit {
        foreach p, q in people, others + more {
            create Badge(p)
        }
    }
    for let i = 0; n - i; i = i + 1 {
        let x = x / 2
    }
    for i = 0; i; step {}
}
run (start, stop) {
    create Team()
}
"""


def test_format_simple_program() -> None:
    program = parse_source("data Point { x: Int, y: Int } do Main { let p = a + b }")
    assert format_source(program) == (
        "data Point {\n"
        "    x: Int,\n"
        "    y: Int\n"
        "}\n"
        "\n"
        "do Main {\n"
        "    let p = a + b\n"
        "}\n"
    )


def test_format_empty_program() -> None:
    assert format_source(Program()) == ""


def test_format_empty_bodies() -> None:
    program = parse_source("data D {} group G() {} do M {} run () {}")
    assert format_source(program) == (
        "data D {}\n\ngroup G() {}\n\ndo M {}\n\nrun () {}\n"
    )


def test_format_group_members_on_separate_lines() -> None:
    program = parse_source("group G(a: A, b: B) { D(x = a, y = b), E() }")
    assert format_source(program) == (
        "group G(a: A, b: B) {\n"
        "    D(x = a, y = b)\n"
        "    E()\n"
        "}\n"
    )


def test_format_for_header() -> None:
    program = Program(
        [
            Do(
                "M",
                [
                    For(
                        Declaration("i", Value("0")),
                        Value("i"),
                        Expression(Sum(Value("i"), Value("1"))),
                        [CreateInstruction("G", [Value("i")])],
                    )
                ],
            )
        ]
    )
    assert format_source(program) == (
        "do M {\n"
        "    for let i = 0; i; i + 1 {\n"
        "        create G(i)\n"
        "    }\n"
        "}\n"
    )


def test_format_then_parse_is_identity() -> None:
    program = parse_source(SAMPLE)
    text = format_source(program)
    assert parse_source(text) == program
    assert format_source(parse_source(text)) == text


def test_formatter_accumulates_lines() -> None:
    formatter = SourceFormatter()
    formatter.emit(Do("M", [Declaration("x", Value("1"))]))
    assert formatter.lines == ["do M {", "    let x = 1", "}"]
    assert formatter.indent == 0


@pytest.mark.parametrize(
    "expr",
    [
        Sum(Value("a"), Sum(Value("b"), Value("c"))),
        Substraction(Value("a"), Substraction(Value("b"), Value("c"))),
        Multiplication(Sum(Value("a"), Value("b")), Value("c")),
        Multiplication(Value("a"), Multiplication(Value("b"), Value("c"))),
    ],
)  # type: ignore[misc]
def test_trees_needing_parentheses_are_refused(expr: object) -> None:
    program = Program([Do("M", [Declaration("x", expr)])])  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        format_source(program)


def test_non_nodes_are_refused() -> None:
    with pytest.raises(TypeError):
        SourceFormatter().emit(Field("x", "Int"))


names = st.from_regex(r"[a-z][a-z0-9]{0,5}", fullmatch=True).filter(
    lambda s: s not in CANONICAL_KEYWORD_MAP
)


@given(st.lists(st.tuples(names, names), max_size=6))  # type: ignore[misc]
def test_data_blocks_survive_formatting(pairs: list[tuple[str, str]]) -> None:
    source = "data D { " + " ".join(f"{n}: {t}" for n, t in pairs) + " }"
    program = parse_source(source)
    assert parse_source(format_source(program)) == program


@pytest.mark.parametrize(
    "source,written",
    [
        ("1.2 . 3", "1.2 . 3"),
        ("1.2 . 3.4", "1.2 . 3.4"),
        ("1 . 5", "1.5"),
        ("a . b", "a.b"),
        ("x . 1.5", "x.1.5"),
        ("1.2 .", "1.2."),
    ],
)  # type: ignore[misc]
def test_values_are_written_so_they_lex_back(source: str, written: str) -> None:
    program = parse_source(f"do M {{ let x = {source} }}")
    text = format_source(program)
    assert text == f"do M {{\n    let x = {written}\n}}\n"
    assert parse_source(text) == program


def test_unwritable_value_is_refused() -> None:
    program = Program([Do("M", [Declaration("x", Value("1.2.3.4.5"))])])
    with pytest.raises(ValueError):
        format_source(program)


numbers = st.from_regex(r"[0-9]{1,3}(\.[0-9]{1,2})?", fullmatch=True)
atoms = st.one_of(names, numbers)
operands = st.one_of(
    atoms, st.tuples(atoms, atoms).map(lambda pair: f"{pair[0]} . {pair[1]}")
)


@given(
    st.lists(st.tuples(st.sampled_from("+-*/%"), operands), max_size=6), operands
)  # type: ignore[misc]
def test_expressions_survive_formatting(
    rest: list[tuple[str, str]], first: str
) -> None:
    expr = first + "".join(f" {op} {operand}" for op, operand in rest)
    program = parse_source(f"do M {{ let x = {expr} create G({first}) }}")
    assert parse_source(format_source(program)) == program
