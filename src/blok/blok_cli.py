"""
BLOK CLI Entrypoint.

This module provides the command-line interface for checking and inspecting BLOK
source code.

Features:
    - Read source from `.blok` files or inline strings.
    - Lex and parse the source into a `Program` AST.
    - Print the AST as an indented tree, as JSON, or as reformatted BLOK source.
    - Output to console or file.
    - Load keyword aliases from a JSON file (`--keywords` or `BLOK_KEYWORDS`).
    - Report syntax errors as `file:line:col` diagnostics with a non-zero exit status.

Example usage:
    blok program.blok
    blok -s "do Main { let x = a + b }" -f json
    blok program.blok -f source -o program.fmt.blok
    blok program.blok -k keywords.json --verbose

Functions:
    run_blok(source, is_string=False, fmt="tree", out=None, keywords=None) -> Program:
        Executes the BLOK pipeline (lex → parse → render → output).

    main(argv=None) -> int:
        Parses CLI arguments, runs the pipeline and returns the exit status.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import fields as dataclass_fields

from blok.blok_ast import ASTNode, Program, children, count_nodes, to_dict
from blok.blok_errors import BlokSyntaxError, MappingError
from blok.blok_format import format_source
from blok.blok_lexer import tokenize
from blok.blok_parser import parse_ast
from blok.blok_uimap import KeywordMapper

logger = logging.getLogger(__name__)

KEYWORDS_ENV = "BLOK_KEYWORDS"

# Attributes holding bare name strings rather than child nodes.
NAME_SETS = ("actions_to_do", "values")


def render_tree(node: ASTNode, indent: int = 0) -> str:
    """Renders `node` as an indented outline, one node per line."""
    parts = []
    for f in dataclass_fields(node):
        value = getattr(node, f.name)
        if isinstance(value, str):
            parts.append(f"{f.name}={value!r}")
        elif f.name in NAME_SETS:
            parts.append(f"{f.name}={list(value)!r}")
    line = "  " * indent + node.kind + (f" ({', '.join(parts)})" if parts else "")
    return "\n".join(
        [line] + [render_tree(child, indent + 1) for child in children(node)]
    )


def render(program: Program, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(to_dict(program), indent=2)
    if fmt == "source":
        return format_source(program).rstrip("\n")
    return render_tree(program)


def load_keywords(path: str | None) -> dict[str, str] | None:
    """Returns the lexer keyword table for `path`, or None for the canonical keywords."""
    path = path or os.environ.get(KEYWORDS_ENV)
    if not path:
        return None
    mapper = KeywordMapper.from_json(path)
    logger.debug("loaded %d keyword aliases from %s", len(mapper.token_map), path)
    return mapper.token_map


def run_blok(
    source: str,
    is_string: bool = False,
    fmt: str = "tree",
    out: str | None = None,
    keywords: str | None = None,
) -> Program:
    """
    Run the BLOK toolchain: lex, parse, render, and print or write the result.

    Args:
        source (str): The BLOK source code or path to a `.blok` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        fmt (str): Output format, one of 'tree', 'json' or 'source'. Defaults to 'tree'.
        out (str | None): Optional path to write the output to. If None, prints to stdout.
        keywords (str | None): Optional path to a JSON keyword alias file.

    Returns:
        Program: The parsed AST.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.blok'.
        BlokSyntaxError: If the source cannot be lexed or parsed. The error carries an
            `ErrorContext` pointing into the source.
        MappingError: If the keyword file is invalid.
    """
    if not is_string and not source.endswith(".blok"):
        raise ValueError("Only .blok files are supported.")

    filename = "<string>"
    if not is_string:
        filename = source
        with open(source, encoding="utf-8") as f:
            source = f.read()

    keyword_table = load_keywords(keywords)

    try:
        tokens = tokenize(source, keyword_table)
        program = parse_ast(tokens)
    except BlokSyntaxError as e:
        raise e.with_context(filename, source)

    logger.debug(
        "parsed %s: %d blocks, %d nodes",
        filename,
        len(program.blocks),
        count_nodes([program]),
    )

    text = render(program, fmt)
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)

    return program


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the BLOK CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-f`, `--format`: Output format ('tree', 'json' or 'source'), default 'tree'.
        - `-o`, `--out`: Write the output to a file.
        - `-k`, `--keywords`: JSON keyword alias file (default: $BLOK_KEYWORDS).
        - `-v`, `--verbose`: Enable debug logging.

    Returns:
        int: 0 on success, 1 on a syntax or configuration error.
    """
    parser = argparse.ArgumentParser(prog="blok")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="fmt",
        choices=("tree", "json", "source"),
        default="tree",
        help="Output format (default: tree)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-k",
        "--keywords",
        metavar="JSONFILE",
        help=f"Keyword alias file (default: ${KEYWORDS_ENV})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run_blok(
            source=args.source,
            is_string=args.string,
            fmt=args.fmt,
            out=args.out,
            keywords=args.keywords,
        )
    except BlokSyntaxError as e:
        print(str(e), file=sys.stderr)
        return 1
    except MappingError as e:
        print(f"Keyword configuration error: {e}", file=sys.stderr)
        for conflict in e.conflicts:
            print(f"  {conflict}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    sys.exit(main())
