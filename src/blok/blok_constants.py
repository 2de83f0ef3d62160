"""
Token tables shared by the BLOK lexer, parser and keyword mapper.

Exports:
    KEYWORD_TOKENS: Token types that open a block or an instruction.
    PUNCTUATION_TOKENS: Delimiter token types.
    operator_tokens: Arithmetic operator token types, in precedence-table order.
    CANONICAL_TOKENS: Every token type the parser understands.
    CANONICAL_KEYWORD_MAP: Default keyword spelling → token type.
    token_hashmap: Single-character punctuation/operator → token type.
"""

KEYWORD_TOKENS: list[str] = [
    "DATA",
    "GROUP",
    "DO",
    "RUN",
    "IF",
    "FOREACH",
    "FOR",
    "IN",
    "LET",
    "CREATE",
]

PUNCTUATION_TOKENS: list[str] = [
    "LBRACE",
    "RBRACE",
    "LPAREN",
    "RPAREN",
    "COMMA",
    "COLON",
    "EQUAL",
    "DOT",
    "SEMICOLON",
]

operator_tokens: list[str] = ["PLUS", "SUB", "MULT", "DIV", "MOD"]

CANONICAL_TOKENS: list[str] = (
    KEYWORD_TOKENS + PUNCTUATION_TOKENS + operator_tokens + ["SYMBOL"]
)

# Lexer-only end marker, never consumed by the parser as a grammar symbol.
EOF = "EOF"

CANONICAL_KEYWORD_MAP: dict[str, str] = {
    "data": "DATA",
    "group": "GROUP",
    "do": "DO",
    "run": "RUN",
    "if": "IF",
    "foreach": "FOREACH",
    "for": "FOR",
    "in": "IN",
    "let": "LET",
    "create": "CREATE",
}

token_hashmap: dict[str, str] = {
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    ",": "COMMA",
    ":": "COLON",
    "=": "EQUAL",
    ".": "DOT",
    ";": "SEMICOLON",
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "%": "MOD",
}

# Canonical spelling of every fixed token, used in diagnostics and by the formatter.
TOKEN_TEXT: dict[str, str] = {
    **{v: k for k, v in CANONICAL_KEYWORD_MAP.items()},
    **{v: k for k, v in token_hashmap.items()},
}
