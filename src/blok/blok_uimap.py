"""
Provides the `KeywordMapper` class for managing user-defined keyword aliases in BLOK.

The lexer recognizes keywords by looking words up in a table. `KeywordMapper` builds
that table: it starts from the canonical lowercase keywords and lets a project add
aliases (for example `donnee` for `data`), either programmatically or from a JSON file.

Classes:
    - KeywordMapper: Maps alias words to keyword token types.

Features:
    - Dict-mode configuration (alias or alias group → keyword token type)
    - Conflict detection across and within configurations
    - JSON loading, with comma-separated alias groups as keys
    - Alias reports for the CLI

Usage:
    >>> mapper = KeywordMapper.from_canonical()
    >>> mapper.configure({"donnee": "DATA"})
    >>> mapper.get_token("donnee").type
    'DATA'
"""

import json
from typing import Any

from blok.blok_constants import CANONICAL_KEYWORD_MAP, KEYWORD_TOKENS
from blok.blok_errors import MappingError
from blok.blok_lexer import Token


class KeywordMapper:
    """Manages alias-to-keyword mappings used by the BLOK lexer.

    Attributes:
        token_map (dict[str, str]): Maps alias words to keyword token types.
        alias_report (dict[str, str]): Aliases added through `configure`, for reporting.
    """

    def __init__(self) -> None:
        self.token_map: dict[str, str] = {}
        self.alias_report: dict[str, str] = {}

    def get_token(self, alias: str, line: int = 0, col: int = 0) -> Token | None:
        """Resolves an alias to a keyword Token, or None if it is not a keyword."""
        sym = self.token_map.get(alias)
        return Token(sym, alias, line, col) if sym else None

    def report(self) -> str:
        """Returns one `alias → TOKEN` line per mapping, sorted by alias."""
        return "\n".join(
            f"{alias:>12} → {sym}" for alias, sym in sorted(self.alias_report.items())
        )

    def summary(self) -> dict[str, str]:
        return dict(self.alias_report)

    def _extract_aliases(self, entry: Any) -> list[str]:
        """Flattens a configuration key (string or iterable of strings) into aliases."""
        if isinstance(entry, str):
            return [entry]
        if isinstance(entry, (list, tuple, set, frozenset)):
            aliases: list[str] = []
            for item in entry:
                aliases.extend(self._extract_aliases(item))
            return aliases
        raise MappingError(f"Invalid alias entry: {entry!r}")

    @classmethod
    def from_canonical(cls) -> "KeywordMapper":
        """Constructs a mapper preloaded with the canonical lowercase keywords."""
        instance = cls()
        instance.configure(dict(CANONICAL_KEYWORD_MAP))
        return instance

    @classmethod
    def from_json(cls, path: str) -> "KeywordMapper":
        """Canonical keywords plus the aliases defined in the JSON file at `path`."""
        instance = cls.from_canonical()
        instance.load_from_json(path)
        return instance

    def load_from_json(self, path: str) -> None:
        """
        Loads alias-to-keyword mappings from a JSON file and applies them via `configure`.

        Each key is a comma-separated list of aliases and each value a keyword token:
            {
                "donnee,record": "DATA",
                "faire": "DO"
            }

        Raises:
            MappingError: If the file cannot be read or the configuration is invalid.
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw_cfg = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise MappingError(f"Failed to load keyword file: {e}") from e

        if not isinstance(raw_cfg, dict):
            raise MappingError("Keyword file must contain a JSON object")

        parsed_cfg: dict[tuple[str, ...], str] = {}
        for key, value in raw_cfg.items():
            aliases = tuple(alias.strip() for alias in key.split(",") if alias.strip())
            parsed_cfg[aliases] = value

        self.configure(parsed_cfg)

    def configure(self, cfg: dict[Any, str]) -> None:
        """
        Applies a new alias-to-keyword configuration.

        Args:
            cfg: Maps an alias (or a group of aliases) to a keyword token type.

        Raises:
            MappingError: If any of the following occur:
                - A token type is not a keyword
                - An alias is not a valid identifier
                - An alias maps to multiple conflicting keywords
        """
        if not isinstance(cfg, dict):
            raise MappingError("Configuration must be a dict")

        new_token_map: dict[str, str] = {}
        conflicts: list[str] = []
        valid_symbols = set(KEYWORD_TOKENS)

        for alias_group, sym in cfg.items():
            if sym not in valid_symbols:
                raise MappingError(f"Unknown keyword token name: {sym}")
            for alias in self._extract_aliases(alias_group):
                if not alias.isidentifier():
                    raise MappingError(f"Alias is not a valid word: {alias!r}")
                existing = new_token_map.get(alias, self.token_map.get(alias))
                if existing is not None and existing != sym:
                    conflicts.append(
                        f"'{alias}' → conflict between {existing} and {sym}"
                    )
                else:
                    new_token_map[alias] = sym

        if conflicts:
            raise MappingError("Alias collision(s) detected", conflicts)

        self.token_map.update(new_token_map)
        self.alias_report.update(new_token_map)

    def session_diff(self) -> dict[str, str]:
        """Returns the aliases that differ from the canonical keyword table."""
        return {
            alias: token
            for alias, token in self.token_map.items()
            if CANONICAL_KEYWORD_MAP.get(alias) != token
        }
