import json
from pathlib import Path

import pytest

from blok.blok_constants import CANONICAL_KEYWORD_MAP
from blok.blok_errors import MappingError
from blok.blok_lexer import Token, tokenize
from blok.blok_parser import parse_source
from blok.blok_uimap import KeywordMapper


def test_dict_mode_basic() -> None:
    mapper = KeywordMapper()
    mapper.configure({"donnee": "DATA", "faire": "DO"})
    assert mapper.token_map == {"donnee": "DATA", "faire": "DO"}


def test_alias_group_key() -> None:
    mapper = KeywordMapper()
    mapper.configure({("soit", "var"): "LET"})
    assert mapper.token_map == {"soit": "LET", "var": "LET"}


def test_alias_conflict_across_configurations() -> None:
    mapper = KeywordMapper()
    mapper.configure({"eq": "LET"})
    with pytest.raises(MappingError, match="Alias collision") as e:
        mapper.configure({"eq": "IF"})
    assert e.value.conflicts == ["'eq' → conflict between LET and IF"]
    assert mapper.token_map == {"eq": "LET"}


def test_alias_conflict_within_configuration() -> None:
    mapper = KeywordMapper()
    with pytest.raises(MappingError) as e:
        mapper.configure({("x",): "DATA", ("x", "y"): "DO"})
    assert len(e.value.conflicts) == 1
    assert mapper.token_map == {}


def test_canonical_keyword_cannot_be_reassigned() -> None:
    mapper = KeywordMapper.from_canonical()
    with pytest.raises(MappingError, match="Alias collision"):
        mapper.configure({"data": "DO"})


def test_repeating_same_mapping_is_not_a_conflict() -> None:
    mapper = KeywordMapper.from_canonical()
    mapper.configure({"data": "DATA"})
    assert mapper.token_map["data"] == "DATA"


def test_unknown_token_type_raises() -> None:
    with pytest.raises(MappingError, match="Unknown keyword token name: LBRACE"):
        KeywordMapper().configure({"open": "LBRACE"})


def test_non_word_alias_raises() -> None:
    with pytest.raises(MappingError, match="Alias is not a valid word"):
        KeywordMapper().configure({"+": "DATA"})


def test_configure_requires_dict() -> None:
    with pytest.raises(MappingError, match="Configuration must be a dict"):
        KeywordMapper().configure([["donnee"]])  # type: ignore[arg-type]


def test_extract_aliases() -> None:
    mapper = KeywordMapper()
    assert mapper._extract_aliases("abc") == ["abc"]
    assert mapper._extract_aliases(["a", ("b", "c")]) == ["a", "b", "c"]
    with pytest.raises(MappingError, match="Invalid alias entry"):
        mapper._extract_aliases(123)


def test_get_token() -> None:
    mapper = KeywordMapper.from_canonical()
    tok = mapper.get_token("foreach", line=2, col=3)
    assert tok == Token("FOREACH", "foreach", 2, 3)
    assert mapper.get_token("missing") is None


def test_report_and_summary() -> None:
    mapper = KeywordMapper()
    cfg = {"faire": "DO", "soit": "LET"}
    mapper.configure(cfg)
    report = mapper.report()
    assert report.split("\n") == ["       faire → DO", "        soit → LET"]
    assert mapper.summary() == cfg


def test_from_canonical_matches_lexer_defaults() -> None:
    mapper = KeywordMapper.from_canonical()
    assert mapper.token_map == CANONICAL_KEYWORD_MAP
    assert mapper.session_diff() == {}


def test_session_diff_lists_only_aliases() -> None:
    mapper = KeywordMapper.from_canonical()
    mapper.configure({"donnee": "DATA"})
    assert mapper.session_diff() == {"donnee": "DATA"}


def test_load_from_json(keywords_file: str) -> None:
    mapper = KeywordMapper.from_json(keywords_file)
    assert mapper.token_map["donnee"] == "DATA"
    assert mapper.token_map["record"] == "DATA"
    assert mapper.token_map["faire"] == "DO"
    assert mapper.token_map["data"] == "DATA"
    assert mapper.session_diff() == {
        "donnee": "DATA",
        "record": "DATA",
        "faire": "DO",
        "soit": "LET",
    }


def test_aliases_drive_the_lexer(keywords_file: str) -> None:
    table = KeywordMapper.from_json(keywords_file).token_map
    assert [t.type for t in tokenize("donnee faire soit data", table)] == [
        "DATA",
        "DO",
        "LET",
        "DATA",
    ]
    assert parse_source("faire Main { soit x = 1 }", table) == parse_source(
        "do Main { let x = 1 }"
    )


def test_load_from_json_unknown_token(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"bad": "NOT_A_KEYWORD"}), encoding="utf-8")
    with pytest.raises(MappingError, match="Unknown keyword token name"):
        KeywordMapper().load_from_json(str(path))


def test_load_from_json_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "corrupt.json"
    path.write_text("{{{ this is not json }}}", encoding="utf-8")
    with pytest.raises(MappingError, match="Failed to load keyword file"):
        KeywordMapper().load_from_json(str(path))


def test_load_from_json_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MappingError, match="Failed to load keyword file"):
        KeywordMapper().load_from_json(str(tmp_path / "absent.json"))


def test_load_from_json_requires_object(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text(json.dumps([["donnee"]]), encoding="utf-8")
    with pytest.raises(MappingError, match="must contain a JSON object"):
        KeywordMapper().load_from_json(str(path))
