import json
from pathlib import Path

import pytest


@pytest.fixture  # type: ignore[misc]
def keywords_file(tmp_path: Path) -> str:
    """A JSON keyword alias file mapping French-style aliases onto BLOK keywords."""
    path = tmp_path / "keywords.json"
    path.write_text(
        json.dumps({"donnee, record": "DATA", "faire": "DO", "soit": "LET"}),
        encoding="utf-8",
    )
    return str(path)
