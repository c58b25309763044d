"""Shared fixtures for parity checker tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from packs_parity.comparison.path_mapper import PathMapper


def _reference(
    constant_name: str, line: int = 1, column: int = 1, **extra: Any
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "constant_name": constant_name,
        "source_location": {"line": line, "column": column},
    }
    data.update(extra)
    return data


@pytest.fixture
def make_reference():
    """Build a raw unresolved-reference record."""
    return _reference


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    path = tmp_path / "tmp" / "cache" / "packwerk"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def path_mapper(cache_dir) -> PathMapper:
    return PathMapper(cache_dir)


@pytest.fixture
def write_artifact():
    """Write an artifact file; ``references=None`` writes raw ``text`` instead."""

    def _write(
        path: Path,
        references: Optional[List[Dict[str, Any]]] = None,
        text: Optional[str] = None,
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if text is None:
            text = json.dumps({"unresolved_references": references or []})
        path.write_text(text, encoding="utf-8")
        return path

    return _write
