"""Pytest fixtures for trimerge tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from trimerge.core.merge.three_way import ThreeWayMergeEngine
from trimerge.core.models import FileMergeResult


@pytest.fixture
def engine() -> ThreeWayMergeEngine:
    """Merge engine with default options."""
    return ThreeWayMergeEngine()


@pytest.fixture
def conflict_result(engine: ThreeWayMergeEngine) -> FileMergeResult:
    """Two conflicts separated by an unchanged line, plus a one-sided edit.

    Regions: U(a) C(B1|B2) U(c) C(D1|D2) U(e) T(F) U(g)
    """
    base = "a\nb\nc\nd\ne\nf\ng"
    ours = "a\nB1\nc\nD1\ne\nf\ng"
    theirs = "a\nB2\nc\nD2\ne\nF\ng"
    return engine.merge(base, ours, theirs)


@pytest.fixture
def version_files(tmp_path: Path) -> Callable[[str, str, str], tuple[Path, Path, Path]]:
    """Write base/ours/theirs texts to files and return their paths."""
    def write(base: str, ours: str, theirs: str) -> tuple[Path, Path, Path]:
        paths = []
        for name, text in (("base.txt", base), ("ours.txt", ours), ("theirs.txt", theirs)):
            path = tmp_path / name
            path.write_text(text, encoding="utf-8", newline="")
            paths.append(path)
        return paths[0], paths[1], paths[2]
    return write
