"""Tests for the three-way merge engine."""

from __future__ import annotations

import logging

import pytest

from helpers import region_shape
from trimerge.core.diff.lines import normalize_line_endings
from trimerge.core.diff.text_diff import TextCompareOptions, TextDiffEngine, WhitespaceMode
from trimerge.core.merge.three_way import ThreeWayMergeEngine, perform_merge
from trimerge.core.models import MergeRegionType, MergeSide


U = MergeRegionType.UNCHANGED
O = MergeRegionType.OURS_ONLY
T = MergeRegionType.THEIRS_ONLY
C = MergeRegionType.CONFLICT


class TestMergeShapes:
    """Region shapes for the basic merge situations."""

    @pytest.mark.parametrize("text", ["", "a", "a\nb\nc", "a\nb\n", "\n\n", "x\r\ny"])
    def test_identity(self, engine, text):
        result = engine.merge(text, text, text)

        assert len(result.regions) == 1
        assert result.regions[0].region_type == U
        assert result.regions[0].content == normalize_line_endings(text)

    def test_one_sided_edit(self, engine):
        result = engine.merge("A\nB\nC", "A\nX\nC", "A\nB\nC")
        assert region_shape(result) == [(U, "A"), (O, "X"), (U, "C")]

    def test_symmetric_one_sided_edit(self, engine):
        result = engine.merge("A\nB\nC", "A\nB\nC", "A\nX\nC")
        assert region_shape(result) == [(U, "A"), (T, "X"), (U, "C")]

    def test_false_conflict_collapses(self, engine):
        result = engine.merge("A\nB\nC", "A\nX\nC", "A\nX\nC")

        assert region_shape(result) == [(U, "A\nX\nC")]
        assert not result.has_conflicts

    def test_true_conflict(self, engine):
        result = engine.merge("A\nB\nC", "A\nX\nC", "A\nY\nC")

        assert region_shape(result) == [(U, "A"), (C, "X|Y"), (U, "C")]
        conflict = result.regions[1]
        assert conflict.ours_lines == ("X",)
        assert conflict.theirs_lines == ("Y",)
        assert conflict.base_lines == ("B",)

    def test_trailing_divergent_appends(self, engine):
        result = engine.merge("A", "A\nB", "A\nC")
        assert region_shape(result) == [(U, "A"), (C, "B|C")]

    def test_non_overlapping_edits_both_merge(self, engine):
        result = engine.merge("a\nb\nc\nd", "a\nB\nc\nd", "a\nb\nc\nD")

        assert region_shape(result) == [(U, "a"), (O, "B"), (U, "c"), (T, "D")]
        assert result.resolved_text() == "a\nB\nc\nD"

    def test_deletion_merges(self, engine):
        result = engine.merge("a\nb\nc", "a\nc", "a\nb\nc")

        assert region_shape(result) == [(U, "a"), (O, ""), (U, "c")]
        assert result.resolved_lines() == ["a", "c"]

    def test_empty_versions(self, engine):
        result = engine.merge("", "new", "")
        assert region_shape(result) == [(O, "new")]

    def test_regions_indexed_without_gaps(self, conflict_result):
        assert [r.index for r in conflict_result.regions] == list(range(len(conflict_result)))

    def test_conflicts_stay_separate(self, conflict_result):
        assert [r.region_type for r in conflict_result] == [U, C, U, C, U, T, U]
        assert conflict_result.conflict_count == 2


class TestReconstruction:
    """Rebuilding ours and theirs from the regions."""

    CASES = [
        ("a\nb\nc", "a\nX\nc", "a\nb\nY"),
        ("a\nb\nc\n", "a\nc\n", "a\nb\nc\nd\n"),
        ("", "x\ny", "z"),
        ("a\nb", "", "a\nb"),
        ("one\ntwo\nthree\nfour", "zero\none\nTWO\nthree", "one\ntwo\n3\nfour\nfive"),
        ("a\r\nb", "a\r\nB", "a\nb\nc"),
        ("a\nb\nc\nd\ne", "a\nX\nY\nd\ne", "a\nb\nQ\nd\nR\ne"),
        ("x\nx\nx", "x\ny\nx\nx", "x\nx\nz\nx"),
    ]

    @pytest.mark.parametrize("base, ours, theirs", CASES)
    def test_reconstructs_ours(self, engine, base, ours, theirs):
        result = engine.merge(base, ours, theirs)
        assert "\n".join(result.reconstruct(MergeSide.OURS)) == normalize_line_endings(ours)

    @pytest.mark.parametrize("base, ours, theirs", CASES)
    def test_reconstructs_theirs(self, engine, base, ours, theirs):
        result = engine.merge(base, ours, theirs)
        assert "\n".join(result.reconstruct(MergeSide.THEIRS)) == normalize_line_endings(theirs)

    def test_resolved_side_matches_version_when_only_conflicts(self, engine):
        result = engine.merge("A\nB\nC", "A\nX\nC", "A\nY\nC")

        assert result.resolved_text(MergeSide.OURS) == "A\nX\nC"
        assert result.resolved_text(MergeSide.THEIRS) == "A\nY\nC"


class TestLineNumbers:
    """Start lines stamped on merged regions."""

    def test_start_lines_follow_each_version(self, engine):
        result = engine.merge("a\nb\nc\nd", "a\nX\nY\nc\nd", "a\nb\nc\nD")

        starts = [(r.base_start_line, r.ours_start_line, r.theirs_start_line) for r in result]
        assert starts == [(1, 1, 1), (2, 2, 2), (3, 4, 3), (4, 5, 4)]

    def test_empty_merge_starts_at_one(self, engine):
        region = engine.merge("", "", "").regions[0]
        assert (region.base_start_line, region.ours_start_line, region.theirs_start_line) == (1, 1, 1)


class TestMergeOptions:
    """Whitespace handling and the diff collaborator seam."""

    def test_whitespace_change_is_a_change_by_default(self, engine):
        result = engine.merge("a\nb", "a  \nb", "a\nb")
        assert region_shape(result) == [(O, "a  "), (U, "b")]

    def test_ignore_whitespace(self, engine):
        result = engine.merge("a\nb", "a  \nb", "a\nb", ignore_whitespace=True)
        assert region_shape(result) == [(U, "a  \nb")]

    def test_ignore_whitespace_keeps_real_edits(self, engine):
        result = engine.merge("a\nb", "a  \nb", "A\nb", ignore_whitespace=True)
        assert region_shape(result) == [(T, "A"), (U, "b")]

    def test_ignore_whitespace_reaches_differ(self):
        seen = []

        def factory(options: TextCompareOptions):
            seen.append(options)
            return TextDiffEngine(options)

        ThreeWayMergeEngine(differ_factory=factory).merge("a", "b", "c", ignore_whitespace=True)
        assert seen[0].whitespace_mode == WhitespaceMode.IGNORE_ALL

    def test_engine_options_used(self):
        engine = ThreeWayMergeEngine(TextCompareOptions(ignore_case=True))
        result = engine.merge("Hello", "hello", "HELLO")
        assert region_shape(result) == [(U, "hello")]

    def test_differ_errors_propagate(self):
        class BrokenDiffer:
            def __init__(self, options):
                pass

            def edit_blocks(self, old_lines, new_lines):
                raise RuntimeError("diff failed")

        with pytest.raises(RuntimeError, match="diff failed"):
            ThreeWayMergeEngine(differ_factory=BrokenDiffer).merge("a", "b", "c")

    def test_file_path_is_recorded(self, engine):
        assert engine.merge("a", "a", "a", file_path="src/x.py").file_path == "src/x.py"

    def test_merge_is_logged(self, engine, caplog):
        with caplog.at_level(logging.DEBUG):
            engine.merge("a", "b", "c", file_path="x.txt")
        assert "ThreeWayMergeEngine - x.txt" in caplog.text


class TestPerformMerge:
    """Module-level convenience function."""

    def test_matches_engine(self, engine):
        args = ("a\nb\nc", "a\nX\nc", "a\nb\nY")
        assert perform_merge(*args) == engine.merge(*args)

    def test_ignore_whitespace_flag(self):
        result = perform_merge("a", " a", "a", ignore_whitespace=True)
        assert not result.has_auto_merged_changes


class TestMergeModels:
    """Region and result helpers."""

    def test_conflict_line_count(self, engine):
        conflict = engine.merge("a", "X\nY", "Z").regions[0]
        assert conflict.is_conflict
        assert conflict.line_count == 2
        assert conflict.lines_for(MergeSide.THEIRS) == ("Z",)

    def test_one_sided_version_lines(self, engine):
        region = engine.merge("a\nb\nc", "a\nX\nc", "a\nb\nc").regions[1]

        assert region.version_lines(MergeSide.OURS) == ("X",)
        assert region.version_lines(MergeSide.THEIRS) == ("b",)

    def test_result_summary_properties(self, conflict_result):
        assert conflict_result.has_conflicts
        assert conflict_result.has_auto_merged_changes
        assert [r.index for r in conflict_result.conflicts] == [1, 3]
