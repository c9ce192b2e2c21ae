"""
Three-way merge engine for text files.

Implements the region-based three-way merge:
1. Normalizes line endings and splits all versions into lines
2. Computes edit blocks from base to ours and base to theirs
3. Indexes both edit scripts by base line
4. Walks the three versions in lockstep, classifying regions
5. Coalesces adjacent regions and stamps their line numbers
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from enum import Enum, auto
from typing import Callable, Optional, Protocol, Sequence

from trimerge.core.diff.lines import split_lines
from trimerge.core.diff.text_diff import TextCompareOptions, TextDiffEngine, WhitespaceMode
from trimerge.core.merge.block_map import build_block_map
from trimerge.core.merge.region_walker import RegionWalker
from trimerge.core.merge.regions import annotate_line_numbers, coalesce_regions
from trimerge.core.models import EditBlock, FileMergeResult, MergeRegion, MergeRegionType


class MergeStrategy(Enum):
    """Strategy for automatic conflict resolution."""
    MANUAL = auto()          # All conflicts require manual resolution
    FAVOR_OURS = auto()      # Automatically choose ours in conflicts
    FAVOR_THEIRS = auto()    # Automatically choose theirs in conflicts
    FAVOR_SHORTER = auto()   # Choose the shorter version
    FAVOR_LONGER = auto()    # Choose the longer version


class EditScriptProvider(Protocol):
    """Anything that can diff two line sequences into edit blocks."""

    def edit_blocks(
        self,
        old_lines: Sequence[str],
        new_lines: Sequence[str]
    ) -> list[EditBlock]:
        ...


DifferFactory = Callable[[TextCompareOptions], EditScriptProvider]


class ThreeWayMergeEngine:
    """
    Three-way merge engine.

    Pure and synchronous: every call works on its own local state, so one
    engine may serve concurrent merges.
    """

    def __init__(
        self,
        options: Optional[TextCompareOptions] = None,
        differ_factory: Optional[DifferFactory] = None
    ):
        self.options = options or TextCompareOptions()
        self.differ_factory: DifferFactory = differ_factory or TextDiffEngine

    def merge(
        self,
        base_content: str,
        ours_content: str,
        theirs_content: str,
        ignore_whitespace: bool = False,
        file_path: str = ""
    ) -> FileMergeResult:
        """
        Perform a three-way merge of one file.

        Args:
            base_content: Common ancestor text
            ours_content: Current/ours text
            theirs_content: Incoming/theirs text
            ignore_whitespace: Treat whitespace-only differences as unchanged
            file_path: Display metadata copied into the result

        Returns:
            FileMergeResult with coalesced, line-numbered regions
        """
        started = time.perf_counter()
        label = file_path or "<content>"

        base_lines = split_lines(base_content)
        ours_lines = split_lines(ours_content)
        theirs_lines = split_lines(theirs_content)
        logging.debug(
            f"ThreeWayMergeEngine - {label}: base={len(base_lines)}, "
            f"ours={len(ours_lines)}, theirs={len(theirs_lines)} lines"
        )

        differ = self.differ_factory(self._compare_options(ignore_whitespace))
        ours_map = build_block_map(differ.edit_blocks(base_lines, ours_lines))
        theirs_map = build_block_map(differ.edit_blocks(base_lines, theirs_lines))

        walker = RegionWalker(base_lines, ours_lines, theirs_lines, ours_map, theirs_map)
        regions = annotate_line_numbers(coalesce_regions(walker.walk()))

        if not regions:
            # Three empty versions still merge to one (empty) unchanged region
            regions = [MergeRegion(
                index=0,
                region_type=MergeRegionType.UNCHANGED,
                base_start_line=1,
                ours_start_line=1,
                theirs_start_line=1
            )]

        result = FileMergeResult(regions=tuple(regions), file_path=file_path)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logging.debug(
            f"ThreeWayMergeEngine - {label}: {len(result.regions)} regions, "
            f"{result.conflict_count} conflicts in {elapsed_ms:.1f}ms"
        )
        return result

    def _compare_options(self, ignore_whitespace: bool) -> TextCompareOptions:
        if ignore_whitespace:
            return replace(self.options, whitespace_mode=WhitespaceMode.IGNORE_ALL)
        return self.options


def perform_merge(
    base_content: str,
    ours_content: str,
    theirs_content: str,
    ignore_whitespace: bool = False,
    file_path: str = ""
) -> FileMergeResult:
    """Merge one file with the default engine."""
    return ThreeWayMergeEngine().merge(
        base_content,
        ours_content,
        theirs_content,
        ignore_whitespace=ignore_whitespace,
        file_path=file_path
    )
