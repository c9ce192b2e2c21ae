"""
Core data models for the three-way merge engine.

This module defines the data structures shared across the package:
- Edit blocks produced by the diff collaborator
- Merge region types and conflict resolutions
- Merge regions and the per-file merge result

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Immutable (a merge result is created fresh per invocation)
- Type-hinted for IDE support
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator


# =============================================================================
# Enumerations
# =============================================================================

class MergeRegionType(Enum):
    """Type of region in a three-way merge."""
    UNCHANGED = auto()    # Same in all versions, or both sides made the same edit
    OURS_ONLY = auto()    # Changed only in ours (auto-merged)
    THEIRS_ONLY = auto()  # Changed only in theirs (auto-merged)
    CONFLICT = auto()     # Both changed differently (needs resolution)


class MergeSide(Enum):
    """Which edited version a conflict is resolved from."""
    OURS = auto()
    THEIRS = auto()


class ConflictResolution(Enum):
    """How a conflict region was resolved."""
    UNRESOLVED = auto()             # Not yet resolved
    USE_OURS = auto()               # Use ours version
    USE_THEIRS = auto()             # Use theirs version
    USE_BASE = auto()               # Use base/original version
    USE_BOTH_OURS_FIRST = auto()    # Concatenate: ours then theirs
    USE_BOTH_THEIRS_FIRST = auto()  # Concatenate: theirs then ours
    USE_CUSTOM = auto()             # Per-line selection from both sides
    USE_MANUAL = auto()             # Free-form manual edit


# =============================================================================
# Diff Models
# =============================================================================

@dataclass(frozen=True)
class EditBlock:
    """
    One contiguous change between an old and a new text.

    A block replaces `delete_count` lines of the old text starting at
    `delete_start` with `insert_count` lines of the new text starting at
    `insert_start`. Pure insertions have `delete_count == 0` and sit just
    before old line `delete_start`.
    """
    delete_start: int
    delete_count: int
    insert_start: int
    insert_count: int

    @property
    def delete_end(self) -> int:
        return self.delete_start + self.delete_count

    @property
    def is_insertion(self) -> bool:
        """True if lines were only added."""
        return self.delete_count == 0 and self.insert_count > 0

    @property
    def is_deletion(self) -> bool:
        """True if lines were only removed."""
        return self.insert_count == 0 and self.delete_count > 0


# =============================================================================
# Merge Models
# =============================================================================

@dataclass(frozen=True)
class MergeRegion:
    """
    A classified, contiguous span of a three-way merge.

    Non-conflict regions carry their reconciled text in `lines`. Conflict
    regions carry the competing text in `ours_lines` and `theirs_lines`
    and leave `lines` empty. Changed regions (one-sided or conflicting)
    also keep the base text they replaced in `base_lines`.
    """
    index: int
    region_type: MergeRegionType
    lines: tuple[str, ...] = ()
    ours_lines: tuple[str, ...] = ()
    theirs_lines: tuple[str, ...] = ()
    base_lines: tuple[str, ...] = ()
    base_count: int = 0           # Lines spanned in base
    ours_count: int = 0           # Lines spanned in ours
    theirs_count: int = 0         # Lines spanned in theirs
    base_start_line: int = 0      # 1-based, set by the annotator
    ours_start_line: int = 0
    theirs_start_line: int = 0

    @property
    def is_conflict(self) -> bool:
        return self.region_type == MergeRegionType.CONFLICT

    @property
    def content(self) -> str:
        """Reconciled text of a non-conflict region."""
        return '\n'.join(self.lines)

    @property
    def line_count(self) -> int:
        if self.is_conflict:
            return max(len(self.ours_lines), len(self.theirs_lines))
        return len(self.lines)

    def lines_for(self, side: MergeSide) -> tuple[str, ...]:
        """Lines this region resolves to when conflicts take `side`."""
        if not self.is_conflict:
            return self.lines
        if side == MergeSide.OURS:
            return self.ours_lines
        return self.theirs_lines

    def version_lines(self, side: MergeSide) -> tuple[str, ...]:
        """Lines this region spans in the ours or theirs version itself."""
        if self.is_conflict:
            return self.lines_for(side)
        if self.region_type == MergeRegionType.OURS_ONLY and side == MergeSide.THEIRS:
            return self.base_lines
        if self.region_type == MergeRegionType.THEIRS_ONLY and side == MergeSide.OURS:
            return self.base_lines
        return self.lines


@dataclass(frozen=True)
class FileMergeResult:
    """
    Complete result of merging one file.

    Regions are in document order and indexed from 0 without gaps.
    """
    regions: tuple[MergeRegion, ...] = ()
    file_path: str = ""

    def __iter__(self) -> Iterator[MergeRegion]:
        return iter(self.regions)

    def __len__(self) -> int:
        return len(self.regions)

    @property
    def conflicts(self) -> list[MergeRegion]:
        return [r for r in self.regions if r.is_conflict]

    @property
    def conflict_count(self) -> int:
        return sum(1 for r in self.regions if r.is_conflict)

    @property
    def has_conflicts(self) -> bool:
        return any(r.is_conflict for r in self.regions)

    @property
    def has_auto_merged_changes(self) -> bool:
        """Whether any one-sided change was merged automatically."""
        return any(
            r.region_type in (MergeRegionType.OURS_ONLY, MergeRegionType.THEIRS_ONLY)
            for r in self.regions
        )

    def resolved_lines(self, side: MergeSide = MergeSide.OURS) -> list[str]:
        """All lines of the merged document, taking `side` for every conflict."""
        lines: list[str] = []
        for region in self.regions:
            lines.extend(region.lines_for(side))
        return lines

    def resolved_text(self, side: MergeSide = MergeSide.OURS) -> str:
        return '\n'.join(self.resolved_lines(side))

    def reconstruct(self, side: MergeSide) -> list[str]:
        """
        Rebuild the ours or theirs document from the regions.

        Exact when the merge compared whitespace exactly; unchanged regions
        hold the ours-side text otherwise.
        """
        lines: list[str] = []
        for region in self.regions:
            lines.extend(region.version_lines(side))
        return lines
