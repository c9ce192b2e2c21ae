"""
Conflict resolution utilities and strategies.

A `FileMergeResult` is immutable; the choices a user makes about its
conflicts live in a `ResolutionSession` that wraps it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from trimerge.core.diff.lines import split_lines
from trimerge.core.merge.three_way import MergeStrategy
from trimerge.core.models import (
    ConflictResolution,
    FileMergeResult,
    MergeRegion,
)


MARKER_OURS = "<<<<<<<"
MARKER_BASE = "|||||||"
MARKER_SEP = "======="
MARKER_THEIRS = ">>>>>>>"


@dataclass
class RegionResolution:
    """Resolution state of one conflict region."""
    resolution: ConflictResolution = ConflictResolution.UNRESOLVED
    ours_selected: set[int] = field(default_factory=set)
    theirs_selected: set[int] = field(default_factory=set)
    manual_text: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.resolution != ConflictResolution.UNRESOLVED


@dataclass
class ResolutionSuggestion:
    """A suggested resolution for a conflict."""
    resolution: ConflictResolution
    confidence: float  # 0.0 to 1.0
    reason: str
    preview_lines: list[str]


class ResolutionSession:
    """
    Tracks how each conflict of a merge result is resolved.

    Usage:
        session = ResolutionSession(result)
        session.resolve(session.first_unresolved(), ConflictResolution.USE_OURS)
        text = session.merged_content()
    """

    def __init__(
        self,
        result: FileMergeResult,
        ours_label: str = "OURS (current)",
        theirs_label: str = "THEIRS (incoming)",
        base_label: str = "BASE"
    ):
        self.result = result
        self.ours_label = ours_label
        self.theirs_label = theirs_label
        self.base_label = base_label
        self._resolutions: dict[int, RegionResolution] = {
            region.index: RegionResolution() for region in result.conflicts
        }

    # -------------------------------------------------------------------------
    # Resolving
    # -------------------------------------------------------------------------

    def resolution_of(self, index: int) -> ConflictResolution:
        self._conflict(index)
        return self._resolutions[index].resolution

    def resolve(self, index: int, resolution: ConflictResolution) -> None:
        """
        Resolve a conflict wholesale.

        Per-line selections go through `select_lines` and manual edits
        through `set_manual`.
        """
        region = self._conflict(index)

        if resolution == ConflictResolution.USE_CUSTOM:
            raise ValueError("Custom resolution requires a line selection")
        if resolution == ConflictResolution.USE_MANUAL:
            raise ValueError("Manual resolution requires edited text")

        state = RegionResolution(resolution=resolution)
        if resolution == ConflictResolution.USE_OURS:
            state.ours_selected = set(range(len(region.ours_lines)))
        elif resolution == ConflictResolution.USE_THEIRS:
            state.theirs_selected = set(range(len(region.theirs_lines)))
        self._resolutions[index] = state

    def select_lines(
        self,
        index: int,
        ours: Iterable[int] = (),
        theirs: Iterable[int] = ()
    ) -> ConflictResolution:
        """
        Pick individual lines from each side of a conflict.

        The resolution follows from the selection: every ours line and no
        theirs line is USE_OURS, the reverse is USE_THEIRS, an empty
        selection is UNRESOLVED and anything else is USE_CUSTOM.
        """
        region = self._conflict(index)
        ours_selected = set(ours)
        theirs_selected = set(theirs)

        for selected, lines, side in (
            (ours_selected, region.ours_lines, "ours"),
            (theirs_selected, region.theirs_lines, "theirs"),
        ):
            invalid = [i for i in selected if not 0 <= i < len(lines)]
            if invalid:
                raise ValueError(f"Invalid {side} line indices for region {index}: {sorted(invalid)}")

        all_ours = len(ours_selected) == len(region.ours_lines)
        all_theirs = len(theirs_selected) == len(region.theirs_lines)

        if not ours_selected and not theirs_selected:
            resolution = ConflictResolution.UNRESOLVED
        elif all_ours and not theirs_selected:
            resolution = ConflictResolution.USE_OURS
        elif all_theirs and not ours_selected:
            resolution = ConflictResolution.USE_THEIRS
        else:
            resolution = ConflictResolution.USE_CUSTOM

        self._resolutions[index] = RegionResolution(
            resolution=resolution,
            ours_selected=ours_selected,
            theirs_selected=theirs_selected
        )
        return resolution

    def set_manual(self, index: int, text: str) -> None:
        """Resolve a conflict with free-form text; empty text leaves it unresolved."""
        self._conflict(index)
        if not text:
            self._resolutions[index] = RegionResolution()
            return
        self._resolutions[index] = RegionResolution(
            resolution=ConflictResolution.USE_MANUAL,
            manual_text=text
        )

    def clear(self, index: int) -> None:
        self._conflict(index)
        self._resolutions[index] = RegionResolution()

    def resolve_all(self, strategy: MergeStrategy) -> int:
        """
        Resolve every unresolved conflict with a strategy.

        Returns:
            Number of conflicts resolved
        """
        if strategy == MergeStrategy.MANUAL:
            return 0

        resolved = 0
        for region in self.result.conflicts:
            if self._resolutions[region.index].is_resolved:
                continue
            self.resolve(region.index, self._strategy_choice(strategy, region))
            resolved += 1
        return resolved

    @staticmethod
    def _strategy_choice(strategy: MergeStrategy, region: MergeRegion) -> ConflictResolution:
        ours_len = len(region.ours_lines)
        theirs_len = len(region.theirs_lines)

        if strategy == MergeStrategy.FAVOR_OURS:
            return ConflictResolution.USE_OURS
        elif strategy == MergeStrategy.FAVOR_THEIRS:
            return ConflictResolution.USE_THEIRS
        elif strategy == MergeStrategy.FAVOR_SHORTER:
            return ConflictResolution.USE_OURS if ours_len <= theirs_len else ConflictResolution.USE_THEIRS
        else:  # FAVOR_LONGER
            return ConflictResolution.USE_OURS if ours_len >= theirs_len else ConflictResolution.USE_THEIRS

    # -------------------------------------------------------------------------
    # Status and navigation
    # -------------------------------------------------------------------------

    @property
    def conflict_count(self) -> int:
        return len(self._resolutions)

    @property
    def unresolved_count(self) -> int:
        return sum(1 for state in self._resolutions.values() if not state.is_resolved)

    @property
    def resolved_count(self) -> int:
        return self.conflict_count - self.unresolved_count

    def is_fully_resolved(self) -> bool:
        return self.unresolved_count == 0

    def is_unresolved(self, index: int) -> bool:
        state = self._resolutions.get(index)
        return state is not None and not state.is_resolved

    def first_unresolved(self) -> Optional[int]:
        """Index of the first unresolved conflict, or None."""
        for region in self.result.regions:
            if self.is_unresolved(region.index):
                return region.index
        return None

    def next_unresolved(self, after: int) -> Optional[int]:
        """Next unresolved conflict after `after`, wrapping around to the start."""
        count = len(self.result.regions)
        for i in range(after + 1, count):
            if self.is_unresolved(i):
                return i
        for i in range(0, min(after + 1, count)):
            if self.is_unresolved(i):
                return i
        return None

    def previous_unresolved(self, before: int) -> Optional[int]:
        """Previous unresolved conflict before `before`, wrapping around to the end."""
        count = len(self.result.regions)
        for i in range(min(before, count) - 1, -1, -1):
            if self.is_unresolved(i):
                return i
        for i in range(count - 1, max(before, 0) - 1, -1):
            if self.is_unresolved(i):
                return i
        return None

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    def resolved_lines_for(self, index: int) -> Optional[list[str]]:
        """
        Lines a region contributes to the merged document.

        Returns None for an unresolved conflict.
        """
        if not 0 <= index < len(self.result.regions):
            raise ValueError(f"Invalid region index: {index}")

        region = self.result.regions[index]
        if not region.is_conflict:
            return list(region.lines)

        state = self._resolutions[index]
        resolution = state.resolution

        if resolution == ConflictResolution.USE_OURS:
            return list(region.ours_lines)
        elif resolution == ConflictResolution.USE_THEIRS:
            return list(region.theirs_lines)
        elif resolution == ConflictResolution.USE_BASE:
            return list(region.base_lines)
        elif resolution == ConflictResolution.USE_BOTH_OURS_FIRST:
            return list(region.ours_lines) + list(region.theirs_lines)
        elif resolution == ConflictResolution.USE_BOTH_THEIRS_FIRST:
            return list(region.theirs_lines) + list(region.ours_lines)
        elif resolution == ConflictResolution.USE_CUSTOM:
            return (
                [region.ours_lines[i] for i in sorted(state.ours_selected)]
                + [region.theirs_lines[i] for i in sorted(state.theirs_selected)]
            )
        elif resolution == ConflictResolution.USE_MANUAL:
            return split_lines(state.manual_text)
        return None

    def merged_lines(self) -> list[str]:
        """Merged document lines; unresolved conflicts contribute nothing."""
        merged: list[str] = []
        for region in self.result.regions:
            lines = self.resolved_lines_for(region.index)
            if lines is not None:
                merged.extend(lines)
        return merged

    def merged_content(self) -> str:
        return '\n'.join(self.merged_lines())

    def display_lines(self, show_base: bool = False) -> list[str]:
        """Merged document lines with conflict markers around unresolved conflicts."""
        lines: list[str] = []
        for region in self.result.regions:
            resolved = self.resolved_lines_for(region.index)
            if resolved is not None:
                lines.extend(resolved)
                continue

            lines.append(f"{MARKER_OURS} {self.ours_label}")
            lines.extend(region.ours_lines)
            if show_base:
                lines.append(f"{MARKER_BASE} {self.base_label}")
                lines.extend(region.base_lines)
            lines.append(MARKER_SEP)
            lines.extend(region.theirs_lines)
            lines.append(f"{MARKER_THEIRS} {self.theirs_label}")
        return lines

    def display_content(self, show_base: bool = False) -> str:
        return '\n'.join(self.display_lines(show_base))

    def _conflict(self, index: int) -> MergeRegion:
        if not 0 <= index < len(self.result.regions):
            raise ValueError(f"Invalid region index: {index}")
        region = self.result.regions[index]
        if not region.is_conflict:
            raise ValueError(f"Region {index} is not a conflict")
        return region


class ConflictAnalyzer:
    """Analyzes conflicts to suggest resolutions."""

    @staticmethod
    def analyze(region: MergeRegion) -> list[ResolutionSuggestion]:
        """
        Analyze a conflict region and return suggested resolutions.

        Returns suggestions sorted by confidence (highest first).
        """
        suggestions: list[ResolutionSuggestion] = []
        ours = list(region.ours_lines)
        theirs = list(region.theirs_lines)

        if not ours and theirs:
            suggestions.append(ResolutionSuggestion(
                resolution=ConflictResolution.USE_THEIRS,
                confidence=0.8,
                reason="Ours side is empty (deletion vs modification)",
                preview_lines=theirs
            ))

        if not theirs and ours:
            suggestions.append(ResolutionSuggestion(
                resolution=ConflictResolution.USE_OURS,
                confidence=0.8,
                reason="Theirs side is empty (modification vs deletion)",
                preview_lines=ours
            ))

        if [l.strip() for l in ours] == [l.strip() for l in theirs]:
            suggestions.append(ResolutionSuggestion(
                resolution=ConflictResolution.USE_OURS,
                confidence=0.9,
                reason="Difference is whitespace only",
                preview_lines=ours
            ))

        ours_set = set(ours)
        theirs_set = set(theirs)

        if ours_set < theirs_set:
            suggestions.append(ResolutionSuggestion(
                resolution=ConflictResolution.USE_THEIRS,
                confidence=0.6,
                reason="Theirs contains all of ours plus additions",
                preview_lines=theirs
            ))
        elif theirs_set < ours_set:
            suggestions.append(ResolutionSuggestion(
                resolution=ConflictResolution.USE_OURS,
                confidence=0.6,
                reason="Ours contains all of theirs plus additions",
                preview_lines=ours
            ))

        if ours != theirs and sorted(ours) == sorted(theirs):
            suggestions.append(ResolutionSuggestion(
                resolution=ConflictResolution.USE_OURS,
                confidence=0.5,
                reason="Same lines in different order",
                preview_lines=ours
            ))

        suggestions.sort(key=lambda s: s.confidence, reverse=True)

        return suggestions
