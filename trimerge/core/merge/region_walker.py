"""
Region walker for three-way merges.

Walks base, ours and theirs in lockstep and classifies each span into a
merge region. The walk is an explicit state machine:

    SCANNING  -> consume base lines neither side touched
    EMITTING  -> classify the change starting at the base cursor
    TRAILING  -> base is exhausted, flush lines appended past its end
    DONE

Regions come out in document order, uncoalesced.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence

from trimerge.core.merge.block_map import BlockMap
from trimerge.core.models import EditBlock, MergeRegion, MergeRegionType


class WalkState(Enum):
    """State of the region walk."""
    SCANNING = auto()
    EMITTING = auto()
    TRAILING = auto()
    DONE = auto()


@dataclass(frozen=True)
class Hunk:
    """A base span touched by at least one side, with the blocks touching it."""
    base_start: int
    base_end: int
    ours_blocks: tuple[EditBlock, ...]
    theirs_blocks: tuple[EditBlock, ...]

    @property
    def base_count(self) -> int:
        return self.base_end - self.base_start


class RegionWalker:
    """
    Classify base/ours/theirs into merge regions.

    Usage:
        walker = RegionWalker(base, ours, theirs, ours_map, theirs_map)
        regions = walker.walk()
    """

    def __init__(
        self,
        base_lines: Sequence[str],
        ours_lines: Sequence[str],
        theirs_lines: Sequence[str],
        ours_map: BlockMap,
        theirs_map: BlockMap
    ):
        self.base = list(base_lines)
        self.ours = list(ours_lines)
        self.theirs = list(theirs_lines)
        self.ours_map = ours_map
        self.theirs_map = theirs_map

        self.base_idx = 0
        self.ours_idx = 0
        self.theirs_idx = 0
        # Base index whose insertions were already emitted
        self._spent_at: Optional[int] = None
        self._regions: list[MergeRegion] = []

    def walk(self) -> list[MergeRegion]:
        """Run the walk from the start and return the regions."""
        self.base_idx = self.ours_idx = self.theirs_idx = 0
        self._spent_at = None
        self._regions = []

        state = WalkState.SCANNING
        while state is not WalkState.DONE:
            state = self.step(state)

        regions, self._regions = self._regions, []
        return regions

    def step(self, state: WalkState) -> WalkState:
        """Perform one transition and return the next state."""
        if state is WalkState.SCANNING:
            return self._scan()
        if state is WalkState.EMITTING:
            return self._emit_change()
        if state is WalkState.TRAILING:
            self._emit_trailing()
        return WalkState.DONE

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _scan(self) -> WalkState:
        """Emit the run of base lines neither side changed."""
        run: list[str] = []
        count = 0

        while self.base_idx < len(self.base) and not self.has_change_at(self.base_idx):
            if self.ours_idx < len(self.ours):
                run.append(self.ours[self.ours_idx])
            self.base_idx += 1
            self.ours_idx += 1
            self.theirs_idx += 1
            count += 1

        if count:
            self._add_region(
                MergeRegionType.UNCHANGED,
                lines=tuple(run),
                base_count=count,
                ours_count=count,
                theirs_count=count
            )

        if self.base_idx >= len(self.base):
            return WalkState.TRAILING
        return WalkState.EMITTING

    def _emit_change(self) -> WalkState:
        """Classify the change starting at the base cursor."""
        hunk = self.collect_hunk()

        ours_advance = self._side_advance(hunk, hunk.ours_blocks)
        theirs_advance = self._side_advance(hunk, hunk.theirs_blocks)

        ours_lines = tuple(self.ours[self.ours_idx:self.ours_idx + ours_advance])
        theirs_lines = tuple(self.theirs[self.theirs_idx:self.theirs_idx + theirs_advance])
        base_lines = tuple(self.base[hunk.base_start:hunk.base_end])

        counts = dict(
            base_count=hunk.base_count,
            ours_count=len(ours_lines),
            theirs_count=len(theirs_lines)
        )

        # A side that only deleted keeps no lines; the deleted text stays in base_lines
        if ours_lines == theirs_lines:
            # Both sides ended up with the same text: false conflict
            self._add_region(MergeRegionType.UNCHANGED, lines=ours_lines, **counts)
        elif not hunk.theirs_blocks:
            self._add_region(
                MergeRegionType.OURS_ONLY, lines=ours_lines, base_lines=base_lines, **counts
            )
        elif not hunk.ours_blocks:
            self._add_region(
                MergeRegionType.THEIRS_ONLY, lines=theirs_lines, base_lines=base_lines, **counts
            )
        else:
            self._add_region(
                MergeRegionType.CONFLICT,
                ours_lines=ours_lines,
                theirs_lines=theirs_lines,
                base_lines=base_lines,
                **counts
            )

        if hunk.base_count == 0:
            self._spent_at = hunk.base_start
        self.base_idx = hunk.base_end
        self.ours_idx += ours_advance
        self.theirs_idx += theirs_advance

        return WalkState.SCANNING

    def _emit_trailing(self) -> None:
        """Emit lines both sides appended after the end of base."""
        ours_rest = tuple(self.ours[self.ours_idx:])
        theirs_rest = tuple(self.theirs[self.theirs_idx:])

        counts = dict(base_count=0, ours_count=len(ours_rest), theirs_count=len(theirs_rest))

        if ours_rest and theirs_rest:
            if ours_rest == theirs_rest:
                self._add_region(MergeRegionType.UNCHANGED, lines=ours_rest, **counts)
            else:
                self._add_region(
                    MergeRegionType.CONFLICT,
                    ours_lines=ours_rest,
                    theirs_lines=theirs_rest,
                    **counts
                )
        elif ours_rest:
            self._add_region(MergeRegionType.OURS_ONLY, lines=ours_rest, **counts)
        elif theirs_rest:
            self._add_region(MergeRegionType.THEIRS_ONLY, lines=theirs_rest, **counts)

        self.ours_idx = max(self.ours_idx, len(self.ours))
        self.theirs_idx = max(self.theirs_idx, len(self.theirs))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def has_change_at(self, base_idx: int) -> bool:
        """Whether an unconsumed block starts at `base_idx` on either side."""
        if base_idx == self._spent_at:
            return False
        return base_idx in self.ours_map or base_idx in self.theirs_map

    def collect_hunk(self) -> Hunk:
        """
        Gather the blocks of both sides that start at the base cursor.

        The span ends at the furthest block end, and grows while either
        side has another block starting inside it, so overlapping edits
        land in a single hunk.
        """
        start = self.base_idx
        ours_blocks: list[EditBlock] = []
        theirs_blocks: list[EditBlock] = []
        sides = ((self.ours_map, ours_blocks), (self.theirs_map, theirs_blocks))

        end = start
        for block_map, taken in sides:
            block = block_map.get(start)
            if block is not None:
                taken.append(block)
                end = max(end, block.delete_end)

        pos = start + 1
        while pos < end:
            for block_map, taken in sides:
                block = block_map.get(pos)
                if block is not None:
                    taken.append(block)
                    end = max(end, block.delete_end)
            pos += 1

        return Hunk(
            base_start=start,
            base_end=min(end, len(self.base)),
            ours_blocks=tuple(ours_blocks),
            theirs_blocks=tuple(theirs_blocks)
        )

    def _side_advance(self, hunk: Hunk, blocks: Sequence[EditBlock]) -> int:
        """Lines one side spans over the hunk: the base span plus its net insertions."""
        advance = hunk.base_count
        for block in blocks:
            deleted = max(0, min(block.delete_end, hunk.base_end) - block.delete_start)
            advance += max(0, block.insert_count) - deleted
        return max(0, advance)

    def _add_region(self, region_type: MergeRegionType, **fields) -> None:
        self._regions.append(MergeRegion(
            index=len(self._regions),
            region_type=region_type,
            **fields
        ))
