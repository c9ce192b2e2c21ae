"""
Line diff engine used as the merge engine's diff collaborator.

Provides line-by-line comparison with support for:
- Multiple diff algorithms
- Whitespace handling options
- Case sensitivity

The engine reports differences as `EditBlock`s: each block replaces a
contiguous run of old lines with a contiguous run of new lines.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence

from trimerge.core.models import EditBlock


Opcode = tuple[str, int, int, int, int]


class DiffAlgorithm(Enum):
    """Available diff algorithms."""
    MYERS = auto()          # difflib with its autojunk heuristic
    MINIMAL = auto()        # difflib without autojunk
    PATIENCE = auto()       # Patience diff - anchors on unique lines


class WhitespaceMode(Enum):
    """Whitespace handling modes."""
    EXACT = auto()            # Compare whitespace exactly
    IGNORE_TRAILING = auto()  # Ignore trailing whitespace
    IGNORE_LEADING = auto()   # Ignore leading whitespace
    IGNORE_ALL = auto()       # Ignore all whitespace
    NORMALIZE = auto()        # Normalize whitespace (collapse multiple to single)


@dataclass
class TextCompareOptions:
    """Options for text comparison."""
    algorithm: DiffAlgorithm = DiffAlgorithm.MINIMAL
    ignore_case: bool = False
    whitespace_mode: WhitespaceMode = WhitespaceMode.EXACT

    def normalize_line(self, line: str) -> str:
        """Normalize a line according to options."""
        result = line

        if self.whitespace_mode == WhitespaceMode.IGNORE_TRAILING:
            result = result.rstrip()
        elif self.whitespace_mode == WhitespaceMode.IGNORE_LEADING:
            result = result.lstrip()
        elif self.whitespace_mode == WhitespaceMode.IGNORE_ALL:
            result = ''.join(result.split())
        elif self.whitespace_mode == WhitespaceMode.NORMALIZE:
            result = ' '.join(result.split())

        if self.ignore_case:
            result = result.lower()

        return result


def opcodes_to_blocks(opcodes: Sequence[Opcode]) -> list[EditBlock]:
    """
    Convert difflib-style opcodes into edit blocks.

    Consecutive non-equal opcodes are fused into one block, so no two
    blocks start at the same old-text index.
    """
    blocks: list[EditBlock] = []
    current: Optional[list[int]] = None  # [i1, i2, j1, j2]

    for tag, i1, i2, j1, j2 in opcodes:
        if tag == 'equal':
            if current is not None:
                blocks.append(_block_from_span(current))
                current = None
        elif current is None:
            current = [i1, i2, j1, j2]
        else:
            current[1] = i2
            current[3] = j2

    if current is not None:
        blocks.append(_block_from_span(current))

    return blocks


def _block_from_span(span: list[int]) -> EditBlock:
    i1, i2, j1, j2 = span
    return EditBlock(
        delete_start=i1,
        delete_count=i2 - i1,
        insert_start=j1,
        insert_count=j2 - j1
    )


class TextDiffEngine:
    """
    Engine for comparing sequences of lines.

    Lines are normalized according to the options before comparison; the
    reported indices always refer to the original sequences.
    """

    def __init__(self, options: Optional[TextCompareOptions] = None):
        self.options = options or TextCompareOptions()

    def edit_blocks(
        self,
        old_lines: Sequence[str],
        new_lines: Sequence[str]
    ) -> list[EditBlock]:
        """
        Compute the edit blocks turning `old_lines` into `new_lines`.

        Args:
            old_lines: Lines of the original text
            new_lines: Lines of the modified text

        Returns:
            Non-overlapping blocks ordered by position
        """
        old_normalized = [self.options.normalize_line(line) for line in old_lines]
        new_normalized = [self.options.normalize_line(line) for line in new_lines]

        return opcodes_to_blocks(self.get_opcodes(old_normalized, new_normalized))

    def get_opcodes(self, left: list[str], right: list[str]) -> list[Opcode]:
        """Get diff opcodes using the configured algorithm."""
        if self.options.algorithm == DiffAlgorithm.PATIENCE:
            return self._patience_diff(left, right)
        elif self.options.algorithm == DiffAlgorithm.MYERS:
            return difflib.SequenceMatcher(None, left, right).get_opcodes()
        else:  # MINIMAL (default)
            matcher = difflib.SequenceMatcher(None, left, right, autojunk=False)
            return matcher.get_opcodes()

    def _patience_diff(self, left: list[str], right: list[str]) -> list[Opcode]:
        """
        Patience diff algorithm.

        Better for code because it anchors on unique lines.
        """
        # Find unique lines in both sequences
        left_unique: dict[str, Optional[int]] = {}
        right_unique: dict[str, Optional[int]] = {}

        for i, line in enumerate(left):
            left_unique[line] = None if line in left_unique else i

        for i, line in enumerate(right):
            right_unique[line] = None if line in right_unique else i

        # Find common unique lines
        common = []
        for line, left_idx in left_unique.items():
            if left_idx is not None and right_unique.get(line) is not None:
                common.append((left_idx, right_unique[line], line))

        # Sort by position in left
        common.sort()

        # Keep the longest run that is increasing in right as well
        if common:
            lis = self._find_lis([c[1] for c in common])
            anchors = [common[i] for i in lis]
        else:
            anchors = []

        return self._build_opcodes_from_anchors(left, right, anchors)

    def _find_lis(self, sequence: list[int]) -> list[int]:
        """Find indices of Longest Increasing Subsequence."""
        if not sequence:
            return []

        n = len(sequence)
        # dp[i] = smallest ending element for LIS of length i+1
        dp: list[int] = []
        # parent[i] = index of previous element in LIS ending at i
        parent = [-1] * n
        # indices[i] = index in original sequence for dp[i]
        indices: list[int] = []

        for i, val in enumerate(sequence):
            lo, hi = 0, len(dp)
            while lo < hi:
                mid = (lo + hi) // 2
                if dp[mid] < val:
                    lo = mid + 1
                else:
                    hi = mid

            if lo == len(dp):
                dp.append(val)
                indices.append(i)
            else:
                dp[lo] = val
                indices[lo] = i

            parent[i] = indices[lo - 1] if lo > 0 else -1

        result = []
        idx = indices[-1] if indices else -1
        while idx >= 0:
            result.append(idx)
            idx = parent[idx]

        return list(reversed(result))

    def _build_opcodes_from_anchors(
        self,
        left: list[str],
        right: list[str],
        anchors: list[tuple[int, int, str]]
    ) -> list[Opcode]:
        """Build opcodes using anchor points, diffing the gaps between them."""
        opcodes: list[Opcode] = []

        left_pos = 0
        right_pos = 0

        for left_idx, right_idx, _ in anchors:
            opcodes.extend(self._diff_gap(left, right, left_pos, left_idx, right_pos, right_idx))
            opcodes.append(('equal', left_idx, left_idx + 1, right_idx, right_idx + 1))

            left_pos = left_idx + 1
            right_pos = right_idx + 1

        opcodes.extend(self._diff_gap(left, right, left_pos, len(left), right_pos, len(right)))

        return opcodes

    def _diff_gap(
        self,
        left: list[str],
        right: list[str],
        left_start: int,
        left_end: int,
        right_start: int,
        right_end: int
    ) -> list[Opcode]:
        """Opcodes for the region between two anchors."""
        gap_left = left[left_start:left_end]
        gap_right = right[right_start:right_end]

        if gap_left and gap_right:
            matcher = difflib.SequenceMatcher(None, gap_left, gap_right, autojunk=False)
            return [
                (tag, left_start + i1, left_start + i2, right_start + j1, right_start + j2)
                for tag, i1, i2, j1, j2 in matcher.get_opcodes()
            ]
        elif gap_left:
            return [('delete', left_start, left_end, right_start, right_start)]
        elif gap_right:
            return [('insert', left_start, left_start, right_start, right_end)]
        return []
