"""
Diff module for line comparison.

Provides:
- Line splitting and line-ending normalization
- The line diff engine producing edit blocks
"""

from trimerge.core.diff.lines import (
    normalize_line_endings,
    split_lines,
)
from trimerge.core.diff.text_diff import (
    TextDiffEngine,
    DiffAlgorithm,
    TextCompareOptions,
    WhitespaceMode,
    opcodes_to_blocks,
)

__all__ = [
    # Lines
    'normalize_line_endings',
    'split_lines',
    # Text diff
    'TextDiffEngine',
    'DiffAlgorithm',
    'TextCompareOptions',
    'WhitespaceMode',
    'opcodes_to_blocks',
]
