"""
Index edit blocks by the base line they start at.
"""

from __future__ import annotations

import logging
from typing import Iterable

from trimerge.core.models import EditBlock


BlockMap = dict[int, EditBlock]


def build_block_map(blocks: Iterable[EditBlock]) -> BlockMap:
    """
    Build a lookup from base line index to the edit block starting there.

    Blocks with a negative start are skipped. If two blocks claim the same
    start index the first one wins, so every index maps to at most one block.
    """
    block_map: BlockMap = {}

    for block in blocks:
        if block.delete_start < 0:
            continue
        if block.delete_start in block_map:
            logging.warning(
                f"build_block_map - Ignoring overlapping block at base line {block.delete_start}: {block}"
            )
            continue
        block_map[block.delete_start] = block

    return block_map
