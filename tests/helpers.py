"""Test helper functions for trimerge tests."""

from __future__ import annotations

from trimerge.core.models import FileMergeResult, MergeRegionType


def region_shape(result: FileMergeResult) -> list[tuple[MergeRegionType, str]]:
    """(type, text) pairs; conflicts render as 'ours|theirs'."""
    shape = []
    for region in result.regions:
        if region.is_conflict:
            text = "\n".join(region.ours_lines) + "|" + "\n".join(region.theirs_lines)
        else:
            text = region.content
        shape.append((region.region_type, text))
    return shape
