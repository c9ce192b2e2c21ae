"""
Post-processing of walked merge regions.

- Coalescing adjacent regions of the same non-conflict type
- Annotating regions with their start line in each version
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from trimerge.core.models import MergeRegion


def coalesce_regions(regions: Sequence[MergeRegion]) -> list[MergeRegion]:
    """
    Merge adjacent regions of the same non-conflict type.

    Conflicts are never merged, even with an adjacent conflict, so each one
    stays individually addressable. Indices are reassigned from 0.
    """
    coalesced: list[MergeRegion] = []

    for region in regions:
        if coalesced:
            current = coalesced[-1]
            if (current.region_type == region.region_type
                    and not current.is_conflict and not region.is_conflict):
                coalesced[-1] = replace(
                    current,
                    lines=current.lines + region.lines,
                    base_lines=current.base_lines + region.base_lines,
                    base_count=current.base_count + region.base_count,
                    ours_count=current.ours_count + region.ours_count,
                    theirs_count=current.theirs_count + region.theirs_count
                )
                continue
        coalesced.append(region)

    return [replace(region, index=i) for i, region in enumerate(coalesced)]


def annotate_line_numbers(regions: Sequence[MergeRegion]) -> list[MergeRegion]:
    """Stamp each region with the 1-based line it starts at in base, ours and theirs."""
    annotated: list[MergeRegion] = []
    base_line = ours_line = theirs_line = 1

    for region in regions:
        annotated.append(replace(
            region,
            base_start_line=base_line,
            ours_start_line=ours_line,
            theirs_start_line=theirs_line
        ))
        base_line += region.base_count
        ours_line += region.ours_count
        theirs_line += region.theirs_count

    return annotated
