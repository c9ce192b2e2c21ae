"""
Merge module for three-way file merging.

Provides:
- Block map construction and the region walker
- Region coalescing and line-number annotation
- The three-way merge engine
- Conflict resolution sessions and suggestions
"""

from trimerge.core.merge.block_map import (
    BlockMap,
    build_block_map,
)
from trimerge.core.merge.region_walker import (
    Hunk,
    RegionWalker,
    WalkState,
)
from trimerge.core.merge.regions import (
    annotate_line_numbers,
    coalesce_regions,
)
from trimerge.core.merge.three_way import (
    EditScriptProvider,
    MergeStrategy,
    ThreeWayMergeEngine,
    perform_merge,
)
from trimerge.core.merge.conflict_resolver import (
    ConflictAnalyzer,
    ResolutionSession,
    ResolutionSuggestion,
)

__all__ = [
    # Block map
    'BlockMap',
    'build_block_map',
    # Walker
    'Hunk',
    'RegionWalker',
    'WalkState',
    # Post-processing
    'annotate_line_numbers',
    'coalesce_regions',
    # Engine
    'EditScriptProvider',
    'MergeStrategy',
    'ThreeWayMergeEngine',
    'perform_merge',
    # Resolution
    'ConflictAnalyzer',
    'ResolutionSession',
    'ResolutionSuggestion',
]
