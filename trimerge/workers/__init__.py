"""
Background workers for non-blocking operations.

Provides QThread-based workers for:
- Merging text content
- Merging files on disk
- Saving merge results

All workers use Qt signals for thread-safe communication
with the UI thread.
"""

from trimerge.workers.base_worker import (
    BaseWorker,
    CancelledException,
    WorkerSignals,
    WorkerState,
    WorkerThread,
)
from trimerge.workers.merge_worker import (
    MergeFilesWorker,
    MergeFromContentWorker,
    SaveMergeWorker,
)

__all__ = [
    # Base
    'BaseWorker',
    'CancelledException',
    'WorkerSignals',
    'WorkerState',
    'WorkerThread',
    # Merge
    'MergeFilesWorker',
    'MergeFromContentWorker',
    'SaveMergeWorker',
]
