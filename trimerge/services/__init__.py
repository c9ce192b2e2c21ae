"""
Services for file access and persisted settings.
"""

from trimerge.services.file_io import (
    FileContent,
    FileIOService,
    LineEnding,
    ReadResult,
    WriteResult,
)
from trimerge.services.settings import (
    ApplicationSettings,
    MergeSettings,
    SettingsManager,
)

__all__ = [
    # File I/O
    'FileContent',
    'FileIOService',
    'LineEnding',
    'ReadResult',
    'WriteResult',
    # Settings
    'ApplicationSettings',
    'MergeSettings',
    'SettingsManager',
]
