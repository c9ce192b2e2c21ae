"""
Workers for merge operations.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject

from trimerge.workers.base_worker import BaseWorker
from trimerge.core.merge.conflict_resolver import ResolutionSession
from trimerge.core.merge.three_way import ThreeWayMergeEngine
from trimerge.core.models import FileMergeResult
from trimerge.services.file_io import FileIOService, WriteResult
from trimerge.services.settings import MergeSettings


class MergeFromContentWorker(BaseWorker):
    """
    Worker for merging text content directly.
    """

    def __init__(
        self,
        base_content: str,
        ours_content: str,
        theirs_content: str,
        settings: Optional[MergeSettings] = None,
        file_path: str = "",
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.base_content = base_content
        self.ours_content = ours_content
        self.theirs_content = theirs_content
        self.settings = settings or MergeSettings()
        self.file_path = file_path

    def do_work(self) -> FileMergeResult:
        """Perform merge on content."""
        self.report_status("Merging...")
        engine = ThreeWayMergeEngine(self.settings.to_compare_options())
        return engine.merge(
            self.base_content,
            self.ours_content,
            self.theirs_content,
            ignore_whitespace=self.settings.ignore_whitespace,
            file_path=self.file_path
        )


class MergeFilesWorker(BaseWorker):
    """
    Worker for three-way merge of files on disk.
    """

    def __init__(
        self,
        base_path: str | Path,
        ours_path: str | Path,
        theirs_path: str | Path,
        settings: Optional[MergeSettings] = None,
        file_service: Optional[FileIOService] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.base_path = Path(base_path)
        self.ours_path = Path(ours_path)
        self.theirs_path = Path(theirs_path)
        self.settings = settings or MergeSettings()
        self.file_service = file_service or FileIOService(default_encoding=self.settings.encoding)

    def do_work(self) -> FileMergeResult:
        """Read the three versions and merge them."""
        paths = (self.base_path, self.ours_path, self.theirs_path)
        total = len(paths) + 1
        contents: list[str] = []

        for step, path in enumerate(paths):
            self.check_cancelled()
            self.report_progress(step, total, f"Reading {path.name}...")

            read = self.file_service.read_file(path)
            if not read.success:
                raise IOError(read.error)
            contents.append(read.content.content)

        self.check_cancelled()
        self.report_progress(len(paths), total, "Merging...")

        engine = ThreeWayMergeEngine(self.settings.to_compare_options())
        result = engine.merge(
            *contents,
            ignore_whitespace=self.settings.ignore_whitespace,
            file_path=str(self.ours_path)
        )

        self.report_progress(total, total, "Done")
        logging.debug(
            f"MergeFilesWorker - {self.ours_path}: {result.conflict_count} conflicts"
        )
        return result


class SaveMergeWorker(BaseWorker):
    """
    Worker for saving a merge result to file.

    Unresolved conflicts are written with conflict markers.
    """

    def __init__(
        self,
        session: ResolutionSession,
        output_path: str | Path,
        settings: Optional[MergeSettings] = None,
        file_service: Optional[FileIOService] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.session = session
        self.output_path = Path(output_path)
        self.settings = settings or MergeSettings()
        self.file_service = file_service or FileIOService()

    def do_work(self) -> WriteResult:
        """Save merge result."""
        self.report_status(f"Saving {self.output_path.name}...")

        if self.session.is_fully_resolved():
            content = self.session.merged_content()
        else:
            content = self.session.display_content(self.settings.show_base_in_conflicts)

        self.check_cancelled()

        written = self.file_service.write_file(
            self.output_path,
            content,
            encoding=self.settings.encoding,
            backup_suffix=self.settings.backup_extension if self.settings.create_backup else None
        )
        if not written.success:
            raise IOError(written.error)

        return written
