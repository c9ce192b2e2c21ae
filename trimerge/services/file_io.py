"""
File I/O service for reading merge inputs and writing merge results.

Handles:
- Encoding detection
- Byte order marks
- Line ending detection
- Atomic writes with optional backups
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional

import chardet

from trimerge.core.diff.lines import split_lines


class LineEnding(Enum):
    """Line ending style."""
    LF = auto()      # Unix: \n
    CRLF = auto()    # Windows: \r\n
    CR = auto()      # Old Mac: \r
    MIXED = auto()   # Mixed endings
    NONE = auto()    # No line endings (single line)


@dataclass
class FileContent:
    """Container for file content with metadata."""
    content: str
    lines: list[str]
    encoding: str
    line_ending: LineEnding
    bom: bool
    size: int


@dataclass
class ReadResult:
    """Result of a file read operation."""
    success: bool
    content: Optional[FileContent] = None
    error: Optional[str] = None
    is_binary: bool = False


@dataclass
class WriteResult:
    """Result of a file write operation."""
    success: bool
    bytes_written: int = 0
    backup_path: Optional[Path] = None
    error: Optional[str] = None


class FileIOService:
    """Service for safe file I/O operations."""

    BOMS = [
        (b'\xef\xbb\xbf', 'utf-8-sig'),
        (b'\xff\xfe', 'utf-16-le'),
        (b'\xfe\xff', 'utf-16-be'),
    ]

    # Binary file signatures (magic bytes)
    BINARY_SIGNATURES = [
        b'\x89PNG',        # PNG
        b'\xff\xd8\xff',   # JPEG
        b'GIF8',           # GIF
        b'PK\x03\x04',     # ZIP
        b'\x1f\x8b',       # GZIP
        b'%PDF',           # PDF
        b'\x7fELF',        # ELF
    ]

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        fallback_encoding: str = 'latin-1',
        binary_check_size: int = 8192
    ):
        self.default_encoding = default_encoding
        self.fallback_encoding = fallback_encoding
        self.binary_check_size = binary_check_size

    def read_file(
        self,
        path: Path | str,
        encoding: Optional[str] = None,
        max_text_size: int = 50 * 1024 * 1024  # 50MB default limit
    ) -> ReadResult:
        """
        Read a text file with automatic encoding detection.

        Args:
            path: Path to the file
            encoding: Force specific encoding (auto-detect if None)
            max_text_size: Maximum file size in bytes to read as text

        Returns:
            ReadResult with content or error information
        """
        path = Path(path)

        if not path.exists():
            return ReadResult(success=False, error=f"File not found: {path}")

        if not path.is_file():
            return ReadResult(success=False, error=f"Not a file: {path}")

        try:
            file_size = path.stat().st_size
            if file_size > max_text_size:
                return ReadResult(
                    success=False,
                    error=f"File too large to merge ({file_size / 1024 / 1024:.2f} MB). "
                          f"Max size is {max_text_size / 1024 / 1024:.2f} MB."
                )

            raw_content = path.read_bytes()
        except PermissionError:
            return ReadResult(success=False, error=f"Permission denied: {path}")
        except OSError as e:
            return ReadResult(success=False, error=f"OS error: {e}")

        bom_encoding = self._detect_bom(raw_content)
        bom = bom_encoding is not None

        if not bom and self._is_binary(raw_content[:self.binary_check_size]):
            return ReadResult(success=False, is_binary=True,
                              error=f"File appears to be binary: {path}")

        detected_encoding = bom_encoding or encoding or self._detect_encoding(raw_content)

        try:
            content = raw_content.decode(detected_encoding)
        except (UnicodeDecodeError, LookupError):
            logging.warning(
                f"FileIOService - Could not decode {path} as {detected_encoding}, "
                f"falling back to {self.fallback_encoding}"
            )
            content = raw_content.decode(self.fallback_encoding, errors='replace')
            detected_encoding = self.fallback_encoding

        if bom and content.startswith('\ufeff'):
            content = content[1:]

        logging.debug(f"FileIOService - Read {path} ({len(raw_content)} bytes, {detected_encoding})")

        return ReadResult(
            success=True,
            content=FileContent(
                content=content,
                lines=split_lines(content),
                encoding=detected_encoding,
                line_ending=self._detect_line_ending(content),
                bom=bom,
                size=len(raw_content)
            )
        )

    def write_file(
        self,
        path: Path | str,
        content: str,
        encoding: str = 'utf-8',
        line_ending: LineEnding = LineEnding.LF,
        backup_suffix: Optional[str] = None,
        atomic: bool = True,
        bom: bool = False
    ) -> WriteResult:
        """
        Write text to a file.

        Args:
            path: Path to write to
            content: Text with '\\n' line separators
            encoding: Encoding to use
            line_ending: Line ending style written to disk
            backup_suffix: Copy an existing file to path + suffix first
            atomic: Use atomic write (write to temp then move)
            bom: Start the file with a byte order mark

        Returns:
            WriteResult with success status
        """
        path = Path(path)

        line_sep = self._get_line_separator(line_ending)
        if line_sep != '\n':
            content = content.replace('\n', line_sep)

        # utf-8-sig writes its own mark
        if bom and not encoding.lower().endswith('-sig'):
            content = '\ufeff' + content

        try:
            encoded = content.encode(encoding)
        except (UnicodeEncodeError, LookupError) as e:
            return WriteResult(success=False, error=f"Cannot encode as {encoding}: {e}")

        backup_path: Optional[Path] = None
        try:
            if backup_suffix and path.exists():
                backup_path = path.with_name(path.name + backup_suffix)
                shutil.copy2(path, backup_path)
                logging.debug(f"FileIOService - Backed up {path} to {backup_path}")

            path.parent.mkdir(parents=True, exist_ok=True)

            if atomic:
                # Write to temporary file then move
                fd, temp_path = tempfile.mkstemp(dir=path.parent)
                try:
                    with os.fdopen(fd, 'wb') as f:
                        f.write(encoded)
                    shutil.move(temp_path, path)
                except OSError:
                    if os.path.exists(temp_path):
                        os.unlink(temp_path)
                    raise
            else:
                path.write_bytes(encoded)

            return WriteResult(success=True, bytes_written=len(encoded), backup_path=backup_path)

        except PermissionError:
            return WriteResult(success=False, error=f"Permission denied: {path}")
        except OSError as e:
            return WriteResult(success=False, error=f"OS error: {e}")

    def _detect_bom(self, content: bytes) -> Optional[str]:
        for bom, encoding in self.BOMS:
            if content.startswith(bom):
                return encoding
        return None

    def _is_binary(self, chunk: bytes) -> bool:
        """Check if a leading chunk of a file looks binary."""
        if not chunk:
            return False

        for sig in self.BINARY_SIGNATURES:
            if chunk.startswith(sig):
                return True

        # Null bytes are a strong indicator
        if b'\x00' in chunk:
            return True

        # Check ratio of non-text bytes
        non_text = sum(1 for b in chunk if b < 9 or (13 < b < 32))
        return non_text / len(chunk) > 0.3

    def _detect_encoding(self, content: bytes) -> str:
        """Detect encoding of content."""
        if not content:
            return self.default_encoding

        result = chardet.detect(content)

        if result['confidence'] > 0.7 and result['encoding']:
            encoding = result['encoding'].lower()
            if encoding == 'ascii':
                return 'utf-8'  # ASCII is subset of UTF-8
            return encoding

        return self.default_encoding

    def _detect_line_ending(self, content: str) -> LineEnding:
        """Detect line ending style in content."""
        crlf_count = content.count('\r\n')
        lf_count = content.count('\n') - crlf_count
        cr_count = content.count('\r') - crlf_count

        total = crlf_count + lf_count + cr_count
        if total == 0:
            return LineEnding.NONE

        if crlf_count == total:
            return LineEnding.CRLF
        elif lf_count == total:
            return LineEnding.LF
        elif cr_count == total:
            return LineEnding.CR
        else:
            return LineEnding.MIXED

    def _get_line_separator(self, line_ending: LineEnding) -> str:
        """Get the line separator string for a line ending type."""
        if line_ending == LineEnding.CRLF:
            return '\r\n'
        elif line_ending == LineEnding.CR:
            return '\r'
        else:
            return '\n'
