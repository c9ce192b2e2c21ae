"""Tests for the file I/O and settings services."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from trimerge.core.diff.text_diff import DiffAlgorithm, WhitespaceMode
from trimerge.services.file_io import FileIOService, LineEnding
from trimerge.services.settings import ApplicationSettings, MergeSettings, SettingsManager


@pytest.fixture
def service() -> FileIOService:
    return FileIOService()


class TestReadFile:
    """Reading merge inputs."""

    def test_utf8(self, service, tmp_path: Path):
        path = tmp_path / "a.txt"
        path.write_text("héllo wörld\nçà et là, naïve façade\n", encoding="utf-8")

        result = service.read_file(path)

        assert result.success
        assert result.content.content == "héllo wörld\nçà et là, naïve façade\n"
        assert result.content.lines == ["héllo wörld", "çà et là, naïve façade", ""]
        assert result.content.line_ending == LineEnding.LF
        assert not result.content.bom

    def test_crlf_detected(self, service, tmp_path: Path):
        path = tmp_path / "win.txt"
        path.write_bytes(b"a\r\nb\r\n")

        result = service.read_file(path)

        assert result.content.line_ending == LineEnding.CRLF
        assert result.content.lines == ["a", "b", ""]

    def test_utf8_bom_stripped(self, service, tmp_path: Path):
        path = tmp_path / "bom.txt"
        path.write_bytes(b"\xef\xbb\xbfabc")

        result = service.read_file(path)

        assert result.content.bom
        assert result.content.content == "abc"
        assert result.content.encoding == "utf-8-sig"

    def test_utf16_bom_is_text(self, service, tmp_path: Path):
        path = tmp_path / "wide.txt"
        path.write_bytes(b"\xff\xfe" + "hi\nthere".encode("utf-16-le"))

        result = service.read_file(path)

        assert result.success
        assert result.content.content == "hi\nthere"

    def test_empty_file(self, service, tmp_path: Path):
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")

        result = service.read_file(path)

        assert result.success
        assert result.content.lines == []
        assert result.content.line_ending == LineEnding.NONE

    def test_missing_file(self, service, tmp_path: Path):
        result = service.read_file(tmp_path / "nope.txt")

        assert not result.success
        assert "not found" in result.error

    def test_directory(self, service, tmp_path: Path):
        result = service.read_file(tmp_path)
        assert not result.success

    def test_binary_refused(self, service, tmp_path: Path):
        path = tmp_path / "img.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00")

        result = service.read_file(path)

        assert not result.success
        assert result.is_binary

    def test_too_large(self, service, tmp_path: Path):
        path = tmp_path / "big.txt"
        path.write_text("x" * 100)

        result = service.read_file(path, max_text_size=10)

        assert not result.success
        assert "too large" in result.error


class TestWriteFile:
    """Writing merge results."""

    def test_write(self, service, tmp_path: Path):
        path = tmp_path / "out" / "merged.txt"

        result = service.write_file(path, "a\nb\n")

        assert result.success
        assert result.bytes_written == 4
        assert path.read_bytes() == b"a\nb\n"

    def test_crlf(self, service, tmp_path: Path):
        path = tmp_path / "merged.txt"
        service.write_file(path, "a\nb", line_ending=LineEnding.CRLF)
        assert path.read_bytes() == b"a\r\nb"

    def test_byte_order_mark(self, service, tmp_path: Path):
        path = tmp_path / "wide.txt"
        service.write_file(path, "hi", encoding="utf-16-le", bom=True)
        assert path.read_bytes() == b"\xff\xfeh\x00i\x00"

    def test_utf8_sig_writes_one_mark(self, service, tmp_path: Path):
        path = tmp_path / "sig.txt"
        service.write_file(path, "hi", encoding="utf-8-sig", bom=True)
        assert path.read_bytes() == b"\xef\xbb\xbfhi"

    def test_backup(self, service, tmp_path: Path):
        path = tmp_path / "merged.txt"
        path.write_text("old")

        result = service.write_file(path, "new", backup_suffix=".orig")

        assert result.backup_path == tmp_path / "merged.txt.orig"
        assert result.backup_path.read_text() == "old"
        assert path.read_text() == "new"

    def test_no_backup_without_existing_file(self, service, tmp_path: Path):
        result = service.write_file(tmp_path / "fresh.txt", "x", backup_suffix=".orig")
        assert result.backup_path is None

    def test_unencodable(self, service, tmp_path: Path):
        result = service.write_file(tmp_path / "x.txt", "héllo", encoding="ascii")

        assert not result.success
        assert "ascii" in result.error

    def test_non_atomic(self, service, tmp_path: Path):
        path = tmp_path / "direct.txt"
        assert service.write_file(path, "z", atomic=False).success
        assert path.read_text() == "z"


class TestSettingsManager:
    """Persisted settings."""

    def test_defaults_when_missing(self, tmp_path: Path):
        manager = SettingsManager(tmp_path / "settings.json")
        assert manager.settings == ApplicationSettings()

    def test_round_trip(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        settings = ApplicationSettings(merge=MergeSettings(
            ignore_whitespace=True,
            diff_algorithm=DiffAlgorithm.PATIENCE,
            whitespace_mode=WhitespaceMode.IGNORE_TRAILING,
            ours_label="HEAD",
            backup_extension=".bak",
        ))

        assert SettingsManager(path).save(settings)

        assert SettingsManager(path).load() == settings

    def test_enums_stored_by_name(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        SettingsManager(path).save(ApplicationSettings())

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["merge"]["diff_algorithm"] == "MINIMAL"
        assert data["merge"]["whitespace_mode"] == "EXACT"

    def test_unknown_enum_falls_back(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"merge": {"diff_algorithm": "QUANTUM", "ignore_case": True}}))

        merge = SettingsManager(path).load().merge

        assert merge.diff_algorithm == DiffAlgorithm.MINIMAL
        assert merge.ignore_case

    def test_corrupt_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        assert SettingsManager(path).load() == ApplicationSettings()

    def test_observers_notified(self, tmp_path: Path):
        manager = SettingsManager(tmp_path / "settings.json")
        seen = []
        manager.add_observer(seen.append)

        manager.reset()
        manager.remove_observer(seen.append)
        manager.reset()

        assert len(seen) == 1

    def test_recent_merges(self, tmp_path: Path):
        manager = SettingsManager(tmp_path / "settings.json")
        manager.settings.recent_merges_limit = 2

        manager.add_recent_merge("b1", "o1", "t1")
        manager.add_recent_merge("b2", "o2", "t2")
        manager.add_recent_merge("b1", "o1", "t1")
        manager.add_recent_merge("b3", "o3", "t3")

        assert manager.settings.recent_merges == [["b3", "o3", "t3"], ["b1", "o1", "t1"]]

    def test_default_path_uses_xdg(self, monkeypatch, tmp_path: Path):
        monkeypatch.setattr("os.name", "posix")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert SettingsManager().settings_path == tmp_path / "trimerge" / "settings.json"

    def test_compare_options(self):
        options = MergeSettings(
            diff_algorithm=DiffAlgorithm.MYERS,
            ignore_case=True,
            whitespace_mode=WhitespaceMode.NORMALIZE,
        ).to_compare_options()

        assert options.algorithm == DiffAlgorithm.MYERS
        assert options.ignore_case
        assert options.whitespace_mode == WhitespaceMode.NORMALIZE
