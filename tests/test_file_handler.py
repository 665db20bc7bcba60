"""Tests for file_handler module: mirror path, encoding-aware read/write, removal."""

from pathlib import Path

import pytest

from webstrate_sync.file_handler import (
    ensure_mount_dir,
    mirror_path,
    read_file_with_encoding,
    remove_file,
    write_file,
)

# =============================================================================
# mirror_path
# =============================================================================


class TestMirrorPath:
    def test_path_under_mount_dir(self, tmp_path):
        result = mirror_path(tmp_path, "notes")
        assert result == tmp_path.resolve() / "notes.html"
        assert result.is_absolute()

    def test_relative_mount_dir_resolved(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert mirror_path("./documents", "x") == (
            tmp_path.resolve() / "documents" / "x.html"
        )

    def test_home_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert mirror_path("~/mirrors", "x") == (
            tmp_path.resolve() / "mirrors" / "x.html"
        )

    @pytest.mark.parametrize("doc_id", ["", "../x", "a/b"])
    def test_invalid_id_raises(self, tmp_path, doc_id):
        with pytest.raises(ValueError):
            mirror_path(tmp_path, doc_id)

    def test_ensure_mount_dir(self, tmp_path):
        path = tmp_path / "a" / "b" / "notes.html"
        assert ensure_mount_dir(path) == tmp_path / "a" / "b"
        assert path.parent.is_dir()


# =============================================================================
# Read / write / remove
# =============================================================================


class TestReadWrite:
    def test_write_returns_byte_count(self, tmp_path):
        path = tmp_path / "sub" / "a.html"
        assert write_file(path, "<p>é</p>") == len("<p>é</p>".encode("utf-8"))
        assert path.read_text(encoding="utf-8") == "<p>é</p>"

    def test_utf8_read(self, tmp_path):
        path = tmp_path / "a.html"
        path.write_bytes("<p>Grüße</p>".encode("utf-8"))
        assert read_file_with_encoding(path) == ("<p>Grüße</p>", "utf-8")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "a.html"
        path.write_bytes(b"")
        assert read_file_with_encoding(path) == ("", "utf-8")

    def test_non_utf8_detected(self, tmp_path):
        path = tmp_path / "a.html"
        path.write_bytes(
            "<html><body><p>Voilà, déjà vu à la française</p></body></html>".encode(
                "latin-1"
            )
        )
        content, _ = read_file_with_encoding(path)
        assert isinstance(content, str)
        assert content.startswith("<html><body><p>Voil")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_file_with_encoding(tmp_path / "missing.html")


class TestRemoveFile:
    def test_removes_existing(self, tmp_path):
        path = tmp_path / "a.html"
        path.write_text("x")
        assert remove_file(path) is True
        assert not path.exists()

    def test_missing_is_false(self, tmp_path):
        assert remove_file(Path(tmp_path / "gone.html")) is False
