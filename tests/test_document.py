"""Tests for loading and saving documents."""

from pathlib import Path

from plistkit.core.document import expand_path, from_string, is_writable, load, load_array, save
from plistkit.core.types import Kind, from_typed


class TestDocumentIO:
    """Test document files on disk."""

    def test_save_and_load(self, tmp_path: Path):
        doc = from_typed({"a": [1, {"b": True}]})
        target = tmp_path / "doc.plist"
        assert save(doc, target) is True
        assert load(target) == doc

    def test_save_writes_utf8(self, tmp_path: Path):
        target = tmp_path / "doc.plist"
        save(from_typed({"name": "Café"}), target)
        assert "Café" in target.read_text(encoding="utf-8")

    def test_load_missing_file(self, tmp_path: Path):
        assert load(tmp_path / "missing.plist") is None

    def test_load_invalid_file(self, tmp_path: Path, caplog):
        target = tmp_path / "bad.plist"
        target.write_text("not xml at all <")
        assert load(target) is None
        assert "Could not parse" in caplog.text

    def test_load_file_with_bad_date(self, tmp_path: Path):
        target = tmp_path / "bad_date.plist"
        target.write_text(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<plist version="1.0"><dict><key>d</key><date>2021-13-99</date></dict></plist>\n'
        )
        assert load(target) is None

    def test_save_refuses_unrepresentable_text(self, tmp_path: Path):
        target = tmp_path / "doc.plist"
        assert save(from_typed({"s": "x\x01y"}), target) is False
        assert not target.exists()

    def test_expected_root_kind(self, tmp_path: Path):
        target = tmp_path / "doc.plist"
        save(from_typed({"a": 1}), target)
        assert load(target, expect=Kind.DICT) is not None
        assert load_array(target) is None

    def test_save_to_missing_directory(self, tmp_path: Path):
        target = tmp_path / "nope" / "doc.plist"
        assert is_writable(target) is False
        assert save(from_typed({}), target) is False
        assert not target.exists()

    def test_expand_path(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert expand_path("~/x.plist") == tmp_path / "x.plist"

    def test_from_string(self):
        assert from_string("garbage") is None
        text = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<plist version="1.0"><array><integer>1</integer></array></plist>'
        )
        assert from_string(text) == from_typed([1])
