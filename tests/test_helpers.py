from types import SimpleNamespace

import pytest

import ui_documents
import ui_filepicker
import ui_text
from schemas import GroundingSource


def test_source_label_prefers_title():
    src = GroundingSource(type="web", uri="https://www.example.com/a", title="Example")

    assert ui_text.source_label(src) == "Example"


def test_source_label_falls_back_to_host_for_web():
    src = GroundingSource(type="web", uri="https://www.example.com/a", title="  ")

    assert ui_text.source_label(src) == "www.example.com"


def test_clip():
    assert ui_text.clip("  a   b  ", 10) == "a b"
    assert ui_text.clip("abcdefghij", 5) == "abcd…"


def test_format_number():
    assert ui_text.format_number(0.7) == "0.70"
    assert ui_text.format_number("x") == "--"


def test_source_from_file(tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("Paris is the capital.", encoding="utf-8")

    assert ui_documents.source_from_file(path) == ("notes", "Paris is the capital.")


def test_empty_source_file_is_rejected(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("   \n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="empty"):
        ui_documents.source_from_file(path)


def test_missing_source_file_is_rejected(tmp_path):
    with pytest.raises(RuntimeError, match="Unable to read"):
        ui_documents.source_from_file(tmp_path / "missing.txt")


def test_read_image(tmp_path):
    path = tmp_path / "dot.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n")

    image = ui_filepicker.read_image(path)

    assert image.mime_type == "image/png"
    assert image.data == "iVBORw0KGgo="


def test_read_image_rejects_other_files(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hi", encoding="utf-8")

    with pytest.raises(RuntimeError, match="not an image"):
        ui_filepicker.read_image(path)


def test_picked_paths_dedupes_and_skips_missing(tmp_path):
    result = SimpleNamespace(
        files=[
            SimpleNamespace(path="/a/one.png", name="one.png"),
            SimpleNamespace(path="/a/one.png", name="one.png"),
            SimpleNamespace(path=None, name="web-only.png"),
        ]
    )

    assert ui_filepicker.picked_paths(result) == ["/a/one.png"]


def test_picked_paths_uses_save_path():
    assert ui_filepicker.picked_paths(SimpleNamespace(files=None, path="/tmp/out.md")) == ["/tmp/out.md"]
    assert ui_filepicker.picked_paths(None) == []
