from pathlib import Path

import pytest

from tagcut.host.content_type import OCTET_STREAM, PLAIN_TEXT, detect_content_type, sniff_file


@pytest.mark.parametrize(
    ("head", "expected"),
    [
        (b"%PDF-1.7", "application/pdf"),
        (b"\x89PNG\r\n\x1a\n....", "image/png"),
        (b"PK\x03\x04rest", "application/zip"),
        (b"\x1f\x8b\x08\x00", "application/x-gzip"),
        (b"  <!DOCTYPE html><html>", "text/html; charset=utf-8"),
        (b"<?xml version='1.0'?>", "text/xml; charset=utf-8"),
        (b"hello world\n", PLAIN_TEXT),
        (b"\x7fELF\x02\x01\x01\x00", OCTET_STREAM),
        (b"", PLAIN_TEXT),
    ],
)
def test_detect(head: bytes, expected: str) -> None:
    assert detect_content_type(head) == expected


def test_only_leading_bytes_count() -> None:
    assert detect_content_type(b"a" * 512 + b"\x00") == PLAIN_TEXT


def test_sniff_file(tmp_path: Path) -> None:
    path = tmp_path / "notes.md"
    path.write_text("# Notes\n", encoding="utf-8")
    assert sniff_file(path) == PLAIN_TEXT
