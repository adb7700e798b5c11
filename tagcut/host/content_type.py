"""Content-type sniffing from a file's leading bytes.

Release assets are uploaded with the MIME type their content announces, not
their extension. Known magic numbers win; otherwise content without binary
control bytes is plain text, and everything else is an octet stream.
"""

from __future__ import annotations

from pathlib import Path

SNIFF_LENGTH = 512

OCTET_STREAM = "application/octet-stream"
PLAIN_TEXT = "text/plain; charset=utf-8"

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"%PDF-", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"BM", "image/bmp"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"Rar!\x1a\x07", "application/x-rar-compressed"),
    (b"\x00asm", "application/wasm"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xef\xbb\xbf", PLAIN_TEXT),
)

_BINARY_BYTES = frozenset([*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)])


def detect_content_type(head: bytes) -> str:
    """MIME type for data starting with ``head`` (only the first 512 bytes count)."""
    head = head[:SNIFF_LENGTH]
    for magic, mime in _SIGNATURES:
        if head.startswith(magic):
            return mime

    stripped = head.lstrip(b"\t\n\x0c\r ")
    lowered = stripped[:14].lower()
    if lowered.startswith(b"<!doctype html") or lowered.startswith(b"<html"):
        return "text/html; charset=utf-8"
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"

    if any(b in _BINARY_BYTES for b in head):
        return OCTET_STREAM
    return PLAIN_TEXT


def sniff_file(path: Path) -> str:
    """Read a file's leading bytes and detect its content type.

    Raises:
        OSError: when the file cannot be opened.
    """
    with path.open("rb") as f:
        return detect_content_type(f.read(SNIFF_LENGTH))
