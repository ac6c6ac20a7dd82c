"""Common IO helpers for plugins."""

from __future__ import annotations

import os
import zipfile
from io import BytesIO
from typing import Iterable

SAFE_FILENAME_CHARS = {"-", "_", "."}


def buffer_from_bytes(data: bytes) -> BytesIO:
    buffer = BytesIO()
    buffer.write(data)
    buffer.seek(0)
    return buffer


def secure_filename(filename: str, *, fallback: str = "upload") -> str:
    """Sanitize filenames without relying on Werkzeug internals."""

    if not filename:
        return fallback
    name, ext = os.path.splitext(filename)
    safe_name = "".join(
        ch if ch.isalnum() or ch in SAFE_FILENAME_CHARS else "_" for ch in name
    )
    safe_ext = "".join(ch for ch in ext if ch.isalnum() or ch in SAFE_FILENAME_CHARS)
    safe_name = safe_name.strip("._") or fallback
    safe_ext = safe_ext.strip("._")
    return f"{safe_name}{f'.{safe_ext}' if safe_ext else ''}"


def base_name(filename: str | None, *, fallback: str = "document") -> str:
    """Return the sanitized stem of ``filename`` without its extension."""

    safe = secure_filename(filename or "", fallback=fallback)
    stem, _ = os.path.splitext(safe)
    return stem or fallback


def output_name(filename: str | None, suffix: str = "", *, ext: str = "pdf", fallback: str = "document") -> str:
    """Build ``<stem><suffix>.<ext>`` from an uploaded filename."""

    return f"{base_name(filename, fallback=fallback)}{suffix}.{ext.lstrip('.')}"


def file_extension(filename: str | None) -> str:
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lower()


def zip_bytes(entries: Iterable[tuple[str, bytes]]) -> bytes:
    """Pack ``(name, data)`` pairs into a deflated zip archive."""

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buffer.getvalue()


__all__ = [
    "buffer_from_bytes",
    "secure_filename",
    "base_name",
    "output_name",
    "file_extension",
    "zip_bytes",
]
