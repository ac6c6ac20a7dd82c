"""Loading and saving helpers around PyPDF2."""

from __future__ import annotations

from io import BytesIO
from typing import Iterable

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import DependencyError, PdfReadError

PRODUCER = "PDF Toolkit"


class UnreadableDocumentError(ValueError):
    """Raised when an upload cannot be parsed as a PDF at all."""


class PdfPasswordError(ValueError):
    """Raised when an encrypted PDF cannot be opened with the given password."""


def load_pdf(data: bytes, *, password: str | None = None) -> PdfReader:
    """Parse ``data`` and unlock it when it is encrypted.

    Encrypted documents are opened with ``password`` or, when none is
    given, with the empty user password many producers use.
    """

    try:
        reader = PdfReader(BytesIO(data))
        encrypted = reader.is_encrypted
    except (PdfReadError, OSError, ValueError, KeyError) as exc:
        raise UnreadableDocumentError(f"Unable to read PDF: {exc}") from exc

    if encrypted:
        try:
            unlocked = reader.decrypt(password or "")
        except DependencyError as exc:
            raise UnreadableDocumentError(f"Unsupported PDF encryption: {exc}") from exc
        except (PdfReadError, NotImplementedError) as exc:
            raise PdfPasswordError(f"Unable to decrypt PDF: {exc}") from exc
        if not unlocked:
            if password:
                raise PdfPasswordError("Incorrect password. Please check your password and try again.")
            raise PdfPasswordError("This PDF is password protected. Please enter the password.")

    try:
        len(reader.pages)
    except (PdfReadError, OSError, ValueError, KeyError) as exc:
        raise UnreadableDocumentError(f"Unable to read PDF: {exc}") from exc
    return reader


def is_encrypted(data: bytes) -> bool:
    try:
        return PdfReader(BytesIO(data)).is_encrypted
    except (PdfReadError, OSError, ValueError, KeyError) as exc:
        raise UnreadableDocumentError(f"Unable to read PDF: {exc}") from exc


def write_pdf(writer: PdfWriter) -> bytes:
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


def copy_metadata(writer: PdfWriter, reader: PdfReader) -> None:
    """Copy text metadata entries from ``reader`` into ``writer``."""

    metadata = reader.metadata or {}
    safe = {str(key): str(value) for key, value in metadata.items() if isinstance(value, str)}
    if safe:
        writer.add_metadata(safe)


def pages_to_pdf(reader: PdfReader, indices: Iterable[int]) -> bytes:
    """Copy the zero-based ``indices`` of ``reader`` into a new document."""

    writer = PdfWriter()
    for index in indices:
        writer.add_page(reader.pages[index])
    return write_pdf(writer)


__all__ = [
    "PRODUCER",
    "UnreadableDocumentError",
    "PdfPasswordError",
    "load_pdf",
    "is_encrypted",
    "write_pdf",
    "copy_metadata",
    "pages_to_pdf",
]
