"""Password protection and removal."""

from __future__ import annotations

from PyPDF2 import PdfReader, PdfWriter

from .documents import PdfPasswordError, copy_metadata, is_encrypted, load_pdf, write_pdf

# Signed 32-bit permission word granting printing and high-quality printing only.
PRINT_ONLY_PERMISSIONS = -1852


class AlreadyEncryptedError(ValueError):
    """Raised when protecting a document that is already encrypted."""


def _copy_pages(reader: PdfReader) -> PdfWriter:
    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)
    copy_metadata(writer, reader)
    return writer


def protect_pdf(data: bytes, password: str) -> bytes:
    """Encrypt ``data`` with ``password`` as both user and owner password."""

    if not password:
        raise PdfPasswordError("Password is required")
    if is_encrypted(data):
        raise AlreadyEncryptedError("This PDF is already password protected")
    writer = _copy_pages(load_pdf(data))
    writer.encrypt(
        user_password=password,
        owner_password=password,
        use_128bit=True,
        permissions_flag=PRINT_ONLY_PERMISSIONS,
    )
    return write_pdf(writer)


def unlock_pdf(data: bytes, password: str | None) -> bytes:
    """Return an unencrypted copy of ``data``.

    Documents that are not encrypted are simply rewritten.
    """

    return write_pdf(_copy_pages(load_pdf(data, password=password)))


__all__ = ["PRINT_ONLY_PERMISSIONS", "AlreadyEncryptedError", "protect_pdf", "unlock_pdf"]
