from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from PyPDF2 import PdfWriter

from .compression import (
    QUALITY_TIERS,
    CompressionAttempt,
    CompressionPolicy,
    CompressionResult,
    ImageOutcome,
    quality_tier,
    recompress,
)
from .documents import (
    PdfPasswordError,
    UnreadableDocumentError,
    copy_metadata,
    is_encrypted,
    load_pdf,
    pages_to_pdf,
    write_pdf,
)
from .page_ranges import PageRangeError, resolve_page_range, resolve_page_targets
from .security import AlreadyEncryptedError, protect_pdf, unlock_pdf
from .watermark import WATERMARK_POSITIONS, WatermarkOptions, watermark_pdf


class EmptySelectionError(ValueError):
    """Raised when a page selection contains no page of the document."""


@dataclass(frozen=True)
class PdfMetadata:
    """Metadata extracted from a PDF document."""

    pages: int
    size_bytes: int
    encrypted: bool = False


@dataclass(frozen=True)
class Extraction:
    """Pages copied out of a document by :func:`extract_pages`."""

    data: bytes
    indices: List[int]
    total_pages: int


def merge_pdfs(documents: Iterable[bytes]) -> bytes:
    """Concatenate every page of ``documents`` in order."""

    writer = PdfWriter()
    for data in documents:
        reader = load_pdf(data)
        for page in reader.pages:
            writer.add_page(page)
    return write_pdf(writer)


def split_pdf(stream: bytes) -> List[bytes]:
    reader = load_pdf(stream)
    return [pages_to_pdf(reader, [index]) for index in range(len(reader.pages))]


def extract_pages(stream: bytes, expression: str | None) -> Extraction:
    """Copy the pages selected by ``expression`` into a new PDF.

    Raises :class:`EmptySelectionError` when nothing in the expression
    falls inside the document.
    """

    reader = load_pdf(stream)
    total_pages = len(reader.pages)
    indices = resolve_page_range(expression, total_pages)
    if not indices:
        raise EmptySelectionError("No pages in the selection fall within the document")
    return Extraction(data=pages_to_pdf(reader, indices), indices=indices, total_pages=total_pages)


def rotate_pdf(stream: bytes, degrees: int = 90, pages: str | None = None) -> bytes:
    """Rotate the selected pages clockwise, on top of their current rotation."""

    if degrees % 90 != 0:
        raise ValueError("Rotation must be a multiple of 90 degrees")
    reader = load_pdf(stream)
    targets = set(resolve_page_targets(pages, len(reader.pages)))
    writer = PdfWriter()
    for index, page in enumerate(reader.pages):
        if index in targets:
            page.rotate(degrees)
        writer.add_page(page)
    copy_metadata(writer, reader)
    return write_pdf(writer)


def pdf_metadata(data: bytes) -> PdfMetadata:
    encrypted = is_encrypted(data)
    reader = load_pdf(data)
    return PdfMetadata(pages=len(reader.pages), size_bytes=len(data), encrypted=encrypted)


__all__ = [
    "QUALITY_TIERS",
    "WATERMARK_POSITIONS",
    "AlreadyEncryptedError",
    "CompressionAttempt",
    "CompressionPolicy",
    "CompressionResult",
    "EmptySelectionError",
    "Extraction",
    "ImageOutcome",
    "PageRangeError",
    "PdfMetadata",
    "PdfPasswordError",
    "UnreadableDocumentError",
    "WatermarkOptions",
    "copy_metadata",
    "extract_pages",
    "merge_pdfs",
    "pdf_metadata",
    "protect_pdf",
    "quality_tier",
    "recompress",
    "resolve_page_range",
    "resolve_page_targets",
    "rotate_pdf",
    "split_pdf",
    "unlock_pdf",
    "watermark_pdf",
]
