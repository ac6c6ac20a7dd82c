"""Text extraction from PDFs and plain-text page layout with ReportLab."""

from __future__ import annotations

import re
from io import BytesIO
from typing import List

from PyPDF2.errors import PdfReadError
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from common.logging import get_logger
from plugins.pdf_tools.core.documents import PRODUCER, load_pdf

logger = get_logger("pdf_toolkit.conversions")

BODY_FONT = "Helvetica"
HEADING_FONT = "Helvetica-Bold"
BLACK = (0.0, 0.0, 0.0)
GREY = (0.5, 0.5, 0.5)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_CELL_BREAK = re.compile(r"\t| {2,}")


def clean_text(text: str | None) -> str:
    """Drop control characters that XML based formats refuse."""

    return _CONTROL_CHARS.sub("", text or "")


def extract_pdf_text(data: bytes) -> List[str]:
    """Return the extracted text of every page, ``""`` for pages without any."""

    reader = load_pdf(data)
    pages: List[str] = []
    for number, page in enumerate(reader.pages, start=1):
        try:
            text = page.extract_text() or ""
        except (PdfReadError, KeyError, ValueError, TypeError) as exc:
            logger.warning("no text extracted from page %d: %s", number, exc)
            text = ""
        pages.append(clean_text(text))
    return pages


def non_blank_lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def split_paragraphs(text: str) -> List[str]:
    """Split on blank lines and join the wrapped lines of each paragraph."""

    return [" ".join(part.split()) for part in _PARAGRAPH_BREAK.split(text) if part.strip()]


def split_cells(line: str) -> List[str]:
    return [cell.strip() for cell in _CELL_BREAK.split(line.strip())]


class TextCanvas:
    """Top-down text writer that starts a new page when the margin is reached."""

    def __init__(self, *, pagesize=A4, margin: float = 50, title: str | None = None):
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=pagesize)
        self._canvas.setCreator(PRODUCER)
        if title:
            self._canvas.setTitle(title)
        self.width, self.height = pagesize
        self.margin = margin
        self.page_count = 1
        self._y = self.height - margin

    @property
    def text_width(self) -> float:
        return self.width - 2 * self.margin

    def new_page(self) -> None:
        self._canvas.showPage()
        self.page_count += 1
        self._y = self.height - self.margin

    def write_line(
        self,
        text: str,
        *,
        font: str = BODY_FONT,
        size: float = 11,
        color: tuple[float, float, float] = BLACK,
        spacing: float = 1.4,
    ) -> None:
        line_height = size * spacing
        if self._y < self.margin + line_height:
            self.new_page()
        if text:
            self._canvas.setFont(font, size)
            self._canvas.setFillColorRGB(*color)
            self._canvas.drawString(self.margin, self._y, text)
        self._y -= line_height

    def write_paragraph(self, text: str, *, font: str = BODY_FONT, size: float = 11, **style) -> None:
        lines = simpleSplit(text, font, size, self.text_width) if text.strip() else [""]
        for line in lines:
            self.write_line(line, font=font, size=size, **style)

    def skip(self, points: float) -> None:
        self._y -= points

    def finish(self) -> bytes:
        self._canvas.showPage()
        self._canvas.save()
        return self._buffer.getvalue()


__all__ = [
    "BODY_FONT",
    "HEADING_FONT",
    "GREY",
    "TextCanvas",
    "clean_text",
    "extract_pdf_text",
    "non_blank_lines",
    "split_paragraphs",
    "split_cells",
]
