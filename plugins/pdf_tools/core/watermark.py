"""Text watermark overlays rendered with ReportLab."""

from __future__ import annotations

import re
from io import BytesIO
from typing import Literal, get_args

import pydantic
from pydantic import Field
from PyPDF2 import PdfReader, PdfWriter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from common.validation import SchemaModel

from .documents import load_pdf, write_pdf
from .page_ranges import resolve_page_targets

WatermarkPosition = Literal["center", "top-left", "top-right", "bottom-left", "bottom-right"]
WATERMARK_POSITIONS = get_args(WatermarkPosition)
WATERMARK_FONT = "Helvetica"
EDGE_MARGIN = 50

_HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
_FALLBACK_RGB = (0.5, 0.5, 0.5)


class WatermarkOptions(SchemaModel):
    """Watermark settings; also the request schema of the watermark endpoint."""

    model_config = pydantic.ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    text: str = Field("WATERMARK", min_length=1, max_length=200)
    opacity: float = Field(0.3, ge=0.0, le=1.0, allow_inf_nan=False)
    position: WatermarkPosition = "center"
    font_size: int = Field(50, ge=1, le=500)
    color: str = "#888888"
    pages: str | None = None


def hex_to_rgb(value: str | None) -> tuple[float, float, float]:
    """Parse ``#rrggbb`` into ReportLab's 0..1 floats, grey when unparseable."""

    match = _HEX_COLOR_RE.match((value or "").strip())
    if not match:
        return _FALLBACK_RGB
    return tuple(int(part, 16) / 255 for part in match.groups())  # type: ignore[return-value]


def watermark_origin(
    position: str, width: float, height: float, text_width: float, font_size: float
) -> tuple[float, float]:
    if position == "top-left":
        return EDGE_MARGIN, height - EDGE_MARGIN - font_size
    if position == "top-right":
        return width - EDGE_MARGIN - text_width, height - EDGE_MARGIN - font_size
    if position == "bottom-left":
        return EDGE_MARGIN, EDGE_MARGIN
    if position == "bottom-right":
        return width - EDGE_MARGIN - text_width, EDGE_MARGIN
    return (width - text_width) / 2, (height - font_size) / 2


def _overlay_page(page, options: WatermarkOptions):
    box = page.mediabox
    left, bottom = float(box.left), float(box.bottom)
    width, height = float(box.width), float(box.height)

    buf = BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(left + width, bottom + height))
    pdf.setFillAlpha(options.opacity)
    pdf.setFillColorRGB(*hex_to_rgb(options.color))
    pdf.setFont(WATERMARK_FONT, options.font_size)
    text_width = stringWidth(options.text, WATERMARK_FONT, options.font_size)
    x, y = watermark_origin(options.position, width, height, text_width, options.font_size)
    pdf.drawString(left + x, bottom + y, options.text)
    pdf.showPage()
    pdf.save()
    buf.seek(0)
    return PdfReader(buf).pages[0]


def watermark_pdf(data: bytes, options: WatermarkOptions) -> bytes:
    """Stamp ``options.text`` on the selected pages (all pages by default)."""

    reader = load_pdf(data)
    targets = set(resolve_page_targets(options.pages, len(reader.pages)))
    writer = PdfWriter()
    for index, page in enumerate(reader.pages):
        if index in targets:
            page.merge_page(_overlay_page(page, options))
        writer.add_page(page)
    return write_pdf(writer)


__all__ = ["WATERMARK_POSITIONS", "WatermarkOptions", "hex_to_rgb", "watermark_origin", "watermark_pdf"]
