"""Conversions between PDF pages and raster images."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Iterable, List

import fitz
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from common.imaging import encode_jpeg, open_image, to_jpeg_mode
from plugins.pdf_tools.core.documents import PRODUCER, PdfPasswordError, UnreadableDocumentError

from .errors import ConversionError

A4_PORTRAIT = (595.0, 842.0)
A4_LANDSCAPE = (842.0, 595.0)
ORIENTATIONS = ("portrait", "landscape", "auto")


@dataclass(frozen=True)
class RenderedPage:
    number: int
    data: bytes
    width: int
    height: int


def render_pdf_pages(data: bytes, *, dpi: int = 150, quality: int = 90) -> List[RenderedPage]:
    """Render every page of ``data`` to a JPEG with PyMuPDF."""

    try:
        document = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise UnreadableDocumentError(f"Unable to read PDF: {exc}") from exc

    rendered: List[RenderedPage] = []
    with document:
        if document.needs_pass and not document.authenticate(""):
            raise PdfPasswordError("This PDF is password protected. Please enter the password.")
        for index in range(document.page_count):
            pixmap = document.load_page(index).get_pixmap(dpi=dpi, alpha=False)
            image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
            rendered.append(
                RenderedPage(
                    number=index + 1,
                    data=encode_jpeg(image, quality),
                    width=pixmap.width,
                    height=pixmap.height,
                )
            )
    return rendered


def page_size_for(orientation: str, image_size: tuple[int, int]) -> tuple[float, float]:
    if orientation == "auto":
        return float(image_size[0]), float(image_size[1])
    if orientation == "landscape":
        return A4_LANDSCAPE
    return A4_PORTRAIT


def fit_image(
    page_size: tuple[float, float], image_size: tuple[int, int], margin: float
) -> tuple[float, float, float, float]:
    """Return ``(x, y, width, height)`` scaling the image into the margins, centred."""

    available_width = page_size[0] - 2 * margin
    available_height = page_size[1] - 2 * margin
    if available_width <= 0 or available_height <= 0:
        raise ConversionError("Margin leaves no room for the image")
    scale = min(available_width / image_size[0], available_height / image_size[1])
    width = image_size[0] * scale
    height = image_size[1] * scale
    x = margin + (available_width - width) / 2
    y = margin + (available_height - height) / 2
    return x, y, width, height


def images_to_pdf(
    images: Iterable[bytes], *, orientation: str = "portrait", margin: float = 0
) -> bytes:
    """Place each image on its own page."""

    if orientation not in ORIENTATIONS:
        raise ValueError(f"Unknown orientation '{orientation}'")

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4_PORTRAIT)
    pdf.setCreator(PRODUCER)
    pages = 0
    for number, data in enumerate(images, start=1):
        try:
            image = to_jpeg_mode(open_image(data))
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ConversionError(f"Image {number} could not be read: {exc}") from exc
        page_size = page_size_for(orientation, image.size)
        x, y, width, height = fit_image(page_size, image.size, margin)
        pdf.setPageSize(page_size)
        pdf.drawImage(ImageReader(image), x, y, width=width, height=height)
        pdf.showPage()
        pages += 1

    if not pages:
        raise ConversionError("At least one image is required")
    pdf.save()
    return buffer.getvalue()


__all__ = [
    "A4_PORTRAIT",
    "A4_LANDSCAPE",
    "ORIENTATIONS",
    "RenderedPage",
    "render_pdf_pages",
    "page_size_for",
    "fit_image",
    "images_to_pdf",
]
