from io import BytesIO

import pytest
from PIL import Image
from PyPDF2 import PdfWriter
from reportlab.pdfgen import canvas

from app import create_app


def _blank_pdf(pages: int = 1, *, width: float = 200, height: float = 200) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


def _image_pdf(size=(1000, 1000), mode: str = "RGB", color=(200, 40, 40), noise: bool = False) -> bytes:
    """Single-page PDF embedding one image; Pillow stores RGB and L images as JPEG."""

    if noise:
        image = Image.effect_noise(size, 120).convert(mode)
    else:
        image = Image.new(mode, size, color)
    buf = BytesIO()
    image.save(buf, format="PDF", resolution=72)
    return buf.getvalue()


def _text_pdf(*pages: str) -> bytes:
    buf = BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(400, 400))
    for text in pages:
        pdf.setFont("Helvetica", 14)
        pdf.drawString(40, 300, text)
        pdf.showPage()
    pdf.save()
    return buf.getvalue()


@pytest.fixture
def blank_pdf():
    return _blank_pdf


@pytest.fixture
def image_pdf():
    return _image_pdf


@pytest.fixture
def text_pdf():
    return _text_pdf


@pytest.fixture
def client():
    app = create_app("TestingConfig")
    return app.test_client()
