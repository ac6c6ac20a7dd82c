from io import BytesIO

import pytest
from docx import Document
from PIL import Image
from pptx import Presentation
from pptx.util import Inches
from reportlab.pdfgen import canvas

from app import create_app


def _text_pdf(*pages) -> bytes:
    """Build a PDF whose pages each hold the given lines of text."""

    buf = BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(595, 842))
    for lines in pages:
        if isinstance(lines, str):
            lines = [lines]
        pdf.setFont("Helvetica", 12)
        y = 800
        for line in lines:
            pdf.drawString(50, y, line)
            y -= 18
        pdf.showPage()
    pdf.save()
    return buf.getvalue()


def _png(size=(120, 80), color=(10, 120, 200), mode="RGB") -> bytes:
    buf = BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


def _docx(*paragraphs: str) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buf = BytesIO()
    document.save(buf)
    return buf.getvalue()


def _pptx(*slides) -> bytes:
    presentation = Presentation()
    layout = presentation.slide_layouts[6]
    for texts in slides:
        slide = presentation.slides.add_slide(layout)
        top = 0.5
        for text in texts:
            box = slide.shapes.add_textbox(Inches(0.5), Inches(top), Inches(8), Inches(1))
            box.text_frame.text = text
            top += 1.2
    buf = BytesIO()
    presentation.save(buf)
    return buf.getvalue()


@pytest.fixture
def text_pdf():
    return _text_pdf


@pytest.fixture
def png():
    return _png


@pytest.fixture
def docx_bytes():
    return _docx


@pytest.fixture
def pptx_bytes():
    return _pptx


@pytest.fixture
def client():
    app = create_app("TestingConfig")
    return app.test_client()
