"""Conversions to and from OOXML office documents."""

from __future__ import annotations

import zipfile
from io import BytesIO
from typing import List

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.shared import Pt as DocxPt
from openpyxl import Workbook
from pptx import Presentation
from pptx.enum.text import MSO_ANCHOR
from pptx.exc import PackageNotFoundError as PptxPackageNotFoundError
from pptx.util import Inches, Pt

from common.io import file_extension
from plugins.pdf_tools.core.documents import PRODUCER

from .errors import ConversionError, UnsupportedFormatError
from .images import A4_LANDSCAPE
from .text import (
    GREY,
    HEADING_FONT,
    TextCanvas,
    clean_text,
    extract_pdf_text,
    non_blank_lines,
    split_cells,
    split_paragraphs,
)

LINES_PER_SLIDE = 15
EMPTY_WORD_NOTICE = "No text content could be extracted from this document."
EMPTY_PDF_NOTICE = "No text content could be extracted from this PDF."

_PACKAGE_ERRORS = (PackageNotFoundError, PptxPackageNotFoundError, zipfile.BadZipFile, KeyError)

LEGACY_FORMATS = {
    ".doc": "Legacy .doc files are not supported; save the document as .docx",
    ".ppt": "Legacy .ppt files are not supported; save the presentation as .pptx",
}


def ensure_extension(filename: str | None, expected: str) -> None:
    """Reject uploads whose extension is not ``expected``."""

    ext = file_extension(filename)
    if ext in LEGACY_FORMATS:
        raise UnsupportedFormatError(LEGACY_FORMATS[ext])
    if ext != expected:
        raise UnsupportedFormatError(f"Expected a {expected} file")


def _docx_text(data: bytes) -> List[str]:
    try:
        document = Document(BytesIO(data))
    except _PACKAGE_ERRORS as exc:
        raise ConversionError(f"Unable to read Word document: {exc}") from exc

    paragraphs = [clean_text(paragraph.text) for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            paragraphs.append("\t".join(clean_text(cell.text) for cell in row.cells))
    return paragraphs


def word_to_pdf(data: bytes, *, title: str | None = None) -> bytes:
    paragraphs = _docx_text(data)
    page = TextCanvas(title=title)
    if not any(paragraph.strip() for paragraph in paragraphs):
        page.write_line(EMPTY_WORD_NOTICE, color=GREY)
        return page.finish()
    for paragraph in paragraphs:
        page.write_paragraph(paragraph)
    return page.finish()


def pdf_to_word(data: bytes, *, title: str | None = None) -> bytes:
    text = "\n\n".join(extract_pdf_text(data))
    paragraphs = split_paragraphs(text) or [EMPTY_PDF_NOTICE]

    document = Document()
    if title:
        document.core_properties.title = title
    for body in paragraphs:
        paragraph = document.add_paragraph()
        paragraph.paragraph_format.space_after = DocxPt(10)
        run = paragraph.add_run(body)
        run.font.size = DocxPt(12)

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def pdf_to_excel(data: bytes, *, title: str | None = None) -> bytes:
    """Write every extracted line as a row, splitting cells on tabs or wide gaps."""

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Extracted"
    if title:
        workbook.properties.title = title
    workbook.properties.creator = PRODUCER
    row = 0
    for page_text in extract_pdf_text(data):
        for line in non_blank_lines(page_text):
            row += 1
            for column, value in enumerate(split_cells(line), start=1):
                cell = sheet.cell(row=row, column=column, value=value)
                # literal text, even when it starts with "="
                cell.data_type = "s"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def pdf_to_powerpoint(data: bytes, *, title: str | None = None) -> bytes:
    pages = extract_pdf_text(data)
    lines = [line for text in pages for line in non_blank_lines(text)]
    chunks = [lines[start : start + LINES_PER_SLIDE] for start in range(0, len(lines), LINES_PER_SLIDE)]

    presentation = Presentation()
    presentation.core_properties.title = title or ""
    presentation.core_properties.author = PRODUCER
    layout = presentation.slide_layouts[6]
    width = int(presentation.slide_width * 0.9)
    height = int(presentation.slide_height * 0.85)

    for number, chunk in enumerate(chunks or [[]], start=1):
        if not chunk:
            chunk = [f"Slide {number} - Content from page {min(number, max(len(pages), 1))}"]
        slide = presentation.slides.add_slide(layout)
        frame = slide.shapes.add_textbox(Inches(0.5), Inches(0.5), width, height).text_frame
        frame.word_wrap = True
        frame.vertical_anchor = MSO_ANCHOR.TOP
        for index, line in enumerate(chunk):
            paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
            paragraph.text = line
            paragraph.font.size = Pt(14)
            paragraph.font.name = "Arial"

    buffer = BytesIO()
    presentation.save(buffer)
    return buffer.getvalue()


def _slide_texts(slide) -> List[str]:
    texts = []
    for shape in slide.shapes:
        if not shape.has_text_frame:
            continue
        text = clean_text(shape.text_frame.text).strip()
        if text:
            texts.append(text)
    return texts


def powerpoint_to_pdf(data: bytes, *, title: str | None = None) -> bytes:
    """Lay out the text of each slide on its own landscape page."""

    try:
        presentation = Presentation(BytesIO(data))
    except _PACKAGE_ERRORS as exc:
        raise ConversionError(f"Unable to read presentation: {exc}") from exc

    slides = list(presentation.slides)
    page = TextCanvas(pagesize=A4_LANDSCAPE, title=title)
    if not slides:
        page.write_line("This presentation has no slides.", color=GREY)
        return page.finish()

    for number, slide in enumerate(slides, start=1):
        if number > 1:
            page.new_page()
        texts = _slide_texts(slide)
        if not texts:
            page.write_line(f"Slide {number} has no text content.", color=GREY)
            continue
        heading, *body = texts
        page.write_paragraph(heading, font=HEADING_FONT, size=24, spacing=1.3)
        page.skip(8)
        for block in body:
            for line in block.splitlines():
                page.write_paragraph(line, size=14)
    return page.finish()


__all__ = [
    "LINES_PER_SLIDE",
    "ensure_extension",
    "word_to_pdf",
    "pdf_to_word",
    "pdf_to_excel",
    "pdf_to_powerpoint",
    "powerpoint_to_pdf",
]
