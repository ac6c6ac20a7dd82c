from .errors import ConversionError, UnsupportedFormatError
from .images import ORIENTATIONS, RenderedPage, fit_image, images_to_pdf, page_size_for, render_pdf_pages
from .office import (
    LINES_PER_SLIDE,
    ensure_extension,
    pdf_to_excel,
    pdf_to_powerpoint,
    pdf_to_word,
    powerpoint_to_pdf,
    word_to_pdf,
)
from .text import extract_pdf_text, split_cells, split_paragraphs

__all__ = [
    "ConversionError",
    "UnsupportedFormatError",
    "ORIENTATIONS",
    "LINES_PER_SLIDE",
    "RenderedPage",
    "render_pdf_pages",
    "page_size_for",
    "fit_image",
    "images_to_pdf",
    "ensure_extension",
    "word_to_pdf",
    "pdf_to_word",
    "pdf_to_excel",
    "pdf_to_powerpoint",
    "powerpoint_to_pdf",
    "extract_pdf_text",
    "split_cells",
    "split_paragraphs",
]
