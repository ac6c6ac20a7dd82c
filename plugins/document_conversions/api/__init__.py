"""Conversion API blueprint."""

from __future__ import annotations

from typing import Callable

from flask import Blueprint, Response, current_app, request
from werkzeug.datastructures import FileStorage

from common.errors import AppError, UnprocessableAppError, ValidationAppError
from common.forms import get_choice, get_float, get_int
from common.io import base_name, zip_bytes
from common.logging import get_logger
from common.responses import deliver, fail
from common.validation import IMAGE_MIMES, FileLimit, ValidationError, enforce_limits, validate_mime
from plugins.pdf_tools.core import PdfPasswordError, UnreadableDocumentError

from ..core import (
    ORIENTATIONS,
    ConversionError,
    UnsupportedFormatError,
    ensure_extension,
    images_to_pdf,
    pdf_to_excel,
    pdf_to_powerpoint,
    pdf_to_word,
    powerpoint_to_pdf,
    render_pdf_pages,
    word_to_pdf,
)

PDF_MIME = "application/pdf"
ZIP_MIME = "application/zip"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

logger = get_logger("pdf_toolkit.conversions")

api_bp = Blueprint("document_conversions_api", __name__, url_prefix="/api/conversions")


def _settings() -> dict:
    return current_app.config.get("PLUGIN_SETTINGS", {}).get("document_conversions", {}) or {}


def _single_limit() -> FileLimit:
    return FileLimit.from_settings(_settings().get("upload"), default_max_files=1, default_max_mb=50)


def _images_limit() -> FileLimit:
    upload = _settings().get("images_upload")
    return FileLimit.from_settings(upload, default_max_files=20, default_max_mb=50)


def _check_uploads(files: list[FileStorage], limit: FileLimit, allowed: set[str]) -> None:
    try:
        enforce_limits(files, limit)
        validate_mime(files, allowed)
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc), code="conversion.invalid_upload", details=exc.details
        ) from exc


def _single_upload(allowed: set[str], extension: str | None = None) -> tuple[FileStorage, bytes]:
    file = request.files.get("file")
    if not file:
        raise ValidationAppError(message="No file provided", code="conversion.file_missing")
    if extension:
        ensure_extension(file.filename, extension)
    _check_uploads([file], _single_limit(), allowed)
    return file, file.read()


def _conversion_error(exc: ValueError) -> AppError:
    if isinstance(exc, UnsupportedFormatError):
        return ValidationAppError(message=str(exc), code="conversion.unsupported_format")
    if isinstance(exc, PdfPasswordError):
        return ValidationAppError(message=str(exc), code="pdf.invalid_password")
    if isinstance(exc, (UnreadableDocumentError, ConversionError)):
        logger.warning("conversion failed: %s", exc)
        return UnprocessableAppError(message=str(exc), code="conversion.failed")
    return ValidationAppError(message=str(exc), code="conversion.invalid_option")


def _convert_document(
    converter: Callable[..., bytes],
    *,
    allowed: set[str],
    ext: str,
    mimetype: str,
    extension: str | None = None,
) -> Response:
    try:
        file, data = _single_upload(allowed, extension)
        base = base_name(file.filename)
        output = converter(data, title=base)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_conversion_error(exc))
    return deliver(output, f"{base}.{ext}", mimetype=mimetype)


@api_bp.post("/pdf-to-jpg")
def pdf_to_jpg() -> Response:
    defaults = _settings().get("pdf_to_jpg", {}) or {}
    try:
        file, data = _single_upload({PDF_MIME})
        quality = get_int(
            request.form, "quality", int(defaults.get("quality", 90)), field_name="Quality", minimum=1, maximum=100
        )
        dpi = get_int(request.form, "dpi", int(defaults.get("dpi", 150)), field_name="DPI", minimum=36, maximum=600)
        pages = render_pdf_pages(data, dpi=dpi, quality=quality)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_conversion_error(exc))

    base = base_name(file.filename)
    archive = zip_bytes((f"{base}_page_{page.number}.jpg", page.data) for page in pages)
    return deliver(archive, f"{base}_images.zip", mimetype=ZIP_MIME, extra={"page_count": len(pages)})


@api_bp.post("/jpg-to-pdf")
def jpg_to_pdf() -> Response:
    files = [file for file in request.files.getlist("files") if file]
    try:
        _check_uploads(files, _images_limit(), IMAGE_MIMES)
        orientation = get_choice(
            request.form, "orientation", ORIENTATIONS, "portrait", field_name="Orientation"
        )
        margin = get_float(request.form, "margin", 0.0, field_name="Margin", minimum=0.0)
        output = images_to_pdf(
            (file.read() for file in files), orientation=orientation, margin=margin
        )
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_conversion_error(exc))
    return deliver(
        output, "images_to_pdf.pdf", mimetype=PDF_MIME, extra={"total_images": len(files)}
    )


@api_bp.post("/word-to-pdf")
def word_to_pdf_view() -> Response:
    return _convert_document(
        word_to_pdf, allowed={DOCX_MIME}, ext="pdf", mimetype=PDF_MIME, extension=".docx"
    )


@api_bp.post("/pdf-to-word")
def pdf_to_word_view() -> Response:
    return _convert_document(pdf_to_word, allowed={PDF_MIME}, ext="docx", mimetype=DOCX_MIME)


@api_bp.post("/pdf-to-excel")
def pdf_to_excel_view() -> Response:
    return _convert_document(pdf_to_excel, allowed={PDF_MIME}, ext="xlsx", mimetype=XLSX_MIME)


@api_bp.post("/pdf-to-powerpoint")
def pdf_to_powerpoint_view() -> Response:
    return _convert_document(pdf_to_powerpoint, allowed={PDF_MIME}, ext="pptx", mimetype=PPTX_MIME)


@api_bp.post("/powerpoint-to-pdf")
def powerpoint_to_pdf_view() -> Response:
    return _convert_document(
        powerpoint_to_pdf, allowed={PPTX_MIME}, ext="pdf", mimetype=PDF_MIME, extension=".pptx"
    )


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "pdf_to_jpg",
    "jpg_to_pdf",
    "word_to_pdf_view",
    "pdf_to_word_view",
    "pdf_to_excel_view",
    "pdf_to_powerpoint_view",
    "powerpoint_to_pdf_view",
]
