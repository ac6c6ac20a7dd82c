"""PDF tools API blueprint with standardized responses."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request
from werkzeug.datastructures import FileStorage

from common.errors import AppError, UnprocessableAppError, ValidationAppError
from common.forms import get_choice, get_int, get_optional_int, get_str
from common.io import base_name, output_name, zip_bytes
from common.logging import get_logger
from common.responses import deliver, fail, ok
from common.validation import (
    FileLimit,
    SchemaModel,
    ValidationError,
    enforce_limits,
    parse_model,
    validate_mime,
)

from ..core import (
    QUALITY_TIERS,
    AlreadyEncryptedError,
    CompressionPolicy,
    EmptySelectionError,
    PageRangeError,
    PdfPasswordError,
    UnreadableDocumentError,
    WatermarkOptions,
    extract_pages,
    merge_pdfs,
    pdf_metadata,
    protect_pdf,
    recompress,
    rotate_pdf,
    split_pdf,
    unlock_pdf,
    watermark_pdf,
)

PDF_MIME = "application/pdf"
ZIP_MIME = "application/zip"

logger = get_logger("pdf_toolkit.pdf_tools")

api_bp = Blueprint("pdf_tools_api", __name__, url_prefix="/api/pdf_tools")


def _settings() -> dict:
    return current_app.config.get("PLUGIN_SETTINGS", {}).get("pdf_tools", {}) or {}


def _merge_limit() -> FileLimit:
    upload = _settings().get("merge_upload")
    return FileLimit.from_settings(upload, default_max_files=20, default_max_mb=50, min_files=2)


def _single_limit() -> FileLimit:
    upload = _settings().get("upload")
    return FileLimit.from_settings(upload, default_max_files=1, default_max_mb=50)


def _compression_policy() -> CompressionPolicy:
    try:
        return CompressionPolicy.from_settings(_settings().get("compression"))
    except ValueError as exc:
        logger.warning("ignoring invalid compression settings: %s", exc)
        return CompressionPolicy()


def _check_uploads(files: list[FileStorage], limit: FileLimit) -> None:
    try:
        enforce_limits(files, limit)
        validate_mime(files, {PDF_MIME})
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc), code="pdf.invalid_upload", details=exc.details
        ) from exc


def _form_payload(model: type[SchemaModel]) -> dict[str, str]:
    """Collect the non-blank form fields that ``model`` declares."""

    payload = {}
    for key in model.model_fields:
        value = request.form.get(key)
        if value is not None and value.strip():
            payload[key] = value.strip()
    if "position" in payload:
        payload["position"] = payload["position"].lower()
    return payload


def _single_upload() -> tuple[FileStorage, bytes]:
    file = request.files.get("file")
    if not file:
        raise ValidationAppError(message="No file provided", code="pdf.file_missing")
    _check_uploads([file], _single_limit())
    return file, file.read()


def _document_error(exc: ValueError) -> AppError:
    """Translate core exceptions into API errors."""

    if isinstance(exc, PageRangeError):
        return ValidationAppError(
            message=str(exc), code="pdf.invalid_page_range", details={"token": exc.token}
        )
    if isinstance(exc, EmptySelectionError):
        return ValidationAppError(message=str(exc), code="pdf.empty_selection")
    if isinstance(exc, PdfPasswordError):
        return ValidationAppError(message=str(exc), code="pdf.invalid_password")
    if isinstance(exc, AlreadyEncryptedError):
        return ValidationAppError(message=str(exc), code="pdf.already_encrypted")
    if isinstance(exc, UnreadableDocumentError):
        logger.warning("rejecting unreadable document: %s", exc)
        return UnprocessableAppError(message=str(exc), code="pdf.unreadable")
    return ValidationAppError(
        message=str(exc), code="pdf.invalid_option", details=getattr(exc, "details", None)
    )


@api_bp.post("/merge")
def merge() -> Response:
    files = [file for file in request.files.getlist("files") if file]
    try:
        _check_uploads(files, _merge_limit())
        merged = merge_pdfs(file.read() for file in files)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))
    return deliver(merged, "merged.pdf", mimetype=PDF_MIME, extra={"total_files": len(files)})


@api_bp.post("/split")
def split() -> Response:
    try:
        file, data = _single_upload()
        mode = (get_str(request.form, "mode") or "range").lower()
        base = base_name(file.filename)
        if mode == "all":
            parts = split_pdf(data)
            archive = zip_bytes(
                (f"{base}_page_{number}.pdf", part) for number, part in enumerate(parts, start=1)
            )
            return deliver(
                archive,
                f"{base}_split.zip",
                mimetype=ZIP_MIME,
                extra={"page_count": len(parts)},
            )
        extraction = extract_pages(data, get_str(request.form, "pages"))
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))

    return deliver(
        extraction.data,
        f"{base}_split.pdf",
        mimetype=PDF_MIME,
        extra={
            "page_count": extraction.total_pages,
            "pages": [index + 1 for index in extraction.indices],
        },
    )


@api_bp.post("/compress")
def compress() -> Response:
    try:
        file, data = _single_upload()
        target_kb = get_optional_int(
            request.form, "target_size_kb", field_name="Target size", minimum=1
        )
        tier = get_choice(request.form, "quality", QUALITY_TIERS, "medium", field_name="Quality")
        quality, ratio = QUALITY_TIERS[tier]
        result = recompress(
            data,
            target_bytes=target_kb * 1024 if target_kb is not None else None,
            quality=quality,
            resize_ratio=ratio,
            policy=_compression_policy(),
        )
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))

    extra = {
        "original_size": result.original_size,
        "compressed_size": result.compressed_size,
        "reduction": f"{result.reduction_percent}%",
        "target_met": result.target_met,
        "attempts": [attempt.to_dict() for attempt in result.attempts],
        "skipped_images": [image.to_dict() for image in result.skipped_images],
    }
    return deliver(
        result.data, output_name(file.filename, "_compressed"), mimetype=PDF_MIME, extra=extra
    )


@api_bp.post("/rotate")
def rotate() -> Response:
    try:
        file, data = _single_upload()
        degrees = get_int(request.form, "degrees", 90, field_name="Degrees")
        if degrees % 90 != 0:
            raise ValidationAppError(
                message="Rotation must be a multiple of 90 degrees", code="pdf.invalid_rotation"
            )
        rotated = rotate_pdf(data, degrees, get_str(request.form, "pages"))
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))
    return deliver(rotated, output_name(file.filename, "_rotated"), mimetype=PDF_MIME)


@api_bp.post("/watermark")
def watermark() -> Response:
    try:
        file, data = _single_upload()
        options = parse_model(WatermarkOptions, _form_payload(WatermarkOptions))
        stamped = watermark_pdf(data, options)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))
    return deliver(stamped, output_name(file.filename, "_watermarked"), mimetype=PDF_MIME)


@api_bp.post("/protect")
def protect() -> Response:
    try:
        file, data = _single_upload()
        password = request.form.get("password") or ""
        if not password:
            raise ValidationAppError(message="Password is required", code="pdf.password_required")
        protected = protect_pdf(data, password)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))
    return deliver(protected, output_name(file.filename, "_protected"), mimetype=PDF_MIME)


@api_bp.post("/unlock")
def unlock() -> Response:
    try:
        file, data = _single_upload()
        unlocked = unlock_pdf(data, request.form.get("password") or None)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))
    return deliver(unlocked, output_name(file.filename, "_unlocked"), mimetype=PDF_MIME)


@api_bp.post("/metadata")
def metadata() -> Response:
    try:
        _, data = _single_upload()
        info = pdf_metadata(data)
    except AppError as exc:
        return fail(exc)
    except ValueError as exc:
        return fail(_document_error(exc))
    return ok({"pages": info.pages, "size_bytes": info.size_bytes, "encrypted": info.encrypted})


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "merge",
    "split",
    "compress",
    "rotate",
    "watermark",
    "protect",
    "unlock",
    "metadata",
]
