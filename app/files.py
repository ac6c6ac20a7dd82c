"""Download endpoint for stored operation results."""

from __future__ import annotations

import mimetypes

from flask import Blueprint, Response, current_app

from common.errors import AppError
from common.responses import attachment, fail, ok
from common.storage import get_content_store

files_bp = Blueprint("files", __name__, url_prefix="/api")


@files_bp.get("/download/<file_id>")
def download(file_id: str) -> Response:
    try:
        stored, data = get_content_store(current_app).get(file_id)
    except AppError as exc:
        return fail(exc)
    mimetype = mimetypes.guess_type(stored.filename)[0] or "application/octet-stream"
    return attachment(data, stored.filename, mimetype=mimetype)


@files_bp.get("/health")
def health() -> Response:
    return ok({"status": "ok"})


__all__ = ["files_bp", "download", "health"]
