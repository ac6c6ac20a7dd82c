"""Standardized JSON response helpers."""

from __future__ import annotations

from typing import Any, Mapping

from flask import Response, current_app, jsonify, request, send_file, url_for

from .errors import AppError
from .io import buffer_from_bytes
from .storage import ContentStore, get_content_store


def ok(data: Any, *, status: int = 200) -> Response:
    """Return a success envelope."""

    payload = {"success": True, "data": data}
    response = jsonify(payload)
    response.status_code = status
    return response


def fail(error: AppError | Mapping[str, Any], *, status: int | None = None) -> Response:
    """Return a standardized failure envelope."""

    if isinstance(error, AppError):
        payload = {"success": False, "error": error.to_dict()}
        response = jsonify(payload)
        response.status_code = status or error.status_code
        return response

    payload = {"success": False, "error": dict(error)}
    response = jsonify(payload)
    response.status_code = status or 400
    return response


def download_requested() -> bool:
    return request.args.get("download") == "1"


def attachment(data: bytes, filename: str, *, mimetype: str) -> Response:
    return send_file(
        buffer_from_bytes(data),
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename,
        max_age=0,
    )


def deliver(
    data: bytes,
    filename: str,
    *,
    mimetype: str,
    extra: Mapping[str, Any] | None = None,
    store: ContentStore | None = None,
) -> Response:
    """Stream ``data`` when ``?download=1`` is set, otherwise store it.

    The JSON envelope carries the handle of the stored artifact so the
    client can fetch it later from ``/api/download/<file_id>``.
    """

    if download_requested():
        return attachment(data, filename, mimetype=mimetype)

    store = store or get_content_store(current_app)
    stored = store.put(data, filename)
    payload: dict[str, Any] = {
        "file_id": stored.file_id,
        "filename": stored.filename,
        "size_bytes": stored.size_bytes,
        "download_url": url_for("files.download", file_id=stored.file_id),
    }
    payload.update(extra or {})
    return ok(payload)


__all__ = ["ok", "fail", "download_requested", "attachment", "deliver"]
