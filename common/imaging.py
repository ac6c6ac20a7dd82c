"""Shared imaging helpers."""

from __future__ import annotations

from io import BytesIO

from PIL import Image

JPEG_MODES = {"RGB", "L"}


def image_to_bytes(image: Image.Image, format: str = "PNG", **options) -> bytes:
    buf = BytesIO()
    image.save(buf, format=format, **options)
    return buf.getvalue()


def open_image(data: bytes) -> Image.Image:
    """Decode ``data`` eagerly so truncated payloads fail here, not later."""

    image = Image.open(BytesIO(data))
    image.load()
    return image


def to_jpeg_mode(image: Image.Image) -> Image.Image:
    """Return ``image`` in a mode the JPEG encoder accepts (RGB or L)."""

    if image.mode in JPEG_MODES:
        return image
    if image.mode in {"LA", "I", "I;16", "F", "1"}:
        return image.convert("L")
    if image.mode in {"RGBA", "PA"} or "transparency" in image.info:
        background = Image.new("RGB", image.size, (255, 255, 255))
        rgba = image.convert("RGBA")
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    return image_to_bytes(to_jpeg_mode(image), format="JPEG", quality=int(quality), optimize=True)


__all__ = ["image_to_bytes", "open_image", "to_jpeg_mode", "encode_jpeg"]
