"""Image recompression for PDF size reduction.

Only JPEG (``/DCTDecode``) image streams are rewritten. Every pass starts
again from the original bytes, so lowering the settings on a later
attempt never compounds the loss of an earlier one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Iterator, Mapping

from PIL import Image
from PyPDF2 import PdfWriter
from PyPDF2.errors import PdfReadError
from PyPDF2.generic import ArrayObject, IndirectObject, NameObject, NumberObject

from common.imaging import encode_jpeg, open_image, to_jpeg_mode
from common.logging import get_logger

from .documents import PRODUCER, load_pdf, write_pdf

logger = get_logger("pdf_toolkit.compression")

QUALITY_TIERS: dict[str, tuple[int, float]] = {
    "low": (30, 0.5),
    "medium": (60, 0.75),
    "high": (80, 1.0),
}

RECOMPRESSED = "recompressed"
UNSUPPORTED = "unsupported"
FAILED = "failed"

# Errors Pillow raises for corrupt or exotic JPEG payloads.
_IMAGE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class CompressionPolicy:
    """Step schedule for target-size compression."""

    start_quality: int = 70
    start_ratio: float = 0.8
    max_attempts: int = 5
    quality_step: int = 15
    ratio_step: float = 0.15
    min_quality: int = 10
    max_quality: int = 100
    min_ratio: float = 0.2
    max_ratio: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.quality_step <= 0 or self.ratio_step <= 0:
            raise ValueError("step sizes must be positive")
        if not 1 <= self.min_quality <= self.max_quality <= 100:
            raise ValueError("quality bounds must satisfy 1 <= min <= max <= 100")
        if not 0 < self.min_ratio <= self.max_ratio <= 1.0:
            raise ValueError("ratio bounds must satisfy 0 < min <= max <= 1")

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None) -> "CompressionPolicy":
        """Build a policy from ``config.yml``, keeping defaults for bad values."""

        values: dict[str, Any] = {}
        for field in fields(cls):
            if not settings or field.name not in settings:
                continue
            caster = int if field.type in ("int", int) else float
            try:
                value = float(settings[field.name])
            except (TypeError, ValueError):
                continue
            if math.isfinite(value):
                values[field.name] = caster(value)
        return cls(**values)

    def clamp(self, quality: float, ratio: float) -> tuple[int, float]:
        quality = max(self.min_quality, min(self.max_quality, int(quality)))
        ratio = max(self.min_ratio, min(self.max_ratio, round(float(ratio), 4)))
        return quality, ratio

    def schedule(self) -> Iterator[tuple[int, float]]:
        """Yield the ``(quality, ratio)`` pair of every attempt."""

        quality, ratio = self.clamp(self.start_quality, self.start_ratio)
        for _ in range(self.max_attempts):
            yield quality, ratio
            quality, ratio = self.clamp(quality - self.quality_step, ratio - self.ratio_step)


@dataclass(frozen=True)
class ImageOutcome:
    name: str
    page: int
    status: str
    reason: str | None = None
    original_size: tuple[int, int] | None = None
    new_size: tuple[int, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "page": self.page,
            "status": self.status,
            "reason": self.reason,
            "original_size": list(self.original_size) if self.original_size else None,
            "new_size": list(self.new_size) if self.new_size else None,
        }


@dataclass(frozen=True)
class CompressionAttempt:
    quality: int
    resize_ratio: float
    size_bytes: int
    images: tuple[ImageOutcome, ...] = ()

    def _count(self, status: str) -> int:
        return sum(1 for image in self.images if image.status == status)

    @property
    def recompressed(self) -> int:
        return self._count(RECOMPRESSED)

    @property
    def skipped(self) -> int:
        return self._count(FAILED)

    @property
    def unsupported(self) -> int:
        return self._count(UNSUPPORTED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "quality": self.quality,
            "resize_ratio": self.resize_ratio,
            "size_bytes": self.size_bytes,
            "recompressed": self.recompressed,
            "skipped": self.skipped,
            "unsupported": self.unsupported,
        }


@dataclass(frozen=True)
class CompressionResult:
    data: bytes
    original_size: int
    attempts: tuple[CompressionAttempt, ...]
    target_bytes: int | None = None

    @property
    def compressed_size(self) -> int:
        return len(self.data)

    @property
    def reduction_percent(self) -> int:
        if self.original_size <= 0:
            return 0
        return _round_half_up((1 - self.compressed_size / self.original_size) * 100)

    @property
    def target_met(self) -> bool | None:
        if self.target_bytes is None:
            return None
        return self.compressed_size <= self.target_bytes

    @property
    def final_attempt(self) -> CompressionAttempt:
        return self.attempts[-1]

    @property
    def skipped_images(self) -> list[ImageOutcome]:
        return [image for image in self.final_attempt.images if image.status == FAILED]


def quality_tier(name: str) -> tuple[int, float]:
    try:
        return QUALITY_TIERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown quality tier '{name}'") from exc


def _resolved(obj, key: str):
    return obj[key] if key in obj else None


def _filters(stream) -> list[str]:
    value = _resolved(stream, "/Filter")
    if value is None:
        return []
    if isinstance(value, ArrayObject):
        return [str(item.get_object()) for item in value]
    return [str(value)]


def _iter_xobject_images(resources, page_number: int, seen: set) -> Iterator[tuple[int, str, Any]]:
    xobjects = _resolved(resources, "/XObject") if resources is not None else None
    if not xobjects:
        return
    for name in list(xobjects.keys()):
        raw = xobjects.raw_get(name)
        stream = raw.get_object()
        key = (raw.idnum, raw.generation) if isinstance(raw, IndirectObject) else id(stream)
        if key in seen:
            continue
        seen.add(key)
        subtype = _resolved(stream, "/Subtype")
        if subtype == "/Image":
            yield page_number, str(name), stream
        elif subtype == "/Form":
            yield from _iter_xobject_images(_resolved(stream, "/Resources"), page_number, seen)


def iter_page_images(writer: PdfWriter) -> Iterator[tuple[int, str, Any]]:
    """Yield ``(page_number, name, stream)`` for every distinct image XObject."""

    seen: set = set()
    for page_number, page in enumerate(writer.pages, start=1):
        yield from _iter_xobject_images(_resolved(page, "/Resources"), page_number, seen)


def _recompress_image(stream, name: str, page: int, quality: int, ratio: float) -> ImageOutcome:
    filters = _filters(stream)
    if filters != ["/DCTDecode"] or _resolved(stream, "/ImageMask"):
        reason = f"unsupported filter {'+'.join(filters) or 'none'}"
        return ImageOutcome(name=name, page=page, status=UNSUPPORTED, reason=reason)

    try:
        width = int(_resolved(stream, "/Width"))
        height = int(_resolved(stream, "/Height"))
        image = open_image(stream._data)
        new_width = max(1, _round_half_up(width * ratio))
        new_height = max(1, _round_half_up(height * ratio))
        if image.size != (new_width, new_height):
            image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)
        image = to_jpeg_mode(image)
        payload = encode_jpeg(image, quality)
        mode = "/DeviceGray" if image.mode == "L" else "/DeviceRGB"
    except (*_IMAGE_ERRORS, TypeError) as exc:
        logger.warning("skipping image %s on page %d: %s", name, page, exc)
        return ImageOutcome(name=name, page=page, status=FAILED, reason=str(exc) or type(exc).__name__)

    stream._data = payload
    stream.decoded_self = None
    stream[NameObject("/Width")] = NumberObject(new_width)
    stream[NameObject("/Height")] = NumberObject(new_height)
    stream[NameObject("/Filter")] = NameObject("/DCTDecode")
    stream[NameObject("/ColorSpace")] = NameObject(mode)
    stream[NameObject("/BitsPerComponent")] = NumberObject(8)
    for key in ("/Decode", "/DecodeParms"):
        if key in stream:
            del stream[key]
    return ImageOutcome(
        name=name,
        page=page,
        status=RECOMPRESSED,
        original_size=(width, height),
        new_size=(new_width, new_height),
    )


def _compress_pass(data: bytes, quality: int, ratio: float) -> tuple[CompressionAttempt, bytes]:
    reader = load_pdf(data)
    writer = PdfWriter()
    for page in reader.pages:
        try:
            page.compress_content_streams()
        except (PdfReadError, ValueError, KeyError) as exc:
            logger.warning("leaving page content uncompressed: %s", exc)
        writer.add_page(page)

    outcomes = [
        _recompress_image(stream, name, page_number, quality, ratio)
        for page_number, name, stream in iter_page_images(writer)
    ]
    writer.add_metadata({"/Producer": PRODUCER, "/Creator": PRODUCER})
    output = write_pdf(writer)
    attempt = CompressionAttempt(
        quality=quality,
        resize_ratio=ratio,
        size_bytes=len(output),
        images=tuple(outcomes),
    )
    return attempt, output


def recompress(
    data: bytes,
    *,
    target_bytes: int | None = None,
    quality: int = QUALITY_TIERS["medium"][0],
    resize_ratio: float = QUALITY_TIERS["medium"][1],
    policy: CompressionPolicy | None = None,
) -> CompressionResult:
    """Recompress embedded JPEG images of the PDF in ``data``.

    Without ``target_bytes`` a single pass runs at ``quality`` and
    ``resize_ratio``. With a target, the policy schedule is walked until
    the output fits or the attempt budget runs out; in the latter case
    the last (smallest-settings) attempt is returned and
    :attr:`CompressionResult.target_met` is ``False``.

    Raises :class:`~.documents.UnreadableDocumentError` when the source
    cannot be parsed. Individual image failures never raise.
    """

    policy = policy or CompressionPolicy()
    if target_bytes is None:
        settings: Iterator[tuple[int, float]] = iter([policy.clamp(quality, resize_ratio)])
    else:
        settings = policy.schedule()

    attempts: list[CompressionAttempt] = []
    output = data
    for attempt_quality, attempt_ratio in settings:
        attempt, output = _compress_pass(data, attempt_quality, attempt_ratio)
        attempts.append(attempt)
        if attempt.skipped:
            logger.info(
                "attempt %d skipped %d image(s) at quality=%d ratio=%.2f",
                len(attempts),
                attempt.skipped,
                attempt_quality,
                attempt_ratio,
            )
        if target_bytes is not None and attempt.size_bytes <= target_bytes:
            break
    else:
        if target_bytes is not None:
            logger.info(
                "target of %d bytes not reached after %d attempts; returning %d bytes",
                target_bytes,
                len(attempts),
                len(output),
            )

    return CompressionResult(
        data=output,
        original_size=len(data),
        attempts=tuple(attempts),
        target_bytes=target_bytes,
    )


__all__ = [
    "QUALITY_TIERS",
    "RECOMPRESSED",
    "UNSUPPORTED",
    "FAILED",
    "CompressionPolicy",
    "ImageOutcome",
    "CompressionAttempt",
    "CompressionResult",
    "quality_tier",
    "iter_page_images",
    "recompress",
]
