"""Form value parsing helpers shared across plugins."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from .validation import ValidationError


FormDataLike = Mapping[str, Any] | Any


def _lookup(data: FormDataLike, key: str) -> Any:
    if data is None:
        return None
    getter = getattr(data, "get", None)
    if callable(getter):
        return getter(key)
    return data[key] if isinstance(data, Mapping) and key in data else None


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def get_str(data: FormDataLike, key: str, default: str | None = None) -> str | None:
    """Return a stripped string, or ``default`` when missing or blank."""

    raw = _lookup(data, key)
    if _is_blank(raw):
        return default
    return str(raw).strip()


def get_float(
    data: FormDataLike,
    key: str,
    default: float,
    *,
    field_name: str | None = None,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    """Extract a float from *data* with validation.

    Missing or blank values fall back to ``default``. ``minimum`` and
    ``maximum`` bounds are optional and inclusive.
    """

    field_label = field_name or key
    raw = _lookup(data, key)
    if _is_blank(raw):
        value = default
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid value for {field_label}") from exc
        if not math.isfinite(value):
            raise ValidationError(f"Invalid value for {field_label}")

    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_label} must be ≥ {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_label} must be ≤ {maximum}")

    return value


def get_int(
    data: FormDataLike,
    key: str,
    default: int,
    *,
    field_name: str | None = None,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Extract an integer from *data* with validation."""

    value = int(
        round(
            get_float(
                data,
                key,
                float(default),
                field_name=field_name,
                minimum=float(minimum) if minimum is not None else None,
                maximum=float(maximum) if maximum is not None else None,
            )
        )
    )

    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_name or key} must be ≥ {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_name or key} must be ≤ {maximum}")

    return value


def get_optional_int(
    data: FormDataLike,
    key: str,
    *,
    field_name: str | None = None,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    """Like :func:`get_int` but returns ``None`` when the field is absent."""

    if _is_blank(_lookup(data, key)):
        return None
    return get_int(data, key, 0, field_name=field_name, minimum=minimum, maximum=maximum)


def get_choice(
    data: FormDataLike,
    key: str,
    choices: Iterable[str],
    default: str,
    *,
    field_name: str | None = None,
) -> str:
    """Extract a case-insensitive value restricted to ``choices``."""

    options = tuple(choices)
    raw = get_str(data, key)
    if raw is None:
        return default
    value = raw.lower()
    if value not in options:
        raise ValidationError(
            f"{field_name or key} must be one of: {', '.join(options)}"
        )
    return value


__all__ = ["get_str", "get_float", "get_int", "get_optional_int", "get_choice"]
