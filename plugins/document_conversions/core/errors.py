"""Exceptions raised by the conversion functions."""


class ConversionError(ValueError):
    """Raised when a readable upload cannot be converted."""


class UnsupportedFormatError(ConversionError):
    """Raised for formats the converters do not read, such as legacy ``.doc``."""


__all__ = ["ConversionError", "UnsupportedFormatError"]
