"""Exception and warning types raised by the Magic Edit core."""

from __future__ import annotations


class InvalidParameter(ValueError):
    """A numeric argument or buffer is outside its documented range."""


class DimensionMismatch(ValueError):
    """Operands of a single call do not share the same width and height."""


class ImageDecodeError(ValueError):
    """Bytes or a data URL could not be decoded into an image."""


class EmptyMask(ValueError):
    """Raised instead of :class:`EmptyMaskWarning` when strict mode is on."""


class EmptyMaskWarning(UserWarning):
    """The selection mask contains no selected pixels."""


class RequestInProgress(RuntimeError):
    """An edit session already has a request in flight."""


__all__ = [
    "DimensionMismatch",
    "EmptyMask",
    "EmptyMaskWarning",
    "ImageDecodeError",
    "InvalidParameter",
    "RequestInProgress",
]
