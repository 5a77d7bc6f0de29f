class CompositingError(Exception):
    """Base class for every failure raised by the compositing subsystem."""


class DecodeError(CompositingError):
    """An input image could not be read or decoded."""


class EncodeError(CompositingError):
    """The composited image could not be encoded or written."""


class InvalidDimensionsError(CompositingError, ValueError):
    """Background width/height are missing, non-finite, zero or negative."""


class InvalidSpecError(CompositingError, ValueError):
    """A placement or lighting record holds an unusable value."""
