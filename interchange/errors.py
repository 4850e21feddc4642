"""
Conversion errors.

Parsers fail fast on document-level problems (nothing to parse, an
unrecoverable payload, broken XML, a document without nodes) and skip
line- or cell-level problems. Every error derives from ConversionError so
callers can catch the whole family at once.
"""


class ConversionError(Exception):
    """Base class for every error raised by the interchange engine."""


class EmptyInputError(ConversionError):
    """Raised when the input holds no content to parse."""


class DecodeError(ConversionError):
    """Raised when a compressed or encoded page payload cannot be recovered."""


class StructuralParseError(ConversionError):
    """Raised when the Draw.io document is not well-formed XML."""


class NoNodesError(ConversionError):
    """Raised when a structurally valid document yields zero nodes."""


class OptionsError(ConversionError):
    """Raised when a conversion option holds an unsupported value."""
