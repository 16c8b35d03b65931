"""Exception hierarchy for the codec and the layers around it.

Codec errors derive from ``PNGMetadataError`` (itself a ``ValueError``)
so callers that only care about "bad input" can catch ``ValueError``.
Embedding raises these; extraction catches them and reports not-found.
"""

from __future__ import annotations


class PNGMetadataError(ValueError):
    """Base class for PNG metadata codec failures."""


class StructuralError(PNGMetadataError):
    """The buffer is empty, too large, or lacks the PNG signature."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Invalid PNG buffer: {reason}")


class TruncatedStreamError(PNGMetadataError):
    """A chunk's declared length runs past the end of the buffer."""

    def __init__(self, offset: int, buffer_length: int) -> None:
        self.offset = offset
        self.buffer_length = buffer_length
        super().__init__(
            f"PNG chunk stream truncated at offset {offset} "
            f"(buffer length {buffer_length})"
        )


class MissingTerminatorError(PNGMetadataError):
    """No IEND chunk was found in the chunk stream."""


class DecodingError(PNGMetadataError):
    """The metadata chunk text could not be decoded or parsed."""


class ImageProcessingError(ValueError):
    """Pillow could not read, crop, resize, or encode an image."""


class PresetImportError(ValueError):
    """A preset file failed validation; ``code`` identifies the failure."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)
