"""Low-level utility helpers used across the codec.

Kept small so that every other module can import it without circular
dependencies: file-format detection and big-endian integer packing.
"""

from __future__ import annotations

import struct
from pathlib import Path

from constants import SUPPORTED_FORMATS

_UINT32_BE = struct.Struct(">I")


def is_supported_format(file_path: Path) -> bool:
    """
    Check if the file format is supported.

    Args:
        file_path: Path to the image file.

    Returns:
        True if the format is supported, False otherwise.
    """
    return file_path.suffix.lower() in SUPPORTED_FORMATS


def read_uint32_be(data: bytes | bytearray | memoryview, offset: int) -> int:
    """
    Read a 4-byte big-endian unsigned integer.

    Args:
        data: Buffer to read from.
        offset: Position of the most significant byte.

    Returns:
        Integer in the range 0 to 2**32 - 1.

    Raises:
        struct.error: If fewer than 4 bytes are available at *offset*.
    """
    return _UINT32_BE.unpack_from(data, offset)[0]


def write_uint32_be(value: int) -> bytes:
    """
    Pack *value* as 4 big-endian bytes.

    Raises:
        struct.error: If *value* does not fit in an unsigned 32-bit integer.
    """
    return _UINT32_BE.pack(value)
