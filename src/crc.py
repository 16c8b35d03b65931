"""CRC-32 as used by PNG (ISO 3309 / ITU-T V.42, identical to zlib).

The lookup table is built on first use and then shared read-only for
the lifetime of the process.  Building it twice under a race yields the
same tuple, so no lock is needed.
"""

from __future__ import annotations

_POLYNOMIAL = 0xEDB88320
_MASK = 0xFFFFFFFF

_crc_table: tuple[int, ...] | None = None


def _build_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = _POLYNOMIAL ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return tuple(table)


def get_crc_table() -> tuple[int, ...]:
    """Return the 256-entry CRC table, building it on first call."""
    global _crc_table
    if _crc_table is None:
        _crc_table = _build_table()
    return _crc_table


def compute_crc32(data: bytes | bytearray | memoryview, crc: int = 0) -> int:
    """
    Compute the CRC-32 of *data*.

    Args:
        data: Bytes to checksum. For a PNG chunk this is type + data.
        crc: Checksum of preceding bytes, to continue a running CRC.

    Returns:
        Unsigned 32-bit checksum.
    """
    table = get_crc_table()
    c = crc ^ _MASK
    for byte in bytes(data):
        c = table[(c ^ byte) & 0xFF] ^ (c >> 8)
    return c ^ _MASK
