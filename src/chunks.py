"""PNG chunk traversal and construction.

A PNG datastream is the 8-byte signature followed by chunks laid out as::

    length (4, big-endian) | type (4, ASCII) | data (length) | CRC (4)

``ChunkIterator`` walks that layout lazily over an in-memory buffer.  It
bounds-checks every step and, instead of raising, stops and sets
``truncated`` when a chunk would run past the end of the buffer, so each
caller decides whether a damaged tail is fatal.  CRCs are trusted on
read and only computed when writing (``build_chunk``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

from constants import (
    CHUNK_LENGTH_SIZE,
    CHUNK_OVERHEAD,
    CHUNK_TYPE_SIZE,
    IEND_CHUNK_TYPE,
    PNG_SIGNATURE,
)
from crc import compute_crc32
from errors import TruncatedStreamError
from utils import read_uint32_be, write_uint32_be


@dataclass(frozen=True)
class Chunk:
    """
    One parsed chunk; ``offset`` is where its length field starts.

    ``data`` is sliced out of *source* on first access, so walking past
    large IDAT chunks does not copy them.
    """

    type: str
    length: int
    crc: int
    offset: int
    source: bytes | bytearray | memoryview = field(default=b"", repr=False, compare=False)

    @property
    def data_offset(self) -> int:
        """Offset of the first data byte."""
        return self.offset + CHUNK_LENGTH_SIZE + CHUNK_TYPE_SIZE

    @cached_property
    def data(self) -> bytes:
        start = self.data_offset
        return bytes(self.source[start : start + self.length])

    @property
    def end(self) -> int:
        """Offset of the first byte after this chunk."""
        return self.offset + CHUNK_OVERHEAD + self.length

    @property
    def raw(self) -> bytes:
        """The chunk re-serialized exactly as declared in the file."""
        return (
            write_uint32_be(self.length)
            + self.type.encode("latin-1")
            + self.data
            + write_uint32_be(self.crc)
        )

    def crc_matches(self) -> bool:
        """Check the declared CRC against one computed over type + data."""
        return compute_crc32(self.type.encode("latin-1") + self.data) == self.crc


class ChunkIterator:
    """
    Forward-only iterator over the chunks of a PNG buffer.

    Iteration starts right after the signature and ends when the buffer
    is exhausted, after ``IEND`` when *stop_at_iend* is set, or at the
    first chunk that does not fit in the buffer.  In the last case
    ``truncated`` is True and ``truncated_at`` holds the offset of the
    offending chunk.  The iterator is not restartable.
    """

    def __init__(
        self,
        buffer: bytes | bytearray | memoryview,
        stop_at_iend: bool = False,
    ) -> None:
        self._buffer = buffer
        self._stop_at_iend = stop_at_iend
        self._offset = len(PNG_SIGNATURE)
        self._done = False
        self.truncated = False
        self.truncated_at: int | None = None

    @property
    def offset(self) -> int:
        """Offset of the next chunk to be read."""
        return self._offset

    def __iter__(self) -> ChunkIterator:
        return self

    def __next__(self) -> Chunk:
        if self._done:
            raise StopIteration

        buffer = self._buffer
        offset = self._offset
        remaining = len(buffer) - offset

        if remaining <= 0:
            self._done = True
            raise StopIteration

        if remaining < CHUNK_OVERHEAD:
            self._mark_truncated(offset)
            raise StopIteration

        length = read_uint32_be(buffer, offset)
        end = offset + CHUNK_OVERHEAD + length
        if end > len(buffer):
            self._mark_truncated(offset)
            raise StopIteration

        type_start = offset + CHUNK_LENGTH_SIZE
        data_start = type_start + CHUNK_TYPE_SIZE
        chunk = Chunk(
            type=bytes(buffer[type_start:data_start]).decode("latin-1"),
            length=length,
            crc=read_uint32_be(buffer, data_start + length),
            offset=offset,
            source=buffer,
        )

        self._offset = end
        if self._stop_at_iend and chunk.type == IEND_CHUNK_TYPE:
            self._done = True
        return chunk

    def _mark_truncated(self, offset: int) -> None:
        self._done = True
        self.truncated = True
        self.truncated_at = offset

    def raise_if_truncated(self) -> None:
        """Raise ``TruncatedStreamError`` if iteration hit a damaged chunk."""
        if self.truncated:
            raise TruncatedStreamError(self.truncated_at, len(self._buffer))


def iter_chunks(
    buffer: bytes | bytearray | memoryview,
    stop_at_iend: bool = False,
) -> ChunkIterator:
    """Return a fresh ``ChunkIterator`` over *buffer*."""
    return ChunkIterator(buffer, stop_at_iend=stop_at_iend)


def find_chunk(buffer: bytes | bytearray | memoryview, chunk_type: str) -> Chunk | None:
    """
    Return the first chunk of *chunk_type*, or None.

    The search stops at ``IEND``; a truncated stream yields None when the
    chunk was not found before the damage.
    """
    for chunk in iter_chunks(buffer, stop_at_iend=True):
        if chunk.type == chunk_type:
            return chunk
    return None


def build_chunk(chunk_type: str, data: bytes) -> bytes:
    """
    Serialize a chunk: length, type, data and CRC-32 over type + data.

    Args:
        chunk_type: Four ASCII letters, e.g. ``"tEXt"``.
        data: Chunk payload.

    Returns:
        The complete chunk bytes.

    Raises:
        ValueError: If *chunk_type* is not exactly four ASCII letters.
    """
    type_bytes = chunk_type.encode("ascii")
    if len(type_bytes) != CHUNK_TYPE_SIZE or not type_bytes.isalpha():
        raise ValueError(f"Invalid PNG chunk type: {chunk_type!r}")

    return (
        write_uint32_be(len(data))
        + type_bytes
        + data
        + write_uint32_be(compute_crc32(type_bytes + data))
    )
