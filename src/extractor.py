"""Read-only metadata extraction from PNG buffers.

Extraction never raises for bad input: an invalid PNG, a truncated
chunk stream, a missing chunk, or an unparseable payload all collapse
to ``None``, because a plain image without our metadata is the common
case.  The first chunk carrying the reserved keyword wins.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from chunks import iter_chunks
from constants import (
    DEFAULT_MAX_SIZE_BYTES,
    METADATA_KEY,
    TEXT_CHUNK_TYPE,
    TEXT_KEYWORD_SEPARATOR,
)
from errors import DecodingError
from validator import validate_png

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextEntry:
    """A keyword/text pair read from a tEXt chunk."""

    keyword: str
    text: str
    offset: int


def _split_text_chunk(data: bytes) -> tuple[bytes, bytes] | None:
    """Split tEXt data at the first NUL; None if there is no separator."""
    keyword, sep, text = data.partition(TEXT_KEYWORD_SEPARATOR)
    if not sep:
        return None
    return keyword, text


def _find_metadata_bytes(
    buffer: bytes | bytearray | memoryview,
    keyword: str,
    max_size_bytes: int,
) -> bytes | None:
    """Return the raw text of the first tEXt chunk keyed by *keyword*."""
    result = validate_png(buffer, max_size_bytes)
    if not result:
        logger.debug("Skipping metadata extraction: %s", result.reason)
        return None

    try:
        wanted = keyword.encode("latin-1")
    except UnicodeEncodeError:
        logger.debug("Keyword %r cannot appear in a tEXt chunk", keyword)
        return None

    chunks = iter_chunks(buffer)
    for chunk in chunks:
        if chunk.type != TEXT_CHUNK_TYPE:
            continue
        parts = _split_text_chunk(chunk.data)
        if parts is not None and parts[0] == wanted:
            return parts[1]

    if chunks.truncated:
        logger.debug("PNG chunk stream truncated at offset %s", chunks.truncated_at)
    logger.debug("No %s metadata found in PNG", keyword)
    return None


def decode_metadata(raw: bytes, decoder: Callable[[str], Any] = json.loads) -> Any:
    """
    Decode the text of a metadata chunk.

    Args:
        raw: UTF-8 bytes following the keyword separator.
        decoder: Parser for the decoded string.

    Returns:
        Whatever *decoder* returns.

    Raises:
        DecodingError: If the bytes are not UTF-8, *decoder* rejects them,
            or the payload nests too deeply to parse.
    """
    try:
        return decoder(raw.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise DecodingError(f"Failed to decode metadata: {e}") from e


def extract_metadata_text(
    buffer: bytes | bytearray | memoryview,
    keyword: str = METADATA_KEY,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> str | None:
    """
    Return the undecoded text stored under *keyword*, or None.

    Invalid UTF-8 is treated as not found.
    """
    raw = _find_metadata_bytes(buffer, keyword, max_size_bytes)
    if raw is None:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("%s metadata is not valid UTF-8", keyword)
        return None


def extract_metadata(
    buffer: bytes | bytearray | memoryview,
    keyword: str = METADATA_KEY,
    decoder: Callable[[str], Any] = json.loads,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> Any | None:
    """
    Extract and decode embedded metadata from a PNG buffer.

    Args:
        buffer: PNG file contents.
        keyword: tEXt keyword that marks our metadata.
        decoder: Parser applied to the chunk text (JSON by default).
        max_size_bytes: Largest buffer accepted by the validator.

    Returns:
        The decoded payload of the first matching chunk, or None if the
        buffer is not a valid PNG, carries no matching chunk, or the
        payload cannot be decoded.
    """
    raw = _find_metadata_bytes(buffer, keyword, max_size_bytes)
    if raw is None:
        return None

    try:
        payload = decode_metadata(raw, decoder)
    except DecodingError as e:
        logger.warning("Failed to parse %s metadata: %s", keyword, e)
        return None

    logger.info("Extracted %s metadata from PNG (%d bytes)", keyword, len(raw))
    return payload


def has_metadata(
    buffer: bytes | bytearray | memoryview,
    keyword: str = METADATA_KEY,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> bool:
    """Check whether a tEXt chunk keyed by *keyword* is present."""
    return _find_metadata_bytes(buffer, keyword, max_size_bytes) is not None


def read_text_chunks(
    buffer: bytes | bytearray | memoryview,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> list[TextEntry]:
    """
    List every tEXt entry in stream order.

    Keywords are decoded as Latin-1 and text as UTF-8 with replacement,
    so this never raises on odd content.  Returns an empty list for an
    invalid PNG.
    """
    if not validate_png(buffer, max_size_bytes):
        return []

    entries = []
    for chunk in iter_chunks(buffer):
        if chunk.type != TEXT_CHUNK_TYPE:
            continue
        parts = _split_text_chunk(chunk.data)
        if parts is None:
            continue
        keyword, text = parts
        entries.append(
            TextEntry(
                keyword=keyword.decode("latin-1"),
                text=text.decode("utf-8", errors="replace"),
                offset=chunk.offset,
            )
        )
    return entries


def extract_metadata_from_file(
    source_path: Path,
    keyword: str = METADATA_KEY,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> Any | None:
    """
    Extract metadata from a PNG file on disk.

    Args:
        source_path: Path to the source image file.

    Returns:
        The decoded payload or None.

    Raises:
        OSError: If the file cannot be read.
    """
    return extract_metadata(
        Path(source_path).read_bytes(), keyword=keyword, max_size_bytes=max_size_bytes
    )
