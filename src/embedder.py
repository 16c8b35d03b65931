"""Write metadata into PNG buffers.

A new ``tEXt`` chunk is spliced in immediately before ``IEND``; every
other byte of the source is copied unchanged.  Unlike extraction, every
failure here raises, so a caller can never mistake an untouched buffer
for a tagged one.

Embedding twice appends a second chunk instead of replacing the first,
and extraction returns the earlier one.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

from chunks import build_chunk, iter_chunks
from constants import (
    DEFAULT_MAX_SIZE_BYTES,
    IEND_CHUNK_TYPE,
    METADATA_KEY,
    TEXT_CHUNK_TYPE,
    TEXT_KEYWORD_SEPARATOR,
)
from errors import MissingTerminatorError, TruncatedStreamError
from validator import ensure_valid_png

logger = logging.getLogger(__name__)


def serialize_payload(payload: Any) -> str:
    """Serialize *payload* as compact JSON, keeping non-ASCII text as-is."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def build_text_chunk(keyword: str, text: str) -> bytes:
    """
    Build a complete tEXt chunk for *keyword* and *text*.

    Raises:
        ValueError: If *keyword* is empty, contains NUL, or is not Latin-1.
    """
    if not keyword or TEXT_KEYWORD_SEPARATOR.decode() in keyword:
        raise ValueError(f"Invalid tEXt keyword: {keyword!r}")

    chunk_data = keyword.encode("latin-1") + TEXT_KEYWORD_SEPARATOR + text.encode("utf-8")
    return build_chunk(TEXT_CHUNK_TYPE, chunk_data)


def find_iend_offset(buffer: bytes | bytearray | memoryview) -> int:
    """
    Return the offset of the IEND chunk's length field.

    Raises:
        MissingTerminatorError: If the stream ends, or is truncated,
            before an IEND chunk.
    """
    chunks = iter_chunks(buffer, stop_at_iend=True)
    for chunk in chunks:
        if chunk.type == IEND_CHUNK_TYPE:
            return chunk.offset

    try:
        chunks.raise_if_truncated()
    except TruncatedStreamError as e:
        raise MissingTerminatorError(f"Could not find IEND chunk in PNG: {e}") from e
    raise MissingTerminatorError("Could not find IEND chunk in PNG")


def embed_text(
    buffer: bytes | bytearray | memoryview,
    text: str,
    keyword: str = METADATA_KEY,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> bytes:
    """
    Insert a tEXt chunk holding *text* before IEND.

    Args:
        buffer: Source PNG bytes; never modified.
        text: Text to store, written as UTF-8.
        keyword: tEXt keyword.
        max_size_bytes: Largest buffer accepted by the validator.

    Returns:
        A new PNG buffer.

    Raises:
        StructuralError: If *buffer* is not a valid PNG.
        MissingTerminatorError: If no IEND chunk can be located.
    """
    ensure_valid_png(buffer, max_size_bytes)
    text_chunk = build_text_chunk(keyword, text)
    iend_offset = find_iend_offset(buffer)

    source = memoryview(buffer)
    return b"".join((source[:iend_offset], text_chunk, source[iend_offset:]))


def embed_metadata(
    buffer: bytes | bytearray | memoryview,
    payload: Any,
    keyword: str = METADATA_KEY,
    encoder: Callable[[Any], str] = serialize_payload,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> bytes:
    """
    Serialize *payload* and embed it into a PNG buffer.

    Args:
        buffer: Source PNG bytes; never modified.
        payload: Value to embed.
        keyword: tEXt keyword that marks our metadata.
        encoder: Turns *payload* into text (compact JSON by default).
        max_size_bytes: Largest buffer accepted by the validator.

    Returns:
        A new PNG buffer with one extra tEXt chunk before IEND.

    Raises:
        StructuralError: If *buffer* is not a valid PNG.
        MissingTerminatorError: If no IEND chunk can be located.
        TypeError: If *encoder* cannot serialize *payload*.
    """
    text = encoder(payload)
    try:
        result = embed_text(buffer, text, keyword=keyword, max_size_bytes=max_size_bytes)
    except ValueError as e:
        logger.error("Error embedding %s metadata in PNG: %s", keyword, e)
        raise

    logger.info("Embedded %s metadata (%d characters) into PNG", keyword, len(text))
    return result


def embed_metadata_in_file(
    source_path: Path,
    output_path: Path,
    payload: Any,
    keyword: str = METADATA_KEY,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> Path:
    """
    Embed *payload* into a PNG file and save the result to *output_path*.

    *output_path* may equal *source_path*; parent directories are created.

    Returns:
        The output path.
    """
    source_path = Path(source_path)
    output_path = Path(output_path)

    data = embed_metadata(
        source_path.read_bytes(), payload, keyword=keyword, max_size_bytes=max_size_bytes
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    return output_path
