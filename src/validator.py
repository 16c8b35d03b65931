"""Structural gate run before any chunk parsing.

Only the signature and the overall size are checked here; chunk-level
problems are detected by the chunk iterator.
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import (
    DEFAULT_MAX_SIZE_BYTES,
    PNG_SIGNATURE,
    REASON_BAD_SIGNATURE,
    REASON_EMPTY,
    REASON_TOO_LARGE,
)
from errors import StructuralError


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate_png``; truthy when the buffer is usable."""

    valid: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.valid


def is_png_format(buffer: bytes | bytearray | memoryview) -> bool:
    """Return True if *buffer* starts with the 8-byte PNG signature."""
    return bytes(buffer[: len(PNG_SIGNATURE)]) == PNG_SIGNATURE


def validate_png(
    buffer: bytes | bytearray | memoryview,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> ValidationResult:
    """
    Validate that a buffer is a PNG of acceptable size.

    Args:
        buffer: Candidate PNG bytes.
        max_size_bytes: Largest accepted buffer length.

    Returns:
        ``ValidationResult`` with ``reason`` set to ``"empty"``,
        ``"too large"`` or ``"bad signature"`` on failure.
    """
    if len(buffer) == 0:
        return ValidationResult(False, REASON_EMPTY)
    if len(buffer) > max_size_bytes:
        return ValidationResult(False, REASON_TOO_LARGE)
    if not is_png_format(buffer):
        return ValidationResult(False, REASON_BAD_SIGNATURE)
    return ValidationResult(True)


def ensure_valid_png(
    buffer: bytes | bytearray | memoryview,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> None:
    """Raise ``StructuralError`` unless ``validate_png`` accepts *buffer*."""
    result = validate_png(buffer, max_size_bytes)
    if not result:
        if result.reason == REASON_TOO_LARGE:
            raise StructuralError(
                result.reason,
                f"PNG too large ({len(buffer)} bytes, max: {max_size_bytes} bytes)",
            )
        raise StructuralError(result.reason)
