"""Test configuration and fixtures."""

from __future__ import annotations

import io
import struct
import tempfile
import zlib
from pathlib import Path
from typing import Callable, Generator

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _encode(img: Image.Image, fmt: str = "PNG", **save_kwargs) -> bytes:
    out = io.BytesIO()
    img.save(out, fmt, **save_kwargs)
    return out.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_chunk() -> Callable[[bytes, bytes], bytes]:
    """Return a reference chunk serializer built on zlib.crc32."""

    def _make(chunk_type: bytes, data: bytes = b"") -> bytes:
        crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)

    return _make


@pytest.fixture
def png_bytes() -> bytes:
    """A minimal 1x1 RGB PNG."""
    return _encode(Image.new("RGB", (1, 1), color="white"))


@pytest.fixture
def wide_png_bytes() -> bytes:
    """A 200x100 PNG."""
    return _encode(Image.new("RGB", (200, 100), color="red"))


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A 64x32 JPEG."""
    return _encode(Image.new("RGB", (64, 32), color="blue"), "JPEG")


@pytest.fixture
def png_with_text_bytes() -> bytes:
    """A PNG carrying standard tEXt entries written by Pillow."""
    info = PngInfo()
    info.add_text("Author", "Test Author")
    info.add_text("Comment", "A test image for unit tests")
    return _encode(Image.new("RGB", (8, 8), color="green"), pnginfo=info)


@pytest.fixture
def sample_png(temp_dir: Path, png_bytes: bytes) -> Path:
    """Write the minimal PNG to disk."""
    img_path = temp_dir / "sample.png"
    img_path.write_bytes(png_bytes)
    return img_path


@pytest.fixture
def sample_jpg(temp_dir: Path, jpeg_bytes: bytes) -> Path:
    """Write the sample JPEG to disk."""
    img_path = temp_dir / "sample.jpg"
    img_path.write_bytes(jpeg_bytes)
    return img_path
