"""Tests for embedder module."""

import io
import json
from pathlib import Path

import pytest
from PIL import Image

from chunks import iter_chunks
from constants import METADATA_KEY, PNG_SIGNATURE
from embedder import (
    build_text_chunk,
    embed_metadata,
    embed_metadata_in_file,
    embed_text,
    find_iend_offset,
    serialize_payload,
)
from errors import MissingTerminatorError, StructuralError, TruncatedStreamError
from extractor import extract_metadata


class TestEmbedMetadata:
    """Tests for embed_metadata function."""

    def test_concrete_scenario_length(self, png_bytes: bytes) -> None:
        payload = {"version": 1, "type": "preset", "data": {"name": "Rin"}}
        json_text = '{"version":1,"type":"preset","data":{"name":"Rin"}}'

        tagged = embed_metadata(png_bytes, payload)

        assert serialize_payload(payload) == json_text
        assert len(tagged) == len(png_bytes) + 12 + len(METADATA_KEY) + 1 + len(json_text)
        assert extract_metadata(tagged) == payload

    def test_inserts_chunk_right_before_iend(self, png_bytes: bytes) -> None:
        tagged = embed_metadata(png_bytes, {"v": 1})
        types = [c.type for c in iter_chunks(tagged)]
        original = [c.type for c in iter_chunks(png_bytes)]

        assert types == original[:-1] + ["tEXt", "IEND"]

    def test_is_non_destructive(self, png_bytes: bytes) -> None:
        tagged = embed_metadata(png_bytes, {"v": 1})
        iend = len(png_bytes) - 12
        inserted = len(tagged) - len(png_bytes)

        assert tagged[:iend] == png_bytes[:iend]
        assert tagged[iend + inserted :] == png_bytes[iend:]

    def test_original_chunks_are_byte_identical(self, png_with_text_bytes: bytes) -> None:
        tagged = embed_metadata(png_with_text_bytes, {"v": 1})
        before = [c.raw for c in iter_chunks(png_with_text_bytes)]
        after = [c.raw for c in iter_chunks(tagged) if c.offset != find_iend_offset(png_with_text_bytes)]

        assert after == before

    def test_written_chunk_has_valid_crc(self, png_bytes: bytes) -> None:
        tagged = embed_metadata(png_bytes, {"v": 1})

        assert all(chunk.crc_matches() for chunk in iter_chunks(tagged))

    def test_pillow_accepts_output(self, png_bytes: bytes) -> None:
        payload = {"name": "Rin", "traits": ["calm", "curious"]}
        tagged = embed_metadata(png_bytes, payload)

        with Image.open(io.BytesIO(tagged)) as img:
            img.verify()

        with Image.open(io.BytesIO(tagged)) as img:
            assert img.size == (1, 1)
            assert json.loads(img.text[METADATA_KEY]) == payload

    def test_returns_new_bytes_and_keeps_input(self, png_bytes: bytes) -> None:
        source = bytearray(png_bytes)

        tagged = embed_metadata(source, {"v": 1})

        assert isinstance(tagged, bytes)
        assert bytes(source) == png_bytes

    def test_re_embedding_appends(self, png_bytes: bytes) -> None:
        once = embed_metadata(png_bytes, {"v": 1})
        twice = embed_metadata(once, {"v": 2})
        text_chunks = [c for c in iter_chunks(twice) if c.type == "tEXt"]

        assert len(text_chunks) == 2
        assert extract_metadata(twice) == {"v": 1}

    def test_preserves_bytes_after_iend(self, png_bytes: bytes) -> None:
        source = png_bytes + b"trailing"

        tagged = embed_metadata(source, {"v": 1})

        assert tagged.endswith(png_bytes[-12:] + b"trailing")

    def test_custom_encoder(self, png_bytes: bytes) -> None:
        tagged = embed_metadata(png_bytes, 42, encoder=lambda value: f"n={value}")

        assert extract_metadata(tagged, decoder=lambda text: text) == "n=42"

    def test_unserializable_payload_raises(self, png_bytes: bytes) -> None:
        with pytest.raises(TypeError):
            embed_metadata(png_bytes, {"v": object()})

    def test_bad_signature_raises_structural_error(self, jpeg_bytes: bytes) -> None:
        with pytest.raises(StructuralError) as exc_info:
            embed_metadata(jpeg_bytes, {"v": 1})

        assert exc_info.value.reason == "bad signature"

    def test_empty_buffer_raises_structural_error(self) -> None:
        with pytest.raises(StructuralError) as exc_info:
            embed_metadata(b"", {"v": 1})

        assert exc_info.value.reason == "empty"

    def test_too_large_raises_structural_error(self, png_bytes: bytes) -> None:
        with pytest.raises(StructuralError) as exc_info:
            embed_metadata(png_bytes, {"v": 1}, max_size_bytes=16)

        assert exc_info.value.reason == "too large"

    def test_missing_iend_raises(self, png_bytes: bytes) -> None:
        without_iend = png_bytes[:-12]

        with pytest.raises(MissingTerminatorError) as exc_info:
            embed_metadata(without_iend, {"v": 1})

        assert exc_info.value.__cause__ is None

    def test_truncated_stream_raises_missing_terminator(self, png_bytes: bytes) -> None:
        truncated = png_bytes[:-12] + b"\x00\x00\x10\x00IDAT"

        with pytest.raises(MissingTerminatorError) as exc_info:
            embed_metadata(truncated, {"v": 1})

        assert isinstance(exc_info.value.__cause__, TruncatedStreamError)

    def test_signature_only_raises_missing_terminator(self) -> None:
        with pytest.raises(MissingTerminatorError):
            embed_metadata(PNG_SIGNATURE, {"v": 1})


class TestEmbedText:
    """Tests for embed_text function."""

    def test_stores_text_verbatim(self, png_bytes: bytes) -> None:
        tagged = embed_text(png_bytes, "hello world", keyword="Comment")
        chunk = [c for c in iter_chunks(tagged) if c.type == "tEXt"][0]

        assert chunk.data == b"Comment\x00hello world"

    def test_length_accounts_for_utf8(self, png_bytes: bytes) -> None:
        tagged = embed_text(png_bytes, "é")

        assert len(tagged) == len(png_bytes) + 12 + len(METADATA_KEY) + 1 + 2

    @pytest.mark.parametrize("wrap", [bytearray, memoryview])
    def test_accepts_buffer_types_and_returns_bytes(self, png_bytes: bytes, wrap) -> None:
        source = wrap(png_bytes)

        tagged = embed_text(source, "hello")

        assert type(tagged) is bytes
        assert tagged == embed_text(png_bytes, "hello")
        assert bytes(source) == png_bytes


class TestBuildTextChunk:
    """Tests for build_text_chunk function."""

    def test_layout(self, make_chunk) -> None:
        assert build_text_chunk("Title", "x") == make_chunk(b"tEXt", b"Title\x00x")

    def test_rejects_empty_keyword(self) -> None:
        with pytest.raises(ValueError):
            build_text_chunk("", "x")

    def test_rejects_nul_in_keyword(self) -> None:
        with pytest.raises(ValueError):
            build_text_chunk("bad\x00key", "x")

    def test_rejects_non_latin1_keyword(self) -> None:
        with pytest.raises(ValueError):
            build_text_chunk("キー", "x")


class TestFindIENDOffset:
    """Tests for find_iend_offset function."""

    def test_points_at_length_field(self, png_bytes: bytes) -> None:
        offset = find_iend_offset(png_bytes)

        assert offset == len(png_bytes) - 12
        assert png_bytes[offset : offset + 8] == b"\x00\x00\x00\x00IEND"


class TestEmbedMetadataInFile:
    """Tests for embed_metadata_in_file function."""

    def test_writes_output(self, sample_png: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "output.png"

        result = embed_metadata_in_file(sample_png, output_path, {"v": 1})

        assert result == output_path
        assert extract_metadata(output_path.read_bytes()) == {"v": 1}

    def test_creates_output_directory(self, sample_png: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "nested" / "dir" / "output.png"

        embed_metadata_in_file(sample_png, output_path, {"v": 1})

        assert output_path.exists()

    def test_overwrites_source_in_place(self, sample_png: Path) -> None:
        embed_metadata_in_file(sample_png, sample_png, {"v": 1})
        embed_metadata_in_file(sample_png, sample_png, {"v": 2})

        assert extract_metadata(sample_png.read_bytes()) == {"v": 1}

    def test_does_not_write_on_failure(self, sample_jpg: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "output.png"

        with pytest.raises(StructuralError):
            embed_metadata_in_file(sample_jpg, output_path, {"v": 1})

        assert not output_path.exists()
