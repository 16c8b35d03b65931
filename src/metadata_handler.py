"""Public façade for the PNG metadata codec — re-exports every symbol.

Consumers should ``import metadata_handler`` rather than reaching into
the internal modules directly.  This file gathers all public names so
that the API surface stays stable even as the implementation is
reorganised.

Internal modules:

- ``constants``        — signature, keyword and limits
- ``errors``           — exception hierarchy
- ``crc``              — CRC-32 engine
- ``utils``            — format and byte-order helpers
- ``validator``        — signature/size gate
- ``chunks``           — chunk iterator and builder
- ``extractor``        — read metadata from PNG buffers
- ``embedder``         — write metadata into PNG buffers
- ``image_processor``  — Pillow crop/resize/convert helpers
- ``preset``           — preset schema and export/import pipeline
"""

from chunks import Chunk, ChunkIterator, build_chunk, find_chunk, iter_chunks
from constants import (
    DEFAULT_MAX_SIZE_BYTES,
    IEND_CHUNK_TYPE,
    METADATA_KEY,
    PNG_SIGNATURE,
    PRESET_EXPORT_VERSION,
    SUPPORTED_FORMATS,
    TEXT_CHUNK_TYPE,
)
from crc import compute_crc32
from embedder import (
    build_text_chunk,
    embed_metadata,
    embed_metadata_in_file,
    embed_text,
    find_iend_offset,
    serialize_payload,
)
from errors import (
    DecodingError,
    ImageProcessingError,
    MissingTerminatorError,
    PNGMetadataError,
    PresetImportError,
    StructuralError,
    TruncatedStreamError,
)
from extractor import (
    TextEntry,
    decode_metadata,
    extract_metadata,
    extract_metadata_from_file,
    extract_metadata_text,
    has_metadata,
    read_text_chunks,
)
from image_processor import (
    center_crop_to_square,
    convert_to_png,
    get_image_info,
    resize_image,
)
from preset import (
    PresetExport,
    PresetExportData,
    build_preset_export,
    export_preset_png,
    import_preset_png,
    validate_preset_file,
)
from utils import is_supported_format, read_uint32_be, write_uint32_be
from validator import ValidationResult, ensure_valid_png, is_png_format, validate_png

__all__ = [
    # Constants
    "SUPPORTED_FORMATS",
    "PNG_SIGNATURE",
    "TEXT_CHUNK_TYPE",
    "IEND_CHUNK_TYPE",
    "METADATA_KEY",
    "DEFAULT_MAX_SIZE_BYTES",
    "PRESET_EXPORT_VERSION",
    # Errors
    "PNGMetadataError",
    "StructuralError",
    "TruncatedStreamError",
    "MissingTerminatorError",
    "DecodingError",
    "ImageProcessingError",
    "PresetImportError",
    # Utils
    "is_supported_format",
    "read_uint32_be",
    "write_uint32_be",
    # CRC
    "compute_crc32",
    # Validator
    "ValidationResult",
    "validate_png",
    "ensure_valid_png",
    "is_png_format",
    # Chunks
    "Chunk",
    "ChunkIterator",
    "iter_chunks",
    "find_chunk",
    "build_chunk",
    # Extractor
    "TextEntry",
    "extract_metadata",
    "extract_metadata_text",
    "extract_metadata_from_file",
    "decode_metadata",
    "has_metadata",
    "read_text_chunks",
    # Embedder
    "embed_metadata",
    "embed_text",
    "embed_metadata_in_file",
    "build_text_chunk",
    "find_iend_offset",
    "serialize_payload",
    # Image processing
    "center_crop_to_square",
    "resize_image",
    "convert_to_png",
    "get_image_info",
    # Presets
    "PresetExport",
    "PresetExportData",
    "build_preset_export",
    "validate_preset_file",
    "export_preset_png",
    "import_preset_png",
]
