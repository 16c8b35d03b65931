"""Shared constants for the PNG metadata codec and the preset format.

All modules reference these constants rather than hard-coding values,
so changing the reserved keyword or a size limit requires updating only
this file.
"""

__version__ = "0.2.0"

# Supported image formats
SUPPORTED_FORMATS = {".png"}

# PNG signature
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Chunk layout: length (4) + type (4) + data (length) + CRC (4)
CHUNK_LENGTH_SIZE = 4
CHUNK_TYPE_SIZE = 4
CHUNK_CRC_SIZE = 4
CHUNK_OVERHEAD = CHUNK_LENGTH_SIZE + CHUNK_TYPE_SIZE + CHUNK_CRC_SIZE

# Chunk types the codec cares about
TEXT_CHUNK_TYPE = "tEXt"  # Uncompressed keyword/text pair
IEND_CHUNK_TYPE = "IEND"  # End of the datastream

# Separator between keyword and text inside a tEXt chunk
TEXT_KEYWORD_SEPARATOR = b"\x00"

# Keyword identifying our own metadata among other tEXt chunks
METADATA_KEY = "TomoriPreset"

# PNG keywords are 1-79 Latin-1 bytes
MAX_KEYWORD_LENGTH = 79

# Upper bound on accepted input buffers (10 MiB)
DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024

# Validation failure reasons
REASON_EMPTY = "empty"
REASON_TOO_LARGE = "too large"
REASON_BAD_SIGNATURE = "bad signature"

# Preset export format
PRESET_EXPORT_VERSION = "1.0.0"
PRESET_TYPE = "preset"
MAX_ARRAY_SIZE = 100
MAX_STRING_LENGTH = 2000  # Per item in arrays
MAX_NICKNAME_LENGTH = 100

# Preset import error codes
PRESET_ERROR_NOT_JSON = "not_json"
PRESET_ERROR_INCOMPATIBLE_VERSION = "incompatible_version"
PRESET_ERROR_INVALID_TYPE = "invalid_type"
PRESET_ERROR_INVALID_FORMAT = "invalid_format"
PRESET_ERROR_INVALID_PNG = "invalid_png"
PRESET_ERROR_NO_METADATA = "no_metadata"

# Pillow image modes that can be written to PNG as-is
PNG_WRITABLE_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}
