"""Persona presets shared as PNG files.

A preset is a small JSON document describing a bot personality.  It is
embedded into an avatar image under the ``TomoriPreset`` keyword so
that the picture itself can be passed around and imported elsewhere.

Pipeline:
1. ``build_preset_export`` assembles and validates the document.
2. ``export_preset_png`` prepares the image (PNG conversion, optional
   square crop) and embeds the document.
3. ``import_preset_png`` validates the PNG, extracts the document and
   checks version, type and schema.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Iterable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from constants import (
    DEFAULT_MAX_SIZE_BYTES,
    MAX_ARRAY_SIZE,
    MAX_NICKNAME_LENGTH,
    MAX_STRING_LENGTH,
    METADATA_KEY,
    PRESET_ERROR_INCOMPATIBLE_VERSION,
    PRESET_ERROR_INVALID_FORMAT,
    PRESET_ERROR_INVALID_PNG,
    PRESET_ERROR_INVALID_TYPE,
    PRESET_ERROR_NO_METADATA,
    PRESET_ERROR_NOT_JSON,
    PRESET_EXPORT_VERSION,
    PRESET_TYPE,
)
from embedder import embed_metadata
from errors import PresetImportError
from extractor import extract_metadata
from image_processor import center_crop_to_square, convert_to_png
from validator import is_png_format, validate_png

logger = logging.getLogger(__name__)

PresetString = Annotated[str, Field(max_length=MAX_STRING_LENGTH)]


class PresetExportData(BaseModel):
    """Personality fields carried by a preset."""

    model_config = ConfigDict(populate_by_name=True)

    nickname: str = Field(
        alias="tomori_nickname", min_length=1, max_length=MAX_NICKNAME_LENGTH
    )
    attribute_list: list[PresetString] = Field(default_factory=list, max_length=MAX_ARRAY_SIZE)
    sample_dialogues_in: list[PresetString] = Field(
        default_factory=list, max_length=MAX_ARRAY_SIZE
    )
    sample_dialogues_out: list[PresetString] = Field(
        default_factory=list, max_length=MAX_ARRAY_SIZE
    )
    trigger_words: list[PresetString] = Field(default_factory=list, max_length=MAX_ARRAY_SIZE)


class PresetExport(BaseModel):
    """The complete document embedded in the PNG tEXt chunk."""

    version: str
    type: Literal["preset"]
    exported_at: str  # ISO 8601
    data: PresetExportData


def _utc_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def build_preset_export(
    nickname: str,
    attribute_list: Iterable[str] = (),
    sample_dialogues_in: Iterable[str] = (),
    sample_dialogues_out: Iterable[str] = (),
    trigger_words: Iterable[str] = (),
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """
    Build a validated preset document ready for embedding.

    Args:
        nickname: Display name of the persona.
        attribute_list: Personality attributes.
        sample_dialogues_in: Example user messages.
        sample_dialogues_out: Example replies, paired with the inputs.
        trigger_words: Words that wake the bot up.
        exported_at: Export time; defaults to now (UTC).

    Returns:
        JSON-compatible dictionary using the wire field names.

    Raises:
        pydantic.ValidationError: If a field violates the preset limits.
    """
    preset = PresetExport(
        version=PRESET_EXPORT_VERSION,
        type=PRESET_TYPE,
        exported_at=_utc_timestamp(exported_at),
        data=PresetExportData(
            nickname=nickname,
            attribute_list=list(attribute_list),
            sample_dialogues_in=list(sample_dialogues_in),
            sample_dialogues_out=list(sample_dialogues_out),
            trigger_words=list(trigger_words),
        ),
    )
    return preset.model_dump(by_alias=True)


def validate_preset_file(document: Any) -> PresetExportData:
    """
    Validate a decoded preset document.

    Args:
        document: Value extracted from a PNG.

    Returns:
        The validated personality data.

    Raises:
        PresetImportError: With code ``not_json``, ``incompatible_version``,
            ``invalid_type`` or ``invalid_format``.
    """
    if not isinstance(document, Mapping):
        raise PresetImportError(PRESET_ERROR_NOT_JSON, "Preset data is not a JSON object")

    version = document.get("version")
    if version != PRESET_EXPORT_VERSION:
        raise PresetImportError(
            PRESET_ERROR_INCOMPATIBLE_VERSION,
            f"Incompatible preset version: expected {PRESET_EXPORT_VERSION}, "
            f"got {version or 'unknown'}",
        )

    preset_type = document.get("type")
    if preset_type != PRESET_TYPE:
        raise PresetImportError(
            PRESET_ERROR_INVALID_TYPE, f"Invalid preset type: {preset_type}"
        )

    try:
        preset = PresetExport.model_validate(document)
    except ValidationError as e:
        logger.error("Preset import validation failed: %s", e)
        raise PresetImportError(
            PRESET_ERROR_INVALID_FORMAT, "Preset data does not match the expected format"
        ) from e

    return preset.data


def export_preset_png(
    image: bytes,
    preset: Mapping[str, Any],
    crop_to_square: bool = False,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> bytes:
    """
    Embed a preset document into an image.

    Non-PNG images are converted with Pillow first; the embedder itself
    still rejects anything without a PNG signature.

    Args:
        image: Source image bytes (PNG preferred).
        preset: Document from ``build_preset_export``.
        crop_to_square: Center-crop the image to 1:1 before embedding.
        max_size_bytes: Largest buffer accepted by the validator.

    Returns:
        PNG bytes carrying the preset.

    Raises:
        ImageProcessingError: If the image cannot be converted or cropped.
        StructuralError: If the prepared image is not a valid PNG.
        MissingTerminatorError: If the prepared image has no IEND chunk.
    """
    if crop_to_square:
        image = center_crop_to_square(image)
    elif not is_png_format(image):
        logger.warning("Image is not in PNG format, converting before export")
        image = convert_to_png(image)

    return embed_metadata(image, dict(preset), keyword=METADATA_KEY, max_size_bytes=max_size_bytes)


def import_preset_png(
    buffer: bytes,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> PresetExportData:
    """
    Read and validate a preset embedded in a PNG.

    Raises:
        PresetImportError: ``invalid_png`` if the buffer fails validation,
            ``no_metadata`` if no preset chunk decodes, or any code from
            ``validate_preset_file``.
    """
    result = validate_png(buffer, max_size_bytes)
    if not result:
        logger.warning("PNG validation failed during preset import: %s", result.reason)
        raise PresetImportError(PRESET_ERROR_INVALID_PNG, f"Invalid PNG file: {result.reason}")

    document = extract_metadata(buffer, keyword=METADATA_KEY, max_size_bytes=max_size_bytes)
    if document is None:
        raise PresetImportError(PRESET_ERROR_NO_METADATA, "File has no embedded preset data")

    data = validate_preset_file(document)
    logger.info("Imported preset: %s", data.nickname)
    return data
