"""Command-line interface for preset-png.

Provides the ``preset-png`` entry point with five commands:

- ``embed``          — store a JSON payload in a PNG
- ``extract``        — print the JSON payload stored in a PNG
- ``inspect``        — list chunks and tEXt entries of a PNG
- ``export-preset``  — embed a validated preset document
- ``import-preset``  — read and validate an embedded preset
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from constants import DEFAULT_MAX_SIZE_BYTES, METADATA_KEY, SUPPORTED_FORMATS, __version__
from metadata_handler import (
    build_preset_export,
    embed_metadata,
    export_preset_png,
    extract_metadata,
    import_preset_png,
    is_supported_format,
    iter_chunks,
    read_text_chunks,
    validate_png,
)


# ── Output helpers ──────────────────────────────────────────────────

def _success(message: str) -> None:
    """Print a success line, colored unless ``NO_COLOR`` is set."""
    if os.environ.get("NO_COLOR"):
        print(message)
        return
    print(f"\033[32m{message}\033[0m")


def _error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def _format_text_value(text: str) -> str:
    if len(text) > 100:
        return text[:100] + "..."
    return text


def _read_json(source: str) -> Any:
    """Load JSON from a file path, or from stdin when *source* is ``-``."""
    if source == "-":
        return json.load(sys.stdin)
    return json.loads(Path(source).read_text(encoding="utf-8"))


def _write_output(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


# ── Argument parser construction ────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="preset-png",
        description="Embed, extract and inspect JSON metadata stored in PNG tEXt chunks.",
        epilog=(
            "Examples:\n"
            "  preset-png embed avatar.png payload.json -o tagged.png\n"
            "  preset-png extract tagged.png\n"
            "  preset-png export-preset avatar.png preset.json -o preset.png --crop"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Print detailed information during processing",
    )
    parser.add_argument(
        "--max-size", type=int, default=DEFAULT_MAX_SIZE_BYTES,
        help=f"Largest accepted PNG in bytes. Default: {DEFAULT_MAX_SIZE_BYTES}",
    )
    parser.add_argument(
        "--keyword", default=METADATA_KEY,
        help=f"tEXt keyword used for the metadata. Default: {METADATA_KEY}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    embed = commands.add_parser("embed", help="Embed a JSON payload into a PNG")
    embed.add_argument("image", type=Path, help="Source PNG file")
    embed.add_argument("payload", help="JSON file to embed ('-' for stdin)")
    embed.add_argument(
        "-o", "--output", type=Path,
        help="Output file path (default: overwrite source file)",
    )

    extract = commands.add_parser("extract", help="Print the JSON payload stored in a PNG")
    extract.add_argument("image", type=Path, help="PNG file to read")

    inspect = commands.add_parser("inspect", help="List the chunks and tEXt entries of a PNG")
    inspect.add_argument("image", type=Path, help="PNG file to read")

    export = commands.add_parser("export-preset", help="Embed a validated preset into an image")
    export.add_argument("image", type=Path, help="Source image (converted to PNG if needed)")
    export.add_argument(
        "preset",
        help="JSON file with nickname, attribute_list, sample_dialogues_in, "
        "sample_dialogues_out and trigger_words ('-' for stdin)",
    )
    export.add_argument("-o", "--output", type=Path, required=True, help="Output PNG path")
    export.add_argument(
        "--crop", action="store_true",
        help="Center-crop the image to a square before embedding",
    )

    import_ = commands.add_parser("import-preset", help="Read and validate an embedded preset")
    import_.add_argument("image", type=Path, help="PNG file to read")

    return parser


# ── Command handlers ────────────────────────────────────────────────

def _handle_embed(args: argparse.Namespace) -> int:
    output_path = args.output if args.output else args.image
    payload = _read_json(args.payload)

    data = embed_metadata(
        args.image.read_bytes(), payload, keyword=args.keyword, max_size_bytes=args.max_size
    )
    _write_output(output_path, data)

    _success(f"Successfully embedded {args.keyword} metadata into: {output_path}")
    return 0


def _handle_extract(args: argparse.Namespace) -> int:
    payload = extract_metadata(
        args.image.read_bytes(), keyword=args.keyword, max_size_bytes=args.max_size
    )
    if payload is None:
        print(f"'{args.image}' does not contain {args.keyword} metadata.", file=sys.stderr)
        return 1

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _handle_inspect(args: argparse.Namespace) -> int:
    buffer = args.image.read_bytes()
    result = validate_png(buffer, args.max_size)
    if not result:
        _error(f"'{args.image}' is not a valid PNG ({result.reason}).")
        return 1

    print(f"{args.image} ({len(buffer)} bytes)")
    chunks = iter_chunks(buffer)
    for chunk in chunks:
        print(f"  {chunk.offset:>10}  {chunk.type}  {chunk.length:>10} bytes")
    if chunks.truncated:
        print(f"  Chunk stream truncated at offset {chunks.truncated_at}")

    entries = read_text_chunks(buffer, args.max_size)
    if entries:
        print("\n=== tEXt ENTRIES ===")
        for entry in entries:
            print(f"  {entry.keyword}: {_format_text_value(entry.text)}")
    return 0


def _handle_export_preset(args: argparse.Namespace) -> int:
    fields = _read_json(args.preset)
    if not isinstance(fields, dict):
        _error("Preset file must contain a JSON object.")
        return 1

    preset = build_preset_export(
        nickname=fields.get("nickname", fields.get("tomori_nickname", "")),
        attribute_list=fields.get("attribute_list", ()),
        sample_dialogues_in=fields.get("sample_dialogues_in", ()),
        sample_dialogues_out=fields.get("sample_dialogues_out", ()),
        trigger_words=fields.get("trigger_words", ()),
    )
    data = export_preset_png(
        args.image.read_bytes(), preset, crop_to_square=args.crop, max_size_bytes=args.max_size
    )
    _write_output(args.output, data)

    _success(f"Successfully exported preset '{preset['data']['tomori_nickname']}' to: {args.output}")
    return 0


def _handle_import_preset(args: argparse.Namespace) -> int:
    data = import_preset_png(args.image.read_bytes(), max_size_bytes=args.max_size)

    _success(f"Preset: {data.nickname}")
    print(f"  Attributes: {len(data.attribute_list)}")
    print(f"  Sample dialogues: {len(data.sample_dialogues_in)}")
    print(f"  Trigger words: {len(data.trigger_words)}")
    return 0


_HANDLERS = {
    "embed": _handle_embed,
    "extract": _handle_extract,
    "inspect": _handle_inspect,
    "export-preset": _handle_export_preset,
    "import-preset": _handle_import_preset,
}


# ── Entry point ─────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch to the appropriate command handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.image.exists():
        _error(f"Image file '{args.image}' does not exist.")
        return 1
    if not is_supported_format(args.image):
        print(
            f"Warning: Image file '{args.image}' may not be a supported format "
            f"({', '.join(sorted(SUPPORTED_FORMATS))}).",
            file=sys.stderr,
        )

    try:
        return _HANDLERS[args.command](args)
    except (ValueError, OSError) as e:
        _error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
