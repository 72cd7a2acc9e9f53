# ============================================================================
# polyingest -- Command-Line Ingestion Tool (polyingest/tools/ingest_file.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   Reads ONE drawing or motion log and reports what was found. Useful to
#   check a file before handing it to the exposure or export tools:
#
#     python -m polyingest.tools.ingest_file mask.dxf
#     python -m polyingest.tools.ingest_file mask.dxf --filter-mode list --layers "L1,L2"
#     python -m polyingest.tools.ingest_file run42.txt --construction-lines --json
#
# OUTPUT:
#   Default: a short summary (records, vertices, references, bounding box,
#   layers read). With --json: the whole pattern as JSON on stdout.
#   On failure: the error as JSON on stdout (error_type, error_code,
#   message, fix_suggestion), also written to logs/error_YYYY-MM-DD.log.
#
# EXIT CODES:
#   0  file read completely
#   1  the file could not be opened, the options were invalid, or the
#      content is malformed
#
# SETTINGS PRIORITY:
#   command-line options > env vars > config/default_config.yaml > defaults
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from polyingest.core.config import Config, load_config
from polyingest.core.exceptions import PolyIngestError
from polyingest.core.geometry import Pattern
from polyingest.monitoring.logger import get_error_logger, initialize_logging
from polyingest.parsers.ingest import open_reader
from polyingest.parsers.registry import REGISTRY


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m polyingest.tools.ingest_file",
        description="Read a DXF R12 drawing or a stage motion log into polylines",
    )
    parser.add_argument("file", help="Input file (.dxf, .wip, .witec, .txt)")
    parser.add_argument(
        "--format", "-f",
        choices=REGISTRY.supported_formats(),
        help="Input format (default: chosen from the file extension)"
    )
    parser.add_argument(
        "--config-dir",
        default=".",
        help="Folder containing config/default_config.yaml (default: .)"
    )

    dxf = parser.add_argument_group("DXF options")
    dxf.add_argument(
        "--layers",
        help="Layer name, comma-separated list, or expression to read"
    )
    dxf.add_argument(
        "--filter-mode",
        help="all, verbatim, list, ECMAScript, basic, extended, awk, grep, "
             "egrep (or 0..8)"
    )
    dxf.add_argument(
        "--reference-from-layer",
        dest="reference_from_layer",
        action="store_true",
        help="Number polyline references by layer (default)"
    )
    dxf.add_argument(
        "--no-reference-from-layer",
        dest="reference_from_layer",
        action="store_false",
        help="Give every polyline reference 0"
    )
    dxf.add_argument(
        "--include-blocks",
        action="store_true",
        default=None,
        help="Also read entities inside BLOCK definitions"
    )

    motion = parser.add_argument_group("motion log options")
    motion.add_argument(
        "--construction-lines",
        action="store_true",
        default=None,
        help="Also return travel paths (reference 1)"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the whole pattern as JSON"
    )
    parser.set_defaults(reference_from_layer=None)
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Copy the options that were actually given onto the loaded config."""
    if args.layers is not None:
        config.dxf.layers_to_read = args.layers
    if args.filter_mode is not None:
        config.dxf.layer_filter_mode = args.filter_mode
    if args.reference_from_layer is not None:
        config.dxf.set_reference_from_layer = args.reference_from_layer
    if args.include_blocks is not None:
        config.dxf.include_blocks = args.include_blocks
    if args.construction_lines is not None:
        config.motion_log.construction_lines = args.construction_lines
    return config


def print_summary(pattern: Pattern, layers: List[str]) -> None:
    min_x, min_y, max_x, max_y = pattern.limits()
    refs = pattern.references()
    print(f"  Records:     {len(pattern)}")
    print(f"  Vertices:    {pattern.total_vertices()}")
    print(f"  References:  {', '.join(str(r) for r in refs) if refs else '(none)'}")
    print(f"  Limits:      ({min_x:g}, {min_y:g}) - ({max_x:g}, {max_y:g})")
    if layers:
        print(f"  Layers read: {','.join(layers)}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config_dir), args)
        initialize_logging(config.logging.log_dir, config.logging.level)

        reader = open_reader(args.file, config, args.format)
        pattern = Pattern()
        try:
            reader.append_to_pattern(pattern)
        finally:
            reader.close()
        layers = list(getattr(reader, "layers_read", ()))
    except PolyIngestError as e:
        get_error_logger("ingest_file").error(
            "ingest_failed", file=args.file, **e.to_dict()
        )
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    if args.json:
        data = pattern.to_dict()
        data["file"] = args.file
        data["layers_read"] = layers
        print(json.dumps(data, indent=2))
    else:
        print()
        print(f"  {args.file}")
        print_summary(pattern, layers)
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
