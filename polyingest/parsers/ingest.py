# ============================================================================
# polyingest -- Routing Driver (polyingest/parsers/ingest.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   The "traffic cop" for ingestion. Given a file, it:
#     1. Picks the reader, from the format name if one is given, else
#        from the file extension (via the REGISTRY)
#     2. Builds that reader's settings from the Config
#     3. (read_pattern only) drains the reader into a Pattern, closes the
#        file even if reading failed, and logs a one-line summary
#
#   Any error aborts the whole file: read_pattern() either returns the
#   complete Pattern or raises. There is no half-read Pattern.
#
# USAGE:
#   from polyingest.parsers.ingest import read_pattern
#   pattern = read_pattern("mask.dxf")
#   pattern = read_pattern("exposure.log", fmt="motion_log")
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from ..core.config import Config, load_config
from ..core.exceptions import ConfigError
from ..core.geometry import Pattern
from ..monitoring.logger import IngestLogEntry, get_app_logger
from .base import StreamingParser
from .dxf_parser import DxfParser, DxfReaderSettings
from .motion_log_parser import MotionLogParser, MotionLogReaderSettings
from .registry import REGISTRY, ParserInfo


def _resolve(path: Path, fmt: Optional[str]) -> ParserInfo:
    if fmt:
        info = REGISTRY.get_format(fmt)
        if info is None:
            raise ConfigError(
                f"Unknown input format '{fmt}'.",
                fix_suggestion="Use one of: " + ", ".join(REGISTRY.supported_formats()) + ".",
            )
        return info
    ext = path.suffix.lower()
    info = REGISTRY.get(ext)
    if info is None:
        raise ConfigError(
            f"No reader registered for extension '{ext or '(none)'}' of {path}.",
            fix_suggestion=(
                "Rename the file to one of "
                + ", ".join(REGISTRY.supported_extensions())
                + " or pass the format explicitly."
            ),
        )
    return info


def open_reader(path, config: Optional[Config] = None, fmt: Optional[str] = None) -> StreamingParser:
    """
    Open the right reader for `path`, configured from `config`.

    Raises ConfigError for an unknown format or extension and IoError if
    the file cannot be opened.
    """
    path = Path(path)
    info = _resolve(path, fmt)
    if config is None:
        config = load_config()

    if info.parser_cls is DxfParser:
        dxf = config.dxf
        settings = DxfReaderSettings(
            set_reference_from_layer=dxf.set_reference_from_layer,
            include_blocks=dxf.include_blocks,
            layer_filter_mode=dxf.layer_filter_mode,
            layers_to_read=dxf.layers_to_read,
        )
        return DxfParser(path, settings)
    if info.parser_cls is MotionLogParser:
        settings = MotionLogReaderSettings(
            construction_lines=config.motion_log.construction_lines
        )
        return MotionLogParser(path, settings)
    return info.parser_cls(path)


def read_pattern(path, config: Optional[Config] = None, fmt: Optional[str] = None) -> Pattern:
    """Read every polyline of `path` into a new Pattern."""
    logger = get_app_logger("ingest")
    start = time.perf_counter()
    reader = open_reader(path, config, fmt)
    pattern = Pattern()
    try:
        reader.append_to_pattern(pattern)
    except Exception as e:
        logger.error(
            "pattern_read_failed",
            **IngestLogEntry.build(
                file=reader.filename,
                parser=reader.__class__.__name__,
                records=len(pattern),
                vertices=pattern.total_vertices(),
                latency_ms=(time.perf_counter() - start) * 1000,
                error=f"{type(e).__name__}: {e}",
            ),
        )
        raise
    finally:
        reader.close()

    layers = list(getattr(reader, "layers_read", ()))
    logger.info(
        "pattern_read",
        **IngestLogEntry.build(
            file=reader.filename,
            parser=reader.__class__.__name__,
            records=len(pattern),
            vertices=pattern.total_vertices(),
            latency_ms=(time.perf_counter() - start) * 1000,
            layers=layers,
        ),
    )
    return pattern
