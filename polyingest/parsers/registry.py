# ============================================================================
# polyingest -- Parser Registry (polyingest/parsers/registry.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   The central mapping of file extensions to reader classes. When the
#   driver is handed a file, it looks up the extension here to find which
#   reader to use. If the extension is not registered, the driver refuses
#   the file (ConfigError) unless the caller names the format explicitly.
#
# HOW TO ADD A NEW FORMAT:
#   1. Create a StreamingParser subclass in polyingest/parsers/
#   2. Import it at the top of this file
#   3. Register it in the __init__ method below with self.register()
#   4. Teach ingest.py how to build its settings from the Config
#
# DESIGN RULES:
#   - registry.py must NOT import ingest.py (prevents circular imports)
#   - All extensions are lowercase with leading dot (".dxf", not "dxf")
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from .base import StreamingParser
from .dxf_parser import DxfParser
from .motion_log_parser import MotionLogParser


# Format names accepted by ingest.open_reader(fmt=...) and --format
FORMAT_DXF = "dxf"
FORMAT_MOTION_LOG = "motion_log"


@dataclass(frozen=True)
class ParserInfo:
    name: str
    fmt: str
    parser_cls: Type[StreamingParser]


class ParserRegistry:
    """
    Registry of extension -> reader.

    NON-PROGRAMMER NOTE:
      This is the "phone book" that tells polyingest which reader to use
      for each file type. Extensions must be lowercase with a leading dot
      (e.g., ".dxf", not "dxf" or ".DXF").
    """

    def __init__(self) -> None:
        self._map: Dict[str, ParserInfo] = {}

        # ==============================================================
        # CAD FORMATS
        # ==============================================================
        self.register(".dxf", "DxfParser", DxfParser, FORMAT_DXF)

        # ==============================================================
        # STAGE MOTION LOGS
        # The stage software writes plain text; .txt is what most people
        # rename the exported script to.
        # ==============================================================
        for ext in [".wip", ".witec", ".txt"]:
            self.register(ext, "MotionLogParser", MotionLogParser, FORMAT_MOTION_LOG)

    def register(self, ext: str, name: str, parser_cls, fmt: str) -> None:
        """Register a reader class for a file extension."""
        self._map[ext.lower()] = ParserInfo(name=name, fmt=fmt, parser_cls=parser_cls)

    def get(self, ext: str) -> Optional[ParserInfo]:
        """Look up the reader for a given extension. Returns None if unknown."""
        return self._map.get(ext.lower())

    def get_format(self, fmt: str) -> Optional[ParserInfo]:
        """Look up the reader for a format name ("dxf", "motion_log")."""
        for info in self._map.values():
            if info.fmt == fmt:
                return info
        return None

    def supported_extensions(self) -> List[str]:
        """Return sorted list of all registered extensions."""
        return sorted(self._map.keys())

    def supported_formats(self) -> List[str]:
        return sorted({info.fmt for info in self._map.values()})


# Module-level singleton
REGISTRY = ParserRegistry()
