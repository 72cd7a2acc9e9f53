# ============================================================================
# polyingest -- DXF R12 Parser (polyingest/parsers/dxf_parser.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Reads AutoCAD DXF R12 (.dxf) drawings and turns four kinds of entity
#   into polylines:
#
#     POLYLINE  -> the vertices of the polyline, closed flag from code 70
#     POINT     -> a one-vertex polyline
#     LINE      -> a two-vertex polyline
#     CIRCLE    -> a one-vertex polyline (the centre); the radius is stored
#                  in polyline.dose
#
# WHAT A DXF FILE LOOKS LIKE:
#   Pairs of lines. The first line of each pair is an integer "group code"
#   saying what the second line means:
#
#       0          <- code 0: a keyword follows (entity type, SEQEND, ...)
#       POLYLINE
#       8          <- code 8: layer name
#       EXPOSE
#       70         <- code 70: flags, 1 = closed
#       1
#       0
#       VERTEX
#       10         <- code 10 / 20: x / y
#       12.5
#       20
#       -3.0
#       ...
#       0
#       SEQEND
#
# DXF VERSIONS:
#   Only R12 is understood. AutoCAD LT, LibreCAD, LayoutEditor and pstoedit
#   ("pstoedit file.eps -f dxf") all write R12 when asked to. Newer DXF
#   versions use LWPOLYLINE, which this reader does not look for.
#
# BLOCKS:
#   Block definitions (reusable symbols) come before the ENTITIES section.
#   By default they are skipped by jumping straight to "ENTITIES". Some
#   converters put the whole drawing inside one block; for those, set
#   include_blocks=True and every entity in the file is read.
#
# WHY NOT ezdxf:
#   ezdxf loads the whole document into memory before giving anything
#   back. This reader streams: one entity per read_polyline() call, with
#   the exact R12 subset and layer semantics the exposure system expects.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.exceptions import ConfigError, DxfParseError
from ..core.geometry import Polyline, Vertex
from .base import StreamingParser
from .layer_filter import FilterMode, LayerFilter, make_layer_filter, parse_filter_mode


ENTITIES_MARKER = "ENTITIES"
ENTITY_KEYWORDS = ("POLYLINE", "POINT", "LINE", "CIRCLE")
SEQUENCE_KEYWORDS = ("VERTEX", "SEQEND")

# Group codes used by this reader
CODE_KEYWORD = 0
CODE_LAYER = 8
CODE_X1 = 10
CODE_Y1 = 20
CODE_X2 = 11
CODE_Y2 = 21
CODE_RADIUS = 40
CODE_FLAGS = 70


@dataclass
class DxfReaderSettings:
    """
    How the DXF reader filters and tags what it reads.

    set_reference_from_layer:
        True  -- polyline.reference = position of its layer in the order
                 layers were first met (first layer 0, next 1, ...)
        False -- every polyline gets reference 0
    include_blocks:
        False -- skip to the ENTITIES section first
    layer_filter_mode / layers_to_read:
        see layer_filter.py
    """
    set_reference_from_layer: bool = True
    include_blocks: bool = False
    layer_filter_mode: FilterMode = FilterMode.ALL
    layers_to_read: str = ""


class _Stage(Enum):
    SEEK_ENTITIES = "seek_entities"
    SCAN_ENTITIES = "scan_entities"
    FINISHED = "finished"


class _EndOfStream(Exception):
    """Internal: the file ended where more structure was expected."""


class DxfParser(StreamingParser):
    """
    Streaming DXF R12 reader.

    NON-PROGRAMMER NOTE:
      Each read_polyline() call scans forward to the next POLYLINE,
      POINT, LINE or CIRCLE keyword, reads that entity, and returns it,
      unless its layer is filtered out or it has no vertices, in which case
      it keeps scanning. Reaching the end of the file in that process means
      "no more polylines": a half-read entity is never returned. Text that
      cannot be a DXF value (a group code or number that does not parse,
      a VERTEX without coordinates) is reported as an error.
    """

    # set_parametres([set_reference_from_layer, include_blocks],
    #                [layer_filter_mode], [], [layers_to_read])
    PARAMETRE_COUNTS = (2, 1, 0, 1)

    def __init__(self, file_path, settings: Optional[DxfReaderSettings] = None) -> None:
        super().__init__(file_path)
        self.settings = DxfReaderSettings()
        self._layer_filter: LayerFilter = make_layer_filter(FilterMode.ALL)
        self._layers_read: List[str] = []
        self._records_read = 0
        self._records_rejected = 0
        self._stage = _Stage.SEEK_ENTITIES
        if settings is not None:
            try:
                self.set_all_parametres(
                    settings.set_reference_from_layer,
                    settings.include_blocks,
                    settings.layer_filter_mode,
                    settings.layers_to_read,
                )
            except ConfigError:
                self.close()
                raise

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_all_parametres(
        self,
        set_reference_from_layer: bool,
        include_blocks: bool,
        layer_filter_mode,
        layers_to_read: str,
    ) -> None:
        """Keyword form of the reader configuration (raises ConfigError)."""
        mode = parse_filter_mode(layer_filter_mode)
        self._layer_filter = make_layer_filter(mode, layers_to_read)
        self.settings = DxfReaderSettings(
            set_reference_from_layer=bool(set_reference_from_layer),
            include_blocks=bool(include_blocks),
            layer_filter_mode=mode,
            layers_to_read=layers_to_read or "",
        )

    def _apply_parametres(self, vbool, vint, vdouble, vstring) -> None:
        self.set_all_parametres(vbool[0], vbool[1], int(vint[0]), vstring[0])

    # ------------------------------------------------------------------
    # Layer bookkeeping
    # ------------------------------------------------------------------

    @property
    def layers_read(self) -> Tuple[str, ...]:
        """Distinct layers of the polylines returned so far, in first-seen order."""
        return tuple(self._layers_read)

    def get_layers_read(self) -> List[str]:
        return list(self._layers_read)

    def layers_read_csv(self) -> str:
        """The layers read, joined with commas ("L1,L2,DOTS")."""
        return ",".join(self._layers_read)

    def _is_rejected(self, layer: str) -> bool:
        return not self._layer_filter.matches(layer)

    def _reference_for(self, layer: str) -> int:
        """Register `layer` if new; return its reference for this record."""
        if layer in self._layers_read:
            index = self._layers_read.index(layer)
        else:
            self._layers_read.append(layer)
            index = len(self._layers_read) - 1
        return index if self.settings.set_reference_from_layer else 0

    def _metadata_items(self) -> Dict[str, str]:
        return {
            "records read": str(self._records_read),
            "records rejected": str(self._records_rejected),
            "layers read": self.layers_read_csv(),
        }

    # ------------------------------------------------------------------
    # Low-level scanning
    # ------------------------------------------------------------------

    def _next_clean_line(self) -> Optional[str]:
        line = self._next_line()
        if line is None:
            return None
        return line.strip()

    def _find_line(self, target: str) -> bool:
        """Discard lines until one equals `target`. False at end of file."""
        while True:
            line = self._next_clean_line()
            if line is None:
                return False
            if line == target:
                return True

    def _find_one_of(self, targets: Sequence[str]) -> Optional[int]:
        """Discard lines until one equals a target; return its index, or None."""
        while True:
            line = self._next_clean_line()
            if line is None:
                return None
            if line in targets:
                return targets.index(line)

    def _fetch_pair(self) -> Tuple[int, str]:
        """
        Read one (group code, value) pair.

        Code 0 is returned WITHOUT reading its value line: that line is the
        next keyword (VERTEX, SEQEND, LINE, ...) and the keyword scans must
        still see it.

        Raises _EndOfStream if the file ends before either line, and
        DxfParseError if the code line is not an integer.
        """
        code_line = self._next_clean_line()
        if code_line is None:
            raise _EndOfStream()
        try:
            code = int(code_line)
        except ValueError:
            raise DxfParseError(
                f"group code '{code_line}' is not an integer",
                filename=self.filename,
                line_number=self.line_number,
            )
        if code == CODE_KEYWORD:
            return code, ""
        value = self._next_clean_line()
        if value is None:
            raise _EndOfStream()
        return code, value

    def _number(self, code: int, value: str) -> float:
        try:
            return float(value)
        except ValueError:
            raise DxfParseError(
                f"value '{value}' of group code {code} is not a number",
                filename=self.filename,
                line_number=self.line_number,
            )

    def _integer(self, code: int, value: str) -> int:
        try:
            return int(value)
        except ValueError:
            raise DxfParseError(
                f"value '{value}' of group code {code} is not an integer",
                filename=self.filename,
                line_number=self.line_number,
            )

    # ------------------------------------------------------------------
    # The streaming entry point
    # ------------------------------------------------------------------

    def read_polyline(self) -> Optional[Polyline]:
        if self._stage is _Stage.FINISHED:
            return None

        if self._stage is _Stage.SEEK_ENTITIES:
            if not self.settings.include_blocks:
                if not self._find_line(ENTITIES_MARKER):
                    self.logger.warning(
                        "dxf_entities_section_missing", file=self.filename
                    )
                    self._stage = _Stage.FINISHED
                    return None
            self._stage = _Stage.SCAN_ENTITIES

        try:
            while True:
                kind = self._find_one_of(ENTITY_KEYWORDS)
                if kind is None:
                    self._stage = _Stage.FINISHED
                    return None
                keyword = ENTITY_KEYWORDS[kind]
                if keyword == "POLYLINE":
                    polyline = self._read_polyline_entity()
                elif keyword == "POINT":
                    polyline = self._read_point_entity()
                elif keyword == "LINE":
                    polyline = self._read_line_entity()
                else:
                    polyline = self._read_circle_entity()
                if polyline is not None:
                    self._records_read += 1
                    return polyline
        except _EndOfStream:
            self._stage = _Stage.FINISHED
            return None

    # ------------------------------------------------------------------
    # Entity grammars. Each returns the finished polyline, or None when
    # the entity's layer is filtered out.
    # ------------------------------------------------------------------

    def _reject(self, keyword: str, layer: str) -> None:
        self._records_rejected += 1
        self.logger.debug(
            "dxf_record_rejected",
            file=self.filename,
            entity=keyword,
            layer=layer,
            line=self.line_number,
        )

    def _read_polyline_entity(self) -> Optional[Polyline]:
        polyline = Polyline()
        layer = ""
        layer_set = False
        closed_set = False

        # Header: layer (8) and flags (70). A header that ends (code 0)
        # with no flags at all describes a closed polyline.
        while not (layer_set and closed_set):
            code, value = self._fetch_pair()
            if code == CODE_LAYER:
                layer = value
                layer_set = True
                if self._is_rejected(layer):
                    self._reject("POLYLINE", layer)
                    return None
            elif code == CODE_FLAGS:
                polyline.closed = self._integer(code, value) == 1
                closed_set = True
            elif code == CODE_KEYWORD:
                if not closed_set:
                    polyline.closed = True
                break

        if not layer_set and self._is_rejected(layer):
            self._reject("POLYLINE", layer)
            return None

        # Body: VERTEX entities until SEQEND
        while True:
            found = self._find_one_of(SEQUENCE_KEYWORDS)
            if found is None:
                raise _EndOfStream()
            if SEQUENCE_KEYWORDS[found] == "SEQEND":
                if polyline.is_empty():
                    self.logger.debug(
                        "dxf_empty_polyline_skipped",
                        file=self.filename,
                        layer=layer,
                        line=self.line_number,
                    )
                    return None
                polyline.reference = self._reference_for(layer)
                return polyline
            polyline.push_back(self._read_vertex())

    def _read_vertex(self) -> Vertex:
        x = y = 0.0
        x_set = y_set = False
        while not (x_set and y_set):
            code, value = self._fetch_pair()
            if code == CODE_X1:
                x = self._number(code, value)
                x_set = True
            elif code == CODE_Y1:
                y = self._number(code, value)
                y_set = True
            elif code == CODE_KEYWORD:
                # The next line is a keyword, so no pair can follow inside
                # this vertex.
                raise DxfParseError(
                    "VERTEX ends before both its x (10) and y (20) are given",
                    filename=self.filename,
                    line_number=self.line_number,
                )
        return Vertex(x, y)

    def _read_simple_entity(self, keyword: str) -> Optional[Tuple[str, Dict[int, float]]]:
        """
        Shared loop for POINT, LINE and CIRCLE: collect numeric codes until
        the entity ends with code 0. Returns (layer, values), or None if
        the layer is filtered out.
        """
        layer = ""
        layer_set = False
        values: Dict[int, float] = {}
        while True:
            code, value = self._fetch_pair()
            if code == CODE_LAYER:
                layer = value
                layer_set = True
                if self._is_rejected(layer):
                    self._reject(keyword, layer)
                    return None
            elif code in (CODE_X1, CODE_Y1, CODE_X2, CODE_Y2, CODE_RADIUS):
                values[code] = self._number(code, value)
            elif code == CODE_KEYWORD:
                break
        if not layer_set and self._is_rejected(layer):
            self._reject(keyword, layer)
            return None
        return layer, values

    def _read_point_entity(self) -> Optional[Polyline]:
        result = self._read_simple_entity("POINT")
        if result is None:
            return None
        layer, values = result
        polyline = Polyline()
        polyline.push_back(Vertex(values.get(CODE_X1, 0.0), values.get(CODE_Y1, 0.0)))
        polyline.reference = self._reference_for(layer)
        return polyline

    def _read_line_entity(self) -> Optional[Polyline]:
        result = self._read_simple_entity("LINE")
        if result is None:
            return None
        layer, values = result
        polyline = Polyline()
        polyline.push_back(Vertex(values.get(CODE_X1, 0.0), values.get(CODE_Y1, 0.0)))
        polyline.push_back(Vertex(values.get(CODE_X2, 0.0), values.get(CODE_Y2, 0.0)))
        polyline.reference = self._reference_for(layer)
        return polyline

    def _read_circle_entity(self) -> Optional[Polyline]:
        result = self._read_simple_entity("CIRCLE")
        if result is None:
            return None
        layer, values = result
        polyline = Polyline(dose=values.get(CODE_RADIUS, 0.0))
        polyline.push_back(Vertex(values.get(CODE_X1, 0.0), values.get(CODE_Y1, 0.0)))
        polyline.reference = self._reference_for(layer)
        return polyline
