# ============================================================================
# polyingest -- Streaming Parser Contract (polyingest/parsers/base.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Defines what every reader must look like. A reader owns ONE input file
#   and hands out polylines ONE AT A TIME:
#
#       reader = DxfParser("mask.dxf")
#       while True:
#           polyline = reader.read_polyline()
#           if polyline is None:        # end of file, nothing left
#               break
#           pattern.append(polyline)
#       reader.close()
#
#   append_to_pattern() is exactly that loop, so most callers just write:
#       with DxfParser("mask.dxf") as reader:
#           reader.append_to_pattern(pattern)
#
# THE RULES EVERY READER FOLLOWS:
#   1. The file is opened in the constructor. If it cannot be opened, the
#      constructor raises IoError and no reader exists.
#   2. read_polyline() returns one COMPLETE record or None. Never half a
#      record. After the first None, it keeps returning None.
#   3. Everything needed to continue reading (file position, counters,
#      partially-built paths) lives inside the reader object.
#   4. close() can be called any number of times.
#
# WHY PULL-BASED (one record per call) INSTEAD OF "parse the whole file":
#   Motion logs from long exposures run to hundreds of thousands of lines.
#   The caller decides when to stop; nothing forces the whole file into
#   memory at once.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..core.exceptions import IoError, wrong_parametre_counts
from ..core.geometry import Pattern, Polyline
from ..monitoring.logger import get_app_logger


class StreamingParser(ABC):
    """
    Abstract base class for all polyline readers.

    NON-PROGRAMMER NOTE:
      Subclasses only have to implement read_polyline(). Opening,
      closing, line counting, the driver loop and the generic
      set_parametres() channel are shared here.
    """

    # Expected (bool, int, double, string) list lengths for set_parametres().
    PARAMETRE_COUNTS: Tuple[int, int, int, int] = (0, 0, 0, 0)

    def __init__(self, file_path) -> None:
        self.filename = str(file_path)
        self.line_number = 0
        self._file = None
        self.logger = get_app_logger(self.__class__.__name__)

        if Path(self.filename).is_dir():
            raise IoError(
                f"File {self.filename} could not be open for input: "
                "it is a directory.",
                filename=self.filename,
            )
        try:
            # newline=None: "\r\n", "\r" and "\n" all arrive as "\n"
            self._file = open(
                self.filename, "r", encoding="utf-8", errors="replace", newline=None
            )
        except OSError as e:
            raise IoError(
                f"File {self.filename} could not be open for input: {e}",
                filename=self.filename,
            ) from e

        self.logger.info(
            "reader_opened", file=self.filename, parser=self.__class__.__name__
        )

    # ------------------------------------------------------------------
    # The one method every reader must provide
    # ------------------------------------------------------------------

    @abstractmethod
    def read_polyline(self) -> Optional[Polyline]:
        """Return the next complete polyline, or None at end of stream."""

    # ------------------------------------------------------------------
    # Line access shared by the text-based readers
    # ------------------------------------------------------------------

    def _next_line(self) -> Optional[str]:
        """
        Return the next physical line without its line ending, or None
        when the file is exhausted (or already closed).
        """
        if self._file is None or self._file.closed:
            return None
        line = self._file.readline()
        if line == "":
            return None
        self.line_number += 1
        return line.rstrip("\r\n")

    # ------------------------------------------------------------------
    # Driver helpers
    # ------------------------------------------------------------------

    def append_to_pattern(self, pattern: Pattern) -> int:
        """
        Read every remaining polyline into `pattern`.

        Returns the number of polylines appended.
        """
        count = 0
        while True:
            polyline = self.read_polyline()
            if polyline is None:
                break
            pattern.append(polyline)
            count += 1
        return count

    def __iter__(self) -> Iterator[Polyline]:
        while True:
            polyline = self.read_polyline()
            if polyline is None:
                return
            yield polyline

    # ------------------------------------------------------------------
    # Generic positional configuration
    # ------------------------------------------------------------------

    def set_parametres(
        self,
        vbool: Sequence[bool],
        vint: Sequence[int],
        vdouble: Sequence[float],
        vstring: Sequence[str],
    ) -> None:
        """
        Configure the reader from four positional lists.

        NON-PROGRAMMER NOTE:
          This exists so a configuration file or script can set up ANY
          reader the same way, without knowing its keyword arguments.
          Each reader declares how many values of each kind it expects in
          PARAMETRE_COUNTS; anything else raises ConfigError.
        """
        received = (len(vbool), len(vint), len(vdouble), len(vstring))
        if received != tuple(self.PARAMETRE_COUNTS):
            raise wrong_parametre_counts(
                f"{self.__class__.__name__}.set_parametres",
                self.PARAMETRE_COUNTS,
                received,
            )
        self._apply_parametres(list(vbool), list(vint), list(vdouble), list(vstring))

    def _apply_parametres(
        self,
        vbool: List[bool],
        vint: List[int],
        vdouble: List[float],
        vstring: List[str],
    ) -> None:
        """Hook for subclasses; counts are already validated."""

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def metadata(self) -> str:
        """Plain-text summary of what the reader has seen so far."""
        items: Dict[str, str] = {
            "file": self.filename,
            "parser": self.__class__.__name__,
            "lines read": str(self.line_number),
        }
        items.update(self._metadata_items())
        return "\n".join(f"{k}: {v}" for k, v in items.items())

    def _metadata_items(self) -> Dict[str, str]:
        return {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._file is None or self._file.closed

    def close(self) -> None:
        """Release the file. Safe to call more than once."""
        if self.closed:
            return
        try:
            self._file.close()
        except OSError as e:
            raise IoError(
                f"Reader: file {self.filename} could not be closed: {e}",
                filename=self.filename,
                closing=True,
            ) from e
        self.logger.info(
            "reader_closed", file=self.filename, lines_read=self.line_number
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # Teardown path: release the handle quietly, no logging this late.
        f = getattr(self, "_file", None)
        if f is not None and not f.closed:
            try:
                f.close()
            except OSError:
                pass
