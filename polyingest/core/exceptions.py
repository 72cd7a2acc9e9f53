# ===========================================================================
# polyingest -- TYPED EXCEPTIONS
# ===========================================================================
# FILE: polyingest/core/exceptions.py
#
# WHAT THIS IS:
#   Custom error types for polyingest. Instead of a bare ValueError or
#   OSError bubbling up from the middle of a 40 MB drawing, these tell
#   you WHICH file failed, WHERE (line number), and HOW TO FIX IT.
#
# THE THREE FAMILIES:
#   IoError      -- the file could not be opened or closed
#   ConfigError  -- the reader was set up with bad parameters
#   ParseError   -- the file content does not follow the expected grammar
#
#   All three are fatal for the file being read. Nothing in the ingestion
#   layer retries: the inputs are local files, so a malformed file fails
#   the same way every time.
#
# HOW IT'S USED:
#     try:
#         pattern = read_pattern("wafer_mask.dxf")
#     except IoError as e:
#         show_user("Cannot read the file.")
#     except PolyIngestError as e:
#         show_user(f"Error: {e} -- Fix: {e.fix_suggestion}")
#
# DESIGN DECISION:
#   Everything inherits from PolyIngestError, so "except PolyIngestError"
#   catches every error this package raises on purpose, while a plain
#   "except Exception" still works as the outer safety net.
# ===========================================================================

from __future__ import annotations


class PolyIngestError(Exception):
    """
    Base class for all polyingest errors.

    Attributes:
        fix_suggestion (str | None): Human-readable fix instruction.
        error_code (str | None): Machine-readable code like "PARSE-001"
            for logs and the command-line tool's JSON output.
    """

    def __init__(self, message, fix_suggestion=None, error_code=None):
        self.fix_suggestion = fix_suggestion
        self.error_code = error_code
        super().__init__(message)

    def to_dict(self):
        """Convert to dictionary for JSON logging or CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": str(self),
            "fix_suggestion": self.fix_suggestion,
        }


# ---------------------------------------------------------------------------
# I/O ERRORS (IO-xxx)
# The backing file cannot be opened for reading, or cannot be closed.
# ---------------------------------------------------------------------------

class IoError(PolyIngestError):
    """
    The input file cannot be opened, or its handle cannot be released.

    WHEN YOU'LL SEE THIS:
      - The path is wrong or the file was moved
      - The path points to a directory
      - The account running the tool has no read permission
    """
    def __init__(self, message=None, filename=None, closing=False):
        self.filename = filename
        detail = f" File: '{filename}'" if filename else ""
        if closing:
            super().__init__(
                message or f"File could not be closed cleanly.{detail}",
                fix_suggestion=(
                    "The file handle reported an error on close. "
                    "Check that the disk or network share is still available."
                ),
                error_code="IO-002",
            )
        else:
            super().__init__(
                message or f"File could not be opened for input.{detail}",
                fix_suggestion=(
                    "Check the path for typos and that you have read "
                    "permission on the file."
                ),
                error_code="IO-001",
            )


# ---------------------------------------------------------------------------
# CONFIGURATION ERRORS (CONF-xxx)
# These happen before any line of the file is interpreted.
# ---------------------------------------------------------------------------

class ConfigError(PolyIngestError):
    """
    A reader was configured with invalid parameters.

    WHEN YOU'LL SEE THIS:
      - set_parametres() got the wrong number of bool/int/double/string values
      - The layer filter mode is outside 0..8 or an unknown name
      - The layer regular expression does not compile
      - A file extension has no registered reader
    """
    def __init__(self, message=None, fix_suggestion=None):
        super().__init__(
            message or "Reader configuration is invalid.",
            fix_suggestion=fix_suggestion or (
                "Check the reader settings in config/default_config.yaml "
                "or the command-line options."
            ),
            error_code="CONF-001",
        )


def wrong_parametre_counts(where, expected, received):
    """
    Build a ConfigError for a set_parametres() call with the wrong shape.

    expected / received are 4-tuples of list lengths in the order
    (bool, int, double, string).
    """
    names = ("bool", "int", "double", "string")
    exp = ", ".join(f"{n} {c}" for n, c in zip(names, expected))
    got = ", ".join(f"{n} {c}" for n, c in zip(names, received))
    return ConfigError(
        f"{where}: expected parametres ({exp}), got ({got}).",
        fix_suggestion="Pass exactly the number of values the reader expects.",
    )


# ---------------------------------------------------------------------------
# PARSE ERRORS (PARSE-xxx)
# The file was opened but its content does not follow the grammar.
# ---------------------------------------------------------------------------

class ParseError(PolyIngestError):
    """
    The file content is malformed.

    Carries the file name and the physical line number where the reader
    gave up, so the message reads like a compiler error:
        mask.dxf:1043 group code 'ten' is not an integer
    """
    code = "PARSE-001"
    hint = "Open the file at the given line and check its syntax."

    def __init__(self, message, filename=None, line_number=None):
        self.filename = filename
        self.line_number = line_number
        where = ""
        if filename is not None:
            where = f"{filename}:{line_number}: " if line_number else f"{filename}: "
        super().__init__(
            where + message,
            fix_suggestion=self.hint,
            error_code=self.code,
        )


class DxfParseError(ParseError):
    """
    Malformed DXF R12 content (non-integer group code, non-numeric
    coordinate, or a record cut short by the end of the file).
    """
    code = "PARSE-002"
    hint = (
        "Re-export the drawing as DXF R12 (AutoCAD R12/LT2 DXF). "
        "Newer DXF versions are not supported by this reader."
    )


class MotionLogParseError(ParseError):
    """
    Malformed motion-command log (unknown command, SetTrigger without a
    clear on/off, non-numeric parameter, or a truncated command).
    """
    code = "PARSE-003"
    hint = (
        "Check the command at the given line: names are case-sensitive, "
        "parameters are numbers, and every call ends with ';'."
    )
