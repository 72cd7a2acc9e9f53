# ============================================================================
# polyingest -- Motion Log Parser (polyingest/parsers/motion_log_parser.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Replays the command script that the lithography stage software
#   executed and reconstructs the paths the beam drew. A script looks like:
#
#       /* writefield 3 */
#       MovingSpeed(20);
#       MoveAbsolute(1, 1, 0);
#       SetTrigger(on);              <- travel ends, beam goes on
#       MoveAbsolute(2, 2, 0);
#       MoveAbsolute(2, 5, 0);
#       SetTrigger(off);             <- exposed path ends
#
#   Every SetTrigger closes the path drawn since the previous one:
#     SetTrigger(off) -> the path was EXPOSED: returned with reference 0
#     SetTrigger(on)  -> the path was TRAVEL:  returned with reference 1
#                        only if construction_lines is enabled
#
# POSITIONS:
#   The beam position is stepper + piezo. Each path starts at that sum and
#   every move appends one vertex. Only x and y are used; the third
#   parameter of the piezo commands (z) is read and ignored.
#
# WHAT IS TOLERATED:
#   - /* comments */ anywhere, including across lines
#   - calls split over several lines ("MoveAbsolute(1,\n 2,\n 0);")
#   - several calls on one line
#   - short argument lists: MoveAbsolute(1,1) means MoveAbsolute(1,1,0)
#
# WHAT IS AN ERROR (MotionLogParseError):
#   - an unknown command name, or a line with no "(" where one is needed
#   - a parameter that is not a number, an empty parameter, too many
#   - SetTrigger with both or neither of on/off
#   - the file ending in the middle of a call
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..core.exceptions import MotionLogParseError
from ..core.geometry import Polyline, Vertex
from .base import StreamingParser
from .motion_commands import MotionCommand, MotionTag, find_command


@dataclass
class MotionLogReaderSettings:
    construction_lines: bool = False


class _State(Enum):
    AWAIT_NAME = "await_name"
    AWAIT_PARAMETER = "await_parameter"
    AWAIT_ON_OFF = "await_on_off"
    AWAIT_SEMICOLON = "await_semicolon"
    EXECUTE = "execute"


def remove_comment_spans(text: str) -> str:
    """Remove every complete /* ... */ span, joining what is left."""
    while True:
        start = text.find("/*")
        if start < 0:
            return text
        end = text.find("*/", start + 2)
        if end < 0:
            return text
        text = text[:start] + text[end + 2:]


class MotionLogParser(StreamingParser):
    """
    Streaming reader for stage motion-command logs.

    NON-PROGRAMMER NOTE:
      The reader is a small state machine. It remembers, between calls,
      the unread rest of the current line, which part of a call it is in
      the middle of, and where the stepper and piezo currently are. Each
      read_polyline() call runs the machine until a SetTrigger produces a
      path to return, or the file ends.
    """

    # set_parametres([construction_lines], [], [], [])
    PARAMETRE_COUNTS = (1, 0, 0, 0)

    def __init__(self, file_path, settings: Optional[MotionLogReaderSettings] = None) -> None:
        super().__init__(file_path)
        self.settings = settings or MotionLogReaderSettings()

        self._text = ""
        self._inside_comment = False
        self._state = _State.AWAIT_NAME
        self._command: Optional[MotionCommand] = None
        self._parameters: List[float] = []
        self._trigger_on = False
        self._finished = False

        self._stepper = Vertex(0.0, 0.0)
        self._piezo = Vertex(0.0, 0.0)
        self._path = Polyline()

        self._commands_executed = 0
        self._records_returned = 0
        self._paths_discarded = 0

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_all_parametres(self, construction_lines: bool) -> None:
        self.settings = MotionLogReaderSettings(construction_lines=bool(construction_lines))

    def _apply_parametres(self, vbool, vint, vdouble, vstring) -> None:
        self.set_all_parametres(vbool[0])

    @property
    def stepper_position(self) -> Vertex:
        return self._stepper

    @property
    def piezo_position(self) -> Vertex:
        return self._piezo

    def _metadata_items(self) -> Dict[str, str]:
        return {
            "commands executed": str(self._commands_executed),
            "records returned": str(self._records_returned),
            "paths discarded": str(self._paths_discarded),
            "stepper position": self._stepper.display_string(),
            "piezo position": self._piezo.display_string(),
        }

    # ------------------------------------------------------------------
    # Line supply
    # ------------------------------------------------------------------

    def _clean_line(self, line: str) -> str:
        """Strip comments from one physical line, tracking open comments."""
        if self._inside_comment:
            end = line.find("*/")
            if end < 0:
                return ""
            line = line[end + 2:]
            self._inside_comment = False
        line = remove_comment_spans(line)
        start = line.find("/*")
        if start >= 0:
            line = line[:start]
            self._inside_comment = True
        return line.strip()

    def _fill(self) -> bool:
        """Load the next line that has any text left after comments."""
        while True:
            raw = self._next_line()
            if raw is None:
                return False
            text = self._clean_line(raw)
            if text:
                self._text = text
                return True

    def _error(self, message: str) -> MotionLogParseError:
        return MotionLogParseError(
            message, filename=self.filename, line_number=self.line_number
        )

    def _truncated(self) -> MotionLogParseError:
        self._finished = True
        name = self._command.name if self._command else "?"
        return self._error(f"file ends inside {name}(...): truncated command")

    # ------------------------------------------------------------------
    # The streaming entry point
    # ------------------------------------------------------------------

    def read_polyline(self) -> Optional[Polyline]:
        if self._finished:
            return None

        while True:
            if self._state is _State.EXECUTE:
                self._state = _State.AWAIT_NAME
                polyline = self._execute()
                if polyline is not None:
                    self._records_returned += 1
                    return polyline
                continue

            if not self._text.strip():
                if not self._fill():
                    if self._state is _State.AWAIT_NAME:
                        return self._end_of_stream()
                    raise self._truncated()
                continue

            if self._state is _State.AWAIT_NAME:
                self._read_name()
            elif self._state is _State.AWAIT_PARAMETER:
                self._read_parameter()
            elif self._state is _State.AWAIT_ON_OFF:
                self._read_on_off()
            else:
                self._read_semicolon()

    def _end_of_stream(self) -> Optional[Polyline]:
        self._finished = True
        if not self._path.is_empty():
            self._paths_discarded += 1
            self.logger.warning(
                "motion_log_untriggered_path_discarded",
                file=self.filename,
                vertices=len(self._path),
            )
            self._path = Polyline()
        return None

    # ------------------------------------------------------------------
    # Tokenisation steps. Each consumes part of self._text and moves the
    # state machine along.
    # ------------------------------------------------------------------

    def _read_name(self) -> None:
        text = self._text
        pos = text.find("(")
        if pos < 0:
            raise self._error(
                f"function expected but no opening bracket found in '{text.strip()}'"
            )
        name = text[:pos].strip()
        command = find_command(name)
        if command is None:
            raise self._error(f"unknown function '{name}'")
        self._text = text[pos + 1:]
        self._command = command
        self._parameters = []

        if command.tag is MotionTag.TRIGGER:
            self._state = _State.AWAIT_ON_OFF
        elif command.skip_arguments:
            self._state = _State.AWAIT_SEMICOLON
        else:
            self._state = _State.AWAIT_PARAMETER

    def _read_parameter(self) -> None:
        text = self._text
        arity = self._command.arity
        index = len(self._parameters)
        is_last = index >= arity - 1
        comma = -1 if is_last else text.find(",")
        close = text.find(")")

        if comma >= 0 and (close < 0 or comma < close):
            chunk, self._text, closes_list = text[:comma], text[comma + 1:], False
        elif close >= 0:
            chunk, self._text, closes_list = text[:close], text[close + 1:], True
        else:
            # No delimiter on this line: the rest of the line is the parameter
            chunk, self._text, closes_list = text, "", False

        chunk = chunk.strip()
        if "," in chunk:
            raise self._error(
                f"too many parameters for {self._command.name} (expects {arity})"
            )
        if not chunk:
            if closes_list and index == 0:
                # "()" -- every parameter is zero
                self._finish_parameters()
                return
            raise self._error(f"empty parameter {index + 1} for {self._command.name}")
        if arity == 0:
            raise self._error(f"{self._command.name} takes no parameters")
        try:
            self._parameters.append(float(chunk))
        except ValueError:
            raise self._error(
                f"parameter '{chunk}' of {self._command.name} is not a number"
            )

        if closes_list or len(self._parameters) == arity:
            self._finish_parameters()

    def _finish_parameters(self) -> None:
        arity = self._command.arity
        self._parameters.extend([0.0] * (arity - len(self._parameters)))
        self._state = _State.AWAIT_SEMICOLON

    def _read_on_off(self) -> None:
        text = self._text
        close = text.find(")")
        if close < 0:
            word, self._text = text, ""
        else:
            word, self._text = text[:close], text[close + 1:]
        has_on = "on" in word
        has_off = "off" in word
        if has_on and has_off:
            raise self._error("SetTrigger found both on and off")
        if not has_on and not has_off:
            raise self._error("SetTrigger was set neither on nor off")
        self._trigger_on = has_on
        self._state = _State.AWAIT_SEMICOLON

    def _read_semicolon(self) -> None:
        pos = self._text.find(";")
        if pos < 0:
            self._text = ""
            return
        self._text = self._text[pos + 1:]
        self._state = _State.EXECUTE

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self) -> Optional[Polyline]:
        command = self._command
        self._commands_executed += 1
        tag = command.tag

        if tag is MotionTag.TRIGGER:
            return self._trigger(self._trigger_on)
        if tag is MotionTag.ORIGIN_PIEZO:
            self._piezo = Vertex(0.0, 0.0)
        elif tag is MotionTag.ORIGIN_STEPPER:
            self._stepper = Vertex(0.0, 0.0)
        elif tag in (MotionTag.PIEZO_MOVE, MotionTag.STEPPER_MOVE):
            target = Vertex(self._parameters[0], self._parameters[1])
            self._move(tag is MotionTag.STEPPER_MOVE, command.absolute, target)
        return None

    def _move(self, stepper: bool, absolute: bool, value: Vertex) -> None:
        if self._path.is_empty():
            self._path.push_back(self._stepper + self._piezo)
        current = self._stepper if stepper else self._piezo
        offset = value - current if absolute else value
        self._path.push_back_relative(offset)
        position = value if absolute else current + value
        if stepper:
            self._stepper = position
        else:
            self._piezo = position

    def _trigger(self, on: bool) -> Optional[Polyline]:
        path, self._path = self._path, Polyline()
        if path.is_empty():
            self.logger.debug(
                "motion_log_empty_trigger",
                file=self.filename,
                line=self.line_number,
                trigger="on" if on else "off",
            )
            return None
        if on:
            if not self.settings.construction_lines:
                self._paths_discarded += 1
                return None
            path.reference = 1
            return path
        path.reference = 0
        return path
