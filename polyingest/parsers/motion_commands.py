# ============================================================================
# polyingest -- Motion Command Vocabulary (polyingest/parsers/motion_commands.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Lists every command the lithography stage software can write into a
#   motion log, with its short alias, how many numbers it takes, and what
#   (if anything) it does to the drawn geometry.
#
#   The stage has two positioners that add up to the beam position:
#     stepper -- coarse, long-travel motors ("...SamplePos" commands)
#     piezo   -- fine, short-travel actuator (the plain Move/Jump commands)
#
#   SetTrigger(on) ends a travel path (the beam was off until then) and
#   SetTrigger(off) ends an exposed path. See motion_log_parser.py.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class MotionTag(Enum):
    """What a command does to the geometry being reconstructed."""
    PIEZO_MOVE = "piezo_move"
    STEPPER_MOVE = "stepper_move"
    ORIGIN_PIEZO = "origin_piezo"
    ORIGIN_STEPPER = "origin_stepper"
    TRIGGER = "trigger"
    NO_OP = "no_op"


@dataclass(frozen=True)
class MotionCommand:
    """
    One vocabulary entry.

    arity:           number of numeric parameters (the trigger takes a
                     single on/off word instead, arity 1)
    absolute:        moves only; target position instead of displacement
    skip_arguments:  the arguments are not parsed at all, the reader jumps
                     straight to the terminating ';' (they may be free text)
    """
    name: str
    alias: str
    arity: int
    tag: MotionTag
    absolute: bool = False
    skip_arguments: bool = False


COMMANDS: Tuple[MotionCommand, ...] = (
    MotionCommand("MovingSpeed", "ms", 1, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("Sleep", "sl", 1, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("MoveZMicroscope", "mz", 1, MotionTag.NO_OP),
    MotionCommand("SetTrigger", "st", 1, MotionTag.TRIGGER),
    MotionCommand("DisplayMessage", "dm", 0, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("SetPoint", "sp", 1, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("Snapshot", "snap", 2, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("PushTransformation", "pusht", 0, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("PopTransformation", "popt", 0, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("Rotate", "rot", 3, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("Scale", "sc", 3, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("SetOrigin", "so", 3, MotionTag.ORIGIN_PIEZO),
    MotionCommand("MoveRelative", "mr", 3, MotionTag.PIEZO_MOVE),
    MotionCommand("MoveAbsolute", "ma", 3, MotionTag.PIEZO_MOVE, absolute=True),
    MotionCommand("JumpRelative", "jr", 3, MotionTag.PIEZO_MOVE),
    MotionCommand("JumpAbsolute", "ja", 3, MotionTag.PIEZO_MOVE, absolute=True),
    MotionCommand("WaitforStablePosition", "wpos", 0, MotionTag.NO_OP, skip_arguments=True),
    MotionCommand("SetOriginSamplePos", "so_sp", 0, MotionTag.ORIGIN_STEPPER),
    MotionCommand("MoveRelativeSamplePos", "mr_sp", 2, MotionTag.STEPPER_MOVE),
    MotionCommand("MoveAbsoluteSamplePos", "ma_sp", 2, MotionTag.STEPPER_MOVE, absolute=True),
    MotionCommand("JumpRelativeSamplePos", "jr_sp", 2, MotionTag.STEPPER_MOVE),
    MotionCommand("JumpAbsoluteSamplePos", "ja_sp", 2, MotionTag.STEPPER_MOVE, absolute=True),
)


# Canonical names and aliases both map to the entry (case-sensitive)
_LOOKUP: Dict[str, MotionCommand] = {}
for _command in COMMANDS:
    _LOOKUP[_command.name] = _command
    _LOOKUP[_command.alias] = _command
del _command


def find_command(name: str) -> Optional[MotionCommand]:
    """Return the command called `name` (canonical or alias), or None."""
    return _LOOKUP.get(name)
