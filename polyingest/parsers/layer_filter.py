# ============================================================================
# polyingest -- DXF Layer Filter (polyingest/parsers/layer_filter.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Decides whether a DXF record on a given layer should be read or skipped.
#   There are four kinds of filter:
#
#     AcceptAll      -- read every layer
#     VerbatimLayer  -- read exactly one layer, e.g. "EXPOSE"
#     VerbatimList   -- read a comma-separated list, e.g. "L1,L2,DOTS"
#     RegexLayer     -- read layers whose WHOLE name matches a regular
#                       expression, in one of six dialects:
#                       ECMAScript, basic, extended, awk, grep, egrep
#
# WHY SIX REGEX DIALECTS:
#   Layer expressions are written by people used to different tools:
#   "L\(1\|2\)" is grep (basic) syntax, "L(1|2)" is egrep (extended)
#   syntax. Python's re module speaks roughly the ECMAScript dialect,
#   so the POSIX dialects are translated to Python syntax once, when the
#   filter is built.
#
# ECMASCRIPT VS PYTHON:
#   Named groups (?<name>...) and \k<name> are rewritten to Python's
#   (?P<name>...) and (?P=name). \d \w \D \W are narrowed to ASCII as in
#   ECMAScript. Still different: \s and \b follow Python's Unicode rules,
#   \D and \W inside [...] keep Python's meaning, and an ECMAScript empty
#   class "[]" is read differently by Python.
#
# MODE NUMBERS (used by set_parametres and the YAML config):
#   0 all  1 verbatim  2 comma_separated_verbatim_list
#   3 ECMAScript  4 basic  5 extended  6 awk  7 grep  8 egrep
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import re
import string
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple, Union

from ..core.exceptions import ConfigError


class FilterMode(IntEnum):
    ALL = 0
    VERBATIM = 1
    COMMA_SEPARATED_VERBATIM_LIST = 2
    ECMASCRIPT = 3
    BASIC = 4
    EXTENDED = 5
    AWK = 6
    GREP = 7
    EGREP = 8


_MODE_NAMES = {
    "all": FilterMode.ALL,
    "verbatim": FilterMode.VERBATIM,
    "comma_separated_verbatim_list": FilterMode.COMMA_SEPARATED_VERBATIM_LIST,
    "list": FilterMode.COMMA_SEPARATED_VERBATIM_LIST,
    "ecmascript": FilterMode.ECMASCRIPT,
    "basic": FilterMode.BASIC,
    "extended": FilterMode.EXTENDED,
    "awk": FilterMode.AWK,
    "grep": FilterMode.GREP,
    "egrep": FilterMode.EGREP,
}


def parse_filter_mode(value) -> FilterMode:
    """
    Accept a FilterMode, an int 0..8, a digit string, or a mode name
    (case-insensitive). Anything else raises ConfigError.
    """
    if isinstance(value, FilterMode):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Layer filter mode must be 0..8 or a name, got {value!r}.")
    if isinstance(value, int):
        try:
            return FilterMode(value)
        except ValueError:
            raise ConfigError(
                f"Layer filter mode should be one of 0 to 8, got {value}.",
                fix_suggestion=(
                    "0 all, 1 verbatim, 2 comma-separated list, 3 ECMAScript, "
                    "4 basic, 5 extended, 6 awk, 7 grep, 8 egrep."
                ),
            )
    text = str(value).strip()
    if text.isdigit():
        return parse_filter_mode(int(text))
    mode = _MODE_NAMES.get(text.lower())
    if mode is None:
        raise ConfigError(
            f"Unknown layer filter mode '{text}'.",
            fix_suggestion="Use one of: " + ", ".join(sorted(_MODE_NAMES)) + ".",
        )
    return mode


# ============================================================================
# The four filter variants
# ============================================================================

@dataclass(frozen=True)
class AcceptAll:
    """Never rejects."""

    def matches(self, layer: str) -> bool:
        return True


@dataclass(frozen=True)
class VerbatimLayer:
    """Exact, case-sensitive match against one layer name."""
    name: str

    def matches(self, layer: str) -> bool:
        return layer == self.name


@dataclass(frozen=True)
class VerbatimList:
    """Membership in a list of exact layer names."""
    names: Tuple[str, ...]

    def matches(self, layer: str) -> bool:
        return layer in self.names


@dataclass(frozen=True)
class RegexLayer:
    """The whole layer name must match the expression."""
    pattern: str
    dialect: FilterMode
    compiled: "re.Pattern" = field(compare=False, repr=False)

    def matches(self, layer: str) -> bool:
        return self.compiled.fullmatch(layer) is not None


LayerFilter = Union[AcceptAll, VerbatimLayer, VerbatimList, RegexLayer]


def split_layer_list(text: str) -> Tuple[str, ...]:
    """Split "L1,L2,,L3" into ("L1", "L2", "L3"). Names are NOT trimmed."""
    return tuple(part for part in text.split(",") if part)


def make_layer_filter(mode, layers_to_read: str = "") -> LayerFilter:
    """Build the filter variant for `mode` from its string parameter."""
    mode = parse_filter_mode(mode)
    layers_to_read = layers_to_read or ""
    if mode is FilterMode.ALL:
        return AcceptAll()
    if mode is FilterMode.VERBATIM:
        return VerbatimLayer(layers_to_read)
    if mode is FilterMode.COMMA_SEPARATED_VERBATIM_LIST:
        return VerbatimList(split_layer_list(layers_to_read))
    return RegexLayer(layers_to_read, mode, compile_layer_regex(layers_to_read, mode))


# ============================================================================
# Regex dialect translation
# ============================================================================
#
# NON-PROGRAMMER NOTE:
#   The POSIX dialects differ from Python mainly in three ways:
#     - basic/grep: grouping is written \( \) and repetition counts \{ \};
#       a bare ( ) { } + ? | is an ordinary character.
#     - bracket expressions may contain named classes like [[:digit:]],
#       and a backslash inside brackets is an ordinary character.
#     - grep/egrep: a newline separates alternative patterns.
#   The translators below rewrite those constructs into Python syntax and
#   escape everything else that Python would read differently.
# ============================================================================

_POSIX_CLASSES = {
    "alpha": "a-zA-Z",
    "digit": "0-9",
    "alnum": "a-zA-Z0-9",
    "upper": "A-Z",
    "lower": "a-z",
    "space": r" \t\n\r\f\v",
    "blank": r" \t",
    "punct": "".join("\\" + c for c in string.punctuation),
    "xdigit": "0-9A-Fa-f",
    "cntrl": r"\x00-\x1f\x7f",
    "print": r"\x20-\x7e",
    "graph": r"\x21-\x7e",
    "w": r"\w",
}

_AWK_ESCAPES = {
    "n": r"\n",
    "t": r"\t",
    "r": r"\r",
    "f": r"\f",
    "v": r"\v",
    "a": r"\a",
    "b": r"\x08",
    "/": "/",
    '"': '"',
}


def _class_char(c: str) -> str:
    # Characters that mean something inside a Python set, or that trigger
    # its set-operation warnings when doubled.
    if c in "\\[]^&~|":
        return "\\" + c
    return c


def _translate_bracket(pattern: str, i: int, backslash_escapes: bool) -> Tuple[str, int]:
    """Translate the bracket expression starting at pattern[i] == '['."""
    n = len(pattern)
    j = i + 1
    out = ["["]
    if j < n and pattern[j] == "^":
        out.append("^")
        j += 1
    first = True
    while True:
        if j >= n:
            raise ConfigError(f"Unterminated bracket expression in '{pattern}'.")
        c = pattern[j]
        if c == "]" and not first:
            out.append("]")
            return "".join(out), j + 1
        first = False
        if c == "[" and j + 1 < n and pattern[j + 1] in ":.=":
            kind = pattern[j + 1]
            end = pattern.find(kind + "]", j + 2)
            if end < 0:
                raise ConfigError(f"Unterminated [{kind} {kind}] in '{pattern}'.")
            name = pattern[j + 2:end]
            if kind == ":":
                if name not in _POSIX_CLASSES:
                    raise ConfigError(f"Unknown character class [:{name}:] in '{pattern}'.")
                out.append(_POSIX_CLASSES[name])
            else:
                # Collating symbols / equivalence classes: single characters only
                if len(name) != 1:
                    raise ConfigError(f"Unsupported collating element '{name}' in '{pattern}'.")
                out.append(_class_char(name))
            j = end + 2
            continue
        if c == "\\" and backslash_escapes and j + 1 < n:
            nxt = pattern[j + 1]
            out.append(_AWK_ESCAPES.get(nxt, "\\" + nxt))
            j += 2
            continue
        out.append("-" if c == "-" else _class_char(c))
        j += 1


def _translate_ere(pattern: str, awk: bool) -> str:
    """POSIX extended (also egrep, awk) -> Python."""
    out = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "[":
            piece, i = _translate_bracket(pattern, i, backslash_escapes=awk)
            out.append(piece)
            continue
        if c == "\\":
            if i + 1 >= n:
                raise ConfigError(f"Trailing backslash in '{pattern}'.")
            nxt = pattern[i + 1]
            if awk and nxt in _AWK_ESCAPES:
                out.append(_AWK_ESCAPES[nxt])
            else:
                out.append(re.escape(nxt))
            i += 2
            continue
        if c in ".*+?|(){}^$":
            out.append(c)
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


def _translate_bre(pattern: str) -> str:
    """POSIX basic (also grep) -> Python."""
    out = []
    i = 0
    n = len(pattern)
    # True where '*' is literal and '^' is an anchor: at the start of the
    # expression, right after \( or right after a leading ^.
    at_start = True
    while i < n:
        c = pattern[i]
        if c == "[":
            piece, i = _translate_bracket(pattern, i, backslash_escapes=False)
            out.append(piece)
            at_start = False
            continue
        if c == "\\":
            if i + 1 >= n:
                raise ConfigError(f"Trailing backslash in '{pattern}'.")
            nxt = pattern[i + 1]
            i += 2
            if nxt == "(":
                out.append("(")
                at_start = True
                continue
            if nxt in "){}":
                out.append(nxt)
            elif nxt in "123456789":
                out.append("\\" + nxt)
            else:
                out.append(re.escape(nxt))
            at_start = False
            continue
        if c == "^":
            out.append("^" if at_start else r"\^")
            i += 1
            continue
        if c == "*" and at_start:
            out.append(r"\*")
        elif c == "$":
            at_end = i == n - 1 or pattern.startswith("\\)", i + 1)
            out.append("$" if at_end else r"\$")
        elif c in ".*":
            out.append(c)
        else:
            # includes the BRE-literal ( ) { } + ? |
            out.append(re.escape(c))
        at_start = False
        i += 1
    return "".join(out)


# ECMAScript class escapes are ASCII-only, Python's are Unicode-aware.
# Values: (text inside a [...] class, text outside one). None = kept as is.
_ECMA_CLASS_ESCAPES = {
    "d": ("0-9", "[0-9]"),
    "w": ("A-Za-z0-9_", "[A-Za-z0-9_]"),
    "D": (None, "[^0-9]"),
    "W": (None, "[^A-Za-z0-9_]"),
}


def _translate_ecmascript(pattern: str) -> str:
    """
    ECMAScript and Python agree on most syntax. The rewrites are:
      (?<name>...)  ->  (?P<name>...)
      \\k<name>      ->  (?P=name)
      \\d \\w \\D \\W   ->  their ASCII classes
    """
    out = []
    i = 0
    n = len(pattern)
    in_class = False
    while i < n:
        c = pattern[i]
        if c == "\\" and i + 1 < n:
            nxt = pattern[i + 1]
            if nxt == "k" and not in_class and pattern.startswith("<", i + 2):
                end = pattern.find(">", i + 3)
                if end != -1:
                    out.append(f"(?P={pattern[i + 3:end]})")
                    i = end + 1
                    continue
            if nxt in _ECMA_CLASS_ESCAPES:
                inside, outside = _ECMA_CLASS_ESCAPES[nxt]
                replacement = inside if in_class else outside
                out.append(replacement if replacement is not None else c + nxt)
            else:
                out.append(c + nxt)
            i += 2
            continue
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
        elif pattern.startswith("(?<", i) and not pattern.startswith(("(?<=", "(?<!"), i):
            out.append("(?P<")
            i += 3
            continue
        out.append(c)
        i += 1
    return "".join(out)


def translate_layer_regex(pattern: str, dialect) -> str:
    """Return the Python `re` equivalent of `pattern` written in `dialect`."""
    dialect = parse_filter_mode(dialect)
    if dialect is FilterMode.ECMASCRIPT:
        return _translate_ecmascript(pattern)
    if dialect is FilterMode.BASIC:
        return _translate_bre(pattern)
    if dialect is FilterMode.EXTENDED:
        return _translate_ere(pattern, awk=False)
    if dialect is FilterMode.AWK:
        return _translate_ere(pattern, awk=True)
    if dialect in (FilterMode.GREP, FilterMode.EGREP):
        translate = _translate_bre if dialect is FilterMode.GREP else (
            lambda p: _translate_ere(p, awk=False)
        )
        alternatives = [translate(p) for p in pattern.split("\n")]
        if len(alternatives) == 1:
            return alternatives[0]
        return "|".join(f"(?:{a})" for a in alternatives)
    raise ConfigError(f"Layer filter mode {dialect.name} is not a regex dialect.")


def compile_layer_regex(pattern: str, dialect) -> "re.Pattern":
    translated = translate_layer_regex(pattern, dialect)
    try:
        return re.compile(translated)
    except re.error as e:
        raise ConfigError(
            f"Layer expression '{pattern}' is not a valid "
            f"{parse_filter_mode(dialect).name} regular expression: {e}",
            fix_suggestion="Check the expression, or use verbatim/list mode for plain names.",
        ) from e
