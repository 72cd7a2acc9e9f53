# ============================================================================
# polyingest -- Geometric Model (polyingest/core/geometry.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Defines the three shapes every reader produces and every writer
#   consumes:
#     Vertex   -- one point (x, y), in drawing units
#     Polyline -- an ordered list of vertices plus closed/dose/reference
#     Pattern  -- an ordered list of polylines (the whole drawing)
#
# THE METADATA FIELDS:
#   closed     True = the last vertex connects back to the first. The first
#              vertex is NOT repeated at the end.
#   dose       A number whose meaning belongs to whoever produced or
#              consumes the polyline: exposure time, writing speed, or a
#              circle radius. 0.0 or below means "not set".
#   reference  A non-negative integer tag: which DXF layer a polyline came
#              from, or whether a motion-log path was exposed (0) or only
#              a construction move (1).
#
# RULES THE READERS FOLLOW:
#   - Vertex order is drawing order. Readers never sort or deduplicate.
#   - A polyline handed to the caller always has at least one vertex.
#   - Once returned, a polyline belongs to the caller; readers keep no
#     reference to it.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from .exceptions import ConfigError


@dataclass(frozen=True)
class Vertex:
    """
    One 2D point. Immutable: arithmetic returns a new Vertex.

    NON-PROGRAMMER NOTE:
      "frozen=True" means nobody can change x or y after the point is
      created. A polyline can therefore share Vertex objects safely.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vertex") -> "Vertex":
        return Vertex(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vertex") -> "Vertex":
        return Vertex(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Vertex":
        return Vertex(self.x * factor, self.y * factor)

    def __truediv__(self, divisor: float) -> "Vertex":
        return Vertex(self.x / divisor, self.y / divisor)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "Vertex") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def display_string(self) -> str:
        return f"({self.x:g}, {self.y:g})"


@dataclass
class Polyline:
    """
    An ordered list of vertices plus its metadata.

    Example:
        p = Polyline(closed=True)
        p.push_back(Vertex(0, 0))
        p.push_back_relative(Vertex(10, 0))   # appends (10, 0)
        p.push_back_relative(Vertex(0, 10))   # appends (10, 10)
    """
    vertices: List[Vertex] = field(default_factory=list)
    closed: bool = False
    dose: float = 0.0
    reference: int = 0

    def __setattr__(self, name: str, value) -> None:
        # Checked on every assignment, including the one in __init__.
        if name == "reference" and value < 0:
            raise ConfigError(
                f"Polyline reference must be non-negative, got {value}."
            )
        super().__setattr__(name, value)

    # -- building -----------------------------------------------------------

    def push_back(self, vertex: Vertex) -> None:
        self.vertices.append(vertex)

    def push_back_relative(self, offset: Vertex) -> None:
        """
        Append a vertex placed at `offset` from the last vertex.

        On an empty polyline there is nothing to be relative to, so the
        offset itself becomes the first vertex.
        """
        if not self.vertices:
            self.vertices.append(offset)
        else:
            self.vertices.append(self.vertices[-1] + offset)

    def extend(self, other: "Polyline") -> None:
        """Append all vertices of another polyline (metadata untouched)."""
        self.vertices.extend(other.vertices)

    # -- container protocol ---------------------------------------------------

    def size(self) -> int:
        return len(self.vertices)

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self.vertices)

    def __getitem__(self, index: int) -> Vertex:
        return self.vertices[index]

    def is_empty(self) -> bool:
        return not self.vertices

    # -- informative ----------------------------------------------------------

    def limits(self) -> Tuple[float, float, float, float]:
        """Return (min_x, min_y, max_x, max_y). Empty polyline -> all zeros."""
        if not self.vertices:
            return (0.0, 0.0, 0.0, 0.0)
        xs = [v.x for v in self.vertices]
        ys = [v.y for v in self.vertices]
        return (min(xs), min(ys), max(xs), max(ys))

    def length(self) -> float:
        """Length of the drawn path, without the closing edge."""
        return sum(
            a.distance_to(b) for a, b in zip(self.vertices, self.vertices[1:])
        )

    def perimeter(self) -> float:
        """Length of the path including the edge from last to first vertex."""
        if len(self.vertices) < 2:
            return 0.0
        return self.length() + self.vertices[-1].distance_to(self.vertices[0])

    def area(self) -> float:
        """Unsigned area of the polygon (shoelace formula), closed or not."""
        n = len(self.vertices)
        if n < 3:
            return 0.0
        total = 0.0
        for i in range(n):
            a = self.vertices[i]
            b = self.vertices[(i + 1) % n]
            total += a.x * b.y - b.x * a.y
        return abs(total) / 2.0

    def display_string(self) -> str:
        pts = " ".join(v.display_string() for v in self.vertices)
        flag = "closed" if self.closed else "open"
        return f"[{flag} dose={self.dose:g} ref={self.reference}] {pts}"

    def to_dict(self) -> dict:
        return {
            "vertices": [v.as_tuple() for v in self.vertices],
            "closed": self.closed,
            "dose": self.dose,
            "reference": self.reference,
        }


class Pattern:
    """
    The whole drawing: an ordered list of polylines owned by the caller.

    Readers only ever append to a Pattern (see
    StreamingParser.append_to_pattern); they never keep it.
    """

    def __init__(self, polylines: Optional[Iterable[Polyline]] = None) -> None:
        self._polylines: List[Polyline] = list(polylines or [])

    def append(self, polyline: Polyline) -> None:
        self._polylines.append(polyline)

    def extend(self, polylines: Iterable[Polyline]) -> None:
        self._polylines.extend(polylines)

    def __len__(self) -> int:
        return len(self._polylines)

    def __iter__(self) -> Iterator[Polyline]:
        return iter(self._polylines)

    def __getitem__(self, index: int) -> Polyline:
        return self._polylines[index]

    def total_vertices(self) -> int:
        return sum(len(p) for p in self._polylines)

    def references(self) -> List[int]:
        """Sorted distinct reference tags present in the pattern."""
        return sorted({p.reference for p in self._polylines})

    def limits(self) -> Tuple[float, float, float, float]:
        """Bounding box over every vertex. Empty pattern -> all zeros."""
        boxes = [p.limits() for p in self._polylines if p.vertices]
        if not boxes:
            return (0.0, 0.0, 0.0, 0.0)
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    def to_dict(self) -> dict:
        return {"polylines": [p.to_dict() for p in self._polylines]}
