# ============================================================================
# test_geometry.py -- Tests for Vertex, Polyline and Pattern
# ============================================================================
#
# COVERS:
#   TestVertex   -- arithmetic, immutability, display
#   TestPolyline -- building, container protocol, measurements
#   TestPattern  -- collection helpers used by the driver and the CLI
#
# RUN:
#   python -m pytest tests/test_geometry.py -v
#
# INTERNET ACCESS: NONE
# ============================================================================

import dataclasses
import math

import pytest

from polyingest.core.exceptions import ConfigError
from polyingest.core.geometry import Pattern, Polyline, Vertex


def square(side=2.0, closed=True, reference=0):
    p = Polyline(closed=closed, reference=reference)
    for x, y in [(0, 0), (side, 0), (side, side), (0, side)]:
        p.push_back(Vertex(x, y))
    return p


class TestVertex:

    def test_arithmetic(self):
        a = Vertex(1, 2)
        b = Vertex(3, 5)
        assert a + b == Vertex(4, 7)
        assert b - a == Vertex(2, 3)
        assert a * 2 == Vertex(2, 4)
        assert b / 2 == Vertex(1.5, 2.5)

    def test_is_immutable(self):
        v = Vertex(1, 2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            v.x = 5

    def test_default_is_origin(self):
        assert Vertex() == Vertex(0.0, 0.0)

    def test_distance_and_display(self):
        assert Vertex(0, 0).distance_to(Vertex(3, 4)) == pytest.approx(5.0)
        assert Vertex(1.5, -2).display_string() == "(1.5, -2)"


class TestPolyline:

    def test_defaults(self):
        p = Polyline()
        assert p.is_empty()
        assert p.closed is False
        assert p.dose == 0.0
        assert p.reference == 0

    def test_negative_reference_rejected(self):
        with pytest.raises(ConfigError):
            Polyline(reference=-1)

    def test_negative_reference_rejected_after_construction(self):
        p = Polyline()
        p.reference = 4
        assert p.reference == 4
        with pytest.raises(ConfigError):
            p.reference = -2
        assert p.reference == 4

    def test_push_back_relative_first_vertex_taken_as_is(self):
        p = Polyline()
        p.push_back_relative(Vertex(5, 5))
        p.push_back_relative(Vertex(1, 0))
        p.push_back_relative(Vertex(0, -2))
        assert [v.as_tuple() for v in p] == [(5, 5), (6, 5), (6, 3)]

    def test_extend_keeps_order_and_metadata(self):
        p = Polyline(closed=True, reference=3)
        p.push_back(Vertex(0, 0))
        q = Polyline()
        q.push_back(Vertex(1, 1))
        q.push_back(Vertex(0, 0))
        p.extend(q)
        assert [v.as_tuple() for v in p] == [(0, 0), (1, 1), (0, 0)]
        assert p.closed is True
        assert p.reference == 3

    def test_container_protocol(self):
        p = square()
        assert p.size() == 4
        assert len(p) == 4
        assert p[1] == Vertex(2, 0)
        assert p[-1] == Vertex(0, 2)
        assert not p.is_empty()

    def test_limits(self):
        p = Polyline()
        p.push_back(Vertex(-1, 4))
        p.push_back(Vertex(3, -2))
        assert p.limits() == (-1, -2, 3, 4)
        assert Polyline().limits() == (0.0, 0.0, 0.0, 0.0)

    def test_length_perimeter_area(self):
        p = square(side=2.0)
        assert p.length() == pytest.approx(6.0)
        assert p.perimeter() == pytest.approx(8.0)
        assert p.area() == pytest.approx(4.0)

    def test_area_is_unsigned(self):
        p = Polyline()
        for x, y in [(0, 0), (0, 2), (2, 2), (2, 0)]:
            p.push_back(Vertex(x, y))
        assert p.area() == pytest.approx(4.0)

    def test_degenerate_measurements(self):
        p = Polyline()
        p.push_back(Vertex(1, 1))
        assert p.length() == 0.0
        assert p.perimeter() == 0.0
        assert p.area() == 0.0

    def test_diagonal_length(self):
        p = Polyline()
        p.push_back(Vertex(0, 0))
        p.push_back(Vertex(1, 1))
        assert p.length() == pytest.approx(math.sqrt(2))

    def test_display_and_dict(self):
        p = square(side=1.0, reference=2)
        p.dose = 0.5
        assert p.display_string().startswith("[closed dose=0.5 ref=2]")
        d = p.to_dict()
        assert d["vertices"][2] == (1.0, 1.0)
        assert d["closed"] is True
        assert d["reference"] == 2


class TestPattern:

    def test_append_extend_iterate(self):
        pattern = Pattern()
        pattern.append(square(reference=1))
        pattern.extend([square(reference=0), square(reference=1)])
        assert len(pattern) == 3
        assert pattern[0].reference == 1
        assert [p.reference for p in pattern] == [1, 0, 1]

    def test_references_sorted_distinct(self):
        pattern = Pattern([square(reference=2), square(reference=0), square(reference=2)])
        assert pattern.references() == [0, 2]

    def test_total_vertices_and_limits(self):
        small = square(side=1.0)
        far = Polyline()
        far.push_back(Vertex(10, -5))
        pattern = Pattern([small, far])
        assert pattern.total_vertices() == 5
        assert pattern.limits() == (0.0, -5, 10, 1.0)

    def test_empty_pattern(self):
        pattern = Pattern()
        assert len(pattern) == 0
        assert pattern.limits() == (0.0, 0.0, 0.0, 0.0)
        assert pattern.references() == []
        assert pattern.to_dict() == {"polylines": []}
