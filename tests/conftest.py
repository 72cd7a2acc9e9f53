# ============================================================================
# conftest.py -- Shared Test Fixtures for the polyingest Test Suite
# ============================================================================
#
# WHAT THIS FILE DOES:
#   Pytest automatically loads this file before any test runs.
#   It provides:
#     1. sys.path setup so "from polyingest.core.X import Y" works from
#        any test without installing the package
#     2. A throwaway log directory, so test runs never write into ./logs
#     3. Builders for small DXF R12 documents and motion logs
#
# INTERNET ACCESS: NONE
# ============================================================================

import os
import sys
import tempfile
from pathlib import Path

import pytest

# -- sys.path setup --
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# -- log directory: must be set before the first logger is created --
os.environ.setdefault("POLYINGEST_LOG_DIR", tempfile.mkdtemp(prefix="polyingest_logs_"))


# Environment overrides that would leak between tests
_OVERRIDE_VARS = (
    "POLYINGEST_DXF_LAYERS",
    "POLYINGEST_DXF_FILTER_MODE",
    "POLYINGEST_CONSTRUCTION_LINES",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _OVERRIDE_VARS:
        monkeypatch.delenv(name, raising=False)


# ============================================================================
# DXF R12 BUILDERS
# ============================================================================
#
# WHY THIS EXISTS:
#   DXF files are two lines per value, which makes hand-written fixtures
#   long and easy to get wrong. These helpers build the entity text from
#   plain Python values; dxf_document() wraps it in the usual sections.
# ============================================================================

def dxf_pairs(*pairs):
    """(code, value), (code, value), ... -> DXF text."""
    return "".join(f"{code}\n{value}\n" for code, value in pairs)


def polyline_entity(layer, vertices, flags=1):
    """
    A POLYLINE with its VERTEX list and SEQEND.
    flags=None leaves out code 70 entirely.
    """
    header = [(0, "POLYLINE"), (8, layer), (66, 1)]
    if flags is not None:
        header.append((70, flags))
    text = dxf_pairs(*header)
    for x, y in vertices:
        text += dxf_pairs((0, "VERTEX"), (8, layer), (10, x), (20, y), (30, 0.0))
    text += dxf_pairs((0, "SEQEND"), (8, layer))
    return text


def point_entity(layer, x, y):
    return dxf_pairs((0, "POINT"), (8, layer), (10, x), (20, y), (30, 0.0))


def line_entity(layer, x1, y1, x2, y2):
    return dxf_pairs(
        (0, "LINE"), (8, layer), (10, x1), (20, y1), (30, 0.0), (11, x2), (21, y2), (31, 0.0)
    )


def circle_entity(layer, x, y, radius):
    return dxf_pairs((0, "CIRCLE"), (8, layer), (10, x), (20, y), (30, 0.0), (40, radius))


def dxf_document(*entities, blocks=()):
    """HEADER, BLOCKS (optional entity text inside one block), ENTITIES, EOF."""
    text = dxf_pairs((0, "SECTION"), (2, "HEADER"), (9, "$ACADVER"), (1, "AC1009"), (0, "ENDSEC"))
    text += dxf_pairs((0, "SECTION"), (2, "BLOCKS"))
    if blocks:
        text += dxf_pairs((0, "BLOCK"), (8, "0"), (2, "SYMBOL"), (70, 0))
        text += "".join(blocks)
        text += dxf_pairs((0, "ENDBLK"))
    text += dxf_pairs((0, "ENDSEC"))
    text += dxf_pairs((0, "SECTION"), (2, "ENTITIES"))
    text += "".join(entities)
    text += dxf_pairs((0, "ENDSEC"), (0, "EOF"))
    return text


# ============================================================================
# FILE FIXTURES
# ============================================================================

@pytest.fixture
def write_file(tmp_path):
    """Write text to tmp_path/<name> and return the path."""
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def vertices_of():
    """Polyline -> list of (x, y) tuples, for readable assertions."""
    def _vertices(polyline):
        return [v.as_tuple() for v in polyline]
    return _vertices
