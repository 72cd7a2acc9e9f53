# ============================================================================
# test_ingest.py -- Tests for the registry, routing driver and CLI
# ============================================================================
#
# COVERS:
#   TestRegistry     -- extension and format lookup
#   TestIngest       -- open_reader / read_pattern with a Config
#   TestCli          -- python -m polyingest.tools.ingest_file
#
# RUN:
#   python -m pytest tests/test_ingest.py -v
#
# INTERNET ACCESS: NONE
# ============================================================================

import json

import pytest

import sys as _sys, os as _os
_sys.path.insert(0, _os.path.dirname(__file__))
from conftest import dxf_document, point_entity, polyline_entity

from polyingest.core.config import Config, DxfConfig, MotionLogConfig
from polyingest.core.exceptions import ConfigError, IoError, MotionLogParseError
from polyingest.parsers.dxf_parser import DxfParser
from polyingest.parsers.ingest import open_reader, read_pattern
from polyingest.parsers.motion_log_parser import MotionLogParser
from polyingest.parsers.registry import REGISTRY, ParserRegistry
from polyingest.tools.ingest_file import main


MOTION_LOG = "MoveAbsolute(1,1,0); SetTrigger(on); MoveAbsolute(2,2,0); SetTrigger(off);\n"


def layered_dxf():
    return dxf_document(
        point_entity("L1", 0, 0),
        point_entity("L2", 1, 1),
        polyline_entity("L1", [(0, 0), (4, 0), (4, 3)]),
    )


class TestRegistry:

    def test_extensions(self):
        assert REGISTRY.supported_extensions() == [".dxf", ".txt", ".wip", ".witec"]
        assert REGISTRY.get(".DXF").parser_cls is DxfParser
        assert REGISTRY.get(".witec").parser_cls is MotionLogParser
        assert REGISTRY.get(".svg") is None

    def test_formats(self):
        assert REGISTRY.supported_formats() == ["dxf", "motion_log"]
        assert REGISTRY.get_format("motion_log").name == "MotionLogParser"
        assert REGISTRY.get_format("svg") is None

    def test_register_new_extension(self):
        registry = ParserRegistry()
        registry.register(".log", "MotionLogParser", MotionLogParser, "motion_log")
        assert registry.get(".log").fmt == "motion_log"


class TestIngest:

    def test_open_reader_by_extension(self, write_file):
        reader = open_reader(write_file("a.dxf", dxf_document()), Config())
        try:
            assert isinstance(reader, DxfParser)
        finally:
            reader.close()

    def test_open_reader_applies_config(self, write_file):
        config = Config(
            dxf=DxfConfig(layer_filter_mode="verbatim", layers_to_read="L2",
                          set_reference_from_layer=False),
            motion_log=MotionLogConfig(construction_lines=True),
        )
        with open_reader(write_file("a.dxf", dxf_document()), config) as reader:
            assert reader.settings.layers_to_read == "L2"
            assert reader.settings.set_reference_from_layer is False
        with open_reader(write_file("b.wip", ""), config) as reader:
            assert reader.settings.construction_lines is True

    def test_unknown_extension_raises(self, write_file):
        with pytest.raises(ConfigError) as exc_info:
            open_reader(write_file("drawing.svg", ""), Config())
        assert ".svg" in str(exc_info.value)

    def test_unknown_format_raises(self, write_file):
        with pytest.raises(ConfigError):
            open_reader(write_file("a.dxf", ""), Config(), fmt="gerber")

    def test_format_overrides_extension(self, write_file):
        path = write_file("exposure.log", MOTION_LOG)
        pattern = read_pattern(path, Config(), fmt="motion_log")
        assert len(pattern) == 1

    def test_read_pattern_dxf(self, write_file):
        pattern = read_pattern(write_file("mask.dxf", layered_dxf()), Config())
        assert len(pattern) == 3
        assert pattern.references() == [0, 1]
        assert pattern.total_vertices() == 5
        assert pattern.limits() == (0, 0, 4, 3)

    def test_read_pattern_layer_filter(self, write_file):
        config = Config(dxf=DxfConfig(layer_filter_mode="verbatim", layers_to_read="L1"))
        pattern = read_pattern(write_file("mask.dxf", layered_dxf()), config)
        assert len(pattern) == 2
        assert pattern.references() == [0]

    def test_read_pattern_motion_log(self, write_file):
        path = write_file("run.wip", MOTION_LOG)
        assert len(read_pattern(path, Config())) == 1
        config = Config(motion_log=MotionLogConfig(construction_lines=True))
        assert read_pattern(path, config).references() == [0, 1]

    def test_read_pattern_propagates_parse_errors(self, write_file):
        path = write_file("bad.txt", "MoveAbsolute(1,1,0);\nFly();\n")
        with pytest.raises(MotionLogParseError):
            read_pattern(path, Config())

    def test_read_pattern_missing_file(self, tmp_path):
        with pytest.raises(IoError):
            read_pattern(tmp_path / "absent.dxf", Config())


class TestCli:

    def test_summary(self, write_file, tmp_path, capsys):
        path = write_file("mask.dxf", layered_dxf())
        assert main([str(path), "--config-dir", str(tmp_path)]) == 0
        out = capsys.readouterr().out
        assert "Records:     3" in out
        assert "Vertices:    5" in out
        assert "References:  0, 1" in out
        assert "Layers read: L1,L2" in out

    def test_json_output_with_layer_options(self, write_file, tmp_path, capsys):
        path = write_file("mask.dxf", layered_dxf())
        code = main([
            str(path), "--config-dir", str(tmp_path),
            "--filter-mode", "list", "--layers", "L2",
            "--no-reference-from-layer", "--json",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["layers_read"] == ["L2"]
        assert len(data["polylines"]) == 1
        assert data["polylines"][0]["vertices"] == [[1.0, 1.0]]

    def test_construction_lines_option(self, write_file, tmp_path, capsys):
        path = write_file("run.txt", MOTION_LOG)
        assert main([str(path), "--config-dir", str(tmp_path), "--construction-lines", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [p["reference"] for p in data["polylines"]] == [1, 0]

    def test_error_exit_code_and_json(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing.dxf"), "--config-dir", str(tmp_path)])
        assert code == 1
        data = json.loads(capsys.readouterr().out)
        assert data["error_type"] == "IoError"
        assert data["error_code"] == "IO-001"

    def test_bad_filter_mode_is_an_error(self, write_file, tmp_path, capsys):
        path = write_file("mask.dxf", layered_dxf())
        assert main([str(path), "--config-dir", str(tmp_path), "--filter-mode", "perl"]) == 1
        assert json.loads(capsys.readouterr().out)["error_code"] == "CONF-001"
