# ============================================================================
# test_logger.py -- Tests for structured logging
# ============================================================================
#
# COVERS:
#   log file location, JSON events written by the readers and the driver,
#   the ingestion summary builder
#
# RUN:
#   python -m pytest tests/test_logger.py -v
#
# INTERNET ACCESS: NONE
# ============================================================================

import json
import logging
import os
from datetime import datetime
from pathlib import Path

from polyingest.core.config import Config
from polyingest.monitoring.logger import IngestLogEntry, get_app_logger, initialize_logging
from polyingest.parsers.ingest import read_pattern


def app_log_events():
    log_dir = Path(initialize_logging().log_dir)
    log_file = log_dir / f"app_{datetime.now().strftime('%Y-%m-%d')}.log"
    for handler in logging.getLogger("ingest").handlers:
        handler.flush()
    events = []
    for line in log_file.read_text(encoding="utf-8").splitlines():
        try:
            events.append(json.loads(line))
        except ValueError:
            continue
    return events


class TestLogger:

    def test_log_dir_comes_from_environment(self):
        setup = initialize_logging()
        assert Path(setup.log_dir) == Path(os.environ["POLYINGEST_LOG_DIR"])

    def test_file_handler_attached_once(self):
        get_app_logger("repeat_test")
        get_app_logger("repeat_test")
        handlers = [
            h for h in logging.getLogger("repeat_test").handlers
            if isinstance(h, logging.FileHandler)
        ]
        assert len(handlers) == 1

    def test_reader_and_driver_events_are_written(self, write_file):
        path = write_file("logged.wip", "MoveAbsolute(1,1,0); SetTrigger(off); MoveAbsolute(0,0,0);\n")
        read_pattern(path, Config())
        events = [e for e in app_log_events() if e.get("file") == str(path)]
        names = [e["event"] for e in events]
        assert "reader_opened" in names
        assert "motion_log_untriggered_path_discarded" in names
        assert "reader_closed" in names
        summary = [e for e in events if e["event"] == "pattern_read"][0]
        assert summary["records"] == 1
        assert summary["vertices"] == 2
        assert summary["parser"] == "MotionLogParser"

    def test_ingest_log_entry(self):
        entry = IngestLogEntry.build(
            file="a.dxf", parser="DxfParser", records=3, vertices=7,
            latency_ms=12.3456, layers=["L1"],
        )
        assert entry["latency_ms"] == 12.35
        assert entry["layers"] == ["L1"]
        assert entry["error"] is None
        assert "timestamp" in entry
