# ============================================================================
# polyingest -- Structured Logger (polyingest/monitoring/logger.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   Sets up the logging system for the whole package. Every reader event
#   worth keeping (file opened, record rejected by the layer filter, path
#   discarded at end of file, pattern read) is recorded as a structured
#   JSON line.
#
# WHY "STRUCTURED" LOGGING?
#   Normal logging: "Read 412 polylines from mask.dxf"
#   Structured logging: {"event": "pattern_read", "file": "mask.dxf", "records": 412}
#
#   A lab engineer converting hundreds of exposure logs can then grep or
#   jq the log files instead of reading them by eye.
#
# LOG FILE TYPES:
#   - app_YYYY-MM-DD.log:   reader and driver events
#   - error_YYYY-MM-DD.log: failures reported by the command-line tool
#
# HOW TO USE (from other code):
#   from polyingest.monitoring.logger import get_app_logger
#   logger = get_app_logger("dxf_parser")
#   logger.info("reader_opened", file="mask.dxf")
#
# DEPENDENCIES:
#   - structlog: A structured logging library that outputs JSON
#   - Python's built-in logging module (structlog builds on top of it)
#
# INTERNET ACCESS: None -- writes to local files only
# ============================================================================

import os
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any
import structlog
from datetime import datetime


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

class LoggerSetup:
    """Initialize and configure structlog for polyingest"""

    def __init__(self, log_dir: str = "logs", level: str = "INFO"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.level = getattr(logging, str(level).upper(), logging.INFO)
        self._configured = False

    def setup(self) -> None:
        """Configure structlog with timestamped log files"""
        if self._configured:
            return

        # Console output goes to stderr so the command-line tool's JSON
        # on stdout stays clean.
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stderr,
            level=logging.WARNING,
        )

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer(),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._configured = True

    def get_logger(self, name: str) -> structlog.BoundLogger:
        """Get a named logger (console only)"""
        self.setup()
        return structlog.get_logger(name)

    def get_file_logger(self, name: str, log_type: str = "app") -> structlog.BoundLogger:
        """
        Get a logger that also writes to a specific log file.
        log_type: "app", "error"
        """
        self.setup()
        logger = structlog.get_logger(name)

        log_file = self.log_dir / f"{log_type}_{self._get_date_str()}.log"
        py_logger = logging.getLogger(name)

        # Every reader instance asks for its logger; attach the file
        # handler only once per (logger, file).
        already = any(
            isinstance(h, logging.FileHandler)
            and Path(h.baseFilename) == log_file.resolve()
            for h in py_logger.handlers
        )
        if not already:
            handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            py_logger.addHandler(handler)
        py_logger.setLevel(self.level)

        return logger

    @staticmethod
    def _get_date_str() -> str:
        """Get current date as YYYY-MM-DD string"""
        return datetime.now().strftime("%Y-%m-%d")


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_logger_setup: Optional[LoggerSetup] = None


def initialize_logging(log_dir: Optional[str] = None, level: str = "INFO") -> LoggerSetup:
    """
    Initialize logging (call once at startup).

    log_dir falls back to the POLYINGEST_LOG_DIR environment variable,
    then to ./logs.
    """
    global _logger_setup
    if _logger_setup is None:
        if log_dir is None:
            log_dir = os.getenv("POLYINGEST_LOG_DIR") or "logs"
        _logger_setup = LoggerSetup(log_dir, level)
        _logger_setup.setup()
    return _logger_setup


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger (auto-initializes if needed)"""
    if _logger_setup is None:
        initialize_logging()
    return _logger_setup.get_logger(name)


def get_app_logger(name: str = "app") -> structlog.BoundLogger:
    """Get app logger (writes to app_YYYY-MM-DD.log)"""
    if _logger_setup is None:
        initialize_logging()
    return _logger_setup.get_file_logger(name, "app")


def get_error_logger(name: str = "error") -> structlog.BoundLogger:
    """Get error logger (writes to error_YYYY-MM-DD.log)"""
    if _logger_setup is None:
        initialize_logging()
    return _logger_setup.get_file_logger(name, "error")


# ============================================================================
# LOG ENTRY BUILDERS (for consistent structured data)
# ============================================================================

class IngestLogEntry:
    """Builder for the structured summary logged after one file is read"""

    @staticmethod
    def build(
        file: str,
        parser: str,
        records: int,
        vertices: int,
        latency_ms: float,
        layers: Optional[list] = None,
        error: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build a structured ingestion log entry"""
        return {
            "file": file,
            "parser": parser,
            "records": records,
            "vertices": vertices,
            "latency_ms": round(latency_ms, 2),
            "layers": layers or [],
            "error": error,
            "timestamp": datetime.now().isoformat(),
        }
