# ============================================================================
# polyingest -- Configuration (polyingest/core/config.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   The single source of truth for every reader setting. Instead of each
#   caller remembering that the DXF reader wants "two bools, one int and
#   one string", the settings live here with names and defaults.
#
# HOW IT WORKS:
#   1. Python "dataclasses" define every setting with a sensible default
#   2. A YAML file (config/default_config.yaml) can override those defaults
#   3. Environment variables can override YAML (for one-off runs)
#
#   Priority: env vars > YAML file > hardcoded defaults
#
# USAGE:
#   from polyingest.core.config import load_config
#   config = load_config(".")                   # load from project dir
#   config = load_config(".", "litho.yaml")     # load specific file
#   print(config.dxf.layers_to_read)            # typed access
#   print(config.motion_log.construction_lines)
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import os
import sys
import yaml
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path


def _env_flag(name: str):
    """Return True/False from an env var like "1"/"yes", or None if unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


# -------------------------------------------------------------------
# Sub-configs: each one maps to a section in the YAML file
# -------------------------------------------------------------------

@dataclass
class DxfConfig:
    """
    DXF R12 reader settings.

    layer_filter_mode is either a name or its number:
      0 all                            -- every layer is read
      1 verbatim                       -- layers_to_read is one layer name
      2 comma_separated_verbatim_list  -- layers_to_read is "L1,L2,L3"
      3 ECMAScript  4 basic  5 extended  6 awk  7 grep  8 egrep
                                       -- layers_to_read is a regular
                                          expression in that dialect

    Defaults: every layer read, references numbered in layer discovery
    order, BLOCKS section skipped.
    """
    set_reference_from_layer: bool = True
    include_blocks: bool = False
    layer_filter_mode: str = "all"
    layers_to_read: str = ""

    def __post_init__(self) -> None:
        env_layers = os.getenv("POLYINGEST_DXF_LAYERS")
        if env_layers is not None:
            self.layers_to_read = env_layers
        env_mode = os.getenv("POLYINGEST_DXF_FILTER_MODE")
        if env_mode:
            self.layer_filter_mode = env_mode.strip()
        # YAML may give the mode as an integer
        self.layer_filter_mode = str(self.layer_filter_mode)


@dataclass
class MotionLogConfig:
    """
    Motion-command log reader settings.

    construction_lines:
      False (default) -- only exposed paths (ended by SetTrigger(off)) are
                         returned; travel moves are dropped.
      True            -- travel paths (ended by SetTrigger(on)) are also
                         returned, tagged with reference = 1.
    """
    construction_lines: bool = False

    def __post_init__(self) -> None:
        flag = _env_flag("POLYINGEST_CONSTRUCTION_LINES")
        if flag is not None:
            self.construction_lines = flag


@dataclass
class LoggingConfig:
    """Where structured logs go and how chatty they are."""
    log_dir: str = "logs"
    level: str = "INFO"            # DEBUG also logs every rejected DXF record

    def __post_init__(self) -> None:
        env_dir = os.getenv("POLYINGEST_LOG_DIR")
        if env_dir:
            self.log_dir = env_dir
        if self.log_dir:
            self.log_dir = os.path.normpath(os.path.expandvars(self.log_dir))


# -------------------------------------------------------------------
# Master Config -- the one object that holds everything
# -------------------------------------------------------------------

@dataclass
class Config:
    """
    Master configuration object for polyingest.

    Example:
        config = load_config(".")
        print(config.dxf.layer_filter_mode)         # "all"
        print(config.motion_log.construction_lines) # False
    """
    dxf: DxfConfig = field(default_factory=DxfConfig)
    motion_log: MotionLogConfig = field(default_factory=MotionLogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# -------------------------------------------------------------------
# Helper: YAML dict -> dataclass (with safety net)
# -------------------------------------------------------------------

def _dict_to_dataclass(cls, data: dict):
    """
    Build a dataclass from a dictionary, ignoring unknown keys.

    SAFETY NET:
      If a YAML key does NOT match any dataclass field name, print a
      loud warning to stderr and suggest the closest field name. This
      catches "layers" vs "layers_to_read" style typos that would
      otherwise silently fall back to the default.
    """
    if not isinstance(data, dict):
        data = {}
    known_fields = {f.name for f in dataclasses.fields(cls)}

    filtered = {}
    for k, v in data.items():
        if k in known_fields:
            filtered[k] = v
        else:
            suggestion = ""
            for field_name in sorted(known_fields):
                if k in field_name or field_name in k:
                    suggestion = " Did you mean '" + field_name + "'?"
                    break
            print(
                "  [WARN] config/" + cls.__name__ + ": YAML key '"
                + str(k) + "' is not a recognized setting"
                + " -- IGNORED (using default)." + suggestion,
                file=sys.stderr,
            )

    return cls(**filtered)


# -------------------------------------------------------------------
# Main entry point: load_config()
# -------------------------------------------------------------------

def load_config(
    project_dir: str = ".",
    config_filename: str = "default_config.yaml",
) -> Config:
    """
    Load configuration from YAML file, with defaults and env var overrides.

    Parameters
    ----------
    project_dir : str
        Folder that contains the config/ subfolder.

    config_filename : str
        Name of the YAML config file inside config/.

    Returns
    -------
    Config
        Fully resolved configuration object ready for use.
    """
    config_path = Path(project_dir) / "config" / config_filename

    yaml_data: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                yaml_data = raw

    return Config(
        dxf=_dict_to_dataclass(DxfConfig, yaml_data.get("dxf", {})),
        motion_log=_dict_to_dataclass(MotionLogConfig, yaml_data.get("motion_log", {})),
        logging=_dict_to_dataclass(LoggingConfig, yaml_data.get("logging", {})),
    )
