"""Configuration file reading for the chainresolve CLI and library users.

Brief:
  This module centralizes:
    - reading YAML config files
    - merging variables from config/env/CLI
    - JSON Schema validation (including variable expansion performed by
      validate_config)
    - building a Resolution from the validated mapping

Inputs:
  - YAML config paths and `KEY=YAML` variable assignments

Outputs:
  - Validated config dicts and Resolution instances
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..resolution import Resolution
from .config_schema import is_var_key, validate_config

logger = logging.getLogger(__name__)

# Environment variables with this prefix are exposed to ${VAR} expansion
# with the prefix stripped (CHAINRESOLVE_INFURA_KEY -> ${INFURA_KEY}).
ENV_PREFIX = "CHAINRESOLVE_"


def _parse_yaml_value(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge config/environment/CLI variables into cfg['variables'].

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping (defaults to os.environ).

    Outputs:
      - dict: The merged variables mapping stored back onto cfg['variables'].

    Precedence:
      - CLI (-v/--var) overrides environment overrides config-file variables.

    Example:
      >>> cfg = {'variables': {'TIMEOUT': 100}}
      >>> parse_config_variables(cfg, cli_vars=['TIMEOUT=300'], environ={})['TIMEOUT']
      300
    """
    base = cfg.get("variables")
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ValueError("config.variables must be a mapping when present")

    env = os.environ if environ is None else environ
    for k, v in env.items():
        if not k.startswith(ENV_PREFIX):
            continue
        name = k[len(ENV_PREFIX) :]
        if is_var_key(name):
            merged[name] = _parse_yaml_value(str(v))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ValueError(f"Invalid -v/--var value (expected KEY=YAML), got: {assignment!r}")
        k, raw = assignment.split("=", 1)
        k = k.strip()
        if not is_var_key(k):
            raise ValueError(
                f"Invalid variable name {k!r} (must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
            )
        merged[k] = _parse_yaml_value(raw)

    cfg["variables"] = merged
    return merged


def parse_config_file(
    config_path: str,
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Read, variable-merge, and schema-validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML configuration file.
      - cli_vars: Optional list of CLI `KEY=YAML` assignments (from -v/--var).
      - environ: Optional environment mapping for CHAINRESOLVE_* variables.

    Outputs:
      - dict: Parsed configuration mapping with variables expanded.

    Raises:
      - ValueError: When the root is not a mapping, variables are invalid, or
        schema validation fails.
    """
    with open(config_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    parse_config_variables(cfg, cli_vars=list(cli_vars or []), environ=environ)
    validate_config(cfg, config_path=config_path)
    logger.debug("Loaded configuration from %s", config_path)
    return cfg


def load_resolution(
    config_path: str,
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Tuple[Dict[str, Any], Resolution]:
    """Brief: parse_config_file() followed by Resolution.from_config()."""
    cfg = parse_config_file(config_path, cli_vars=cli_vars, environ=environ)
    return cfg, Resolution.from_config(cfg)
