"""Logging setup for the chainresolve CLI and embedding applications.

Brief:
  Library modules only ever call `logging.getLogger(__name__)`; handlers are
  attached here, once, from the `logging:` block of a config file.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}

# HTTP client loggers are chatty at debug (one line per JSON-RPC round trip).
DEFAULT_LOGGER_LEVELS: Dict[str, str] = {
    "urllib3": "warn",
}

DEFAULT_FORMAT = "%(asctime)s %(level_tag)s %(name)s: %(message)s"
DEFAULT_SYSLOG_ADDRESS = "/dev/log"


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class SyslogFormatter(logging.Formatter):
    """Level tag, logger name and message; syslog stamps the time itself."""

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Bracketed lowercase level tags and UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def resolve_level(value: Any) -> int:
    """
    Brief: Map a config level string to a logging constant.

    Example:
      >>> resolve_level("warn") == logging.WARNING
      True
    """
    return _LEVELS.get(str(value or "info").lower(), logging.INFO)


def _syslog_handler(syslog_cfg: Any) -> logging.Handler:
    address: Any = DEFAULT_SYSLOG_ADDRESS
    facility = logging.handlers.SysLogHandler.LOG_USER
    if isinstance(syslog_cfg, dict):
        address = syslog_cfg.get("address", DEFAULT_SYSLOG_ADDRESS)
        if isinstance(address, list):
            address = tuple(address)
        facility = getattr(
            logging.handlers.SysLogHandler,
            f"LOG_{str(syslog_cfg.get('facility', 'USER')).upper()}",
            facility,
        )
    handler = logging.handlers.SysLogHandler(address=address, facility=facility)
    handler.setFormatter(SyslogFormatter())
    return handler


def apply_logger_levels(levels: Optional[Mapping[str, Any]]) -> None:
    """
    Brief: Set per-logger levels on top of the root level.

    Inputs:
      - levels: {logger name: level name}; merged over DEFAULT_LOGGER_LEVELS.

    Outputs:
      - None.

    Example:
      >>> apply_logger_levels({"chainresolve.transports": "debug"})
    """
    merged = dict(DEFAULT_LOGGER_LEVELS)
    merged.update(levels or {})
    for name, value in merged.items():
        logging.getLogger(name).setLevel(resolve_level(value))


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Initialize logging from the `logging:` section of a config file.

    Args:
        cfg: mapping with optional keys:
            - level: debug, info, warn, error, crit (default: info)
            - stderr: log to stderr (default: True)
            - file: path to a log file
            - syslog: True, or a dict with address / facility
            - loggers: {logger name: level}, e.g. to trace only the
              JSON-RPC transport with `chainresolve.transports: debug`

    Example config:
        {
            "level": "info",
            "file": "./chainresolve.log",
            "loggers": {"chainresolve.backends.uns": "debug"},
        }
    """
    cfg = cfg or {}

    formatter = BracketLevelFormatter(fmt=DEFAULT_FORMAT)
    root = logging.getLogger()
    root.setLevel(resolve_level(cfg.get("level", "info")))

    for h in list(root.handlers):
        root.removeHandler(h)

    if cfg.get("stderr", True):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        path = os.path.abspath(os.path.expanduser(file_path.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if cfg.get("syslog"):
        try:
            root.addHandler(_syslog_handler(cfg["syslog"]))
        except OSError as e:  # pragma: no cover - depends on a local syslog socket
            root.warning("Failed to configure syslog: %s", e)

    apply_logger_levels(cfg.get("loggers"))
    logging.captureWarnings(True)
