"""
Brief: Tests for chainresolve.config.logging_config.init_logging and formatters.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import logging.handlers
from pathlib import Path

from chainresolve.config.logging_config import (
    BracketLevelFormatter,
    SyslogFormatter,
    apply_logger_levels,
    init_logging,
    resolve_level,
)


def test_init_logging_adds_stderr_handler(caplog):
    """
    Brief: init_logging configures root logger with stderr handler by default.

    Inputs:
      - cfg: minimal dict with level

    Outputs:
      - None: Asserts StreamHandler present and level applied
    """
    caplog.set_level(logging.DEBUG)
    init_logging({"level": "debug"})
    root = logging.getLogger()
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)
    assert root.level == logging.DEBUG


def test_init_logging_without_stderr():
    """
    Brief: stderr: false leaves no stream handler behind.

    Inputs:
      - cfg: stderr disabled

    Outputs:
      - None: Asserts root has no handlers
    """
    init_logging({"level": "warn", "stderr": False})
    root = logging.getLogger()
    assert root.handlers == []
    assert root.level == logging.WARNING


def test_init_logging_file_handler_writes(tmp_path):
    """
    Brief: init_logging creates file handler and writes formatted entries.

    Inputs:
      - cfg: file path and level

    Outputs:
      - None: Asserts file created and contains message
    """
    log_path = tmp_path / "logs" / "chainresolve.log"
    init_logging({"level": "info", "file": str(log_path), "stderr": False})
    logging.getLogger("chainresolve.test").info("file message")
    for h in logging.getLogger().handlers:
        h.flush()
    content = Path(log_path).read_text()
    assert "file message" in content
    assert "[info] chainresolve.test:" in content


def test_init_logging_syslog_success(monkeypatch):
    """
    Brief: init_logging attaches a syslog handler when configured.

    Inputs:
      - syslog: True or dict

    Outputs:
      - None: Asserts dummy handler added without raising
    """
    created = {}

    class DummySysLogHandler(logging.Handler):
        LOG_USER = 8
        LOG_LOCAL0 = 128

        def __init__(self, address=None, facility=None):
            super().__init__()
            created["address"] = address
            created["facility"] = facility

        def setFormatter(self, fmt):
            created["formatter"] = fmt

        def emit(self, record):
            pass

    monkeypatch.setattr(logging.handlers, "SysLogHandler", DummySysLogHandler)
    init_logging({"syslog": True, "stderr": False})
    assert created["address"] == "/dev/log"
    assert isinstance(created["formatter"], SyslogFormatter)

    created.clear()
    init_logging({"syslog": {"address": ["localhost", 514], "facility": "local0"}, "stderr": False})
    assert created["address"] == ("localhost", 514)
    assert created["facility"] == 128


def test_init_logging_syslog_failure_warns(monkeypatch):
    """
    Brief: init_logging logs a warning if syslog handler setup fails.

    Inputs:
      - monkeypatch: make SysLogHandler raise OSError

    Outputs:
      - None: Asserts warning emitted
    """

    class FailingSysLogHandler:
        LOG_USER = object()

        def __init__(self, *a, **kw):
            raise OSError("no syslog")

    monkeypatch.setattr(logging.handlers, "SysLogHandler", FailingSysLogHandler)

    caught = {"msg": None}
    root = logging.getLogger()

    def fake_warning(msg, *args, **kwargs):
        caught["msg"] = msg % args if args else str(msg)

    monkeypatch.setattr(root, "warning", fake_warning)

    init_logging({"syslog": True})
    assert caught["msg"] and "Failed to configure syslog" in caught["msg"]


def test_formatters_produce_expected_tags():
    """
    Brief: BracketLevelFormatter and SyslogFormatter include bracketed tags.

    Inputs:
      - LogRecord instances at different levels

    Outputs:
      - None: Asserts formatted strings contain expected tags
    """
    fmt = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")
    rec = logging.LogRecord("n", logging.ERROR, __file__, 1, "m", (), None)
    rec.created = 0
    out = fmt.format(rec)
    assert out.startswith("1970-01-01T00:00:00Z [error] n:")

    s = SyslogFormatter()
    rec2 = logging.LogRecord("n2", logging.WARNING, __file__, 2, "m2", (), None)
    assert s.format(rec2) == "[warn] n2: m2"


def test_resolve_level_defaults_to_info():
    """
    Brief: Unknown and missing level names fall back to INFO.

    Inputs:
      - None

    Outputs:
      - None: Asserts level constants
    """
    assert resolve_level("CRIT") == logging.CRITICAL
    assert resolve_level(None) == logging.INFO
    assert resolve_level("verbose") == logging.INFO


def test_init_logging_applies_logger_levels():
    """
    Brief: `loggers:` levels are applied over the urllib3 default.

    Inputs:
      - cfg: loggers mapping

    Outputs:
      - None: Asserts per-logger levels
    """
    transports = logging.getLogger("chainresolve.transports")
    urllib3_logger = logging.getLogger("urllib3")
    saved = transports.level, urllib3_logger.level
    try:
        init_logging({"stderr": False, "loggers": {"chainresolve.transports": "debug"}})
        assert transports.level == logging.DEBUG
        assert urllib3_logger.level == logging.WARNING

        apply_logger_levels({"urllib3": "error"})
        assert urllib3_logger.level == logging.ERROR
    finally:
        transports.setLevel(saved[0])
        urllib3_logger.setLevel(saved[1])
