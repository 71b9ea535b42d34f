"""
Root-logger setup for CLI runs.

``configure_logging`` is called once by each CLI command after the config is
loaded.  Library modules only ever do ``logger = logging.getLogger(__name__)``
and log stage boundaries at INFO and rule firings at DEBUG.

Records go to stderr: ``evaluate --json`` prints the report on stdout and the
two streams must not mix.  With ``[logging] json_format = true`` each record
becomes one JSON line, e.g.::

    {"ts": "2026-03-02T09:30:00Z", "level": "INFO",
     "logger": "acquisition_engine.pipeline.evaluate", "msg": "Evaluation ... started"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from acquisition_engine.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Present on every LogRecord; anything else was passed through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields are merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict[str, Any] = {
            "ts": created.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def _attach(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root handlers according to ``config``.

    A stderr handler is always installed; a UTF-8 file handler is added when
    ``config.log_file`` is set (its parent directory is created).
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = (
        _JsonFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )
    handlers = [_attach(logging.StreamHandler(sys.stderr), level, formatter)]

    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_attach(logging.FileHandler(path, encoding="utf-8"), level, formatter))

    logging.basicConfig(level=level, handlers=handlers, force=True)
