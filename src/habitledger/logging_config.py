"""Logging setup: console output plus a rotating JSON-lines file under DATA_DIR."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import BaseConfig

LOGGER_NAMESPACE = "habitledger"
LOG_FILENAME = "habitledger.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

_DEV_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s"
_PROD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` context is nested under ``"extra"``."""

    # Everything a bare LogRecord carries is not caller context.
    _STANDARD_ATTRS = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    ) | {"message", "asctime"}

    def _exception(self, record: logging.LogRecord) -> dict[str, Any]:
        exc_type, exc_value, _ = record.exc_info  # type: ignore[misc]
        return {
            "type": getattr(exc_type, "__name__", None),
            "message": None if exc_value is None else str(exc_value),
            "traceback": self.formatException(record.exc_info),  # type: ignore[arg-type]
        }

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = dict(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            module=record.module,
            function=record.funcName,
            line=record.lineno,
        )
        if record.exc_info:
            payload["exception"] = self._exception(record)

        context = {
            name: value
            for name, value in vars(record).items()
            if name not in self._STANDARD_ATTRS
        }
        if context:
            payload["extra"] = context
        return json.dumps(payload, default=str, ensure_ascii=False)


def _console_handler(dev_mode: bool) -> logging.Handler:
    handler = logging.StreamHandler()
    if dev_mode:
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter(_DEV_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter(_PROD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: BaseConfig) -> logging.Logger:
    """Attach console and JSON file handlers to the ``habitledger`` logger.

    Calling it again replaces the handlers rather than stacking them.

    Args:
        config: supplies DATA_DIR (log location) and DEV_MODE (verbosity)

    Returns:
        The namespace logger every ``get_logger`` child propagates to
    """
    log_path = Path(config.DATA_DIR) / "logs" / LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(logging.DEBUG if config.DEV_MODE else logging.INFO)
    logger.addHandler(_console_handler(config.DEV_MODE))
    logger.addHandler(_file_handler(log_path))

    logger.info("Logging initialized", extra={"dev_mode": config.DEV_MODE, "log_file": str(log_path)})
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``habitledger`` logger; already-qualified names pass through."""

    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


__all__ = ["JSONFormatter", "LOGGER_NAMESPACE", "get_logger", "setup_logging"]
