from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

LOGGER_NAME = "bundlehost"
LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

_CONFIGURED = False
_HANDLER: Optional[logging.Handler] = None


def configure_logging(base_dir: Optional[Path] = None, level: int = logging.INFO) -> Dict[str, str]:
    """Attach the key=value file handler to the ``bundlehost`` logger tree.

    Runtime modules log through ``logging.getLogger(__name__)``; the handler
    is installed on the package loggers so those records land in one file.
    """
    global _CONFIGURED, _HANDLER
    root = base_dir or Path("data/roaming")
    log_dir = root / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "bundlehost.log"

    logger_name = LOGGER_NAME if base_dir is None else f"{LOGGER_NAME}.test"
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False

    if base_dir is None and not _CONFIGURED:
        handler = _file_handler(log_path)
        logger.addHandler(handler)
        for name in ("bundle_runtime", "runtime_bus"):
            package_logger = logging.getLogger(name)
            package_logger.setLevel(level)
            package_logger.addHandler(handler)
        _HANDLER = handler
        _CONFIGURED = True
    elif base_dir is not None and not logger.handlers:
        logger.addHandler(_file_handler(log_path))

    return {
        "log_path": str(log_path),
        "format": "kv",
        "handlers": "file",
        "logger_name": logger_name,
    }


def _file_handler(log_path: Path) -> logging.Handler:
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler
