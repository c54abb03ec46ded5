from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_ENV = "MARKDOWN_GRAPH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | %(message)s"


def _level_number(level: str | None) -> int:
    name = (level or os.getenv(LOG_LEVEL_ENV, "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(level: str | None = None, log_file: Path | None = None) -> None:
    """
    Configure the root logger. Handlers are installed once per process; later
    calls only adjust the level and add the file handler if it is missing.

    Console output goes to stderr.
    """
    level_number = _level_number(level)
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level_number)
    else:
        logging.basicConfig(level=level_number, format=LOG_FORMAT, stream=sys.stderr)
    if log_file is not None:
        _ensure_file_handler(root_logger, Path(log_file), level_number)


def _ensure_file_handler(logger: logging.Logger, log_file: Path, level: int) -> None:
    target = log_file.resolve()
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == target:
            return
    target.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
