from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers:
        if getattr(handler, "_skycast", False):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._skycast = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)
