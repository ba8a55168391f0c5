# agenda/logging_config.py
"""
Central logging setup: one stdout handler on the root logger, one format
for every module.
"""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()

    # Drop handlers left by uvicorn / earlier calls
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)-24s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    _configure_module_levels()

    logging.getLogger(__name__).info("Logging initialised (level=%s)", level.upper())


def _configure_module_levels() -> None:
    # Third-party noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
