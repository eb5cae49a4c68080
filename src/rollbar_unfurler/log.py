"""Logging configuration with Rich formatting.

All application loggers live under the "rollbar_unfurler" namespace so the
configured level applies to them without turning up third-party chatter.
"""

import logging
from rich.logging import RichHandler
from .config import get_settings

ROOT_LOGGER = "rollbar_unfurler"

def setup_logging():
    settings = get_settings()
    logging.basicConfig(
        level=logging.WARNING,
        format="[%(name)s] %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)]
    )
    logging.getLogger(ROOT_LOGGER).setLevel(settings.LOG_LEVEL)
    # uvicorn's access log is the only request log we keep
    logging.getLogger("uvicorn").setLevel(settings.LOG_LEVEL)

def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. get_logger("pipeline") -> rollbar_unfurler.pipeline."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
