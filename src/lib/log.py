"""
Logging for the presenter, on top of Loguru.

LOG() writes a message if the verbosity of the current ProgramState allows
it. The state is looked up in a context variable, so library code never
has to pass it around:

    - the start-up pipeline connects its state once in main(),
    - the HTTP server connects the server state for every request, which
      makes it visible to handlers running in FastAPI's thread pool.

Verbosity levels and the Loguru level a message is emitted with:

    1  INFO   start-up, listening address, fetch failures
    2  DEBUG  per-request summaries (slides, images)
    3  TRACE  every Zettelstore request, cache hits, skipped zettel

Uvicorn logs through the standard logging module; logging_intercept()
routes those records into the same sink.

Usage:
    from .log import LOG, state_connectToLogger

    state_connectToLogger(state)
    LOG("Listening: 0.0.0.0:23120", level=1)
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

_program_state: ContextVar[Optional[Any]] = ContextVar("program_state", default=None)

LEVEL_NAMES = {1: "INFO", 2: "DEBUG", 3: "TRACE"}

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{name: <24}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="TRACE")


def state_connectToLogger(state: Any) -> None:
    """
    Make a ProgramState the logging context of the current task or thread.

    Args:
        state: Object with a verbosity attribute, usually ProgramState
    """
    _program_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the connected state; 0 (silent) if none is connected"""
    state = _program_state.get()
    return getattr(state, "verbosity", 0) if state is not None else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the connected state's verbosity allows.

    Args:
        message: Log message
        level: Minimum verbosity required (1=normal, 2=verbose, 3=debug)
        **kwargs: Passed on to Loguru for message formatting

    Example:
        LOG("Slide set 20230101120000: 12 slides, 2 images", level=2)
    """
    if verbosity_get() < level:
        return
    name = LEVEL_NAMES.get(level, "TRACE")
    logger.opt(depth=1).log(name, message, **kwargs)


class InterceptHandler(logging.Handler):
    """Forward standard logging records to Loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def logging_intercept(*names: str) -> None:
    """
    Route the standard loggers with the given names to Loguru.

    Args:
        names: Logger names, e.g. "uvicorn", "uvicorn.access"
    """
    handler = InterceptHandler()
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False
