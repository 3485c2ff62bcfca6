import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

ROOT_LOGGER_NAME = "replicant"
LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"


class PprintLogger:
    """A logger wrapper that pretty-prints structured log messages.

    Dumper and Loader log dicts (``{"message": ..., "type": ..., "id": ...}``)
    rather than preformatted strings. This wrapper renders them with pformat,
    and pydantic models (references, tuples, config) with model_dump_json.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _format_message(self, msg: Any, pprint: bool = True) -> str:
        if not pprint or isinstance(msg, str):
            return str(msg)
        if isinstance(msg, BaseModel):
            return msg.model_dump_json(indent=2)
        return pformat(msg, width=120, depth=None)

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        """Log a debug message with optional pprint formatting."""
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        """Log an info message with optional pprint formatting."""
        self._logger.info(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        """Log a warning message with optional pprint formatting."""
        self._logger.warning(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        """Log an error message with optional pprint formatting."""
        self._logger.error(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        """Log an error message plus the active traceback."""
        self._logger.exception(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def get_logger(name: str) -> PprintLogger:
    """Return a PprintLogger for a module, usually called with __name__."""
    return PprintLogger(logging.getLogger(name))


def setup_logging(level: int | str = logging.INFO) -> PprintLogger:
    """Attach a stream handler to the package logger and set its level.

    Calling this more than once only updates the level; handlers are not
    duplicated.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)
    return PprintLogger(logger)
