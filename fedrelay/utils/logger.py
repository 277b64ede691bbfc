from __future__ import annotations

import functools
import inspect
import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Generator, ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")

LOGGER_NAME = "fedrelay"

_context: ContextVar[tuple[str, ...]] = ContextVar("log_context", default=())


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
        "reset": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.COLORS.get(record.levelno, self.COLORS["reset"])
        formatted = super().format(record)
        return f"{level_color}{formatted}{self.COLORS['reset']}"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class Logger:
    """Process-wide logger with component context."""

    _instance: Logger | None = None

    def __new__(cls) -> Logger:
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._setup()
            cls._instance = instance
        return cls._instance

    def _setup(self) -> None:
        self._logger = logging.getLogger(LOGGER_NAME)
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                ColoredFormatter(
                    fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.INFO)

    def configure(
        self,
        level: int | str = logging.INFO,
        json_output: bool = False,
        log_file: Path | None = None,
    ) -> None:
        """Replace handlers with console (and optional JSON file) output."""
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
        self._logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_formatter: logging.Formatter
        if json_output:
            console_formatter = JSONFormatter()
        else:
            console_formatter = ColoredFormatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        console_handler.setFormatter(console_formatter)
        self._logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(JSONFormatter())
            self._logger.addHandler(file_handler)

    @contextmanager
    def context(self, *parts: str) -> Generator[None, None, None]:
        """Prefix messages logged inside the block with `parts`."""
        token = _context.set(_context.get() + (".".join(parts),))
        try:
            yield
        finally:
            _context.reset(token)

    def _format(self, msg: str) -> str:
        stack = _context.get()
        if not stack:
            return msg
        return f"[{stack[-1]}] {msg}"

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(self._format(msg), *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(self._format(msg), *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(self._format(msg), *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(self._format(msg), *args, **kwargs)


def log_exec(func: Callable[P, T]) -> Callable[P, T]:
    """Log entry, exit and failure of the decorated callable."""
    logger = Logger()
    name = func.__qualname__

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
            logger.debug(f"Entering {name}")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{name} failed: {str(e)}")
                raise
            logger.debug(f"Exiting {name}")
            return result

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        logger.debug(f"Entering {name}")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{name} failed: {str(e)}")
            raise
        logger.debug(f"Exiting {name}")
        return result

    return sync_wrapper
