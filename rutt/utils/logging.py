"""Logging for rutt.

Everything logs under the ``rutt`` logger. :func:`init_logging` attaches three
handlers to it:

* a rich console handler (WARNING by default), detached while the full-screen
  interface owns the terminal
* ``app.log``, rotating JSON lines at the configured level
* ``events.log``, rotating JSON lines for records logged through
  :func:`log_event`

Every handler masks passwords, tokens and e-mail addresses before writing.
"""

import inspect
import json
import logging
import re
import time
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from rich.logging import RichHandler

from .paths import LOGS_DIR

ROOT_LOGGER = "rutt"

_LOG_DIR: Optional[Path] = None
_log_manager: Optional["LogManager"] = None

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _get_log_dir() -> Path:
    from .errors import FileSystemError

    global _LOG_DIR

    if _LOG_DIR is None:
        try:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                f"Failed to create log directory: {LOGS_DIR}", details={"path": str(LOGS_DIR)}
            ) from e
        _LOG_DIR = LOGS_DIR

    return _LOG_DIR


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRIBUTES}


## Formatting


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with ``extra`` fields collected separately."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "location": f"{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
        }

        extras = _record_extras(record)
        if extras:
            entry["extra"] = extras
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


## Masking


class SensitiveDataMasker:
    """Hides credentials and e-mail addresses in log text.

    ``strategy`` decides how a secret value is hidden: ``"full"`` replaces it
    with ``[REDACTED]``, ``"partial"`` keeps three characters at each end of
    values longer than six characters.
    """

    SENSITIVE_FIELDS = frozenset(
        {"password", "app_password", "passwd", "pwd", "secret", "token", "authorization"}
    )

    # key=value, key: value and "key": "value" forms
    KEY_VALUE_RE = re.compile(
        r"""((?:app_)?password|token|secret)(["']?\s*[:=]\s*["']?)([^"'}\s]+)""",
        re.IGNORECASE,
    )
    EMAIL_RE = re.compile(r"\b([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b")

    def __init__(self, strategy: str = "full"):
        if strategy not in ("full", "partial"):
            raise ValueError(f"Unknown masking strategy: {strategy}")
        self.strategy = strategy

    def mask_value(self, value: str) -> str:
        if self.strategy == "partial" and len(value) > 6:
            return value[:3] + "*" * (len(value) - 6) + value[-3:]
        return "[REDACTED]"

    def mask_string(self, text: str) -> str:
        if not text:
            return text
        text = self.KEY_VALUE_RE.sub(
            lambda m: m.group(1) + m.group(2) + self.mask_value(m.group(3)), text
        )
        return self.EMAIL_RE.sub(
            lambda m: self._mask_email(m.group(1), m.group(2)), text
        )

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {key: self.mask_field(key, value) for key, value in data.items()}

    def mask_field(self, key: str, value: Any) -> Any:
        """Mask one named value, recursing into dictionaries."""
        if str(key).lower() in self.SENSITIVE_FIELDS:
            return self.mask_value(str(value))
        if isinstance(value, dict):
            return self.mask_dict(value)
        if isinstance(value, str):
            return self.mask_string(value)
        return value

    @staticmethod
    def _mask_email(user: str, domain: str) -> str:
        masked_user = user[0] + "***" if len(user) > 1 else "***"
        masked_domain = domain[0] + ("***" if len(domain) > 1 else "*")
        return f"{masked_user}@{masked_domain}"


class SensitiveDataFilter(logging.Filter):
    """Applies :class:`SensitiveDataMasker` to the message and ``extra`` fields."""

    def __init__(self, strategy: str = "full"):
        super().__init__()
        self.masker = SensitiveDataMasker(strategy)

    def filter(self, record: logging.LogRecord) -> bool:
        # Only plain string messages are rewritten; args are left to formatting.
        if isinstance(record.msg, str):
            record.msg = self.masker.mask_string(record.msg)

        for key, value in _record_extras(record).items():
            setattr(record, key, self.masker.mask_field(key, value))

        return True


class EventFilter(logging.Filter):
    """Passes only records logged through :func:`log_event`."""

    def filter(self, record: logging.LogRecord) -> bool:
        return hasattr(record, "event_type")


## Log Manager


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Invalid logging level: {level}")
    return value


def _qualified_name(name: Optional[str]) -> str:
    if not name or name == ROOT_LOGGER:
        return ROOT_LOGGER
    if name.startswith(ROOT_LOGGER + "."):
        return name
    return f"{ROOT_LOGGER}.{name}"


class LogManager:
    """Owns the handlers attached to the ``rutt`` logger."""

    APP_LOG = ("app.log", 5_242_880, 5)
    EVENT_LOG = ("events.log", 2_048_000, 3)

    def __init__(self, log_level: str = "INFO", console_level: str = "WARNING"):
        self.log_level = _parse_level(log_level)
        self.console_level = _parse_level(console_level)
        self.root_logger = logging.getLogger(ROOT_LOGGER)
        self.root_logger.setLevel(logging.DEBUG)
        self.root_logger.propagate = False
        self.console_handler = self._console_handler()

        log_dir = _get_log_dir()
        self.root_logger.handlers.clear()
        self.root_logger.addHandler(self.console_handler)
        self.root_logger.addHandler(self._file_handler(log_dir, *self.APP_LOG, self.log_level))
        event_handler = self._file_handler(log_dir, *self.EVENT_LOG, logging.INFO)
        event_handler.addFilter(EventFilter())
        self.root_logger.addHandler(event_handler)

    def _console_handler(self) -> RichHandler:
        handler = RichHandler(
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setLevel(self.console_level)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        handler.addFilter(SensitiveDataFilter())
        return handler

    @staticmethod
    def _file_handler(
        log_dir: Path, filename: str, max_bytes: int, backups: int, level: int
    ) -> RotatingFileHandler:
        from .errors import FileSystemError

        path = log_dir / filename
        try:
            handler = RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
            )
        except OSError as e:
            raise FileSystemError(
                f"Failed to open log file: {path}", details={"path": str(path)}
            ) from e

        handler.setLevel(level)
        handler.setFormatter(JSONFormatter())
        handler.addFilter(SensitiveDataFilter())
        return handler

    def detach_console(self) -> None:
        """Stop writing to the terminal while a full-screen UI owns it."""
        self.root_logger.removeHandler(self.console_handler)

    def attach_console(self) -> None:
        if self.console_handler not in self.root_logger.handlers:
            self.root_logger.addHandler(self.console_handler)


## Module-level helpers


def init_logging(log_level: str = "INFO", console_level: str = "WARNING") -> LogManager:
    """Set up the ``rutt`` handlers once and return the manager."""

    global _log_manager

    if _log_manager is None:
        _log_manager = LogManager(log_level, console_level)

    return _log_manager


def get_log_manager() -> Optional[LogManager]:
    return _log_manager


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the ``rutt`` tree.

    ``get_logger(__name__)`` from a rutt module is used as-is; other names are
    prefixed with ``rutt.``. Loggers created before :func:`init_logging` pick
    up the handlers once it runs.
    """
    return logging.getLogger(_qualified_name(name))


def log_event(event_type: str, message: str, **extra) -> None:
    """Log a session event; these also land in ``events.log``."""
    logging.getLogger(ROOT_LOGGER).info(message, extra={"event_type": event_type, **extra})


def log_call(func: Callable) -> Callable:
    """Trace entry, exit and duration of ``func`` at DEBUG.

    Works for plain functions and coroutine functions alike.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    func_name = f"{func.__module__}.{func.__qualname__}"

    def _finished(start: float, error: Optional[BaseException] = None) -> None:
        duration = time.perf_counter() - start
        if error is None:
            logger.debug(f"<- {func_name} ({duration:.3f}s)")
        else:
            logger.debug(f"<- {func_name} failed after {duration:.3f}s: {error!r}")

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger.debug(f"-> {func_name} (async)")
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _finished(start, e)
                raise
            _finished(start)
            return result

        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f"-> {func_name}")
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _finished(start, e)
            raise
        _finished(start)
        return result

    return wrapper
