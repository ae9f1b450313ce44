# ruff: noqa: A005
"""Structured logging configuration.

Wraps structlog behind a small factory so that every module obtains its logger
through ``get_logger(__name__)`` and logs with keyword context::

    logger = get_logger(__name__)
    logger.info("Provider registered", provider_id=provider.id)

Records pass through a ``SensitiveDataFilter`` before rendering, so password,
token and cookie values never reach the log output even if a caller passes
them by mistake. Request-scoped values (request id, actor kind) are bound with
``log_context`` and merged into every record through structlog contextvars.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

from marketplace.core.enums import Environment, LogFormat, LogLevel

# =====================================================================================
# CONFIGURATION
# =====================================================================================


@dataclass
class LogConfig:
    """Logging configuration."""

    level: LogLevel = field(default=LogLevel.INFO)
    format: LogFormat = field(default=LogFormat.JSON)
    environment: Environment = field(default=Environment.DEVELOPMENT)
    enable_timestamps: bool = field(default=True)
    enable_caller_info: bool = field(default=False)
    enable_sensitive_data_filtering: bool = field(default=True)


# =====================================================================================
# FILTERS
# =====================================================================================


class SensitiveDataFilter:
    """
    Masks sensitive values in log records.

    Field names matching a sensitive pattern have their value replaced; nested
    dicts and lists are walked recursively.
    """

    def __init__(self, mask_char: str = "*", preserve_length: bool = False):
        self.mask_char = mask_char
        self.preserve_length = preserve_length
        self.sensitive_patterns = [
            re.compile(r"password", re.IGNORECASE),
            re.compile(r"token", re.IGNORECASE),
            re.compile(r"secret", re.IGNORECASE),
            re.compile(r"api_?key", re.IGNORECASE),
            re.compile(r"cookie", re.IGNORECASE),
            re.compile(r"credential", re.IGNORECASE),
        ]

    def filter(self, record: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``record`` with sensitive values masked."""
        filtered_record = {}

        for key, value in record.items():
            if self._is_sensitive_field(key):
                filtered_record[key] = self._mask_value(value)
            elif isinstance(value, dict):
                filtered_record[key] = self.filter(value)
            elif isinstance(value, list):
                filtered_record[key] = [
                    self.filter(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                filtered_record[key] = value

        return filtered_record

    def _is_sensitive_field(self, field_name: str) -> bool:
        return any(pattern.search(field_name) for pattern in self.sensitive_patterns)

    def _mask_value(self, value: Any) -> str | None:
        if value is None:
            return None
        if self.preserve_length:
            return self.mask_char * len(str(value))
        return f"{self.mask_char * 3}[MASKED]"


# =====================================================================================
# LOGGER
# =====================================================================================


class StructuredLogger:
    """Thin structured logger applying filters before delegating to structlog."""

    def __init__(self, name: str, config: LogConfig):
        self.name = name
        self.config = config
        self.filters: list[SensitiveDataFilter] = []
        if config.enable_sensitive_data_filtering:
            self.filters.append(SensitiveDataFilter())

        self._logger = structlog.get_logger(name)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error with the active exception's traceback."""
        kwargs["exc_info"] = True
        self.error(message, **kwargs)

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        if level.priority < self.config.level.priority:
            return

        record = dict(kwargs)
        for filter_instance in self.filters:
            record = filter_instance.filter(record)

        getattr(self._logger, level.level_name.lower())(message, **record)


class LoggerFactory:
    """Creates and caches structured loggers; configures structlog once."""

    def __init__(self, config: LogConfig):
        self.config = config
        self._loggers: dict[str, StructuredLogger] = {}
        self._configured = False

    def configure_logging(self) -> None:
        """Configure structlog and the standard library root logger."""
        if self._configured:
            return

        processors = [
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
        ]

        if self.config.enable_timestamps:
            processors.append(structlog.processors.TimeStamper(fmt="iso"))

        if self.config.enable_caller_info:
            processors.append(
                structlog.processors.CallsiteParameterAdder(
                    parameters=[
                        structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO,
                        structlog.processors.CallsiteParameter.FUNC_NAME,
                    ]
                )
            )

        processors.extend(
            [
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
            ]
        )

        if self.config.format == LogFormat.JSON:
            processors.append(structlog.processors.JSONRenderer())
        elif self.config.format == LogFormat.CONSOLE:
            processors.append(structlog.dev.ConsoleRenderer(colors=True))
        else:
            processors.append(structlog.processors.KeyValueRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=self.config.level.to_logging_level(),
        )
        logging.getLogger().setLevel(self.config.level.to_logging_level())

        if self.config.environment == Environment.PRODUCTION:
            logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)

        self._configured = True

    def get_logger(self, name: str) -> StructuredLogger:
        if not self._configured:
            self.configure_logging()

        if name not in self._loggers:
            self._loggers[name] = StructuredLogger(name, self.config)

        return self._loggers[name]


# =====================================================================================
# GLOBAL CONFIGURATION AND FACTORY
# =====================================================================================

_logger_factory: LoggerFactory | None = None


def configure_logging(config: LogConfig | None = None) -> None:
    """
    Configure global logging system.

    Args:
        config: Logging configuration (uses defaults if not provided)
    """
    global _logger_factory  # noqa: PLW0603

    existing = _logger_factory._loggers if _logger_factory else {}
    _logger_factory = LoggerFactory(config or LogConfig())
    _logger_factory.configure_logging()

    # Module-level loggers created before this call follow the new config.
    for name, logger in existing.items():
        logger.config = _logger_factory.config
        _logger_factory._loggers[name] = logger


def get_logger(name: str) -> StructuredLogger:
    """
    Get structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        StructuredLogger: Configured logger instance
    """
    if _logger_factory is None:
        configure_logging()

    return _logger_factory.get_logger(name)


def log_context(**kwargs: Any) -> None:
    """Bind values into the request-scoped logging context."""
    bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all request-scoped logging context."""
    clear_contextvars()


__all__ = [
    "LogConfig",
    "LoggerFactory",
    "SensitiveDataFilter",
    "StructuredLogger",
    "clear_context",
    "configure_logging",
    "get_logger",
    "log_context",
]
