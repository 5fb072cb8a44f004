"""
Logging configuration.

Thin wrapper around the standard library logging module. Services log
through ``get_logger(__name__)`` and attach context with ``extra={...}``;
the formatter installed by ``init_logging`` renders those fields after
the message.
"""

import logging
import sys

_ROOT_LOGGER_NAME = "cadence"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``extra`` context as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{base} | {rendered}"


def init_logging(level: str | int = "INFO") -> None:
    """
    Configure the application logger.

    Safe to call more than once; the handler is only installed once.

    Args:
        level: Log level name or number.
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(level if isinstance(level, int) else level.upper())

    if any(getattr(handler, "_cadence_handler", False) for handler in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ContextFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler._cadence_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the application namespace.

    Args:
        name: Module name, usually ``__name__``.

    Returns:
        Logger instance.
    """
    if name == _ROOT_LOGGER_NAME or name.startswith(f"{_ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
