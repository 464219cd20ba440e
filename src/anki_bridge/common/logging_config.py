"""
Logging configuration for the bridge.

Human-readable console output with structured context fields appended:
``timestamp [LEVEL] logger_name: message | key1=value1 key2=value2``
"""
import logging
import sys
from typing import IO, Iterable, Optional

LOGGER_NAMESPACE = "anki_bridge"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``extra={...}`` fields to each line.

    Colors are applied only when ``use_color`` is set (e.g. a TTY).
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
        'GRAY': '\033[90m',
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, use_color: bool = True) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    @staticmethod
    def extra_fields(record: logging.LogRecord) -> Iterable[str]:
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None:
                yield f"{key}={value}"

    def format(self, record: logging.LogRecord) -> str:
        base_msg = super().format(record)

        levelname = record.levelname
        if self.use_color and levelname in self.COLORS:
            colored_level = f"{self.COLORS[levelname]}[{levelname}]{self.COLORS['RESET']}"
            base_msg = base_msg.replace(f"[{levelname}]", colored_level, 1)

        extra = " ".join(self.extra_fields(record))
        if not extra:
            return base_msg
        if self.use_color:
            return f"{base_msg}{self.COLORS['GRAY']} | {extra}{self.COLORS['RESET']}"
        return f"{base_msg} | {extra}"


def setup_logging(level: str = "INFO", stream: Optional[IO[str]] = None) -> None:
    """Configure the ``anki_bridge`` logger namespace.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               DEBUG also shows LLM prompts/responses and every RPC call.
        stream: Output stream, stdout by default.

    Example:
        >>> from anki_bridge.common.logging_config import setup_logging
        >>> setup_logging("DEBUG")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    stream = stream or sys.stdout

    formatter = ContextFormatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        use_color=hasattr(stream, "isatty") and stream.isatty(),
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    root_logger.setLevel(numeric_level)

    # Repeated calls replace the handler instead of stacking duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Note added", extra={"deck": "Vocabulary", "note_id": 1})
    """
    return logging.getLogger(name)
