import logging
import os
import sys
from typing import ClassVar, Optional

_PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_COLOR_FORMAT = "\x1b[90m%(asctime)s\x1b[0m | %(levelname_color)s | \x1b[36m%(name)s\x1b[0m | %(message)s"
_configured: str | int | bool = False


def _supports_color() -> bool:
    try:
        return sys.stdout.isatty() and os.getenv("NO_COLOR") is None
    except Exception:
        return False


class _LevelColorFormatter(logging.Formatter):
    """Adds ``levelname_color`` to each record, ANSI-coloured when enabled."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\x1b[37m",  # light gray
        "INFO": "\x1b[32m",  # green
        "WARNING": "\x1b[33m",  # yellow
        "ERROR": "\x1b[31m",  # red
        "CRITICAL": "\x1b[41m",  # red background
    }

    RESET: ClassVar[str] = "\x1b[0m"

    def __init__(self, fmt: str, datefmt: str, use_color: bool) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname, "") if self.use_color else ""
        record.levelname_color = f"{color}{levelname}{self.RESET}" if color else levelname
        return super().format(record)


def _resolve_format(fmt: Optional[str], use_color: bool) -> str:
    if fmt is not None:
        return fmt
    env_fmt = os.getenv("HANDLESCOPE_LOG_FORMAT")
    if env_fmt is not None:
        return env_fmt
    return _COLOR_FORMAT if use_color else _PLAIN_FORMAT


def configure_logging(
    level: Optional[str | int] = None,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    propagate_root: bool = False,
) -> str | int:
    """Configure root logging once with a consistent format.

    Calling it again with the same level is a no-op; a different level
    re-applies the configuration.

    Environment overrides:
    - `HANDLESCOPE_LOG_LEVEL`
    - `HANDLESCOPE_LOG_FORMAT`
    - `HANDLESCOPE_LOG_DATEFMT`
    """
    from handlescope.config.environment import Environment

    global _configured

    if isinstance(level, str):
        level = level.upper()

    if level is None:
        level = Environment.get_log_level()

    if _configured and _configured == level:
        return level
    _configured = level

    use_color = _supports_color()
    formatter = _LevelColorFormatter(
        fmt=_resolve_format(fmt, use_color),
        datefmt=datefmt or os.getenv("HANDLESCOPE_LOG_DATEFMT", "%Y-%m-%d %H:%M:%S"),
        use_color=use_color,
    )

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level)
    else:
        # Host-installed handlers (e.g. pytest) are aligned, not replaced
        root.setLevel(level)

    for h in root.handlers:
        if isinstance(h, logging.StreamHandler):
            h.setLevel(level)
            h.setFormatter(formatter)
    root.propagate = propagate_root
    return level


def get_logger(name: str) -> logging.Logger:
    """Return a module-scoped logger."""
    level = configure_logging()
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
