import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# pandas routes dtype/NaN chatter through warnings; the engine coerces it away
QUIET_LOGGERS = ("py.warnings",)


def resolve_level(level: str | int | None) -> int | None:
    """Numeric logging level for a name (``"debug"``) or number; ``None`` if unknown."""
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    numeric = logging.getLevelName(str(level or "").strip().upper())
    return numeric if isinstance(numeric, int) else None


def configure_logging(level: str | int = "INFO", *, stream: TextIO | None = None) -> None:
    """Point the root logger at one stream handler for the analytics host.

    Safe to call again when the host reloads its settings: earlier handlers
    are replaced, never stacked.
    """
    numeric_level = resolve_level(level)

    # e.g. "2024-01-10 10:00:00 [DEBUG] rollplan.core.timeline: 12 timeline entries for ..."
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level if numeric_level is not None else logging.INFO)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.captureWarnings(True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)

    if numeric_level is None:
        logging.getLogger(__name__).warning("Invalid log level: %s, defaulting to INFO", level)
