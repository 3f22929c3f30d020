import logging
import sys
from typing import IO, Optional, Tuple, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Terminal capability chatter emitted by curses-style renderers.
NOISE_PATTERNS: Tuple[str, ...] = (
    "Error on xterm",
    "Setulc",
    "terminal capability",
    "escape sequence",
)


class TerminalNoiseFilter(logging.Filter):
    def __init__(self, patterns: Tuple[str, ...] = NOISE_PATTERNS) -> None:
        super().__init__()
        self.patterns = tuple(p.lower() for p in patterns)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage().lower()
        return not any(pattern in message for pattern in self.patterns)


_handler: Optional[logging.Handler] = None


def configure_logging(
    level: Union[int, str] = "INFO",
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Install the single root handler; repeated calls replace it."""
    global _handler

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level '{level}'.")
        level = resolved

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TerminalNoiseFilter())
    root.addHandler(handler)
    root.setLevel(level)

    _handler = handler
    return handler
