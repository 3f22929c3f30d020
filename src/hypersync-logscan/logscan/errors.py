from typing import Iterable, List, Optional

KNOWN_PREVIEW_LIMIT = 10


class LogscanError(Exception):
    """Base class for every error raised by logscan."""


class UnknownNetwork(LogscanError, ValueError):
    def __init__(self, name: str, known: Iterable[str]) -> None:
        self.name = name
        self.known: List[str] = list(known)[:KNOWN_PREVIEW_LIMIT]
        preview = ", ".join(self.known)
        super().__init__(
            f"Network '{name}' not supported. Available networks: {preview}... "
            "(use list-networks to see all)"
        )


class UnknownPreset(LogscanError, ValueError):
    def __init__(self, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available: List[str] = list(available)
        super().__init__(
            f"Preset '{name}' not found. Available presets: {', '.join(self.available)}"
        )


class DiscoveryFailure(LogscanError):
    """Directory endpoint unreachable or returned an unusable payload."""


class ProtocolAnomaly(LogscanError):
    """A streamed batch violated the wire protocol (e.g. missing cursor)."""


class DecodeWarning(LogscanError):
    """Best-effort sample decoding failed for one record."""


class StreamFailure(LogscanError):
    """The streaming session cannot continue; fatal to the current scan."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
