import json
import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from .errors import DecodeWarning

MAX_SAMPLE_CHARS = 100


def safe_stringify(obj: Any, max_length: int = MAX_SAMPLE_CHARS) -> str:
    if not obj:
        return "null"
    try:
        text = json.dumps(obj, default=str)
    except (TypeError, ValueError):
        return "[Object: stringify failed]"
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class EventSampler:
    """
    Decodes the first record of a batch roughly every `every` records.

    Runs after counting; decode failures are logged and dropped.
    """

    def __init__(
        self,
        decoder: Callable[[Any], Dict[str, Any]],
        every: int = 1000,
        keep: int = 10,
    ) -> None:
        if every < 1:
            raise ValueError("every must be a positive integer.")
        self._decoder = decoder
        self.every = every
        self.samples: Deque[Dict[str, Any]] = deque(maxlen=keep)
        self.failures = 0
        self._next_at = every
        self._logger = logging.getLogger("EventSampler")

    def observe(self, records: List[Any], total: int, block: Optional[int] = None) -> None:
        if total < self._next_at or not records:
            return
        self._next_at = (total // self.every + 1) * self.every

        try:
            decoded = self._decoder(records[0])
        except Exception as exc:  # pylint: disable=broad-except
            self.failures += 1
            warning = exc if isinstance(exc, DecodeWarning) else DecodeWarning(str(exc))
            self._logger.warning("Decode warning: %s", warning)
            return

        sample = {"block": block, "event": decoded}
        self.samples.append(sample)
        self._logger.info("Sample event at block %s: %s", block, safe_stringify(decoded))
