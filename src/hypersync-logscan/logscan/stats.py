import time
from typing import Any, Callable, Dict, Iterable, Optional

from .signatures import TOTAL, UNKNOWN, SignatureIndex, record_topic0

MIN_ELAPSED_SECONDS = 0.1


class StatsAggregator:
    """Classifies streamed log records by topic0 and keeps running counts."""

    def __init__(
        self,
        index: SignatureIndex,
        sampler: Optional[Any] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.index = index
        self.sampler = sampler
        self._clock = clock
        # Pre-populated so the hot loop never grows the mapping.
        self.counts: Dict[str, int] = {TOTAL: 0, UNKNOWN: 0}
        for name in index.names:
            self.counts[name] = 0
        self._started_at = clock()

    def restart_clock(self) -> None:
        self._started_at = self._clock()

    def ingest(self, records: Iterable[Any], block: Optional[int] = None) -> int:
        seen = []
        for record in records:
            if record is None:
                continue
            seen.append(record)
            self.counts[TOTAL] += 1

            name = self.index.name_for(record_topic0(record))
            if name is None:
                self.counts[UNKNOWN] += 1
            else:
                self.counts[name] += 1

        if self.sampler is not None and seen:
            self.sampler.observe(seen, self.counts[TOTAL], block)
        return len(seen)

    @property
    def total(self) -> int:
        return self.counts[TOTAL]

    def elapsed_seconds(self) -> float:
        return max(self._clock() - self._started_at, MIN_ELAPSED_SECONDS)

    def events_per_second(self) -> float:
        return self.counts[TOTAL] / self.elapsed_seconds()

    def snapshot(self) -> Dict[str, int]:
        return dict(self.counts)
