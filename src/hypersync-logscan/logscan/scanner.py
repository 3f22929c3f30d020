"""
Streaming scanner: drives the HyperSync cursor loop for one signature set and
feeds every received batch to a StatsAggregator.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

import requests

from .errors import ProtocolAnomaly, StreamFailure
from .signatures import SignatureIndex
from .stats import StatsAggregator

TRANSPORT_ERRORS = (requests.RequestException, ValueError, OSError)


class ScanState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class Batch:
    records: List[Any]
    next_block: Optional[int]


@dataclass(frozen=True)
class EndOfStream:
    pass


StreamResult = Union[Batch, EndOfStream]


@dataclass(frozen=True)
class ScanProgress:
    """Read-only view handed to the presentation layer on every iteration."""

    state: ScanState
    progress: float
    cursor: int
    height: int
    counts: Dict[str, int] = field(default_factory=dict)
    elapsed_seconds: float = 0.0
    events_per_second: float = 0.0

    @property
    def complete(self) -> bool:
        return self.state is ScanState.COMPLETE

    def as_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "progress": self.progress,
            "cursor": self.cursor,
            "height": self.height,
            "counts": dict(self.counts),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "events_per_second": round(self.events_per_second, 1),
        }


def build_query(from_block: int, topic_ids: List[str]) -> Dict[str, Any]:
    # One inner list: any of the ids may match topic0.
    return {
        "from_block": from_block,
        "logs": [{"topics": [list(topic_ids)]}],
        "field_selection": {"log": ["topic0"]},
    }


def to_stream_result(response: Any) -> StreamResult:
    if response is None:
        return EndOfStream()

    data = response.get("data") if isinstance(response, dict) else None
    logs = data.get("logs") if isinstance(data, dict) else None
    records = list(logs) if isinstance(logs, list) else []

    next_block = response.get("nextBlock") if isinstance(response, dict) else None
    if not isinstance(next_block, int) or isinstance(next_block, bool):
        next_block = None
    return Batch(records=records, next_block=next_block)


class StreamingScanner:
    """
    Single-use scanner: Idle -> Initializing -> Streaming -> Complete | Failed.

    The chain height is read once; the scan never chases blocks produced
    after that. Transport errors are not retried: the first one fails the
    scan, and the caller may start a new scan.

    Usage:
        scanner = StreamingScanner(client, SignatureIndex(signatures))
        for progress in scanner.scan():
            render(progress)
    """

    def __init__(
        self,
        client: Any,
        index: SignatureIndex,
        aggregator: Optional[StatsAggregator] = None,
    ) -> None:
        self._client = client
        self.index = index
        self.aggregator = aggregator or StatsAggregator(index)
        self.state = ScanState.IDLE
        self.from_block = 0
        self.height = 0
        self.anomalies = 0
        self._progress = 0.0
        self._logger = logging.getLogger("StreamingScanner")

    def progress(self) -> ScanProgress:
        return ScanProgress(
            state=self.state,
            progress=self._progress,
            cursor=self.from_block,
            height=self.height,
            counts=self.aggregator.snapshot(),
            elapsed_seconds=self.aggregator.elapsed_seconds(),
            events_per_second=self.aggregator.events_per_second(),
        )

    def run(self, on_progress: Optional[Callable[[ScanProgress], None]] = None) -> ScanProgress:
        last = self.progress()
        for last in self.scan():
            if on_progress is not None:
                on_progress(last)
        return last

    def scan(self) -> Iterator[ScanProgress]:
        if self.state is not ScanState.IDLE:
            raise RuntimeError(f"scanner already used (state={self.state.value}).")

        self.state = ScanState.INITIALIZING
        try:
            self.height = self._client.get_height()
            stream = self._client.stream(build_query(self.from_block, self.index.topic_ids))
        except TRANSPORT_ERRORS as exc:
            raise self._fail("Failed to initialize stream", exc) from exc

        self._logger.info("Starting scan from block 0 to %s", f"{self.height:,}")
        self.aggregator.restart_clock()
        self.state = ScanState.STREAMING

        try:
            yield self.progress()
            while self.state is ScanState.STREAMING:
                try:
                    result = to_stream_result(stream.recv())
                except TRANSPORT_ERRORS as exc:
                    raise self._fail("Stream failed", exc) from exc
                self._apply(result)
                yield self.progress()
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()

    def _apply(self, result: StreamResult) -> None:
        if isinstance(result, EndOfStream):
            self._logger.info("Reached the tip of the blockchain")
            self._complete()
            return

        if result.next_block is None:
            self.anomalies += 1
            self._logger.warning("%s", ProtocolAnomaly("missing nextBlock in response; batch skipped"))
            return

        self.aggregator.ingest(result.records, result.next_block)
        self.from_block = max(self.from_block, result.next_block)
        if self.height > 0:
            progress = min(self.from_block / self.height, 1.0)
        else:
            progress = 1.0
        self._progress = max(self._progress, progress)

        if self.from_block >= self.height:
            self._logger.info("Reached block height %s observed at start", f"{self.height:,}")
            self._complete()

    def _complete(self) -> None:
        self._progress = 1.0
        self.state = ScanState.COMPLETE

    def _fail(self, message: str, exc: BaseException) -> StreamFailure:
        self.state = ScanState.FAILED
        self._logger.error("%s: %s", message, exc)
        return StreamFailure(message, cause=exc)
