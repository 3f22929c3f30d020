"""
Shared fakes for logscan tests.

No test talks to the network: HyperSync clients and streams are replaced by
in-memory fakes that replay canned responses.
"""

import pytest


class FakeStream:
    def __init__(self, responses):
        self._responses = list(responses)
        self.closed = False
        self.received = 0

    def recv(self):
        self.received += 1
        if not self._responses:
            return None
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self):
        self.closed = True


class FakeClient:
    def __init__(self, height=0, responses=(), height_error=None):
        self.height = height
        self.responses = list(responses)
        self.height_error = height_error
        self.queries = []
        self.streams = []

    def get_height(self):
        if self.height_error is not None:
            raise self.height_error
        return self.height

    def stream(self, query):
        self.queries.append(query)
        stream = FakeStream(self.responses)
        self.streams.append(stream)
        return stream


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def batch(next_block, *topic0s):
    logs = [{"topics": [t]} if t is not None else {"topics": []} for t in topic0s]
    return {"nextBlock": next_block, "data": {"logs": logs}}


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_batch():
    return batch
