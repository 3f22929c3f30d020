"""
Unit tests for StatsAggregator classification and throughput.
"""

from unittest.mock import MagicMock

import pytest

from logscan.signatures import SignatureIndex
from logscan.stats import MIN_ELAPSED_SECONDS, StatsAggregator

TRANSFER = "Transfer(address,address,uint256)"
APPROVAL = "Approval(address,address,uint256)"
TRANSFER_ID = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
APPROVAL_ID = "0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"


def _sum_named(counts):
    return sum(v for k, v in counts.items() if k != "Total")


class TestClassification:
    def test_counts_prepopulated(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER, APPROVAL]), clock=clock)
        assert agg.snapshot() == {"Total": 0, "Unknown": 0, "Transfer": 0, "Approval": 0}

    def test_two_transfers(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        agg.ingest([{"topics": [TRANSFER_ID]}, {"topics": [TRANSFER_ID]}])
        assert agg.snapshot() == {"Transfer": 2, "Unknown": 0, "Total": 2}

    def test_empty_topics_is_unknown(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        agg.ingest([{"topics": []}])
        assert agg.snapshot() == {"Transfer": 0, "Unknown": 1, "Total": 1}

    def test_unmatched_topic_is_unknown(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        agg.ingest([{"topics": [APPROVAL_ID]}, {"no_topics": True}, "garbage"])
        assert agg.counts["Unknown"] == 3
        assert agg.total == 3

    def test_none_records_skipped(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        assert agg.ingest([None, {"topics": [TRANSFER_ID]}]) == 1
        assert agg.total == 1

    def test_total_equals_sum_of_counters(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER, APPROVAL]), clock=clock)
        agg.ingest([{"topics": [TRANSFER_ID]}, {"topics": [APPROVAL_ID]}, {"topics": []}])
        agg.ingest([{"topics": ["0x01"]}, {"topics": [TRANSFER_ID]}])
        counts = agg.snapshot()
        assert counts["Total"] == _sum_named(counts) == 5

    def test_snapshot_is_a_copy(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        snap = agg.snapshot()
        snap["Total"] = 99
        assert agg.total == 0


class TestThroughput:
    def test_elapsed_floored(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        assert agg.elapsed_seconds() == MIN_ELAPSED_SECONDS
        agg.ingest([{"topics": [TRANSFER_ID]}])
        assert agg.events_per_second() == 1 / MIN_ELAPSED_SECONDS

    def test_recomputed_each_call(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        agg.ingest([{"topics": [TRANSFER_ID]}] * 10)
        clock.advance(2.0)
        assert agg.events_per_second() == 5.0
        clock.advance(3.0)
        assert agg.events_per_second() == 2.0

    def test_restart_clock(self, clock):
        agg = StatsAggregator(SignatureIndex([TRANSFER]), clock=clock)
        clock.advance(10.0)
        agg.restart_clock()
        assert agg.elapsed_seconds() == MIN_ELAPSED_SECONDS


class TestSamplerHook:
    def test_sampler_sees_records_after_counting(self, clock):
        sampler = MagicMock()
        agg = StatsAggregator(SignatureIndex([TRANSFER]), sampler=sampler, clock=clock)
        records = [{"topics": [TRANSFER_ID]}]
        agg.ingest(records, block=42)
        sampler.observe.assert_called_once_with(records, 1, 42)

    def test_sampler_not_called_for_empty_batch(self, clock):
        sampler = MagicMock()
        agg = StatsAggregator(SignatureIndex([TRANSFER]), sampler=sampler, clock=clock)
        agg.ingest([], block=42)
        sampler.observe.assert_not_called()


class TestReservedNames:
    @pytest.mark.parametrize("signature", ["Total(uint256)", "Unknown(address)"])
    def test_counter_names_cannot_be_shadowed(self, signature):
        with pytest.raises(ValueError, match="reserved counter name"):
            StatsAggregator(SignatureIndex([signature]))

    def test_similar_names_still_count_separately(self, clock):
        index = SignatureIndex(["Totals(uint256)", TRANSFER])
        agg = StatsAggregator(index, clock=clock)
        agg.ingest([{"topics": [index.topic_ids[0]]}, {"topics": [TRANSFER_ID]}])
        counts = agg.snapshot()
        assert counts == {"Total": 2, "Unknown": 0, "Totals": 1, "Transfer": 1}
        assert counts["Total"] == _sum_named(counts)
