"""Tests for concurrent stats collection."""

import threading

from stackview.vcs.stats import StatsCollector, StatsResult, filter_present, total_stats
from stackview.vcs.types import CommitId, CommitStats

STATS = {
    "a": CommitStats(additions=3, deletions=1),
    "b": CommitStats(additions=0, deletions=7),
    "c": CommitStats(additions=10, deletions=0),
}


def query(commit_id: str) -> CommitStats:
    return STATS[commit_id]


class TestCollect:
    def test_collects_every_commit(self):
        result = StatsCollector(query, max_workers=2).collect([CommitId(c) for c in "abc"])
        assert result.stats == STATS
        assert result.failed == []

    def test_failed_queries_are_omitted(self):
        """A commit whose query fails is absent, the rest still arrive."""
        result = StatsCollector(query).collect([CommitId("a"), CommitId("missing"), CommitId("c")])

        assert set(result.stats) == {"a", "c"}
        assert result.failed == ["missing"]

    def test_unexpected_errors_are_contained(self):
        """Any exception from one query only drops that commit."""

        class BrokenObject(Exception):
            pass

        def flaky_query(commit_id):
            if commit_id == "bad":
                raise BrokenObject("corrupt object")
            return query(commit_id)

        result = StatsCollector(flaky_query).collect([CommitId("a"), CommitId("bad"), CommitId("c")])

        assert result.stats == {"a": STATS["a"], "c": STATS["c"]}
        assert result.failed == ["bad"]

    def test_duplicates_are_queried_once(self):
        calls = []
        lock = threading.Lock()

        def counting_query(commit_id):
            with lock:
                calls.append(commit_id)
            return query(commit_id)

        StatsCollector(counting_query).collect([CommitId("a"), CommitId("a"), CommitId("b")])
        assert sorted(calls) == ["a", "b"]

    def test_empty_input(self):
        result = StatsCollector(query).collect([])
        assert result.stats == {}

    def test_queries_run_concurrently(self):
        """Every worker is busy at once when there is enough work."""
        barrier = threading.Barrier(3, timeout=5)

        def blocking_query(commit_id):
            barrier.wait()
            return query(commit_id)

        result = StatsCollector(blocking_query, max_workers=3).collect([CommitId(c) for c in "abc"])
        assert len(result.stats) == 3


class TestGenerations:
    def test_result_carries_generation(self):
        collector = StatsCollector(query)
        generation = collector.next_generation()

        result = collector.collect([CommitId("a")], generation)
        assert result.generation == generation
        assert collector.is_current(result)

    def test_stale_after_refresh(self):
        """Results from before a refresh are no longer current."""
        collector = StatsCollector(query)
        old = collector.collect([CommitId("a")], collector.next_generation())
        collector.next_generation()

        assert not collector.is_current(old)

    def test_generations_increase(self):
        collector = StatsCollector(query)
        assert collector.next_generation() < collector.next_generation()


class TestHelpers:
    def test_filter_present(self):
        result = StatsResult(generation=1, stats={CommitId(k): v for k, v in STATS.items()})
        assert filter_present(result, [CommitId("a"), CommitId("z")]) == {"a": STATS["a"]}

    def test_total_stats_skips_missing(self):
        total = total_stats([STATS["a"], None, STATS["b"]])
        assert total == CommitStats(additions=3, deletions=8)

    def test_total_of_nothing_is_empty(self):
        assert total_stats([]).is_empty
