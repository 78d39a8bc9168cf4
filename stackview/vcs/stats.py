"""
Concurrent per-commit statistics.

Stats are fetched one request per commit on a thread pool. A fetch cycle is
tagged with a generation number; bumping the generation (on every graph
refresh) marks older cycles as stale so their results can be dropped.
"""

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from threading import Lock

from stackview.constants import DEFAULT_STATS_WORKERS
from stackview.vcs.types import CommitId, CommitStats

StatsQuery = Callable[[str], CommitStats]


@dataclass
class StatsResult:
    """Stats collected for one batch of commits in one generation."""

    generation: int
    stats: dict[CommitId, CommitStats] = field(default_factory=dict)
    failed: list[CommitId] = field(default_factory=list)


class StatsCollector:
    def __init__(self, query: StatsQuery, max_workers: int = DEFAULT_STATS_WORKERS) -> None:
        self.query = query
        self.max_workers = max(1, max_workers)
        self._generation = 0
        self._lock = Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def next_generation(self) -> int:
        """Start a new fetch cycle; everything collected before is stale."""
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, result: StatsResult) -> bool:
        return result.generation == self._generation

    def collect(self, commit_ids: Iterable[CommitId], generation: int | None = None) -> StatsResult:
        """Fetch stats for all commits concurrently.

        Failed queries leave the commit out of the result. Blocks until every
        request has finished.
        """
        ids = list(dict.fromkeys(commit_ids))
        result = StatsResult(generation=self._generation if generation is None else generation)
        if not ids:
            return result

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(ids))) as executor:
            futures = {executor.submit(self.query, commit_id): commit_id for commit_id in ids}
            for future in as_completed(futures):
                commit_id = futures[future]
                try:
                    result.stats[commit_id] = future.result()
                except Exception as e:
                    print(f"⚠️  Stats unavailable for {commit_id[:8]}: {e}")
                    result.failed.append(commit_id)

        return result


def filter_present(result: StatsResult, present: Iterable[CommitId]) -> dict[CommitId, CommitStats]:
    """Drop stats for commits that are no longer in the graph."""
    keep = set(present)
    return {commit_id: stats for commit_id, stats in result.stats.items() if commit_id in keep}


def total_stats(stats: Iterable[CommitStats | None]) -> CommitStats:
    """Sum stats, counting missing entries as empty."""
    additions = 0
    deletions = 0
    for s in stats:
        if s is None:
            continue
        additions += s.additions
        deletions += s.deletions
    return CommitStats(additions=additions, deletions=deletions)
