"""Reviewer lookup: changed files in, ranked reviewers out.

Each changed file's history is queried concurrently in a worker thread.
Results travel through a queue to a single consumer, which is the only
code that touches the shared ``Stats`` aggregator.
"""

import asyncio
import logging
import threading
from typing import Callable, Iterable, NamedTuple, Optional

from git_reviewers.errors import ProviderError
from git_reviewers.filters import should_consider
from git_reviewers.history import GitHistoryProvider, HistoryProvider
from git_reviewers.models import (
    MergeOrder,
    PathFailure,
    ReviewerOptions,
    ReviewerReport,
    Stat,
    Stats,
)

logger = logging.getLogger(__name__)


class _PathResult(NamedTuple):
    index: int
    path: str
    stats: list[Stat]
    error: Optional[str] = None


class _Merger:
    """Fan-in state. Owned by whichever coroutine is currently draining the queue."""

    def __init__(self, order: MergeOrder) -> None:
        self.order = order
        self.stats = Stats()
        self.failures: list[tuple[int, PathFailure]] = []
        self.seen: set[int] = set()
        self._buffer: dict[int, _PathResult] = {}
        self._next = 0

    def accept(self, result: _PathResult) -> None:
        self.seen.add(result.index)
        if self.order == "arrival":
            self._apply(result)
            return
        # Input order: hold results until every earlier path has been applied.
        self._buffer[result.index] = result
        while self._next in self._buffer:
            self._apply(self._buffer.pop(self._next))
            self._next += 1

    def flush(self) -> None:
        for index in sorted(self._buffer):
            self._apply(self._buffer.pop(index))

    def fail(self, index: int, path: str, error: str) -> None:
        self.failures.append((index, PathFailure(path=path, error=error)))

    def _apply(self, result: _PathResult) -> None:
        if result.error is not None:
            self.fail(result.index, result.path, result.error)
            return
        for stat in result.stats:
            if stat.reviewer:
                self.stats.add_to_set(stat)

    def failed_paths(self) -> list[PathFailure]:
        return [f for _, f in sorted(self.failures, key=lambda x: x[0])]


class ReviewerFinder:
    """Finds changed files on a branch and the people who know them best."""

    def __init__(
        self,
        options: Optional[ReviewerOptions] = None,
        provider: Optional[HistoryProvider] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.options = options or ReviewerOptions()
        self.provider = provider or GitHistoryProvider()
        self._on_status = on_status or (lambda _: None)

    def _status(self, msg: str) -> None:
        self._on_status(msg)

    # ── Changed files ─────────────────────────────────────────────────────

    def find_files(self) -> list[str]:
        """Files changed between the base ref and head that pass the filters."""
        self._status(f"Diffing {self.options.base}..{self.options.head} …")
        changed = self.provider.diff_changed_paths(self.options.base, self.options.head)
        files = []
        for line in changed:
            path = line.strip()
            if path and should_consider(path, self.options):
                files.append(path)
        logger.debug("%d of %d changed files considered", len(files), len(changed))
        return files

    # ── Reviewers ─────────────────────────────────────────────────────────

    def _lookup(
        self,
        index: int,
        path: str,
        loop: asyncio.AbstractEventLoop,
        queue: "asyncio.Queue[_PathResult]",
        slots: threading.BoundedSemaphore,
    ) -> None:
        """Worker thread body: one history query, handed back to the event loop."""
        with slots:
            try:
                stats = self.provider.authorship_counts(path, self.options.since)
            except Exception as e:
                # The consumer waits for one result per path, failures included.
                logger.warning("History lookup failed for %s: %s", path, e)
                result = _PathResult(index, path, [], str(e))
            else:
                logger.debug("%s: %d committer(s)", path, len(stats))
                result = _PathResult(index, path, list(stats))
        try:
            loop.call_soon_threadsafe(queue.put_nowait, result)
        except RuntimeError:
            # Loop already closed: the deadline passed without this path.
            logger.debug("Dropping late result for %s", path)

    @staticmethod
    async def _consume(
        queue: "asyncio.Queue[_PathResult]", expected: int, merger: _Merger
    ) -> None:
        for _ in range(expected):
            merger.accept(await queue.get())
        merger.flush()

    async def find_reviewers(self, paths: Iterable[str]) -> ReviewerReport:
        """Rank the committers of ``paths`` by combined commit count.

        Paths whose history can't be read are reported in
        ``failed_paths`` while the rest are still ranked. Raises
        ProviderError only when every lookup failed.

        Lookups run on daemon threads, so one that is still stuck when
        the deadline passes does not keep the interpreter alive either.
        """
        paths = list(paths)
        if not paths:
            return ReviewerReport()

        self._status(f"Querying history for {len(paths)} file(s) …")
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[_PathResult] = asyncio.Queue()
        merger = _Merger(self.options.merge_order)
        slots = threading.BoundedSemaphore(self.options.max_workers or len(paths))
        for i, path in enumerate(paths):
            threading.Thread(
                target=self._lookup,
                args=(i, path, loop, queue, slots),
                name=f"git-reviewers-{i}",
                daemon=True,
            ).start()

        consumer = asyncio.create_task(self._consume(queue, len(paths), merger))
        timed_out = False
        try:
            done, _ = await asyncio.wait({consumer}, timeout=self.options.timeout)
            if consumer in done:
                consumer.result()
            else:
                timed_out = True
                logger.warning(
                    "Timed out after %ss; ranking the history merged so far",
                    self.options.timeout,
                )
                consumer.cancel()
                await asyncio.gather(consumer, return_exceptions=True)
                # The consumer is gone, so draining here keeps a single writer.
                while not queue.empty():
                    merger.accept(queue.get_nowait())
                merger.flush()
                for i, path in enumerate(paths):
                    if i not in merger.seen:
                        merger.fail(i, path, f"timed out after {self.options.timeout}s")
        finally:
            if not consumer.done():
                consumer.cancel()

        failed = merger.failed_paths()
        if not timed_out and len(failed) == len(paths):
            raise ProviderError(
                f"History lookup failed for every changed file: {failed[0].error}"
            )

        self._status("Ranking reviewers …")
        return ReviewerReport(
            reviewers=merger.stats.top(self.options.max_reviewers),
            failed_paths=failed,
            timed_out=timed_out,
        )

    def find_reviewers_sync(self, paths: Iterable[str]) -> ReviewerReport:
        """Blocking wrapper around :meth:`find_reviewers`."""
        return asyncio.run(self.find_reviewers(paths))


def suggest_reviewers(
    options: Optional[ReviewerOptions] = None,
    provider: Optional[HistoryProvider] = None,
) -> ReviewerReport:
    """Changed files → ranked reviewers, in one call."""
    finder = ReviewerFinder(options, provider)
    return finder.find_reviewers_sync(finder.find_files())
